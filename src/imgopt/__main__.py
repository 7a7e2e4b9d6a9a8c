"""Allow ``python -m imgopt``."""

from imgopt.cli import app

if __name__ == "__main__":
    app()
