"""Command-line interface for imgopt."""

from __future__ import annotations

import sys
from pathlib import Path

# Fix Windows console encoding for Unicode output
if sys.platform == "win32":
    if hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    if hasattr(sys.stderr, "reconfigure"):
        sys.stderr.reconfigure(encoding="utf-8", errors="replace")

import click
from click import Context
from dotenv import load_dotenv

# Load .env file from current directory and parent directories
load_dotenv()

from loguru import logger

from imgopt.aggregator import ErrorLog, OutcomeAggregator
from imgopt.batch import BatchRunner, BatchSummary
from imgopt.cli import ui
from imgopt.cli.console import get_console, get_stderr_console
from imgopt.cli.logging_config import LoggingContext, print_version, setup_logging
from imgopt.config import BatchConfig, ConversionOptions
from imgopt.constants import (
    DEFAULT_QUALITY,
    DEFAULT_WORKERS,
    ERROR_LOG_FILENAME,
    MAX_QUALITY,
    MIN_QUALITY,
)
from imgopt.exceptions import DirectoryReadError, OutputSetupError
from imgopt.fetch import close_http_client, get_http_client
from imgopt.jobs import RemoteUrlJob, collect_jobs
from imgopt.utils.paths import create_output_root
from imgopt.utils.progress import ProgressReporter


@click.command(
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option(
    "--dir",
    "source_dir",
    type=str,
    default="",
    help="Path to folder containing images.",
)
@click.option(
    "--urls",
    type=str,
    default="",
    help="Comma-separated URLs to images.",
)
@click.option(
    "--quality",
    type=click.IntRange(min=MIN_QUALITY, max=MAX_QUALITY),
    default=DEFAULT_QUALITY,
    show_default=True,
    help="Lossy quality (1-100).",
)
@click.option(
    "--workers",
    type=int,
    default=DEFAULT_WORKERS,
    show_default=True,
    help="Number of concurrent workers (values below 1 mean 1).",
)
@click.option(
    "--lossless",
    type=click.BOOL,
    is_flag=False,
    flag_value=True,
    default=False,
    help="Use lossless compression for every image (PNGs always are).",
)
@click.option(
    "--recursive",
    type=click.BOOL,
    is_flag=False,
    flag_value=True,
    default=False,
    help="Scan all subdirectories (when using --dir).",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Enable verbose output.",
)
@click.option(
    "--version",
    "-v",
    is_flag=True,
    callback=print_version,
    expose_value=False,
    is_eager=True,
    help="Show version and exit.",
)
@click.pass_context
def app(
    ctx: Context,
    source_dir: str,
    urls: str,
    quality: int,
    workers: int,
    lossless: bool,
    recursive: bool,
    verbose: bool,
) -> None:
    """imgopt - Convert PNG/JPEG images to WebP quickly and efficiently.

    Results are written to a new webp-YYYYMMDD-HHMMSS folder in your
    Downloads directory, together with webp-errors.log listing every
    image that failed.

    \b
    Examples:
        imgopt --dir ./photos                       # Convert a folder
        imgopt --dir ./photos --recursive           # Include subfolders
        imgopt --urls https://a.com/x.png,https://a.com/y.jpg
        imgopt --dir ./art --lossless --workers 4
    """
    # An empty value means the option was not given
    if not source_dir.strip() and urls == "":
        click.echo(ctx.get_help())
        ctx.exit(0)

    console_handler_id, _ = setup_logging(verbose)
    console = get_console()

    options = ConversionOptions(quality=quality, lossless=lossless)
    config = BatchConfig(workers=workers, recursive=recursive)

    try:
        jobs = collect_jobs(
            Path(source_dir) if source_dir.strip() else None,
            recursive=config.recursive,
            urls=urls,
        )
    except DirectoryReadError as e:
        ui.error("Error reading directory", detail=str(e), console=console)
        ctx.exit(1)

    if not jobs:
        console.print("No valid images found.")
        ctx.exit(0)

    try:
        output_dir = create_output_root()
        error_log = ErrorLog.open(output_dir / ERROR_LOG_FILENAME)
    except OutputSetupError as e:
        ui.error("Error creating output folder", detail=str(e), console=console)
        ctx.exit(1)

    logger.debug(
        f"Batch: {len(jobs)} jobs, workers={config.workers}, "
        f"quality={options.quality}, lossless={options.lossless}"
    )
    console.print(f"Found {len(jobs)} image(s). Starting concurrent conversion...")

    try:
        if any(isinstance(job, RemoteUrlJob) for job in jobs):
            get_http_client(timeout=config.http_timeout)
        progress = ProgressReporter(total=len(jobs), console=get_stderr_console())
        with LoggingContext(console_handler_id, verbose), progress:
            runner = BatchRunner(
                options,
                output_dir,
                workers=config.workers,
                aggregator=OutcomeAggregator(error_log),
                on_progress=progress.advance,
            )
            summary = runner.run(jobs)
    finally:
        error_log.close()
        close_http_client()

    print_summary(summary)


def print_summary(summary: BatchSummary) -> None:
    """Print the final converted/failed line and output locations."""
    console = get_console()
    console.print()
    line = (
        f"Done. Converted: {summary.converted}, Failed: {summary.failed}. "
        f"Output: {summary.output_dir}"
    )
    if summary.failed:
        ui.error(line, console=console)
    else:
        ui.success(line, console=console)
    if summary.error_log is not None:
        ui.info(f"Error log: {summary.error_log}", console=console)
