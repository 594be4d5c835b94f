"""Command-line entry point for pics-down."""

from __future__ import annotations

import argparse
import logging
import sys
import threading
import time
from pathlib import Path
from typing import Dict, FrozenSet, List, Mapping, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn
from rich.table import Table

from .config import (
    DEFAULT_PREFIX_LEN,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
    DEFAULT_WORKERS,
    EXTENSION_CLASSES,
    PARSER_MODES,
    DownloadConfig,
    parse_extension_list,
)
from .downloader import Downloader, build_tasks, write_url_list
from .errors import ConfigurationError, FetchError, NoImagesFoundError, PicsDownError
from .extractor import extract_batches
from .fetch import Fetcher
from .models import RunSummary
from .runlog import RunLog
from .urls import validate_page_url

logger = logging.getLogger("pics_down.cli")

# Terminal colors: prompts, success, errors, info, interactions.
VIOLET = "#ff0035 on #220052"
GREEN = "#00ff00 on #001902"
RED = "#f08a64 on #93123d"
BLUE = "#6495ed"
PURPLE = "#5555ff on #15102e"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

EXAMPLES = """\
examples:
  pics-down -p 2 https://example.com/gallery/
  pics-down -p 3 -s pic- -o ~/Pictures/vacation https://example.com/photos
"""


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILURE, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="pics-down",
        description="Download the images referenced by a web page with sequential filenames.",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("url", nargs="?", help="Page to collect images from")
    parser.add_argument(
        "-p",
        "--prefix-length",
        type=int,
        default=DEFAULT_PREFIX_LEN,
        metavar="LENGTH",
        help=f"Number of digits for numbering (default: {DEFAULT_PREFIX_LEN})",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("."),
        metavar="DIR",
        help="Output directory, created if absent (default: current directory)",
    )
    parser.add_argument(
        "-s",
        "--static-prefix",
        default="",
        metavar="PREFIX",
        help="Static filename prefix, e.g. 'pic-' (default: none)",
    )
    parser.add_argument(
        "-u",
        "--user-agent",
        default=DEFAULT_USER_AGENT,
        metavar="AGENT",
        help=f"User-Agent header sent on every request (default: {DEFAULT_USER_AGENT})",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Mirror log lines to the console",
    )
    parser.add_argument(
        "-k",
        "--keep",
        action="store_true",
        help="Keep the list of candidate URLs in the output directory",
    )
    parser.add_argument(
        "-w",
        "--workers",
        type=int,
        default=DEFAULT_WORKERS,
        metavar="N",
        help=f"Concurrent downloads (default: {DEFAULT_WORKERS})",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        metavar="SECONDS",
        help=f"Per-request timeout (default: {DEFAULT_TIMEOUT:g})",
    )
    parser.add_argument(
        "--parser",
        choices=PARSER_MODES,
        default="html",
        help="Markup parser; 'regex' only sees double-quoted src attributes",
    )
    parser.add_argument(
        "-t",
        "--types",
        metavar="EXT[,EXT...]",
        help="Download only these extensions, as a single batch (e.g. jpg,png)",
    )
    parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Download every batch without asking",
    )
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    # urllib3 is chatty at DEBUG.
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def _read_line(console: Console, prompt: str) -> str:
    try:
        return console.input(f"[{VIOLET}]{escape(prompt)}[/]")
    except EOFError:
        return ""


def extension_classes(types: Optional[str]) -> Dict[str, FrozenSet[str]]:
    """Default three-way bucketing, or a single batch for ``--types``."""
    if not types:
        return dict(EXTENSION_CLASSES)
    extensions = parse_extension_list(types)
    return {"/".join(sorted(extensions)): extensions}


def confirm_batch(console: Console, label: str, urls: Sequence[str], assume_yes: bool) -> bool:
    """Show the candidates and ask once; anything but yes declines."""
    console.print(f"Found {len(urls)} {label.upper()} images:", style=BLUE)
    for index, url in enumerate(urls, start=1):
        console.print(f"{index:6d}  {url}", markup=False, highlight=False)
    if assume_yes:
        return True
    answer = _read_line(console, f"Download these {label.upper()} images? [y/N] ")
    if answer.strip().lower() in ("y", "yes"):
        return True
    if answer.strip().lower() not in ("", "n", "no"):
        console.print(f"Invalid input. Skipping {label.upper()} images.", style=RED)
    return False


def build_config(args: argparse.Namespace) -> DownloadConfig:
    return DownloadConfig(
        output_dir=Path(args.output).expanduser().resolve(),
        prefix_len=args.prefix_length,
        static_prefix=args.static_prefix,
        user_agent=args.user_agent,
        verbose=args.verbose,
        keep_url_list=args.keep,
        workers=args.workers,
        timeout=args.timeout,
        parser=args.parser,
        extra_extensions=parse_extension_list(args.types) if args.types else frozenset(),
    )


def _prepare_output_dir(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ConfigurationError(f"Cannot create output directory {path}: {exc}") from exc


def _download_batches(
    console: Console,
    batches: Mapping[str, List[str]],
    config: DownloadConfig,
    fetcher: Fetcher,
    run_log: RunLog,
    assume_yes: bool,
) -> RunSummary:
    summary = RunSummary()
    cancel = threading.Event()
    for label, urls in batches.items():
        if not urls:
            run_log.append(f"No {label.upper()} images found on the page")
            continue
        confirmed = confirm_batch(console, label, urls, assume_yes)
        tasks = build_tasks(urls, config)
        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
            transient=True,
            disable=not confirmed,
        ) as progress:
            progress_id = progress.add_task(f"{label.upper()} images", total=len(tasks))
            downloader = Downloader(
                config,
                fetcher,
                run_log,
                on_task_done=lambda _outcome: progress.advance(progress_id),
            )
            batch = downloader.run_batch(label.upper(), tasks, confirmed, cancel=cancel)
        summary.batches.append(batch)
        console.print(batch.summary_line(), style=GREEN if not batch.failed else BLUE)
        if batch.cancelled:
            break
    return summary


def _print_summary(console: Console, summary: RunSummary, config: DownloadConfig) -> None:
    table = Table(title="Download summary")
    table.add_column("Batch")
    table.add_column("Images", justify="right")
    table.add_column("Written", justify="right")
    table.add_column("Failed", justify="right")
    table.add_column("Status")
    for batch in summary.batches:
        if batch.declined:
            status = "declined"
        elif batch.cancelled:
            status = f"cancelled ({batch.skipped} skipped)"
        else:
            status = "done"
        table.add_row(
            batch.label,
            str(batch.total),
            str(batch.succeeded),
            str(batch.failed_count),
            status,
        )
    console.print(table)

    for failure in summary.failed:
        console.print(
            f"Failed: {failure.url} ({failure.reason})",
            style=RED,
            markup=False,
            highlight=False,
        )
    if summary.written:
        console.print(f"Files saved to: {config.output_dir}", style=VIOLET)
        for name in summary.written:
            console.print(f" - {name}", style=PURPLE, markup=False, highlight=False)
    elif any(not batch.declined for batch in summary.batches):
        console.print("Warning: No files downloaded!", style=RED)
    console.print(f"Log file: {config.log_path}", style=BLUE)


def run(args: argparse.Namespace, console: Console) -> int:
    """Run the whole pipeline; raises ``PicsDownError`` on fatal errors."""
    url = args.url
    if url is None:
        url = _read_line(console, "Enter URL: ")
    page_url = validate_page_url(url)
    config = build_config(args)
    classes = extension_classes(args.types)

    _prepare_output_dir(config.output_dir)
    with RunLog.open(
        config.log_path,
        page_url,
        output_dir=config.output_dir,
        mirror=config.verbose,
        console=console,
    ) as run_log:
        run_log.append(f"Starting download from: {page_url}")
        run_log.append(f"Prefix length: {config.prefix_len}, static prefix: {config.static_prefix!r}")
        started = time.perf_counter()

        with Fetcher(
            user_agent=config.user_agent,
            timeout=config.timeout,
            pool_size=config.workers,
            verify_content=config.verify_content,
        ) as fetcher:
            run_log.append("Extracting image URLs")
            try:
                markup = fetcher.fetch_page(page_url)
            except FetchError as exc:
                run_log.append(f"Failed to load page: {exc.reason}", logging.ERROR)
                raise
            batches = extract_batches(
                markup,
                page_url,
                classes,
                attributes=config.attributes,
                parser=config.parser,
            )
            total = sum(len(urls) for urls in batches.values())
            run_log.append(f"Found {total} image URLs")

            if config.keep_url_list:
                write_url_list(config.url_list_path, batches)
                run_log.append(f"Kept URL list at {config.url_list_path}")

            if not total:
                run_log.append("No image URLs found!", logging.ERROR)
                raise NoImagesFoundError("No images found on the page")

            summary = _download_batches(console, batches, config, fetcher, run_log, args.yes)

        elapsed = time.perf_counter() - started
        run_log.append(
            f"Finished in {elapsed:.2f}s ({summary.succeeded} written, "
            f"{len(summary.failed)} failed, {summary.declined} batches declined)"
        )

    _print_summary(console, summary, config)
    if summary.cancelled:
        console.print("Download interrupted.", style=RED)
        return EXIT_INTERRUPTED
    console.print("Download completed!", style=GREEN)
    return EXIT_OK


def main(argv: Sequence[str] | None = None, console: Optional[Console] = None) -> int:
    args = parse_args(argv)
    _configure_logging(args.verbose)
    console = console or Console(highlight=False)
    try:
        return run(args, console)
    except PicsDownError as exc:
        logger.debug("Fatal error", exc_info=True)
        console.print(f"Error: {exc}", style=RED, markup=False)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        console.print("\nInterrupted.", style=RED)
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
