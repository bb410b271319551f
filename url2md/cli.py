"""Command-line entry point for url2md."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, TextIO

from .config import DEFAULT_OUTPUT_DIR, NAVIGATION_TIMEOUT, SETTLE_DELAY, ConvertConfig
from .pipeline import run_pipeline

logger = logging.getLogger("url2md.cli")

EPILOG = """\
Examples:
  url2md https://mp.weixin.qq.com/s/xxxxx
  url2md https://example.com/article -o ~/reading/
  url2md --batch urls.txt
  echo "https://example.com" | url2md
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="url2md",
        description="Export web pages to Markdown with locally downloaded images.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("urls", nargs="*", help="One or more URLs to convert")
    parser.add_argument(
        "-o",
        "--output",
        default=DEFAULT_OUTPUT_DIR,
        type=Path,
        help="Directory where Markdown and images are written (default: ./output)",
    )
    parser.add_argument(
        "-b",
        "--browser",
        action="store_true",
        help="Always render pages in the browser instead of fetching directly",
    )
    parser.add_argument(
        "--batch",
        type=Path,
        default=None,
        help="Read URLs from a file, one per line",
    )
    parser.add_argument(
        "--settle",
        type=float,
        default=SETTLE_DELAY,
        help="Seconds to wait after preparing lazy-loaded images before reading HTML",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=NAVIGATION_TIMEOUT,
        help="Navigation timeout in seconds",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def _clean_lines(lines: Iterable[str]) -> List[str]:
    stripped = (line.strip() for line in lines)
    return [line for line in stripped if line and not line.startswith("#")]


def collect_urls(args: argparse.Namespace, stdin: Optional[TextIO] = None) -> List[str]:
    """Gather URLs from --batch, positional arguments or piped stdin, in that order."""
    if args.batch:
        return _clean_lines(args.batch.read_text(encoding="utf-8").splitlines())
    if args.urls:
        return list(args.urls)
    stdin = stdin if stdin is not None else sys.stdin
    if stdin is not None and not stdin.isatty():
        return _clean_lines(stdin.read().splitlines())
    return []


def _run(args: argparse.Namespace, urls: List[str]) -> None:
    config = ConvertConfig(
        output_root=Path(args.output).expanduser().resolve(),
        force_browser=args.browser,
        navigation_timeout=args.timeout,
        settle_delay=args.settle,
    )
    logger.info("url2md: %d URL(s) -> %s", len(urls), config.output_root)

    overall_start = time.perf_counter()
    summary = asyncio.run(run_pipeline(urls, config))
    total_elapsed = time.perf_counter() - overall_start

    if len(urls) > 1:
        logger.info("Done: %d success, %d failed", summary.succeeded, summary.failed)
    logger.debug("Finished in %.2fs", total_elapsed)
    for result in summary.results:
        logger.debug(
            "%s -> %s (%s, images %d/%d, %.2fs)",
            result.url,
            result.output_path,
            "browser" if result.used_browser else "direct",
            result.images_downloaded,
            result.images_found,
            result.elapsed_seconds,
        )


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )

    try:
        urls = collect_urls(args)
        if not urls:
            parser.print_help()
            return 1
        _run(args, urls)
    except Exception as exc:  # pylint: disable=broad-except
        logger.error("Fatal: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
