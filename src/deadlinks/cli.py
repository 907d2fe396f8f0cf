"""
Command-line interface for the dead link checker.
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from deadlinks.checker import CrawlReport, check
from deadlinks.config import DEFAULT_PROGRESS_INTERVAL_S, DEFAULT_THRESHOLD, CheckerConfig
from deadlinks.link import InvalidURLError


def print_summary(report: CrawlReport) -> None:
    """Print crawl summary to stdout."""
    print(f"==== Scanned {report.pages_scanned} pages (max depth {report.max_depth}) ====")
    for content_type in report.unknown_content_types:
        print(f"No extractor registered for {content_type} content type")

    print(f"==== Dead links ({report.dead_count}) ====")
    for url in report.dead_links:
        print(url)
    print("==== Done ====")


def write_report(report: CrawlReport, out: str, pretty: bool) -> None:
    """Write the JSON report to a file, or to stdout for '-'."""
    json_text = json.dumps(report.to_dict(), ensure_ascii=False, indent=2 if pretty else None)

    if out == "-":
        print(json_text)
        return

    output_path = Path(out)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json_text, encoding="utf-8")
    sys.stderr.write(f"Results written to: {output_path}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Crawl a site from a root URL and report dead links."
    )
    parser.add_argument("root_url", help="Root URL (e.g. https://example.com)")
    parser.add_argument(
        "--depth", type=int, default=DEFAULT_THRESHOLD,
        help=f"Maximum hop distance from the root to check (default: {DEFAULT_THRESHOLD})",
    )
    parser.add_argument("--timeout", type=float, default=15.0, help="Request timeout in seconds (default: 15)")
    parser.add_argument("--user-agent", default="DeadLinkChecker/1.0", help="User-Agent header")
    parser.add_argument("--workers", type=int, default=1, help="Links fetched in parallel per depth (default: 1)")
    parser.add_argument(
        "--interval", type=float, default=DEFAULT_PROGRESS_INTERVAL_S,
        help=f"Seconds between progress lines (default: {DEFAULT_PROGRESS_INTERVAL_S:g})",
    )
    parser.add_argument("--out", help="Also write a JSON report to this path, or '-' for stdout")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON")
    parser.add_argument("--verbose", action="store_true", help="Print a line for every checked link")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the checker CLI."""
    args = build_parser().parse_args(argv)

    config = CheckerConfig(
        threshold=args.depth,
        timeout_s=args.timeout,
        user_agent=args.user_agent,
        progress_interval=args.interval,
        max_workers=args.workers,
        verbose=args.verbose,
    )

    try:
        config.validate()
    except ValueError as e:
        sys.stderr.write(f"Invalid configuration: {e}\n")
        return 1

    try:
        report = check(args.root_url, config=config)
    except InvalidURLError as e:
        sys.stderr.write(f"Invalid url given: {e}\n")
        return 1

    print_summary(report)
    if args.out:
        write_report(report, args.out, args.pretty)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
