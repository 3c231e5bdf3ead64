"""
Contact page finder -- command-line entry point.

Usage
-----
    python -m contact_finder.main -u https://example.co.jp/
    python -m contact_finder.main -i companies.csv
    python -m contact_finder.main -i companies.csv --limit 50 --max-workers 8
"""

import argparse
import sys
import time
from pathlib import Path
from typing import List

from loguru import logger

import contact_finder.config as cfg
from contact_finder.core.error_handler import ErrorHandler
from contact_finder.discovery.http_client import StealthHTTPClient
from contact_finder.discovery.orchestrator import discover, discover_batch
from contact_finder.models.result import CompanyTarget
from contact_finder.utils.exporter import export_all, load_targets


# -- Helpers ---------------------------------------------------------------

def _run_label(input_path: Path) -> str:
    """Filesystem-safe label derived from the input file name."""
    return input_path.stem.strip().replace(" ", "_").lower()[:60]


def _chunks(items: List[CompanyTarget], size: int):
    for start in range(0, len(items), max(size, 1)):
        yield items[start:start + size]


# -- Batch runner ----------------------------------------------------------

def run_batch(
    input_path: Path,
    error_handler: ErrorHandler,
    limit: int | None = None,
    max_workers: int | None = None,
    budget: float | None = None,
) -> dict:
    """
    Discover contact pages for every row of *input_path*.

    Rows already present in a checkpoint from an interrupted run are not
    processed again.  A checkpoint is written after every chunk of
    ``cfg.BATCH_SIZE`` rows and cleared once the export succeeds.
    """
    name = _run_label(input_path)

    logger.info("=" * 60)
    logger.info("INPUT: '{}'", input_path)
    logger.info("=" * 60)

    try:
        targets = load_targets(input_path, limit=limit)

        done: List[CompanyTarget] = []
        checkpoint = error_handler.load_checkpoint(name)
        if checkpoint:
            done = [CompanyTarget(**record) for record in checkpoint]
            logger.info("Resuming from checkpoint with {} processed rows", len(done))
        done_ids = {t.row_id for t in done}
        pending = [t for t in targets if t.row_id not in done_ids]

        client = StealthHTTPClient()
        for chunk in _chunks(pending, cfg.BATCH_SIZE):
            discover_batch(chunk, max_workers=max_workers, client=client, budget=budget)
            done.extend(chunk)
            error_handler.save_checkpoint([t.model_dump(mode="json") for t in done], name)

        output_dir = cfg.OUTPUT_DIR
        output_dir.mkdir(parents=True, exist_ok=True)
        paths = export_all(done, output_dir, name)
        error_handler.clear_checkpoint(name)

        return {
            "input": str(input_path),
            "processed": len(done),
            "found": sum(1 for t in done if t.success),
            "files": paths,
            "status": "success",
        }

    except Exception as exc:
        logger.error("Batch '{}' failed: {}", input_path, exc)
        return {
            "input": str(input_path),
            "processed": 0,
            "found": 0,
            "files": {},
            "status": f"failed: {exc}",
        }


# -- CLI -------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Contact page finder",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python -m contact_finder.main -u https://example.co.jp/\n"
            "  python -m contact_finder.main -i companies.csv --limit 50\n"
        ),
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "-u", "--url",
        type=str,
        help="Single homepage URL; prints the result as JSON",
    )
    source.add_argument(
        "-i", "--input",
        type=str,
        help="CSV file with row_id,url columns",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Process at most this many rows (default: all)",
    )
    parser.add_argument(
        "--max-workers",
        type=int,
        default=None,
        help=f"Concurrent sites (default: {cfg.MAX_WORKERS})",
    )
    parser.add_argument(
        "--budget",
        type=float,
        default=None,
        help=f"Seconds allowed for URL-pattern probing per site (default: {cfg.MAX_TOTAL_TIME})",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help=f"Output directory for CSV/JSON (default: {cfg.OUTPUT_DIR})",
    )
    return parser


def main(argv: List[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    if args.output_dir:
        cfg.OUTPUT_DIR = Path(args.output_dir)

    if args.url:
        result = discover(args.url, budget=args.budget)
        print(result.model_dump_json(indent=2))
        if result.is_error:
            sys.exit(1)
        return

    error_handler = ErrorHandler()
    start = time.time()

    summary = run_batch(
        Path(args.input),
        error_handler,
        limit=args.limit,
        max_workers=args.max_workers,
        budget=args.budget,
    )

    elapsed = time.time() - start

    logger.info("")
    logger.info("=" * 60)
    logger.info("DISCOVERY COMPLETE  ({:.1f}s elapsed)", elapsed)
    logger.info("=" * 60)
    status_icon = "OK" if summary["status"] == "success" else "FAIL"
    logger.info(
        "  [{}]  '{}'  ->  {}/{} contact URLs",
        status_icon,
        summary["input"],
        summary["found"],
        summary["processed"],
    )
    for fmt, path in summary["files"].items():
        logger.info("  {} -> {}", fmt.upper(), path)
    logger.info("=" * 60)

    if summary["status"] != "success":
        sys.exit(1)


if __name__ == "__main__":
    main()
