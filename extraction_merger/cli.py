"""
Command-line entry point for merging batch extraction responses.

Usage:
    python -m extraction_merger batch_1.json batch_2.json [options]

Each file holds one batch response:
    {"data": {...}, "page_sources": {...}, "confidence": {...}}

Options:
    --output PATH       Write the merged state to PATH (default: stdout)
    --no-conflicts      Overwrite instead of holding conflicting values
    --log-level LEVEL   Logging level (DEBUG, INFO, WARNING, ERROR)
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from dotenv import load_dotenv

from .batch_accumulator import BatchMergeState
from .config.settings import get_settings
from .exceptions import BatchInputError, ExtractionMergeError


def setup_logging(level: str = "INFO", stream=None) -> logging.Logger:
    """Configure logging with specified level."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(stream or sys.stdout),
        ]
    )
    return logging.getLogger(__name__)


def load_batch_file(path: Path) -> Any:
    """Load one batch response file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            response = json.load(f)
    except FileNotFoundError as e:
        raise BatchInputError(f"Batch file not found: {path}", field=str(path)) from e
    except json.JSONDecodeError as e:
        raise BatchInputError(f"Invalid JSON in {path}: {e}", field=str(path)) from e

    if not isinstance(response, dict):
        raise BatchInputError(
            f"Batch file {path} must contain a JSON object, got {type(response).__name__}",
            field=str(path),
        )
    return response


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="extraction_merger",
        description="Merge batch extraction responses into one record",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Merge three batches and print the result
  python -m extraction_merger batch_1.json batch_2.json batch_3.json

  # Write to a file, overwriting conflicting values instead of holding them
  python -m extraction_merger batch_*.json --output merged.json --no-conflicts
        """
    )
    parser.add_argument("batches", nargs="+", help="Batch response JSON files, in batch order")
    parser.add_argument("--output", default=None, help="Output file (default: stdout)")
    parser.add_argument("--no-conflicts", action="store_true", help="Disable conflict detection")
    parser.add_argument("--log-level", default=None, help="Logging level")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()

    args = build_parser().parse_args(argv)
    settings = get_settings()

    # Logs go to stderr when the merged state is written to stdout
    logger = setup_logging(
        args.log_level or settings.log_level,
        stream=sys.stdout if args.output else sys.stderr,
    )

    try:
        state = BatchMergeState(
            detect_conflicts=settings.detect_conflicts and not args.no_conflicts,
        )

        for batch_path in args.batches:
            logger.info(f"Applying {batch_path}")
            state.apply_response(load_batch_file(Path(batch_path)))

    except ExtractionMergeError as e:
        logger.error(f"Merge failed: {e.message}")
        return 1

    output = json.dumps(state.to_dict(), indent=2, ensure_ascii=False)
    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(output + "\n", encoding="utf-8")
        logger.info(f"Merged {state.batches_applied} batches into {output_path}")
    else:
        print(output)

    if state.conflicts:
        logger.warning(
            f"{len(state.conflicts)} unresolved conflicts: "
            f"{[c.field_path for c in state.conflicts]}"
        )
    return 0
