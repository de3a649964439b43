#!/usr/bin/env python3
"""Drop sample counterparty files into the samples folder or a drop zone.

Writes a small batch of transactions as CSV, JSON and/or XML. Files land in
the configured samples folder unless ``--target`` names a drop zone such as
``input`` or ``api-bridge``, in which case the transform pipeline or the API
bridge picks them up straight away.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from app.utils.config import get_settings
from app.utils.helpers import epoch_millis, normalise_path
from domains.conversion import codec
from domains.conversion.codec import RecordFormat
from domains.conversion.errors import FormatError

logger = logging.getLogger("drop_samples")

SAMPLE_RECORDS: List[Dict[str, str]] = [
    {"txn_id": "TXN-1001", "account": "ACC-001", "amount": "1500.00", "currency": "USD", "type": "credit"},
    {"txn_id": "TXN-1002", "account": "ACC-002", "amount": "250.75", "currency": "EUR", "type": "debit"},
    {"txn_id": "TXN-1003", "account": "ACC-001", "amount": "89.99", "currency": "USD", "type": "debit"},
]


def build_records(count: int) -> List[Dict[str, str]]:
    """Cycle through the sample records, renumbering ``txn_id``."""

    records = []
    for index in range(count):
        record = dict(SAMPLE_RECORDS[index % len(SAMPLE_RECORDS)])
        record["txn_id"] = f"TXN-{1001 + index}"
        records.append(record)
    return records


def write_samples(
    target: Path,
    formats: List[RecordFormat],
    count: int,
    stem: Optional[str] = None,
) -> List[Path]:
    """Write one file per format into ``target`` and return their paths."""

    target.mkdir(parents=True, exist_ok=True)
    records = build_records(count)
    stem = stem or f"sample-{epoch_millis()}"

    written = []
    for fmt in formats:
        path = target / f"{stem}-{fmt.value}{fmt.extension}"
        # Write then rename so the watcher sees a complete file
        tmp_path = path.with_name(path.name + ".tmp")
        tmp_path.write_text(codec.serialize(records, fmt), encoding="utf-8")
        tmp_path.replace(path)
        written.append(path)
    return written


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments."""

    parser = argparse.ArgumentParser(
        description="Write sample transaction files into a watched folder.",
    )
    parser.add_argument(
        "--target",
        type=Path,
        default=None,
        help="Folder to drop files into (default: the configured samples folder).",
    )
    parser.add_argument(
        "--format",
        dest="formats",
        action="append",
        default=[],
        help="csv, json or xml (can be repeated; default: all three).",
    )
    parser.add_argument(
        "--count",
        type=int,
        default=3,
        help="Number of records per file.",
    )
    parser.add_argument(
        "--stem",
        default=None,
        help="Base file name (default: sample-<epoch-millis>).",
    )

    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the CLI script."""

    args = parse_args(argv)

    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s [%(levelname)s] %(message)s",
        )

    try:
        formats = [RecordFormat.parse(f) for f in args.formats] or list(RecordFormat)
    except FormatError as e:
        logger.error("%s", e)
        return 2

    if args.count < 1:
        logger.error("--count must be at least 1")
        return 2

    target = normalise_path(args.target or get_settings().samples_path())
    for path in write_samples(target, formats, args.count, args.stem):
        logger.info("Dropped %s", path)

    return 0


if __name__ == "__main__":  # pragma: no cover - CLI bridge
    sys.exit(main())
