"""
Record codec.

Converts between the three textual formats the counterparty and the
platform speak and the canonical in-memory shape: a list of ordered dicts.

- csv: comma-delimited text, first non-blank line is the header
- xml: a fixed ``<transactions>/<transaction>`` document, one child per field
- json: an array of objects, the only lossless format of the three

The csv and xml readers are deliberately minimal. They never raise on
malformed input; degenerate cases are logged as warnings instead.
"""

from __future__ import annotations

import json
import re
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from xml.sax.saxutils import escape, unescape

from loguru import logger

from domains.conversion.errors import EmptyInputWarning, FileIOError, FormatError, ParseError

Record = Dict[str, Any]
RecordSet = List[Record]

ROOT_TAG = "transactions"
ITEM_TAG = "transaction"

_FIELD_RE = re.compile(r"<([A-Za-z_][\w.-]*)>([\s\S]*?)</\1>")
_NAME_RE = re.compile(r"[A-Za-z_][\w.-]*")


class RecordFormat(str, Enum):
    """Supported file formats, valued by their file extension."""

    CSV = "csv"
    JSON = "json"
    XML = "xml"

    @property
    def extension(self) -> str:
        return f".{self.value}"

    @classmethod
    def parse(cls, value: str) -> "RecordFormat":
        """Resolve ``value`` (``"csv"``, ``".CSV"``...) or raise FormatError."""
        name = (value or "").strip().lower().lstrip(".")
        try:
            return cls(name)
        except ValueError:
            raise FormatError(
                "Format must be csv, json, or xml",
                {"format": value, "allowed": [f.value for f in cls]},
            ) from None

    @classmethod
    def from_path(cls, path: Path) -> Optional["RecordFormat"]:
        """Format implied by the file extension, None if unrecognized."""
        try:
            return cls(path.suffix.lstrip(".").lower())
        except ValueError:
            return None

    def others(self) -> List["RecordFormat"]:
        """Every other supported format, in declaration order."""
        return [fmt for fmt in RecordFormat if fmt is not self]


# =====================================================
# Delimited text
# =====================================================

def csv_to_records(content: str) -> RecordSet:
    lines = [line.strip() for line in content.strip().split("\n")]
    lines = [line for line in lines if line]
    if len(lines) < 2:
        return []

    headers = [h.strip() for h in lines[0].split(",")]
    records: RecordSet = []

    for row_number, line in enumerate(lines[1:], start=2):
        values = [v.strip() for v in line.split(",")]
        if len(values) < len(headers):
            logger.warning(
                f"CSV line {row_number}: {len(values)} values for {len(headers)} columns, padding"
            )
        elif len(values) > len(headers):
            logger.warning(
                f"CSV line {row_number}: {len(values) - len(headers)} extra values dropped"
            )
        records.append({
            header: values[i] if i < len(values) else ""
            for i, header in enumerate(headers)
        })

    return records


def records_to_csv(records: RecordSet) -> str:
    if not records:
        return ""

    headers = list(records[0].keys())
    header_set = set(headers)
    lines = [",".join(headers)]

    for index, record in enumerate(records):
        if set(record.keys()) != header_set:
            logger.warning(f"CSV record {index + 1}: fields differ from header {headers}")
        lines.append(",".join(_as_text(record.get(h)) for h in headers))

    return "\n".join(lines)


# =====================================================
# Tagged markup
# =====================================================

def _item_pattern(item_tag: str) -> re.Pattern:
    tag = re.escape(item_tag)
    return re.compile(rf"<{tag}>([\s\S]*?)</{tag}>", re.IGNORECASE)


def xml_to_records(content: str, item_tag: str = ITEM_TAG) -> RecordSet:
    records: RecordSet = []

    for item in _item_pattern(item_tag).finditer(content):
        record: Record = {}
        for field in _FIELD_RE.finditer(item.group(1)):
            record[field.group(1)] = unescape(field.group(2).strip())
        records.append(record)

    if not records and "<" in content:
        logger.warning(f"XML content has no <{item_tag}> elements")

    return records


def records_to_xml(
    records: RecordSet,
    root_tag: str = ROOT_TAG,
    item_tag: str = ITEM_TAG,
) -> str:
    parts = ['<?xml version="1.0" encoding="UTF-8"?>', f"<{root_tag}>"]
    unreadable = set()
    for record in records:
        parts.append(f"  <{item_tag}>")
        for key, value in record.items():
            if not _NAME_RE.fullmatch(key) and key not in unreadable:
                unreadable.add(key)
                logger.warning(f"XML field '{key}' is not a valid tag name and will not read back")
            parts.append(f"    <{key}>{escape(_as_text(value))}</{key}>")
        parts.append(f"  </{item_tag}>")
    parts.append(f"</{root_tag}>")
    return "\n".join(parts)


# =====================================================
# Structured document
# =====================================================

def json_to_records(content: str) -> RecordSet:
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON: {e}", {"line": e.lineno, "column": e.colno}) from e

    if not isinstance(data, list):
        raise ParseError(
            "JSON document must be an array of objects",
            {"found": type(data).__name__},
        )

    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise ParseError(
                f"JSON array item {index} is not an object",
                {"index": index, "found": type(item).__name__},
            )

    return data


def records_to_json(records: RecordSet) -> str:
    return json.dumps(records, indent=2, ensure_ascii=False)


# =====================================================
# Public API
# =====================================================

def parse(content: str, fmt: RecordFormat) -> RecordSet:
    """Parse ``content`` in ``fmt`` into a RecordSet."""
    fmt = RecordFormat.parse(fmt)
    if fmt is RecordFormat.CSV:
        return csv_to_records(content)
    if fmt is RecordFormat.XML:
        return xml_to_records(content)
    return json_to_records(content)


def serialize(records: RecordSet, fmt: RecordFormat) -> str:
    """Render ``records`` in ``fmt``."""
    fmt = RecordFormat.parse(fmt)
    if fmt is RecordFormat.CSV:
        return records_to_csv(records)
    if fmt is RecordFormat.XML:
        return records_to_xml(records)
    return records_to_json(records)


def load_file(path: Path) -> Optional[Tuple[RecordFormat, RecordSet]]:
    """
    Read and parse a dropped file.

    Args:
        path: File to read; the extension selects the format

    Returns:
        (format, records), or None if the extension is not supported

    Raises:
        FileIOError: the file could not be read
        ParseError: the file is malformed JSON
        EmptyInputWarning: the file holds no records
    """
    fmt = RecordFormat.from_path(path)
    if fmt is None:
        return None

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise FileIOError(f"Cannot read {path.name}: {e}", {"path": str(path)}) from e

    records = parse(content, fmt)
    if not records:
        raise EmptyInputWarning(f"No records in {path.name}", {"path": str(path)})

    return fmt, records


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)
