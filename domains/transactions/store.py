"""
In-memory transaction store.

Accepts any record, stamps it with the next sequential id and a receipt
timestamp, and keeps it for the life of the process. Exports render the
current contents through the record codec without clearing anything.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from loguru import logger

from app.utils.helpers import epoch_millis, now_iso
from domains.conversion import codec
from domains.conversion.codec import RecordFormat, RecordSet
from domains.conversion.errors import FileIOError
from domains.events.bus import EventBus

Transaction = Dict[str, Any]

RESERVED_FIELDS = ("id", "received_at")


@dataclass(frozen=True)
class ExportResult:
    """Outcome of writing an export file."""

    file: str
    path: Path
    format: RecordFormat
    count: int


class TransactionStore:
    """Append-only list of accepted transactions."""

    def __init__(self, bus: Optional[EventBus] = None, topic: Optional[str] = None):
        """
        Args:
            bus: Event bus to announce accepted transactions on
            topic: Topic for announcements; nothing is published without one
        """
        self._transactions: List[Transaction] = []
        self.bus = bus
        self.topic = topic

    def __len__(self) -> int:
        return len(self._transactions)

    @property
    def count(self) -> int:
        return len(self._transactions)

    def submit(self, record: Mapping[str, Any]) -> Transaction:
        """
        Store ``record`` as the next transaction.

        The server-assigned ``id`` comes first and ``received_at`` last;
        client-supplied values for either are replaced.
        """
        txn: Transaction = {"id": len(self._transactions) + 1}
        for key, value in record.items():
            if key not in RESERVED_FIELDS:
                txn[key] = copy.deepcopy(value)
        txn["received_at"] = now_iso()

        self._transactions.append(txn)
        logger.success(
            f"Transaction received: #{txn['id']} "
            f"{txn.get('txn_id', '')} {txn.get('amount', '')} {txn.get('currency', '')}".rstrip()
        )

        if self.bus is not None and self.topic:
            self.bus.publish(self.topic, txn)

        return copy.deepcopy(txn)

    def list(self) -> RecordSet:
        """All transactions in insertion order."""
        return copy.deepcopy(self._transactions)

    def export(self, fmt: RecordFormat) -> str:
        """Render the current store in ``fmt``."""
        return codec.serialize(self.list(), RecordFormat.parse(fmt))

    def export_to(self, directory: Path, fmt: RecordFormat) -> ExportResult:
        """
        Write ``export-<epoch-millis>.<ext>`` into ``directory``.

        Raises:
            FormatError: ``fmt`` is not csv, json or xml (nothing is written)
            FileIOError: the file could not be written
        """
        fmt = RecordFormat.parse(fmt)
        snapshot = self.list()
        content = codec.serialize(snapshot, fmt)

        filename = f"export-{epoch_millis()}.{fmt.value}"
        path = Path(directory) / filename
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise FileIOError(f"Cannot write {filename}: {e}", {"path": str(path)}) from e

        logger.success(f"Exported {len(snapshot)} transactions -> {path.parent.name}/{filename}")
        return ExportResult(file=filename, path=path, format=fmt, count=len(snapshot))
