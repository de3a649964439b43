"""
File-to-file transformation.

A file dropped into the input zone is parsed, written to the output folder
in every other supported format under the same base name, and announced on
the file-transforms topic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from loguru import logger

from app.utils.helpers import now_iso
from domains.conversion import codec
from domains.conversion.codec import RecordFormat
from domains.conversion.errors import EmptyInputWarning, FileIOError, ParseError
from domains.events.bus import EventBus

FILE_TRANSFORMS_TOPIC = "file-transforms"


@dataclass
class TransformResult:
    """What a single transformation run produced."""

    source: str
    format: RecordFormat
    record_count: int
    outputs: List[Path] = field(default_factory=list)
    failed: List[RecordFormat] = field(default_factory=list)
    offset: Optional[int] = None


class TransformPipeline:
    """Converts dropped files into every other format."""

    def __init__(self, output_dir: Path, bus: EventBus, topic: str = FILE_TRANSFORMS_TOPIC):
        self.output_dir = Path(output_dir)
        self.bus = bus
        self.topic = topic

    def on_file_arrival(self, path: Path) -> Optional[TransformResult]:
        """
        Handle a settled file.

        Returns:
            The run's result, or None if the file was ignored or unusable
        """
        path = Path(path)

        try:
            loaded = codec.load_file(path)
        except (ParseError, FileIOError) as e:
            logger.error(f"Failed to parse {path.name}: {e}")
            return None
        except EmptyInputWarning as e:
            logger.warning(str(e))
            return None

        if loaded is None:
            logger.debug(f"Ignoring {path.name}: unsupported extension")
            return None

        fmt, records = loaded
        logger.info(f"Detected {path.name} ({len(records)} records)")

        result = TransformResult(source=path.name, format=fmt, record_count=len(records))

        for target in fmt.others():
            out_file = self.output_dir / f"{path.stem}{target.extension}"
            try:
                out_file.parent.mkdir(parents=True, exist_ok=True)
                out_file.write_text(codec.serialize(records, target), encoding="utf-8")
            except OSError as e:
                logger.error(f"  -> {out_file.name} failed: {e}")
                result.failed.append(target)
                continue

            result.outputs.append(out_file)
            logger.success(f"  -> {self.output_dir.name}/{out_file.name}")

        message = self.bus.publish(self.topic, {
            "source": path.name,
            "recordCount": len(records),
            "timestamp": now_iso(),
            "outputs": [p.name for p in result.outputs],
        })
        result.offset = message.offset
        logger.info(f"  -> Published event to topic '{self.topic}' offset={message.offset}")

        return result
