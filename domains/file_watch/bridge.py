"""
File-to-REST API bridge.

Files dropped into the api-bridge zone are parsed like the transform
pipeline does, then each record is submitted as one transaction. Records
are attempted in file order; one failing record never stops the rest.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Union

import httpx
from loguru import logger

from domains.conversion import codec
from domains.conversion.errors import DeliveryError, EmptyInputWarning, FileIOError, ParseError

Submitter = Callable[[Mapping[str, Any]], Union[Any, Awaitable[Any]]]


class TransactionClient:
    """Posts records to the transactions endpoint over HTTP."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            url: Full URL of ``POST /api/transactions``
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests use ``httpx.MockTransport``)
        """
        self.url = url
        self.timeout = timeout
        self.transport = transport

    async def submit(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Submit one record.

        Returns:
            Decoded JSON response body

        Raises:
            DeliveryError: transport failure, timeout or non-2xx status
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, json=dict(record))
                response.raise_for_status()
                return response.json()

        except httpx.TimeoutException as e:
            raise DeliveryError(f"Timed out after {self.timeout}s", {"url": self.url}) from e
        except httpx.HTTPStatusError as e:
            raise DeliveryError(
                f"HTTP {e.response.status_code}",
                {"url": self.url, "status_code": e.response.status_code},
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise DeliveryError(str(e) or type(e).__name__, {"url": self.url}) from e


@dataclass
class BridgeResult:
    """Per-file outcome of a bridge run."""

    source: str
    record_count: int
    delivered: int = 0
    failures: List[int] = field(default_factory=list)


class ApiBridge:
    """Turns dropped files into one transaction submission per record."""

    def __init__(self, submit: Submitter):
        """
        Args:
            submit: Called once per record; may be sync or async
        """
        self.submit = submit

    async def on_file_arrival(self, path: Path) -> Optional[BridgeResult]:
        path = Path(path)

        try:
            loaded = codec.load_file(path)
        except (ParseError, FileIOError) as e:
            logger.error(f"Bridge parse error: {e}")
            return None
        except EmptyInputWarning as e:
            logger.warning(str(e))
            return None

        if loaded is None:
            return None

        _, records = loaded
        logger.info(f"API Bridge: processing {path.name} ({len(records)} records)")
        result = BridgeResult(source=path.name, record_count=len(records))

        for number, record in enumerate(records, start=1):
            try:
                response = self.submit(record)
                if inspect.isawaitable(response):
                    response = await response
            except DeliveryError as e:
                logger.error(f"  -> Record {number} failed: {e}")
                result.failures.append(number)
                continue

            result.delivered += 1
            message = response.get("message", "") if isinstance(response, Mapping) else ""
            logger.info(f"  -> Record {number}: {message or 'delivered'}")

        if result.failures:
            logger.warning(
                f"API Bridge: {path.name} delivered {result.delivered}/{result.record_count}"
            )
        else:
            logger.success(f"API Bridge: {path.name} delivered {result.delivered} records")

        return result
