"""
Error taxonomy for the conversion and notification core.

Every error carries a stable ``code`` and structured ``details`` so the HTTP
layer and the operational log can render it without string parsing.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


# Stable error codes
PARSE_ERROR = "PARSE_ERROR"
EMPTY_INPUT = "EMPTY_INPUT"
FILE_IO_ERROR = "FILE_IO_ERROR"
DELIVERY_ERROR = "DELIVERY_ERROR"
FORMAT_ERROR = "FORMAT_ERROR"


class IntegrationError(Exception):
    """Base class for all format bridge errors."""

    code = "INTEGRATION_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Return a serialisable representation of the error."""
        return {"type": self.code, "message": self.message, "details": self.details}


class ParseError(IntegrationError):
    """Malformed structured-document content."""

    code = PARSE_ERROR


class EmptyInputWarning(IntegrationError):
    """A file parsed to zero records. Not a failure, the run is skipped."""

    code = EMPTY_INPUT


class FileIOError(IntegrationError):
    """Read or write failure on a watched or output path."""

    code = FILE_IO_ERROR


class DeliveryError(IntegrationError):
    """Outbound call to the transaction endpoint failed or timed out."""

    code = DELIVERY_ERROR


class FormatError(IntegrationError):
    """Requested format is outside csv, json and xml."""

    code = FORMAT_ERROR
