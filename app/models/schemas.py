"""
Pydantic models for the Format Bridge API.

Shared data models across the application.
"""

from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel


# =====================================================
# Transaction Models
# =====================================================

class TransactionAccepted(BaseModel):
    """Response to a submitted transaction."""
    status: str
    message: str
    transaction: Dict[str, Any]


class TransactionList(BaseModel):
    """All stored transactions."""
    count: int
    transactions: List[Dict[str, Any]]


class ExportResponse(BaseModel):
    """Export file written."""
    status: str
    file: str
    count: int


# =====================================================
# Event Models
# =====================================================

class MessageModel(BaseModel):
    """Message in a topic log."""
    offset: int
    timestamp: str
    data: Any = None


class PublishResponse(BaseModel):
    """Publish acknowledgement."""
    status: str
    topic: str
    offset: int


class TopicSnapshot(BaseModel):
    """Poll-mode subscription result."""
    topic: str
    messages: List[MessageModel]


# =====================================================
# Response Models
# =====================================================

class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    timestamp: datetime
    version: str
    watchers: Dict[str, bool]
    transactions: int
    topics: int


class ErrorResponse(BaseModel):
    """Error payload returned by the exception handlers."""
    status: str
    error: str
    details: Dict[str, Any] = {}
