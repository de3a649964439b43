"""
Transaction endpoints.

Includes:
- Transaction submission and listing
- REST-to-file export
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from loguru import logger

from app.api.deps import get_hub
from app.models.schemas import ExportResponse, TransactionAccepted, TransactionList
from domains.hub import IntegrationHub

router = APIRouter()


@router.post("/transactions", response_model=TransactionAccepted)
async def submit_transaction(
    record: Dict[str, Any] = Body(...),
    hub: IntegrationHub = Depends(get_hub),
):
    """
    Store one transaction.

    Any JSON object is accepted; the server assigns ``id`` and
    ``received_at``.
    """
    txn = hub.store.submit(record)

    return TransactionAccepted(
        status="accepted",
        message=f"Transaction #{txn['id']} stored",
        transaction=txn,
    )


@router.get("/transactions", response_model=TransactionList)
async def list_transactions(hub: IntegrationHub = Depends(get_hub)):
    """List all stored transactions in submission order."""
    transactions = hub.store.list()
    logger.info(f"Listing {len(transactions)} transactions")

    return TransactionList(count=len(transactions), transactions=transactions)


@router.post("/export", response_model=ExportResponse)
async def export_transactions(format: str = "json", hub: IntegrationHub = Depends(get_hub)):
    """
    Export the transaction store to the exports folder.

    Args:
        format: csv, json or xml

    Returns:
        Name of the written file and the number of transactions in it
    """
    result = hub.store.export_to(hub.directories["exports"], format)

    return ExportResponse(status="exported", file=result.file, count=result.count)
