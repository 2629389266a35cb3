"""
Organizer endpoints.

Includes:
- Manual "rename now" trigger
- Rename history listing and clearing
"""

from datetime import datetime
from typing import List

from fastapi import APIRouter
from fastapi.concurrency import run_in_threadpool
from loguru import logger
from pydantic import BaseModel

from domains.inbox_organizer.models import OrganizeOutcome
from domains.inbox_organizer.service import get_organizer_service

router = APIRouter()


class OrganizeResponse(BaseModel):
    """Manual organize run response."""
    processed: int
    renamed: int
    outcomes: List[OrganizeOutcome]


class HistoryEntry(BaseModel):
    """One rename history entry."""
    original_name: str
    new_name: str
    date: datetime
    reason: str


class HistoryResponse(BaseModel):
    """Rename history response."""
    total: int
    records: List[HistoryEntry]


@router.post("", response_model=OrganizeResponse)
async def organize_now():
    """
    Scan the inbox and organize every eligible file immediately.

    Returns:
        Per-file outcomes and counts
    """
    logger.info("Manual organize triggered")
    service = get_organizer_service()
    outcomes = await run_in_threadpool(service.run_once)

    return OrganizeResponse(
        processed=len(outcomes),
        renamed=sum(1 for outcome in outcomes if outcome.success),
        outcomes=outcomes,
    )


@router.get("/history", response_model=HistoryResponse)
async def get_history(limit: int = 100):
    """
    List the most recent renames, newest first.

    Args:
        limit: Maximum number of records to return
    """
    records = get_organizer_service().ledger.records
    recent = list(reversed(records))[:max(limit, 0)]

    return HistoryResponse(
        total=len(records),
        records=[HistoryEntry(**record.model_dump()) for record in recent],
    )


@router.delete("/history")
async def clear_history():
    """Clear the rename history."""
    service = get_organizer_service()
    persisted = service.ledger.clear()
    logger.info("Rename history cleared")

    return {
        "status": "cleared" if persisted else "cleared_in_memory",
        "message": "Rename history cleared",
    }
