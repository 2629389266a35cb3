"""
Health check endpoint.
"""

from fastapi import APIRouter
from pydantic import BaseModel
from datetime import datetime

from app.utils.config import get_settings
from domains.inbox_organizer.monitor import MonitorState
from domains.inbox_organizer.service import get_organizer_service

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    timestamp: datetime
    monitor_state: MonitorState
    inbox_dir: str
    history_size: int
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint.

    Verifies:
    - API is running
    - Inbox monitor is running
    """
    settings = get_settings()
    service = get_organizer_service()
    state = service.monitor.state

    return HealthResponse(
        status="healthy" if state is MonitorState.RUNNING else "degraded",
        timestamp=datetime.now(),
        monitor_state=state,
        inbox_dir=str(service.monitor.root),
        history_size=len(service.ledger),
        version=settings.api_version
    )
