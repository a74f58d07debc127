"""Notification router - push registration and broadcast endpoints"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ...database import get_db
from .gateway import FirebasePushGateway
from .payload import MAX_BODY_LENGTH, MAX_TITLE_LENGTH, payload_too_long
from .schemas import NotifyRequest, SubscribeRequest
from .service import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Notifications"])

MISSING_FIELDS = "Missing required fields"


def get_push_gateway() -> FirebasePushGateway:
    return FirebasePushGateway()


def get_notification_service(
    db: Session = Depends(get_db),
    gateway: FirebasePushGateway = Depends(get_push_gateway),
) -> NotificationService:
    """Dependency injection for NotificationService"""
    return NotificationService(db, gateway)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@router.post("/subscribe")
async def subscribe(
    data: SubscribeRequest,
    service: NotificationService = Depends(get_notification_service),
):
    """Register (or replace) the push token for a user"""
    if not data.name or not data.role or not data.token:
        return _error(400, MISSING_FIELDS)
    try:
        service.subscribe(data.name.strip(), data.role, data.token)
    except Exception as e:
        logger.error(f"❌ Failed to save push registration for {data.name}: {e}")
        return _error(500, "Failed to save subscription")
    return {"success": True}


@router.post("/notify")
async def notify(
    data: NotifyRequest,
    service: NotificationService = Depends(get_notification_service),
):
    """Send a push notification to every user with the target role"""
    if not data.targetRole or not data.title or not data.body:
        return _error(400, MISSING_FIELDS)
    if payload_too_long(data.title, data.body):
        return _error(
            400,
            f"Title and body are limited to {MAX_TITLE_LENGTH} and {MAX_BODY_LENGTH} characters",
        )
    try:
        return service.notify(data.targetRole, data.title, data.body)
    except Exception as e:
        logger.error(f"❌ Failed to send notifications to {data.targetRole}: {e}")
        return _error(500, str(e))


__all__ = ["router", "get_push_gateway", "get_notification_service"]
