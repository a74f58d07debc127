"""Schedule router - FastAPI endpoints for the weekly schedule"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_owner
from ...database import TransactionAbortedError, get_db
from ...models import ROLE_OWNER, User
from .schemas import (
    AddSlotRequest,
    DeleteSlotsRequest,
    DeleteSlotsResponse,
    ScheduleResponse,
    SlotResponse,
    ToggleBookingResponse,
    WeeklyResetResponse,
)
from .service import ScheduleService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/schedule", tags=["Schedule"])


def get_schedule_service(db: Session = Depends(get_db)) -> ScheduleService:
    """Dependency injection for ScheduleService"""
    return ScheduleService(db)


@router.get("", response_model=ScheduleResponse)
async def get_schedule(
    current_user: User = Depends(get_current_user),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Get the week's schedule. Loading it as owner first runs the weekly reset check."""
    reset = None
    if current_user.role == ROLE_OWNER:
        try:
            reset = service.weekly_reset()["status"]
        except TransactionAbortedError as e:
            # The schedule is still served; the next owner load retries the reset
            logger.warning(f"⚠️ Weekly reset skipped while loading schedule: {e}")
    return ScheduleResponse(**service.list_schedule(), reset=reset)


@router.post("/slots", response_model=SlotResponse)
async def add_slot(
    data: AddSlotRequest,
    owner: User = Depends(require_owner),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Add a bookable slot to a day"""
    return service.add_slot(data.day, data.period, data.timeRange, owner.name)


@router.post("/slots/delete", response_model=DeleteSlotsResponse)
async def delete_slots(
    data: DeleteSlotsRequest,
    _owner: User = Depends(require_owner),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Batch delete slots"""
    deleted = service.delete_slots([s.model_dump() for s in data.slots])
    return DeleteSlotsResponse(requested=len(data.slots), deleted=deleted)


@router.post("/slots/{slot_id}/toggle", response_model=ToggleBookingResponse)
async def toggle_booking(
    slot_id: str,
    current_user: User = Depends(get_current_user),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Book a slot, or cancel the booking if it is already yours"""
    return service.toggle_booking(slot_id, current_user.name)


@router.post("/weekly-reset", response_model=WeeklyResetResponse)
async def weekly_reset(
    _owner: User = Depends(require_owner),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Clear the schedule if this ISO week has not been reset yet"""
    return service.weekly_reset()


__all__ = ["router", "get_schedule_service"]
