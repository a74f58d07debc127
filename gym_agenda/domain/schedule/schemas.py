"""Schedule domain schemas - Pydantic models for validation"""

from typing import Literal, Optional

from pydantic import BaseModel, field_validator

DayName = Literal["Lunedì", "Martedì", "Mercoledì", "Giovedì", "Venerdì", "Sabato", "Domenica"]
PeriodName = Literal["morning", "afternoon"]


class SlotResponse(BaseModel):
    id: str
    timeRange: str
    startMinute: Optional[int] = None
    endMinute: Optional[int] = None
    bookedBy: list[str] = []
    createdBy: Optional[str] = None


class DayScheduleResponse(BaseModel):
    day: str
    morning: list[SlotResponse]
    afternoon: list[SlotResponse]
    isOpen: bool


class ScheduleResponse(BaseModel):
    weekId: str
    weekLabel: str
    days: list[DayScheduleResponse]
    reset: Optional[str] = None  # "performed" | "skipped" when an owner loaded the schedule


class AddSlotRequest(BaseModel):
    """Schema for adding a slot to a day"""

    day: DayName
    period: PeriodName
    timeRange: str

    @field_validator("timeRange")
    @classmethod
    def validate_time_range(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("timeRange is required")
        return v.strip()


class SlotReference(BaseModel):
    day: DayName
    period: PeriodName
    slotId: str


class DeleteSlotsRequest(BaseModel):
    """Schema for batch slot deletion"""

    slots: list[SlotReference]


class DeleteSlotsResponse(BaseModel):
    requested: int
    deleted: int


class ToggleBookingResponse(BaseModel):
    action: Literal["booked", "unbooked"]
    day: str
    period: str
    slot: SlotResponse


class WeeklyResetResponse(BaseModel):
    status: Literal["performed", "skipped"]
    weekId: str
