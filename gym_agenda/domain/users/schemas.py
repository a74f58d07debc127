"""User domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel

RoleName = Literal["owner", "client"]


class LoginRequest(BaseModel):
    """Schema for logging in (registering on first use). The name is trimmed by the service."""

    name: str
    role: RoleName
    hasPaid: bool = False


class UserResponse(BaseModel):
    name: str
    role: str
    isBlocked: bool
    subscriptionExpiry: Optional[datetime] = None
    subscriptionStatus: Optional[str] = None
    previousName: Optional[str] = None
    expiryReminder: bool = False


class LoginResponse(UserResponse):
    created: bool = False


class ExpiredSubscriptionResponse(BaseModel):
    id: str
    message: str
    date: datetime


class RenameRequest(BaseModel):
    newName: str


class StatusUpdate(BaseModel):
    """Schema for the admin status edit"""

    suspended: bool


class BlockResponse(BaseModel):
    name: str
    refunded: float
    cancelledBookings: int


class UnblockResponse(BaseModel):
    name: str
    charged: float
    subscriptionExpiry: datetime


class RenameResponse(BaseModel):
    name: str
    previousName: str
    cancelledBookings: int
