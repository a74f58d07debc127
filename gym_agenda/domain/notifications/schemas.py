"""Notification schemas. Fields are optional so missing ones get the endpoint's own 400 envelope."""

from typing import Optional

from pydantic import BaseModel


class SubscribeRequest(BaseModel):
    name: Optional[str] = None
    role: Optional[str] = None
    token: Optional[str] = None


class NotifyRequest(BaseModel):
    targetRole: Optional[str] = None
    title: Optional[str] = None
    body: Optional[str] = None
