"""User routers - Login/session endpoints and the owner's member management"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_owner
from ...database import get_db
from ...models import User
from ..ledger.membership_service import MembershipService
from .schemas import (
    BlockResponse,
    ExpiredSubscriptionResponse,
    LoginRequest,
    LoginResponse,
    RenameRequest,
    RenameResponse,
    StatusUpdate,
    UnblockResponse,
    UserResponse,
)
from .service import UserService, serialize_user

logger = logging.getLogger(__name__)

auth_router = APIRouter(prefix="/auth", tags=["Authentication"])
router = APIRouter(prefix="/users", tags=["Users"])


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    """Dependency injection for UserService"""
    return UserService(db)


def get_membership_service(db: Session = Depends(get_db)) -> MembershipService:
    """Dependency injection for MembershipService"""
    return MembershipService(db)


# ============================================================================
# SESSION
# ============================================================================


@auth_router.post("/login", response_model=LoginResponse)
async def login(data: LoginRequest, service: UserService = Depends(get_user_service)):
    """Log in by name and role, registering the user the first time"""
    return service.login(data.name, data.role, data.hasPaid)


@auth_router.get("/session", response_model=UserResponse)
async def get_session(current_user: User = Depends(get_current_user)):
    """Re-validate a stored session; unknown names get 401 and blocked ones 403"""
    return serialize_user(current_user)


# ============================================================================
# OWNER MEMBER MANAGEMENT
# ============================================================================


@router.get("/clients", response_model=list[UserResponse])
async def list_clients(
    _owner: User = Depends(require_owner),
    service: UserService = Depends(get_user_service),
):
    """All clients with their derived subscription status"""
    return service.list_clients()


@router.get("/expired", response_model=list[ExpiredSubscriptionResponse])
async def expired_subscriptions(
    _owner: User = Depends(require_owner),
    service: UserService = Depends(get_user_service),
):
    """Owner notifications for lapsed subscriptions, newest first"""
    return service.expired_subscriptions()


@router.post("/{name}/block", response_model=BlockResponse)
async def block_user(
    name: str,
    _owner: User = Depends(require_owner),
    service: MembershipService = Depends(get_membership_service),
):
    """Block a client, refunding unused months and cancelling their bookings"""
    return service.block_user(name)


@router.post("/{name}/unblock", response_model=UnblockResponse)
async def unblock_user(
    name: str,
    _owner: User = Depends(require_owner),
    service: MembershipService = Depends(get_membership_service),
):
    """Unblock a client, charging one monthly fee"""
    return service.unblock_user(name)


@router.post("/{name}/rename", response_model=RenameResponse)
async def rename_user(
    name: str,
    data: RenameRequest,
    _owner: User = Depends(require_owner),
    service: MembershipService = Depends(get_membership_service),
):
    """Rename a client; bookings under the old name are cancelled"""
    return service.rename_user(name, data.newName)


@router.patch("/{name}/status", response_model=UserResponse)
async def update_status(
    name: str,
    data: StatusUpdate,
    _owner: User = Depends(require_owner),
    service: UserService = Depends(get_user_service),
):
    """Suspend or reinstate a client"""
    return service.set_suspended(name, data.suspended)


__all__ = ["auth_router", "router", "get_user_service", "get_membership_service"]
