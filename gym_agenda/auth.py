"""
Request identity.

The web client only stores the user's name locally and sends it with every
request in the ``X-Gym-User`` header (URL-encoded, since names may contain
accented characters). The name is looked up server-side on every request; a
name that no longer exists (e.g. renamed by the owner) is a hard logout.
"""

import logging
from typing import Optional
from urllib.parse import unquote

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from .database import get_db
from .models import ROLE_CLIENT, ROLE_OWNER, User

logger = logging.getLogger(__name__)

USER_HEADER = "X-Gym-User"


def get_current_user(
    x_gym_user: Optional[str] = Header(None, alias=USER_HEADER),
    db: Session = Depends(get_db),
) -> User:
    name = unquote(x_gym_user or "").strip()
    if not name:
        raise HTTPException(
            status_code=401,
            detail=f"Not authenticated. Please provide your name in the {USER_HEADER} header.",
        )

    user = db.get(User, name)
    if not user:
        logger.info(f"🚪 Session for unknown user '{name}' rejected, forcing logout")
        raise HTTPException(status_code=401, detail="User no longer exists. Please log in again.")

    if user.is_blocked:
        raise HTTPException(
            status_code=403, detail="This account has been blocked. Contact the owner."
        )

    return user


def require_owner(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != ROLE_OWNER:
        raise HTTPException(status_code=403, detail="Only the owner can perform this action")
    return current_user


def require_client(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != ROLE_CLIENT:
        raise HTTPException(status_code=403, detail="Only clients can perform this action")
    return current_user
