"""Request dependencies shared by the API routers."""
import secrets
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db
from app.models.user import User


def get_current_user(
    x_user_id: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the calling user.

    Session handling lives in the upstream auth proxy, which forwards the
    authenticated user id in the ``X-User-Id`` header.
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")

    user = db.query(User).filter(User.id == x_user_id).first()
    if not user:
        raise HTTPException(status_code=401, detail="Unauthorized")

    return user


def require_admin(x_admin_token: Optional[str] = Header(None)) -> None:
    """Check the admin token when one is configured."""
    expected = get_settings().admin_api_token
    if not expected:
        return
    if not x_admin_token or not secrets.compare_digest(x_admin_token, expected):
        raise HTTPException(status_code=403, detail="Forbidden")
