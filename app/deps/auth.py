import hmac

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from app import config
from app.db import get_db
from app.models.user import User
from app.services.clock import parse_uuid
from app.errors import UserNotFound


def get_current_user_id(
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
):
    if not x_user_id:
        raise HTTPException(status_code=401, detail="You must be authenticated")
    try:
        return parse_uuid(x_user_id, UserNotFound)
    except UserNotFound:
        raise HTTPException(status_code=401, detail="Invalid user identity")


def require_admin(
    user_id=Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user or user.role != "ADMIN":
        raise HTTPException(status_code=403, detail="Access denied: admin permissions required")
    return user


def require_cron_token(authorization: str | None = Header(default=None)):
    expected = config.CRON_SECRET_TOKEN
    if not expected:
        return
    if not hmac.compare_digest(authorization or "", f"Bearer {expected}"):
        raise HTTPException(status_code=401, detail="Unauthorized")
