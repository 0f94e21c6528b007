from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db import get_db
from app.deps.auth import get_current_user_id
from app.errors import UserNotFound
from app.models.user import User
from app.schemas.reward_claim import claim_out
from app.schemas.user import history_entry_out, user_out
from app.services.claim_ledger import list_by_user
from app.services.user_activity import history_stats, user_history


router = APIRouter(prefix="/user", tags=["user"])


@router.get("/me")
def read_me(user_id=Depends(get_current_user_id), db: Session = Depends(get_db)):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise UserNotFound()
    return {"success": True, "user": user_out(user)}


@router.get("/claims")
def read_my_claims(user_id=Depends(get_current_user_id), db: Session = Depends(get_db)):
    return {
        "success": True,
        "claims": [claim_out(c) for c in list_by_user(db, user_id)],
    }


@router.get("/history")
def read_my_history(
    type: Literal["orders", "claims", "all"] = Query(default="all"),
    limit: int = Query(default=20, ge=1, le=100),
    user_id=Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    stats = history_stats(db, user_id)
    entries = user_history(db, user_id, kind=type, limit=limit)
    return {
        "success": True,
        "history": [history_entry_out(kind, obj) for kind, obj in entries],
        "stats": stats,
    }
