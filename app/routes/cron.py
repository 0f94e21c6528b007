from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db import get_db
from app.deps.auth import require_cron_token
from app.services.claim_sweeper import sweep_claims
from app.services.clock import utcnow


router = APIRouter(prefix="/cron", tags=["cron"], dependencies=[Depends(require_cron_token)])


def _run_cleanup(db: Session, label: str) -> dict:
    result = sweep_claims(db)
    db.commit()
    return {
        "success": True,
        "message": f"{label} cleanup executed: {result.expired_count} expired, {result.deleted_count} deleted",
        "result": result.as_dict(),
        "timestamp": utcnow().isoformat(),
    }


@router.get("/cleanup")
def scheduled_cleanup(db: Session = Depends(get_db)):
    return _run_cleanup(db, "Automatic")


@router.post("/cleanup")
def manual_cleanup(db: Session = Depends(get_db)):
    return _run_cleanup(db, "Manual")
