import logging
from datetime import datetime, timedelta

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from app import config
from app.errors import ClaimNotFound, InvalidStatus, InvalidStatusTransition
from app.models.reward import Reward
from app.models.reward_claim import (
    OUTSTANDING_STATUSES,
    TERMINAL_STATUSES,
    ClaimStatus,
    RewardClaim,
)
from app.services.clock import parse_uuid, utcnow


logger = logging.getLogger(__name__)


def create_claim(db: Session, user_id, reward: Reward, now: datetime | None = None) -> RewardClaim:
    if now is None:
        now = utcnow()

    claim = RewardClaim(
        user_id=user_id,
        reward_id=reward.id,
        points_spent=reward.points_cost,
        status=ClaimStatus.PENDING,
        created_at=now,
        expires_at=now + timedelta(hours=config.CLAIM_TTL_HOURS),
        updated_at=now,
    )
    db.add(claim)
    db.flush()
    return claim


def find_active_or_expired(db: Session, user_id, reward_id) -> RewardClaim | None:
    return (
        db.query(RewardClaim)
        .filter(RewardClaim.user_id == user_id)
        .filter(RewardClaim.reward_id == reward_id)
        .filter(RewardClaim.status.in_(OUTSTANDING_STATUSES))
        .order_by(RewardClaim.created_at.desc())
        .first()
    )


def list_by_user(db: Session, user_id) -> list[RewardClaim]:
    return (
        db.query(RewardClaim)
        .filter(RewardClaim.user_id == user_id)
        .order_by(RewardClaim.created_at.desc())
        .all()
    )


def list_pending(db: Session) -> list[RewardClaim]:
    return (
        db.query(RewardClaim)
        .filter(RewardClaim.status == ClaimStatus.PENDING)
        .order_by(RewardClaim.created_at.desc())
        .all()
    )


def status_counts(db: Session) -> dict[str, int]:
    rows = (
        db.query(RewardClaim.status, func.count(RewardClaim.id))
        .group_by(RewardClaim.status)
        .all()
    )
    counts = {s.value.lower(): 0 for s in ClaimStatus}
    for status, count in rows:
        counts[ClaimStatus(status).value.lower()] = int(count)
    counts["total"] = sum(counts.values())
    return counts


# ============================================================
# ADMIN VALIDATION
# ============================================================
def update_status(
    db: Session,
    claim_id,
    new_status: ClaimStatus | str,
    now: datetime | None = None,
) -> RewardClaim:
    """Move a PENDING claim to APPROVED or REJECTED.

    The status guard lives in the UPDATE itself, so when two admins validate
    the same claim concurrently only the first one matches a row; the other
    gets ``InvalidStatusTransition``.
    """
    try:
        new_status = ClaimStatus(new_status)
    except ValueError:
        raise InvalidStatus()
    if new_status not in TERMINAL_STATUSES:
        raise InvalidStatus("Status must be APPROVED or REJECTED")

    claim_id = parse_uuid(claim_id, ClaimNotFound)
    if now is None:
        now = utcnow()

    result = db.execute(
        update(RewardClaim)
        .where(RewardClaim.id == claim_id, RewardClaim.status == ClaimStatus.PENDING)
        .values(status=new_status, updated_at=now)
        .execution_options(synchronize_session=False)
    )

    claim = (
        db.query(RewardClaim)
        .filter(RewardClaim.id == claim_id)
        .populate_existing()
        .first()
    )
    if claim is None:
        raise ClaimNotFound()
    if result.rowcount == 0:
        raise InvalidStatusTransition(
            f"Claim is {claim.status.value}, only PENDING claims can be validated"
        )

    logger.info(
        "claim validated",
        extra={"claim_id": str(claim.id), "status": new_status.value},
    )
    return claim
