import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import delete, func, update
from sqlalchemy.orm import Session

from app import config
from app.models.reward_claim import ClaimStatus, RewardClaim
from app.services.clock import utcnow


logger = logging.getLogger(__name__)

_ID_CHUNK = 500


@dataclass
class SweepResult:
    expired_count: int
    deleted_count: int

    def as_dict(self) -> dict:
        return {"expiredCount": self.expired_count, "deletedCount": self.deleted_count}


def _deletion_cutoff(now: datetime) -> datetime:
    return now - timedelta(hours=config.EXPIRED_CLAIM_RETENTION_HOURS)


def next_sweep_status(status: ClaimStatus, expires_at: datetime, now: datetime) -> ClaimStatus | None:
    """Status a claim has after one sweep step at ``now``; ``None`` = deleted."""
    status = ClaimStatus(status)

    if status is ClaimStatus.PENDING:
        return ClaimStatus.EXPIRED if expires_at < now else ClaimStatus.PENDING
    if status is ClaimStatus.EXPIRED:
        return None if expires_at < _deletion_cutoff(now) else ClaimStatus.EXPIRED
    if status in (ClaimStatus.APPROVED, ClaimStatus.REJECTED):
        # validated claims are terminal, the sweeper never touches them
        return status

    raise ValueError(f"unhandled claim status {status!r}")


def _candidates(db: Session, status: ClaimStatus, before: datetime):
    return (
        db.query(RewardClaim.id, RewardClaim.status, RewardClaim.expires_at)
        .filter(RewardClaim.status == status)
        .filter(RewardClaim.expires_at < before)
        .all()
    )


def _chunks(ids):
    for i in range(0, len(ids), _ID_CHUNK):
        yield ids[i:i + _ID_CHUNK]


# ============================================================
# SWEEP (admin action / cron / worker)
# ============================================================
def sweep_claims(db: Session, now: datetime | None = None) -> SweepResult:
    """Expire overdue PENDING claims, then delete EXPIRED claims past retention.

    Both phases share one ``now``. Writes are guarded by the status the row
    is expected to still have, so overlapping sweeps converge; counts may
    overlap between concurrent sweeps. The caller commits.
    """
    if now is None:
        now = utcnow()

    # 1. PENDING -> EXPIRED
    to_expire = [
        row.id
        for row in _candidates(db, ClaimStatus.PENDING, now)
        if next_sweep_status(row.status, row.expires_at, now) is ClaimStatus.EXPIRED
    ]
    expired_count = 0
    for ids in _chunks(to_expire):
        result = db.execute(
            update(RewardClaim)
            .where(RewardClaim.id.in_(ids), RewardClaim.status == ClaimStatus.PENDING)
            .values(status=ClaimStatus.EXPIRED, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        expired_count += result.rowcount

    # 2. EXPIRED -> deleted
    to_delete = [
        row.id
        for row in _candidates(db, ClaimStatus.EXPIRED, _deletion_cutoff(now))
        if next_sweep_status(row.status, row.expires_at, now) is None
    ]
    deleted_count = 0
    for ids in _chunks(to_delete):
        result = db.execute(
            delete(RewardClaim)
            .where(RewardClaim.id.in_(ids), RewardClaim.status == ClaimStatus.EXPIRED)
            .execution_options(synchronize_session=False)
        )
        deleted_count += result.rowcount

    db.flush()

    logger.info(
        "claim sweep finished",
        extra={"now": now.isoformat(), "expired_count": expired_count, "deleted_count": deleted_count},
    )
    return SweepResult(expired_count=expired_count, deleted_count=deleted_count)


def expiry_preview(db: Session, now: datetime | None = None) -> dict:
    if now is None:
        now = utcnow()

    def _count(*criteria):
        return db.query(func.count(RewardClaim.id)).filter(*criteria).scalar() or 0

    return {
        "shouldBeExpired": _count(
            RewardClaim.status == ClaimStatus.PENDING,
            RewardClaim.expires_at < now,
        ),
        "expiredToDelete": _count(
            RewardClaim.status == ClaimStatus.EXPIRED,
            RewardClaim.expires_at < _deletion_cutoff(now),
        ),
        "totalExpired": _count(RewardClaim.status == ClaimStatus.EXPIRED),
    }
