from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from app import config
from app.errors import (
    DuplicateExpired,
    DuplicatePending,
    InsufficientPoints,
    LoyaltyError,
    OutOfStock,
    RewardUnavailable,
    TransactionConflict,
    UserNotFound,
)
from app.models.reward_claim import ClaimStatus, RewardClaim
from app.models.user import User
from app.services import claim_ledger, points_account, reward_catalog
from app.services.clock import parse_uuid, utcnow


logger = logging.getLogger(__name__)


@dataclass
class ClaimResult:
    claim: RewardClaim
    new_total_points: int


def _begin_claim_transaction(db: Session) -> None:
    # isolation can only be chosen before the transaction has started
    if db.in_transaction():
        return

    execution_options = None
    if config.CLAIM_ISOLATION_LEVEL:
        execution_options = {"isolation_level": config.CLAIM_ISOLATION_LEVEL}
    connection = db.connection(execution_options=execution_options)

    if connection.dialect.name == "sqlite":
        # SQLite ignores FOR UPDATE; hold the write lock before reading balances
        connection.exec_driver_sql("BEGIN IMMEDIATE")


def _admit(db: Session, user_id, reward_id, now: datetime) -> ClaimResult:
    # 1. reward, locked first so concurrent claims always lock in the same order
    reward = reward_catalog.get_reward(db, reward_id, for_update=True)
    if not reward.is_active:
        raise RewardUnavailable()

    # 2. user
    user = (
        db.query(User)
        .filter(User.id == user_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not user:
        raise UserNotFound()

    # 3. balance
    if user.points < reward.points_cost:
        raise InsufficientPoints(required=reward.points_cost, available=user.points)

    # 4. stock
    if reward.stock is not None and reward.stock <= 0:
        raise OutOfStock()

    # 5. outstanding claim for the same reward
    existing = claim_ledger.find_active_or_expired(db, user.id, reward.id)
    if existing is not None:
        if existing.status == ClaimStatus.EXPIRED:
            raise DuplicateExpired()
        raise DuplicatePending()

    # 6. mutations, each guarded against values read above going stale
    new_balance = points_account.debit(db, user.id, reward.points_cost)
    reward_catalog.decrement_stock(db, reward)
    claim = claim_ledger.create_claim(db, user.id, reward, now=now)

    return ClaimResult(claim=claim, new_total_points=new_balance)


def claim_reward(db: Session, user_id, reward_id, now: datetime | None = None) -> ClaimResult:
    """Exchange a user's points for a reward.

    Every check and every write happens in one transaction which is committed
    here. Business rule failures roll back and propagate unchanged. Lock
    timeouts, serialization failures and unique index violations are benign
    contention: the transaction is retried from scratch a bounded number of
    times (a retried duplicate then surfaces as ``DuplicatePending``).
    """
    user_id = parse_uuid(user_id, UserNotFound)
    max_attempts = config.CLAIM_MAX_ATTEMPTS
    last_error: Exception | None = None

    for attempt in range(1, max_attempts + 1):
        try:
            _begin_claim_transaction(db)
            result = _admit(db, user_id, reward_id, now or utcnow())
            db.commit()
        except LoyaltyError:
            db.rollback()
            raise
        except (OperationalError, IntegrityError) as e:
            db.rollback()
            if e.connection_invalidated:
                raise
            last_error = e
            logger.info(
                "claim transaction conflict",
                extra={
                    "user_id": str(user_id),
                    "reward_id": str(reward_id),
                    "attempt": attempt,
                    "error": e.__class__.__name__,
                },
            )
            if attempt < max_attempts:
                time.sleep(config.CLAIM_RETRY_BACKOFF_SECONDS * attempt)
            continue
        except Exception:
            db.rollback()
            raise

        logger.info(
            "reward claimed",
            extra={
                "claim_id": str(result.claim.id),
                "user_id": str(user_id),
                "reward_id": str(result.claim.reward_id),
                "points_spent": result.claim.points_spent,
                "new_total_points": result.new_total_points,
            },
        )
        return result

    logger.warning(
        "claim retries exhausted",
        extra={"user_id": str(user_id), "reward_id": str(reward_id), "attempts": max_attempts},
    )
    raise TransactionConflict() from last_error
