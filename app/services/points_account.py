import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.errors import InsufficientFunds, UserNotFound
from app.models.user import User


logger = logging.getLogger(__name__)


def get_balance(db: Session, user_id) -> int:
    points = db.query(User.points).filter(User.id == user_id).scalar()
    if points is None:
        raise UserNotFound()
    return int(points)


# ============================================================
# DEBIT (claim admission only)
# ============================================================
def debit(db: Session, user_id, amount: int) -> int:
    """Remove ``amount`` points from the spendable balance.

    Runs inside the caller's transaction. The UPDATE only matches while the
    stored balance still covers ``amount``, so a balance read earlier in the
    transaction cannot be used to overdraw the account.
    """
    if amount <= 0:
        raise ValueError("debit amount must be positive")

    result = db.execute(
        update(User)
        .where(User.id == user_id, User.points >= amount)
        .values(points=User.points - amount)
        .execution_options(synchronize_session=False)
    )

    if result.rowcount == 0:
        available = get_balance(db, user_id)
        raise InsufficientFunds(required=amount, available=available)

    return get_balance(db, user_id)


# ============================================================
# CREDIT (order completion)
# ============================================================
def credit(db: Session, user_id, amount: int) -> int:
    if amount <= 0:
        raise ValueError("credit amount must be positive")

    result = db.execute(
        update(User)
        .where(User.id == user_id)
        .values(
            points=User.points + amount,
            historical_points=User.historical_points + amount,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise UserNotFound()

    balance = get_balance(db, user_id)
    logger.info("points credited", extra={"user_id": str(user_id), "amount": amount, "balance": balance})
    return balance
