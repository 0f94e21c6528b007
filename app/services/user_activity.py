from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.errors import UserNotFound
from app.models.order import Order
from app.models.reward_claim import RewardClaim
from app.models.user import User
from app.services.clock import parse_uuid


HISTORY_KINDS = ("orders", "claims", "all")


def _orders_count_column():
    return (
        select(func.count(Order.id))
        .where(Order.scanned_by == User.id)
        .correlate(User)
        .scalar_subquery()
        .label("orders_count")
    )


def _claims_count_column():
    return (
        select(func.count(RewardClaim.id))
        .where(RewardClaim.user_id == User.id)
        .correlate(User)
        .scalar_subquery()
        .label("claims_count")
    )


# ============================================================
# RANKING (public)
# ============================================================
def ranking(db: Session, *, page: int = 1, page_size: int = 10):
    """Regular users by spendable points, oldest account first on ties.

    Returns ``(rows, total)`` where each row is ``(rank, user, orders_count,
    claims_count)``.
    """
    offset = (page - 1) * page_size

    rows = (
        db.query(User, _orders_count_column(), _claims_count_column())
        .filter(User.role == "USER")
        .order_by(User.points.desc(), User.created_at.asc(), User.id.asc())
        .offset(offset)
        .limit(page_size)
        .all()
    )
    total = db.query(func.count(User.id)).filter(User.role == "USER").scalar() or 0

    ranked = [
        (offset + i + 1, user, int(orders_count or 0), int(claims_count or 0))
        for i, (user, orders_count, claims_count) in enumerate(rows)
    ]
    return ranked, int(total)


# ============================================================
# HISTORY (per user)
# ============================================================
def user_history(db: Session, user_id, *, kind: str = "all", limit: int = 20):
    """Scanned orders and claims of one user, newest first.

    Returns a list of ``("order", Order)`` / ``("claim", RewardClaim)`` pairs.
    With ``kind="all"`` each source contributes at most half of ``limit``
    before the merged list is cut to ``limit``.
    """
    if kind not in HISTORY_KINDS:
        raise ValueError(f"unknown history kind {kind!r}")
    user_id = parse_uuid(user_id, UserNotFound)

    per_source = limit if kind != "all" else max(1, limit // 2)
    entries = []

    if kind in ("orders", "all"):
        orders = (
            db.query(Order)
            .filter(Order.scanned_by == user_id)
            .order_by(Order.scanned_at.desc())
            .limit(per_source)
            .all()
        )
        entries.extend(("order", o) for o in orders)

    if kind in ("claims", "all"):
        claims = (
            db.query(RewardClaim)
            .filter(RewardClaim.user_id == user_id)
            .order_by(RewardClaim.created_at.desc())
            .limit(per_source)
            .all()
        )
        entries.extend(("claim", c) for c in claims)

    entries.sort(key=lambda e: history_date(*e), reverse=True)
    return entries[:limit]


def history_date(kind: str, obj):
    return obj.scanned_at if kind == "order" else obj.created_at


def history_stats(db: Session, user_id) -> dict:
    user_id = parse_uuid(user_id, UserNotFound)

    points = db.query(User.points).filter(User.id == user_id).scalar()
    if points is None:
        raise UserNotFound()

    orders_count, points_earned = (
        db.query(func.count(Order.id), func.coalesce(func.sum(Order.total_points), 0))
        .filter(Order.scanned_by == user_id)
        .one()
    )
    claims_count, points_spent = (
        db.query(func.count(RewardClaim.id), func.coalesce(func.sum(RewardClaim.points_spent), 0))
        .filter(RewardClaim.user_id == user_id)
        .one()
    )

    return {
        "currentPoints": int(points),
        "totalOrders": int(orders_count),
        "totalClaims": int(claims_count),
        "totalPointsEarned": int(points_earned),
        "totalPointsSpent": int(points_spent),
    }
