import logging

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from app.errors import InvalidReward, OutOfStock, RewardInUse, RewardNotFound
from app.models.reward import Reward
from app.models.reward_claim import RewardClaim
from app.services.clock import parse_uuid


logger = logging.getLogger(__name__)


def _claim_count_column():
    return (
        select(func.count(RewardClaim.id))
        .where(RewardClaim.reward_id == Reward.id)
        .correlate(Reward)
        .scalar_subquery()
        .label("claim_count")
    )


def get_reward(db: Session, reward_id, for_update: bool = False) -> Reward:
    reward_id = parse_uuid(reward_id, RewardNotFound)

    q = db.query(Reward).filter(Reward.id == reward_id)
    if for_update:
        q = q.with_for_update().populate_existing()
    reward = q.first()

    if not reward:
        raise RewardNotFound()
    return reward


def decrement_stock(db: Session, reward: Reward) -> int | None:
    """Take one unit of stock, ``None`` means the reward is unlimited."""
    if reward.stock is None:
        return None

    result = db.execute(
        update(Reward)
        .where(Reward.id == reward.id, Reward.stock > 0)
        .values(stock=Reward.stock - 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise OutOfStock()

    return db.query(Reward.stock).filter(Reward.id == reward.id).scalar()


def list_claimable_rewards(db: Session):
    return (
        db.query(Reward, _claim_count_column())
        .filter(Reward.is_active.is_(True))
        .filter(or_(Reward.stock.is_(None), Reward.stock > 0))
        .order_by(Reward.points_cost.asc())
        .all()
    )


# ============================================================
# ADMIN MAINTENANCE
# ============================================================
def list_all_rewards(db: Session):
    return (
        db.query(Reward, _claim_count_column())
        .order_by(Reward.created_at.desc())
        .all()
    )


def _validate(points_cost, stock):
    if points_cost is not None and points_cost <= 0:
        raise InvalidReward("Points cost must be greater than 0")
    if stock is not None and stock < 0:
        raise InvalidReward("Stock cannot be negative")


def create_reward(db: Session, data: dict) -> Reward:
    if not (data.get("name") or "").strip():
        raise InvalidReward("Name is required")
    if data.get("points_cost") is None:
        raise InvalidReward("Points cost is required")
    _validate(data.get("points_cost"), data.get("stock"))

    reward = Reward(
        name=data["name"].strip(),
        description=data.get("description"),
        image_url=data.get("image_url"),
        points_cost=data["points_cost"],
        stock=data.get("stock"),
        is_active=data.get("is_active", True),
    )
    db.add(reward)
    db.flush()
    logger.info("reward created", extra={"reward_id": str(reward.id), "points_cost": reward.points_cost})
    return reward


def update_reward(db: Session, reward_id, data: dict) -> Reward:
    reward = get_reward(db, reward_id, for_update=True)

    if "name" in data and not (data["name"] or "").strip():
        raise InvalidReward("Name is required")
    if "points_cost" in data and data["points_cost"] is None:
        raise InvalidReward("Points cost is required")
    _validate(data.get("points_cost"), data.get("stock"))

    for k, v in data.items():
        setattr(reward, k, v)

    db.flush()
    return reward


def delete_reward(db: Session, reward_id) -> None:
    reward = get_reward(db, reward_id)

    has_claims = (
        db.query(RewardClaim.id).filter(RewardClaim.reward_id == reward.id).first()
    )
    if has_claims:
        raise RewardInUse()

    db.delete(reward)
    db.flush()
