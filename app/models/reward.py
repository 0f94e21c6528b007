import uuid
from sqlalchemy import Column, String, Integer, Boolean, TIMESTAMP, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from app.db import Base


class Reward(Base):
    __tablename__ = "rewards"
    __table_args__ = (
        CheckConstraint("points_cost > 0", name="ck_rewards_points_cost_positive"),
        CheckConstraint("stock IS NULL OR stock >= 0", name="ck_rewards_stock_non_negative"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    name = Column(String(100), nullable=False)
    description = Column(String(255))
    image_url = Column(String(500))

    points_cost = Column(Integer, nullable=False)

    # NULL = unlimited stock
    stock = Column(Integer, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())
