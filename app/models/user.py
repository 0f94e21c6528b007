import uuid
from sqlalchemy import Column, String, Integer, TIMESTAMP, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from app.db import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("points >= 0", name="ck_users_points_non_negative"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(200))

    role = Column(String(20), nullable=False, default="USER")  # USER / ADMIN

    # spendable balance, debited by claims
    points = Column(Integer, nullable=False, default=0)
    # lifetime earned, only ever incremented
    historical_points = Column(Integer, nullable=False, default=0)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())
