import enum
import uuid
from sqlalchemy import Column, Enum, Index, Integer, TIMESTAMP, ForeignKey, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from app.db import Base


class ClaimStatus(str, enum.Enum):
    PENDING = "PENDING"
    EXPIRED = "EXPIRED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


# statuses that block a new claim for the same (user, reward)
OUTSTANDING_STATUSES = (ClaimStatus.PENDING, ClaimStatus.EXPIRED)
TERMINAL_STATUSES = (ClaimStatus.APPROVED, ClaimStatus.REJECTED)

_OUTSTANDING_WHERE = text("status IN ('PENDING', 'EXPIRED')")


class RewardClaim(Base):
    __tablename__ = "reward_claims"
    __table_args__ = (
        Index(
            "uq_reward_claims_user_reward_outstanding",
            "user_id",
            "reward_id",
            unique=True,
            postgresql_where=_OUTSTANDING_WHERE,
            sqlite_where=_OUTSTANDING_WHERE,
        ),
        Index("ix_reward_claims_status_expires_at", "status", "expires_at"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    reward_id = Column(UUID(as_uuid=True), ForeignKey("rewards.id"), nullable=False)

    # cost at claim time, later price changes on the reward do not apply
    points_spent = Column(Integer, nullable=False)

    status = Column(
        Enum(ClaimStatus, name="claim_status", native_enum=False, length=20),
        nullable=False,
        default=ClaimStatus.PENDING,
    )

    created_at = Column(TIMESTAMP, nullable=False)
    expires_at = Column(TIMESTAMP, nullable=False)
    updated_at = Column(TIMESTAMP, nullable=False)

    reward = relationship("Reward", lazy="joined")
    user = relationship("User")
