import uuid
from sqlalchemy import Column, String, Integer, Boolean, Numeric, TIMESTAMP, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from app.db import Base


class Order(Base):
    __tablename__ = "orders"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    qr_code = Column(String(64), nullable=False, unique=True)

    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    total_points = Column(Integer, nullable=False, default=0)

    is_scanned = Column(Boolean, nullable=False, default=False)
    scanned_at = Column(TIMESTAMP, nullable=True)
    scanned_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)

    created_at = Column(TIMESTAMP, server_default=func.now())
