import logging
import uuid
from datetime import datetime

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.errors import OrderAlreadyScanned, OrderNotFound, UserNotFound
from app.models.order import Order
from app.services import points_account
from app.services.clock import parse_uuid, utcnow


logger = logging.getLogger(__name__)


def create_order(db: Session, *, total_amount, total_points: int) -> Order:
    order = Order(
        qr_code=uuid.uuid4().hex,
        total_amount=total_amount,
        total_points=total_points,
        is_scanned=False,
    )
    db.add(order)
    db.flush()
    return order


def get_order_by_qr(db: Session, qr_code: str) -> Order:
    order = db.query(Order).filter(Order.qr_code == qr_code).first()
    if not order:
        raise OrderNotFound()
    return order


def scan_order(db: Session, qr_code: str, user_id, now: datetime | None = None):
    """Complete an order: mark it scanned and credit its points to the user.

    Returns ``(order, new_balance)``. The caller commits; nothing is written
    when the order was already scanned.
    """
    user_id = parse_uuid(user_id, UserNotFound)
    if now is None:
        now = utcnow()

    order = get_order_by_qr(db, qr_code)
    if order.is_scanned:
        raise OrderAlreadyScanned()

    # a concurrent scan of the same code loses here
    result = db.execute(
        update(Order)
        .where(Order.id == order.id, Order.is_scanned.is_(False))
        .values(is_scanned=True, scanned_at=now, scanned_by=user_id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise OrderAlreadyScanned()

    if order.total_points > 0:
        new_balance = points_account.credit(db, user_id, order.total_points)
    else:
        new_balance = points_account.get_balance(db, user_id)

    logger.info(
        "order scanned",
        extra={"order_id": str(order.id), "user_id": str(user_id), "points": order.total_points},
    )
    return order, new_balance
