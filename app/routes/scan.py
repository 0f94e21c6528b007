from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db import get_db
from app.deps.auth import get_current_user_id
from app.errors import OrderAlreadyScanned
from app.schemas.order import order_out
from app.services.order_service import get_order_by_qr, scan_order


router = APIRouter(prefix="/scan", tags=["scan"])


@router.get("/{qr_code}")
def preview_order(qr_code: str, db: Session = Depends(get_db)):
    order = get_order_by_qr(db, qr_code)
    if order.is_scanned:
        raise OrderAlreadyScanned()
    return {"success": True, "order": order_out(order)}


@router.post("/{qr_code}")
def scan(
    qr_code: str,
    user_id=Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    order, new_balance = scan_order(db, qr_code, user_id)
    db.commit()
    return {
        "success": True,
        "message": f"Congratulations! You earned {order.total_points} points",
        "pointsEarned": order.total_points,
        "newTotalPoints": new_balance,
        "order": order_out(order),
    }
