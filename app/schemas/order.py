from decimal import Decimal

from pydantic import BaseModel, Field


class OrderCreate(BaseModel):
    totalAmount: Decimal = Field(default=Decimal("0"), ge=0)
    totalPoints: int = Field(ge=0)


def order_out(order) -> dict:
    return {
        "id": str(order.id),
        "qrCode": order.qr_code,
        "totalAmount": float(order.total_amount or 0),
        "totalPoints": order.total_points,
        "isScanned": order.is_scanned,
        "scannedAt": order.scanned_at.isoformat() if order.scanned_at else None,
        "createdAt": order.created_at.isoformat() if order.created_at else None,
    }
