def user_out(user) -> dict:
    return {
        "id": str(user.id),
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "points": user.points,
        "historicalPoints": user.historical_points,
    }


def ranking_row_out(rank: int, user, orders_count: int, claims_count: int) -> dict:
    return {
        "rank": rank,
        "id": str(user.id),
        "name": user.name,
        "points": user.points,
        "createdAt": user.created_at.isoformat() if user.created_at else None,
        "ordersCount": orders_count,
        "claimsCount": claims_count,
    }


def history_entry_out(kind: str, obj) -> dict:
    if kind == "order":
        return {
            "type": "order",
            "id": str(obj.id),
            "date": obj.scanned_at.isoformat() if obj.scanned_at else None,
            "points": obj.total_points,
            "details": {
                "orderId": str(obj.id),
                "qrCode": obj.qr_code,
                "totalAmount": float(obj.total_amount or 0),
            },
        }

    # spent points count negative
    return {
        "type": "claim",
        "id": str(obj.id),
        "date": obj.created_at.isoformat() if obj.created_at else None,
        "points": -obj.points_spent,
        "details": {
            "reward": obj.reward.name if obj.reward else None,
            "description": obj.reward.description if obj.reward else None,
            "status": obj.status.value,
        },
    }
