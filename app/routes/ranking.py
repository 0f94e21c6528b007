import math

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db import get_db
from app.schemas.user import ranking_row_out
from app.services.user_activity import ranking


router = APIRouter(tags=["ranking"])


@router.get("/ranking")
def read_ranking(
    limit: int = Query(default=10, ge=1, le=100),
    page: int = Query(default=1, ge=1),
    db: Session = Depends(get_db),
):
    rows, total = ranking(db, page=page, page_size=limit)
    return {
        "success": True,
        "ranking": [ranking_row_out(*row) for row in rows],
        "pagination": {
            "currentPage": page,
            "pageSize": limit,
            "totalUsers": total,
            "totalPages": math.ceil(total / limit),
            "hasNext": page * limit < total,
            "hasPrev": page > 1,
        },
    }
