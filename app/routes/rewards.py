from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db import get_db
from app.deps.auth import get_current_user_id
from app.schemas.reward import ClaimRequest, reward_out
from app.services.claim_admission import claim_reward
from app.services.reward_catalog import list_claimable_rewards


router = APIRouter(tags=["rewards"])


@router.get("/rewards")
def list_rewards(db: Session = Depends(get_db)):
    rows = list_claimable_rewards(db)
    return {
        "success": True,
        "rewards": [reward_out(reward, claim_count) for reward, claim_count in rows],
    }


@router.post("/claim")
def claim(
    payload: ClaimRequest,
    user_id=Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    result = claim_reward(db, user_id, payload.rewardId)
    claim = result.claim
    return {
        "success": True,
        "message": f"Reward claimed! You spent {claim.points_spent} points",
        "claim": {
            "id": str(claim.id),
            "reward": claim.reward.name,
            "pointsSpent": claim.points_spent,
            "status": claim.status.value,
            "createdAt": claim.created_at.isoformat(),
            "expiresAt": claim.expires_at.isoformat(),
        },
        "newTotalPoints": result.new_total_points,
    }
