from pydantic import BaseModel, Field

from app.models.reward_claim import RewardClaim


class ClaimValidate(BaseModel):
    claimId: str = Field(min_length=1)
    status: str = Field(min_length=1)


def _iso(dt):
    return dt.isoformat() if dt else None


def claim_out(claim: RewardClaim, *, include_user: bool = False) -> dict:
    out = {
        "id": str(claim.id),
        "rewardId": str(claim.reward_id),
        "reward": claim.reward.name if claim.reward else None,
        "pointsSpent": claim.points_spent,
        "status": claim.status.value,
        "createdAt": _iso(claim.created_at),
        "expiresAt": _iso(claim.expires_at),
        "updatedAt": _iso(claim.updated_at),
    }
    if include_user and claim.user is not None:
        out["user"] = claim.user.name
        out["userEmail"] = claim.user.email
    return out
