from typing import Optional

from pydantic import BaseModel, Field


class RewardCreate(BaseModel):
    name: str
    description: Optional[str] = None
    pointsCost: int
    stock: Optional[int] = None
    imageUrl: Optional[str] = None
    isActive: bool = True


class RewardUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    pointsCost: Optional[int] = None
    stock: Optional[int] = None
    imageUrl: Optional[str] = None
    isActive: Optional[bool] = None


# payload field -> Reward column
REWARD_FIELDS = {
    "name": "name",
    "description": "description",
    "pointsCost": "points_cost",
    "stock": "stock",
    "imageUrl": "image_url",
    "isActive": "is_active",
}


def reward_payload_to_columns(payload: BaseModel) -> dict:
    data = payload.model_dump(exclude_unset=True)
    out = {REWARD_FIELDS[k]: v for k, v in data.items() if k in REWARD_FIELDS}
    # stock may be cleared back to unlimited, the other flags may not be nulled
    if out.get("is_active", True) is None:
        out.pop("is_active")
    return out


def reward_out(reward, claim_count: int | None = None) -> dict:
    out = {
        "id": str(reward.id),
        "name": reward.name,
        "description": reward.description,
        "pointsCost": reward.points_cost,
        "imageUrl": reward.image_url,
        "stock": reward.stock,
        "isActive": reward.is_active,
    }
    if claim_count is not None:
        out["claimCount"] = int(claim_count)
    return out


class ClaimRequest(BaseModel):
    rewardId: str = Field(min_length=1)
