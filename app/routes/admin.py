from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db import get_db
from app.deps.auth import require_admin
from app.schemas.order import OrderCreate, order_out
from app.schemas.reward import RewardCreate, RewardUpdate, reward_out, reward_payload_to_columns
from app.schemas.reward_claim import ClaimValidate, claim_out
from app.services import claim_ledger, reward_catalog
from app.services.claim_sweeper import expiry_preview, sweep_claims
from app.services.clock import utcnow
from app.services.order_service import create_order


router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


# ─── Expiration ───────────────────────────────────────────────────

@router.get("/rewards/expire")
def admin_expire_rewards_on_load(db: Session = Depends(get_db)):
    result = sweep_claims(db)
    db.commit()
    return {
        "success": True,
        "result": result.as_dict(),
        "stats": claim_ledger.status_counts(db),
    }


@router.post("/rewards/expire")
def admin_expire_rewards(db: Session = Depends(get_db)):
    result = sweep_claims(db)
    db.commit()
    return {
        "success": True,
        "message": (
            f"Process completed: {result.expired_count} claims marked as expired, "
            f"{result.deleted_count} claims deleted"
        ),
        "result": result.as_dict(),
    }


@router.get("/cleanup")
def admin_cleanup_preview(db: Session = Depends(get_db)):
    preview = expiry_preview(db)
    return {
        "success": True,
        "stats": {**claim_ledger.status_counts(db), **preview},
        "needsCleanup": preview["shouldBeExpired"] > 0 or preview["expiredToDelete"] > 0,
        "timestamp": utcnow().isoformat(),
    }


@router.post("/cleanup")
def admin_cleanup(db: Session = Depends(get_db)):
    result = sweep_claims(db)
    db.commit()
    return {
        "success": True,
        "message": (
            f"Cleanup completed: {result.expired_count} claims marked as expired, "
            f"{result.deleted_count} claims deleted"
        ),
        "result": result.as_dict(),
        "stats": claim_ledger.status_counts(db),
        "timestamp": utcnow().isoformat(),
    }


# ─── Validation ───────────────────────────────────────────────────

@router.get("/rewards/validate")
def list_pending_claims(db: Session = Depends(get_db)):
    return {
        "success": True,
        "claims": [claim_out(c, include_user=True) for c in claim_ledger.list_pending(db)],
        "stats": claim_ledger.status_counts(db),
    }


@router.post("/rewards/validate")
def validate_claim(payload: ClaimValidate, db: Session = Depends(get_db)):
    claim = claim_ledger.update_status(db, payload.claimId, payload.status.upper())
    db.commit()
    db.refresh(claim)
    return {
        "success": True,
        "message": f"Claim {claim.status.value.lower()}",
        "claim": claim_out(claim, include_user=True),
    }


# ─── Catalog ──────────────────────────────────────────────────────

@router.get("/rewards")
def admin_list_rewards(db: Session = Depends(get_db)):
    rows = reward_catalog.list_all_rewards(db)
    return {
        "success": True,
        "rewards": [reward_out(reward, claim_count) for reward, claim_count in rows],
    }


@router.post("/rewards")
def admin_create_reward(payload: RewardCreate, db: Session = Depends(get_db)):
    reward = reward_catalog.create_reward(db, reward_payload_to_columns(payload))
    db.commit()
    db.refresh(reward)
    return {"success": True, "reward": reward_out(reward)}


@router.patch("/rewards/{reward_id}")
def admin_update_reward(reward_id: str, payload: RewardUpdate, db: Session = Depends(get_db)):
    reward = reward_catalog.update_reward(db, reward_id, reward_payload_to_columns(payload))
    db.commit()
    db.refresh(reward)
    return {"success": True, "reward": reward_out(reward)}


@router.delete("/rewards/{reward_id}")
def admin_delete_reward(reward_id: str, db: Session = Depends(get_db)):
    reward_catalog.delete_reward(db, reward_id)
    db.commit()
    return {"success": True, "deleted": True}


# ─── Orders ───────────────────────────────────────────────────────

@router.post("/orders")
def admin_create_order(payload: OrderCreate, db: Session = Depends(get_db)):
    order = create_order(db, total_amount=payload.totalAmount, total_points=payload.totalPoints)
    db.commit()
    db.refresh(order)
    return {"success": True, "order": order_out(order)}
