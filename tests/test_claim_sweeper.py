from datetime import datetime, timedelta

import pytest

from app.models.reward_claim import ClaimStatus, RewardClaim
from app.services.claim_admission import claim_reward
from app.services.claim_sweeper import expiry_preview, next_sweep_status, sweep_claims


T0 = datetime(2026, 3, 1, 12, 0, 0)


def _claim(db, user, reward, status, expires_at):
    claim = RewardClaim(
        user_id=user.id,
        reward_id=reward.id,
        points_spent=reward.points_cost,
        status=status,
        created_at=expires_at - timedelta(hours=24),
        expires_at=expires_at,
        updated_at=expires_at - timedelta(hours=24),
    )
    db.add(claim)
    db.commit()
    return claim.id


@pytest.mark.parametrize(
    "status, offset_hours, expected",
    [
        (ClaimStatus.PENDING, -1, ClaimStatus.EXPIRED),
        (ClaimStatus.PENDING, 1, ClaimStatus.PENDING),
        (ClaimStatus.EXPIRED, -49, None),
        (ClaimStatus.EXPIRED, -47, ClaimStatus.EXPIRED),
        (ClaimStatus.APPROVED, -500, ClaimStatus.APPROVED),
        (ClaimStatus.REJECTED, -500, ClaimStatus.REJECTED),
    ],
)
def test_next_sweep_status(status, offset_hours, expected):
    assert next_sweep_status(status, T0 + timedelta(hours=offset_hours), T0) == expected


def test_claim_expire_delete_scenario(db, make_user, make_reward):
    user = make_user(points=500)
    reward = make_reward(points_cost=100)
    claim_id = claim_reward(db, user.id, reward.id, now=T0).claim.id

    result = sweep_claims(db, now=T0 + timedelta(hours=25))
    db.commit()
    assert (result.expired_count, result.deleted_count) == (1, 0)
    assert db.get(RewardClaim, claim_id).status == ClaimStatus.EXPIRED

    db.refresh(user)
    assert user.points == 400

    result = sweep_claims(db, now=T0 + timedelta(hours=73))
    db.commit()
    assert (result.expired_count, result.deleted_count) == (0, 1)
    db.expire_all()
    assert db.query(RewardClaim).filter(RewardClaim.id == claim_id).first() is None

    db.refresh(user)
    assert user.points == 400


def test_second_sweep_is_a_no_op(db, make_user, make_reward):
    user = make_user(points=500)
    reward = make_reward(points_cost=100)
    claim_reward(db, user.id, reward.id, now=T0)

    now = T0 + timedelta(hours=30)
    first = sweep_claims(db, now=now)
    db.commit()
    second = sweep_claims(db, now=now)
    db.commit()

    assert first.as_dict() == {"expiredCount": 1, "deletedCount": 0}
    assert second.as_dict() == {"expiredCount": 0, "deletedCount": 0}


def test_long_overdue_pending_is_expired_and_deleted_in_one_sweep(db, make_user, make_reward):
    user = make_user()
    reward = make_reward()
    claim_id = _claim(db, user, reward, ClaimStatus.PENDING, T0 - timedelta(hours=100))

    result = sweep_claims(db, now=T0)
    db.commit()

    assert result.as_dict() == {"expiredCount": 1, "deletedCount": 1}
    db.expire_all()
    assert db.query(RewardClaim).filter(RewardClaim.id == claim_id).first() is None


def test_validated_claims_are_never_swept(db, make_user, make_reward):
    user = make_user()
    approved_id = _claim(db, user, make_reward(name="A"), ClaimStatus.APPROVED, T0 - timedelta(days=30))
    rejected_id = _claim(db, user, make_reward(name="B"), ClaimStatus.REJECTED, T0 - timedelta(days=30))

    result = sweep_claims(db, now=T0)
    db.commit()

    assert result.as_dict() == {"expiredCount": 0, "deletedCount": 0}
    db.expire_all()
    assert db.get(RewardClaim, approved_id).status == ClaimStatus.APPROVED
    assert db.get(RewardClaim, rejected_id).status == ClaimStatus.REJECTED


def test_sweep_leaves_fresh_claims_alone(db, make_user, make_reward):
    user = make_user()
    pending_id = _claim(db, user, make_reward(name="A"), ClaimStatus.PENDING, T0 + timedelta(hours=2))
    expired_id = _claim(db, user, make_reward(name="B"), ClaimStatus.EXPIRED, T0 - timedelta(hours=10))

    result = sweep_claims(db, now=T0)
    db.commit()

    assert result.as_dict() == {"expiredCount": 0, "deletedCount": 0}
    db.expire_all()
    assert db.get(RewardClaim, pending_id).status == ClaimStatus.PENDING
    assert db.get(RewardClaim, expired_id).status == ClaimStatus.EXPIRED


def test_expiry_preview_counts_without_writing(db, make_user, make_reward):
    user = make_user()
    _claim(db, user, make_reward(name="A"), ClaimStatus.PENDING, T0 - timedelta(hours=1))
    _claim(db, user, make_reward(name="B"), ClaimStatus.EXPIRED, T0 - timedelta(hours=50))
    _claim(db, user, make_reward(name="C"), ClaimStatus.EXPIRED, T0 - timedelta(hours=5))

    preview = expiry_preview(db, now=T0)

    assert preview == {"shouldBeExpired": 1, "expiredToDelete": 1, "totalExpired": 2}
    assert db.query(RewardClaim).filter(RewardClaim.status == ClaimStatus.PENDING).count() == 1
