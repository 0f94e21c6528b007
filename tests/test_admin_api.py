from datetime import datetime, timedelta

import pytest

from app import config
from app.models.reward_claim import ClaimStatus, RewardClaim


def _headers(user):
    return {"X-User-Id": str(user.id)}


def _overdue_claim(db, user, reward, status=ClaimStatus.PENDING, hours_ago=1):
    expires_at = datetime.utcnow() - timedelta(hours=hours_ago)
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


def test_admin_routes_require_admin_role(client, make_user):
    user = make_user()

    assert client.post("/admin/rewards/expire").status_code == 401
    resp = client.post("/admin/rewards/expire", headers=_headers(user))
    assert resp.status_code == 403
    assert resp.json()["success"] is False


def test_manual_expire(client, db, admin, make_user, make_reward):
    user = make_user()
    _overdue_claim(db, user, make_reward(name="A"), hours_ago=1)
    _overdue_claim(db, user, make_reward(name="B"), status=ClaimStatus.EXPIRED, hours_ago=60)

    resp = client.post("/admin/rewards/expire", headers=_headers(admin))

    assert resp.status_code == 200
    body = resp.json()
    assert body["result"] == {"expiredCount": 1, "deletedCount": 1}
    assert "1 claims marked as expired" in body["message"]


def test_expire_on_page_load_returns_stats(client, db, admin, make_user, make_reward):
    user = make_user()
    _overdue_claim(db, user, make_reward(name="A"), hours_ago=1)
    _overdue_claim(db, user, make_reward(name="B"), status=ClaimStatus.APPROVED, hours_ago=500)

    body = client.get("/admin/rewards/expire", headers=_headers(admin)).json()

    assert body["result"] == {"expiredCount": 1, "deletedCount": 0}
    assert body["stats"]["expired"] == 1
    assert body["stats"]["approved"] == 1
    assert body["stats"]["total"] == 2


def test_cleanup_preview_does_not_sweep(client, db, admin, make_user, make_reward):
    user = make_user()
    claim_id = _overdue_claim(db, user, make_reward(), hours_ago=1)

    body = client.get("/admin/cleanup", headers=_headers(admin)).json()

    assert body["needsCleanup"] is True
    assert body["stats"]["shouldBeExpired"] == 1
    db.expire_all()
    assert db.get(RewardClaim, claim_id).status == ClaimStatus.PENDING


def test_validate_flow(client, admin, make_user, make_reward):
    user = make_user(points=500)
    reward = make_reward(name="Coffee", points_cost=100)
    claim_id = client.post(
        "/claim", json={"rewardId": str(reward.id)}, headers=_headers(user)
    ).json()["claim"]["id"]

    pending = client.get("/admin/rewards/validate", headers=_headers(admin)).json()
    assert [c["id"] for c in pending["claims"]] == [claim_id]
    assert pending["stats"]["pending"] == 1

    resp = client.post(
        "/admin/rewards/validate",
        json={"claimId": claim_id, "status": "approved"},
        headers=_headers(admin),
    )
    assert resp.status_code == 200
    assert resp.json()["claim"]["status"] == "APPROVED"

    again = client.post(
        "/admin/rewards/validate",
        json={"claimId": claim_id, "status": "REJECTED"},
        headers=_headers(admin),
    )
    assert again.status_code == 409

    invalid = client.post(
        "/admin/rewards/validate",
        json={"claimId": claim_id, "status": "COMPLETED"},
        headers=_headers(admin),
    )
    assert invalid.status_code == 400


def test_admin_reward_crud(client, admin):
    created = client.post(
        "/admin/rewards",
        json={"name": "Tote bag", "pointsCost": 250, "stock": 0},
        headers=_headers(admin),
    )
    assert created.status_code == 200
    reward_id = created.json()["reward"]["id"]

    assert client.get("/rewards").json()["rewards"] == []

    updated = client.patch(
        f"/admin/rewards/{reward_id}", json={"stock": 5}, headers=_headers(admin)
    )
    assert updated.json()["reward"]["stock"] == 5
    assert [r["id"] for r in client.get("/rewards").json()["rewards"]] == [reward_id]

    unlimited = client.patch(
        f"/admin/rewards/{reward_id}", json={"stock": None}, headers=_headers(admin)
    )
    assert unlimited.json()["reward"]["stock"] is None

    listed = client.get("/admin/rewards", headers=_headers(admin)).json()["rewards"]
    assert listed[0]["claimCount"] == 0

    assert client.delete(f"/admin/rewards/{reward_id}", headers=_headers(admin)).status_code == 200
    assert client.delete(f"/admin/rewards/{reward_id}", headers=_headers(admin)).status_code == 404


def test_admin_reward_rejects_bad_cost(client, admin):
    resp = client.post(
        "/admin/rewards", json={"name": "Free", "pointsCost": 0}, headers=_headers(admin)
    )

    assert resp.status_code == 400
    assert resp.json()["error"] == "Points cost must be greater than 0"


@pytest.mark.parametrize("method", ["get", "post"])
def test_cron_cleanup_open_without_token(client, method):
    resp = getattr(client, method)("/cron/cleanup")

    assert resp.status_code == 200
    assert resp.json()["result"] == {"expiredCount": 0, "deletedCount": 0}


def test_cron_cleanup_checks_bearer_token(client, monkeypatch):
    monkeypatch.setattr(config, "CRON_SECRET_TOKEN", "s3cret")

    assert client.get("/cron/cleanup").status_code == 401
    assert client.get("/cron/cleanup", headers={"Authorization": "Bearer nope"}).status_code == 401
    ok = client.post("/cron/cleanup", headers={"Authorization": "Bearer s3cret"})
    assert ok.status_code == 200
    assert ok.json()["success"] is True


def test_cleanup_run_sweeps_and_reports_stats(client, db, admin, make_user, make_reward):
    user = make_user()
    claim_id = _overdue_claim(db, user, make_reward(name="A"), hours_ago=1)
    _overdue_claim(db, user, make_reward(name="B"), status=ClaimStatus.EXPIRED, hours_ago=60)

    resp = client.post("/admin/cleanup", headers=_headers(admin))

    assert resp.status_code == 200
    body = resp.json()
    assert body["result"] == {"expiredCount": 1, "deletedCount": 1}
    assert body["stats"]["expired"] == 1
    assert body["stats"]["total"] == 1
    db.expire_all()
    assert db.get(RewardClaim, claim_id).status == ClaimStatus.EXPIRED


def test_cleanup_run_requires_admin(client, make_user):
    resp = client.post("/admin/cleanup", headers=_headers(make_user()))

    assert resp.status_code == 403
