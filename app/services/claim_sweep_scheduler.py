from __future__ import annotations

import logging
import os
import time
from datetime import datetime
from zoneinfo import ZoneInfo

from croniter import croniter

from app import config
from app.db import SessionLocal
from app.services.claim_sweeper import SweepResult, sweep_claims
from app.services.clock import utcnow


logger = logging.getLogger(__name__)


def _as_utc_aware(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=ZoneInfo("UTC"))
    return dt.astimezone(ZoneInfo("UTC"))


def _to_utc_naive(dt: datetime) -> datetime:
    return _as_utc_aware(dt).replace(tzinfo=None)


def compute_next_sweep_at(*, base_utc: datetime, cron_expr: str, tz_name: str = "UTC") -> datetime:
    if not cron_expr:
        raise ValueError("cron expression is required")
    if not croniter.is_valid(cron_expr):
        raise ValueError(f"invalid cron expression: {cron_expr!r}")

    tz = ZoneInfo(tz_name or "UTC")
    base_local = _as_utc_aware(base_utc).astimezone(tz)
    it = croniter(cron_expr, base_local)
    next_local: datetime = it.get_next(datetime)
    return _to_utc_naive(next_local)


def run_sweep_once(session_factory=SessionLocal, now: datetime | None = None) -> SweepResult:
    db = session_factory()
    try:
        result = sweep_claims(db, now=now)
        db.commit()
        return result
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def run_sweep_loop(
    *,
    cron_expr: str,
    tz_name: str = "UTC",
    max_sleep_seconds: int = 60,
    session_factory=SessionLocal,
):
    """Run sweeps forever on a cron schedule.

    Sweeps are idempotent, so a missed or repeated tick only delays cleanup.
    """
    worker_id = os.getenv("SWEEP_WORKER_ID") or os.getenv("HOSTNAME") or "worker"
    next_run_at = compute_next_sweep_at(base_utc=utcnow(), cron_expr=cron_expr, tz_name=tz_name)

    logger.info(
        "claim sweep scheduler started",
        extra={
            "worker_id": worker_id,
            "cron": cron_expr,
            "timezone": tz_name,
            "next_run_at": next_run_at.isoformat(),
        },
    )

    while True:
        now = utcnow()
        if now < next_run_at:
            time.sleep(min(max_sleep_seconds, max(1, int((next_run_at - now).total_seconds()))))
            continue

        try:
            result = run_sweep_once(session_factory, now=now)
            logger.info(
                "scheduled claim sweep success",
                extra={"worker_id": worker_id, **result.as_dict()},
            )
        except Exception:
            # keep moving next_run_at forward to avoid a tight retry loop
            logger.exception("scheduled claim sweep failed", extra={"worker_id": worker_id})

        next_run_at = compute_next_sweep_at(base_utc=now, cron_expr=cron_expr, tz_name=tz_name)


def main():
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL") or "INFO",
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    max_sleep_seconds = int(os.getenv("SWEEP_MAX_SLEEP_SECONDS") or "60")

    run_sweep_loop(
        cron_expr=config.SWEEP_CRON,
        tz_name=config.SWEEP_TIMEZONE,
        max_sleep_seconds=max_sleep_seconds,
    )


if __name__ == "__main__":
    main()
