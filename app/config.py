import os

from dotenv import load_dotenv

load_dotenv(encoding="utf-8")


def _int_env(name: str, default: int) -> int:
    return int(os.getenv(name) or default)


def _float_env(name: str, default: float) -> float:
    return float(os.getenv(name) or default)


# Claims stay PENDING this long before the sweeper may expire them.
CLAIM_TTL_HOURS = _int_env("CLAIM_TTL_HOURS", 24)

# EXPIRED claims are deleted once expires_at is older than this.
EXPIRED_CLAIM_RETENTION_HOURS = _int_env("EXPIRED_CLAIM_RETENTION_HOURS", 48)

CLAIM_MAX_ATTEMPTS = max(1, _int_env("CLAIM_MAX_ATTEMPTS", 3))
CLAIM_RETRY_BACKOFF_SECONDS = _float_env("CLAIM_RETRY_BACKOFF_SECONDS", 0.05)
CLAIM_ISOLATION_LEVEL = os.getenv("CLAIM_ISOLATION_LEVEL") or "SERIALIZABLE"

CRON_SECRET_TOKEN = os.getenv("CRON_SECRET_TOKEN") or None

SWEEP_CRON = os.getenv("SWEEP_CRON") or "0 * * * *"
SWEEP_TIMEZONE = os.getenv("SWEEP_TIMEZONE") or "UTC"

CORS_ORIGINS = [
    o.strip()
    for o in (
        os.getenv("CORS_ORIGINS")
        or "http://localhost:3000,https://localhost:3000,http://127.0.0.1:3000,https://127.0.0.1:3000"
    ).split(",")
    if o.strip()
]
