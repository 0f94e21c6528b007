import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import config
from app.db import engine, Base
from app.errors import LoyaltyError

from app.models.user import User
from app.models.reward import Reward
from app.models.reward_claim import RewardClaim
from app.models.order import Order

from app.routes.rewards import router as rewards_router
from app.routes.users import router as users_router
from app.routes.ranking import router as ranking_router
from app.routes.scan import router as scan_router
from app.routes.admin import router as admin_router
from app.routes.cron import router as cron_router


logger = logging.getLogger(__name__)

app = FastAPI(title="Rewards Claim Engine")

# ─── CORS ─────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ─── Errors ───────────────────────────────────────────────────────
def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@app.exception_handler(LoyaltyError)
async def loyalty_error_handler(request: Request, exc: LoyaltyError):
    return _error(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    return _error(422, f"{field}: {message}" if field else message)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error", extra={"path": request.url.path})
    return _error(500, "Internal server error")


@app.on_event("startup")
def startup():
    Base.metadata.create_all(bind=engine)


app.include_router(rewards_router)
app.include_router(users_router)
app.include_router(ranking_router)
app.include_router(scan_router)
app.include_router(admin_router)
app.include_router(cron_router)


@app.get("/")
def read_root():
    return {"message": "Rewards Claim Engine is running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8001)
