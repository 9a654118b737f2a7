import logging
import sys
from contextlib import asynccontextmanager

import google.generativeai as genai
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from prometheus_client import make_asgi_app
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware

from fittrack.api.v1 import ai, auth, exercises, photos, plans, reports, sessions, shared, users

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stdout,
)
logging.getLogger("fittrack").setLevel(logging.DEBUG)

from fittrack.config import settings
from fittrack.core.rate_limit import close_redis
from fittrack.db.session import async_session_maker, init_db
from fittrack.services.http_client import close_http_client, init_http_client
from fittrack.services.maintenance import purge_expired_refresh_tokens

logger = logging.getLogger(__name__)
scheduler = AsyncIOScheduler()


async def scheduled_token_cleanup():
    """Nightly purge of expired refresh tokens."""
    async with async_session_maker() as session:
        await purge_expired_refresh_tokens(session)
        await session.commit()


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings.validate_jwt_config()
    await init_db()
    init_http_client(timeout=30.0)
    if settings.google_gemini_api_key:
        genai.configure(api_key=settings.google_gemini_api_key)
    else:
        logger.warning("GOOGLE_GEMINI_API_KEY not set; AI parsing endpoints will return 503")

    scheduler.add_job(scheduled_token_cleanup, "cron", hour=3, minute=0)
    scheduler.start()
    yield
    scheduler.shutdown()
    await close_http_client()
    await close_redis()


limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit_default])

app = FastAPI(
    title="Fittrack API",
    description="Workout log, progressive overload, AI workout import, progress photos and weekly reports",
    version="0.1.0",
    lifespan=lifespan,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=500)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "camera=(self), microphone=()"
        if settings.enable_hsts:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()] if settings.cors_origins else ["*"]
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
for module in (auth, users, sessions, exercises, ai, plans, photos, reports, shared):
    app.include_router(module.router, prefix="/api/v1")

metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)


@app.get("/health")
@limiter.exempt
def health(request: Request):
    return {"status": "ok"}
