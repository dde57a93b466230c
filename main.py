"""
SlimPath Backend - 30-day weight-loss program API
Payment webhook provisioning, auth, onboarding, dashboard, rewards and admin
"""

from pathlib import Path
import logging
import traceback

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

# Import routers
from auth import auth_router
from routers.webhook_router import webhook_router
from routers.onboarding_router import onboarding_router
from routers.dashboard_router import dashboard_router
from routers.rewards_router import rewards_router
from routers.admin_router import admin_router
from utils.rate_limit import RateLimiterMiddleware
from database import init_db
from config.settings import settings

# Logging setup - write ALL events to /logs/app.log
LOGS_DIR = Path("./logs")
LOGS_DIR.mkdir(exist_ok=True)
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(LOGS_DIR / "app.log"),
        logging.StreamHandler()
    ]
)
logger = logging.getLogger(__name__)

app = FastAPI(title="SlimPath API")


def _is_render_env() -> bool:
    """Check if running in Render.com environment"""
    return bool(settings.render or settings.render_external_url)


# Uncaught exception middleware - logs all unhandled exceptions and returns 500
class UncaughtExceptionMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(f"Uncaught exception: {e}\n{traceback.format_exc()}")
            return JSONResponse(
                status_code=500,
                content={"ok": False, "error": "Internal Server Error"}
            )


# Security headers middleware
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses: CSP, HSTS, X-Frame-Options, X-Content-Type-Options"""
    async def dispatch(self, request, call_next):
        response = await call_next(request)

        # JSON API only; nothing here should be framed or run scripts
        response.headers["Content-Security-Policy"] = (
            "default-src 'none'; "
            "frame-ancestors 'none'; "
            "base-uri 'none'; "
            "form-action 'self';"
        )

        # Only set in production (Render environment) where HTTPS is guaranteed
        if _is_render_env():
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"

        return response


app.add_middleware(UncaughtExceptionMiddleware)
app.add_middleware(RateLimiterMiddleware, requests_per_minute=settings.rate_limit_per_minute)
app.add_middleware(SecurityHeadersMiddleware)

# CORS MUST be near the bottom
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def check_env_keys_on_startup():
    """Warn about missing configuration on startup (non-fatal)"""
    missing = []
    if not settings.expected_webhook_secret:
        missing.append("WEBHOOK_SECRET")
    if not settings.uses_supabase and not settings.smtp_host:
        missing.append("SMTP_HOST")
    if not settings.admin_email_list:
        missing.append("ADMIN_EMAILS")
    if missing:
        logger.warning(f"Startup check: Missing environment variables: {', '.join(missing)}")
    else:
        logger.info("Startup check: All critical environment variables are set")
    backend = "supabase" if settings.uses_supabase else "local"
    logger.info(f"Identity backend: {backend}")


# Initialize database on startup
@app.on_event("startup")
async def initialize_database():
    """Create all tables."""
    try:
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise


@app.get("/api/health")
async def health():
    return {"ok": True, "status": "healthy"}


app.include_router(auth_router)
app.include_router(webhook_router)
app.include_router(onboarding_router)
app.include_router(dashboard_router)
app.include_router(rewards_router)
app.include_router(admin_router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
