# ==========================================================
# main.py — Passo Backend (Registration + Sales)
# ==========================================================

import logging

from fastapi import FastAPI

from core.config import configure_logging, get_settings
from core.database import create_tables
from core.errors import register_exception_handlers
from sms.registry import build_sms_provider

# --- Routers (importing them also registers their models) ---
from users.routes import router as users_router
from sales.routes import router as sales_router

logger = logging.getLogger(__name__)
settings = get_settings()

# ==========================================================
# ✅ FASTAPI INITIALIZATION
# ==========================================================
app = FastAPI(title=f"{settings.app_name} API", version="1.0")
register_exception_handlers(app)

# SMS provider is chosen from configuration once, not per request
app.state.sms = build_sms_provider(settings)


# ==========================================================
# ✅ DATABASE TABLE CREATION
# ==========================================================
@app.on_event("startup")
async def startup_event():
    configure_logging(settings.log_level)
    await create_tables()
    logger.info("🚀 %s API started (sms provider: %s)", settings.app_name, app.state.sms.name)


# ==========================================================
# ✅ GENERAL APP INFO
# ==========================================================
@app.get("/")
async def root():
    return {"message": f"{settings.app_name} backend is running!"}


@app.get("/health")
async def health_check():
    return {"status": "healthy", "message": f"{settings.app_name} API is operational"}


# ==========================================================
# ✅ INCLUDE ROUTERS
# ==========================================================
app.include_router(users_router)
app.include_router(sales_router)
