# =============================================================================
# 🚀 Thermal Club: Hauptapplikation (main.py)
# =============================================================================

from __future__ import annotations
import os
import logging
from pathlib import Path
from typing import Dict

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from dotenv import load_dotenv

from utils.errors import MembershipError, PaymentProviderError

# -------------------------------------------------------------------------
# 1️⃣ .env laden (muss ganz oben sein!)
# -------------------------------------------------------------------------
env_path = Path(__file__).resolve().parent / ".env"
load_dotenv(dotenv_path=env_path)

# -------------------------------------------------------------------------
# 2️⃣ Logging
# -------------------------------------------------------------------------
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("thermal_club")

# -------------------------------------------------------------------------
# 3️⃣ FastAPI App
# -------------------------------------------------------------------------
app = FastAPI(title="Thermal Club", version="1.0")

# -------------------------------------------------------------------------
# 4️⃣ Session Middleware
# -------------------------------------------------------------------------
app.add_middleware(
    SessionMiddleware,
    secret_key=os.getenv("SESSION_SECRET", "thermal-club-secret-key"),
    max_age=60 * 60 * 24 * 7,
    session_cookie=os.getenv("SESSION_COOKIE_NAME", "thermal_session"),
    same_site=os.getenv("SESSION_SAME_SITE", "lax"),
    https_only=os.getenv("SESSION_HTTPS_ONLY", "0") in {"1", "true", "yes"},
)

# -------------------------------------------------------------------------
# 5️⃣ Fehlerbehandlung
# -------------------------------------------------------------------------
@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    # 400 statt FastAPI-Standard 422
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


@app.exception_handler(PaymentProviderError)
async def payment_provider_error_handler(request: Request, exc: PaymentProviderError):
    return JSONResponse(status_code=502, content={"detail": exc.message})


@app.exception_handler(MembershipError)
async def membership_error_handler(request: Request, exc: MembershipError):
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unerwarteter Fehler bei %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Server error"})

# -------------------------------------------------------------------------
# 6️⃣ Routen laden
# -------------------------------------------------------------------------
from routes import auth
from routes import membership
from routes import check_in
from routes import punch_cards
from routes import billing
from routes import admin

app.include_router(auth.router)
app.include_router(membership.router)
app.include_router(check_in.router)
app.include_router(punch_cards.router)
app.include_router(billing.router)
app.include_router(admin.router)

# -------------------------------------------------------------------------
# 7️⃣ Health
# -------------------------------------------------------------------------
@app.get("/api/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}

