# routes/auth.py
from fastapi import APIRouter, Request, Depends, HTTPException, BackgroundTasks, status
from sqlalchemy import or_, select
from sqlalchemy.orm import Session
from passlib.hash import bcrypt
from pydantic import Field
from datetime import timedelta
from typing import Optional
import logging
import os
import secrets

from database import get_db
from models.password_reset import PasswordResetToken
from models.user import User
from routes.serializers import CamelModel, serialize_user
from utils.dates import as_utc, utcnow

# 📧 Mail-Funktion (Passwort-Reset)
from utils.email_service import build_reset_link, send_reset_mail

# ─────────────────────────────────────────────
# 🔐 Authentifizierungs-Router
# ─────────────────────────────────────────────
router = APIRouter(prefix="/api", tags=["Authentication"])
logger = logging.getLogger(__name__)

APP_ENV = os.getenv("APP_ENV", "production")
RESET_TOKEN_TTL = timedelta(hours=1)
RESET_REQUEST_MESSAGE = "If an account exists with this email, a password reset link has been sent."


# ─────────────────────────────────────────────
# 🧩 Request-Modelle
# ─────────────────────────────────────────────
class RegisterRequest(CamelModel):
    username: str = Field(..., min_length=3, max_length=100)
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=200)
    password: str = Field(..., min_length=6, max_length=72)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=32)


class LoginRequest(CamelModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class ResetRequest(CamelModel):
    email: str = Field(..., min_length=3)


class ResetConfirm(CamelModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=72)


# ─────────────────────────────────────────────
# 👤 Aktueller Benutzer (Dependency)
# ─────────────────────────────────────────────
def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """Gibt den aktuell eingeloggten Benutzer zurück (401 sonst)."""
    user_id = request.session.get("user_id")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    user = db.get(User, user_id)
    if not user:
        request.session.clear()
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return user


def require_roles(*roles: str):
    """Dependency-Fabrik: nur Benutzer mit einer der Rollen kommen durch (403 sonst)."""

    def dependency(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
        return user

    return dependency


def _login(request: Request, user: User) -> None:
    request.session.clear()
    request.session["user_id"] = user.id
    request.session["role"] = user.role


# ─────────────────────────────────────────────
# 🧾 Registrierung
# ─────────────────────────────────────────────
@router.post("/register", status_code=201)
def register_user(payload: RegisterRequest, request: Request, db: Session = Depends(get_db)):
    """Legt ein Mitglied an und meldet es direkt an. Rolle ist immer `member`."""
    existing = db.scalars(
        select(User).where(or_(User.username == payload.username, User.email == payload.email))
    ).first()
    if existing:
        raise HTTPException(status_code=400, detail="Username or email already exists")

    user = User(
        username=payload.username,
        email=payload.email,
        password_hash=bcrypt.hash(payload.password),
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone=payload.phone,
        role="member",
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    _login(request, user)
    logger.info("Neuer Benutzer registriert: %s", user.username)
    return serialize_user(user)


# ─────────────────────────────────────────────
# 🔑 Login / Logout
# ─────────────────────────────────────────────
@router.post("/login")
def login_user(payload: LoginRequest, request: Request, db: Session = Depends(get_db)):
    user = db.scalars(
        select(User).where(or_(User.username == payload.username, User.email == payload.username))
    ).first()
    if not user or not bcrypt.verify(payload.password, user.password_hash):
        logger.info("Fehlgeschlagener Login für %s", payload.username)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username or password")

    _login(request, user)
    return serialize_user(user)


@router.post("/logout")
def logout_user(request: Request):
    request.session.clear()
    return {"message": "Logged out successfully"}


@router.get("/user")
def current_user(user: User = Depends(get_current_user)):
    return serialize_user(user)


# ─────────────────────────────────────────────
# 🔁 Passwort vergessen
# ─────────────────────────────────────────────
@router.post("/password-reset-request")
def request_password_reset(
    payload: ResetRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    """
    Antwortet immer gleich, egal ob die Adresse existiert.
    Der Token ist eine Stunde gültig und wird per Mail verschickt.
    """
    body = {"message": RESET_REQUEST_MESSAGE}

    user = db.scalars(select(User).where(User.email == payload.email)).first()
    if not user:
        return body

    token = secrets.token_urlsafe(32)
    db.add(PasswordResetToken(
        user_id=user.id,
        token=token,
        expires_at=utcnow() + RESET_TOKEN_TTL,
        used=False,
    ))
    db.commit()

    background_tasks.add_task(send_reset_mail, user.first_name, user.email, build_reset_link(token))
    logger.info("Passwort-Reset angefordert für User %s", user.id)

    if APP_ENV == "development":
        body["resetToken"] = token
    return body


@router.post("/password-reset")
def reset_password(payload: ResetConfirm, db: Session = Depends(get_db)):
    entry = db.scalars(select(PasswordResetToken).where(PasswordResetToken.token == payload.token)).first()
    if not entry or entry.used or as_utc(entry.expires_at) < utcnow():
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")

    user = db.get(User, entry.user_id)
    if not user:
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")

    user.password_hash = bcrypt.hash(payload.new_password)
    entry.used = True
    db.commit()
    logger.info("Passwort zurückgesetzt für User %s", user.id)
    return {"message": "Password has been reset successfully"}
