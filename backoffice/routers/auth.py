import hashlib
import hmac
import logging
import os
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlmodel import Session, select

from backoffice.db import get_session
from backoffice.errors import InvalidRequestError, UnauthenticatedError
from backoffice.models import User
from backoffice.schemas import LoginRequest, RegisterRequest, UserRead

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

SESSION_COOKIE = "backoffice_session"
SECRET = os.getenv("BACKOFFICE_SECRET", "dev-secret")
PBKDF2_ROUNDS = 120_000
MIN_PASSWORD_LENGTH = 6


def _hash_password(password: str, salt: Optional[str] = None) -> str:
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), PBKDF2_ROUNDS)
    return f"{salt}${digest.hex()}"


def _verify_password(password: str, stored: str) -> bool:
    try:
        salt, _ = stored.split("$", 1)
    except ValueError:
        return False
    return hmac.compare_digest(_hash_password(password, salt), stored)


def _sign(value: str) -> str:
    return hmac.new(SECRET.encode("utf-8"), value.encode("utf-8"), hashlib.sha256).hexdigest()


def create_session_value(user_id: int) -> str:
    payload = str(user_id)
    signature = _sign(payload)
    return f"{payload}:{signature}"


def parse_session_value(value: str) -> Optional[int]:
    try:
        payload, signature = value.split(":", 1)
    except ValueError:
        return None
    if not hmac.compare_digest(_sign(payload), signature):
        return None
    try:
        return int(payload)
    except ValueError:
        return None


def get_current_user(request: Request, session: Session) -> Optional[User]:
    raw = request.cookies.get(SESSION_COOKIE)
    if not raw:
        return None
    user_id = parse_session_value(raw)
    if not user_id:
        return None
    return session.get(User, user_id)


def require_user(request: Request, session: Session) -> User:
    """Resolve the tenant for this request; every data route starts here."""
    user = get_current_user(request, session)
    if not user:
        raise UnauthenticatedError()
    return user


@router.post("/api/register", response_model=UserRead, status_code=201)
def register(payload: RegisterRequest, session: Session = Depends(get_session)):
    username = payload.username.strip()
    if not username:
        raise InvalidRequestError("Username is required")
    if len(payload.password) < MIN_PASSWORD_LENGTH:
        raise InvalidRequestError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    existing = session.exec(select(User).where(User.username == username)).first()
    if existing:
        raise InvalidRequestError("Username already exists")
    user = User(username=username, password_hash=_hash_password(payload.password))
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info("user %s registered", user.id)
    return UserRead(id=user.id, username=user.username)


@router.post("/login", response_model=UserRead)
def login(payload: LoginRequest, session: Session = Depends(get_session)):
    user = session.exec(select(User).where(User.username == payload.username)).first()
    if not user or not _verify_password(payload.password, user.password_hash):
        logger.warning("failed login for %r", payload.username)
        raise UnauthenticatedError("Invalid credentials")
    response = JSONResponse(UserRead(id=user.id, username=user.username).model_dump())
    response.set_cookie(SESSION_COOKIE, create_session_value(user.id), httponly=True)
    return response


@router.post("/logout")
def logout():
    response = JSONResponse({"ok": True})
    response.delete_cookie(SESSION_COOKIE)
    return response


@router.get("/api/me", response_model=UserRead)
def me(request: Request, session: Session = Depends(get_session)):
    user = require_user(request, session)
    return UserRead(id=user.id, username=user.username)
