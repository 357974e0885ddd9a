"""Auth routes: register and login with bearer tokens, plus the user dependencies."""
import re
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from question_images.core.errors import AuthenticationError, PermissionDeniedError, ValidationError
from question_images.core.security import create_access_token, hash_password, user_id_from_token, verify_password
from question_images.db.session import get_db
from question_images.db.store import commit, execute, flush
from question_images.models.user import User
from question_images.schemas.auth import CredentialsSchema, TokenSchema

router = APIRouter(prefix="/auth", tags=["auth"])
logger = structlog.get_logger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
bearer_scheme = HTTPBearer(auto_error=False)


def _normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


async def get_current_user(
    db: Annotated[AsyncSession, Depends(get_db)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> User:
    """Resolve the bearer token to a user or fail with AuthenticationError."""
    if credentials is None:
        raise AuthenticationError("Authentication required: Missing or invalid Authorization header")

    user_id = user_id_from_token(credentials.credentials)
    if user_id is None:
        raise AuthenticationError("Authentication error: invalid or expired token")

    result = await execute(db, select(User).where(User.id == user_id), "fetch user")
    user = result.scalar_one_or_none()
    if user is None:
        raise AuthenticationError("No authenticated user found")
    return user


async def require_admin(user: Annotated[User, Depends(get_current_user)]) -> User:
    if not user.is_admin:
        raise PermissionDeniedError("Administrator access required")
    return user


@router.post("/register", response_model=TokenSchema)
async def register(
    body: CredentialsSchema,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Create an account and return a bearer token."""
    email = _normalize_email(body.email)
    password = body.password or ""

    if not email or not EMAIL_RE.match(email):
        raise ValidationError("A valid email is required")
    if len(password) < 8:
        raise ValidationError("Password must be at least 8 characters")
    # bcrypt hard limit: 72 bytes (UTF-8)
    if len(password.encode("utf-8")) > 72:
        raise ValidationError("Password is too long")

    existing = await execute(db, select(User).where(User.email == email), "fetch user")
    if existing.scalar_one_or_none() is not None:
        raise ValidationError("An account with this email already exists")

    user = User(email=email, hashed_password=hash_password(password))
    db.add(user)
    await flush(db, "create user")
    await commit(db, "create user")
    logger.info("user_registered", user_id=user.id)

    return TokenSchema(access_token=create_access_token(user.id))


@router.post("/login", response_model=TokenSchema)
async def login(
    body: CredentialsSchema,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Exchange email and password for a bearer token."""
    email = _normalize_email(body.email)
    result = await execute(db, select(User).where(User.email == email), "fetch user")
    user = result.scalar_one_or_none()
    if user is None or not verify_password(body.password, user.hashed_password):
        logger.warning("login_failed", email=email)
        raise AuthenticationError("Invalid email or password")

    return TokenSchema(access_token=create_access_token(user.id))
