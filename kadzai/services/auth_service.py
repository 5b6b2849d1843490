"""
Kadzai Backend — Authentication Service
========================================

What:  Password checks, login-session issuing and bearer-token resolution.
How:   bcrypt for password hashes; a random token stored in `sessions` with a
       fixed expiry (settings.session_ttl_hours, 24 by default).
Who:   POST /api/auth/login, GET /api/auth/me and the admin-route dependency.

Login failure is deliberately uniform: unknown email, inactive account and
wrong password all yield 401 "Invalid credentials".
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from kadzai.config import settings
from kadzai.exceptions import AuthenticationError, DatabaseError
from kadzai.models.user import User, UserSession
from kadzai.schemas.auth import LoginResponse, PublicUser

logger = logging.getLogger(__name__)


def hash_password(plain: str) -> str:
    """Return a bcrypt hash (cost 12) suitable for `User.password`."""
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=12)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # malformed stored hash, or a password bcrypt refuses (>72 bytes)
        logger.warning("bcrypt rejected a password comparison input")
        return False


class AuthService:
    """Issues and resolves login sessions."""

    async def login(self, db: AsyncSession, email: str, password: str) -> LoginResponse:
        """
        Authenticate an operator and open a session.

        Raises:
            AuthenticationError: unknown email, inactive user or wrong password (→ 401)
            DatabaseError: lookup or insert failed (→ 500)
        """
        try:
            result = await db.execute(select(User).where(User.email == email.strip()))
            user = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error during login: %s", str(e))
            raise DatabaseError(context={"operation": "login_lookup"})

        if user is None or not user.is_active:
            logger.info("Login rejected: unknown or inactive account")
            raise AuthenticationError("Invalid credentials")

        # bcrypt is CPU-bound; keep it off the event loop
        if not await run_in_threadpool(verify_password, password, user.password):
            logger.info("Login rejected: bad password for user %s", user.id)
            raise AuthenticationError("Invalid credentials")

        expires_at = datetime.now(timezone.utc) + timedelta(hours=settings.session_ttl_hours)
        session = UserSession(
            token=secrets.token_urlsafe(32),
            user_id=user.id,
            expires_at=expires_at,
        )
        db.add(session)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Could not create session for user %s: %s", user.id, str(e))
            raise DatabaseError(context={"operation": "create_session"})

        logger.info("User %s logged in; session expires %s", user.id, expires_at.isoformat())
        return LoginResponse(
            token=session.token,
            expires_at=expires_at,
            user=PublicUser.model_validate(user),
        )

    async def get_session_user(self, db: AsyncSession, token: Optional[str]) -> User:
        """
        Resolve a bearer token to its user.

        A token is valid while its session row exists and `expires_at` is not
        in the past. Nothing is extended on use.
        """
        if not token:
            raise AuthenticationError("Authentication token required")

        result = await db.execute(
            select(UserSession)
            .options(selectinload(UserSession.user))
            .where(UserSession.token == token)
        )
        session = result.scalar_one_or_none()

        if session is None or session.expires_at < datetime.now(timezone.utc):
            raise AuthenticationError("Invalid or expired session")

        return session.user


auth_service = AuthService()
