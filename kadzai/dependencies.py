"""
Kadzai Backend — Shared Route Dependencies
===========================================

What:  `get_current_user` resolves `Authorization: Bearer <token>` to a User.
Who:   GET /api/auth/me and every admin router (bookings, bus types).

HTTPBearer(auto_error=False) is used so a missing header reaches
AuthService and produces the same 401 body as every other auth failure,
instead of FastAPI's default 403.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from kadzai.database import get_db_session
from kadzai.models.user import User
from kadzai.services.auth_service import auth_service

bearer_scheme = HTTPBearer(auto_error=False, description="Session token from /api/auth/login")


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    token = credentials.credentials if credentials else None
    return await auth_service.get_session_user(db, token)
