"""
Kadzai Backend — User Service
==============================

What:  Admin CRUD for operator accounts.
Rules: emails are unique (409); passwords are bcrypt-hashed before they are
       stored and never returned; an operator cannot delete their own account.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import desc, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from kadzai.exceptions import ConflictError, NotFoundError
from kadzai.models.user import User
from kadzai.schemas.auth import UserCreate, UserListResponse, UserResponse, UserUpdate
from kadzai.services.auth_service import hash_password

logger = logging.getLogger(__name__)


class UserService:

    async def list_users(
        self,
        db: AsyncSession,
        limit: int = 10,
        offset: int = 0,
    ) -> UserListResponse:
        result = await db.execute(
            select(User).order_by(desc(User.created_at)).limit(limit).offset(offset)
        )
        users = list(result.scalars().all())
        count_result = await db.execute(select(func.count()).select_from(User))
        return UserListResponse(
            data=[UserResponse.model_validate(u) for u in users],
            total=count_result.scalar() or 0,
        )

    async def get_user(self, db: AsyncSession, user_id: uuid.UUID) -> UserResponse:
        return UserResponse.model_validate(await self._get(db, user_id))

    async def create_user(
        self,
        db: AsyncSession,
        payload: UserCreate,
        created_by: Optional[str] = None,
    ) -> UserResponse:
        if await self._find_by_email(db, payload.email) is not None:
            raise ConflictError("User with this email already exists")

        user = User(
            id=uuid.uuid4(),
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=payload.email,
            password=await run_in_threadpool(hash_password, payload.password),
            phone=payload.phone,
            is_active=payload.is_active,
            created_at=datetime.now(timezone.utc),
            created_by=created_by,
            modified_by=created_by,
        )
        db.add(user)
        await self._flush(db, payload.email)

        logger.info("User %s created by %s", user.email, created_by)
        return UserResponse.model_validate(user)

    async def update_user(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        payload: UserUpdate,
        modified_by: Optional[str] = None,
    ) -> UserResponse:
        user = await self._get(db, user_id)

        if payload.email is not None and payload.email != user.email:
            if await self._find_by_email(db, payload.email) is not None:
                raise ConflictError("User with this email already exists")
            user.email = payload.email
        for field in ("first_name", "last_name", "phone"):
            value = getattr(payload, field)
            if value is not None:
                setattr(user, field, value.strip())
        if payload.is_active is not None:
            user.is_active = payload.is_active
        if payload.password is not None:
            user.password = await run_in_threadpool(hash_password, payload.password)
        user.modified_by = modified_by

        await self._flush(db, user.email)
        logger.info("User %s updated by %s", user_id, modified_by)
        return UserResponse.model_validate(user)

    async def delete_user(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        current_user_id: Optional[uuid.UUID] = None,
    ) -> None:
        user = await self._get(db, user_id)
        if current_user_id is not None and user.id == current_user_id:
            raise ConflictError("You cannot delete your own account")

        await db.delete(user)
        await db.flush()
        logger.info("User %s deleted", user.email)

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _get(self, db: AsyncSession, user_id: uuid.UUID) -> User:
        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id), message="User not found")
        return user

    async def _find_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def _flush(self, db: AsyncSession, email: str) -> None:
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("User with this email already exists", context={"email": email})


user_service = UserService()
