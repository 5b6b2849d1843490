"""
Kadzai Backend — Bus Type Service
==================================

What:  Admin CRUD for bus types ("48 Seater", "32 Seater").
Rules: names are unique (409 on clash); a type still referenced by a bus
       cannot be deleted (409).
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import desc, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from kadzai.exceptions import ConflictError, NotFoundError, ValidationError
from kadzai.models.fleet import Bus, BusType
from kadzai.schemas.trip import (
    BusTypeCreate,
    BusTypeListResponse,
    BusTypeResponse,
    BusTypeUpdate,
)

logger = logging.getLogger(__name__)


class BusTypeService:

    async def list_bus_types(self, db: AsyncSession) -> BusTypeListResponse:
        result = await db.execute(select(BusType).order_by(desc(BusType.created_at)))
        return BusTypeListResponse(
            data=[BusTypeResponse.model_validate(bt) for bt in result.scalars().all()]
        )

    async def create_bus_type(
        self,
        db: AsyncSession,
        payload: BusTypeCreate,
        created_by: Optional[str] = None,
    ) -> BusTypeResponse:
        if await self._find_by_name(db, payload.name) is not None:
            raise ConflictError("Bus type already exists", context={"name": payload.name})

        bus_type = BusType(
            id=uuid.uuid4(),
            name=payload.name,
            seats=payload.seats,
            created_by=created_by,
        )
        db.add(bus_type)
        await self._flush(db, payload.name)
        logger.info("Bus type '%s' created (%d seats)", bus_type.name, bus_type.seats)
        return BusTypeResponse.model_validate(bus_type)

    async def update_bus_type(
        self,
        db: AsyncSession,
        bus_type_id: uuid.UUID,
        payload: BusTypeUpdate,
        modified_by: Optional[str] = None,
    ) -> BusTypeResponse:
        bus_type = await self._get(db, bus_type_id)

        if payload.name is None and payload.seats is None:
            raise ValidationError("Nothing to update: provide name or seats")

        if payload.name is not None and payload.name != bus_type.name:
            if await self._find_by_name(db, payload.name) is not None:
                raise ConflictError("Bus type name already exists", context={"name": payload.name})
            bus_type.name = payload.name
        if payload.seats is not None:
            bus_type.seats = payload.seats
        bus_type.modified_by = modified_by

        await self._flush(db, bus_type.name)
        logger.info("Bus type %s updated", bus_type_id)
        return BusTypeResponse.model_validate(bus_type)

    async def delete_bus_type(self, db: AsyncSession, bus_type_id: uuid.UUID) -> None:
        bus_type = await self._get(db, bus_type_id)

        result = await db.execute(
            select(func.count()).select_from(Bus).where(Bus.bus_type == bus_type.name)
        )
        in_use = result.scalar() or 0
        if in_use:
            raise ConflictError(
                "Cannot delete bus type: it is assigned to one or more buses",
                context={"buses": in_use},
            )

        await db.delete(bus_type)
        await db.flush()
        logger.info("Bus type '%s' deleted", bus_type.name)

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _get(self, db: AsyncSession, bus_type_id: uuid.UUID) -> BusType:
        result = await db.execute(select(BusType).where(BusType.id == bus_type_id))
        bus_type = result.scalar_one_or_none()
        if bus_type is None:
            raise NotFoundError(
                resource="bus type",
                resource_id=str(bus_type_id),
                message="Bus type not found",
            )
        return bus_type

    async def _find_by_name(self, db: AsyncSession, name: str) -> Optional[BusType]:
        result = await db.execute(select(BusType).where(BusType.name == name))
        return result.scalar_one_or_none()

    async def _flush(self, db: AsyncSession, name: str) -> None:
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("Bus type already exists", context={"name": name})


bus_type_service = BusTypeService()
