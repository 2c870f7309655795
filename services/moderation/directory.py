"""
Directory Lookup - read and write access to the canonical facility directory.

``exists`` answers whether a (name, region, sub_region) triple is already
canonical; ``insert`` adds one and raises ``DuplicateEntryError`` when the
unique ``name_key`` rejects it. Each call opens its own session so a failed
lookup never poisons the caller's transaction.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from common.errors import DuplicateEntryError
from models.directory import HealthFacility
from services.moderation.normalization import build_dedup_key, clean_value
from services.moderation.types import FacilityOwnershipType

logger = logging.getLogger(__name__)


class DirectoryLookup:
    """Contract for the canonical directory."""

    async def exists(self, name: str, region: str, sub_region: str) -> bool:
        raise NotImplementedError("DirectoryLookup must implement exists()")

    async def insert(
        self,
        name: str,
        region: str,
        sub_region: str,
        classification: FacilityOwnershipType = FacilityOwnershipType.UNKNOWN,
        source_entry_id: Optional[uuid.UUID] = None,
    ) -> HealthFacility:
        raise NotImplementedError("DirectoryLookup must implement insert()")


class SqlDirectoryLookup(DirectoryLookup):
    """Directory backed by the ``health_facilities`` table."""

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
        if session_factory is None:
            from libs.db import AsyncSessionLocal

            session_factory = AsyncSessionLocal
        self._session_factory = session_factory

    async def exists(self, name: str, region: str, sub_region: str) -> bool:
        name_key = build_dedup_key(name, region, sub_region)
        async with self._session_factory() as session:
            result = await session.execute(
                select(HealthFacility.id).where(HealthFacility.name_key == name_key).limit(1)
            )
            return result.scalar_one_or_none() is not None

    async def insert(
        self,
        name: str,
        region: str,
        sub_region: str,
        classification: FacilityOwnershipType = FacilityOwnershipType.UNKNOWN,
        source_entry_id: Optional[uuid.UUID] = None,
    ) -> HealthFacility:
        facility = HealthFacility(
            id=uuid.uuid4(),
            name=clean_value(name),
            region=clean_value(region),
            sub_region=clean_value(sub_region),
            ownership_type=FacilityOwnershipType(classification).value,
            name_key=build_dedup_key(name, region, sub_region),
            source_entry_id=source_entry_id,
        )
        async with self._session_factory() as session:
            session.add(facility)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise DuplicateEntryError(
                    f"Facility '{facility.name}' already exists in {facility.sub_region}, {facility.region}"
                ) from e

        logger.info(
            "Added facility to directory: %s (%s, %s)", facility.name, facility.sub_region, facility.region
        )
        return facility
