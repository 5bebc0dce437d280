from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Iterable, Sequence
from datetime import date

from devkit.db import AsyncDatabaseManager, Base, create_all_tables
from sqlalchemy import BigInteger, Date, Float, Integer, String, Text, delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Mapped, mapped_column

from provider_directory.core.batching import split_batches
from provider_directory.core.models import ProviderId, ProviderRecord
from provider_directory.storage.base import ProviderRepository

logger = logging.getLogger(__name__)


class HealthcareProviderORM(Base):
    __tablename__ = "healthcare_providers"

    location_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    institution_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    institution_type: Mapped[str | None] = mapped_column(String(255))
    street: Mapped[str | None] = mapped_column(String(255))
    house_number: Mapped[str | None] = mapped_column(String(64))
    city: Mapped[str | None] = mapped_column(String(255))
    postal_code: Mapped[str | None] = mapped_column(String(16))
    phone_number: Mapped[str | None] = mapped_column(String(255))
    fax: Mapped[str | None] = mapped_column(String(255))
    email: Mapped[str | None] = mapped_column(String(255))
    website: Mapped[str | None] = mapped_column(String(500))
    ico: Mapped[str | None] = mapped_column(String(32))
    category_json: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    specialization: Mapped[str | None] = mapped_column(Text)
    care_form: Mapped[str | None] = mapped_column(Text)
    care_type: Mapped[str | None] = mapped_column(Text)
    substitute: Mapped[str | None] = mapped_column(Text)
    lat: Mapped[float | None] = mapped_column(Float)
    lng: Mapped[float | None] = mapped_column(Float)
    cycle_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)


class HealthcareCategoryORM(Base):
    __tablename__ = "healthcare_categories"

    value: Mapped[str] = mapped_column(String(128), primary_key=True)


class ServerPropertiesORM(Base):
    __tablename__ = "server_properties"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    last_update: Mapped[date] = mapped_column(Date, nullable=False)


_UPSERT_DIALECTS = {"postgresql": postgresql.insert, "sqlite": sqlite.insert}
# Keeps rows * columns under the sqlite and postgres bind-parameter limits.
_UPSERT_CHUNK_ROWS = 500


def _upsert_statement(dialect: str, rows: list[dict[str, object]]):
    stmt = _UPSERT_DIALECTS[dialect](HealthcareProviderORM).values(rows)
    table = HealthcareProviderORM.__table__
    return stmt.on_conflict_do_update(
        index_elements=[column.name for column in table.primary_key.columns],
        set_={column.name: stmt.excluded[column.name] for column in table.columns if not column.primary_key},
    )


class SqlAlchemyProviderRepository(ProviderRepository):
    def __init__(self, dsn: str, db: AsyncDatabaseManager | None = None) -> None:
        self._db = db or AsyncDatabaseManager(dsn)
        self._ready = False
        self._ready_lock = asyncio.Lock()

    async def replace_categories(self, values: Iterable[str]) -> int:
        await self._ensure_ready()
        rows = [HealthcareCategoryORM(value=value) for value in dict.fromkeys(values)]

        async def _run(session):
            await session.execute(delete(HealthcareCategoryORM))
            session.add_all(rows)
            return len(rows)

        return await self._db.run_with_session(_run)

    async def list_categories(self) -> list[str]:
        await self._ensure_ready()

        async def _run(session):
            stmt = select(HealthcareCategoryORM.value).order_by(HealthcareCategoryORM.value)
            return list((await session.scalars(stmt)).all())

        return await self._db.run_with_session(_run)

    async def save_batch(self, records: Sequence[ProviderRecord], cycle_id: str) -> int:
        await self._ensure_ready()
        rows = [self._to_values(record, cycle_id) for record in records]
        dialect = self._db.engine.dialect.name

        async def _run(session):
            if dialect not in _UPSERT_DIALECTS:
                for values in rows:
                    await session.merge(HealthcareProviderORM(**values))
                return len(rows)
            for chunk in split_batches(rows, _UPSERT_CHUNK_ROWS):
                await session.execute(_upsert_statement(dialect, chunk))
            return len(rows)

        return await self._db.run_with_session(_run)

    async def purge_stale(self, cycle_id: str) -> int:
        await self._ensure_ready()

        async def _run(session):
            result = await session.execute(
                delete(HealthcareProviderORM).where(HealthcareProviderORM.cycle_id != cycle_id)
            )
            return int(result.rowcount or 0)

        return await self._db.run_with_session(_run)

    async def count(self) -> int:
        await self._ensure_ready()

        async def _run(session):
            return int((await session.scalar(select(func.count()).select_from(HealthcareProviderORM))) or 0)

        return await self._db.run_with_session(_run)

    async def find_page(self, page: int, size: int) -> list[ProviderRecord]:
        await self._ensure_ready()

        async def _run(session):
            stmt = (
                select(HealthcareProviderORM)
                .order_by(HealthcareProviderORM.location_id, HealthcareProviderORM.institution_id)
                .offset(page * size)
                .limit(size)
            )
            return [self._to_entity(row) for row in (await session.scalars(stmt)).all()]

        return await self._db.run_with_session(_run)

    async def get(self, provider_id: ProviderId) -> ProviderRecord | None:
        await self._ensure_ready()

        async def _run(session):
            row = await session.get(HealthcareProviderORM, (provider_id.location_id, provider_id.institution_id))
            return self._to_entity(row) if row else None

        return await self._db.run_with_session(_run)

    async def last_update(self) -> date | None:
        await self._ensure_ready()

        async def _run(session):
            stmt = select(ServerPropertiesORM).order_by(ServerPropertiesORM.id).limit(1)
            row = (await session.scalars(stmt)).first()
            return row.last_update if row else None

        return await self._db.run_with_session(_run)

    async def record_update(self, value: date) -> None:
        await self._ensure_ready()

        async def _run(session):
            stmt = select(ServerPropertiesORM).order_by(ServerPropertiesORM.id).limit(1)
            row = (await session.scalars(stmt)).first()
            if row is None:
                session.add(ServerPropertiesORM(last_update=value))
                return
            row.last_update = value

        await self._db.run_with_session(_run)

    async def close(self) -> None:
        await self._db.disconnect()
        self._ready = False

    async def _ensure_ready(self) -> None:
        if self._ready:
            return
        async with self._ready_lock:
            if self._ready:
                return
            await self._db.connect()
            await create_all_tables(self._db.engine, Base.metadata)
            self._ready = True
            logger.info("provider_repository_ready", extra={"component": "storage"})

    def _to_values(self, record: ProviderRecord, cycle_id: str) -> dict[str, object]:
        return dict(
            location_id=record.location_id,
            institution_id=record.institution_id,
            title=record.title,
            institution_type=record.institution_type,
            street=record.street,
            house_number=record.house_number,
            city=record.city,
            postal_code=record.postal_code,
            phone_number=record.phone_number,
            fax=record.fax,
            email=record.email,
            website=record.website,
            ico=record.ico,
            category_json=json.dumps(list(record.category), ensure_ascii=False),
            specialization=record.specialization,
            care_form=record.care_form,
            care_type=record.care_type,
            substitute=record.substitute,
            lat=record.lat,
            lng=record.lng,
            cycle_id=cycle_id,
        )

    def _to_entity(self, row: HealthcareProviderORM) -> ProviderRecord:
        categories = json.loads(row.category_json) if row.category_json else []
        return ProviderRecord(
            location_id=row.location_id,
            institution_id=row.institution_id,
            title=row.title,
            institution_type=row.institution_type,
            street=row.street,
            house_number=row.house_number,
            city=row.city,
            postal_code=row.postal_code,
            phone_number=row.phone_number,
            fax=row.fax,
            email=row.email,
            website=row.website,
            ico=row.ico,
            category=tuple(categories),
            specialization=row.specialization,
            care_form=row.care_form,
            care_type=row.care_type,
            substitute=row.substitute,
            lat=row.lat,
            lng=row.lng,
        )
