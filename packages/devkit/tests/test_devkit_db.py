import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from devkit.db import AsyncDatabaseManager, is_postgres_dsn, is_transient_db_error, normalize_postgres_dsn


def test_normalize_postgres_dsn() -> None:
    assert normalize_postgres_dsn("postgresql://u:p@h:5432/db") == "postgresql+psycopg://u:p@h:5432/db"
    assert normalize_postgres_dsn("postgresql+psycopg://u:p@h:5432/db") == "postgresql+psycopg://u:p@h:5432/db"
    assert normalize_postgres_dsn("sqlite+aiosqlite:///tmp/x.db") == "sqlite+aiosqlite:///tmp/x.db"


def test_is_postgres_dsn() -> None:
    assert is_postgres_dsn("postgresql+psycopg://u:p@h:5432/db")
    assert not is_postgres_dsn("sqlite+aiosqlite:///tmp/x.db")


def test_transient_error_detection() -> None:
    assert is_transient_db_error(OperationalError("stmt", {}, Exception("down")))
    assert not is_transient_db_error(ValueError("nope"))


@pytest.mark.asyncio
async def test_session_rolls_back_on_error(tmp_path) -> None:
    manager = AsyncDatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'devkit.db'}")
    async with manager.session() as session:
        await session.execute(text("CREATE TABLE ledger (id INTEGER PRIMARY KEY)"))

    with pytest.raises(RuntimeError):
        async with manager.session() as session:
            await session.execute(text("INSERT INTO ledger (id) VALUES (1)"))
            raise RuntimeError("abort")

    async with manager.session() as session:
        count = (await session.execute(text("SELECT COUNT(*) FROM ledger"))).scalar_one()
    await manager.disconnect()

    assert count == 0
