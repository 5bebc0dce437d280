"""Provider, category and update-ledger storage."""

from provider_directory.storage.base import ProviderRepository
from provider_directory.storage.memory import InMemoryProviderRepository
from provider_directory.storage.sqlalchemy_store import SqlAlchemyProviderRepository


def build_repository(database_url: str | None) -> ProviderRepository:
    if not database_url:
        return InMemoryProviderRepository()
    return SqlAlchemyProviderRepository(database_url)


__all__ = [
    "InMemoryProviderRepository",
    "ProviderRepository",
    "SqlAlchemyProviderRepository",
    "build_repository",
]
