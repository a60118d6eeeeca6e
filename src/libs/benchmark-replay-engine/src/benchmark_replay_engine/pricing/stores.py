# src/libs/benchmark-replay-engine/src/benchmark_replay_engine/pricing/stores.py
from typing import Dict, Optional, Protocol

from sqlalchemy import Column, Integer, String, create_engine, delete, select
from sqlalchemy.orm import declarative_base, sessionmaker

from .. import config
from ..exceptions import StoreCapacityError

Base = declarative_base()


class KeyValueStore(Protocol):
    """Durable string key-value storage used to mirror the price cache."""
    def get_all(self, prefix: str) -> Dict[str, str]: ...
    def set(self, key: str, value: str) -> None: ...
    def remove(self, key: str) -> None: ...


class InMemoryKeyValueStore:
    """
    Process-local store. With a `capacity` it refuses new keys once full,
    which mimics a quota-limited browser or device store.
    """
    def __init__(self, capacity: Optional[int] = None):
        self._capacity = capacity
        self._entries: Dict[str, str] = {}

    def get_all(self, prefix: str) -> Dict[str, str]:
        return {key: value for key, value in self._entries.items() if key.startswith(prefix)}

    def set(self, key: str, value: str) -> None:
        if key not in self._entries and self._capacity is not None and len(self._entries) >= self._capacity:
            raise StoreCapacityError(f"Store capacity of {self._capacity} entries exceeded.")
        self._entries[key] = value

    def remove(self, key: str) -> None:
        self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)


class PriceCacheEntry(Base):
    __tablename__ = 'price_cache_entries'

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String, unique=True, index=True, nullable=False)
    value = Column(String, nullable=False)


class SqlAlchemyKeyValueStore:
    """
    Key-value store backed by a single SQLAlchemy table. Entries are returned
    in insertion order.
    """
    def __init__(self, database_url: str = config.PRICE_CACHE_DATABASE_URL):
        self._engine = create_engine(database_url, pool_pre_ping=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)

    def get_all(self, prefix: str) -> Dict[str, str]:
        with self._session_factory() as session:
            stmt = (
                select(PriceCacheEntry.key, PriceCacheEntry.value)
                .where(PriceCacheEntry.key.startswith(prefix, autoescape=True))
                .order_by(PriceCacheEntry.id)
            )
            return {key: value for key, value in session.execute(stmt)}

    def set(self, key: str, value: str) -> None:
        with self._session_factory() as session:
            with session.begin():
                entry = session.execute(
                    select(PriceCacheEntry).where(PriceCacheEntry.key == key)
                ).scalar_one_or_none()
                if entry is None:
                    session.add(PriceCacheEntry(key=key, value=value))
                else:
                    entry.value = value

    def remove(self, key: str) -> None:
        with self._session_factory() as session:
            with session.begin():
                session.execute(delete(PriceCacheEntry).where(PriceCacheEntry.key == key))

    def dispose(self):
        self._engine.dispose()
