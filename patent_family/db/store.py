"""Key-value byte stores used to persist the family collection."""

from __future__ import annotations

from typing import Callable, Dict, Optional, Protocol

from sqlalchemy.orm import Session

from patent_family.db.base import Base
from patent_family.models.store import KeyValueEntry


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[bytes]:
        ...

    def set(self, key: str, value: bytes) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class MemoryKeyValueStore:
    """Process-local store, used by tests and dry runs."""

    def __init__(self) -> None:
        self._data: Dict[str, bytes] = {}

    def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class SqlKeyValueStore:
    """Store backed by the ``kv_entry`` table."""

    def __init__(self, session_factory: Callable[[], Session], create_schema: bool = True) -> None:
        self._session_factory = session_factory
        if create_schema:
            with self._session_factory() as session:
                Base.metadata.create_all(bind=session.get_bind(), tables=[KeyValueEntry.__table__])

    def get(self, key: str) -> Optional[bytes]:
        with self._session_factory() as session:
            entry = session.get(KeyValueEntry, key)
            return entry.value if entry else None

    def set(self, key: str, value: bytes) -> None:
        with self._session_factory() as session:
            entry = session.get(KeyValueEntry, key)
            if entry:
                entry.value = value
            else:
                session.add(KeyValueEntry(key=key, value=value))
            session.commit()

    def delete(self, key: str) -> None:
        with self._session_factory() as session:
            entry = session.get(KeyValueEntry, key)
            if entry:
                session.delete(entry)
                session.commit()
