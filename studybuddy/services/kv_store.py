import logging
import threading
from typing import Dict, Optional, Protocol, runtime_checkable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from studybuddy.core.errors import StorageIOError
from studybuddy.db.database import make_engine, make_session_factory
from studybuddy.db.models import KvEntry

logger = logging.getLogger(__name__)


@runtime_checkable
class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """Stockage clé/valeur en mémoire (tests, exécutions éphémères)."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class SqlKeyValueStore:
    """
    Stockage clé/valeur persistant : une table `kv_entries` via SQLAlchemy.
    Toute erreur de la base remonte en StorageIOError.
    """

    def __init__(self, url: str):
        self.url = url
        self._engine = make_engine(url)
        self._Session = make_session_factory(self._engine)

    def get(self, key: str) -> Optional[str]:
        try:
            with self._Session() as db:
                row = db.execute(select(KvEntry).where(KvEntry.key == key)).scalar_one_or_none()
                return row.value if row else None
        except SQLAlchemyError as e:
            raise StorageIOError(f"KV read failed for {key!r}: {e}") from e

    def set(self, key: str, value: str) -> None:
        try:
            with self._Session() as db:
                row = db.get(KvEntry, key)
                if row is None:
                    db.add(KvEntry(key=key, value=value))
                else:
                    row.value = value
                db.commit()
        except SQLAlchemyError as e:
            raise StorageIOError(f"KV write failed for {key!r}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            with self._Session() as db:
                row = db.get(KvEntry, key)
                if row is not None:
                    db.delete(row)
                    db.commit()
        except SQLAlchemyError as e:
            raise StorageIOError(f"KV delete failed for {key!r}: {e}") from e

    def close(self) -> None:
        self._engine.dispose()


def build_kv_store(backend: str, url: str) -> KeyValueStore:
    backend = (backend or "sql").strip().lower()
    if backend == "memory":
        return MemoryKeyValueStore()
    if backend == "sql":
        return SqlKeyValueStore(url)
    raise ValueError(f"Unknown KV backend: {backend}")
