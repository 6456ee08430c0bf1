import json
import logging
import threading
import time
import uuid
from typing import Any, Callable, Dict, List, Optional, Union

from studybuddy.core.errors import StorageIOError
from studybuddy.models.files import FileRecord, FileUpdate, QuizScore, SortOrder
from studybuddy.services.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

STORAGE_KEY = "studyBuddy_files"

# Champs fixés à la création (ou append-only) : jamais fusionnés par update()
IMMUTABLE_FIELDS = frozenset({"id", "uri", "size", "type", "dateAdded", "quizScores"})


def now_ms() -> int:
    return int(time.time() * 1000)


def new_record_id(timestamp: int) -> str:
    """
    Timestamp de création + suffixe aléatoire : deux imports dans la même
    milliseconde ne peuvent pas produire le même id.
    """
    return f"{timestamp}-{uuid.uuid4().hex[:8]}"


class MetadataStore:
    """
    Collection des FileRecord, sérialisée en un seul tableau JSON sous
    STORAGE_KEY. Chaque mutation relit tout, modifie en mémoire puis réécrit
    tout, sous un verrou unique (un seul écrivain à la fois).
    """

    def __init__(self, kv: KeyValueStore, clock: Callable[[], int] = now_ms):
        self._kv = kv
        self._clock = clock
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        """Verrou écrivain unique, réentrant : permet de grouper plusieurs opérations."""
        return self._lock

    def now(self) -> int:
        return self._clock()

    # ---------- lecture / écriture brutes ----------

    def _load(self) -> List[FileRecord]:
        raw = self._kv.get(STORAGE_KEY)
        if raw is None:
            return []
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError("metadata root is not a list")
            return [FileRecord.model_validate(item) for item in data]
        except ValueError as e:
            raise StorageIOError(f"Metadata store is corrupt: {e}") from e

    def _save(self, records: List[FileRecord]) -> None:
        payload = json.dumps([r.model_dump(mode="json") for r in records])
        self._kv.set(STORAGE_KEY, payload)

    @staticmethod
    def _index(records: List[FileRecord], file_id: str) -> int:
        return next((i for i, r in enumerate(records) if r.id == file_id), -1)

    # ---------- public API ----------

    def list(self, strict: bool = False) -> List[FileRecord]:
        """
        Collection complète dans l'ordre persisté.
        Lecture tolérante : en cas d'erreur on journalise et on renvoie [].
        Avec strict=True l'erreur remonte (StorageIOError).
        """
        if strict:
            with self._lock:
                return self._load()
        try:
            with self._lock:
                return self._load()
        except StorageIOError as e:
            logger.error("Error reading files metadata: %s", e)
            return []

    def get(self, file_id: str) -> Optional[FileRecord]:
        """
        Lecture "détails" : met à jour lastAccessed et persiste.
        """
        with self._lock:
            records = self._load()
            idx = self._index(records, file_id)
            if idx == -1:
                return None
            record = records[idx]
            # jamais antérieur à la valeur précédente, même si l'horloge recule
            record.lastAccessed = max(record.lastAccessed, self._clock())
            self._save(records)
            return record.model_copy(deep=True)

    def add(self, record: FileRecord) -> FileRecord:
        with self._lock:
            records = self._load()
            if self._index(records, record.id) != -1:
                raise ValueError(f"Duplicate file id: {record.id}")
            records.append(record)
            self._save(records)
            logger.info("Added file %s (%s)", record.id, record.name)
            return record.model_copy(deep=True)

    def update(self, file_id: str, patch: Union[FileUpdate, Dict[str, Any]]) -> Optional[FileRecord]:
        """
        Fusion superficielle : les champs absents du patch sont conservés.
        """
        if isinstance(patch, FileUpdate):
            fields = patch.model_dump(exclude_unset=True, exclude_none=True)
        else:
            fields = dict(patch)

        forbidden = IMMUTABLE_FIELDS.intersection(fields)
        if forbidden:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(forbidden))}")

        with self._lock:
            records = self._load()
            idx = self._index(records, file_id)
            if idx == -1:
                return None
            merged = {**records[idx].model_dump(), **fields}
            records[idx] = FileRecord.model_validate(merged)
            self._save(records)
            return records[idx].model_copy(deep=True)

    def append_quiz_score(self, file_id: str, score: int) -> Optional[FileRecord]:
        entry = QuizScore(date=self._clock(), score=score)
        with self._lock:
            records = self._load()
            idx = self._index(records, file_id)
            if idx == -1:
                return None
            records[idx].quizScores.append(entry)
            self._save(records)
            return records[idx].model_copy(deep=True)

    def remove(self, file_id: str) -> bool:
        with self._lock:
            records = self._load()
            remaining = [r for r in records if r.id != file_id]
            if len(remaining) == len(records):
                return False
            self._save(remaining)
            logger.info("Removed file metadata %s", file_id)
            return True


def sort_records(records: List[FileRecord], order: SortOrder = SortOrder.date) -> List[FileRecord]:
    if order == SortOrder.name:
        return sorted(records, key=lambda r: r.name.lower())
    if order == SortOrder.type:
        return sorted(records, key=lambda r: r.type)
    if order == SortOrder.recent:
        return sorted(records, key=lambda r: r.lastAccessed, reverse=True)
    return sorted(records, key=lambda r: r.dateAdded, reverse=True)


def search_records(records: List[FileRecord], query: Optional[str]) -> List[FileRecord]:
    q = (query or "").strip().lower()
    if not q:
        return list(records)
    return [r for r in records if q in r.name.lower()]
