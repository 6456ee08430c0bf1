import logging
from pathlib import Path
from typing import BinaryIO, Iterable, List, Optional, Union

from studybuddy.core.errors import (
    FileTooLargeError,
    RecordNotFoundError,
    StorageIOError,
    UnsupportedFileTypeError,
)
from studybuddy.models.files import FileRecord, FileUpdate, ReconcileReport, SortOrder
from studybuddy.services.content_store import ContentStore, file_extension
from studybuddy.services.metadata_store import (
    MetadataStore,
    new_record_id,
    search_records,
    sort_records,
)

logger = logging.getLogger(__name__)


class FileLibrary:
    """
    Coordonne ContentStore et MetadataStore.
    Règle : pas de métadonnées sans contenu, pas de contenu sans métadonnées.
    - import : copie d'abord, puis écrit la fiche ; si la fiche échoue, la copie est supprimée.
    - delete : retire la fiche d'abord, puis le contenu ; un contenu resté orphelin
      est rattrapé par reconcile().
    """

    def __init__(
        self,
        metadata: MetadataStore,
        content: ContentStore,
        allowed_extensions: Optional[Iterable[str]] = None,
        max_upload_mb: int = 25,
    ):
        self.metadata = metadata
        self.content = content
        self.allowed_extensions = {e.lower() for e in (allowed_extensions or ("pdf", "docx", "pptx"))}
        self.max_upload_bytes = max_upload_mb * 1024 * 1024

    def initialize(self) -> None:
        self.content.ensure_ready()

    # ---------- création / suppression ----------

    def import_file(self, source: Union[str, Path, BinaryIO], original_name: str) -> FileRecord:
        ext = file_extension(original_name)
        if ext not in self.allowed_extensions:
            raise UnsupportedFileTypeError(
                f"Type de fichier non supporté: {ext or '(aucune extension)'}"
            )

        # verrou tenu pendant copie + fiche : reconcile() ne voit jamais la copie seule
        with self.metadata.lock:
            stored = self.content.put(source, original_name)
            if stored.size > self.max_upload_bytes:
                self.content.remove(stored.uri)
                raise FileTooLargeError(
                    f"Fichier trop volumineux (max {self.max_upload_bytes // (1024 * 1024)} MB)"
                )

            timestamp = self.metadata.now()
            record = FileRecord(
                id=new_record_id(timestamp),
                name=original_name,
                type=ext,
                size=stored.size,
                dateAdded=timestamp,
                lastAccessed=timestamp,
                uri=stored.uri,
            )
            try:
                return self.metadata.add(record)
            except Exception:
                logger.error("Metadata write failed for %s, removing copied content %s", original_name, stored.uri)
                try:
                    self.content.remove(stored.uri)
                except StorageIOError as e:
                    # reconcile() rattrapera le contenu orphelin
                    logger.warning("Could not remove copied content %s: %s", stored.uri, e)
                raise

    def delete_file(self, file_id: str) -> bool:
        with self.metadata.lock:
            record = self._find(file_id)
            if record is None or not self.metadata.remove(file_id):
                return False
        try:
            self.content.remove(record.uri)
        except StorageIOError as e:
            logger.warning("Content %s left orphaned after deleting %s: %s", record.uri, file_id, e)
        return True

    # ---------- lecture ----------

    def list_files(
        self,
        sort: Optional[SortOrder] = None,
        query: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[FileRecord]:
        records = self.metadata.list()
        if sort is not None:
            records = sort_records(records, sort)
        records = search_records(records, query)
        if limit is not None:
            records = records[:limit]
        return records

    def get_details(self, file_id: str) -> FileRecord:
        record = self.metadata.get(file_id)
        if record is None:
            raise RecordNotFoundError(file_id)
        return record

    def peek(self, file_id: str) -> FileRecord:
        """Comme get_details, sans mettre à jour lastAccessed."""
        record = self._find(file_id)
        if record is None:
            raise RecordNotFoundError(file_id)
        return record

    def content_path(self, file_id: str) -> Path:
        record = self.peek(file_id)
        path = self.content.resolve(record.uri)
        if path is None:
            raise StorageIOError(f"Content missing on disk for {file_id}")
        return path

    def _find(self, file_id: str) -> Optional[FileRecord]:
        # lookup sans toucher lastAccessed
        return next((r for r in self.metadata.list() if r.id == file_id), None)

    # ---------- mises à jour ----------

    def update(self, file_id: str, patch: FileUpdate) -> FileRecord:
        record = self.metadata.update(file_id, patch)
        if record is None:
            raise RecordNotFoundError(file_id)
        return record

    def toggle_star(self, file_id: str) -> FileRecord:
        with self.metadata.lock:
            record = self._find(file_id)
            if record is None:
                raise RecordNotFoundError(file_id)
            return self.update(file_id, FileUpdate(isStarred=not record.isStarred))

    def update_reading_progress(self, file_id: str, progress: int) -> FileRecord:
        return self.update(file_id, FileUpdate(readingProgress=progress))

    def add_quiz_score(self, file_id: str, score: int) -> FileRecord:
        record = self.metadata.append_quiz_score(file_id, score)
        if record is None:
            raise RecordNotFoundError(file_id)
        return record

    # ---------- orphelins ----------

    def reconcile(self) -> ReconcileReport:
        """
        Supprime les contenus sans fiche et les fiches sans contenu.
        """
        report = ReconcileReport()
        with self.metadata.lock:
            records = self.metadata.list(strict=True)
            referenced = {r.uri for r in records}

            for uri in list(self.content.iter_handles()):
                if uri not in referenced:
                    self.content.remove(uri)
                    report.removedContent.append(uri)

            for record in records:
                if self.content.resolve(record.uri) is None and self.metadata.remove(record.id):
                    report.droppedRecords.append(record.id)

        if report.removedContent or report.droppedRecords:
            logger.info(
                "Reconcile: %d orphan content removed, %d dangling records dropped",
                len(report.removedContent), len(report.droppedRecords),
            )
        return report
