import logging
import shutil
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable, Iterator, Optional, Union

from studybuddy.core.errors import StorageIOError
from studybuddy.services.metadata_store import now_ms

logger = logging.getLogger(__name__)

CONTENT_DIRNAME = "study_materials"


@dataclass
class StoredContent:
    uri: str
    size: int


def file_extension(name: str) -> str:
    """Extension en minuscules, sans le point ("" si aucune)."""
    suffix = Path(name or "").suffix
    return suffix[1:].lower() if suffix else ""


class ContentStore:
    """
    Copies binaires des documents importés, sous <base>/study_materials/.
    Le handle (uri) renvoyé est le nom de fichier généré.
    """

    def __init__(self, base_path: Union[str, Path], clock: Callable[[], int] = now_ms):
        self.root = Path(base_path) / CONTENT_DIRNAME
        self._clock = clock

    def ensure_ready(self) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageIOError(f"Cannot create content directory {self.root}: {e}") from e

    def _new_name(self, original_name: str) -> str:
        ext = file_extension(original_name)
        stem = f"{self._clock()}_{uuid.uuid4().hex[:8]}"
        return f"{stem}.{ext}" if ext else stem

    def _path_for(self, uri: str) -> Path:
        # un handle est un simple nom de fichier : pas de chemin, pas de ".."
        if not uri or Path(uri).name != uri or uri in (".", ".."):
            raise ValueError(f"Invalid content handle: {uri!r}")
        return self.root / uri

    def put(self, source: Union[str, Path, BinaryIO], original_name: str) -> StoredContent:
        """
        Copie la source (chemin ou fichier binaire ouvert) sous un nom unique.
        En cas d'erreur disque, la copie partielle est supprimée.
        """
        self.ensure_ready()
        uri = self._new_name(original_name)
        dest = self.root / uri
        try:
            if isinstance(source, (str, Path)):
                shutil.copyfile(source, dest)
            else:
                with open(dest, "wb") as out:
                    shutil.copyfileobj(source, out)
            size = dest.stat().st_size
        except OSError as e:
            dest.unlink(missing_ok=True)
            raise StorageIOError(f"Copy failed for {original_name}: {e}") from e

        logger.info("Stored %s as %s (%d bytes)", original_name, uri, size)
        return StoredContent(uri=uri, size=size)

    def remove(self, uri: str) -> None:
        """Supprime le contenu ; déjà absent = succès silencieux."""
        path = self._path_for(uri)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageIOError(f"Delete failed for {uri}: {e}") from e

    def resolve(self, uri: str) -> Optional[Path]:
        try:
            path = self._path_for(uri)
        except ValueError:
            return None
        return path if path.is_file() else None

    def iter_handles(self) -> Iterator[str]:
        if not self.root.exists():
            return
        for p in self.root.iterdir():
            if p.is_file():
                yield p.name
