from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, computed_field

from studybuddy.utils.text_utils import file_icon, format_file_size


class SortOrder(str, Enum):
    date = "date"
    name = "name"
    type = "type"
    recent = "recent"


class QuizScore(BaseModel):
    date: int = Field(..., ge=0, description="Epoch ms")
    score: int = Field(..., ge=0, le=100, description="Score en pourcentage")


class FileRecord(BaseModel):
    id: str = Field(..., description="Identifiant unique (timestamp + suffixe aléatoire)")
    name: str = Field(..., description="Nom du fichier d'origine")
    type: str = Field(..., description="Extension en minuscules (pdf, docx, pptx...)")
    size: int = Field(..., ge=0, description="Taille en octets")
    dateAdded: int = Field(..., ge=0)
    lastAccessed: int = Field(..., ge=0)
    uri: str = Field(..., description="Handle du contenu stocké (immuable)")
    tags: List[str] = Field(default_factory=list)
    notes: str = ""
    isStarred: bool = False
    quizScores: List[QuizScore] = Field(default_factory=list)
    readingProgress: int = Field(default=0, ge=0, le=100)


class FileView(FileRecord):
    """FileRecord + champs d'affichage (non persistés)."""

    @computed_field
    @property
    def sizeLabel(self) -> str:
        return format_file_size(self.size)

    @computed_field
    @property
    def icon(self) -> str:
        return file_icon(self.type)

    @classmethod
    def of(cls, record: FileRecord) -> "FileView":
        return cls.model_validate(record.model_dump())


class FileUpdate(BaseModel):
    """
    Mise à jour partielle : seuls les champs envoyés sont fusionnés.
    id, uri, size, type, dateAdded et quizScores ne sont pas modifiables ici.
    """

    name: Optional[str] = Field(default=None, min_length=1)
    tags: Optional[List[str]] = None
    notes: Optional[str] = None
    isStarred: Optional[bool] = None
    readingProgress: Optional[int] = Field(default=None, ge=0, le=100)


class ProgressRequest(BaseModel):
    readingProgress: int = Field(..., ge=0, le=100)


class QuizScoreRequest(BaseModel):
    score: int = Field(..., ge=0, le=100)


class FileListResponse(BaseModel):
    files: List[FileView]


class DeleteResponse(BaseModel):
    ok: bool = True
    id: Optional[str] = None
    message: Optional[str] = None


class ReconcileReport(BaseModel):
    removedContent: List[str] = Field(default_factory=list)
    droppedRecords: List[str] = Field(default_factory=list)
