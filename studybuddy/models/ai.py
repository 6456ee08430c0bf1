from enum import Enum
from typing import Any, List, Optional
from pydantic import BaseModel, Field

from studybuddy.core.errors import ErrorKind


class Difficulty(str, Enum):
    easy = "easy"
    medium = "medium"
    hard = "hard"


class Role(str, Enum):
    user = "user"
    assistant = "assistant"
    system = "system"


class ChatMessage(BaseModel):
    role: Role
    content: str = Field(..., min_length=1)


class IncorrectAnswer(BaseModel):
    question: str
    userAnswer: str
    correctAnswer: str


class AIResult(BaseModel):
    """
    Forme unique de retour des fonctions IA : jamais d'exception vers l'appelant.
    """

    success: bool
    payload: Any = None
    error: Optional[str] = None
    errorKind: Optional[ErrorKind] = None


class QuestionsRequest(BaseModel):
    difficulty: Difficulty = Field(default=Difficulty.medium)
    count: int = Field(default=5, ge=1, le=50, description="Nombre de questions")


class DiscussionRequest(BaseModel):
    topic: str = ""


class ContinueDiscussionRequest(BaseModel):
    previousMessages: List[ChatMessage] = Field(default_factory=list)
    userMessage: str = Field(..., min_length=1)


class PerformanceRequest(BaseModel):
    fileId: Optional[str] = Field(default=None, description="Scores lus depuis ce fichier si fourni")
    quizScores: List[int] = Field(default_factory=list)
    incorrectAnswers: List[IncorrectAnswer] = Field(default_factory=list)


class ApiKeyRequest(BaseModel):
    apiKey: str = Field(..., min_length=1)


class ApiKeyStatus(BaseModel):
    isSet: bool
