import logging
from typing import Any, Callable, List, Optional, Sequence, Union

from studybuddy.core.errors import MissingCredentialError, StudyBuddyError
from studybuddy.models.ai import AIResult, ChatMessage, Difficulty, IncorrectAnswer
from studybuddy.models.files import FileRecord, QuizScore
from studybuddy.services.completion_clients import CompletionClient
from studybuddy.services.content_store import ContentStore
from studybuddy.services.credentials import CredentialStore
from studybuddy.utils.text_extract import TextExtractor, extract_text
from studybuddy.utils.text_utils import split_segments, truncate

logger = logging.getLogger(__name__)


class AIGateway:
    """
    Formate les prompts à partir du texte des documents et les transmet au
    service de complétion. Aucune méthode publique ne lève : tout échec est
    renvoyé dans un AIResult (success=False, error, errorKind).
    """

    def __init__(
        self,
        client: CompletionClient,
        credentials: CredentialStore,
        content: ContentStore,
        extractor: TextExtractor = extract_text,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        char_budget: int = 5000,
        audio_segment_chars: int = 1500,
    ):
        if audio_segment_chars <= 0:
            raise ValueError(f"audio_segment_chars must be > 0, got {audio_segment_chars}")
        self.client = client
        self.credentials = credentials
        self.content = content
        self.extractor = extractor
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.char_budget = char_budget
        self.audio_segment_chars = audio_segment_chars

    # ---------- bas niveau ----------

    def complete(self, prompt: str, credential: Optional[str]) -> AIResult:
        if not credential:
            return self._failure("complete", MissingCredentialError())
        try:
            data = self.client.complete(
                prompt,
                credential,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except StudyBuddyError as e:
            return self._failure("complete", e)
        return AIResult(success=True, payload=data)

    def _document_text(self, record: FileRecord) -> str:
        path = self.content.resolve(record.uri)
        return truncate(self.extractor(path, record.type), self.char_budget)

    def _run(
        self,
        op: str,
        build_prompt: Callable[[], str],
        field: str,
        default: Any,
    ) -> AIResult:
        try:
            api_key = self.credentials.get_api_key()
            if not api_key:
                raise MissingCredentialError()
            result = self.complete(build_prompt(), api_key)
        except StudyBuddyError as e:
            return self._failure(op, e, default)
        except Exception as e:
            logger.exception("Error in %s", op)
            return AIResult(success=False, payload=default, error=str(e))

        if not result.success:
            return AIResult(success=False, payload=default, error=result.error, errorKind=result.errorKind)
        value = (result.payload or {}).get(field)
        return AIResult(success=True, payload=value if value is not None else default)

    @staticmethod
    def _failure(op: str, err: StudyBuddyError, default: Any = None) -> AIResult:
        logger.error("Error in %s: %s", op, err)
        return AIResult(success=False, payload=default, error=err.message or str(err), errorKind=err.kind)

    # ---------- fonctionnalités ----------

    def generate_questions(
        self,
        record: FileRecord,
        difficulty: Union[Difficulty, str] = Difficulty.medium,
        count: int = 5,
    ) -> AIResult:
        def prompt() -> str:
            level = Difficulty(difficulty).value
            return (
                f"Based on the following study material, generate {count} {level}-level "
                f"questions with answers:\n\n{self._document_text(record)}"
            )

        return self._run("generate_questions", prompt, "questions", [])

    def generate_study_notes(self, record: FileRecord) -> AIResult:
        def prompt() -> str:
            return f"Create concise study notes from the following material:\n\n{self._document_text(record)}"

        return self._run("generate_study_notes", prompt, "completion", "")

    def start_discussion(self, record: FileRecord, topic: str = "") -> AIResult:
        def prompt() -> str:
            text = self._document_text(record)
            if topic:
                return f'Based on this study material, let\'s discuss the topic "{topic}":\n\n{text}'
            return f"Based on this study material, what would be a good discussion topic?\n\n{text}"

        return self._run("start_discussion", prompt, "completion", "")

    def continue_discussion(self, previous_messages: Sequence[ChatMessage], user_message: str) -> AIResult:
        def prompt() -> str:
            context = "\n".join(f"{m.role.value}: {m.content}" for m in previous_messages)
            return f"Previous conversation:\n{context}\n\nUser: {user_message}\nAssistant:"

        return self._run("continue_discussion", prompt, "completion", "")

    def analyze_performance(
        self,
        quiz_scores: Sequence[Union[QuizScore, int]],
        incorrect_answers: Sequence[IncorrectAnswer],
    ) -> AIResult:
        def prompt() -> str:
            scores = "\n".join(
                f"Quiz {i}: {getattr(q, 'score', q)}%" for i, q in enumerate(quiz_scores, start=1)
            )
            incorrect = "\n\n".join(
                f"Question: {a.question}\nUser Answer: {a.userAnswer}\nCorrect Answer: {a.correctAnswer}"
                for a in incorrect_answers
            )
            return (
                "Analyze this student's performance and provide recommendations for improvement:\n\n"
                f"Quiz Scores:\n{scores}\n\nIncorrect Answers:\n{incorrect}"
            )

        return self._run("analyze_performance", prompt, "completion", "")

    def create_audiobook(self, record: FileRecord) -> AIResult:
        """
        Prépare le texte de narration (segments alignés sur les phrases) ;
        la synthèse vocale est laissée au client.
        """
        try:
            text = self.extractor(self.content.resolve(record.uri), record.type)
        except Exception as e:
            logger.exception("Error creating audiobook for %s", record.id)
            return AIResult(success=False, payload={"segments": []}, error=str(e))
        segments: List[str] = split_segments(text, self.audio_segment_chars)
        return AIResult(success=True, payload={"segments": segments, "characters": len(text)})
