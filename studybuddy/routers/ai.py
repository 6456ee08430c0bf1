from fastapi import APIRouter, Depends

from studybuddy.core.deps import get_gateway, get_library
from studybuddy.models.ai import (
    AIResult,
    ContinueDiscussionRequest,
    DiscussionRequest,
    PerformanceRequest,
    QuestionsRequest,
)
from studybuddy.services.ai_gateway import AIGateway
from studybuddy.services.library import FileLibrary

router = APIRouter(prefix="/v1/ai", tags=["ai"])

# Les échecs IA reviennent en 200 avec success=false ; seul un fichier inconnu donne 404.


@router.post("/files/{file_id}/questions", response_model=AIResult)
def generate_questions(
    file_id: str,
    body: QuestionsRequest,
    library: FileLibrary = Depends(get_library),
    gateway: AIGateway = Depends(get_gateway),
):
    record = library.get_details(file_id)
    return gateway.generate_questions(record, body.difficulty, body.count)


@router.post("/files/{file_id}/notes", response_model=AIResult)
def generate_notes(
    file_id: str,
    library: FileLibrary = Depends(get_library),
    gateway: AIGateway = Depends(get_gateway),
):
    return gateway.generate_study_notes(library.get_details(file_id))


@router.post("/files/{file_id}/discussion", response_model=AIResult)
def start_discussion(
    file_id: str,
    body: DiscussionRequest,
    library: FileLibrary = Depends(get_library),
    gateway: AIGateway = Depends(get_gateway),
):
    return gateway.start_discussion(library.get_details(file_id), body.topic)


@router.post("/files/{file_id}/audiobook", response_model=AIResult)
def create_audiobook(
    file_id: str,
    library: FileLibrary = Depends(get_library),
    gateway: AIGateway = Depends(get_gateway),
):
    return gateway.create_audiobook(library.get_details(file_id))


@router.post("/discussion/continue", response_model=AIResult)
def continue_discussion(body: ContinueDiscussionRequest, gateway: AIGateway = Depends(get_gateway)):
    return gateway.continue_discussion(body.previousMessages, body.userMessage)


@router.post("/performance", response_model=AIResult)
def analyze_performance(
    body: PerformanceRequest,
    library: FileLibrary = Depends(get_library),
    gateway: AIGateway = Depends(get_gateway),
):
    scores = body.quizScores
    if body.fileId:
        scores = [s.score for s in library.peek(body.fileId).quizScores]
    return gateway.analyze_performance(scores, body.incorrectAnswers)
