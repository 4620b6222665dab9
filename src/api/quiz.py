from fastapi import APIRouter, Depends, HTTPException, status

from src.conceptmap.errors import ConceptMapError
from src.conceptmap.models.quiz import AnswerEvaluation, Quiz
from src.conceptmap.services import quiz as quiz_service
from src.services.state import WorkspaceState
from .deps import get_state, to_http
from .schemas import QuizCreateRequest, QuizValidateRequest

router = APIRouter(prefix="/api/graph/quiz", tags=["quiz"])


@router.post("/create", response_model=Quiz)
async def create_quiz_endpoint(req: QuizCreateRequest, state: WorkspaceState = Depends(get_state)):
    """
    Build a quiz from the active conversation's graph (names and links only).
    """
    ws = state.workspace
    ticket = ws.begin_request()
    graph = ws.store(ticket.conversation_id).graph
    if graph is None or not graph.nodes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="The concept map is empty")
    try:
        quiz = await quiz_service.create_quiz(graph, req.difficulty, req.numQuestions, ws.context)
        ws.ensure_current(ticket)
    except ConceptMapError as e:
        raise to_http(e)
    return quiz


@router.post("/validate", response_model=AnswerEvaluation)
async def validate_answer_endpoint(req: QuizValidateRequest, state: WorkspaceState = Depends(get_state)):
    try:
        return await quiz_service.evaluate_answer(req.question, req.userAnswer, state.workspace.context)
    except ConceptMapError as e:
        raise to_http(e)
