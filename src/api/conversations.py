from typing import Any, Dict, List
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from src.conceptmap.errors import ConceptMapError
from src.conceptmap.models.conversation import ChatMessage, Conversation
from src.database.database import get_db
from src.services import filesync
from src.services.state import WorkspaceState
from .deps import get_state, to_http
from .schemas import ConversationCreate, ConversationSummary, ConversationUpdate, ImportResponse, MessageCreate

router = APIRouter(
    prefix="/api/conversations",
    tags=["conversations"],
)


def _summary(state: WorkspaceState, conv: Conversation) -> ConversationSummary:
    return ConversationSummary(
        id=conv.id,
        title=conv.title,
        createdAt=conv.createdAt.isoformat(),
        messageCount=len(conv.messages),
        hasGraph=conv.graphData is not None,
        isCurrent=conv.id == state.workspace.current_id,
    )


@router.get("/", response_model=List[ConversationSummary])
async def list_conversations_endpoint(state: WorkspaceState = Depends(get_state)):
    """
    List conversations, most recently active first.
    """
    return [_summary(state, c) for c in state.workspace.list_conversations()]


@router.post("/", response_model=Conversation, status_code=status.HTTP_201_CREATED)
async def create_conversation_endpoint(req: ConversationCreate, state: WorkspaceState = Depends(get_state), db: AsyncSession = Depends(get_db)):
    """
    Create a new conversation and make it the active one.
    """
    async with state.lock:
        conv = state.workspace.create_conversation(req.title or "New Chat")
        await state.persist(db)
    return conv


@router.get("/export")
async def export_conversations_endpoint(state: WorkspaceState = Depends(get_state)):
    headers = {"Content-Disposition": f'attachment; filename="{filesync.export_filename()}"'}
    return JSONResponse(content=filesync.export_payload(state.workspace), headers=headers)


@router.post("/import", response_model=ImportResponse)
async def import_conversations_endpoint(payload: Dict[str, Any], state: WorkspaceState = Depends(get_state), db: AsyncSession = Depends(get_db)):
    """
    Replace every conversation with the uploaded export.
    """
    async with state.lock:
        try:
            count = filesync.import_into(state.workspace, payload)
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
        await state.persist(db)
    return ImportResponse(imported=count, currentId=state.workspace.current_id)


@router.get("/{conversation_id}", response_model=Conversation)
async def read_conversation_endpoint(conversation_id: str, state: WorkspaceState = Depends(get_state)):
    try:
        return state.workspace.get(conversation_id)
    except ConceptMapError as e:
        raise to_http(e)


@router.patch("/{conversation_id}", response_model=Conversation)
async def rename_conversation_endpoint(conversation_id: str, req: ConversationUpdate, state: WorkspaceState = Depends(get_state), db: AsyncSession = Depends(get_db)):
    async with state.lock:
        try:
            conv = state.workspace.rename_conversation(conversation_id, req.title)
        except ConceptMapError as e:
            raise to_http(e)
        await state.persist(db)
    return conv


@router.delete("/{conversation_id}")
async def delete_conversation_endpoint(conversation_id: str, state: WorkspaceState = Depends(get_state), db: AsyncSession = Depends(get_db)):
    """
    Delete a conversation. If it was active, another one takes its place.
    """
    async with state.lock:
        try:
            state.workspace.delete_conversation(conversation_id)
        except ConceptMapError as e:
            raise to_http(e)
        await state.persist(db)
    return {"deleted": conversation_id, "currentId": state.workspace.current_id}


@router.post("/{conversation_id}/activate", response_model=Conversation)
async def activate_conversation_endpoint(conversation_id: str, state: WorkspaceState = Depends(get_state)):
    """
    Switch the active conversation. Undo/redo history is cleared.
    """
    async with state.lock:
        try:
            return state.workspace.switch_conversation(conversation_id)
        except ConceptMapError as e:
            raise to_http(e)


@router.post("/{conversation_id}/messages", response_model=Conversation, status_code=status.HTTP_201_CREATED)
async def add_message_endpoint(conversation_id: str, req: MessageCreate, state: WorkspaceState = Depends(get_state), db: AsyncSession = Depends(get_db)):
    async with state.lock:
        try:
            conv = state.workspace.add_message(ChatMessage(role=req.role, content=req.content), conversation_id)
        except ConceptMapError as e:
            raise to_http(e)
        await state.persist(db)
    return conv
