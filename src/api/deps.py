from fastapi import HTTPException, Request, status

from src.conceptmap.errors import (
    ConceptMapError,
    ConversationNotFoundError,
    FragmentValidationError,
    GenerationServiceError,
    GraphNotFoundError,
    NodeNotFoundError,
    StaleResponseError,
    UnknownPaletteError,
)
from src.conceptmap.merge import MergeResult
from src.conceptmap.store import GraphStore
from src.services.state import WorkspaceState
from .schemas import GraphView, MergeResponse, MergeSummary


def get_state(request: Request) -> WorkspaceState:
    return request.app.state.workspace_state


def to_http(e: ConceptMapError) -> HTTPException:
    """Map engine errors to HTTP responses."""
    if isinstance(e, (ConversationNotFoundError, NodeNotFoundError, GraphNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, UnknownPaletteError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if isinstance(e, StaleResponseError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Conversation changed before the response arrived")
    if isinstance(e, FragmentValidationError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to generate graph")
    if isinstance(e, GenerationServiceError):
        return HTTPException(status_code=e.status_code, detail=str(e))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


def graph_view(store: GraphStore) -> GraphView:
    h = store.history
    return GraphView(
        conversationId=store.conversation_id,
        graphData=store.graph,
        canUndo=h.can_undo(),
        canRedo=h.can_redo(),
        undoDepth=h.undo_depth,
        redoDepth=h.redo_depth,
    )


def merge_response(store: GraphStore, result: MergeResult) -> MergeResponse:
    r = result.report
    return MergeResponse(
        **graph_view(store).model_dump(),
        merge=MergeSummary(
            addedNodeIds=r.added_node_ids,
            addedLinks=r.added_links,
            duplicateNames=r.duplicate_names,
            droppedLinks=[{"source": d.source, "target": d.target, "label": d.label} for d in r.dropped_links],
        ),
    )
