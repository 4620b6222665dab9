from typing import Any, Dict, List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.conceptmap.errors import ConceptMapError, FragmentValidationError
from src.conceptmap.models.graph import ColorPalette, GraphNode
from src.conceptmap.palettes import all_palettes
from src.conceptmap.services import generation
from src.database.database import get_db
from src.services.state import WorkspaceState
from .deps import get_state, graph_view, merge_response, to_http
from .schemas import (
    GenerateRequest,
    GraphView,
    MergeResponse,
    NodeCreate,
    NodeUpdate,
    PaletteUpdate,
    RelationshipToggle,
)

router = APIRouter(
    prefix="/api/graph",
    tags=["graph"],
)


@router.get("/", response_model=GraphView)
async def read_graph_endpoint(state: WorkspaceState = Depends(get_state)):
    """
    The active conversation's graph (null until merged or cold-started).
    """
    return graph_view(state.workspace.store())


@router.get("/palettes", response_model=List[ColorPalette])
async def list_palettes_endpoint():
    return all_palettes()


@router.post("/cold-start", response_model=GraphView)
async def cold_start_endpoint(state: WorkspaceState = Depends(get_state), db: AsyncSession = Depends(get_db)):
    async with state.lock:
        store = state.workspace.store()
        store.cold_start()
        await state.persist(db)
    return graph_view(store)


@router.delete("/", response_model=GraphView)
async def delete_graph_endpoint(state: WorkspaceState = Depends(get_state), db: AsyncSession = Depends(get_db)):
    async with state.lock:
        store = state.workspace.store()
        store.delete_graph()
        await state.persist(db)
    return graph_view(store)


@router.post("/merge", response_model=MergeResponse)
async def merge_fragment_endpoint(fragment: Dict[str, Any], state: WorkspaceState = Depends(get_state), db: AsyncSession = Depends(get_db)):
    """
    Merge a name-addressed fragment into the active graph as one undoable action.
    """
    async with state.lock:
        store = state.workspace.store()
        try:
            result = store.apply_fragment(fragment)
        except FragmentValidationError as e:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail={"message": str(e), "errors": e.errors})
        await state.persist(db)
    return merge_response(store, result)


@router.post("/generate", response_model=MergeResponse)
async def generate_endpoint(req: GenerateRequest, state: WorkspaceState = Depends(get_state), db: AsyncSession = Depends(get_db)):
    """
    Add an assistant message to the active graph via the generation service.

    Responses that arrive after a conversation switch are discarded (409).
    """
    try:
        result = await generation.add_message_to_graph(state.workspace, req.assistantMessage, state.lock)
    except ConceptMapError as e:
        raise to_http(e)
    async with state.lock:
        await state.persist(db)
    return merge_response(state.workspace.store(), result)


@router.post("/nodes", response_model=GraphNode, status_code=status.HTTP_201_CREATED)
async def add_node_endpoint(req: NodeCreate, state: WorkspaceState = Depends(get_state), db: AsyncSession = Depends(get_db)):
    async with state.lock:
        node = state.workspace.store().add_node(req.name, req.info, req.edges)
        await state.persist(db)
    return node


@router.put("/nodes/{node_id}", response_model=GraphNode)
async def edit_node_endpoint(node_id: str, req: NodeUpdate, state: WorkspaceState = Depends(get_state), db: AsyncSession = Depends(get_db)):
    async with state.lock:
        try:
            node = state.workspace.store().edit_node(node_id, req.name, req.info, req.edges)
        except ConceptMapError as e:
            raise to_http(e)
        await state.persist(db)
    return node


@router.put("/links", response_model=GraphView)
async def replace_links_endpoint(links: List[Dict[str, Any]], state: WorkspaceState = Depends(get_state), db: AsyncSession = Depends(get_db)):
    """
    Save the link list as the renderer holds it (endpoints as ids or node objects).
    """
    async with state.lock:
        store = state.workspace.store()
        try:
            store.replace_links(links)
        except FragmentValidationError as e:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
        except ConceptMapError as e:
            raise to_http(e)
        await state.persist(db)
    return graph_view(store)


@router.delete("/nodes/{node_id}", response_model=GraphView)
async def delete_node_endpoint(node_id: str, state: WorkspaceState = Depends(get_state), db: AsyncSession = Depends(get_db)):
    async with state.lock:
        store = state.workspace.store()
        try:
            store.delete_node(node_id)
        except ConceptMapError as e:
            raise to_http(e)
        await state.persist(db)
    return graph_view(store)


@router.get("/nodes/{node_id}/relationships")
async def node_relationships_endpoint(node_id: str, state: WorkspaceState = Depends(get_state)):
    store = state.workspace.store()
    try:
        rels = store.relationships(node_id)
    except ConceptMapError as e:
        raise to_http(e)
    shown = bool(store.graph.settings.showNodeRelationships.get(node_id, False))
    return {"nodeId": node_id, "show": shown, "relationships": rels}


@router.post("/undo", response_model=GraphView)
async def undo_endpoint(state: WorkspaceState = Depends(get_state), db: AsyncSession = Depends(get_db)):
    async with state.lock:
        store = state.workspace.store()
        if store.undo():
            await state.persist(db)
    return graph_view(store)


@router.post("/redo", response_model=GraphView)
async def redo_endpoint(state: WorkspaceState = Depends(get_state), db: AsyncSession = Depends(get_db)):
    async with state.lock:
        store = state.workspace.store()
        if store.redo():
            await state.persist(db)
    return graph_view(store)


@router.put("/settings/palette", response_model=GraphView)
async def set_palette_endpoint(req: PaletteUpdate, state: WorkspaceState = Depends(get_state), db: AsyncSession = Depends(get_db)):
    async with state.lock:
        store = state.workspace.store()
        try:
            store.set_color_palette(req.colorPaletteId)
        except ConceptMapError as e:
            raise to_http(e)
        await state.persist(db)
    return graph_view(store)


@router.put("/settings/relationships/{node_id}")
async def toggle_relationships_endpoint(node_id: str, req: RelationshipToggle, state: WorkspaceState = Depends(get_state), db: AsyncSession = Depends(get_db)):
    async with state.lock:
        try:
            shown = state.workspace.store().toggle_node_relationships(node_id, req.show)
        except ConceptMapError as e:
            raise to_http(e)
        await state.persist(db)
    return {"nodeId": node_id, "show": shown}


@router.get("/colors")
async def node_colors_endpoint(state: WorkspaceState = Depends(get_state)) -> Dict[str, str]:
    return state.workspace.store().node_colors()
