"""
Conversation-scoped owner of the canonical graph.

Every mutating action goes through `GraphStore`: it computes the new graph,
records exactly one history checkpoint, reconciles per-node settings,
installs the result and notifies subscribers (persistence, renderers).
If computing the new graph fails, nothing is checkpointed or installed.
"""
from __future__ import annotations
from typing import Any, Callable, Dict, List, Mapping, Optional
import logging

from .adapter import links_from_render, node_relationships
from .errors import GraphNotFoundError, NodeNotFoundError
from .history import DEFAULT_HISTORY_CAPACITY, HistoryManager
from .identity import IdentityResolver, new_id
from .merge import MergeEngine, MergeResult
from .models.graph import GraphLink, GraphNode, KnowledgeGraph, NodeEdge, empty_graph
from .palettes import default_palette
from .settings import ColorAssigner, SettingsManager

logger = logging.getLogger(__name__)

Listener = Callable[[str, Optional[KnowledgeGraph]], None]


def _edges_to_links(node_id: str, edges: List[NodeEdge], known_ids: set) -> List[GraphLink]:
    links: List[GraphLink] = []
    for e in edges:
        if e.nodeId not in known_ids:
            logger.warning("Other node not found for edge %s", e.nodeId)
            continue
        if e.direction == "source":
            links.append(GraphLink(source=node_id, target=e.nodeId, label=e.label))
        else:
            links.append(GraphLink(source=e.nodeId, target=node_id, label=e.label))
    return links


class GraphStore:
    def __init__(
        self,
        conversation_id: str,
        graph: Optional[KnowledgeGraph] = None,
        history: Optional[HistoryManager] = None,
        resolver: Optional[IdentityResolver] = None,
        default_palette_id: Optional[str] = None,
        history_capacity: int = DEFAULT_HISTORY_CAPACITY,
    ):
        self.conversation_id = conversation_id
        self.default_palette_id = default_palette_id or default_palette().id
        self.resolver = resolver or IdentityResolver()
        self.history = history or HistoryManager(history_capacity, sentinel_palette_id=self.default_palette_id)
        self.merger = MergeEngine(self.resolver, self.default_palette_id)
        self.settings = SettingsManager()
        self.colors = ColorAssigner()
        self._listeners: List[Listener] = []
        self._graph: Optional[KnowledgeGraph] = None
        self.load(graph)

    # ---- state -----------------------------------------------------------------

    @property
    def graph(self) -> Optional[KnowledgeGraph]:
        return self._graph

    def snapshot(self) -> Optional[KnowledgeGraph]:
        return self._graph.model_copy(deep=True) if self._graph is not None else None

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def load(self, graph: Optional[KnowledgeGraph]) -> None:
        """Install a graph without recording history (e.g. from storage)."""
        self._graph = self.settings.reconcile(graph) if graph is not None else None
        self._sync_colors()

    def _sync_colors(self) -> None:
        self.colors.use_palette(self._graph.settings.colorPaletteId if self._graph is not None else None)

    def _notify(self) -> None:
        for listener in self._listeners:
            listener(self.conversation_id, self._graph)

    def _base(self) -> KnowledgeGraph:
        if self._graph is None:
            return empty_graph(self.default_palette_id)
        return self._graph.model_copy(deep=True)

    def _require_graph(self) -> KnowledgeGraph:
        if self._graph is None:
            raise GraphNotFoundError(self.conversation_id)
        return self._graph

    def record_checkpoint(self) -> None:
        self.history.record_checkpoint(self._graph)

    def _commit(self, new_graph: Optional[KnowledgeGraph], checkpoint: bool = True) -> None:
        if checkpoint:
            self.record_checkpoint()
        self._graph = self.settings.reconcile(new_graph) if new_graph is not None else None
        self._sync_colors()
        self._notify()

    # ---- mutations -------------------------------------------------------------

    def cold_start(self) -> KnowledgeGraph:
        """Start an empty graph for a conversation that has none."""
        if self._graph is not None:
            return self._graph
        self._commit(empty_graph(self.default_palette_id))
        return self._graph

    def apply_fragment(self, fragment) -> MergeResult:
        """Merge one generation fragment as a single undoable action."""
        result = self.merger.merge_with_report(self._graph, fragment)
        self._commit(result.graph)
        return result

    def add_node(self, name: str, info: str, edges: Optional[List[NodeEdge]] = None) -> GraphNode:
        base = self._base()
        node = GraphNode(id=new_id(), name=name, info=info)
        known = set(base.node_ids()) | {node.id}
        base.nodes.append(node)
        base.links.extend(_edges_to_links(node.id, edges or [], known))
        base.settings = self.settings.on_nodes_added(base.settings, [node.id])
        self._commit(base)
        return node

    def edit_node(self, node_id: str, name: str, info: str, edges: Optional[List[NodeEdge]] = None) -> GraphNode:
        """Replace a node's name and info.

        When `edges` is given, every incident link is replaced by the
        declared edge list; otherwise links are left alone.
        """
        base = self._require_graph().model_copy(deep=True)
        node = base.find_node(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        node.name = name
        node.info = info
        if edges is not None:
            kept = [l for l in base.links if l.source != node_id and l.target != node_id]
            base.links = kept + _edges_to_links(node_id, edges, set(base.node_ids()))
        self._commit(base)
        return node

    def delete_node(self, node_id: str) -> None:
        """Remove a node with its incident links and settings entry."""
        base = self._require_graph().model_copy(deep=True)
        if base.find_node(node_id) is None:
            raise NodeNotFoundError(node_id)
        base.nodes = [n for n in base.nodes if n.id != node_id]
        base.links = [l for l in base.links if l.source != node_id and l.target != node_id]
        base.settings = self.settings.on_nodes_removed(base.settings, [node_id])
        self._commit(base)

    def replace_links(self, raw_links: List[Mapping[str, Any]]) -> KnowledgeGraph:
        """Install the link list handed back by a renderer.

        Endpoints may be bare ids or embedded node objects. Links whose
        endpoints are not in the graph are dropped.
        """
        base = self._require_graph().model_copy(deep=True)
        known = set(base.node_ids())
        links: List[GraphLink] = []
        for l in links_from_render(raw_links):
            if l.source not in known or l.target not in known:
                logger.warning("Dropping link with unknown endpoint: %s -> %s", l.source, l.target)
                continue
            links.append(l)
        base.links = links
        self._commit(base)
        return self._graph

    def delete_graph(self) -> None:
        if self._graph is None:
            return
        self._commit(None)

    def set_color_palette(self, palette_id: str) -> KnowledgeGraph:
        updated = self.settings.set_color_palette(self._require_graph(), palette_id)
        self._commit(updated)
        return self._graph

    def toggle_node_relationships(self, node_id: str, show: Optional[bool] = None) -> bool:
        """Flip (or set) the relationship visibility flag of a node.

        View-only: persisted, but not recorded in history.
        """
        graph = self._require_graph()
        if show is None:
            show = not graph.settings.showNodeRelationships.get(node_id, False)
        self._commit(self.settings.set_relationship_visibility(graph, node_id, show), checkpoint=False)
        return show

    # ---- history ---------------------------------------------------------------

    def undo(self) -> bool:
        if not self.history.can_undo():
            return False
        restored = self.history.undo(self._graph)
        self._commit(restored, checkpoint=False)
        return True

    def redo(self) -> bool:
        if not self.history.can_redo():
            return False
        restored = self.history.redo(self._graph)
        self._commit(restored, checkpoint=False)
        return True

    def reset_history(self) -> None:
        self.history.reset()

    # ---- render queries --------------------------------------------------------

    def node_colors(self) -> Dict[str, str]:
        if self._graph is None:
            return {}
        return self.colors.colors_for(self._graph.nodes)

    def relationships(self, node_id: str) -> List[Dict[str, str]]:
        graph = self._require_graph()
        if graph.find_node(node_id) is None:
            raise NodeNotFoundError(node_id)
        return node_relationships(graph, node_id)
