"""
Per-node UI metadata that travels with a graph.

`SettingsManager` keeps `showNodeRelationships` congruent with the node set.
`ColorAssigner` holds the transient node -> color mapping used while
rendering; it is never persisted.
"""
from __future__ import annotations
from typing import Dict, Iterable, List, Optional

from .errors import NodeNotFoundError, UnknownPaletteError
from .models.graph import GraphNode, GraphSettings, KnowledgeGraph
from .palettes import get_palette, has_palette


class SettingsManager:
    def on_nodes_added(self, settings: GraphSettings, node_ids: Iterable[str]) -> GraphSettings:
        show = dict(settings.showNodeRelationships)
        for nid in node_ids:
            show.setdefault(nid, False)
        return GraphSettings(colorPaletteId=settings.colorPaletteId, showNodeRelationships=show)

    def on_nodes_removed(self, settings: GraphSettings, node_ids: Iterable[str]) -> GraphSettings:
        removed = set(node_ids)
        show = {k: v for k, v in settings.showNodeRelationships.items() if k not in removed}
        return GraphSettings(colorPaletteId=settings.colorPaletteId, showNodeRelationships=show)

    def reconcile(self, graph: KnowledgeGraph) -> KnowledgeGraph:
        """Return a copy whose settings keys equal the node-id set exactly.

        Existing flags are kept; missing nodes get False; stale keys go.
        """
        current = graph.settings.showNodeRelationships
        show = {n.id: current.get(n.id, False) for n in graph.nodes}
        return graph.model_copy(update={
            "settings": GraphSettings(colorPaletteId=graph.settings.colorPaletteId, showNodeRelationships=show),
        })

    def set_relationship_visibility(self, graph: KnowledgeGraph, node_id: str, show: bool) -> KnowledgeGraph:
        if graph.find_node(node_id) is None:
            raise NodeNotFoundError(node_id)
        flags = dict(graph.settings.showNodeRelationships)
        flags[node_id] = bool(show)
        return graph.model_copy(update={
            "settings": GraphSettings(colorPaletteId=graph.settings.colorPaletteId, showNodeRelationships=flags),
        })

    def set_color_palette(self, graph: KnowledgeGraph, palette_id: str) -> KnowledgeGraph:
        if not has_palette(palette_id):
            raise UnknownPaletteError(palette_id)
        return graph.model_copy(update={
            "settings": GraphSettings(
                colorPaletteId=palette_id,
                showNodeRelationships=dict(graph.settings.showNodeRelationships),
            ),
        })


class ColorAssigner:
    """Lazily assigns palette colors to nodes in insertion order.

    Assignments stay stable across re-renders and are dropped in full when
    the palette changes.
    """

    def __init__(self, palette_id: Optional[str] = None):
        self._palette_id = palette_id
        self._assigned: Dict[str, str] = {}

    @property
    def palette_id(self) -> Optional[str]:
        return self._palette_id

    def use_palette(self, palette_id: Optional[str]) -> None:
        if palette_id != self._palette_id:
            self._palette_id = palette_id
            self._assigned.clear()

    def color_for(self, node_id: str) -> str:
        color = self._assigned.get(node_id)
        if color is None:
            colors = get_palette(self._palette_id).colors
            color = colors[len(self._assigned) % len(colors)]
            self._assigned[node_id] = color
        return color

    def colors_for(self, nodes: List[GraphNode]) -> Dict[str, str]:
        return {n.id: self.color_for(n.id) for n in nodes}
