# conceptmap/models/graph.py
from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Dict, List, Literal, Optional


class GraphNode(BaseModel):
    id: str
    name: str
    info: str


class GraphLink(BaseModel):
    source: str   # node id
    target: str   # node id
    label: str


class GraphSettings(BaseModel):
    colorPaletteId: str
    showNodeRelationships: Dict[str, bool] = Field(default_factory=dict)


class KnowledgeGraph(BaseModel):
    """Canonical, id-addressed graph owned by exactly one conversation."""
    nodes: List[GraphNode] = Field(default_factory=list)
    links: List[GraphLink] = Field(default_factory=list)
    settings: GraphSettings

    def node_ids(self) -> List[str]:
        return [n.id for n in self.nodes]

    def find_node(self, node_id: str) -> Optional[GraphNode]:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None


def empty_graph(palette_id: str) -> KnowledgeGraph:
    """The canonical empty graph, also used as the history sentinel."""
    return KnowledgeGraph(
        nodes=[],
        links=[],
        settings=GraphSettings(colorPaletteId=palette_id, showNodeRelationships={}),
    )


# ---- Name-addressed fragments produced by the generation service -------------

class FragmentNode(BaseModel):
    name: str
    info: str


class FragmentLink(BaseModel):
    source: str   # concept name
    target: str   # concept name
    label: str = ""


class GraphFragment(BaseModel):
    nodes: List[FragmentNode] = Field(default_factory=list)
    links: List[FragmentLink] = Field(default_factory=list)


# ---- Outbound wire format ----------------------------------------------------

class WireNode(BaseModel):
    name: str
    info: str


class WireLink(BaseModel):
    source: str
    target: str
    label: str


class WireGraph(BaseModel):
    """Stripped graph sent to external services.

    `nodes` holds bare names, or `{name, info}` objects when info is kept.
    """
    nodes: List[str | WireNode] = Field(default_factory=list)
    links: List[WireLink] = Field(default_factory=list)


# ---- Manual edit payloads ----------------------------------------------------

class NodeEdge(BaseModel):
    """Edge declared from the add/edit dialog, relative to the edited node.

    direction == "source" means the edited node is the link source.
    """
    nodeId: str
    label: str = ""
    direction: Literal["source", "target"] = "source"


class ColorPalette(BaseModel):
    id: str
    name: str
    colors: List[str]
    nodeHighlight: str
    linkHighlight: str
    textColor: str
