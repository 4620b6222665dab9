"""
Boundary translation between the canonical graph and the outside world.

Outbound, the id-addressed graph is stripped to names for the generation and
quiz services. Inbound, generation responses are validated into fragments.
Renderers may hand back links whose endpoints are either bare ids or embedded
node objects; those are resolved to plain ids here, once, so the rest of the
engine only ever sees ids.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union
import logging

from .errors import FragmentValidationError
from .identity import IdentityResolver
from .merge import validate_fragment
from .models.graph import GraphFragment, GraphLink, KnowledgeGraph, WireGraph, WireLink, WireNode

logger = logging.getLogger(__name__)


# ---- Link endpoint variant ---------------------------------------------------

@dataclass(frozen=True)
class NodeRef:
    """Endpoint given as a bare node id."""
    id: str


@dataclass(frozen=True)
class EmbeddedNode:
    """Endpoint given as a node object carrying its own id (and maybe name)."""
    id: str
    name: Optional[str] = None


Endpoint = Union[NodeRef, EmbeddedNode]


def parse_endpoint(raw: Any) -> Endpoint:
    if isinstance(raw, str):
        return NodeRef(raw)
    if isinstance(raw, Mapping) and "id" in raw:
        return EmbeddedNode(id=str(raw["id"]), name=raw.get("name"))
    node_id = getattr(raw, "id", None)
    if node_id is not None:
        return EmbeddedNode(id=str(node_id), name=getattr(raw, "name", None))
    raise FragmentValidationError(f"Unrecognized link endpoint: {raw!r}")


def links_from_render(raw_links: List[Mapping[str, Any]]) -> List[GraphLink]:
    """Normalize renderer link objects into id-addressed links."""
    out: List[GraphLink] = []
    for raw in raw_links:
        src = parse_endpoint(raw.get("source"))
        tgt = parse_endpoint(raw.get("target"))
        out.append(GraphLink(source=src.id, target=tgt.id, label=str(raw.get("label", ""))))
    return out


# ---- Outbound ----------------------------------------------------------------

def to_wire(graph: Optional[KnowledgeGraph], include_info: bool = False) -> WireGraph:
    """Strip a canonical graph to its name-addressed form.

    Links whose endpoints do not resolve to a node in the graph are omitted.
    """
    if graph is None:
        return WireGraph()
    names = {n.id: n.name for n in graph.nodes}
    if include_info:
        nodes: List[Union[str, WireNode]] = [WireNode(name=n.name, info=n.info) for n in graph.nodes]
    else:
        nodes = [n.name for n in graph.nodes]
    links: List[WireLink] = []
    for l in graph.links:
        src, tgt = names.get(l.source), names.get(l.target)
        if src is None or tgt is None:
            logger.debug("Omitting link with unknown endpoint: %s -> %s", l.source, l.target)
            continue
        links.append(WireLink(source=src, target=tgt, label=l.label))
    return WireGraph(nodes=nodes, links=links)


def generation_context(graph: Optional[KnowledgeGraph], include_info: bool = False) -> Optional[Dict[str, Any]]:
    """`existingGraph` for a generation request, or None for an empty graph."""
    if graph is None:
        return None
    return to_wire(graph, include_info=include_info).model_dump(mode="json")


def quiz_payload(graph: Optional[KnowledgeGraph]) -> Dict[str, Any]:
    return to_wire(graph, include_info=False).model_dump(mode="json")


def resolve_wire_names(graph: KnowledgeGraph, wire: WireGraph, resolver: Optional[IdentityResolver] = None) -> List[Optional[str]]:
    """Re-resolve the node names of a stripped graph to ids in `graph`."""
    resolver = resolver or IdentityResolver()
    names = [n if isinstance(n, str) else n.name for n in wire.nodes]
    return resolver.resolve_names(graph.nodes, names)


# ---- Inbound -----------------------------------------------------------------

def fragment_from_response(payload: Any) -> GraphFragment:
    """Validate a generation-service response into a merge-ready fragment."""
    return validate_fragment(payload)


# ---- Render helpers ----------------------------------------------------------

def node_relationships(graph: KnowledgeGraph, node_id: str) -> List[Dict[str, str]]:
    """Incident links of a node as name triples, for the node tooltip."""
    names = {n.id: n.name for n in graph.nodes}
    out: List[Dict[str, str]] = []
    for l in graph.links:
        if l.source != node_id and l.target != node_id:
            continue
        out.append({
            "sourceName": names.get(l.source, l.source),
            "label": l.label,
            "targetName": names.get(l.target, l.target),
        })
    return out
