"""
Fragment merge for the concept map.

A fragment is the name-addressed graph returned by the generation service.
Merging it into the canonical, id-addressed graph is a pure function: the
inputs are never mutated and the result is a new graph. Existing nodes win
over fragment nodes with the same name, links whose endpoints cannot be
resolved are dropped, and links already present (same source/target pair,
direction-sensitive) are not duplicated.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, List, Optional, Set, Tuple
import logging

from pydantic import ValidationError

from .errors import FragmentValidationError, UnresolvedReferenceError
from .identity import IdentityResolver
from .models.graph import (
    GraphFragment,
    GraphLink,
    GraphNode,
    GraphSettings,
    KnowledgeGraph,
)
from .palettes import default_palette

logger = logging.getLogger(__name__)


def validate_fragment(raw: Any) -> GraphFragment:
    """Validate a raw fragment payload.

    Raises FragmentValidationError when a node lacks `name` or `info`, or when
    the payload otherwise violates the fragment schema.
    """
    if isinstance(raw, GraphFragment):
        return raw
    if not isinstance(raw, dict):
        raise FragmentValidationError(f"Fragment must be an object, got {type(raw).__name__}")
    try:
        return GraphFragment.model_validate(raw)
    except ValidationError as e:
        raise FragmentValidationError("Malformed graph fragment", errors=e.errors()) from e


@dataclass
class MergeReport:
    added_node_ids: List[str] = field(default_factory=list)
    added_links: int = 0
    duplicate_names: List[str] = field(default_factory=list)
    duplicate_links: int = 0
    dropped_links: List[UnresolvedReferenceError] = field(default_factory=list)


@dataclass
class MergeResult:
    graph: KnowledgeGraph
    report: MergeReport


class MergeEngine:
    def __init__(self, resolver: Optional[IdentityResolver] = None, default_palette_id: Optional[str] = None):
        self.resolver = resolver or IdentityResolver()
        self.default_palette_id = default_palette_id or default_palette().id

    def merge(self, existing: Optional[KnowledgeGraph], fragment: Any) -> KnowledgeGraph:
        return self.merge_with_report(existing, fragment).graph

    def merge_with_report(self, existing: Optional[KnowledgeGraph], fragment: Any) -> MergeResult:
        frag = validate_fragment(fragment)
        report = MergeReport()

        if existing is None or not existing.nodes:
            base_nodes: List[GraphNode] = []
            base_links: List[GraphLink] = []
            settings = GraphSettings(colorPaletteId=self.default_palette_id, showNodeRelationships={})
        else:
            copied = existing.model_copy(deep=True)
            base_nodes, base_links, settings = copied.nodes, copied.links, copied.settings

        # Partition fragment nodes into new and duplicate, first write wins
        known = self.resolver.name_index(base_nodes)
        seen_new: Set[str] = set()
        new_specs = []
        for fn in frag.nodes:
            k = self.resolver.key(fn.name)
            if k in known or k in seen_new:
                report.duplicate_names.append(fn.name)
                continue
            seen_new.add(k)
            new_specs.append(fn)

        name_to_id = self.resolver.assign_ids(base_nodes, [fn.name for fn in new_specs])
        new_nodes = [
            GraphNode(id=name_to_id[self.resolver.key(fn.name)], name=fn.name, info=fn.info)
            for fn in new_specs
        ]
        report.added_node_ids = [n.id for n in new_nodes]

        existing_pairs: Set[Tuple[str, str]] = {(l.source, l.target) for l in base_links}
        new_links: List[GraphLink] = []
        for fl in frag.links:
            src = self.resolver.lookup(name_to_id, fl.source)
            tgt = self.resolver.lookup(name_to_id, fl.target)
            if src is None or tgt is None:
                err = UnresolvedReferenceError(fl.source, fl.target, fl.label)
                logger.warning("Dropping invalid link: %s -> %s", fl.source, fl.target)
                report.dropped_links.append(err)
                continue
            if (src, tgt) in existing_pairs:
                report.duplicate_links += 1
                continue
            existing_pairs.add((src, tgt))
            new_links.append(GraphLink(source=src, target=tgt, label=fl.label))
        report.added_links = len(new_links)

        show = dict(settings.showNodeRelationships)
        for n in new_nodes:
            show[n.id] = False

        merged = KnowledgeGraph(
            nodes=base_nodes + new_nodes,
            links=base_links + new_links,
            settings=GraphSettings(colorPaletteId=settings.colorPaletteId, showNodeRelationships=show),
        )
        logger.info(
            "Merged fragment: %d new nodes, %d new links, %d duplicate names, %d dropped links",
            len(new_nodes), len(new_links), len(report.duplicate_names), len(report.dropped_links),
        )
        return MergeResult(graph=merged, report=report)
