"""
Name <-> id resolution over a node set.

Concepts arriving from the generation service are addressed by name only,
while every stored node and link is addressed by an opaque id. This module
is the single place where the two are reconciled, and therefore the dedup
key for "is this concept already known".

By default names are compared exactly (case- and whitespace-sensitive).
Passing ``normalize=True`` compares trimmed, case-folded names instead.
"""
from __future__ import annotations
from typing import Callable, Dict, Iterable, List, Optional, Sequence
import uuid

from .models.graph import GraphNode


def new_id() -> str:
    return str(uuid.uuid4())


class IdentityResolver:
    def __init__(self, normalize: bool = False, id_factory: Callable[[], str] = new_id):
        self.normalize = normalize
        self._id_factory = id_factory

    def key(self, name: str) -> str:
        if self.normalize:
            return " ".join(name.split()).casefold()
        return name

    def name_index(self, nodes: Iterable[GraphNode]) -> Dict[str, str]:
        """Map of name key -> id. The first node holding a name wins."""
        index: Dict[str, str] = {}
        for n in nodes:
            index.setdefault(self.key(n.name), n.id)
        return index

    def resolve(self, nodes: Iterable[GraphNode], name: str) -> Optional[str]:
        """Return the id of the node named `name`, or None if not found."""
        return self.name_index(nodes).get(self.key(name))

    def lookup(self, name_to_id: Dict[str, str], name: str) -> Optional[str]:
        return name_to_id.get(self.key(name))

    def is_known(self, nodes: Iterable[GraphNode], name: str) -> bool:
        return self.resolve(nodes, name) is not None

    def assign_ids(self, nodes: Sequence[GraphNode], names: Iterable[str]) -> Dict[str, str]:
        """Give every previously unseen name a fresh id.

        Returns a combined name key -> id map covering the existing nodes and
        the newly assigned names. Names already present keep their id.
        """
        name_to_id = self.name_index(nodes)
        for name in names:
            k = self.key(name)
            if k not in name_to_id:
                name_to_id[k] = self._id_factory()
        return name_to_id

    def id_to_name(self, nodes: Iterable[GraphNode]) -> Dict[str, str]:
        return {n.id: n.name for n in nodes}

    def resolve_names(self, nodes: Sequence[GraphNode], names: List[str]) -> List[Optional[str]]:
        index = self.name_index(nodes)
        return [index.get(self.key(n)) for n in names]
