from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple


class NodeKind(Enum):
    START = "start"
    SAY = "say"
    CHOICE = "choice"
    JOIN = "join"


class Step(Enum):
    """ Outcome of an advance request. ENDED means there was nothing to advance to. """
    ADVANCED = "advanced"
    ENDED = "ended"


@dataclass(frozen=True)
class Actor:
    slug: str
    name: str
    asset: Optional[str] = None     # Appearance asset reference (sprite, portrait...)


@dataclass(frozen=True)
class Node:
    id: int
    kind: NodeKind
    text: Optional[str] = None
    actors: Tuple[str, ...] = ()    # Actor slugs, resolved against the document's actors
    sound: Optional[str] = None     # Sound-effect reference, SAY only


@dataclass(frozen=True)
class Edge:
    src: int
    dst: int
    label: Optional[str] = None     # Choice text when src is a CHOICE node


@dataclass(frozen=True)
class NodeView:
    """ Read-only snapshot of the active node, with actors resolved. """
    id: int
    kind: NodeKind
    text: Optional[str]
    actors: Tuple[Actor, ...]
    choices: Tuple[str, ...]
    sound: Optional[str]


@dataclass(frozen=True)
class GraphDocument:
    nodes: Mapping[int, Node]
    edges: Tuple[Edge, ...]
    actors: Mapping[str, Actor]
    start: int
    aliases: Mapping[Any, int] = field(default_factory=dict)

    def __post_init__(self):
        # Freeze the mappings and precompute adjacency; edge order is preserved
        object.__setattr__(self, "nodes", MappingProxyType(dict(self.nodes)))
        object.__setattr__(self, "actors", MappingProxyType(dict(self.actors)))
        object.__setattr__(self, "aliases", MappingProxyType(dict(self.aliases)))
        object.__setattr__(self, "edges", tuple(self.edges))

        outgoing: Dict[int, List[Edge]] = {nid: [] for nid in self.nodes}
        incoming: Dict[int, List[Edge]] = {nid: [] for nid in self.nodes}
        for e in self.edges:
            outgoing[e.src].append(e)
            incoming[e.dst].append(e)
        object.__setattr__(self, "_out", {k: tuple(v) for k, v in outgoing.items()})
        object.__setattr__(self, "_in", {k: tuple(v) for k, v in incoming.items()})

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def node(self, node_id: int) -> Node:
        return self.nodes[node_id]

    def successors(self, node_id: int) -> Tuple[Edge, ...]:
        return self._out[node_id]

    def predecessors(self, node_id: int) -> Tuple[Edge, ...]:
        return self._in[node_id]

    def resolve(self, alias: Any) -> int:
        return self.aliases[alias]
