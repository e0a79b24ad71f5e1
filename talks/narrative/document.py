from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from talks.narrative.types import GraphDocument
from talks.narrative.builder import GraphBuilder
from talks.narrative.errors import (
    DocumentError,
    DuplicateNodeIdError,
    EmptyDocumentError,
    MissingNodeError,
    MultipleStartError,
    NoStartError,
)

KINDS = ("say", "choice", "join")


@dataclass(frozen=True)
class DocumentActor:
    slug: str
    name: str
    asset: Optional[str] = None


@dataclass(frozen=True)
class DocumentChoice:
    text: str
    next: Any                   # Id of the node this option leads to


@dataclass(frozen=True)
class DocumentNode:
    id: Any
    kind: str = "say"           # "say" | "choice" | "join"
    text: Optional[str] = None
    actors: Tuple[str, ...] = ()
    choices: Tuple[DocumentChoice, ...] = ()
    next: Any = None            # None -> the following node in the script, if any
    start: bool = False
    sound: Optional[str] = None


@dataclass(frozen=True)
class TalkDocument:
    """ An already-parsed talk: actors plus the script in document order. """
    actors: Tuple[DocumentActor, ...] = ()
    nodes: Tuple[DocumentNode, ...] = field(default_factory=tuple)


def _successor(nodes: List[DocumentNode], idx: int) -> Any:
    node = nodes[idx]
    if node.next is not None:
        return node.next
    if idx + 1 < len(nodes):
        return nodes[idx + 1].id
    return None


def _validate(doc: TalkDocument) -> Any:
    """ Document-level checks. Returns the id of the starting node. """
    nodes = list(doc.nodes)
    if not nodes:
        raise EmptyDocumentError()

    ids = set()
    start = None
    for n in nodes:
        if n.id in ids:
            raise DuplicateNodeIdError(n.id)
        ids.add(n.id)
        if n.kind not in KINDS:
            raise DocumentError(f"node {n.id!r} has unknown kind '{n.kind}'")
        if n.start:
            if start is not None:
                raise MultipleStartError(start, n.id)
            start = n.id

    for idx, n in enumerate(nodes):
        if n.kind == "choice":
            if not n.choices:
                raise DocumentError(f"choice node {n.id!r} has no choices")
            for c in n.choices:
                if c.next not in ids:
                    raise MissingNodeError(n.id, c.next)
        else:
            nxt = _successor(nodes, idx)
            if nxt is not None and nxt not in ids:
                raise MissingNodeError(n.id, nxt)

    if start is None:
        raise NoStartError()
    return start


def build_from_document(doc: TalkDocument) -> GraphDocument:
    """
    Replay a parsed talk through GraphBuilder and build it.

    Each document node becomes a one-node fragment builder and successors are
    wired with connect_to(fragment), which the builder resolves at build time,
    so forward references and loops need no special ordering. Document ids
    end up in GraphDocument.aliases.

    Raises DocumentError for malformed scripts and BuildError for structural
    problems (unknown or duplicate actors, self-loops, unreachable nodes).
    """
    start = _validate(doc)
    nodes = list(doc.nodes)

    fragments: Dict[Any, GraphBuilder] = {n.id: GraphBuilder() for n in nodes}
    for idx, n in enumerate(nodes):
        frag = fragments[n.id]
        if n.kind == "choice":
            frag.choose_between([
                (c.text, GraphBuilder().connect_to(fragments[c.next])) for c in n.choices
            ])
            continue

        if n.kind == "join":
            frag.join()
        else:
            frag.say(n.text or "", actors=n.actors, sound=n.sound)
        nxt = _successor(nodes, idx)
        if nxt is not None:
            frag.connect_to(fragments[nxt])

    talk = GraphBuilder()
    for a in doc.actors:
        talk.add_actor(a.slug, a.name, a.asset)
    talk.connect_to(fragments[start])
    return talk.build(aliases=fragments)
