from __future__ import annotations
import itertools
import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple, Union

from talks.narrative.types import Actor, Edge, GraphDocument, Node, NodeKind
from talks.narrative.errors import (
    BuildError,
    BuildProblem,
    DanglingBranchError,
    DuplicateActorError,
    EmptyTalkError,
    FrontierError,
    SelfLoopError,
    UnknownActorError,
    UnknownTargetError,
)

logger = logging.getLogger(__name__)

# Node ids are shared by every builder in the process so that ids taken from one
# builder (last_node_id) stay valid once it is merged into another.
_node_ids = itertools.count(1)

# A link target is either a node id or a builder, meaning "that builder's entry"
Target = Union[int, "GraphBuilder"]


@dataclass(frozen=True)
class _Link:
    src: int
    dst: Target
    label: Optional[str] = None


class GraphBuilder:
    """
    Fluent, order-sensitive assembler for a talk graph.

    Every call grows the graph from the current frontier (the node(s) the next
    node gets attached to) and returns the builder:

        talk = (GraphBuilder()
                .add_actor("bob", "Bob")
                .say("Hello", actors="bob")
                .choose_between([
                    ("Fine", GraphBuilder().say("Glad to hear.")),
                    ("Not fine", GraphBuilder().say("Sorry.")),
                ])
                .build())

    Sub-builders handed to choose_between/merge/connect_to are referenced by
    identity, never copied: passing the same instance twice yields one shared
    branch. Their frontier is read when they are merged, their nodes when the
    talk is built, so finish a branch before handing it over.

    Structural problems (unknown actors, duplicate actors, self-loops, links to
    nodes that never made it into the talk, orphaned branches) are collected
    and reported together by build().
    """

    def __init__(self) -> None:
        self._nodes: List[Node] = []
        self._links: List[_Link] = []
        self._merged: Dict[int, GraphBuilder] = {}   # id(builder) -> builder
        self._actors: List[Actor] = []
        self._problems: List[BuildProblem] = []
        self._frontier: List[int] = []
        self._entry: Optional[Target] = None

    # --- Introspection --------------------------------------------------------
    @property
    def frontier(self) -> Tuple[int, ...]:
        return tuple(self._frontier)

    @property
    def started(self) -> bool:
        """ True once something (a node or a link) has been added. """
        return self._entry is not None

    def last_node_id(self) -> int:
        """
        Id of the single frontier node, for later connect_to() calls.
        Raises FrontierError if the frontier is empty or holds several nodes.
        """
        if len(self._frontier) != 1:
            raise FrontierError(tuple(self._frontier))
        return self._frontier[0]

    # --- Graph growth ---------------------------------------------------------
    def say(self, text: str, actors: Union[str, Iterable[str]] = (), sound: Optional[str] = None) -> GraphBuilder:
        if isinstance(actors, str):
            actors = (actors,)
        node = Node(id=next(_node_ids), kind=NodeKind.SAY, text=str(text),
                    actors=tuple(str(a) for a in actors), sound=sound)
        self._append(node)
        return self

    def join(self) -> GraphBuilder:
        """ Collapse the frontier into a single JOIN node. """
        self._append(Node(id=next(_node_ids), kind=NodeKind.JOIN))
        return self

    def choose_between(self, options: Sequence[Tuple[str, GraphBuilder]]) -> GraphBuilder:
        """
        Add a CHOICE node with one labelled option per (label, branch) pair.
        The new frontier is the union of the branches' frontiers, so whatever is
        added next follows every branch that did not loop away.
        An empty option list leaves the builder untouched.
        """
        options = [self._check_option(opt) for opt in options]
        if not options:
            return self

        choice = Node(id=next(_node_ids), kind=NodeKind.CHOICE)
        self._append(choice)

        frontier: List[int] = []
        for label, branch in options:
            self._links.append(_Link(choice.id, branch, label))
            if branch is self:
                continue    # Loops back to our own entry
            self._adopt(branch)
            for nid in branch._frontier:
                if nid not in frontier:
                    frontier.append(nid)
        self._frontier = frontier
        return self

    def merge(self, branch: GraphBuilder) -> GraphBuilder:
        """ Continue with a whole branch: link into its entry and carry on from its frontier. """
        if not isinstance(branch, GraphBuilder):
            raise TypeError(f"merge() expects a GraphBuilder, got {type(branch).__name__}")
        if branch is self:
            raise ValueError("a builder cannot be merged into itself")
        if self._dropped_link("merge", branch):
            return self
        self._link_frontier(branch)
        self._adopt(branch)
        self._frontier = list(branch._frontier)
        return self

    def connect_to(self, target: Target) -> GraphBuilder:
        """
        Link every frontier node to `target` without moving the frontier.
        `target` is a node id from last_node_id(), or a builder whose entry is
        looked up at build time (forward references).
        """
        if isinstance(target, bool) or not isinstance(target, (int, GraphBuilder)):
            raise TypeError(f"connect_to() expects a node id or a GraphBuilder, got {type(target).__name__}")
        if isinstance(target, int) and target in self._frontier:
            # Rejected as a whole, reported by build()
            self._problems.append(SelfLoopError(target))
            return self
        if self._dropped_link("connect_to", target):
            return self
        if isinstance(target, GraphBuilder):
            self._adopt(target)
        self._link_frontier(target)
        return self

    def add_actor(self, slug: str, name: str, asset: Optional[str] = None) -> GraphBuilder:
        self._actors.append(Actor(slug=str(slug), name=str(name), asset=asset))
        return self

    # --- Finalize -------------------------------------------------------------
    def build(self, aliases: Optional[Mapping[Any, Target]] = None) -> GraphDocument:
        """
        Validate the whole talk and return it as an immutable GraphDocument.

        `aliases` names nodes for GraphDocument.resolve(); values are node ids or
        builders (their entry). Raises BuildError listing every problem; the
        builder itself is left as it was.
        """
        aliases = dict(aliases or {})
        builders = self._walk([t for t in aliases.values() if isinstance(t, GraphBuilder)])

        nodes: Dict[int, Node] = {}
        for b in builders:
            for n in b._nodes:
                nodes[n.id] = n
        nodes = {nid: nodes[nid] for nid in sorted(nodes)}   # creation order

        problems: List[BuildProblem] = []
        for b in builders:
            problems.extend(b._problems)

        # Entry
        entry: Optional[int] = None
        if self._entry is None:
            problems.append(EmptyTalkError())
        else:
            entry = self._resolve(self._entry)
            if entry is None:
                problems.append(DanglingBranchError("the talk starts with a branch that has nothing in it"))
            elif entry not in nodes:
                problems.append(UnknownTargetError(None, entry))
                entry = None

        # Edges
        edges: List[Edge] = []
        for b in builders:
            for link in b._links:
                dst = self._resolve(link.dst)
                if dst is None:
                    what = f"option '{link.label}'" if link.label is not None else "a link"
                    problems.append(DanglingBranchError(
                        f"{what} of node {link.src} leads to a branch that has nothing in it", link.src))
                elif dst not in nodes:
                    problems.append(UnknownTargetError(link.src, dst))
                elif dst == link.src:
                    problems.append(SelfLoopError(link.src))
                else:
                    edges.append(Edge(link.src, dst, link.label))

        # Actors: first registration wins, repeats are reported
        registry: Dict[str, Actor] = {}
        for b in builders:
            for actor in b._actors:
                if actor.slug in registry:
                    problems.append(DuplicateActorError(actor.slug))
                else:
                    registry[actor.slug] = actor
        for n in nodes.values():
            for slug in n.actors:
                if slug not in registry:
                    problems.append(UnknownActorError(n.id, slug))

        # Every node must hang off the start
        if entry is not None:
            reached = self._reachable(entry, edges)
            for nid in nodes:
                if nid not in reached:
                    problems.append(DanglingBranchError(f"node {nid} is not reachable from the start", nid))

        resolved_aliases: Dict[Any, int] = {}
        for name, target in aliases.items():
            nid = self._resolve(target)
            if nid is None or nid not in nodes:
                problems.append(DanglingBranchError(f"alias {name!r} does not name a node of the talk"))
            else:
                resolved_aliases[name] = nid

        if problems:
            logger.debug("Build rejected with %d problem(s)", len(problems))
            raise BuildError(problems)

        start = Node(id=next(_node_ids), kind=NodeKind.START)
        all_nodes = {start.id: start}
        all_nodes.update(nodes)
        doc = GraphDocument(
            nodes=all_nodes,
            edges=tuple([Edge(start.id, entry)] + edges),
            actors=registry,
            start=start.id,
            aliases=resolved_aliases,
        )
        logger.debug("Built talk: %d nodes, %d edges, %d actors", len(doc.nodes), len(doc.edges), len(registry))
        return doc

    # --- helpers --------------------------------------------------------------
    def _append(self, node: Node) -> None:
        self._nodes.append(node)
        self._link_frontier(node.id)
        self._frontier = [node.id]

    def _link_frontier(self, target: Target) -> None:
        if self._entry is None:
            self._entry = target
            return
        for src in self._frontier:
            self._links.append(_Link(src, target))

    def _dropped_link(self, call: str, target: Target) -> bool:
        """
        Started but with an empty frontier (every branch looped away): there is
        nothing to link from, so the call is rejected and reported by build().
        """
        if self._entry is None or self._frontier:
            return False
        what = "a branch" if isinstance(target, GraphBuilder) else f"node {target}"
        self._problems.append(DanglingBranchError(
            f"{call}() to {what} has nothing to link from, the frontier is empty",
            target if isinstance(target, int) else None))
        return True

    def _adopt(self, branch: GraphBuilder) -> None:
        if branch is not self and id(branch) not in self._merged:
            self._merged[id(branch)] = branch

    @staticmethod
    def _check_option(option: Any) -> Tuple[str, GraphBuilder]:
        try:
            label, branch = option
        except (TypeError, ValueError):
            raise TypeError(f"choice options are (label, GraphBuilder) pairs, got {option!r}") from None
        if not isinstance(branch, GraphBuilder):
            raise TypeError(f"option '{label}' must be a GraphBuilder, got {type(branch).__name__}")
        return str(label), branch

    def _walk(self, extra: Iterable[GraphBuilder] = ()) -> List[GraphBuilder]:
        """ Self plus every builder merged into it, transitively, each once. """
        seen: Set[int] = set()
        order: List[GraphBuilder] = []
        stack = [self] + list(extra)[::-1]
        while stack:
            b = stack.pop()
            if id(b) in seen:
                continue
            seen.add(id(b))
            order.append(b)
            stack.extend(reversed(list(b._merged.values())))
        return order

    @staticmethod
    def _resolve(target: Optional[Target]) -> Optional[int]:
        """ Follow builder entries down to a node id; None if a branch never got one. """
        trail: Set[int] = set()
        while isinstance(target, GraphBuilder):
            if id(target) in trail:
                return None
            trail.add(id(target))
            target = target._entry
        return target

    @staticmethod
    def _reachable(entry: int, edges: Sequence[Edge]) -> Set[int]:
        out: Dict[int, List[int]] = {}
        for e in edges:
            out.setdefault(e.src, []).append(e.dst)
        reached = {entry}
        queue = deque([entry])
        while queue:
            for nxt in out.get(queue.popleft(), ()):
                if nxt not in reached:
                    reached.add(nxt)
                    queue.append(nxt)
        return reached
