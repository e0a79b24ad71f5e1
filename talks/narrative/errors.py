from __future__ import annotations
from typing import Any, Iterable, Optional, Tuple


class TalkError(Exception):
    """ Base class for everything the talks package raises. """


# --- Building -----------------------------------------------------------------

class BuildProblem(TalkError):
    """ One structural defect found by GraphBuilder.build(). """


class EmptyTalkError(BuildProblem):
    def __init__(self) -> None:
        super().__init__("the talk has no nodes")


class UnknownActorError(BuildProblem):
    def __init__(self, node_id: int, slug: str) -> None:
        super().__init__(f"node {node_id} references unknown actor '{slug}'")
        self.node_id = node_id
        self.slug = slug


class DuplicateActorError(BuildProblem):
    def __init__(self, slug: str) -> None:
        super().__init__(f"actor '{slug}' is registered more than once")
        self.slug = slug


class SelfLoopError(BuildProblem):
    def __init__(self, node_id: int) -> None:
        super().__init__(f"node {node_id} cannot be connected to itself")
        self.node_id = node_id


class UnknownTargetError(BuildProblem):
    def __init__(self, src: Optional[int], target: Any) -> None:
        origin = "the start" if src is None else f"node {src}"
        super().__init__(f"{origin} is connected to {target!r}, which is not part of the talk")
        self.src = src
        self.target = target


class DanglingBranchError(BuildProblem):
    def __init__(self, detail: str, node_id: Optional[int] = None) -> None:
        super().__init__(detail)
        self.node_id = node_id


class BuildError(TalkError):
    """ Raised by build() with every problem found, in discovery order. """

    def __init__(self, problems: Iterable[BuildProblem]) -> None:
        self.problems: Tuple[BuildProblem, ...] = tuple(problems)
        lines = "\n".join(f"  - {p}" for p in self.problems)
        super().__init__(f"cannot build talk ({len(self.problems)} problem(s)):\n{lines}")


class FrontierError(TalkError):
    """ last_node_id() on an empty or multi-node frontier. """

    def __init__(self, frontier: Tuple[int, ...]) -> None:
        if frontier:
            msg = f"ambiguous last node, the frontier holds {len(frontier)} nodes: {list(frontier)}"
        else:
            msg = "there is no last node, nothing has been added to the frontier"
        super().__init__(msg)
        self.frontier = frontier


# --- Traversal ----------------------------------------------------------------

class TraversalError(TalkError):
    """ A runner request that cannot be honoured. The cursor never moves. """


class AmbiguousNextError(TraversalError):
    def __init__(self, node_id: int, branches: int) -> None:
        super().__init__(f"node {node_id} has {branches} ways forward, pick one with choose()")
        self.node_id = node_id
        self.branches = branches


class NotAChoiceError(TraversalError):
    def __init__(self, node_id: int) -> None:
        super().__init__(f"node {node_id} is not a choice")
        self.node_id = node_id


class ChoiceIndexError(TraversalError):
    def __init__(self, node_id: int, index: int, count: int) -> None:
        super().__init__(f"choice {index} is out of range for node {node_id} ({count} options)")
        self.node_id = node_id
        self.index = index
        self.count = count


class UnknownNodeError(TraversalError):
    def __init__(self, node_id: Any) -> None:
        super().__init__(f"no node {node_id!r} in this talk")
        self.node_id = node_id


# --- Documents ----------------------------------------------------------------

class DocumentError(TalkError):
    """ A parsed talk document that cannot be turned into a graph. """


class EmptyDocumentError(DocumentError):
    def __init__(self) -> None:
        super().__init__("the document has no script")


class DuplicateNodeIdError(DocumentError):
    def __init__(self, node_id: Any) -> None:
        super().__init__(f"multiple nodes have id {node_id!r}")
        self.node_id = node_id


class MissingNodeError(DocumentError):
    def __init__(self, node_id: Any, target: Any) -> None:
        super().__init__(f"node {node_id!r} points to {target!r}, which does not exist")
        self.node_id = node_id
        self.target = target


class NoStartError(DocumentError):
    def __init__(self) -> None:
        super().__init__("no node is marked as start")


class MultipleStartError(DocumentError):
    def __init__(self, first: Any, second: Any) -> None:
        super().__init__(f"both {first!r} and {second!r} are marked as start")
        self.first = first
        self.second = second
