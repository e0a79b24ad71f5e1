from __future__ import annotations
import logging
from typing import Any, Tuple

from talks.narrative.types import GraphDocument, NodeKind, NodeView, Step
from talks.narrative.errors import (
    AmbiguousNextError,
    ChoiceIndexError,
    NotAChoiceError,
    TalkError,
    UnknownNodeError,
)

logger = logging.getLogger(__name__)


class TalkRunner:
    """
    Cursor over a built talk.

    The cursor starts on the node right after START. next() follows the only
    way forward, choose(i) picks an option of a CHOICE node and jump_to() moves
    anywhere. Requests that cannot be honoured raise a TraversalError and leave
    the cursor where it was; reaching the end is reported as Step.ENDED.

    The document is never modified, so any number of runners can share it.
    Nothing is pushed to listeners: embedders poll `current` / current_node().
    """

    def __init__(self, document: GraphDocument) -> None:
        self.document = document
        self._first = self._first_node(document)
        self._current = self._first

    @staticmethod
    def _first_node(document: GraphDocument) -> int:
        out = document.successors(document.start)
        if len(out) != 1:
            raise TalkError(f"the start node must lead to exactly one node, found {len(out)}")
        return out[0].dst

    # --- Read accessors -------------------------------------------------------
    @property
    def current(self) -> int:
        return self._current

    @property
    def is_finished(self) -> bool:
        return not self.document.successors(self._current)

    def current_node(self) -> NodeView:
        doc = self.document
        node = doc.node(self._current)
        labels: Tuple[str, ...] = ()
        if node.kind is NodeKind.CHOICE:
            labels = tuple(e.label or "" for e in doc.successors(node.id))
        return NodeView(
            id=node.id,
            kind=node.kind,
            text=node.text,
            actors=tuple(doc.actors[slug] for slug in node.actors),
            choices=labels,
            sound=node.sound,
        )

    def choices(self) -> Tuple[str, ...]:
        """ Option labels of the current CHOICE node, in option order. """
        node = self.document.node(self._current)
        if node.kind is not NodeKind.CHOICE:
            raise NotAChoiceError(node.id)
        return tuple(e.label or "" for e in self.document.successors(node.id))

    # --- Advance --------------------------------------------------------------
    def next(self) -> Step:
        out = self.document.successors(self._current)
        if not out:
            return Step.ENDED
        if len(out) > 1:
            raise AmbiguousNextError(self._current, len(out))
        self._move(out[0].dst)
        return Step.ADVANCED

    def choose(self, index: int) -> Step:
        out = self.document.successors(self._current)
        if not out:
            return Step.ENDED
        if self.document.node(self._current).kind is not NodeKind.CHOICE:
            raise NotAChoiceError(self._current)
        if isinstance(index, bool) or not isinstance(index, int) or index < 0 or index >= len(out):
            raise ChoiceIndexError(self._current, index, len(out))
        self._move(out[index].dst)
        return Step.ADVANCED

    def jump_to(self, node_id: int) -> Step:
        """ Move to any node of the talk. Reachability is not checked. """
        if node_id not in self.document:
            raise UnknownNodeError(node_id)
        self._move(node_id)
        return Step.ADVANCED

    def jump_to_alias(self, alias: Any) -> Step:
        """ jump_to() using an id from the document the talk was built from. """
        try:
            node_id = self.document.resolve(alias)
        except KeyError:
            raise UnknownNodeError(alias) from None
        self._move(node_id)
        return Step.ADVANCED

    def reset(self) -> None:
        self._move(self._first)

    def _move(self, node_id: int) -> None:
        logger.debug("Talk cursor %s -> %s", self._current, node_id)
        self._current = node_id
