from __future__ import annotations
import logging
from typing import Callable, List

from talks.settings import AppCfg
from talks.narrative.types import NodeKind, NodeView, Step
from talks.narrative.runner import TalkRunner
from talks.narrative.errors import TraversalError

logger = logging.getLogger(__name__)


class ConsoleApp:
    """
    Minimal terminal shell around a TalkRunner: prints the active node, reads
    a line of input and turns it into next()/choose() requests.
    Input and output are injectable so the loop can be driven from tests.
    """

    def __init__(self,
                 cfg: AppCfg,
                 runner: TalkRunner,
                 read: Callable[[str], str] = input,
                 write: Callable[[str], None] = print):
        self.cfg = cfg
        self.runner = runner
        self._read = read
        self._write = write
        self.running = True

    # ------------------------------------------------------------------ #
    # Main loop
    # ------------------------------------------------------------------ #
    def run(self) -> None:
        while self.running:
            view = self.runner.current_node()
            for line in self.render(view):
                self._write(line)

            if self.runner.is_finished:
                self.running = False
                break
            if view.kind is NodeKind.JOIN:
                try:
                    self.runner.next()
                except TraversalError as e:
                    # No input can pick a way out of a branching join
                    logger.warning("Stopping at join %s: %s", view.id, e)
                    self._write(str(e))
                    self.running = False
                    break
                continue

            try:
                raw = self._read("" if view.kind is not NodeKind.CHOICE else "? ")
            except EOFError:
                self.running = False
                break
            self.handle_input(view, raw.strip())

    def handle_input(self, view: NodeView, raw: str) -> None:
        if raw.lower() in ("q", "quit"):
            self.running = False
            return
        try:
            if view.kind is NodeKind.CHOICE:
                if not raw.isdigit():
                    self._write(f"Pick a number between 1 and {len(view.choices)}.")
                    return
                step = self.runner.choose(int(raw) - 1)
            else:
                step = self.runner.next()
        except TraversalError as e:
            # Surface it and keep the talk where it was
            logger.info("Rejected input %r: %s", raw, e)
            self._write(str(e))
            return
        if step is Step.ENDED:
            self.running = False

    # ------------------------------------------------------------------ #
    # Rendering
    # ------------------------------------------------------------------ #
    def render(self, view: NodeView) -> List[str]:
        pcfg = self.cfg.player
        tag = f"[{view.id}] " if pcfg.show_node_ids else ""
        if view.kind is NodeKind.CHOICE:
            return [f"{tag}{pcfg.choice_prefix}{i}. {label}" for i, label in enumerate(view.choices, start=1)]
        if view.kind is not NodeKind.SAY:
            return []   # Structural nodes have nothing to show
        who = pcfg.actor_separator.join(a.name for a in view.actors)
        lines = (view.text or "").splitlines() or [""]
        prefix = f"{tag}{who}: " if who else tag
        return [prefix + lines[0]] + lines[1:]
