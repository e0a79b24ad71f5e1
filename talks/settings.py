from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
import yaml

DEFAULTS_PATH = "game/config/defaults.yaml"


@dataclass
class PlayerCfg:
    choice_prefix: str = "> "           # Printed in front of each option
    actor_separator: str = ", "         # Between actor names when several speak
    show_node_ids: bool = False         # Debug: print node ids next to lines


@dataclass
class AppCfg:
    log_level: str = "WARNING"
    talk: str = "game/talks/simple.talk.yaml"
    player: PlayerCfg = field(default_factory=PlayerCfg)


def _get(d: dict, path: str, default: Any):
    cur = d
    for part in path.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return default
        cur = cur[part]
    return cur


def load_settings(path: str = DEFAULTS_PATH) -> AppCfg:
    """ Read settings from YAML; anything missing (or the whole file) falls back to defaults. """
    data = {}
    p = Path(path)
    if p.exists():
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    return AppCfg(
        log_level=str(_get(data, "log_level", "WARNING")).upper(),
        talk=str(_get(data, "talk", "game/talks/simple.talk.yaml")),
        player=PlayerCfg(
            choice_prefix=str(_get(data, "player.choice_prefix", "> ")),
            actor_separator=str(_get(data, "player.actor_separator", ", ")),
            show_node_ids=bool(_get(data, "player.show_node_ids", False)),
        ),
    )
