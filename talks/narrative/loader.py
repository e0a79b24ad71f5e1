from __future__ import annotations
import logging
from typing import Any, Dict, List, Tuple
import yaml

from talks.narrative.types import GraphDocument
from talks.narrative.errors import DocumentError
from talks.narrative.document import (
    DocumentActor,
    DocumentChoice,
    DocumentNode,
    TalkDocument,
    build_from_document,
)

logger = logging.getLogger(__name__)

_ACTOR_KEYS = {"slug", "id", "name", "asset"}
_NODE_KEYS = {"id", "kind", "text", "actors", "actor", "choices", "next", "start", "sound"}


def _text(raw: Any) -> Any:
    """ Accepts None, a string or a list of lines (joined into one block). """
    if raw is None:
        return None
    if isinstance(raw, list):
        return "\n".join(str(s) for s in raw)
    return str(raw)


def _warn_unknown(path: str, where: str, body: Dict[str, Any], known: set) -> None:
    extra = sorted(str(k) for k in body if k not in known)
    if extra:
        logger.warning("%s: ignoring unknown key(s) %s in %s", path, ", ".join(extra), where)


def _parse_actor(path: str, idx: int, body: Any) -> DocumentActor:
    if not isinstance(body, dict):
        raise DocumentError(f"{path}: actor #{idx} must be a mapping")
    _warn_unknown(path, f"actor #{idx}", body, _ACTOR_KEYS)
    slug = body.get("slug", body.get("id"))
    if slug is None or str(slug).strip() == "":
        raise DocumentError(f"{path}: actor #{idx} is missing 'slug'")
    slug = str(slug).strip()
    name = str(body.get("name") or slug)
    asset = body.get("asset")
    return DocumentActor(slug=slug, name=name, asset=None if asset is None else str(asset))


def _parse_node(path: str, idx: int, body: Any) -> DocumentNode:
    if not isinstance(body, dict):
        raise DocumentError(f"{path}: script entry #{idx} must be a mapping")
    if "id" not in body:
        raise DocumentError(f"{path}: script entry #{idx} is missing 'id'")
    nid = body["id"]
    _warn_unknown(path, f"node {nid!r}", body, _NODE_KEYS)

    # actors: 'actors' list or a single 'actor'
    raw_actors = body.get("actors", body.get("actor")) or []
    if isinstance(raw_actors, str):
        raw_actors = [raw_actors]
    if not isinstance(raw_actors, list):
        raise DocumentError(f"{path}: node {nid!r} 'actors' must be a list")

    # choices: list of {text, next}
    choices: List[DocumentChoice] = []
    for cidx, c in enumerate(body.get("choices") or []):
        if not isinstance(c, dict) or "next" not in c:
            raise DocumentError(f"{path}: node {nid!r} choice #{cidx} needs 'text' and 'next'")
        choices.append(DocumentChoice(text=str(c.get("text") or ""), next=c["next"]))

    kind = str(body.get("kind") or ("choice" if choices else "say")).strip().lower()
    sound = body.get("sound")
    return DocumentNode(
        id=nid,
        kind=kind,
        text=_text(body.get("text")),
        actors=tuple(str(a) for a in raw_actors),
        choices=tuple(choices),
        next=body.get("next"),
        start=bool(body.get("start", False)),
        sound=None if sound is None else str(sound),
    )


def parse_talk(data: Any, path: str = "<talk>") -> TalkDocument:
    """
    Turn the raw YAML structure into a TalkDocument:
        actors: [ {slug, name, asset?}, ... ]
        script: [ {id, kind?, text?, actors?, choices?: [{text, next}], next?, start?, sound?}, ... ]
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise DocumentError(f"{path}: top level must be a mapping")

    raw_actors = data.get("actors") or []
    raw_script = data.get("script") or []
    if not isinstance(raw_actors, list):
        raise DocumentError(f"{path}: 'actors' must be a list")
    if not isinstance(raw_script, list):
        raise DocumentError(f"{path}: 'script' must be a list")

    actors: Tuple[DocumentActor, ...] = tuple(_parse_actor(path, i, a) for i, a in enumerate(raw_actors))
    nodes: Tuple[DocumentNode, ...] = tuple(_parse_node(path, i, n) for i, n in enumerate(raw_script))
    return TalkDocument(actors=actors, nodes=nodes)


def load_talk_file(path: str) -> TalkDocument:
    """ Load a single *.talk.yaml file into a TalkDocument. """
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise DocumentError(f"{path}: could not parse YAML: {e}") from e
    return parse_talk(data, path=str(path))


def load_talk(path: str) -> GraphDocument:
    """ Load and build a talk file in one go. """
    return build_from_document(load_talk_file(path))
