# modbuild/core/publish/state_machine.py
from __future__ import annotations

from enum import Enum
from typing import Dict, Set, Tuple


class PublishState(str, Enum):
    UNCHECKED = "UNCHECKED"
    NOT_FOUND = "NOT_FOUND"
    FOUND_MATCH = "FOUND_MATCH"
    FOUND_MISMATCH = "FOUND_MISMATCH"
    FETCH_ERROR = "FETCH_ERROR"
    PUBLISH = "PUBLISH"
    SKIP = "SKIP"
    FAIL = "FAIL"


_ALLOWED: Set[Tuple[PublishState, PublishState]] = {
    (PublishState.UNCHECKED, PublishState.NOT_FOUND),
    (PublishState.UNCHECKED, PublishState.FOUND_MATCH),
    (PublishState.UNCHECKED, PublishState.FOUND_MISMATCH),
    (PublishState.UNCHECKED, PublishState.FETCH_ERROR),

    (PublishState.NOT_FOUND, PublishState.PUBLISH),
    (PublishState.FOUND_MATCH, PublishState.SKIP),
    (PublishState.FOUND_MISMATCH, PublishState.PUBLISH),
    (PublishState.FETCH_ERROR, PublishState.FAIL),
}

_TERMINAL: Set[PublishState] = {
    PublishState.PUBLISH,
    PublishState.SKIP,
    PublishState.FAIL,
}


def is_terminal(state: PublishState) -> bool:
    return state in _TERMINAL


def can_transition(src: PublishState, dst: PublishState) -> bool:
    if src in _TERMINAL:
        return False
    return (src, dst) in _ALLOWED


def ensure_transition(src: PublishState, dst: PublishState) -> None:
    if not can_transition(src, dst):
        raise ValueError(f"Illegal transition: {src.value} -> {dst.value}")


def allowed_next(src: PublishState) -> Dict[str, bool]:
    out: Dict[str, bool] = {}
    for a, b in _ALLOWED:
        if a == src:
            out[b.value] = True
    return out
