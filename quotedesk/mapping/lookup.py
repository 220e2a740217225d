"""Dotted-path lookup and fuzzy term-overlap search over the mapping context.

The context is a JSON-like tree. Every node is classified as an object
(mapping), an array (list/tuple) or a scalar, and the fuzzy walk only ever
recurses into objects and arrays, to at most ``MAX_FUZZY_DEPTH`` levels.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any, Literal

from quotedesk.mapping.field_map import FUZZY_MAX_CONFIDENCE

MAX_FUZZY_DEPTH = 6
MIN_TERM_LENGTH = 3

NodeKind = Literal["object", "array", "scalar"]


def node_kind(value: Any) -> NodeKind:
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, (list, tuple)):
        return "array"
    return "scalar"


def is_present(value: Any) -> bool:
    """True for values that count as a successful resolution."""
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    if isinstance(value, (list, tuple, Mapping)):
        return len(value) > 0
    return True


def get_path(data: Any, path: str) -> Any:
    """Resolve ``a.b.0.c`` against nested mappings and sequences; None if absent."""
    current = data
    for segment in path.split("."):
        kind = node_kind(current)
        if kind == "object":
            current = current.get(segment)
        elif kind == "array":
            if segment == "length":
                current = len(current)
            elif segment.isdigit() and int(segment) < len(current):
                current = current[int(segment)]
            else:
                return None
        else:
            return None
        if current is None:
            return None
    return current


@dataclass(frozen=True)
class FuzzyMatch:
    path: str
    value: Any
    score: int
    confidence: float


def search_terms(name: str) -> list[str]:
    return [t for t in name.lower().split("_") if len(t) >= MIN_TERM_LENGTH]


def _leaves(value: Any, path: str, depth: int) -> Iterator[tuple[str, Any]]:
    kind = node_kind(value)
    if kind == "scalar" or (kind == "array" and all(node_kind(v) == "scalar" for v in value)):
        if path:
            yield path, value
        return
    if depth >= MAX_FUZZY_DEPTH:
        return
    if kind == "object":
        for key, child in value.items():
            yield from _leaves(child, f"{path}.{key}" if path else str(key), depth + 1)
    else:
        for index, child in enumerate(value):
            yield from _leaves(child, f"{path}.{index}" if path else str(index), depth + 1)


def fuzzy_find(data: Mapping[str, Any], name: str) -> FuzzyMatch | None:
    """Leaf whose own key shares the most terms with a variable name.

    Only the last path segment is scored, so a branch name such as
    ``client`` never matches on its own. A key must contain more than half
    of the name's terms. Ties keep the first leaf found.
    """
    terms = search_terms(name)
    if not terms:
        return None

    best: FuzzyMatch | None = None
    for path, value in _leaves(data, "", 0):
        if not is_present(value):
            continue
        key = path.rsplit(".", 1)[-1].lower()
        score = sum(1 for term in terms if term in key)
        if score * 2 > len(terms) and (best is None or score > best.score):
            confidence = min(score / len(terms), FUZZY_MAX_CONFIDENCE)
            best = FuzzyMatch(path=path, value=value, score=score, confidence=confidence)
    return best
