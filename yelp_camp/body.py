"""Request body parsing.

HTML forms post flat keys; bracket notation turns them into structure the
same way extended URL-encoded parsers do::

    campground[title]=Tent  -> {"campground": {"title": "Tent"}}
    tags[]=a&tags[]=b       -> {"tags": ["a", "b"]}
"""

import re
from typing import Any, Iterable

from flask import Request

# Nesting deeper than this keeps the remainder as a literal key
MAX_DEPTH = 5

_KEY_RE = re.compile(r"^([^\[\]]+)((?:\[[^\[\]]*\])*)$")
_SEGMENT_RE = re.compile(r"\[([^\[\]]*)\]")


def _split_key(key: str) -> list[str]:
    match = _KEY_RE.match(key)
    if match is None:
        return [key]
    head, rest = match.groups()
    segments = _SEGMENT_RE.findall(rest)
    if len(segments) > MAX_DEPTH:
        overflow = "".join(f"[{s}]" for s in segments[MAX_DEPTH:])
        segments = segments[:MAX_DEPTH] + [overflow]
    return [head] + segments


def _assign(target: dict[str, Any], path: list[str], value: Any) -> None:
    node = target
    for index, segment in enumerate(path[:-1]):
        following = path[index + 1]
        if following == "":
            # "a[]" style: the next container is a list
            node = node.setdefault(segment, [])
            if not isinstance(node, list):
                return
            break
        child = node.get(segment)
        if not isinstance(child, dict):
            child = {}
            node[segment] = child
        node = child
    else:
        last = path[-1]
        if last in node:
            existing = node[last]
            if isinstance(existing, list):
                existing.append(value)
            else:
                node[last] = [existing, value]
        else:
            node[last] = value
        return

    # Reached only for list containers
    node.append(value)


def parse_nested(pairs: Iterable[tuple[str, Any]]) -> dict[str, Any]:
    """Build a nested mapping from flat (key, value) pairs.

    Args:
        pairs: Form items in submission order; repeated keys are kept.

    Returns:
        Nested dict. Repeated plain keys collect into a list.
    """
    result: dict[str, Any] = {}
    for key, value in pairs:
        _assign(result, _split_key(key), value)
    return result


def parse_request_body(request: Request) -> dict[str, Any]:
    """Return the parsed body of a URL-encoded, multipart or JSON request.

    JSON bodies that are not objects are wrapped as ``{"_json": value}`` so
    callers always receive a mapping.
    """
    if request.is_json:
        payload = request.get_json(silent=True)
        if payload is None:
            return {}
        return payload if isinstance(payload, dict) else {"_json": payload}
    if request.mimetype in ("application/x-www-form-urlencoded", "multipart/form-data"):
        return parse_nested(request.form.items(multi=True))
    return {}
