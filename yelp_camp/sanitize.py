"""Strip input keys that a database driver could read as query operators."""

from typing import Any

PROHIBITED_PREFIX = "$"
PROHIBITED_CHAR = "."


def is_prohibited_key(key: Any) -> bool:
    """True for ``$``-prefixed or dotted keys such as ``$gt`` or ``a.b``."""
    return isinstance(key, str) and (
        key.startswith(PROHIBITED_PREFIX) or PROHIBITED_CHAR in key
    )


def sanitize(value: Any) -> tuple[Any, list[str]]:
    """Recursively drop prohibited keys from mappings and lists.

    The input is never mutated.

    Args:
        value: Parsed request data (mapping, list or scalar).

    Returns:
        Tuple of (cleaned copy, dotted paths of the removed keys).

    Example:
        >>> sanitize({"username": {"$gt": ""}, "page": 2})
        ({'username': {}, 'page': 2}, ['username.$gt'])
    """
    removed: list[str] = []
    cleaned = _clean(value, "", removed)
    return cleaned, removed


def _clean(value: Any, path: str, removed: list[str]) -> Any:
    if isinstance(value, dict):
        result = {}
        for key, item in value.items():
            child_path = f"{path}.{key}" if path else str(key)
            if is_prohibited_key(key):
                removed.append(child_path)
                continue
            result[key] = _clean(item, child_path, removed)
        return result
    if isinstance(value, list):
        return [_clean(item, f"{path}[{i}]", removed) for i, item in enumerate(value)]
    return value
