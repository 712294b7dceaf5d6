"""
Parsing helpers for Yahoo Fantasy API responses.

Yahoo encodes most collections as "indexed objects": a dict with keys
"0".."count-1" plus an integer ``count``. Entity data comes as "field unions":
lists whose elements are either attribute fragments or wrappers around one
child collection, in no fixed position.
"""

from typing import Any, Dict, Iterable, Iterator, List, Optional


def iter_indexed(obj: Any) -> Iterator[Any]:
    """
    Yield the entries of a Yahoo indexed object in ascending index order.

    Only keys "0".."count-1" are visited. Missing keys and numeric values
    (the ``count`` field itself) are skipped. Anything that is not a dict with
    an integer ``count`` yields nothing.

    Args:
        obj: Indexed object, e.g. {"0": {...}, "1": {...}, "count": 2}

    Yields:
        The values at each present index
    """
    if not isinstance(obj, dict):
        return
    count = obj.get("count")
    if isinstance(count, bool) or not isinstance(count, int):
        return
    for i in range(count):
        item = obj.get(str(i))
        if item is None or isinstance(item, (int, float)):
            continue
        yield item


def find_in_union(union: Any, key: str) -> Optional[Dict[str, Any]]:
    """
    Return the first dict element of a field union that carries ``key``.

    Args:
        union: List of fragments such as [{...attrs...}, {"teams": {...}}]
        key: Key identifying the wanted wrapper

    Returns:
        The wrapper dict, or None if no element carries the key
    """
    if not isinstance(union, list):
        return None
    for item in union:
        if isinstance(item, dict) and key in item:
            return item
    return None


def collect_fields(fragments: Iterable[Any], keys: Iterable[str]) -> Dict[str, Any]:
    """
    Merge single-key fragments like [{"team_key": ...}, {"name": ...}] by presence.

    Only ``keys`` are kept. Later fragments win. Non-dict fragments (Yahoo sprinkles
    empty lists in) are ignored.
    """
    wanted = set(keys)
    merged: Dict[str, Any] = {}
    for fragment in fragments:
        if not isinstance(fragment, dict):
            continue
        for key, value in fragment.items():
            if key in wanted:
                merged[key] = value
    return merged


def as_str(value: Any, default: str = "") -> str:
    """Coerce a scalar Yahoo value to str; None and containers become ``default``."""
    if value is None or isinstance(value, (dict, list)):
        return default
    return str(value)


def as_int(value: Any, default: int = 0) -> int:
    """Coerce Yahoo's numeric-or-string counts to int."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def flatten_positions(entries: Any) -> List[str]:
    """
    Flatten [{"position": "PG"}, {"position": "G"}] into ["PG", "G"].

    Empty positions and malformed entries are dropped.
    """
    if isinstance(entries, dict):
        entries = list(iter_indexed(entries)) or [entries]
    if not isinstance(entries, list):
        return []
    positions = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        position = as_str(entry.get("position"))
        if position:
            positions.append(position)
    return positions
