"""Keyed merge of service results with pattern results."""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable
from typing import TypeVar

T = TypeVar("T")


def merge_by_key(
    ai_list: Iterable[T],
    pattern_list: Iterable[T],
    key_fn: Callable[[T], Hashable],
    prefer_ai: bool = True,
) -> list[T]:
    """Combine two result lists without duplicating a key across them.

    Every item of the preferred list is kept as is. An item of the other
    list is appended only when no item with the same key has been kept yet,
    so repeats inside the secondary list collapse too.

    Args:
        ai_list: Items from the generative service
        pattern_list: Items from deterministic extraction
        key_fn: Identity of an item, e.g. ``(scene, type)``
        prefer_ai: Keep the service items when both lists share a key

    Returns:
        Preferred items followed by the secondary items that were added
    """
    primary, secondary = (
        (ai_list, pattern_list) if prefer_ai else (pattern_list, ai_list)
    )
    merged = list(primary)
    seen = {key_fn(item) for item in merged}
    for item in secondary:
        key = key_fn(item)
        if key not in seen:
            seen.add(key)
            merged.append(item)
    return merged
