"""In-memory search, filter and sort over small entity collections.

All functions are pure and accept either pydantic models or plain mappings.
Pagination is left to callers via ``take``.
"""

from __future__ import annotations

import locale
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Literal, TypeVar

T = TypeVar("T")

Direction = Literal["asc", "desc"]

OSDR_SORTS: dict[str, tuple[str, Direction]] = {
    "inserted_desc": ("inserted_at", "desc"),
    "inserted_asc": ("inserted_at", "asc"),
    "title_asc": ("title", "asc"),
    "title_desc": ("title", "desc"),
}
DEFAULT_OSDR_SORT = "inserted_desc"


def field_value(item: Any, field: str) -> Any:
    """Read ``field`` from a model attribute or mapping key."""
    if isinstance(item, Mapping):
        return item.get(field)
    return getattr(item, field, None)


def _text(value: Any) -> str:
    return "" if value is None else str(value).casefold()


def search(items: Iterable[T], query: str, fields: Sequence[str]) -> list[T]:
    """Keep items where any of ``fields`` contains ``query``, ignoring case."""
    needle = query.casefold()
    if not needle:
        return list(items)
    return [
        item
        for item in items
        if any(needle in _text(field_value(item, field)) for field in fields)
    ]


def _sort_key(value: Any) -> Any:
    # Collates by the process LC_COLLATE; plain code point order under C/POSIX
    if isinstance(value, str):
        return locale.strxfrm(value.casefold())
    return value


def sort_by(items: Iterable[T], field: str, direction: str = "asc") -> list[T]:
    """Stable sort on ``field``; ``None`` values go last in either direction."""
    if direction not in ("asc", "desc"):
        raise ValueError(f"Unknown sort direction: {direction!r}")
    present: list[T] = []
    missing: list[T] = []
    for item in items:
        (missing if field_value(item, field) is None else present).append(item)
    # sorted() keeps ties in input order even with reverse=True
    ordered = sorted(
        present,
        key=lambda item: _sort_key(field_value(item, field)),
        reverse=direction == "desc",
    )
    return ordered + missing


def _contains(value: Any, needle: str) -> bool:
    if isinstance(value, Mapping):
        return any(needle in _text(key) for key in value)
    if isinstance(value, list | tuple | set):
        return any(needle in _text(element) for element in value)
    return needle in _text(value)


def filter_by(
    items: Iterable[T],
    field: str,
    value: Any,
    *,
    mode: Literal["equals", "contains"] = "equals",
) -> list[T]:
    """Keep items whose ``field`` equals ``value`` or contains it (case-insensitive)."""
    if mode == "equals":
        return [item for item in items if field_value(item, field) == value]
    if mode == "contains":
        needle = _text(value)
        return [item for item in items if _contains(field_value(item, field), needle)]
    raise ValueError(f"Unknown filter mode: {mode!r}")


def take(items: Sequence[T], limit: int) -> list[T]:
    return list(items[: max(0, limit)])


def resolve_sort(name: str | None) -> tuple[str, str, Direction]:
    """Map an OSDR sort name to ``(name, field, direction)``, defaulting unknowns."""
    key = name if name in OSDR_SORTS else DEFAULT_OSDR_SORT
    field, direction = OSDR_SORTS[key]
    return key, field, direction
