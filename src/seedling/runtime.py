"""Helpers called by compiled template programs.

Compiled programs reach these through the ``_rt`` global; they never see the
Python builtins directly.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable, Iterable, Iterator, MutableMapping

__all__ = [
    "OUTPUT_VARIABLE",
    "add",
    "attribute",
    "coalesce",
    "item",
    "iterate",
    "lookup",
    "to_text",
]


OUTPUT_VARIABLE = "__output__"


def lookup(env: MutableMapping[str, Any], name: str) -> Any:
    try:
        return env[name]
    except KeyError:
        raise NameError(f"{name!r} is not defined") from None


def attribute(target: Any, name: str) -> Any:
    """Resolve ``target.name``: mapping keys first, then attributes."""

    if isinstance(target, Mapping):
        return target.get(name)
    return getattr(target, name)


def item(target: Any, key: Any) -> Any:
    """Resolve ``target[key]``. Missing mapping keys resolve to ``None``."""

    if isinstance(target, Mapping):
        return target.get(key)
    return target[key]


def add(left: Any, right: Any) -> Any:
    if isinstance(left, str) or isinstance(right, str):
        return to_text(left) + to_text(right)
    return left + right


def coalesce(value: Any, fallback: Callable[[], Any]) -> Any:
    return fallback() if value is None else value


def iterate(iterable: Any, targets: int) -> Iterator[Any]:
    """Iterate ``iterable`` for a loop binding ``targets`` names.

    Mappings yield their keys for a single name and ``(key, value)`` pairs
    for two names. Anything else is iterated as is.
    """

    if isinstance(iterable, Mapping):
        source: Iterable[Any] = iterable.items() if targets == 2 else iterable.keys()
        return iter(list(source))
    return iter(iterable)


def to_text(value: Any) -> str:
    """Return the text printed for ``value`` by a ``<%= %>`` block."""

    if value is None:
        return ""
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
