"""Name conversions between directories, distributions, modules and classes."""

from __future__ import annotations

import re
import unicodedata

__all__ = [
    "canonicalize_distribution",
    "normalize_class_name",
    "normalize_module_name",
    "slugify",
]


_SEPARATORS = re.compile(r"[\s\-_.]+")
_INVALID_IDENTIFIER = re.compile(r"[^0-9a-zA-Z_]")
_MULTIPLE_UNDERSCORES = re.compile(r"_+")
_DISTRIBUTION_SEPARATORS = re.compile(r"[-_.]+")


def slugify(value: str, *, separator: str = "-") -> str:
    """Create an ASCII, lower case slug from ``value``.

    Parameters
    ----------
    value:
        Free text such as a directory name or a project title.
    separator:
        The character used to join individual words.
    """

    text = unicodedata.normalize("NFKD", str(value))
    text = text.encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"[^\w\s\-.]", "", text).strip().lower()
    if not text:
        return ""

    collapsed = _SEPARATORS.sub(separator, text)
    return collapsed.strip(separator)


def canonicalize_distribution(name: str) -> str:
    """Return the normalized form of a package index distribution name."""

    return _DISTRIBUTION_SEPARATORS.sub("-", name).lower()


def normalize_module_name(name: str) -> str:
    """Return a valid Python module identifier from ``name``.

    ``my-lib`` becomes ``my_lib``; names starting with a digit are prefixed
    with an underscore.
    """

    candidate = slugify(name, separator="_")
    candidate = _INVALID_IDENTIFIER.sub("_", candidate)
    candidate = _MULTIPLE_UNDERSCORES.sub("_", candidate).strip("_")

    if not candidate:
        candidate = "project"

    if candidate[0].isdigit():
        candidate = f"_{candidate}"

    return candidate


def normalize_class_name(name: str) -> str:
    """Return a CamelCase class name generated from ``name``."""

    words = [word for word in _SEPARATORS.split(slugify(name, separator=" ")) if word]
    if not words:
        return "Project"
    return "".join(word.capitalize() for word in words)
