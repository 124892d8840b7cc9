"""Look up the latest release of a distribution on the package index."""

from __future__ import annotations

import json
import urllib.error
import urllib.request
from typing import Any, Callable

from .errors import VersionLookupError

__all__ = ["INDEX_URL", "VersionResolver", "fetch_latest_version", "latest_version_specifier"]


INDEX_URL = "https://pypi.org/pypi/{name}/json"

VersionResolver = Callable[[str], str]


def fetch_latest_version(
    name: str,
    opener: Callable[[urllib.request.Request], Any] | None = None,
) -> str:
    """Return the version string of the newest release of ``name``.

    Raises
    ------
    VersionLookupError
        If the index cannot be reached or its answer has no version.
    """

    request = urllib.request.Request(INDEX_URL.format(name=name), headers={"Accept": "application/json"})
    opener_func = opener if opener is not None else urllib.request.urlopen
    try:
        with opener_func(request) as response:
            payload = json.loads(response.read().decode("utf-8"))
        return str(payload["info"]["version"])
    except (urllib.error.URLError, json.JSONDecodeError, KeyError, TypeError) as exc:
        raise VersionLookupError(f"could not determine the latest version of {name!r}") from exc


def latest_version_specifier(name: str, resolver: VersionResolver = fetch_latest_version) -> str:
    """Return a ``>=`` specifier pinned to the latest release of ``name``."""

    return f">={resolver(name)}"
