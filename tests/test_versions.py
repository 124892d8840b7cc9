from __future__ import annotations

import io
import json
import urllib.error
import urllib.request

import pytest

from seedling.errors import VersionLookupError
from seedling.versions import fetch_latest_version, latest_version_specifier


def test_fetch_latest_version_reads_index_payload():
    requests: list[urllib.request.Request] = []

    def opener(request: urllib.request.Request) -> io.BytesIO:
        requests.append(request)
        return io.BytesIO(json.dumps({"info": {"version": "1.2.3"}}).encode("utf-8"))

    assert fetch_latest_version("ruff", opener=opener) == "1.2.3"
    assert requests[0].full_url == "https://pypi.org/pypi/ruff/json"


def test_fetch_latest_version_wraps_network_errors():
    def opener(request: urllib.request.Request) -> io.BytesIO:
        raise urllib.error.URLError("offline")

    with pytest.raises(VersionLookupError, match="ruff"):
        fetch_latest_version("ruff", opener=opener)


@pytest.mark.parametrize("body", [b"{}", b"not json", b'{"info": null}'])
def test_fetch_latest_version_rejects_bad_payloads(body: bytes):
    with pytest.raises(VersionLookupError):
        fetch_latest_version("ruff", opener=lambda request: io.BytesIO(body))


def test_latest_version_specifier():
    assert latest_version_specifier("pytest", lambda name: "8.3.0") == ">=8.3.0"
