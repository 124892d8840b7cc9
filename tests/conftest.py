from __future__ import annotations

import sys
from pathlib import Path
from typing import Sequence

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


LATEST_VERSIONS = {"ruff": "0.6.0", "pytest": "8.3.0"}


class RecordingRunner:
    """Stand-in for ``subprocess.run`` that records commands instead."""

    def __init__(self, create_git_dir: bool = True) -> None:
        self.calls: list[tuple[list[str], Path]] = []
        self.create_git_dir = create_git_dir

    def __call__(self, command: Sequence[str], cwd: Path) -> None:
        self.calls.append((list(command), cwd))
        if self.create_git_dir and list(command) == ["git", "init"]:
            (cwd / ".git").mkdir()


@pytest.fixture()
def resolver_calls() -> list[str]:
    return []


@pytest.fixture()
def fake_resolver(resolver_calls: list[str]):
    def resolve(name: str) -> str:
        resolver_calls.append(name)
        return LATEST_VERSIONS[name]

    return resolve


@pytest.fixture()
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep interpreter pinning and removal independent of the calling shell."""

    monkeypatch.delenv("PYENV_ROOT", raising=False)
    monkeypatch.delenv("SKIPREMOVAL", raising=False)
