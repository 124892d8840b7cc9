"""Configuration shared by the bootstrapper and the CLI."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field

from .naming import normalize_class_name, normalize_module_name, slugify

__all__ = ["BootstrapOptions", "Layout", "ProjectConfig", "SKIP_REMOVAL_ENV"]


SKIP_REMOVAL_ENV = "SKIPREMOVAL"


class Layout(str, Enum):
    """Where the package sources live inside the project."""

    SRC = "src"
    FLAT = "flat"


@dataclass(slots=True)
class ProjectConfig:
    """Identifiers derived from a project name.

    Attributes
    ----------
    name:
        The distribution name, as written to ``pyproject.toml``.
    package:
        The importable package name, which also names the stub entry point.
    class_name:
        A CamelCase identifier used to name the stub test class.
    """

    name: str
    package: str
    class_name: str
    description: str = ""

    @classmethod
    def from_name(
        cls,
        name: str,
        *,
        package: str | None = None,
        description: str = "",
    ) -> "ProjectConfig":
        """Build a :class:`ProjectConfig` from a directory or project name."""

        normalized_name = " ".join(name.split())
        if not normalized_name:
            raise ValueError("project name must not be empty")

        distribution = slugify(normalized_name) or normalize_module_name(normalized_name)
        return cls(
            name=distribution,
            package=package or normalize_module_name(normalized_name),
            class_name=normalize_class_name(normalized_name),
            description=description.strip(),
        )

    def context(self) -> Mapping[str, str]:
        """Return the values available to the entry point templates."""

        return {
            "name": self.name,
            "package": self.package,
            "function_name": self.package,
            "class_name": self.class_name,
            "description": self.description,
        }


def _skip_removal_from_env() -> bool:
    return bool(os.environ.get(SKIP_REMOVAL_ENV))


class BootstrapOptions(BaseModel):
    """Options for a single bootstrap run."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    root: Path = Field(default_factory=Path.cwd, description="Directory of the project being bootstrapped.")
    layout: Layout = Field(default=Layout.SRC, description="Package layout of the generated project.")
    touch: bool = Field(default=True, description="Write stub source and test files.")
    vscode: bool = Field(default=False, description="Write VS Code settings.")
    template_dir: Path | None = Field(
        default=None,
        description="Templates to render. Defaults to the project's templates/ directory, then the bundled templates.",
    )
    skip_removal: bool = Field(
        default_factory=_skip_removal_from_env,
        description="Keep the bootstrap files after a successful run.",
    )
    removable: tuple[str, ...] = Field(
        default=("bootstrap.py", "templates"),
        description="Paths relative to root deleted once bootstrapping succeeds.",
    )
