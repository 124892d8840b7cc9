"""Read and write the parts of ``pyproject.toml`` seedling manages.

seedling owns the project name, version, description, interpreter range,
runtime and ``dev`` requirements, the package and its layout. Every other
key of an existing file is loaded as is and written back next to them, so
rewriting the file never drops content it does not manage. Comments and
formatting of the original file are not kept.
"""

from __future__ import annotations

import datetime
import json
import re
import sys
import tomllib
from pathlib import Path
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from .config import Layout
from .naming import canonicalize_distribution

__all__ = ["PYPROJECT_TEMPLATE", "ProjectMetadata", "split_requirement"]


PYPROJECT_TEMPLATE = "pyproject.toml.tmpl"

OWNED_PROJECT_KEYS = (
    "name",
    "version",
    "description",
    "requires-python",
    "dependencies",
    "optional-dependencies",
)
PYTEST_OPTIONS = {"ini_options": {"testpaths": ["tests"]}}
SRC_PACKAGE_DIR = {"": "src"}

_REQUIREMENT_PATTERN = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)\s*(.*?)\s*$")
_BARE_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def _default_requires_python() -> str:
    return f">={sys.version_info.major}.{sys.version_info.minor}"


def _default_build_system() -> Dict[str, Any]:
    return {"requires": ["setuptools>=65.0"], "build-backend": "setuptools.build_meta"}


def _toml_string(value: str) -> str:
    # JSON string escapes are a subset of TOML basic string escapes.
    return json.dumps(value, ensure_ascii=False)


def _toml_key(key: str) -> str:
    return key if _BARE_KEY_PATTERN.match(key) else _toml_string(key)


def _toml_value(value: Any) -> str:
    """Format a loaded TOML value inline."""

    if isinstance(value, str):
        return _toml_string(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, list):
        return "[" + ", ".join(_toml_value(entry) for entry in value) + "]"
    if isinstance(value, dict):
        pairs = (f"{_toml_key(key)} = {_toml_value(entry)}" for key, entry in value.items())
        return "{" + ", ".join(pairs) + "}"
    raise TypeError(f"cannot write {type(value).__name__} values to TOML")


def _toml_lines(table: Dict[str, Any]) -> List[str]:
    return [f"{_toml_key(key)} = {_toml_value(value)}" for key, value in table.items() if not isinstance(value, dict)]


def _toml_sections(path: List[str], table: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Split ``table`` into ``[header]`` sections, nested tables last."""

    lines = _toml_lines(table)
    children = [(key, value) for key, value in table.items() if isinstance(value, dict)]
    sections: List[Dict[str, Any]] = []
    if lines or not children:
        sections.append({"header": ".".join(_toml_key(part) for part in path), "lines": lines})
    for key, value in children:
        sections.extend(_toml_sections([*path, key], value))
    return sections


def split_requirement(requirement: str) -> tuple[str, str]:
    """Split ``"ruff>=0.6"`` into ``("ruff", ">=0.6")``."""

    match = _REQUIREMENT_PATTERN.match(requirement)
    if match is None:
        raise ValueError(f"invalid requirement {requirement!r}")
    return canonicalize_distribution(match.group(1)), match.group(2)


class ProjectMetadata(BaseModel):
    """Project metadata rendered into ``pyproject.toml``."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., description="Distribution name.")
    version: str = Field(default="0.0.0", description="Initial project version.")
    description: str = Field(default="", description="One line summary.")
    requires_python: str = Field(default_factory=_default_requires_python, description="Supported interpreters.")
    dependencies: List[str] = Field(default_factory=list, description="Runtime requirements, verbatim.")
    dev_dependencies: Dict[str, str] = Field(
        default_factory=dict,
        description="Development requirements keyed by canonical name, valued by version specifier.",
    )
    package: str | None = Field(default=None, description="Importable package shipped by the project.")
    layout: Layout = Field(default=Layout.SRC, description="Where the package sources live.")
    build_system: Dict[str, Any] = Field(
        default_factory=_default_build_system, description="The [build-system] table."
    )
    project_extra: Dict[str, Any] = Field(
        default_factory=dict, description="Keys of the [project] table seedling does not manage."
    )
    optional_dependencies: Dict[str, List[str]] = Field(
        default_factory=dict, description="Optional dependency groups other than dev, verbatim."
    )
    setuptools_extra: Dict[str, Any] = Field(
        default_factory=dict, description="Keys of [tool.setuptools] seedling does not manage."
    )
    tables: Dict[str, Any] = Field(
        default_factory=dict, description="Every other table of the document, tool.setuptools excluded."
    )

    @classmethod
    def load(cls, path: str | Path) -> "ProjectMetadata":
        """Read metadata from an existing ``pyproject.toml``."""

        with Path(path).open("rb") as handle:
            document: Dict[str, Any] = tomllib.load(handle)

        build_system = document.pop("build-system", _default_build_system())
        project: Dict[str, Any] = document.pop("project", {})
        optional = dict(project.get("optional-dependencies", {}))
        dev_dependencies = dict(split_requirement(requirement) for requirement in optional.pop("dev", []))

        tool: Dict[str, Any] = document.get("tool", {})
        setuptools: Dict[str, Any] = tool.pop("setuptools", {})
        layout = Layout.FLAT
        if setuptools.get("package-dir") == SRC_PACKAGE_DIR:
            del setuptools["package-dir"]
            layout = Layout.SRC
        package = None
        packages = setuptools.get("packages")
        if isinstance(packages, list) and len(packages) == 1 and isinstance(packages[0], str):
            package = setuptools.pop("packages")[0]
        if "pytest" in dev_dependencies and tool.get("pytest") == PYTEST_OPTIONS:
            del tool["pytest"]
        if "tool" in document and not tool:
            del document["tool"]

        return cls(
            name=project.get("name", Path(path).resolve().parent.name),
            version=project.get("version", "0.0.0"),
            description=project.get("description", ""),
            requires_python=project.get("requires-python", _default_requires_python()),
            dependencies=list(project.get("dependencies", [])),
            dev_dependencies=dev_dependencies,
            package=package,
            layout=layout,
            build_system=build_system,
            project_extra={key: value for key, value in project.items() if key not in OWNED_PROJECT_KEYS},
            optional_dependencies=optional,
            setuptools_extra=setuptools,
            tables=document,
        )

    def has_dev_dependency(self, name: str) -> bool:
        return canonicalize_distribution(name) in self.dev_dependencies

    def with_dev_dependencies(self, specifiers: Dict[str, str]) -> "ProjectMetadata":
        """Return a copy with ``specifiers`` merged in, sorted by name."""

        merged = dict(self.dev_dependencies)
        for name, specifier in specifiers.items():
            merged[canonicalize_distribution(name)] = specifier
        return self.model_copy(update={"dev_dependencies": dict(sorted(merged.items()))})

    def template_context(self) -> Dict[str, Any]:
        """Return template values; strings are already quoted for TOML.

        Managed keys that also appear in ``dynamic`` or in the kept setuptools
        configuration are left out so the written document stays valid.
        """

        dynamic = self.project_extra.get("dynamic", [])
        groups: Dict[str, List[str]] = {}
        if self.dev_dependencies:
            groups["dev"] = [f"{name}{specifier}" for name, specifier in sorted(self.dev_dependencies.items())]
        groups.update(self.optional_dependencies)

        project_sections: List[Dict[str, Any]] = []
        for key, value in self.project_extra.items():
            if isinstance(value, dict):
                project_sections.extend(_toml_sections(["project", key], value))
        setuptools_sections: List[Dict[str, Any]] = []
        for key, value in self.setuptools_extra.items():
            if isinstance(value, dict):
                setuptools_sections.extend(_toml_sections(["tool", "setuptools", key], value))
        testing = "pytest" in self.dev_dependencies and "pytest" not in self.tables.get("tool", {})
        sections: List[Dict[str, Any]] = []
        for key, value in self.tables.items():
            if isinstance(value, dict):
                sections.extend(_toml_sections([key], value))

        return {
            "root_lines": _toml_lines(self.tables),
            "build_system": [
                f"{_toml_key(key)} = {_toml_value(value)}" for key, value in self.build_system.items()
            ],
            "name": _toml_string(self.name),
            "version": None if "version" in dynamic else _toml_string(self.version),
            "description": _toml_string(self.description),
            "requires_python": _toml_string(self.requires_python),
            "dependencies": (
                None
                if "dependencies" in dynamic
                else [_toml_string(requirement) for requirement in self.dependencies]
            ),
            "project_lines": _toml_lines(self.project_extra),
            "optional_dependencies": [
                {"name": _toml_key(name), "requirements": [_toml_string(requirement) for requirement in group]}
                for name, group in groups.items()
            ],
            "package": (
                _toml_string(self.package) if self.package and "packages" not in self.setuptools_extra else None
            ),
            "src_layout": self.layout is Layout.SRC and "package-dir" not in self.setuptools_extra,
            "setuptools_lines": _toml_lines(self.setuptools_extra),
            "project_sections": project_sections,
            "setuptools_sections": setuptools_sections,
            "testing": testing,
            "sections": sections,
        }
