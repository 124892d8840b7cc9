"""Bootstrap a new Python project in place.

Every step checks whether its work is already done, so a run that failed
part way can simply be repeated. Once all steps succeed the bootstrap files
are removed unless ``SKIPREMOVAL`` is set.
"""

from __future__ import annotations

import json
import logging
import os
import platform
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Callable, Sequence

from .config import BootstrapOptions, Layout, ProjectConfig
from .metadata import PYPROJECT_TEMPLATE, ProjectMetadata
from .template import TemplateRenderer
from .versions import VersionResolver, fetch_latest_version, latest_version_specifier

__all__ = ["Bootstrapper", "CommandRunner", "LINT_PACKAGES", "TEST_PACKAGES", "run_command"]


LOGGER = logging.getLogger(__name__)

LINT_PACKAGES = ("ruff",)
TEST_PACKAGES = ("pytest",)
LINE_LENGTH = 100
VSCODE_IGNORE_ENTRY = "/.vscode/settings.json"

CommandRunner = Callable[[Sequence[str], Path], None]


def run_command(command: Sequence[str], cwd: Path) -> None:
    subprocess.run(list(command), cwd=cwd, check=True)


class Bootstrapper:
    """Run the bootstrap steps against ``options.root``."""

    def __init__(
        self,
        options: BootstrapOptions,
        *,
        resolver: VersionResolver = fetch_latest_version,
        runner: CommandRunner = run_command,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.options = options
        self.root = options.root.expanduser().resolve()
        self.resolver = resolver
        self.runner = runner
        self.renderer = renderer or TemplateRenderer(self._template_dir())

    def _template_dir(self) -> Path | None:
        if self.options.template_dir is not None:
            return self.options.template_dir
        local = self.root / "templates"
        return local if local.is_dir() else None

    @property
    def pyproject_path(self) -> Path:
        return self.root / "pyproject.toml"

    def run(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        self.init_metadata()
        self.install_lint_tooling()
        self.setup_testing()
        self.pin_python_version()
        self.git_init()
        if self.options.touch:
            self.touch_entry_points()
        if self.options.vscode:
            self.setup_vscode()
        self.self_remove()

    # Metadata

    def load_metadata(self) -> ProjectMetadata:
        return ProjectMetadata.load(self.pyproject_path)

    def save_metadata(self, metadata: ProjectMetadata) -> None:
        self.renderer.render_file(PYPROJECT_TEMPLATE, metadata.template_context(), target=self.pyproject_path)

    def add_dev_dependencies(self, *packages: str) -> ProjectMetadata:
        """Pin ``packages`` to their latest release and save the metadata."""

        specifiers = {package: latest_version_specifier(package, self.resolver) for package in packages}
        metadata = self.load_metadata().with_dev_dependencies(specifiers)
        self.save_metadata(metadata)
        return metadata

    # Steps

    def init_metadata(self) -> None:
        if self.pyproject_path.exists():
            LOGGER.info("Skipping init, pyproject.toml already exists.")
            return

        config = ProjectConfig.from_name(self.root.name)
        LOGGER.info("Creating pyproject.toml for %s", config.name)
        self.save_metadata(ProjectMetadata(name=config.name, layout=self.options.layout))

    def install_lint_tooling(self) -> None:
        if self.load_metadata().has_dev_dependency("ruff"):
            LOGGER.info("Skipping lint tooling installation: Already installed")
            return

        self.add_dev_dependencies(*LINT_PACKAGES)
        context = {
            "line_length": LINE_LENGTH,
            "target_version": f"py{sys.version_info.major}{sys.version_info.minor}",
        }
        self.renderer.render_file(
            f"{self.options.layout.value}/ruff.toml.tmpl",
            context,
            target=self.root / "ruff.toml",
        )

    def setup_testing(self) -> None:
        self.add_dev_dependencies(*TEST_PACKAGES)

    def pin_python_version(self) -> None:
        version_file = self.root / ".python-version"
        if version_file.exists():
            LOGGER.info("Skipping interpreter pin: Already configured")
        elif os.environ.get("PYENV_ROOT"):
            version_file.write_text(platform.python_version(), encoding="utf-8")
        else:
            LOGGER.info("Skipping interpreter pin: pyenv not found.")

    def git_init(self) -> None:
        if (self.root / ".git").exists():
            LOGGER.info("Already in a git repo.")
            return
        self.runner(["git", "init"], self.root)

    def touch_entry_points(self) -> None:
        metadata = self.load_metadata()
        config = ProjectConfig.from_name(metadata.name, description=metadata.description)

        package_dir = self.root / config.package
        if self.options.layout is Layout.SRC:
            package_dir = self.root / "src" / config.package
        module_path = package_dir / "__init__.py"
        test_path = self.root / "tests" / f"test_{config.package}.py"

        if module_path.exists() or test_path.exists():
            LOGGER.info("Skipping entry points: %s already exists", config.package)
        else:
            context = config.context()
            self.renderer.render_file("package_init.py.tmpl", context, target=module_path)
            self.renderer.render_file("test_package.py.tmpl", context, target=test_path)

        self.save_metadata(metadata.model_copy(update={"package": config.package, "layout": self.options.layout}))

    def setup_vscode(self) -> None:
        settings_path = self.root / ".vscode" / "settings.json"
        if settings_path.exists():
            LOGGER.info("Skipping VS Code settings: %s already exists", settings_path.name)
        else:
            settings: dict[str, object] = {"editor.formatOnSave": True}
            if self.options.layout is Layout.SRC:
                settings["python.analysis.extraPaths"] = ["src"]
            settings_path.parent.mkdir(exist_ok=True)
            settings_path.write_text(json.dumps(settings, indent=4) + "\n", encoding="utf-8")

        gitignore = self.root / ".gitignore"
        if gitignore.exists() and VSCODE_IGNORE_ENTRY in gitignore.read_text(encoding="utf-8").splitlines():
            LOGGER.info("Skipping .gitignore entry: Already ignored")
            return
        with gitignore.open("a", encoding="utf-8") as handle:
            handle.write(f"\n# VS Code User Specific Settings\n{VSCODE_IGNORE_ENTRY}\n")

    def self_remove(self) -> None:
        LOGGER.info("Removing bootstrap files.")

        if self.options.skip_removal:
            LOGGER.info("Skipping removal of: %s", ", ".join(self.options.removable))
            return

        for relative in self.options.removable:
            path = self.root / relative
            if path.is_dir():
                shutil.rmtree(path)
            elif path.exists():
                path.unlink()

        # Drops the usage notes of the project template.
        (self.root / "README.md").write_text("", encoding="utf-8")
