"""Render ``<% %>`` style templates."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any, Iterable, Mapping

from . import runtime
from .compiler import compile_template, generate_source
from .errors import TemplateSyntaxError
from .runtime import OUTPUT_VARIABLE
from .tokenizer import Token, tokenize

__all__ = [
    "TemplateRenderer",
    "TemplateSyntaxError",
    "default_template_dir",
    "render",
    "render_tokens",
]


LOGGER = logging.getLogger(__name__)


def render_tokens(tokens: Iterable[Token], data: Mapping[str, Any] | None = None) -> str:
    """Execute ``tokens`` against a fresh environment seeded from ``data``.

    Syntax errors are raised before anything runs. Errors raised by the
    template's own expressions propagate unchanged and no partial output is
    returned.
    """

    program = compile_template(tokens)
    source = generate_source(program)
    LOGGER.debug("compiled template program:\n%s", source)
    code = compile(source, "<template>", "exec")

    env: dict[str, Any] = dict(data or {})
    env[OUTPUT_VARIABLE] = ""
    exec(code, {"__builtins__": {}, "_env": env, "_rt": runtime})
    return env[OUTPUT_VARIABLE]


def render(template: str, data: Mapping[str, Any] | None = None) -> str:
    """Render ``template`` with the values in ``data``.

    >>> render("Hello, <%= name %>!", {"name": "World"})
    'Hello, World!'
    """

    return render_tokens(tokenize(template), data)


def default_template_dir() -> Path:
    """Return the directory holding the templates shipped with seedling."""

    return Path(str(resources.files("seedling") / "templates"))


@dataclass(slots=True)
class TemplateRenderer:
    """Render template strings and files from a template directory."""

    template_dir: Path

    def __init__(self, template_dir: str | Path | None = None) -> None:
        self.template_dir = Path(template_dir) if template_dir is not None else default_template_dir()

    def render_string(self, template: str, context: Mapping[str, Any]) -> str:
        return render(template, context)

    def render_file(
        self,
        name: str | Path,
        context: Mapping[str, Any],
        *,
        target: str | Path | None = None,
        encoding: str = "utf-8",
    ) -> str:
        """Render the template ``name`` and optionally write the result to ``target``.

        ``name`` is resolved against :attr:`template_dir` unless it is absolute.
        """

        template_path = self.template_dir / name
        if not template_path.is_file():
            raise FileNotFoundError(template_path)

        text = template_path.read_text(encoding=encoding)
        rendered = self.render_string(text, context)

        if target is not None:
            target_path = Path(target)
            target_path.parent.mkdir(parents=True, exist_ok=True)
            target_path.write_text(rendered, encoding=encoding)

        return rendered
