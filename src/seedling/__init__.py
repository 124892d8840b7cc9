"""A project bootstrapper built around a tiny ``<% %>`` template engine.

The engine tokenizes templates into text, print and code blocks, compiles
them into a short Python program and runs it against a fresh environment
seeded from the caller's data. The bootstrapper uses it to render the files
of a new project: ``pyproject.toml``, the lint configuration and the stub
package and test modules.
"""

from __future__ import annotations

from .bootstrap import Bootstrapper
from .config import BootstrapOptions, Layout, ProjectConfig
from .errors import ExpressionSyntaxError, TemplateError, TemplateSyntaxError, VersionLookupError
from .metadata import ProjectMetadata
from .template import TemplateRenderer, render, render_tokens
from .tokenizer import Token, TokenKind, Trim, tokenize

__all__ = [
    "BootstrapOptions",
    "Bootstrapper",
    "ExpressionSyntaxError",
    "Layout",
    "ProjectConfig",
    "ProjectMetadata",
    "TemplateError",
    "TemplateRenderer",
    "TemplateSyntaxError",
    "Token",
    "TokenKind",
    "Trim",
    "VersionLookupError",
    "render",
    "render_tokens",
    "tokenize",
]

__version__ = "0.1.0"
