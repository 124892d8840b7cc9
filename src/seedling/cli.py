"""Command line interface for seedling."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterable, Sequence

from .bootstrap import Bootstrapper
from .config import BootstrapOptions, Layout
from .template import TemplateRenderer

LOGGER = logging.getLogger(__name__)


def _parse_key_value_pairs(pairs: Iterable[str]) -> dict[str, str]:
    context: dict[str, str] = {}
    for pair in pairs:
        if "=" not in pair:
            raise argparse.ArgumentTypeError(
                f"invalid key/value pair '{pair}'. Expected KEY=VALUE syntax."
            )
        key, value = pair.split("=", 1)
        key = key.strip()
        if not key:
            raise argparse.ArgumentTypeError("keys must not be empty")
        context[key] = value
    return context


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Bootstrap Python projects from templates")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init", help="bootstrap a project in a directory")
    init_parser.add_argument(
        "directory",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Project directory, defaults to the current directory",
    )
    init_parser.add_argument(
        "--flat",
        action="store_true",
        help="Place the package at the project root instead of under src/",
    )
    init_parser.add_argument(
        "--no-touch",
        "--skip-touch",
        dest="touch",
        action="store_false",
        help="Do not write stub source and test files",
    )
    init_parser.add_argument("--vscode", action="store_true", help="Write VS Code settings")
    init_parser.add_argument("--template-dir", type=Path, help="Render templates from this directory")

    render_parser = subparsers.add_parser("render", help="render a template file")
    render_parser.add_argument("template", type=Path, help="Path to the template file")
    render_parser.add_argument(
        "-c",
        "--context",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Values exposed to the template",
    )
    render_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Write the rendered template to this path instead of stdout",
    )

    return parser


def _handle_init(args: argparse.Namespace) -> int:
    options = BootstrapOptions(
        root=args.directory,
        layout=Layout.FLAT if args.flat else Layout.SRC,
        touch=args.touch,
        vscode=args.vscode,
        template_dir=args.template_dir,
    )
    try:
        Bootstrapper(options).run()
    except Exception:
        LOGGER.exception("An error happened. Try running the script again.")
        return 1
    LOGGER.info("Bootstrap completed. Now install dependencies with: pip install -e '.[dev]'")
    return 0


def _handle_render(args: argparse.Namespace) -> int:
    template_path = args.template.resolve()
    renderer = TemplateRenderer(template_path.parent)
    context = _parse_key_value_pairs(args.context)
    rendered = renderer.render_file(template_path.name, context, target=args.output)
    if args.output is None:
        sys.stdout.write(rendered)
        if not rendered.endswith("\n"):
            sys.stdout.write("\n")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
        stream=sys.stderr,
    )
    if args.command == "init":
        return _handle_init(args)
    if args.command == "render":
        return _handle_render(args)
    parser.error("no command provided")
    return 2


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
