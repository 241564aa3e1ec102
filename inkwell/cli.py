from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional

from .build import build
from .config import CONFIG_FILE, DEFAULT_SYNTAX_THEME, DEFAULT_SYNTAXES_DIR, DEFAULT_THEMES_DIR, load_project_config
from .defaults import (
    DEFAULT_CSS_STYLESHEET,
    DEFAULT_HTML_TEMPLATE,
    DEFAULT_INDEX_FILE,
    DEFAULT_MARKDOWN_STARTER,
    DEFAULT_STYLESHEET_FILE,
    DEFAULT_TEMPLATE_FILE,
    default_config_toml,
)
from .errors import SiteError
from .utils import clean_output_dir

NAME = "inkwell"
DEFAULT_SOURCE_DIR = "src"
DEFAULT_DEST_DIR = "dest"


def report_error(exc: SiteError) -> int:
    print(f"[{NAME}] {exc.kind}: {exc}", file=sys.stderr)
    return exc.exit_code


def _write_new(path: Path, text: str, created: list[Path]) -> None:
    if path.exists():
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    created.append(path)


def init_project(
    directory: Path,
    source: str = DEFAULT_SOURCE_DIR,
    dest: str = DEFAULT_DEST_DIR,
    syntaxes: str = DEFAULT_SYNTAXES_DIR,
    syntax_themes: str = DEFAULT_THEMES_DIR,
) -> list[Path]:
    config_path = directory / CONFIG_FILE
    if config_path.exists():
        return []
    created: list[Path] = []
    _write_new(
        config_path,
        default_config_toml(source, dest, syntaxes, syntax_themes, DEFAULT_SYNTAX_THEME),
        created,
    )
    for name in (source, dest, syntaxes, syntax_themes):
        path = directory / name
        if not path.exists():
            path.mkdir(parents=True)
            created.append(path)
    _write_new(directory / DEFAULT_TEMPLATE_FILE, DEFAULT_HTML_TEMPLATE, created)
    _write_new(directory / DEFAULT_STYLESHEET_FILE, DEFAULT_CSS_STYLESHEET, created)
    _write_new(directory / source / DEFAULT_INDEX_FILE, DEFAULT_MARKDOWN_STARTER, created)
    return created


def cmd_build(args: argparse.Namespace) -> int:
    try:
        project = load_project_config(Path(args.path))
        start = time.perf_counter()
        report = build(project, workers=args.workers)
    except SiteError as exc:
        return report_error(exc)
    elapsed = time.perf_counter() - start
    summary = report.summary()
    print(summary[0])
    for line in summary[1:]:
        print(line, file=sys.stderr)
    print(f"Build completed in {elapsed:.2f}s.")
    if report.ok:
        print(f"Site generated in: {project.dest_path}")
        return 0
    return 1


def cmd_clean(args: argparse.Namespace) -> int:
    try:
        project = load_project_config(Path(args.path))
        removed = clean_output_dir(project.dest_path, project.root)
    except SiteError as exc:
        return report_error(exc)
    if removed:
        print(f"Removed: {project.dest_path}")
    return 0


def cmd_init(args: argparse.Namespace) -> int:
    directory = Path(args.path)
    if (directory / CONFIG_FILE).exists():
        print(f"{directory / CONFIG_FILE} already exists, nothing to do.")
        return 0
    for path in init_project(directory):
        print(f'Created: "{path}"')
    return 0


def cmd_new(args: argparse.Namespace) -> int:
    directory = Path(args.name)
    try:
        directory.mkdir(parents=True)
    except OSError as exc:
        print(f'[{NAME}] cannot create project "{directory}": {exc}', file=sys.stderr)
        return 1
    created = init_project(
        directory,
        source=args.source,
        dest=args.dest,
        syntaxes=args.syntaxes,
        syntax_themes=args.syntax_themes,
    )
    for path in created:
        print(f'Created: "{path}"')
    return 0


def make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=NAME, description="A static HTML generator.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug output.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser("build", help="Build static HTML from an existing project.")
    build_parser.add_argument("path", nargs="?", default=".", help="Project directory or descriptor file.")
    build_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of worker threads (0 = auto, default from the descriptor).",
    )
    build_parser.set_defaults(func=cmd_build)

    clean_parser = subparsers.add_parser("clean", help="Remove the destination directory.")
    clean_parser.add_argument("path", nargs="?", default=".", help="Project directory or descriptor file.")
    clean_parser.set_defaults(func=cmd_clean)

    init_parser = subparsers.add_parser("init", help="Initialize a project in an existing directory.")
    init_parser.add_argument("path", nargs="?", default=".", help="Project directory.")
    init_parser.set_defaults(func=cmd_init)

    new_parser = subparsers.add_parser("new", help="Create a new project directory.")
    new_parser.add_argument("name", help="Directory to create.")
    new_parser.add_argument("--dest", default=DEFAULT_DEST_DIR, help="Destination directory name.")
    new_parser.add_argument("--source", default=DEFAULT_SOURCE_DIR, help="Source directory name.")
    new_parser.add_argument("--syntaxes", default=DEFAULT_SYNTAXES_DIR, help="Custom syntaxes directory name.")
    new_parser.add_argument(
        "--syntax_themes",
        "--syntax-themes",
        dest="syntax_themes",
        default=DEFAULT_THEMES_DIR,
        help="Custom syntax themes directory name.",
    )
    new_parser.set_defaults(func=cmd_new)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = make_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(message)s")
    return args.func(args)
