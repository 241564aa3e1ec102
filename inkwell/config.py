from __future__ import annotations

import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .errors import InvalidPath, MalformedDocument, MissingPageInfo, MissingRequiredField
from .utils import parse_bool, parse_int

CONFIG_FILE = "inkwell.toml"
PAGE_INFO_TAG = "pageinfo"
DEFAULT_TITLE_SEPARATOR = " — "
DEFAULT_SYNTAXES_DIR = "syntaxes"
DEFAULT_THEMES_DIR = "syntax-themes"
DEFAULT_SYNTAX_THEME = "monokai"

FENCE_RE = re.compile(r"^(?P<indent> {0,3})(?P<fence>`{3,}|~{3,})(?P<info>.*)$")


@dataclass(frozen=True)
class SiteMeta:
    site_name: Optional[str] = None
    authors: Optional[tuple[str, ...]] = None


@dataclass(frozen=True)
class MetaPolicy:
    """How the site name is appended to page titles.

    ``enabled=False`` leaves titles untouched; otherwise the title becomes
    ``title + separator + site_name``.
    """

    enabled: bool = False
    separator: str = DEFAULT_TITLE_SEPARATOR


@dataclass(frozen=True)
class Generation:
    minify: bool = False
    treat_source_as_template: bool = False
    workers: int = 0


@dataclass(frozen=True)
class Defaults:
    template: Optional[Path] = None
    stylesheet: Optional[Path] = None
    favicon: Optional[Path] = None
    meta: SiteMeta = field(default_factory=SiteMeta)


@dataclass(frozen=True)
class ProjectConfig:
    root: Path
    source_dir: Path
    dest_dir: Path
    syntaxes_dir: Path = Path(DEFAULT_SYNTAXES_DIR)
    custom_theme_dir: Path = Path(DEFAULT_THEMES_DIR)
    syntax_theme: str = DEFAULT_SYNTAX_THEME
    default: Defaults = field(default_factory=Defaults)
    meta: MetaPolicy = field(default_factory=MetaPolicy)
    generation: Generation = field(default_factory=Generation)

    def resolve_path(self, path: Path) -> Path:
        return self.root / path

    @property
    def source_path(self) -> Path:
        return self.resolve_path(self.source_dir)

    @property
    def dest_path(self) -> Path:
        return self.resolve_path(self.dest_dir)


@dataclass(frozen=True)
class PageInfo:
    title: str
    description: str
    style: Optional[Path] = None
    template: Optional[Path] = None
    favicon: Optional[Path] = None
    meta: SiteMeta = field(default_factory=SiteMeta)


@dataclass(frozen=True)
class EffectiveConfig:
    title: str
    description: str
    template: Optional[Path]
    stylesheet: Optional[Path]
    favicon: Optional[Path]
    meta: SiteMeta
    title_policy: MetaPolicy


def _table(data: dict, key: str, source: Optional[Path]) -> dict:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MalformedDocument(f"[{key}] must be a table", source)
    return value


def _optional_str(data: dict, key: str, source: Optional[Path]) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise MalformedDocument(f"{key} must be a string", source)
    return value


def _authors(data: dict, source: Optional[Path]) -> Optional[tuple[str, ...]]:
    value = data.get("authors")
    if value is None:
        return None
    if isinstance(value, str):
        return (value,)
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return tuple(value)
    raise MalformedDocument("authors must be a string or a list of strings", source)


def _site_meta(data: dict, source: Optional[Path]) -> SiteMeta:
    return SiteMeta(site_name=_optional_str(data, "site_name", source), authors=_authors(data, source))


def _project_path(data: dict, key: str, source: Path, default: Optional[str] = None) -> Optional[Path]:
    value = data.get(key, default)
    if value is None:
        return None
    if not isinstance(value, str) or not value.strip():
        raise InvalidPath(f"{key} must be a non-empty path string", source)
    path = Path(value)
    if path.is_absolute():
        raise InvalidPath(f"{key} must be relative to the project directory, got {value}", source)
    return path


def _title_policy(data: dict, source: Path) -> MetaPolicy:
    value = data.get("append_site_name_to_title", False)
    if isinstance(value, bool):
        return MetaPolicy(enabled=value)
    if isinstance(value, str):
        return MetaPolicy(enabled=True, separator=value)
    raise MalformedDocument("append_site_name_to_title must be a boolean or a separator string", source)


def load_project_config(root_path: Path) -> ProjectConfig:
    root_path = Path(root_path)
    if root_path.is_dir():
        config_path = root_path / CONFIG_FILE
    else:
        config_path = root_path
    config_path = config_path.resolve()
    root = config_path.parent

    if not config_path.is_file():
        raise InvalidPath("project descriptor not found", config_path)
    try:
        text = config_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise MalformedDocument(f"cannot read project descriptor: {exc}", config_path) from exc
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise MalformedDocument(f"invalid TOML: {exc}", config_path) from exc

    for key in ("source", "dest"):
        if key not in data:
            raise MissingRequiredField(f"missing required field '{key}'", config_path)

    source_dir = _project_path(data, "source", config_path)
    dest_dir = _project_path(data, "dest", config_path)
    if not (root / source_dir).is_dir():
        raise InvalidPath(f"source directory does not exist: {source_dir}", config_path)
    if (root / source_dir).resolve() == (root / dest_dir).resolve():
        raise InvalidPath("source and dest must be different directories", config_path)

    syntax_theme = data.get("syntax_theme", DEFAULT_SYNTAX_THEME)
    if not isinstance(syntax_theme, str) or not syntax_theme:
        raise MalformedDocument("syntax_theme must be a non-empty string", config_path)

    default_table = _table(data, "default", config_path)
    defaults = Defaults(
        template=_project_path(default_table, "template", config_path),
        stylesheet=_project_path(default_table, "stylesheet", config_path),
        favicon=_project_path(default_table, "favicon", config_path),
        meta=_site_meta(_table(default_table, "meta", config_path), config_path),
    )

    generation_table = _table(data, "generation", config_path)
    generation = Generation(
        minify=parse_bool(generation_table.get("minify")),
        treat_source_as_template=parse_bool(generation_table.get("treat_source_as_template")),
        workers=max(0, parse_int(generation_table.get("workers"), 0)),
    )

    return ProjectConfig(
        root=root,
        source_dir=source_dir,
        dest_dir=dest_dir,
        syntaxes_dir=_project_path(data, "syntaxes", config_path, DEFAULT_SYNTAXES_DIR),
        custom_theme_dir=_project_path(data, "custom_syntax_themes", config_path, DEFAULT_THEMES_DIR),
        syntax_theme=syntax_theme,
        default=defaults,
        meta=_title_policy(_table(data, "meta", config_path), config_path),
        generation=generation,
    )


def _find_page_info_blocks(lines: list[str], path: Optional[Path]) -> list[tuple[int, int]]:
    blocks = []
    open_fence = None
    start = 0
    is_page_info = False
    for i, line in enumerate(lines):
        match = FENCE_RE.match(line.rstrip("\r\n"))
        if open_fence is None:
            if not match:
                continue
            fence = match.group("fence")
            info = match.group("info").strip()
            if fence[0] == "`" and "`" in info:
                continue
            open_fence = fence
            start = i
            is_page_info = info.split()[0].lower() == PAGE_INFO_TAG if info else False
            continue
        if (
            match
            and match.group("fence")[0] == open_fence[0]
            and len(match.group("fence")) >= len(open_fence)
            and not match.group("info").strip()
        ):
            if is_page_info:
                blocks.append((start, i))
            open_fence = None
    if open_fence is not None and is_page_info:
        raise MalformedDocument("unterminated pageinfo block", path)
    return blocks


def parse_page_info(markdown_source: str, path: Optional[Path] = None) -> tuple[PageInfo, str]:
    """Extract the ``pageinfo`` block from a Markdown source.

    Returns the parsed page info and the source with the block removed, so
    the metadata never reaches the Markdown renderer.
    """
    text = markdown_source.lstrip("\ufeff")
    lines = text.splitlines(keepends=True)
    blocks = _find_page_info_blocks(lines, path)
    if not blocks:
        raise MissingPageInfo("missing page info in file", path)
    if len(blocks) > 1:
        raise MalformedDocument("more than one pageinfo block", path)

    start, end = blocks[0]
    body = "".join(lines[start + 1 : end])
    remaining = "".join(lines[:start] + lines[end + 1 :])
    try:
        data = tomllib.loads(body)
    except tomllib.TOMLDecodeError as exc:
        raise MalformedDocument(f"invalid page info: {exc}", path) from exc

    for key in ("title", "description"):
        if key not in data:
            raise MalformedDocument(f"page info is missing '{key}'", path)
        if not isinstance(data[key], str):
            raise MalformedDocument(f"page info '{key}' must be a string", path)

    def page_path(key: str) -> Optional[Path]:
        value = _optional_str(data, key, path)
        return Path(value) if value else None

    info = PageInfo(
        title=data["title"],
        description=data["description"],
        style=page_path("style"),
        template=page_path("template"),
        favicon=page_path("favicon"),
        meta=_site_meta(_table(data, "meta", path), path),
    )
    return info, remaining


def _pick(override, default):
    return default if override is None else override


def resolve(project: ProjectConfig, page: PageInfo) -> EffectiveConfig:
    defaults = project.default

    def absolute(path: Optional[Path]) -> Optional[Path]:
        return None if path is None else project.resolve_path(path)

    return EffectiveConfig(
        title=page.title,
        description=page.description,
        template=absolute(_pick(page.template, defaults.template)),
        stylesheet=absolute(_pick(page.style, defaults.stylesheet)),
        favicon=absolute(_pick(page.favicon, defaults.favicon)),
        meta=SiteMeta(
            site_name=_pick(page.meta.site_name, defaults.meta.site_name),
            authors=_pick(page.meta.authors, defaults.meta.authors),
        ),
        title_policy=project.meta,
    )
