from __future__ import annotations

import enum
import logging
from pathlib import Path
from typing import Callable, Optional

import markdown
import pymdownx.emoji

from .cache import AssetStore
from .config import ProjectConfig, parse_page_info, resolve
from .errors import AssetLoadError, MissingRequiredField, RenderError
from .highlight import CodeBlockHandler, FencedBlockExtension, Highlighter
from .render import page_context, render_template

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSIONS = ["tables", "sane_lists", "pymdownx.tilde", "pymdownx.tasklist", "pymdownx.emoji"]
MARKDOWN_EXTENSION_CONFIGS = {
    "pymdownx.tilde": {"subscript": False},
    "pymdownx.emoji": {
        "emoji_index": pymdownx.emoji.gemoji,
        "emoji_generator": pymdownx.emoji.to_alt,
    },
}


class SourceKind(enum.Enum):
    MARKDOWN = "markdown"
    HTML = "html"
    CSS = "css"
    IGNORED = "ignored"


SUFFIX_KINDS = {
    ".md": SourceKind.MARKDOWN,
    ".markdown": SourceKind.MARKDOWN,
    ".html": SourceKind.HTML,
    ".htm": SourceKind.HTML,
    ".css": SourceKind.CSS,
}


def classify(path: Path) -> SourceKind:
    return SUFFIX_KINDS.get(path.suffix.lower(), SourceKind.IGNORED)


def output_path(relative: Path, kind: SourceKind) -> Path:
    if kind is SourceKind.MARKDOWN:
        return relative.with_suffix(".html")
    return relative


def render_markdown(text: str, code_block_handler: CodeBlockHandler) -> str:
    md = markdown.Markdown(
        extensions=[*MARKDOWN_EXTENSIONS, FencedBlockExtension(code_block_handler)],
        extension_configs=MARKDOWN_EXTENSION_CONFIGS,
    )
    return md.convert(text)


def _optional_asset(load: Callable[[Path], str], path: Optional[Path], page: Path) -> Optional[str]:
    if path is None:
        return None
    try:
        return load(path)
    except AssetLoadError as exc:
        logger.warning("%s: rendering without optional asset: %s", page, exc)
        return None


def render_page(source_text: str, path: Path, project: ProjectConfig, store: AssetStore) -> str:
    info, body = parse_page_info(source_text, path)
    effective = resolve(project, info)
    if effective.template is None:
        raise MissingRequiredField("no template set in page info or project defaults", path)

    template = store.template(effective.template)
    stylesheet = _optional_asset(store.stylesheet, effective.stylesheet, path)
    favicon = _optional_asset(store.favicon, effective.favicon, path)

    if project.generation.treat_source_as_template:
        body = render_template(body, page_context(effective, stylesheet, favicon))

    theme = store.theme(project.resolve_path(project.custom_theme_dir), project.syntax_theme)
    syntaxes = store.syntax_set(project.resolve_path(project.syntaxes_dir))
    try:
        content = render_markdown(body, Highlighter(theme, syntaxes))
    except Exception as exc:
        raise RenderError(f"markdown conversion failed: {exc}", path) from exc

    return render_template(template, page_context(effective, stylesheet, favicon, content))
