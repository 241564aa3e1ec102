from __future__ import annotations

import base64
import html
import mimetypes
import re
from pathlib import Path
from typing import Optional

from .config import EffectiveConfig, MetaPolicy

PLACEHOLDER_RE = re.compile(r"\{\{([A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)?)\}\}")
DEFAULT_FAVICON_MIME = "image/x-icon"


def render_template(template: str, context: dict[str, str]) -> str:
    def repl(match: re.Match) -> str:
        value = context.get(match.group(1))
        return match.group(0) if value is None else value

    return PLACEHOLDER_RE.sub(repl, template)


def format_title(title: str, site_name: Optional[str], policy: MetaPolicy) -> str:
    if not policy.enabled or not site_name:
        return title
    return f"{title}{policy.separator}{site_name}"


def guess_favicon_mime(path: Path) -> str:
    mime, _ = mimetypes.guess_type(path.name)
    if not mime or not mime.startswith("image/"):
        return DEFAULT_FAVICON_MIME
    return mime


def favicon_link(data: bytes, mime: str = DEFAULT_FAVICON_MIME) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f'<link rel="icon" type="{mime}" href="data:{mime};base64,{encoded}">'


def style_tag(css: Optional[str]) -> str:
    if not css:
        return ""
    return f"<style>{css}</style>"


def page_context(
    effective: EffectiveConfig,
    stylesheet: Optional[str] = None,
    favicon: Optional[str] = None,
    content: Optional[str] = None,
) -> dict[str, str]:
    site_name = effective.meta.site_name or ""
    authors = effective.meta.authors or ()
    title = format_title(effective.title, site_name, effective.title_policy)
    context = {
        "title": html.escape(title),
        "description": html.escape(effective.description),
        "stylesheet": style_tag(stylesheet),
        "favicon": favicon or "",
        "meta.site_name": html.escape(site_name),
        "meta.authors": html.escape(", ".join(authors)),
    }
    if content is not None:
        context["content"] = content
    return context
