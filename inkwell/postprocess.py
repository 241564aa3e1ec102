from __future__ import annotations

import logging

import minify_html

logger = logging.getLogger(__name__)


def minify(html_bytes: bytes) -> bytes:
    """Minify an HTML document, returning the input unchanged if it cannot be minified."""
    try:
        text = html_bytes.decode("utf-8")
        minified = minify_html.minify(
            text,
            keep_closing_tags=True,
            keep_html_and_head_opening_tags=True,
            minify_css=True,
            minify_js=True,
        )
    except (UnicodeDecodeError, ValueError, SyntaxError) as exc:
        logger.warning("HTML minification failed, keeping unminified output: %s", exc)
        return html_bytes
    return minified.encode("utf-8")
