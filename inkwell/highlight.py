from __future__ import annotations

import html
import logging
import re
import tomllib
from pathlib import Path
from typing import Callable, Optional

from markdown.extensions import Extension
from markdown.preprocessors import Preprocessor
from pygments import highlight as pygments_highlight
from pygments.formatters import HtmlFormatter
from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name, load_lexer_from_file
from pygments.style import Style
from pygments.styles import get_all_styles, get_style_by_name
from pygments.token import string_to_tokentype
from pygments.util import ClassNotFound

from .errors import AssetLoadError

logger = logging.getLogger(__name__)

FENCED_BLOCK_RE = re.compile(
    r"^ {0,3}(?P<fence>(?P<char>[`~])(?P=char){2,})(?!(?P=char))[ ]*(?P<lang>[\w#.+-]*)[^\n]*\n"
    r"(?P<code>.*?)(?<=\n) {0,3}(?P=fence)(?P=char)*[ ]*$",
    re.MULTILINE | re.DOTALL,
)

CodeBlockHandler = Callable[[str, str], str]


def load_custom_theme(path: Path) -> type[Style]:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        raise AssetLoadError(f"cannot read syntax theme: {exc}", path) from exc

    name = data.get("name") or path.stem
    styles = data.get("styles", {})
    if not isinstance(name, str) or not isinstance(styles, dict):
        raise AssetLoadError("syntax theme needs a string name and a [styles] table", path)

    token_styles = {}
    for token_name, value in styles.items():
        token_name = token_name.removeprefix("Token.")
        token_styles[string_to_tokentype(token_name)] = str(value)

    attrs = {"name": name, "styles": token_styles}
    for key in ("background_color", "highlight_color"):
        if key in data:
            attrs[key] = str(data[key])
    try:
        return type(f"{path.stem.title()}Style", (Style,), attrs)
    except Exception as exc:
        raise AssetLoadError(f"invalid syntax theme: {exc}", path) from exc


def load_theme_set(theme_dir: Path) -> dict[str, type[Style]]:
    themes = {name: get_style_by_name(name) for name in get_all_styles()}
    if theme_dir.is_dir():
        for path in sorted(theme_dir.glob("*.toml")):
            style = load_custom_theme(path)
            themes[style.name] = style
            logger.debug("loaded syntax theme %s from %s", style.name, path)
    return themes


def load_syntax_set(syntaxes_dir: Path) -> dict[str, type[Lexer]]:
    syntaxes: dict[str, type[Lexer]] = {}
    if not syntaxes_dir.is_dir():
        return syntaxes
    for path in sorted(syntaxes_dir.glob("*.py")):
        try:
            lexer = load_lexer_from_file(str(path))
        except (ClassNotFound, OSError) as exc:
            raise AssetLoadError(f"cannot load syntax: {exc}", path) from exc
        if not lexer.name:
            raise AssetLoadError("custom lexer needs a name", path)
        for alias in [*lexer.aliases, lexer.name]:
            syntaxes[alias.lower()] = type(lexer)
        logger.debug("loaded syntax %s from %s", lexer.name, path)
    return syntaxes


def highlight(
    code: str,
    language_tag: str,
    theme: type[Style],
    syntaxes: Optional[dict[str, type[Lexer]]] = None,
) -> Optional[str]:
    if not language_tag:
        return None
    tag = language_tag.lower()
    lexer_cls = (syntaxes or {}).get(tag)
    if lexer_cls is not None:
        lexer = lexer_cls()
    else:
        try:
            lexer = get_lexer_by_name(tag)
        except ClassNotFound:
            return None
    formatter = HtmlFormatter(style=theme, noclasses=True)
    return pygments_highlight(code, lexer, formatter)


def plain_code_block(code: str, language_tag: str = "") -> str:
    escaped = html.escape(code)
    if language_tag:
        return f'<pre><code class="language-{html.escape(language_tag)}">{escaped}</code></pre>'
    return f"<pre><code>{escaped}</code></pre>"


class Highlighter:
    def __init__(self, theme: type[Style], syntaxes: Optional[dict[str, type[Lexer]]] = None) -> None:
        self.theme = theme
        self.syntaxes = syntaxes or {}

    def __call__(self, code: str, language_tag: str) -> str:
        highlighted = highlight(code, language_tag, self.theme, self.syntaxes)
        if highlighted is None:
            return plain_code_block(code, language_tag)
        return highlighted


class FencedBlockPreprocessor(Preprocessor):
    def __init__(self, md, handler: CodeBlockHandler):
        super().__init__(md)
        self.handler = handler

    def run(self, lines: list[str]) -> list[str]:
        text = "\n".join(lines)

        def repl(match: re.Match) -> str:
            block_html = self.handler(match.group("code"), match.group("lang"))
            placeholder = self.md.htmlStash.store(block_html)
            return f"\n\n{placeholder}\n\n"

        return FENCED_BLOCK_RE.sub(repl, text).split("\n")


class FencedBlockExtension(Extension):
    def __init__(self, handler: CodeBlockHandler, **kwargs):
        super().__init__(**kwargs)
        self.handler = handler

    def extendMarkdown(self, md):
        md.preprocessors.register(FencedBlockPreprocessor(md, self.handler), "fenced_code_block", 25)
