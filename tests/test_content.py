"""Tests for the content pipeline: classification, Markdown, highlighting, minification."""

from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest
from pygments.styles import get_style_by_name

from conftest import page
from inkwell.cache import AssetStore
from inkwell.config import Defaults, Generation, load_project_config
from inkwell.content import SourceKind, classify, output_path, render_markdown, render_page
from inkwell.errors import AssetLoadError, MissingRequiredField
from inkwell.highlight import Highlighter, highlight, load_syntax_set, load_theme_set
from inkwell.postprocess import minify

CUSTOM_LEXER = '''from pygments.lexer import RegexLexer
from pygments.token import Keyword, Text


class CustomLexer(RegexLexer):
    name = "Ink"
    aliases = ["ink"]
    tokens = {"root": [(r"ink", Keyword), (r"[^i]+|i", Text)]}
'''

CUSTOM_THEME = """name = "inky"
background_color = "#000000"

[styles]
Keyword = "bold #ff0000"
"""


@pytest.mark.parametrize(
    ("name", "kind"),
    [
        ("a.md", SourceKind.MARKDOWN),
        ("a.MARKDOWN", SourceKind.MARKDOWN),
        ("a.html", SourceKind.HTML),
        ("a.htm", SourceKind.HTML),
        ("a.css", SourceKind.CSS),
        ("a.txt", SourceKind.IGNORED),
        ("Makefile", SourceKind.IGNORED),
    ],
)
def test_classify(name: str, kind: SourceKind) -> None:
    assert classify(Path(name)) is kind


def test_output_path_mirrors_source() -> None:
    assert output_path(Path("a/b.md"), SourceKind.MARKDOWN) == Path("a/b.html")
    assert output_path(Path("x.html"), SourceKind.HTML) == Path("x.html")
    assert output_path(Path("s/site.css"), SourceKind.CSS) == Path("s/site.css")


def test_render_markdown_hands_fenced_blocks_to_handler() -> None:
    calls = []

    def handler(code: str, lang: str) -> str:
        calls.append((code, lang))
        return "<pre>HANDLED</pre>"

    html = render_markdown("Some *text*\n\n```rust\nfn main() {}\n```\n", handler)

    assert calls == [("fn main() {}\n", "rust")]
    assert "<pre>HANDLED</pre>" in html
    assert "<em>text</em>" in html


def test_fenced_block_closes_on_longer_fence_only() -> None:
    calls = []

    def handler(code: str, lang: str) -> str:
        calls.append((code, lang))
        return "<pre>HANDLED</pre>"

    html = render_markdown("````python\nx = 1\n```\ny = 2\n  `````\n\nafter\n", handler)

    assert calls == [("x = 1\n```\ny = 2\n", "python")]
    assert "<p>after</p>" in html


def test_render_markdown_emoji_strikethrough_and_tasks() -> None:
    source = "# Hello Word :smile:\n\n~~gone~~ stays\n\n- [ ] open task\n- [x] done task\n"

    html = render_markdown(source, Highlighter(get_style_by_name("monokai")))

    assert "<h1>Hello Word \U0001F604</h1>" in html
    assert "<del>gone</del> stays" in html
    assert "task-list-item" in html
    assert html.count('type="checkbox"') == 2
    assert "open task" in html


def test_highlight_known_language() -> None:
    html = highlight("print('hi')\n", "python", get_style_by_name("monokai"))

    assert html is not None
    assert "<span style=" in html


def test_highlight_unknown_language_renders_plain() -> None:
    highlighter = Highlighter(get_style_by_name("monokai"))

    assert highlight("a < b\n", "nosuchlang", highlighter.theme) is None
    assert highlighter("a < b\n", "nosuchlang") == '<pre><code class="language-nosuchlang">a &lt; b\n</code></pre>'
    assert highlighter("plain\n", "") == "<pre><code>plain\n</code></pre>"


def test_custom_syntax_and_theme(tmp_path: Path) -> None:
    (tmp_path / "syntaxes").mkdir()
    (tmp_path / "syntaxes" / "ink.py").write_text(CUSTOM_LEXER, encoding="utf-8")
    (tmp_path / "themes").mkdir()
    (tmp_path / "themes" / "inky.toml").write_text(CUSTOM_THEME, encoding="utf-8")

    syntaxes = load_syntax_set(tmp_path / "syntaxes")
    themes = load_theme_set(tmp_path / "themes")
    html = Highlighter(themes["inky"], syntaxes)("ink and more\n", "ink")

    assert "ink" in syntaxes
    assert "monokai" in themes
    assert "#ff0000" in html.lower()


def test_custom_lexer_without_name(tmp_path: Path) -> None:
    (tmp_path / "nameless.py").write_text(CUSTOM_LEXER.replace('    name = "Ink"\n', ""), encoding="utf-8")

    with pytest.raises(AssetLoadError, match="custom lexer needs a name"):
        load_syntax_set(tmp_path)


def test_missing_syntax_and_theme_dirs_are_fine(tmp_path: Path) -> None:
    assert load_syntax_set(tmp_path / "nope") == {}
    assert "monokai" in load_theme_set(tmp_path / "nope")


def test_render_page_wraps_content(project_dir: Path) -> None:
    project = load_project_config(project_dir)
    source = page(title="Hello", description="Greeting", body="# Heading\n\n```python\nx = 1\n```\n")

    html = render_page(source, project_dir / "src" / "index.md", project, AssetStore())

    assert "<title>Hello — CoolSite</title>" in html
    assert "<style>body{color:red}</style>" in html
    assert 'rel="icon"' in html
    assert "<h1>Heading</h1>" in html
    assert 'content="Ada, Grace"' in html
    assert "pageinfo" not in html
    assert "description =" not in html


def test_render_page_source_as_template(project_dir: Path) -> None:
    project = load_project_config(project_dir)
    project = dataclasses.replace(project, generation=Generation(treat_source_as_template=True))
    source = page(title="Hello", body="Title is {{title}} and {{content}} stays\n")

    html = render_page(source, project_dir / "src" / "index.md", project, AssetStore())

    assert "Title is Hello — CoolSite and {{content}} stays" in html


def test_render_page_missing_template_fails(project_dir: Path) -> None:
    project = load_project_config(project_dir)
    source = page(extra='template = "missing.html"\n')

    with pytest.raises(AssetLoadError):
        render_page(source, project_dir / "src" / "index.md", project, AssetStore())


def test_render_page_requires_a_template(project_dir: Path) -> None:
    project = load_project_config(project_dir)
    project = dataclasses.replace(project, default=Defaults())

    with pytest.raises(MissingRequiredField):
        render_page(page(), project_dir / "src" / "index.md", project, AssetStore())


def test_render_page_degrades_without_optional_assets(project_dir: Path) -> None:
    project = load_project_config(project_dir)
    source = page(extra='style = "missing.css"\nfavicon = "missing.ico"\n')

    html = render_page(source, project_dir / "src" / "index.md", project, AssetStore())

    assert "<style>" not in html
    assert 'rel="icon"' not in html


def test_minify_removes_comments() -> None:
    html = b"<html>\n  <!-- note -->\n  <body>\n    <p>x</p>\n  </body>\n</html>\n"

    minified = minify(html)

    assert b"<!--" not in minified
    assert b"<p>x</p>" in minified
    assert len(minified) < len(html)


def test_minify_returns_input_on_failure() -> None:
    data = b"\xff\xfe not utf-8"

    assert minify(data) == data
