"""Shared fixtures: a small but complete project tree."""

from __future__ import annotations

from pathlib import Path

import pytest

TEMPLATE = (
    "<html><head><title>{{title}}</title>{{favicon}}{{stylesheet}}"
    '<meta name="description" content="{{description}}">'
    '<meta name="author" content="{{meta.authors}}"></head>'
    "<body>{{content}}</body></html>\n"
)

CONFIG = """source = "src"
dest = "dest"
syntax_theme = "monokai"

[default]
template = "template.html"
stylesheet = "style.css"
favicon = "favicon.ico"

[default.meta]
site_name = "CoolSite"
authors = ["Ada", "Grace"]

[meta]
append_site_name_to_title = true
"""

FAVICON_BYTES = b"\x00\x00\x01\x00fake-icon"


def page(title: str = "Hello", description: str = "A page", extra: str = "", body: str = "# Heading\n") -> str:
    return f'{body}\n```pageinfo\ntitle = "{title}"\ndescription = "{description}"\n{extra}```\n'


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    root = tmp_path / "site"
    (root / "src" / "a").mkdir(parents=True)
    (root / "inkwell.toml").write_text(CONFIG, encoding="utf-8")
    (root / "template.html").write_text(TEMPLATE, encoding="utf-8")
    (root / "style.css").write_text("body{color:red}", encoding="utf-8")
    (root / "favicon.ico").write_bytes(FAVICON_BYTES)
    (root / "src" / "index.md").write_text(page(), encoding="utf-8")
    (root / "src" / "a" / "b.md").write_text(
        page(title="Nested", body="Some *text*.\n\n```python\nprint('hi')\n```\n"),
        encoding="utf-8",
    )
    (root / "src" / "x.html").write_text("<html><body><p>raw</p></body></html>\n", encoding="utf-8")
    (root / "src" / "site.css").write_bytes(b"p { margin: 0 }\r\n/* keep */\n")
    (root / "src" / "notes.txt").write_text("not part of the site", encoding="utf-8")
    return root
