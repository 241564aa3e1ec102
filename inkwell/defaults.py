from __future__ import annotations

DEFAULT_TEMPLATE_FILE = "template.html"
DEFAULT_STYLESHEET_FILE = "style.css"
DEFAULT_INDEX_FILE = "index.md"

DEFAULT_HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta content="IE=edge" http-equiv="X-UA-Compatible">
<meta content="width=device-width,initial-scale=1" name="viewport">
<meta content="{{title}}" property="og:title">
<meta content="{{description}}" property="og:description">
<meta content="{{description}}" name="description">
<meta content="{{meta.authors}}" name="author">
{{favicon}}
<title>{{title}}</title>
{{stylesheet}}
</head>
<body>
{{content}}
</body>
</html>
"""

DEFAULT_CSS_STYLESHEET = """:root{background-color:#282828;color:#e7d7ad}
pre{border-width:0;padding:2px;border-radius:5px;scrollbar-width:5px}
pre code{border-width:0;border-radius:5px;font-size:1em;padding:2px}
"""

DEFAULT_MARKDOWN_STARTER = """# Hello, World!

```c
#include <stdio.h>

int main()
{
    printf("Hello, World!");
    return 0;
}
```

| Name  | Greeting      |
| ----- | ------------- |
| World | Hello, World! |
| James | Hello, James! |

```pageinfo
title = "Hello, World"
description = "Greet the world"
```
"""


def default_config_toml(source: str, dest: str, syntaxes: str, syntax_themes: str, theme: str) -> str:
    return f"""source = "{source}"
dest = "{dest}"
syntaxes = "{syntaxes}"
custom_syntax_themes = "{syntax_themes}"
syntax_theme = "{theme}"

[default]
template = "{DEFAULT_TEMPLATE_FILE}"
stylesheet = "{DEFAULT_STYLESHEET_FILE}"

[default.meta]
site_name = ""
authors = []

[meta]
append_site_name_to_title = false

[generation]
minify = false
treat_source_as_template = false
workers = 0
"""
