"""HTML templates for static site generation.

Uses Jinja2 for templating with inline template definitions.
Templates include: base layout, document page and contents page.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from jinja2 import BaseLoader, Environment, select_autoescape
from markupsafe import Markup, escape

if TYPE_CHECKING:
    from ..models import TocNode
    from .generator import PageData


def _base_wrapper(title: str, site_title: str, base_url: str, content: str) -> str:
    """Wrap content in the base HTML template.

    Plain string formatting keeps Jinja away from rendered document HTML,
    which may legitimately contain {{ }} in code samples.
    """
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{escape(title)} - {escape(site_title)}</title>
    <link rel="stylesheet" href="{escape(base_url)}/assets/style.css">
</head>
<body>
    <nav class="nav">
        <a href="{escape(base_url)}/" class="nav-brand">{escape(site_title)}</a>
        <a href="{escape(base_url)}/contents.html" class="nav-link">Contents</a>
    </nav>
    <main class="main">
        {content}
    </main>
</body>
</html>
"""


# Prev/next bar shared by the top and bottom of a document page
PAGER_TEMPLATE = """
<div class="pager">
    {% if page.prev %}
    <a href="{{ page.prev.href }}" class="pager-prev" rel="prev">&larr; {{ page.prev.title }}</a>
    {% endif %}
    {% if page.next %}
    <a href="{{ page.next.href }}" class="pager-next" rel="next">{{ page.next.title }} &rarr;</a>
    {% endif %}
</div>
"""

DOCUMENT_TEMPLATE = """
<article class="document" data-id="{{ page.doc_id }}">
    {{ pager }}
    <header class="document-header">
        <h1>{{ page.title }}</h1>
    </header>
    <div class="document-content">
        {{ html_content }}
    </div>
    {% if page.backlinks %}
    <footer class="document-backlinks">
        <h2>Referenced by</h2>
        <ul>
            {% for link in page.backlinks %}
            <li><a href="{{ link.href }}">{{ link.title }}</a></li>
            {% endfor %}
        </ul>
    </footer>
    {% endif %}
    {{ pager }}
</article>
"""

CONTENTS_TEMPLATE = """
{% macro render_node(node) -%}
<li>
    {% if node.href %}<a href="{{ node.href }}">{{ node.title }}</a>{% else %}<span class="toc-section">{{ node.title }}</span>{% endif %}
    {% if node.children %}
    <ul>
        {% for child in node.children %}{{ render_node(child) }}{% endfor %}
    </ul>
    {% endif %}
</li>
{%- endmacro %}
<div class="contents">
    <h1>{{ toc.title }}</h1>
    <ul class="toc">
        {% for child in toc.children %}{{ render_node(child) }}{% endfor %}
    </ul>
    {% if unsequenced %}
    <section class="unsequenced">
        <h2>Outside the reading order</h2>
        <ul>
            {% for link in unsequenced %}
            <li><a href="{{ link.href }}">{{ link.title }}</a></li>
            {% endfor %}
        </ul>
    </section>
    {% endif %}
</div>
"""


def _get_env() -> Environment:
    """Create Jinja2 environment with autoescape enabled."""
    return Environment(
        loader=BaseLoader(),
        autoescape=select_autoescape(default=True, default_for_string=True),
    )


def render_document_page(page: "PageData", site_title: str, base_url: str) -> str:
    """Render a single document page.

    Args:
        page: Page data including rendered HTML and navigation neighbours
        site_title: Title shown in the header and page title
        base_url: Base URL for links

    Returns:
        Complete HTML page string
    """
    env = _get_env()
    pager = Markup(env.from_string(PAGER_TEMPLATE).render(page=page))
    content = env.from_string(DOCUMENT_TEMPLATE).render(
        page=page,
        pager=pager,
        # html_content is already rendered HTML; mark safe to prevent escaping
        html_content=Markup(page.html_content),
    )
    return _base_wrapper(page.title, site_title, base_url, content)


def render_contents_page(
    toc: "TocNode",
    unsequenced: list[dict[str, str]],
    site_title: str,
    base_url: str,
) -> str:
    """Render the table-of-contents page.

    Args:
        toc: Root of the contents tree
        unsequenced: [{title, href}] for documents left out of the reading order
        site_title: Title shown in the header and page title
        base_url: Base URL for links

    Returns:
        Complete HTML page string
    """
    env = _get_env()
    content = env.from_string(CONTENTS_TEMPLATE).render(toc=toc, unsequenced=unsequenced)
    return _base_wrapper(toc.title, site_title, base_url, content)
