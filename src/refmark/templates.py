"""Jinja2 integration for the markdown helpers.

Installs the helper operations as filters so templates can render user text
the same way views do:

    {{ note.body | markdown }}
    {{ issue.description | first_line(80) }}
    {{ issue.title | link_to_gfm(issue_url, "row-title") }}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from jinja2 import BaseLoader, Environment, select_autoescape
from markupsafe import Markup

from .models import LinkOptions
from .truncate import truncate_visible

if TYPE_CHECKING:
    from .helpers import MarkdownHelper


# Summary card for a linked item: title links to the item, description is
# cut to its first line.
SUMMARY_TEMPLATE = """<div class="summary">
<h3 class="summary-title">{{ title | link_to_gfm(url, css_class) }}</h3>
{% if description %}<div class="summary-description">{{ description | first_line(max_chars) }}</div>
{% endif %}</div>
"""


def register_helpers(env: Environment, helper: MarkdownHelper) -> Environment:
    """Install helper filters and globals on env.

    Filters: markdown, first_line, truncate_visible, link_to_gfm.
    Globals: markdown_tip.
    """

    def _first_line(text: str, max_chars: int | None = None) -> Markup:
        return helper.first_line_in_markdown(text, max_chars) or Markup("")

    def _truncate(html: str, max_chars: int) -> Markup:
        return Markup(truncate_visible(str(html), max_chars, block_elements=helper.block_elements))

    def _link_to_gfm(body: str, url: str, css_class: str | None = None) -> Markup:
        return helper.link_to_gfm(body, url, LinkOptions(css_class=css_class))

    env.filters["markdown"] = helper.markdown
    env.filters["first_line"] = _first_line
    env.filters["truncate_visible"] = _truncate
    env.filters["link_to_gfm"] = _link_to_gfm
    env.globals["markdown_tip"] = helper.random_markdown_tip
    return env


def create_environment(helper: MarkdownHelper) -> Environment:
    """Create an autoescaping Jinja2 environment with the helpers installed."""
    env = Environment(
        loader=BaseLoader(),
        autoescape=select_autoescape(default=True, default_for_string=True),
    )
    return register_helpers(env, helper)


def render_summary(
    helper: MarkdownHelper,
    title: str,
    url: str,
    description: str | None = None,
    max_chars: int | None = None,
    css_class: str | None = None,
) -> str:
    """Render the summary card for one item.

    Args:
        helper: Helper bound to the item's project context
        title: Single-line title, rendered and linked to url
        url: Target of the title link
        description: Markdown description; only its first line is shown
        max_chars: Visible length limit for the description
        css_class: Extra class for the title's reference links

    Returns:
        HTML string
    """
    env = create_environment(helper)
    tmpl = env.from_string(SUMMARY_TEMPLATE)
    return tmpl.render(
        title=title,
        url=url,
        description=description,
        max_chars=max_chars,
        css_class=css_class,
    )
