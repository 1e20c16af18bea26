"""Wrap rendered single-line markdown in a link without nesting anchors.

Browsers do not nest anchors: "<a>outer <a>ref</a> more</a>" is parsed as
"<a>outer </a><a>ref</a> more", leaving the tail unlinked. wrap_links makes
the intended structure explicit by linking each top-level text run on its
own: "<a>outer </a><a>ref</a><a> more</a>".
"""

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup, Tag
from markupsafe import Markup

from .config import GENERATED_REFERENCE_CLASS
from .fragment import is_element, is_text, parse_fragment, serialize_fragment, text_content
from .models import LinkOptions

log = logging.getLogger(__name__)

# Escapes HTML specials but leaves existing entities (&amp;, &#39;, &#x27;) alone.
_ESCAPE_ONCE_RE = re.compile(r"""["><']|&(?!([a-zA-Z]+|(#\d+)|(#[xX][\dA-Fa-f]+));)""")
_HTML_ESCAPES = {
    "&": "&amp;",
    ">": "&gt;",
    "<": "&lt;",
    '"': "&quot;",
    "'": "&#39;",
}


def escape_once(text: str) -> Markup:
    """HTML-escape text without double-escaping entities already present."""
    return Markup(_ESCAPE_ONCE_RE.sub(lambda m: _HTML_ESCAPES[m.group(0)], str(text)))


def link_to(text: str, url: str, options: LinkOptions | None = None) -> Markup:
    """Build a single anchor to url. text is escaped."""
    soup = BeautifulSoup("", "html.parser")
    return Markup(serialize_fragment(_anchor(soup, text, url, options or LinkOptions())))


def wrap_links(rendered_body: str, url: str, options: LinkOptions | None = None) -> Markup:
    """Make an already-rendered single line link to url as a whole.

    A body that is exactly one anchor (a generated reference) is replaced by
    a link to url with the same text. Otherwise every top-level text node is
    wrapped in its own link to url and generated reference anchors keep
    their own targets. When options.css_class is set it is also added to the
    generated reference anchors.
    """
    if not rendered_body:
        return Markup("")

    options = options or LinkOptions()
    fragment = parse_fragment(rendered_body)
    children = list(fragment.contents)

    if len(children) == 1 and is_element(children[0]) and children[0].name == "a":
        # Fragment has only one node, and it's a generated link. Replace it
        # with the requested link.
        only = children[0]
        only.replace_with(_anchor(fragment, text_content(only), url, options))
    else:
        # First generation only: nested text belongs to the generated anchors
        # or to inline formatting, which stays as rendered.
        for node in children:
            if is_text(node):
                node.replace_with(_anchor(fragment, str(node), url, options))

    if options.css_class:
        for link in fragment.find_all("a", class_=GENERATED_REFERENCE_CLASS):
            _add_classes(link, options.css_class.split())

    html = serialize_fragment(fragment)
    log.debug("Wrapped %d top-level nodes in links to %s", len(children), url)
    return Markup(html)


def _anchor(soup: BeautifulSoup, text: str, url: str, options: LinkOptions) -> Tag:
    anchor = soup.new_tag("a", attrs=options.html_attributes(url))
    anchor.string = text
    return anchor


def _add_classes(tag: Tag, classes: list[str]) -> None:
    current = tag.get("class") or []
    if isinstance(current, str):
        current = current.split()
    tag["class"] = current + [name for name in classes if name not in current]
