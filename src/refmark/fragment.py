"""HTML fragment parsing and serialization.

Thin wrapper over BeautifulSoup so the truncation and link-wrapping code sees
one narrow interface: parse a fragment, classify nodes, serialize it back.
The html.parser tree builder repairs malformed markup (unclosed tags, stray
end tags) instead of rejecting it, and never adds <html>/<body> wrappers.
"""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.builder import ParserRejectedMarkup
from bs4.dammit import EntitySubstitution
from bs4.element import PageElement, PreformattedString
from bs4.formatter import HTMLFormatter

from .errors import FragmentParseError

log = logging.getLogger(__name__)

class FragmentFormatter(HTMLFormatter):
    """HTMLFormatter that keeps attributes in source order instead of sorting them."""

    def attributes(self, tag: Tag):
        if tag.attrs is None:
            return []
        return list(tag.attrs.items())


# Minimal entity substitution (&, <, >) and HTML-style void elements (<br>).
FRAGMENT_FORMATTER = FragmentFormatter(
    entity_substitution=EntitySubstitution.substitute_xml,
    void_element_close_prefix=None,
)


def parse_fragment(markup: str) -> BeautifulSoup:
    """Parse markup into a fragment tree.

    Raises:
        FragmentParseError: If the parser rejects the markup entirely.
    """
    try:
        return BeautifulSoup(markup, "html.parser")
    except ParserRejectedMarkup as e:
        log.debug("Parser rejected %d characters of markup", len(markup))
        raise FragmentParseError(markup, str(e)) from e


def serialize_fragment(fragment: BeautifulSoup | Tag) -> str:
    """Serialize a fragment (or any subtree) back to HTML."""
    return fragment.decode(formatter=FRAGMENT_FORMATTER)


def is_text(node: PageElement) -> bool:
    """True for plain text nodes; comments, CDATA and doctypes are excluded."""
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def is_element(node: PageElement) -> bool:
    return isinstance(node, Tag)


def text_content(node: PageElement) -> str:
    """Visible text of a node, entities decoded."""
    if isinstance(node, Tag):
        return node.get_text()
    return str(node)


def iter_postorder(root: BeautifulSoup | Tag) -> list[PageElement]:
    """Every descendant of root in document order, children before parents.

    Returns a snapshot list so callers may remove or replace nodes while
    walking it.
    """
    nodes: list[PageElement] = []

    def visit(node: PageElement) -> None:
        if isinstance(node, Tag):
            for child in list(node.contents):
                visit(child)
        nodes.append(node)

    for child in list(root.contents):
        visit(child)
    return nodes
