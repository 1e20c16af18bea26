"""Visible-length truncation of rendered HTML fragments.

Only text counts toward the budget; markup does not. When the budget runs
out inside an element the text is cut but the element's closing tag stays,
so the result is always a well-formed fragment. Everything after the cut
point is removed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from bs4 import NavigableString
from bs4.element import PageElement

from .config import BLOCK_ELEMENTS, ELLIPSIS
from .fragment import (
    is_element,
    is_text,
    iter_postorder,
    parse_fragment,
    serialize_fragment,
    text_content,
)

log = logging.getLogger(__name__)


def truncate_visible(
    html: str,
    max_chars: int,
    *,
    block_elements: Iterable[str] | None = None,
) -> str:
    """Return html truncated to max_chars visible characters.

    Stops at the first line break inside a text node and at the end of the
    first block element. The ellipsis is appended to that block only when
    more content follows it.

    Args:
        html: Rendered HTML fragment.
        max_chars: Visible character budget. Values <= 0 leave at most an ellipsis.
        block_elements: Tag names treated as blocks (defaults to BLOCK_ELEMENTS).

    Returns:
        Serialized, well-formed HTML.
    """
    blocks = BLOCK_ELEMENTS if block_elements is None else frozenset(block_elements)
    fragment = parse_fragment(html)
    visible_length = 0
    truncated = False

    for node in iter_postorder(fragment):
        if is_text(node) or (is_element(node) and not text_content(node)):
            if truncated:
                node.extract()
                continue

            content = text_content(node)

            # Handle line breaks within a node
            if _spans_lines(content):
                content = _first_line(content) + ELLIPSIS
                truncated = True

            remaining = max(max_chars - visible_length, 0)
            if len(content) > remaining:
                content = _truncate_text(content, remaining)
                truncated = True

            if is_text(node) and content != str(node):
                node.replace_with(NavigableString(content))
            visible_length += len(content)

        truncated = _truncate_if_block(node, truncated, blocks)

    log.debug("Truncated fragment to %d visible characters (cut=%s)", visible_length, truncated)
    return serialize_fragment(fragment)


def _spans_lines(content: str) -> bool:
    return len(content.strip().split("\n")) > 1


def _first_line(content: str) -> str:
    return content.split("\n", 1)[0].rstrip("\r")


def _truncate_text(content: str, length: int) -> str:
    """Cut content to length characters, the trailing ellipsis included."""
    keep = max(length - len(ELLIPSIS), 0)
    return content[:keep] + ELLIPSIS


def _truncate_if_block(node: PageElement, truncated: bool, blocks: frozenset[str]) -> bool:
    """Close off the first block element.

    Reports the fragment as truncated, so every later node is dropped. The
    ellipsis is added only when the block has a following sibling.
    """
    if truncated or not is_element(node) or node.name not in blocks:
        return truncated
    if node.next_sibling is not None:
        node.append(ELLIPSIS)
    return True
