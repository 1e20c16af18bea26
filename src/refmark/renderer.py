"""Markdown rendering with reference expansion.

The Renderer protocol is the boundary the helpers depend on: render raw text
to HTML, then post-process that HTML with the same context. MarkdownRenderer
is the default implementation, built on markdown-it-py with a core rule that
turns issue, merge request and user references into links.
"""

from __future__ import annotations

import logging
import re
from typing import Protocol

from markdown_it import MarkdownIt
from markdown_it.rules_core import StateCore
from markdown_it.token import Token

from .config import GENERATED_REFERENCE_CLASS, SINGLE_LINE_PIPELINE
from .errors import RenderError
from .filters import rewrite_relative_links
from .models import RenderContext

log = logging.getLogger(__name__)


class Renderer(Protocol):
    """Turns raw text into HTML for a given context."""

    def render(self, text: str, context: RenderContext) -> str: ...

    def post_process(self, html: str, context: RenderContext) -> str: ...


# #123, !123, namespace/project#123, namespace/project!123, @username
REFERENCE_PATTERN = re.compile(
    r"""
    (?<![\w/@.!#&-])
    (?:
        (?:(?P<namespace>[\w.-]+)/(?P<project>[\w.-]+))?
        (?P<symbol>[#!])(?P<iid>\d+)\b
      |
        @(?P<username>\w(?:[\w.-]*\w)?)
    )
    """,
    re.VERBOSE,
)

_REFERENCE_TYPES = {
    "#": ("issue", "issues"),
    "!": ("merge_request", "merge_requests"),
}

_HTML_LINK_OPEN = re.compile(r"<a[\s>]", re.IGNORECASE)
_HTML_LINK_CLOSE = re.compile(r"</a\s*>", re.IGNORECASE)


def _reference_attrs(match: re.Match, context: RenderContext) -> dict[str, str] | None:
    """Link attributes for a reference match, or None if it cannot be resolved."""
    base = context.base_url.rstrip("/")

    username = match.group("username")
    if username:
        return {
            "href": f"{base}/{username}",
            "class": f"{GENERATED_REFERENCE_CLASS} {GENERATED_REFERENCE_CLASS}-project_member",
            "data-reference-type": "user",
            "data-user": username,
        }

    if match.group("namespace"):
        project_path = f"{match.group('namespace')}/{match.group('project')}"
    elif context.project is not None:
        project_path = context.project.full_path
    else:
        # Local reference with no project to resolve against
        return None

    reference_type, route = _REFERENCE_TYPES[match.group("symbol")]
    return {
        "href": f"{base}/{project_path}/{route}/{match.group('iid')}",
        "class": f"{GENERATED_REFERENCE_CLASS} {GENERATED_REFERENCE_CLASS}-{reference_type}",
        "data-reference-type": reference_type,
        "data-project": project_path,
    }


def _expand_text_token(token: Token, context: RenderContext) -> list[Token]:
    """Split one text token into text and reference link tokens."""
    text = token.content
    expanded: list[Token] = []
    pos = 0

    for match in REFERENCE_PATTERN.finditer(text):
        attrs = _reference_attrs(match, context)
        if attrs is None:
            continue
        if match.start() > pos:
            expanded.append(Token("text", "", 0, content=text[pos : match.start()], level=token.level))
        expanded.append(Token("link_open", "a", 1, attrs=attrs, level=token.level))
        expanded.append(Token("text", "", 0, content=match.group(0), level=token.level + 1))
        expanded.append(Token("link_close", "a", -1, level=token.level))
        pos = match.end()

    if not expanded:
        return [token]
    if pos < len(text):
        expanded.append(Token("text", "", 0, content=text[pos:], level=token.level))
    return expanded


def _references_rule(state: StateCore) -> None:
    """Core rule: expand references in text outside links and code spans."""
    context = state.env.get("context") or RenderContext()

    for block_token in state.tokens:
        if block_token.type != "inline" or not block_token.children:
            continue

        children: list[Token] = []
        link_depth = 0
        for token in block_token.children:
            if token.type == "link_open":
                link_depth += 1
            elif token.type == "link_close":
                link_depth -= 1
            elif token.type == "html_inline":
                if _HTML_LINK_OPEN.match(token.content):
                    link_depth += 1
                elif _HTML_LINK_CLOSE.match(token.content):
                    link_depth = max(link_depth - 1, 0)

            if token.type == "text" and link_depth == 0:
                children.extend(_expand_text_token(token, context))
            else:
                children.append(token)
        block_token.children = children


class MarkdownRenderer:
    """Default Renderer backed by markdown-it-py.

    Args:
        allow_html: Pass raw HTML in the source through (needed for
            pre-rendered <img> bodies in link_to_gfm).
    """

    def __init__(self, allow_html: bool = True):
        self.md = MarkdownIt("commonmark", {"html": allow_html}).enable(["table", "strikethrough"])
        self.md.core.ruler.push("gfm_references", _references_rule)

    def render(self, text: str, context: RenderContext) -> str:
        """Render text to HTML.

        The single_line pipeline renders inline markdown only, with no
        paragraph wrapper.

        Raises:
            RenderError: If markdown-it fails on the input.
        """
        env = {"context": context}
        try:
            if context.pipeline == SINGLE_LINE_PIPELINE:
                return self.md.renderInline(text, env)
            return self.md.render(text, env)
        except Exception as e:
            log.error("Rendering %d characters failed: %s", len(text), e)
            raise RenderError(text, str(e)) from e

    def post_process(self, html: str, context: RenderContext) -> str:
        return rewrite_relative_links(html, context)
