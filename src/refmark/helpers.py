"""Markdown view helpers.

MarkdownHelper bundles the rendering operations used by views and
templates. It holds the request's RenderContext explicitly; per-call
contexts override its fields.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable

from markupsafe import Markup

from .config import IMAGE_TAG_PREFIX, MARKDOWN_TIPS, SINGLE_LINE_PIPELINE
from .errors import ConfigurationError
from .linking import escape_once, wrap_links
from .models import LinkOptions, RenderContext, WikiPage
from .references import Referenceable, cross_project_reference
from .renderer import MarkdownRenderer, Renderer
from .truncate import truncate_visible

log = logging.getLogger(__name__)


class MarkdownHelper:
    """Rendering helpers bound to one request context.

    Args:
        context: Defaults for every rendering call (project, user, ref...).
        renderer: Markdown renderer; MarkdownRenderer() when omitted.
        asciidoc_renderer: Optional renderer for AsciiDoc wiki pages.
        block_elements: Block table used by first_line_in_markdown.
    """

    def __init__(
        self,
        context: RenderContext | None = None,
        renderer: Renderer | None = None,
        asciidoc_renderer: Renderer | None = None,
        block_elements: Iterable[str] | None = None,
    ):
        self.context = context or RenderContext()
        self.renderer = renderer or MarkdownRenderer()
        self.asciidoc_renderer = asciidoc_renderer
        self.block_elements = block_elements

    def link_to_gfm(self, body: str, url: str, options: LinkOptions | None = None) -> Markup:
        """Use this where you would otherwise link a rendered markdown line.

        Renders body on the single-line pipeline and links the whole line to
        url without nesting anchors (see linking.wrap_links). Bodies starting
        with an <img> tag are trusted markup and are not escaped.
        """
        if not body or not body.strip():
            return Markup("")

        if body.startswith(IMAGE_TAG_PREFIX):
            escaped_body = body
        else:
            escaped_body = escape_once(body)

        context = self.context.with_pipeline(SINGLE_LINE_PIPELINE)
        gfm_body = self.renderer.render(str(escaped_body), context)
        return wrap_links(gfm_body, url, options)

    def markdown(self, text: str | None, context: RenderContext | None = None) -> Markup:
        """Render text and run the post-processing filters over the result."""
        if not text or not text.strip():
            return Markup("")

        context = self.context.merged_with(context)
        html = self.renderer.render(str(text), context)
        return Markup(self.renderer.post_process(html, context))

    def asciidoc(self, text: str) -> Markup:
        """Render AsciiDoc text with the configured AsciiDoc renderer.

        Raises:
            ConfigurationError: If no AsciiDoc renderer was supplied.
        """
        if self.asciidoc_renderer is None:
            raise ConfigurationError(
                "No AsciiDoc renderer configured",
                details={"suggestion": "Pass asciidoc_renderer= to MarkdownHelper"},
            )
        html = self.asciidoc_renderer.render(text, self.context)
        return Markup(self.asciidoc_renderer.post_process(html, self.context))

    def first_line_in_markdown(
        self,
        text: str,
        max_chars: int | None = None,
        context: RenderContext | None = None,
    ) -> Markup | None:
        """Return the first line of text, up to max_chars, rendered as markdown.

        HTML tags in the rendered output do not count toward max_chars. If
        the limit falls within a tag's contents, the contents are cut but the
        closing tag is kept. Returns None when nothing renders.
        """
        md = str(self.markdown(text, context)).strip()
        if not md:
            return None
        if max_chars is None:
            max_chars = len(md)
        return Markup(truncate_visible(md, max_chars, block_elements=self.block_elements))

    def render_wiki_content(self, wiki_page: WikiPage) -> Markup:
        if wiki_page.format == "markdown":
            return self.markdown(wiki_page.content)
        if wiki_page.format == "asciidoc":
            return self.asciidoc(wiki_page.content)
        log.debug("Using pre-rendered content for %s page %r", wiki_page.format, wiki_page.title)
        return Markup(wiki_page.formatted_content)

    def cross_project_reference(self, project: Referenceable, entity: object) -> str:
        return cross_project_reference(project, entity)

    @staticmethod
    def random_markdown_tip() -> str:
        """Return a random markdown tip for use as a textarea placeholder."""
        return random.choice(MARKDOWN_TIPS)
