"""Tests for the default markdown renderer and its filters.

Coverage:
- src/refmark/renderer.py - MarkdownRenderer, reference expansion
- src/refmark/filters.py - relative link rewriting
"""

from __future__ import annotations

import pytest
from bs4 import BeautifulSoup

from refmark.errors import RenderError
from refmark.filters import rebuild_relative_url, rewrite_relative_links
from refmark.models import Project, RenderContext
from refmark.renderer import MarkdownRenderer


@pytest.fixture
def renderer() -> MarkdownRenderer:
    return MarkdownRenderer()


def _references(html: str) -> list:
    return BeautifulSoup(html, "html.parser").find_all("a", class_="gfm")


# ─────────────────────────────────────────────────────────────────────────────
# Pipelines
# ─────────────────────────────────────────────────────────────────────────────


class TestPipelines:
    def test_full_pipeline_wraps_paragraphs(self, renderer: MarkdownRenderer):
        html = renderer.render("Hello *world*", RenderContext())

        assert html == "<p>Hello <em>world</em></p>\n"

    def test_single_line_pipeline_has_no_paragraph(self, renderer: MarkdownRenderer):
        html = renderer.render("Hello *world*", RenderContext(pipeline="single_line"))

        assert html == "Hello <em>world</em>"

    def test_tables_enabled(self, renderer: MarkdownRenderer):
        content = "| A | B |\n|---|---|\n| 1 | 2 |\n"

        html = renderer.render(content, RenderContext())

        assert "<table>" in html
        assert "<td>1</td>" in html

    def test_strikethrough_enabled(self, renderer: MarkdownRenderer):
        html = renderer.render("~~gone~~", RenderContext(pipeline="single_line"))

        assert html == "<s>gone</s>"

    def test_raw_html_can_be_disabled(self):
        html = MarkdownRenderer(allow_html=False).render(
            '<img src="x.png">', RenderContext(pipeline="single_line")
        )

        assert "<img" not in html
        assert "&lt;img" in html

    def test_failure_is_wrapped(self, renderer: MarkdownRenderer, monkeypatch: pytest.MonkeyPatch):
        def boom(*args, **kwargs):
            raise ValueError("bad input")

        monkeypatch.setattr(renderer.md, "render", boom)

        with pytest.raises(RenderError) as exc:
            renderer.render("text", RenderContext())
        assert exc.value.text == "text"
        assert "bad input" in exc.value.message


# ─────────────────────────────────────────────────────────────────────────────
# Reference Expansion
# ─────────────────────────────────────────────────────────────────────────────


class TestReferences:
    """#123, !123 and @user become generated reference links."""

    @pytest.fixture
    def context(self) -> RenderContext:
        return RenderContext(project=Project(namespace="org", path="app"), pipeline="single_line")

    def test_issue_reference(self, renderer: MarkdownRenderer, context: RenderContext):
        html = renderer.render("Fixes #12", context)

        assert html == (
            'Fixes <a href="/org/app/issues/12" class="gfm gfm-issue" '
            'data-reference-type="issue" data-project="org/app">#12</a>'
        )

    def test_merge_request_reference(self, renderer: MarkdownRenderer, context: RenderContext):
        (link,) = _references(renderer.render("See !7.", context))

        assert link["href"] == "/org/app/merge_requests/7"
        assert link["class"] == ["gfm", "gfm-merge_request"]
        assert link.get_text() == "!7"

    def test_cross_project_reference(self, renderer: MarkdownRenderer):
        html = renderer.render("Blocked by other/lib#3", RenderContext(pipeline="single_line"))

        (link,) = _references(html)
        assert link["href"] == "/other/lib/issues/3"
        assert link["data-project"] == "other/lib"
        assert link.get_text() == "other/lib#3"

    def test_user_reference(self, renderer: MarkdownRenderer, context: RenderContext):
        (link,) = _references(renderer.render("thanks @alice.", context))

        assert link["href"] == "/alice"
        assert link["data-reference-type"] == "user"
        assert link.get_text() == "@alice"

    def test_base_url_prefix(self, renderer: MarkdownRenderer):
        context = RenderContext(
            project=Project(namespace="org", path="app"),
            pipeline="single_line",
            base_url="https://git.example.com/",
        )

        (link,) = _references(renderer.render("#1", context))

        assert link["href"] == "https://git.example.com/org/app/issues/1"

    def test_local_reference_needs_project(self, renderer: MarkdownRenderer):
        html = renderer.render("Fixes #12", RenderContext(pipeline="single_line"))

        assert html == "Fixes #12"

    @pytest.mark.parametrize(
        "text",
        [
            "`#12`",
            "[see #12](https://example.com)",
            "mail me@example.com",
            "abc#12",
            "#12abc",
        ],
    )
    def test_not_expanded(self, renderer: MarkdownRenderer, context: RenderContext, text: str):
        assert _references(renderer.render(text, context)) == []

    def test_inside_raw_html_link_not_expanded(self, renderer: MarkdownRenderer, context: RenderContext):
        html = renderer.render('<a href="/x">about #4</a>', context)

        assert _references(html) == []

    def test_multiple_references(self, renderer: MarkdownRenderer, context: RenderContext):
        html = renderer.render("#1, !2 and @bob", context)

        assert [a.get_text() for a in _references(html)] == ["#1", "!2", "@bob"]

    def test_full_pipeline_expands_in_paragraphs(self, renderer: MarkdownRenderer):
        context = RenderContext(project=Project(namespace="org", path="app"))

        html = renderer.render("# Title\n\nCloses #9", context)

        assert html.startswith("<h1>Title</h1>")
        assert 'href="/org/app/issues/9"' in html


# ─────────────────────────────────────────────────────────────────────────────
# Relative Link Filter
# ─────────────────────────────────────────────────────────────────────────────


class TestRelativeLinks:
    @pytest.fixture
    def context(self) -> RenderContext:
        return RenderContext(
            project=Project(namespace="org", path="app"),
            ref="main",
            requested_path="docs/guide/intro.md",
        )

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("setup.md", "/org/app/blob/main/docs/guide/setup.md"),
            ("../api.md", "/org/app/blob/main/docs/api.md"),
            ("../../../../outside.md", "/org/app/blob/main/outside.md"),
            ("setup.md#install", "/org/app/blob/main/docs/guide/setup.md#install"),
            ("setup.md?plain=1", "/org/app/blob/main/docs/guide/setup.md?plain=1"),
            ("/absolute/path", "/absolute/path"),
            ("#anchor", "#anchor"),
            ("https://example.com/x", "https://example.com/x"),
            ("//cdn.example.com/x.js", "//cdn.example.com/x.js"),
            ("mailto:me@example.com", "mailto:me@example.com"),
        ],
    )
    def test_rebuild(self, context: RenderContext, url: str, expected: str):
        assert rebuild_relative_url(url, context, "blob") == expected

    def test_requested_directory(self):
        context = RenderContext(project=Project(namespace="org", path="app"), ref="v1", requested_path="docs/")

        assert rebuild_relative_url("a.md", context, "blob") == "/org/app/blob/v1/docs/a.md"

    def test_default_branch_when_no_ref(self):
        context = RenderContext(project=Project(namespace="org", path="app", default_branch="develop"))

        assert rebuild_relative_url("README.md", context, "blob") == "/org/app/blob/develop/README.md"

    def test_wiki_links(self):
        context = RenderContext(project=Project(namespace="org", path="app"), project_wiki=True)

        assert rebuild_relative_url("other-page", context, "blob") == "/org/app/wikis/other-page"

    def test_rewrites_links_and_images(self, context: RenderContext):
        html = '<p><a href="setup.md">Setup</a> <img src="img/shot.png" alt="shot"></p>'

        result = BeautifulSoup(rewrite_relative_links(html, context), "html.parser")

        assert result.find("a")["href"] == "/org/app/blob/main/docs/guide/setup.md"
        assert result.find("img")["src"] == "/org/app/raw/main/docs/guide/img/shot.png"

    def test_untouched_html_returned_as_is(self, context: RenderContext):
        html = '<p><a href="https://example.com">x</a></p>\n'

        assert rewrite_relative_links(html, context) is html

    def test_no_project_no_rewrite(self):
        html = '<a href="setup.md">Setup</a>'

        assert rewrite_relative_links(html, RenderContext()) == html

    def test_post_process_applies_filter(self, renderer: MarkdownRenderer, context: RenderContext):
        html = renderer.render("[Setup](setup.md)", context)

        result = renderer.post_process(html, context)

        assert 'href="/org/app/blob/main/docs/guide/setup.md"' in result
