"""Post-processing filters applied to rendered HTML."""

from __future__ import annotations

import logging
import posixpath
from urllib.parse import urlsplit

from .fragment import parse_fragment, serialize_fragment
from .models import RenderContext

log = logging.getLogger(__name__)

# (tag, attribute, route) triples rewritten by the relative link filter.
# Images point at the raw file, links at the rendered blob view.
_LINK_ATTRIBUTES = (
    ("a", "href", "blob"),
    ("img", "src", "raw"),
)


def _is_relative(url: str) -> bool:
    if not url or url.startswith(("/", "#")):
        return False
    parts = urlsplit(url)
    return not parts.scheme and not parts.netloc


def _resolve_path(requested_path: str | None, link_path: str) -> str:
    """Resolve link_path against the directory of requested_path."""
    if requested_path:
        if requested_path.endswith("/"):
            base_dir = requested_path
        else:
            base_dir = posixpath.dirname(requested_path)
        link_path = posixpath.join(base_dir, link_path)
    resolved = posixpath.normpath(link_path)
    # Links cannot climb above the repository root
    while resolved.startswith("../"):
        resolved = resolved[3:]
    return "" if resolved in (".", "..") else resolved


def rebuild_relative_url(url: str, context: RenderContext, route: str) -> str:
    """Rewrite a relative URL into a project URL; other URLs pass through."""
    if context.project is None or not _is_relative(url):
        return url

    parts = urlsplit(url)
    suffix = ""
    if parts.query:
        suffix += f"?{parts.query}"
    if parts.fragment:
        suffix += f"#{parts.fragment}"

    base = f"{context.base_url.rstrip('/')}/{context.project.full_path}"
    if context.project_wiki:
        return f"{base}/wikis/{parts.path}{suffix}"

    ref = context.ref or context.project.default_branch
    path = _resolve_path(context.requested_path, parts.path)
    return f"{base}/{route}/{ref}/{path}{suffix}"


def rewrite_relative_links(html: str, context: RenderContext) -> str:
    """Point relative links and images at the project's repository or wiki."""
    if not html or context.project is None:
        return html

    fragment = parse_fragment(html)
    rewritten = 0
    for tag_name, attribute, route in _LINK_ATTRIBUTES:
        for element in fragment.find_all(tag_name, attrs={attribute: True}):
            original = element[attribute]
            updated = rebuild_relative_url(original, context, route)
            if updated != original:
                element[attribute] = updated
                rewritten += 1

    if not rewritten:
        return html

    log.debug("Rewrote %d relative links for %s", rewritten, context.project.full_path)
    return serialize_fragment(fragment)
