"""refmark: markdown view helpers with safe re-linking and visible-length truncation."""

from .helpers import MarkdownHelper
from .linking import link_to, wrap_links
from .models import Issue, LinkOptions, MergeRequest, Project, RenderContext, User, WikiPage
from .references import Referenceable, cross_project_reference
from .truncate import truncate_visible

__version__ = "0.3.0"

__all__ = [
    "Issue",
    "LinkOptions",
    "MarkdownHelper",
    "MergeRequest",
    "Project",
    "Referenceable",
    "RenderContext",
    "User",
    "WikiPage",
    "cross_project_reference",
    "link_to",
    "truncate_visible",
    "wrap_links",
]
