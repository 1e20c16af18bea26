"""Pydantic models for rendering contexts and referenceable entities."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class Project(BaseModel):
    """A project addressed by its namespaced path."""

    model_config = ConfigDict(frozen=True)

    namespace: str  # e.g. "gitlab-org"
    path: str  # e.g. "gitlab-ce"
    default_branch: str = "master"  # Ref for relative links when none is requested

    @property
    def full_path(self) -> str:
        return f"{self.namespace}/{self.path}"

    def to_reference(self) -> str:
        return self.full_path


class Issue(BaseModel):
    """An issue, referenced as #iid."""

    iid: int = Field(ge=1)
    title: str = ""

    def to_reference(self) -> str:
        return f"#{self.iid}"


class MergeRequest(BaseModel):
    """A merge request, referenced as !iid."""

    iid: int = Field(ge=1)
    title: str = ""

    def to_reference(self) -> str:
        return f"!{self.iid}"


class User(BaseModel):
    """A user account, referenced as @username."""

    model_config = ConfigDict(frozen=True)

    username: str
    name: str | None = None

    def to_reference(self) -> str:
        return f"@{self.username}"


class WikiPage(BaseModel):
    """A wiki page in one of the supported markup formats."""

    title: str
    format: str = "markdown"  # markdown | asciidoc | anything pre-rendered
    content: str = ""
    formatted_content: str = ""  # HTML produced upstream for other formats


class LinkOptions(BaseModel):
    """HTML options for a generated anchor.

    css_class is also added to generated reference links by link_to_gfm.
    """

    model_config = ConfigDict(frozen=True)

    css_class: str | None = None
    attrs: dict[str, str] = Field(default_factory=dict)  # Extra attributes (title, data-*)

    def html_attributes(self, href: str) -> dict[str, str | list[str]]:
        """Attributes for an anchor pointing at href."""
        attributes: dict[str, str | list[str]] = {"href": href}
        if self.css_class:
            attributes["class"] = self.css_class.split()
        for name, value in self.attrs.items():
            if name in ("href", "class"):
                continue
            attributes[name] = value
        return attributes


class RenderContext(BaseModel):
    """Explicit context for one rendering call.

    Replaces per-request ambient state: every helper receives the project,
    the acting user and the filter parameters through this object.
    """

    model_config = ConfigDict(frozen=True)

    project: Project | None = None
    current_user: User | None = None
    pipeline: Literal["full", "single_line"] = "full"
    # Relative link filter
    requested_path: str | None = None
    project_wiki: bool = False
    ref: str | None = None
    commit: str | None = None
    base_url: str = ""

    def merged_with(self, other: "RenderContext | None") -> "RenderContext":
        """Return a copy of self overridden by the fields explicitly set on other."""
        if other is None:
            return self
        return self.model_copy(update={name: getattr(other, name) for name in other.model_fields_set})

    def with_pipeline(self, pipeline: Literal["full", "single_line"]) -> "RenderContext":
        return self.model_copy(update={"pipeline": pipeline})
