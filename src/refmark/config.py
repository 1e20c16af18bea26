"""Configuration management for refmark.

This module contains the configurable constants used by the rendering
helpers. Values that callers may want to change per deployment (base URL,
block element table, raw HTML passthrough) are read from an optional
.refmark.yaml file via load_settings().
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigurationError

log = logging.getLogger(__name__)


# =============================================================================
# Truncation
# =============================================================================

# Marker appended wherever visible content was cut short.
ELLIPSIS = "..."

# Elements that end a visual block. truncate_visible appends the ellipsis to
# the first of these that has a following sibling and drops everything after.
# Mirrors the block/inline split of the HTML 4 element table used by libxml2,
# extended with the HTML5 sectioning elements.
BLOCK_ELEMENTS = frozenset(
    {
        "address",
        "article",
        "aside",
        "blockquote",
        "body",
        "caption",
        "center",
        "dd",
        "details",
        "dialog",
        "dir",
        "div",
        "dl",
        "dt",
        "fieldset",
        "figcaption",
        "figure",
        "footer",
        "form",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "header",
        "hgroup",
        "hr",
        "html",
        "li",
        "main",
        "menu",
        "nav",
        "noscript",
        "ol",
        "p",
        "pre",
        "section",
        "summary",
        "table",
        "tbody",
        "td",
        "tfoot",
        "th",
        "thead",
        "tr",
        "ul",
    }
)


# =============================================================================
# Rendering
# =============================================================================

# Renderer pipeline names. single_line renders inline markdown only, with no
# paragraph wrapper, for titles and one-line summaries.
FULL_PIPELINE = "full"
SINGLE_LINE_PIPELINE = "single_line"

# Marker class on anchors produced by reference expansion (#123, !45, @user).
# link_to_gfm uses it to tell generated references from wrapper links.
GENERATED_REFERENCE_CLASS = "gfm"

# Bodies starting with this prefix are trusted pre-rendered image markup and
# bypass escaping in link_to_gfm.
IMAGE_TAG_PREFIX = "<img"

# Placeholder hints for comment text areas.
MARKDOWN_TIPS = (
    "End a line with two or more spaces for a line-break, or soft-return",
    "Inline code can be denoted by `surrounding it with backticks`",
    "Blocks of code can be denoted by three backticks ``` or four leading spaces",
    "Emoji can be added by :emoji_name:, for example :thumbsup:",
    "Notify other participants using @user_name",
    "Notify a specific group using @group_name",
    "Notify the entire team using @all",
    "Reference an issue using a hash, for example issue #123",
    "Reference a merge request using an exclamation point, for example MR !123",
    "Italicize words or phrases using *asterisks* or _underscores_",
    "Bold words or phrases using **double asterisks** or __double underscores__",
    "Strikethrough words or phrases using ~~two tildes~~",
    "Make a bulleted list using + pluses, - minuses, or * asterisks",
    "Denote blockquotes using > at the beginning of a line",
    "Make a horizontal line using three or more hyphens ---, asterisks ***, or underscores ___",
)


# =============================================================================
# Settings file
# =============================================================================

CONFIG_FILENAME = ".refmark.yaml"

# Maximum directories walked up from cwd when looking for CONFIG_FILENAME.
MAX_CONFIG_SEARCH_DEPTH = 10


class Settings(BaseModel):
    """Deployment settings loaded from .refmark.yaml."""

    base_url: str = ""
    allow_html: bool = True
    block_elements: list[str] | None = None
    extra_block_elements: list[str] = Field(default_factory=list)

    def block_table(self) -> frozenset[str]:
        """Resolve the block element table, applying overrides."""
        base = frozenset(self.block_elements) if self.block_elements is not None else BLOCK_ELEMENTS
        return base | frozenset(tag.lower() for tag in self.extra_block_elements)


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Walk up from start_dir looking for .refmark.yaml.

    REFMARK_CONFIG, when set, wins over discovery.
    """
    explicit = os.environ.get("REFMARK_CONFIG")
    if explicit:
        path = Path(explicit)
        if not path.is_file():
            raise ConfigurationError(f"REFMARK_CONFIG points to a missing file: {explicit}")
        return path

    current = Path(start_dir or os.getcwd()).resolve()
    for _ in range(MAX_CONFIG_SEARCH_DEPTH):
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:  # Reached filesystem root
            break
        current = parent
    return None


def load_settings(start_dir: Path | None = None) -> Settings:
    """Load settings from the discovered config file and environment.

    Discovery order:
    1. REFMARK_CONFIG environment variable (explicit file)
    2. Walk up from start_dir (default cwd) looking for .refmark.yaml
    3. Built-in defaults

    REFMARK_BASE_URL overrides base_url from the file.

    Raises:
        ConfigurationError: If the file exists but is not valid.
    """
    data: dict = {}
    config_path = find_config_file(start_dir)
    if config_path is not None:
        try:
            data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Could not read {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"{config_path} must contain a mapping")
        log.debug("Loaded settings from %s", config_path)

    base_url = os.environ.get("REFMARK_BASE_URL")
    if base_url is not None:
        data["base_url"] = base_url

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            errors.append(f"  - {loc}: {error['msg']}")
        raise ConfigurationError("Invalid settings:\n" + "\n".join(errors)) from e
