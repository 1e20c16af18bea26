"""Shared test fixtures for the refmark test suite.

Design:
- isolated_env: strips REFMARK_* variables and runs each test from a temp cwd
- project/context/helper: a rendering helper bound to a sample project
- runner/cli_invoke: CliRunner with an isolated environment
"""

from pathlib import Path

import pytest
from click.testing import CliRunner

from refmark.cli import cli
from refmark.helpers import MarkdownHelper
from refmark.models import Project, RenderContext, User

# ─────────────────────────────────────────────────────────────────────────────
# Environment Isolation
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep settings discovery away from the developer's own config."""
    for name in ("REFMARK_CONFIG", "REFMARK_BASE_URL", "REFMARK_QUIET", "REFMARK_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    return workdir


# ─────────────────────────────────────────────────────────────────────────────
# Core Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def project() -> Project:
    return Project(namespace="gitlab-org", path="gitlab-ce")


@pytest.fixture
def context(project: Project) -> RenderContext:
    return RenderContext(project=project, current_user=User(username="alice"), ref="main")


@pytest.fixture
def helper(context: RenderContext) -> MarkdownHelper:
    return MarkdownHelper(context=context)


@pytest.fixture
def runner() -> CliRunner:
    """CLI runner with isolated environment."""
    return CliRunner()


@pytest.fixture
def cli_invoke(runner: CliRunner):
    """Helper for invoking the CLI.

    Usage:
        def test_render(cli_invoke):
            result = cli_invoke(["render"], input="See #1")
            assert result.exit_code == 0
    """

    def _invoke(args: list[str], input: str | None = None, env: dict[str, str] | None = None):
        return runner.invoke(cli, args, input=input, env=env, catch_exceptions=False)

    return _invoke


# ─────────────────────────────────────────────────────────────────────────────
# Helper Functions (for test code, not fixtures)
# ─────────────────────────────────────────────────────────────────────────────


class StubRenderer:
    """Renderer returning canned HTML, recording what it was asked to render."""

    def __init__(self, html: str):
        self.html = html
        self.calls: list[tuple[str, RenderContext]] = []

    def render(self, text: str, context: RenderContext) -> str:
        self.calls.append((text, context))
        return self.html

    def post_process(self, html: str, context: RenderContext) -> str:
        return html
