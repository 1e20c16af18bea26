#!/usr/bin/env python3
"""
refmark: render and trim user markdown from the command line

Usage:
    refmark render notes.md --project group/app     # Full markdown + filters
    refmark first-line notes.md --max-chars 80      # One-line summary
    refmark truncate page.html --max-chars 120      # Trim an HTML fragment
    refmark link "Fix #12" /group/app/issues/12     # Link a title without nesting
    refmark summary "Fix #12" /group/app/issues/12  # Title + description card
    refmark tip                                     # Random markdown tip
"""

from __future__ import annotations

import difflib
import sys
from collections.abc import Sequence
from typing import Any, NoReturn

import click
from click.exceptions import ClickException, UsageError

from . import __version__ as REFMARK_VERSION
from .errors import RefmarkError, format_error_json


def _handle_error(ctx: click.Context, error: Exception, exit_code: int = 1) -> NoReturn:
    """Report an error, as JSON when --json-errors is enabled, and exit."""
    json_errors = ctx.obj.get("json_errors", False) if ctx.obj else False

    if isinstance(error, RefmarkError):
        if json_errors:
            click.echo(error.to_json(), err=True)
        else:
            click.echo(f"Error: {error.message}", err=True)
            suggestion = error.details.get("suggestion")
            if suggestion:
                click.echo(f"Hint: {suggestion}", err=True)
    elif json_errors:
        click.echo(format_error_json("INTERNAL_ERROR", str(error)), err=True)
    else:
        click.echo(f"Error: {error}", err=True)

    sys.exit(exit_code)


def get_error_code_for_exception(exc: Exception) -> str:
    """Map Click exceptions to error codes."""
    if isinstance(exc, click.BadParameter):
        return "INVALID_ARGUMENT"
    elif isinstance(exc, click.MissingParameter):
        return "MISSING_ARGUMENT"
    elif isinstance(exc, click.NoSuchOption):
        return "UNKNOWN_OPTION"
    elif isinstance(exc, UsageError):
        return "USAGE_ERROR"
    elif isinstance(exc, ClickException):
        return "CLI_ERROR"
    return "UNKNOWN_ERROR"


# ─────────────────────────────────────────────────────────────────────────────
# JSON Error Handling
# ─────────────────────────────────────────────────────────────────────────────


class JsonErrorGroup(click.Group):
    """Click group that formats errors as JSON when --json-errors is set.

    Also suggests the closest command name for typos.
    """

    def resolve_command(self, ctx, args):
        try:
            return super().resolve_command(ctx, args)
        except UsageError as e:
            cmd_name = args[0] if args else ""
            if cmd_name and "No such command" in str(e):
                matches = difflib.get_close_matches(cmd_name, self.list_commands(ctx), n=1, cutoff=0.6)
                if matches:
                    raise UsageError(f"No such command '{cmd_name}'. Did you mean '{matches[0]}'?")
            raise

    def main(
        self,
        args: Sequence[str] | None = None,
        prog_name: str | None = None,
        complete_var: str | None = None,
        standalone_mode: bool = True,
        **extra: Any,
    ) -> Any:
        """Catch errors raised during argument parsing when --json-errors is given."""
        argv = list(args) if args is not None else list(sys.argv[1:])
        if "--json-errors" not in argv:
            return super().main(args, prog_name, complete_var, standalone_mode, **extra)

        # Normalize misplaced --json-errors to be a true global flag.
        argv = ["--json-errors"] + [a for a in argv if a != "--json-errors"]

        try:
            return super().main(argv, prog_name, complete_var, standalone_mode=False, **extra)
        except ClickException as e:
            code = get_error_code_for_exception(e)
            click.echo(format_error_json(code, e.format_message()), err=True)
            raise SystemExit(1)


# ─────────────────────────────────────────────────────────────────────────────
# Shared options
# ─────────────────────────────────────────────────────────────────────────────


def _parse_project(value: str | None):
    from .models import Project

    if not value:
        return None
    namespace, _, path = value.strip("/").rpartition("/")
    if not namespace or not path:
        raise click.BadParameter("must be in namespace/project format", param_hint="--project")
    return Project(namespace=namespace, path=path)


def context_options(func):
    """Options that build the RenderContext shared by rendering commands."""
    func = click.option("--base-url", default=None, help="Prefix for generated links")(func)
    func = click.option("--ref", default=None, help="Branch or tag for relative links")(func)
    func = click.option("--path", "requested_path", default=None, help="File the text belongs to")(func)
    func = click.option("--wiki", is_flag=True, help="Resolve relative links against the wiki")(func)
    func = click.option("--user", "username", default=None, help="Username of the reader")(func)
    func = click.option("--project", "-p", default=None, help="Project as namespace/project")(func)
    return func


def _build_helper(ctx: click.Context, params: dict[str, Any]):
    from .helpers import MarkdownHelper
    from .models import RenderContext, User
    from .renderer import MarkdownRenderer

    settings = ctx.obj["settings"]
    username = params.get("username")
    context = RenderContext(
        project=_parse_project(params.get("project")),
        current_user=User(username=username) if username else None,
        requested_path=params.get("requested_path"),
        project_wiki=params.get("wiki", False),
        ref=params.get("ref"),
        base_url=params.get("base_url") if params.get("base_url") is not None else settings.base_url,
    )
    return MarkdownHelper(
        context=context,
        renderer=MarkdownRenderer(allow_html=settings.allow_html),
        block_elements=settings.block_table(),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Main CLI Group
# ─────────────────────────────────────────────────────────────────────────────


@click.group(cls=JsonErrorGroup)
@click.version_option(version=REFMARK_VERSION, prog_name="refmark")
@click.option(
    "--json-errors",
    "json_errors",
    is_flag=True,
    help="Output errors as JSON (for programmatic use)",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    envvar="REFMARK_QUIET",
    help="Suppress warnings, show only errors and essential output",
)
@click.pass_context
def cli(ctx: click.Context, json_errors: bool, quiet: bool):
    """refmark: render and trim user markdown.

    \b
    Quick start:
      refmark render README.md -p group/app     # Render with references
      refmark first-line notes.md --max-chars 80
      refmark link "Fix #12" /group/app/issues/12 --class row-title
    """
    from ._logging import configure_logging, set_quiet_mode
    from .config import load_settings

    configure_logging()
    ctx.ensure_object(dict)
    ctx.obj["json_errors"] = json_errors
    ctx.obj["quiet"] = quiet

    if quiet:
        set_quiet_mode(True)

    try:
        ctx.obj["settings"] = load_settings()
    except RefmarkError as e:
        _handle_error(ctx, e)


@cli.command()
@click.argument("source", type=click.File("r"), default="-")
@click.option("--single-line", is_flag=True, help="Render inline markdown only")
@context_options
@click.pass_context
def render(ctx: click.Context, source, single_line: bool, **params):
    """Render markdown from SOURCE (default: stdin) to HTML."""
    helper = _build_helper(ctx, params)
    text = source.read()
    try:
        if single_line:
            from .config import SINGLE_LINE_PIPELINE
            from .models import RenderContext

            html = helper.markdown(text, RenderContext(pipeline=SINGLE_LINE_PIPELINE))
        else:
            html = helper.markdown(text)
    except RefmarkError as e:
        _handle_error(ctx, e)
    click.echo(html)


@cli.command("first-line")
@click.argument("source", type=click.File("r"), default="-")
@click.option("--max-chars", "-n", type=int, default=None, help="Visible character limit")
@context_options
@click.pass_context
def first_line(ctx: click.Context, source, max_chars: int | None, **params):
    """Render SOURCE and print its first line, trimmed to --max-chars."""
    helper = _build_helper(ctx, params)
    try:
        html = helper.first_line_in_markdown(source.read(), max_chars)
    except RefmarkError as e:
        _handle_error(ctx, e)
    click.echo(html or "")


@cli.command()
@click.argument("source", type=click.File("r"), default="-")
@click.option("--max-chars", "-n", type=int, required=True, help="Visible character limit")
@click.pass_context
def truncate(ctx: click.Context, source, max_chars: int):
    """Truncate an HTML fragment from SOURCE to --max-chars visible characters."""
    from .truncate import truncate_visible

    try:
        html = truncate_visible(source.read(), max_chars, block_elements=ctx.obj["settings"].block_table())
    except RefmarkError as e:
        _handle_error(ctx, e)
    click.echo(html)


@cli.command()
@click.argument("body")
@click.argument("url")
@click.option("--class", "css_class", default=None, help="CSS class for the links")
@context_options
@click.pass_context
def link(ctx: click.Context, body: str, url: str, css_class: str | None, **params):
    """Render BODY as a single line and link all of it to URL."""
    from .models import LinkOptions

    helper = _build_helper(ctx, params)
    try:
        html = helper.link_to_gfm(body, url, LinkOptions(css_class=css_class))
    except RefmarkError as e:
        _handle_error(ctx, e)
    click.echo(html)


@cli.command()
@click.argument("title")
@click.argument("url")
@click.option("--description", "-d", type=click.File("r"), default=None, help="Markdown description file")
@click.option("--max-chars", "-n", type=int, default=None, help="Visible limit for the description")
@click.option("--class", "css_class", default=None, help="CSS class for reference links")
@context_options
@click.pass_context
def summary(ctx: click.Context, title: str, url: str, description, max_chars, css_class, **params):
    """Render a summary card: linked TITLE plus the first line of a description."""
    from .templates import render_summary

    helper = _build_helper(ctx, params)
    try:
        html = render_summary(
            helper,
            title,
            url,
            description=description.read() if description else None,
            max_chars=max_chars,
            css_class=css_class,
        )
    except RefmarkError as e:
        _handle_error(ctx, e)
    click.echo(html, nl=False)


@cli.command()
def tip():
    """Print a random markdown tip."""
    from .helpers import MarkdownHelper

    click.echo(MarkdownHelper.random_markdown_tip())


def main():
    cli()


if __name__ == "__main__":
    main()
