"""Command-line interface for Folio.

This module defines the CLI commands using the Click framework.

Commands:
- project add/list/remove: Manage the project registry.
- build: Build a project's site into its public/ directory.
- files: List a project's content files.
- cat: Print a content file.
- article new/rename: Create or retitle articles.
- api: Run the JSON HTTP API.
- serve: Preview a project with live reload.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

import click
import questionary

from . import __version__
from .articles import Article
from .config import load_settings, settings_dir
from .engine import Engine
from .errors import BuildError, FolioError
from .registry import ProjectRegistry


def _configure_logging(verbose: bool, level_name: str) -> None:
    level = logging.DEBUG if verbose else getattr(logging, str(level_name).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _engine(ctx: click.Context) -> Engine:
    """Engine bound to the registry in the configured settings directory."""
    obj = ctx.ensure_object(dict)
    if "engine" not in obj:
        try:
            registry = ProjectRegistry(obj.get("config_dir"))
        except FolioError as exc:
            raise click.ClickException(str(exc)) from exc
        obj["engine"] = Engine(registry)
    return obj["engine"]


@click.group()
@click.version_option(version=__version__, prog_name="folio")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool):
    """Folio static site manager."""
    config_dir = settings_dir()
    settings = load_settings(config_dir)
    _configure_logging(verbose, settings.get("log_level", "INFO"))
    ctx.ensure_object(dict)
    ctx.obj["config_dir"] = config_dir
    ctx.obj["settings"] = settings


@cli.group()
def project():
    """Manage registered projects."""


@project.command("add")
@click.argument("name")
@click.option(
    "--path",
    "parent",
    type=click.Path(file_okay=False, path_type=Path),
    help="Parent directory for the project (defaults to the current directory)",
)
@click.pass_context
def project_add(ctx: click.Context, name: str, parent: Path | None):
    """Create and register a new project."""
    engine = _engine(ctx)
    try:
        created = engine.registry.add(name, parent)
    except FolioError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"New Folio project '{created.name}' created at {created.path}")


@project.command("list")
@click.pass_context
def project_list(ctx: click.Context):
    """List registered projects."""
    projects = _engine(ctx).registry.projects()
    if not projects:
        click.echo("No projects registered. Create one with 'folio project add NAME'.")
        return
    for item in projects:
        click.echo(f"{item.name}\t{item.path}")


@project.command("remove")
@click.argument("name")
@click.pass_context
def project_remove(ctx: click.Context, name: str):
    """Unregister a project (files are left on disk)."""
    try:
        removed = _engine(ctx).registry.remove(name)
    except FolioError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Removed project '{removed.name}' (files kept at {removed.path})")


@cli.command()
@click.argument("name")
@click.pass_context
def build(ctx: click.Context, name: str):
    """Build a project's site into its public/ directory."""
    engine = _engine(ctx)
    try:
        result = engine.build_project(name)
    except BuildError as exc:
        # Display user-friendly error message
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  File: {_display_path(exc.source_path, engine, name)}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        raise SystemExit(1) from None
    except FolioError as exc:
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  Error: {exc}", fg="white"), err=True)
        raise SystemExit(1) from None
    click.echo(
        f"Built {len(result.pages)} pages and copied {len(result.copied)} files into {result.output_dir}"
    )


@cli.command()
@click.argument("name")
@click.pass_context
def files(ctx: click.Context, name: str):
    """List content files of a project."""
    try:
        paths = _engine(ctx).list_content_files(name)
    except FolioError as exc:
        raise click.ClickException(str(exc)) from exc
    for path in paths:
        click.echo(path)


@cli.command()
@click.argument("name")
@click.argument("path")
@click.pass_context
def cat(ctx: click.Context, name: str, path: str):
    """Print a content file."""
    try:
        content = _engine(ctx).read_file_content(name, path)
    except FolioError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(content, nl=not content.endswith("\n"))


@cli.group()
def article():
    """Create and retitle articles."""


@article.command("new")
@click.argument("name")
@click.option("--title", help="Article title (prompted for when omitted)")
@click.option("--body", default="", help="Initial markdown body")
@click.pass_context
def article_new(ctx: click.Context, name: str, title: str | None, body: str):
    """Create a new article under posts/."""
    engine = _engine(ctx)
    if title is None:
        title = questionary.text(
            "Title:",
            validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
            style=_questionary_style(),
        ).ask()
        if title is None:
            raise click.Abort()

    item = Article(title=title.strip(), date=datetime.now().replace(microsecond=0), body=body)
    try:
        result = engine.save_article(name, item)
    except FolioError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Created content/{result.path}")


@article.command("rename")
@click.argument("name")
@click.argument("path")
@click.argument("title")
@click.pass_context
def article_rename(ctx: click.Context, name: str, path: str, title: str):
    """Change an article's title, moving the file when its slug changes."""
    engine = _engine(ctx)
    try:
        item = engine.parse_article(name, path)
        item.title = title
        result = engine.save_article(name, item, path)
    except FolioError as exc:
        raise click.ClickException(str(exc)) from exc
    if result.renamed:
        click.echo(f"Moved content/{path} -> content/{result.path}")
    else:
        click.echo(f"Updated content/{result.path}")
    if result.stale_path:
        click.echo(
            click.style(f"Warning: could not delete content/{result.stale_path}", fg="yellow"),
            err=True,
        )


@cli.command()
@click.option("--host", help="Interface to bind (overrides settings.yaml)")
@click.option("--port", type=int, help="Port to listen on (overrides settings.yaml)")
@click.pass_context
def api(ctx: click.Context, host: str | None, port: int | None):
    """Run the JSON HTTP API."""
    from .api import serve_api

    settings = ctx.obj["settings"]
    serve_api(
        _engine(ctx),
        host or settings.get("host", "127.0.0.1"),
        int(port or settings.get("port", 4000)),
    )


@cli.command()
@click.argument("name")
@click.option("--port", type=int, help="Port for the preview server (overrides settings.yaml)")
@click.option(
    "--ws-port",
    type=int,
    help="Port for the live reload websocket server (overrides settings.yaml ws_port)",
)
@click.pass_context
def serve(ctx: click.Context, name: str, port: int | None, ws_port: int | None):
    """Preview a project with live reload."""
    from .server import DevServer

    engine = _engine(ctx)
    settings = ctx.obj["settings"]
    try:
        target = engine.project(name)
    except FolioError as exc:
        raise click.ClickException(str(exc)) from exc
    http_port = int(port or settings.get("port", 4000))
    if ws_port is None and port is None:
        ws_port = settings.get("ws_port")
    server = DevServer(
        engine,
        target.path,
        http_port=http_port,
        ws_port=ws_port,
        host=settings.get("host", "127.0.0.1"),
    )
    try:
        server.start()
    except FolioError as exc:
        raise click.ClickException(str(exc)) from exc


def _display_path(path: Path, engine: Engine, name: str) -> str:
    """Show a build error path relative to the project root when possible."""
    root = engine.project(name).path
    try:
        return str(Path(path).relative_to(root))
    except ValueError:
        return str(path)


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()
