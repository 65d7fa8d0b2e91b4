"""Typer CLI entrypoint for post-harvester."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

import typer
from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.table import Table

from .config import AppConfig, ConfigRepository
from .context import AppContext, build_context
from .logging_conf import LogPaths, available_source_logs, log_dir, tail_log
from .models import Post

app = typer.Typer(
    help="Poll forum sections, keep new posts, serve them over HTTP.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="Inspect log files.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
app.add_typer(log_app, name="log")

console = Console()


@dataclass
class CliOptions:
    verbose: bool = False
    config_path: Optional[Path] = None


def _options(ctx: typer.Context) -> CliOptions:
    options = ctx.obj
    if options is None:
        options = CliOptions()
        ctx.obj = options
    return options


def _load_context(ctx: typer.Context, with_scheduler: bool = False) -> AppContext:
    options = _options(ctx)
    try:
        return build_context(
            config_path=options.config_path,
            verbose=options.verbose,
            with_scheduler=with_scheduler,
        )
    except (ValidationError, ValueError, FileNotFoundError) as exc:
        console.print(f"Configuration error: {exc}", style="red")
        raise typer.Exit(code=1) from exc


def _render_posts_table(posts: Sequence[Post]) -> Table:
    table = Table(title=f"Stored posts · {len(posts)}", box=box.SIMPLE_HEAD)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Posted (UTC)", style="green", no_wrap=True)
    table.add_column("Author", style="magenta")
    table.add_column("Title", overflow="fold")
    table.add_column("Comments", justify="right")
    for post in posts:
        table.add_row(
            post.id,
            post.timestamp.strftime("%Y-%m-%d %H:%M"),
            post.author or "-",
            post.title,
            str(len(post.comments)),
        )
    return table


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging.", is_flag=True),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to a YAML/JSON config file."),
) -> None:
    ctx.obj = CliOptions(verbose=verbose, config_path=config)


@app.command("serve", help="Start the background poller and the HTTP server.")
def serve(ctx: typer.Context) -> None:
    import uvicorn

    from .api import create_app

    context = _load_context(ctx, with_scheduler=True)
    server = context.config.server
    console.print(
        f"Serving on {context.config.bind_address}; polling "
        f"{', '.join(context.config.scraper.subreddits)} every {context.config.scraper.poll_interval}",
        style="cyan",
    )
    uvicorn.run(create_app(context), host=server.host, port=server.port, log_config=None)


@app.command("scrape", help="Run one scrape pass now and store new posts.")
def scrape(ctx: typer.Context) -> None:
    context = _load_context(ctx)
    try:
        summary = context.orchestrator.run_pass()
    finally:
        context.close()
    console.print(
        f"Scrape completed: {summary.found} new, {summary.saved} saved, {summary.failed} failed.",
        style="green" if not summary.failed else "yellow",
    )


@app.command("posts", help="List stored posts, newest first.")
def posts(
    ctx: typer.Context,
    limit: int = typer.Option(20, "--limit", min=1, help="Show at most N posts."),
) -> None:
    context = _load_context(ctx)
    try:
        stored = context.store.list_all()
    finally:
        context.close()
    if not stored:
        console.print("No posts stored yet.", style="dim")
        return
    console.print(_render_posts_table(stored[:limit]))


@app.command("init-config", help="Write a config file populated with the defaults.")
def init_config(
    path: Path = typer.Argument(Path("config.yaml"), help="Destination file."),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file.", is_flag=True),
) -> None:
    if path.exists() and not force:
        console.print(f"{path} already exists; use --force to overwrite.", style="yellow")
        raise typer.Exit(code=1)
    ConfigRepository().save(AppConfig(), path)
    console.print(f"Wrote default configuration to {path}.", style="green")


@log_app.command("list", help="List per-source log files.")
def log_list() -> None:
    logs = list(available_source_logs())
    if not logs:
        console.print("No source logs yet.", style="dim")
        return
    table = Table(box=box.SIMPLE_HEAD)
    table.add_column("File", style="green")
    for path in logs:
        table.add_row(path.name)
    console.print(table)


@log_app.command("show", help="Show the tail of a log file.")
def log_show(
    source: Optional[str] = typer.Option(None, "--source", help="Forum section; global log when omitted."),
    tail: int = typer.Option(100, "--tail", min=1, help="Number of lines."),
) -> None:
    paths = LogPaths(log_dir())
    path = paths.source(source) if source else paths.main
    lines = tail_log(path, tail)
    if not lines:
        console.print("Log is empty.", style="dim")
        return
    console.print(f"{path.name} · last {len(lines)} lines", style="cyan")
    console.print("".join(lines), markup=False, highlight=False)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
