"""CLI entry point for inkwell."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table
from rich.tree import Tree

from inkwell.config import BuildConfig, load_config
from inkwell.config.loader import DEFAULT_CONFIG_TEMPLATE
from inkwell.content.errors import BuildFailed
from inkwell.log import configure_logging
from inkwell.publish import BuildResult, run_build, write_manifest
from inkwell.talks.models import TalkIndex

app = typer.Typer(
    name="inkwell",
    help="Check and assemble a blog's markdown content into an ordered publication set.",
)

config_app = typer.Typer(help="Manage inkwell configuration.")
app.add_typer(config_app, name="config")


def _get_config(ctx: typer.Context) -> BuildConfig:
    if ctx.obj is None:
        ctx.obj = load_config()
    return ctx.obj


@app.callback()
def main(
    ctx: typer.Context,
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to inkwell.yaml")
    ] = None,
) -> None:
    """Global options."""
    try:
        cfg = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    configure_logging(cfg.log_level, cfg.log_format)
    ctx.obj = cfg


def _run(ctx: typer.Context, root: str | None) -> BuildResult:
    """Run the pipeline, printing every error and exiting 1 on failure."""
    cfg = _get_config(ctx)
    try:
        return run_build(cfg, root)
    except BuildFailed as e:
        _display_errors(e)
        raise typer.Exit(1)


def _display_errors(failure: BuildFailed) -> None:
    table = Table(title=f"[red]Build failed[/red] ({len(failure.errors)} errors)")
    table.add_column("Document", style="cyan")
    table.add_column("Error", style="magenta")
    table.add_column("Detail")
    for err in failure.errors:
        table.add_row(err.document_id or "-", type(err).__name__, escape(err.message))
    rprint(table)


def _display_publication(result: BuildResult) -> None:
    pub = result.publication_set
    table = Table(title=f"Publication set ({len(pub)} of {len(result.documents)} documents)")
    table.add_column("Date", style="green")
    table.add_column("Identifier", style="cyan")
    table.add_column("Title")
    table.add_column("Tags", style="yellow")
    for doc in pub.documents:
        table.add_row(
            doc.publication_date.isoformat(),
            doc.identifier,
            escape(doc.title),
            ", ".join(sorted(doc.tags)) or "-",
        )
    rprint(table)


def _display_talks(index: TalkIndex) -> None:
    tree = Tree(f"[bold]{escape(index.title or 'Talks')}[/bold] ({len(index.entries())})")
    for section in index.sections:
        year = tree.add(f"[green]{section.year}[/green]")
        for entry in section.entries:
            node = year.add(escape(entry.title))
            for label, url in entry.links.items():
                node.add(f"[cyan]{escape(label)}[/cyan] {escape(url)}")
    rprint(tree)


@app.command()
def build(
    ctx: typer.Context,
    root: str | None = typer.Argument(None, help="Content directory (defaults to content.root)"),
    output: str | None = typer.Option(None, "--output", "-o", help="Write the JSON manifest here"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Build without writing the manifest"),
) -> None:
    """Build the publication set and optionally write a manifest."""
    result = _run(ctx, root)
    _display_publication(result)
    if output:
        dest = write_manifest(result, output, dry_run=dry_run)
        if dry_run:
            rprint(f"[yellow](dry run)[/yellow] would write {dest}")
        else:
            rprint(f"\n[green]Wrote:[/green] {dest}")


@app.command()
def check(
    ctx: typer.Context,
    root: str | None = typer.Argument(None, help="Content directory (defaults to content.root)"),
) -> None:
    """Validate every document and link; report all problems at once."""
    result = _run(ctx, root)
    talks = len(result.talks.entries()) if result.talks else 0
    rprint(
        f"[green]OK[/green] {len(result.documents)} documents, "
        f"{len(result.publication_set)} published, {talks} talks"
    )


@app.command()
def talks(
    ctx: typer.Context,
    root: str | None = typer.Argument(None, help="Content directory (defaults to content.root)"),
) -> None:
    """Show the talks index grouped by year."""
    result = _run(ctx, root)
    if result.talks is None:
        rprint("[yellow]No talks index found.[/yellow]")
        raise typer.Exit(0)
    _display_talks(result.talks)


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Write a default inkwell.yaml to the current directory."""
    dest = Path("inkwell.yaml")
    if dest.exists() and not force:
        rprint("[yellow]inkwell.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    dest.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {dest}")


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Print the effective configuration."""
    cfg = _get_config(ctx)
    dumped = yaml.safe_dump(cfg.model_dump(mode="json"), sort_keys=False)
    rprint(Syntax(dumped, "yaml"))


if __name__ == "__main__":
    app()
