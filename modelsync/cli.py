"""
Command Line Interface for modelsync.
"""

import importlib
import logging
from typing import List, Optional

import structlog
import typer
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import get_settings
from .database import Database
from .errors import ModelSyncError, NoChangesError, StatementError

app = typer.Typer(help="modelsync - schema migrations for dataclass models")
console = Console()


def configure_logging(level: str) -> None:
    """Route structlog output through the configured level."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.INFO
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(numeric))


def load_models(module: str) -> List[type]:
    """Import ``module`` and return its ``MODELS`` list."""
    try:
        mod = importlib.import_module(module)
    except ImportError as e:
        raise typer.BadParameter(f"cannot import {module}: {e}") from e
    models = getattr(mod, "MODELS", None)
    if not models:
        raise typer.BadParameter(f"{module} does not define a non-empty MODELS list")
    return list(models)


def open_database(
    module: str, url: Optional[str], migrations_dir: Optional[str]
) -> Database:
    settings = get_settings()
    configure_logging(settings.log_level)
    db = Database(url, settings=settings, migrations_dir=migrations_dir)
    for model in load_models(module):
        db.register(model)
    return db


ModuleOption = typer.Option(..., "--module", "-m", help="Module exposing a MODELS list")
UrlOption = typer.Option(None, "--url", help="SQLAlchemy URL (defaults to DATABASE_URL / DB_*)")
DirOption = typer.Option(None, "--migrations-dir", help="Snapshot directory")


@app.command()
def migrate(
    module: str = ModuleOption,
    url: Optional[str] = UrlOption,
    migrations_dir: Optional[str] = DirOption,
):
    """Apply pending schema changes and write a new snapshot."""
    try:
        db = open_database(module, url, migrations_dir)
        result = db.migrate()
    except NoChangesError:
        console.print("✅ No migrations to run")
        return
    except StatementError as e:
        console.print(f"❌ {e}")
        if e.statement:
            console.print(f"   [dim]{e.statement}[/dim]")
        raise typer.Exit(code=1)
    except ModelSyncError as e:
        console.print(f"❌ {e}")
        raise typer.Exit(code=1)

    rprint(
        Panel.fit(
            f"Applied {result.operations} statement(s)\nSnapshot: {result.snapshot}",
            title="Migration complete",
            style="bold green",
        )
    )


@app.command()
def plan(
    module: str = ModuleOption,
    url: Optional[str] = UrlOption,
    migrations_dir: Optional[str] = DirOption,
):
    """Show the changes a migration would apply."""
    try:
        db = open_database(module, url, migrations_dir)
        diff = db.plan()
    except ModelSyncError as e:
        console.print(f"❌ {e}")
        raise typer.Exit(code=1)

    if diff.is_empty:
        console.print("✅ Schema is up to date")
        return

    table = Table(title="Pending changes", show_header=True, header_style="bold magenta")
    table.add_column("Change", style="cyan")
    table.add_column("Target")

    for t in diff.missing_tables:
        table.add_row("create table", t.name)
    for c in diff.missing_columns:
        table.add_row("add column", f"{c.table}.{c.name}")
    for r in diff.missing_relations:
        table.add_row("create relation", f"{r.from_table} -> {r.to_table} ({r.type.value})")
    for c in diff.different_columns:
        table.add_row("modify column", f"{c.table}.{c.name}")
    for t in diff.removed_tables:
        table.add_row("drop table", t.name)
    for c in diff.removed_columns:
        table.add_row("drop column", f"{c.table}.{c.name}")
    for r in diff.removed_relations:
        table.add_row("drop relation", f"{r.from_table} -> {r.to_table} ({r.type.value})")

    console.print(table)


@app.command()
def snapshots(
    migrations_dir: Optional[str] = DirOption,
):
    """List the snapshot files, oldest first."""
    from .snapshots import create_snapshot_store

    settings = get_settings()
    store = create_snapshot_store(migrations_dir or settings.migrations_dir)
    try:
        names = store.list()
    except ModelSyncError as e:
        console.print(f"❌ {e}")
        raise typer.Exit(code=1)

    if not names:
        console.print("No snapshots found")
        return

    table = Table(title=store.get_uri(), show_header=True, header_style="bold magenta")
    table.add_column("#", style="cyan")
    table.add_column("Snapshot")
    for i, name in enumerate(names, start=1):
        table.add_row(str(i), name)
    console.print(table)


def main():
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
