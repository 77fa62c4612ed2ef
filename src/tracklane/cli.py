"""CLI entry point for Tracklane.

Commands:
- serve: run the REST API with uvicorn
- check-workflow: validate a YAML workflow definition
- import-workflow: load a YAML workflow definition into the database
- board: print a board projection for a board file and an issue list
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from tracklane import __version__
from tracklane.board import (
    BoardFilters,
    WipStatus,
    category_counts,
    project_board,
)
from tracklane.config import (
    ConfigError,
    Settings,
    load_board_file,
    load_issues_file,
    load_workflow_file,
)
from tracklane.store import BoardStore, StatusNotFoundError, StoreError
from tracklane.workflow import WorkflowError

_WIP_MARKS = {
    WipStatus.NORMAL: "",
    WipStatus.WARNING: " [warning]",
    WipStatus.EXCEEDED: " [exceeded]",
}


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """Tracklane - issue workflows and boards."""
    pass


@main.command()
@click.option("--host", default="127.0.0.1", show_default=True, help="Bind address")
@click.option("--port", type=int, default=8000, show_default=True, help="Bind port")
@click.option("--db", "db_path", default=None, help="SQLite database path (TRACKLANE_DB_PATH)")
def serve(host: str, port: int, db_path: str | None) -> None:
    """Run the REST API server."""
    import uvicorn  # noqa: PLC0415

    from tracklane.api import create_app  # noqa: PLC0415
    from tracklane.logging import setup_logging  # noqa: PLC0415

    settings = Settings.from_env()
    setup_logging(settings.log_dir, level=settings.log_level)
    app = create_app(db_path or settings.db_path, settings)
    uvicorn.run(app, host=host, port=port, log_level="info")


@main.command("check-workflow")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def check_workflow(path: Path) -> None:
    """Validate a workflow file and print its graph."""
    try:
        definition = load_workflow_file(path)
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    workflow = definition.workflow
    names = {status.id: status.name for status in definition.statuses}
    click.echo(f"Workflow: {workflow.name} ({len(workflow.steps_of())} steps)")
    for step in workflow.steps_of():
        marker = " (initial)" if step.is_initial else ""
        click.echo(f"  [{step.id}] {names.get(step.status_id, step.status_id)}{marker}")
        for transition in workflow.transitions_from(step.id):
            target = workflow.get_step(transition.to_step_id).status_id
            rules = len(transition.conditions) + len(transition.validators)
            suffix = f", {rules} rule(s)" if rules else ""
            click.echo(f"      -> {names.get(target, target)} via '{transition.name}'{suffix}")
        if not workflow.transitions_from(step.id):
            click.echo("      (terminal)")


@main.command("import-workflow")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--db", "db_path", default=None, help="SQLite database path (TRACKLANE_DB_PATH)")
def import_workflow(path: Path, db_path: str | None) -> None:
    """Store a workflow file's statuses and graph in the database."""
    store = BoardStore(db_path or Settings.from_env().db_path)
    try:
        definition = load_workflow_file(path)
        for status in definition.statuses:
            try:
                store.get_status(status.id)
            except StatusNotFoundError:
                store.create_status(
                    status.name, category=status.category, color=status.color, status_id=status.id
                )
        # Fresh IDs, so one file can be imported more than once.
        workflow = store.save_workflow(definition.workflow.clone())
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    except (StoreError, WorkflowError) as e:
        click.echo(f"Import failed: {e}", err=True)
        sys.exit(1)
    finally:
        store.close()
    click.echo(f"Imported workflow '{workflow.name}' as {workflow.id}")


@main.command()
@click.argument("board_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("issues_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--search", default="", help="Only issues whose summary or key match")
@click.option("--assignee", "assignees", multiple=True, help="Only issues of this assignee")
def board(board_path: Path, issues_path: Path, search: str, assignees: tuple[str, ...]) -> None:
    """Print the board projection of an issue list."""
    try:
        definition = load_board_file(board_path)
        issues = load_issues_file(issues_path)
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    view = project_board(
        definition.columns, issues, BoardFilters(search=search, assignees=frozenset(assignees))
    )
    click.echo(f"Board: {definition.name} ({definition.board_type.value})")
    for column_view in view.columns:
        column = column_view.column
        limit = f"/{column.max_issues}" if column.max_issues else ""
        mark = _WIP_MARKS[column_view.wip]
        if column_view.below_minimum:
            mark += " [below minimum]"
        click.echo(f"  {column.name} ({column_view.count}{limit}){mark}")
        for issue in column_view.issues:
            assignee = f" @{issue.assignee}" if issue.assignee else ""
            click.echo(f"    {issue.key}  {issue.summary}{assignee}")
    if view.unplaced:
        click.echo(f"  Unplaced: {', '.join(issue.key for issue in view.unplaced)}")

    counts = category_counts(definition.columns, issues)
    click.echo(f"Progress: {counts.done}/{counts.total} done ({counts.progress_percentage}%)")


if __name__ == "__main__":
    main()
