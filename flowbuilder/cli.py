"""Flow Builder CLI - Main entry point."""

import asyncio
import json
import logging
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.tree import Tree

from .config import settings
from .errors import FlowBuilderError

app = typer.Typer(
    name="flowbuilder",
    help="Flow Builder - workflow graph editor tools",
    no_args_is_help=True,
)
console = Console()

# Sub-command groups
paths_app = typer.Typer(help="Reference path encoding and decoding")
workflow_app = typer.Typer(help="Inspect workflows on the backend")
snapshots_app = typer.Typer(help="Offline workflow snapshots")

app.add_typer(paths_app, name="paths")
app.add_typer(workflow_app, name="workflow")
app.add_typer(snapshots_app, name="snapshots")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
    )


def _output_result(result: Any, json_output: bool = False) -> None:
    """Output result as JSON."""
    if json_output:
        console.print_json(json.dumps(result, default=str))
    else:
        console.print_json(json.dumps(result, default=str, indent=2))


def _fail(message: str) -> None:
    console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


# ============================================================================
# Path Commands
# ============================================================================


@paths_app.command("encode")
def paths_encode(
    namespace: str = typer.Argument(..., help="node, credential, value, database or file"),
    locator: str = typer.Argument(..., help="Node or resource id"),
    field: str = typer.Option(None, "--field", "-f", help="Field or output path"),
):
    """Build a reference path."""
    from .editor import paths

    try:
        console.print(paths.encode(namespace, locator, field))
    except FlowBuilderError as exc:
        _fail(str(exc))


@paths_app.command("decode")
def paths_decode(
    path: str = typer.Argument(..., help="Reference path, e.g. ${node:n1.user.email}"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Split a reference path into namespace, id and field."""
    from .editor import paths

    try:
        ref = paths.decode(path)
    except FlowBuilderError as exc:
        _fail(str(exc))
        return
    result = {"namespace": ref.namespace, "id": ref.id, "field": ref.field}
    if json_output:
        _output_result(result, json_output=True)
        return
    table = Table(title="Reference Path")
    table.add_column("Part", style="cyan")
    table.add_column("Value", style="white")
    for key, value in result.items():
        table.add_row(key, value or "-")
    console.print(table)


# ============================================================================
# Workflow Commands
# ============================================================================


def _render_tree(store) -> Tree:
    from .editor.nodes import child_lists

    tree = Tree("[bold]workflow[/bold]")

    def add(branch: Tree, ids: list[str]) -> None:
        for node_id in ids:
            node = store.get(node_id)
            label = f"[cyan]{node.title}[/cyan] [dim]{node.variant.value} {node.id}[/dim]"
            child = branch.add(label)
            for slot, child_ids in child_lists(node).items():
                add(child.add(f"[yellow]{slot}[/yellow]"), child_ids)

    add(tree, store.root)
    return tree


async def _load(workflow_id: str):
    from .api import FlowClient
    from .editor.session import WorkflowEditor

    async with FlowClient.from_settings() as api:
        editor = WorkflowEditor(workflow_id, client=api)
        await editor.load()
        return editor


@workflow_app.command("show")
def workflow_show(
    workflow_id: str = typer.Argument(..., help="Workflow ID"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Load a workflow graph from the backend and print it."""
    try:
        editor = asyncio.run(_load(workflow_id))
    except FlowBuilderError as exc:
        _fail(f"Could not load workflow: {exc}")
        return
    if json_output:
        _output_result(editor.store.to_dict(), json_output=True)
    else:
        console.print(_render_tree(editor.store))


@workflow_app.command("validate")
def workflow_validate(
    workflow_id: str = typer.Argument(..., help="Workflow ID"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Run the pre-flight checks on a backend workflow."""
    try:
        editor = asyncio.run(_load(workflow_id))
    except FlowBuilderError as exc:
        _fail(f"Could not load workflow: {exc}")
        return
    result = editor.validate()
    if json_output:
        _output_result(result.to_dict(), json_output=True)
    else:
        table = Table(title=result.to_dict()["summary"])
        table.add_column("Level", style="yellow", width=8)
        table.add_column("Node", style="cyan")
        table.add_column("Message", style="white")
        for issue in result.errors + result.warnings:
            style = "red" if issue.level == "error" else "yellow"
            table.add_row(f"[{style}]{issue.level}[/{style}]", issue.node_name, issue.message)
        console.print(table)
    if not result.is_valid:
        raise typer.Exit(1)


# ============================================================================
# Snapshot Commands
# ============================================================================


@snapshots_app.command("list")
def snapshots_list(
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """List workflows saved in the local snapshot file."""
    from .services import snapshot_svc

    workflows = snapshot_svc.list_snapshots()
    if json_output:
        _output_result(workflows, json_output=True)
        return
    table = Table(title=f"Snapshots ({len(workflows)})")
    table.add_column("ID", style="dim", max_width=32)
    table.add_column("Name", style="cyan")
    table.add_column("Nodes", style="green")
    table.add_column("Updated", style="white")
    for w in workflows:
        table.add_row(
            str(w["id"]),
            w.get("name", "-"),
            str(len(w.get("nodes", []))),
            w.get("updatedAt", "-"),
        )
    console.print(table)


@snapshots_app.command("delete")
def snapshots_delete(
    workflow_id: str = typer.Argument(..., help="Snapshot workflow ID"),
):
    """Delete a workflow from the local snapshot file."""
    from .services import snapshot_svc

    if not snapshot_svc.delete_snapshot(workflow_id):
        _fail(f"No snapshot named {workflow_id}")
    console.print(f"[green]Deleted snapshot {workflow_id}[/green]")


# ============================================================================
# Server
# ============================================================================


@app.command("serve")
def serve(
    port: int = typer.Option(8030, "--port", "-p", help="Port to run on"),
    host: str = typer.Option("127.0.0.1", "--host", help="Host to bind to"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Run the editor HTTP API."""
    import uvicorn

    console.print(f"[bold cyan]Starting Flow Builder editor at http://{host}:{port}[/bold cyan]")
    uvicorn.run("flowbuilder.app:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
