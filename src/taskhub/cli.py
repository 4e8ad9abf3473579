"""CLI interface for TaskHub."""

import asyncio
from datetime import date
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from taskhub.config import get_settings
from taskhub.database import close_db, init_db, session_scope
from taskhub.logging_config import setup_logging
from taskhub.models import TaskPriority, TaskStatus, TrashedMode
from taskhub.observers import register_observers
from taskhub.schemas.category import CategoryCreate, CategoryUpdate
from taskhub.schemas.task import TaskCreate, TaskFilters, TaskSorting
from taskhub.services.category_service import CategoryService
from taskhub.services.errors import EntityValidationError
from taskhub.services.task_query import TaskQueryService
from taskhub.services.task_service import TaskService

app = typer.Typer(
    name="taskhub",
    help="TaskHub - tasks and categories from the terminal.",
    no_args_is_help=True,
)
category_app = typer.Typer(help="Manage categories.", no_args_is_help=True)
app.add_typer(category_app, name="category")

console = Console()

STATUS_STYLE = {
    TaskStatus.PENDING: "yellow",
    TaskStatus.IN_PROGRESS: "cyan",
    TaskStatus.COMPLETED: "green",
}
PRIORITY_STYLE = {
    TaskPriority.LOW: "green",
    TaskPriority.MEDIUM: "yellow",
    TaskPriority.HIGH: "red",
}


def run_async(coro):
    """Run async function in sync context, releasing connections afterwards."""

    async def _runner():
        try:
            return await coro
        finally:
            await close_db()

    return asyncio.run(_runner())


async def ensure_db():
    """Ensure database is initialized."""
    register_observers()
    await init_db()


def parse_date(value: Optional[str], option: str) -> Optional[date]:
    """Parse a YYYY-MM-DD option value."""
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        console.print(f"[red]Invalid date for {option}: {value}[/red]")
        console.print("Use format: YYYY-MM-DD")
        raise typer.Exit(1)


def fail(message: str) -> None:
    """Print an error and exit with status 1."""
    console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Configure logging before any command runs."""
    settings = get_settings()
    setup_logging("DEBUG" if verbose else settings.log_level, settings.log_file)


@app.command()
def add(
    title: str = typer.Argument(..., help="Task title"),
    description: Optional[str] = typer.Option(None, "--desc", "-d", help="Description"),
    due: Optional[str] = typer.Option(None, "--due", help="Due date (YYYY-MM-DD)"),
    priority: TaskPriority = typer.Option(TaskPriority.MEDIUM, "--priority", "-p", help="Priority"),
    status: TaskStatus = typer.Option(TaskStatus.PENDING, "--status", "-s", help="Status"),
    category: Optional[int] = typer.Option(None, "--category", "-c", help="Category ID"),
):
    """Add a new task."""
    due_date = parse_date(due, "--due")

    async def _add():
        await ensure_db()
        async with session_scope() as session:
            service = TaskService(session)
            try:
                task = await service.create(
                    TaskCreate(
                        title=title,
                        description=description,
                        status=status,
                        priority=priority,
                        due_date=due_date,
                        category_id=category,
                    )
                )
            except EntityValidationError as e:
                fail(e.message)

        console.print(Panel(
            f"[green]Created:[/green] {task.title}\n"
            f"[dim]ID: {task.id}[/dim]",
            title="Task Added",
        ))

    run_async(_add())


@app.command("list")
def list_tasks(
    status: Optional[TaskStatus] = typer.Option(None, "--status", "-s", help="Filter by status"),
    priority: Optional[TaskPriority] = typer.Option(None, "--priority", "-p", help="Filter by priority"),
    category: Optional[int] = typer.Option(None, "--category", "-c", help="Filter by category ID"),
    search: Optional[str] = typer.Option(None, "--search", "-q", help="Search title and description"),
    due_from: Optional[str] = typer.Option(None, "--due-from", help="Due on or after (YYYY-MM-DD)"),
    due_to: Optional[str] = typer.Option(None, "--due-to", help="Due on or before (YYYY-MM-DD)"),
    trashed: TrashedMode = typer.Option(TrashedMode.DEFAULT, "--trashed", help="Soft-delete visibility"),
    sort_by: str = typer.Option("created_at", "--sort-by", help="created_at, due_date, priority, status or title"),
    sort_dir: str = typer.Option("desc", "--sort-dir", help="asc or desc"),
    page: int = typer.Option(1, "--page", min=1),
    page_size: int = typer.Option(20, "--page-size", min=1, max=100),
):
    """List tasks."""
    filters = TaskFilters(
        status=status,
        priority=priority,
        category_id=category,
        search=search,
        due_from=parse_date(due_from, "--due-from"),
        due_to=parse_date(due_to, "--due-to"),
        trashed=trashed,
    )
    sorting = TaskSorting(sort_by=sort_by, sort_dir=sort_dir)

    async def _list():
        await ensure_db()
        async with session_scope() as session:
            service = TaskQueryService(session)
            tasks, total = await service.get_all_tasks(
                filters, sorting, page=page, page_size=page_size
            )

        if not tasks:
            console.print("[dim]No tasks found.[/dim]")
            return

        table = Table(title=f"Tasks ({total} total)")
        table.add_column("ID", style="dim", justify="right")
        table.add_column("Title", style="bold")
        table.add_column("Status")
        table.add_column("Priority")
        table.add_column("Due", width=10)
        table.add_column("Category", style="cyan")

        for task in tasks:
            title = task.title
            if task.trashed:
                title = f"[strike dim]{title}[/strike dim]"

            due_str = ""
            if task.due_date:
                due_str = task.due_date.isoformat()
                if task.is_overdue:
                    due_str = f"[red]{due_str}[/red]"

            status_color = STATUS_STYLE[task.status]
            pri_color = PRIORITY_STYLE[task.priority]
            table.add_row(
                str(task.id),
                title,
                f"[{status_color}]{task.status.value}[/{status_color}]",
                f"[{pri_color}]{task.priority.value}[/{pri_color}]",
                due_str,
                task.category.name if task.category else "",
            )

        console.print(table)

    run_async(_list())


@app.command()
def show(
    task_id: int = typer.Argument(..., help="Task ID"),
):
    """Show a single task, including trashed ones."""

    async def _show():
        await ensure_db()
        async with session_scope() as session:
            task = await TaskQueryService(session).get_task_by_id(
                task_id, trashed=TrashedMode.WITH_TRASHED
            )
        if not task:
            fail(f"Task not found: {task_id}")

        lines = [
            f"[bold]{task.title}[/bold]",
            task.description or "[dim]No description[/dim]",
            "",
            f"Status:   {task.status.value}",
            f"Priority: {task.priority.value}",
            f"Due:      {task.due_date.isoformat() if task.due_date else '-'}",
            f"Category: {task.category.name if task.category else '-'}",
        ]
        if task.trashed:
            lines.append("[red]In trash[/red]")
        console.print(Panel("\n".join(lines), title=f"Task {task.id}"))

    run_async(_show())


@app.command()
def done(
    task_id: int = typer.Argument(..., help="Task ID"),
):
    """Mark a task as completed."""

    async def _done():
        await ensure_db()
        async with session_scope() as session:
            task = await TaskService(session).mark_complete(task_id)
        if not task:
            fail(f"Task not found: {task_id}")
        console.print(f"[green]Completed:[/green] {task.title}")

    run_async(_done())


@app.command()
def delete(
    task_id: int = typer.Argument(..., help="Task ID"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
):
    """Move a task to the trash."""

    async def _delete():
        await ensure_db()
        async with session_scope() as session:
            service = TaskService(session)
            task = await service.get_by_id(task_id)
            if not task:
                fail(f"Task not found: {task_id}")

            if not force:
                confirm = typer.confirm(f"Delete '{task.title}'?")
                if not confirm:
                    raise typer.Abort()

            await service.delete(task.id)

        console.print(f"[red]Deleted:[/red] {task.title}")

    run_async(_delete())


@app.command()
def restore(
    task_id: int = typer.Argument(..., help="Task ID"),
):
    """Restore a task from the trash."""

    async def _restore():
        await ensure_db()
        async with session_scope() as session:
            task = await TaskService(session).restore(task_id)
        if not task:
            fail(f"No trashed task with ID {task_id}")
        console.print(f"[green]Restored:[/green] {task.title}")

    run_async(_restore())


@app.command()
def purge(
    task_id: int = typer.Argument(..., help="Task ID"),
):
    """Permanently delete a trashed task."""

    async def _purge():
        await ensure_db()
        async with session_scope() as session:
            deleted = await TaskService(session).force_delete(task_id)
        if not deleted:
            fail(f"No trashed task with ID {task_id}")
        console.print(f"[red]Purged task {task_id}[/red]")

    run_async(_purge())


@app.command()
def stats():
    """Show task counts by status."""

    async def _stats():
        await ensure_db()
        async with session_scope() as session:
            result = await TaskQueryService(session).get_task_statistics()

        table = Table(title="Task Statistics")
        table.add_column("Total", justify="right")
        table.add_column("Pending", justify="right", style="yellow")
        table.add_column("In progress", justify="right", style="cyan")
        table.add_column("Completed", justify="right", style="green")
        table.add_column("Overdue", justify="right", style="red")
        table.add_row(
            str(result.total),
            str(result.pending),
            str(result.in_progress),
            str(result.completed),
            str(result.overdue),
        )
        console.print(table)

    run_async(_stats())


@category_app.command("list")
def category_list(
    trashed: TrashedMode = typer.Option(TrashedMode.DEFAULT, "--trashed", help="Soft-delete visibility"),
):
    """List categories as a two-level tree."""

    async def _categories():
        await ensure_db()
        async with session_scope() as session:
            service = CategoryService(session)
            cats = await service.get_all(trashed)

        if not cats:
            console.print("[dim]No categories found.[/dim]")
            return

        listed = {c.id for c in cats}
        table = Table(title="Categories")
        table.add_column("ID", style="dim", justify="right")
        table.add_column("Name", style="bold")
        table.add_column("Parent")

        # Roots first, each followed by its children
        for cat in cats:
            if cat.parent_id is not None and cat.parent_id in listed:
                continue
            table.add_row(str(cat.id), cat.name, cat.parent_name or "")
            for child in cats:
                if child.parent_id == cat.id:
                    table.add_row(str(child.id), f"  +-- {child.name}", cat.name)

        console.print(table)

    run_async(_categories())


@category_app.command("add")
def category_add(
    name: str = typer.Argument(..., help="Category name"),
    parent: Optional[int] = typer.Option(None, "--parent", help="Parent category ID"),
):
    """Create a category."""

    async def _add():
        await ensure_db()
        async with session_scope() as session:
            try:
                cat = await CategoryService(session).create(
                    CategoryCreate(name=name, parent_id=parent)
                )
            except EntityValidationError as e:
                fail(e.message)
        console.print(f"[green]Created category:[/green] {cat.name} [dim](ID: {cat.id})[/dim]")

    run_async(_add())


@category_app.command("rename")
def category_rename(
    category_id: int = typer.Argument(..., help="Category ID"),
    name: str = typer.Argument(..., help="New name"),
):
    """Rename a category."""

    async def _rename():
        await ensure_db()
        async with session_scope() as session:
            cat = await CategoryService(session).update(category_id, CategoryUpdate(name=name))
        if not cat:
            fail(f"Category not found: {category_id}")
        console.print(f"[green]Renamed:[/green] {cat.name}")

    run_async(_rename())


@category_app.command("move")
def category_move(
    category_id: int = typer.Argument(..., help="Category ID"),
    parent: Optional[int] = typer.Option(None, "--parent", help="New parent ID (omit for root)"),
):
    """Move a category under another root, or to the top level."""

    async def _move():
        await ensure_db()
        async with session_scope() as session:
            try:
                cat = await CategoryService(session).update(
                    category_id, CategoryUpdate(parent_id=parent)
                )
            except EntityValidationError as e:
                fail(e.message)
        if not cat:
            fail(f"Category not found: {category_id}")
        where = f"under {cat.parent_name}" if cat.parent_name else "to the top level"
        console.print(f"[green]Moved:[/green] {cat.name} {where}")

    run_async(_move())


@category_app.command("delete")
def category_delete(
    category_id: int = typer.Argument(..., help="Category ID"),
):
    """Move a category to the trash."""

    async def _delete():
        await ensure_db()
        async with session_scope() as session:
            deleted = await CategoryService(session).delete(category_id)
        if not deleted:
            fail(f"Category not found: {category_id}")
        console.print(f"[red]Deleted category {category_id}[/red]")

    run_async(_delete())


@category_app.command("restore")
def category_restore(
    category_id: int = typer.Argument(..., help="Category ID"),
):
    """Restore a category from the trash."""

    async def _restore():
        await ensure_db()
        async with session_scope() as session:
            cat = await CategoryService(session).restore(category_id)
        if not cat:
            fail(f"No trashed category with ID {category_id}")
        console.print(f"[green]Restored:[/green] {cat.name}")

    run_async(_restore())


@category_app.command("stats")
def category_stats():
    """Show task counts per category."""

    async def _stats():
        await ensure_db()
        async with session_scope() as session:
            rows, totals = await CategoryService(session).get_statistics()

        table = Table(title="Category Statistics")
        table.add_column("Category", style="bold")
        table.add_column("Total", justify="right")
        table.add_column("Pending", justify="right", style="yellow")
        table.add_column("In progress", justify="right", style="cyan")
        table.add_column("Completed", justify="right", style="green")

        for row in rows:
            name = row.name if row.parent_id is None else f"  +-- {row.name}"
            table.add_row(
                name,
                str(row.tasks_total_count),
                str(row.tasks_pending_count),
                str(row.tasks_in_progress_count),
                str(row.tasks_completed_count),
            )
        table.add_row(
            "[bold]Total[/bold]",
            str(totals.total),
            str(totals.pending),
            str(totals.in_progress),
            str(totals.completed),
        )
        console.print(table)

    run_async(_stats())


@app.command()
def server(
    host: str = typer.Option("0.0.0.0", "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to bind to"),
):
    """Start the API server."""
    import uvicorn

    console.print(f"[green]Starting TaskHub server at http://{host}:{port}[/green]")
    console.print("[dim]Press Ctrl+C to stop[/dim]")

    uvicorn.run(
        "taskhub.main:app",
        host=host,
        port=port,
        reload=False,
    )


if __name__ == "__main__":
    app()
