"""
Command Line Interface for Meridian.
"""

import asyncio
from typing import Optional

import typer
import uvicorn
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..adapters import Services, create_services
from ..config import get_settings
from ..core.enums import Priority, Status
from ..core.errors import ConfigurationError, DomainError
from ..core.issue import IssueCreate, IssueFilter
from ..core.primitives import PaginationParams
from ..github.deterministic_id import NAMESPACES, generate_deterministic_id
from ..log import configure_logging

app = typer.Typer(help="Meridian - one issue tracker model, many backends")
console = Console()

STATUS_STYLE = {
    Status.OPEN: "green",
    Status.IN_PROGRESS: "yellow",
    Status.CLOSED: "dim",
}


def _run(action):
    """Build the services, run ``action(services)`` and release them."""

    async def runner():
        services = create_services()
        try:
            return await action(services)
        finally:
            await services.close()

    try:
        return asyncio.run(runner())
    except ConfigurationError as exc:
        console.print(f"❌ {exc}")
        raise typer.Exit(code=2)
    except DomainError as exc:
        console.print(f"❌ [{exc.code}] {exc.message}", markup=False)
        raise typer.Exit(code=1)


@app.command()
def serve(
    port: Optional[int] = typer.Option(None, help="Port to run the API server on"),
    host: Optional[str] = typer.Option(None, help="Host to bind the server to"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
):
    """Start the REST API server."""
    settings = get_settings()
    rprint(Panel.fit(f"🧭 Meridian API ({settings.meridian_adapter} backend)", style="bold blue"))
    uvicorn.run(
        "meridian.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
    )


@app.command()
def mcp(
    transport: Optional[str] = typer.Option(
        None, help="MCP transport (stdio, sse or streamable-http)"
    ),
):
    """Start the MCP tool server."""
    from ..mcp import main

    main(transport)


@app.command()
def issues(
    status: Optional[Status] = typer.Option(None, help="Only issues with this status"),
    priority: Optional[Priority] = typer.Option(None, help="Only issues with this priority"),
    search: Optional[str] = typer.Option(None, help="Text to look for in title/description"),
    page: int = typer.Option(1, min=1, help="Page number"),
    limit: int = typer.Option(20, min=1, max=100, help="Issues per page"),
):
    """List issues."""
    settings = get_settings()
    configure_logging(settings.log_level, "console")
    criteria = {"status": status, "priority": priority, "search": search}
    filters = IssueFilter(**{k: v for k, v in criteria.items() if v is not None})

    async def action(services: Services):
        return await services.issues.list(filters, PaginationParams(page=page, limit=limit))

    result = _run(action)

    table = Table(
        title=f"Issues (page {result.page}, {result.total} total)",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Priority")
    table.add_column("#", justify="right")

    for issue in result.items:
        style = STATUS_STYLE.get(issue.status, "white")
        number = issue.metadata.get("github_number")
        table.add_row(
            issue.id,
            issue.title,
            f"[{style}]{issue.status.value}[/{style}]",
            issue.priority.value,
            str(number) if number is not None else "",
        )

    console.print(table)
    if result.has_more:
        console.print(f"More results: --page {result.page + 1}")


@app.command()
def create(
    title: str = typer.Argument(..., help="Issue title"),
    description: str = typer.Option("", help="Issue body (markdown)"),
    priority: Priority = typer.Option(Priority.NORMAL, help="Priority level"),
):
    """Create an issue."""
    settings = get_settings()
    configure_logging(settings.log_level, "console")

    async def action(services: Services):
        return await services.issues.create(
            IssueCreate(title=title, description=description, priority=priority)
        )

    issue = _run(action)
    console.print(f"✅ Created issue {issue.id}")


@app.command()
def links(
    issue_id: str = typer.Argument(..., help="Issue whose links to show"),
    link_type: Optional[str] = typer.Option(None, "--type", help="Only links of this type"),
):
    """Show the relationships of an issue."""
    settings = get_settings()
    configure_logging(settings.log_level, "console")

    async def action(services: Services):
        await services.issues.get(issue_id)
        return await services.links.list_for_issue(issue_id, link_type)

    resolved = _run(action)
    if not resolved:
        console.print("No links")
        return

    table = Table(title=f"Links of {issue_id}", show_header=True, header_style="bold magenta")
    table.add_column("Relationship", style="cyan")
    table.add_column("Issue")
    table.add_column("Link ID", style="dim")
    for link in resolved:
        table.add_row(link.label, link.linked_issue_id, link.id)
    console.print(table)


@app.command()
def roadmap(milestone_id: str = typer.Argument(..., help="Milestone to summarize")):
    """Show a milestone's progress and its issues per status."""
    settings = get_settings()
    configure_logging(settings.log_level, "console")

    async def action(services: Services):
        return await services.milestones.overview(milestone_id)

    overview = _run(action)
    rprint(
        Panel.fit(
            f"{overview.milestone.name}: {overview.completion_percentage()}% complete "
            f"({overview.total_issues} issues)",
            style="bold blue",
        )
    )
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Status")
    table.add_column("Issues", justify="right")
    for status in Status:
        style = STATUS_STYLE.get(status, "white")
        table.add_row(
            f"[{style}]{status.value}[/{style}]", str(overview.status_breakdown[status.value])
        )
    console.print(table)


@app.command("id")
def deterministic_id(
    namespace: str = typer.Argument(..., help="One of: " + ", ".join(NAMESPACES)),
    key: str = typer.Argument(..., help="Key, e.g. 'acme/widgets#42'"),
):
    """Print the deterministic ID the GitHub backend derives for a key."""
    if namespace not in NAMESPACES:
        console.print(f"❌ Unknown namespace. Use one of: {', '.join(NAMESPACES)}")
        raise typer.Exit(code=1)
    console.print(generate_deterministic_id(NAMESPACES[namespace], key))


if __name__ == "__main__":
    app()
