"""
Command line interface for the ticket agent orchestrator.
"""

import asyncio
import json
from pathlib import Path
from typing import List, Optional

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .exceptions import OrchestratorError
from .metrics import WorkflowMetrics
from .models import Ticket, TicketAnalysis
from .state import EnhancedWorkflowResult, MultiAgentResponse, WorkflowStatus
from .system import TicketOrchestrationSystem

console = Console()
app = typer.Typer(
    name="ticket-orchestrator",
    help="Route support tickets through specialized agents",
    add_completion=False,
    rich_markup_mode="rich"
)


def load_tickets(path: Path) -> List[Ticket]:
    """Load one ticket object or a list of ticket objects from a JSON file."""
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = [data]
    return [Ticket.model_validate(item) for item in data]


def build_system(config: str) -> TicketOrchestrationSystem:
    if not Path(config).exists():
        console.print(Panel(
            f"[red]Configuration file not found: {config}[/red]",
            title="[bold red]Configuration Error[/bold red]",
            border_style="red"
        ))
        raise typer.Exit(1)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True
        ) as progress:
            task = progress.add_task("Initializing ticket orchestrator...", total=None)
            system = TicketOrchestrationSystem(config)
            progress.update(task, completed=True)
    except OrchestratorError as e:
        console.print(Panel(
            f"[red]Failed to initialize system: {e.message}[/red]",
            title="[bold red]Initialization Error[/bold red]",
            border_style="red"
        ))
        raise typer.Exit(1)

    return system


def show_response(response: MultiAgentResponse) -> None:
    """Display a triage response."""
    workflow = response.workflow
    colour = "green" if workflow.status is WorkflowStatus.COMPLETED else "red"

    table = Table(title=f"Ticket #{response.ticket_id}", box=box.ROUNDED)
    table.add_column("Detail", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Status", f"[{colour}]{workflow.status.value}[/{colour}]")
    table.add_row("Agents", " <- ".join(role.value for role in response.agents_involved))
    table.add_row("Handoffs", str(response.handoff_count))
    table.add_row("Iterations", str(workflow.iterations))
    table.add_row("Confidence", f"{response.combined_confidence}%")
    table.add_row("Processing Time", f"{response.processing_time_ms:.1f} ms")
    if workflow.error:
        table.add_row("Error", f"[red]{workflow.error_code}: {workflow.error}[/red]")

    console.print(table)

    for record in workflow.handoff_history:
        console.print(f"[dim]{record.from_agent.value} -> {record.to_agent.value}: {record.reason}[/dim]")

    if response.final_recommendations:
        console.print(Panel(
            "\n".join(f"- {action}" for action in response.final_recommendations),
            title="[bold green]Recommendations[/bold green]",
            border_style="green"
        ))


def show_enhanced_result(result: EnhancedWorkflowResult) -> None:
    """Display an integration pipeline result."""
    table = Table(title=f"Enhanced Workflow - Ticket #{result.ticket_id}", box=box.ROUNDED)
    table.add_column("Step", style="cyan")
    table.add_column("Outcome", style="white")

    for step in result.completed_steps:
        table.add_row(step.step_name, "[green]completed[/green]")
    for step in result.failed_steps:
        table.add_row(step.step_name, f"[red]failed: {step.error}[/red]")

    console.print(table)
    console.print(
        f"Success: {result.success} | Category: {result.category or '-'} | Urgency: {result.urgency or '-'} "
        f"| Confidence: {result.confidence if result.confidence is not None else '-'}"
    )

    if result.team_mentions:
        console.print(Panel(result.team_mentions, title="[bold cyan]Team Notification[/bold cyan]",
                            border_style="cyan"))


def show_metrics(metrics: WorkflowMetrics) -> None:
    """Display workflow metrics."""
    summary = Table(title="Workflow Metrics", box=box.ROUNDED)
    summary.add_column("Metric", style="cyan")
    summary.add_column("Value", style="white")
    summary.add_row("Total Workflows", str(metrics.total_workflows))
    summary.add_row("Successful", str(metrics.successful_workflows))
    summary.add_row("Average Time", f"{metrics.average_processing_time:.1f} ms")
    summary.add_row("Handoffs", str(metrics.handoff_count))
    console.print(summary)

    agents = Table(title="Agent Utilization", box=box.SIMPLE)
    agents.add_column("Role", style="cyan")
    agents.add_column("Tasks", style="white")
    agents.add_column("Avg Confidence", style="green")
    agents.add_column("Success Rate", style="yellow")
    for role, usage in metrics.agent_utilization.items():
        agents.add_row(
            role.value,
            str(usage.tasks_handled),
            f"{usage.average_confidence:.1f}",
            f"{usage.success_rate * 100:.0f}%"
        )
    console.print(agents)


@app.command()
def process(
    tickets_file: Path = typer.Argument(..., exists=True, readable=True, help="JSON file with one or more tickets"),
    config: str = typer.Option("config.yaml", "--config", "-c", help="Path to configuration file"),
    show_stats: bool = typer.Option(False, "--metrics", "-m", help="Show workflow metrics afterwards")
):
    """Triage tickets through the agent handoff loop."""
    system = build_system(config)
    tickets = load_tickets(tickets_file)

    async def run() -> None:
        for ticket in tickets:
            show_response(await system.process_ticket(ticket))

    asyncio.run(run())

    if show_stats:
        show_metrics(system.get_workflow_metrics())


@app.command()
def enhanced(
    tickets_file: Path = typer.Argument(..., exists=True, readable=True, help="JSON file with one or more tickets"),
    channel: Optional[str] = typer.Option(None, "--channel", help="Channel to post into"),
    thread_ts: Optional[str] = typer.Option(None, "--thread", help="Existing thread to continue"),
    analysis_file: Optional[Path] = typer.Option(None, "--analysis", exists=True,
                                                 help="JSON file with an existing ticket analysis"),
    config: str = typer.Option("config.yaml", "--config", "-c", help="Path to configuration file")
):
    """Run the four-step integration pipeline for tickets."""
    system = build_system(config)
    tickets = load_tickets(tickets_file)
    existing = None
    if analysis_file:
        existing = TicketAnalysis.model_validate(json.loads(analysis_file.read_text(encoding="utf-8")))

    async def run() -> None:
        for ticket in tickets:
            result = await system.execute_enhanced_workflow(
                ticket, channel=channel, thread_ts=thread_ts, existing_analysis=existing
            )
            show_enhanced_result(result)

    asyncio.run(run())


@app.command()
def info(
    config: str = typer.Option("config.yaml", "--config", "-c", help="Path to configuration file")
):
    """Show configuration and agent availability."""
    system = build_system(config)
    details = system.get_system_info()

    table = Table(title="System Configuration", box=box.ROUNDED)
    table.add_column("Property", style="cyan", width=24)
    table.add_column("Value", style="white")
    table.add_row("Model", f"[green]{details['config']['model']}[/green]")
    table.add_row("Region", details['config']['region'])
    table.add_row("Slack Channel", details['config']['slack_channel'])
    table.add_row("Entry Role", details['orchestration']['entry_role'])
    table.add_row("Max Iterations", str(details['orchestration']['max_iterations']))
    console.print(table)

    agents = Table(title="Agents", box=box.ROUNDED)
    agents.add_column("Role", style="cyan")
    agents.add_column("Status", style="green")
    agents.add_column("Capabilities", style="white")
    for role, status in system.get_agent_statuses().items():
        available = "[green]available[/green]" if status["available"] else "[red]not registered[/red]"
        agents.add_row(role, available, ", ".join(status.get("capabilities", [])))
    console.print(agents)


if __name__ == "__main__":
    app()
