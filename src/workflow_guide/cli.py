"""CLI entrypoint for workflow-guide.

Uses Typer for CLI and Rich for beautiful output.
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich.tree import Tree

from . import __version__
from .core.config import get_config
from .core.errors import NotFoundError, WorkflowGuideError
from .core.guidance import GuidanceEngine
from .core.llm_config import check_llm_available
from .core.models import Execution, ExecutionContext, ExecutionStatus
from .core.orchestrator import WorkflowOrchestrator, WorkflowRunResult
from .core.persistence import JsonExecutionStore
from .core.roles.registry import RoleRegistry
from .core.samples import initialize_samples
from .core.storage import JsonFileStorage
from .core.tracker import ExecutionTracker

app = typer.Typer(
    name="workflow-guide",
    help="Workflow Guide - role-based workflow engine for AI coding agents",
    add_completion=False,
)

console = Console()

STATUS_COLORS = {
    ExecutionStatus.RUNNING: "yellow",
    ExecutionStatus.PAUSED: "blue",
    ExecutionStatus.COMPLETED: "green",
    ExecutionStatus.FAILED: "red",
}

LOG_LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}
LOG_COLORS = {"DEBUG": "dim", "INFO": "blue", "WARNING": "yellow", "ERROR": "red"}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]workflow-guide[/] v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Workflow Guide - role-based workflow engine for AI coding agents."""
    pass


def _build_orchestrator() -> WorkflowOrchestrator:
    """Wire storage, tracker and optional advisor from the configuration."""
    config = get_config()
    config.ensure_dirs()

    store = JsonExecutionStore(config.runs_dir) if config.persist_executions else None
    advisor = None
    if config.use_advisor:
        available, message = check_llm_available()
        if available:
            from .agents.advisor import StepAdvisor

            advisor = StepAdvisor()
        else:
            console.print(f"[yellow]⚠ Advisor disabled:[/] {message}")

    return WorkflowOrchestrator(
        JsonFileStorage(config.data_dir),
        RoleRegistry.default(),
        tracker=ExecutionTracker(store),
        advisor=advisor,
    )


def _parse_vars(values: Optional[list[str]]) -> dict[str, str]:
    variables: dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            console.print(f"[red]Invalid variable (expected key=value): {item}[/]")
            raise typer.Exit(code=1)
        variables[key.strip()] = value
    return variables


def _require_execution(orchestrator: WorkflowOrchestrator, execution_id: str) -> Execution:
    execution = orchestrator.tracker.get_execution(execution_id)
    if execution is None:
        console.print(f"[red]Execution not found: {execution_id}[/]")
        raise typer.Exit(code=1)
    return execution


def _create_execution(
    orchestrator: WorkflowOrchestrator,
    workflow_id: str,
    role: Optional[str],
    context: ExecutionContext,
) -> Execution:
    execution = orchestrator.create_execution(workflow_id, initial_role=role, context=context)
    if execution is None:
        if orchestrator.storage.get_workflow(workflow_id) is None:
            console.print(f"[red]Workflow not found: {workflow_id}[/]")
        else:
            console.print(f"[red]Role not found: {role}[/]")
        raise typer.Exit(code=1)
    return execution


@app.command("init")
def init_command(
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing sample data"),
) -> None:
    """Write sample workflows, templates and quality rules to the data directory."""
    config = get_config()
    config.ensure_dirs()
    storage = JsonFileStorage(config.data_dir)

    if storage.list_workflows() and not force:
        console.print("[yellow]Data directory already has workflows. Use --force to overwrite.[/]")
        return

    result = initialize_samples(storage)

    table = Table(title="Sample Data", show_header=False)
    table.add_column("Kind", style="cyan")
    table.add_column("Saved", style="green")
    table.add_row("Workflows", str(result.workflows))
    table.add_row("Templates", str(result.templates))
    table.add_row("Quality rules", str(result.quality_rules))
    console.print(table)
    console.print(f"[dim]Data directory: {config.data_dir}[/]")

    if result.errors:
        for error in result.errors:
            console.print(f"  [red]• {escape(error)}[/]")
        raise typer.Exit(code=1)


@app.command("workflows")
def workflows_command() -> None:
    """List available workflows."""
    storage = JsonFileStorage(get_config().data_dir)
    workflows = storage.list_workflows()

    if not workflows:
        console.print("[dim]No workflows found. Run 'workflow-guide init' first.[/]")
        return

    for workflow in workflows:
        tree = Tree(f"[bold cyan]{workflow.id}[/] {workflow.name}")
        if workflow.description:
            tree.add(f"[dim]{workflow.description}[/]")
        for step in workflow.ordered_steps():
            tree.add(f"{step.order}. [green]{step.action}[/] {step.id} [dim]({step.name})[/]")
        console.print(tree)


@app.command("roles")
def roles_command(
    agent: Optional[str] = typer.Option(None, "--agent", "-a", help="Only roles this agent supports"),
) -> None:
    """Show the role table."""
    registry = RoleRegistry.default()
    roles = registry.get_roles_for_agent(agent) if agent else registry.list_roles()

    if not roles:
        console.print(f"[yellow]No roles for agent: {agent}[/]")
        return

    table = Table(title="Roles")
    table.add_column("Role", style="cyan")
    table.add_column("Capabilities")
    table.add_column("Quality Gates")
    table.add_column("Next", style="green")

    for role in roles:
        table.add_row(
            role.id,
            "\n".join(role.capabilities),
            "\n".join(role.quality_gates),
            ", ".join(role.next_roles) or "[dim]terminal[/]",
        )

    console.print(table)


@app.command("start")
def start_command(
    workflow_id: str = typer.Argument(..., help="Workflow to execute"),
    project: Path = typer.Option(Path("."), "--project", "-p", help="Project directory"),
    agent: Optional[str] = typer.Option(None, "--agent", "-a", help="Agent type (cursor, copilot, ...)"),
    role: Optional[str] = typer.Option(None, "--role", "-r", help="Initial role"),
    var: Optional[list[str]] = typer.Option(None, "--var", help="Template variable key=value"),
) -> None:
    """Create an execution without running any steps."""
    config = get_config()
    orchestrator = _build_orchestrator()

    context = ExecutionContext(
        project_path=str(project.resolve()),
        agent_type=agent or config.default_agent,
        variables=_parse_vars(var),
    )
    execution = _create_execution(orchestrator, workflow_id, role or config.default_initial_role, context)

    console.print(f"[bold green]✓ Execution created:[/] {execution.id}")
    console.print(f"[dim]Role: {execution.current_role} | Agent: {execution.context.agent_type}[/]")


@app.command("advance")
def advance_command(
    execution_id: str = typer.Argument(..., help="Execution to advance"),
    var: Optional[list[str]] = typer.Option(None, "--var", help="Template variable key=value"),
    decision: Optional[list[str]] = typer.Option(
        None, "--decision", "-d", help="Decision to carry into the next handoff"
    ),
    retry_completed: bool = typer.Option(False, "--retry-completed", help="Re-run completed steps"),
) -> None:
    """Run the current role's pending steps once."""
    orchestrator = _build_orchestrator()
    execution = _require_execution(orchestrator, execution_id)
    if decision and not execution.is_terminal:
        orchestrator.record_decisions(execution_id, decision)

    result = orchestrator.advance(execution_id, _parse_vars(var), retry_completed=retry_completed)
    _show_result(result)
    if not result.success:
        raise typer.Exit(code=1)


@app.command("run")
def run_command(
    workflow_id: Optional[str] = typer.Argument(None, help="Workflow to start and run"),
    execution_id: Optional[str] = typer.Option(None, "--execution", "-e", help="Continue an existing execution"),
    project: Path = typer.Option(Path("."), "--project", "-p", help="Project directory"),
    agent: Optional[str] = typer.Option(None, "--agent", "-a", help="Agent type (cursor, copilot, ...)"),
    role: Optional[str] = typer.Option(None, "--role", "-r", help="Initial role"),
    var: Optional[list[str]] = typer.Option(None, "--var", help="Template variable key=value"),
    max_rounds: Optional[int] = typer.Option(None, "--max-rounds", help="Upper bound on advance rounds"),
) -> None:
    """Run a workflow until it completes, fails, pauses or stops progressing.

    Example:
        workflow-guide run python-feature --project . --var module=feature --var function=run
    """
    config = get_config()
    orchestrator = _build_orchestrator()
    variables = _parse_vars(var)

    if execution_id is None:
        if workflow_id is None:
            console.print("[red]Give a workflow id or --execution.[/]")
            raise typer.Exit(code=1)
        context = ExecutionContext(
            project_path=str(project.resolve()),
            agent_type=agent or config.default_agent,
            variables=variables,
        )
        execution = _create_execution(orchestrator, workflow_id, role or config.default_initial_role, context)
        execution_id = execution.id
    else:
        _require_execution(orchestrator, execution_id)

    console.print()
    console.print(Panel.fit(
        f"[bold blue]Workflow Guide[/] v{__version__}",
        subtitle=execution_id,
    ))

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Running workflow...", total=None)
        result = orchestrator.run(execution_id, variables, max_rounds or config.max_rounds)
        progress.update(task, description=f"[green]✓[/] {result.rounds} round(s) executed")

    _show_result(result)
    if not result.success:
        raise typer.Exit(code=1)


@app.command("pause")
def pause_command(
    execution_id: str = typer.Argument(..., help="Execution to pause"),
    reason: str = typer.Option("Paused by user", "--reason", help="Why the execution is paused"),
) -> None:
    """Pause a running execution."""
    orchestrator = _build_orchestrator()
    _require_execution(orchestrator, execution_id)
    try:
        orchestrator.pause(execution_id, reason)
    except WorkflowGuideError as e:
        console.print(f"[bold red]✗ {e}[/]")
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/] Paused {execution_id}")


@app.command("resume")
def resume_command(
    execution_id: str = typer.Argument(..., help="Execution to resume"),
) -> None:
    """Resume a paused execution."""
    orchestrator = _build_orchestrator()
    _require_execution(orchestrator, execution_id)
    try:
        orchestrator.resume(execution_id)
    except WorkflowGuideError as e:
        console.print(f"[bold red]✗ {e}[/]")
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/] Resumed {execution_id}")


@app.command("approve")
def approve_command(
    execution_id: str = typer.Argument(..., help="Execution to approve gates for"),
    gates: list[str] = typer.Argument(..., help="Gate ids to mark satisfied"),
    approver: str = typer.Option("manual", "--by", help="Who approved the gates"),
) -> None:
    """Mark quality gates as satisfied by a human reviewer."""
    orchestrator = _build_orchestrator()
    _require_execution(orchestrator, execution_id)
    try:
        execution = orchestrator.approve_gates(execution_id, gates, approver)
    except WorkflowGuideError as e:
        console.print(f"[bold red]✗ {e}[/]")
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/] Satisfied gates: {', '.join(sorted(execution.context.quality_gates))}")


@app.command("status")
def status_command(
    execution_id: Optional[str] = typer.Argument(
        None,
        help="Execution ID to check. If not provided, lists recent executions.",
    ),
    logs: bool = typer.Option(False, "--logs", "-l", help="Show the execution log"),
) -> None:
    """Check status of an execution or list recent executions."""
    config = get_config()
    orchestrator = _build_orchestrator()

    if execution_id:
        execution = _require_execution(orchestrator, execution_id)
        _show_execution_details(orchestrator, execution)
        if logs or config.verbose:
            _show_logs(execution, config.log_level)
        return

    executions = orchestrator.tracker.list_executions()
    if not executions:
        console.print("[dim]No executions found.[/]")
        return

    table = Table(title="Recent Executions")
    table.add_column("Execution ID", style="cyan")
    table.add_column("Workflow")
    table.add_column("Role")
    table.add_column("Status", style="bold")

    for execution in sorted(executions, key=lambda e: e.created_at, reverse=True)[:10]:
        color = STATUS_COLORS.get(execution.status, "dim")
        table.add_row(
            execution.id,
            execution.workflow_id,
            execution.current_role,
            f"[{color}]{execution.status.value}[/]",
        )

    console.print(table)


@app.command("history")
def history_command(
    execution_id: str = typer.Argument(..., help="Execution to show"),
) -> None:
    """Show step attempts and role transitions of an execution."""
    orchestrator = _build_orchestrator()
    history = orchestrator.tracker.get_execution_history(execution_id)
    if history is None:
        console.print(f"[red]Execution not found: {execution_id}[/]")
        raise typer.Exit(code=1)

    table = Table(title="Step Executions")
    table.add_column("Step", style="cyan")
    table.add_column("Role")
    table.add_column("Status")
    table.add_column("Checks")
    table.add_column("Error", style="red")

    for step in history.steps:
        passed = sum(1 for q in step.quality_checks if q.passed)
        table.add_row(
            step.step_id,
            step.role_id,
            step.status.value,
            f"{passed}/{len(step.quality_checks)}",
            step.error or "",
        )
    console.print(table)

    if history.transitions:
        tree = Tree("[bold]Role Transitions[/]")
        for transition in history.transitions:
            node = tree.add(f"[cyan]{transition.from_role}[/] → [green]{transition.to_role}[/]")
            node.add(f"[dim]{transition.timestamp.isoformat()}[/]")
            if transition.rationale:
                node.add(transition.rationale)
        console.print(tree)


@app.command("guidance")
def guidance_command(
    role_id: str = typer.Argument(..., help="Role to show guidance for"),
    agent: str = typer.Option("general", "--agent", "-a", help="Agent type"),
) -> None:
    """Show guidance for acting as a role."""
    engine = GuidanceEngine(RoleRegistry.default())
    try:
        guidance = engine.get_role_guidance(role_id, agent)
    except NotFoundError as e:
        console.print(f"[red]{e}[/]")
        raise typer.Exit(code=1)

    tree = Tree(f"[bold cyan]{guidance.role.display_name}[/] [dim]({agent})[/]")
    sections = [
        ("Guidance", guidance.guidance),
        ("Quality gates", guidance.quality_gates),
        ("Next steps", guidance.next_steps),
        ("Templates", guidance.templates),
        ("Best practices", guidance.best_practices),
        ("Checklist", guidance.checklist),
    ]
    for title, items in sections:
        if not items:
            continue
        node = tree.add(f"[bold]{title}[/]")
        for item in items:
            node.add(item)
    tree.add(f"[bold]Next role:[/] {guidance.next_role or 'none (terminal)'}")
    console.print(tree)


@app.command("report")
def report_command(
    execution_id: str = typer.Argument(..., help="Execution ID to show report for"),
) -> None:
    """Display the report for an execution."""
    orchestrator = _build_orchestrator()
    try:
        report = orchestrator.generate_report(execution_id)
    except NotFoundError:
        console.print(f"[red]Execution not found: {execution_id}[/]")
        raise typer.Exit(code=1)
    console.print(Markdown(report))


@app.command("config")
def config_command() -> None:
    """Show current configuration."""
    config = get_config()

    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    for key, value in config.to_dict().items():
        table.add_row(key, str(value))

    available, message = check_llm_available()
    table.add_row("advisor_llm", message if available else f"[dim]{message}[/]")

    console.print(table)


def _show_result(result: WorkflowRunResult) -> None:
    """Display an advance/run result."""
    console.print()
    table = Table(title="Steps")
    table.add_column("Step", style="cyan")
    table.add_column("Role")
    table.add_column("Status")
    table.add_column("Result")

    for outcome in result.completed_steps:
        icon = "[green]✓[/]" if outcome.success else "[red]✗[/]"
        table.add_row(outcome.step_id, outcome.role_id, f"{icon} {outcome.status.value}", escape(outcome.error or outcome.result))

    if result.completed_steps:
        console.print(table)
    else:
        console.print("[dim]No steps executed.[/]")

    for transition in result.transitions:
        console.print(f"[bold]Handoff:[/] {transition.from_role} → {transition.to_role}")

    summary = Table(title="Execution", show_header=False)
    summary.add_column("Property", style="cyan")
    summary.add_column("Value", style="green")
    color = STATUS_COLORS.get(result.status, "dim") if result.status else "dim"
    summary.add_row("Execution ID", result.execution_id or "N/A")
    summary.add_row("Status", f"[{color}]{result.status.value if result.status else 'unknown'}[/]")
    summary.add_row("Current role", result.current_role or "N/A")
    summary.add_row("Next role", result.next_role or "none")
    for key, value in result.metrics.items():
        summary.add_row(key, str(value))
    console.print(summary)

    if result.errors:
        console.print()
        console.print("[bold red]Errors:[/]")
        for error in result.errors:
            console.print(f"  [red]• {escape(error)}[/]")
    else:
        console.print("[bold green]✓ No errors[/]")


def _show_execution_details(orchestrator: WorkflowOrchestrator, execution: Execution) -> None:
    """Display detailed execution information."""
    console.print(Panel.fit(f"[bold]{execution.id}[/]"))

    table = Table(show_header=False, box=None)
    table.add_column("Property", style="cyan")
    table.add_column("Value")

    color = STATUS_COLORS.get(execution.status, "dim")
    table.add_row("Status", f"[{color}]{execution.status.value}[/]")
    table.add_row("Workflow", execution.workflow_id)
    table.add_row("Role", execution.current_role)
    table.add_row("Agent", execution.context.agent_type)
    table.add_row("Project", execution.context.project_path)
    table.add_row("Completed steps", ", ".join(execution.completed_steps) or "none")
    table.add_row("Satisfied gates", ", ".join(sorted(execution.context.quality_gates)) or "none")
    table.add_row("Created", execution.created_at.isoformat())
    table.add_row("Updated", execution.updated_at.isoformat())
    if execution.context.pause_reason:
        table.add_row("Pause reason", execution.context.pause_reason)
    if execution.context.failure_reason:
        table.add_row("Failure", f"{execution.context.failure_reason} ({execution.context.error or 'no detail'})")

    summary = orchestrator.tracker.get_execution_metrics(execution.id)
    if summary:
        table.add_row("Success rate", f"{summary.success_rate:.0%}")
        table.add_row("Role transitions", str(summary.role_transitions))

    console.print(table)

    errors = [entry for entry in execution.logs if entry.get("level") == "ERROR"]
    if errors:
        console.print()
        console.print("[bold red]Errors:[/]")
        for entry in errors:
            console.print(f"  [red]• {escape(entry['message'])}[/]")


def _show_logs(execution: Execution, min_level: str) -> None:
    """Display log entries at or above ``min_level``."""
    threshold = LOG_LEVELS.get(min_level.upper(), LOG_LEVELS["INFO"])

    table = Table(title="Log")
    table.add_column("Time", style="dim")
    table.add_column("Level")
    table.add_column("Message")

    for entry in execution.logs:
        level = entry.get("level", "INFO")
        if LOG_LEVELS.get(level, 0) < threshold:
            continue
        color = LOG_COLORS.get(level, "white")
        table.add_row(entry["timestamp"][11:19], f"[{color}]{level}[/]", escape(entry["message"]))

    console.print(table)


if __name__ == "__main__":
    app()
