"""CLI display utilities using Rich.

Provides console output for:
- Deployment header and phase progress
- Committee monologue
- Enzyme design card
- Deployment history table
"""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from polymer_x.contracts.schemas import (
    AgentRole,
    CommitteeResponse,
    ExecutionMode,
    MonologueEntry,
    WaterAnalysis,
)

console = Console()


# Agent colors for visual distinction
AGENT_COLORS = {
    AgentRole.ARCHITECT: "bright_cyan",
    AgentRole.SAFETY_OFFICER: "red",
    AgentRole.SIMULATOR: "green",
}

AGENT_ICONS = {
    AgentRole.ARCHITECT: "🏗️",
    AgentRole.SAFETY_OFFICER: "🛡️",
    AgentRole.SIMULATOR: "🔬",
}

MODE_STYLES = {
    ExecutionMode.REMOTE: "green",
    ExecutionMode.LOCAL: "magenta",
}


# Verdict prefixes used by the Safety Officer
DECISION_ICONS = {
    "APPROVED": "✅",
    "WARNING": "⚠️",
    "REJECTED": "❌",
}


def decision_icon(entry: MonologueEntry) -> str:
    """Icon for an entry's decision, read from its verdict prefix."""
    if entry.rejected:
        return DECISION_ICONS["REJECTED"]
    verdict = (entry.decision or "").split(" ", 1)[0]
    return DECISION_ICONS.get(verdict, "➡️")


def efficiency_style(score: float) -> str:
    if score >= 0.8:
        return "green"
    if score >= 0.6:
        return "yellow"
    return "red"


def print_header(sample: WaterAnalysis, mode: ExecutionMode) -> None:
    """Print deployment header."""
    console.print()
    console.print(Panel(
        f"[bold white]Location:[/bold white] ({sample.lat:.2f}, {sample.lng:.2f})\n"
        f"[bold white]Plastic:[/bold white] {sample.plastic_type.value}   "
        f"[bold white]Salinity:[/bold white] {sample.salinity:.1f} ppt   "
        f"[bold white]Stress:[/bold white] {'PRESENT' if sample.stress_signal_bool else 'absent'}\n"
        f"[bold white]Mode:[/bold white] [{MODE_STYLES[mode]}]{mode.value}[/]",
        title="🌊 [bold cyan]Polymer-X Deployment[/bold cyan] 🌊",
        border_style="cyan",
    ))


def print_phase(update: dict) -> None:
    """Print a phase update emitted by the orchestrator."""
    console.print(f"[bold yellow]▶ {update['phase']}[/bold yellow]", end="")
    if update.get("detail"):
        console.print(f" [dim]{update['detail']}[/dim]")
    else:
        console.print()


def print_monologue_entry(entry: MonologueEntry) -> None:
    icon = AGENT_ICONS.get(entry.agent, "🤖")
    color = AGENT_COLORS.get(entry.agent, "white")
    console.print(f"\n{icon} [bold {color}][{entry.agent.value}][/bold {color}]")
    console.print(f"   💭 {entry.thought}")
    if entry.decision:
        console.print(f"   {decision_icon(entry)} {entry.decision}")
    if entry.retry_reason:
        console.print(f"   🔄 [dim]{entry.retry_reason}[/dim]")


def print_response(response: CommitteeResponse) -> None:
    """Print the committee monologue followed by the design or the error."""
    console.print()
    console.rule(f"🧠 COMMITTEE DEBATE COMPLETE ({response.mode.value} MODE)")
    for entry in response.internal_monologue:
        print_monologue_entry(entry)
    console.print()

    if not response.success:
        console.print(Panel(
            f"[bold red]{response.error}[/bold red]",
            title="❌ Deployment Failed",
            border_style="red",
        ))
        return

    design = response.data
    style = efficiency_style(design.predicted_efficiency_score)
    console.print(Panel(
        f"[bold]{design.enzyme_name}[/bold]\n\n"
        f"[dim]Mutations:[/dim] {', '.join(design.mutation_list) or 'none'}\n"
        f"[dim]Chassis:[/dim] {design.chassis_type.value}\n"
        f"[dim]Safety lock:[/dim] {design.safety_lock_type.value}\n"
        f"[dim]Efficiency:[/dim] [{style}]{design.predicted_efficiency_score:.0%}[/]\n\n"
        f"{design.design_rationale}\n\n"
        + "\n".join(f"[dim]• {ref}[/dim]" for ref in design.references),
        title="✅ Deployment Ready",
        border_style="green",
    ))


def print_history_table(deployments: list[CommitteeResponse]) -> None:
    """Print a deployment history table, newest first."""
    table = Table(title=f"📜 Deployment History ({len(deployments)})")
    table.add_column("#", justify="center", style="cyan")
    table.add_column("Enzyme")
    table.add_column("Efficiency", justify="center")
    table.add_column("Mode", justify="center")
    table.add_column("Chassis", style="dim")

    for i, deployment in enumerate(deployments):
        if deployment.success:
            score = deployment.data.predicted_efficiency_score
            table.add_row(
                str(i),
                deployment.data.enzyme_name,
                f"[{efficiency_style(score)}]{score:.0%}[/]",
                f"[{MODE_STYLES[deployment.mode]}]{deployment.mode.value}[/]",
                deployment.data.chassis_type.value,
            )
        else:
            table.add_row(
                str(i),
                "[red]Failed[/red]",
                "-",
                f"[{MODE_STYLES[deployment.mode]}]{deployment.mode.value}[/]",
                "",
            )

    console.print(table)
