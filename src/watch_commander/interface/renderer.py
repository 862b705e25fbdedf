"""
Display and rendering helpers for the Watch Commander console.

Handles theming, the dashboard, and per-section tables.
"""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..state.schema import (
    CommunityEventStatus,
    GameState,
    LogType,
    MissionEvent,
    MissionResult,
    OfficerStatus,
    SuspectStatus,
)


# Shared console instance
console = Console()

# -----------------------------------------------------------------------------
# Theme: night shift dispatch board
# -----------------------------------------------------------------------------

THEME = {
    "primary": "steel_blue",
    "secondary": "grey70",
    "warning": "dark_goldenrod",
    "danger": "dark_red",
    "success": "green3",
    "accent": "cyan",
    "dim": "dim",
}

LOG_COLORS = {
    LogType.INFO: THEME["secondary"],
    LogType.SUCCESS: THEME["success"],
    LogType.WARNING: THEME["warning"],
    LogType.ERROR: THEME["danger"],
    LogType.MISSION: THEME["accent"],
}

STATUS_COLORS = {
    OfficerStatus.AVAILABLE: THEME["success"],
    OfficerStatus.ON_MISSION: THEME["accent"],
    OfficerStatus.ON_EVENT: THEME["primary"],
    OfficerStatus.INJURED: THEME["warning"],
    OfficerStatus.KIA: THEME["danger"],
}


def show_banner() -> None:
    console.print(Panel(
        Text("WATCH COMMANDER", style=f"bold {THEME['accent']}", justify="center"),
        subtitle="SWAT tactical command",
        border_style=THEME["primary"],
    ))


def bar(value: int, width: int = 10) -> str:
    """Text meter for 0-100 values."""
    filled = max(0, min(width, round(value / 100 * width)))
    color = "green" if value > 60 else "yellow" if value > 30 else "red"
    return f"[{color}]{'█' * filled}[/{color}][dim]{'░' * (width - filled)}[/dim]"


def render_header(state: GameState) -> Panel:
    parts = [
        f"[bold {THEME['accent']}]{state.squad_name}[/bold {THEME['accent']}]",
        f"Cmdr. {state.commander_name}",
        f"Day {state.day}",
        f"Budget: ${state.budget:,}",
        f"Reputation: {state.reputation}",
        f"Dispatch: {state.missions_attempted_today}/{state.max_missions_per_day}",
        f"Payroll: ${state.daily_payroll:,}/day",
    ]
    if state.squad_motto:
        parts.append(f"[dim]\"{state.squad_motto}\"[/dim]")
    return Panel(Text.from_markup(" │ ".join(parts)), border_style=THEME["primary"], padding=(0, 1))


def render_roster(state: GameState) -> Table:
    table = Table(title="ROSTER", title_justify="left", border_style=THEME["primary"])
    table.add_column("#", style="dim", width=3)
    table.add_column("Name")
    table.add_column("Rank")
    table.add_column("Spec")
    table.add_column("Status")
    table.add_column("Health")
    table.add_column("Morale")
    table.add_column("Gear", justify="center")
    table.add_column("XP", justify="right")

    for i, officer in enumerate(state.officers, 1):
        color = STATUS_COLORS.get(officer.status, "white")
        status = officer.status.value
        if officer.is_injured and officer.injury_days:
            status += f" ({officer.injury_days}d)"
        gear = officer.gear
        table.add_row(
            str(i),
            officer.name,
            officer.rank.value,
            officer.specialization.value,
            f"[{color}]{status}[/{color}]",
            bar(officer.health),
            bar(officer.morale),
            f"{gear.armor_level}/{gear.weapon_level}/{gear.utility_level}",
            str(officer.experience),
        )
    return table


def render_missions(state: GameState) -> Table:
    table = Table(title="DISPATCH", title_justify="left", border_style=THEME["primary"])
    table.add_column("#", style="dim", width=3)
    table.add_column("Mission")
    table.add_column("Type")
    table.add_column("Priority")
    table.add_column("Risk", justify="right")
    table.add_column("Team")
    table.add_column("Status")

    for i, mission in enumerate(state.active_missions, 1):
        title = escape(mission.title)
        if mission.nemesis_id:
            title = f"[{THEME['danger']}]☠[/{THEME['danger']}] {title}"
        table.add_row(
            str(i),
            title,
            mission.type.value,
            mission.priority.value,
            str(mission.risk_level),
            f"{len(mission.assigned_officers)}/{mission.required_officers}",
            mission.status.value,
        )
    return table


def render_event(event: MissionEvent) -> Panel:
    lines = [escape(event.description), ""]
    for i, option in enumerate(event.options, 1):
        lines.append(f"  [{THEME['accent']}]{i}.[/{THEME['accent']}] {escape(option.label)} [dim](risk {option.risk_level})[/dim]")
    if event.outcome:
        lines.append(f"\n[dim]{escape(event.outcome)}[/dim]")
    return Panel(
        Text.from_markup("\n".join(lines)),
        title=f"[bold]{event.type.value.upper()}[/bold]",
        title_align="left",
        border_style=THEME["warning"] if not event.resolved else THEME["dim"],
    )


def render_custody(state: GameState) -> Table:
    table = Table(title="CUSTODY", title_justify="left", border_style=THEME["primary"])
    table.add_column("#", style="dim", width=3)
    table.add_column("Suspect")
    table.add_column("Crime")
    table.add_column("Status")
    table.add_column("Resist", justify="right")
    table.add_column("Intel", justify="right")

    for i, suspect in enumerate(state.suspects_in_custody, 1):
        status = suspect.status.value
        if suspect.status == SuspectStatus.SENTENCED and suspect.trial_verdict:
            status += f" ({suspect.trial_verdict.value})"
        table.add_row(
            str(i),
            suspect.name,
            suspect.crime,
            status,
            str(suspect.resistance),
            str(suspect.intel_level),
        )
    return table


def render_evidence(state: GameState) -> Table:
    table = Table(title="EVIDENCE LOCKER", title_justify="left", border_style=THEME["primary"])
    table.add_column("#", style="dim", width=3)
    table.add_column("Item")
    table.add_column("Status")
    for i, item in enumerate(state.evidence_locker, 1):
        table.add_row(str(i), item.name, item.status.value)
    return table


def render_community(state: GameState) -> Table:
    table = Table(title="COMMUNITY", title_justify="left", border_style=THEME["primary"])
    table.add_column("#", style="dim", width=3)
    table.add_column("Event")
    table.add_column("Min", justify="right")
    table.add_column("Reward")
    table.add_column("Status")

    for i, event in enumerate(state.available_events, 1):
        status_color = THEME["accent"] if event.status == CommunityEventStatus.SCHEDULED else THEME["secondary"]
        table.add_row(
            str(i),
            event.title,
            str(event.requirements.min_officers),
            f"+{event.rewards.reputation} rep / ${event.rewards.budget:,}",
            f"[{status_color}]{event.status.value}[/{status_color}]",
        )
    return table


def render_log(state: GameState, limit: int = 8) -> Panel:
    lines = []
    for entry in state.game_log[:limit]:
        color = LOG_COLORS.get(entry.type, "white")
        lines.append(f"[dim]{entry.timestamp:%H:%M}[/dim] [{color}]{escape(entry.message)}[/{color}]")
    return Panel(
        Text.from_markup("\n".join(lines) or "[dim]Quiet shift so far.[/dim]"),
        title="[bold]LOG[/bold]",
        title_align="left",
        border_style=THEME["primary"],
    )


def render_result(result: MissionResult) -> Panel:
    color = THEME["success"] if result.success else THEME["danger"]
    lines = [escape(result.outcome), ""]
    lines.append(f"Reputation {result.rewards.reputation:+d}  Budget ${result.rewards.budget:,}")
    if result.casualties:
        lines.append(f"[{THEME['danger']}]KIA: {', '.join(result.casualties)}[/{THEME['danger']}]")
    if result.injuries:
        lines.append(f"[{THEME['warning']}]Injured: {', '.join(result.injuries)}[/{THEME['warning']}]")
    return Panel(
        Text.from_markup("\n".join(lines)),
        title=f"[bold {color}]{'MISSION SUCCESS' if result.success else 'MISSION FAILED'}[/bold {color}]",
        title_align="left",
        border_style=color,
    )


def render_dashboard(state: GameState) -> None:
    """Print the full command board."""
    console.print(render_header(state))
    if state.officers:
        console.print(render_roster(state))
    if state.active_missions:
        console.print(render_missions(state))
    if state.available_events:
        console.print(render_community(state))
    if state.suspects_in_custody:
        console.print(render_custody(state))
    if state.pending_random_event is not None:
        incident = state.pending_random_event
        console.print(Panel(
            escape(incident.description),
            title=f"[bold {THEME['warning']}]BREAKING: {incident.title}[/bold {THEME['warning']}]",
            title_align="left",
            border_style=THEME["warning"],
        ))
    if state.last_mission_result is not None:
        console.print(render_result(state.last_mission_result))
    console.print(render_log(state))


def show_error(message: str) -> None:
    console.print(f"[{THEME['danger']}]{escape(message)}[/{THEME['danger']}]")


def show_info(message: str) -> None:
    console.print(f"[{THEME['dim']}]{escape(message)}[/{THEME['dim']}]")
