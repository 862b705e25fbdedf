"""
Command handlers for the Watch Commander console.

Each command function takes (session, args) and maps typed input onto the
session's action surface. Items are referenced by their row number in the
dashboard tables (or by id). Failures land in the session's error slot,
which the main loop prints after every command.
"""

import asyncio
import sys
from pathlib import Path
from typing import Awaitable, Callable, TypeVar

from rich.markup import escape
from rich.prompt import Confirm
from rich.table import Table

from ..session import CampaignSession
from ..state.schema import GearTrack, InterrogationMessage
from .renderer import (
    THEME,
    console,
    render_community,
    render_custody,
    render_dashboard,
    render_event,
    render_evidence,
    render_log,
    show_error,
    show_info,
)

T = TypeVar("T")

CommandHandler = Callable[[CampaignSession, list[str]], Awaitable[None]]


# Command help, grouped for /help
COMMAND_META = {
    "/new": "Take command: /new <commander> | <squad> [| motto]",
    "/status": "Show the command board",
    "/log": "Show recent log entries: /log [count]",
    "/recruit": "Recruit an officer ($5,000)",
    "/dismiss": "Dismiss an officer: /dismiss <officer#> <reason>",
    "/rehire": "Rehire the last dismissed officer",
    "/honor": "Hold a service for a fallen officer: /honor <officer#>",
    "/gear": "Upgrade gear: /gear <officer#> <armor|weapon|utility>",
    "/dispatch": "Request a new mission from dispatch",
    "/custom": "Issue a custom directive: /custom <description>",
    "/assign": "Deploy officers: /assign <mission#> <officer#> [officer# ...]",
    "/decline": "Decline a mission: /decline <mission#>",
    "/sitrep": "Get the next situation report: /sitrep <mission#>",
    "/order": "Respond to the situation: /order <mission#> <option# | free text>",
    "/day": "End the shift and advance the day",
    "/events": "List community events",
    "/community": "Request a new community event",
    "/schedule": "Staff a community event: /schedule <event#> <officer#> [...]",
    "/cancel": "Cancel a scheduled event: /cancel <event#>",
    "/morale": "Host a morale event: /morale [event#]",
    "/incident": "Respond to breaking news: /incident [choice#]",
    "/custody": "List suspects and evidence",
    "/question": "Interrogate: /question <suspect#> <message>",
    "/conclude": "Wrap up an interrogation: /conclude <suspect#>",
    "/charge": "File charges: /charge <suspect#>",
    "/release": "Release a suspect: /release <suspect#>",
    "/vendetta": "Release a dangerous suspect as a nemesis: /vendetta <suspect#>",
    "/trial": "Send a charged suspect to trial: /trial <suspect#>",
    "/ci": "Flip a suspect into an informant: /ci <suspect#>",
    "/archive": "Archive a closed case: /archive <suspect#>",
    "/analyze": "Send evidence to the lab: /analyze <evidence#>",
    "/nemeses": "List known nemeses",
    "/hunt": "Go after a nemesis: /hunt <nemesis#>",
    "/export": "Export the campaign: /export [path]",
    "/import": "Import a campaign: /import <path>",
    "/reset": "Abandon the campaign",
    "/help": "Show help",
    "/quit": "Exit",
}

COMMAND_CATEGORIES = {
    "Campaign": ["/new", "/status", "/log", "/export", "/import", "/reset"],
    "Roster": ["/recruit", "/dismiss", "/rehire", "/honor", "/gear"],
    "Missions": ["/dispatch", "/custom", "/assign", "/decline", "/sitrep", "/order", "/hunt"],
    "Shift": ["/day", "/events", "/community", "/schedule", "/cancel", "/morale", "/incident"],
    "Custody": [
        "/custody", "/question", "/conclude", "/charge", "/release",
        "/vendetta", "/trial", "/ci", "/archive", "/analyze", "/nemeses",
    ],
    "System": ["/help", "/quit"],
}


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def pick(items: list[T], token: str | None, what: str) -> T | None:
    """Resolve a 1-based row number or an id against a list."""
    if not token:
        show_error(f"Which {what}?")
        return None
    if token.isdigit() and 1 <= int(token) <= len(items):
        return items[int(token) - 1]
    match = next((item for item in items if getattr(item, "id", None) == token), None)
    if match is None:
        show_error(f"No {what} '{token}'.")
    return match


def pick_many(items: list[T], tokens: list[str], what: str) -> list[T] | None:
    picked = []
    for token in tokens:
        item = pick(items, token, what)
        if item is None:
            return None
        picked.append(item)
    return picked


def show_help() -> None:
    for category, cmds in COMMAND_CATEGORIES.items():
        table = Table(title=category, title_justify="left", show_header=False, box=None)
        table.add_column("cmd", style=THEME["accent"])
        table.add_column("desc")
        for cmd in cmds:
            table.add_row(cmd, COMMAND_META[cmd])
        console.print(table)


# -----------------------------------------------------------------------------
# Campaign Commands
# -----------------------------------------------------------------------------

async def cmd_new(session: CampaignSession, args: list[str]):
    """Start a campaign."""
    parts = [p.strip() for p in " ".join(args).split("|")]
    if len(parts) < 2:
        show_error("Usage: /new <commander> | <squad> [| motto]")
        return
    motto = parts[2] if len(parts) > 2 else None
    with console.status(f"[{THEME['dim']}]Swearing in...[/{THEME['dim']}]"):
        started = await session.start_new_game(parts[0], parts[1], motto)
    if started:
        render_dashboard(session.state)


async def cmd_status(session: CampaignSession, args: list[str]):
    render_dashboard(session.state)


async def cmd_log(session: CampaignSession, args: list[str]):
    limit = int(args[0]) if args and args[0].isdigit() else 20
    console.print(render_log(session.state, limit))


async def cmd_export(session: CampaignSession, args: list[str]):
    """Write the campaign to a JSON file."""
    filename, text = session.export_save()
    path = Path(args[0]) if args else Path(filename)
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        show_error(f"Could not write {path}: {e}")
        return
    console.print(f"[{THEME['success']}]Exported to {path}[/{THEME['success']}]")


async def cmd_import(session: CampaignSession, args: list[str]):
    if not args:
        show_error("Usage: /import <path>")
        return
    path = Path(" ".join(args))
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        show_error(f"Could not read {path}: {e}")
        return
    if session.import_save(text):
        render_dashboard(session.state)


async def cmd_reset(session: CampaignSession, args: list[str]):
    confirmed = await asyncio.to_thread(
        Confirm.ask, "Abandon this campaign? The save will be erased", default=False
    )
    if confirmed:
        session.reset_game()
        show_info("Campaign erased. Use /new to take command.")


# -----------------------------------------------------------------------------
# Roster Commands
# -----------------------------------------------------------------------------

async def cmd_recruit(session: CampaignSession, args: list[str]):
    with console.status(f"[{THEME['dim']}]Reviewing applicants...[/{THEME['dim']}]"):
        officer = await session.recruit_officer()
    if officer is not None:
        console.print(
            f"[{THEME['success']}]{officer.name}[/{THEME['success']}] joins the squad "
            f"({officer.specialization.value})."
        )
        if officer.backstory:
            show_info(officer.backstory)


async def cmd_dismiss(session: CampaignSession, args: list[str]):
    officer = pick(session.state.officers, args[0] if args else None, "officer")
    if officer is None:
        return
    reason = " ".join(args[1:]) or "Performance review"
    dialogue = await session.dismiss_officer(officer.id, reason)
    if dialogue:
        console.print(f"[italic]\"{escape(dialogue)}\"[/italic]")
        show_info("Changed your mind? /rehire")


async def cmd_rehire(session: CampaignSession, args: list[str]):
    session.rehire_last_officer()
    render_dashboard(session.state)


async def cmd_honor(session: CampaignSession, args: list[str]):
    officer = pick(session.state.officers, args[0] if args else None, "officer")
    if officer is None:
        return
    eulogy = await session.honor_fallen(officer.id)
    if eulogy is None:
        show_error(f"{officer.name} is still on the job.")
        return
    console.print(f"[{THEME['secondary']}]{escape(eulogy)}[/{THEME['secondary']}]")


async def cmd_gear(session: CampaignSession, args: list[str]):
    officer = pick(session.state.officers, args[0] if args else None, "officer")
    if officer is None:
        return
    try:
        track = GearTrack((args[1] if len(args) > 1 else "").lower())
    except ValueError:
        show_error("Gear track must be armor, weapon or utility.")
        return
    session.upgrade_gear(officer.id, track)


# -----------------------------------------------------------------------------
# Mission Commands
# -----------------------------------------------------------------------------

async def cmd_dispatch(session: CampaignSession, args: list[str]):
    with console.status(f"[{THEME['dim']}]Monitoring dispatch...[/{THEME['dim']}]"):
        mission = await session.generate_mission()
    if mission is not None:
        console.print(f"[{THEME['accent']}]{mission.title}[/{THEME['accent']}] - {mission.location}")
        show_info(mission.briefing or mission.description)


async def cmd_custom(session: CampaignSession, args: list[str]):
    if not args:
        show_error("Usage: /custom <description>")
        return
    with console.status(f"[{THEME['dim']}]Processing directive...[/{THEME['dim']}]"):
        mission = await session.create_custom_mission(" ".join(args))
    if mission is not None:
        console.print(f"[{THEME['accent']}]{mission.title}[/{THEME['accent']}] added to dispatch.")


async def cmd_assign(session: CampaignSession, args: list[str]):
    mission = pick(session.state.active_missions, args[0] if args else None, "mission")
    if mission is None:
        return
    officers = pick_many(session.state.officers, args[1:], "officer")
    if officers is None:
        return
    session.assign_officers_to_mission(mission.id, [o.id for o in officers])


async def cmd_decline(session: CampaignSession, args: list[str]):
    mission = pick(session.state.active_missions, args[0] if args else None, "mission")
    if mission is not None:
        session.decline_mission(mission.id)


async def cmd_sitrep(session: CampaignSession, args: list[str]):
    mission = pick(session.state.active_missions, args[0] if args else None, "mission")
    if mission is None:
        return
    with console.status(f"[{THEME['dim']}]Radioing the team...[/{THEME['dim']}]"):
        event = await session.generate_mission_event(mission.id)
    if event is not None:
        console.print(render_event(event))


async def cmd_order(session: CampaignSession, args: list[str]):
    mission = pick(session.state.active_missions, args[0] if args else None, "mission")
    if mission is None:
        return
    event = session.state.unresolved_event_for(mission.id)
    if event is None:
        show_error("No open situation on that mission. Try /sitrep.")
        return

    choice = args[1:]
    option_id = None
    custom_order = None
    if len(choice) == 1 and choice[0].isdigit() and 1 <= int(choice[0]) <= len(event.options):
        option_id = event.options[int(choice[0]) - 1].id
    else:
        custom_order = " ".join(choice)

    with console.status(f"[{THEME['dim']}]Executing...[/{THEME['dim']}]"):
        result = await session.make_decision(event.id, option_id, custom_order)
    if result is None:
        return
    console.print(result.outcome, markup=False)
    if session.state.last_mission_result is not None:
        render_dashboard(session.state)
        session.clear_mission_result()


async def cmd_hunt(session: CampaignSession, args: list[str]):
    nemesis = pick(session.state.nemeses, args[0] if args else None, "nemesis")
    if nemesis is None:
        return
    with console.status(f"[{THEME['dim']}]Working the streets...[/{THEME['dim']}]"):
        mission = await session.trigger_nemesis_mission(nemesis.id)
    if mission is not None:
        console.print(f"[{THEME['danger']}]{mission.title}[/{THEME['danger']}] added to dispatch.")


# -----------------------------------------------------------------------------
# Shift Commands
# -----------------------------------------------------------------------------

async def cmd_day(session: CampaignSession, args: list[str]):
    with console.status(f"[{THEME['dim']}]Shift change...[/{THEME['dim']}]"):
        await session.advance_day()
    render_dashboard(session.state)


async def cmd_events(session: CampaignSession, args: list[str]):
    if not session.state.available_events:
        show_info("No community events on the calendar.")
        return
    console.print(render_community(session.state))


async def cmd_community(session: CampaignSession, args: list[str]):
    with console.status(f"[{THEME['dim']}]Calling the mayor's office...[/{THEME['dim']}]"):
        await session.generate_community_event()
    await cmd_events(session, args)


async def cmd_schedule(session: CampaignSession, args: list[str]):
    event = pick(session.state.available_events, args[0] if args else None, "event")
    if event is None:
        return
    officers = pick_many(session.state.officers, args[1:], "officer")
    if officers is not None:
        session.schedule_event(event.id, [o.id for o in officers])


async def cmd_cancel(session: CampaignSession, args: list[str]):
    event = pick(session.state.available_events, args[0] if args else None, "event")
    if event is not None:
        session.cancel_event(event.id)


async def cmd_morale(session: CampaignSession, args: list[str]):
    catalogue = session.state.morale_events
    if not args:
        table = Table(title="MORALE EVENTS", title_justify="left", border_style=THEME["primary"])
        table.add_column("#", style="dim")
        table.add_column("Event")
        table.add_column("Cost", justify="right")
        table.add_column("Boost", justify="right")
        for i, event in enumerate(catalogue, 1):
            table.add_row(str(i), f"{event.icon} {event.name}", f"${event.cost:,}", f"+{event.morale_boost}")
        console.print(table)
        return
    event = pick(catalogue, args[0], "morale event")
    if event is not None:
        session.host_morale_event(event.id)


async def cmd_incident(session: CampaignSession, args: list[str]):
    incident = session.state.pending_random_event
    if incident is None:
        show_info("Nothing breaking right now.")
        return
    if not args:
        console.print(f"[bold]{incident.title}[/bold]\n{incident.description}")
        for i, choice in enumerate(incident.choices, 1):
            console.print(f"  [{THEME['accent']}]{i}.[/{THEME['accent']}] {choice.label} [dim](risk {choice.risk}%)[/dim]")
        show_info("Respond with /incident <choice#>, or /incident accept to let it play out.")
        return
    if args[0].lower() == "accept":
        session.resolve_random_event()
        return
    choice = pick(incident.choices, args[0], "response")
    if choice is not None:
        session.resolve_random_event(choice.id)


# -----------------------------------------------------------------------------
# Custody Commands
# -----------------------------------------------------------------------------

async def cmd_custody(session: CampaignSession, args: list[str]):
    state = session.state
    if not state.suspects_in_custody and not state.evidence_locker:
        show_info("Holding cells are empty.")
        return
    console.print(render_custody(state))
    if state.evidence_locker:
        console.print(render_evidence(state))


async def cmd_nemeses(session: CampaignSession, args: list[str]):
    if not session.state.nemeses:
        show_info("No known nemeses. Yet.")
        return
    table = Table(title="NEMESES", title_justify="left", border_style=THEME["danger"])
    table.add_column("#", style="dim")
    table.add_column("Name")
    table.add_column("Alias")
    table.add_column("Grudge", justify="right")
    table.add_column("Encounters", justify="right")
    table.add_column("Status")
    for i, n in enumerate(session.state.nemeses, 1):
        table.add_row(str(i), n.name, n.alias or "-", str(n.grudge_level), str(n.encounter_count), n.status.value)
    console.print(table)


def create_commands() -> dict[str, CommandHandler]:
    """Create command handlers with proper closures."""
    # Interrogation transcripts live for the console session, keyed by suspect id
    transcripts: dict[str, list[InterrogationMessage]] = {}

    def _suspect(session: CampaignSession, args: list[str]):
        return pick(session.state.suspects_in_custody, args[0] if args else None, "suspect")

    async def cmd_question(session: CampaignSession, args: list[str]):
        suspect = _suspect(session, args)
        if suspect is None:
            return
        message = " ".join(args[1:])
        if not message:
            show_error("Usage: /question <suspect#> <message>")
            return
        history = transcripts.setdefault(suspect.id, [])
        with console.status(f"[{THEME['dim']}]...[/{THEME['dim']}]"):
            reply = await session.interrogate_suspect(suspect.id, history, message)
        if reply is None:
            return
        history.append(InterrogationMessage(role="Commander", text=message))
        history.append(InterrogationMessage(role="Suspect", text=reply))
        console.print(f"[{THEME['warning']}]{suspect.name}:[/{THEME['warning']}] {escape(reply)}")

    async def cmd_conclude(session: CampaignSession, args: list[str]):
        suspect = _suspect(session, args)
        if suspect is None:
            return
        with console.status(f"[{THEME['dim']}]Reviewing the tape...[/{THEME['dim']}]"):
            result = await session.resolve_interrogation(suspect.id, transcripts.get(suspect.id, []))
        if result is not None:
            transcripts.pop(suspect.id, None)
            console.print(result.intel, markup=False)

    async def cmd_charge(session: CampaignSession, args: list[str]):
        suspect = _suspect(session, args)
        if suspect is not None:
            session.charge_suspect(suspect.id)

    async def cmd_release(session: CampaignSession, args: list[str]):
        suspect = _suspect(session, args)
        if suspect is not None:
            session.release_suspect(suspect.id)

    async def cmd_vendetta(session: CampaignSession, args: list[str]):
        suspect = _suspect(session, args)
        if suspect is None:
            return
        with console.status(f"[{THEME['dim']}]Opening the cell door...[/{THEME['dim']}]"):
            await session.release_as_nemesis(suspect.id)

    async def cmd_trial(session: CampaignSession, args: list[str]):
        suspect = _suspect(session, args)
        if suspect is None:
            return
        with console.status(f"[{THEME['dim']}]Court is in session...[/{THEME['dim']}]"):
            await session.process_trial(suspect.id)
        await cmd_custody(session, [])

    async def cmd_ci(session: CampaignSession, args: list[str]):
        suspect = _suspect(session, args)
        if suspect is not None:
            session.recruit_ci(suspect.id)

    async def cmd_archive(session: CampaignSession, args: list[str]):
        suspect = _suspect(session, args)
        if suspect is not None:
            session.archive_suspect(suspect.id)

    async def cmd_analyze(session: CampaignSession, args: list[str]):
        item = pick(session.state.evidence_locker, args[0] if args else None, "evidence")
        if item is not None:
            session.analyze_evidence(item.id)

    async def cmd_help(session: CampaignSession, args: list[str]):
        show_help()

    async def cmd_quit(session: CampaignSession, args: list[str]):
        await session.drain()
        sys.exit(0)

    return {
        "/new": cmd_new,
        "/status": cmd_status,
        "/log": cmd_log,
        "/export": cmd_export,
        "/import": cmd_import,
        "/reset": cmd_reset,
        "/recruit": cmd_recruit,
        "/dismiss": cmd_dismiss,
        "/rehire": cmd_rehire,
        "/honor": cmd_honor,
        "/gear": cmd_gear,
        "/dispatch": cmd_dispatch,
        "/custom": cmd_custom,
        "/assign": cmd_assign,
        "/decline": cmd_decline,
        "/sitrep": cmd_sitrep,
        "/order": cmd_order,
        "/hunt": cmd_hunt,
        "/day": cmd_day,
        "/events": cmd_events,
        "/community": cmd_community,
        "/schedule": cmd_schedule,
        "/cancel": cmd_cancel,
        "/morale": cmd_morale,
        "/incident": cmd_incident,
        "/custody": cmd_custody,
        "/question": cmd_question,
        "/conclude": cmd_conclude,
        "/charge": cmd_charge,
        "/release": cmd_release,
        "/vendetta": cmd_vendetta,
        "/trial": cmd_trial,
        "/ci": cmd_ci,
        "/archive": cmd_archive,
        "/analyze": cmd_analyze,
        "/nemeses": cmd_nemeses,
        "/help": cmd_help,
        "/quit": cmd_quit,
    }
