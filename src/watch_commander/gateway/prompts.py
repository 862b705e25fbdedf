"""
Prompt builders for the generation gateway.

Each builder embeds the domain context the generator needs and spells
out the JSON shape expected back. Wording is tuned for small local
models: short, explicit, one shape per request.
"""

from ..llm.base import Message
from ..state.schema import (
    InterrogationMessage,
    Mission,
    MissionEvent,
    MissionType,
    Nemesis,
    Officer,
    Specialization,
    Suspect,
)

SYSTEM_PROMPT = """You are the game master of a gritty SWAT command simulation.
The player is a watch commander running a tactical squad in a big city.
Write grounded, tense, believable police drama. Officers are people, not stats.
When asked for JSON, reply with a single JSON object and nothing else."""

JSON_ONLY = "Respond ONLY with the JSON object, no commentary."

_SPECS = ", ".join(s.value for s in Specialization)
_MISSION_TYPES = ", ".join(t.value for t in MissionType if t != MissionType.CUSTOM_OPERATION)


def _user(content: str) -> list[Message]:
    return [Message(role="user", content=content.strip())]


def _roster_line(officer: Officer) -> str:
    return (
        f"- {officer.name} ({officer.rank.value}, {officer.specialization.value}, "
        f"health {officer.health}, morale {officer.morale})"
    )


def _mission_shape(reputation_range: str = "0-30") -> str:
    return f"""{{
  "title": "short operation name",
  "description": "one sentence",
  "type": "one of: {_MISSION_TYPES}",
  "priority": "Low | Medium | High | Critical",
  "location": "street-level location",
  "estimated_duration": "e.g. 1-2 hours",
  "required_officers": 4,
  "required_specializations": ["specializations from: {_SPECS}"],
  "risk_level": 1-10,
  "rewards": {{"experience": 50-200, "reputation": {reputation_range}, "budget": 5000-50000}},
  "briefing": "two or three sentences of tactical briefing"
}}"""


# -----------------------------------------------------------------------------
# Roster
# -----------------------------------------------------------------------------

def recruit_officer(existing_names: list[str], reputation: int) -> list[Message]:
    taken = ", ".join(existing_names) or "none"
    return _user(f"""
Create a new SWAT recruit applying to a department with reputation {reputation}/100.
Names already on the roster (do not reuse): {taken}

Return JSON:
{{
  "name": "first and last name",
  "nickname": "optional squad nickname",
  "rank": "Rookie | Officer | Senior Officer",
  "specialization": "one of: {_SPECS}",
  "experience": 0-40,
  "morale": 50-100,
  "health": 80-100,
  "skills": {{"marksmanship": 0-100, "tactics": 0-100, "fitness": 0-100, "leadership": 0-100, "composure": 0-100}},
  "backstory": "two sentences"
}}
{JSON_ONLY}""")


def dismissal_dialogue(officer: Officer, reason: str) -> list[Message]:
    return _user(f"""
{officer.name}, a {officer.rank.value} {officer.specialization.value} with
{officer.missions_completed} missions, is being dismissed from the squad.
Reason given: {reason}

Write the officer's parting words to the commander, two to four sentences,
in their own voice. Plain text, no quotes around it.""")


def funeral_eulogy(officer: Officer, squad_name: str) -> list[Message]:
    return _user(f"""
Write a short eulogy (three to five sentences) for {officer.name}, a
{officer.rank.value} {officer.specialization.value} of {squad_name} who was
killed in the line of duty after {officer.missions_completed} missions.
Backstory: {officer.backstory or "unknown"}
Plain text only.""")


# -----------------------------------------------------------------------------
# Missions
# -----------------------------------------------------------------------------

def generate_mission(reputation: int, day: int, squad_size: int) -> list[Message]:
    suggested = max(2, min(8, int(squad_size * 1.5))) if squad_size else 4
    return _user(f"""
Dispatch needs a new call for the squad.
Day {day}, department reputation {reputation}/100, squad size {squad_size}.
Higher reputation brings higher-profile, higher-paying calls.
Suggested team size: {suggested}.

Return JSON:
{_mission_shape()}
{JSON_ONLY}""")


def custom_mission(description: str, squad_size: int, reputation: int) -> list[Message]:
    return _user(f"""
The commander has written their own operation directive:
"{description}"

Turn it into a workable operation for a squad of {squad_size} with reputation
{reputation}/100. Reckless or unethical directives should carry a NEGATIVE
reputation reward (down to -50).

Return JSON:
{_mission_shape("-50 to 50")}
{JSON_ONLY}""")


def mission_event(
    mission: Mission,
    officers: list[Officer],
    prior_events: list[MissionEvent],
) -> list[Message]:
    history = "\n".join(
        f"- {e.description} -> {e.outcome or 'pending'}" for e in prior_events
    ) or "- Team is staging at the perimeter."
    roster = "\n".join(_roster_line(o) for o in officers)
    wrap_up = (
        "\nThe operation has run long: steer toward a resolution now."
        if len(prior_events) > 3 else ""
    )
    return _user(f"""
Operation: {mission.title} ({mission.type.value}, risk {mission.risk_level}/10)
Location: {mission.location}
Briefing: {mission.briefing}

Deployed team:
{roster}

What has happened so far:
{history}
{wrap_up}
Generate the next development. Give two to four options for the commander.

Return JSON:
{{
  "description": "what the team sees or hears right now",
  "type": "Info | Decision | Combat | Casualty",
  "options": [
    {{"id": "short-id", "label": "action", "description": "what it involves",
      "risk_level": 1-10, "required_specialization": "optional, one of: {_SPECS}"}}
  ]
}}
{JSON_ONLY}""")


def resolve_decision(
    mission: Mission,
    event: MissionEvent,
    option_label: str,
    officers: list[Officer],
    event_count: int,
) -> list[Message]:
    roster = "\n".join(_roster_line(o) for o in officers)
    return _user(f"""
Operation: {mission.title} (risk {mission.risk_level}/10)
Situation: {event.description}
Commander's order: {option_label}

Team:
{roster}

This is development #{event_count} of the operation.
Decide what happens. Casualties and injuries must use exact full names from
the team list. Most orders should not kill anyone; deaths are rare and heavy.
Set mission_complete true once the operation is over, with success telling
whether it went well.

Return JSON:
{{
  "outcome": "two to four sentences narrating the result",
  "casualties": [],
  "injuries": [],
  "mission_complete": false,
  "success": false
}}
{JSON_ONLY}""")


# -----------------------------------------------------------------------------
# Community and incidents
# -----------------------------------------------------------------------------

def community_event(reputation: int) -> list[Message]:
    return _user(f"""
Create a community outreach opportunity for a SWAT squad with reputation
{reputation}/100.

Return JSON:
{{
  "title": "event name",
  "description": "one or two sentences",
  "type": "Charity | Public Relations | Training Demo | Recruitment Drive",
  "requirements": {{"min_officers": 1-3, "required_specialization": "optional"}},
  "rewards": {{"budget": 0-10000, "reputation": 1-10}}
}}
{JSON_ONLY}""")


def random_event(day: int, budget: int, reputation: int, officer_names: list[str]) -> list[Message]:
    names = ", ".join(officer_names) or "no officers"
    return _user(f"""
Something unexpected happens at the station on day {day}.
Budget ${budget:,}, reputation {reputation}/100. Squad: {names}.

Return JSON:
{{
  "type": "Windfall | Disaster | Opportunity | Drama | Chaos | Morale",
  "title": "headline",
  "description": "two sentences",
  "effects": {{"budget_change": 0, "reputation_change": 0, "morale_change": 0,
              "officer_affected": "optional exact name"}},
  "choices": [
    {{"id": "short-id", "label": "response", "risk": 0-100,
      "effects": {{"budget_change": 0, "reputation_change": 0, "morale_change": 0}}}}
  ]
}}
Choices are optional; leave the list empty for a plain announcement.
{JSON_ONLY}""")


# -----------------------------------------------------------------------------
# Custody
# -----------------------------------------------------------------------------

def captured_suspect(mission: Mission) -> list[Message]:
    return _user(f"""
The squad just closed "{mission.title}" ({mission.type.value}) at {mission.location}.
One suspect was taken alive.

Return JSON:
{{
  "name": "full name",
  "crime": "primary charge",
  "personality": "a few words on demeanor",
  "intel_level": 20-90,
  "resistance": 30-95
}}
{JSON_ONLY}""")


def interrogation_system(suspect: Suspect) -> str:
    return f"""You are {suspect.name}, held for {suspect.crime}.
Personality: {suspect.personality or "guarded"}.
Resistance to questioning: {suspect.resistance}/100. You know things worth {suspect.intel_level}/100.
Stay in character. Answer the commander in one to three sentences. Never
break character or mention being an AI."""


def interrogation_turn(
    history: list[InterrogationMessage],
    message: str,
) -> list[Message]:
    messages = [
        Message(
            role="user" if turn.role == "Commander" else "assistant",
            content=turn.text,
        )
        for turn in history
    ]
    messages.append(Message(role="user", content=message))
    return messages


def resolve_interrogation(
    suspect: Suspect,
    history: list[InterrogationMessage],
    squad_size: int,
) -> list[Message]:
    transcript = "\n".join(f"{t.role}: {t.text}" for t in history) or "(no questions asked)"
    return _user(f"""
Interrogation of {suspect.name} ({suspect.crime}), resistance {suspect.resistance}/100,
intel value {suspect.intel_level}/100.

Transcript:
{transcript}

Judge whether the suspect cracked. If they did, they may give up a lead that
becomes a follow-up operation for a squad of {squad_size}.

Return JSON:
{{
  "success": true,
  "intel": "what was learned, or why they held out",
  "reputation_bonus": 0-15,
  "budget_bonus": 0-10000,
  "unlocked_mission": {{"title": "...", "description": "...", "type": "...",
                        "location": "...", "risk_level": 1-10, "reward_budget": 5000-40000}}
}}
Omit unlocked_mission (or set it to null) when nothing actionable was learned.
{JSON_ONLY}""")


def trial_outcome(suspect: Suspect) -> list[Message]:
    return _user(f"""
{suspect.name} goes to trial for {suspect.crime}.
Intel gathered: {suspect.intel_revealed or "none"}.

Return JSON:
{{
  "verdict": "Guilty | Not Guilty | Case Dismissed",
  "sentence": "sentence handed down, or why they walked",
  "reputation_impact": -10 to 20,
  "budget_impact": -5000 to 15000
}}
{JSON_ONLY}""")


def nemesis_profile(suspect: Suspect) -> list[Message]:
    return _user(f"""
{suspect.name} ({suspect.crime}, {suspect.personality or "cold"}) walked out of
custody and swore revenge on the squad.

Return JSON:
{{
  "name": "{suspect.name}",
  "alias": "street name",
  "grudge_level": 1-10,
  "signature": "their calling card",
  "backstory": "two sentences"
}}
{JSON_ONLY}""")


def nemesis_mission(nemesis: Nemesis, reputation: int, squad_size: int) -> list[Message]:
    alias = f' "{nemesis.alias}"' if nemesis.alias else ""
    return _user(f"""
Nemesis {nemesis.name}{alias} (grudge {nemesis.grudge_level}/10, encounters
{nemesis.encounter_count}) has surfaced. Signature: {nemesis.signature}.
Build the operation to bring them down for a squad of {squad_size}, reputation
{reputation}/100. This is personal and dangerous.

Return JSON:
{_mission_shape("-20 to 40")}
{JSON_ONLY}""")
