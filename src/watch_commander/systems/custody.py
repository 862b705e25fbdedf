"""
Custody pipeline reducers.

Custody → Interrogated → Charged → Sentenced, with Released and CI as
side exits. Released, CI and Sentenced cases can be archived, which
removes the suspect and their evidence from the station.
"""

from __future__ import annotations

from ..state.schema import (
    EvidenceItem,
    EvidenceStatus,
    GameState,
    InterrogationResult,
    LogType,
    Nemesis,
    Suspect,
    SuspectStatus,
    TrialOutcome,
    TrialVerdict,
)
from .base import (
    NotFoundError,
    PreconditionError,
    add_log,
    adjust_reputation,
    require_funds,
    working_copy,
)
from .rules import (
    CHARGE_COST,
    CHARGE_REPUTATION_BONUS,
    CI_STIPEND,
    EVIDENCE_INTEL_BONUS,
    EVIDENCE_LAB_FEE,
    RELEASE_REPUTATION_PENALTY,
)

_OPEN = (SuspectStatus.CUSTODY, SuspectStatus.INTERROGATED)
_ARCHIVABLE = (SuspectStatus.SENTENCED, SuspectStatus.RELEASED, SuspectStatus.CI)


def _find(state: GameState, suspect_id: str) -> Suspect:
    suspect = state.get_suspect(suspect_id)
    if suspect is None:
        raise NotFoundError("Suspect not found.")
    return suspect


def check_open_case(state: GameState, suspect_id: str) -> Suspect:
    suspect = _find(state, suspect_id)
    if suspect.status not in _OPEN:
        raise PreconditionError(f"{suspect.name} is no longer held for questioning.")
    return suspect


# -----------------------------------------------------------------------------
# Intake and questioning
# -----------------------------------------------------------------------------

def capture_suspect(state: GameState, suspect: Suspect) -> GameState:
    """Book a suspect taken alive and file the evidence recovered with them."""
    state = working_copy(state)
    suspect = suspect.model_copy(update={"status": SuspectStatus.CUSTODY})
    state.suspects_in_custody.append(suspect)
    state.evidence_locker.append(EvidenceItem(
        name=f"Evidence: {suspect.crime}",
        description=f"Recovered at the scene with {suspect.name}.",
        suspect_id=suspect.id,
        mission_id=suspect.mission_id,
    ))
    add_log(state, LogType.SUCCESS, f"SUSPECT APPREHENDED: {suspect.name} is now in custody.")
    return state


def mark_interrogated(state: GameState, suspect_id: str) -> GameState:
    suspect = state.get_suspect(suspect_id)
    if suspect is None or suspect.status != SuspectStatus.CUSTODY:
        return state
    state = working_copy(state)
    state.get_suspect(suspect_id).status = SuspectStatus.INTERROGATED
    return state


def conclude_interrogation(
    state: GameState, suspect_id: str, result: InterrogationResult
) -> GameState:
    """Cracked suspects are charged; the rest walk. A cracked suspect may unlock a mission."""
    suspect = check_open_case(state, suspect_id)

    state = working_copy(state)
    held = state.get_suspect(suspect_id)
    held.status = SuspectStatus.CHARGED if result.success else SuspectStatus.RELEASED
    held.intel_revealed = result.intel

    message = f"Interrogation of {suspect.name} concluded. {result.intel}"
    if result.success and result.unlocked_mission is not None:
        state.active_missions.append(result.unlocked_mission.model_copy(deep=True))
        message += " NEW INTEL LEAD ADDED TO DISPATCH."

    adjust_reputation(state, result.reputation_bonus)
    state.budget += result.budget_bonus
    add_log(state, LogType.SUCCESS if result.success else LogType.WARNING, message)
    return state


# -----------------------------------------------------------------------------
# Charges, release, trial
# -----------------------------------------------------------------------------

def charge_suspect(state: GameState, suspect_id: str) -> GameState:
    suspect = check_open_case(state, suspect_id)

    state = working_copy(state)
    state.get_suspect(suspect_id).status = SuspectStatus.CHARGED
    state.budget = max(0, state.budget - CHARGE_COST)
    adjust_reputation(state, CHARGE_REPUTATION_BONUS)
    add_log(state, LogType.INFO, f"Official charges filed against {suspect.name}. Processing for trial.")
    return state


def _release(state: GameState, suspect_id: str) -> Suspect:
    """Release on a working copy. Questioned suspects cost no reputation."""
    held = state.get_suspect(suspect_id)
    if held.status != SuspectStatus.INTERROGATED:
        adjust_reputation(state, -RELEASE_REPUTATION_PENALTY)
    held.status = SuspectStatus.RELEASED
    return held


def release_suspect(state: GameState, suspect_id: str) -> GameState:
    suspect = check_open_case(state, suspect_id)

    state = working_copy(state)
    _release(state, suspect_id)
    add_log(state, LogType.WARNING, f"{suspect.name} has been released due to lack of evidence.")
    return state


def check_nemesis_release(state: GameState, suspect_id: str) -> Suspect:
    suspect = check_open_case(state, suspect_id)
    if not suspect.is_dangerous:
        raise PreconditionError(f"{suspect.name} is not dangerous enough to become a nemesis.")
    return suspect


def release_as_nemesis(state: GameState, suspect_id: str, nemesis: Nemesis) -> GameState:
    suspect = check_nemesis_release(state, suspect_id)

    state = working_copy(state)
    _release(state, suspect_id)
    state.nemeses.append(nemesis.model_copy(deep=True))
    alias = f' "{nemesis.alias}"' if nemesis.alias else ""
    add_log(
        state,
        LogType.WARNING,
        f"{suspect.name}{alias} walked out swearing revenge. A new nemesis is at large.",
    )
    return state


def check_trial_ready(state: GameState, suspect_id: str) -> Suspect:
    suspect = _find(state, suspect_id)
    if suspect.status != SuspectStatus.CHARGED:
        raise PreconditionError(f"{suspect.name} must be charged before trial.")
    return suspect


def process_trial(state: GameState, suspect_id: str, outcome: TrialOutcome) -> GameState:
    suspect = check_trial_ready(state, suspect_id)

    state = working_copy(state)
    held = state.get_suspect(suspect_id)
    held.status = SuspectStatus.SENTENCED
    held.trial_verdict = outcome.verdict
    held.trial_sentence = outcome.sentence
    adjust_reputation(state, outcome.reputation_impact)
    state.budget += outcome.budget_impact
    add_log(
        state,
        LogType.SUCCESS if outcome.verdict == TrialVerdict.GUILTY else LogType.WARNING,
        f"TRIAL CONCLUDED: {suspect.name} - Verdict: {outcome.verdict.value}. "
        f"Sentence: {outcome.sentence}",
    )
    return state


# -----------------------------------------------------------------------------
# Informants and case files
# -----------------------------------------------------------------------------

def recruit_ci(state: GameState, suspect_id: str) -> GameState:
    """Flip a suspect who has talked into a confidential informant."""
    suspect = _find(state, suspect_id)
    if not suspect.intel_revealed or suspect.status in (*_ARCHIVABLE, SuspectStatus.ARCHIVED):
        raise PreconditionError(f"{suspect.name} has nothing to offer as an informant.")
    require_funds(state, CI_STIPEND, f"Informant stipend requires ${CI_STIPEND:,}.")

    state = working_copy(state)
    state.get_suspect(suspect_id).status = SuspectStatus.CI
    state.budget -= CI_STIPEND
    add_log(state, LogType.SUCCESS, f"{suspect.name} flipped. Confidential informant on the payroll.")
    return state


def archive_suspect(state: GameState, suspect_id: str) -> GameState:
    suspect = _find(state, suspect_id)
    if suspect.status not in _ARCHIVABLE:
        raise PreconditionError(f"The case against {suspect.name} is still open.")

    state = working_copy(state)
    state.suspects_in_custody = [s for s in state.suspects_in_custody if s.id != suspect_id]
    state.evidence_locker = [e for e in state.evidence_locker if e.suspect_id != suspect_id]
    add_log(state, LogType.INFO, "Suspect case file archived and moved to long-term storage.")
    return state


def analyze_evidence(state: GameState, evidence_id: str) -> GameState:
    item = next((e for e in state.evidence_locker if e.id == evidence_id), None)
    if item is None:
        raise NotFoundError("Evidence not found.")
    if item.status != EvidenceStatus.STORED:
        raise PreconditionError(f"{item.name} has already been analyzed.")
    require_funds(state, EVIDENCE_LAB_FEE, f"Lab analysis costs ${EVIDENCE_LAB_FEE:,}.")

    state = working_copy(state)
    item = next(e for e in state.evidence_locker if e.id == evidence_id)
    item.status = EvidenceStatus.ANALYZED
    state.budget -= EVIDENCE_LAB_FEE
    suspect = state.get_suspect(item.suspect_id) if item.suspect_id else None
    if suspect is not None:
        suspect.intel_level = min(100, suspect.intel_level + EVIDENCE_INTEL_BONUS)
    add_log(state, LogType.INFO, f"Lab results are in for {item.name}.")
    return state
