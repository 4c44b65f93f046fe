from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from rules import dice
from rules.curses import roll_target_curse, start_curse_chain
from rules.data import MUTATION_BY_ID, MUTATIONS, NO_MUTATION_TEXT
from rules.state import add_log, in_phase, seeded_room
from rules.tables import resolve_breakpoint


logger = logging.getLogger(__name__)

MAX_MUTATION_DEPTH = 10
CASUAL_REROLL_FROM = 90
CASUAL_REROLL_MAX = 89


@dataclass
class MutationOutcome:
    kind: str  # "normal" | "no_effect" | "delete_track" | "take_curse"
    text: str
    roll: int = 0
    entries: List[str] = field(default_factory=list)


def _no_mutation(roll_value: int, entries: Optional[List[str]] = None) -> MutationOutcome:
    return MutationOutcome(kind="no_effect", text=NO_MUTATION_TEXT, roll=roll_value, entries=list(entries or []))


def combine(first: MutationOutcome, second: MutationOutcome) -> MutationOutcome:
    """
    Merge two resolutions (Roll Twice / double-mutation rooms).
    Take-curse wins over delete, delete over text, and no-effect halves drop out.
    """
    entries = first.entries + second.entries
    for kind in ("take_curse", "delete_track"):
        if kind in (first.kind, second.kind):
            hit = first if first.kind == kind else second
            return MutationOutcome(kind=kind, text=hit.text, roll=first.roll, entries=entries)
    texts = [o.text for o in (first, second) if o.kind == "normal"]
    if not texts:
        return MutationOutcome(kind="no_effect", text=NO_MUTATION_TEXT, roll=first.roll, entries=entries)
    return MutationOutcome(kind="normal", text=" AND ".join(texts), roll=first.roll, entries=entries)


def _previous_mutation(state: Dict[str, Any]) -> Optional[str]:
    tracks = state.get("tracks") or []
    if not tracks:
        return None
    muts = tracks[-1].get("mutations") or []
    return muts[-1] if muts else None


def resolve_mutation(state: Dict[str, Any], depth: int = 0, roll_value: Optional[int] = None) -> MutationOutcome:
    """
    One mutation for the current room.

    Casual rerolls 90+ on a 1-89 die, hard rerolls anything without an effect.
    Room One rerolls or nulls entries that say so. Roll Twice resolves two more
    and merges them. Every branch that recurses counts against MAX_MUTATION_DEPTH.
    """
    if depth > MAX_MUTATION_DEPTH:
        logger.warning("Mutation resolution exceeded depth %d in room %s", MAX_MUTATION_DEPTH, state.get("room"))
        add_log(state, "Mutation rolls ran too deep; No Mutation")
        return _no_mutation(0)

    mode = state.get("mode")
    r = roll_value if roll_value is not None else dice.roll()
    if mode == "casual" and r >= CASUAL_REROLL_FROM:
        r = dice.roll(CASUAL_REROLL_MAX)
        add_log(state, f"Casual Mode: Re-rolling high mutation: {r}")

    entry = resolve_breakpoint(MUTATIONS, r)
    add_log(state, f"Mutation Roll: {r} → {entry.text}")
    m = entry.mechanics

    if mode == "hard" and m.no_effect:
        add_log(state, "Hard Mode: Re-rolling no-effect mutation")
        return resolve_mutation(state, depth + 1)

    room_one = int(state.get("room", 1)) == 1
    if room_one and m.reroll_on_room_one:
        add_log(state, "Room One: re-rolling")
        return resolve_mutation(state, depth + 1)
    if room_one and m.no_mutation_on_room_one:
        return _no_mutation(r, [entry.id])

    if m.roll_twice:
        first = resolve_mutation(state, depth + 1)
        second = resolve_mutation(state, depth + 1)
        merged = combine(first, second)
        merged.roll = r
        merged.entries = [entry.id] + merged.entries
        return merged

    if m.repeat_last_mutation:
        previous = _previous_mutation(state)
        if previous is None:
            return _no_mutation(r, [entry.id])
        return MutationOutcome(kind="normal", text=previous, roll=r, entries=[entry.id])

    if m.delete_if_high_roll is not None:
        r2 = dice.roll()
        if r2 >= m.delete_if_high_roll:
            add_log(state, f"Corruption Roll: {r2} → track deleted")
            return MutationOutcome(kind="delete_track", text=entry.text, roll=r, entries=[entry.id])
        add_log(state, f"Corruption Roll: {r2} → track survives")
        return _no_mutation(r, [entry.id])

    if m.take_curse_instead:
        return MutationOutcome(kind="take_curse", text=entry.text, roll=r, entries=[entry.id])

    if m.no_effect:
        return _no_mutation(r, [entry.id])

    return MutationOutcome(kind="normal", text=entry.text, roll=r, entries=[entry.id])


def roll_mutation(state: Dict[str, Any]) -> None:
    if not in_phase(state, "mutation") or not state.get("current_track"):
        return

    count = 2 if state.get("double_mutation_this_room") else 1
    if count == 2:
        add_log(state, "Double Mutation Room!")

    seeded = seeded_room(state) if state.get("mode") == "seeded" else None
    outcome: Optional[MutationOutcome] = None
    for i in range(count):
        preset = seeded.get("mutation_roll") if (seeded and i == 0) else None
        if preset is not None:
            add_log(state, f"Seeded mutation roll: {preset}")
        result = resolve_mutation(state, roll_value=preset)
        outcome = result if outcome is None else combine(outcome, result)

    if outcome.kind == "take_curse":
        add_log(state, "Mutation traded for a Target Curse")
        state["current_mutation"] = None
        state["mutation_skipped"] = True
        start_curse_chain(state)
        roll_target_curse(state)
        return

    state["current_mutation"] = {
        "roll": outcome.roll,
        "effect": outcome.text,
        "kind": outcome.kind,
        "entries": list(outcome.entries),
    }
    state["phase"] = "mutation-result"


def accept_mutation(state: Dict[str, Any]) -> None:
    if not in_phase(state, "mutation-result"):
        return
    mutation = state.get("current_mutation")
    track = state.get("current_track")
    if not mutation or not track:
        return

    kind = mutation.get("kind", "normal")
    if kind == "normal":
        track.setdefault("mutations", []).append(mutation["effect"])
    elif kind == "delete_track":
        track["deleted"] = True
        add_log(state, f"Track deleted: {track.get('type')}")
    state.setdefault("mutations", []).append(dict(mutation))

    mechanics = [MUTATION_BY_ID[e].mechanics for e in mutation.get("entries", []) if e in MUTATION_BY_ID]
    next_phase = "compose"
    if kind == "normal":
        for m in mechanics:
            if m.copy_previous_type and state.get("tracks"):
                previous_type = state["tracks"][-1].get("type")
                if previous_type and previous_type != track.get("type"):
                    track["original_type"] = track.get("type")
                    track["type"] = previous_type
                    add_log(state, f"Track type copied from previous track: {previous_type}")
            if m.timer_minutes:
                state["timer_end_time"] = time.time() + m.timer_minutes * 60
                add_log(state, f"Timer started: {m.timer_minutes} minutes")
            if m.abandon_track_type:
                state["pending_track_type_reselect"] = True
                next_phase = "track-type-reselect"

    state["current_mutation"] = None
    state["phase"] = next_phase
