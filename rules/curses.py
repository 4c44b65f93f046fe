"""
Curse check, Target/Mix curse resolution and curse acceptance.

A curse chain starts at the curse check (or from a Pain Shift / Bargain) and
runs until every owed Target Curse has been accepted. Double Hex and Mix
Curse cascades queue more Target Curse rolls in `pending_curse`; each one is
rolled after the previous curse is accepted. The whole chain is capped at
MAX_CURSE_DEPTH rolls.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from rules import dice
from rules.data import CURSE_BY_ID, MIX_CURSES, TARGET_CURSES
from rules.state import (
    add_log,
    available_tracks,
    in_phase,
    is_available,
    new_pending_curse,
)
from rules.tables import Mechanics, resolve_breakpoint
from rules.targeting import TargetResolution, apply_offset, dedupe, resolve_targets


logger = logging.getLogger(__name__)

MAX_CURSE_DEPTH = 10

CURSE_ROLL_NONE_MAX = 70
CURSE_ROLL_TARGET_MAX = 98
CURSED_MODE_ROLL = 71

HALF_STRENGTH_SUFFIX = " (Half Strength)"


def _curse(kind: str, roll_value: int, effect: str, entry_id: str, room: int) -> Dict[str, Any]:
    return {
        "type": kind,
        "roll": roll_value,
        "effect": effect,
        "entry": entry_id,
        "room": room,
    }


def _pending(state: Dict[str, Any]) -> Dict[str, Any]:
    pending = state.get("pending_curse")
    if not isinstance(pending, dict):
        pending = new_pending_curse()
        state["pending_curse"] = pending
    return pending


def _mechanics(curse: Optional[Dict[str, Any]]) -> Mechanics:
    entry = CURSE_BY_ID.get((curse or {}).get("entry"))
    return entry.mechanics if entry else Mechanics()


def start_curse_chain(state: Dict[str, Any]) -> None:
    state["current_curse"] = None
    state["pending_curse"] = new_pending_curse()


def phase_after_curses(state: Dict[str, Any]) -> str:
    """
    Where a room goes once it is done with curses. Pain Shift and a Bargain
    both cost the room its mutation.
    """
    if state.get("pain_shift_active") or state.get("mutation_skipped"):
        return "compose"
    return "mutation"


def roll_curse_check(state: Dict[str, Any]) -> None:
    if not in_phase(state, "curse-check") or not state.get("current_track"):
        return
    start_curse_chain(state)

    if state.get("is_last_room"):
        add_log(state, "Final Room: Target Curse guaranteed")
        roll_target_curse(state)
        return

    r = dice.roll()
    add_log(state, f"Curse Check Roll: {r}")

    if state.get("mode") == "cursed":
        r = CURSED_MODE_ROLL
        add_log(state, "Cursed Mode: Forcing curse")

    if state.get("mode") == "casual" and not state.get("casual_first_curse_ignored") and r > CURSE_ROLL_NONE_MAX:
        state["casual_first_curse_ignored"] = True
        add_log(state, "Casual Mode: First curse ignored")
        r = 1

    if r <= CURSE_ROLL_NONE_MAX:
        add_log(state, "No Curse")
        state["phase"] = phase_after_curses(state)
    elif r <= CURSE_ROLL_TARGET_MAX:
        roll_target_curse(state)
    else:
        roll_mix_curse(state)


def roll_target_curse(state: Dict[str, Any]) -> None:
    pending = _pending(state)
    pending["depth"] = int(pending.get("depth", 0) or 0) + 1
    if pending["depth"] > MAX_CURSE_DEPTH:
        logger.warning("Curse chain exceeded %d rolls in room %s; dropping it", MAX_CURSE_DEPTH, state.get("room"))
        add_log(state, "Curse chain ran too deep; dropping it")
        start_curse_chain(state)
        state["phase"] = phase_after_curses(state)
        return

    r = dice.roll()
    entry = resolve_breakpoint(TARGET_CURSES, r)
    if state.get("mode") == "hard" and entry.mechanics.no_effect:
        r = dice.roll()
        entry = resolve_breakpoint(TARGET_CURSES, r)
        add_log(state, f"Hard Mode re-roll: {r}")
    add_log(state, f"Target Curse Roll: {r} → {entry.text}")

    m = entry.mechanics
    room = state.get("room", 1)
    pending["targets"] = []
    pending["split_target"] = None

    if m.reroll_twice:
        pending["chained_target_curses"] = int(pending.get("chained_target_curses", 0) or 0) + 2
        _next_chained_curse(state)
        return

    if m.apply_last_curse:
        if not state.get("curses"):
            add_log(state, "No earlier curse to repeat")
            state["current_curse"] = None
            finish_curse_flow(state)
            return
        last = state["curses"][-1]
        state["current_curse"] = _curse("Target Curse", r, last["effect"], entry.id, room)
        if available_tracks(state):
            state["phase"] = "curse-apply-last-select"
            add_log(state, f"Choose a track for: {last['effect']}")
        else:
            state["phase"] = "curse-result"
        return

    state["current_curse"] = _curse("Target Curse", r, entry.text, entry.id, room)

    if m.no_effect:
        state["phase"] = "curse-result"
        return

    marked = state.get("curse_target_track_index")
    if marked is not None and is_available(state, marked):
        add_log(state, f"Track {marked + 1} is marked as the curse target")
        pending["targets"] = [marked]
        state["phase"] = "curse-result"
        return

    _land(state, resolve_targets(state))


def roll_mix_curse(state: Dict[str, Any]) -> None:
    pending = _pending(state)
    r = dice.roll()
    entry = resolve_breakpoint(MIX_CURSES, r)
    room = int(state.get("room", 1))
    if entry.mechanics.min_room and room < entry.mechanics.min_room:
        r = dice.roll()
        entry = resolve_breakpoint(MIX_CURSES, r)
        add_log(state, f"Re-rolling Mix Curse (too early in the run): {r}")

    add_log(state, f"Mix Curse Roll: {r} → {entry.text}")
    state["current_curse"] = _curse("Mix Curse", r, entry.text, entry.id, room)
    pending["targets"] = []

    m = entry.mechanics
    if m.last_room:
        state["is_last_room"] = True
    if m.roll_target_curses:
        pending["chained_target_curses"] = int(pending.get("chained_target_curses", 0) or 0) + m.roll_target_curses
    state["phase"] = "curse-result"


def _next_chained_curse(state: Dict[str, Any]) -> None:
    pending = _pending(state)
    pending["chained_target_curses"] = max(0, int(pending.get("chained_target_curses", 0) or 0) - 1)
    state["current_curse"] = None
    state["split_wound_active"] = False
    roll_target_curse(state)


def _land(state: Dict[str, Any], resolution: TargetResolution) -> None:
    pending = _pending(state)
    pending["targets"] = list(resolution.targets)
    if resolution.status == "awaiting":
        pending["method"] = resolution.method
        pending["method_roll"] = resolution.method_roll
        pending["remaining_methods"] = resolution.remaining
        state["phase"] = "curse-target-select"
        add_log(state, f"Choose the {resolution.method} track")
        return
    pending["method"] = None
    pending["method_roll"] = None
    pending["remaining_methods"] = 0
    state["phase"] = "curse-result"


def finish_curse_flow(state: Dict[str, Any]) -> None:
    """
    Leave the curse chain: next owed Target Curse first, then compose if the
    mutation is being skipped this room, else mutation.
    """
    pending = _pending(state)
    if int(pending.get("chained_target_curses", 0) or 0) > 0:
        _next_chained_curse(state)
        return
    start_curse_chain(state)
    state["split_wound_active"] = False
    state["phase"] = phase_after_curses(state)


def select_curse_target(state: Dict[str, Any], index: int) -> None:
    if not in_phase(state, "curse-target-select") or not state.get("current_curse"):
        return
    if not is_available(state, index):
        return
    pending = _pending(state)
    add_log(state, f"Picked track {index + 1} as the {pending.get('method')} track")
    targets: List[int] = list(pending.get("targets") or [])
    targets.append(apply_offset(state, index))
    remaining = int(pending.get("remaining_methods", 0) or 0)
    if remaining > 0:
        _land(state, resolve_targets(state, remaining, targets, expanded=True))
    else:
        _land(state, TargetResolution(status="resolved", targets=dedupe(targets)))


def select_apply_last_curse_target(state: Dict[str, Any], index: int) -> None:
    if not in_phase(state, "curse-apply-last-select") or not state.get("current_curse"):
        return
    if not is_available(state, index):
        return
    _pending(state)["targets"] = [index]
    add_log(state, f"Lingering curse lands on track {index + 1}")
    state["phase"] = "curse-result"


def split_candidates(state: Dict[str, Any]) -> List[int]:
    curse = state.get("current_curse")
    if not curse or curse.get("type") != "Target Curse":
        return []
    targets = set(_pending(state).get("targets") or [])
    return [i for i in available_tracks(state) if i not in targets]


def select_split_wound_target(state: Dict[str, Any], index: int) -> None:
    if not in_phase(state, "split-wound-select") or not state.get("current_curse"):
        return
    if index not in split_candidates(state):
        return
    _pending(state)["split_target"] = index
    state["split_wound_active"] = True
    add_log(state, f"Split the Wound: track {index + 1} shares the curse")
    state["phase"] = "curse-result"


def accept_curse(state: Dict[str, Any]) -> None:
    if not in_phase(state, "curse-result") or not state.get("current_curse"):
        return
    curse = dict(state["current_curse"])
    pending = _pending(state)
    m = _mechanics(curse)
    half = bool(state.get("split_wound_active"))

    targets = [i for i in pending.get("targets") or [] if is_available(state, i)]
    split = pending.get("split_target")
    if half and split is not None and split not in targets and is_available(state, split):
        targets.append(split)

    text = curse["effect"] + (HALF_STRENGTH_SUFFIX if half else "")
    tracks = state.get("tracks", [])
    for idx in targets:
        track = tracks[idx]
        track.setdefault("curses", []).append(text)
        if m.delete_track and not half and not track.get("deleted"):
            track["deleted"] = True
            add_log(state, f"Track {idx + 1} deleted")

    curse.update({
        "targets": targets,
        "half_strength": half,
        "marked": False,
        "previous_curse_target": state.get("curse_target_track_index"),
    })
    state.setdefault("curses", []).append(curse)
    where = ", ".join(f"track {i + 1}" for i in targets)
    add_log(state, f"{curse['type']} accepted: {text}" + (f" ({where})" if where else ""))

    if m.force_room:
        state["forced_rooms"] = int(state.get("forced_rooms", 0) or 0) + 1
        add_log(state, "A Room has been forced")
    if m.force_room_chance:
        r = dice.roll()
        if r > 100 - m.force_room_chance:
            state["forced_rooms"] = int(state.get("forced_rooms", 0) or 0) + 1
            add_log(state, f"Forced Room roll: {r} → another Room is forced")
        else:
            add_log(state, f"Forced Room roll: {r} → spared")
    if m.double_mutation_next_room:
        state["double_mutation_next_room"] = True
        add_log(state, "Next room rolls two mutations")
    if m.becomes_curse_target and not half and targets:
        state["curse_target_track_index"] = targets[0]
        curse["marked"] = True
        add_log(state, f"Track {targets[0] + 1} is now the curse target")

    finish_curse_flow(state)
