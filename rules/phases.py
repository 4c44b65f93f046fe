from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Dict, List, Optional

from rules import dice
from rules.curses import accept_curse, roll_curse_check, select_apply_last_curse_target, select_curse_target
from rules.curses import select_split_wound_target, split_candidates
from rules.data import TRACK_TYPE_NAMES, TRACK_TYPES
from rules.mutations import accept_mutation, roll_mutation
from rules.powerups import lock_candidates, select_room_lock_target, use_power_up, usable_power_ups
from rules.state import add_log, available_tracks, create_track, in_phase, is_active, new_pending_curse, seeded_room
from rules.tables import resolve_range


logger = logging.getLogger(__name__)

POWER_UP_DOUBLE_FROM = 98
POWER_UP_CONDITIONAL_FROM = 86
POWER_UP_SINGLE_FROM = 76


def _start_track(state: Dict[str, Any], track_type: str) -> None:
    room = int(state.get("room", 1))
    state["current_track"] = create_track(room, track_type)
    if room == 1:
        add_log(state, "Room 1: Skipping curse check")
        state["phase"] = "mutation"
    else:
        state["phase"] = "curse-check"


def roll_track_type(state: Dict[str, Any]) -> None:
    if not in_phase(state, "track-type"):
        return
    seeded = seeded_room(state) if state.get("mode") == "seeded" else None
    if seeded and seeded.get("type_roll"):
        r = int(seeded["type_roll"])
        add_log(state, f"Seeded track type roll: {r}")
    else:
        r = dice.roll()
    track_type = resolve_range(TRACK_TYPES, r)
    add_log(state, f"Track Type Roll: {r} → {track_type}")
    _start_track(state, track_type)


def select_track_type(state: Dict[str, Any], track_type: Optional[str] = None) -> None:
    if not in_phase(state, "track-type") or track_type not in TRACK_TYPE_NAMES:
        return
    add_log(state, f"Track Type: {track_type} (manual)")
    _start_track(state, track_type)


def reselect_track_type(state: Dict[str, Any], track_type: Optional[str] = None) -> None:
    if not in_phase(state, "track-type-reselect") or not state.get("current_track"):
        return
    track = state["current_track"]
    if track_type not in TRACK_TYPE_NAMES or track_type == track.get("type"):
        return
    track["original_type"] = track.get("type")
    track["type"] = track_type
    state["pending_track_type_reselect"] = False
    add_log(state, f"Track type abandoned: {track['original_type']} → {track_type}")
    state["phase"] = "compose"


def finalize_room(state: Dict[str, Any]) -> None:
    if not in_phase(state, "compose") or not state.get("current_track"):
        return
    track = copy.deepcopy(state["current_track"])
    state.setdefault("tracks", []).append(track)
    state["current_track"] = None
    add_log(state, f"Track finalized: {track.get('type')}")
    state["phase"] = "next-room" if state.get("used_power_up_this_room") else "powerup-roll"


def roll_power_up(state: Dict[str, Any]) -> None:
    if not in_phase(state, "powerup-roll"):
        return
    if state.get("conditional_power_up_active") and not state.get("used_power_up_this_room"):
        add_log(state, "Power-Up roll blocked: a conditional Power-Up is still unspent")
        state["phase"] = "next-room"
        return

    r = dice.roll()
    add_log(state, f"Power-Up Roll: {r}")
    if r >= POWER_UP_DOUBLE_FROM:
        state["power_ups"] = int(state.get("power_ups", 0) or 0) + 2
        add_log(state, "Gained 2 Power-Ups!")
    elif r >= POWER_UP_CONDITIONAL_FROM:
        state["power_ups"] = int(state.get("power_ups", 0) or 0) + 1
        state["conditional_power_up_earned"] = True
        add_log(state, "Gained 1 Power-Up (use it next room or lose it)")
    elif r >= POWER_UP_SINGLE_FROM:
        state["power_ups"] = int(state.get("power_ups", 0) or 0) + 1
        add_log(state, "Gained 1 Power-Up")
    else:
        add_log(state, "No Power-Up gained")
    state["phase"] = "next-room"


def next_room(state: Dict[str, Any]) -> None:
    if not in_phase(state, "next-room"):
        return

    if state.get("conditional_power_up_active") and not state.get("used_power_up_this_room"):
        state["power_ups"] = max(0, int(state.get("power_ups", 0) or 0) - 1)
        add_log(state, "Conditional Power-Up forfeited")
    state["conditional_power_up_active"] = bool(state.get("conditional_power_up_earned"))
    state["conditional_power_up_earned"] = False

    if int(state.get("forced_rooms", 0) or 0) > 0:
        state["forced_rooms"] = int(state["forced_rooms"]) - 1
        add_log(state, f"Entering a forced Room ({state['forced_rooms']} left)")

    state["double_mutation_this_room"] = bool(state.get("double_mutation_next_room"))
    state["double_mutation_next_room"] = False

    if state.get("pending_last_room"):
        state["is_last_room"] = True
        state["pending_last_room"] = False

    state.update({
        "used_power_up_this_room": False,
        "current_track": None,
        "current_mutation": None,
        "current_curse": None,
        "pending_curse": new_pending_curse(),
        "timer_end_time": None,
        "pending_track_type_reselect": False,
        "split_wound_active": False,
        "pain_shift_active": False,
        "mutation_skipped": False,
        "resume_phase": None,
    })
    state["room"] = int(state.get("room", 1)) + 1
    state["phase"] = "track-type"
    add_log(state, f"Room {state['room']}" + (" (final room)" if state.get("is_last_room") else ""))


def end_run(state: Dict[str, Any]) -> None:
    if not in_phase(state, "next-room"):
        return
    forced = int(state.get("forced_rooms", 0) or 0)
    if forced > 0:
        add_log(state, f"Cannot end yet: {forced} forced Room(s) to play")
        return
    state["ended"] = True
    add_log(state, "Run ended")


COMMANDS: Dict[str, Callable[..., None]] = {
    "roll_track_type": roll_track_type,
    "select_track_type": select_track_type,
    "reselect_track_type": reselect_track_type,
    "roll_curse_check": roll_curse_check,
    "select_curse_target": select_curse_target,
    "select_apply_last_curse_target": select_apply_last_curse_target,
    "select_split_wound_target": select_split_wound_target,
    "select_room_lock_target": select_room_lock_target,
    "accept_curse": accept_curse,
    "roll_mutation": roll_mutation,
    "accept_mutation": accept_mutation,
    "finalize_room": finalize_room,
    "roll_power_up": roll_power_up,
    "next_room": next_room,
    "end_run": end_run,
    "use_power_up": use_power_up,
}

COMMAND_ARGS = {
    "select_track_type": ("track_type",),
    "reselect_track_type": ("track_type",),
    "select_curse_target": ("index",),
    "select_apply_last_curse_target": ("index",),
    "select_split_wound_target": ("index",),
    "select_room_lock_target": ("index",),
    "use_power_up": ("power_up",),
}

PHASE_COMMANDS = {
    "track-type": ["roll_track_type", "select_track_type"],
    "track-type-reselect": ["reselect_track_type"],
    "curse-check": ["roll_curse_check"],
    "curse-target-select": ["select_curse_target"],
    "curse-apply-last-select": ["select_apply_last_curse_target"],
    "split-wound-select": ["select_split_wound_target"],
    "room-lock-select": ["select_room_lock_target"],
    "curse-result": ["accept_curse"],
    "mutation": ["roll_mutation"],
    "mutation-result": ["accept_mutation"],
    "compose": ["finalize_room"],
    "powerup-roll": ["roll_power_up"],
    "next-room": ["next_room", "end_run"],
}


def dispatch(state: Optional[Dict[str, Any]], command: str, **kwargs: Any) -> List[str]:
    """
    Run one engine command against the run and return the log lines it wrote.
    Only the arguments a command takes are forwarded; anything missing is None.
    """
    handler = COMMANDS.get(command)
    if handler is None:
        raise ValueError(f"Unknown command: {command}")
    if not isinstance(state, dict):
        return []
    before = len(state.get("log", []))
    args = {name: kwargs.get(name) for name in COMMAND_ARGS.get(command, ())}
    handler(state, **args)
    return [entry["msg"] for entry in state.get("log", [])[before:]]


def selection_candidates(state: Dict[str, Any]) -> List[int]:
    phase = state.get("phase") if isinstance(state, dict) else None
    if phase in ("curse-target-select", "curse-apply-last-select"):
        return available_tracks(state)
    if phase == "split-wound-select":
        return split_candidates(state)
    if phase == "room-lock-select":
        return lock_candidates(state)
    return []


def allowed_commands(state: Optional[Dict[str, Any]]) -> List[str]:
    if not is_active(state):
        return []
    phase = state.get("phase")
    commands = list(PHASE_COMMANDS.get(phase, []))
    if phase == "track-type" and state.get("manual_track_type"):
        commands.reverse()
    return commands + [f"use_power_up:{p}" for p in usable_power_ups(state)]
