from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

from rules import dice
from rules.data import MUTATIONS, TRACK_TYPES
from rules.tables import resolve_breakpoint, resolve_range


logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1

MODES = ("normal", "hard", "casual", "cursed", "seeded", "quick")

PHASES = (
    "track-type",
    "track-type-reselect",
    "curse-check",
    "curse-target-select",
    "curse-apply-last-select",
    "split-wound-select",
    "room-lock-select",
    "curse-result",
    "mutation",
    "mutation-result",
    "compose",
    "powerup-roll",
    "next-room",
)

SEEDED_MAX_ROOMS = 10


def new_pending_curse() -> Dict[str, Any]:
    return {
        "targets": [],
        "method": None,
        "method_roll": None,
        "remaining_methods": 0,
        "chained_target_curses": 0,
        "depth": 0,
        "split_target": None,
    }


def create_run(mode: str = "normal", manual_track_type: bool = False) -> Dict[str, Any]:
    """
    Fresh run at room 1. Unknown modes fall back to normal.
    Seeded runs pre-roll their rooms here.
    """
    mode = str(mode or "normal").strip().lower()
    if mode not in MODES:
        mode = "normal"
    state: Dict[str, Any] = {
        "version": SNAPSHOT_VERSION,
        "mode": mode,
        "manual_track_type": bool(manual_track_type),
        "room": 1,
        "phase": "track-type",
        "resume_phase": None,
        "power_ups": 0,
        "used_power_up_this_room": False,
        "conditional_power_up_earned": False,
        "conditional_power_up_active": False,
        "room_lock_track": None,
        "used_room_lock": False,
        "used_one_last_breath": False,
        "forced_rooms": 0,
        "is_last_room": False,
        "pending_last_room": False,
        "double_mutation_next_room": False,
        "double_mutation_this_room": False,
        "curse_target_track_index": None,
        "timer_end_time": None,
        "pending_track_type_reselect": False,
        "split_wound_active": False,
        "pain_shift_active": False,
        "mutation_skipped": False,
        "casual_first_curse_ignored": False,
        "tracks": [],
        "curses": [],
        "mutations": [],
        "log": [],
        "current_track": None,
        "current_mutation": None,
        "current_curse": None,
        "pending_curse": new_pending_curse(),
        "seeded_rooms": None,
        "ended": False,
    }
    if mode == "seeded":
        seed_rooms(state)
    return state


def seed_rooms(state: Dict[str, Any]) -> None:
    count = dice.roll(SEEDED_MAX_ROOMS) or 1
    rooms = []
    for _ in range(count):
        type_roll = dice.roll()
        mutation_roll = dice.roll()
        rooms.append({
            "type_roll": type_roll,
            "type": resolve_range(TRACK_TYPES, type_roll),
            "mutation_roll": mutation_roll,
            "mutation": resolve_breakpoint(MUTATIONS, mutation_roll).text,
        })
    state["seeded_rooms"] = rooms
    add_log(state, f"Seeded Run: {count} rooms pre-rolled")


def seeded_room(state: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    rooms = state.get("seeded_rooms") or []
    idx = int(state.get("room", 1)) - 1
    if 0 <= idx < len(rooms):
        return rooms[idx]
    return None


def create_track(room: int, track_type: str) -> Dict[str, Any]:
    return {
        "room": room,
        "type": track_type,
        "original_type": None,
        "mutations": [],
        "curses": [],
        "deleted": False,
    }


def add_log(state: Dict[str, Any], msg: str) -> Dict[str, Any]:
    entry = {
        "room": state.get("room", 1),
        "msg": msg,
        "time": int(time.time() * 1000),
    }
    state.setdefault("log", []).append(entry)
    logger.debug("[room %s] %s", entry["room"], msg)
    return entry


def is_active(state: Optional[Dict[str, Any]]) -> bool:
    return isinstance(state, dict) and not state.get("ended")


def in_phase(state: Optional[Dict[str, Any]], *phases: str) -> bool:
    return is_active(state) and state.get("phase") in phases


def available_tracks(state: Dict[str, Any]) -> List[int]:
    """
    Indices of committed tracks a curse may land on:
    not deleted and not room-locked.
    """
    locked = state.get("room_lock_track")
    return [
        i for i, track in enumerate(state.get("tracks", []))
        if not track.get("deleted") and i != locked
    ]


def is_available(state: Dict[str, Any], index: Any) -> bool:
    return isinstance(index, int) and index in available_tracks(state)


def timer_remaining(state: Dict[str, Any], now: Optional[float] = None) -> Optional[float]:
    end = state.get("timer_end_time") if isinstance(state, dict) else None
    if end is None:
        return None
    now = time.time() if now is None else now
    return max(0.0, float(end) - float(now))


def format_timer(remaining: Optional[float]) -> str:
    if remaining is None:
        return ""
    if remaining <= 0:
        return "TIME UP!"
    total = int(remaining)
    return f"{total // 60}:{total % 60:02d}"
