"""
Shared UI event emitters.
Works for both CLI and Web providers by probing for a session.emit hook.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from rules.phases import allowed_commands, selection_candidates
from rules.powerups import POWER_UP_NAMES, POWER_UP_TYPES, can_use_power_up
from rules.state import format_timer, timer_remaining


logger = logging.getLogger(__name__)

LOG_WINDOW = 50


def emit_event(ui, payload: Dict[str, Any]) -> None:
    """
    Best-effort emit of structured events for non-blocking UIs.
    Does nothing for the CLI.
    """
    session = getattr(ui, "session", None)
    if session is not None and hasattr(session, "emit"):
        session.emit(payload)


def build_track_rows(state: Dict[str, Any]) -> List[Dict[str, Any]]:
    rows = []
    for i, track in enumerate(state.get("tracks", [])):
        badges = [f"M: {m}" for m in track.get("mutations", [])]
        badges += [f"C: {c}" for c in track.get("curses", [])]
        if state.get("room_lock_track") == i:
            badges.append("LOCKED")
        if state.get("curse_target_track_index") == i:
            badges.append("CURSE TARGET")
        header = f"Room {track.get('room')}: {track.get('type')}"
        if track.get("original_type"):
            header += f" (was {track['original_type']})"
        if track.get("deleted"):
            header += " [DELETED]"
        rows.append({
            "index": i,
            "header": header,
            "badges": badges,
            "cursed": bool(track.get("curses")),
            "deleted": bool(track.get("deleted")),
        })
    return rows


def build_power_up_panel(state: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "count": int(state.get("power_ups", 0) or 0),
        "conditional": bool(state.get("conditional_power_up_active")),
        "buttons": [
            {"type": p, "name": POWER_UP_NAMES[p], "enabled": can_use_power_up(state, p)}
            for p in POWER_UP_TYPES
        ],
    }


def build_state_payload(state: Optional[Dict[str, Any]], now: Optional[float] = None) -> Dict[str, Any]:
    if not isinstance(state, dict):
        return {"type": "state", "run": None}
    remaining = timer_remaining(state, now)
    log = state.get("log", [])
    return {
        "type": "state",
        "run": {
            "room": state.get("room"),
            "mode": state.get("mode"),
            "phase": state.get("phase"),
            "ended": bool(state.get("ended")),
            "is_last_room": bool(state.get("is_last_room")),
            "forced_rooms": int(state.get("forced_rooms", 0) or 0),
            "double_mutation": bool(state.get("double_mutation_this_room")),
            "current_track": state.get("current_track"),
            "current_mutation": state.get("current_mutation"),
            "current_curse": state.get("current_curse"),
            "pending_targets": list((state.get("pending_curse") or {}).get("targets") or []),
        },
        "tracks": build_track_rows(state),
        "log": [f"R{e.get('room')}: {e.get('msg')}" for e in reversed(log[-LOG_WINDOW:])],
        "powerUps": build_power_up_panel(state),
        "timer": {"remaining": remaining, "display": format_timer(remaining)},
        "commands": allowed_commands(state),
        "candidates": selection_candidates(state),
    }


def emit_state(ui, state: Optional[Dict[str, Any]]) -> None:
    emit_event(ui, build_state_payload(state))


def emit_log_lines(ui, lines: List[str]) -> None:
    for line in lines:
        ui.log(line)


def emit_summary(ui, summary: Dict[str, Any]) -> None:
    emit_event(ui, {"type": "summary", "summary": summary})
    ui.system(
        f"Run over. Rooms: {summary.get('rooms')}  Tracks: {summary.get('tracks')}  "
        f"Curses: {summary.get('curses')}  Mode: {summary.get('mode')}"
    )
    if summary.get("tags"):
        ui.system("Tags: " + ", ".join(summary["tags"]))
