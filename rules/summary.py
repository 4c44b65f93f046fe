from __future__ import annotations

from typing import Any, Callable, Dict, List, Tuple


def _deleted(state: Dict[str, Any]) -> int:
    return sum(1 for t in state.get("tracks", []) if t.get("deleted"))


# (name, description, earned?)
RUN_TAGS: List[Tuple[str, str, Callable[[Dict[str, Any]], bool]]] = [
    ("Untouched", "Finished without a single curse", lambda s: not s.get("curses")),
    ("Survivor", "No track was deleted", lambda s: bool(s.get("tracks")) and _deleted(s) == 0),
    ("Scorched Earth", "Lost three or more tracks", lambda s: _deleted(s) >= 3),
    ("Hexed", "Took five or more curses", lambda s: len(s.get("curses", [])) >= 5),
    ("Hoarder", "Ended with three or more power-ups", lambda s: int(s.get("power_ups", 0) or 0) >= 3),
    ("Marathon", "Reached room 10", lambda s: int(s.get("room", 1)) >= 10),
    ("Last Gasp", "Used One Last Breath", lambda s: bool(s.get("used_one_last_breath"))),
    ("Shielded", "Locked a room", lambda s: s.get("room_lock_track") is not None),
]


def earned_tags(state: Dict[str, Any]) -> List[str]:
    return [name for name, _, earned in RUN_TAGS if earned(state)]


def check_end_conditions(state: Dict[str, Any]) -> bool:
    """
    True once a finished room closes the run: quick runs, the last room, or a
    seeded run out of pre-rolled rooms. Forced rooms keep it going.
    """
    if not isinstance(state, dict) or state.get("ended") or state.get("phase") != "next-room":
        return False
    if int(state.get("forced_rooms", 0) or 0) > 0:
        return False
    if state.get("mode") == "quick" or state.get("is_last_room"):
        return True
    if state.get("mode") == "seeded":
        rooms = state.get("seeded_rooms") or []
        return int(state.get("room", 1)) >= len(rooms)
    return False


def run_summary(state: Dict[str, Any]) -> Dict[str, Any]:
    tracks = state.get("tracks", [])
    return {
        "mode": state.get("mode"),
        "rooms": state.get("room"),
        "tracks": len(tracks),
        "deleted_tracks": _deleted(state),
        "curses": len(state.get("curses", [])),
        "mutations": len(state.get("mutations", [])),
        "power_ups": state.get("power_ups", 0),
        "tags": earned_tags(state),
    }
