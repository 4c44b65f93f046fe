from __future__ import annotations

import logging
from typing import Any, Dict, List

from rules.curses import HALF_STRENGTH_SUFFIX, roll_target_curse, split_candidates, start_curse_chain
from rules.state import add_log, in_phase, is_active


logger = logging.getLogger(__name__)

POWER_UP_TYPES = ("redirect", "lock", "painshift", "split", "breath")

POWER_UP_NAMES = {
    "redirect": "Curse Redirect",
    "lock": "Room Lock",
    "painshift": "Pain Shift",
    "split": "Split the Wound",
    "breath": "One Last Breath",
}

USABLE_PHASES = ("curse-check", "mutation", "curse-result")
PAIN_SHIFT_MIN_ROOM = 4


def lock_candidates(state: Dict[str, Any]) -> List[int]:
    return [i for i, t in enumerate(state.get("tracks", [])) if not t.get("deleted")]


def can_use_power_up(state: Dict[str, Any], power_up: str) -> bool:
    if not is_active(state) or power_up not in POWER_UP_TYPES:
        return False
    if int(state.get("power_ups", 0) or 0) <= 0 or state.get("used_power_up_this_room"):
        return False
    phase = state.get("phase")
    if phase not in USABLE_PHASES:
        return False

    if power_up == "redirect":
        return phase == "curse-result"
    if power_up == "lock":
        return not state.get("used_room_lock") and bool(lock_candidates(state))
    if power_up == "painshift":
        return int(state.get("room", 1)) >= PAIN_SHIFT_MIN_ROOM
    if power_up == "split":
        return phase == "curse-result" and bool(split_candidates(state))
    if power_up == "breath":
        return not state.get("used_one_last_breath")
    return False


def usable_power_ups(state: Dict[str, Any]) -> List[str]:
    return [p for p in POWER_UP_TYPES if can_use_power_up(state, p)]


def _spend(state: Dict[str, Any], power_up: str) -> None:
    state["power_ups"] = max(0, int(state.get("power_ups", 0) or 0) - 1)
    state["used_power_up_this_room"] = True
    if state.get("conditional_power_up_active"):
        state["conditional_power_up_active"] = False
    add_log(state, f"Power-Up: {POWER_UP_NAMES[power_up]}")


def use_power_up(state: Dict[str, Any], power_up: str) -> None:
    """
    Spend one power-up. Anything that fails its guard is a no-op.
    """
    power_up = str(power_up or "").strip().lower()
    if not can_use_power_up(state, power_up):
        logger.debug("Power-up %r refused in phase %s", power_up, (state or {}).get("phase"))
        return
    _spend(state, power_up)

    # A Bargain still costs the room its mutation after a redirect.
    if power_up == "redirect":
        add_log(state, "Curse discarded; rolling the curse check again")
        start_curse_chain(state)
        state["split_wound_active"] = False
        state["phase"] = "curse-check"
        return

    if power_up == "lock":
        candidates = lock_candidates(state)
        state["resume_phase"] = state.get("phase")
        state["phase"] = "room-lock-select"
        add_log(state, f"Choose a track to lock (latest: track {candidates[-1] + 1})")
        return

    if power_up == "painshift":
        state["pain_shift_active"] = True
        if state.get("phase") == "curse-result":
            add_log(state, "The current curse stands; this room skips its mutation")
            return
        add_log(state, "No mutation this room; a Target Curse strikes now")
        start_curse_chain(state)
        roll_target_curse(state)
        return

    if power_up == "split":
        state["phase"] = "split-wound-select"
        add_log(state, "Choose a second track to share the curse at half strength")
        return

    if power_up == "breath":
        state["used_one_last_breath"] = True
        state["pending_last_room"] = True
        reverse_last_curse(state)
        add_log(state, "The next room will be the final room")


def reverse_last_curse(state: Dict[str, Any]) -> None:
    """
    Drop the latest committed curse and its text from the tracks it hit.
    A mark it set is undone. Deleted tracks stay deleted.
    """
    curses = state.get("curses") or []
    if not curses:
        add_log(state, "No curse to reverse")
        return
    curse = curses.pop()
    text = curse.get("effect", "")
    if curse.get("half_strength"):
        text += HALF_STRENGTH_SUFFIX
    tracks = state.get("tracks", [])
    for idx in curse.get("targets") or []:
        if not (0 <= idx < len(tracks)):
            continue
        track_curses = tracks[idx].get("curses", [])
        for i in range(len(track_curses) - 1, -1, -1):
            if track_curses[i] == text:
                del track_curses[i]
                break
    if curse.get("marked"):
        state["curse_target_track_index"] = curse.get("previous_curse_target")
    add_log(state, f"Reversed curse: {curse.get('effect')}")


def select_room_lock_target(state: Dict[str, Any], index: int) -> None:
    if not in_phase(state, "room-lock-select") or state.get("used_room_lock"):
        return
    if index not in lock_candidates(state):
        return
    state["room_lock_track"] = index
    state["used_room_lock"] = True
    pending = state.get("pending_curse") or {}
    if index in (pending.get("targets") or []):
        pending["targets"] = [i for i in pending["targets"] if i != index]
    if pending.get("split_target") == index:
        pending["split_target"] = None
        state["split_wound_active"] = False
    add_log(state, f"Room Lock: track {index + 1} is protected")
    state["phase"] = state.get("resume_phase") or "curse-check"
    state["resume_phase"] = None
