from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from rules import dice
from rules.data import MANUAL_TARGET_METHODS, TARGET_METHODS, TARGET_OFFSETS
from rules.state import add_log, available_tracks
from rules.tables import resolve_range


@dataclass
class TargetResolution:
    status: str  # "resolved" | "awaiting"
    targets: List[int] = field(default_factory=list)
    method: Optional[str] = None
    method_roll: Optional[int] = None
    remaining: int = 0


def dedupe(indices: List[int]) -> List[int]:
    seen = set()
    out = []
    for idx in indices:
        if idx in seen:
            continue
        seen.add(idx)
        out.append(idx)
    return out


def anchor_for(state: Dict[str, Any], method: str) -> Optional[int]:
    available = available_tracks(state)
    if not available:
        return None
    if method == "previous":
        return available[-1]
    if method == "oldest":
        return available[0]
    return None


def apply_offset(state: Dict[str, Any], anchor: int) -> int:
    """
    Second die. A slide that leaves the track list or lands on a deleted or
    locked track is dropped and the anchor itself is cursed.
    """
    r = dice.roll()
    offset = resolve_range(TARGET_OFFSETS, r)
    if offset == 0:
        add_log(state, f"Target Offset Roll: {r} → stays on track {anchor + 1}")
        return anchor
    idx = anchor + offset
    if idx not in available_tracks(state):
        add_log(state, f"Target Offset Roll: {r} → {offset:+d} unavailable, stays on track {anchor + 1}")
        return anchor
    add_log(state, f"Target Offset Roll: {r} → {offset:+d}, track {idx + 1}")
    return idx


def resolve_targets(
    state: Dict[str, Any],
    count: int = 1,
    targets: Optional[List[int]] = None,
    expanded: bool = False,
) -> TargetResolution:
    """
    Two-die curse targeting.

    Each method roll picks an anchor (previous/oldest) and then slides it with
    the offset die. Loudest/quietest/player-choice cannot be decided here, so
    the resolver stops and reports "awaiting" with everything resolved so far
    plus how many method rolls are still owed. Two-targets expands into two
    more method rolls once; a nested two-targets falls back to previous.
    """
    resolved = list(targets or [])
    todo = int(count)
    while todo > 0:
        todo -= 1
        r = dice.roll()
        method = resolve_range(TARGET_METHODS, r)
        add_log(state, f"Target Method Roll: {r} → {method}")

        if method == "two-targets":
            if expanded:
                add_log(state, "Nested Two Targets: falling back to previous")
                method = "previous"
            else:
                expanded = True
                todo += 2
                continue

        if not available_tracks(state):
            add_log(state, "No track available to curse")
            continue

        if method in MANUAL_TARGET_METHODS:
            return TargetResolution(
                status="awaiting",
                targets=dedupe(resolved),
                method=method,
                method_roll=r,
                remaining=todo,
            )

        anchor = anchor_for(state, method)
        if anchor is None:
            continue
        resolved.append(apply_offset(state, anchor))

    return TargetResolution(status="resolved", targets=dedupe(resolved))
