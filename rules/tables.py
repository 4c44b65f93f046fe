from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple


ROLL_MIN = 1
ROLL_MAX = 100

RangeTable = Sequence[Tuple[int, int, Any]]


@dataclass(frozen=True)
class Mechanics:
    """
    Special behaviour attached to a rule table entry.
    Everything defaults to "plain text effect".
    """
    no_effect: bool = False

    # mutations
    reroll_on_room_one: bool = False
    no_mutation_on_room_one: bool = False
    roll_twice: bool = False
    repeat_last_mutation: bool = False
    delete_if_high_roll: Optional[int] = None
    take_curse_instead: bool = False
    abandon_track_type: bool = False
    copy_previous_type: bool = False
    timer_minutes: Optional[int] = None

    # target curses
    reroll_twice: bool = False
    apply_last_curse: bool = False
    delete_track: bool = False
    force_room: bool = False
    force_room_chance: Optional[int] = None
    double_mutation_next_room: bool = False
    becomes_curse_target: bool = False

    # mix curses
    min_room: Optional[int] = None
    last_room: bool = False
    roll_target_curses: int = 0


@dataclass(frozen=True)
class TableEntry:
    id: str
    text: str
    mechanics: Mechanics = field(default_factory=Mechanics)


def resolve_range(table: RangeTable, roll_value: int) -> Any:
    """
    Contiguous [low, high] table lookup. Falls back to the last row when nothing
    matches, which only happens for an incomplete table.
    """
    for low, high, value in table:
        if low <= roll_value <= high:
            return value
    return table[-1][2]


def _breakpoints(table: Dict[int, TableEntry]) -> List[int]:
    return sorted(int(k) for k in table.keys())


def resolve_breakpoint(table: Dict[int, TableEntry], roll_value: int) -> TableEntry:
    """
    Sparse table keyed by breakpoints: an entry applies from its key up to the
    next key. The last key runs through 100.
    """
    keys = _breakpoints(table)
    for i, key in enumerate(keys):
        next_key = keys[i + 1] if i + 1 < len(keys) else ROLL_MAX + 1
        if key <= roll_value < next_key:
            return table[key]
    # below the first breakpoint
    return table[keys[0]] if roll_value < keys[0] else table[keys[-1]]


def breakpoint_span(table: Dict[int, TableEntry], entry_id: str) -> Optional[Tuple[int, int]]:
    keys = _breakpoints(table)
    for i, key in enumerate(keys):
        if table[key].id == entry_id:
            high = keys[i + 1] - 1 if i + 1 < len(keys) else ROLL_MAX
            return key, high
    return None


def coverage_gaps(table: Any) -> List[int]:
    """
    Rolls in [1, 100] that a table does not cover.
    Works for both range tables and breakpoint tables.
    """
    if isinstance(table, dict):
        keys = _breakpoints(table)
        if not keys:
            return list(range(ROLL_MIN, ROLL_MAX + 1))
        return list(range(ROLL_MIN, keys[0]))
    covered = set()
    for low, high, _ in table:
        covered.update(range(int(low), int(high) + 1))
    return [r for r in range(ROLL_MIN, ROLL_MAX + 1) if r not in covered]


def index_entries(*tables: Dict[int, TableEntry]) -> Dict[str, TableEntry]:
    by_id: Dict[str, TableEntry] = {}
    for table in tables:
        for entry in table.values():
            by_id[entry.id] = entry
    return by_id
