"""
Load/save and import/export for run snapshots.

A run is saved whole, as JSON, under one fixed key in the save directory.
Last write wins. Anything unreadable on load counts as "no saved run".
Imports are validated in full before anything is handed back.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError

from rules.state import MODES, PHASES, SNAPSHOT_VERSION


logger = logging.getLogger(__name__)

STORAGE_KEY = "superbeatmaker"

Mode = Literal[MODES]  # type: ignore[valid-type]
Phase = Literal[PHASES]  # type: ignore[valid-type]


class InvalidRunFile(ValueError):
    def __init__(self, message: str = "Invalid file"):
        super().__init__(message)


class TrackModel(BaseModel):
    room: int = Field(ge=1)
    type: str
    original_type: Optional[str] = None
    mutations: List[str] = Field(default_factory=list)
    curses: List[str] = Field(default_factory=list)
    deleted: bool = False


class CurseModel(BaseModel):
    type: Literal["Target Curse", "Mix Curse"]
    roll: int
    effect: str
    entry: Optional[str] = None
    room: Optional[int] = None
    targets: List[int] = Field(default_factory=list)
    half_strength: bool = False
    marked: bool = False
    previous_curse_target: Optional[int] = None


class MutationModel(BaseModel):
    roll: int
    effect: str
    kind: Literal["normal", "no_effect", "delete_track", "take_curse"] = "normal"
    entries: List[str] = Field(default_factory=list)


class LogEntryModel(BaseModel):
    room: int
    msg: str
    time: int


class PendingCurseModel(BaseModel):
    targets: List[int] = Field(default_factory=list)
    method: Optional[str] = None
    method_roll: Optional[int] = None
    remaining_methods: int = 0
    chained_target_curses: int = Field(default=0, ge=0)
    depth: int = 0
    split_target: Optional[int] = None


class SeededRoomModel(BaseModel):
    type_roll: Optional[int] = None
    type: str
    mutation_roll: Optional[int] = None
    mutation: str


class RunSnapshot(BaseModel):
    version: int = SNAPSHOT_VERSION
    mode: Mode
    manual_track_type: bool = False
    room: int = Field(ge=1)
    phase: Phase
    resume_phase: Optional[Phase] = None
    power_ups: int = Field(default=0, ge=0)
    used_power_up_this_room: bool = False
    conditional_power_up_earned: bool = False
    conditional_power_up_active: bool = False
    room_lock_track: Optional[int] = None
    used_room_lock: bool = False
    used_one_last_breath: bool = False
    forced_rooms: int = Field(default=0, ge=0)
    is_last_room: bool = False
    pending_last_room: bool = False
    double_mutation_next_room: bool = False
    double_mutation_this_room: bool = False
    curse_target_track_index: Optional[int] = None
    timer_end_time: Optional[float] = None
    pending_track_type_reselect: bool = False
    split_wound_active: bool = False
    pain_shift_active: bool = False
    mutation_skipped: bool = False
    casual_first_curse_ignored: bool = False
    tracks: List[TrackModel] = Field(default_factory=list)
    curses: List[CurseModel] = Field(default_factory=list)
    mutations: List[MutationModel] = Field(default_factory=list)
    log: List[LogEntryModel] = Field(default_factory=list)
    current_track: Optional[TrackModel] = None
    current_mutation: Optional[MutationModel] = None
    current_curse: Optional[CurseModel] = None
    pending_curse: PendingCurseModel = Field(default_factory=PendingCurseModel)
    seeded_rooms: Optional[List[SeededRoomModel]] = None
    ended: bool = False


def validate_run(data: Any) -> Dict[str, Any]:
    """
    Full parse of a snapshot. Returns a normalized run dict or raises
    ValidationError.
    """
    return RunSnapshot.model_validate(data).model_dump()


class RunStore:
    """
    Local key/value store for the one saved run.
    """

    def __init__(self, directory: str | Path, key: str = STORAGE_KEY):
        self.directory = Path(directory)
        self.key = key

    @property
    def path(self) -> Path:
        return self.directory / f"{self.key}.json"

    def has_saved_run(self) -> bool:
        return self.path.exists()

    def load(self) -> Optional[Dict[str, Any]]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return validate_run(data)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
            logger.warning("Saved run at %s is unreadable; ignoring it (%s)", self.path, e)
            return None

    def save(self, state: Dict[str, Any]) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        tmp_fd, tmp_path = tempfile.mkstemp(prefix="save_", suffix=".tmp", dir=str(self.directory))
        try:
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
                json.dump(state, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass


def export_run(state: Dict[str, Any]) -> bytes:
    return json.dumps(state, ensure_ascii=False, indent=2).encode("utf-8")


def export_filename(now: Optional[float] = None) -> str:
    now = time.time() if now is None else now
    return f"{STORAGE_KEY}-run-{int(now * 1000)}.json"


def import_run(data: bytes | str) -> Dict[str, Any]:
    """
    Parse an exported run. Any failure becomes InvalidRunFile; nothing is
    returned unless the whole snapshot parsed.
    """
    try:
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        return validate_run(json.loads(data))
    except (UnicodeDecodeError, json.JSONDecodeError, ValidationError, TypeError) as e:
        logger.warning("Rejected run import: %s", e)
        raise InvalidRunFile() from e

