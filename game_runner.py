"""
game_runner.py
--------------
Hosting shell around the rules engine. A Game owns exactly one run at a time:
it creates, replaces and drops it, saves a snapshot after every command and
tells the UI what happened.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from rules.phases import dispatch
from rules.save_load import InvalidRunFile, RunStore, export_run, import_run
from rules.state import create_run
from rules.summary import check_end_conditions, run_summary
from ui.events import emit_log_lines, emit_state, emit_summary


logger = logging.getLogger(__name__)


class Game:
    def __init__(self, ui, store: Optional[RunStore] = None):
        if store is None:
            from game_context import STORE
            store = STORE
        self.ui = ui
        self.store = store
        self.state: Optional[Dict[str, Any]] = None
        self.summary: Optional[Dict[str, Any]] = None

    def _replace(self, state: Optional[Dict[str, Any]]) -> None:
        self.state = state
        self.summary = None

    def start(self, mode: str = "normal", manual_track_type: bool = False) -> Dict[str, Any]:
        self._replace(create_run(mode, manual_track_type))
        self.ui.system(f"New {self.state['mode']} run")
        emit_log_lines(self.ui, [e["msg"] for e in self.state["log"]])
        self.store.save(self.state)
        emit_state(self.ui, self.state)
        return self.state

    def continue_run(self) -> bool:
        state = self.store.load()
        if state is None:
            self.ui.error("No saved run to continue")
            return False
        self._replace(state)
        emit_state(self.ui, self.state)
        return True

    def import_file(self, data: bytes | str) -> bool:
        try:
            state = import_run(data)
        except InvalidRunFile as e:
            self.ui.error(str(e))
            return False
        self._replace(state)
        self.store.save(self.state)
        emit_state(self.ui, self.state)
        return True

    def export_file(self) -> Optional[bytes]:
        if self.state is None:
            return None
        return export_run(self.state)

    def new_run(self) -> None:
        self._replace(None)
        emit_state(self.ui, None)

    def step(self, player_input: Dict[str, Any]) -> List[str]:
        """
        Advance the run by one command. Non-blocking. Safe for web.
        Accepts {"command": ..., "index": ..., "track_type": ..., "power_up": ...};
        "use_power_up:<type>" is accepted as a command shorthand.
        """
        command = str(player_input.get("command") or "")
        args = {k: v for k, v in player_input.items() if k != "command"}
        if command.startswith("use_power_up:"):
            command, args["power_up"] = command.split(":", 1)

        if self.state is None:
            self.ui.error("No active run")
            return []
        if self.state.get("ended"):
            self.ui.error("The run is over")
            return []
        try:
            lines = dispatch(self.state, command, **args)
        except ValueError as e:
            self.ui.error(str(e))
            return []

        emit_log_lines(self.ui, lines)
        if check_end_conditions(self.state):
            self.state["ended"] = True
        if self.state.get("ended"):
            self.finish()
        else:
            self.store.save(self.state)
        emit_state(self.ui, self.state)
        return lines

    def finish(self) -> Dict[str, Any]:
        self.summary = run_summary(self.state)
        self.store.clear()
        logger.info("Run finished: %s", self.summary)
        emit_summary(self.ui, self.summary)
        return self.summary

    def handle_input(self, player_input: Dict[str, Any], session=None):
        """
        Adapter for GameSession; forwards to step().
        """
        return self.step(player_input)
