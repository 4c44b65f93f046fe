import argparse
import logging
from pathlib import Path

import game_context
from game_runner import Game
from rules.data import TRACK_TYPE_NAMES
from rules.phases import allowed_commands, selection_candidates
from rules.powerups import POWER_UP_NAMES
from rules.save_load import RunStore
from rules.state import MODES, format_timer, timer_remaining
from ui.cli_provider import CLIProvider
from ui.events import build_track_rows


logger = logging.getLogger(__name__)

QUIT = "quit (run stays saved)"

COMMAND_LABELS = {
    "roll_track_type": "Roll track type",
    "select_track_type": "Choose track type",
    "reselect_track_type": "Choose a new track type",
    "roll_curse_check": "Roll curse check",
    "select_curse_target": "Choose curse target",
    "select_apply_last_curse_target": "Choose where the last curse lands",
    "select_split_wound_target": "Choose track to share the curse",
    "select_room_lock_target": "Choose track to lock",
    "accept_curse": "Accept curse",
    "roll_mutation": "Roll mutation",
    "accept_mutation": "Accept mutation",
    "finalize_room": "Finish track",
    "roll_power_up": "Roll for Power-Up",
    "next_room": "Next room",
    "end_run": "End run",
}

INDEX_COMMANDS = {
    "select_curse_target",
    "select_apply_last_curse_target",
    "select_split_wound_target",
    "select_room_lock_target",
}

TYPE_COMMANDS = {"select_track_type", "reselect_track_type"}


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="SuperBeatMaker: a beatmaking roguelike.")
    parser.add_argument("--mode", choices=MODES, default="normal", help="Game mode for a new run.")
    parser.add_argument("--manual", action="store_true", help="Choose track types instead of rolling them.")
    parser.add_argument("--continue", dest="resume", action="store_true", help="Resume the saved run.")
    parser.add_argument("--import", dest="import_file", metavar="FILE", help="Load a run from an exported file.")
    parser.add_argument("--export", dest="export_file", metavar="FILE", help="Write the saved run to FILE and exit.")
    parser.add_argument("--save-dir", metavar="DIR", help="Where the saved run lives.")
    parser.add_argument("--log-level", default=None, help="Logging level (default from SUPERBEATMAKER_LOG_LEVEL).")
    return parser.parse_args(argv)


def label_for(command: str) -> str:
    if command.startswith("use_power_up:"):
        return f"Use Power-Up: {POWER_UP_NAMES[command.split(':', 1)[1]]}"
    return COMMAND_LABELS.get(command, command)


def show_state(ui, state) -> None:
    ui.room(f"Room {state['room']}  [{state['mode']}]  phase: {state['phase']}")
    for row in build_track_rows(state):
        line = f"{row['index'] + 1}. {row['header']}"
        if row["badges"]:
            line += "  | " + "; ".join(row["badges"])
        ui.system(line)
    track = state.get("current_track")
    if track:
        ui.system(f"Now composing: {track['type']}")
        for m in track.get("mutations", []):
            ui.system(f"  M: {m}")
        for c in track.get("curses", []):
            ui.system(f"  C: {c}")
    if state.get("current_mutation") and state["phase"] == "mutation-result":
        ui.system(f"Mutation: {state['current_mutation']['effect']}")
    if state.get("current_curse") and state["phase"] == "curse-result":
        ui.system(f"{state['current_curse']['type']}: {state['current_curse']['effect']}")
    timer = format_timer(timer_remaining(state))
    if timer:
        ui.system(f"Timer: {timer}")
    ui.system(f"Power-Ups: {state.get('power_ups', 0)}")


def prompt_command(ui, state):
    """
    Ask for the next command and any argument it needs.
    Returns None when the player quits.
    """
    commands = allowed_commands(state)
    options = [label_for(c) for c in commands] + [QUIT]
    pick = ui.choice("What now?", options)
    if pick >= len(commands):
        return None
    command = commands[pick]
    player_input = {"command": command}
    if command in INDEX_COMMANDS:
        candidates = selection_candidates(state)
        rows = {row["index"]: row["header"] for row in build_track_rows(state)}
        idx = ui.choice("Which track?", [rows[i] for i in candidates])
        player_input["index"] = candidates[idx]
    elif command in TYPE_COMMANDS:
        names = list(TRACK_TYPE_NAMES)
        player_input["track_type"] = names[ui.choice("Track type?", names)]
    return player_input


def run_loop(game: Game) -> None:
    while game.state is not None and game.summary is None:
        show_state(game.ui, game.state)
        player_input = prompt_command(game.ui, game.state)
        if player_input is None:
            game.ui.system("Run saved. See you next time.")
            return
        game.step(player_input)


def main(argv=None):
    args = parse_args(argv)
    game_context.configure_logging(args.log_level)
    store = RunStore(args.save_dir) if args.save_dir else game_context.STORE
    ui = CLIProvider()
    game = Game(ui, store=store)

    if args.export_file:
        state = store.load()
        if state is None:
            ui.error("No saved run to export")
            return 1
        game.state = state
        Path(args.export_file).write_bytes(game.export_file())
        ui.system(f"Exported run to {args.export_file}")
        return 0

    if args.import_file:
        try:
            data = Path(args.import_file).read_bytes()
        except OSError as e:
            logger.warning("Could not read %s: %s", args.import_file, e)
            ui.error("Invalid file")
            return 1
        if not game.import_file(data):
            return 1
    elif args.resume:
        if not game.continue_run():
            return 1
    else:
        if store.has_saved_run():
            ui.system("Starting a new run replaces the saved one.")
        game.start(args.mode, args.manual)

    run_loop(game)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
