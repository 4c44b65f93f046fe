import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from game_runner import Game  # noqa: E402
from rules.save_load import RunStore, export_run  # noqa: E402
from rules.state import create_run  # noqa: E402


class DummyUI:
    is_blocking = True

    def __init__(self):
        self.out = []

    def room(self, text, data=None):
        self.out.append(("room", text))

    def log(self, text, data=None):
        self.out.append(("log", text))

    def system(self, text, data=None):
        self.out.append(("system", text))

    def error(self, text, data=None):
        self.out.append(("error", text))

    def choice(self, prompt, options, data=None):
        return 0

    def text_input(self, prompt, data=None):
        return ""

    def errors(self):
        return [text for kind, text in self.out if kind == "error"]


class TestGame(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.store = RunStore(self.tmp.name)
        self.ui = DummyUI()
        self.game = Game(self.ui, store=self.store)

    def tearDown(self):
        self.tmp.cleanup()

    def test_start_saves_the_new_run(self):
        self.game.start("casual")
        self.assertEqual(self.game.state["mode"], "casual")
        self.assertEqual(self.store.load(), self.game.state)

    def test_step_without_run(self):
        self.assertEqual(self.game.step({"command": "roll_track_type"}), [])
        self.assertEqual(self.ui.errors(), ["No active run"])

    def test_unknown_command_is_reported(self):
        self.game.start()
        self.game.step({"command": "explode"})
        self.assertEqual(self.ui.errors(), ["Unknown command: explode"])

    def test_each_step_is_saved(self):
        self.game.start()
        with patch("rules.dice.roll", side_effect=[15]):
            lines = self.game.step({"command": "roll_track_type"})
        self.assertIn("Room 1: Skipping curse check", lines)
        self.assertIn(("log", "Room 1: Skipping curse check"), self.ui.out)
        self.assertEqual(self.store.load()["phase"], "mutation")

    def test_quick_run_ends_after_one_room(self):
        self.game.start("quick")
        with patch("rules.dice.roll", side_effect=[15, 12, 10]):
            for command in ("roll_track_type", "roll_mutation", "accept_mutation", "finalize_room", "roll_power_up"):
                self.game.step({"command": command})
        self.assertTrue(self.game.state["ended"])
        self.assertEqual(self.game.summary["tracks"], 1)
        self.assertEqual(self.game.summary["mode"], "quick")
        self.assertFalse(self.store.has_saved_run())
        self.assertTrue(any(kind == "system" and text.startswith("Run over.") for kind, text in self.ui.out))

        self.game.step({"command": "next_room"})
        self.assertEqual(self.ui.errors(), ["The run is over"])

    def test_end_run_command(self):
        self.game.start()
        self.game.state["phase"] = "next-room"
        self.game.step({"command": "end_run"})
        self.assertIsNotNone(self.game.summary)
        self.assertFalse(self.store.has_saved_run())

    def test_power_up_shorthand(self):
        self.game.start()
        self.game.state.update({"phase": "mutation", "power_ups": 1})
        self.game.step({"command": "use_power_up:breath"})
        self.assertTrue(self.game.state["used_one_last_breath"])
        self.assertEqual(self.game.state["power_ups"], 0)

    def test_continue_saved_run(self):
        self.game.start("hard")
        other = Game(DummyUI(), store=self.store)
        self.assertTrue(other.continue_run())
        self.assertEqual(other.state, self.game.state)

    def test_continue_without_save(self):
        self.assertFalse(self.game.continue_run())
        self.assertEqual(self.ui.errors(), ["No saved run to continue"])

    def test_import_replaces_run(self):
        self.game.start("normal")
        self.assertTrue(self.game.import_file(export_run(create_run("cursed"))))
        self.assertEqual(self.game.state["mode"], "cursed")
        self.assertEqual(self.store.load()["mode"], "cursed")

    def test_invalid_import_keeps_current_run(self):
        self.game.start("normal")
        self.assertFalse(self.game.import_file(b"nope"))
        self.assertEqual(self.ui.errors(), ["Invalid file"])
        self.assertEqual(self.game.state["mode"], "normal")

    def test_export_without_run(self):
        self.assertIsNone(self.game.export_file())

    def test_new_run_drops_the_active_run(self):
        self.game.start()
        self.game.new_run()
        self.assertIsNone(self.game.state)
        self.assertTrue(self.store.has_saved_run())


if __name__ == "__main__":
    unittest.main()
