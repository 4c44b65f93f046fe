import io
import json
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import play  # noqa: E402
from rules.save_load import RunStore  # noqa: E402
from rules.state import create_run  # noqa: E402


class TestPlayCLI(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.store = RunStore(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_parse_args(self):
        args = play.parse_args(["--mode", "cursed", "--manual", "--continue", "--save-dir", "x"])
        self.assertEqual(args.mode, "cursed")
        self.assertTrue(args.manual)
        self.assertTrue(args.resume)
        self.assertEqual(args.save_dir, "x")

    def test_label_for_power_up(self):
        self.assertEqual(play.label_for("use_power_up:lock"), "Use Power-Up: Room Lock")
        self.assertEqual(play.label_for("next_room"), "Next room")

    def test_cli_choice_by_prefix(self):
        ui = play.CLIProvider()
        with patch("builtins.input", side_effect=["9", "zzz", "next"]), \
                patch("sys.stdout", new_callable=io.StringIO) as out:
            pick = ui.choice("What now?", ["End run", "Next room"])
        self.assertEqual(pick, 1)
        self.assertEqual(out.getvalue().count("[!]"), 2)

    def test_quit_keeps_the_run_saved(self):
        # roll_track_type, select_track_type, quit
        with patch("builtins.input", return_value="3"), patch("sys.stdout", new_callable=io.StringIO) as out:
            code = play.main(["--mode", "quick", "--save-dir", self.tmp.name])
        self.assertEqual(code, 0)
        self.assertIn("Run saved.", out.getvalue())
        self.assertEqual(self.store.load()["mode"], "quick")

    def test_play_one_quick_room(self):
        answers = iter(["1", "1", "1", "1", "1"])
        with patch("builtins.input", side_effect=lambda *_: next(answers)), \
                patch("rules.dice.roll", side_effect=[15, 12, 10]), \
                patch("sys.stdout", new_callable=io.StringIO) as out:
            code = play.main(["--mode", "quick", "--save-dir", self.tmp.name])
        self.assertEqual(code, 0)
        self.assertIn("Run over.", out.getvalue())
        self.assertFalse(self.store.has_saved_run())

    def test_export(self):
        self.store.save(create_run("hard"))
        target = Path(self.tmp.name) / "out.json"
        with patch("sys.stdout", new_callable=io.StringIO):
            code = play.main(["--save-dir", self.tmp.name, "--export", str(target)])
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(target.read_text(encoding="utf-8"))["mode"], "hard")

    def test_continue_without_save(self):
        with patch("sys.stdout", new_callable=io.StringIO) as out:
            code = play.main(["--continue", "--save-dir", self.tmp.name])
        self.assertEqual(code, 1)
        self.assertIn("No saved run to continue", out.getvalue())

    def test_import_bad_file(self):
        bad = Path(self.tmp.name) / "bad.json"
        bad.write_text("nope", encoding="utf-8")
        with patch("sys.stdout", new_callable=io.StringIO) as out:
            code = play.main(["--import", str(bad), "--save-dir", self.tmp.name])
        self.assertEqual(code, 1)
        self.assertIn("Invalid file", out.getvalue())


if __name__ == "__main__":
    unittest.main()
