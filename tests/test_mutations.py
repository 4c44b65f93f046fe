import sys
import unittest
from pathlib import Path
from unittest.mock import call, patch

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from rules.curses import accept_curse  # noqa: E402
from rules.data import MUTATION_BY_ID, NO_MUTATION_TEXT  # noqa: E402
from rules.mutations import (  # noqa: E402
    MAX_MUTATION_DEPTH,
    MutationOutcome,
    accept_mutation,
    combine,
    resolve_mutation,
    roll_mutation,
)
from rules.phases import reselect_track_type  # noqa: E402
from rules.state import create_run, create_track  # noqa: E402


TEMPO = MUTATION_BY_ID["tempo_shift"].text
FOREIGN_KEY = MUTATION_BY_ID["foreign_key"].text


def mutation_state(room=2, mode="normal"):
    state = create_run(mode)
    state["room"] = room
    if room > 1:
        previous = create_track(room - 1, "House")
        previous["mutations"] = ["Old mutation"]
        state["tracks"] = [previous]
    state["current_track"] = create_track(room, "Techno")
    state["phase"] = "mutation"
    return state


def messages(state):
    return [e["msg"] for e in state["log"]]


class TestResolveMutation(unittest.TestCase):
    def test_plain_mutation(self):
        state = mutation_state()
        with patch("rules.dice.roll", side_effect=[12]):
            out = resolve_mutation(state)
        self.assertEqual(out.kind, "normal")
        self.assertEqual(out.text, TEMPO)
        self.assertEqual(out.entries, ["tempo_shift"])

    def test_no_mutation(self):
        state = mutation_state()
        with patch("rules.dice.roll", side_effect=[5]):
            out = resolve_mutation(state)
        self.assertEqual(out.kind, "no_effect")
        self.assertEqual(out.text, NO_MUTATION_TEXT)

    def test_callback_rerolls_in_room_one(self):
        state = mutation_state(room=1)
        with patch("rules.dice.roll", side_effect=[47, 12]):
            out = resolve_mutation(state)
        self.assertEqual(out.text, TEMPO)
        self.assertIn("Room One: re-rolling", messages(state))

    def test_dry_room_is_nothing_in_room_one(self):
        state = mutation_state(room=1)
        with patch("rules.dice.roll", side_effect=[51]):
            out = resolve_mutation(state)
        self.assertEqual(out.kind, "no_effect")
        self.assertEqual(out.entries, ["dry_room"])

        state = mutation_state(room=2)
        with patch("rules.dice.roll", side_effect=[51]):
            out = resolve_mutation(state)
        self.assertEqual(out.kind, "normal")

    def test_echo_repeats_previous_tracks_last_mutation(self):
        state = mutation_state()
        with patch("rules.dice.roll", side_effect=[35]):
            out = resolve_mutation(state)
        self.assertEqual(out.text, "Old mutation")

        state["tracks"][0]["mutations"] = []
        with patch("rules.dice.roll", side_effect=[35]):
            out = resolve_mutation(state)
        self.assertEqual(out.kind, "no_effect")

    def test_roll_twice_joins_both(self):
        state = mutation_state()
        with patch("rules.dice.roll", side_effect=[83, 12, 17]):
            out = resolve_mutation(state)
        self.assertEqual(out.text, f"{TEMPO} AND {FOREIGN_KEY}")
        self.assertEqual(out.roll, 83)
        self.assertEqual(out.entries, ["double_trouble", "tempo_shift", "foreign_key"])

    def test_roll_twice_drops_an_empty_half(self):
        state = mutation_state()
        with patch("rules.dice.roll", side_effect=[83, 5, 17]):
            out = resolve_mutation(state)
        self.assertEqual(out.kind, "normal")
        self.assertEqual(out.text, FOREIGN_KEY)

    def test_corrupted_file(self):
        state = mutation_state()
        with patch("rules.dice.roll", side_effect=[91, 50]):
            out = resolve_mutation(state)
        self.assertEqual(out.kind, "delete_track")

        with patch("rules.dice.roll", side_effect=[91, 49]):
            out = resolve_mutation(state)
        self.assertEqual(out.kind, "no_effect")

    def test_casual_rerolls_high_results_on_a_smaller_die(self):
        state = mutation_state(mode="casual")
        with patch("rules.dice.roll", side_effect=[95, 12]) as roll:
            out = resolve_mutation(state)
        self.assertEqual(out.text, TEMPO)
        self.assertEqual(roll.call_args_list[1], call(89))

    def test_hard_rerolls_no_effect(self):
        state = mutation_state(mode="hard")
        with patch("rules.dice.roll", side_effect=[5, 12]):
            out = resolve_mutation(state)
        self.assertEqual(out.text, TEMPO)

    def test_depth_cap(self):
        state = mutation_state()
        with patch("rules.dice.roll", side_effect=[]) as roll:
            out = resolve_mutation(state, depth=MAX_MUTATION_DEPTH + 1)
        self.assertEqual(roll.call_count, 0)
        self.assertEqual(out.kind, "no_effect")

    def test_combine_precedence(self):
        text = MutationOutcome(kind="normal", text="A", entries=["a"])
        delete = MutationOutcome(kind="delete_track", text="D", entries=["d"])
        curse = MutationOutcome(kind="take_curse", text="C", entries=["c"])
        self.assertEqual(combine(text, delete).kind, "delete_track")
        self.assertEqual(combine(delete, curse).kind, "take_curse")
        self.assertEqual(combine(text, delete).entries, ["a", "d"])


class TestRollAndAccept(unittest.TestCase):
    def test_accept_adds_mutation_to_track(self):
        state = mutation_state()
        with patch("rules.dice.roll", side_effect=[12]):
            roll_mutation(state)
        self.assertEqual(state["phase"], "mutation-result")
        self.assertEqual(state["current_mutation"]["effect"], TEMPO)

        accept_mutation(state)
        self.assertEqual(state["current_track"]["mutations"], [TEMPO])
        self.assertEqual(len(state["mutations"]), 1)
        self.assertIsNone(state["current_mutation"])
        self.assertEqual(state["phase"], "compose")

    def test_no_mutation_leaves_track_alone(self):
        state = mutation_state()
        with patch("rules.dice.roll", side_effect=[5]):
            roll_mutation(state)
        accept_mutation(state)
        self.assertEqual(state["current_track"]["mutations"], [])
        self.assertEqual(state["phase"], "compose")

    def test_corruption_deletes_the_current_track(self):
        state = mutation_state()
        with patch("rules.dice.roll", side_effect=[91, 80]):
            roll_mutation(state)
        accept_mutation(state)
        self.assertTrue(state["current_track"]["deleted"])
        self.assertEqual(state["current_track"]["mutations"], [])

    def test_double_mutation_room(self):
        state = mutation_state()
        state["double_mutation_this_room"] = True
        with patch("rules.dice.roll", side_effect=[12, 17]):
            roll_mutation(state)
        self.assertEqual(state["current_mutation"]["effect"], f"{TEMPO} AND {FOREIGN_KEY}")
        self.assertIn("Double Mutation Room!", messages(state))

    def test_bargain_trades_mutation_for_a_curse(self):
        state = mutation_state()
        with patch("rules.dice.roll", side_effect=[96, 10, 10, 50]):
            roll_mutation(state)
        self.assertEqual(state["phase"], "curse-result")
        self.assertTrue(state["mutation_skipped"])
        self.assertIsNone(state["current_mutation"])

        accept_curse(state)
        self.assertEqual(state["phase"], "compose")
        self.assertEqual(len(state["tracks"][0]["curses"]), 1)

    def test_timer(self):
        state = mutation_state()
        with patch("rules.dice.roll", side_effect=[67]):
            roll_mutation(state)
        with patch("rules.mutations.time.time", return_value=1000.0):
            accept_mutation(state)
        self.assertEqual(state["timer_end_time"], 1000.0 + 20 * 60)

    def test_copycat_takes_previous_type(self):
        state = mutation_state()
        with patch("rules.dice.roll", side_effect=[63]):
            roll_mutation(state)
        accept_mutation(state)
        self.assertEqual(state["current_track"]["type"], "House")
        self.assertEqual(state["current_track"]["original_type"], "Techno")

    def test_abandon_type_asks_for_a_new_one(self):
        state = mutation_state()
        with patch("rules.dice.roll", side_effect=[59]):
            roll_mutation(state)
        accept_mutation(state)
        self.assertEqual(state["phase"], "track-type-reselect")
        self.assertTrue(state["pending_track_type_reselect"])

        reselect_track_type(state, "Techno")
        self.assertEqual(state["phase"], "track-type-reselect")
        reselect_track_type(state, "Ambient")
        self.assertEqual(state["phase"], "compose")
        self.assertEqual(state["current_track"]["type"], "Ambient")
        self.assertEqual(state["current_track"]["original_type"], "Techno")
        self.assertFalse(state["pending_track_type_reselect"])

    def test_seeded_run_uses_preset_roll(self):
        state = mutation_state()
        state["mode"] = "seeded"
        state["seeded_rooms"] = [
            {"type_roll": 15, "type": "House", "mutation_roll": 5, "mutation": NO_MUTATION_TEXT},
            {"type_roll": 25, "type": "Techno", "mutation_roll": 12, "mutation": TEMPO},
        ]
        with patch("rules.dice.roll", side_effect=[]) as roll:
            roll_mutation(state)
        self.assertEqual(roll.call_count, 0)
        self.assertEqual(state["current_mutation"]["effect"], TEMPO)

    def test_wrong_phase_is_a_no_op(self):
        state = mutation_state()
        state["phase"] = "compose"
        accept_mutation(state)
        with patch("rules.dice.roll", side_effect=[]) as roll:
            roll_mutation(state)
        self.assertEqual(roll.call_count, 0)
        self.assertEqual(state["mutations"], [])


if __name__ == "__main__":
    unittest.main()
