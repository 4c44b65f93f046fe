import sys
import unittest
from pathlib import Path
from unittest.mock import patch

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from rules import dice  # noqa: E402


class TestDice(unittest.TestCase):
    def test_default_die_is_d100(self):
        with patch("rules.dice.random.randint", return_value=42) as randint:
            self.assertEqual(dice.roll(), 42)
        randint.assert_called_once_with(1, 100)

    def test_rolls_stay_in_range(self):
        for _ in range(200):
            r = dice.roll(6)
            self.assertGreaterEqual(r, 1)
            self.assertLessEqual(r, 6)

    def test_negative_size_is_clamped_to_one(self):
        self.assertEqual(dice.roll(-3), 1)


if __name__ == "__main__":
    unittest.main()
