from __future__ import annotations

import random


def roll(max_value: int = 100) -> int:
    """
    Uniform roll over [1, max_value]. Every die in the game goes through here,
    so patching `rules.dice.roll` scripts a whole run.
    """
    max_value = int(max_value or 100)
    if max_value < 1:
        max_value = 1
    return random.randint(1, max_value)
