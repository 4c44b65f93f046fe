"""
Rule tables for SuperBeatMaker.

Track types and the curse targeting dice are contiguous d100 range tables.
Mutations and curses are breakpoint tables: an entry holds from its key up to
the next key, the last one through 100.
"""
from __future__ import annotations

from typing import Dict, List

from rules.tables import Mechanics, TableEntry, index_entries


TRACK_TYPES = [
    (1, 10, "Hip-Hop"),
    (11, 20, "House"),
    (21, 30, "Techno"),
    (31, 40, "Drum & Bass"),
    (41, 50, "Ambient"),
    (51, 60, "Trap"),
    (61, 70, "Lo-Fi"),
    (71, 80, "Synthwave"),
    (81, 90, "Breakbeat"),
    (91, 97, "Experimental"),
    (98, 100, "Free Choice"),
]

TRACK_TYPE_NAMES: List[str] = [name for _, _, name in TRACK_TYPES]


NO_MUTATION_TEXT = "No Mutation."

MUTATIONS: Dict[int, TableEntry] = {
    1: TableEntry("no_mutation", NO_MUTATION_TEXT, Mechanics(no_effect=True)),
    11: TableEntry("tempo_shift", "Move the tempo at least 20 BPM away from where you would normally sit."),
    16: TableEntry("foreign_key", "Write in a key you have never used before."),
    21: TableEntry("one_instrument", "Every melodic part comes from a single synth or instrument."),
    26: TableEntry("no_kick", "No kick drum anywhere in the track."),
    30: TableEntry("samples_only", "Build the track entirely from samples."),
    34: TableEntry("echo", "Echo: repeat the last mutation.", Mechanics(repeat_last_mutation=True)),
    38: TableEntry("odd_meter", "Use an odd time signature (5/4, 7/8, ...)."),
    42: TableEntry("half_time", "Drop into half-time halfway through."),
    46: TableEntry(
        "callback",
        "Callback: re-roll in Room One. Otherwise reuse a melody from an earlier track.",
        Mechanics(reroll_on_room_one=True),
    ),
    50: TableEntry(
        "dry_room",
        "Dry Room: no mutation in Room One. Otherwise no reverb or delay at all.",
        Mechanics(no_mutation_on_room_one=True),
    ),
    54: TableEntry("vocal_lead", "A chopped vocal carries the lead."),
    58: TableEntry(
        "abandon_type",
        "Identity Crisis: abandon the track type and pick a different one.",
        Mechanics(abandon_track_type=True),
    ),
    62: TableEntry(
        "copycat",
        "Copycat: this track takes the previous track's type.",
        Mechanics(copy_previous_type=True),
    ),
    66: TableEntry("beat_the_clock", "Beat the Clock: 20 minutes to compose.", Mechanics(timer_minutes=20)),
    70: TableEntry("eight_bars", "Eight bars, looped; all variation comes from automation."),
    74: TableEntry("bitcrushed", "Everything passes through a bitcrusher."),
    78: TableEntry("reversed", "Every section has at least one reversed element."),
    82: TableEntry("double_trouble", "Roll twice.", Mechanics(roll_twice=True)),
    86: TableEntry("speed_run", "Speed Run: 10 minutes to compose.", Mechanics(timer_minutes=10)),
    90: TableEntry(
        "corrupted_file",
        "Corrupted File: roll again; on 50 or higher the track is deleted.",
        Mechanics(delete_if_high_roll=50),
    ),
    95: TableEntry(
        "bargain",
        "Bargain: take a Target Curse instead of a mutation.",
        Mechanics(take_curse_instead=True),
    ),
    98: TableEntry("genre_flip", "Genre Flip: rebuild the idea in the opposite genre."),
}


TARGET_CURSES: Dict[int, TableEntry] = {
    1: TableEntry("fizzle", "The curse fizzles. Ignore it.", Mechanics(no_effect=True)),
    8: TableEntry("mute_element", "Mute one element of the target track."),
    16: TableEntry("octave_down", "Pitch the target track down an octave."),
    24: TableEntry("strip_drums", "Strip every drum from the target track."),
    32: TableEntry("new_bassline", "Replace the target track's bassline."),
    40: TableEntry("blown_master", "Distort the target track's master bus."),
    47: TableEntry("double_hex", "Double Hex: roll for two Target Curses.", Mechanics(reroll_twice=True)),
    52: TableEntry("lingering_hex", "Lingering Hex: apply the last curse again.", Mechanics(apply_last_curse=True)),
    58: TableEntry("half_length", "Cut the target track's length in half."),
    64: TableEntry(
        "unstable",
        "Unstable: the next room rolls two mutations.",
        Mechanics(double_mutation_next_room=True),
    ),
    70: TableEntry("force_room", "Force a Room: the run gains another Room.", Mechanics(force_room=True)),
    76: TableEntry(
        "maybe_another",
        "Maybe Another: 50% chance to force another Room.",
        Mechanics(force_room_chance=50),
    ),
    82: TableEntry(
        "marked",
        "Marked: the target becomes the curse target for the rest of the run.",
        Mechanics(becomes_curse_target=True),
    ),
    88: TableEntry("backwards", "Reverse the entire target track."),
    94: TableEntry("delete_track", "Delete Track: the target track is gone.", Mechanics(delete_track=True)),
    98: TableEntry("silence", "Silence the target track's melody."),
}


MIX_CURSES: Dict[int, TableEntry] = {
    1: TableEntry("mono", "Mix the whole run in mono."),
    15: TableEntry("shared_reverb", "Every track shares a single reverb bus."),
    30: TableEntry("tape_master", "Master the run through tape saturation."),
    45: TableEntry("cascade", "Cascade: roll two Target Curses.", Mechanics(roll_target_curses=2)),
    60: TableEntry("last_room", "This is the last Room.", Mechanics(last_room=True, min_room=3)),
    75: TableEntry("quiet_room", "Force a Room and mix it 6 dB down.", Mechanics(force_room=True)),
    85: TableEntry(
        "avalanche",
        "Avalanche: roll three Target Curses.",
        Mechanics(roll_target_curses=3, min_room=4),
    ),
    92: TableEntry("crossfade", "Crossfade every track into the next one."),
}


# First die of the targeting roll: how to pick the anchor track.
TARGET_METHODS = [
    (1, 30, "previous"),
    (31, 50, "oldest"),
    (51, 65, "loudest"),
    (66, 80, "quietest"),
    (81, 92, "player-choice"),
    (93, 100, "two-targets"),
]

# Second die: slide from the anchor.
TARGET_OFFSETS = [
    (1, 33, -1),
    (34, 66, 0),
    (67, 100, 1),
]

MANUAL_TARGET_METHODS = {"loudest", "quietest", "player-choice"}


MUTATION_BY_ID = index_entries(MUTATIONS)
CURSE_BY_ID = index_entries(TARGET_CURSES, MIX_CURSES)
