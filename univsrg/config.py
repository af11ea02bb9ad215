"""Configuration constants, format constants, and .env loading.

WHY: The converter hard-depends on a handful of numbers fixed by the
osu! file format (playfield width, mania mode id, the y coordinate every
mania object sits on) plus a few behaviours users may want to tune.
Keeping them as plain module-level data means neither humans nor code
have to dig through the codec to find them.

HOW: python-dotenv loads the .env file on import. Format constants are
literals; tunables read ``UNIVSRG_*`` environment variables with a
documented default.

RULES:
- Format constants are never overridable (changing them breaks charts)
- Tunables always have a default so the package works with no .env
- Boolean variables accept "true"/"false" (case-insensitive)
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the working directory (where the command is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# osu! file format constants
# ---------------------------------------------------------------------------

PLAYFIELD_WIDTH = 512
"""Width of the osu! playfield in osu!pixels; lanes divide it evenly."""

HIT_OBJECT_Y = 192
"""Vertical coordinate written for mania objects (ignored by the game)."""

MANIA_MODE = 3
"""Value of ``[General] Mode`` for osu!mania charts."""

OSU_FILE_FORMAT_VERSION = 14

DEFAULT_BEATS_PER_BAR = 4
"""Meter assumed when a timing point row omits it."""

CHART_EXTENSION = ".osu"
BUNDLE_EXTENSION = ".osz"

# ---------------------------------------------------------------------------
# Output tree naming
# ---------------------------------------------------------------------------

COLLISION_SUFFIX = "c"
"""Character appended to a resource's base name until it is unique."""

MAX_FILENAME_LENGTH = 255
"""Longest file name (not path) most filesystems accept."""

# ---------------------------------------------------------------------------
# Tunables
# ---------------------------------------------------------------------------

DEFAULT_SAMPLE_VOLUME = int(os.getenv("UNIVSRG_SAMPLE_VOLUME", "100"))
DEFAULT_CLEAR_PATH_INDEX = (
    os.getenv("UNIVSRG_CLEAR_PATH_INDEX", "true").lower() == "true"
)
LOG_LEVEL = os.getenv("UNIVSRG_LOG_LEVEL", "INFO").upper()
