"""Lane ↔ x-coordinate algebra for osu!mania hit objects.

WHY: osu!mania stores a note's lane as an x position on the 512-wide
standard playfield. Lanes are equal-width slices of that width.

HOW: Decoding floors x into its slice; encoding writes the centre of the
slice so the value sits well inside it for every lane count.

RULES:
- column_from_x(x_from_column(c, n), n) == c for all n >= 1, 0 <= c < n
- column_from_x clamps out-of-range x into [0, n)
"""

from __future__ import annotations

from univsrg.config import PLAYFIELD_WIDTH


def column_from_x(x: int, column_count: int) -> int:
    column = (x * column_count) // PLAYFIELD_WIDTH
    return min(max(column, 0), column_count - 1)


def x_from_column(column: int, column_count: int) -> int:
    return ((2 * column + 1) * PLAYFIELD_WIDTH) // (2 * column_count)
