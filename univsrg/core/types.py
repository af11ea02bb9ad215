"""Game-agnostic chart model shared by every bundle format.

WHY: Each rhythm game stores charts differently, but they all boil down
to the same things: song metadata, a lane count, media, tempo changes,
scroll-speed changes and notes. Decoders produce this model, encoders
consume it, and nothing in between needs to know either file format.

HOW: Plain dataclasses:
  LatinAndUnicodeString — the two script renderings of a title/artist
  BpmTimePoint          — tempo change (beat length from offset on)
  EffectTimePoint       — scroll-speed change, no tempo
  Note / LongNote       — the two hit object kinds (HitObject union)
  Beatmap               — one playable difficulty
  Package               — beatmaps plus the ResourcePool they share

RULES:
- Offsets are integer milliseconds
- Columns are zero-based lane indices in [0, column_count)
- bpm_time_points and effect_time_points are each ascending by offset
- Beatmaps reference pool entries; they never hold private copies
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union

from univsrg.core.resource import ResourceEntry, ResourcePool


@dataclass
class LatinAndUnicodeString:
    """A piece of text in latin script, unicode script, or both."""

    latin: Optional[str] = None
    unicode: Optional[str] = None

    def best(self) -> Optional[str]:
        """Prefer the unicode rendering, fall back to latin."""
        return self.unicode or self.latin

    def best_latin(self) -> Optional[str]:
        """Prefer the latin rendering, fall back to unicode."""
        return self.latin or self.unicode


@dataclass(frozen=True)
class BpmTimePoint:
    offset: int
    bpm: float
    beats_per_bar: int


@dataclass(frozen=True)
class EffectTimePoint:
    offset: int
    velocity_multiplier: float


@dataclass(frozen=True)
class Note:
    column: int
    offset: int


@dataclass(frozen=True)
class LongNote:
    column: int
    offset: int
    end_offset: int


HitObject = Union[Note, LongNote]


@dataclass
class Beatmap:
    """One playable difficulty.

    ``column_count`` and ``audio`` are optional here because decoders of
    other formats may not know them; encoders that require them raise
    MissingFieldError.
    """

    title: LatinAndUnicodeString = field(default_factory=LatinAndUnicodeString)
    artist: LatinAndUnicodeString = field(default_factory=LatinAndUnicodeString)
    version: Optional[str] = None
    creator: Optional[str] = None
    column_count: Optional[int] = None
    audio: Optional[ResourceEntry] = None
    background: Optional[ResourceEntry] = None
    hp_difficulty: Optional[float] = None
    acc_difficulty: Optional[float] = None
    audio_lead_in: Optional[int] = None
    preview_time: Optional[int] = None
    bpm_time_points: List[BpmTimePoint] = field(default_factory=list)
    effect_time_points: List[EffectTimePoint] = field(default_factory=list)
    objects: List[HitObject] = field(default_factory=list)

    def display_name(self) -> str:
        parts = [self.artist.best(), self.title.best()]
        name = " - ".join(p for p in parts if p) or "(untitled)"
        if self.version:
            name = "{} [{}]".format(name, self.version)
        return name


@dataclass
class Package:
    """Beatmaps gathered from any number of bundles plus their media."""

    beatmaps: List[Beatmap] = field(default_factory=list)
    resource_pool: ResourcePool = field(default_factory=ResourcePool)
