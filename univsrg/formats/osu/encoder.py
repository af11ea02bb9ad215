"""Encode a Beatmap into osu!mania chart text.

WHY: The inverse of the decoder. A Package built from any source must
come out as charts the game loads, referencing media by the names the
inflator actually gave them.

HOW: encode_beatmap() fills an OsuChart section by section and
dump_chart() renders it. The two interesting pieces are public so they
can be tested directly:
  merge_time_points() — rebuilds the single [TimingPoints] list from the
                        separate tempo and effect streams
  make_basename()     — the chart's output file name

RULES:
- column_count and audio are required → MissingFieldError otherwise
- Resource names come only from ResourceOut, never from the entry
- On equal offsets a BPM point is written before an effect point
- Effect points carry meter 0; both kinds use DEFAULT_SAMPLE_VOLUME
- Optional fields that are None are omitted, not defaulted
- The encoder does not resolve file name collisions between beatmaps
"""

from __future__ import annotations

import logging
import re
from typing import List, Union

from univsrg.config import (
    CHART_EXTENSION,
    DEFAULT_SAMPLE_VOLUME,
    HIT_OBJECT_Y,
    MANIA_MODE,
)
from univsrg.core.errors import MissingFieldError
from univsrg.core.resource import ResourceOut
from univsrg.core.types import Beatmap, BpmTimePoint, EffectTimePoint, HitObject, LongNote, Note
from univsrg.formats.osu.chart import OsuChart, dump_chart, format_value
from univsrg.formats.osu.lanes import x_from_column

logger = logging.getLogger(__name__)

TimePoint = Union[BpmTimePoint, EffectTimePoint]

# Characters Windows refuses in file names; "/" would create directories.
_RESERVED_FILENAME_RE = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def merge_time_points(
    bpm_points: List[BpmTimePoint],
    effect_points: List[EffectTimePoint],
) -> List[TimePoint]:
    """Merge two offset-sorted streams into one, tempo first on ties."""
    merged: List[TimePoint] = []
    b = 0
    e = 0
    while b < len(bpm_points) or e < len(effect_points):
        if e >= len(effect_points) or (
            b < len(bpm_points) and bpm_points[b].offset <= effect_points[e].offset
        ):
            merged.append(bpm_points[b])
            b += 1
        else:
            merged.append(effect_points[e])
            e += 1
    return merged


def _time_point_row(point: TimePoint) -> str:
    if isinstance(point, BpmTimePoint):
        if point.bpm <= 0:
            raise ValueError("non-positive bpm {} at {} ms".format(point.bpm, point.offset))
        beat_length = 60000.0 / point.bpm
        meter = point.beats_per_bar
        uninherited = 1
    elif isinstance(point, EffectTimePoint):
        beat_length = -100.0 / point.velocity_multiplier
        meter = 0
        uninherited = 0
    else:
        raise TypeError("unknown time point {!r}".format(point))
    return ",".join([
        str(point.offset),
        format_value(beat_length),
        str(meter),
        "0",  # sample set: default
        "0",  # sample index
        str(DEFAULT_SAMPLE_VOLUME),
        str(uninherited),
        "0",  # effects
    ])


def _hit_object_row(obj: HitObject, column_count: int) -> str:
    x = x_from_column(obj.column, column_count)
    if isinstance(obj, LongNote):
        return "{},{},{},128,0,{}:0:0:0:0:".format(x, HIT_OBJECT_Y, obj.offset, obj.end_offset)
    if isinstance(obj, Note):
        return "{},{},{},1,0,0:0:0:0:".format(x, HIT_OBJECT_Y, obj.offset)
    raise TypeError("unknown hit object {!r}".format(obj))


def make_basename(beatmap: Beatmap) -> str:
    """Return the chart's output file name.

    "creator - title - version.osu" from whichever parts are present,
    title preferring its unicode rendering.
    """
    parts = [beatmap.creator, beatmap.title.best(), beatmap.version]
    stem = " - ".join(p for p in parts if p)
    stem = _RESERVED_FILENAME_RE.sub("_", stem).strip().rstrip(".")
    return (stem or "untitled") + CHART_EXTENSION


def build_chart(beatmap: Beatmap, resources: ResourceOut) -> OsuChart:
    """Fill an OsuChart from a Beatmap.

    Raises:
        MissingFieldError: column_count or audio is absent, or a
            referenced resource was never inflated.
        ValueError: a hit object lies outside the lanes, or a tempo
            point is not positive.
    """
    if not beatmap.column_count or beatmap.column_count < 1:
        raise MissingFieldError("column_count")
    if beatmap.audio is None:
        raise MissingFieldError("audio")
    audio_path = resources.path_for(beatmap.audio)
    if audio_path is None:
        raise MissingFieldError("audio", "resource was not inflated")

    chart = OsuChart()
    chart.set("General", "AudioFilename", audio_path)
    chart.set("General", "AudioLeadIn", beatmap.audio_lead_in)
    chart.set("General", "PreviewTime", beatmap.preview_time)
    chart.set("General", "Mode", MANIA_MODE)

    chart.set("Metadata", "Title", beatmap.title.latin)
    chart.set("Metadata", "TitleUnicode", beatmap.title.unicode)
    chart.set("Metadata", "Artist", beatmap.artist.latin)
    chart.set("Metadata", "ArtistUnicode", beatmap.artist.unicode)
    chart.set("Metadata", "Creator", beatmap.creator)
    chart.set("Metadata", "Version", beatmap.version)

    chart.set("Difficulty", "HPDrainRate", beatmap.hp_difficulty)
    chart.set("Difficulty", "CircleSize", beatmap.column_count)
    chart.set("Difficulty", "OverallDifficulty", beatmap.acc_difficulty)

    chart.rows["Events"] = []
    if beatmap.background is not None:
        background_path = resources.path_for(beatmap.background)
        if background_path is None:
            raise MissingFieldError("background", "resource was not inflated")
        chart.add_row("Events", '0,0,"{}",0,0'.format(background_path))

    chart.rows["TimingPoints"] = []
    effect_points = []
    for point in beatmap.effect_time_points:
        if point.velocity_multiplier > 0:
            effect_points.append(point)
        else:
            logger.warning(
                "Dropped effect point at %d ms in %s: multiplier %s",
                point.offset, beatmap.display_name(), point.velocity_multiplier,
            )
    for point in merge_time_points(beatmap.bpm_time_points, effect_points):
        chart.add_row("TimingPoints", _time_point_row(point))

    chart.rows["HitObjects"] = []
    for obj in beatmap.objects:
        if not 0 <= obj.column < beatmap.column_count:
            raise ValueError("hit object at {} ms in lane {} of a {}-lane chart".format(
                obj.offset, obj.column, beatmap.column_count,
            ))
    for obj in sorted(beatmap.objects, key=lambda o: (o.offset, o.column)):
        chart.add_row("HitObjects", _hit_object_row(obj, beatmap.column_count))

    return chart


def encode_beatmap(beatmap: Beatmap, resources: ResourceOut) -> str:
    """Render a Beatmap as chart text."""
    return dump_chart(build_chart(beatmap, resources))
