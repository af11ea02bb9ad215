"""Decode one osu!mania chart into a Beatmap.

WHY: Each .osu file in a bundle is one difficulty. The converter needs
its metadata, lane count, media, timing and notes in the game-agnostic
model, with media pooled so identical files are stored once.

HOW: decode_beatmap() walks the parsed OsuChart section by section:
  [General]      → mode check, audio, lead-in, preview time
  [Metadata]     → title/artist pairs, creator, version
  [Difficulty]   → lane count (CircleSize), HP and accuracy
  [Events]       → first background image
  [TimingPoints] → split into BpmTimePoint / EffectTimePoint
  [HitObjects]   → Note / LongNote with lanes from x

RULES:
- Lane count is mandatory: absent → MissingFieldError
- Non-mania charts → UnsupportedModeError
- Unparseable timing/hit object rows are dropped, not fatal
- Audio file missing from the bundle → OSError (chart skipped by caller)
- Background file missing → warning, background left unset
- Resources resolve through the pool's path index first, then disk
- Path index keys are relative to the bundle root, so charts in
  different subfolders never share a slot for the same recorded name
"""

from __future__ import annotations

import logging
import math
import posixpath
from pathlib import Path, PurePosixPath
from typing import List, Optional, Tuple

from univsrg.config import DEFAULT_BEATS_PER_BAR, MANIA_MODE
from univsrg.core.errors import MalformedChartError, MissingFieldError, UnsupportedModeError
from univsrg.core.resource import ResourceEntry, ResourcePool, normalize_resource_path
from univsrg.core.types import (
    Beatmap,
    BpmTimePoint,
    EffectTimePoint,
    HitObject,
    LatinAndUnicodeString,
    LongNote,
    Note,
)
from univsrg.formats.osu.chart import OsuChart, read_chart, split_row
from univsrg.formats.osu.lanes import column_from_x

logger = logging.getLogger(__name__)

# Hit object type bits.
_TYPE_CIRCLE = 1
_TYPE_HOLD = 128

_BACKGROUND_EVENT_TYPES = frozenset({"0", "Background"})


def _parse_float(text: Optional[str]) -> Optional[float]:
    if text is None:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _parse_int(text: Optional[str]) -> Optional[int]:
    # The game accepts "1234.0" where an integer is expected.
    value = _parse_float(text)
    return None if value is None else int(value)


def _find_in_bundle(source_dir: Path, relative: str) -> Path:
    """Locate a chart-referenced file, matching names case-insensitively.

    Charts are usually authored on case-insensitive filesystems, so the
    recorded name and the archived name may differ only in case.
    """
    pure = PurePosixPath(relative)
    if not relative or pure.is_absolute() or ".." in pure.parts:
        raise FileNotFoundError("refusing to resolve {!r} outside the bundle".format(relative))

    exact = source_dir.joinpath(*pure.parts)
    if exact.is_file():
        return exact

    current = source_dir
    for part in pure.parts:
        if not current.is_dir():
            break
        lowered = part.lower()
        matches = sorted(p for p in current.iterdir() if p.name.lower() == lowered)
        if not matches:
            break
        current = matches[0]
    else:
        if current.is_file():
            return current
    raise FileNotFoundError("{} not found in bundle".format(relative))


def load_resource(
    pool: ResourcePool,
    source_dir: Path,
    recorded_path: str,
    bundle_root: Optional[Path] = None,
) -> ResourceEntry:
    """Resolve a chart-recorded path to a pooled ResourceEntry.

    ``recorded_path`` is relative to ``source_dir`` (the chart's folder).
    The entry is indexed under its path from ``bundle_root``, which
    defaults to ``source_dir``.
    """
    relative = normalize_resource_path(recorded_path)
    key = relative
    if bundle_root is not None and relative:
        prefix = Path(source_dir).relative_to(bundle_root).as_posix()
        key = normalize_resource_path(posixpath.join(prefix, relative))
    cached = pool.lookup_by_path(key)
    if cached is not None:
        return cached
    file_path = _find_in_bundle(Path(source_dir), relative)
    entry, _ = pool.insert(key, file_path.read_bytes())
    return entry


def _decode_column_count(chart: OsuChart) -> int:
    raw = chart.get("Difficulty", "CircleSize")
    if raw is None:
        raise MissingFieldError("column_count", "[Difficulty] CircleSize is absent")
    value = _parse_float(raw)
    if value is None or round(value) < 1:
        raise MalformedChartError("invalid lane count {!r}".format(raw))
    return int(round(value))


def _check_mode(chart: OsuChart) -> None:
    raw = chart.get("General", "Mode")
    if raw is not None and _parse_int(raw) != MANIA_MODE:
        raise UnsupportedModeError(raw)


def decode_time_points(rows: List[str]) -> Tuple[List[BpmTimePoint], List[EffectTimePoint]]:
    """Split the merged [TimingPoints] list into tempo and effect points.

    Both returned lists are sorted ascending by offset (stable, so rows
    sharing an offset keep file order).
    """
    bpm_points: List[BpmTimePoint] = []
    effect_points: List[EffectTimePoint] = []

    for row in rows:
        parts = split_row(row)
        offset = _parse_int(parts[0])
        beat_length = _parse_float(parts[1]) if len(parts) > 1 else None
        if offset is None or beat_length is None:
            logger.debug("Dropped timing point %r", row)
            continue

        # Absent or unreadable flag means a tempo row.
        uninherited = _parse_int(parts[6]) != 0 if len(parts) > 6 else True
        if uninherited:
            if beat_length <= 0:
                logger.debug("Dropped timing point with beat length %s", beat_length)
                continue
            meter = _parse_int(parts[2]) if len(parts) > 2 else None
            if meter is None or meter <= 0:
                meter = DEFAULT_BEATS_PER_BAR
            bpm_points.append(BpmTimePoint(offset, 60000.0 / beat_length, meter))
        else:
            velocity = 100.0 / -beat_length if beat_length < 0 else 1.0
            effect_points.append(EffectTimePoint(offset, velocity))

    bpm_points.sort(key=lambda p: p.offset)
    effect_points.sort(key=lambda p: p.offset)
    return bpm_points, effect_points


def decode_hit_objects(rows: List[str], column_count: int) -> List[HitObject]:
    objects: List[HitObject] = []
    for row in rows:
        parts = split_row(row)
        if len(parts) < 4:
            logger.debug("Dropped hit object %r", row)
            continue
        x = _parse_int(parts[0])
        offset = _parse_int(parts[2])
        kind = _parse_int(parts[3])
        if x is None or offset is None or kind is None:
            logger.debug("Dropped hit object %r", row)
            continue

        column = column_from_x(x, column_count)
        if kind & _TYPE_HOLD:
            end_offset = _parse_int(parts[5].split(":")[0]) if len(parts) > 5 else None
            if end_offset is None:
                logger.debug("Dropped hold without end time %r", row)
                continue
            objects.append(LongNote(column, offset, end_offset))
        elif kind & _TYPE_CIRCLE:
            objects.append(Note(column, offset))
    return objects


def _background_path(rows: List[str]) -> Optional[str]:
    for row in rows:
        parts = split_row(row)
        if len(parts) >= 3 and parts[0] in _BACKGROUND_EVENT_TYPES:
            return parts[2].strip('"')
    return None


def decode_beatmap(
    chart: OsuChart,
    source_dir: Path,
    pool: ResourcePool,
    bundle_root: Optional[Path] = None,
) -> Beatmap:
    """Build a Beatmap from a parsed chart, pooling the media it references.

    Args:
        chart: The parsed chart text.
        source_dir: Directory the chart's relative media paths start from.
        pool: The Package's resource pool (mutated).
        bundle_root: Extracted bundle root, when the chart sits in a
            subfolder of it. Defaults to ``source_dir``.

    Raises:
        MissingFieldError: no lane count.
        MalformedChartError: unusable lane count or non-mania chart.
        OSError: the audio file cannot be read.
    """
    _check_mode(chart)
    column_count = _decode_column_count(chart)

    beatmap = Beatmap(
        title=LatinAndUnicodeString(
            chart.get("Metadata", "Title"), chart.get("Metadata", "TitleUnicode")
        ),
        artist=LatinAndUnicodeString(
            chart.get("Metadata", "Artist"), chart.get("Metadata", "ArtistUnicode")
        ),
        version=chart.get("Metadata", "Version"),
        creator=chart.get("Metadata", "Creator"),
        column_count=column_count,
        hp_difficulty=_parse_float(chart.get("Difficulty", "HPDrainRate")),
        acc_difficulty=_parse_float(chart.get("Difficulty", "OverallDifficulty")),
        audio_lead_in=_parse_int(chart.get("General", "AudioLeadIn")),
        preview_time=_parse_int(chart.get("General", "PreviewTime")),
    )

    audio_path = chart.get("General", "AudioFilename")
    if audio_path is not None:
        beatmap.audio = load_resource(pool, source_dir, audio_path, bundle_root)
    else:
        logger.warning("%s has no AudioFilename", beatmap.display_name())

    background_path = _background_path(chart.section_rows("Events"))
    if background_path:
        try:
            beatmap.background = load_resource(pool, source_dir, background_path, bundle_root)
        except OSError as e:
            logger.warning("Background skipped for %s: %s", beatmap.display_name(), e)

    beatmap.bpm_time_points, beatmap.effect_time_points = decode_time_points(
        chart.section_rows("TimingPoints")
    )
    beatmap.objects = decode_hit_objects(chart.section_rows("HitObjects"), column_count)
    return beatmap


def decode_chart_file(
    chart_path: Path,
    source_dir: Path,
    pool: ResourcePool,
    bundle_root: Optional[Path] = None,
) -> Beatmap:
    """Read a .osu file and decode it against ``source_dir``."""
    return decode_beatmap(read_chart(chart_path), source_dir, pool, bundle_root)
