"""Shared fixtures and builders for the univsrg test suite.

WHY: Most tests need a realistic osu!mania chart and a bundle that
contains it. Building them from one place keeps the expected values
(lanes, offsets, bpm) consistent across modules.

HOW: chart_text() renders a 4-key chart with optional overrides;
write_osz() zips a dict of members into an .osz in tmp_path. Fixtures
wrap both for the common single-bundle case.

RULES:
- All file I/O happens under pytest's tmp_path
- chart_text(field=None) omits that field's line entirely
- The sample chart's expected model values are listed in SAMPLE_*
"""

import zipfile
from pathlib import Path
from typing import Dict, Optional, Union

import pytest

from univsrg.core.types import (
    Beatmap,
    BpmTimePoint,
    EffectTimePoint,
    LatinAndUnicodeString,
    LongNote,
    Note,
    Package,
)

AUDIO_BYTES = b"ID3\x03fake-mp3-audio-payload"
BACKGROUND_BYTES = b"\xff\xd8\xff\xe0fake-jpeg-background"

# Expected model values for chart_text() with default arguments.
SAMPLE_OBJECTS = [
    Note(column=0, offset=0),
    LongNote(column=1, offset=500, end_offset=1000),
    Note(column=2, offset=750),
    Note(column=3, offset=1000),
]
SAMPLE_BPM = [(0, 120.0, 4), (1000, 140.0, 4)]
SAMPLE_EFFECTS = [(500, 2.0)]


def chart_text(
    *,
    title: Optional[str] = "Sample Song",
    title_unicode: Optional[str] = "サンプル",
    artist: Optional[str] = "Someone",
    artist_unicode: Optional[str] = "誰か",
    creator: Optional[str] = "mapper",
    version: Optional[str] = "Hard",
    circle_size: Optional[str] = "4",
    mode: Optional[str] = "3",
    audio: Optional[str] = "audio.mp3",
    background: Optional[str] = "bg.jpg",
) -> str:
    """Render a 4-key osu!mania chart; ``None`` drops that line."""

    def line(key: str, value: Optional[str], sep: str = ":") -> str:
        return "" if value is None else "{}{}{}\n".format(key, sep, value)

    events = '0,0,"{}",0,0\n'.format(background) if background is not None else ""
    return (
        "osu file format v14\n"
        "\n[General]\n"
        + line("AudioFilename", audio, ": ")
        + "AudioLeadIn: 0\n"
        + "PreviewTime: 12345\n"
        + line("Mode", mode, ": ")
        + "\n[Metadata]\n"
        + line("Title", title)
        + line("TitleUnicode", title_unicode)
        + line("Artist", artist)
        + line("ArtistUnicode", artist_unicode)
        + line("Creator", creator)
        + line("Version", version)
        + "\n[Difficulty]\n"
        + "HPDrainRate:8\n"
        + line("CircleSize", circle_size)
        + "OverallDifficulty:7.5\n"
        + "\n[Events]\n//Background and Video events\n"
        + events
        + "\n[TimingPoints]\n"
        "0,500,4,2,0,100,1,0\n"
        "500,-50,4,2,0,100,0,0\n"
        "1000,428.571428571429,4,2,0,100,1,0\n"
        "\n[HitObjects]\n"
        "64,192,0,1,0,0:0:0:0:\n"
        "192,192,500,128,0,1000:0:0:0:0:\n"
        "320,192,750,1,0,0:0:0:0:\n"
        "448,192,1000,5,0,0:0:0:0:\n"
        "256,192,1200,2,0,B|300:192,1,70\n"
    )


def write_osz(path: Path, members: Dict[str, Union[str, bytes]]) -> Path:
    """Zip ``members`` (name → text or bytes) into an .osz at ``path``."""
    with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as archive:
        for name, content in members.items():
            if isinstance(content, str):
                content = content.encode("utf-8")
            archive.writestr(name, content)
    return path


def default_members(**chart_overrides) -> Dict[str, Union[str, bytes]]:
    return {
        "mapper - サンプル - Hard.osu": chart_text(**chart_overrides),
        "audio.mp3": AUDIO_BYTES,
        "bg.jpg": BACKGROUND_BYTES,
    }


@pytest.fixture
def bundle_dir(tmp_path):
    """An extracted bundle: one chart plus its audio and background."""
    directory = tmp_path / "bundle"
    directory.mkdir()
    for name, content in default_members().items():
        target = directory / name
        if isinstance(content, str):
            target.write_text(content, encoding="utf-8")
        else:
            target.write_bytes(content)
    return directory


@pytest.fixture
def sample_osz(tmp_path):
    return write_osz(tmp_path / "sample.osz", default_members())


@pytest.fixture
def sample_package():
    """A Package with one fully populated beatmap, built without I/O."""
    package = Package()
    audio, _ = package.resource_pool.insert("audio.mp3", AUDIO_BYTES)
    background, _ = package.resource_pool.insert("bg.jpg", BACKGROUND_BYTES)
    package.beatmaps.append(Beatmap(
        title=LatinAndUnicodeString("Sample Song", "サンプル"),
        artist=LatinAndUnicodeString("Someone", "誰か"),
        version="Hard",
        creator="mapper",
        column_count=4,
        audio=audio,
        background=background,
        hp_difficulty=8.0,
        acc_difficulty=7.5,
        audio_lead_in=0,
        preview_time=12345,
        bpm_time_points=[BpmTimePoint(o, b, m) for o, b, m in SAMPLE_BPM],
        effect_time_points=[EffectTimePoint(o, v) for o, v in SAMPLE_EFFECTS],
        objects=list(SAMPLE_OBJECTS),
    ))
    return package
