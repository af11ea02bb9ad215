"""Section-level reader and writer for osu! chart text (.osu files).

WHY: The decoder and encoder only care about a few dozen fields, but
they need them out of (and back into) the format's line-oriented,
INI-like layout. This module owns that grammar so the codec modules
work with sections and rows instead of raw text.

HOW: A chart is a "osu file format vN" header followed by "[Section]"
blocks. Key-value sections ([General], [Metadata], ...) become dicts;
list sections ([Events], [TimingPoints], [HitObjects]) keep their raw
comma-separated rows for the codec to interpret.

RULES:
- Missing header → MalformedChartError
- "//" lines are comments and are dropped
- Key-value lines split on the first ":" with both sides stripped
- Unknown sections survive parsing (rows kept, never interpreted)
- Output uses "Key: Value" in [General]/[Editor]/[Colours] and
  "Key:Value" elsewhere, as the game itself writes them
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from univsrg.config import OSU_FILE_FORMAT_VERSION
from univsrg.core.errors import MalformedChartError

_HEADER_RE = re.compile(r"^osu file format v(\d+)$")
_SECTION_RE = re.compile(r"^\[(\w+)\]$")

KEY_VALUE_SECTIONS = frozenset({"General", "Editor", "Metadata", "Difficulty", "Colours"})

# Sections written with a space after the colon.
_SPACED_SECTIONS = frozenset({"General", "Editor", "Colours"})

SECTION_ORDER = (
    "General",
    "Editor",
    "Metadata",
    "Difficulty",
    "Events",
    "TimingPoints",
    "Colours",
    "HitObjects",
)


@dataclass
class OsuChart:
    """A parsed chart file, one level above raw text."""

    format_version: int = OSU_FILE_FORMAT_VERSION
    values: Dict[str, Dict[str, str]] = field(default_factory=dict)
    rows: Dict[str, List[str]] = field(default_factory=dict)

    def get(self, section: str, key: str) -> Optional[str]:
        """Return a key-value field, treating empty values as absent."""
        value = self.values.get(section, {}).get(key)
        return value if value else None

    def set(self, section: str, key: str, value: Union[str, int, float, None]) -> None:
        """Set a key-value field; ``None`` leaves the key out."""
        if value is None:
            return
        self.values.setdefault(section, {})[key] = format_value(value)

    def section_rows(self, section: str) -> List[str]:
        return self.rows.get(section, [])

    def add_row(self, section: str, row: str) -> None:
        self.rows.setdefault(section, []).append(row)


def format_value(value: Union[str, int, float]) -> str:
    """Render a field the way the game writes numbers.

    Integral floats lose their ".0"; other floats use repr so parsing the
    text back yields the identical float.
    """
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def split_row(row: str) -> List[str]:
    return [part.strip() for part in row.split(",")]


def parse_chart(text: str) -> OsuChart:
    """Parse chart text into an OsuChart.

    Raises:
        MalformedChartError: the text does not start with a format header.
    """
    lines = text.lstrip("\ufeff").splitlines()
    index = 0
    while index < len(lines) and not lines[index].strip():
        index += 1
    if index == len(lines):
        raise MalformedChartError("empty chart file")

    match = _HEADER_RE.match(lines[index].strip())
    if match is None:
        raise MalformedChartError(
            "missing 'osu file format' header, got {!r}".format(lines[index][:40])
        )
    chart = OsuChart(format_version=int(match.group(1)))

    section: Optional[str] = None
    for raw in lines[index + 1:]:
        line = raw.strip()
        if not line or line.startswith("//"):
            continue
        header = _SECTION_RE.match(line)
        if header:
            section = header.group(1)
            if section in KEY_VALUE_SECTIONS:
                chart.values.setdefault(section, {})
            else:
                chart.rows.setdefault(section, [])
            continue
        if section is None:
            continue
        if section in KEY_VALUE_SECTIONS:
            key, sep, value = line.partition(":")
            if sep:
                chart.values[section][key.strip()] = value.strip()
        else:
            chart.rows[section].append(line)

    return chart


def read_chart(path: Path) -> OsuChart:
    """Read and parse a chart file from disk.

    Non UTF-8 files are rejected as malformed rather than guessed at.
    """
    try:
        text = Path(path).read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as e:
        raise MalformedChartError("{} is not valid UTF-8: {}".format(path, e)) from e
    return parse_chart(text)


def dump_chart(chart: OsuChart) -> str:
    """Serialize an OsuChart back to chart text."""
    out: List[str] = ["osu file format v{}".format(chart.format_version)]

    known = [name for name in SECTION_ORDER if name in chart.values or name in chart.rows]
    extra = [
        name for name in list(chart.values) + list(chart.rows)
        if name not in SECTION_ORDER
    ]
    for name in known + sorted(set(extra), key=extra.index):
        out.append("")
        out.append("[{}]".format(name))
        if name in KEY_VALUE_SECTIONS:
            separator = ": " if name in _SPACED_SECTIONS else ":"
            for key, value in chart.values.get(name, {}).items():
                out.append("{}{}{}".format(key, separator, value))
        else:
            out.extend(chart.rows.get(name, []))

    return "\n".join(out) + "\n"
