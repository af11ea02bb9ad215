"""Unit tests for the osu! chart text reader/writer."""

import pytest

from univsrg.core.errors import MalformedChartError
from univsrg.formats.osu.chart import (
    OsuChart,
    dump_chart,
    format_value,
    parse_chart,
    read_chart,
    split_row,
)

from conftest import chart_text


class TestParseChart:

    def test_header_version(self):
        chart = parse_chart("osu file format v7\n[General]\nMode: 3\n")
        assert chart.format_version == 7

    def test_key_value_sections(self):
        chart = parse_chart(chart_text())
        assert chart.get("General", "AudioFilename") == "audio.mp3"
        assert chart.get("Metadata", "Title") == "Sample Song"
        assert chart.get("Difficulty", "CircleSize") == "4"

    def test_value_keeps_colons_after_first(self):
        chart = parse_chart("osu file format v14\n[Metadata]\nTitle:Re:Zero\n")
        assert chart.get("Metadata", "Title") == "Re:Zero"

    def test_empty_value_reads_as_absent(self):
        chart = parse_chart("osu file format v14\n[Metadata]\nSource:\n")
        assert chart.get("Metadata", "Source") is None

    def test_comments_dropped_from_rows(self):
        chart = parse_chart(chart_text())
        assert chart.section_rows("Events") == ['0,0,"bg.jpg",0,0']

    def test_list_sections_keep_raw_rows(self):
        chart = parse_chart(chart_text())
        assert len(chart.section_rows("TimingPoints")) == 3
        assert len(chart.section_rows("HitObjects")) == 5

    def test_bom_and_crlf(self):
        text = "\ufeffosu file format v14\r\n\r\n[General]\r\nMode: 3\r\n"
        chart = parse_chart(text)
        assert chart.get("General", "Mode") == "3"

    def test_unknown_section_kept(self):
        chart = parse_chart("osu file format v14\n[Storyboard]\nSprite,Foreground\n")
        assert chart.section_rows("Storyboard") == ["Sprite,Foreground"]

    def test_missing_header(self):
        with pytest.raises(MalformedChartError):
            parse_chart("[General]\nMode: 3\n")

    def test_empty_text(self):
        with pytest.raises(MalformedChartError):
            parse_chart("\n\n")

    def test_read_chart_rejects_non_utf8(self, tmp_path):
        path = tmp_path / "bad.osu"
        path.write_bytes(b"osu file format v14\n[Metadata]\nTitle:\xff\xfe\x80\n")
        with pytest.raises(MalformedChartError):
            read_chart(path)


class TestDumpChart:

    def test_section_order_and_separators(self):
        chart = OsuChart()
        chart.add_row("HitObjects", "64,192,0,1,0,0:0:0:0:")
        chart.set("Metadata", "Title", "Song")
        chart.set("General", "Mode", 3)
        text = dump_chart(chart)
        assert text == (
            "osu file format v14\n"
            "\n[General]\nMode: 3\n"
            "\n[Metadata]\nTitle:Song\n"
            "\n[HitObjects]\n64,192,0,1,0,0:0:0:0:\n"
        )

    def test_set_none_is_noop(self):
        chart = OsuChart()
        chart.set("Difficulty", "HPDrainRate", None)
        assert chart.values == {}

    def test_dump_then_parse(self):
        original = parse_chart(chart_text())
        again = parse_chart(dump_chart(original))
        assert again.values == original.values
        assert again.rows == original.rows


class TestHelpers:

    @pytest.mark.parametrize("value, expected", [
        (4, "4"),
        (8.0, "8"),
        (7.5, "7.5"),
        (-50.0, "-50"),
        (True, "1"),
        ("text", "text"),
    ])
    def test_format_value(self, value, expected):
        assert format_value(value) == expected

    def test_format_value_float_round_trips(self):
        value = 60000.0 / 140.0
        assert float(format_value(value)) == value

    def test_split_row_strips(self):
        assert split_row(" 1, 2 ,3") == ["1", "2", "3"]
