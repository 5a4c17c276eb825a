"""
Unit tests for the CFG parser (comtrade_cfg.parser / comtrade_cfg.parse_text).

Uses small inline CFG strings. Each test notes the line layout it
relies on where that is not obvious from the sample.
"""

from __future__ import annotations

from datetime import datetime

import pandas as pd
import pytest

from comtrade_cfg import parse_lines, parse_text
from comtrade_cfg.config import ParserOptions
from comtrade_cfg.exceptions import (
    ChannelCountMismatchError,
    InvalidDateTimeError,
    MalformedRecordError,
    UnknownRevisionError,
)
from comtrade_cfg.parser import CfgParser
from tests.conftest import CFG_1991, CFG_1999_ZERO_RATES, CFG_2013


def _analog_line(n: int) -> str:
    return f"{n},CH{n},A,BUS,V,1.0,0.0,0.0,-100,100,1,1,P"


def _status_line(n: int) -> str:
    return f"{n},ST{n},,BKR,0"


# ---------------------------------------------------------------------------
# Header line
# ---------------------------------------------------------------------------

class TestHeader:
    """Line 0: station, device and optional revision."""

    def test_two_fields_is_1991(self):
        record = parse_lines(["StationA,DeviceB"]).record
        assert record.station == "StationA"
        assert record.device == "DeviceB"
        assert record.standard == "1991"

    @pytest.mark.parametrize("revision", ["1991", "1999", "2001", "2013"])
    def test_known_revision_kept(self, revision):
        record = parse_lines([f"StationA,DeviceB,{revision}"]).record
        assert record.standard == revision

    def test_unknown_revision_is_unrecognised(self):
        result = parse_lines(["StationA,DeviceB,2099"])
        assert result.record.station is None
        assert result.record.device is None
        assert result.record.standard is None
        assert len(result.diagnostics) == 1
        diag = result.diagnostics[0]
        assert diag.line_number == 0
        assert diag.content == "StationA,DeviceB,2099"
        assert "2099" in diag.reason

    def test_unknown_revision_strict(self):
        options = ParserOptions(unknown_revision="error")
        with pytest.raises(UnknownRevisionError) as exc_info:
            parse_lines(["StationA,DeviceB,2099"], options)
        assert exc_info.value.line_number == 0

    def test_unknown_revision_parse_continues(self):
        text = CFG_2013.replace(",2013\n", ",2099\n", 1)
        result = parse_text(text)
        record = result.record
        assert record.standard is None
        # Channel lines do not depend on the revision
        assert len(record.analog_channels) == 1
        assert len(record.status_channels) == 1
        # Timestamps do: lines 7 and 8 are reported, not parsed
        assert record.start_timestamp is None
        assert {d.line_number for d in result.diagnostics} >= {0, 7, 8}


# ---------------------------------------------------------------------------
# Channel counts and channel lines
# ---------------------------------------------------------------------------

class TestChannels:
    """Line 1 and the analog/status ranges it fixes."""

    def test_counts_fix_channel_ranges(self):
        lines = (
            ["S,D,2013", "20,4A,16D"]
            + [_analog_line(i) for i in range(1, 5)]
            + [_status_line(i) for i in range(1, 17)]
            + ["50"]
        )
        result = parse_lines(lines)
        record = result.record
        assert record.total_channels == 20
        assert record.analog_channel_count == 4
        assert record.status_channel_count == 16
        assert [ch.n for ch in record.analog_channels] == [1, 2, 3, 4]
        assert [ch.n for ch in record.status_channels] == list(range(1, 17))
        assert record.frequency == 50.0
        assert result.diagnostics == []

    def test_empty_counts_default_to_zero(self):
        record = parse_lines(["S,D", ",,"]).record
        assert record.total_channels == 0
        assert record.analog_channel_count == 0
        assert record.status_channel_count == 0

    def test_no_channels_moves_frequency_to_line_two(self):
        record = parse_lines(["S,D", "0,0A,0D", "60"]).record
        assert record.frequency == 60.0
        assert record.analog_channels == ()

    def test_channels_in_file_order(self):
        record = parse_text(CFG_1991).record
        assert record.analog_ids == ["IA", "IB"]
        assert record.status_ids == ["BRK"]

    def test_analog_fields_typed(self):
        ch = parse_text(CFG_2013).record.analog_channels[0]
        assert ch.n == 1
        assert ch.name == "VA"
        assert ch.ph == "A"
        assert ch.ccbm == "BUS1"
        assert ch.uu == "kV"
        assert ch.a == pytest.approx(0.1)
        assert ch.b == pytest.approx(0.5)
        assert ch.cmin == -32767.0
        assert ch.primary == 500.0
        assert ch.secondary == pytest.approx(0.1)
        assert ch.pors == "P"
        assert ch.scale(10) == pytest.approx(1.5)

    def test_status_fields_typed(self):
        ch = parse_text(CFG_2013).record.status_channels[0]
        assert (ch.n, ch.name, ch.ph, ch.ccbm, ch.y) == (1, "TRIP", "", "BKR1", 0.0)

    def test_bad_count_suffix(self):
        with pytest.raises(MalformedRecordError) as exc_info:
            parse_lines(["S,D", "2,1D,1A"])
        assert exc_info.value.line_number == 1

    def test_totals_not_checked_by_default(self):
        record = parse_lines(["S,D", "5,1A,1D"]).record
        assert record.total_channels == 5

    def test_totals_checked_when_enabled(self):
        options = ParserOptions(check_channel_totals=True)
        with pytest.raises(ChannelCountMismatchError, match="5 != 1 analog"):
            parse_lines(["S,D", "5,1A,1D"], options)

    def test_wrong_arity_inside_analog_range_is_fatal(self):
        with pytest.raises(MalformedRecordError, match="analog_channel") as exc_info:
            parse_lines(["S,D", "1,1A,0D", "1,VA,A,BUS,V,1,0"])
        assert exc_info.value.line_number == 2

    def test_wrong_arity_inside_status_range_is_fatal(self):
        with pytest.raises(MalformedRecordError, match="status_channel"):
            parse_lines(["S,D", "1,0A,1D", "1,TRIP,,BKR"])


# ---------------------------------------------------------------------------
# Rate count and segments
# ---------------------------------------------------------------------------

class TestSampleRates:
    """Rate-count line, segments and the zero-count rule."""

    def test_one_segment(self):
        record = parse_text(CFG_1991).record
        assert record.nrates == 1
        assert record.timestamp_critical is False
        assert len(record.sample_rates) == 1
        assert record.sample_rates[0].samp == 1000.0
        assert record.sample_rates[0].endsamp == 2000
        assert record.total_samples == 2000

    def test_several_segments(self):
        lines = [
            "S,D,1999", "0,0A,0D", "50", "2",
            "4000,100", "1000,300",
            "01/01/2000,00:00:00", "01/01/2000,00:00:01", "ASCII", "1",
        ]
        result = parse_lines(lines)
        record = result.record
        assert record.nrates == 2
        assert [(s.samp, s.endsamp) for s in record.sample_rates] == [(4000.0, 100), (1000.0, 300)]
        assert record.dat_filetype == "ASCII"
        assert record.time_multiplier == 1.0
        assert result.diagnostics == []

    def test_zero_rates_consumes_no_segment_line(self):
        result = parse_text(CFG_1999_ZERO_RATES)
        record = result.record
        assert record.timestamp_critical is True
        assert record.nrates == 1
        assert record.sample_rates == ()
        # The line after the rate count is the start timestamp
        assert record.start_timestamp.value == datetime(2001, 2, 1, 0, 0, 1)
        assert record.event_timestamp.value == datetime(2001, 2, 1, 0, 0, 1, 100000)
        assert record.dat_filetype == "FLOAT32"
        assert record.time_multiplier == 1000.0
        assert result.diagnostics == []

    def test_zero_rates_with_placeholder_line(self):
        text = CFG_1999_ZERO_RATES.replace("\n0\n", "\n0\n0,2500\n", 1)
        options = ParserOptions(zero_rate_segments="placeholder")
        result = parse_text(text, options)
        record = result.record
        assert record.timestamp_critical is True
        assert record.nrates == 1
        assert [(s.samp, s.endsamp) for s in record.sample_rates] == [(0.0, 2500)]
        assert record.dat_filetype == "FLOAT32"
        assert result.diagnostics == []

    def test_placeholder_line_without_option_desynchronises(self):
        text = CFG_1999_ZERO_RATES.replace("\n0\n", "\n0\n0,2500\n", 1)
        with pytest.raises(InvalidDateTimeError) as exc_info:
            parse_text(text)
        assert exc_info.value.line_number == 5

    def test_negative_rate_count(self):
        with pytest.raises(MalformedRecordError, match="non-negative"):
            parse_lines(["S,D", "0,0A,0D", "50", "-1"])

    def test_bad_segment_value(self):
        with pytest.raises(MalformedRecordError, match="endsamp"):
            parse_lines(["S,D", "0,0A,0D", "50", "1", "1000,12x"])


# ---------------------------------------------------------------------------
# Timestamps and trailer
# ---------------------------------------------------------------------------

class TestTimestampLines:
    """Start/event timestamps and revision-dependent date order."""

    def test_1991_month_first(self):
        record = parse_text(CFG_1991).record
        assert record.start_timestamp.value == datetime(1999, 3, 4, 8, 0, 0)
        assert record.start_timestamp.fraction_digits == 3

    def test_2013_day_first(self):
        record = parse_text(CFG_2013).record
        assert record.start_timestamp.value == datetime(2023, 3, 4, 10, 15, 30, 123456)
        assert record.event_timestamp.value == datetime(2023, 3, 4, 10, 15, 30, 223456)

    def test_trigger_offset(self):
        record = parse_text(CFG_1991).record
        assert record.trigger_offset.total_seconds() == pytest.approx(0.5)

    def test_trigger_offset_keeps_nanoseconds(self):
        text = CFG_2013.replace("10:15:30.123456\n", "10:15:30.000000100\n", 1)
        text = text.replace("10:15:30.223456\n", "10:15:30.000000900\n", 1)
        record = parse_text(text).record
        assert record.trigger_offset == pd.Timedelta(nanoseconds=800)

    def test_trigger_offset_across_microsecond_boundary(self):
        text = CFG_2013.replace("10:15:30.123456\n", "10:15:30.000000999\n", 1)
        text = text.replace("10:15:30.223456\n", "10:15:31.000001001\n", 1)
        record = parse_text(text).record
        assert record.trigger_offset == pd.Timedelta(seconds=1, nanoseconds=2)

    def test_invalid_date_reports_line(self):
        text = CFG_1991.replace("03/04/1999,08:00:00.000", "13/04/1999,08:00:00.000", 1)
        with pytest.raises(InvalidDateTimeError) as exc_info:
            parse_text(text)
        assert exc_info.value.line_number == 8
        assert exc_info.value.content == "13/04/1999,08:00:00.000"


class TestTrailer:
    """Time multiplier and the 2013-only trailer lines."""

    def test_2013_trailer(self):
        record = parse_text(CFG_2013).record
        assert record.dat_filetype == "BINARY"
        assert record.time_multiplier == 1.0
        assert record.time_code == "-4"
        assert record.local_code == "-4"
        assert record.tmq_code == "B"
        assert record.leap_second == "3"

    def test_trailer_lines_ignored_for_older_revisions(self):
        text = CFG_2013.replace(",2013\n", ",2001\n", 1)
        result = parse_text(text)
        record = result.record
        assert record.standard == "2001"
        assert record.time_multiplier == 1.0
        assert record.time_code is None
        assert record.tmq_code is None
        assert record.dat_filetype == "BINARY"
        assert len(record.analog_channels) == 1
        assert [d.line_number for d in result.diagnostics] == [11, 12]

    def test_1991_has_no_time_multiplier(self):
        result = parse_text(CFG_1991 + "1.0\n")
        assert result.record.time_multiplier is None
        assert [d.line_number for d in result.diagnostics] == [11]

    def test_bad_time_multiplier(self):
        text = CFG_1999_ZERO_RATES.replace("\n1000\n", "\nfast\n")
        with pytest.raises(MalformedRecordError, match="time_multiplier"):
            parse_text(text)


# ---------------------------------------------------------------------------
# End-to-end and failure policy
# ---------------------------------------------------------------------------

class TestEndToEnd:
    """Whole-file behaviour."""

    def test_2013_file(self):
        result = parse_text(CFG_2013)
        record = result.record
        assert record.station == "SUBSTATION A"
        assert record.device == "RELAY 7"
        assert record.standard == "2013"
        assert len(record.analog_channels) == 1
        assert len(record.status_channels) == 1
        assert len(record.sample_rates) == 1
        assert record.frequency == 60.0
        assert record.time_code and record.local_code
        assert record.tmq_code and record.leap_second
        assert record.time_multiplier == 1.0
        assert result.diagnostics == []

    def test_trailing_garbage_in_integer_is_fatal(self):
        text = CFG_2013.replace("\n1,VA,", "\n12x,VA,", 1)
        with pytest.raises(MalformedRecordError, match="12x") as exc_info:
            parse_text(text)
        assert exc_info.value.line_number == 2

    def test_unrecognised_line_leaves_record_unchanged(self):
        clean = parse_text(CFG_1991).record
        result = parse_text(CFG_1991 + "extra,junk,line\n")
        assert result.record == clean
        assert len(result.diagnostics) == 1
        assert result.diagnostics[0].fields == ("extra", "junk", "line")

    def test_unrecognised_lines_are_logged(self, caplog):
        parse_text(CFG_1991 + "extra\n")
        assert "Unrecognised CFG line 11" in caplog.text

    def test_record_is_frozen(self):
        record = parse_text(CFG_1991).record
        with pytest.raises(Exception):
            record.station = "other"

    def test_parser_reusable(self):
        parser = CfgParser()
        first = parser.parse(CFG_1991.splitlines())
        second = parser.parse(CFG_2013.splitlines())
        assert first.record.standard == "1991"
        assert second.record.standard == "2013"

    def test_empty_input(self):
        result = parse_lines([])
        assert result.record.station is None
        assert result.diagnostics == []

    def test_lines_consumed_lazily(self):
        consumed = []

        def _lines():
            for line in CFG_1991.splitlines():
                consumed.append(line)
                yield line

        result = parse_lines(_lines())
        assert len(consumed) == 11
        assert result.record.dat_filetype == "ASCII"

    @pytest.mark.parametrize("separator", ["\x0b", "\x0c", "\x1c", "\x1d", "\x1e", "\x85", "\u2028"])
    def test_text_breaks_lines_like_a_file(self, separator):
        text = CFG_2013.replace("SUBSTATION A", f"SUB{separator}STATION", 1)
        result = parse_text(text)
        assert result.record.station == f"SUB{separator}STATION"
        assert result.diagnostics == []

    def test_text_with_cr_only_line_endings(self):
        record = parse_text(CFG_1991.replace("\n", "\r")).record
        assert record.dat_filetype == "ASCII"
        assert record.analog_ids == ["IA", "IB"]
