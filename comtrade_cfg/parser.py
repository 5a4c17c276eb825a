"""
Line-driven CFG parser.

The parser folds over the lines of a CFG file with two pieces of running
state: an output accumulator (a plain dict, frozen into a ``ParsedRecord``
at end of input) and a ``SchemaLocator`` holding the line boundaries
derived so far. For each line the locator decides which record shape is
expected; the matching handler validates and parses the fields and folds
them into the accumulator.

Failure policy:
- A line that matches a known shape but holds an invalid value aborts
  the parse (``MalformedRecordError`` / ``InvalidDateTimeError``). So
  does a line with the wrong field count inside a channel or rate range.
- A line that matches no shape is skipped and reported as a
  ``Diagnostic``; the accumulator is left unchanged.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from comtrade_cfg.config import ParserOptions
from comtrade_cfg.exceptions import (
    ChannelCountMismatchError,
    MalformedRecordError,
    ParsingError,
    UnknownRevisionError,
)
from comtrade_cfg.fields import parse_count, parse_float, parse_int, split_fields
from comtrade_cfg.locator import LineKind, SchemaLocator
from comtrade_cfg.models import (
    REV_1991,
    REVISIONS,
    AnalogChannel,
    Diagnostic,
    ParsedRecord,
    ParseResult,
    SampleRateSegment,
    StatusChannel,
)
from comtrade_cfg.timestamps import parse_timestamp

logger = logging.getLogger(__name__)

# A handler returns None once the line is folded in, or a reason string
# when the line turns out not to be a record after all.
Handler = Callable[[dict[str, Any], SchemaLocator, int, tuple[str, ...]], "str | None"]


class CfgParser:
    """Parser for the configuration (CFG) half of a COMTRADE recording."""

    def __init__(self, options: ParserOptions | None = None) -> None:
        self.options = options or ParserOptions()
        self._handlers: dict[LineKind, Handler] = {
            LineKind.HEADER: self._header,
            LineKind.CHANNEL_COUNTS: self._channel_counts,
            LineKind.ANALOG_CHANNEL: self._analog_channel,
            LineKind.STATUS_CHANNEL: self._status_channel,
            LineKind.FREQUENCY: self._frequency,
            LineKind.RATE_COUNT: self._rate_count,
            LineKind.RATE_SEGMENT: self._rate_segment,
            LineKind.START_TIMESTAMP: self._start_timestamp,
            LineKind.EVENT_TIMESTAMP: self._event_timestamp,
            LineKind.DAT_FILETYPE: self._dat_filetype,
            LineKind.TIME_MULTIPLIER: self._time_multiplier,
            LineKind.TIME_CODE: self._time_code,
            LineKind.TMQ_CODE: self._tmq_code,
        }

    def parse(self, lines: Iterable[str]) -> ParseResult:
        """Parse CFG content supplied as an ordered iterable of raw lines.

        Lines are consumed one at a time, so a file handle can be passed
        directly without reading it into memory.

        Returns:
            ParseResult with the finished record and the diagnostics for
            lines that matched no known record shape.

        Raises:
            MalformedRecordError: A field failed strict parsing, or a line
                inside a channel/rate range had the wrong field count.
            InvalidDateTimeError: A timestamp line held an invalid date/time.
            UnknownRevisionError: Unknown revision with ``unknown_revision="error"``.
            ChannelCountMismatchError: Totals disagree with
                ``check_channel_totals=True``.
        """
        output: dict[str, Any] = {}
        locator = SchemaLocator()
        diagnostics: list[Diagnostic] = []

        line_count = 0
        for line_number, raw_line in enumerate(lines):
            self._step(line_number, raw_line, output, locator, diagnostics)
            line_count += 1

        record = ParsedRecord(**output)
        logger.info(
            "Parsed %d CFG lines: revision=%s, %d analog, %d status, %d rate segment(s), "
            "%d unrecognised line(s)",
            line_count,
            record.standard,
            len(record.analog_channels),
            len(record.status_channels),
            len(record.sample_rates),
            len(diagnostics),
        )
        return ParseResult(record=record, diagnostics=diagnostics)

    # -- Fold step ----------------------------------------------------------

    def _step(
        self,
        line_number: int,
        raw_line: str,
        output: dict[str, Any],
        locator: SchemaLocator,
        diagnostics: list[Diagnostic],
    ) -> None:
        content = raw_line.strip()
        fields = split_fields(content)
        kind = locator.classify(line_number, len(fields), output.get("standard"))

        if kind is LineKind.UNKNOWN:
            range_kind = locator.range_kind(line_number)
            if range_kind is not None:
                raise MalformedRecordError(
                    f"{range_kind.value} line has {len(fields)} field(s)",
                    line_number,
                    content,
                )
            self._report(diagnostics, line_number, content, fields, "no record shape matches this line")
            return

        handler = self._handlers[kind]
        try:
            reason = handler(output, locator, line_number, fields)
        except ParsingError as exc:
            if exc.line_number is not None:
                raise
            raise type(exc)(str(exc), line_number, content) from exc
        except ValueError as exc:
            raise MalformedRecordError(str(exc), line_number, content) from exc

        if reason is not None:
            self._report(diagnostics, line_number, content, fields, reason)

    def _report(
        self,
        diagnostics: list[Diagnostic],
        line_number: int,
        content: str,
        fields: tuple[str, ...],
        reason: str,
    ) -> None:
        logger.warning("Unrecognised CFG line %d (%s): %r", line_number, reason, content)
        diagnostics.append(
            Diagnostic(line_number=line_number, content=content, fields=fields, reason=reason)
        )

    # -- Record handlers ----------------------------------------------------

    def _header(
        self,
        output: dict[str, Any],
        locator: SchemaLocator,
        line_number: int,
        fields: tuple[str, ...],
    ) -> str | None:
        if len(fields) == 2:
            station, device = fields
            standard = REV_1991
        else:
            station, device, standard = fields
            if standard not in REVISIONS:
                if self.options.unknown_revision == "error":
                    raise UnknownRevisionError(f"Unknown standard revision {standard!r}")
                return f"unknown standard revision {standard!r}"

        output["station"] = station
        output["device"] = device
        output["standard"] = standard
        return None

    def _channel_counts(
        self,
        output: dict[str, Any],
        locator: SchemaLocator,
        line_number: int,
        fields: tuple[str, ...],
    ) -> str | None:
        total, analog, status = fields
        total_channels = parse_int(total, "total_channels")
        analog_count = parse_count(analog, "A", "analog_channel_count")
        status_count = parse_count(status, "D", "status_channel_count")

        if self.options.check_channel_totals and total_channels != analog_count + status_count:
            raise ChannelCountMismatchError(
                f"Total channels {total_channels} != {analog_count} analog "
                f"+ {status_count} status"
            )

        output["total_channels"] = total_channels
        output["analog_channel_count"] = analog_count
        output["status_channel_count"] = status_count
        output["analog_channels"] = []
        output["status_channels"] = []
        locator.on_channel_counts(analog_count, status_count)
        return None

    def _analog_channel(
        self,
        output: dict[str, Any],
        locator: SchemaLocator,
        line_number: int,
        fields: tuple[str, ...],
    ) -> str | None:
        n, name, ph, ccbm, uu, a, b, skew, cmin, cmax, primary, secondary, pors = fields
        channel = AnalogChannel(
            n=parse_int(n, "n"),
            name=name,
            ph=ph,
            ccbm=ccbm,
            uu=uu,
            a=parse_float(a, "a"),
            b=parse_float(b, "b"),
            skew=parse_float(skew, "skew"),
            cmin=parse_float(cmin, "cmin"),
            cmax=parse_float(cmax, "cmax"),
            primary=parse_float(primary, "primary"),
            secondary=parse_float(secondary, "secondary"),
            pors=pors,
        )
        output["analog_channels"].append(channel)
        return None

    def _status_channel(
        self,
        output: dict[str, Any],
        locator: SchemaLocator,
        line_number: int,
        fields: tuple[str, ...],
    ) -> str | None:
        n, name, ph, ccbm, y = fields
        channel = StatusChannel(
            n=parse_int(n, "n"),
            name=name,
            ph=ph,
            ccbm=ccbm,
            y=parse_float(y, "y"),
        )
        output["status_channels"].append(channel)
        return None

    def _frequency(
        self,
        output: dict[str, Any],
        locator: SchemaLocator,
        line_number: int,
        fields: tuple[str, ...],
    ) -> str | None:
        output["frequency"] = parse_float(fields[0], "frequency")
        return None

    def _rate_count(
        self,
        output: dict[str, Any],
        locator: SchemaLocator,
        line_number: int,
        fields: tuple[str, ...],
    ) -> str | None:
        nrates = parse_int(fields[0], "nrates")
        if nrates < 0:
            raise ValueError(f"nrates: expected a non-negative count, got {nrates}")

        if nrates > 0:
            segment_lines = nrates
        elif self.options.zero_rate_segments == "placeholder":
            segment_lines = 1
        else:
            segment_lines = 0

        output["timestamp_critical"] = nrates == 0
        output["nrates"] = nrates if nrates > 0 else 1
        output["sample_rates"] = []
        locator.on_rate_count(segment_lines)
        return None

    def _rate_segment(
        self,
        output: dict[str, Any],
        locator: SchemaLocator,
        line_number: int,
        fields: tuple[str, ...],
    ) -> str | None:
        samp, endsamp = fields
        output["sample_rates"].append(
            SampleRateSegment(
                samp=parse_float(samp, "samp"),
                endsamp=parse_int(endsamp, "endsamp"),
            )
        )
        return None

    def _start_timestamp(
        self,
        output: dict[str, Any],
        locator: SchemaLocator,
        line_number: int,
        fields: tuple[str, ...],
    ) -> str | None:
        output["start_timestamp"] = parse_timestamp(fields[0], fields[1], output["standard"])
        return None

    def _event_timestamp(
        self,
        output: dict[str, Any],
        locator: SchemaLocator,
        line_number: int,
        fields: tuple[str, ...],
    ) -> str | None:
        output["event_timestamp"] = parse_timestamp(fields[0], fields[1], output["standard"])
        return None

    def _dat_filetype(
        self,
        output: dict[str, Any],
        locator: SchemaLocator,
        line_number: int,
        fields: tuple[str, ...],
    ) -> str | None:
        output["dat_filetype"] = fields[0]
        return None

    def _time_multiplier(
        self,
        output: dict[str, Any],
        locator: SchemaLocator,
        line_number: int,
        fields: tuple[str, ...],
    ) -> str | None:
        output["time_multiplier"] = parse_float(fields[0], "time_multiplier")
        locator.on_time_multiplier(line_number)
        return None

    def _time_code(
        self,
        output: dict[str, Any],
        locator: SchemaLocator,
        line_number: int,
        fields: tuple[str, ...],
    ) -> str | None:
        output["time_code"], output["local_code"] = fields
        locator.on_time_code(line_number)
        return None

    def _tmq_code(
        self,
        output: dict[str, Any],
        locator: SchemaLocator,
        line_number: int,
        fields: tuple[str, ...],
    ) -> str | None:
        output["tmq_code"], output["leap_second"] = fields
        return None
