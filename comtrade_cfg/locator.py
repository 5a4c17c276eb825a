"""
Schema locator: which record shape a CFG line must have.

The CFG grammar is context-sensitive. Only lines 0 and 1 have fixed
meanings; every later line's role depends on counts read earlier (the
channel counts fix the channel ranges, the rate count fixes the rate
segment range and the timestamp lines, and so on). ``SchemaLocator``
holds those derived line boundaries. Each boundary is written exactly
once, the moment its determining value is read, and never changes
afterwards.

Line layout (0-based, A analog and D status channels, R rate lines):

    0                       station,device[,revision]
    1                       total,<A>A,<D>D
    2 .. A+1                analog channels
    A+2 .. A+D+1            status channels
    A+D+2                   frequency
    A+D+3                   rate count
    A+D+4 .. A+D+3+R        rate segments
    A+D+4+R                 start timestamp
    A+D+5+R                 event timestamp
    A+D+6+R                 DAT file type
    A+D+7+R                 time multiplier (1999/2001/2013)
    A+D+8+R                 time code, local code (2013)
    A+D+9+R                 TMQ code, leap second (2013)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from enum import Enum

from comtrade_cfg.exceptions import LocatorStateError
from comtrade_cfg.models import NEWER_REVISIONS, REV_2013

logger = logging.getLogger(__name__)

HEADER_LINE = 0
CHANNEL_COUNTS_LINE = 1
FIRST_ANALOG_LINE = 2

ANALOG_FIELDS = 13
STATUS_FIELDS = 5


class LineKind(Enum):
    """Record shape expected on a CFG line."""
    HEADER = "header"
    CHANNEL_COUNTS = "channel_counts"
    ANALOG_CHANNEL = "analog_channel"
    STATUS_CHANNEL = "status_channel"
    FREQUENCY = "frequency"
    RATE_COUNT = "rate_count"
    RATE_SEGMENT = "rate_segment"
    START_TIMESTAMP = "start_timestamp"
    EVENT_TIMESTAMP = "event_timestamp"
    DAT_FILETYPE = "dat_filetype"
    TIME_MULTIPLIER = "time_multiplier"
    TIME_CODE = "time_code"
    TMQ_CODE = "tmq_code"
    UNKNOWN = "unknown"


def _in_range(index: int, start: int | None, end: int | None) -> bool:
    if start is None or end is None:
        return False
    return start <= index <= end


@dataclass
class SchemaLocator:
    """Derived line boundaries of one CFG file.

    All boundaries start as ``None``. Assigning a boundary that is
    already set raises ``LocatorStateError``. A range whose start is
    greater than its end is empty.
    """

    analog_start: int | None = None
    analog_end: int | None = None
    status_start: int | None = None
    status_end: int | None = None
    frequency_line: int | None = None
    nrates_line: int | None = None
    rate_start: int | None = None
    rate_end: int | None = None
    start_timestamp_line: int | None = None
    event_timestamp_line: int | None = None
    dat_filetype_line: int | None = None
    time_code_line: int | None = None
    tmq_code_line: int | None = None

    def __setattr__(self, name: str, value: int | None) -> None:
        current = getattr(self, name, None)
        if current is not None:
            raise LocatorStateError(
                f"Boundary '{name}' already set to {current}; refusing to set {value}"
            )
        super().__setattr__(name, value)

    def boundaries(self) -> dict[str, int | None]:
        """Snapshot of all boundaries, in file order."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    # -- Boundary derivation ------------------------------------------------

    def on_channel_counts(self, analog_count: int, status_count: int) -> None:
        """Fix the channel ranges, frequency line and rate-count line."""
        self.analog_start = FIRST_ANALOG_LINE
        self.analog_end = analog_count + 1
        self.status_start = analog_count + 2
        self.status_end = analog_count + status_count + 1
        self.frequency_line = analog_count + status_count + 2
        self.nrates_line = analog_count + status_count + 3
        logger.debug(
            "Channel boundaries: analog=%d..%d status=%d..%d frequency=%d nrates=%d",
            self.analog_start, self.analog_end, self.status_start,
            self.status_end, self.frequency_line, self.nrates_line,
        )

    def on_rate_count(self, segment_lines: int) -> None:
        """Fix the rate segment range and the timestamp/file-type lines.

        Args:
            segment_lines: Number of sample-rate lines that follow the
                rate-count line (0 gives an empty range).
        """
        if self.nrates_line is None:
            raise LocatorStateError("Rate count read before the channel counts")
        base = self.nrates_line
        self.rate_start = base + 1
        self.rate_end = base + segment_lines
        self.start_timestamp_line = base + segment_lines + 1
        self.event_timestamp_line = base + segment_lines + 2
        self.dat_filetype_line = base + segment_lines + 3
        logger.debug(
            "Rate boundaries: segments=%d..%d start=%d event=%d dat=%d",
            self.rate_start, self.rate_end, self.start_timestamp_line,
            self.event_timestamp_line, self.dat_filetype_line,
        )

    def on_time_multiplier(self, line_number: int) -> None:
        self.time_code_line = line_number + 1

    def on_time_code(self, line_number: int) -> None:
        self.tmq_code_line = line_number + 1

    # -- Dispatch -----------------------------------------------------------

    def range_kind(self, index: int) -> LineKind | None:
        """Kind of the bound range containing *index*, if any.

        Lines inside a range must have that range's shape; a mismatch
        there is a malformed record, not an unrecognised line.
        """
        if _in_range(index, self.analog_start, self.analog_end):
            return LineKind.ANALOG_CHANNEL
        if _in_range(index, self.status_start, self.status_end):
            return LineKind.STATUS_CHANNEL
        if _in_range(index, self.rate_start, self.rate_end):
            return LineKind.RATE_SEGMENT
        return None

    def classify(self, index: int, field_count: int, standard: str | None) -> LineKind:
        """Decide which record shape line *index* with *field_count* fields is."""
        if index == HEADER_LINE:
            return LineKind.HEADER if field_count in (2, 3) else LineKind.UNKNOWN
        if index == CHANNEL_COUNTS_LINE:
            return LineKind.CHANNEL_COUNTS if field_count == 3 else LineKind.UNKNOWN

        if field_count == ANALOG_FIELDS and _in_range(index, self.analog_start, self.analog_end):
            return LineKind.ANALOG_CHANNEL
        if field_count == STATUS_FIELDS and _in_range(index, self.status_start, self.status_end):
            return LineKind.STATUS_CHANNEL
        if field_count == 1 and index == self.frequency_line:
            return LineKind.FREQUENCY
        if field_count == 1 and index == self.nrates_line:
            return LineKind.RATE_COUNT
        if field_count == 2 and _in_range(index, self.rate_start, self.rate_end):
            return LineKind.RATE_SEGMENT
        if field_count == 1 and index == self.dat_filetype_line:
            return LineKind.DAT_FILETYPE

        # Timestamps and trailer fields depend on the revision read on line 0
        if standard is None:
            return LineKind.UNKNOWN
        if field_count == 2 and index == self.start_timestamp_line:
            return LineKind.START_TIMESTAMP
        if field_count == 2 and index == self.event_timestamp_line:
            return LineKind.EVENT_TIMESTAMP
        if (
            field_count == 1
            and self.dat_filetype_line is not None
            and index == self.dat_filetype_line + 1
            and standard in NEWER_REVISIONS
        ):
            return LineKind.TIME_MULTIPLIER
        if field_count == 2 and index == self.time_code_line and standard == REV_2013:
            return LineKind.TIME_CODE
        if field_count == 2 and index == self.tmq_code_line and standard == REV_2013:
            return LineKind.TMQ_CODE
        return LineKind.UNKNOWN
