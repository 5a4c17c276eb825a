"""
Output models for comtrade-cfg.

``ParsedRecord`` is the finished, immutable view of one CFG file. It is
assembled by the parser from an accumulator once input is exhausted and
is what a DAT decoder consumes: channel counts and scale factors, the DAT
file type, the rate segments and the ``timestamp_critical`` flag.

``ParseResult`` pairs the record with the diagnostics collected for lines
that matched no known record shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

Revision = Literal["1991", "1999", "2001", "2013"]

REVISIONS: tuple[str, ...] = ("1991", "1999", "2001", "2013")
# Revisions that order dates day/month/year and carry a time multiplier line
NEWER_REVISIONS: tuple[str, ...] = ("1999", "2001", "2013")
REV_1991 = "1991"
REV_2013 = "2013"

DatFileType = str  # ASCII | BINARY | BINARY32 | FLOAT32, not validated here


class AnalogChannel(BaseModel):
    """One analog channel descriptor (13 fields)."""

    model_config = ConfigDict(frozen=True)

    n: int
    name: str
    ph: str
    ccbm: str
    uu: str
    a: float
    b: float
    skew: float
    cmin: float
    cmax: float
    primary: float
    secondary: float
    pors: str

    def scale(self, raw: float) -> float:
        """Convert a raw DAT sample to engineering units (``a * raw + b``)."""
        return self.a * raw + self.b


class StatusChannel(BaseModel):
    """One status (digital) channel descriptor (5 fields)."""

    model_config = ConfigDict(frozen=True)

    n: int
    name: str
    ph: str
    ccbm: str
    y: float


class SampleRateSegment(BaseModel):
    """A sampling rate and the index of the last sample recorded at it."""

    model_config = ConfigDict(frozen=True)

    samp: float
    endsamp: int


class CfgTimestamp(BaseModel):
    """A CFG date/time with sub-microsecond precision preserved.

    ``datetime`` stops at microseconds, so the full sub-second component is
    kept separately in ``nanosecond``. ``value.microsecond`` is that
    component truncated to microseconds.

    Attributes:
        value: The timestamp as a naive ``datetime``.
        nanosecond: Sub-second component in nanoseconds (0..999_999_999).
        fraction_digits: Number of fractional-second digits in the source
            token (0 when absent). 3 means milliseconds, 6 microseconds,
            9 nanoseconds.
    """

    model_config = ConfigDict(frozen=True)

    value: datetime
    nanosecond: int = Field(0, ge=0, le=999_999_999)
    fraction_digits: int = Field(0, ge=0, le=12)

    @property
    def microsecond(self) -> int:
        return self.value.microsecond

    @property
    def nanosecond_resolution(self) -> bool:
        """True when the source carried more than microsecond precision."""
        return self.fraction_digits > 6

    def to_pandas(self) -> pd.Timestamp:
        """Return a nanosecond-precise ``pandas.Timestamp``.

        Raises:
            pandas.errors.OutOfBoundsDatetime: For years outside the range
                pandas supports (e.g., literal two-digit years).
        """
        whole = pd.Timestamp(self.value.replace(microsecond=0))
        return whole + pd.Timedelta(nanoseconds=self.nanosecond)


class ParsedRecord(BaseModel):
    """Structured metadata of one CFG file.

    Fields the input never reached stay ``None``; channel and rate
    sequences are in file order.
    """

    model_config = ConfigDict(frozen=True)

    station: str | None = None
    device: str | None = None
    standard: Revision | None = None

    total_channels: int | None = None
    analog_channel_count: int | None = None
    status_channel_count: int | None = None
    analog_channels: tuple[AnalogChannel, ...] = ()
    status_channels: tuple[StatusChannel, ...] = ()

    frequency: float | None = None
    nrates: int | None = None
    timestamp_critical: bool | None = None
    sample_rates: tuple[SampleRateSegment, ...] = ()

    start_timestamp: CfgTimestamp | None = None
    event_timestamp: CfgTimestamp | None = None

    dat_filetype: DatFileType | None = None
    # Revisions >= 1999 only
    time_multiplier: float | None = None
    # Revision 2013 only
    time_code: str | None = None
    local_code: str | None = None
    tmq_code: str | None = None
    leap_second: str | None = None

    @property
    def total_samples(self) -> int:
        """Index of the last sample of the recording (0 if no segments)."""
        if not self.sample_rates:
            return 0
        return self.sample_rates[-1].endsamp

    @property
    def analog_ids(self) -> list[str]:
        return [ch.name for ch in self.analog_channels]

    @property
    def status_ids(self) -> list[str]:
        return [ch.name for ch in self.status_channels]

    @property
    def trigger_offset(self) -> pd.Timedelta | None:
        """Time from the first sample to the trigger point, to the nanosecond.

        Computed from whole seconds plus the nanosecond components so it
        also works for years outside the pandas timestamp range.
        """
        if self.start_timestamp is None or self.event_timestamp is None:
            return None
        start, event = self.start_timestamp, self.event_timestamp
        whole = event.value.replace(microsecond=0) - start.value.replace(microsecond=0)
        return pd.Timedelta(whole) + pd.Timedelta(nanoseconds=event.nanosecond - start.nanosecond)


@dataclass(frozen=True)
class Diagnostic:
    """A line that matched no known record shape and was skipped.

    Attributes:
        line_number: 0-based index of the line.
        content: The raw (stripped) line text.
        fields: The line split into fields.
        reason: Short human-readable explanation.
    """
    line_number: int
    content: str
    fields: tuple[str, ...]
    reason: str


@dataclass
class ParseResult:
    """Output of a parse: the finished record plus skipped-line diagnostics."""
    record: ParsedRecord
    diagnostics: list[Diagnostic] = field(default_factory=list)
