"""
Tabular views of a parsed CFG record.

Builds flat pandas DataFrames from a ``ParsedRecord``: one row per analog
channel, one row per status channel, one row per sample-rate segment, and
a single-row summary of the header-level fields. A DAT decoder can use
the analog frame's ``a``/``b`` columns to scale a whole sample block at
once, and the rate frame's ``startsamp``/``endsamp`` to map sample
indices to rates.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from comtrade_cfg.models import ParsedRecord

logger = logging.getLogger(__name__)

ANALOG_COLUMNS = [
    "n", "name", "ph", "ccbm", "uu", "a", "b", "skew",
    "cmin", "cmax", "primary", "secondary", "pors",
]
STATUS_COLUMNS = ["n", "name", "ph", "ccbm", "y"]
SAMPLE_RATE_COLUMNS = ["segment", "samp", "startsamp", "endsamp"]


def analog_frame(record: ParsedRecord) -> pd.DataFrame:
    """One row per analog channel, in file order."""
    rows = [ch.model_dump() for ch in record.analog_channels]
    return pd.DataFrame(rows, columns=ANALOG_COLUMNS)


def status_frame(record: ParsedRecord) -> pd.DataFrame:
    """One row per status channel, in file order."""
    rows = [ch.model_dump() for ch in record.status_channels]
    return pd.DataFrame(rows, columns=STATUS_COLUMNS)


def sample_rate_frame(record: ParsedRecord) -> pd.DataFrame:
    """One row per sample-rate segment.

    ``startsamp`` is the 1-based index of the first sample recorded at
    the segment's rate (one past the previous segment's ``endsamp``).
    """
    rows = []
    previous_end = 0
    for i, segment in enumerate(record.sample_rates, start=1):
        rows.append({
            "segment": i,
            "samp": segment.samp,
            "startsamp": previous_end + 1,
            "endsamp": segment.endsamp,
        })
        previous_end = segment.endsamp
    return pd.DataFrame(rows, columns=SAMPLE_RATE_COLUMNS)


def build_summary(record: ParsedRecord, source: str | Path | None = None) -> pd.DataFrame:
    """Build a single-row table of header-level CFG fields.

    Timestamps are rendered as ISO strings with all their fractional
    digits (nanoseconds when the source carried them) so the table can
    be written to CSV and Parquet alike.

    Args:
        record: The parsed record.
        source: Optional source file path, stored as ``source_file``.
    """
    def _iso(ts) -> str | None:
        if ts is None:
            return None
        base = ts.value.replace(microsecond=0).isoformat()
        if ts.fraction_digits == 0:
            return base
        if ts.nanosecond_resolution:
            return f"{base}.{ts.nanosecond:09d}"
        return f"{base}.{ts.microsecond:06d}"

    row = {
        "source_file": Path(source).name if source is not None else None,
        "station": record.station,
        "device": record.device,
        "standard": record.standard,
        "total_channels": record.total_channels,
        "analog_channel_count": record.analog_channel_count,
        "status_channel_count": record.status_channel_count,
        "frequency": record.frequency,
        "nrates": record.nrates,
        "timestamp_critical": record.timestamp_critical,
        "total_samples": record.total_samples,
        "start_timestamp": _iso(record.start_timestamp),
        "event_timestamp": _iso(record.event_timestamp),
        "dat_filetype": record.dat_filetype,
        "time_multiplier": record.time_multiplier,
        "time_code": record.time_code,
        "local_code": record.local_code,
        "tmq_code": record.tmq_code,
        "leap_second": record.leap_second,
    }
    logger.debug("Built summary for station=%s device=%s", record.station, record.device)
    return pd.DataFrame([row])


def build_tables(record: ParsedRecord) -> dict[str, pd.DataFrame]:
    """All per-item tables keyed by table name."""
    return {
        "analog": analog_frame(record),
        "status": status_frame(record),
        "sample_rates": sample_rate_frame(record),
    }
