"""
comtrade-cfg: parser for the configuration (CFG) file of COMTRADE recordings.

Public API surface:

- ``parse(source, ...)`` -- **recommended entry point**. Polymorphic:
  accepts a path to a ``.cfg`` file, an open text stream, or any
  iterable of lines, and returns a ``ParseResult``.

- ``parse_file(path, ...)`` -- stream a CFG file from disk.

- ``parse_text(text, ...)`` -- parse CFG content held in a string.

- ``parse_lines(lines, ...)`` -- parse an ordered iterable of raw lines.

Every function takes an optional ``ParserOptions`` (see
``comtrade_cfg.config``) and returns a ``ParseResult`` whose ``record``
is the finished ``ParsedRecord`` and whose ``diagnostics`` lists the
lines that matched no known record shape.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import TextIO

from comtrade_cfg.config import ParserOptions, load_options
from comtrade_cfg.models import ParsedRecord, ParseResult
from comtrade_cfg.parser import CfgParser

__all__ = [
    "parse",
    "parse_file",
    "parse_text",
    "parse_lines",
    "CfgParser",
    "ParserOptions",
    "ParsedRecord",
    "ParseResult",
    "load_options",
]

logger = logging.getLogger(__name__)


def parse_lines(
    lines: Iterable[str],
    options: ParserOptions | None = None,
) -> ParseResult:
    """Parse CFG content given as an ordered iterable of raw lines."""
    return CfgParser(options).parse(lines)


def parse_text(text: str, options: ParserOptions | None = None) -> ParseResult:
    """Parse CFG content held in a single string.

    Lines break on LF, CRLF and CR only, exactly as ``parse_file`` reads
    them, so control characters inside free-text fields stay in place.
    """
    return parse_lines(io.StringIO(text, newline=None), options)


def parse_file(
    path: str | Path,
    options: ParserOptions | None = None,
) -> ParseResult:
    """Parse a CFG file, streaming it line by line.

    Args:
        path: Path to the ``.cfg`` file.
        options: Parser options; ``options.encoding`` selects the text
            encoding (default ``utf-8-sig``, which also accepts plain UTF-8).

    Raises:
        FileNotFoundError: If *path* does not exist.
        MalformedRecordError: If a known record holds an invalid field.
        InvalidDateTimeError: If a timestamp line is invalid.
    """
    options = options or ParserOptions()
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"CFG file not found: {path}")
    logger.info("Parsing CFG file: %s", path)
    with open(path, "r", encoding=options.encoding, newline=None) as f:
        return parse_lines(f, options)


def parse(
    source: str | Path | TextIO | Iterable[str],
    options: ParserOptions | None = None,
) -> ParseResult:
    """Single entry point: parse a CFG path, text stream or iterable of lines.

    A ``str`` is treated as a path. To parse CFG text held in memory,
    use ``parse_text()``.

    Examples::

        result = comtrade_cfg.parse("recordings/fault_001.cfg")
        record = result.record
        record.analog_channel_count, record.dat_filetype

        # Strict revision handling from a YAML options file
        opts = comtrade_cfg.load_options("cfg_options.yaml")
        result = comtrade_cfg.parse("recordings/fault_001.cfg", opts)
    """
    if isinstance(source, (str, Path)):
        return parse_file(source, options)
    return parse_lines(source, options)
