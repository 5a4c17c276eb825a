"""
Custom exception hierarchy for comtrade-cfg.

Callers can catch specific exceptions (e.g., MalformedRecordError vs
InvalidDateTimeError) without relying on generic ValueError/RuntimeError.
Every parse failure carries the 0-based line number and the raw line so
a bad CFG file can be located without re-reading it.
"""


class ComtradeCfgError(Exception):
    """Base exception for all comtrade-cfg errors."""


class ParsingError(ComtradeCfgError):
    """Raised when a CFG line cannot be turned into its expected record.

    Attributes:
        line_number: 0-based index of the offending line.
        content: The raw (stripped) line text.
    """

    def __init__(self, message: str, line_number: int | None = None, content: str | None = None):
        self.line_number = line_number
        self.content = content
        if line_number is not None:
            message = f"line {line_number}: {message} (content: {content!r})"
        super().__init__(message)


class MalformedRecordError(ParsingError):
    """Raised when a line matches a known record shape but a field is invalid.

    For example a non-numeric scale factor on an analog channel line, a
    channel count without its ``A``/``D`` suffix, or an analog line with
    the wrong field count while inside the analog range.
    """


class InvalidDateTimeError(ParsingError):
    """Raised when a timestamp line does not hold a valid date and time.

    This covers tokens that fail the digit pattern as well as calendar
    values out of range (month 0, day 32, ...).
    """


class UnknownRevisionError(ParsingError):
    """Raised for an unknown revision year when options require known revisions."""


class ChannelCountMismatchError(ParsingError):
    """Raised when total channels != analog + status and the check is enabled."""


class LocatorStateError(ComtradeCfgError):
    """Raised when a schema boundary would be written a second time."""


class ConfigValidationError(ComtradeCfgError):
    """Raised when a parser options file fails validation.

    This can happen if the YAML file is empty or is not a mapping.
    """

