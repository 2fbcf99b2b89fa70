"""
NIST Daytime Reply Parser

Decodes the fixed-format reply of the NIST Internet Time Service into an
AuthoritativeInstant.

Reply layout (whitespace separated):

    field  example     meaning
    -----  ----------  ------------------------------------------------
    0      60462       Modified Julian Date (ignored)
    1      24-06-01    date, YY-MM-DD, year = 2000 + YY
    2      14:23:05    time, HH:MM:SS, 24-hour UTC
    3      50          DST flag (ignored)
    4      0           leap second pending (ignored)
    5      0           server health (ignored)
    6      123.4       msADV: milliseconds added to the whole second
    7+     UTC(NIST) * label and on-time marker (ignored)

Date and time components are read from fixed-width slices, never with
variable-width number parsing, so "24-6-01" is rejected rather than
misread.
"""

import math
from datetime import datetime, timedelta, timezone

from ..errors import FormatError
from ..interfaces.sync_result import AuthoritativeInstant

MIN_FIELDS = 7
DATE_FIELD = 1
TIME_FIELD = 2
MILLISECONDS_FIELD = 6

CENTURY = 2000


def _two_digits(text: str, start: int, name: str) -> int:
    """Read the two-character slice text[start:start+2] as an integer."""
    piece = text[start:start + 2]
    if len(piece) != 2 or not (piece.isascii() and piece.isdigit()):
        raise FormatError(f"Invalid {name} {piece!r} in {text!r}")
    return int(piece)


def _split_fixed(text: str, separator: str, name: str):
    # Layout is exactly "NN?NN?NN" with the given separator
    if len(text) != 8 or text[2] != separator or text[5] != separator:
        raise FormatError(f"Malformed {name} field {text!r}")
    return (
        _two_digits(text, 0, name),
        _two_digits(text, 3, name),
        _two_digits(text, 6, name),
    )


def parse_milliseconds(text: str) -> int:
    """
    Parse the msADV field, truncating toward zero.

    Examples:
        "123.4" -> 123
        "123.7" -> 123
        "50"    -> 50
    """
    try:
        value = float(text)
    except ValueError:
        raise FormatError(f"Invalid millisecond field {text!r}") from None
    if not math.isfinite(value) or value < 0:
        raise FormatError(f"Invalid millisecond field {text!r}")
    return int(value)


def parse_nist_response(reply: str) -> AuthoritativeInstant:
    """
    Parse a NIST daytime reply.

    Args:
        reply: Raw reply line, e.g.
            "60462 24-06-01 14:23:05 50 0 0 123.4 UTC(NIST) *"

    Returns:
        AuthoritativeInstant for the whole-second time plus msADV.

    Raises:
        FormatError: fewer than 7 fields, non-numeric components, an
            impossible calendar date/time or a bad millisecond field.
    """
    fields = reply.split()
    if len(fields) < MIN_FIELDS:
        raise FormatError(
            f"Expected at least {MIN_FIELDS} fields, got {len(fields)}: {reply!r}"
        )

    yy, month, day = _split_fixed(fields[DATE_FIELD], '-', 'date')
    hour, minute, second = _split_fixed(fields[TIME_FIELD], ':', 'time')
    milliseconds = parse_milliseconds(fields[MILLISECONDS_FIELD])

    try:
        whole_second = datetime(
            CENTURY + yy, month, day, hour, minute, second, tzinfo=timezone.utc
        )
        return AuthoritativeInstant(whole_second + timedelta(milliseconds=milliseconds))
    except (ValueError, OverflowError) as e:
        raise FormatError(f"Invalid date/time in {reply!r}: {e}") from e
