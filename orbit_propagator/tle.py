"""
TLE Parser Module

Reads fixed-column two-line element text into an ElementSet.

Lines may be 68 columns (Spacetrack Report #3 style, no checksum) or the usual
69 columns with a modulo-10 checksum in the last column. Checksums are verified
only on request because the historical validation sets were published without
them.
"""

import logging
from typing import Tuple

from orbit_propagator.elements import ElementSet
from orbit_propagator.exceptions import InvalidElements

logger = logging.getLogger(__name__)

MIN_LINE_LENGTH = 63


def checksum(line: str) -> int:
    """Modulo-10 checksum over the first 68 columns (digits count, '-' counts 1)."""
    total = 0
    for char in line[:68]:
        if char.isdigit():
            total += int(char)
        elif char == "-":
            total += 1
    return total % 10


def parse_exponent(mant_str: str, exp_str: str) -> float:
    """
    Decode the TLE implied-decimal exponent notation.

    Args:
        mant_str: Mantissa columns with an optional sign, e.g. " 66816" or "-11606"
        exp_str: Exponent columns, e.g. "-4"

    Returns:
        The decoded value, e.g. 0.66816e-4
    """
    mant = mant_str.strip()
    if not mant:
        return 0.0

    sign = 1.0
    if mant[0] in "+-":
        sign = -1.0 if mant[0] == "-" else 1.0
        mant = mant[1:]
    mantissa = float("0." + mant.replace(" ", "0"))

    exp = exp_str.strip()
    exponent = int(exp) if exp not in ("", "+", "-") else 0
    return sign * mantissa * 10.0**exponent


def _check_line(line: str, number: str, verify_checksum: bool) -> str:
    line = line.rstrip()
    if len(line) < MIN_LINE_LENGTH or not line.startswith(number + " "):
        raise InvalidElements(f"not a TLE line {number}: {line!r}")
    if verify_checksum:
        if len(line) < 69 or not line[68].isdigit():
            raise InvalidElements(f"line {number} has no checksum column")
        if int(line[68]) != checksum(line):
            raise InvalidElements(
                f"line {number} checksum mismatch: expected {checksum(line)}, found {line[68]}"
            )
    return line


def split_tle(text: str) -> Tuple[str, str, str]:
    """Split a two- or three-line block into (name, line1, line2)."""
    lines = [ln for ln in text.strip().splitlines() if ln.strip()]
    if len(lines) == 2:
        return "", lines[0], lines[1]
    if len(lines) == 3:
        return lines[0].strip(), lines[1], lines[2]
    raise InvalidElements(f"expected 2 or 3 lines, got {len(lines)}")


def parse_tle(line1: str, line2: str, name: str = "", verify_checksum: bool = False) -> ElementSet:
    """
    Parse two TLE lines into an ElementSet.

    Args:
        line1: First line of the element set
        line2: Second line of the element set
        name: Optional satellite name
        verify_checksum: Require a valid checksum in column 69 of both lines

    Returns:
        The parsed ElementSet

    Raises:
        InvalidElements: if a field cannot be read or the elements are out of range
    """
    line1 = _check_line(line1, "1", verify_checksum)
    line2 = _check_line(line2, "2", verify_checksum)

    try:
        satnum = int(line1[2:7])
        if int(line2[2:7]) != satnum:
            raise InvalidElements(
                f"catalog numbers differ between lines: {line1[2:7]} / {line2[2:7]}"
            )
        elements = ElementSet(
            epoch=float(line1[18:32]),
            ndot=float(line1[33:43]),
            nddot=parse_exponent(line1[44:50], line1[50:52]),
            bstar=parse_exponent(line1[53:59], line1[59:61]),
            inclination=float(line2[8:16]),
            raan=float(line2[17:25]),
            eccentricity=float("0." + line2[26:33].strip().replace(" ", "0")),
            arg_perigee=float(line2[34:42]),
            mean_anomaly=float(line2[43:51]),
            mean_motion=float(line2[52:63]),
            satnum=satnum,
            name=name,
        )
    except InvalidElements:
        raise
    except ValueError as e:
        logger.error(f"TLE parsing error for {line1[2:7]!r}: {e}")
        raise InvalidElements(f"malformed TLE field: {e}") from e

    return elements
