"""
TLE Parser Module

Parses Two-Line Element (TLE) sets into immutable ``OrbitalElements`` and
formats element sets back into standards-conformant TLE text.

Column layout (1-based, inclusive) per the published format:

Line 1::

    01      line number (1)
    03-07   satellite catalog number
    08      classification
    10-17   international designator
    19-20   epoch year (two digits)
    21-32   epoch day of year with fraction
    34-43   first derivative of mean motion / 2 (rev/day^2)
    45-52   second derivative of mean motion / 6, compact exponent notation
    54-61   B* drag term, compact exponent notation
    63      ephemeris type
    65-68   element set number
    69      checksum

Line 2::

    01      line number (2)
    03-07   satellite catalog number
    09-16   inclination (deg)
    18-25   right ascension of the ascending node (deg)
    27-33   eccentricity, leading decimal point implied
    35-42   argument of perigee (deg)
    44-51   mean anomaly (deg)
    53-63   mean motion (rev/day)
    64-68   revolution number at epoch
    69      checksum

The checksum is the sum of all digits in columns 1-68, counting each minus
sign as 1, modulo 10.
"""

import logging
import math
import re
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple, TypeVar

from sat_predict.config import DEG2RAD, RAD2DEG
from sat_predict.exceptions import ParseError, UsageError
from sat_predict.models import OrbitalElements
from sat_predict.time_utils import tle_epoch_to_datetime

logger = logging.getLogger(__name__)

TLE_LINE_LENGTH = 69

T = TypeVar("T")

# Compact scientific notation: optional sign, implied-decimal mantissa, signed exponent
_EXPONENT_RE = re.compile(r"^\s*([+-]?)(\d{1,5})\s*([+-]?)(\d)\s*$", re.ASCII)
# Fixed-point decimal and unsigned integer columns
_DECIMAL_RE = re.compile(r"^\s*[+-]?\d*\.?\d+\s*$", re.ASCII)
_INTEGER_RE = re.compile(r"^\s*\d+\s*$", re.ASCII)
_DIGITS_RE = re.compile(r"^\d+$", re.ASCII)

# Alpha-5 catalog numbers: letters I and O are skipped
_ALPHA5 = "ABCDEFGHJKLMNPQRSTUVWXYZ"


def compute_checksum(line: str) -> int:
    """Calculate TLE checksum over the first 68 columns."""
    checksum = 0
    for char in line[:68]:
        if char.isdigit():
            checksum += int(char)
        elif char == "-":
            checksum += 1
    return checksum % 10


def verify_checksum(line: str, line_number: Optional[int] = None) -> None:
    """Raise ``ParseError`` unless column 69 holds the line's checksum."""
    given = line[68:69]
    if not given.isdigit():
        raise ParseError("checksum", f"checksum column holds {given!r}", line_number)
    expected = compute_checksum(line)
    if int(given) != expected:
        raise ParseError(
            "checksum", f"checksum is {given}, computed {expected}", line_number
        )


def decode_exponent(field: str) -> float:
    """
    Decode a compact exponent field such as ``" 12808-3"`` (0.12808e-3).

    Raises:
        ValueError: if the field is not in compact exponent notation
    """
    match = _EXPONENT_RE.match(field)
    if match is None:
        raise ValueError(f"not a compact exponent field: {field!r}")
    sign, digits, exp_sign, exp_digit = match.groups()
    mantissa = float("0." + digits)
    exponent = int(exp_digit)
    if exp_sign == "-":
        exponent = -exponent
    value = mantissa * 10.0 ** exponent
    return -value if sign == "-" else value


def format_exponent(value: float) -> str:
    """Format a number in TLE compact exponent notation (8 columns)."""
    if value == 0.0:
        return " 00000-0"

    sign = "-" if value < 0 else " "
    abs_val = abs(value)

    # 0.ddddd x 10^exp
    exp = int(math.floor(math.log10(abs_val))) + 1
    mantissa = int(round(abs_val / 10.0 ** exp * 100000))
    if mantissa >= 100000:
        mantissa //= 10
        exp += 1
    if not -9 <= exp <= 9:
        raise UsageError(f"{value} cannot be written in TLE exponent notation")

    exp_sign = "-" if exp < 0 else "+"
    return f"{sign}{mantissa:05d}{exp_sign}{abs(exp):d}"


def decode_catalog_number(field: str) -> int:
    """Decode a five-column catalog number, including the Alpha-5 extension."""
    field = field.strip()
    if field and field[0].isalpha():
        prefix = field[0].upper()
        if prefix not in _ALPHA5 or _DIGITS_RE.match(field[1:]) is None:
            raise ValueError(f"invalid Alpha-5 catalog number {field!r}")
        return (_ALPHA5.index(prefix) + 10) * 10000 + int(field[1:])
    return _integer(field)


def encode_catalog_number(number: int) -> str:
    if 0 <= number <= 99999:
        return f"{number:05d}"
    prefix, rest = divmod(number, 10000)
    if not 10 <= prefix < 10 + len(_ALPHA5):
        raise UsageError(f"Catalog number {number} does not fit in five columns")
    return f"{_ALPHA5[prefix - 10]}{rest:04d}"


def _field(line: str, start: int, end: int, convert: Callable[[str], T],
           label: str, line_number: int) -> T:
    text = line[start:end]
    try:
        return convert(text)
    except ValueError:
        raise ParseError(
            "field",
            f"malformed {label} in columns {start + 1}-{end}: {text!r}",
            line_number,
        ) from None


def _decimal(text: str) -> float:
    if _DECIMAL_RE.match(text) is None:
        raise ValueError(text)
    return float(text)


def _integer(text: str) -> int:
    if _INTEGER_RE.match(text) is None:
        raise ValueError(text)
    return int(text)


def _int_or_zero(text: str) -> int:
    return _integer(text) if text.strip() else 0


def _eccentricity(text: str) -> float:
    digits = text.strip().replace(" ", "0")
    if _DIGITS_RE.match(digits) is None:
        raise ValueError(text)
    return float("0." + digits)


def _check_line(line: str, line_number: int) -> str:
    line = line.rstrip("\r\n")
    if len(line) != TLE_LINE_LENGTH:
        raise ParseError(
            "length",
            f"expected {TLE_LINE_LENGTH} characters, got {len(line)}",
            line_number,
        )
    if line[0] != str(line_number) or line[1] != " ":
        raise ParseError(
            "line_number", f"line must start with '{line_number} '", line_number
        )
    verify_checksum(line, line_number)
    return line


def _check_angle(value: float, upper: float, label: str, inclusive: bool = False) -> None:
    in_range = 0.0 <= value <= upper if inclusive else 0.0 <= value < upper
    if not in_range:
        bracket = "]" if inclusive else ")"
        raise ParseError(
            "range", f"{label} {value} outside [0, {upper:g}{bracket} degrees", 2
        )


def parse_tle(line1: str, line2: str, name: str = "Unnamed") -> OrbitalElements:
    """
    Parse TLE lines into immutable orbital elements.

    Args:
        line1: First line of TLE
        line2: Second line of TLE
        name: Optional satellite name

    Returns:
        OrbitalElements for the set

    Raises:
        ParseError: naming the violated rule (length, line_number, checksum,
            field, range or catalog_mismatch)
    """
    try:
        line1 = _check_line(line1, 1)
        line2 = _check_line(line2, 2)
    except ParseError as e:
        logger.error(f"TLE parsing error for {name}: {e}")
        raise

    # Parse line 1 - exact field positions
    catalog_number = _field(line1, 2, 7, decode_catalog_number, "catalog number", 1)
    classification = line1[7].strip() or "U"
    international_designator = line1[9:17].strip()
    epoch_year = _field(line1, 18, 20, _integer, "epoch year", 1)
    epoch_days = _field(line1, 20, 32, _decimal, "epoch day", 1)
    ndot = _field(line1, 33, 43, _decimal, "mean motion derivative", 1)
    nddot = _field(line1, 44, 52, decode_exponent, "mean motion second derivative", 1)
    bstar = _field(line1, 53, 61, decode_exponent, "B* drag term", 1)
    ephemeris_type = _field(line1, 62, 63, _int_or_zero, "ephemeris type", 1)
    element_set_number = _field(line1, 64, 68, _int_or_zero, "element set number", 1)

    # Parse line 2 - exact field positions
    catalog_number_2 = _field(line2, 2, 7, decode_catalog_number, "catalog number", 2)
    inclination = _field(line2, 8, 16, _decimal, "inclination", 2)
    raan = _field(line2, 17, 25, _decimal, "right ascension of ascending node", 2)
    eccentricity = _field(line2, 26, 33, _eccentricity, "eccentricity", 2)
    arg_perigee = _field(line2, 34, 42, _decimal, "argument of perigee", 2)
    mean_anomaly = _field(line2, 43, 51, _decimal, "mean anomaly", 2)
    mean_motion = _field(line2, 52, 63, _decimal, "mean motion", 2)
    revolution_number = _field(line2, 63, 68, _int_or_zero, "revolution number", 2)

    if catalog_number != catalog_number_2:
        raise ParseError(
            "catalog_mismatch",
            f"catalog numbers differ: {catalog_number} and {catalog_number_2}",
        )
    if not 1.0 <= epoch_days < 367.0:
        raise ParseError("range", f"epoch day {epoch_days} outside [1, 367)", 1)
    _check_angle(inclination, 180.0, "inclination", inclusive=True)
    _check_angle(raan, 360.0, "right ascension of ascending node")
    _check_angle(arg_perigee, 360.0, "argument of perigee")
    _check_angle(mean_anomaly, 360.0, "mean anomaly")
    if mean_motion <= 0.0:
        raise ParseError("range", f"mean motion {mean_motion} must be positive", 2)

    elements = OrbitalElements(
        name=name,
        catalog_number=catalog_number,
        classification=classification,
        international_designator=international_designator,
        epoch=tle_epoch_to_datetime(epoch_year, epoch_days),
        mean_motion=mean_motion,
        eccentricity=eccentricity,
        inclination=inclination * DEG2RAD,
        raan=raan * DEG2RAD,
        arg_perigee=arg_perigee * DEG2RAD,
        mean_anomaly=mean_anomaly * DEG2RAD,
        mean_motion_dot=ndot,
        mean_motion_ddot=nddot,
        bstar=bstar,
        ephemeris_type=ephemeris_type,
        element_set_number=element_set_number,
        revolution_number=revolution_number,
        line1=line1,
        line2=line2,
    )
    logger.debug(
        f"Parsed TLE {catalog_number} ({name}): epoch={elements.epoch.isoformat()}, "
        f"n={mean_motion:.8f} rev/day, e={eccentricity:.7f}"
    )
    return elements


def _epoch_fields(epoch: datetime) -> Tuple[int, float]:
    start_of_year = datetime(epoch.year, 1, 1, tzinfo=timezone.utc)
    days = (epoch - start_of_year).total_seconds() / 86400.0 + 1.0
    return epoch.year % 100, days


def elements_to_lines(elements: OrbitalElements) -> Tuple[str, str]:
    """
    Format orbital elements as TLE lines with fresh checksums.

    Args:
        elements: Orbital elements to format

    Returns:
        Tuple of (line1, line2) strings
    """
    catalog = encode_catalog_number(elements.catalog_number)
    epoch_year, epoch_days = _epoch_fields(elements.epoch)

    ndot = elements.mean_motion_dot
    ndot_str = ("-" if ndot < 0 else " ") + f"{abs(ndot):.8f}"[1:]

    # Format line 1
    line1 = f"1 {catalog}{elements.classification[:1] or 'U'} "
    line1 += f"{elements.international_designator[:8]:<8} "
    line1 += f"{epoch_year:02d}{epoch_days:012.8f} "
    line1 += f"{ndot_str} "
    line1 += format_exponent(elements.mean_motion_ddot)
    line1 += " "
    line1 += format_exponent(elements.bstar)
    line1 += f" {elements.ephemeris_type % 10:d} {elements.element_set_number % 10000:4d}"
    line1 += str(compute_checksum(line1))

    # Format line 2
    ecc_str = f"{int(round(elements.eccentricity * 1e7)):07d}"
    line2 = f"2 {catalog} "
    line2 += f"{elements.inclination * RAD2DEG:8.4f} "
    line2 += f"{elements.raan * RAD2DEG:8.4f} "
    line2 += ecc_str + " "
    line2 += f"{elements.arg_perigee * RAD2DEG:8.4f} "
    line2 += f"{elements.mean_anomaly * RAD2DEG:8.4f} "
    line2 += f"{elements.mean_motion:11.8f}"
    line2 += f"{elements.revolution_number % 100000:5d}"
    line2 += str(compute_checksum(line2))

    return line1, line2
