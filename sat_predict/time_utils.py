"""
Time Utilities

Julian date arithmetic and TLE epoch decoding. All instants handled by the
package are timezone-aware UTC datetimes; naive datetimes are taken as UTC.
"""

from datetime import datetime, timedelta, timezone
from typing import Tuple

from sat_predict.exceptions import UsageError

J2000_JD = 2451545.0
# Julian date of 1949 December 31 00:00 UT, the SGP4 deep-space day origin
JD_1950 = 2433281.5


def as_utc(dt: datetime) -> datetime:
    """Return ``dt`` as an aware UTC datetime."""
    if not isinstance(dt, datetime):
        raise UsageError(f"Expected a datetime, got {type(dt).__name__}")
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def datetime_to_jd_fr(dt: datetime) -> Tuple[float, float]:
    """
    Convert datetime to Julian date and fraction.

    Args:
        dt: Datetime object (naive values are taken as UTC)

    Returns:
        Tuple of (julian_day, fraction) where julian_day ends in .5
    """
    dt = as_utc(dt)

    year, month, day = dt.year, dt.month, dt.day

    # Julian day calculation
    if month <= 2:
        year -= 1
        month += 12

    a = int(year / 100)
    b = 2 - a + int(a / 4)

    jd = int(365.25 * (year + 4716)) + int(30.6001 * (month + 1)) + day + b - 1524.5

    # Fractional part
    seconds = dt.hour * 3600.0 + dt.minute * 60.0 + dt.second + dt.microsecond / 1e6
    fr = seconds / 86400.0

    return jd, fr


def jday(year: int, month: int, day: int, hour: int = 0, minute: int = 0,
         second: float = 0.0) -> Tuple[float, float]:
    """Julian date and day fraction of a UTC calendar instant (1900-2100)."""
    jd = (
        367.0 * year
        - 7 * (year + (month + 9) // 12) // 4
        + 275 * month // 9
        + day
        + 1721013.5
    )
    fr = (second + minute * 60.0 + hour * 3600.0) / 86400.0
    return jd, fr


def julian_date(dt: datetime) -> float:
    """Julian date of ``dt`` as a single float."""
    jd, fr = datetime_to_jd_fr(dt)
    return jd + fr


def jd_to_datetime(jd: float, fr: float = 0.0) -> datetime:
    """Convert Julian date to datetime"""
    jd_total = jd + fr

    # Algorithm from Meeus
    a = int(jd_total + 0.5)
    if a < 2299161:
        c = a
    else:
        alpha = int((a - 1867216.25) / 36524.25)
        c = a + 1 + alpha - int(alpha / 4)

    b = c + 1524
    d = int((b - 122.1) / 365.25)
    e = int(365.25 * d)
    f = int((b - e) / 30.6001)

    day = b - e - int(30.6001 * f)
    month = f - 1 if f <= 13 else f - 13
    year = d - 4716 if month > 2 else d - 4715

    # Fractional day to time, rounded to the microsecond
    frac_day = (jd_total + 0.5) - int(jd_total + 0.5)
    midnight = datetime(year, month, day, tzinfo=timezone.utc)
    return midnight + timedelta(microseconds=round(frac_day * 86400e6))


def tle_epoch_to_datetime(epoch_year: int, epoch_days: float) -> datetime:
    """
    Convert TLE epoch to datetime.

    Args:
        epoch_year: Two-digit year (57-99 is 1957-1999, 00-56 is 2000-2056)
        epoch_days: Day of year with fractional part, 1.0 being January 1 00:00

    Returns:
        Datetime object in UTC
    """
    year = 1900 + epoch_year if epoch_year >= 57 else 2000 + epoch_year
    # -1 because day 1 is Jan 1
    return datetime(year, 1, 1, tzinfo=timezone.utc) + timedelta(days=epoch_days - 1.0)


def minutes_between(start: datetime, end: datetime) -> float:
    """Signed minutes from ``start`` to ``end``."""
    return (as_utc(end) - as_utc(start)).total_seconds() / 60.0
