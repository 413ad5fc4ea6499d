"""
Birth time resolution for the hour branch.

Handles:
- Timezone lookup from birth coordinates (historical DST aware)
- Local Mean Time (LMT) correction from the zone's standard meridian
- Clock time → LMT → hour branch (时辰), including midnight rollover

A chart only needs the hour branch, but picking the wrong two-hour block
moves the life palace, so clock time near a boundary should be corrected
for longitude before it is bucketed.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Union
from zoneinfo import ZoneInfo

from timezonefinder import TimezoneFinder

from ziwei.errors import InvalidBirthData
from ziwei.stem_branch import hour_branch_for_hour

logger = logging.getLogger(__name__)

_tf = TimezoneFinder()

# China Standard Time meridian, used when no offset or location is known
DEFAULT_STANDARD_MERIDIAN = 120.0


@dataclass(frozen=True)
class ResolvedBirthTime:
    birth_date: date  # may differ from the clock date after LMT correction
    lmt_time: str  # "HH:MM"
    hour_branch_index: int
    lmt_correction_minutes: float
    standard_offset: Optional[float]  # hours, DST stripped
    timezone_name: Optional[str]
    dst_detected: bool

    def to_dict(self):
        return {
            "birth_date": self.birth_date.isoformat(),
            "lmt_time": self.lmt_time,
            "hour_branch_index": self.hour_branch_index,
            "lmt_correction_minutes": round(self.lmt_correction_minutes, 2),
            "standard_offset": self.standard_offset,
            "timezone": self.timezone_name,
            "dst_detected": self.dst_detected,
        }


def parse_clock_time(birth_time: str) -> tuple[int, int]:
    """Parse "HH:MM" (24h) into (hour, minute)."""
    try:
        hour, minute = map(int, birth_time.split(":"))
    except (AttributeError, ValueError) as exc:
        raise InvalidBirthData(f"Birth time must be HH:MM, got {birth_time!r}") from exc
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise InvalidBirthData(f"Birth time out of range: {birth_time!r}")
    return hour, minute


def utc_offset_for(latitude: float, longitude: float, birth_date: date, birth_time: str):
    """
    Determine UTC offset from coordinates and date.
    Detects historical DST (e.g., China 1986-1991).

    Returns:
        (clock_offset, standard_offset, timezone_name, dst_detected)

        clock_offset:    what the clock was actually set to (includes DST if active)
        standard_offset: the zone's standard (non-DST) offset

    The hour branch uses standard_offset; DST hours are not solar hours.
    """
    tz_name = _tf.timezone_at(lat=latitude, lng=longitude)
    if tz_name is None:
        raise InvalidBirthData(f"Could not determine timezone for ({latitude}, {longitude})")

    hour, minute = parse_clock_time(birth_time)
    local_dt = datetime(birth_date.year, birth_date.month, birth_date.day,
                        hour, minute, tzinfo=ZoneInfo(tz_name))
    clock_offset = local_dt.utcoffset().total_seconds() / 3600

    dst = local_dt.dst()
    dst_detected = dst is not None and dst.total_seconds() > 0
    if dst_detected:
        standard_offset = clock_offset - dst.total_seconds() / 3600
    else:
        standard_offset = clock_offset

    return clock_offset, standard_offset, tz_name, dst_detected


def lmt_correction(longitude: float, standard_meridian: float = DEFAULT_STANDARD_MERIDIAN) -> float:
    """
    Local Mean Time correction in minutes (4 minutes per degree).

    Example:
        Nanning (108.37°E) on CST: (108.37 - 120.0) * 4 = -46.52 min
    """
    return (longitude - standard_meridian) * 4.0


def apply_lmt(clock_time: datetime, longitude: float,
              standard_meridian: float = DEFAULT_STANDARD_MERIDIAN) -> datetime:
    """Shift clock time to Local Mean Time."""
    return clock_time + timedelta(minutes=lmt_correction(longitude, standard_meridian))


def resolve_hour_branch(birth_date: Union[date, str], birth_time: str,
                        latitude: Optional[float] = None,
                        longitude: Optional[float] = None,
                        utc_offset: Optional[float] = None) -> ResolvedBirthTime:
    """
    Resolve the hour branch for a clock birth time.

    Args:
        birth_date: date or ISO string (YYYY-MM-DD)
        birth_time: "HH:MM" local clock time
        latitude, longitude: birth place; enables timezone lookup and LMT
        utc_offset: standard offset override in hours (skips timezone lookup)

    Without a longitude the clock hour is bucketed as is.
    """
    if isinstance(birth_date, str):
        try:
            birth_date = date.fromisoformat(birth_date)
        except ValueError as exc:
            raise InvalidBirthData(f"Invalid birth date {birth_date!r}: {exc}") from exc

    hour, minute = parse_clock_time(birth_time)
    clock_dt = datetime(birth_date.year, birth_date.month, birth_date.day, hour, minute)

    tz_name = None
    dst_detected = False
    standard_offset = utc_offset
    if standard_offset is None and latitude is not None and longitude is not None:
        clock_offset, standard_offset, tz_name, dst_detected = utc_offset_for(
            latitude, longitude, birth_date, birth_time)
        if dst_detected:
            # Clock ran ahead of standard time by the zone's DST amount
            dst_adj = clock_offset - standard_offset
            clock_dt -= timedelta(hours=dst_adj)
            logger.info("DST (%+.2fh) active in %s at birth; using standard time", dst_adj, tz_name)

    correction = 0.0
    lmt_dt = clock_dt
    if longitude is not None:
        meridian = standard_offset * 15 if standard_offset is not None else DEFAULT_STANDARD_MERIDIAN
        correction = lmt_correction(longitude, meridian)
        lmt_dt = apply_lmt(clock_dt, longitude, meridian)

    branch_index = hour_branch_for_hour(lmt_dt.hour)
    logger.debug("clock %s %s -> LMT %s (%+.1f min) -> hour branch %d",
                 birth_date, birth_time, lmt_dt.strftime("%Y-%m-%d %H:%M"),
                 correction, branch_index)

    return ResolvedBirthTime(
        birth_date=lmt_dt.date(),
        lmt_time=lmt_dt.strftime("%H:%M"),
        hour_branch_index=branch_index,
        lmt_correction_minutes=correction,
        standard_offset=standard_offset,
        timezone_name=tz_name,
        dst_detected=dst_detected,
    )
