"""
Chinese lunisolar calendar conversion.

Handles:
- Gregorian (solar) date to lunar date, including leap months
- Lunar date back to Gregorian
- Month and day labels (正月, 初一, ...)

Covers lunar years 1900-2100. Day arithmetic goes through Julian day
numbers from Swiss Ephemeris so there is a single source of truth for
Gregorian date math.
"""

import logging
from bisect import bisect_right
from dataclasses import dataclass
from datetime import date, datetime
from functools import lru_cache
from typing import Optional, Union

import swisseph as swe

from ziwei.errors import (
    InternalInvariantViolation,
    InvalidBirthData,
    OutOfRangeDate,
    table_lookup,
)

logger = logging.getLogger(__name__)


# ============================================================
# ENCODED LUNAR YEAR TABLE
# ============================================================
#
# One entry per lunar year, starting at 1900.
#   bits 0-3   leap month number (0 = no leap month)
#   bits 4-15  month 1..12 length flags (0x8000 = month 1 ... 0x10 = month 12),
#              set = 30 days, clear = 29 days
#   bit 16     leap month length (set = 30 days, clear = 29 days)
#
# Example: 0x04bd8 (1900) has leap month 8, a 29-day leap month
# and seven long months: 348 + 7 + 29 = 384 days.

LUNAR_YEAR_INFO = (
    0x04bd8, 0x04ae0, 0x0a570, 0x054d5, 0x0d260, 0x0d950, 0x16554, 0x056a0, 0x09ad0, 0x055d2,  # 1900
    0x04ae0, 0x0a5b6, 0x0a4d0, 0x0d250, 0x1d255, 0x0b540, 0x0d6a0, 0x0ada2, 0x095b0, 0x14977,  # 1910
    0x04970, 0x0a4b0, 0x0b4b5, 0x06a50, 0x06d40, 0x1ab54, 0x02b60, 0x09570, 0x052f2, 0x04970,  # 1920
    0x06566, 0x0d4a0, 0x0ea50, 0x16a95, 0x05ad0, 0x02b60, 0x186e3, 0x092e0, 0x1c8d7, 0x0c950,  # 1930
    0x0d4a0, 0x1d8a6, 0x0b550, 0x056a0, 0x1a5b4, 0x025d0, 0x092d0, 0x0d2b2, 0x0a950, 0x0b557,  # 1940
    0x06ca0, 0x0b550, 0x15355, 0x04da0, 0x0a5b0, 0x14573, 0x052b0, 0x0a9a8, 0x0e950, 0x06aa0,  # 1950
    0x0aea6, 0x0ab50, 0x04b60, 0x0aae4, 0x0a570, 0x05260, 0x0f263, 0x0d950, 0x05b57, 0x056a0,  # 1960
    0x096d0, 0x04dd5, 0x04ad0, 0x0a4d0, 0x0d4d4, 0x0d250, 0x0d558, 0x0b540, 0x0b6a0, 0x195a6,  # 1970
    0x095b0, 0x049b0, 0x0a974, 0x0a4b0, 0x0b27a, 0x06a50, 0x06d40, 0x0af46, 0x0ab60, 0x09570,  # 1980
    0x04af5, 0x04970, 0x064b0, 0x074a3, 0x0ea50, 0x06b58, 0x05ac0, 0x0ab60, 0x096d5, 0x092e0,  # 1990
    0x0c960, 0x0d954, 0x0d4a0, 0x0da50, 0x07552, 0x056a0, 0x0abb7, 0x025d0, 0x092d0, 0x0cab5,  # 2000
    0x0a950, 0x0b4a0, 0x0baa4, 0x0ad50, 0x055d9, 0x04ba0, 0x0a5b0, 0x15176, 0x052b0, 0x0a930,  # 2010
    0x07954, 0x06aa0, 0x0ad50, 0x05b52, 0x04b60, 0x0a6e6, 0x0a4e0, 0x0d260, 0x0ea65, 0x0d530,  # 2020
    0x05aa0, 0x076a3, 0x096d0, 0x04afb, 0x04ad0, 0x0a4d0, 0x1d0b6, 0x0d250, 0x0d520, 0x0dd45,  # 2030
    0x0b5a0, 0x056d0, 0x055b2, 0x049b0, 0x0a577, 0x0a4b0, 0x0aa50, 0x1b255, 0x06d20, 0x0ada0,  # 2040
    0x14b63, 0x09370, 0x049f8, 0x04970, 0x064b0, 0x168a6, 0x0ea50, 0x06b20, 0x1a6c4, 0x0aae0,  # 2050
    0x092e0, 0x0d2e3, 0x0c960, 0x0d557, 0x0d4a0, 0x0da50, 0x05d55, 0x056a0, 0x0a6d0, 0x055d4,  # 2060
    0x052d0, 0x0a9b8, 0x0a950, 0x0b4a0, 0x0b6a6, 0x0ad50, 0x055a0, 0x0aba4, 0x0a5b0, 0x052b0,  # 2070
    0x0b273, 0x06930, 0x07337, 0x06aa0, 0x0ad50, 0x14b55, 0x04b60, 0x0a570, 0x054e4, 0x0d160,  # 2080
    0x0e968, 0x0d520, 0x0daa0, 0x16aa6, 0x056d0, 0x04ae0, 0x0a9d4, 0x0a2d0, 0x0d150, 0x0f252,  # 2090
    0x0d520,  # 2100
)

MIN_LUNAR_YEAR = 1900
MAX_LUNAR_YEAR = MIN_LUNAR_YEAR + len(LUNAR_YEAR_INFO) - 1

# Lunar new year 1900 (正月初一) fell on 1900-01-31
EPOCH = (1900, 1, 31)

MONTH_LABELS = ["正月", "二月", "三月", "四月", "五月", "六月",
                "七月", "八月", "九月", "十月", "冬月", "腊月"]

_DAY_TENS = ["初", "十", "廿", "三"]
_DAY_UNITS = ["一", "二", "三", "四", "五", "六", "七", "八", "九", "十"]


# ============================================================
# DATE VALUE TYPES
# ============================================================

@dataclass(frozen=True)
class SolarDate:
    year: int
    month: int
    day: int
    hour_branch_index: Optional[int] = None  # 0-11, 子 = 0

    def to_date(self) -> date:
        return date(self.year, self.month, self.day)

    def __str__(self):
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"

    def to_dict(self):
        return {
            "year": self.year,
            "month": self.month,
            "day": self.day,
            "hour_branch_index": self.hour_branch_index,
            "iso_format": str(self),
        }


@dataclass(frozen=True)
class LunarDate:
    year: int
    month: int
    day: int
    is_leap_month: bool = False

    @property
    def label(self) -> str:
        return f"{lunar_month_label(self.month, self.is_leap_month)}{lunar_day_label(self.day)}"

    def __str__(self):
        leap = "leap " if self.is_leap_month else ""
        return f"{self.year} {leap}{self.month}/{self.day} ({self.label})"

    def to_dict(self):
        return {
            "year": self.year,
            "month": self.month,
            "day": self.day,
            "is_leap_month": self.is_leap_month,
            "label": self.label,
        }


# ============================================================
# TABLE HELPERS
# ============================================================

def _year_info(year: int) -> int:
    if not MIN_LUNAR_YEAR <= year <= MAX_LUNAR_YEAR:
        raise OutOfRangeDate(
            f"Lunar year {year} outside supported range "
            f"{MIN_LUNAR_YEAR}-{MAX_LUNAR_YEAR}"
        )
    return table_lookup(LUNAR_YEAR_INFO, year - MIN_LUNAR_YEAR, "LUNAR_YEAR_INFO")


def leap_month(year: int) -> int:
    """Leap month number for a lunar year, 0 when there is none."""
    return _year_info(year) & 0xF


def leap_month_days(year: int) -> int:
    if not leap_month(year):
        return 0
    return 30 if _year_info(year) & 0x10000 else 29


def lunar_month_days(year: int, month: int) -> int:
    """Length of an ordinary (non-leap) lunar month."""
    if not 1 <= month <= 12:
        raise InvalidBirthData(f"Lunar month must be 1-12, got {month}")
    return 30 if _year_info(year) & (0x10000 >> month) else 29


def lunar_year_days(year: int) -> int:
    """Total days in a lunar year: 348 + one per long month + leap month."""
    info = _year_info(year)
    long_months = sum(1 for month in range(1, 13) if info & (0x10000 >> month))
    return 348 + long_months + leap_month_days(year)


def _months_in_order(year: int):
    """Yield (month, is_leap, days) in calendar order; leap follows its namesake."""
    leap = leap_month(year)
    for month in range(1, 13):
        yield month, False, lunar_month_days(year, month)
        if month == leap:
            yield month, True, leap_month_days(year)


def _julian_day_number(year: int, month: int, day: int) -> int:
    return int(swe.julday(year, month, day, 0.0) + 0.5)


_EPOCH_JDN = _julian_day_number(*EPOCH)


@lru_cache(maxsize=None)
def _new_year_offsets() -> tuple[int, ...]:
    """Days from the epoch to each lunar new year, ending with the day after lunar 2100."""
    offsets = [0]
    for year in range(MIN_LUNAR_YEAR, MAX_LUNAR_YEAR + 1):
        offsets.append(offsets[-1] + lunar_year_days(year))
    return tuple(offsets)


# ============================================================
# CONVERSION
# ============================================================

def solar_to_lunar(year: int, month: int, day: int) -> LunarDate:
    """
    Convert a Gregorian date to its lunar date.

    Args:
        year, month, day: Gregorian date

    Returns:
        LunarDate

    Raises:
        InvalidBirthData: the Gregorian date does not exist
        OutOfRangeDate: date before 1900-01-31 or after lunar year 2100
    """
    try:
        date(year, month, day)
    except ValueError as exc:
        raise InvalidBirthData(f"Invalid solar date {year}-{month}-{day}: {exc}") from exc

    offset = _julian_day_number(year, month, day) - _EPOCH_JDN
    if offset < 0:
        raise OutOfRangeDate(f"Solar date {year}-{month:02d}-{day:02d} is before lunar year {MIN_LUNAR_YEAR}")

    new_years = _new_year_offsets()
    if offset >= new_years[-1]:
        raise OutOfRangeDate(f"Solar date {year}-{month:02d}-{day:02d} is after lunar year {MAX_LUNAR_YEAR}")
    year_index = bisect_right(new_years, offset) - 1
    lunar_year = MIN_LUNAR_YEAR + year_index
    offset -= new_years[year_index]

    for lunar_month, is_leap, days_in_month in _months_in_order(lunar_year):
        if offset < days_in_month:
            result = LunarDate(lunar_year, lunar_month, offset + 1, is_leap)
            logger.debug("solar %04d-%02d-%02d -> lunar %s", year, month, day, result)
            return result
        offset -= days_in_month

    raise InternalInvariantViolation(f"Day offset overran lunar year {lunar_year}")


def lunar_to_solar(year: int, month: int, day: int, is_leap: bool = False) -> SolarDate:
    """
    Convert a lunar date to its Gregorian date.

    Args:
        year: lunar year (1900-2100)
        month: lunar month 1-12
        day: lunar day 1-30
        is_leap: True for the leap month that follows `month`

    Raises:
        OutOfRangeDate: year outside the table
        InvalidBirthData: month/day/leap flag impossible for that year
    """
    _year_info(year)
    if not 1 <= month <= 12:
        raise InvalidBirthData(f"Lunar month must be 1-12, got {month}")
    if is_leap and leap_month(year) != month:
        raise InvalidBirthData(f"Lunar year {year} has no leap month {month}")

    month_length = leap_month_days(year) if is_leap else lunar_month_days(year, month)
    if not 1 <= day <= month_length:
        raise InvalidBirthData(
            f"Lunar {year} {'leap ' if is_leap else ''}month {month} has "
            f"{month_length} days, got {day}"
        )

    offset = _new_year_offsets()[year - MIN_LUNAR_YEAR]
    for lunar_month, leap, days_in_month in _months_in_order(year):
        if lunar_month == month and leap == is_leap:
            break
        offset += days_in_month
    offset += day - 1

    y, m, d, _ = swe.revjul(float(_EPOCH_JDN + offset), swe.GREG_CAL)
    return SolarDate(y, m, d)


def to_solar_date(value: Union[SolarDate, date, datetime, str]) -> SolarDate:
    """Accept a SolarDate, date/datetime or ISO string (YYYY-MM-DD)."""
    if isinstance(value, SolarDate):
        return value
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError as exc:
            raise InvalidBirthData(f"Invalid birth date {value!r}: {exc}") from exc
    if isinstance(value, (date, datetime)):
        return SolarDate(value.year, value.month, value.day)
    raise InvalidBirthData(f"Unsupported birth date type: {type(value).__name__}")


# ============================================================
# LABELS
# ============================================================

def lunar_month_label(month: int, is_leap: bool = False) -> str:
    label = table_lookup(MONTH_LABELS, month - 1, "MONTH_LABELS")
    return f"闰{label}" if is_leap else label


def lunar_day_label(day: int) -> str:
    """
    Traditional name of a lunar day.

    1 → 初一, 10 → 初十, 20 → 二十, 21 → 廿一, 30 → 三十
    """
    if not 1 <= day <= 30:
        raise InvalidBirthData(f"Lunar day must be 1-30, got {day}")
    if day == 20:
        return "二十"
    if day == 30:
        return "三十"
    tens, units = divmod(day - 1, 10)
    return _DAY_TENS[tens] + _DAY_UNITS[units]


if __name__ == "__main__":
    for sample in [(1990, 3, 15), (2000, 1, 1), (2023, 3, 22), (2033, 12, 22)]:
        lunar = solar_to_lunar(*sample)
        back = lunar_to_solar(lunar.year, lunar.month, lunar.day, lunar.is_leap_month)
        print(f"{sample} -> {lunar} -> {back}")
