"""
Tests for solar/lunar conversion.

Reference dates are checked against published Chinese almanacs.
"""

from datetime import date

import pytest

from ziwei.errors import InvalidBirthData, OutOfRangeDate
from ziwei.lunar_calendar import (
    LUNAR_YEAR_INFO,
    MAX_LUNAR_YEAR,
    MIN_LUNAR_YEAR,
    LunarDate,
    SolarDate,
    leap_month,
    leap_month_days,
    lunar_day_label,
    lunar_month_days,
    lunar_month_label,
    lunar_to_solar,
    lunar_year_days,
    solar_to_lunar,
    to_solar_date,
)


class TestSolarToLunar:

    @pytest.mark.parametrize("solar,expected", [
        ((1990, 3, 15), LunarDate(1990, 2, 19, False)),
        ((2000, 1, 1), LunarDate(1999, 11, 25, False)),
        ((1999, 12, 14), LunarDate(1999, 11, 7, False)),
        ((2023, 4, 20), LunarDate(2023, 3, 1, False)),
        ((2023, 3, 22), LunarDate(2023, 2, 1, True)),  # 闰二月初一
        ((2020, 6, 21), LunarDate(2020, 5, 1, False)),
        ((2033, 12, 22), LunarDate(2033, 11, 1, True)),  # 闰十一月
        ((1984, 2, 2), LunarDate(1984, 1, 1, False)),
        ((2024, 2, 9), LunarDate(2023, 12, 30, False)),  # 除夕
        ((1900, 1, 31), LunarDate(1900, 1, 1, False)),  # first supported day
        ((2101, 1, 28), LunarDate(2100, 12, 29, False)),  # last supported day
    ])
    def test_reference_dates(self, solar, expected):
        assert solar_to_lunar(*solar) == expected

    @pytest.mark.parametrize("solar", [(1900, 1, 30), (1899, 12, 31), (2101, 1, 29), (2150, 6, 1)])
    def test_out_of_range(self, solar):
        with pytest.raises(OutOfRangeDate):
            solar_to_lunar(*solar)

    @pytest.mark.parametrize("solar", [(2023, 2, 30), (1990, 13, 1), (1990, 0, 10)])
    def test_invalid_solar_date(self, solar):
        with pytest.raises(InvalidBirthData):
            solar_to_lunar(*solar)

    def test_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            solar_to_lunar(1800, 1, 1)


class TestLunarToSolar:

    @pytest.mark.parametrize("year,new_year", [
        (1990, date(1990, 1, 27)),
        (2000, date(2000, 2, 5)),
        (2020, date(2020, 1, 25)),
        (2023, date(2023, 1, 22)),
        (2024, date(2024, 2, 10)),
        (2025, date(2025, 1, 29)),
        (2033, date(2033, 1, 31)),
        (2050, date(2050, 1, 23)),
    ])
    def test_lunar_new_year(self, year, new_year):
        assert lunar_to_solar(year, 1, 1).to_date() == new_year

    def test_leap_month_follows_namesake(self):
        ordinary = lunar_to_solar(2023, 2, 1).to_date()
        leap = lunar_to_solar(2023, 2, 1, is_leap=True).to_date()
        assert leap == date(2023, 3, 22)
        assert (leap - ordinary).days == lunar_month_days(2023, 2)

    def test_no_such_leap_month(self):
        with pytest.raises(InvalidBirthData):
            lunar_to_solar(2023, 3, 1, is_leap=True)

    def test_day_past_month_end(self):
        assert lunar_month_days(2023, 1) == 29
        with pytest.raises(InvalidBirthData):
            lunar_to_solar(2023, 1, 30)

    @pytest.mark.parametrize("year", [1899, 2101])
    def test_out_of_range_year(self, year):
        with pytest.raises(OutOfRangeDate):
            lunar_to_solar(year, 1, 1)

    def test_invalid_month(self):
        with pytest.raises(InvalidBirthData):
            lunar_to_solar(1990, 13, 1)


class TestRoundTrip:

    def test_every_lunar_date(self):
        """solar_to_lunar(lunar_to_solar(d)) == d across the whole table."""
        for year in range(MIN_LUNAR_YEAR, MAX_LUNAR_YEAR + 1):
            leap = leap_month(year)
            for month in range(1, 13):
                variants = [(False, lunar_month_days(year, month))]
                if month == leap:
                    variants.append((True, leap_month_days(year)))
                for is_leap, days in variants:
                    for day in range(1, days + 1):
                        solar = lunar_to_solar(year, month, day, is_leap)
                        back = solar_to_lunar(solar.year, solar.month, solar.day)
                        assert back == LunarDate(year, month, day, is_leap)

    def test_consecutive_solar_days_advance_by_one(self):
        first = lunar_to_solar(2023, 2, 30)
        assert solar_to_lunar(first.year, first.month, first.day + 1) == LunarDate(2023, 2, 1, True)


class TestYearTable:

    def test_1900_entry(self):
        info = LUNAR_YEAR_INFO[0]
        assert info == 0x04bd8
        assert info & 0xF == 8
        assert leap_month(1900) == 8

    def test_1900_length(self):
        long_months = bin(0x04bd8 & 0xFFF0).count("1")
        assert long_months == 7
        assert leap_month_days(1900) == 29
        assert lunar_year_days(1900) == 348 + long_months + 29 == 384

    def test_table_spans_real_calendar(self):
        """Lunar 1900-2100 runs from 1900-01-31 to 2101-01-28 inclusive."""
        total = sum(lunar_year_days(y) for y in range(MIN_LUNAR_YEAR, MAX_LUNAR_YEAR + 1))
        assert total == (date(2101, 1, 29) - date(1900, 1, 31)).days

    @pytest.mark.parametrize("year,leap", [(1990, 5), (2000, 0), (2020, 4), (2023, 2), (2025, 6), (2033, 11)])
    def test_leap_months(self, year, leap):
        assert leap_month(year) == leap

    def test_year_lengths(self):
        assert lunar_year_days(2000) == 354
        assert lunar_year_days(2023) == 384


class TestLabels:

    @pytest.mark.parametrize("day,label", [
        (1, "初一"), (10, "初十"), (11, "十一"), (19, "十九"),
        (20, "二十"), (21, "廿一"), (29, "廿九"), (30, "三十"),
    ])
    def test_day_labels(self, day, label):
        assert lunar_day_label(day) == label

    @pytest.mark.parametrize("day", [0, 31])
    def test_day_label_out_of_range(self, day):
        with pytest.raises(InvalidBirthData):
            lunar_day_label(day)

    def test_month_labels(self):
        assert lunar_month_label(1) == "正月"
        assert lunar_month_label(2, True) == "闰二月"
        assert lunar_month_label(12) == "腊月"

    def test_lunar_date_label(self):
        assert LunarDate(1990, 2, 19).label == "二月十九"
        assert LunarDate(2023, 2, 1, True).label == "闰二月初一"


class TestSolarDateInput:

    @pytest.mark.parametrize("value", ["1990-03-15", date(1990, 3, 15), SolarDate(1990, 3, 15)])
    def test_accepted_inputs(self, value):
        assert to_solar_date(value) == SolarDate(1990, 3, 15)

    @pytest.mark.parametrize("value", ["15/03/1990", 19900315])
    def test_rejected_inputs(self, value):
        with pytest.raises(InvalidBirthData):
            to_solar_date(value)
