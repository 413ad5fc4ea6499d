"""
Tests for decade cycles, flow years and the decade summary.
"""

import pytest

from ziwei.decade_cycles import (
    CYCLE_COUNT,
    compute_decade_cycles,
    current_decade_summary,
    cycle_for_age,
    cycle_index_for_age,
    cycle_phase,
    decade_palace_tags,
    decade_start_age,
    flow_year_palace,
    is_forward,
    nominal_age,
    palace_for_age,
    season_for_palace,
)
from ziwei.stem_branch import FiveElementsBureau, Gender


class TestDirection:

    @pytest.mark.parametrize("year_stem,gender,forward", [
        (6, Gender.MALE, True),     # 庚 yang male
        (6, Gender.FEMALE, False),  # 庚 yang female
        (5, Gender.MALE, False),    # 己 yin male
        (5, Gender.FEMALE, True),   # 己 yin female
    ])
    def test_is_forward(self, year_stem, gender, forward):
        assert is_forward(year_stem, gender) is forward

    @pytest.mark.parametrize("bureau,start", [
        (FiveElementsBureau.WATER, 2), (FiveElementsBureau.WOOD, 3),
        (FiveElementsBureau.METAL, 4), (FiveElementsBureau.EARTH, 5),
        (FiveElementsBureau.FIRE, 6),
    ])
    def test_start_age_is_bureau_number(self, bureau, start):
        assert decade_start_age(bureau) == start


class TestComputeDecadeCycles:

    def test_1990_male_forward(self, chart_1990):
        cycles = compute_decade_cycles(chart_1990)
        assert [c.palace_index for c in cycles] == [10, 11, 0, 1, 2, 3, 4, 5, 6, 7, 8, 9]
        assert cycles[0].palace_name == "命宫"
        assert (cycles[0].age_start, cycles[0].age_end) == (5, 14)
        assert (cycles[3].age_start, cycles[3].age_end) == (35, 44)
        assert cycles[3].palace_name == "田宅宫"
        assert str(cycles[0]) == "大限1: 丙戌 命宫 ages 5-14"

    def test_1990_female_backward(self, chart_1990_female):
        cycles = compute_decade_cycles(chart_1990_female)
        assert [c.palace_index for c in cycles] == [10, 9, 8, 7, 6, 5, 4, 3, 2, 1, 0, 11]

    @pytest.mark.parametrize("fixture", ["chart_1990", "chart_1990_female", "chart_2000", "chart_2023_leap"])
    def test_partition(self, fixture, request):
        chart = request.getfixturevalue(fixture)
        cycles = compute_decade_cycles(chart)
        assert len(cycles) == CYCLE_COUNT
        assert sorted(c.palace_index for c in cycles) == list(range(12))
        assert cycles[0].palace_index == chart.life_palace_index
        for prev, nxt in zip(cycles, cycles[1:]):
            assert nxt.age_start == prev.age_end + 1
        assert cycles[-1].age_end == decade_start_age(chart.bureau) + 119

    def test_2000_water_bureau(self, chart_2000):
        cycles = compute_decade_cycles(chart_2000)
        assert cycles[0].age_start == 2
        assert cycles[1].palace_index == 1

    def test_to_dict(self, chart_1990):
        d = compute_decade_cycles(chart_1990)[3].to_dict()
        assert d["palace_english"] == "Property"
        assert d["stem"] + d["branch"] == "己丑"


class TestAgeLookup:

    @pytest.mark.parametrize("age,index", [(4, None), (5, 0), (14, 0), (15, 1), (37, 3), (124, 11), (125, None)])
    def test_cycle_index_for_age(self, age, index):
        assert cycle_index_for_age(5, age) == index

    def test_cycle_for_age(self, chart_1990):
        assert cycle_for_age(chart_1990, 37).palace_index == 1
        assert cycle_for_age(chart_1990, 37).contains(37)
        assert cycle_for_age(chart_1990, 3) is None

    def test_palace_for_age(self, chart_1990, chart_1990_female):
        assert palace_for_age(chart_1990, 20) == 11
        assert palace_for_age(chart_1990_female, 20) == 9
        assert palace_for_age(chart_1990, 200) is None

    def test_nominal_age(self, chart_1990, chart_2000):
        assert nominal_age(chart_1990, 1990) == 1
        assert nominal_age(chart_1990, 2026) == 37
        # born in lunar 1999, so already 2 in 2000
        assert nominal_age(chart_2000, 2000) == 2


class TestFlowYear:

    @pytest.mark.parametrize("year,palace", [(2020, 0), (2026, 6), (1990, 6), (2019, 11), (2031, 11), (2032, 0)])
    def test_flow_year_palace(self, year, palace):
        assert flow_year_palace(year) == palace


class TestDecadePalaceTags:

    def test_tags(self):
        tags = decade_palace_tags(10)
        assert tags[10] == "大命"
        assert tags[9] == "大兄"
        assert tags[2] == "大官"
        assert tags[11] == "大父"
        assert len(set(tags.values())) == 12

    @pytest.mark.parametrize("index", [-1, 12])
    def test_invalid(self, index):
        with pytest.raises(ValueError):
            decade_palace_tags(index)


class TestSeasonsAndPhases:

    @pytest.mark.parametrize("year_in_cycle,phase", [
        (1, "building"), (3, "building"), (4, "peak"), (6, "peak"), (7, "integration"), (10, "integration"),
    ])
    def test_cycle_phase(self, year_in_cycle, phase):
        assert cycle_phase(year_in_cycle) == phase

    @pytest.mark.parametrize("year_in_cycle", [0, 11])
    def test_cycle_phase_invalid(self, year_in_cycle):
        with pytest.raises(ValueError):
            cycle_phase(year_in_cycle)

    @pytest.mark.parametrize("palace,season", [
        ("官禄宫", "spring"), ("田宅宫", "summer"), ("夫妻宫", "autumn"),
        ("命宫", "winter"), ("財帛宮", "summer"),
    ])
    def test_season_for_palace(self, palace, season):
        assert season_for_palace(palace) == season


class TestCurrentDecadeSummary:

    def test_1990_in_2026(self, chart_1990):
        summary = current_decade_summary(chart_1990, 2026)
        assert summary.age == 37
        assert summary.cycle.number == 4
        assert summary.cycle.palace_index == 1
        assert (summary.start_year, summary.end_year) == (2024, 2033)
        assert summary.year_in_cycle == 3
        assert summary.phase == "building"
        assert summary.season == "summer"
        assert summary.season_title == "Activate, Leverage, Monetize"
        assert summary.flow_year_palace_index == 6
        assert summary.previous_cycle.palace_index == 0
        assert summary.next_cycle.palace_index == 2

    def test_first_cycle_has_no_previous(self, chart_1990):
        summary = current_decade_summary(chart_1990, 1994)
        assert summary.cycle.number == 1
        assert summary.previous_cycle is None

    def test_before_first_cycle(self, chart_1990):
        assert current_decade_summary(chart_1990, 1992) is None

    def test_after_last_cycle(self, chart_1990):
        assert current_decade_summary(chart_1990, 2113).next_cycle is None
        assert current_decade_summary(chart_1990, 2114) is None

    def test_to_dict(self, chart_1990):
        d = current_decade_summary(chart_1990, 2026).to_dict()
        assert d["years"] == "2024-2033"
        assert d["cycle"]["palace_name"] == "田宅宫"
        assert d["message"]
