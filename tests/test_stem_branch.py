"""
Tests for stems, branches, palace stems and the Five-Elements Bureau.
"""

import pytest

from ziwei.errors import InternalInvariantViolation, InvalidBirthData
from ziwei.stem_branch import (
    FiveElementsBureau,
    Gender,
    StemBranch,
    hour_branch_for_hour,
    palace_stem_index,
    parse_gender,
    resolve_bureau,
    stem,
    year_stem_branch,
    yin_yang_label,
    zodiac_animal,
)

# Nayin (纳音) element of each stem-branch pair in the 60 cycle, two pairs per entry:
# 海中金 炉中火 大林木 路旁土 剑锋金 山头火 涧下水 城头土 白蜡金 杨柳木
# 泉中水 屋上土 霹雳火 松柏木 长流水 沙中金 山下火 平地木 壁上土 金箔金
# 覆灯火 天河水 大驿土 钗钏金 桑柘木 大溪水 沙中土 天上火 石榴木 大海水
NAYIN = "金火木土金火水土金木水土火木水金火木土金火水土金木水土火木水"

NAYIN_BUREAU = {
    "水": FiveElementsBureau.WATER,
    "木": FiveElementsBureau.WOOD,
    "金": FiveElementsBureau.METAL,
    "土": FiveElementsBureau.EARTH,
    "火": FiveElementsBureau.FIRE,
}


def sexagenary_index(stem_index, branch_index):
    return next(k for k in range(60) if k % 10 == stem_index and k % 12 == branch_index)


class TestYearStemBranch:

    def test_1990(self):
        year = year_stem_branch(1990)
        assert year == StemBranch(6, 6)
        assert year.chinese == "庚午"
        assert year.zodiac == "马"
        assert year.branch.animal == "Horse"

    @pytest.mark.parametrize("year,combined,zodiac", [
        (1900, "庚子", "鼠"),
        (1984, "甲子", "鼠"),
        (1999, "己卯", "兔"),
        (2000, "庚辰", "龙"),
        (2023, "癸卯", "兔"),
        (2024, "甲辰", "龙"),
    ])
    def test_reference_years(self, year, combined, zodiac):
        assert year_stem_branch(year).chinese == combined
        assert zodiac_animal(year) == zodiac

    def test_to_dict(self):
        d = year_stem_branch(1990).to_dict()
        assert d["combined"] == "庚午"
        assert d["polarity"] == "yang"
        assert d["element"] == "metal"


class TestPalaceStems:

    @pytest.mark.parametrize("year_stem,tiger_stem", [
        (0, "丙"), (5, "丙"),
        (1, "戊"), (6, "戊"),
        (2, "庚"), (7, "庚"),
        (3, "壬"), (8, "壬"),
        (4, "甲"), (9, "甲"),
    ])
    def test_five_tigers(self, year_stem, tiger_stem):
        assert stem(palace_stem_index(year_stem, 2)).chinese == tiger_stem

    def test_1990_palace_stems(self):
        stems = "".join(stem(palace_stem_index(6, b)).chinese for b in range(12))
        # 子 丑 take the stems after 亥
        assert stems == "戊己戊己庚辛壬癸甲乙丙丁"

    def test_stem_parity_matches_branch(self):
        for year_stem in range(10):
            for b in range(12):
                assert palace_stem_index(year_stem, b) % 2 == b % 2


class TestBureau:

    def test_1990_life_palace_xu(self):
        # 丙戌 屋上土
        assert resolve_bureau(6, 10) is FiveElementsBureau.EARTH

    def test_matches_nayin_of_life_palace(self):
        for year_stem in range(10):
            for life_branch in range(12):
                k = sexagenary_index(palace_stem_index(year_stem, life_branch), life_branch)
                expected = NAYIN_BUREAU[NAYIN[k // 2]]
                assert resolve_bureau(year_stem, life_branch) is expected

    def test_labels(self):
        assert FiveElementsBureau.WATER.chinese == "水二局"
        assert FiveElementsBureau.FIRE.chinese == "火六局"
        assert int(FiveElementsBureau.EARTH) == 5
        assert FiveElementsBureau.METAL.element.value == "metal"

    @pytest.mark.parametrize("year_stem,life_branch", [(10, 0), (-1, 0), (0, 12), (0, -1)])
    def test_out_of_table(self, year_stem, life_branch):
        with pytest.raises(InternalInvariantViolation):
            resolve_bureau(year_stem, life_branch)


class TestHourBranch:

    @pytest.mark.parametrize("hour,branch", [
        (23, 0), (0, 0), (1, 1), (2, 1), (3, 2), (9, 5),
        (10, 5), (11, 6), (12, 6), (13, 7), (21, 11), (22, 11),
    ])
    def test_hour_to_branch(self, hour, branch):
        assert hour_branch_for_hour(hour) == branch

    @pytest.mark.parametrize("hour", [-1, 24])
    def test_invalid_hour(self, hour):
        with pytest.raises(InvalidBirthData):
            hour_branch_for_hour(hour)


class TestGender:

    @pytest.mark.parametrize("value,expected", [
        ("male", Gender.MALE), ("Female", Gender.FEMALE), (" MALE ", Gender.MALE),
        (Gender.FEMALE, Gender.FEMALE),
    ])
    def test_parse(self, value, expected):
        assert parse_gender(value) is expected

    def test_invalid(self):
        with pytest.raises(InvalidBirthData):
            parse_gender("unknown")

    @pytest.mark.parametrize("stem_index,gender,label", [
        (6, "male", "阳男"), (6, "female", "阳女"), (5, "male", "阴男"), (5, "female", "阴女"),
    ])
    def test_yin_yang_label(self, stem_index, gender, label):
        assert yin_yang_label(stem_index, gender) == label
