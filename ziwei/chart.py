"""
Natal chart assembly.

Handles:
- Birth input validation (date, hour branch, gender)
- Lunar conversion, year stem/branch, life/body palace, bureau
- Building the 12 palaces with their stars and transformation tags
- Self transformations (自化) and transformations across to the opposite palace
- Star and palace lookup on a finished chart

Usage from Python:
    from ziwei.chart import compute_chart
    chart = compute_chart("1990-03-15", hour_branch_index=5, gender="male")
    chart.life_palace.name      # 命宫
    chart.find_star("紫微")      # Palace holding 紫微
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

from ziwei.errors import InternalInvariantViolation, InvalidBirthData, table_lookup
from ziwei.lunar_calendar import LunarDate, SolarDate, solar_to_lunar, to_solar_date
from ziwei.placement import (
    Star,
    StarCategory,
    Transformation,
    life_palace_index,
    body_palace_index,
    place_main_stars,
    place_auxiliary_stars,
    place_temporal_stars,
    place_transformations,
    tianfu_palace_index,
    transformations_for_stem,
    ziwei_palace_index,
)
from ziwei.stem_branch import (
    EarthlyBranch,
    FiveElementsBureau,
    Gender,
    HeavenlyStem,
    StemBranch,
    branch,
    palace_stem_index,
    parse_gender,
    resolve_bureau,
    stem,
    year_stem_branch,
    yin_yang_label,
)

logger = logging.getLogger(__name__)


# ============================================================
# PALACE NAMES
# ============================================================

# Counted backward (against branch order) from the life palace
PALACE_NAMES = ["命宫", "兄弟宫", "夫妻宫", "子女宫", "财帛宫", "疾厄宫",
                "迁移宫", "交友宫", "官禄宫", "田宅宫", "福德宫", "父母宫"]

PALACE_ENGLISH = {
    "命宫": "Life", "兄弟宫": "Siblings", "夫妻宫": "Spouse", "子女宫": "Children",
    "财帛宫": "Wealth", "疾厄宫": "Health", "迁移宫": "Travel", "交友宫": "Friends",
    "官禄宫": "Career", "田宅宫": "Property", "福德宫": "Wellbeing", "父母宫": "Parents",
}

_TRADITIONAL_CHARS = str.maketrans({"宮": "宫", "財": "财", "遷": "迁", "祿": "禄", "僕": "仆"})

_PALACE_ALIASES = {
    "奴仆宫": "交友宫",
    "仆役宫": "交友宫",
    "事业宫": "官禄宫",
    **{english.lower(): name for name, english in PALACE_ENGLISH.items()},
}

LEAP_MONTH_RULES = ("same", "split")


def normalize_palace_name(name: str) -> str:
    """
    Canonical simplified palace name.

    Accepts traditional forms (官祿宮), names without 宫 (夫妻),
    older aliases (奴仆宫) and the English names (Career).

    Raises:
        KeyError: not a palace name
    """
    cleaned = name.strip().translate(_TRADITIONAL_CHARS)
    if cleaned.lower() in _PALACE_ALIASES:
        return _PALACE_ALIASES[cleaned.lower()]
    if not cleaned.endswith("宫"):
        cleaned += "宫"
    cleaned = _PALACE_ALIASES.get(cleaned, cleaned)
    if cleaned not in PALACE_ENGLISH:
        raise KeyError(f"Unknown palace name: {name}")
    return cleaned


# ============================================================
# CHART DATA STRUCTURES
# ============================================================

@dataclass(frozen=True)
class BirthInput:
    solar_date: SolarDate
    gender: Gender

    def to_dict(self):
        return {
            "solar_date": self.solar_date.to_dict(),
            "gender": self.gender.value,
        }


@dataclass(frozen=True)
class Palace:
    index: int  # earthly branch order, 子 = 0
    name: str
    stem: HeavenlyStem
    branch: EarthlyBranch
    main_stars: tuple[Star, ...]
    auxiliary_stars: tuple[Star, ...]
    temporal_stars: tuple[Star, ...]
    transformation_tags: tuple[Star, ...]
    is_life_palace: bool
    is_body_palace: bool
    self_transformations: tuple[Transformation, ...] = ()
    opposite_transformations: tuple[Transformation, ...] = ()

    @property
    def english_name(self) -> str:
        return PALACE_ENGLISH[self.name]

    @property
    def opposite_index(self) -> int:
        return (self.index + 6) % 12

    @property
    def stars(self) -> tuple[Star, ...]:
        return self.main_stars + self.auxiliary_stars + self.temporal_stars

    def has_star(self, name: str) -> bool:
        return any(s.name == name for s in self.stars)

    def __str__(self):
        main = ", ".join(str(s) for s in self.main_stars) or "(empty)"
        body = " [身]" if self.is_body_palace else ""
        return f"{self.stem.chinese}{self.branch.chinese} {self.name}{body}: {main}"

    def to_dict(self):
        return {
            "index": self.index,
            "name": self.name,
            "english_name": self.english_name,
            "stem": self.stem.chinese,
            "branch": self.branch.chinese,
            "main_stars": [s.to_dict() for s in self.main_stars],
            "auxiliary_stars": [s.to_dict() for s in self.auxiliary_stars],
            "temporal_stars": [s.to_dict() for s in self.temporal_stars],
            "transformation_tags": [s.name for s in self.transformation_tags],
            "is_life_palace": self.is_life_palace,
            "is_body_palace": self.is_body_palace,
            "self_transformations": [t.to_dict() for t in self.self_transformations],
            "opposite_transformations": [t.to_dict() for t in self.opposite_transformations],
        }


@dataclass(frozen=True)
class Chart:
    birth: BirthInput
    lunar_date: LunarDate
    year: StemBranch
    bureau: FiveElementsBureau
    life_palace_index: int
    body_palace_index: int
    ziwei_index: int
    tianfu_index: int
    palaces: tuple[Palace, ...]
    natal_transformations: tuple[Transformation, ...]

    def __post_init__(self):
        if [p.index for p in self.palaces] != list(range(12)):
            raise InternalInvariantViolation("Chart must hold palaces 0-11 exactly once")
        for label, index in (("life", self.life_palace_index), ("body", self.body_palace_index)):
            if not 0 <= index < 12:
                raise InternalInvariantViolation(f"{label} palace index {index} outside [0, 11]")

    def palace(self, index: int) -> Palace:
        return table_lookup(self.palaces, index, "palaces")

    @property
    def life_palace(self) -> Palace:
        return self.palaces[self.life_palace_index]

    @property
    def body_palace(self) -> Palace:
        return self.palaces[self.body_palace_index]

    @property
    def gender(self) -> Gender:
        return self.birth.gender

    @property
    def yin_yang(self) -> str:
        return yin_yang_label(self.year.stem_index, self.birth.gender)

    def palace_by_name(self, name: str) -> Palace:
        canonical = normalize_palace_name(name)
        for p in self.palaces:
            if p.name == canonical:
                return p
        raise InternalInvariantViolation(f"Palace {canonical} missing from chart")

    def find_star(self, star_name: str) -> Optional[Palace]:
        """
        First palace holding a star.

        Main stars are scanned across all palaces first, then auxiliary,
        then temporal stars.
        """
        for attr in ("main_stars", "auxiliary_stars", "temporal_stars"):
            for p in self.palaces:
                if any(s.name == star_name for s in getattr(p, attr)):
                    return p
        return None

    def star_positions(self) -> dict[str, int]:
        return {s.name: p.index for p in self.palaces for s in p.stars}

    def to_dict(self):
        return {
            "birth": self.birth.to_dict(),
            "lunar_date": self.lunar_date.to_dict(),
            "year": self.year.to_dict(),
            "yin_yang": self.yin_yang,
            "bureau": {"number": int(self.bureau), "chinese": self.bureau.chinese},
            "life_palace_index": self.life_palace_index,
            "body_palace_index": self.body_palace_index,
            "ziwei_index": self.ziwei_index,
            "tianfu_index": self.tianfu_index,
            "natal_transformations": [t.to_dict() for t in self.natal_transformations],
            "palaces": [p.to_dict() for p in self.palaces],
        }


# ============================================================
# CHART COMPUTATION
# ============================================================

def placement_month(lunar: LunarDate, leap_month_rule: str = "same") -> int:
    """
    Lunar month used for placement.

    "same":  a leap month counts as its ordinary namesake
    "split": days 16+ of a leap month count as the following month
    """
    if leap_month_rule not in LEAP_MONTH_RULES:
        raise ValueError(f"Unknown leap month rule: {leap_month_rule!r}. Use one of {LEAP_MONTH_RULES}")
    if lunar.is_leap_month and leap_month_rule == "split" and lunar.day > 15:
        return lunar.month % 12 + 1
    return lunar.month


def _check_position(name: str, index: int):
    if not 0 <= index < 12:
        raise InternalInvariantViolation(f"{name} placed at {index}, outside [0, 11]")


def compute_chart(birth_date: Union[SolarDate, date, datetime, str],
                  hour_branch_index: int, gender: Union[Gender, str],
                  leap_month_rule: str = "same") -> Chart:
    """
    Compute a full Zi Wei Dou Shu natal chart.

    Args:
        birth_date: Gregorian birth date (SolarDate, date, datetime or YYYY-MM-DD)
        hour_branch_index: birth hour branch 0-11 (子 = 0), LMT corrected
        gender: "male" or "female"
        leap_month_rule: "same" (default) or "split", see placement_month

    Returns:
        Chart with 12 independently built palaces

    Raises:
        OutOfRangeDate: birth date outside lunar years 1900-2100
        InvalidBirthData: malformed date, hour branch or gender
    """
    solar = to_solar_date(birth_date)
    if isinstance(hour_branch_index, bool) or not isinstance(hour_branch_index, int) \
            or not 0 <= hour_branch_index <= 11:
        raise InvalidBirthData(f"Hour branch index must be 0-11, got {hour_branch_index!r}")
    sex = parse_gender(gender)

    lunar = solar_to_lunar(solar.year, solar.month, solar.day)
    year = year_stem_branch(lunar.year)
    month = placement_month(lunar, leap_month_rule)

    life = life_palace_index(month, hour_branch_index)
    body = body_palace_index(month, hour_branch_index)
    bureau = resolve_bureau(year.stem_index, life)

    # Independent placement rules, all keyed off the same inputs
    main = place_main_stars(bureau, lunar.day)
    auxiliary = place_auxiliary_stars(year.stem_index, year.branch_index, month, hour_branch_index)
    temporal = place_temporal_stars(year.branch_index)
    positions = {**main, **auxiliary, **temporal}
    for name, index in positions.items():
        _check_position(name, index)

    natal = place_transformations(year.stem_index, positions)
    natal_by_star = {t.star_name: t.key for t in natal}

    palaces = []
    for i in range(12):
        palace_stem = palace_stem_index(year.stem_index, i)

        def stars_at(placed, category):
            return tuple(Star(name, category, natal_by_star.get(name))
                         for name, index in placed.items() if index == i)

        tags = tuple(Star(t.label, StarCategory.TRANSFORMATION_TAG)
                     for t, index in natal.items() if index == i)

        self_transformed = []
        opposite_transformed = []
        for t in transformations_for_stem(palace_stem):
            if positions[t.star_name] == i:
                self_transformed.append(t)
            elif positions[t.star_name] == (i + 6) % 12:
                opposite_transformed.append(t)

        palaces.append(Palace(
            index=i,
            name=table_lookup(PALACE_NAMES, (life - i) % 12, "PALACE_NAMES"),
            stem=stem(palace_stem),
            branch=branch(i),
            main_stars=stars_at(main, StarCategory.MAIN),
            auxiliary_stars=stars_at(auxiliary, StarCategory.AUXILIARY),
            temporal_stars=stars_at(temporal, StarCategory.TEMPORAL),
            transformation_tags=tags,
            is_life_palace=(i == life),
            is_body_palace=(i == body),
            self_transformations=tuple(self_transformed),
            opposite_transformations=tuple(opposite_transformed),
        ))

    ziwei = ziwei_palace_index(bureau, lunar.day)
    chart = Chart(
        birth=BirthInput(
            SolarDate(solar.year, solar.month, solar.day, hour_branch_index), sex),
        lunar_date=lunar,
        year=year,
        bureau=bureau,
        life_palace_index=life,
        body_palace_index=body,
        ziwei_index=ziwei,
        tianfu_index=tianfu_palace_index(ziwei),
        palaces=tuple(palaces),
        natal_transformations=tuple(natal),
    )
    logger.debug("chart %s %s: lunar %s, %s, life %d, body %d",
                 solar, sex.value, lunar, bureau.chinese, life, body)
    return chart


if __name__ == "__main__":
    # Verification: 1990-03-15, 巳 hour, male
    chart = compute_chart("1990-03-15", 5, "male")
    print(f"Lunar: {chart.lunar_date}  Year: {chart.year}  {chart.yin_yang}")
    print(f"Bureau: {chart.bureau.chinese}")
    for p in chart.palaces:
        print(f"  {p}")
    ok = chart.life_palace_index == 10 and chart.bureau == FiveElementsBureau.EARTH
    print(f"Life palace 戌, 土五局 {'✓' if ok else '✗'}")
