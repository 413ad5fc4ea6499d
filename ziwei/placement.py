"""
Zi Wei Dou Shu star placement.

Handles:
- Life palace (命宫) and body palace (身宫) from lunar month and hour branch
- 14 main stars: 紫微 from the bureau/day table, the rest by fixed offsets
- Auxiliary stars by year stem, lunar month, hour branch and year branch group
- Temporal stars by year branch
- Four transformations (四化) by heavenly stem

Every function here returns star name → palace index (earthly branch order,
子 = 0). Chart assembly lives in ziwei.chart.

Design principle: This module PLACES. It does not interpret.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from ziwei.errors import InternalInvariantViolation, InvalidBirthData, table_lookup
from ziwei.stem_branch import FiveElementsBureau

logger = logging.getLogger(__name__)


# ============================================================
# STAR DATA STRUCTURES
# ============================================================

class StarCategory(Enum):
    MAIN = "main"
    AUXILIARY = "auxiliary"
    TRANSFORMATION_TAG = "transformation_tag"
    TEMPORAL = "temporal"


@dataclass(frozen=True)
class Star:
    name: str
    category: StarCategory
    transformation: Optional[str] = None  # 禄/权/科/忌 when the natal year transforms it

    @property
    def pinyin(self) -> str:
        return STAR_PINYIN.get(self.name, "")

    def __str__(self):
        if self.transformation:
            return f"{self.name}(化{self.transformation})"
        return self.name

    def to_dict(self):
        return {
            "name": self.name,
            "pinyin": self.pinyin,
            "category": self.category.value,
            "transformation": self.transformation,
        }


@dataclass(frozen=True)
class Transformation:
    key: str  # 禄, 权, 科 or 忌
    star_name: str

    @property
    def label(self) -> str:
        return f"化{self.key}"

    def __str__(self):
        return f"{self.star_name}{self.label}"

    def to_dict(self):
        return {"key": self.key, "label": self.label, "star": self.star_name}


STAR_PINYIN = {
    "紫微": "Zi Wei", "天机": "Tian Ji", "太阳": "Tai Yang", "武曲": "Wu Qu",
    "天同": "Tian Tong", "廉贞": "Lian Zhen", "天府": "Tian Fu", "太阴": "Tai Yin",
    "贪狼": "Tan Lang", "巨门": "Ju Men", "天相": "Tian Xiang", "天梁": "Tian Liang",
    "七杀": "Qi Sha", "破军": "Po Jun",
    "文昌": "Wen Chang", "文曲": "Wen Qu", "左辅": "Zuo Fu", "右弼": "You Bi",
    "天魁": "Tian Kui", "天钺": "Tian Yue", "禄存": "Lu Cun", "擎羊": "Qing Yang",
    "陀罗": "Tuo Luo", "火星": "Huo Xing", "铃星": "Ling Xing", "地空": "Di Kong",
    "地劫": "Di Jie",
    "天马": "Tian Ma", "红鸾": "Hong Luan", "天喜": "Tian Xi", "龙池": "Long Chi",
    "凤阁": "Feng Ge",
}


# ============================================================
# LIFE AND BODY PALACE
# ============================================================

def _check_month(month: int):
    if not 1 <= month <= 12:
        raise InvalidBirthData(f"Lunar month must be 1-12, got {month}")


def _check_hour_branch(hour_branch_index: int):
    if not 0 <= hour_branch_index <= 11:
        raise InvalidBirthData(f"Hour branch index must be 0-11, got {hour_branch_index}")


def life_palace_index(lunar_month: int, hour_branch_index: int) -> int:
    """
    Life palace (命宫): start at 寅 for month 1, count forward to the birth
    month, then backward by the hour branch.
    """
    _check_month(lunar_month)
    _check_hour_branch(hour_branch_index)
    return (lunar_month + 1 - hour_branch_index) % 12


def body_palace_index(lunar_month: int, hour_branch_index: int) -> int:
    """Body palace (身宫): same start, counted forward by the hour branch."""
    _check_month(lunar_month)
    _check_hour_branch(hour_branch_index)
    return (lunar_month + 1 + hour_branch_index) % 12


# ============================================================
# MAIN STARS (十四主星)
# ============================================================
#
# 紫微 position by bureau and lunar day (columns = day 1..30).
# Closed form: q = ceil(day / bureau), diff = q * bureau - day;
# position = 寅 + (q - 1), then + diff if diff is even, - diff if odd.

ZIWEI_POSITION_TABLE = {
    FiveElementsBureau.WATER: (1, 2, 2, 3, 3, 4, 4, 5, 5, 6, 6, 7, 7, 8, 8,
                               9, 9, 10, 10, 11, 11, 0, 0, 1, 1, 2, 2, 3, 3, 4),
    FiveElementsBureau.WOOD: (4, 1, 2, 5, 2, 3, 6, 3, 4, 7, 4, 5, 8, 5, 6,
                              9, 6, 7, 10, 7, 8, 11, 8, 9, 0, 9, 10, 1, 10, 11),
    FiveElementsBureau.METAL: (11, 4, 1, 2, 0, 5, 2, 3, 1, 6, 3, 4, 2, 7, 4,
                               5, 3, 8, 5, 6, 4, 9, 6, 7, 5, 10, 7, 8, 6, 11),
    FiveElementsBureau.EARTH: (6, 11, 4, 1, 2, 7, 0, 5, 2, 3, 8, 1, 6, 3, 4,
                               9, 2, 7, 4, 5, 10, 3, 8, 5, 6, 11, 4, 9, 6, 7),
    FiveElementsBureau.FIRE: (9, 6, 11, 4, 1, 2, 10, 7, 0, 5, 2, 3, 11, 8, 1,
                              6, 3, 4, 0, 9, 2, 7, 4, 5, 1, 10, 3, 8, 5, 6),
}

# Offsets from 紫微, counted in branch order
ZIWEI_GROUP_OFFSETS = (
    ("紫微", 0),
    ("天机", -1),
    ("太阳", -3),
    ("武曲", -4),
    ("天同", -5),
    ("廉贞", -8),
)

# Offsets from 天府, counted in branch order
TIANFU_GROUP_OFFSETS = (
    ("天府", 0),
    ("太阴", 1),
    ("贪狼", 2),
    ("巨门", 3),
    ("天相", 4),
    ("天梁", 5),
    ("七杀", 6),
    ("破军", 10),
)

MAIN_STARS = tuple(name for name, _ in ZIWEI_GROUP_OFFSETS + TIANFU_GROUP_OFFSETS)


def ziwei_palace_index(bureau: FiveElementsBureau, lunar_day: int) -> int:
    if not 1 <= lunar_day <= 30:
        raise InvalidBirthData(f"Lunar day must be 1-30, got {lunar_day}")
    row = ZIWEI_POSITION_TABLE.get(bureau)
    if row is None:
        raise InternalInvariantViolation(f"No 紫微 table row for bureau {bureau!r}")
    return table_lookup(row, lunar_day - 1, "ZIWEI_POSITION_TABLE")


def tianfu_palace_index(ziwei_index: int) -> int:
    """天府 mirrors 紫微 across the 寅-申 axis."""
    return (4 - ziwei_index) % 12


def place_main_stars(bureau: FiveElementsBureau, lunar_day: int) -> dict[str, int]:
    """
    Place the 14 main stars.

    Returns:
        {star name: palace index}, 紫微 group first, then 天府 group
    """
    ziwei = ziwei_palace_index(bureau, lunar_day)
    tianfu = tianfu_palace_index(ziwei)

    positions = {}
    for name, offset in ZIWEI_GROUP_OFFSETS:
        positions[name] = (ziwei + offset) % 12
    for name, offset in TIANFU_GROUP_OFFSETS:
        positions[name] = (tianfu + offset) % 12

    logger.debug("main stars for %s day %d: 紫微 at %d, 天府 at %d",
                 bureau.chinese, lunar_day, ziwei, tianfu)
    return positions


# ============================================================
# AUXILIARY STARS (六吉 六煞 禄存)
# ============================================================

# By year stem (甲..癸)
TIANKUI_BY_STEM = (1, 0, 11, 11, 1, 0, 1, 6, 3, 3)
TIANYUE_BY_STEM = (7, 8, 9, 9, 7, 8, 7, 2, 5, 5)
LUCUN_BY_STEM = (2, 3, 5, 6, 5, 6, 8, 9, 11, 0)

# Start palace at 子 hour by year branch group (year_branch % 4):
#   0 申子辰, 1 巳酉丑, 2 寅午戌, 3 亥卯未
HUOXING_START_BY_GROUP = (2, 3, 1, 9)
LINGXING_START_BY_GROUP = (10, 10, 3, 10)

AUXILIARY_STARS = ("文昌", "文曲", "左辅", "右弼", "天魁", "天钺", "禄存",
                   "擎羊", "陀罗", "火星", "铃星", "地空", "地劫")


def place_auxiliary_stars(year_stem_index: int, year_branch_index: int,
                          lunar_month: int, hour_branch_index: int) -> dict[str, int]:
    """
    Place the auxiliary stars. Each rule is independent.

    Args:
        year_stem_index: natal year stem (0-9)
        year_branch_index: natal year branch (0-11)
        lunar_month: 1-12
        hour_branch_index: 0-11

    Returns:
        {star name: palace index} in AUXILIARY_STARS order
    """
    _check_month(lunar_month)
    _check_hour_branch(hour_branch_index)
    hour = hour_branch_index
    group = year_branch_index % 4
    lucun = table_lookup(LUCUN_BY_STEM, year_stem_index, "LUCUN_BY_STEM")

    positions = {
        # hour branch: 文昌 from 戌 backward, 文曲 from 辰 forward
        "文昌": (10 - hour) % 12,
        "文曲": (4 + hour) % 12,
        # lunar month: 左辅 from 辰 forward, 右弼 from 戌 backward
        "左辅": (4 + lunar_month - 1) % 12,
        "右弼": (10 - (lunar_month - 1)) % 12,
        # year stem
        "天魁": table_lookup(TIANKUI_BY_STEM, year_stem_index, "TIANKUI_BY_STEM"),
        "天钺": table_lookup(TIANYUE_BY_STEM, year_stem_index, "TIANYUE_BY_STEM"),
        "禄存": lucun,
        "擎羊": (lucun + 1) % 12,
        "陀罗": (lucun - 1) % 12,
        # year branch group + hour
        "火星": (table_lookup(HUOXING_START_BY_GROUP, group, "HUOXING_START_BY_GROUP") + hour) % 12,
        "铃星": (table_lookup(LINGXING_START_BY_GROUP, group, "LINGXING_START_BY_GROUP") + hour) % 12,
        # hour branch from 亥: 地空 backward, 地劫 forward
        "地空": (11 - hour) % 12,
        "地劫": (11 + hour) % 12,
    }
    return positions


# ============================================================
# TEMPORAL STARS (年系诸星)
# ============================================================

TIANMA_BY_GROUP = (2, 11, 8, 5)

TEMPORAL_STARS = ("天马", "红鸾", "天喜", "龙池", "凤阁")


def place_temporal_stars(year_branch_index: int) -> dict[str, int]:
    """Stars that move with the year branch."""
    yb = year_branch_index
    return {
        "天马": table_lookup(TIANMA_BY_GROUP, yb % 4, "TIANMA_BY_GROUP"),
        "红鸾": (3 - yb) % 12,
        "天喜": (9 - yb) % 12,
        "龙池": (4 + yb) % 12,
        "凤阁": (10 - yb) % 12,
    }


# ============================================================
# FOUR TRANSFORMATIONS (四化)
# ============================================================

TRANSFORMATION_KEYS = ("禄", "权", "科", "忌")

# (化禄, 化权, 化科, 化忌) targets by stem 甲..癸
TRANSFORMATION_TABLE = (
    ("廉贞", "破军", "武曲", "太阳"),  # 甲
    ("天机", "天梁", "紫微", "太阴"),  # 乙
    ("天同", "天机", "文昌", "廉贞"),  # 丙
    ("太阴", "天同", "天机", "巨门"),  # 丁
    ("贪狼", "太阴", "右弼", "天机"),  # 戊
    ("武曲", "贪狼", "天梁", "文曲"),  # 己
    ("太阳", "武曲", "太阴", "天同"),  # 庚
    ("巨门", "太阳", "文曲", "文昌"),  # 辛
    ("天梁", "紫微", "左辅", "武曲"),  # 壬
    ("破军", "巨门", "太阴", "贪狼"),  # 癸
)


def transformations_for_stem(stem_index: int) -> tuple[Transformation, ...]:
    """The four transformations of a heavenly stem, in 禄 权 科 忌 order."""
    stars = table_lookup(TRANSFORMATION_TABLE, stem_index, "TRANSFORMATION_TABLE")
    return tuple(Transformation(key, star) for key, star in zip(TRANSFORMATION_KEYS, stars))


def place_transformations(stem_index: int,
                          positions: Mapping[str, int]) -> dict[Transformation, int]:
    """
    Locate each transformed star of a stem.

    Args:
        stem_index: the stem driving the transformations
        positions: star name → palace index for every placed star

    Raises:
        InternalInvariantViolation: a target star was never placed
    """
    placed = {}
    for transformation in transformations_for_stem(stem_index):
        if transformation.star_name not in positions:
            raise InternalInvariantViolation(
                f"Transformation target {transformation.star_name} not placed")
        placed[transformation] = positions[transformation.star_name]
    return placed
