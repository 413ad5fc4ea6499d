"""
Heavenly stems, earthly branches and the Five-Elements Bureau.

Handles:
- Year stem/branch and zodiac animal from a lunar year
- Palace stems (Five Tigers Escape, 五虎遁)
- Five-Elements Bureau (五行局) from year stem and life palace branch
- Clock hour to hour branch (时辰)
- Yin/yang gender label used for decade direction
"""

import logging
from dataclasses import dataclass
from enum import Enum, IntEnum

from ziwei.errors import InternalInvariantViolation, InvalidBirthData, table_lookup

logger = logging.getLogger(__name__)


# ============================================================
# FUNDAMENTAL DATA STRUCTURES
# ============================================================

class Polarity(Enum):
    YANG = "yang"
    YIN = "yin"


class Element(Enum):
    WOOD = "wood"
    FIRE = "fire"
    EARTH = "earth"
    METAL = "metal"
    WATER = "water"


class Gender(Enum):
    MALE = "male"
    FEMALE = "female"


@dataclass(frozen=True)
class HeavenlyStem:
    chinese: str
    pinyin: str
    element: Element
    polarity: Polarity
    index: int  # 0-9 in the cycle

    def __str__(self):
        return f"{self.chinese} {self.pinyin} ({self.polarity.value} {self.element.value})"


@dataclass(frozen=True)
class EarthlyBranch:
    chinese: str
    pinyin: str
    animal: str
    zodiac: str  # Chinese zodiac character
    element: Element
    polarity: Polarity
    index: int  # 0-11 in the cycle

    def __str__(self):
        return f"{self.chinese} {self.pinyin} ({self.animal})"


class FiveElementsBureau(IntEnum):
    """Bureau number doubles as the divisor of the 紫微 placement rule."""
    WATER = 2
    WOOD = 3
    METAL = 4
    EARTH = 5
    FIRE = 6

    @property
    def chinese(self) -> str:
        return BUREAU_LABELS[self]

    @property
    def element(self) -> Element:
        return Element[self.name]


BUREAU_LABELS = {
    FiveElementsBureau.WATER: "水二局",
    FiveElementsBureau.WOOD: "木三局",
    FiveElementsBureau.METAL: "金四局",
    FiveElementsBureau.EARTH: "土五局",
    FiveElementsBureau.FIRE: "火六局",
}


# ============================================================
# STEM AND BRANCH DEFINITIONS
# ============================================================

HEAVENLY_STEMS = [
    HeavenlyStem("甲", "Jia", Element.WOOD, Polarity.YANG, 0),
    HeavenlyStem("乙", "Yi", Element.WOOD, Polarity.YIN, 1),
    HeavenlyStem("丙", "Bing", Element.FIRE, Polarity.YANG, 2),
    HeavenlyStem("丁", "Ding", Element.FIRE, Polarity.YIN, 3),
    HeavenlyStem("戊", "Wu", Element.EARTH, Polarity.YANG, 4),
    HeavenlyStem("己", "Ji", Element.EARTH, Polarity.YIN, 5),
    HeavenlyStem("庚", "Geng", Element.METAL, Polarity.YANG, 6),
    HeavenlyStem("辛", "Xin", Element.METAL, Polarity.YIN, 7),
    HeavenlyStem("壬", "Ren", Element.WATER, Polarity.YANG, 8),
    HeavenlyStem("癸", "Gui", Element.WATER, Polarity.YIN, 9),
]

EARTHLY_BRANCHES = [
    EarthlyBranch("子", "Zi", "Rat", "鼠", Element.WATER, Polarity.YANG, 0),
    EarthlyBranch("丑", "Chou", "Ox", "牛", Element.EARTH, Polarity.YIN, 1),
    EarthlyBranch("寅", "Yin", "Tiger", "虎", Element.WOOD, Polarity.YANG, 2),
    EarthlyBranch("卯", "Mao", "Rabbit", "兔", Element.WOOD, Polarity.YIN, 3),
    EarthlyBranch("辰", "Chen", "Dragon", "龙", Element.EARTH, Polarity.YANG, 4),
    EarthlyBranch("巳", "Si", "Snake", "蛇", Element.FIRE, Polarity.YIN, 5),
    EarthlyBranch("午", "Wu", "Horse", "马", Element.FIRE, Polarity.YANG, 6),
    EarthlyBranch("未", "Wei", "Goat", "羊", Element.EARTH, Polarity.YIN, 7),
    EarthlyBranch("申", "Shen", "Monkey", "猴", Element.METAL, Polarity.YANG, 8),
    EarthlyBranch("酉", "You", "Rooster", "鸡", Element.METAL, Polarity.YIN, 9),
    EarthlyBranch("戌", "Xu", "Dog", "狗", Element.EARTH, Polarity.YANG, 10),
    EarthlyBranch("亥", "Hai", "Pig", "猪", Element.WATER, Polarity.YIN, 11),
]


def stem(index: int) -> HeavenlyStem:
    return table_lookup(HEAVENLY_STEMS, index, "HEAVENLY_STEMS")


def branch(index: int) -> EarthlyBranch:
    return table_lookup(EARTHLY_BRANCHES, index, "EARTHLY_BRANCHES")


@dataclass(frozen=True)
class StemBranch:
    stem_index: int
    branch_index: int

    @property
    def stem(self) -> HeavenlyStem:
        return stem(self.stem_index)

    @property
    def branch(self) -> EarthlyBranch:
        return branch(self.branch_index)

    @property
    def zodiac(self) -> str:
        return self.branch.zodiac

    @property
    def chinese(self) -> str:
        return self.stem.chinese + self.branch.chinese

    def __str__(self):
        return f"{self.chinese} ({self.stem.pinyin} {self.branch.pinyin}, {self.branch.animal})"

    def to_dict(self):
        return {
            "stem_index": self.stem_index,
            "branch_index": self.branch_index,
            "stem": self.stem.chinese,
            "branch": self.branch.chinese,
            "combined": self.chinese,
            "zodiac": self.zodiac,
            "animal": self.branch.animal,
            "polarity": self.stem.polarity.value,
            "element": self.stem.element.value,
        }


# ============================================================
# YEAR AND PALACE STEMS
# ============================================================

def year_stem_branch(year: int) -> StemBranch:
    """
    Stem and branch of a lunar year.

    Year 4 CE was 甲子, the start of the sexagenary cycle.
    1990 → 庚午 (stem 6, branch 6).
    """
    return StemBranch((year - 4) % 10, (year - 4) % 12)


def zodiac_animal(year: int) -> str:
    return year_stem_branch(year).zodiac


# Five Tigers Escape: stem of the 寅 palace by year stem group
#   甲/己 → 丙寅, 乙/庚 → 戊寅, 丙/辛 → 庚寅, 丁/壬 → 壬寅, 戊/癸 → 甲寅
TIGER_START_STEMS = [2, 4, 6, 8, 0]


def palace_stem_index(year_stem_index: int, branch_index: int) -> int:
    """
    Heavenly stem of the palace sitting on a given branch.

    Stems run forward from the 寅 palace; 子 and 丑 close the cycle
    and take the stems after 亥.
    """
    start = table_lookup(TIGER_START_STEMS, year_stem_index % 5, "TIGER_START_STEMS")
    return (start + (branch_index - 2) % 12) % 10


# ============================================================
# FIVE-ELEMENTS BUREAU
# ============================================================
#
# Rows: year stem group (stem % 5): 甲己, 乙庚, 丙辛, 丁壬, 戊癸
# Columns: life palace branch pair (branch // 2): 子丑, 寅卯, 辰巳, 午未, 申酉, 戌亥
# Derived from the Nayin element of the life palace's stem-branch.

_W, _WD, _M, _E, _F = (FiveElementsBureau.WATER, FiveElementsBureau.WOOD,
                       FiveElementsBureau.METAL, FiveElementsBureau.EARTH,
                       FiveElementsBureau.FIRE)

BUREAU_TABLE = [
    [_W, _F, _WD, _E, _M, _F],
    [_F, _E, _M, _WD, _W, _E],
    [_E, _WD, _W, _M, _F, _WD],
    [_WD, _M, _F, _W, _E, _M],
    [_M, _W, _E, _F, _WD, _W],
]


def resolve_bureau(year_stem_index: int, life_branch_index: int) -> FiveElementsBureau:
    """
    Five-Elements Bureau for a chart.

    Args:
        year_stem_index: natal year stem (0-9)
        life_branch_index: branch of the life palace (0-11)

    Raises:
        InternalInvariantViolation: either index outside its cycle
    """
    if not 0 <= year_stem_index < 10:
        raise InternalInvariantViolation(f"Year stem index {year_stem_index} outside [0, 9]")
    if not 0 <= life_branch_index < 12:
        raise InternalInvariantViolation(f"Life branch index {life_branch_index} outside [0, 11]")
    row = table_lookup(BUREAU_TABLE, year_stem_index % 5, "BUREAU_TABLE")
    bureau = table_lookup(row, life_branch_index // 2, "BUREAU_TABLE row")
    logger.debug("bureau for stem %d, life branch %d: %s",
                 year_stem_index, life_branch_index, bureau.chinese)
    return bureau


# ============================================================
# HOURS, GENDER, POLARITY
# ============================================================

def hour_branch_for_hour(hour: int) -> int:
    """
    Map a 24h clock hour to its two-hour branch (时辰).

    23:00-00:59 = 子 (0), 01:00-02:59 = 丑 (1), ... 21:00-22:59 = 亥 (11)
    Use local mean time, not zone clock time, for accurate charts.
    """
    if not 0 <= hour <= 23:
        raise InvalidBirthData(f"Hour must be 0-23, got {hour}")
    if hour == 23 or hour == 0:
        return 0
    return ((hour + 1) // 2) % 12


def parse_gender(gender) -> Gender:
    if isinstance(gender, Gender):
        return gender
    try:
        return Gender(str(gender).strip().lower())
    except ValueError as exc:
        raise InvalidBirthData(f"Gender must be 'male' or 'female', got {gender!r}") from exc


def is_yang(stem_index: int) -> bool:
    """Even stems (甲丙戊庚壬) are yang."""
    return stem(stem_index).polarity is Polarity.YANG


def yin_yang_label(stem_index: int, gender) -> str:
    """阳男 / 阴男 / 阳女 / 阴女"""
    polarity = "阳" if is_yang(stem_index) else "阴"
    sex = "男" if parse_gender(gender) is Gender.MALE else "女"
    return polarity + sex


if __name__ == "__main__":
    year = year_stem_branch(1990)
    print(f"1990: {year}")
    for b in EARTHLY_BRANCHES:
        s = stem(palace_stem_index(year.stem_index, b.index))
        print(f"  {s.chinese}{b.chinese}  bureau if life palace: "
              f"{resolve_bureau(year.stem_index, b.index).chinese}")
