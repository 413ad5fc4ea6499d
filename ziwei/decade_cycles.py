"""
Decade cycles (大限 / 大运) and flow years (流年).

Handles:
- 12 ten-year cycles, one per palace, starting at the bureau number
- Direction by year stem polarity and gender
- Age → cycle lookup, calendar year → flow year palace
- Season and phase summary of the decade a person is in
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ziwei.chart import Chart, PALACE_ENGLISH, normalize_palace_name
from ziwei.stem_branch import FiveElementsBureau, Gender, is_yang

logger = logging.getLogger(__name__)

CYCLE_COUNT = 12
CYCLE_LENGTH = 10

# Flow year palace advances one branch per year from a 子 year
FLOW_YEAR_ANCHOR_YEAR = 2020  # 庚子
FLOW_YEAR_ANCHOR_PALACE = 0


@dataclass(frozen=True)
class DecadeCycle:
    number: int  # 1-12
    palace_index: int
    palace_name: str
    stem: str
    branch: str
    age_start: int
    age_end: int

    def contains(self, age: int) -> bool:
        return self.age_start <= age <= self.age_end

    def __str__(self):
        return f"大限{self.number}: {self.stem}{self.branch} {self.palace_name} ages {self.age_start}-{self.age_end}"

    def to_dict(self):
        return {
            "number": self.number,
            "palace_index": self.palace_index,
            "palace_name": self.palace_name,
            "palace_english": PALACE_ENGLISH[self.palace_name],
            "stem": self.stem,
            "branch": self.branch,
            "age_start": self.age_start,
            "age_end": self.age_end,
            "description": str(self),
        }


def decade_start_age(bureau: FiveElementsBureau) -> int:
    """First decade starts at the bureau number (水二局 → age 2)."""
    return int(bureau)


def is_forward(year_stem_index: int, gender: Gender) -> bool:
    """
    Direction of the decade count.
    - Yang year + male OR yin year + female → forward (branch order)
    - Yang year + female OR yin year + male → backward
    """
    return is_yang(year_stem_index) == (gender is Gender.MALE)


def compute_decade_cycles(chart: Chart) -> tuple[DecadeCycle, ...]:
    """
    The 12 decade cycles, starting from the life palace.

    Ages are nominal (虚岁) and partition [start, start + 119] without gaps.
    """
    start = decade_start_age(chart.bureau)
    step = 1 if is_forward(chart.year.stem_index, chart.gender) else -1

    cycles = []
    for i in range(CYCLE_COUNT):
        palace = chart.palace((chart.life_palace_index + step * i) % 12)
        age_start = start + i * CYCLE_LENGTH
        cycles.append(DecadeCycle(
            number=i + 1,
            palace_index=palace.index,
            palace_name=palace.name,
            stem=palace.stem.chinese,
            branch=palace.branch.chinese,
            age_start=age_start,
            age_end=age_start + CYCLE_LENGTH - 1,
        ))
    return tuple(cycles)


def cycle_index_for_age(start_age: int, age: int) -> Optional[int]:
    """floor((age - start) / 10), or None before the first / after the last cycle."""
    if age < start_age:
        return None
    index = (age - start_age) // CYCLE_LENGTH
    return index if index < CYCLE_COUNT else None


def cycle_for_age(chart: Chart, age: int) -> Optional[DecadeCycle]:
    index = cycle_index_for_age(decade_start_age(chart.bureau), age)
    if index is None:
        return None
    return compute_decade_cycles(chart)[index]


def palace_for_age(chart: Chart, age: int) -> Optional[int]:
    cycle = cycle_for_age(chart, age)
    return cycle.palace_index if cycle else None


def flow_year_palace(current_year: int) -> int:
    """Palace index (branch) governing a calendar year; equals the year branch."""
    return (FLOW_YEAR_ANCHOR_PALACE + (current_year - FLOW_YEAR_ANCHOR_YEAR)) % 12


# Palace roles within a decade, counted like the natal names from the decade palace
DECADE_PALACE_TAGS = ["大命", "大兄", "大夫", "大子", "大财", "大疾",
                      "大迁", "大友", "大官", "大田", "大福", "大父"]


def decade_palace_tags(decade_palace_index: int) -> dict[int, str]:
    """Palace index → decade role (大命, 大兄, ...) while that decade runs."""
    if not 0 <= decade_palace_index < 12:
        raise ValueError(f"Decade palace index must be 0-11, got {decade_palace_index}")
    return {(decade_palace_index - i) % 12: tag for i, tag in enumerate(DECADE_PALACE_TAGS)}


def nominal_age(chart: Chart, current_year: int) -> int:
    """虚岁: 1 in the lunar birth year, +1 each year after."""
    return current_year - chart.lunar_date.year + 1


# ============================================================
# SEASONS AND PHASES
# ============================================================

PALACE_SEASONS = {
    "官禄宫": "spring", "迁移宫": "spring", "交友宫": "spring",
    "财帛宫": "summer", "田宅宫": "summer", "福德宫": "summer",
    "夫妻宫": "autumn", "兄弟宫": "autumn", "子女宫": "autumn", "父母宫": "autumn",
    "命宫": "winter", "疾厄宫": "winter",
}

SEASON_TITLES = {
    "spring": "Expand, Grow, Move",
    "summer": "Activate, Leverage, Monetize",
    "autumn": "Cut, Secure, Protect",
    "winter": "Reskill, Prepare, Rebuild",
}

SEASON_MESSAGES = {
    "spring": "Doors open more easily in this decade. Launch, expand and move while "
              "the wind is behind you.",
    "summer": "A harvest decade. Put what you already have to work and collect on "
              "the effort of earlier years.",
    "autumn": "A decade for protecting what you have built. Trim commitments, repair "
              "weak spots and strengthen the foundation.",
    "winter": "A quiet rebuilding decade. Learn, rest and prepare so you are ready "
              "when the next season turns.",
}


def season_for_palace(palace_name: str) -> str:
    return PALACE_SEASONS[normalize_palace_name(palace_name)]


def cycle_phase(year_in_cycle: int) -> str:
    """
    Phase within a decade.
    Years 1-3 building, 4-6 peak, 7-10 integration.
    """
    if not 1 <= year_in_cycle <= CYCLE_LENGTH:
        raise ValueError(f"Year in cycle must be 1-{CYCLE_LENGTH}, got {year_in_cycle}")
    if year_in_cycle <= 3:
        return "building"
    if year_in_cycle <= 6:
        return "peak"
    return "integration"


@dataclass(frozen=True)
class DecadeSummary:
    cycle: DecadeCycle
    current_year: int
    age: int
    start_year: int
    end_year: int
    year_in_cycle: int
    phase: str
    season: str
    flow_year_palace_index: int
    previous_cycle: Optional[DecadeCycle]
    next_cycle: Optional[DecadeCycle]

    @property
    def season_title(self) -> str:
        return SEASON_TITLES[self.season]

    @property
    def message(self) -> str:
        return SEASON_MESSAGES[self.season]

    def to_dict(self):
        return {
            "cycle": self.cycle.to_dict(),
            "current_year": self.current_year,
            "age": self.age,
            "years": f"{self.start_year}-{self.end_year}",
            "year_in_cycle": self.year_in_cycle,
            "phase": self.phase,
            "season": self.season,
            "season_title": self.season_title,
            "message": self.message,
            "flow_year_palace_index": self.flow_year_palace_index,
            "previous_cycle": self.previous_cycle.to_dict() if self.previous_cycle else None,
            "next_cycle": self.next_cycle.to_dict() if self.next_cycle else None,
        }


def current_decade_summary(chart: Chart, current_year: int) -> Optional[DecadeSummary]:
    """
    Decade, phase and season for a calendar year.

    Returns None before the first decade starts or after the twelfth ends.
    """
    age = nominal_age(chart, current_year)
    start = decade_start_age(chart.bureau)
    index = cycle_index_for_age(start, age)
    if index is None:
        logger.debug("age %d outside decade cycles starting at %d", age, start)
        return None

    cycles = compute_decade_cycles(chart)
    cycle = cycles[index]
    start_year = chart.lunar_date.year + cycle.age_start - 1
    year_in_cycle = age - cycle.age_start + 1

    return DecadeSummary(
        cycle=cycle,
        current_year=current_year,
        age=age,
        start_year=start_year,
        end_year=start_year + CYCLE_LENGTH - 1,
        year_in_cycle=year_in_cycle,
        phase=cycle_phase(year_in_cycle),
        season=season_for_palace(cycle.palace_name),
        flow_year_palace_index=flow_year_palace(current_year),
        previous_cycle=cycles[index - 1] if index > 0 else None,
        next_cycle=cycles[index + 1] if index + 1 < CYCLE_COUNT else None,
    )
