"""
Decade cycle activations.

For a selected decade palace:
1. Take the palace's heavenly stem
2. Map it to its four transformations (化禄 化权 化科 化忌)
3. Find the palace holding each transformed star
4. Look up the meaning of that transformation landing in that palace

Meanings come from data/activation_meanings.json, keyed by
transformation label and simplified palace name.
"""

import json
import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

from ziwei.chart import Chart, Palace, normalize_palace_name
from ziwei.errors import LookupMiss
from ziwei.placement import TRANSFORMATION_KEYS, Transformation, transformations_for_stem

logger = logging.getLogger(__name__)

MEANINGS_PATH = Path(__file__).parent / "data" / "activation_meanings.json"

MAX_ACTIVATIONS = 4
MAX_TAKEAWAYS = 3
MIN_TAKEAWAY_LENGTH = 10

_TRADITIONAL_KEYS = {"祿": "禄", "權": "权"}

_SENTENCE_SPLIT = re.compile(r"[.!?]+")


@dataclass(frozen=True)
class ActivationResult:
    transformation: Transformation
    target_palace: Palace
    meaning_paragraphs: tuple[str, ...]
    key_takeaways: tuple[str, ...]

    @property
    def label(self) -> str:
        return self.transformation.label

    def to_dict(self):
        return {
            "activation": self.label,
            "star": self.transformation.star_name,
            "palace_index": self.target_palace.index,
            "palace": self.target_palace.name,
            "palace_english": self.target_palace.english_name,
            "paragraphs": list(self.meaning_paragraphs),
            "key_takeaways": list(self.key_takeaways),
        }


def normalize_transformation_key(key: str) -> str:
    """
    Reduce 化祿 / 祿 / 化禄 / 禄 (and the other three) to 禄 权 科 忌.

    Raises:
        KeyError: not a transformation
    """
    cleaned = key.strip()
    if cleaned.startswith("化"):
        cleaned = cleaned[1:]
    cleaned = _TRADITIONAL_KEYS.get(cleaned, cleaned)
    if cleaned not in TRANSFORMATION_KEYS:
        raise KeyError(f"Unknown transformation: {key}")
    return cleaned


def _freeze(value):
    if isinstance(value, dict):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


@lru_cache(maxsize=None)
def load_meanings(path: Path = MEANINGS_PATH) -> Mapping:
    """Load the activation knowledge base (cached per path, read-only)."""
    with open(path, encoding="utf-8") as f:
        meanings = _freeze(json.load(f))
    logger.debug("loaded %d activation meaning groups from %s", len(meanings), path)
    return meanings


def meaning_for(key: str, palace_name: str,
                meanings: Optional[Mapping] = None) -> tuple[str, ...]:
    """
    Meaning paragraphs for a transformation landing in a palace.

    Args:
        key: transformation (禄, 化禄, 化祿, ...)
        palace_name: palace name, simplified or traditional
        meanings: knowledge base override; defaults to the bundled JSON

    Raises:
        LookupMiss: no paragraphs for this pair
    """
    if meanings is None:
        meanings = load_meanings()
    label = f"化{normalize_transformation_key(key)}"
    palace = normalize_palace_name(palace_name)

    entry = meanings.get(label, {}).get(palace)
    paragraphs = tuple(entry.get("paragraphs", ())) if entry else ()
    if not paragraphs:
        raise LookupMiss(f"No meaning for {label} in {palace}")
    return paragraphs


def key_takeaways(paragraphs) -> tuple[str, ...]:
    """
    Short takeaways: sentences of the second paragraph longer than
    10 characters, at most three.
    """
    if len(paragraphs) < 2:
        return ()
    sentences = (s.strip() for s in _SENTENCE_SPLIT.split(paragraphs[1]))
    return tuple(s for s in sentences if len(s) > MIN_TAKEAWAY_LENGTH)[:MAX_TAKEAWAYS]


def get_cycle_activations(chart: Chart, decade_palace_index: int,
                          meanings: Optional[Mapping] = None) -> tuple[ActivationResult, ...]:
    """
    Resolve the four transformations of a decade palace's stem.

    Args:
        chart: natal chart
        decade_palace_index: palace index (0-11) of the selected decade
        meanings: knowledge base override; defaults to the bundled JSON

    Returns:
        Up to four ActivationResult in 禄 权 科 忌 order. Transformations
        whose star is missing or whose meaning is absent are left out.
    """
    if not 0 <= decade_palace_index < 12:
        raise ValueError(f"Decade palace index must be 0-11, got {decade_palace_index}")

    palace = chart.palace(decade_palace_index)
    results = []
    for transformation in transformations_for_stem(palace.stem.index):
        target = chart.find_star(transformation.star_name)
        if target is None:
            logger.debug("%s not in chart, skipping %s", transformation.star_name, transformation.label)
            continue
        try:
            paragraphs = meaning_for(transformation.key, target.name, meanings)
        except LookupMiss as exc:
            logger.debug("omitting %s: %s", transformation, exc)
            continue
        results.append(ActivationResult(
            transformation=transformation,
            target_palace=target,
            meaning_paragraphs=paragraphs,
            key_takeaways=key_takeaways(paragraphs),
        ))

    return tuple(results[:MAX_ACTIVATIONS])
