"""
Brew Day - Fermentables

Grains, sugars and extracts: gravity contribution, price, and the
classification deciding whether a fermentable is mashed, steeped or
boiled.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from brewday.core.units import convert
from brewday.services.utils import yield_to_ppg


class FermentableType:
    GRAIN = "Grain"
    SUGAR = "Sugar"
    LIQUID_EXTRACT = "Extract"
    DRY_EXTRACT = "Dry Extract"
    ADJUNCT = "Adjunct"


class RecipeType:
    EXTRACT = "Extract"
    PARTIAL_MASH = "Partial Mash"
    ALL_GRAIN = "All Grain"


class FermentableUse(str, Enum):
    MASH = "mash"
    STEEP = "steep"
    BOIL = "boil"
    BOIL_END = "boilEnd"


@dataclass(frozen=True)
class Fermentable:
    name: str = ""
    type: str = FermentableType.GRAIN
    yield_: float = 75.0  # % extractable sugar
    weight: float = 1.0  # kg
    color: float = 2.0  # SRM
    late: bool = False  # added at the end of the boil


def create_default_fermentable(**overrides) -> Fermentable:
    return Fermentable(**overrides)


STEEP_PATTERN = re.compile(r"biscuit|black|cara|chocolate|crystal|munich|roast|special ?b|toast|victory|vienna", re.I)
BOIL_PATTERN = re.compile(r"candi|candy|dme|dry|extract|honey|lme|liquid|sugar|syrup|turbinado", re.I)

# Evaluated top to bottom, first match wins. Anything unmatched is mashed.
FERMENTABLE_USE_RULES = (
    (re.compile(r"mash", re.I), FermentableUse.MASH),
    (re.compile(r"steep", re.I), FermentableUse.STEEP),
    (re.compile(r"boil", re.I), FermentableUse.BOIL),
    (BOIL_PATTERN, FermentableUse.BOIL),
    (STEEP_PATTERN, FermentableUse.STEEP),
)

# (name pattern, price per kg); unmatched names are priced as grain
FERMENTABLE_PRICE_RULES = (
    (re.compile(r"dry|dme", re.I), 8.8),
    (re.compile(r"liquid|lme", re.I), 6.6),
)
DEFAULT_PRICE_PER_KG = 4.4


def match_rules(name, rules, default):
    """Returns the result of the first (pattern, result) rule whose pattern matches name."""
    for pattern, result in rules:
        if pattern.search(name or ""):
            return result
    return default


def compute_fermentable_gu(fermentable: Fermentable, liters: float = 1.0) -> float:
    """Gravity units this fermentable gives a volume of wort, before efficiency."""
    if liters <= 0:
        return 0.0
    return yield_to_ppg(fermentable.yield_) * convert(fermentable.weight, "kg", "lb") / convert(liters, "l", "gal")


def compute_fermentable_price(fermentable: Fermentable) -> float:
    return fermentable.weight * match_rules(fermentable.name, FERMENTABLE_PRICE_RULES, DEFAULT_PRICE_PER_KG)


def compute_fermentable_use(fermentable: Fermentable, recipe_type: Optional[str] = None) -> FermentableUse:
    """
    Classifies a fermentable by name, then adjusts for the recipe type:
      - a mash fermentable in an extract recipe is boiled instead
      - a steep fermentable in a partial mash or all grain recipe is mashed
      - boiled fermentables flagged late are added at the end of the boil
    """
    use = match_rules(fermentable.name, FERMENTABLE_USE_RULES, FermentableUse.MASH)

    is_mash_in_extract_recipe = recipe_type == RecipeType.EXTRACT and use == FermentableUse.MASH
    if is_mash_in_extract_recipe or use == FermentableUse.BOIL:
        return FermentableUse.BOIL_END if fermentable.late else FermentableUse.BOIL

    if recipe_type in (RecipeType.PARTIAL_MASH, RecipeType.ALL_GRAIN) and use == FermentableUse.STEEP:
        return FermentableUse.MASH

    return use
