"""
Brew Day - Recipe Model

The recipe aggregate: ingredient lists, process parameters and the
derived values written by calculate_recipe. Also holds the timeline map
types that link the calculator to the timeline generator.
"""

import json
import math
import re
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Dict, Optional, Tuple

from brewday.core.decorators import RecipeFormatError
from brewday.services.fermentable import Fermentable, FermentableType
from brewday.services.mash import Mash, MashStep
from brewday.services.spice import Spice
from brewday.services.style import Style
from brewday.services.yeast import Yeast

LOW_CARBONATION_PATTERN = re.compile(r"stout|porter", re.I)
HIGH_CARBONATION_PATTERN = re.compile(r"lambic|wheat", re.I)


@dataclass(frozen=True)
class TimelineFermentable:
    fermentable: Fermentable
    gravity: float  # gravity units


@dataclass(frozen=True)
class TimelineSpice:
    spice: Spice
    bitterness: float  # IBU


@dataclass(frozen=True)
class TimelineFermentables:
    mash: Tuple[TimelineFermentable, ...] = ()
    steep: Tuple[TimelineFermentable, ...] = ()
    boil: Tuple[TimelineFermentable, ...] = ()
    boil_end: Tuple[TimelineFermentable, ...] = ()


@dataclass(frozen=True)
class TimelineMap:
    """Ingredients grouped by when they are used, in recipe order within each group."""
    fermentables: TimelineFermentables = field(default_factory=TimelineFermentables)
    times: Dict[float, Tuple[TimelineSpice, ...]] = field(default_factory=dict)  # boil minute
    dry_spice: Dict[float, Tuple[TimelineSpice, ...]] = field(default_factory=dict)  # days
    yeast: Tuple[Yeast, ...] = ()


@dataclass(frozen=True)
class Recipe:
    name: str = "New Recipe"
    description: str = "Recipe description"
    author: str = "Anonymous Brewer"
    type: Optional[str] = None  # Extract, Partial Mash, All Grain

    boil_size: float = 10.0  # liters
    batch_size: float = 20.0  # liters
    serving_size: float = 0.355  # liters

    steep_efficiency: float = 50  # %
    steep_time: float = 20  # minutes
    mash_efficiency: float = 75  # %

    style: Optional[Style] = None
    ibu_method: str = "tinseth"

    fermentables: Tuple[Fermentable, ...] = ()
    spices: Tuple[Spice, ...] = ()
    yeast: Tuple[Yeast, ...] = ()
    mash: Optional[Mash] = None

    bottling_temp: float = 0.0  # °C, room temperature when unset
    bottling_pressure: float = 0.0  # volumes of CO2, style default when unset

    primary_days: float = 14.0
    primary_temp: float = 20.0
    secondary_days: float = 0.0
    secondary_temp: float = 0.0
    tertiary_days: float = 0.0
    tertiary_temp: float = 0.0
    aging_days: float = 14
    aging_temp: float = 20.0

    # --- Derived by calculate_recipe ---
    og: float = 0.0
    fg: float = 0.0
    color: float = 0.0
    ibu: float = 0.0
    abv: float = 0.0
    price: float = 0.0

    bu_to_gu: float = 0.0  # bitterness to gravity ratio
    bv: float = 0.0  # balance value

    og_plato: float = 0.0
    fg_plato: float = 0.0
    abw: float = 0.0
    real_extract: float = 0.0
    calories: float = 0.0

    carbonation: float = 0.0  # target volumes of CO2
    priming_corn_sugar: float = 0.0  # kg
    priming_sugar: float = 0.0
    priming_honey: float = 0.0
    priming_dme: float = 0.0

    keg_pressure: float = 0.0  # psi
    keg_temp: float = 0.0  # °C

    timeline_map: Optional[TimelineMap] = None


DERIVED_FIELDS = (
    "og", "fg", "color", "ibu", "abv", "price", "bu_to_gu", "bv", "og_plato", "fg_plato",
    "abw", "real_extract", "calories", "carbonation", "priming_corn_sugar", "priming_sugar",
    "priming_honey", "priming_dme", "keg_pressure", "keg_temp", "timeline_map",
)

INPUT_FIELDS = tuple(f.name for f in fields(Recipe) if f.name not in DERIVED_FIELDS)


def create_recipe(**overrides) -> Recipe:
    """Default recipe with any passed values overriding the defaults."""
    for key in ("fermentables", "spices", "yeast"):
        if key in overrides:
            overrides[key] = tuple(overrides[key] or ())
    if overrides.get("mash") is not None:
        overrides["mash"] = replace(overrides["mash"], steps=tuple(overrides["mash"].steps))
    return Recipe(**overrides)


def add_to_recipe(recipe: Recipe, kind: str, item) -> Recipe:
    """Returns a copy of recipe with a fermentable, spice, hop or yeast appended."""
    if kind == "fermentable":
        return replace(recipe, fermentables=recipe.fermentables + (item,))
    if kind in ("spice", "hop"):
        return replace(recipe, spices=recipe.spices + (item,))
    if kind == "yeast":
        return replace(recipe, yeast=recipe.yeast + (item,))
    raise RecipeFormatError(f"Cannot add '{kind}' to a recipe")


def compute_recipe_grain_weight(recipe: Recipe) -> float:
    """Total kg of grain type fermentables."""
    return sum(f.weight for f in recipe.fermentables if (f.type or "").lower() == FermentableType.GRAIN.lower())


def compute_recipe_servings(recipe: Recipe) -> int:
    if recipe.serving_size <= 0:
        return 0
    return math.floor(recipe.batch_size / recipe.serving_size)


def compute_recipe_carbonation(recipe: Recipe) -> float:
    """Target volumes of CO2: the bottling pressure if set, else a guess from the name."""
    if recipe.bottling_pressure:
        return recipe.bottling_pressure

    names = " ".join(n for n in (recipe.name, recipe.style.name if recipe.style else "") if n)
    if LOW_CARBONATION_PATTERN.search(names):
        return 1.85
    if HIGH_CARBONATION_PATTERN.search(names):
        return 3.3
    return 2.5


# ============================================
# SERIALIZATION
# ============================================

def _dict_factory(items):
    return {("yield" if k == "yield_" else k): v for k, v in items}


def recipe_to_dict(recipe: Recipe, include_derived: bool = True) -> Dict[str, Any]:
    data = asdict(recipe, dict_factory=_dict_factory)
    if not include_derived:
        data = {k: v for k, v in data.items() if k in INPUT_FIELDS}
    return data


def recipe_to_json(recipe: Recipe) -> str:
    """JSON of the values that are not recomputed by calculate_recipe."""
    return json.dumps(recipe_to_dict(recipe, include_derived=False), indent=2, ensure_ascii=False)


def _to_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _coerce_number(value):
    if value is None or isinstance(value, bool):
        raise TypeError("expected a number")
    return float(value)


def _coerce(f, value):
    """Converts value to the type of field f, raising TypeError or ValueError when it cannot."""
    default = f.default
    if isinstance(default, bool):
        return _to_bool(value)
    if isinstance(default, (int, float)) or (f.type == Optional[float] and value is not None):
        return _coerce_number(value)
    if isinstance(default, str) or (f.type == Optional[str] and value is not None):
        if not isinstance(value, str):
            raise TypeError("expected a string")
        return value
    if isinstance(default, tuple):
        # Style ranges: (min, max)
        if not isinstance(value, (list, tuple)) or len(value) != len(default):
            raise TypeError(f"expected a list of {len(default)} numbers")
        return tuple(_coerce_number(v) for v in value)
    return value


def _build(cls, data: Optional[Dict[str, Any]]):
    """Instantiates a record from a mapping, coercing values to each field's type."""
    if data is None:
        return None
    if not isinstance(data, dict):
        raise RecipeFormatError(f"Expected an object for {cls.__name__}, got {type(data).__name__}")

    data = {("yield_" if k == "yield" else k): v for k, v in data.items()}
    values = {}
    for f in fields(cls):
        if f.name not in data:
            continue
        try:
            values[f.name] = _coerce(f, data[f.name])
        except (TypeError, ValueError):
            raise RecipeFormatError(f"Invalid value for {cls.__name__}.{f.name}: {data[f.name]!r}")
    return cls(**values)


def _build_list(cls, items):
    if items is None:
        return ()
    if not isinstance(items, (list, tuple)):
        raise RecipeFormatError(f"Expected a list of {cls.__name__}")
    return tuple(_build(cls, item) for item in items)


def recipe_from_dict(data: Dict[str, Any]) -> Recipe:
    """Builds a recipe from its JSON form. Derived values in data are ignored."""
    if not isinstance(data, dict):
        raise RecipeFormatError("Recipe must be a JSON object")

    scalars = {k: v for k, v in data.items() if k in INPUT_FIELDS and k not in
               ("style", "fermentables", "spices", "yeast", "mash")}
    recipe = _build(Recipe, scalars)

    mash = None
    if data.get("mash") is not None:
        if not isinstance(data["mash"], dict):
            raise RecipeFormatError("Mash must be a JSON object")
        mash_data = dict(data["mash"])
        steps = _build_list(MashStep, mash_data.pop("steps", None))
        mash = replace(_build(Mash, mash_data), steps=steps)

    return replace(
        recipe,
        style=_build(Style, data.get("style")),
        fermentables=_build_list(Fermentable, data.get("fermentables")),
        spices=_build_list(Spice, data.get("spices")),
        yeast=_build_list(Yeast, data.get("yeast")),
        mash=mash,
    )
