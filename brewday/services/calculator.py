"""
Brew Day - Recipe Calculator

Derives gravity, color, alcohol, calories, bitterness, priming and keg
carbonation from a recipe, and groups its ingredients into the timeline
map used to write brew-day instructions.
"""

import logging
import math
from dataclasses import replace
from typing import Dict, List, Optional

from brewday.core.constants import BrewConstants, DEFAULT_CONSTANTS
from brewday.core.decorators import IbuMethodError, RecipeFormatError
from brewday.core.units import convert
from brewday.services.fermentable import (
    FermentableUse, compute_fermentable_gu, compute_fermentable_price, compute_fermentable_use,
)
from brewday.services.recipe import (
    Recipe, TimelineFermentable, TimelineFermentables, TimelineMap, TimelineSpice,
    compute_recipe_carbonation,
)
from brewday.services.spice import (
    IBU_METHODS, compute_is_spice_bittering, compute_is_spice_dry, compute_spice_bitterness,
    compute_spice_price, compute_spice_utilization_factor,
)
from brewday.services.utils import gravity_to_plato
from brewday.services.yeast import compute_yeast_price

logger = logging.getLogger(__name__)

# Priming sugars relative to corn sugar (dextrose)
PRIMING_SUGAR_FACTORS = {
    "corn_sugar": 1.0,
    "sugar": 0.90995,
    "honey": 1.22496,
    "dme": 1.33249,
}


def _time_key(time):
    """Addition times are keyed as ints when whole, so 60 and 60.0 share a key."""
    time = float(time or 0)
    return int(time) if time.is_integer() else time


def _compute_efficiency(use: FermentableUse, recipe: Recipe) -> float:
    if use == FermentableUse.STEEP:
        return recipe.steep_efficiency / 100.0
    if use == FermentableUse.MASH:
        return recipe.mash_efficiency / 100.0
    return 1.0


# ============================================
# CARBONATION CALCULATOR
# ============================================

def calculate_keg_pressure(temp_c: float, target_volumes_co2: float) -> float:
    """
    PSI needed to force carbonate at a temperature.

    Polynomial fit of CO2 solubility, T in Fahrenheit and V in volumes CO2:
    PSI = -16.6999 - 0.0101059*T + 0.00116512*T² + 0.173354*T*V + 4.24267*V - 0.0684226*V²
    """
    t = convert(temp_c, "C", "F")
    v = target_volumes_co2

    psi = (
        -16.6999
        - (0.0101059 * t)
        + (0.00116512 * t * t)
        + (0.173354 * t * v)
        + (4.24267 * v)
        - (0.0684226 * v * v)
    )
    return max(0, psi)


# ============================================
# PRIMING SUGAR CALCULATOR (BOTTLE CONDITIONING)
# ============================================

def calculate_priming_sugars(temp_c: float, target_volumes_co2: float,
                             batch_size: Optional[float] = None) -> Dict[str, float]:
    """
    Priming sugar (kg) for bottle conditioning.

    Args:
        temp_c: Beer temperature at bottling; warmer beer holds less residual CO2
        target_volumes_co2: Target carbonation level
        batch_size: Liters of beer to prime; the amounts are per 5 US gallons when not given

    Returns:
        dict of kg per sugar type, keyed as PRIMING_SUGAR_FACTORS
    """
    t = convert(temp_c, "C", "F")
    v = target_volumes_co2
    corn_sugar = 0.015195 * 5 * (v - 3.0378 + 0.050062 * t - 0.00026555 * t * t)
    if batch_size is not None:
        corn_sugar *= convert(batch_size, "l", "gal") / 5

    return {name: corn_sugar * factor for name, factor in PRIMING_SUGAR_FACTORS.items()}


# ============================================
# RECIPE CALCULATION
# ============================================

def calculate_recipe(recipe: Recipe, constants: Optional[BrewConstants] = None) -> Recipe:
    """
    Returns a copy of recipe with every derived value and the timeline map filled in.

    Derived values on the input are ignored and recomputed. The input is not modified.

    Raises:
        IbuMethodError: if recipe.ibu_method is not 'tinseth' or 'rager'
    """
    constants = constants or DEFAULT_CONSTANTS
    if recipe.ibu_method not in IBU_METHODS:
        raise IbuMethodError(recipe.ibu_method)

    og = 1.0
    early_og = 1.0
    mcu = 0.0
    price = 0.0
    buckets: Dict[FermentableUse, List[TimelineFermentable]] = {use: [] for use in FermentableUse}

    batch_gal = convert(recipe.batch_size, "l", "gal")

    # Gravities and color from fermentables
    for fermentable in recipe.fermentables:
        use = compute_fermentable_use(fermentable, recipe.type)
        efficiency = _compute_efficiency(use, recipe)

        if batch_gal > 0:
            mcu += fermentable.color * convert(fermentable.weight, "kg", "lb") / batch_gal

        gu = compute_fermentable_gu(fermentable, recipe.batch_size) * efficiency
        og += gu / 1000.0

        # Bitterness depends on the gravity at boil volume before late additions
        if not fermentable.late:
            early_og += compute_fermentable_gu(fermentable, recipe.boil_size) * efficiency / 1000.0

        price += compute_fermentable_price(fermentable)
        buckets[use].append(TimelineFermentable(fermentable=fermentable, gravity=gu))

    color = 1.4922 * (mcu ** 0.6859)

    # Final gravity uses the most attenuative yeast
    attenuation = max((y.attenuation or 0 for y in recipe.yeast), default=0.0)
    price += sum(compute_yeast_price(y) for y in recipe.yeast)

    fg = og - ((og - 1.0) * attenuation) / 100.0
    abv = ((1.05 * (og - fg)) / fg / 0.79) * 100.0

    og_plato = gravity_to_plato(og)
    fg_plato = gravity_to_plato(fg)
    real_extract = 0.1808 * og_plato + 0.8192 * fg_plato
    abw = (0.79 * abv) / fg
    calories = max(0, (6.9 * abw + 4.0 * (real_extract - 0.1)) * fg * recipe.serving_size * 10)

    # Bottle / keg carbonation
    carbonation = compute_recipe_carbonation(recipe)
    priming = calculate_priming_sugars(recipe.bottling_temp or constants.room_temp, carbonation, recipe.batch_size)
    keg_pressure = calculate_keg_pressure(constants.keg_temp, carbonation)

    # Bitterness and spice timings
    ibu = 0.0
    times: Dict[float, List[TimelineSpice]] = {}
    dry_spice: Dict[float, List[TimelineSpice]] = {}
    for spice in recipe.spices:
        price += compute_spice_price(spice)
        key = _time_key(spice.time)

        if compute_is_spice_dry(spice):
            dry_spice.setdefault(key, []).append(TimelineSpice(spice=spice, bitterness=0.0))
            continue

        bitterness = 0.0
        if compute_is_spice_bittering(spice):
            bitterness = compute_spice_bitterness(spice, recipe.ibu_method, early_og, recipe.batch_size)
            ibu += bitterness
        times.setdefault(key, []).append(TimelineSpice(spice=spice, bitterness=bitterness))

    gravity_points = (og - 1.0) * 1000.0
    bu_to_gu = ibu / gravity_points if gravity_points else 0.0

    # http://klugscheisserbrauerei.wordpress.com/beer-balance/
    rte = (0.82 * (fg - 1.0) + 0.18 * (og - 1.0)) * 1000.0
    bv = (0.8 * ibu) / rte if rte else 0.0

    timeline_map = TimelineMap(
        fermentables=TimelineFermentables(
            mash=tuple(buckets[FermentableUse.MASH]),
            steep=tuple(buckets[FermentableUse.STEEP]),
            boil=tuple(buckets[FermentableUse.BOIL]),
            boil_end=tuple(buckets[FermentableUse.BOIL_END]),
        ),
        times={k: tuple(v) for k, v in times.items()},
        dry_spice={k: tuple(v) for k, v in dry_spice.items()},
        yeast=tuple(recipe.yeast),
    )

    logger.debug(f"Calculated '{recipe.name}': OG {og:.4f} FG {fg:.4f} IBU {ibu:.1f} ABV {abv:.1f}%")

    return replace(
        recipe,
        og=og, fg=fg, color=color, ibu=ibu, abv=abv, price=price,
        bu_to_gu=bu_to_gu, bv=bv,
        og_plato=og_plato, fg_plato=fg_plato, abw=abw, real_extract=real_extract, calories=calories,
        carbonation=carbonation,
        priming_corn_sugar=priming["corn_sugar"], priming_sugar=priming["sugar"],
        priming_honey=priming["honey"], priming_dme=priming["dme"],
        keg_pressure=keg_pressure, keg_temp=constants.keg_temp,
        timeline_map=timeline_map,
    )


# ============================================
# RECIPE SCALING
# ============================================

def _compute_early_og(recipe: Recipe, fermentables, boil_size: float) -> float:
    early_og = 1.0
    for fermentable in fermentables:
        if fermentable.late:
            continue
        efficiency = _compute_efficiency(compute_fermentable_use(fermentable, recipe.type), recipe)
        early_og += compute_fermentable_gu(fermentable, boil_size) * efficiency / 1000.0
    return early_og


def scale_recipe(recipe: Recipe, new_batch_size: float, new_boil_size: float) -> Recipe:
    """
    Scales a recipe to a new batch and boil size, keeping gravity and bitterness the same.

    Fermentables scale linearly. Bittering hops are re-solved with the recipe's IBU
    formula because utilization changes with boil gravity; other spices scale linearly.
    The result is not calculated.
    """
    if recipe.ibu_method not in IBU_METHODS:
        raise IbuMethodError(recipe.ibu_method)
    if recipe.batch_size <= 0 or new_batch_size <= 0 or new_boil_size <= 0:
        raise RecipeFormatError("Batch and boil sizes must be positive to scale a recipe")

    ratio = new_batch_size / recipe.batch_size

    early_og = _compute_early_og(recipe, recipe.fermentables, recipe.boil_size)
    fermentables = tuple(replace(f, weight=f.weight * ratio) for f in recipe.fermentables)
    new_early_og = _compute_early_og(recipe, fermentables, new_boil_size)

    spices = []
    for spice in recipe.spices:
        if not (compute_is_spice_bittering(spice) and spice.time):
            spices.append(replace(spice, weight=spice.weight * ratio))
            continue

        bitterness = compute_spice_bitterness(spice, recipe.ibu_method, early_og, recipe.batch_size)
        factor = compute_spice_utilization_factor(spice)

        if recipe.ibu_method == "tinseth":
            per_kg = (
                1.65 * (0.000125 ** (new_early_og - 1.0))
                * ((1 - math.exp(-0.04 * spice.time)) / 4.15)
                * ((spice.aa / 100) * 1_000_000)
                * factor
            )
            weight = bitterness * new_batch_size / per_kg
        else:
            utilization = 18.11 + 13.86 * math.tanh((spice.time - 31.32) / 18.27)
            adjustment = max(0, (new_early_og - 1.05) / 0.2)
            weight = bitterness / ((100 * utilization * factor * spice.aa) / (new_batch_size * (1 + adjustment)))

        spices.append(replace(spice, weight=weight))

    logger.info(f"Scaled '{recipe.name}' from {recipe.batch_size}l to {new_batch_size}l")

    return replace(
        recipe,
        fermentables=fermentables,
        spices=tuple(spices),
        batch_size=new_batch_size,
        boil_size=new_boil_size,
    )
