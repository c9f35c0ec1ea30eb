"""
Brew Day - Recipe Timeline

Walks a calculated recipe through the brew day (mash, steep, top-up,
boil, chill, pitch) and on through fermentation, dry hopping and
packaging, producing timestamped instructions.

Each phase takes the current BrewState (elapsed minutes, liquid volume
in liters, temperature in °C) and returns a new one. Everything is
computed in metric; is_si_units only changes the instruction text.
"""

import logging
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Tuple

from brewday.core.constants import BrewConstants, DEFAULT_CONSTANTS
from brewday.services.calculator import calculate_recipe
from brewday.services.mash import MashStep, compute_mash_step_description, create_mash
from brewday.services.recipe import (
    Recipe, TimelineFermentable, TimelineSpice, compute_recipe_grain_weight, compute_recipe_servings,
)
from brewday.services.utils import (
    compute_display_duration, compute_spice_weight_string, compute_temp_string, compute_time_to_heat,
    compute_volume_string, compute_weight_string,
)

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 1440
BOILING_TEMP = 100.0
PSI_TO_BAR = 0.0689476


class Phase:
    MASH = "mash"
    STEEP = "steep"
    TOP_UP = "top-up"
    BOIL = "boil"
    CHILL = "chill"
    YEAST = "yeast"
    FERMENT = "ferment"
    DRY_HOP = "dry hop"
    BOTTLE = "bottle"
    AGING = "aging"
    KEG = "keg"
    DRINK = "drink"


@dataclass(frozen=True)
class TimelineStep:
    time: float  # minutes from the start of the brew day
    instructions: str
    phase: str
    duration: float = 0  # minutes until the next step


@dataclass(frozen=True)
class BrewState:
    time: float = 0
    volume: float = 0  # liters
    temp: float = DEFAULT_CONSTANTS.room_temp  # °C
    is_si_units: bool = True
    timeline: Tuple[TimelineStep, ...] = ()


def _emit(state: BrewState, instructions: str, phase: str) -> BrewState:
    step = TimelineStep(time=state.time, instructions=instructions, phase=phase)
    return replace(state, timeline=state.timeline + (step,))


def _advance(state: BrewState, minutes: float) -> BrewState:
    return replace(state, time=state.time + minutes)


def _days(days: float) -> str:
    return compute_display_duration(days * MINUTES_PER_DAY, 2)


def create_fermentable_ingredient_list(items: Iterable[TimelineFermentable], is_si_units: bool = True) -> List[str]:
    return [
        f"{compute_weight_string(item.fermentable.weight, is_si_units)} of {item.fermentable.name} "
        f"({item.gravity:.1f} GU)"
        for item in items
    ]


def create_spice_ingredient_list(items: Iterable[TimelineSpice], is_si_units: bool = True) -> List[str]:
    ingredients = []
    for item in items:
        ibu = f" ({item.bitterness:.1f} IBU)" if item.bitterness else ""
        ingredients.append(f"{compute_spice_weight_string(item.spice.weight, is_si_units)} of {item.spice.name}{ibu}")
    return ingredients


# ============================================
# BREW DAY
# ============================================

def _mash_step_volume_add(step: MashStep, grain_weight: float, strike_volume: float,
                          state: BrewState, constants: BrewConstants) -> BrewState:
    # Grain heat capacity is taken as a tenth of water's
    grain_heat = constants.specific_heat_of_water / 10 * grain_weight
    strike_temp = (step.temp - state.temp) * grain_heat / strike_volume + step.temp
    time_to_heat = compute_time_to_heat(strike_volume, strike_temp - state.temp, constants)

    volume_desc = compute_volume_string(strike_volume, state.is_si_units, small=True)
    temp_desc = compute_temp_string(strike_temp, state.is_si_units)

    state = _emit(state, f"Heat {volume_desc} of water to {temp_desc} and add it to the mash "
                         f"(about {time_to_heat} minutes).", Phase.MASH)
    return replace(state, time=state.time + time_to_heat, volume=state.volume + strike_volume)


def _mash_step_heat(step: MashStep, state: BrewState, constants: BrewConstants) -> BrewState:
    time_to_heat = compute_time_to_heat(state.volume, step.temp - state.temp, constants)
    temp_desc = compute_temp_string(step.temp, state.is_si_units)

    state = _emit(state, f"Heat the mash to {temp_desc} (about {time_to_heat} minutes).", Phase.MASH)
    return _advance(state, time_to_heat)


def compute_mash_phase(recipe: Recipe, state: BrewState, constants: BrewConstants) -> BrewState:
    grain_weight = compute_recipe_grain_weight(recipe)
    mash = create_mash(recipe.mash, grain_weight, state.temp, constants)
    if recipe.mash is None or not recipe.mash.steps:
        logger.info(f"'{recipe.name}' has no mash steps, using a single infusion at {mash.steps[0].temp}°C")

    ingredients = create_fermentable_ingredient_list(recipe.timeline_map.fermentables.mash, state.is_si_units)
    mash_name = f"{mash.name} mash" if mash.name else "the mash"
    state = _emit(state, f"Begin {mash_name}. Add {', '.join(ingredients)}.", Phase.MASH)

    for index, step in enumerate(mash.steps):
        strike_volume = step.water_ratio * grain_weight - state.volume

        if step.temp != state.temp and strike_volume > 0:
            state = _mash_step_volume_add(step, grain_weight, strike_volume, state, constants)
        elif step.temp != state.temp:
            state = _mash_step_heat(step, state, constants)

        description = compute_mash_step_description(step, index, state.is_si_units, grain_weight)
        state = _emit(state, f"{step.name}: {description}.", Phase.MASH)
        state = replace(
            state,
            time=state.time + step.time,
            temp=step.temp - (step.time * constants.mash_heat_loss) / 60.0,
        )

    state = _emit(state, "Remove grains from mash and drain the wort into your kettle.", Phase.MASH)
    state = _advance(state, constants.drain_minutes)

    if state.volume < recipe.boil_size:
        sparge_volume = min(constants.max_sparge_volume, recipe.boil_size - state.volume)
        volume_desc = compute_volume_string(sparge_volume, state.is_si_units, small=True)
        temp_desc = compute_temp_string(mash.sparge_temp, state.is_si_units)
        state = _emit(state, f"Sparge the grains with {volume_desc} of water at {temp_desc} "
                             f"(about {constants.sparge_minutes:g} minutes).", Phase.MASH)
        state = replace(state, time=state.time + constants.sparge_minutes, volume=state.volume + sparge_volume)

    return state


def _compute_steep_volume(steep_weight: float, constants: BrewConstants) -> float:
    """Liters of steeping water, widening the ratio toward the minimum volume for small amounts of grain."""
    volume = steep_weight * constants.steep_liters_per_kg
    # the widened ratio never goes past steep_max_liters_per_kg
    widened = min(steep_weight * constants.steep_max_liters_per_kg, constants.steep_min_volume)
    return max(volume, widened)


def compute_steep_phase(recipe: Recipe, state: BrewState, constants: BrewConstants) -> BrewState:
    steep = recipe.timeline_map.fermentables.steep
    steep_weight = sum(item.fermentable.weight for item in steep)
    steep_volume = _compute_steep_volume(steep_weight, constants)
    steep_heat_time = compute_time_to_heat(steep_volume, constants.steep_temp - state.temp, constants)

    volume_desc = compute_volume_string(steep_volume, state.is_si_units)
    temp_desc = compute_temp_string(constants.steep_temp, state.is_si_units)
    state = _emit(state, f"Heat {volume_desc} of water to {temp_desc} (about {steep_heat_time} minutes).", Phase.STEEP)
    state = replace(
        state,
        time=state.time + steep_heat_time,
        temp=constants.steep_temp,
        volume=state.volume + steep_volume,
    )

    ingredients = create_fermentable_ingredient_list(steep, state.is_si_units)
    state = _emit(state, f"Add {', '.join(ingredients)} to grain socks and steep for "
                         f"{recipe.steep_time:g} minutes.", Phase.STEEP)
    state = _advance(state, recipe.steep_time)

    return _emit(state, "Remove the grain socks and let them drain into the kettle.", Phase.STEEP)


def compute_top_up_phase(recipe: Recipe, state: BrewState, boil_name: str, constants: BrewConstants) -> BrewState:
    # Water added to reach the boil size starts at room temperature
    ratio = min(1, state.volume / recipe.boil_size) if recipe.boil_size > 0 else 1
    temp = state.temp * ratio + constants.room_temp * (1.0 - ratio)

    boil_volume = compute_volume_string(recipe.boil_size, state.is_si_units)
    remaining = recipe.boil_size - state.volume

    if state.volume <= 0:
        action = f"Bring {boil_volume} of water to a rolling boil"
    elif remaining > 0:
        water = compute_volume_string(remaining, state.is_si_units)
        action = f"Top up the {boil_name} with {water} of water to {boil_volume} and heat to a rolling boil"
    else:
        action = f"Heat the {boil_name} to a rolling boil"

    volume = max(state.volume, recipe.boil_size)
    boil_time = compute_time_to_heat(volume, BOILING_TEMP - temp, constants)
    state = _emit(replace(state, temp=temp), f"{action} (about {boil_time} minutes).", Phase.TOP_UP)

    return replace(state, time=state.time + boil_time, volume=volume, temp=BOILING_TEMP)


def compute_boil_phase(recipe: Recipe, state: BrewState, constants: BrewConstants) -> BrewState:
    """
    One instruction per addition time, longest boil first. Non-late boil
    fermentables go in with the first addition and late ones at 5 minutes.
    """
    timeline_map = recipe.timeline_map
    boil = timeline_map.fermentables.boil
    boil_end = timeline_map.fermentables.boil_end

    times = set(timeline_map.times)
    if boil_end and 5 not in times:
        times.add(5)
    if boil and not times:
        times.add(constants.default_boil_time)

    ordered = sorted(times, reverse=True)
    previous = ordered[0] if ordered else 0

    for index, time in enumerate(ordered):
        ingredients = create_spice_ingredient_list(timeline_map.times.get(time, ()), state.is_si_units)

        if index == 0:
            ingredients = create_fermentable_ingredient_list(boil, state.is_si_units) + ingredients

        state = _advance(state, previous - time)
        previous = time

        if time == 5 and boil_end:
            ingredients = create_fermentable_ingredient_list(boil_end, state.is_si_units) + ingredients

        state = _emit(state, f"Add {', '.join(ingredients)}.", Phase.BOIL)

    return _advance(state, previous)


def compute_chill_phase(recipe: Recipe, state: BrewState, constants: BrewConstants) -> BrewState:
    # Chilling time is a rule of thumb rather than a heat transfer model
    chill_temp = compute_temp_string(recipe.primary_temp, state.is_si_units)
    state = _emit(state, f"Flame out. Begin chilling to {chill_temp} and aerate the cooled wort "
                         f"(about {constants.chill_minutes:g} minutes).", Phase.CHILL)
    return replace(state, time=state.time + constants.chill_minutes, temp=recipe.primary_temp)


def compute_yeast_phase(recipe: Recipe, state: BrewState) -> BrewState:
    yeasts = [y.name for y in recipe.yeast]

    if not yeasts and recipe.primary_days:
        # No yeast given, but primary fermentation should happen
        yeasts = ["yeast"]

    if yeasts:
        state = _emit(state, f"Pitch {', '.join(yeasts)} and seal the fermenter. "
                             f"You should see bubbles in the airlock within 24 hours.", Phase.YEAST)
    return state


# ============================================
# FERMENTATION & PACKAGING
# ============================================

def compute_ferment_phase(recipe: Recipe, state: BrewState, constants: BrewConstants) -> BrewState:
    primary_days = recipe.primary_days
    if not primary_days:
        primary_days = constants.default_primary_days
        logger.info(f"'{recipe.name}' has no primary fermentation time, using {primary_days:g} days")
        state = _emit(state, f"No primary fermentation time was given, so ferment for "
                             f"{_days(primary_days)} before moving on.", Phase.FERMENT)

    state = _advance(state, primary_days * MINUTES_PER_DAY)

    if recipe.secondary_days:
        state = _emit(state, f"Move to secondary fermenter for {_days(recipe.secondary_days)}.", Phase.FERMENT)
        state = _advance(state, recipe.secondary_days * MINUTES_PER_DAY)

    if recipe.tertiary_days:
        state = _emit(state, f"Move to tertiary fermenter for {_days(recipe.tertiary_days)}.", Phase.FERMENT)
        state = _advance(state, recipe.tertiary_days * MINUTES_PER_DAY)

    return state


def compute_dry_hop_phase(recipe: Recipe, state: BrewState) -> BrewState:
    """Dry additions keyed by days before packaging, longest first."""
    dry_spice = recipe.timeline_map.dry_spice
    ordered = sorted(dry_spice, reverse=True)
    previous = ordered[0] if ordered else 0

    for days in ordered:
        state = _advance(state, (previous - days) * MINUTES_PER_DAY)
        previous = days

        ingredients = create_spice_ingredient_list(dry_spice[days], state.is_si_units)
        length = f" for {_days(days)}" if days > 0 else ""
        state = _emit(state, f"Dry Hop {', '.join(ingredients)}{length}.", Phase.DRY_HOP)

    return _advance(state, previous * MINUTES_PER_DAY)


def compute_bottle_phase(recipe: Recipe, state: BrewState) -> BrewState:
    servings = compute_recipe_servings(recipe)
    if recipe.priming_corn_sugar > 0:
        sugar = compute_weight_string(recipe.priming_corn_sugar, state.is_si_units)
        instructions = f"Prime with {sugar} of corn sugar and bottle about {servings} bottles."
    else:
        instructions = f"Prime and bottle about {servings} bottles."
    return _emit(state, instructions, Phase.BOTTLE)


def compute_aging_phase(recipe: Recipe, state: BrewState) -> BrewState:
    if recipe.aging_days > 0:
        age_temp = compute_temp_string(recipe.aging_temp, state.is_si_units)
        state = _emit(state, f"Age at {age_temp} for {_days(recipe.aging_days)}.", Phase.AGING)
        state = _advance(state, recipe.aging_days * MINUTES_PER_DAY)
    return state


def compute_keg_phase(recipe: Recipe, state: BrewState, constants: BrewConstants) -> BrewState:
    if state.is_si_units:
        pressure = f"{recipe.keg_pressure * PSI_TO_BAR:.2f} bar"
    else:
        pressure = f"{recipe.keg_pressure:.1f} psi"
    temp = compute_temp_string(recipe.keg_temp, state.is_si_units)
    wait = _days(constants.keg_conditioning_days)

    for instructions in (
        "Release any pressure left in the keg and remove the lid.",
        "Clean and sanitize the keg, lid, dip tubes and seals.",
        "Siphon the beer into the keg, leaving the sediment behind.",
        "Seal the keg lid.",
        "Attach the gas line to the gas-in post.",
        "Pressurize the keg and check every fitting for leaks with sanitizer spray.",
        "Purge oxygen from the headspace by venting the pressure relief valve a few times.",
        f"Set the regulator to {pressure}, store the keg at {temp} and wait {wait} for the beer to carbonate.",
    ):
        state = _emit(state, instructions, Phase.KEG)

    state = _advance(state, constants.keg_conditioning_days * MINUTES_PER_DAY)
    return _emit(state, f"Taste test the beer. If it needs more carbonation leave it at {pressure} "
                        f"for a few more days.", Phase.KEG)


def compute_drink_phase(state: BrewState) -> BrewState:
    return _emit(state, "Relax, don't worry and have a homebrew!", Phase.DRINK)


def _with_durations(timeline: Tuple[TimelineStep, ...]) -> List[TimelineStep]:
    """Each step lasts until the next one starts; the last step lasts 0."""
    steps = []
    for index, step in enumerate(timeline):
        following = timeline[index + 1].time if index + 1 < len(timeline) else step.time
        steps.append(replace(step, duration=following - step.time))
    return steps


def compute_recipe_timeline(recipe: Recipe, is_si_units: bool = True, is_bottled: bool = True,
                            constants: Optional[BrewConstants] = None) -> List[TimelineStep]:
    """
    Ordered brew-day instructions for a recipe.

    Args:
        recipe: Calculated recipe; an uncalculated one is calculated first
        is_si_units: Metric (True) or imperial (False) instruction text
        is_bottled: Bottle and age (True) or keg (False)
        constants: Equipment and process constants

    Returns:
        List of TimelineStep with non-decreasing times, ending in the drink phase
    """
    constants = constants or DEFAULT_CONSTANTS
    if recipe.timeline_map is None:
        recipe = calculate_recipe(recipe, constants)

    fermentables = recipe.timeline_map.fermentables
    state = BrewState(temp=constants.room_temp, is_si_units=is_si_units)
    boil_name = "water"

    if fermentables.mash:
        boil_name = "wort"
        state = compute_mash_phase(recipe, state, constants)

    if fermentables.steep:
        boil_name = "wort"
        state = compute_steep_phase(recipe, state, constants)

    state = compute_top_up_phase(recipe, state, boil_name, constants)
    state = compute_boil_phase(recipe, state, constants)
    state = compute_chill_phase(recipe, state, constants)
    state = compute_yeast_phase(recipe, state)

    # The brew day is over! Fermenting starts now.
    state = compute_ferment_phase(recipe, state, constants)
    state = compute_dry_hop_phase(recipe, state)

    if is_bottled:
        state = compute_bottle_phase(recipe, state)
        state = compute_aging_phase(recipe, state)
    else:
        state = compute_keg_phase(recipe, state, constants)

    state = compute_drink_phase(state)

    return _with_durations(state.timeline)
