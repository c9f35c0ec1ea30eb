"""
Brew Day - Unit & Display Helpers

Heat-time estimation, duration formatting, gravity/Plato conversion and
the unit-aware strings used in timeline instructions. Values are always
stored metric; only the strings convert.
"""

import math
from typing import Optional

from brewday.core.constants import BrewConstants, DEFAULT_CONSTANTS
from brewday.core.units import convert

# Friendly beer color names and the SRM value each one starts at
COLOR_NAMES = (
    (2, "pale straw"),
    (3, "straw"),
    (4, "yellow"),
    (6, "gold"),
    (9, "amber"),
    (14, "deep amber"),
    (17, "copper"),
    (18, "deep copper"),
    (22, "brown"),
    (30, "dark brown"),
    (35, "very dark brown"),
    (40, "black"),
)

DURATION_FACTORS = (
    ("month", 30 * 60 * 24),
    ("week", 7 * 60 * 24),
    ("day", 60 * 24),
    ("hour", 60),
    ("minute", 1),
)


def compute_time_to_heat(liters: float, degrees: float = 80, constants: Optional[BrewConstants] = None) -> int:
    """
    Approximate minutes to change a volume of water by a number of °C.

    Degrees defaults to 80, about the difference between tap water and
    boiling. Vessel losses are ignored; the result is rounded up and never
    negative.
    """
    constants = constants or DEFAULT_CONSTANTS
    kj = constants.specific_heat_of_water * liters * degrees
    return max(0, math.ceil(kj / constants.burner_energy * 60))


def compute_display_duration(minutes: float, approximate: Optional[int] = None) -> str:
    """
    Human readable duration, e.g. 2 weeks 3 days.

    approximate limits the output to that many units, rounding the last one.
    """
    durations = []
    count = 0

    for label, factor in DURATION_FACTORS:
        if factor == 1 or (approximate and count == approximate - 1):
            # Round the last item
            amount = int(round(minutes / factor))
        else:
            amount = int(minutes // factor)

        minutes = minutes % factor

        if amount > 0 or count > 0:
            count += 1

        if (not approximate or count <= approximate) and amount > 0:
            durations.append(f"{amount} {label}{'s' if amount != 1 else ''}")

    if not durations:
        return "start"

    return " ".join(durations)


def gravity_to_plato(sg: float) -> float:
    """Cubic approximation of degrees Plato from specific gravity."""
    return -616.868 + 1111.14 * sg - 630.272 * sg ** 2 + 135.997 * sg ** 3


def plato_to_gravity(plato: float) -> float:
    return 1 + (plato / (258.6 - ((plato / 258.2) * 227.1)))


def yield_to_ppg(yield_percentage: float) -> float:
    """Extract yield percentage -> gravity points per pound per gallon."""
    return yield_percentage * 0.46214


def convert_kg_to_lb_oz(kgs: float) -> str:
    lbs = math.floor(convert(kgs, "kg", "lb"))
    oz = round(convert(kgs, "kg", "oz") - lbs * 16, 1)
    if oz >= 16:
        lbs += 1
        oz = 0.0

    if lbs > 0:
        return f"{lbs}lb {oz:.1f}oz"
    return f"{oz:.1f}oz"


def compute_weight_string(kgs: float, is_si_units: bool = True) -> str:
    return f"{kgs:.2f}kg" if is_si_units else convert_kg_to_lb_oz(kgs)


def compute_spice_weight_string(kgs: float, is_si_units: bool = True) -> str:
    """Spices are small, so metric weights are shown in grams."""
    return f"{convert(kgs, 'kg', 'g'):.1f}g" if is_si_units else convert_kg_to_lb_oz(kgs)


def compute_temp_string(temp_c: float, is_si_units: bool = True) -> str:
    if is_si_units:
        return f"{int(round(temp_c))}°C"
    return f"{int(round(convert(temp_c, 'C', 'F')))}°F"


def compute_volume_string(liters: float, is_si_units: bool = True, small: bool = False) -> str:
    """Small volumes (strike and sparge water) use quarts in imperial units."""
    if is_si_units:
        return f"{liters:.1f}l"
    if small:
        return f"{convert(liters, 'l', 'qt'):.1f}qt"
    return f"{convert(liters, 'l', 'gal'):.1f}gal"


def compute_color_name(srm: float) -> str:
    name = COLOR_NAMES[0][1]
    for threshold, color_name in COLOR_NAMES:
        if srm >= threshold:
            name = color_name
    return name
