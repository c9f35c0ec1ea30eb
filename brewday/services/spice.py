"""
Brew Day - Hops & Spices

Bitterness (Tinseth or Rager), pellet utilization and dry addition
detection for anything added to the mash, boil or fermenter.
"""

import math
import re
from dataclasses import dataclass

from brewday.core.decorators import IbuMethodError

DRY_SPICE_PATTERN = re.compile(r"primary|secondary|dry", re.I)

IBU_METHODS = ("tinseth", "rager")

SPICE_PRICE_PER_KG = 17.64


@dataclass(frozen=True)
class Spice:
    name: str = ""
    time: float = 60  # minutes in the boil, days for dry additions
    aa: float = 0.0  # alpha acid %
    weight: float = 0.025  # kg
    use: str = "boil"  # boil, mash, primary, secondary, bottling
    form: str = "pellet"  # pellet, plug, leaf


def create_default_spice(**overrides) -> Spice:
    return Spice(**overrides)


def compute_spice_utilization_factor(spice: Spice) -> float:
    return 1.15 if (spice.form or "").lower() == "pellet" else 1.0


def compute_spice_bitterness(spice: Spice, ibu_method: str, early_og: float, batch_size: float) -> float:
    """
    IBU contributed by one spice.

    Args:
        spice: Hop or spice addition (weight in kg, time in minutes)
        ibu_method: 'tinseth' or 'rager'
        early_og: Gravity at boil volume before late additions
        batch_size: Batch volume in liters

    Raises:
        IbuMethodError: for any other method name
    """
    if ibu_method not in IBU_METHODS:
        raise IbuMethodError(ibu_method)

    if batch_size <= 0:
        return 0.0

    if ibu_method == "tinseth":
        bigness_factor = 1.65 * (0.000125 ** (early_og - 1.0))
        boil_time_factor = (1 - math.exp(-0.04 * spice.time)) / 4.15
        # mg/l of alpha acids
        concentration = (spice.aa / 100.0) * spice.weight * 1_000_000 / batch_size
        return bigness_factor * boil_time_factor * concentration * compute_spice_utilization_factor(spice)

    utilization = 18.11 + 13.86 * math.tanh((spice.time - 31.32) / 18.27)
    adjustment = max(0, (early_og - 1.05) / 0.2)
    return (
        spice.weight * 100 * utilization * compute_spice_utilization_factor(spice) * spice.aa
    ) / (batch_size * (1 + adjustment))


def compute_is_spice_bittering(spice: Spice) -> bool:
    return bool(spice.aa) and spice.aa > 0 and (spice.use or "").lower() == "boil"


def compute_spice_price(spice: Spice) -> float:
    return spice.weight * SPICE_PRICE_PER_KG


def compute_is_spice_dry(spice: Spice) -> bool:
    return bool(DRY_SPICE_PATTERN.search(spice.use or ""))
