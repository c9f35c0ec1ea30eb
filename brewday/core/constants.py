"""
Brew Day - Physical & Process Constants

Immutable values shared by the calculator and the timeline generator.
Pass a modified copy (dataclasses.replace) to simulate other equipment,
e.g. a weaker burner.
"""

from dataclasses import dataclass, replace

from brewday.core.config import get_config


@dataclass(frozen=True)
class BrewConstants:
    room_temp: float = 23.0  # °C
    default_sparge_temp: float = 76.0  # °C

    # Energy output of the stovetop or gas burner in kilojoules per hour.
    # 9000 kJ/h is a large stovetop burner at about 2500 watts.
    burner_energy: float = 9000.0
    specific_heat_of_water: float = 4.186

    # Average mash heat loss per hour in °C
    mash_heat_loss: float = 5.0

    steep_liters_per_kg: float = 2.75
    steep_max_liters_per_kg: float = 4.0
    steep_min_volume: float = 2.0  # liters
    steep_temp: float = 68.0  # °C

    max_sparge_volume: float = 4.0  # liters
    drain_minutes: float = 5
    sparge_minutes: float = 20
    chill_minutes: float = 20

    default_primary_days: float = 14
    default_boil_time: float = 60

    keg_temp: float = 4.0  # °C
    keg_conditioning_days: float = 7


DEFAULT_CONSTANTS = BrewConstants()


def constants_from_config() -> BrewConstants:
    """Builds constants from the config cache (BREWDAY_* overrides)."""
    return replace(
        DEFAULT_CONSTANTS,
        room_temp=float(get_config("room_temp")),
        burner_energy=float(get_config("burner_energy")),
        mash_heat_loss=float(get_config("mash_heat_loss")),
        keg_temp=float(get_config("keg_temp")),
        default_primary_days=float(get_config("default_primary_days")),
    )
