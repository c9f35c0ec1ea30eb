"""
Brew Day - Mash Schedule

Mash and mash step records plus the instruction text for each step type.
Steps are kept in brewing order.
"""

from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

from brewday.core.constants import BrewConstants, DEFAULT_CONSTANTS
from brewday.core.units import convert, convert_l_per_kg_to_qt_per_lb
from brewday.services.utils import compute_temp_string, compute_time_to_heat


class MashStepType:
    INFUSION = "Infusion"
    TEMPERATURE = "Temperature"
    DECOCTION = "Decoction"


@dataclass(frozen=True)
class MashStep:
    name: str = "Saccharification"
    type: str = MashStepType.INFUSION
    time: float = 60  # minutes
    ramp_time: Optional[float] = None
    temp: float = 68  # °C target
    end_temp: Optional[float] = None
    water_ratio: float = 2.75  # liters per kg of grain


@dataclass(frozen=True)
class Mash:
    name: str = ""
    grain_temp: float = DEFAULT_CONSTANTS.room_temp
    sparge_temp: float = DEFAULT_CONSTANTS.default_sparge_temp
    ph: Optional[float] = None
    # Any notes useful for another brewer when mashing
    notes: str = ""
    steps: Tuple[MashStep, ...] = field(default_factory=tuple)


def create_default_mash_step(grain_weight: Optional[float] = None, current_temp: Optional[float] = None,
                             constants: Optional[BrewConstants] = None) -> MashStep:
    """Basic 60 minute single-infusion mash at 68°C."""
    step = MashStep()
    if grain_weight and current_temp is not None:
        step = replace(step, ramp_time=compute_time_to_heat(grain_weight, step.temp - current_temp, constants))
    return step


def create_default_mash(constants: Optional[BrewConstants] = None, **overrides) -> Mash:
    constants = constants or DEFAULT_CONSTANTS
    values = {"grain_temp": constants.room_temp, "sparge_temp": constants.default_sparge_temp}
    values.update(overrides)
    return Mash(**values)


def create_mash(mash: Optional[Mash], grain_weight: float, current_temp: float,
                constants: Optional[BrewConstants] = None) -> Mash:
    """Returns mash when it has steps, otherwise a mash with the default single step."""
    if mash is not None and mash.steps:
        return mash

    default_step = create_default_mash_step(grain_weight, current_temp, constants)
    if mash is None:
        return create_default_mash(constants, steps=(default_step,))
    return replace(mash, steps=(default_step,))


def compute_mash_step_water_amount(water_ratio: float, is_si_units: bool, total_grain_weight: Optional[float] = None) -> str:
    absolute_units = "l" if is_si_units else "qt"
    relative_units = "l per kg" if is_si_units else "qt per lb"
    ratio = water_ratio if is_si_units else convert_l_per_kg_to_qt_per_lb(water_ratio)

    if total_grain_weight:
        weight = total_grain_weight if is_si_units else convert(total_grain_weight, "kg", "lb")
        return f"{ratio * weight:.1f}{absolute_units}"

    return f"{ratio:.1f}{relative_units} of grain"


def compute_mash_step_description(step: MashStep, step_index: int, is_si_units: bool = True,
                                  total_grain_weight: Optional[float] = None) -> str:
    temp = compute_temp_string(step.temp, is_si_units)
    water_amount = compute_mash_step_water_amount(step.water_ratio, is_si_units, total_grain_weight)
    minutes = f"{step.time:g}"

    if step.type == MashStepType.INFUSION:
        if step_index == 0:
            return f"Allow your mash to rest at {temp} for {minutes} minutes"
        return (f"Add about {water_amount} of boiling water to your mash until the temperature "
                f"reaches {temp}. Let sit for {minutes} minutes")
    if step.type == MashStepType.TEMPERATURE:
        return f"Adjust your mash temperature to {temp} and hold for {minutes} minutes"
    if step.type == MashStepType.DECOCTION:
        return (f"Drain {water_amount} from your mash into a kettle and boil. "
                f"Add back to mash to reach {temp} and hold for {minutes} minutes")

    return f"Unknown mash step type '{step.type}'"
