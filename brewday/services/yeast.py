import re
from dataclasses import dataclass

PREMIUM_YEAST_PATTERN = re.compile(r"wyeast|white labs|wlp", re.I)


@dataclass(frozen=True)
class Yeast:
    name: str = ""
    type: str = "ale"  # ale, lager, wheat, wine, champagne
    form: str = "liquid"  # liquid, dry, slant, culture
    attenuation: float = 75.0  # %


def create_default_yeast(**overrides) -> Yeast:
    return Yeast(**overrides)


def compute_yeast_price(yeast: Yeast) -> float:
    """Liquid lab strains cost about twice a dry packet."""
    return 7.0 if PREMIUM_YEAST_PATTERN.search(yeast.name or "") else 3.5
