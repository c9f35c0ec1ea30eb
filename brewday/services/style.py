from dataclasses import dataclass
from typing import Tuple

Range = Tuple[float, float]


@dataclass(frozen=True)
class Style:
    """Style guideline bounds. Stored for reference, never enforced."""
    name: str = ""
    category: str = ""
    og: Range = (1.0, 1.15)
    fg: Range = (1.0, 1.15)
    ibu: Range = (0, 150)
    color: Range = (0, 500)
    abv: Range = (0, 14)
    carb: Range = (1.0, 4.0)


def create_default_style(**overrides) -> Style:
    return Style(**overrides)
