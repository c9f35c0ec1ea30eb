import os
import sys

import pytest

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


@pytest.fixture
def extract_recipe():
    """20l extract batch: 4kg extract, 28.3g of 4.5% pellets for 60 minutes, 74% yeast."""
    from brewday.services.fermentable import Fermentable, FermentableType
    from brewday.services.recipe import create_recipe
    from brewday.services.spice import Spice
    from brewday.services.yeast import Yeast

    return create_recipe(
        name="Simple Extract",
        batch_size=20.0,
        boil_size=10.0,
        fermentables=[Fermentable(name="Extra pale extract", type=FermentableType.LIQUID_EXTRACT,
                                  weight=4.0, yield_=75.0, color=2.5)],
        spices=[Spice(name="Cascade", weight=0.0283, aa=4.5, time=60, use="boil", form="pellet")],
        yeast=[Yeast(name="Safale US-05", type="ale", form="dry", attenuation=74.0)],
        ibu_method="tinseth",
    )


@pytest.fixture
def mash_steep_recipe():
    """Partial recipe with one mashed grain, one steeped grain and a week in secondary."""
    from brewday.services.fermentable import Fermentable, FermentableType
    from brewday.services.recipe import create_recipe
    from brewday.services.spice import Spice
    from brewday.services.yeast import Yeast

    return create_recipe(
        name="Mash And Steep",
        batch_size=20.0,
        boil_size=25.0,
        fermentables=[
            Fermentable(name="Pale malt", type=FermentableType.GRAIN, weight=4.0, yield_=80.0, color=3.0),
            Fermentable(name="Crystal 60", type=FermentableType.GRAIN, weight=0.5, yield_=74.0, color=60.0),
        ],
        spices=[
            Spice(name="Magnum", weight=0.02, aa=12.0, time=60, use="boil", form="pellet"),
            Spice(name="Citra", weight=0.05, aa=12.0, time=3, use="primary", form="pellet"),
        ],
        yeast=[Yeast(name="WLP001 California Ale", attenuation=76.0)],
        secondary_days=7,
    )


@pytest.fixture
def burton_ale_xml():
    path = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data", "burton_ale.xml")
    with open(path, encoding="utf-8") as f:
        return f.read()
