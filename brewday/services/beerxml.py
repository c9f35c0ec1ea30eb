"""
Brew Day - BeerXML Import

Reads BeerXML 1.0 documents (BeerSmith, Brewfather, Brewer's Friend
exports) into recipes. Only the inputs of a recipe are imported; OG, IBU
and the other derived values are recalculated rather than trusted.

See: http://www.beerxml.com/beerxml.htm
"""

import logging
from dataclasses import replace
from typing import Any, Dict, List

from bs4 import BeautifulSoup

from brewday.core.decorators import BeerXMLError
from brewday.services.fermentable import Fermentable, RecipeType
from brewday.services.mash import Mash, MashStep, MashStepType, create_default_mash
from brewday.services.recipe import Recipe, compute_recipe_grain_weight, create_recipe
from brewday.services.spice import Spice, compute_is_spice_dry
from brewday.services.style import Style
from brewday.services.yeast import Yeast

logger = logging.getLogger(__name__)

# BeerXML hop uses that are not one of ours
SPICE_USES = {
    "dry hop": "primary",
    "first wort": "boil",
    "aroma": "boil",
}

RECIPE_TYPES = {t.lower(): t for t in (RecipeType.EXTRACT, RecipeType.PARTIAL_MASH, RecipeType.ALL_GRAIN)}

RECIPE_FIELDS = {
    "batch_size": "batch_size",
    "boil_size": "boil_size",
    "efficiency": "mash_efficiency",
    "primary_age": "primary_days",
    "primary_temp": "primary_temp",
    "secondary_age": "secondary_days",
    "secondary_temp": "secondary_temp",
    "tertiary_age": "tertiary_days",
    "tertiary_temp": "tertiary_temp",
    "carbonation": "bottling_pressure",
    "carbonation_temp": "bottling_temp",
    "age": "aging_days",
    "age_temp": "aging_temp",
}


def _element_to_value(element):
    children = element.find_all(recursive=False)
    if not children:
        return element.get_text(strip=True)

    result: Dict[str, Any] = {}
    for child in children:
        value = _element_to_value(child)
        if child.name in result:
            if not isinstance(result[child.name], list):
                result[child.name] = [result[child.name]]
            result[child.name].append(value)
        else:
            result[child.name] = value
    return result


def parse_xml(xml_text: str) -> Dict[str, Any]:
    """
    Converts an XML document into nested dicts keyed by tag name.
    Leaf elements become their text; repeated tags become lists.
    """
    if not xml_text or not xml_text.strip():
        raise BeerXMLError("Empty BeerXML document")

    soup = BeautifulSoup(xml_text, "xml")
    roots = soup.find_all(recursive=False)
    if not roots:
        raise BeerXMLError("Document is not XML")

    return {root.name: _element_to_value(root) for root in roots}


def find_plural_or_singular(parent: Any, plural: str, singular: str) -> List[Dict[str, Any]]:
    """
    In BeerXML a fermentable may be stored as RECIPE/FERMENTABLE or as
    RECIPE/FERMENTABLES/FERMENTABLE. The same is true for most lists.
    Returns the items found either way as a list of dicts.
    """
    if not isinstance(parent, dict):
        return []

    container = parent.get(plural)
    result = container.get(singular) if isinstance(container, dict) else None
    if result is None:
        result = parent.get(singular, [])

    if isinstance(result, dict):
        return [result]
    if isinstance(result, list):
        return [item for item in result if isinstance(item, dict)]
    return []


def _lower_keys(item: Dict[str, Any]) -> Dict[str, Any]:
    return {k.lower(): v for k, v in item.items()}


def _float(value, default=0.0):
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _parse_style(styles: List[Dict[str, Any]]) -> Style:
    if len(styles) > 1:
        logger.warning("More than one style in a BeerXML recipe, only the first is used")

    style = Style()
    if not styles:
        return style

    values = _lower_keys(styles[0])
    bounds = {}
    for key in ("og", "fg", "ibu", "color", "abv", "carb"):
        default = getattr(style, key)
        bounds[key] = (_float(values.get(f"{key}_min"), default[0]), _float(values.get(f"{key}_max"), default[1]))

    return replace(style, name=values.get("name", ""), category=values.get("category", ""), **bounds)


def _parse_fermentable(item: Dict[str, Any]) -> Fermentable:
    values = _lower_keys(item)
    default = Fermentable()
    return Fermentable(
        name=values.get("name", default.name),
        type=values.get("type", default.type),
        yield_=_float(values.get("yield"), default.yield_),
        weight=_float(values.get("amount"), default.weight),
        color=_float(values.get("color"), default.color),
        late=str(values.get("add_after_boil", "")).lower() == "true",
    )


def _parse_spice(item: Dict[str, Any]) -> Spice:
    values = _lower_keys(item)
    default = Spice()
    use = str(values.get("use", default.use)).lower()
    spice = Spice(
        name=values.get("name", default.name),
        time=_float(values.get("time"), default.time),
        aa=_float(values.get("alpha"), default.aa),
        weight=_float(values.get("amount"), default.weight),
        use=SPICE_USES.get(use, use),
        form=str(values.get("form", default.form)).lower(),
    )

    # BeerXML times are minutes, dry additions are timed in days
    if compute_is_spice_dry(spice):
        spice = replace(spice, time=spice.time / 1440)
    return spice


def _parse_yeast(item: Dict[str, Any]) -> Yeast:
    values = _lower_keys(item)
    default = Yeast()
    return Yeast(
        name=values.get("name", default.name),
        type=str(values.get("type", default.type)).lower(),
        form=str(values.get("form", default.form)).lower(),
        attenuation=_float(values.get("attenuation"), default.attenuation),
    )


def _parse_mash(mashs: List[Dict[str, Any]], grain_weight: float) -> Mash:
    if len(mashs) > 1:
        logger.warning("More than one mash in a BeerXML recipe, only the first is used")

    mash = create_default_mash()
    if not mashs:
        return mash

    values = _lower_keys(mashs[0])
    mash = replace(
        mash,
        name=values.get("name", mash.name),
        grain_temp=_float(values.get("grain_temp"), mash.grain_temp),
        sparge_temp=_float(values.get("sparge_temp"), mash.sparge_temp),
        ph=_float(values.get("ph"), mash.ph),
        notes=values.get("notes", mash.notes),
    )

    # Infusions add water, so a step's ratio is all water added so far per kg of grain
    steps = []
    infused = 0.0
    for item in find_plural_or_singular(mashs[0], "MASH_STEPS", "MASH_STEP"):
        step_values = _lower_keys(item)
        step = MashStep()
        step_type = step_values.get("type", step.type)
        water_ratio = step.water_ratio

        if grain_weight > 0:
            if step_type == MashStepType.DECOCTION:
                water_ratio = _float(step_values.get("decoction_amt")) / grain_weight
            else:
                infused += _float(step_values.get("infuse_amount"))
                water_ratio = infused / grain_weight if infused else step.water_ratio

        steps.append(replace(
            step,
            name=step_values.get("name", step.name),
            type=step_type,
            temp=_float(step_values.get("step_temp"), step.temp),
            end_temp=_float(step_values.get("end_temp"), None),
            time=_float(step_values.get("step_time"), step.time),
            ramp_time=_float(step_values.get("ramp_time"), None),
            water_ratio=water_ratio,
        ))

    return replace(mash, steps=tuple(steps))


def _parse_recipe(xml_recipe: Dict[str, Any]) -> Recipe:
    values = _lower_keys(xml_recipe)
    overrides: Dict[str, Any] = {}

    for key, value in values.items():
        if key == "name":
            overrides["name"] = value
        elif key == "brewer":
            overrides["author"] = value
        elif key == "notes" and value:
            overrides["description"] = value
        elif key == "type":
            overrides["type"] = RECIPE_TYPES.get(str(value).lower())
        elif key in RECIPE_FIELDS:
            overrides[RECIPE_FIELDS[key]] = _float(value)

    fermentables = [_parse_fermentable(f) for f in find_plural_or_singular(xml_recipe, "FERMENTABLES", "FERMENTABLE")]
    hops = find_plural_or_singular(xml_recipe, "HOPS", "HOP")
    miscs = find_plural_or_singular(xml_recipe, "MISCS", "MISC")
    yeasts = find_plural_or_singular(xml_recipe, "YEASTS", "YEAST")

    overrides["style"] = _parse_style(find_plural_or_singular(xml_recipe, "STYLES", "STYLE"))
    overrides["fermentables"] = fermentables
    overrides["spices"] = [_parse_spice(s) for s in hops + miscs]
    overrides["yeast"] = [_parse_yeast(y) for y in yeasts]

    # Mash steps need the grain weight, so fermentables come first
    grain_weight = compute_recipe_grain_weight(create_recipe(fermentables=fermentables))
    overrides["mash"] = _parse_mash(find_plural_or_singular(xml_recipe, "MASHS", "MASH"), grain_weight)

    return create_recipe(**overrides)


def import_beerxml(xml_text: str) -> List[Recipe]:
    """
    Imports every recipe in a BeerXML document.

    Raises:
        BeerXMLError: if the document is not XML or holds no recipes
    """
    document = parse_xml(xml_text)
    xml_recipes = find_plural_or_singular(document, "RECIPES", "RECIPE")
    if not xml_recipes:
        raise BeerXMLError("No recipes found in BeerXML document")

    recipes = [_parse_recipe(r) for r in xml_recipes]
    logger.info(f"Imported {len(recipes)} recipe(s) from BeerXML: {', '.join(r.name for r in recipes)}")
    return recipes
