from dataclasses import asdict
from flask import Blueprint, jsonify, request
from brewday.core.config import get_bool_config
from brewday.core.constants import constants_from_config
from brewday.core.decorators import api_safe, AppError, RecipeFormatError
from brewday.services import beerxml, calculator, timeline
from brewday.services.recipe import create_recipe, recipe_from_dict, recipe_to_dict
from brewday.services.utils import compute_color_name
import logging

api_bp = Blueprint('api', __name__)
logger = logging.getLogger(__name__)


def _flag(name, config_key):
    value = request.args.get(name)
    if value is None:
        return get_bool_config(config_key)
    return value.lower() in ("1", "true", "yes", "on")


def _recipe_payload(data):
    if not data: raise RecipeFormatError("No recipe data")
    return recipe_from_dict(data)


def _calculated_response(recipe):
    result = recipe_to_dict(recipe)
    result["color_name"] = compute_color_name(recipe.color)
    return result


@api_bp.route('/api/recipes/default', methods=['GET'])
@api_safe
def default_recipe():
    return jsonify(recipe_to_dict(create_recipe(), include_derived=False))


@api_bp.route('/api/recipes/calculate', methods=['POST'])
@api_safe
def calculate():
    recipe = _recipe_payload(request.get_json(silent=True))
    calculated = calculator.calculate_recipe(recipe, constants_from_config())
    return jsonify(_calculated_response(calculated))


@api_bp.route('/api/recipes/timeline', methods=['POST'])
@api_safe
def recipe_timeline():
    recipe = _recipe_payload(request.get_json(silent=True))
    constants = constants_from_config()
    is_si_units = _flag('si', 'si_units')
    is_bottled = _flag('bottled', 'bottled')

    calculated = calculator.calculate_recipe(recipe, constants)
    steps = timeline.compute_recipe_timeline(calculated, is_si_units, is_bottled, constants)
    return jsonify({
        "recipe": _calculated_response(calculated),
        "timeline": [asdict(s) for s in steps]
    })


@api_bp.route('/api/recipes/scale', methods=['POST'])
@api_safe
def scale():
    data = request.get_json(silent=True)
    if not isinstance(data, dict): raise RecipeFormatError("Expected {recipe, batch_size, boil_size}")
    recipe = _recipe_payload(data.get('recipe'))
    try:
        batch_size = float(data.get('batch_size'))
        boil_size = float(data.get('boil_size', batch_size))
    except (ValueError, TypeError):
        raise AppError("batch_size and boil_size must be numbers")

    scaled = calculator.scale_recipe(recipe, batch_size, boil_size)
    return jsonify(_calculated_response(calculator.calculate_recipe(scaled, constants_from_config())))


@api_bp.route('/api/recipes/import', methods=['POST'])
@api_safe
def import_recipes():
    if 'file' in request.files:
        xml_text = request.files['file'].read().decode('utf-8', errors='replace')
    else:
        xml_text = request.get_data(as_text=True)

    recipes = beerxml.import_beerxml(xml_text)
    return jsonify({"status": "imported", "recipes": [recipe_to_dict(r, include_derived=False) for r in recipes]})
