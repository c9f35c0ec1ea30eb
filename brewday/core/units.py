"""
Unit conversions between the metric values stored on a recipe and the
imperial units used for display.
"""

# Factors relative to a base unit per measure: kg, liter
MASS = {
    "kg": 1.0,
    "g": 0.001,
    "lb": 0.45359237,
    "oz": 0.45359237 / 16,
}

VOLUME = {
    "l": 1.0,
    "ml": 0.001,
    "gal": 3.785411784,
    "qt": 3.785411784 / 4,
}

TEMPERATURE = ("C", "F")


def c_to_f(temp_c):
    return (temp_c * 9 / 5) + 32


def f_to_c(temp_f):
    return (temp_f - 32) * 5 / 9


def convert(value, from_unit, to_unit):
    """
    Converts value between two units of the same measure.

    Supported: kg, g, lb, oz (mass); l, ml, gal, qt (volume); C, F (temperature).
    Raises ValueError for unknown or mismatched units.
    """
    if from_unit == to_unit:
        return value

    if from_unit in TEMPERATURE and to_unit in TEMPERATURE:
        return c_to_f(value) if from_unit == "C" else f_to_c(value)

    for table in (MASS, VOLUME):
        if from_unit in table and to_unit in table:
            return value * table[from_unit] / table[to_unit]

    raise ValueError(f"Cannot convert from '{from_unit}' to '{to_unit}'")


def convert_l_per_kg_to_qt_per_lb(ratio):
    """Water-to-grain ratio: liters per kg -> quarts per lb."""
    return convert(ratio, "l", "qt") / convert(1, "kg", "lb")
