# Units - Metric/imperial conversion for probe geometry and positions
#
# All persisted lengths and feedrates are stored in millimeters. These
# helpers convert at the edit/display boundary only. Rounding is applied
# by the map_* helpers, never by the raw converters.

METRIC_UNITS = "mm"
IMPERIAL_UNITS = "in"

UNITS = (METRIC_UNITS, IMPERIAL_UNITS)

# Modal G-code words reported by the controllers
UNITS_MODAL = {
    "G20": IMPERIAL_UNITS,
    "G21": METRIC_UNITS,
}

MM_PER_INCH = 25.4

# Display precision (decimal places) per unit
UNIT_DECIMALS = {
    METRIC_UNITS: 3,
    IMPERIAL_UNITS: 4,
}

# Persisted (metric) precision
PERSIST_DECIMALS = 3


def in2mm(inches=0):
    return inches * MM_PER_INCH


def mm2in(mm=0):
    return mm / MM_PER_INCH


def to_mm(value, unit):
    """Convert a value entered in ``unit`` to millimeters.

    Identity for metric. No validation: NaN and negative values
    pass through the multiplication unchanged in meaning.
    """
    if unit == IMPERIAL_UNITS:
        return in2mm(value)
    return value


def from_mm(mm, unit):
    """Convert a millimeter value to ``unit``. Inverse of to_mm()."""
    if unit == IMPERIAL_UNITS:
        return mm2in(mm)
    return mm


def map_value_to_units(value, unit=METRIC_UNITS):
    """Map a persisted metric value to its display value in ``unit``.

    Missing or non-numeric values display as 0.
    """
    try:
        value = float(value or 0)
    except (TypeError, ValueError):
        value = 0.0
    return round(from_mm(value, unit), UNIT_DECIMALS.get(unit, 3))


def map_position_to_units(pos, unit=METRIC_UNITS):
    """Map a machine position (mm) to display units."""
    return round(from_mm(pos, unit), UNIT_DECIMALS.get(unit, 3))


def map_units_to_value(value, unit=METRIC_UNITS):
    """Map a display value back to the persisted metric value."""
    return round(to_mm(value, unit), PERSIST_DECIMALS)
