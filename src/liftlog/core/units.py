"""
Weight unit conversion at the input/output boundary.

Session state always stores pounds.  Converting only when a value enters
or leaves the system keeps repeated edits from compounding rounding error.
"""

from .config import CANONICAL_UNIT, KG_PER_LB, UNIT_SYSTEMS


def validate_unit(unit: str) -> str:
    """Return ``unit`` if it is a supported unit system, else raise ValueError."""
    if unit not in UNIT_SYSTEMS:
        raise ValueError(f"Unknown unit system {unit!r}. Expected one of {UNIT_SYSTEMS}")
    return unit


def to_canonical(weight: float, unit: str) -> float:
    """Convert a weight entered in ``unit`` to pounds."""
    if validate_unit(unit) == "kg":
        return weight / KG_PER_LB
    return weight


def from_canonical(weight_lbs: float, unit: str) -> float:
    """Convert a stored weight in pounds to ``unit`` for display."""
    if validate_unit(unit) == "kg":
        return weight_lbs * KG_PER_LB
    return weight_lbs


def unit_label(unit: str) -> str:
    return "kg" if validate_unit(unit) == "kg" else CANONICAL_UNIT


def unit_name(unit: str) -> str:
    return "Kilograms" if validate_unit(unit) == "kg" else "Pounds"


def format_weight(
    weight_lbs: float,
    unit: str,
    include_unit: bool = True,
    decimals: int | None = None,
) -> str:
    """
    Format a stored weight in the display unit.

    Kilograms always show one decimal place; pounds show one decimal only
    when the value is fractional (2.5 lbs stays 2.5, 45 lbs shows as 45).
    Whole results are printed without a trailing ".0".

    Args:
        weight_lbs: Weight in the canonical unit
        unit: Display unit ("lbs" or "kg")
        include_unit: Append the unit label
        decimals: Force a precision instead of the automatic rule

    Returns:
        Formatted weight string, e.g. "45 lbs" or "20.4 kg"
    """
    converted = from_canonical(weight_lbs, unit)

    if decimals is not None:
        precision = decimals
    elif unit == "kg":
        precision = 1
    else:
        has_decimals = abs(converted - round(converted)) > 0.01
        precision = 1 if has_decimals else 0

    rounded = round(converted, precision)
    if float(rounded).is_integer():
        text = str(int(rounded))
    else:
        text = f"{rounded:.{precision}f}"

    if include_unit:
        return f"{text} {unit_label(unit)}"
    return text
