_CONVERSIONS = {
    "g": {"kg": 0.001},
    "kg": {"g": 1000},
    "ml": {"l": 0.001, "liters": 0.001},
    "l": {"ml": 1000, "liters": 1},
    "liters": {"ml": 1000, "l": 1},
    "pcs": {"units": 1},
    "units": {"pcs": 1},
}


def conversion_factor(from_unit: str, to_unit: str) -> float:
    """Multiplier taking a quantity in `from_unit` to `to_unit`. Unknown pairs convert 1:1."""
    if from_unit == to_unit:
        return 1.0
    return float(_CONVERSIONS.get(from_unit, {}).get(to_unit, 1))
