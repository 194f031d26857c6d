"""Unit conversion for calckit.

Table-driven linear conversions between units of the same measurement
family, plus affine temperature formulas and composed speed conversion.
Each family maps a unit symbol to its factor relative to the family's base
unit, so ``value * factor[from] / factor[to]`` converts between any pair.
"""

import math
from enum import Enum
from typing import Dict, List, Optional

from .errors import CalcResult, ErrorKind

__all__ = [
    "UnitFamily",
    "FACTORS",
    "TEMPERATURE_UNITS",
    "convert",
    "convert_temperature",
    "convert_speed",
    "convert_any",
    "find_family",
    "list_units",
]


class UnitFamily(Enum):
    """Measurement families with linear conversions."""

    LENGTH = "length"  # base: meter
    WEIGHT = "weight"  # base: kilogram
    VOLUME = "volume"  # base: liter
    AREA = "area"  # base: square meter
    TIME = "time"  # base: second
    PRESSURE = "pressure"  # base: pascal
    ENERGY = "energy"  # base: joule
    STORAGE = "storage"  # base: byte
    ANGLE = "angle"  # base: radian
    FREQUENCY = "frequency"  # base: hertz


FACTORS: Dict[UnitFamily, Dict[str, float]] = {
    UnitFamily.LENGTH: {
        "mm": 0.001,
        "cm": 0.01,
        "m": 1.0,
        "km": 1000.0,
        "in": 0.0254,
        "ft": 0.3048,
        "yd": 0.9144,
        "mi": 1609.344,
    },
    UnitFamily.WEIGHT: {
        "mg": 0.000001,
        "g": 0.001,
        "kg": 1.0,
        "oz": 0.0283495,
        "lb": 0.453592,
        "st": 6.35029,
        "t": 1000.0,
    },
    UnitFamily.VOLUME: {
        "ml": 0.001,
        "l": 1.0,
        "m³": 1000.0,
        "fl_oz": 0.0295735,
        "cup": 0.236588,
        "pt": 0.473176,
        "qt": 0.946353,
        "gal": 3.78541,
    },
    UnitFamily.AREA: {
        "mm²": 0.000001,
        "cm²": 0.0001,
        "m²": 1.0,
        "km²": 1000000.0,
        "in²": 0.00064516,
        "ft²": 0.092903,
        "yd²": 0.836127,
        "ac": 4046.86,
        "ha": 10000.0,
    },
    UnitFamily.TIME: {
        "ms": 0.001,
        "s": 1.0,
        "min": 60.0,
        "h": 3600.0,
        "d": 86400.0,
        "wk": 604800.0,
        "mo": 2592000.0,  # 30 days
        "yr": 31536000.0,  # 365 days
    },
    UnitFamily.PRESSURE: {
        "Pa": 1.0,
        "kPa": 1000.0,
        "MPa": 1000000.0,
        "bar": 100000.0,
        "psi": 6894.76,
        "atm": 101325.0,
        "mmHg": 133.322,
        "inHg": 3386.39,
    },
    UnitFamily.ENERGY: {
        "J": 1.0,
        "kJ": 1000.0,
        "cal": 4.184,
        "kcal": 4184.0,
        "Wh": 3600.0,
        "kWh": 3600000.0,
        "BTU": 1055.06,
        "eV": 1.602177e-19,
    },
    UnitFamily.STORAGE: {
        "B": 1.0,
        "KB": 1024.0,
        "MB": 1048576.0,
        "GB": 1073741824.0,
        "TB": 1099511627776.0,
        "PB": 1125899906842624.0,
    },
    UnitFamily.ANGLE: {
        "rad": 1.0,
        "deg": math.pi / 180,
        "grad": math.pi / 200,
        "turn": 2 * math.pi,
    },
    UnitFamily.FREQUENCY: {
        "Hz": 1.0,
        "kHz": 1000.0,
        "MHz": 1000000.0,
        "GHz": 1000000000.0,
        "rpm": 1.0 / 60,
    },
}

# Accepted spellings for the three temperature scales
TEMPERATURE_UNITS: Dict[str, str] = {
    "C": "C",
    "°C": "C",
    "F": "F",
    "°F": "F",
    "K": "K",
}


def _invalid_unit(*symbols: str) -> CalcResult:
    return CalcResult.failure(
        ErrorKind.FORMAT, f"Invalid unit specified: {' -> '.join(symbols)}"
    )


def convert(value: float, from_unit: str, to_unit: str, family: UnitFamily) -> CalcResult:
    """Convert ``value`` between two units of one family.

    Args:
        value: Quantity expressed in ``from_unit``.
        from_unit: Source unit symbol.
        to_unit: Target unit symbol.
        family: Family whose factor table both symbols must belong to.

    Returns:
        CalcResult holding the converted float, or a FORMAT error when
        either symbol is absent from the family table.
    """
    factors = FACTORS[family]
    if from_unit not in factors or to_unit not in factors:
        return _invalid_unit(from_unit, to_unit)
    return CalcResult.success(value * factors[from_unit] / factors[to_unit])


def celsius_to_fahrenheit(celsius: float) -> float:
    return celsius * 9 / 5 + 32


def fahrenheit_to_celsius(fahrenheit: float) -> float:
    return (fahrenheit - 32) * 5 / 9


def celsius_to_kelvin(celsius: float) -> float:
    return celsius + 273.15


def kelvin_to_celsius(kelvin: float) -> float:
    return kelvin - 273.15


def convert_temperature(value: float, from_unit: str, to_unit: str) -> CalcResult:
    """Convert between Celsius, Fahrenheit and Kelvin.

    F <-> K goes through Celsius.
    """
    source = TEMPERATURE_UNITS.get(from_unit)
    target = TEMPERATURE_UNITS.get(to_unit)
    if source is None or target is None:
        return _invalid_unit(from_unit, to_unit)

    if source == "C":
        celsius = value
    elif source == "F":
        celsius = fahrenheit_to_celsius(value)
    else:
        celsius = kelvin_to_celsius(value)

    if target == "C":
        result = celsius
    elif target == "F":
        result = celsius_to_fahrenheit(celsius)
    else:
        result = celsius_to_kelvin(celsius)

    return CalcResult.success(result)


def convert_speed(
    value: float,
    from_length: str,
    from_time: str,
    to_length: str,
    to_time: str,
) -> CalcResult:
    """Convert a speed such as km/h to m/s.

    The length ratio and the time ratio are converted independently and
    recombined.
    """
    meters = convert(value, from_length, "m", UnitFamily.LENGTH)
    seconds = convert(1, from_time, "s", UnitFamily.TIME)
    target_seconds = convert(1, to_time, "s", UnitFamily.TIME)
    target_length = convert(1, "m", to_length, UnitFamily.LENGTH)

    for part in (meters, seconds, target_seconds, target_length):
        if not part.ok:
            return _invalid_unit(f"{from_length}/{from_time}", f"{to_length}/{to_time}")

    meters_per_second = meters.value / seconds.value
    return CalcResult.success(meters_per_second * target_length.value * target_seconds.value)


def find_family(symbol: str) -> Optional[UnitFamily]:
    """Return the family that defines ``symbol``, or None."""
    for family, factors in FACTORS.items():
        if symbol in factors:
            return family
    return None


def convert_any(value: float, from_unit: str, to_unit: str) -> CalcResult:
    """Convert between two unit symbols, resolving the family from the symbols.

    Temperature symbols are routed to the affine formulas. Symbols from
    different families are rejected.
    """
    if from_unit in TEMPERATURE_UNITS or to_unit in TEMPERATURE_UNITS:
        return convert_temperature(value, from_unit, to_unit)

    family = find_family(from_unit)
    if family is None or to_unit not in FACTORS[family]:
        return _invalid_unit(from_unit, to_unit)
    return convert(value, from_unit, to_unit, family)


def list_units(family: Optional[UnitFamily] = None) -> List[str]:
    """List unit symbols, for one family or for all of them."""
    if family is not None:
        return list(FACTORS[family])
    return [symbol for factors in FACTORS.values() for symbol in factors]
