"""
Parsing of raw user input into validated field values.

Each parser takes the raw string and either returns the converted value
or raises ModelValidationError describing the problem. Retrying is left to
the caller.
"""

from typing import Optional, Tuple
import math

from ..models.validation import ModelValidationError, ValidationResult

TRUE_VALUES = {'1', 'y', 'yes', 'true', 'on'}
FALSE_VALUES = {'0', 'n', 'no', 'false', 'off'}


def _fail(field: str, message: str, raw) -> ModelValidationError:
    return ModelValidationError(
        f"Invalid {field}",
        validation_result=ValidationResult.error(field, message, raw),
    )


def parse_name(raw: str, field: str = 'name') -> str:
    """Non-empty single-line text, surrounding whitespace removed."""
    value = (raw or '').strip()
    if not value:
        raise _fail(field, "input cannot be empty", raw)
    if '\n' in value or '\r' in value:
        raise _fail(field, "must be a single line", raw)
    return value


def parse_int(raw: str, field: str = 'value', minimum: Optional[int] = None,
              maximum: Optional[int] = None) -> int:
    """Integer within [minimum, maximum] (either bound optional)."""
    text = (raw or '').strip()
    if not text:
        raise _fail(field, "input cannot be empty", raw)
    try:
        value = int(text)
    except ValueError:
        raise _fail(field, "must be an integer", raw)
    _check_range(value, field, minimum, maximum, raw)
    return value


def parse_float(raw: str, field: str = 'value', minimum: Optional[float] = None,
                maximum: Optional[float] = None, exclusive_minimum: bool = False) -> float:
    """Finite number within the given bounds."""
    text = (raw or '').strip()
    if not text:
        raise _fail(field, "input cannot be empty", raw)
    try:
        value = float(text)
    except ValueError:
        raise _fail(field, "must be a number", raw)
    if not math.isfinite(value):
        raise _fail(field, "must be a finite number", raw)
    if exclusive_minimum and minimum is not None and value <= minimum:
        raise _fail(field, f"must be greater than {minimum}", raw)
    _check_range(value, field, None if exclusive_minimum else minimum, maximum, raw)
    return value


def parse_bool(raw: str, field: str = 'value') -> bool:
    text = (raw or '').strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise _fail(field, "must be yes or no", raw)


def parse_percent(raw: str, field: str = 'percent') -> float:
    return parse_float(raw, field, minimum=0.0, maximum=100.0)


def parse_pipe_spec(raw: str) -> Tuple[str, float, int]:
    """
    Parse 'NAME:LENGTH:DIAMETER' into (name, length, diameter).

    The name may itself contain ':' since the numeric fields are split from the right.
    """
    parts = (raw or '').rsplit(':', 2)
    if len(parts) != 3:
        raise _fail('pipe', "expected NAME:LENGTH:DIAMETER", raw)
    name, length, diameter = parts
    return (
        parse_name(name),
        parse_float(length, 'length', minimum=0.0, exclusive_minimum=True),
        parse_int(diameter, 'diameter', minimum=1),
    )


def parse_station_spec(raw: str) -> Tuple[str, int, int, int]:
    """Parse 'NAME:TOTAL:ACTIVE:CLASS' into (name, total, active, station_class)."""
    parts = (raw or '').rsplit(':', 3)
    if len(parts) != 4:
        raise _fail('station', "expected NAME:TOTAL:ACTIVE:CLASS", raw)
    name, total, active, station_class = parts
    total_value = parse_int(total, 'total_workshops', minimum=1)
    return (
        parse_name(name),
        total_value,
        parse_int(active, 'active_workshops', minimum=0, maximum=total_value),
        parse_int(station_class, 'station_class', minimum=1),
    )


def _check_range(value, field: str, minimum, maximum, raw) -> None:
    if minimum is not None and maximum is not None and not minimum <= value <= maximum:
        raise _fail(field, f"must be between {minimum} and {maximum}", raw)
    if minimum is not None and value < minimum:
        raise _fail(field, f"must be at least {minimum}", raw)
    if maximum is not None and value > maximum:
        raise _fail(field, f"must be at most {maximum}", raw)
