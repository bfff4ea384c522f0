import math
import logging
from typing import Any, Callable, Dict, List, Optional

from src.utils.semrush.schema import (
    ARRAY,
    BOOLEAN,
    INTEGER,
    NUMBER,
    OBJECT,
    STRING,
    ParameterSchema,
)

logger = logging.getLogger(__name__)


class ValidationResult:
    """Outcome of validating one value: the (transformed) value plus any errors"""

    def __init__(self, value: Any, errors: Optional[List[str]] = None):
        self.value = value
        self.errors = list(errors or [])

    @property
    def valid(self) -> bool:
        return not self.errors

    def __repr__(self) -> str:
        return f"ValidationResult(valid={self.valid!r}, errors={self.errors!r})"


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a valid number here
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not (isinstance(value, float) and math.isnan(value))


def _is_integer(value: Any) -> bool:
    if not _is_number(value):
        return False
    return isinstance(value, int) or value.is_integer()


TYPE_CHECKS: Dict[str, Callable[[Any], bool]] = {
    STRING: lambda value: isinstance(value, str),
    NUMBER: _is_number,
    INTEGER: _is_integer,
    BOOLEAN: lambda value: isinstance(value, bool),
    ARRAY: lambda value: isinstance(value, list),
    OBJECT: lambda value: isinstance(value, dict),
}


def describe_type(value: Any) -> str:
    """Name a Python value using JSON Schema vocabulary"""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return BOOLEAN
    if isinstance(value, int):
        return INTEGER
    if isinstance(value, float):
        return "NaN" if math.isnan(value) else NUMBER
    if isinstance(value, str):
        return STRING
    if isinstance(value, (list, tuple)):
        return ARRAY
    if isinstance(value, dict):
        return OBJECT
    return type(value).__name__


def check_type(value: Any, kind: str, path: str) -> Optional[str]:
    """Return an error message when ``value`` is not of ``kind``, else None"""
    if TYPE_CHECKS[kind](value):
        return None
    return f"Invalid type for '{path}'. Expected {kind}, got {describe_type(value)}"


def _override(schema: ParameterSchema, key: str, path: str, default: str) -> str:
    message = schema.error_message(key)
    if message is None:
        return default
    return f"Invalid '{path}': {message}"


def _check_enum(value: Any, schema: ParameterSchema, path: str) -> List[str]:
    allowed = schema.constraint("enum")
    if allowed is None or value in allowed:
        return []
    return [
        _override(
            schema,
            "enum",
            path,
            f"Invalid value for '{path}'. Expected one of: "
            f"{', '.join(str(v) for v in allowed)}, got: {value}",
        )
    ]


def _check_string(value: str, schema: ParameterSchema, path: str) -> List[str]:
    errors = _check_enum(value, schema, path)

    pattern = schema.compiled_pattern
    if pattern is not None and not pattern.search(value):
        errors.append(
            _override(
                schema,
                "pattern",
                path,
                f"Invalid format for '{path}'. Value '{value}' does not match "
                f"pattern: {schema.pattern}",
            )
        )

    min_length = schema.constraint("min_length")
    max_length = schema.constraint("max_length")
    if min_length is not None and len(value) < min_length:
        errors.append(
            _override(
                schema,
                "length",
                path,
                f"Invalid length for '{path}'. String length {len(value)} is less "
                f"than minimum length {min_length}",
            )
        )
    if max_length is not None and len(value) > max_length:
        errors.append(
            _override(
                schema,
                "length",
                path,
                f"Invalid length for '{path}'. String length {len(value)} is greater "
                f"than maximum length {max_length}",
            )
        )
    return errors


def _check_number(value: Any, schema: ParameterSchema, path: str) -> List[str]:
    errors = _check_enum(value, schema, path)

    minimum = schema.constraint("minimum")
    maximum = schema.constraint("maximum")
    if minimum is not None and value < minimum:
        errors.append(
            _override(
                schema,
                "range",
                path,
                f"Invalid value for '{path}'. Value {value} is less than minimum {minimum}",
            )
        )
    if maximum is not None and value > maximum:
        errors.append(
            _override(
                schema,
                "range",
                path,
                f"Invalid value for '{path}'. Value {value} is greater than maximum {maximum}",
            )
        )
    return errors


def _check_array(value: list, schema: ParameterSchema, path: str) -> List[str]:
    errors = []

    min_items = schema.constraint("min_items")
    max_items = schema.constraint("max_items")
    if min_items is not None and len(value) < min_items:
        errors.append(
            _override(
                schema,
                "length",
                path,
                f"Invalid array length for '{path}'. Array length {len(value)} is "
                f"less than minimum {min_items}",
            )
        )
    if max_items is not None and len(value) > max_items:
        errors.append(
            _override(
                schema,
                "length",
                path,
                f"Invalid array length for '{path}'. Array length {len(value)} is "
                f"greater than maximum {max_items}",
            )
        )

    if schema.items:
        for index, item in enumerate(value):
            item_path = f"{path}[{index}]"
            error = check_type(item, schema.items, item_path)
            if error:
                errors.append(_override(schema, "items", item_path, error))
    return errors


def _no_constraints(value: Any, schema: ParameterSchema, path: str) -> List[str]:
    return []


CONSTRAINT_CHECKS: Dict[str, Callable[[Any, ParameterSchema, str], List[str]]] = {
    STRING: _check_string,
    NUMBER: _check_number,
    INTEGER: _check_number,
    BOOLEAN: _no_constraints,
    ARRAY: _check_array,
    OBJECT: _no_constraints,
}


def validate(value: Any, schema: ParameterSchema, path: str) -> ValidationResult:
    """
    Validate a single raw value against its schema.

    Order: transform, type check, custom predicate, kind constraints. A failed
    transform or type check stops further checks for this value; every other
    failure is collected.

    Args:
        value: Raw caller-supplied value
        schema: Schema describing the parameter
        path: Name used in error messages (e.g. ``keywords``)

    Returns:
        ValidationResult holding the transformed value and all errors found
    """
    if schema.transform is not None:
        try:
            value = schema.transform(value)
        except Exception as e:
            return ValidationResult(value, [f"Transform error for '{path}': {e}"])

    type_error = check_type(value, schema.kind, path)
    if type_error:
        return ValidationResult(value, [_override(schema, "type", path, type_error)])

    # Whole floats such as 4.0 are valid integers; hand them on as int
    if schema.kind == INTEGER:
        value = int(value)

    errors = []

    if schema.validate is not None:
        outcome = schema.validate(value)
        if isinstance(outcome, str):
            errors.append(_override(schema, "validate", path, f"Invalid '{path}': {outcome}"))
        elif outcome is False:
            errors.append(
                _override(schema, "validate", path, f"Custom validation failed for '{path}'")
            )

    errors.extend(CONSTRAINT_CHECKS[schema.kind](value, schema, path))
    return ValidationResult(value, errors)
