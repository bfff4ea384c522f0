import json
import re
import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

STRING = "string"
NUMBER = "number"
INTEGER = "integer"
BOOLEAN = "boolean"
ARRAY = "array"
OBJECT = "object"

KINDS = (STRING, NUMBER, INTEGER, BOOLEAN, ARRAY, OBJECT)

# Constraint keys accepted per kind. "enum" is shared by scalars.
CONSTRAINTS_BY_KIND = {
    STRING: {"pattern", "enum", "min_length", "max_length"},
    NUMBER: {"enum", "minimum", "maximum"},
    INTEGER: {"enum", "minimum", "maximum"},
    BOOLEAN: set(),
    ARRAY: {"min_items", "max_items", "items"},
    OBJECT: set(),
}

# Keys understood in ``error_messages``
ERROR_MESSAGE_KEYS = {"type", "enum", "pattern", "length", "range", "items", "validate"}

_MISSING = object()


class ParameterSchema:
    """
    Typed contract for a single tool parameter.

    A schema is immutable once built: ``kind`` and the other attributes are
    exposed read-only. Constraints are validated against the *transformed*
    value, so a transform may coerce loose caller input (a comma string, a
    URL) into the shape the constraints expect.

    Args:
        kind: One of ``KINDS``
        description: Text surfaced to the calling agent
        required: Whether the caller must supply the value. Ignored when a
            default is present.
        default: Substituted when the caller omits the parameter
        aliases: Alternate input names, checked in order
        transform: Pure function applied to the raw value before checks
        validate: Predicate returning True, False or an error string
        error_messages: Per-check overrides (keys from ``ERROR_MESSAGE_KEYS``)
        **constraints: Kind specific constraints, see ``CONSTRAINTS_BY_KIND``
    """

    def __init__(
        self,
        kind: str,
        description: str = "",
        required: bool = False,
        default: Any = _MISSING,
        aliases: Optional[List[str]] = None,
        transform: Optional[Callable[[Any], Any]] = None,
        validate: Optional[Callable[[Any], Union[bool, str]]] = None,
        error_messages: Optional[Dict[str, str]] = None,
        **constraints: Any,
    ):
        if kind not in KINDS:
            raise ValueError(
                f"Unknown parameter kind '{kind}'. Expected one of: {', '.join(KINDS)}"
            )

        allowed = CONSTRAINTS_BY_KIND[kind]
        unsupported = [key for key in constraints if key not in allowed]
        if unsupported:
            if "items" in unsupported:
                raise ValueError(
                    f"Only array parameters may declare 'items' (got kind '{kind}')"
                )
            raise ValueError(
                f"Constraints not supported for kind '{kind}': {', '.join(unsupported)}"
            )

        if "items" in constraints and constraints["items"] not in KINDS:
            raise ValueError(f"Unknown item kind '{constraints['items']}'")

        unknown_messages = set(error_messages or {}) - ERROR_MESSAGE_KEYS
        if unknown_messages:
            raise ValueError(
                f"Unknown error message keys: {', '.join(sorted(unknown_messages))}"
            )

        self._kind = kind
        self._description = description
        self._required = required
        self._default = default
        self._aliases = tuple(aliases or ())
        self._transform = transform
        self._validate = validate
        self._error_messages = dict(error_messages or {})
        self._constraints = dict(constraints)

        pattern = constraints.get("pattern")
        self._compiled_pattern = re.compile(pattern) if pattern else None

    @property
    def kind(self) -> str:
        return self._kind

    @property
    def description(self) -> str:
        return self._description

    @property
    def required(self) -> bool:
        """Required only when no default can stand in for the value"""
        return self._required and not self.has_default

    @property
    def has_default(self) -> bool:
        return self._default is not _MISSING

    @property
    def default(self) -> Any:
        return None if self._default is _MISSING else self._default

    @property
    def aliases(self) -> tuple:
        return self._aliases

    @property
    def transform(self) -> Optional[Callable[[Any], Any]]:
        return self._transform

    @property
    def validate(self) -> Optional[Callable[[Any], Union[bool, str]]]:
        return self._validate

    @property
    def error_messages(self) -> Dict[str, str]:
        return dict(self._error_messages)

    @property
    def pattern(self) -> Optional[str]:
        return self._constraints.get("pattern")

    @property
    def compiled_pattern(self):
        return self._compiled_pattern

    @property
    def items(self) -> Optional[str]:
        return self._constraints.get("items")

    def constraint(self, name: str) -> Any:
        """Return a constraint value, or None when it is not declared"""
        return self._constraints.get(name)

    def error_message(self, key: str) -> Optional[str]:
        return self._error_messages.get(key)

    def to_json_schema(self) -> Dict[str, Any]:
        """Render this parameter as a JSON Schema property"""
        description = self._description
        if self._aliases:
            description += f" (aliases: {', '.join(self._aliases)})"

        prop: Dict[str, Any] = {"type": self._kind, "description": description}

        key_map = {
            "pattern": "pattern",
            "enum": "enum",
            "min_length": "minLength",
            "max_length": "maxLength",
            "minimum": "minimum",
            "maximum": "maximum",
            "min_items": "minItems",
            "max_items": "maxItems",
        }
        for key, json_key in key_map.items():
            if key in self._constraints:
                value = self._constraints[key]
                prop[json_key] = list(value) if key == "enum" else value

        if self.items:
            prop["items"] = {"type": self.items}
        if self.has_default:
            prop["default"] = self._default

        return prop

    def __repr__(self) -> str:
        return f"ParameterSchema(kind={self._kind!r}, required={self.required!r})"


# Transforms. Each one passes through values of a type it does not handle so
# the type check that follows reports the mismatch.


def lowercase(value: Any) -> Any:
    """Trim and lowercase a string"""
    if not isinstance(value, str):
        return value
    return value.strip().lower()


def format_domain(value: Any) -> Any:
    """Reduce a URL or host string to a bare lowercase domain"""
    if not isinstance(value, str):
        return value

    domain = re.sub(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://", "", value.strip())
    domain = re.split(r"[/?#]", domain, maxsplit=1)[0]
    domain = domain.split(":")[0]
    domain = re.sub(r"^www\.", "", domain, flags=re.IGNORECASE)
    return domain.strip().lower()


def format_target(value: Any) -> Any:
    """Normalize a backlinks target, keeping any path after the host"""
    if not isinstance(value, str):
        return value

    target = re.sub(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://", "", value.strip())
    target = re.split(r"[?#]", target, maxsplit=1)[0]
    host, sep, path = target.partition("/")
    host = re.sub(r"^www\.", "", host.split(":")[0], flags=re.IGNORECASE).lower()
    path = path.rstrip("/")
    return f"{host}/{path}" if sep and path else host


def comma_string_to_array(value: Any) -> Any:
    """Split a comma separated string into a list of trimmed, non-empty items"""
    if not isinstance(value, str):
        return value
    return [item.strip() for item in value.split(",") if item.strip()]


def split_string_to_array(value: Any) -> Any:
    """
    Coerce loose list input into a list of strings.

    Accepts a list, a JSON array string, or a string separated by ``;`` or
    ``,``. Any other scalar becomes a single-item list. Dicts pass through
    unchanged so the type check can reject them.
    """
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]

    if isinstance(value, str):
        stripped = value.strip()
        if stripped.startswith("[") and stripped.endswith("]"):
            try:
                parsed = json.loads(stripped)
            except json.JSONDecodeError:
                parsed = None
            if isinstance(parsed, list):
                return [str(item).strip() for item in parsed if str(item).strip()]
        return [item.strip() for item in re.split(r"[;,]", value) if item.strip()]

    if value is None or isinstance(value, dict):
        return value

    return [str(value).strip()]


def format_date(value: Any) -> Any:
    """Normalize a date or ISO date string to YYYY-MM-DD"""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        return value

    text = value.strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        raise ValueError(f"Invalid date: {value}. Please use YYYY-MM-DD format.")


def chain(*transforms: Callable[[Any], Any]) -> Callable[[Any], Any]:
    """Compose transforms left to right"""

    def apply(value: Any) -> Any:
        for transform in transforms:
            value = transform(value)
        return value

    return apply


def each(transform: Callable[[Any], Any]) -> Callable[[Any], Any]:
    """Lift a scalar transform to operate on every element of a list"""

    def apply(value: Any) -> Any:
        if not isinstance(value, list):
            return value
        return [transform(item) for item in value]

    return apply
