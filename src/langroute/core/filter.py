"""Route search criteria.

A Filter selects routes by HTTP method and by option values, e.g. every
route flagged ``sitemap: true`` that answers GET requests.
"""

from typing import Any

TYPES = (
    "boolean",
    "bool",
    "integer",
    "int",
    "float",
    "double",
    "string",
)

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"", "0", "false", "no", "off"}


def coerce(value: Any, type_: str) -> Any:
    """Convert a scalar value to one of the filter types.

    Args:
        value: Scalar value (string, bool, int or float)
        type_: One of TYPES

    Returns:
        Converted value

    Raises:
        ValueError: If the value cannot be converted
    """
    if type_ in ("boolean", "bool"):
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
            raise ValueError(f"Cannot convert {value!r} to bool")
        return bool(value)
    if type_ in ("integer", "int"):
        if isinstance(value, str):
            return int(float(value.strip()))
        return int(value)
    if type_ in ("float", "double"):
        return float(value)
    if isinstance(value, bool):
        return "1" if value else ""
    return str(value)


class Filter:
    """Criteria for Router.filter()."""

    def __init__(self) -> None:
        self._methods: list[str] = []
        self._options: dict[str, dict[str, Any]] = {}
        self._lang = ""

    def methods(self, methods: list[str]) -> "Filter":
        """Only keep routes accepting at least one of these methods."""
        for method in methods:
            method = method.upper()
            if method not in self._methods:
                self._methods.append(method)
        return self

    def options(self, label: str, value: Any, type_: str = "") -> "Filter":
        """Only keep routes whose option ``label`` equals ``value`` once converted to ``type_``.

        Raises:
            ValueError: If the type is unknown or the value cannot be converted
        """
        type_ = type_ or "string"
        if type_ not in TYPES:
            raise ValueError(f'Error: type "{type_}" must be in > {", ".join(TYPES)}')
        self._options[label] = {
            "label": label,
            "value": coerce(value, type_),
            "type": type_,
        }
        return self

    def lang(self, lang: str) -> "Filter":
        """Language of the returned routes; the current route language when not set."""
        self._lang = lang
        return self

    def export(self) -> dict[str, Any]:
        return {
            "methods": list(self._methods),
            "options": [dict(option) for option in self._options.values()],
            "lang": self._lang,
        }

    def match_options(self, options: dict[str, Any]) -> bool:
        """Check a route option bag against every option criterion."""
        for criterion in self._options.values():
            value = options.get(criterion["label"])
            if value is None or isinstance(value, (dict, list)):
                return False
            try:
                value = coerce(value, criterion["type"])
            except (TypeError, ValueError):
                return False
            if value != criterion["value"]:
                return False
        return True

    def match_methods(self, methods: list[str]) -> bool:
        """Check a route method set against the requested methods.

        A route without declared methods accepts every method.
        """
        if not self._methods or not methods:
            return True
        return any(method in methods for method in self._methods)
