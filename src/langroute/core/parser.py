"""Route table construction.

This module builds the route table from declarative route definitions:
- Controller and option extraction per route identifier
- HTTP method list parsing
- Path cleaning and base path prefixing
- Template compilation per language

It also holds the small URL helpers shared by the router and loaders.
"""

import logging
import re
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qsl

from langroute.core.compiler import TemplateCompiler, delete_lost_params
from langroute.core.exceptions import ParserException
from langroute.core.table import RouteEntry, RouteTable

logger = logging.getLogger(__name__)

CONTROLLER_LABEL = "__"
OPTIONS_LABEL = "options"
METHODS_LABEL = "methods"

_HOST_RE = re.compile(
    r"^(?:[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?)(?:\.[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?)*"
    r"(?::[0-9]{1,5})?$",
    re.IGNORECASE,
)

__all__ = [
    "Parser",
    "clean",
    "delete_lost_params",
    "merge_recursive",
    "query_params",
    "validate_host_name",
]


def clean(url: str) -> str:
    """Strip whitespace and slashes at both ends and drop the query string.

    Args:
        url: Raw URL or path template

    Returns:
        Cleaned path
    """
    url = url.strip(" \t\n\r\0\x0b/")
    position = url.find("?")
    return url[:position] if position != -1 else url


def query_params(url: str, extract: bool = False) -> Dict[str, str]:
    """Parse query parameters into a flat mapping.

    Args:
        url: A query string, or a full URL when ``extract`` is set
        extract: Only parse what follows the first '?'

    Returns:
        Mapping of parameter name to value (last occurrence wins)
    """
    if extract:
        position = url.find("?")
        if position == -1:
            return {}
        url = url[position + 1 :]
    url = url.split("#", 1)[0]
    return dict(parse_qsl(url, keep_blank_values=True))


def merge_recursive(base: Dict[str, Any], *others: Dict[str, Any], concat_lists: bool = False) -> Dict[str, Any]:
    """Merge mappings recursively without mutating the inputs.

    Nested mappings are merged, scalar leaves are replaced by the later value.
    Lists are replaced, or appended when ``concat_lists`` is set.
    """
    result = dict(base)
    for other in others:
        for key, value in other.items():
            current = result.get(key)
            if isinstance(current, dict) and isinstance(value, dict):
                result[key] = merge_recursive(current, value, concat_lists=concat_lists)
            elif concat_lists and isinstance(current, list) and isinstance(value, list):
                result[key] = current + value
            else:
                result[key] = value
    return result


def validate_host_name(host: str) -> bool:
    """Check a host name (with optional port) against RFC 1123 rules."""
    name = host.rsplit(":", 1)[0] if ":" in host else host
    return 0 < len(name) <= 253 and _HOST_RE.match(host) is not None


class Parser:
    """Builds a RouteTable from declarative route definitions.

    Input shape::

        {
            "HOME": {"__": "app.pages::home", "FR": "accueil", "EN": "home"},
            "NEWS": {
                "__": "app.pages::news",
                "options": {"methods": "GET HEAD", "sitemap": True},
                "FR": "actualites[/page-{page:\\d+}]",
            },
        }
    """

    def __init__(
        self,
        controller_label: str = CONTROLLER_LABEL,
        options_label: str = OPTIONS_LABEL,
        methods_label: str = METHODS_LABEL,
    ):
        """Initialize the parser.

        Args:
            controller_label: Key holding the controller reference
            options_label: Key holding the option bag
            methods_label: Option key holding the space separated method list
        """
        self.controller_label = controller_label
        self.options_label = options_label
        self.methods_label = methods_label
        self.compiler = TemplateCompiler()
        self._base_path = ""
        self._source: Dict[str, Any] = {}
        self._table: Optional[RouteTable] = None

    def set_base_path(self, base_path: str) -> "Parser":
        """Set the path inserted between the host and every route."""
        self._base_path = base_path or ""
        return self

    def add_routes(self, routes: Dict[str, Any]) -> "Parser":
        """Add route definitions, merged recursively with the ones already added.

        Raises:
            ParserException: If the definitions are empty or not a mapping
        """
        if not routes or not isinstance(routes, dict):
            raise ParserException("Source routes empty or not a mapping")
        self._source = merge_recursive(self._source, routes, concat_lists=True)
        self._table = None
        return self

    def set_from_cache(self, exported: Dict[str, Any]) -> "Parser":
        """Use an already built table exported with RouteTable.to_dict().

        Raises:
            ParserException: If the export is empty or not a mapping
        """
        if not exported or not isinstance(exported, dict):
            raise ParserException("Prepared routes empty or not a mapping")
        self._table = RouteTable.from_dict(exported)
        return self

    def get(self) -> RouteTable:
        """Build the route table, or return the one already built.

        Returns:
            RouteTable instance

        Raises:
            ParserException: If no routes are available or a definition is invalid
        """
        if self._table is not None:
            return self._table

        if not self._source:
            raise ParserException("Parser cannot start, no routes available")

        base_path = clean(self._base_path)
        entries: List[RouteEntry] = []
        for route_id, definition in self._source.items():
            entries.append(self._build_entry(str(route_id), definition, base_path))

        self._table = RouteTable(entries)
        logger.info(
            f"Built route table with {len(self._table)} routes",
            extra={"route_count": len(self._table), "base_path": base_path},
        )
        return self._table

    def _build_entry(self, route_id: str, definition: Any, base_path: str) -> RouteEntry:
        if not isinstance(definition, dict):
            raise ParserException(f"Route definition must be a mapping in : {route_id}")

        controller = definition.get(self.controller_label)
        if not controller:
            raise ParserException(f"Controller not found in : {route_id}")
        if not isinstance(controller, str):
            raise ParserException(f"Controller must be a string in : {route_id}")

        options = definition.get(self.options_label) or {}
        if not isinstance(options, dict):
            raise ParserException(f"Options must be a mapping in : {route_id}")

        entry = RouteEntry(
            id=route_id,
            controller=controller,
            methods=self._parse_methods(options.get(self.methods_label)),
            options=dict(options),
        )

        for lang, template in definition.items():
            if lang in (self.controller_label, self.options_label):
                continue
            if template is None:
                template = ""
            if isinstance(template, (dict, list)):
                raise ParserException(f"Route template must be a string in : {route_id}, lang: {lang}")

            path = clean(str(template))
            if path and base_path:
                path = f"{base_path}/{path}"
            elif not path:
                path = base_path

            lang = str(lang)
            entry.langs.append(lang)
            entry.routes[lang] = self.compiler.compile(path, lang)

        return entry

    @staticmethod
    def _parse_methods(methods: Any) -> List[str]:
        if not methods:
            return []
        if isinstance(methods, str):
            methods = methods.split()
        parsed: List[str] = []
        for method in methods:
            method = str(method).upper()
            if method and method not in parsed:
                parsed.append(method)
        return parsed
