"""Route source loading.

Builds route tables from:
- In-memory mappings
- YAML and JSON files (merged recursively, optionally prefixed per file)
- Exported tables (cache), skipping template compilation
"""

import json
import logging
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import yaml

from langroute.core.cache import RouteTableStore
from langroute.core.config import LangrouteConfig, RouterConfig
from langroute.core.exceptions import LoaderException, ParserException
from langroute.core.parser import Parser, merge_recursive
from langroute.core.table import RouteTable

logger = logging.getLogger(__name__)

PathList = str | Path | list[str | Path] | Mapping[str | int, str | Path]


class Loader:
    """Loads route definitions and compiles them into a RouteTable."""

    def __init__(self, config: RouterConfig | None = None):
        """Initialize the loader.

        Args:
            config: Router configuration (reserved labels, base path)
        """
        self.config = config or RouterConfig()

    def _parser(self) -> Parser:
        return Parser(
            controller_label=self.config.controller_label,
            options_label=self.config.options_label,
            methods_label=self.config.methods_label,
        )

    def from_cache(self, exported: dict[str, Any]) -> RouteTable:
        """Restore a table exported with RouteTable.to_dict().

        Raises:
            LoaderException: If the export is empty or not a mapping
        """
        if not exported or not isinstance(exported, dict):
            raise LoaderException("Cached routes empty or not a mapping")
        try:
            return self._parser().set_from_cache(exported).get()
        except (KeyError, TypeError) as e:
            raise LoaderException(f"Cached routes are malformed: {e}") from e

    def from_array(self, routes: dict[str, Any], base_path: str | None = None) -> RouteTable:
        """Compile route definitions given as a mapping.

        Args:
            routes: Route definitions
            base_path: Path prefix (the configured one if None)

        Raises:
            LoaderException: If the definitions are empty or not a mapping
            ParserException: If a definition is invalid
        """
        if not routes or not isinstance(routes, dict):
            raise LoaderException("Routes empty or not a mapping")

        parser = self._parser()
        parser.add_routes(routes)
        parser.set_base_path(self.config.base_path if base_path is None else base_path)
        return parser.get()

    def from_yaml(self, paths: PathList, base_path: str | None = None) -> RouteTable:
        """Compile route definitions from YAML files.

        Args:
            paths: A path, a list of paths, or a mapping {prefix: path}; a
                   non-numeric prefix is prepended to every route id of its file
            base_path: Path prefix (the configured one if None)
        """
        return self.from_array(self._read(paths, "Yaml", self._parse_yaml), base_path)

    def from_json(self, paths: PathList, base_path: str | None = None) -> RouteTable:
        """Compile route definitions from JSON files (same arguments as from_yaml)."""
        return self.from_array(self._read(paths, "Json", self._parse_json), base_path)

    def from_sources(self, sources: list[str] | None = None) -> RouteTable:
        """Compile the given (or configured) files, choosing the format by extension.

        Raises:
            LoaderException: If no sources are given or configured
        """
        sources = sources if sources is not None else self.config.sources
        if not sources:
            raise LoaderException("No route sources configured")

        routes: dict[str, Any] = {}
        for source in sources:
            parse = self._parse_json if Path(source).suffix.lower() == ".json" else self._parse_yaml
            routes = merge_recursive(routes, self._read([source], "Route", parse), concat_lists=True)
        return self.from_array(routes)

    def _read(self, paths: PathList, kind: str, parse: Callable[[str], Any]) -> dict[str, Any]:
        if not paths:
            raise LoaderException(f"No {kind} files found")

        if isinstance(paths, (str, Path)):
            items = [(0, paths)]
        elif isinstance(paths, Mapping):
            items = list(paths.items())
        else:
            items = list(enumerate(paths))

        routes: dict[str, Any] = {}
        for prefix, path in items:
            path = Path(path)
            if not path.is_file():
                raise LoaderException(f"File does not exist: {path}")

            try:
                content = parse(path.read_text(encoding="utf-8"))
            except (OSError, ValueError, yaml.YAMLError) as e:
                raise LoaderException(f"Cannot read {kind} file {path}: {e}") from e

            if not content or not isinstance(content, dict):
                logger.warning(f"Skipping empty route file {path}")
                continue

            if not isinstance(prefix, int) and not str(prefix).isdigit():
                content = {f"{prefix}{route_id}": definition for route_id, definition in content.items()}

            routes = merge_recursive(routes, content, concat_lists=True)
        return routes

    @staticmethod
    def _parse_yaml(text: str) -> Any:
        return yaml.safe_load(text)

    @staticmethod
    def _parse_json(text: str) -> Any:
        return json.loads(text)


def load_routes(config: LangrouteConfig) -> RouteTable:
    """Compile the configured route sources (convenience function).

    Args:
        config: Application configuration

    Returns:
        RouteTable instance
    """
    return Loader(config.router).from_sources()


async def load_cached(store: RouteTableStore, config: LangrouteConfig) -> RouteTable:
    """Get the route table from a store, compiling and storing it on a miss.

    Args:
        store: Connected route table store
        config: Application configuration

    Returns:
        RouteTable instance

    Raises:
        LoaderException: If the table is not cached and the sources cannot be read
        ParserException: If the sources hold an invalid definition
    """
    table = await store.get(config.cache.key)
    if table is not None:
        logger.info(f"Route table {config.cache.key} loaded from cache ({len(table)} routes)")
        return table

    try:
        table = load_routes(config)
    except (LoaderException, ParserException):
        logger.exception("Failed to compile route table")
        raise

    await store.set(config.cache.key, table, ttl=config.cache.ttl)
    return table
