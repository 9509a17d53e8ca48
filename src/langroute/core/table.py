"""Route table data model.

A RouteTable is built once from declarative input (see parser.py) and is
read-only afterwards. It can be exported to a plain nested mapping and
restored from it without recompiling any template.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from langroute.core.compiler import CompiledRoute


@dataclass
class RouteEntry:
    """All language variants of one route identifier."""

    id: str
    controller: str
    methods: list[str] = field(default_factory=list)
    options: dict[str, Any] = field(default_factory=dict)
    langs: list[str] = field(default_factory=list)
    routes: dict[str, CompiledRoute] = field(default_factory=dict)

    def accepts(self, method: str) -> bool:
        """Check whether a request method is allowed (empty method set allows all)."""
        return not self.methods or method.upper() in self.methods

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "controller": self.controller,
            "methods": list(self.methods),
            "options": dict(self.options),
            "langs": list(self.langs),
            "routes": {lang: route.to_dict() for lang, route in self.routes.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RouteEntry":
        return cls(
            id=data["id"],
            controller=data["controller"],
            methods=list(data.get("methods", [])),
            options=dict(data.get("options", {})),
            langs=list(data.get("langs", [])),
            routes={
                lang: CompiledRoute.from_dict(route)
                for lang, route in data.get("routes", {}).items()
            },
        )


class RouteTable:
    """Ordered collection of route entries keyed by route identifier."""

    def __init__(self, entries: list[RouteEntry] | None = None):
        """Initialize the table.

        Args:
            entries: Route entries in declaration order
        """
        self._entries: dict[str, RouteEntry] = {}
        for entry in entries or []:
            self._entries[entry.id] = entry

    def __iter__(self) -> Iterator[RouteEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, route_id: object) -> bool:
        return route_id in self._entries

    def get(self, route_id: str) -> RouteEntry | None:
        return self._entries.get(route_id)

    @property
    def ids(self) -> list[str]:
        return list(self._entries)

    def to_dict(self) -> dict[str, Any]:
        """Export the table as a plain, JSON-serializable mapping."""
        return {route_id: entry.to_dict() for route_id, entry in self._entries.items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RouteTable":
        """Restore a table exported with to_dict()."""
        return cls([RouteEntry.from_dict(entry) for entry in data.values()])
