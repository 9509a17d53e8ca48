"""Route runtime value.

A Route binds one route entry to one language, plus the rewrite and query
parameters used to render its URL. It is created per lookup or per URL
generation call and is never shared between requests.
"""

import logging
from collections.abc import Callable
from typing import Any
from urllib.parse import urlencode

from langroute.core.compiler import CompiledRoute, render_template
from langroute.core.exceptions import RouteGenerationError
from langroute.core.table import RouteEntry

logger = logging.getLogger(__name__)

DebugHook = Callable[[Exception], Any]


class Route:
    """A route identifier bound to a language and parameter values.

    The empty route (no identifier) is the canonical "not found" value;
    it renders to an empty string without recording errors.
    """

    def __init__(self, route_id: str, lang: str, entry: RouteEntry | None = None):
        """Initialize the route.

        Args:
            route_id: Route identifier, empty for the not-found route
            lang: Targeted language
            entry: Route table entry backing this route
        """
        self._id = route_id
        self._lang = lang
        self._entry = entry
        self._controller = entry.controller if entry else ""
        self._rewrites: dict[str, Any] = {}
        self._queries: dict[str, Any] = {}
        self._full = False
        self._base_url = ""
        self._errors: list[Exception] = []
        self._debug: DebugHook | None = None

    def __str__(self) -> str:
        return self.get_url()

    def __repr__(self) -> str:
        return f"Route(id={self._id!r}, lang={self._lang!r})"

    @property
    def id(self) -> str:
        return self._id

    @property
    def lang(self) -> str:
        return self._lang

    @lang.setter
    def lang(self, lang: str) -> None:
        self._lang = lang

    @property
    def controller(self) -> str:
        return self._controller

    @property
    def entry(self) -> RouteEntry | None:
        return self._entry

    @property
    def methods(self) -> list[str]:
        return list(self._entry.methods) if self._entry else []

    @property
    def options(self) -> dict[str, Any]:
        return dict(self._entry.options) if self._entry else {}

    def get_option(self, name: str) -> Any:
        """Get one option of the route entry, None if not set."""
        return self._entry.options.get(name) if self._entry else None

    @property
    def rewrite_params(self) -> dict[str, Any]:
        return dict(self._rewrites)

    @rewrite_params.setter
    def rewrite_params(self, params: dict[str, Any]) -> None:
        self._rewrites = dict(params)

    @property
    def query_params(self) -> dict[str, Any]:
        return dict(self._queries)

    @query_params.setter
    def query_params(self, params: dict[str, Any]) -> None:
        self._queries = dict(params)

    @property
    def full_scheme(self) -> bool:
        return self._full

    @full_scheme.setter
    def full_scheme(self, status: bool) -> None:
        self._full = status

    @property
    def errors(self) -> list[Exception]:
        return list(self._errors)

    def has_errors(self) -> bool:
        return bool(self._errors)

    def debug(self, hook: DebugHook | None = None) -> "Route":
        """Set the function receiving every recorded error; None resets it."""
        self._debug = hook
        return self

    def set_base_url(self, url: str) -> "Route":
        """Set the scheme and host prepended to full-scheme URLs."""
        self._base_url = url
        return self

    def set_rewrite_params(self, params: dict[str, Any]) -> "Route":
        self._rewrites = dict(params)
        return self

    def set_rewrite_param(self, name: str, value: Any) -> "Route":
        self._rewrites[name] = value
        return self

    def unset_rewrite_param(self, name: str) -> "Route":
        self._rewrites.pop(name, None)
        return self

    def set_query_params(self, params: dict[str, Any]) -> "Route":
        self._queries = dict(params)
        return self

    def set_query_param(self, name: str, value: Any) -> "Route":
        self._queries[name] = value
        return self

    def unset_query_param(self, name: str) -> "Route":
        self._queries.pop(name, None)
        return self

    def set_full_scheme(self, status: bool) -> "Route":
        self._full = status
        return self

    def get_param(self, name: str) -> Any:
        """Get a parameter value, looking at rewrite parameters first, then query ones."""
        if self._rewrites.get(name) is not None:
            return self._rewrites[name]
        if self._queries.get(name) is not None:
            return self._queries[name]
        return None

    def get_url(self) -> str:
        """Render the URL of this route.

        Returns:
            The URL ('/path?query', or 'scheme://host/path?query' in full-scheme
            mode), or an empty string when the route is empty or cannot be
            rendered. Rendering problems are recorded in ``errors``.
        """
        if not self._id:
            return ""

        if self._entry is None or self._lang not in self._entry.langs:
            self._add_error(
                RouteGenerationError(
                    f'No route defined for language "{self._lang}" for id {self._id}',
                    route_id=self._id,
                    lang=self._lang,
                )
            )
            return ""

        url = self._rewrite(self._entry.routes[self._lang])
        if url is None:
            return ""

        if self._queries:
            url = f"{url}?{urlencode(self._queries, doseq=True)}"
        url = url.strip("/-")

        base = self._base_url.rstrip("/") if self._full else ""
        return f"{base}/{url}"

    def _rewrite(self, compiled: CompiledRoute) -> str | None:
        values: dict[int, str] = {}
        for param in compiled.params:
            value = self._rewrites.get(param.name)
            if value is not None and not isinstance(value, bool) and value != "":
                value = str(value)
                if not param.matches(value):
                    self._add_error(
                        RouteGenerationError(
                            f"Route param regex not match, name: {param.name}, regex: {param.regex}, "
                            f"value: {value}, lang: {self._lang}, id: {self._id}",
                            route_id=self._id,
                            lang=self._lang,
                            param=param.name,
                            kind="constraint_mismatch",
                        )
                    )
                    return None
                values[param.key] = value
            elif not param.optional:
                self._add_error(
                    RouteGenerationError(
                        f"Route required param not found for rewrite url : {param.name}, "
                        f"lang: {self._lang}, id: {self._id}",
                        route_id=self._id,
                        lang=self._lang,
                        param=param.name,
                        kind="missing_param",
                    )
                )
                return None

        return render_template(compiled.rewrite, values)

    def _add_error(self, error: Exception) -> None:
        self._errors.append(error)
        logger.debug(
            str(error),
            extra={"route_id": self._id, "lang": self._lang},
        )
        if self._debug is not None:
            self._debug(error)
