"""Routing engine.

This module implements the per-request router including:
- Route matching (first match in table order, method filtering, memoization)
- URL generation (route, url, switch_lang, switch)
- Overloaded parameter translations for language switches
- Option based route search
- Base URL, host and protocol handling
"""

import logging
import time
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote_plus

from langroute.core.filter import Filter
from langroute.core.logging import RouterLogger
from langroute.core.metrics import RouterMetrics
from langroute.core.parser import clean, merge_recursive, query_params, validate_host_name
from langroute.core.request import RequestContext
from langroute.core.route import DebugHook, Route
from langroute.core.table import RouteTable

logger = logging.getLogger(__name__)

REQUEST_SCHEMES = ("http", "https", "ftp")


class Router:
    """Matches request paths to routes and builds URLs.

    A Router holds per-request state (lookup cache, current route, overloaded
    parameters) and must not be shared between concurrent requests. The
    RouteTable it reads is immutable and can be shared freely.
    """

    def __init__(
        self,
        table: RouteTable,
        request: Optional[RequestContext] = None,
        default_lang: str = "",
        base_url: Optional[str] = None,
        metrics: Optional[RouterMetrics] = None,
        structured_logger: Optional[RouterLogger] = None,
    ):
        """Initialize the router.

        Args:
            table: Compiled route table
            request: Current request context (an empty GET request if None)
            default_lang: Language used until a route is matched
            base_url: Scheme and host for full URLs (built from the request if None)
            metrics: Optional metrics collector
            structured_logger: Optional structured logger
        """
        self.table = table
        self.request = request or RequestContext()
        self.metrics = metrics
        self.structured_logger = structured_logger

        self._method = self.request.method
        self._scheme = self.request.scheme
        self._host = self.request.host.strip("/ ")
        self._ajax = self.request.ajax
        self._base_url = ""
        self.set_base_url(base_url)

        self._current = Route("", default_lang)
        self._lookups: Dict[Tuple[str, str], Route] = {}
        self._overloaded: Dict[str, Dict[str, str]] = {}
        self._errors: List[Exception] = []
        self._debug: Optional[DebugHook] = None

        if self.metrics:
            self.metrics.set_route_count(len(table))

    def run(self) -> "Router":
        """Match the request path and make the result the current route."""
        route = self.find(self.request.path)
        if route.id:
            self._current = route
            self._current.set_query_params(query_params(self.request.query_string))
        return self

    def current(self) -> Route:
        """The route matched by run(), or the empty route."""
        return self._current

    def debug(self, hook: Optional[DebugHook] = None) -> "Router":
        """Set the function receiving every recorded error; None resets it.

        The hook is also handed to every Route this router creates.
        """
        self._debug = hook
        return self

    @property
    def errors(self) -> List[Exception]:
        """URL generation errors recorded by every route this router created."""
        return list(self._errors)

    def export(self) -> Dict[str, Any]:
        """Export the route table for caching or debugging."""
        return self.table.to_dict()

    def find(self, url: str) -> Route:
        """Find the first route matching a URL.

        Routes are tried in table order, then languages in declaration order.
        Routes whose method set excludes the request method are skipped.

        Args:
            url: Raw path, may carry a query string

        Returns:
            The matched Route, or the empty Route (id == "") if nothing matched
        """
        cache_key = (self._method, url)
        cached = self._lookups.get(cache_key)
        if cached is not None:
            if self.metrics:
                self.metrics.record_cache_hit()
            return cached

        start = time.perf_counter()
        queries = query_params(url, extract=True)
        path = clean(url)

        route = Route("", "")
        for entry in self.table:
            if not entry.accepts(self._method):
                continue

            for lang in entry.langs:
                params = entry.routes[lang].match(path)
                if params is None:
                    continue

                route = self._bind(Route(entry.id, lang, entry))
                route.set_rewrite_params(params)
                route.set_query_params(queries)
                break

            if route.id:
                break

        if self.metrics:
            self.metrics.record_lookup(bool(route.id), time.perf_counter() - start)
        if self.structured_logger:
            self.structured_logger.log_lookup(
                self._method, path, route.id, route.lang, route.rewrite_params
            )

        self._lookups[cache_key] = route
        return route

    def route(self, route_id: str, lang: str = "") -> Route:
        """Get a route by identifier.

        Args:
            route_id: Route identifier
            lang: Language (the current route language if empty)

        Returns:
            Route without parameters
        """
        lang = lang or self._current.lang
        return self._bind(Route(route_id, lang, self.table.get(route_id)))

    def url(
        self,
        route_id: str,
        lang: str = "",
        rewrite: Optional[Dict[str, Any]] = None,
        get: Optional[Dict[str, Any]] = None,
        full: bool = False,
    ) -> Route:
        """Build a route with its parameters.

        Args:
            route_id: Route identifier
            lang: Language (the current route language if empty)
            rewrite: Path parameters
            get: Query parameters
            full: Render scheme and host

        Returns:
            Route ready for get_url()
        """
        route = self.route(route_id, lang)
        route.set_query_params(get or {})
        route.set_rewrite_params(rewrite or {})
        route.set_full_scheme(full)
        return route

    def switch_lang(self, lang: str, full: bool = False) -> Route:
        """The current route in another language.

        Current path parameters are kept, replaced by the overloaded
        translations registered for the target language.
        """
        route = self.route(self._current.id, lang)
        route.set_query_params(self._current.query_params)
        route.set_full_scheme(full)
        route.set_rewrite_params(
            merge_recursive(self._current.rewrite_params, self._overloaded.get(lang, {}))
        )
        return route

    def switch(
        self,
        lang: str,
        rewrite: Optional[Dict[str, Any]] = None,
        get: Optional[Dict[str, Any]] = None,
        full: bool = False,
    ) -> Route:
        """The current route in another language with replaced parameters.

        Args:
            lang: Target language
            rewrite: Path parameters overriding translations and current values
            get: Query parameters overriding current ones; None removes a key
            full: Render scheme and host

        Returns:
            Route ready for get_url()
        """
        route = self.route(self._current.id, lang)
        route.set_full_scheme(full)

        queries = {**self._current.query_params, **(get or {})}
        route.set_query_params({key: value for key, value in queries.items() if value is not None})

        route.set_rewrite_params(
            merge_recursive(
                self._current.rewrite_params,
                self._overloaded.get(lang, {}),
                rewrite or {},
            )
        )
        return route

    def filter(self, criteria: Filter) -> List[Route]:
        """Search routes by methods and option values.

        Args:
            criteria: Filter describing the wanted routes

        Returns:
            Matching routes, in table order
        """
        lang = criteria.export()["lang"] or self._current.lang
        return [
            self._bind(Route(entry.id, lang, entry))
            for entry in self.table
            if criteria.match_methods(entry.methods) and criteria.match_options(entry.options)
        ]

    @property
    def overloaded_params(self) -> Dict[str, Dict[str, str]]:
        return {lang: dict(params) for lang, params in self._overloaded.items()}

    def overload_params(self, translations: Dict[str, Dict[str, Any]]) -> "Router":
        """Register translated path parameters used by language switches.

        Args:
            translations: {lang: {param_name: value}}, values are URL-encoded
        """
        for lang, params in translations.items():
            for name, value in params.items():
                self._overloaded.setdefault(lang, {})[name] = quote_plus(str(value))
        return self

    def reset_overloaded_params(self) -> "Router":
        self._overloaded = {}
        return self

    def overload_get(self, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Merge request parameters with the current route parameters.

        Args:
            params: Parameters already known to the caller (e.g. parsed query)

        Returns:
            New mapping: params, then current query parameters, then current
            path parameters, later ones winning
        """
        return merge_recursive(
            params or {}, self._current.query_params, self._current.rewrite_params
        )

    @property
    def method(self) -> str:
        return self._method

    @method.setter
    def method(self, method: str) -> None:
        self._method = method.upper()

    @property
    def host(self) -> str:
        return self._host

    def set_host(self, host: str) -> "Router":
        """Force the host, ignored if it is not a valid host name."""
        position = host.find("//")
        if position != -1:
            host = host[position + 2 :]
        host = host.strip("/ ")

        if validate_host_name(host):
            self._host = host
        else:
            logger.warning(f"Ignoring invalid host name: {host}")
        return self

    @property
    def protocol(self) -> str:
        return self._scheme

    def set_protocol(self, scheme: str) -> "Router":
        """Force the scheme: http, https, ftp or '//' (protocol relative)."""
        if scheme == "//" or scheme in REQUEST_SCHEMES:
            self._scheme = scheme
        return self

    @property
    def base_url(self) -> str:
        return self._base_url

    def set_base_url(self, custom: Optional[str] = None) -> "Router":
        """Set the base URL, or build it from the scheme and host when None."""
        if custom is not None:
            self._base_url = custom
        else:
            self.build_base_url()
        return self

    def build_base_url(self, inherit_protocol: bool = False, custom_protocol: Optional[str] = None) -> str:
        """Build the base URL from the scheme and host and make it current.

        Args:
            inherit_protocol: Build a protocol-relative URL ('//host')
            custom_protocol: Scheme to use instead of the request one

        Returns:
            The new base URL
        """
        protocol = "//" if inherit_protocol else self._scheme
        if custom_protocol is not None and (custom_protocol == "//" or custom_protocol in REQUEST_SCHEMES):
            protocol = custom_protocol

        separator = "" if protocol == "//" else "://"
        self._base_url = f"{protocol}{separator}{self._host.strip('/ ')}"
        return self._base_url

    def get_raw_current_url(self, full: bool = False) -> str:
        """The request path as received (not escaped for display)."""
        uri = "/" + self.request.path
        if self.request.query_string:
            uri = f"{uri}?{self.request.query_string}"
        return self._base_url + uri if full else uri

    def is_ajax_request(self) -> bool:
        return self._ajax

    def set_ajax_request(self, status: bool) -> "Router":
        self._ajax = status
        return self

    @property
    def http_accept(self) -> str:
        return self.request.http_accept

    @property
    def server_root_path(self) -> str:
        """Document root of the server, empty outside a server context."""
        return self.request.document_root

    @property
    def script_uri(self) -> str:
        return self.request.script_uri

    @property
    def script_url(self) -> str:
        return self.request.script_url

    def _bind(self, route: Route) -> Route:
        route.debug(self._on_route_error)
        route.set_base_url(self._base_url)
        return route

    def _on_route_error(self, error: Exception) -> None:
        self._errors.append(error)
        if self.metrics:
            self.metrics.record_url_error(error)
        if self.structured_logger:
            self.structured_logger.log_generation_error(error)
        if self._debug is not None:
            self._debug(error)
