"""Request context consumed by the router.

The router never reads process-global request state. Callers build a
RequestContext from whatever they have:
- A WSGI/CGI environ mapping
- An aiohttp request
- Explicit values (CLI, tests)
"""

from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any
from urllib.parse import unquote

from aiohttp import web


@dataclass(frozen=True)
class RequestContext:
    """Request data needed for matching and URL building."""

    method: str = "GET"
    scheme: str = "http"
    host: str = ""
    path: str = ""
    query_string: str = ""
    accept: str = ""
    ajax: bool = False
    document_root: str = ""
    script_uri: str = ""
    script_url: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "path", self.path.strip("/"))

    @property
    def http_accept(self) -> str:
        """Response type accepted by the client: html, json or xml."""
        if "text/html" in self.accept:
            return "html"
        if "application/json" in self.accept:
            return "json"
        if "application/xml" in self.accept:
            return "xml"
        return "html"

    def fixture(self, **overrides: Any) -> "RequestContext":
        """Copy of this context with some fields replaced.

        Args:
            **overrides: Field values to replace (method, host, path, ...)

        Returns:
            New RequestContext instance
        """
        return replace(self, **overrides)

    @classmethod
    def from_environ(cls, environ: Mapping[str, Any]) -> "RequestContext":
        """Create a context from a WSGI/CGI environ mapping.

        Args:
            environ: Environ mapping (REQUEST_METHOD, HTTP_HOST, PATH_INFO, ...)

        Returns:
            RequestContext instance
        """
        https = str(environ.get("HTTPS", ""))
        scheme = environ.get("wsgi.url_scheme") or ("https" if https and https != "off" else "http")

        path = environ.get("REQUEST_URI") or environ.get("PATH_INFO", "")
        path = unquote(str(path).split("?", 1)[0])

        return cls(
            method=str(environ.get("REQUEST_METHOD", "GET")),
            scheme=str(scheme),
            host=str(environ.get("HTTP_HOST") or environ.get("SERVER_NAME", "")),
            path=path,
            query_string=str(environ.get("QUERY_STRING", "")),
            accept=str(environ.get("HTTP_ACCEPT", "")),
            ajax=environ.get("HTTP_X_REQUESTED_WITH") == "XMLHttpRequest",
            document_root=str(environ.get("DOCUMENT_ROOT", "")),
            script_uri=unquote(str(environ.get("SCRIPT_URI", ""))).strip("/"),
            script_url=unquote(str(environ.get("SCRIPT_URL", ""))).strip("/"),
        )

    @classmethod
    def from_aiohttp(cls, request: web.Request) -> "RequestContext":
        """Create a context from an aiohttp request.

        Args:
            request: aiohttp Request object

        Returns:
            RequestContext instance
        """
        # Honor the proxy header when TLS is terminated upstream
        scheme = request.headers.get("X-Forwarded-Proto", "").split(",")[0].strip() or request.scheme

        return cls(
            method=request.method,
            scheme=scheme,
            host=request.host,
            path=request.path,
            query_string=request.query_string,
            accept=request.headers.get("Accept", ""),
            ajax=request.headers.get("X-Requested-With") == "XMLHttpRequest",
        )
