"""Exception hierarchy for the routing engine.

Two tiers of errors exist:
- Configuration errors (ParserException, LoaderException) are raised while
  building the route table and abort the build.
- Per-operation errors (RouteGenerationError, DispatchError) are recorded or
  handed to hooks and never propagate out of the operation that produced them.
"""


class RouterError(Exception):
    """Base class for all routing errors."""


class ParserException(RouterError):
    """Raised when route declarations cannot be compiled into a route table."""


class LoaderException(RouterError):
    """Raised when a route source is missing, empty or unreadable."""


class RouteGenerationError(RouterError):
    """Recorded on a Route when a URL cannot be rendered.

    Attributes:
        route_id: Route identifier the error belongs to
        lang: Language the URL was rendered for
        param: Offending parameter name, if any
        kind: unknown_language, missing_param or constraint_mismatch
    """

    def __init__(
        self,
        message: str,
        route_id: str = "",
        lang: str = "",
        param: str | None = None,
        kind: str = "unknown_language",
    ):
        super().__init__(message)
        self.route_id = route_id
        self.lang = lang
        self.param = param
        self.kind = kind


class DispatchError(RouterError):
    """Passed to dispatcher hooks when a controller cannot be loaded.

    Attributes:
        code: 404 when no controller is bound, 500 when it cannot be called
    """

    def __init__(self, message: str, code: int = 500):
        super().__init__(message)
        self.code = code
