"""Controller dispatch.

Resolves the controller reference stored on a route and calls it:
- ``package.module::function`` calls a module-level function
- ``package.module.Class::method`` calls a static/class method ("static"
  strategy) or a method of an instance built by a factory ("factory" strategy)

Whether the application context is passed to controllers is configured
explicitly, never guessed from parameter names.
"""

import importlib
import logging
import re
from collections.abc import Callable
from typing import Any, Optional

from langroute.core.exceptions import DispatchError
from langroute.core.route import Route

logger = logging.getLogger(__name__)

STRATEGIES = ("static", "factory")

_CONTROLLER_RE = re.compile(r"^(?P<target>[a-z_][\w.]*)::(?P<method>[a-z_]\w*)$", re.IGNORECASE)

Hook = Callable[[DispatchError], Any]
Factory = Callable[[type, Any], Any]


def _default_factory(cls: type, context: Any) -> Any:
    return cls() if context is None else cls(context)


class Dispatcher:
    """Loads and calls route controllers."""

    def __init__(
        self,
        context: Any = None,
        strategy: str = "static",
        factory: Optional[Factory] = None,
        inject_context: bool = False,
    ):
        """Initialize the dispatcher.

        Args:
            context: Application object handed to factories and, with
                     inject_context, to controllers
            strategy: "static" to call class attributes directly, "factory"
                      to call methods of an instance built per call
            factory: Builds controller instances as factory(cls, context);
                     defaults to cls(context), or cls() without context
            inject_context: Call controllers with the context as only argument

        Raises:
            ValueError: If the strategy is unknown
        """
        if strategy not in STRATEGIES:
            raise ValueError(f"Invalid strategy: {strategy}. Must be one of {list(STRATEGIES)}")
        self.context = context
        self.strategy = strategy
        self.factory = factory or _default_factory
        self.inject_context = inject_context
        self.allowed_namespaces: list[str] = []
        self._fallbacks: dict[int, str] = {404: "", 500: ""}
        self._hooks: dict[int, Optional[Hook]] = {404: None, 500: None}

    def set_fallback_not_found(self, controller: str, hook: Optional[Hook] = None) -> "Dispatcher":
        """Controller loaded when a route has no controller (404)."""
        self._fallbacks[404] = controller
        self._hooks[404] = hook
        return self

    def set_fallback_not_callable(self, controller: str, hook: Optional[Hook] = None) -> "Dispatcher":
        """Controller loaded when a controller cannot be called (500)."""
        self._fallbacks[500] = controller
        self._hooks[500] = hook
        return self

    def set_allowed_namespaces(self, namespaces: list[str]) -> "Dispatcher":
        """Only load controllers whose dotted path starts with one of these."""
        for namespace in namespaces:
            if namespace and namespace not in self.allowed_namespaces:
                self.allowed_namespaces.append(namespace)
        return self

    def dispatch(self, route: Route) -> Any:
        """Call the controller of a matched route (the 404 fallback for the empty route)."""
        return self.load(route.controller)

    def load(self, controller: str) -> Any:
        """Resolve and call a controller reference.

        Args:
            controller: Reference such as "app.pages.Home::index"

        Returns:
            The controller result, the fallback result, or None
        """
        if not controller:
            return self._fail(controller, 404, "Controller not found")

        match = _CONTROLLER_RE.match(controller)
        if not match:
            return self._fail(controller, 500, f"Pattern does not match {controller}")

        target = match.group("target")
        method = match.group("method")

        if self.allowed_namespaces and not any(
            target.startswith(namespace) for namespace in self.allowed_namespaces
        ):
            return self._fail(controller, 500, f"Namespace is not allowed {controller}")

        try:
            owner = self._resolve(target)
        except (ImportError, AttributeError) as e:
            return self._fail(controller, 500, f"Controller is not callable {controller}: {e}")

        try:
            handler = self._handler(owner, method)
        except AttributeError:
            handler = None
        if not callable(handler):
            return self._fail(controller, 500, f"Controller is not callable {controller}")

        logger.debug(f"Dispatching to {controller}", extra={"controller": controller})
        return handler(self.context) if self.inject_context else handler()

    def _handler(self, owner: Any, method: str) -> Any:
        if self.strategy == "factory" and isinstance(owner, type):
            instance = self.factory(owner, self.context)
            return getattr(instance, method)
        return getattr(owner, method)

    @staticmethod
    def _resolve(target: str) -> Any:
        """Import the longest importable module prefix of a dotted path and walk the rest."""
        parts = target.split(".")
        for index in range(len(parts), 0, -1):
            module_name = ".".join(parts[:index])
            try:
                obj = importlib.import_module(module_name)
            except ModuleNotFoundError as e:
                # Only a missing prefix module means "try a shorter prefix"
                if e.name is None or not module_name.startswith(e.name):
                    raise
                continue
            for attribute in parts[index:]:
                obj = getattr(obj, attribute)
            return obj
        raise ImportError(f"No module found for {target}")

    def _fail(self, controller: str, code: int, message: str) -> Any:
        error = DispatchError(f"DispatchError : {message}", code)
        logger.warning(str(error), extra={"controller": controller, "code": code})

        hook = self._hooks[code]
        if hook is not None:
            hook(error)

        fallback = self._fallbacks[code]
        if fallback and fallback != controller:
            return self.load(fallback)
        return None
