"""Unit tests for controller dispatch."""

from unittest.mock import Mock

import pytest

from langroute.core.dispatch import Dispatcher
from langroute.core.exceptions import DispatchError
from langroute.core.route import Route
from langroute.core.router import Router

CONTROLLERS = "tests.fixtures.controllers"


class TestStaticStrategy:
    """Tests for calling functions and class attributes directly."""

    def test_module_function(self):
        """Test a module-level function."""
        assert Dispatcher().load(f"{CONTROLLERS}::home") == "home"

    def test_static_method(self):
        """Test a static method of a class."""
        assert Dispatcher().load(f"{CONTROLLERS}.ControllerTest::root") == "root"

    def test_inject_context(self):
        """Test the context is passed when configured."""
        dispatcher = Dispatcher(context="app", inject_context=True)

        assert dispatcher.load(f"{CONTROLLERS}::with_context") == "home:app"

    def test_dispatch_route(self, router: Router):
        """Test dispatching a matched route."""
        route = router.find("/fr/test-arguments/a/b")

        assert Dispatcher().dispatch(route) == "arguments"


class TestFactoryStrategy:
    """Tests for calling methods of built instances."""

    def test_default_factory(self):
        """Test instances receive the context."""
        dispatcher = Dispatcher(context="app", strategy="factory")

        assert dispatcher.load(f"{CONTROLLERS}.ControllerTest::page") == "page:app"

    def test_default_factory_without_context(self):
        """Test instances are built without arguments when there is no context."""
        assert Dispatcher(strategy="factory").load(f"{CONTROLLERS}.ControllerTest::page") == "page:None"

    def test_custom_factory_and_injection(self):
        """Test a custom factory and context injection together."""
        factory = Mock(side_effect=lambda cls, context: cls(f"built-{context}"))
        dispatcher = Dispatcher(context="app", strategy="factory", factory=factory, inject_context=True)

        assert dispatcher.load(f"{CONTROLLERS}.ControllerTest::page_with") == "page_with:built-app:app"
        factory.assert_called_once()

    def test_functions_are_called_directly(self):
        """Test module functions do not go through the factory."""
        factory = Mock()
        dispatcher = Dispatcher(strategy="factory", factory=factory)

        assert dispatcher.load(f"{CONTROLLERS}::home") == "home"
        factory.assert_not_called()

    def test_invalid_strategy(self):
        """Test an unknown strategy is rejected."""
        with pytest.raises(ValueError, match="Invalid strategy"):
            Dispatcher(strategy="reflection")


class TestFailures:
    """Tests for 404 and 500 handling."""

    def test_not_found(self):
        """Test the empty route uses the not-found fallback."""
        errors = []
        dispatcher = Dispatcher().set_fallback_not_found(
            f"{CONTROLLERS}.ControllerTest::not_found", errors.append
        )

        assert dispatcher.dispatch(Route("", "FR")) == "not found"
        assert len(errors) == 1
        assert isinstance(errors[0], DispatchError)
        assert errors[0].code == 404

    def test_not_found_without_fallback(self):
        """Test nothing is called without a fallback."""
        assert Dispatcher().load("") is None

    @pytest.mark.parametrize(
        "controller",
        [
            "no-separator",
            f"{CONTROLLERS}::",
            f"{CONTROLLERS}::missing",
            f"{CONTROLLERS}.Missing::root",
            "missing.module::home",
            f"{CONTROLLERS}.ControllerTest::not_callable",
        ],
    )
    def test_not_callable(self, controller: str):
        """Test unusable references use the not-callable fallback."""
        errors = []
        dispatcher = Dispatcher().set_fallback_not_callable(f"{CONTROLLERS}.ControllerTest::error", errors.append)

        assert dispatcher.load(controller) == "error"
        assert [error.code for error in errors] == [500]

    def test_failing_fallback_is_not_retried(self):
        """Test a fallback that fails itself is not loaded again."""
        errors = []
        dispatcher = Dispatcher().set_fallback_not_callable(f"{CONTROLLERS}::missing", errors.append)

        assert dispatcher.load(f"{CONTROLLERS}::other") is None
        assert len(errors) == 2

    def test_allowed_namespaces(self):
        """Test controllers outside every allowed namespace are refused."""
        errors = []
        dispatcher = (
            Dispatcher()
            .set_allowed_namespaces(["app.controllers", CONTROLLERS])
            .set_fallback_not_callable("", errors.append)
        )

        assert dispatcher.load(f"{CONTROLLERS}::home") == "home"
        assert dispatcher.load("json::dumps") is None
        assert "Namespace is not allowed" in str(errors[0])
