"""Shared fixtures for integration tests."""

from collections.abc import AsyncGenerator

import pytest
from aiohttp import web
from aiohttp.test_utils import TestClient, TestServer

from langroute.core.dispatch import Dispatcher
from langroute.core.request import RequestContext
from langroute.core.router import Router
from langroute.core.table import RouteTable

CONTROLLERS = "tests.fixtures.controllers.ControllerTest"


@pytest.fixture
def routed_app(route_table: RouteTable) -> web.Application:
    """Application answering every path through the route table."""
    app = web.Application()

    async def handler(request: web.Request) -> web.Response:
        """Match, dispatch and describe the request."""
        router = Router(route_table, RequestContext.from_aiohttp(request), default_lang="FR").run()
        route = router.current()

        dispatcher = Dispatcher().set_fallback_not_found(f"{CONTROLLERS}::not_found")
        result = dispatcher.dispatch(route)

        return web.json_response(
            {
                "id": route.id,
                "lang": route.lang,
                "result": result,
                "params": route.rewrite_params,
                "query": route.query_params,
                "alternates": {
                    lang: router.switch_lang(lang, full=True).get_url()
                    for lang in (route.entry.langs if route.entry else [])
                },
                "errors": [str(error) for error in router.errors],
            },
            status=200 if route.id else 404,
        )

    app.router.add_route("*", "/{tail:.*}", handler)
    return app


@pytest.fixture
async def client(routed_app: web.Application) -> AsyncGenerator[TestClient, None]:
    """Test client for the routed application."""
    client = TestClient(TestServer(routed_app))
    await client.start_server()
    yield client
    await client.close()
