"""Unit tests for request contexts."""

from aiohttp.test_utils import make_mocked_request

from langroute.core.request import RequestContext


def test_defaults() -> None:
    """Test an empty GET request."""
    context = RequestContext()

    assert context.method == "GET"
    assert context.scheme == "http"
    assert context.path == ""
    assert context.http_accept == "html"


def test_normalization() -> None:
    """Test method upper-casing and path trimming."""
    context = RequestContext(method="post", path="/fr/accueil/")

    assert context.method == "POST"
    assert context.path == "fr/accueil"


def test_http_accept() -> None:
    """Test the accepted response type."""
    assert RequestContext(accept="text/html,application/json").http_accept == "html"
    assert RequestContext(accept="application/json").http_accept == "json"
    assert RequestContext(accept="application/xml;q=0.9").http_accept == "xml"
    assert RequestContext(accept="image/png").http_accept == "html"


def test_fixture_overrides() -> None:
    """Test fixture() replaces fields and keeps the others."""
    base = RequestContext(host="example.com", scheme="https")

    context = base.fixture(path="/en/home/", method="head")

    assert context.host == "example.com"
    assert context.scheme == "https"
    assert context.path == "en/home"
    assert context.method == "HEAD"
    assert base.path == ""


def test_from_environ() -> None:
    """Test building a context from a WSGI environ."""
    context = RequestContext.from_environ(
        {
            "REQUEST_METHOD": "post",
            "HTTP_HOST": "www.example.com",
            "REQUEST_URI": "/fr/caf%C3%A9/?x=1",
            "QUERY_STRING": "x=1",
            "HTTPS": "on",
            "HTTP_ACCEPT": "application/xml",
            "HTTP_X_REQUESTED_WITH": "XMLHttpRequest",
            "DOCUMENT_ROOT": "/var/www",
        }
    )

    assert context.method == "POST"
    assert context.scheme == "https"
    assert context.host == "www.example.com"
    assert context.path == "fr/café"
    assert context.query_string == "x=1"
    assert context.http_accept == "xml"
    assert context.ajax is True
    assert context.document_root == "/var/www"


def test_from_environ_path_info() -> None:
    """Test PATH_INFO and SERVER_NAME are used as fallbacks."""
    context = RequestContext.from_environ({"PATH_INFO": "/en/home", "SERVER_NAME": "localhost"})

    assert context.path == "en/home"
    assert context.host == "localhost"
    assert context.scheme == "http"
    assert context.ajax is False


def test_from_aiohttp() -> None:
    """Test building a context from an aiohttp request."""
    request = make_mocked_request(
        "GET",
        "/fr/accueil?hello=world",
        headers={
            "Host": "www.example.com",
            "Accept": "application/json",
            "X-Requested-With": "XMLHttpRequest",
            "X-Forwarded-Proto": "https",
        },
    )

    context = RequestContext.from_aiohttp(request)

    assert context.method == "GET"
    assert context.scheme == "https"
    assert context.host == "www.example.com"
    assert context.path == "fr/accueil"
    assert context.query_string == "hello=world"
    assert context.http_accept == "json"
    assert context.ajax is True
