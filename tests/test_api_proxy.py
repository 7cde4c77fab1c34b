"""Tests for the /api/proxy endpoint.

No real network calls are made: upstream pages are served by ``respx``.
"""

from __future__ import annotations

import httpx
import pytest
import respx
from fastapi.testclient import TestClient

from pageproxy.api.app import CORS_HEADERS, create_app


_HTML = '<html><body><a href="about.html">About</a><img src="/logo.png"></body></html>'


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def client():
    """Return a TestClient around a fresh app instance."""
    with TestClient(create_app(), raise_server_exceptions=True) as c:
        yield c


@pytest.fixture()
def upstream():
    """Mock the proxy's outbound requests.

    The TestClient talks to the app over its own ASGI transport, which
    ``respx`` does not intercept.
    """
    with respx.mock(assert_all_called=False) as mock:
        yield mock


def _assert_cors(resp) -> None:
    for name, value in CORS_HEADERS.items():
        assert resp.headers[name] == value


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestProxySuccess:
    def test_rewrites_relative_references(self, client, upstream):
        upstream.get("https://site.example/docs/index.html").mock(
            return_value=httpx.Response(200, html=_HTML)
        )
        resp = client.get("/api/proxy", params={"url": "https://site.example/docs/index.html"})

        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert "error" not in data
        assert 'href="https://site.example/docs/about.html"' in data["content"]
        assert 'src="https://site.example/logo.png"' in data["content"]
        _assert_cors(resp)


class TestProxyFailures:
    def test_upstream_404_is_still_http_200(self, client, upstream):
        upstream.get("https://site.example/gone").mock(return_value=httpx.Response(404))
        resp = client.get("/api/proxy", params={"url": "https://site.example/gone"})

        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is False
        assert data["error"]
        assert "404" in data["content"]
        _assert_cors(resp)

    def test_non_html_content(self, client, upstream):
        upstream.get("https://site.example/file.pdf").mock(
            return_value=httpx.Response(
                200, content=b"%PDF", headers={"content-type": "application/pdf"}
            )
        )
        resp = client.get("/api/proxy", params={"url": "https://site.example/file.pdf"})

        assert resp.status_code == 200
        assert "Only HTML pages are supported" in resp.json()["error"]

    def test_connection_error(self, client, upstream):
        upstream.get("https://down.example/").mock(
            side_effect=httpx.ConnectError("[Errno 111] Connection refused")
        )
        resp = client.get("/api/proxy", params={"url": "https://down.example/"})

        assert resp.status_code == 200
        assert resp.json()["error"].startswith("Failed to fetch the page")

    def test_invalid_url(self, client):
        resp = client.get("/api/proxy", params={"url": "not-a-url"})

        assert resp.status_code == 200
        assert resp.json()["error"] == "Invalid URL: missing scheme"

    @pytest.mark.parametrize("url", ["http://xn--zz.com/", "http://site.example:99999/"])
    def test_unencodable_url_is_still_http_200(self, url):
        with TestClient(create_app(), raise_server_exceptions=False) as c:
            resp = c.get("/api/proxy", params={"url": url})

        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is False
        assert data["error"].startswith("Invalid URL:")
        _assert_cors(resp)

    def test_missing_url_parameter(self, client):
        resp = client.get("/api/proxy")

        assert resp.status_code == 200
        data = resp.json()
        assert data == {
            "success": False,
            "error": "URL parameter is required",
            "content": data["content"],
        }
        assert data["content"]
        _assert_cors(resp)

    def test_blank_url_parameter(self, client):
        resp = client.get("/api/proxy", params={"url": "   "})
        assert resp.json()["error"] == "URL parameter is required"


class TestPreflight:
    def test_options_returns_empty_200(self, client):
        resp = client.options("/api/proxy")

        assert resp.status_code == 200
        assert resp.content == b""
        _assert_cors(resp)

    def test_browser_preflight(self, client):
        resp = client.options(
            "/api/proxy",
            headers={
                "Origin": "https://embedder.example",
                "Access-Control-Request-Method": "GET",
            },
        )

        assert resp.status_code == 200
        assert resp.headers["Access-Control-Allow-Origin"] == "*"
