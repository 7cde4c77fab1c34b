"""Tests for the response builder (outcome → JSON envelope)."""

from __future__ import annotations

import pytest

from pageproxy.proxy.models import (
    ContentTooLarge,
    InvalidUrl,
    NetworkFailure,
    NetworkReason,
    Success,
    Timeout,
    UnsupportedContent,
    UpstreamError,
)
from pageproxy.proxy.responses import (
    MISSING_URL_ERROR,
    build_response,
    missing_url_response,
    render_fallback,
)


_FAILURES = [
    UpstreamError(status=503, status_text="Service Unavailable"),
    UnsupportedContent(content_type="image/png"),
    NetworkFailure(reason=NetworkReason.CONNECT, detail="refused"),
    Timeout(seconds=10.0),
    InvalidUrl(url="nope", reason="missing scheme"),
    ContentTooLarge(limit=1024),
]


class TestBuildResponseSuccess:
    def test_success_is_rewritten_against_base(self) -> None:
        outcome = Success(html='<img src="/a.png">', base_url="https://ex.com/dir/page.html")
        resp = build_response(outcome, target_url="https://ex.com/start")

        assert resp.success is True
        assert resp.error is None
        assert resp.content == '<img src="https://ex.com/a.png">'


class TestBuildResponseFailures:
    @pytest.mark.parametrize("outcome", _FAILURES, ids=lambda o: type(o).__name__)
    def test_every_failure_has_error_and_content(self, outcome) -> None:
        resp = build_response(outcome, target_url="https://ex.com/")

        assert resp.success is False
        assert resp.error
        assert resp.content.startswith('<div class="proxy-fallback"')

    def test_upstream_404_mentions_status(self) -> None:
        resp = build_response(UpstreamError(status=404, status_text="Not Found"))

        assert resp.error == "Failed to fetch: 404 Not Found"
        assert "404" in resp.content

    def test_unsupported_names_the_type(self) -> None:
        resp = build_response(UnsupportedContent(content_type="application/pdf"))
        assert "application/pdf" in resp.error
        assert "application/pdf" in resp.content

    def test_timeout_names_the_bound(self) -> None:
        resp = build_response(Timeout(seconds=10.0))
        assert resp.error == "Request timed out after 10 seconds"

    def test_dns_failure_is_described(self) -> None:
        resp = build_response(NetworkFailure(reason=NetworkReason.DNS))
        assert "could not be resolved" in resp.error

    def test_target_link_included(self) -> None:
        resp = build_response(Timeout(seconds=1.0), target_url="https://ex.com/a?b=1&c=2")
        assert 'href="https://ex.com/a?b=1&amp;c=2"' in resp.content

    def test_invalid_url_not_linked(self) -> None:
        resp = build_response(InvalidUrl(url="javascript:alert(1)", reason="unsupported scheme"),
                              target_url="javascript:alert(1)")
        assert "<a " not in resp.content

    def test_unknown_outcome_rejected(self) -> None:
        with pytest.raises(TypeError):
            build_response(object())  # type: ignore[arg-type]


class TestFallbackHtml:
    def test_text_is_escaped(self) -> None:
        html = render_fallback("<b>t</b>", "a & b <script>")
        assert "<b>t</b>" not in html
        assert "&lt;b&gt;t&lt;/b&gt;" in html
        assert "a &amp; b &lt;script&gt;" in html

    def test_missing_url_response(self) -> None:
        resp = missing_url_response()
        assert resp.error == MISSING_URL_ERROR
        assert resp.success is False
        assert "?url=" in resp.content
