"""Response builder: maps every :data:`FetchOutcome` to a :class:`ProxyResponse`.

Upstream failures are data, not proxy failures.  Each non-success outcome is
rendered as a small self-contained HTML fragment the embedding page can show
in place of the target, plus a one-line ``error`` message.
"""

from __future__ import annotations

from html import escape
from typing import Optional, Tuple

from pageproxy.proxy.models import (
    ContentTooLarge,
    FetchOutcome,
    InvalidUrl,
    NetworkFailure,
    NetworkReason,
    ProxyResponse,
    Success,
    Timeout,
    UnsupportedContent,
    UpstreamError,
)
from pageproxy.proxy.rewriter import rewrite_html

MISSING_URL_ERROR = "URL parameter is required"

_NETWORK_REASONS = {
    NetworkReason.DNS: "the host name could not be resolved",
    NetworkReason.CONNECT: "the connection was refused or dropped",
    NetworkReason.TLS: "a secure connection could not be established",
    NetworkReason.PROTOCOL: "the server sent an invalid HTTP response",
    NetworkReason.TOO_MANY_REDIRECTS: "the page redirected too many times",
    NetworkReason.READ: "the connection failed while reading the page",
    NetworkReason.OTHER: "a network error occurred",
}

_FALLBACK_TEMPLATE = """\
<div class="proxy-fallback" style="font-family: system-ui, sans-serif; \
max-width: 36rem; margin: 3rem auto; padding: 1.5rem; border: 1px solid #ddd; \
border-radius: 8px; color: #333; text-align: center;">
  <h2 style="margin-top: 0;">{title}</h2>
  <p>{message}</p>{link}
</div>"""


def render_fallback(title: str, message: str, target_url: Optional[str] = None) -> str:
    """Return a fallback HTML fragment.  All text is escaped."""
    link = ""
    if target_url:
        link = (
            f'\n  <p><a href="{escape(target_url)}" target="_blank" '
            f'rel="noopener noreferrer">Open the original page</a></p>'
        )
    return _FALLBACK_TEMPLATE.format(
        title=escape(title),
        message=escape(message),
        link=link,
    )


def _describe(outcome: FetchOutcome) -> Tuple[str, str, str]:
    """Return ``(title, message, error)`` for a non-success outcome."""
    if isinstance(outcome, UpstreamError):
        status = f"{outcome.status} {outcome.status_text}".strip()
        return (
            "Page unavailable",
            f"The server responded with {status}.",
            f"Failed to fetch: {status}",
        )
    if isinstance(outcome, UnsupportedContent):
        content_type = outcome.content_type or "unknown"
        return (
            "Unsupported content",
            f"Only HTML pages can be displayed; this address returned {content_type}.",
            f"Only HTML pages are supported (got {content_type})",
        )
    if isinstance(outcome, NetworkFailure):
        reason = _NETWORK_REASONS[outcome.reason]
        return (
            "Could not reach the page",
            f"The page could not be loaded because {reason}.",
            f"Failed to fetch the page: {reason}",
        )
    if isinstance(outcome, Timeout):
        return (
            "Request timed out",
            f"The page did not respond within {outcome.seconds:g} seconds.",
            f"Request timed out after {outcome.seconds:g} seconds",
        )
    if isinstance(outcome, InvalidUrl):
        return (
            "Invalid address",
            f"{outcome.url!r} is not a valid web address ({outcome.reason}).",
            f"Invalid URL: {outcome.reason}",
        )
    if isinstance(outcome, ContentTooLarge):
        return (
            "Page too large",
            f"The page is larger than the {outcome.limit} byte limit.",
            f"Page exceeds the {outcome.limit} byte limit",
        )
    raise TypeError(f"Unknown fetch outcome: {outcome!r}")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def build_response(outcome: FetchOutcome, target_url: Optional[str] = None) -> ProxyResponse:
    """Map *outcome* to the envelope returned to callers.

    ``Success`` is rewritten against its final URL.  Every other variant gets
    fallback HTML and an error message.  *target_url* is linked from the
    fallback when given.
    """
    if isinstance(outcome, Success):
        return ProxyResponse(content=rewrite_html(outcome.html, outcome.base_url))

    title, message, error = _describe(outcome)
    link = None if isinstance(outcome, InvalidUrl) else target_url
    return ProxyResponse(content=render_fallback(title, message, link), error=error)


def missing_url_response() -> ProxyResponse:
    """Envelope for a request that did not name a target URL."""
    return ProxyResponse(
        content=render_fallback("No page requested", "Add a ?url= parameter naming the page to load."),
        error=MISSING_URL_ERROR,
    )
