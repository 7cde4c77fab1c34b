"""Fetch orchestrator: one bounded upstream GET, classified into a FetchOutcome.

Nothing here raises for upstream trouble.  Invalid URLs, network errors,
timeouts, non-2xx statuses, non-HTML content and oversized bodies all come
back as the matching :data:`~pageproxy.proxy.models.FetchOutcome` variant.
"""

from __future__ import annotations

import asyncio
import logging
from urllib.parse import urlsplit

import httpx

from pageproxy.config import settings
from pageproxy.proxy.models import (
    ContentTooLarge,
    FetchOutcome,
    InvalidUrl,
    NetworkFailure,
    NetworkReason,
    Success,
    Timeout,
    UnsupportedContent,
    UpstreamError,
)

logger = logging.getLogger(__name__)

# Many origins reject or alter responses for non-browser clients.
BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "Cache-Control": "no-cache",
    "DNT": "1",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
}

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")


class _BodyTooLarge(Exception):
    pass


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def validate_url(raw_url: str) -> str | None:
    """Return a reason string if *raw_url* is not an absolute http(s) URL.

    Out-of-range ports and hosts httpx cannot encode (bad IDNA labels) are
    rejected here so they never reach the transport.
    """
    url = raw_url.strip()
    try:
        parts = urlsplit(url)
        parts.port
    except ValueError as exc:
        return str(exc)
    if parts.scheme.lower() not in ("http", "https"):
        return f"unsupported scheme {parts.scheme!r}" if parts.scheme else "missing scheme"
    if not parts.hostname:
        return "missing host"
    try:
        httpx.URL(url).host
    except (httpx.InvalidURL, ValueError) as exc:
        return str(exc) or "invalid host"
    return None


def _media_type(content_type: str | None) -> str:
    """``'text/html; charset=utf-8'`` → ``'text/html'``."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def _network_reason(exc: httpx.RequestError) -> NetworkReason:
    if isinstance(exc, httpx.TooManyRedirects):
        return NetworkReason.TOO_MANY_REDIRECTS
    if isinstance(exc, httpx.ProtocolError):
        return NetworkReason.PROTOCOL
    if isinstance(exc, httpx.ConnectError):
        message = str(exc).lower()
        if any(s in message for s in ("name or service", "nodename", "getaddrinfo", "name resolution")):
            return NetworkReason.DNS
        if "ssl" in message or "certificate" in message:
            return NetworkReason.TLS
        return NetworkReason.CONNECT
    if isinstance(exc, httpx.ReadError):
        return NetworkReason.READ
    return NetworkReason.OTHER


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        headers=BROWSER_HEADERS,
        timeout=settings.request_timeout,
        follow_redirects=True,
    )


async def _exchange(client: httpx.AsyncClient, url: str) -> FetchOutcome:
    """Send the GET and classify the response.  Network errors propagate."""
    async with client.stream("GET", url) as response:
        if not response.is_success:
            return UpstreamError(
                status=response.status_code,
                status_text=response.reason_phrase,
            )

        media_type = _media_type(response.headers.get("content-type"))
        if media_type not in HTML_CONTENT_TYPES:
            return UnsupportedContent(content_type=media_type)

        limit = settings.max_body_bytes
        body = bytearray()
        async for chunk in response.aiter_bytes():
            body.extend(chunk)
            if len(body) > limit:
                raise _BodyTooLarge()

        # httpx falls back to utf-8 for unknown or missing charsets.
        html = body.decode(response.encoding or "utf-8", errors="replace")
        return Success(html=html, base_url=str(response.url))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def fetch_page(raw_url: str) -> FetchOutcome:
    """Fetch *raw_url* and return exactly one :data:`FetchOutcome`.

    The whole exchange (connect, headers and body) races a timer of
    ``settings.request_timeout`` seconds.  When the timer wins the in-flight
    request is cancelled and the client is closed before returning
    :class:`Timeout`.  No retries are attempted.
    """
    reason = validate_url(raw_url)
    if reason is not None:
        logger.warning("Rejected target %r: %s", raw_url, reason)
        return InvalidUrl(url=raw_url, reason=reason)

    url = raw_url.strip()
    timeout = settings.request_timeout
    try:
        async with _client() as client:
            outcome = await asyncio.wait_for(_exchange(client, url), timeout=timeout)
    except (asyncio.TimeoutError, httpx.TimeoutException):
        logger.warning("Timed out after %ss fetching %s", timeout, url)
        return Timeout(seconds=timeout)
    except _BodyTooLarge:
        logger.warning("Body of %s exceeds %d bytes", url, settings.max_body_bytes)
        return ContentTooLarge(limit=settings.max_body_bytes)
    except (httpx.InvalidURL, httpx.UnsupportedProtocol, ValueError) as exc:
        logger.warning("Rejected target %r: %s", url, exc)
        return InvalidUrl(url=url, reason=str(exc))
    except httpx.RequestError as exc:
        reason_kind = _network_reason(exc)
        logger.warning("Network failure (%s) fetching %s: %s", reason_kind.value, url, exc)
        return NetworkFailure(reason=reason_kind, detail=str(exc))

    if isinstance(outcome, Success):
        logger.info("Fetched %s (%d chars)", outcome.base_url, len(outcome.html))
    else:
        logger.warning("Fetch of %s ended with %r", url, outcome)
    return outcome
