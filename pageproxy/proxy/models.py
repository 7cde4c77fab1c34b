"""Data models for the proxy pipeline.

A fetch always ends in exactly one :data:`FetchOutcome` variant.  Only
:class:`Success` carries page content; every other variant describes why the
page could not be proxied and is rendered as fallback HTML by
:mod:`pageproxy.proxy.responses`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class NetworkReason(str, Enum):
    """Connection-level failure kinds reported by :class:`NetworkFailure`."""

    DNS = "dns"
    CONNECT = "connect"
    TLS = "tls"
    PROTOCOL = "protocol"
    TOO_MANY_REDIRECTS = "too_many_redirects"
    READ = "read"
    OTHER = "other"


# ---------------------------------------------------------------------------
# Fetch outcomes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Success:
    """An HTML page fetched with a 2xx status.

    ``base_url`` is the final URL after redirects.
    """

    html: str
    base_url: str


@dataclass(frozen=True)
class UpstreamError:
    status: int
    status_text: str


@dataclass(frozen=True)
class UnsupportedContent:
    content_type: str


@dataclass(frozen=True)
class NetworkFailure:
    reason: NetworkReason
    detail: str = ""


@dataclass(frozen=True)
class Timeout:
    seconds: float


@dataclass(frozen=True)
class InvalidUrl:
    url: str
    reason: str


@dataclass(frozen=True)
class ContentTooLarge:
    limit: int


FetchOutcome = Union[
    Success,
    UpstreamError,
    UnsupportedContent,
    NetworkFailure,
    Timeout,
    InvalidUrl,
    ContentTooLarge,
]


# ---------------------------------------------------------------------------
# Rewriter / response types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TargetReference:
    """A URL found in markup together with the page address it belongs to."""

    url: str
    source: str


@dataclass
class ProxyResponse:
    """The JSON envelope returned to callers.

    ``content`` is always renderable HTML.  ``error`` is set exactly when the
    page could not be proxied.
    """

    content: str
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None
