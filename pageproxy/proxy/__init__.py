"""Proxy package — upstream fetch, reference rewriting and response building."""

from pageproxy.proxy.fetcher import fetch_page
from pageproxy.proxy.models import FetchOutcome, ProxyResponse
from pageproxy.proxy.responses import build_response, missing_url_response
from pageproxy.proxy.rewriter import rewrite_html

__all__ = [
    "fetch_page",
    "rewrite_html",
    "build_response",
    "missing_url_response",
    "FetchOutcome",
    "ProxyResponse",
]
