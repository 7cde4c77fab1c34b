"""Proxy endpoint.

Routes
------
GET     /api/proxy?url=<absolute url>    → fetch, rewrite, return JSON envelope
OPTIONS /api/proxy                       → CORS preflight, empty body

Every outcome, including upstream failures and a missing ``url`` parameter,
is answered with HTTP 200 and a :class:`ProxyEnvelope`.  Clients tell
failures apart by ``success`` / ``error``, never by status code.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Response
from pydantic import BaseModel

from pageproxy.proxy import build_response, fetch_page, missing_url_response
from pageproxy.proxy.models import ProxyResponse

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class ProxyEnvelope(BaseModel):
    success: bool
    content: str
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _envelope(resp: ProxyResponse) -> ProxyEnvelope:
    return ProxyEnvelope(success=resp.success, content=resp.content, error=resp.error)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("", response_model=ProxyEnvelope, response_model_exclude_none=True)
async def proxy_page(url: Optional[str] = None) -> ProxyEnvelope:
    """Fetch *url* and return its HTML with relative references made absolute."""
    if not url or not url.strip():
        logger.info("Proxy request without a url parameter")
        return _envelope(missing_url_response())

    outcome = await fetch_page(url)
    return _envelope(build_response(outcome, target_url=url.strip()))


@router.options("")
async def proxy_preflight() -> Response:
    """Answer CORS preflight with an empty 200."""
    return Response(status_code=200)
