"""FastAPI application factory.

CORS
----
The proxy is meant to be called from browser pages on any origin, so every
response carries the same wildcard CORS headers.  They are attached by a
small HTTP middleware rather than ``CORSMiddleware`` so that preflight
requests reach the router's ``OPTIONS`` handler and get an empty body.

Routers
-------
    /api/proxy  — fetch a page and rewrite its relative references
"""

from __future__ import annotations

from typing import Awaitable, Callable

from fastapi import FastAPI, Request, Response

from pageproxy import __version__
from pageproxy.api.routers import proxy as proxy_router

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="Page Proxy",
        description=(
            "Fetches a remote HTML page and returns it with every relative "
            "link, image, stylesheet, script, CSS url() and srcset candidate "
            "rewritten to an absolute URL."
        ),
        version=__version__,
    )

    @app.middleware("http")
    async def add_cors_headers(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    app.include_router(proxy_router.router, prefix="/api/proxy", tags=["proxy"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn pageproxy.api.app:app --reload
app = create_app()
