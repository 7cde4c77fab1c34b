"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from pageproxy.api import app

    uvicorn pageproxy.api:app --reload
"""

from pageproxy.api.app import app

__all__ = ["app"]
