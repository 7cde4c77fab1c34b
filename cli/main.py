"""Page proxy CLI — entry-point for running and exercising the proxy.

Usage:
    python cli/main.py --help

Commands:
    fetch     → fetch a page and print it with absolute references
    rewrite   → rewrite a local HTML file against a base URL
    serve     → run the HTTP endpoint under uvicorn
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from pageproxy.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import asyncio
import json
import logging
from typing import Optional

import typer

from pageproxy.config import settings
from pageproxy.proxy import build_response, fetch_page, rewrite_html
from pageproxy.proxy.fetcher import validate_url

app = typer.Typer(
    name="pageproxy",
    help="Fetch web pages with every relative reference made absolute.",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _write(text: str, output: Optional[Path]) -> None:
    if output is None:
        typer.echo(text)
        return
    output.write_text(text, encoding="utf-8")
    typer.echo(f"[write] {len(text)} chars → {output}", err=True)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@app.command("fetch")
def fetch(
    url: str = typer.Argument(..., help="Absolute URL of the page to fetch."),
    as_json: bool = typer.Option(False, "--json", help="Print the JSON envelope instead of HTML."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to this file."),
) -> None:
    """Fetch URL and print its HTML with relative references rewritten."""
    typer.echo(f"[fetch] Fetching {url!r} …", err=True)
    outcome = asyncio.run(fetch_page(url))
    resp = build_response(outcome, target_url=url)

    if as_json:
        payload = {"success": resp.success, "content": resp.content}
        if resp.error is not None:
            payload["error"] = resp.error
        _write(json.dumps(payload, indent=2), output)
    elif resp.success:
        _write(resp.content, output)

    if not resp.success:
        typer.echo(f"[fetch] Error: {resp.error}", err=True)
        raise typer.Exit(1)


@app.command("rewrite")
def rewrite(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Local HTML file."),
    base: str = typer.Option(..., "--base", help="URL the file was served from."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to this file."),
) -> None:
    """Rewrite relative references in a local HTML file against --base."""
    reason = validate_url(base)
    if reason is not None:
        typer.echo(f"[rewrite] --base must be an absolute http(s) URL: {reason}", err=True)
        raise typer.Exit(1)

    html = path.read_text(encoding="utf-8", errors="replace")
    _write(rewrite_html(html, base), output)


@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address (default: PROXY_HOST)."),
    port: Optional[int] = typer.Option(None, help="Port (default: PROXY_PORT)."),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes."),
) -> None:
    """Run the proxy HTTP endpoint."""
    import uvicorn

    uvicorn.run(
        "pageproxy.api.app:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
