"""Reference rewriter: makes every relative URL in a page absolute.

No DOM or CSS AST is built.  Three scanning rules run over the raw text, in
this order:

    attributes   ``href="..."`` / ``src="..."``
    css urls     ``url(...)`` in ``<style>`` blocks and inline ``style``
    srcset       ``srcset="..."`` candidate lists

Values that are already absolute, or use a scheme that cannot be resolved,
are left byte-for-byte unchanged.  A value that fails to resolve is also left
unchanged; one bad URL never aborts the rewrite.  Every value the rewriter
emits is absolute, so running it over its own output changes nothing.
"""

from __future__ import annotations

import re
from typing import List, Tuple
from urllib.parse import urljoin

from pageproxy.proxy.models import TargetReference

# ---------------------------------------------------------------------------
# Skip lists (matched case-insensitively against the trimmed value)
# ---------------------------------------------------------------------------
ATTRIBUTE_SKIP_PREFIXES: Tuple[str, ...] = (
    "http:",
    "https:",
    "//",
    "data:",
    "mailto:",
    "javascript:",
    "#",
    "blob:",
)

CSS_SKIP_PREFIXES: Tuple[str, ...] = (
    "http:",
    "https:",
    "//",
    "data:",
    "#",
)

# ---------------------------------------------------------------------------
# Scanning rules
# ---------------------------------------------------------------------------
_ATTRIBUTE_RE = re.compile(r"""\b(href|src)=(["'])(.*?)\2""", re.IGNORECASE)
# CSS itself is case-insensitive, but lowercase-only keeps script calls such as
# ``new URL(path)`` out of reach.
_CSS_URL_RE = re.compile(r"""url\(\s*(["']?)([^"')\s]+)\1\s*\)""")
_SRCSET_RE = re.compile(r"""\b(srcset)=(["'])(.*?)\2""", re.IGNORECASE | re.DOTALL)


def is_resolvable(value: str, skip_prefixes: Tuple[str, ...] = ATTRIBUTE_SKIP_PREFIXES) -> bool:
    """Return ``True`` if *value* is a relative reference worth resolving."""
    return not value.strip().lower().startswith(skip_prefixes)


def resolve_reference(ref: TargetReference) -> str:
    """Resolve ``ref.url`` against ``ref.source`` (RFC 3986).

    Returns ``ref.url`` unchanged when either URL cannot be parsed.
    """
    try:
        return urljoin(ref.source, ref.url.strip())
    except ValueError:
        return ref.url


# ---------------------------------------------------------------------------
# Passes
# ---------------------------------------------------------------------------

def _rewrite_attributes(html: str, base_url: str) -> str:
    def _replace(match: re.Match) -> str:
        attr, value = match.group(1), match.group(3)
        if not is_resolvable(value, ATTRIBUTE_SKIP_PREFIXES):
            return match.group(0)
        absolute = resolve_reference(TargetReference(value, base_url))
        if absolute == value:
            return match.group(0)
        absolute = absolute.replace('"', "%22")
        return f'{attr}="{absolute}"'

    return _ATTRIBUTE_RE.sub(_replace, html)


def _rewrite_css_urls(html: str, base_url: str) -> str:
    def _replace(match: re.Match) -> str:
        value = match.group(2)
        if not is_resolvable(value, CSS_SKIP_PREFIXES):
            return match.group(0)
        absolute = resolve_reference(TargetReference(value, base_url))
        if absolute == value:
            return match.group(0)
        absolute = absolute.replace("'", "%27")
        return f"url('{absolute}')"

    return _CSS_URL_RE.sub(_replace, html)


def parse_srcset(value: str) -> List[Tuple[str, str]]:
    """Split a ``srcset`` value into ``(url, descriptor)`` pairs.

    A URL is a run of non-whitespace characters, so ``data:`` URLs keep their
    commas.  Commas trailing the URL end the candidate; otherwise the
    descriptor runs up to the next comma outside parentheses.  Empty
    candidates are dropped.
    """
    candidates: List[Tuple[str, str]] = []
    pos, end = 0, len(value)
    while pos < end:
        while pos < end and (value[pos].isspace() or value[pos] == ","):
            pos += 1
        if pos >= end:
            break

        start = pos
        while pos < end and not value[pos].isspace():
            pos += 1
        url = value[start:pos]
        if url.endswith(","):
            candidates.append((url.rstrip(","), ""))
            continue

        start, depth = pos, 0
        while pos < end:
            char = value[pos]
            if char == "(":
                depth += 1
            elif char == ")" and depth:
                depth -= 1
            elif char == "," and not depth:
                break
            pos += 1
        candidates.append((url, " ".join(value[start:pos].split())))
        pos += 1
    return candidates


def _rewrite_srcset(html: str, base_url: str) -> str:
    def _replace(match: re.Match) -> str:
        attr, value = match.group(1), match.group(3)
        rewritten: List[str] = []
        changed = False
        for url, descriptor in parse_srcset(value):
            if is_resolvable(url, ATTRIBUTE_SKIP_PREFIXES):
                absolute = resolve_reference(TargetReference(url, base_url))
                changed = changed or absolute != url
                url = absolute.replace('"', "%22")
            rewritten.append(f"{url} {descriptor}" if descriptor else url)
        if not changed:
            return match.group(0)
        joined = ", ".join(rewritten)
        return f'{attr}="{joined}"'

    return _SRCSET_RE.sub(_replace, html)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def rewrite_html(html: str, base_url: str) -> str:
    """Return *html* with every relative reference resolved against *base_url*."""
    if not html:
        return html
    html = _rewrite_attributes(html, base_url)
    html = _rewrite_css_urls(html, base_url)
    html = _rewrite_srcset(html, base_url)
    return html
