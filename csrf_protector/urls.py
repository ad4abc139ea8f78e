"""Match request URLs against the GET allow-list."""

import re
from typing import Iterable

from csrf_protector.context import RequestContext


def get_current_url(context: RequestContext) -> str:
    """Rebuild ``scheme://host/path`` for the request, without the query."""
    scheme = context.scheme or "https"
    return f"{scheme}://{context.host}{context.path}"


def pattern_to_regex(pattern: str) -> re.Pattern:
    """Translate a glob where ``*`` matches any sequence into a regex.

    Everything else is literal. The regex is unanchored, so ``/api/*``
    matches anywhere in the full URL.
    """
    return re.compile("(.*)".join(re.escape(part) for part in pattern.split("*")))


def is_url_allowed(url: str, patterns: Iterable[str]) -> bool:
    """True if ``url`` matches any allow-list pattern.

    An empty pattern list allows nothing.
    """
    return any(pattern_to_regex(pattern).search(url) for pattern in patterns if pattern)
