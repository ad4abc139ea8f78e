"""Inject CSRF verification data into outgoing HTML.

The rewriter keeps one piece of state per response: whether the body has
been seen to be HTML. Nothing is changed until a ``<html`` marker shows up,
so JSON and other payloads pass through untouched.
"""

import html
import json
import re
from typing import Iterable

# Identifiers read by the client-side script
FIELD_TOKEN_NAME = "csrfp_hidden_data_token"
FIELD_URLS = "csrfp_hidden_data_urls"

_HTML_MARKER = re.compile(r"<html", re.IGNORECASE)
_BODY_OPEN = re.compile(r"<body[^>]*>", re.IGNORECASE)
_BODY_CLOSE = re.compile(r"</body>", re.IGNORECASE)


class ResponseRewriter:
    """Rewrite the body of a single response. Create one per response."""

    def __init__(
        self,
        token_name: str,
        url_patterns: Iterable[str],
        js_url: str = "",
        disabled_javascript_message: str = "",
    ):
        self.token_name = token_name
        self.url_patterns = list(url_patterns)
        self.js_url = js_url
        self.disabled_javascript_message = disabled_javascript_message
        self.is_html = False

    def rewrite(self, buffer: str) -> str:
        """Return ``buffer`` with the noscript warning, hidden fields and script added."""
        if not self.is_html:
            if not _HTML_MARKER.search(buffer):
                return buffer
            self.is_html = True

        noscript = f" <noscript>{self.disabled_javascript_message}</noscript>"
        buffer = _BODY_OPEN.sub(lambda match: match.group(0) + noscript, buffer, count=1)

        buffer = _BODY_CLOSE.sub(lambda match: self.hidden_fields() + match.group(0), buffer)

        if self.js_url:
            script = self.script_tag()
            buffer, count = _BODY_CLOSE.subn(lambda match: script + "\n" + match.group(0), buffer)
            # Body never closed: the script still has to load
            if not count:
                buffer += script

        return buffer

    def hidden_fields(self) -> str:
        token_field = (
            f'<input type="hidden" id="{FIELD_TOKEN_NAME}" '
            f'value="{html.escape(self.token_name, quote=True)}">'
        )
        urls_field = (
            f'<input type="hidden" id="{FIELD_URLS}" '
            f'value="{html.escape(json.dumps(self.url_patterns), quote=True)}">'
        )
        return token_field + "\n" + urls_field

    def script_tag(self) -> str:
        return f'<script type="text/javascript" src="{html.escape(self.js_url, quote=True)}"></script>'
