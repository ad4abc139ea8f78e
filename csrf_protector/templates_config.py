"""Jinja2 template configuration with CSRF context.

Templates get the token field name and the newest session token, so forms
rendered on the server already carry a valid token before client script runs.
"""

from pathlib import Path
from typing import Optional

from fastapi import Request
from fastapi.templating import Jinja2Templates

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


def get_csrf_token(request: Request) -> Optional[str]:
    """Newest token queued for this session, or None."""
    protector = getattr(request.app.state, "csrf_protector", None)
    if protector is None or "session" not in request.scope:
        return None
    tokens = request.session.get(protector.config.token_name)
    if isinstance(tokens, list) and tokens:
        return tokens[-1]
    return None


class TemplatesWithGlobals(Jinja2Templates):
    """Extended Jinja2Templates with automatic CSRF context injection."""

    def TemplateResponse(self, request: Request, name: str, context: dict = None, **kwargs):
        """Create template response with CSRF token context.

        Args:
            request: FastAPI request object
            name: Template name
            context: Template context dict
            **kwargs: Additional arguments for TemplateResponse

        Returns:
            TemplateResponse with enhanced context
        """
        if context is None:
            context = {}

        context["request"] = request

        protector = getattr(request.app.state, "csrf_protector", None)
        if protector is not None:
            context["csrf_token_name"] = protector.config.token_name
            context["csrf_token"] = get_csrf_token(request)

        return super().TemplateResponse(request, name, context, **kwargs)


# Shared templates instance for all routes
templates = TemplatesWithGlobals(directory=str(TEMPLATES_DIR))
