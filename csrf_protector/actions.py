"""Actions taken when a request fails CSRF validation."""

import enum
from typing import Callable, Optional

from starlette.responses import HTMLResponse, Response

from csrf_protector.context import RequestContext

FORBIDDEN_MESSAGE = "<h2>403 Access Forbidden by CSRFProtector!</h2>"
INTERNAL_ERROR_MESSAGE = "<h2>500 Internal Server Error!</h2>"


class CSRFAction(enum.IntEnum):
    """Configured response to a failed validation, by numeric id."""

    FORBIDDEN = 0
    CLEAR_PARAMETERS = 1
    REDIRECT = 2
    CUSTOM_MESSAGE = 3
    INTERNAL_ERROR = 4

    @classmethod
    def parse(cls, value) -> "CSRFAction":
        """Map a configured id to an action; unknown ids mean CLEAR_PARAMETERS."""
        if isinstance(value, cls):
            return value
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return cls.CLEAR_PARAMETERS


class ActionDispatcher:
    """Turn a failed validation into a single terminal decision.

    ``dispatch`` returns the response that replaces the application's, or
    ``None`` when the request should continue (CLEAR_PARAMETERS).
    """

    def __init__(self, error_redirection_page: str = "", custom_error_message: str = ""):
        self.error_redirection_page = error_redirection_page
        self.custom_error_message = custom_error_message
        self._handlers: dict[CSRFAction, Callable[[RequestContext], Optional[Response]]] = {
            CSRFAction.FORBIDDEN: self._forbidden,
            CSRFAction.CLEAR_PARAMETERS: self._clear_parameters,
            CSRFAction.REDIRECT: self._redirect,
            CSRFAction.CUSTOM_MESSAGE: self._custom_message,
            CSRFAction.INTERNAL_ERROR: self._internal_error,
        }

    def dispatch(self, action: CSRFAction, context: RequestContext) -> Optional[Response]:
        return self._handlers[CSRFAction.parse(action)](context)

    def _forbidden(self, context: RequestContext) -> Response:
        return HTMLResponse(FORBIDDEN_MESSAGE, status_code=403)

    def _clear_parameters(self, context: RequestContext) -> None:
        context.clear_parameters()
        return None

    def _redirect(self, context: RequestContext) -> Response:
        return Response(
            content=self.custom_error_message,
            status_code=302,
            headers={"location": self.error_redirection_page},
            media_type="text/html",
        )

    def _custom_message(self, context: RequestContext) -> Response:
        return HTMLResponse(self.custom_error_message, status_code=200)

    def _internal_error(self, context: RequestContext) -> Response:
        return HTMLResponse(INTERNAL_ERROR_MESSAGE, status_code=500)
