"""Mirror the newest CSRF token into a client-readable cookie."""

from typing import Literal, Optional

from pydantic import BaseModel, Field
from starlette.responses import Response

DEFAULT_COOKIE_EXPIRE_SECONDS = 1800


class CookieConfig(BaseModel):
    """Attributes for the token cookie. Missing keys take these defaults."""

    path: str = "/"
    domain: Optional[str] = None
    secure: bool = False
    expire: int = Field(default=DEFAULT_COOKIE_EXPIRE_SECONDS, gt=0)
    samesite: Optional[Literal["lax", "strict", "none"]] = "lax"


class CookieSynchronizer:
    """Build the ``Set-Cookie`` header carrying the current token.

    The cookie is not HttpOnly: client script reads it to attach the token to
    outgoing requests.
    """

    def __init__(self, cookie_name: str, config: CookieConfig):
        self.cookie_name = cookie_name
        self.config = config

    def apply(self, response: Response, token: str) -> None:
        """Set or overwrite the token cookie on a response."""
        response.set_cookie(
            key=self.cookie_name,
            value=token,
            max_age=self.config.expire,
            expires=self.config.expire,
            path=self.config.path or "/",
            domain=self.config.domain,
            secure=self.config.secure,
            httponly=False,
            samesite=self.config.samesite,
        )

    def header_value(self, token: str) -> str:
        """Raw ``Set-Cookie`` value, for use on already-started responses."""
        response = Response()
        self.apply(response, token)
        return response.headers["set-cookie"]
