"""Request-scoped state seen by the CSRF protector."""

from dataclasses import dataclass, field
import enum
from typing import Any, MutableMapping, Optional

from starlette.datastructures import Headers
from starlette.requests import Request

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


class TokenSource(str, enum.Enum):
    """Where a candidate token was read from."""

    BODY = "body"
    HEADER_MAP = "header_map"
    CUSTOM_HEADER = "custom_header"
    REFERER = "referer"
    USER_AGENT = "user_agent"
    QUERY = "query"


@dataclass
class RequestContext:
    """Everything the protector reads from, and changes on, one request.

    Built from a Starlette request by ``from_request``, or directly in tests.
    ``session`` is the live session mapping, so token queue changes are
    persisted by the session middleware.
    """

    method: str
    path: str = "/"
    query_string: str = ""
    scheme: str = "http"
    host: str = "localhost"
    headers: Any = field(default_factory=dict)
    form: dict = field(default_factory=dict)
    query: dict = field(default_factory=dict)
    cookies: dict = field(default_factory=dict)
    session: Optional[MutableMapping] = None
    request_type: str = "GET"
    token_source: Optional[TokenSource] = None
    cleared: bool = False
    issued_token: Optional[str] = None

    def __post_init__(self):
        self.method = self.method.upper()
        if not isinstance(self.headers, Headers):
            self.headers = Headers(headers=dict(self.headers))

    @property
    def uri(self) -> str:
        """Request path including the query string."""
        if self.query_string:
            return f"{self.path}?{self.query_string}"
        return self.path

    def clear_parameters(self) -> None:
        """Drop the parameters of the current request type."""
        if self.request_type == "GET":
            self.query = {}
            self.query_string = ""
        else:
            self.form = {}
        self.cleared = True

    @classmethod
    async def from_request(cls, request: Request) -> "RequestContext":
        """Build a context from a Starlette request.

        Form bodies are parsed here so the protector itself stays synchronous.
        Uploaded files are ignored; only string fields can carry a token.
        """
        form = {}
        content_type = request.headers.get("content-type", "")
        if content_type.startswith(FORM_CONTENT_TYPES):
            form_data = await request.form()
            form = {key: value for key, value in form_data.items() if isinstance(value, str)}

        return cls(
            method=request.method,
            path=request.url.path,
            query_string=request.url.query,
            scheme=request.url.scheme,
            host=request.headers.get("host") or request.url.netloc,
            headers=request.headers,
            form=form,
            query=dict(request.query_params),
            cookies=dict(request.cookies),
            session=request.scope.get("session"),
        )
