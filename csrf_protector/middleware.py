"""Middleware for CSRF protection and request logging."""

import codecs
import time
from typing import Callable

from fastapi import Request, Response
from starlette.datastructures import MutableHeaders
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from csrf_protector.context import RequestContext
from csrf_protector.exceptions import CSRFProtectorError
from csrf_protector.logging_config import get_logger
from csrf_protector.protector import CSRFProtector


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to automatically log all HTTP requests and responses."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and log details.

        Args:
            request: The incoming HTTP request
            call_next: The next middleware/route handler

        Returns:
            The HTTP response
        """
        start_time = time.time()
        logger = get_logger()

        # Skip logging for health check endpoint to reduce noise
        if request.url.path == "/health":
            return await call_next(request)

        logger.info(f"Incoming request: {request.method} {request.url.path}")

        try:
            response = await call_next(request)
            process_time = time.time() - start_time

            logger.info(
                f"Response: {request.method} {request.url.path} - "
                f"{response.status_code} - {process_time:.3f}s"
            )

            response.headers["X-Process-Time"] = str(process_time)

            return response

        except Exception as e:
            process_time = time.time() - start_time

            logger.error(
                f"Error processing request: {request.method} {request.url.path} - "
                f"{str(e)} - {process_time:.3f}s",
                exc_info=True,
            )

            raise e


class CSRFProtectorMiddleware:
    """Validate every HTTP request and rewrite HTML responses.

    Must be wrapped by Starlette's ``SessionMiddleware``: the token queue is
    kept in the session.
    """

    def __init__(self, app: ASGIApp, protector: CSRFProtector):
        self.app = app
        self.protector = protector

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        if "session" not in scope:
            raise CSRFProtectorError("CSRFProtectorMiddleware requires SessionMiddleware")

        request = Request(scope, receive)
        # Cache the body so form parsing does not drain it for the app
        body = await request.body()
        context = await RequestContext.from_request(request)

        result = self.protector.authorize(context)
        if result.is_terminal:
            await result.response(scope, receive, send)
            return

        self.protector.ensure_token(context)

        if context.cleared:
            if context.request_type == "GET":
                scope["query_string"] = b""
            else:
                body = b""
                headers = MutableHeaders(scope=scope)
                headers["content-length"] = "0"

        await self.app(scope, self._replay_body(body, receive), self._rewriting_send(context, send))

    def _replay_body(self, body: bytes, receive: Receive) -> Receive:
        sent = False

        async def replay() -> Message:
            nonlocal sent
            if not sent:
                sent = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        return replay

    def _rewriting_send(self, context: RequestContext, send: Send) -> Send:
        rewriter = self.protector.new_rewriter()
        start_message: dict = {}
        chunks: list[bytes] = []

        async def send_wrapper(message: Message) -> None:
            nonlocal start_message

            if message["type"] == "http.response.start":
                start_message = message
                start_message.setdefault("headers", [])
                if context.issued_token is not None:
                    headers = MutableHeaders(scope=start_message)
                    headers.append("set-cookie", self.protector.cookies.header_value(context.issued_token))
                return

            if message["type"] != "http.response.body":
                await send(message)
                return

            chunks.append(message.get("body", b""))
            if message.get("more_body", False):
                return

            headers = MutableHeaders(scope=start_message)
            payload = b"".join(chunks)

            # Compressed bodies cannot be rewritten as text
            if "content-encoding" not in headers:
                charset = _charset(headers.get("content-type", ""))
                text = payload.decode(charset, errors="surrogateescape")
                rewritten = rewriter.rewrite(text)
                if rewritten != text:
                    payload = rewritten.encode(charset, errors="surrogateescape")
                    headers["content-length"] = str(len(payload))

            await send(start_message)
            await send({"type": "http.response.body", "body": payload, "more_body": False})

        return send_wrapper


def _charset(content_type: str) -> str:
    for part in content_type.split(";")[1:]:
        key, _, value = part.strip().partition("=")
        if key.lower() == "charset" and value:
            try:
                return codecs.lookup(value.strip('"')).name
            except LookupError:
                break
    return "utf-8"
