"""Request validation engine.

``CSRFProtector`` owns the configuration, the attack logger and the derived
header key. The middleware hands it one ``RequestContext`` per request; the
protector decides whether the request carries a valid token, issues a fresh
token when it does, and picks the configured action when it does not.
"""

from dataclasses import dataclass
from typing import ClassVar, Optional

from starlette.responses import Response

from csrf_protector.actions import ActionDispatcher, CSRFAction
from csrf_protector.config import CSRFConfig
from csrf_protector.context import RequestContext, TokenSource
from csrf_protector.cookies import CookieSynchronizer
from csrf_protector.exceptions import AlreadyInitializedError
from csrf_protector.logging_config import (
    VALIDATION_FAILURE_EVENT,
    AppLogger,
    CSRFLogger,
    FileLogger,
    get_logger,
    log_csrf_event,
)
from csrf_protector.rewriter import ResponseRewriter
from csrf_protector.store import SessionTokenStore
from csrf_protector.tokens import generate_token
from csrf_protector.urls import get_current_url, is_url_allowed


@dataclass
class AuthorizationResult:
    """Outcome of ``CSRFProtector.authorize``.

    When ``response`` is set the request must end with it and the
    application is not called.
    """

    request_type: str
    valid: bool
    exempt: bool = False
    action: Optional[CSRFAction] = None
    response: Optional[Response] = None

    @property
    def is_terminal(self) -> bool:
        return self.response is not None


class CSRFProtector:
    """CSRF validation engine. Only one may be constructed per process."""

    _instance: ClassVar[Optional["CSRFProtector"]] = None

    def __init__(self, config: CSRFConfig, logger: Optional[CSRFLogger] = None):
        """Initialize the protector.

        Args:
            config: Validated configuration
            logger: Sink for validation failures. Defaults to a FileLogger
                when ``log_directory`` is configured, else the app logger.

        Raises:
            AlreadyInitializedError: If a protector already exists
            LogDirectoryNotFoundError: If the configured log directory is missing
        """
        if CSRFProtector._instance is not None:
            raise AlreadyInitializedError("CSRF protector was already initialized")

        if logger is None:
            logger = FileLogger(config.log_directory) if config.log_directory else AppLogger()

        self.config = config
        self.logger = logger
        self.token_header_key = config.token_header_key
        self.cookies = CookieSynchronizer(config.token_name, config.cookie_config)
        self.dispatcher = ActionDispatcher(
            error_redirection_page=config.error_redirection_page,
            custom_error_message=config.custom_error_message,
        )

        CSRFProtector._instance = self

    @classmethod
    def reset_instance(cls) -> None:
        """Forget the constructed protector so another can be built (tests only)."""
        cls._instance = None

    def session_store(self, context: RequestContext) -> SessionTokenStore:
        return SessionTokenStore(
            context.session, self.config.token_name, max_tokens=self.config.max_queued_tokens
        )

    def authorize(self, context: RequestContext) -> AuthorizationResult:
        """Validate the request and refresh the session token.

        Mutating methods are always checked against a token from the body or
        headers. Other methods are checked against the query string unless
        the URL is on the GET allow-list.
        """
        store = self.session_store(context)

        if context.method in self.config.mutating_methods:
            context.request_type = "POST"
            token = self.get_token_from_request(context)
        else:
            context.request_type = "GET"
            if self.is_url_allowed(context):
                self.refresh_token(context)
                log_csrf_event("exempt", context.request_type, context.path)
                return AuthorizationResult(request_type=context.request_type, valid=True, exempt=True)

            token = context.query.get(self.config.token_name)
            if token:
                context.token_source = TokenSource.QUERY

        if token and store.consume_if_present(token):
            self.refresh_token(context)
            log_csrf_event(
                "validated", context.request_type, context.path, {"source": context.token_source}
            )
            return AuthorizationResult(request_type=context.request_type, valid=True)

        return self._failed_validation(context, store)

    def get_token_from_request(self, context: RequestContext) -> Optional[str]:
        """Find the candidate token of a mutating request. First match wins."""
        name = self.config.token_name

        if context.form.get(name):
            context.token_source = TokenSource.BODY
            return context.form[name]

        if context.headers.get(name):
            context.token_source = TokenSource.HEADER_MAP
            return context.headers[name]

        # CGI-style lookup: header "Csrfp-Token" becomes HTTP_CSRFP_TOKEN
        for header, value in context.headers.items():
            if ("HTTP_" + header.upper()).replace("-", "_") == self.token_header_key and value:
                context.token_source = TokenSource.CUSTOM_HEADER
                return value

        referer = context.headers.get("referer")
        if referer and any(pattern in referer for pattern in self.config.referers if pattern):
            context.token_source = TokenSource.REFERER
            return context.cookies.get(name)

        user_agent = context.headers.get("user-agent")
        if user_agent and user_agent in self.config.agent_uris:
            if context.uri == self.config.agent_uris[user_agent]:
                context.token_source = TokenSource.USER_AGENT
                return context.cookies.get(name)

        return None

    def is_url_allowed(self, context: RequestContext) -> bool:
        return is_url_allowed(get_current_url(context), self.config.get_allowlist)

    def refresh_token(self, context: RequestContext) -> str:
        """Issue a new token, queue it in the session and mark it for the cookie."""
        token = generate_token(self.config.token_length)
        self.session_store(context).append(token)
        context.issued_token = token
        return token

    def ensure_token(self, context: RequestContext) -> Optional[str]:
        """Issue a token if the client cookie does not hold a queued one.

        Covers first visits and requests that continued after their
        parameters were cleared. Does nothing if this request already
        refreshed the token.
        """
        if context.issued_token is not None:
            return None
        if self.session_store(context).contains(context.cookies.get(self.config.token_name)):
            return None
        return self.refresh_token(context)

    def new_rewriter(self) -> ResponseRewriter:
        return ResponseRewriter(
            token_name=self.config.token_name,
            url_patterns=self.config.verify_get_for,
            js_url=self.config.js_url,
            disabled_javascript_message=self.config.disabled_javascript_message,
        )

    def _failed_validation(self, context: RequestContext, store: SessionTokenStore) -> AuthorizationResult:
        self.log_csrf_attack(context)

        if context.session is not None and self.config.token_name in context.session and not store.has_queue():
            get_logger().warning("Malformed CSRF token queue in session, resetting it")
            store.clear()

        action = self.config.failed_auth_action.get(context.request_type, CSRFAction.CLEAR_PARAMETERS)
        response = self.dispatcher.dispatch(action, context)
        if response is None:
            log_csrf_event("cleared", context.request_type, context.path)

        return AuthorizationResult(
            request_type=context.request_type, valid=False, action=action, response=response
        )

    def log_csrf_attack(self, context: RequestContext) -> None:
        log_context = {
            "HOST": context.host,
            "REQUEST_URI": context.uri,
            "requestType": context.request_type,
            "cookie": dict(context.cookies),
        }
        self.logger.log(VALIDATION_FAILURE_EVENT, log_context)
