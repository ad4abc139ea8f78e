"""Session-token CSRF protection for server-rendered ASGI applications."""

from csrf_protector.actions import ActionDispatcher, CSRFAction
from csrf_protector.config import CSRFConfig, load_config
from csrf_protector.context import RequestContext, TokenSource
from csrf_protector.middleware import CSRFProtectorMiddleware
from csrf_protector.protector import AuthorizationResult, CSRFProtector
from csrf_protector.rewriter import ResponseRewriter
from csrf_protector.store import SessionTokenStore
from csrf_protector.tokens import generate_token

__all__ = [
    "ActionDispatcher",
    "AuthorizationResult",
    "CSRFAction",
    "CSRFConfig",
    "CSRFProtector",
    "CSRFProtectorMiddleware",
    "RequestContext",
    "ResponseRewriter",
    "SessionTokenStore",
    "TokenSource",
    "generate_token",
    "load_config",
]
