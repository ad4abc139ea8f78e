import os
import sys

import httpx
from httpx import AsyncClient
import pytest
import pytest_asyncio

# Set testing environment variable
os.environ["TESTING"] = "1"

# Add the project root to the path so imports work
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from csrf_protector.config import CSRFConfig
from csrf_protector.context import RequestContext
from csrf_protector.protector import CSRFProtector
from main import create_app

TOKEN_NAME = "csrfp_token"
JS_URL = "https://example.com/js/csrfprotector.js"


class RecordingLogger:
    """Attack sink that keeps every reported event."""

    def __init__(self):
        self.events = []

    def log(self, message, context):
        self.events.append((message, context))


@pytest.fixture(autouse=True)
def reset_protector():
    """Allow each test to construct its own protector."""
    CSRFProtector.reset_instance()
    yield
    CSRFProtector.reset_instance()


@pytest.fixture
def config_data():
    """Raw configuration as it would appear in the JSON file."""
    return {
        "token_name": TOKEN_NAME,
        "token_length": 32,
        "failed_auth_action": {"GET": 1, "POST": 0},
        "js_url": JS_URL,
        "error_redirection_page": "https://example.com/csrf-error",
        "custom_error_message": "<h1>Request blocked</h1>",
        "get_allowlist": ["/api/*", "*/health"],
        "referers": ["https://trusted.example.com"],
        "agent_uris": {"MonitorBot/1.0": "/hooks/ping"},
    }


@pytest.fixture
def config(config_data):
    return CSRFConfig.from_mapping(config_data)


@pytest.fixture
def attack_log():
    return RecordingLogger()


@pytest.fixture
def protector(config, attack_log):
    return CSRFProtector(config, logger=attack_log)


@pytest.fixture
def make_context():
    """Build a RequestContext with a fresh session dict."""

    def _make_context(method="GET", tokens=None, **kwargs):
        session = kwargs.pop("session", {})
        if tokens is not None:
            session[TOKEN_NAME] = list(tokens)
        kwargs.setdefault("host", "example.com")
        return RequestContext(method=method, session=session, **kwargs)

    return _make_context


@pytest_asyncio.fixture
async def client(config, attack_log):
    """Test client for the demo app protected with the test configuration."""
    app = create_app(config, logger=attack_log)

    async with AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
