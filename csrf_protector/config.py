"""Configuration for the CSRF protector.

Configuration is loaded once from a JSON file and is read-only afterwards.
The file location comes from the ``CSRFP_CONFIG`` environment variable (a
``.env`` file is honoured) or defaults to ``config/csrf_config.json`` in the
project root.
"""

from functools import lru_cache
import json
import os
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from csrf_protector.actions import CSRFAction
from csrf_protector.cookies import CookieConfig
from csrf_protector.exceptions import ConfigFileNotFoundError, IncompleteConfigurationError
from csrf_protector.logging_config import get_logger
from csrf_protector.tokens import normalize_token_length

load_dotenv()

DEFAULT_TOKEN_NAME = "csrfp_token"
DEFAULT_MAX_QUEUED_TOKENS = 20
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "csrf_config.json"
REQUIRED_CONFIGURATIONS = ("failed_auth_action", "js_url", "token_length")
REQUEST_TYPES = ("GET", "POST")

DEFAULT_DISABLED_JAVASCRIPT_MESSAGE = (
    "This site attempts to protect users against Cross-Site Request Forgeries attacks. "
    "In order to do so, you must have JavaScript enabled in your web browser otherwise "
    "this site will fail to work correctly for you. See details of your web browser for "
    "how to enable JavaScript."
)


class CSRFConfig(BaseModel):
    """Validated protector configuration."""

    token_name: str = DEFAULT_TOKEN_NAME
    token_length: int
    failed_auth_action: dict[str, CSRFAction]
    js_url: str
    error_redirection_page: str = ""
    custom_error_message: str = ""
    disabled_javascript_message: str = DEFAULT_DISABLED_JAVASCRIPT_MESSAGE
    get_allowlist: list[str] = Field(default_factory=list)
    # Links the client script attaches a token to; non-allow-listed GETs need one
    verify_get_for: list[str] = Field(default_factory=lambda: ["*"])
    referers: list[str] = Field(default_factory=list)
    agent_uris: dict[str, str] = Field(default_factory=dict)
    mutating_methods: list[str] = Field(default_factory=lambda: ["POST"])
    max_queued_tokens: int = Field(default=DEFAULT_MAX_QUEUED_TOKENS, gt=0)
    cookie_config: CookieConfig = Field(default_factory=CookieConfig)
    log_directory: Optional[str] = None

    @field_validator("token_name", mode="before")
    @classmethod
    def default_token_name(cls, value):
        return value or DEFAULT_TOKEN_NAME

    @field_validator("token_length", mode="before")
    @classmethod
    def clamp_token_length(cls, value):
        return normalize_token_length(value)

    @field_validator("failed_auth_action", mode="before")
    @classmethod
    def parse_actions(cls, value):
        if not isinstance(value, dict):
            raise ValueError("failed_auth_action must map request types to action ids")

        actions = {}
        for request_type in REQUEST_TYPES:
            raw = value.get(request_type, CSRFAction.CLEAR_PARAMETERS)
            try:
                actions[request_type] = CSRFAction(int(raw))
            except (TypeError, ValueError):
                get_logger().warning(
                    f"Unknown failed_auth_action {raw!r} for {request_type}, using CLEAR_PARAMETERS"
                )
                actions[request_type] = CSRFAction.CLEAR_PARAMETERS
        return actions

    @field_validator("mutating_methods", mode="after")
    @classmethod
    def upper_methods(cls, value):
        return [method.upper() for method in value]

    @field_validator("cookie_config", mode="before")
    @classmethod
    def default_cookie_config(cls, value):
        return value or {}

    @model_validator(mode="after")
    def require_redirection_page(self):
        if CSRFAction.REDIRECT in self.failed_auth_action.values() and not self.error_redirection_page:
            raise ValueError("error_redirection_page is required when a failed_auth_action is REDIRECT")
        return self

    @property
    def token_header_key(self) -> str:
        """CGI-style environ key for the token header, e.g. ``HTTP_CSRFP_TOKEN``."""
        return ("HTTP_" + self.token_name.upper()).replace("-", "_")

    @classmethod
    def from_mapping(cls, data: dict) -> "CSRFConfig":
        """Validate a raw mapping, reporting all missing required keys at once.

        Raises:
            IncompleteConfigurationError: If keys are missing or values invalid
        """
        missing = [key for key in REQUIRED_CONFIGURATIONS if data.get(key) in (None, "")]
        if missing:
            raise IncompleteConfigurationError(
                f"Incomplete CSRF protector configuration: missing {', '.join(missing)} value(s)"
            )

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise IncompleteConfigurationError(f"Invalid CSRF protector configuration: {e}") from e


@lru_cache()
def get_config_path() -> Path:
    """Get the path of the configuration file."""
    return Path(os.getenv("CSRFP_CONFIG", str(DEFAULT_CONFIG_PATH)))


def load_config(path: Optional[Union[str, Path]] = None) -> CSRFConfig:
    """Load and validate the configuration file.

    Args:
        path: JSON file to read; defaults to ``get_config_path()``

    Raises:
        ConfigFileNotFoundError: If the file does not exist
        IncompleteConfigurationError: If the file is unreadable or incomplete
    """
    config_path = Path(path) if path is not None else get_config_path()

    if not config_path.is_file():
        raise ConfigFileNotFoundError(f"CSRF protector configuration file not found: {config_path}")

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise IncompleteConfigurationError(f"Cannot read {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise IncompleteConfigurationError(f"{config_path} must contain a JSON object")

    return CSRFConfig.from_mapping(data)
