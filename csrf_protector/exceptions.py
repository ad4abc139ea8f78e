"""Exceptions raised by the CSRF protector.

All of these are initialization-time errors. A failed token check is never an
exception: it is handled by the configured action.
"""


class CSRFProtectorError(Exception):
    """Base class for CSRF protector errors."""


class ConfigFileNotFoundError(CSRFProtectorError):
    """The configuration file could not be located."""


class IncompleteConfigurationError(CSRFProtectorError):
    """Required configuration keys are missing or invalid."""


class LogDirectoryNotFoundError(CSRFProtectorError):
    """The configured log directory does not exist."""


class AlreadyInitializedError(CSRFProtectorError):
    """A protector was already constructed in this process."""
