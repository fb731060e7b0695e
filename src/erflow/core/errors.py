"""Exception types raised by erflow."""


class ERFlowError(Exception):
    """Base class for all erflow errors."""


class ConfigError(ERFlowError, ValueError):
    """Raised when a scenario or configuration file is invalid."""


class SessionError(ERFlowError):
    """Raised when a session is misused or one of its threads crashed."""
