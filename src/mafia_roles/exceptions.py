"""Custom exception types for role configuration and assignment."""


class ConfigurationError(ValueError):
    """Raised when role configuration or player input is structurally invalid."""


class EntropyUnavailableError(RuntimeError):
    """Raised when no cryptographically strong randomness source is available."""
