# vocfeat/errors.py

"""Exception types raised by vocfeat."""


class VocfeatError(Exception):
    """Base class for all vocfeat errors."""


class ConfigurationError(VocfeatError):
    """Raised when a configuration file or value fails validation."""
