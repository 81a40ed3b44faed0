"""
TagWeave Engine Errors.

Requires Python 3.11+.
"""


class EngineError(Exception):
    """Base exception for engine lifecycle errors."""


class InvalidConfigurationError(EngineError):
    """The engine cannot start with its current configuration."""


class EngineStateError(EngineError):
    """An operation is not allowed in the engine's current state."""
