"""
domain.exceptions - Custom exception hierarchy for the workshop assistant.

All domain-level errors inherit from DomainError so callers can catch
broad or specific exceptions as needed. "Record not found" is NOT an
exception: store operations return None for it.
"""


class DomainError(Exception):
    """Base exception for all domain-level errors."""


class TurnInProgressError(DomainError):
    """Raised when a message is submitted while a turn is still in flight."""


class ModelStreamError(DomainError):
    """Raised when a model stream fails or stalls past the idle timeout."""


class EmptyCalculationError(DomainError):
    """Raised when saving a calculation list with no lines."""


class UnknownMaterialError(DomainError):
    """Raised when a calculation line references a missing priced material."""


class InvalidToolArgumentsError(DomainError):
    """Raised when a tool call's arguments fail schema validation."""

    def __init__(self, tool_name: str, detail: str):
        super().__init__(f"Invalid arguments for '{tool_name}': {detail}")
        self.tool_name = tool_name
        self.detail = detail


class RepositoryError(DomainError):
    """Raised when a snapshot persistence operation fails."""
