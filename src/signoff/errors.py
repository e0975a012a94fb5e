"""Exception types for signoff."""


class SignoffError(Exception):
    """Base exception for all signoff errors."""


class InvalidArgument(SignoffError, ValueError):
    """Raised when an operation is called with an unusable argument."""


class InvalidTransition(InvalidArgument):
    """Raised when a resolved approval is moved to the opposite status."""


class StorageError(SignoffError):
    """Raised when the storage backend cannot be read or written."""


class PromptError(SignoffError):
    """Raised when an input prompt is interrupted or fails."""


class UnknownCommand(SignoffError, KeyError):
    """Raised when dispatching a command id that is not registered."""
