"""gridkit exception hierarchy.

All gridkit-specific exceptions inherit from GridKitException, enabling
catch-all handling while supporting specific error types.

Exceptions raised by user-supplied callbacks (save, add, delete, ...) are
never wrapped; they propagate to the caller unchanged.
"""

from __future__ import annotations

from typing import Any


class GridKitException(Exception):
    """Base exception for all gridkit errors."""

    def __init__(self, message: str, **context: Any) -> None:
        """Initialize gridkit exception.

        Parameters
        ----------
        message : str
            Human-readable error message.
        **context : Any
            Additional context (feature, action, row_id, etc.).
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """Format exception with context."""
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class FeatureError(GridKitException):
    """Feature composition failed.

    Raised when the composer receives an unknown feature key or a value
    that does not implement the TableFeature interface.
    """

    def __init__(self, message: str, feature: str | None = None, **context: Any) -> None:
        """Initialize feature error.

        Parameters
        ----------
        message : str
            Human-readable error message.
        feature : str, optional
            The feature key involved.
        **context : Any
            Additional context.
        """
        super().__init__(message, feature=feature, **context)
        self.feature = feature


class SessionError(GridKitException):
    """Table session lifecycle misuse.

    Raised when a session is started twice or used after it was closed.
    """


class EditValidationError(GridKitException):
    """Dirty rows failed validation and cannot be saved.

    Raised by EditingEngine.save_changes() when one or more dirty rows
    carry validation errors.
    """

    def __init__(
        self,
        message: str,
        errors: dict[Any, dict[str, str]],
        **context: Any,
    ) -> None:
        """Initialize validation error.

        Parameters
        ----------
        message : str
            Human-readable error message.
        errors : dict
            Mapping of row id to {field: error message}.
        **context : Any
            Additional context.
        """
        super().__init__(message, rows=sorted(map(str, errors)), **context)
        self.errors = errors
