"""
Error types raised by the engine.

Every resolution error is tagged with the name of the helper it belongs to
(``helper``) at the point closest to that helper, then propagated unchanged
through every enclosing resolution, so callers can always tell which helper
failed.
"""

from typing import Optional


class AsyncHelpersError(Exception):
    """Base class for engine errors.

    Attributes:
        helper: Name of the helper the error is attributed to, if any
    """

    def __init__(self, message: str, helper: Optional[str] = None) -> None:
        super().__init__(message)
        self.helper: Optional[str] = helper


class NotFoundError(AsyncHelpersError):
    """A helper name was requested that is not registered."""

    def __init__(self, helper: str) -> None:
        super().__init__(f"Helper '{helper}' is not registered", helper=helper)


class UnknownTokenError(AsyncHelpersError):
    """A token has no invocation record on this engine instance."""

    def __init__(self, token: str) -> None:
        super().__init__(f"Unknown token: {token!r}")
        self.token: str = token


class HelperExecutionError(AsyncHelpersError):
    """A helper raised, or reported an error through its completion callback.

    The underlying exception is chained as ``__cause__`` and kept on
    ``original``.
    """

    def __init__(self, helper: str, original: BaseException) -> None:
        super().__init__(f"Helper '{helper}' failed: {original}", helper=helper)
        self.original: BaseException = original


class CircularReferenceError(AsyncHelpersError):
    """A container or token was met again on its own resolution path."""

    def __init__(self, helper: Optional[str], detail: str) -> None:
        where = f" in arguments of helper '{helper}'" if helper else ""
        super().__init__(f"Circular reference{where}: {detail}", helper=helper)
