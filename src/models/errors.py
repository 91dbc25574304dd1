"""
Exception types raised by the templatize compiler
"""

from typing import Optional


class TemplatizeError(Exception):
    """Base class for templatize errors"""


class MinifyFailure(TemplatizeError):
    """
    The HTML minifier collaborator raised while minifying a source.

    Never escapes compile(): the compiler logs it and emits the ERROR body.
    """

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"HTML minification failed: {cause}")
        self.cause = cause


class UnbalancedScopeError(TemplatizeError):
    """
    A block close has no matching open, or blocks remain open at the end.

    Only raised when strict scope checking is enabled.
    """

    def __init__(self, message: str, position: Optional[int] = None) -> None:
        if position is not None:
            message = f"{message} (at position {position})"
        super().__init__(message)
        self.position = position
