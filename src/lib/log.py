"""
Centralized logging using Loguru with context-aware verbosity.

This module provides a LOG() function that respects the verbosity of the
CompileState currently being compiled, without passing the state around.

Features:
- Context-aware logging tied to CompileState verbosity
- Rich formatting with timestamps, colors, and metadata
- Isolated per compile call using contextvars

Usage:
    from .log import LOG, state_connectToLogger

    # At the start of a compile call:
    token = state_connectToLogger(state)

    # Anywhere in that context:
    LOG("This message appears if verbosity >= 1", level=1)
    LOG("Debug details appear if verbosity >= 2", level=2)
    LOG("Verbose trace appears if verbosity >= 3", level=3)
"""

from loguru import logger
from typing import Any, Optional
from contextvars import ContextVar, Token
import sys

# Context variable to hold the current CompileState
_compile_state: ContextVar[Optional[Any]] = ContextVar('compile_state', default=None)

# Configure loguru with templatize-specific format
logger_format = (
    "<green>{time:HH:mm:ss}</green> │ "
    "<level>{level: <5}</level> │ "
    "<cyan>{function: <20}</cyan> @ "
    "<cyan>{line: <4}</cyan> ║ "
    "<level>{message}</level>"
)

logger.remove()  # Remove default handler
logger.add(sys.stderr, format=logger_format, level="DEBUG")


def state_connectToLogger(state: Any) -> Token:
    """
    Connect a CompileState to the logging context.

    Args:
        state: CompileState instance with verbosity attribute

    Returns:
        Token to hand to state_disconnectFromLogger() when the call ends
    """
    return _compile_state.set(state)


def state_disconnectFromLogger(token: Token) -> None:
    """Restore the logging context that was active before connecting"""
    _compile_state.reset(token)


def LOG(message: str, level: int = 1, **kwargs: Any) -> None:
    """
    Log message if current state's verbosity allows.

    Args:
        message: Log message to display
        level: Minimum verbosity level required (1=normal, 2=verbose, 3=debug)
        **kwargs: Additional loguru metadata

    Verbosity levels:
        1 = Normal output (default)
        2 = Verbose
        3 = Debug (per-directive trace)
    """
    state = _compile_state.get()

    if state and hasattr(state, 'verbosity') and state.verbosity >= level:
        logger.opt(depth=1).debug(message, **kwargs)


def LOG_error(message: str) -> None:
    """
    Log an error with the exception currently being handled attached.

    Errors are reported regardless of verbosity.
    """
    logger.opt(depth=1, exception=True).error(message)
