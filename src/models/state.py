"""
Compile state model and pipeline helper

Defines CompileState, the per-call state bus threaded through the compile
stages, and the pipeline() helper for composing those stages.
"""

from typing import Any, Callable, List, Optional, TypeVar, TYPE_CHECKING
from dataclasses import dataclass, field

from .options import CompileOptions

# Forward references for type hints - avoid circular import
if TYPE_CHECKING:
    from ..config.settings import AppSettings
    from ..lib.scope import ScopeTracker
    from ..lib.minify import Minifier
    from .directives import Segment


CS = TypeVar("CS", bound="CompileState")


@dataclass
class CompileState:
    """
    State container for a single compile() call (state bus pattern).

    A fresh instance, with its own ScopeTracker, is built for every call,
    so concurrent compiles never share depth bookkeeping.

    Stages and their state additions:
        - Initial: source, options, settings, tracker, minifier, verbosity
        - source_trim: source (trimmed)
        - source_minify: source (minified, if the options ask for it)
        - literal_escape: escaped
        - segments_translate: segments, fragments, body
        - function_wrap: code

    Attributes:
        source: Template source text
        options: Resolved compile options
        settings: Identifier names and strictness
        tracker: Scope tracker owned by this call
        minifier: HTML minifier collaborator
        verbosity: Logging verbosity for this call
        escaped: Source with quotes and line breaks escaped
        segments: Scanned literal spans and directive matches
        fragments: Emitted code fragments, in order
        body: Fragments joined into the function body
        code: Final function source text
    """

    source: str = field(default="")
    options: CompileOptions = field(default_factory=CompileOptions)
    settings: Optional["AppSettings"] = field(default=None)
    tracker: Optional["ScopeTracker"] = field(default=None)
    minifier: Optional["Minifier"] = field(default=None)
    verbosity: int = field(default=1)

    # Stage outputs
    escaped: str = field(default="")
    segments: List["Segment"] = field(default_factory=list)
    fragments: List[str] = field(default_factory=list)
    body: str = field(default="")
    code: str = field(default="")

    def copy(self: CS) -> CS:
        """
        Creates a shallow copy of the CompileState instance.

        The tracker is shared by reference: stages advance the same scope.

        Returns:
            A new CompileState instance.
        """
        return type(self)(**self.__dict__)


def pipeline(initial_state: CS, *stages: Callable[[Any], Any]) -> CS:
    """
    Execute a functional pipeline of state transformations.

    Each stage is a function (CompileState) -> CompileState that receives
    the output of the previous stage and returns a new state.

    Args:
        initial_state: Starting CompileState
        *stages: Variable number of stage functions to execute in order

    Returns:
        Final CompileState after all transformations

    Example:
        final_state = pipeline(
            initial_state,
            source_trim,
            literal_escape,
            segments_translate,
            function_wrap
        )

    This is equivalent to:
        function_wrap(segments_translate(literal_escape(source_trim(initial_state))))
    """
    from functools import reduce
    return reduce(lambda state, stage: stage(state), stages, initial_state)
