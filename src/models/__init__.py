"""
Models package for templatize

Contains data structures and type definitions for the compilation pipeline.
"""

from .state import CompileState, pipeline
from .directives import (
    DirectiveKind,
    DirectiveMatch,
    LiteralSpan,
    Segment,
    TAG_OPEN,
    TAG_CLOSE,
    PARENT_MARKER,
    SELF_TOKEN,
    COMPARE_NAME,
)
from .options import CompileOptions, HtmlminOptions, options_merge, options_resolve
from .errors import TemplatizeError, MinifyFailure, UnbalancedScopeError

__all__ = [
    "CompileState",
    "pipeline",
    "DirectiveKind",
    "DirectiveMatch",
    "LiteralSpan",
    "Segment",
    "TAG_OPEN",
    "TAG_CLOSE",
    "PARENT_MARKER",
    "SELF_TOKEN",
    "COMPARE_NAME",
    "CompileOptions",
    "HtmlminOptions",
    "options_merge",
    "options_resolve",
    "TemplatizeError",
    "MinifyFailure",
    "UnbalancedScopeError",
]
