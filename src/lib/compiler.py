"""
Compiler for templatize templates

Turns an HTML template with {{ }} directive tags into the source text of a
one-argument function that renders the template for a model:

    compile("Hello {{name}}!")
    -> "function(m0){return 'Hello '+m0.name+'!';}"

The generated code expects the caller's runtime to provide the mapping
helper (default "_.map") and the partial namespace (default "p").

Compilation is a pipeline of stages over a CompileState built fresh for
each call:
    1. source_trim: strip surrounding whitespace
    2. source_minify: optional HTML minification
    3. literal_escape: escape quotes and line breaks
    4. segments_translate: scan tags, translate each in order
    5. function_wrap: add the function prologue and epilogue
"""

from typing import Any, Mapping, Optional, Union

from ..config import AppSettings, appsettings
from ..models.directives import DirectiveMatch
from ..models.errors import MinifyFailure
from ..models.options import CompileOptions, options_resolve
from ..models.state import CompileState, pipeline
from .fragments import FragmentBuilder
from .log import LOG, LOG_error, state_connectToLogger, state_disconnectFromLogger
from .minify import Minifier, html_minify
from .scanner import source_escape, segments_scan, lines_count, tags_protect, placeholders_restore
from .scope import ScopeTracker
from .translator import DirectiveTranslator


ERROR_BODY = "ERROR"

OptionsLike = Union[None, Mapping[str, Any], CompileOptions]


def function_prefix(settings: AppSettings) -> str:
    """Function prologue binding the top-level model"""
    return f"function({settings.identifier_make(settings.model_name, 0)}){{return '"


def function_suffix() -> str:
    """Function epilogue closing the string literal and the body"""
    return "';}"


def source_trim(inputstate: CompileState) -> CompileState:
    """Strip leading and trailing whitespace from the source"""
    state = inputstate.copy()
    state.source = state.source.strip()
    LOG(f"Source: {len(state.source)} characters, {lines_count(state.source)} line(s)", level=2)
    return state


def source_minify(inputstate: CompileState) -> CompileState:
    """
    Minify the source if the options ask for it.

    Minification runs when htmlminEnable is set, or when htmlminMultiLines
    is set and the source has more than one line. Directive tags are swapped
    for placeholders while the minifier runs, so it never rewrites them.

    Raises:
        MinifyFailure: if the minifier raises
    """
    state = inputstate.copy()
    if not state.options.minify_wanted(state.source):
        return state

    minifier = state.minifier or html_minify
    protected, tags = tags_protect(state.source, state.settings)
    LOG(f"Minifying source ({len(tags)} directive tags protected)...", level=2)
    try:
        minified = minifier(protected, state.options.htmlmin_dump())
    except Exception as e:
        raise MinifyFailure(e) from e
    state.source = placeholders_restore(minified, tags, state.settings)
    return state


def literal_escape(inputstate: CompileState) -> CompileState:
    """Escape quotes and line breaks for embedding in a string literal"""
    state = inputstate.copy()
    state.escaped = source_escape(state.source)
    return state


def segments_translate(inputstate: CompileState) -> CompileState:
    """
    Scan the escaped source and translate every directive in order.

    The tracker is threaded through the whole scan: block opens and closes
    change how later tags resolve.

    Raises:
        UnbalancedScopeError: in strict mode only
    """
    state = inputstate.copy()
    translator = DirectiveTranslator(state.tracker, state.settings)
    builder = FragmentBuilder()

    state.segments = list(segments_scan(state.escaped))
    for segment in state.segments:
        if isinstance(segment, DirectiveMatch):
            builder.directive_add(translator.translate(segment))
        else:
            builder.literal_add(segment.text)

    state.tracker.balance_check()
    state.fragments = builder.fragments
    state.body = builder.build()
    LOG(f"Translated {len(state.segments)} segments", level=2)
    return state


def function_wrap(inputstate: CompileState) -> CompileState:
    """Wrap the body in the function prologue and epilogue"""
    state = inputstate.copy()
    state.code = function_prefix(state.settings) + state.body + function_suffix()
    return state


class Compiler:
    """
    Compiles template sources to render-function source text

    A Compiler holds configuration only. Every compile() call builds its
    own CompileState and ScopeTracker, so one Compiler can be shared
    across threads.

    Attributes:
        options: Resolved compile options
        settings: Identifier names and strictness
        minifier: HTML minifier collaborator (default: html_minify)
    """

    def __init__(
        self,
        options: OptionsLike = None,
        settings: Optional[AppSettings] = None,
        minifier: Optional[Minifier] = None,
    ) -> None:
        """
        Initialize compiler

        Args:
            options: Compile options, deep-merged onto the defaults
            settings: Application settings (default: appsettings singleton)
            minifier: Callable (text, options) -> text used when minifying
        """
        self.options = options_resolve(options)
        self.settings = settings or appsettings
        self.minifier = minifier or html_minify

    def state_create(self, source: str) -> CompileState:
        """Build the initial state for one compile call"""
        return CompileState(
            source=source,
            options=self.options,
            settings=self.settings,
            tracker=ScopeTracker(self.settings),
            minifier=self.minifier,
            verbosity=self.settings.verbosity,
        )

    def compile(self, source: str) -> str:
        """
        Compile a template source.

        Args:
            source: Template text

        Returns:
            Function source text, e.g. "function(m0){return '...';}". If the
            minifier fails the body is the literal ERROR.

        Raises:
            UnbalancedScopeError: only when strict_scopes is enabled
        """
        state = self.state_create(source)
        token = state_connectToLogger(state)
        try:
            state = pipeline(
                state,
                source_trim,
                source_minify,
                literal_escape,
                segments_translate,
                function_wrap,
            )
            LOG("Compilation complete", level=2)
        except MinifyFailure as e:
            LOG_error(str(e))
            return function_prefix(self.settings) + ERROR_BODY + function_suffix()
        finally:
            state_disconnectFromLogger(token)

        return state.code


def compile(
    source: str,
    options: OptionsLike = None,
    *,
    settings: Optional[AppSettings] = None,
    minifier: Optional[Minifier] = None,
) -> str:
    """
    Compile a template source to render-function source text.

    Args:
        source: Template text
        options: Optional dict or CompileOptions, deep-merged onto defaults
        settings: Optional AppSettings overriding the defaults
        minifier: Optional minifier collaborator

    Returns:
        Function source text

    Example:
        >>> compile("Hello {{name}}!")
        "function(m0){return 'Hello '+m0.name+'!';}"
    """
    return Compiler(options, settings=settings, minifier=minifier).compile(source)
