"""
templatize - HTML template to render-function compiler

Compiles handlebars-like {{ }} templates (each, hide, selectedIf, checkedIf,
partials, keys, interpolation) into the source text of a render function.
"""

__version__ = "0.2.0"
__author__ = "Tauren Mills"

from .lib import Compiler, compile, ScopeTracker, DirectiveTranslator, LOG, state_connectToLogger
from .models import CompileOptions, MinifyFailure, UnbalancedScopeError

__all__ = [
    "Compiler",
    "compile",
    "ScopeTracker",
    "DirectiveTranslator",
    "CompileOptions",
    "MinifyFailure",
    "UnbalancedScopeError",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
