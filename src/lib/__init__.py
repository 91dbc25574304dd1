"""
templatize - HTML template to render-function compiler

Compiles {{ }} directive templates into function source text.
"""

__version__ = "0.2.0"

from .compiler import Compiler, compile
from .scope import ScopeTracker
from .translator import DirectiveTranslator
from .log import LOG, state_connectToLogger

__all__ = ["Compiler", "compile", "ScopeTracker", "DirectiveTranslator", "LOG", "state_connectToLogger", "__version__"]
