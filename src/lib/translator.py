"""
Directive translation to generated code fragments

Each directive kind has one handler that turns a DirectiveMatch into a
fragment of the function body. The body is a single-quoted string
expression, so every fragment first closes the current literal with ',
splices in its code, and reopens a literal with '.

Handlers consult the ScopeTracker to name models and keys, and the block
kinds advance it, so translate() must be called in source order.
"""

from typing import Callable, Dict, Optional

from ..config import AppSettings
from ..models.directives import DirectiveKind, DirectiveMatch, COMPARE_NAME
from .scope import ScopeTracker
from .log import LOG


Handler = Callable[[DirectiveMatch], str]


class DirectiveTranslator:
    """
    Translates directive matches into code fragments

    Maps every DirectiveKind to its handler. The table is checked at
    construction, so adding a kind without a handler fails immediately.

    Attributes:
        tracker: Scope tracker shared with the surrounding compile call
        settings: Identifier names (partial namespace, map helper)
        handlers: DirectiveKind -> handler
    """

    def __init__(self, tracker: ScopeTracker, settings: Optional[AppSettings] = None) -> None:
        self.tracker = tracker
        self.settings = settings or tracker.settings
        self.handlers: Dict[DirectiveKind, Handler] = {
            DirectiveKind.EACH: self.each_translate,
            DirectiveKind.EACH_END: self.eachEnd_translate,
            DirectiveKind.HIDE: self.hide_translate,
            DirectiveKind.HIDE_END: self.hideEnd_translate,
            DirectiveKind.SELECTED_IF: self.selectedIf_translate,
            DirectiveKind.CHECKED_IF: self.checkedIf_translate,
            DirectiveKind.PARTIAL: self.partial_translate,
            DirectiveKind.KEY: self.key_translate,
            DirectiveKind.INTERPOLATION: self.interpolation_translate,
        }
        missing = set(DirectiveKind) - set(self.handlers)
        if missing:
            raise TypeError(f"No handler for directive kinds: {sorted(k.name for k in missing)}")

    def translate(self, match: DirectiveMatch) -> str:
        """
        Produce the code fragment replacing a directive tag.

        Args:
            match: Directive found by the scanner

        Returns:
            Code fragment to splice in place of the tag
        """
        fragment = self.handlers[match.kind](match)
        LOG(f"{match.kind.name} '{match.expression}' -> {fragment}", level=3)
        return fragment

    def each_translate(self, match: DirectiveMatch) -> str:
        """{{#each coll}} - open a mapping callback over a collection"""
        # The collection is resolved in the enclosing scope, before entering
        collection = self.tracker.relative_resolve(match.expression)
        model = self.tracker.enter()
        key = self.tracker.key_current()
        return f"'+{self.settings.map_method}({collection}, function({model},{key}) {{ return '"

    def eachEnd_translate(self, match: DirectiveMatch) -> str:
        """{{/each}} - close the callback and join its strings"""
        self.tracker.exit(match.position)
        return "';}).join('')+'"

    def hide_translate(self, match: DirectiveMatch) -> str:
        """{{#hide cond}} - keep the following content only while cond is falsy"""
        condition = self.tracker.relative_resolve(match.expression)
        self.tracker.hide_open()
        return f"'+(!({condition})?('"

    def hideEnd_translate(self, match: DirectiveMatch) -> str:
        """{{/hide}} - the truthy branch renders nothing"""
        self.tracker.hide_close(match.position)
        return "'):(''))+'"

    def attribute_translate(self, match: DirectiveMatch, attribute: str) -> str:
        """Emit attribute when the expression equals the current model's value"""
        expression = self.tracker.relative_resolve(match.expression)
        compare = self.tracker.relative_resolve(COMPARE_NAME)
        return f"'+(({expression}=={compare})?'{attribute}':'')+'"

    def selectedIf_translate(self, match: DirectiveMatch) -> str:
        return self.attribute_translate(match, "selected")

    def checkedIf_translate(self, match: DirectiveMatch) -> str:
        return self.attribute_translate(match, "checked")

    def partial_translate(self, match: DirectiveMatch) -> str:
        """{{> name}} - call a registered partial with the current model"""
        return f"'+{self.settings.partial_name}.{match.expression}({self.tracker.model_current()})+'"

    def key_translate(self, match: DirectiveMatch) -> str:
        """{{@key}} - key or index of the innermost {{#each}}"""
        return f"'+{self.tracker.key_current()}+'"

    def interpolation_translate(self, match: DirectiveMatch) -> str:
        """{{expr}} - splice the value in unescaped"""
        return f"'+{self.tracker.relative_resolve(match.expression)}+'"
