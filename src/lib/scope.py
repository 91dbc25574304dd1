"""
Scope tracking for nested template blocks

Generated code nests one anonymous function per {{#each}} block, and each
callback parameter shadows the outer model, so the identifier name itself
encodes the scope level: the model at depth d is always m<d> and its
iteration key is k<d>. ScopeTracker computes those names at compile time,
including ancestor names for ../ parent references.

{{#hide}} blocks open no function and bind nothing. They are still pushed on
the open-scope stack so that closes can be checked for balance.
"""

from enum import Enum
from typing import List, Optional

from ..config import AppSettings, appsettings
from ..models.directives import PARENT_MARKER, SELF_TOKEN
from ..models.errors import UnbalancedScopeError
from .log import LOG


class ScopeKind(Enum):
    """Kinds of block scopes kept on the open-scope stack"""
    EACH = "each"
    HIDE = "hide"


class ScopeTracker:
    """
    Depth and identifier bookkeeping for a single compile call

    Attributes:
        settings: Identifier prefixes
        strict: Raise UnbalancedScopeError instead of clamping
        depth: Number of enclosing {{#each}} blocks
        stack: Open block scopes, innermost last

    Example:
        >>> tracker = ScopeTracker()
        >>> tracker.enter()
        'm1'
        >>> tracker.key_current()
        'k1'
        >>> tracker.relative_resolve('../title')
        'm0.title'
    """

    def __init__(self, settings: Optional[AppSettings] = None, strict: Optional[bool] = None) -> None:
        self.settings = settings or appsettings
        self.strict = self.settings.strict_scopes if strict is None else strict
        self.depth = 0
        self.stack: List[ScopeKind] = []

    def reset(self) -> None:
        """Return to depth 0 with no open blocks"""
        self.depth = 0
        self.stack = []

    def model_current(self) -> str:
        """Model identifier at the current depth"""
        return self.settings.identifier_make(self.settings.model_name, self.depth)

    def key_current(self) -> str:
        """Key identifier of the innermost enclosing {{#each}}"""
        return self.settings.identifier_make(self.settings.key_name, self.depth)

    def enter(self) -> str:
        """
        Open an {{#each}} scope.

        Returns:
            Model identifier of the new, deeper scope
        """
        self.stack.append(ScopeKind.EACH)
        self.depth += 1
        LOG(f"Scope enter: depth {self.depth}", level=3)
        return self.model_current()

    def exit(self, position: Optional[int] = None) -> str:
        """
        Close the innermost {{#each}} scope.

        Depth is clamped at 0 when there is nothing to close.

        Args:
            position: Source position of the close tag, for error reporting

        Returns:
            Model identifier of the now-current (parent) scope

        Raises:
            UnbalancedScopeError: in strict mode, on a close without an open
        """
        self.scope_pop(ScopeKind.EACH, position)
        self.depth = max(self.depth - 1, 0)
        LOG(f"Scope exit: depth {self.depth}", level=3)
        return self.model_current()

    def hide_open(self) -> None:
        """Open a {{#hide}} block; depth and identifiers are unchanged"""
        self.stack.append(ScopeKind.HIDE)

    def hide_close(self, position: Optional[int] = None) -> None:
        """Close the innermost {{#hide}} block"""
        self.scope_pop(ScopeKind.HIDE, position)

    def scope_pop(self, kind: ScopeKind, position: Optional[int] = None) -> None:
        """
        Remove the innermost open scope of the given kind.

        Permissive mode tolerates a missing or interleaved open and logs it;
        strict mode raises.
        """
        if self.stack and self.stack[-1] is kind:
            self.stack.pop()
            return

        if self.strict:
            if kind not in self.stack:
                raise UnbalancedScopeError(f"Unmatched /{kind.value}", position)
            raise UnbalancedScopeError(
                f"/{kind.value} closes across an open #{self.stack[-1].value}", position
            )

        if kind in self.stack:
            # Drop the innermost matching open, leaving the others in place
            crossed = self.stack[-1]
            index = len(self.stack) - 1 - self.stack[::-1].index(kind)
            del self.stack[index]
            LOG(f"Warning: /{kind.value} closes across an open #{crossed.value}", level=2)
        else:
            LOG(f"Warning: unmatched /{kind.value} clamped at depth {self.depth}", level=2)

    @property
    def unclosed(self) -> List[ScopeKind]:
        """Blocks still open, outermost first"""
        return list(self.stack)

    def balance_check(self) -> None:
        """
        Verify every block was closed.

        Raises:
            UnbalancedScopeError: in strict mode, if any block is still open
        """
        if not self.stack:
            return
        names = ", ".join(f"#{kind.value}" for kind in self.stack)
        if self.strict:
            raise UnbalancedScopeError(f"Unclosed block(s): {names}")
        LOG(f"Warning: unclosed block(s): {names}", level=2)

    def relative_resolve(self, expression: str) -> str:
        """
        Resolve an expression against the model visible at its scope.

        Each leading ../ walks one scope up from the current depth (clamped
        at 0). The remaining path is appended to that model identifier,
        except for "this", which is the model itself.

        Args:
            expression: Trimmed expression, e.g. "../../total" or "this"

        Returns:
            Generated reference, e.g. "m0.total" or "m2"

        Example:
            At depth 3, "../../name" resolves to "m1.name"
        """
        ups = 0
        path = expression
        while path.startswith(PARENT_MARKER):
            path = path[len(PARENT_MARKER):]
            ups += 1

        target = max(self.depth - ups, 0)
        model = self.settings.identifier_make(self.settings.model_name, target)
        if path == SELF_TOKEN:
            return model
        return f"{model}.{path}"
