"""
Directive tag models

Defines the fixed set of template directive kinds and the segment types the
scanner produces: literal spans of escaped text and directive matches.
"""

from enum import Enum
from dataclasses import dataclass
from typing import Dict, Union


# Tag delimiters and expression tokens
TAG_OPEN = "{{"
TAG_CLOSE = "}}"
PARENT_MARKER = "../"
SELF_TOKEN = "this"
COMPARE_NAME = "value"


class DirectiveKind(Enum):
    """
    Kinds of directive tags recognized inside {{ }}

    The value is the keyword written in the tag. Interpolation has no keyword:
    any tag whose keyword is not recognized is a bare expression.
    """
    EACH = "#each"              # {{#each items}}
    EACH_END = "/each"          # {{/each}}
    HIDE = "#hide"              # {{#hide flag}}
    HIDE_END = "/hide"          # {{/hide}}
    SELECTED_IF = "@selectedIf"
    CHECKED_IF = "@checkedIf"
    PARTIAL = ">"               # {{> name}}
    KEY = "@key"
    INTERPOLATION = ""          # {{name}}, {{../name}}, {{this}}

    @classmethod
    def from_keyword(cls, keyword: str) -> "DirectiveKind":
        """Map a scanned keyword to its kind; unknown keywords interpolate"""
        return _KEYWORDS.get(keyword, cls.INTERPOLATION)


_KEYWORDS: Dict[str, DirectiveKind] = {kind.value: kind for kind in DirectiveKind}


@dataclass
class DirectiveMatch:
    """
    A directive tag found in the escaped source

    Attributes:
        kind: Directive kind
        expression: Trimmed text following the keyword (e.g., "../items")
        position: Character position of the tag in the escaped source
        text: Full matched tag text, including delimiters

    Example:
        For escaped source "Hi {{name}}":
        DirectiveMatch(kind=DirectiveKind.INTERPOLATION, expression="name",
                       position=3, text="{{name}}")
    """
    kind: DirectiveKind
    expression: str
    position: int
    text: str = ""


@dataclass
class LiteralSpan:
    """Escaped literal text between directive tags"""
    text: str
    position: int


Segment = Union[LiteralSpan, DirectiveMatch]
