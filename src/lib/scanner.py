"""
Source escaping and directive tag scanning

The escaped source is scanned once, left to right. Every {{ ... }} tag
becomes a DirectiveMatch and the text between tags becomes a LiteralSpan,
so the translator sees the template as an ordered stream of segments.
"""

import re
from typing import Iterator, List, Tuple

from ..models.directives import (
    DirectiveKind,
    DirectiveMatch,
    LiteralSpan,
    Segment,
    TAG_OPEN,
    TAG_CLOSE,
)
from ..config import AppSettings
from ..models.options import LINEBREAKS


# Match handlebars-like tags: an optional keyword, then the expression.
# An empty keyword (no match in the alternation) means a bare expression.
# Tags in raw source may span lines; scanned (escaped) source has no line breaks
TAG_PATTERN = re.compile(
    re.escape(TAG_OPEN)
    + r"\s*([#/]each|[#/]hide|@selectedIf|@checkedIf|@key|>?)\s*(.*?)\s*"
    + re.escape(TAG_CLOSE),
    re.DOTALL,
)


def source_escape(source: str) -> str:
    r"""
    Make source safe inside a single-quoted string literal.

    Every ' becomes \' and every line break variant becomes the two
    characters \n. Escaping is unconditional: text that is already
    escaped gets escaped again.

    Example:
        >>> source_escape("it's\r\nhere")
        "it\\'s\\nhere"
    """
    return LINEBREAKS.sub(r"\\n", source.replace("'", "\\'"))


def lines_count(source: str) -> int:
    """Number of lines in source, splitting on any line break variant"""
    return len(LINEBREAKS.split(source))


def segments_scan(escaped: str) -> Iterator[Segment]:
    """
    Split escaped source into literal spans and directive matches.

    Args:
        escaped: Output of source_escape()

    Yields:
        LiteralSpan and DirectiveMatch segments in source order; empty
        literal spans between adjacent tags are omitted

    Example:
        "Hi {{name}}!" yields
        LiteralSpan("Hi ", 0), DirectiveMatch(INTERPOLATION, "name", 3, ...),
        LiteralSpan("!", 11)
    """
    position = 0
    for match in TAG_PATTERN.finditer(escaped):
        if match.start() > position:
            yield LiteralSpan(text=escaped[position:match.start()], position=position)

        yield DirectiveMatch(
            kind=DirectiveKind.from_keyword(match.group(1)),
            expression=match.group(2).strip(),
            position=match.start(),
            text=match.group(0),
        )
        position = match.end()

    if position < len(escaped):
        yield LiteralSpan(text=escaped[position:], position=position)


def tags_protect(source: str, settings: AppSettings) -> Tuple[str, List[str]]:
    """
    Replace every directive tag with a placeholder.

    Used around the HTML minifier, which would otherwise read a tag in
    attribute position as attribute names and split, reorder or lowercase it.

    Args:
        source: Raw (unescaped) template source
        settings: Placeholder format

    Returns:
        Source with tags replaced, and the tags indexed by placeholder number

    Example:
        '<input {{@checkedIf on}}>' becomes '<input templatize-tag-0-ph>'
        with tags ['{{@checkedIf on}}']
    """
    tags: List[str] = []

    def tag_replace(match: re.Match[str]) -> str:
        tags.append(match.group(0))
        return settings.placeHolder_make(len(tags) - 1)

    return TAG_PATTERN.sub(tag_replace, source), tags


def placeholders_restore(text: str, protected: List[str], settings: AppSettings, kind: str = "tag") -> str:
    """
    Put protected text back in place of its placeholders.

    Placeholders with no protected entry are left as they are.
    """
    def placeholder_expand(match: re.Match[str]) -> str:
        index = settings.childIndex_extract(match.group(0), kind)
        if index is None or index >= len(protected):
            return match.group(0)
        return protected[index]

    return settings.placeHolder_pattern(kind).sub(placeholder_expand, text)
