"""
HTML minification pre-pass

The compiler only sees a minifier as a callable (text, options) -> text
that may raise. html_minify() is the default, backed by minify-html.

Options arrive as the camelCase dict of HtmlminOptions and map as follows:

    removeComments              keep_comments (inverted)
    removeOptionalTags          keep_closing_tags, keep_html_and_head_opening_tags (inverted)
    useShortDoctype             minify_doctype
    removeCommentsFromCDATA     done here: strips <!-- --> wrappers in <script>/<style>
    removeAttributeQuotes,
    removeRedundantAttributes,
    removeEmptyAttributes       all false: attribute lists are hidden from minify-html
                                behind placeholders and restored verbatim;
                                all true: minify-html rewrites attributes itself
    collapseBooleanAttributes   done here while attributes are hidden; always
                                on when minify-html rewrites attributes
    collapseWhitespace          always on in minify-html

Settings minify-html cannot honor (collapseWhitespace off, a mix of the
three attribute options, collapseBooleanAttributes off while minify-html
rewrites attributes) raise ValueError, so compile() degrades to its ERROR
body instead of emitting something the caller did not ask for. Keys outside
the known set are handed to minify-html as keyword arguments unchanged.
"""

import re
from typing import Any, Callable, Dict, List, Tuple

import minify_html

from ..config import appsettings
from ..models.options import HtmlminOptions
from .scanner import placeholders_restore


Minifier = Callable[[str, Dict[str, Any]], str]

_KNOWN = {field.alias for field in HtmlminOptions.model_fields.values()}

_ATTRIBUTE_OPTIONS = ("removeAttributeQuotes", "removeRedundantAttributes", "removeEmptyAttributes")

# Start tag with at least one attribute; quoted values may contain '>'
START_TAG = re.compile(r"""<([a-zA-Z][^\s/>]*)(\s(?:"[^"]*"|'[^']*'|[^"'>])*?)(/?)>""")

# One attribute: name, optional value (quoted or bare)
ATTRIBUTE = re.compile(r"""([^\s"'<>/=]+)(?:\s*=\s*("[^"]*"|'[^']*'|[^\s"'=<>`]+))?""")

# Script/style bodies, for removing <!-- --> wrappers
RAW_TEXT = re.compile(r"(<(script|style)\b[^>]*>)(.*?)(</\2\s*>)", re.IGNORECASE | re.DOTALL)

BOOLEAN_ATTRIBUTES = {
    "allowfullscreen", "async", "autofocus", "autoplay", "checked", "compact",
    "controls", "declare", "default", "defaultchecked", "defaultmuted",
    "defaultselected", "defer", "disabled", "enabled", "formnovalidate",
    "hidden", "indeterminate", "inert", "ismap", "itemscope", "loop",
    "multiple", "muted", "nohref", "noresize", "noshade", "novalidate",
    "nowrap", "open", "pauseonexit", "readonly", "required", "reversed",
    "scoped", "seamless", "selected", "sortable", "truespeed",
    "typemustmatch", "visible",
}


def attributesHidden_is(options: Dict[str, Any]) -> bool:
    """
    Decide who handles attributes.

    Returns:
        True if attributes must be kept away from minify-html

    Raises:
        ValueError: if the attribute options are mixed
    """
    wanted = {name: bool(options.get(name, False)) for name in _ATTRIBUTE_OPTIONS}
    if not any(wanted.values()):
        return True
    if all(wanted.values()):
        return False
    raise ValueError(
        "minify-html rewrites attribute quotes, redundant and empty attributes together; "
        f"cannot honor {wanted}"
    )


def minifyOptions_check(options: Dict[str, Any]) -> None:
    """
    Reject option combinations minify-html cannot produce.

    Raises:
        ValueError: naming the option that cannot be honored
    """
    if not options.get("collapseWhitespace", True):
        raise ValueError("minify-html always collapses whitespace; collapseWhitespace=False cannot be honored")
    if not attributesHidden_is(options) and not options.get("collapseBooleanAttributes", True):
        raise ValueError(
            "minify-html always collapses boolean attributes when it rewrites attributes; "
            "collapseBooleanAttributes=False cannot be honored"
        )


def minifyKwargs_build(options: Dict[str, Any]) -> Dict[str, Any]:
    """
    Translate htmlmin options to minify-html keyword arguments.

    Args:
        options: camelCase htmlmin options (HtmlminOptions.model_dump(by_alias=True))

    Returns:
        Keyword arguments for minify_html.minify()
    """
    kwargs: Dict[str, Any] = {
        "keep_comments": not options.get("removeComments", True),
        "keep_closing_tags": not options.get("removeOptionalTags", False),
        "keep_html_and_head_opening_tags": not options.get("removeOptionalTags", False),
        "keep_input_type_text_attr": not options.get("removeRedundantAttributes", False),
        "minify_doctype": bool(options.get("useShortDoctype", True)),
        # Directive tags left in text position must survive untouched
        "preserve_brace_template_syntax": True,
    }
    kwargs.update({key: value for key, value in options.items() if key not in _KNOWN})
    return kwargs


def attribute_collapse(match: re.Match[str], collapse_boolean: bool) -> str:
    """Normalize one attribute, dropping the value of a plain boolean attribute"""
    name, value = match.group(1), match.group(2)
    if value is None:
        return name
    if (
        collapse_boolean
        and name.lower() in BOOLEAN_ATTRIBUTES
        and "{{" not in value
        and appsettings.placeholder_prefix not in value
    ):
        return name
    return f"{name}={value}"


def attributes_protect(text: str, collapse_boolean: bool) -> Tuple[str, List[str]]:
    """
    Hide the attribute list of every start tag behind a placeholder.

    Attributes are stored one space apart, boolean attributes collapsed if
    asked; the tag keeps its name and a single placeholder attribute.

    Example:
        '<input type="checkbox" disabled="disabled">' becomes
        '<input templatize-attrs-0-ph>' with ['type="checkbox" disabled']
    """
    attributes: List[str] = []

    def tag_replace(match: re.Match[str]) -> str:
        parts = [attribute_collapse(m, collapse_boolean) for m in ATTRIBUTE.finditer(match.group(2))]
        if not parts:
            return match.group(0)
        attributes.append(" ".join(parts))
        placeholder = appsettings.placeHolder_make(len(attributes) - 1, kind="attrs")
        return f"<{match.group(1)} {placeholder}{match.group(3)}>"

    return START_TAG.sub(tag_replace, text), attributes


def cdataComments_remove(text: str) -> str:
    """Strip <!-- and --> wrapping the body of <script> and <style> elements"""
    def body_strip(match: re.Match[str]) -> str:
        body = re.sub(r"^(\s*)<!--", r"\1", match.group(3))
        body = re.sub(r"-->(\s*)$", r"\1", body)
        return f"{match.group(1)}{body}{match.group(4)}"

    return RAW_TEXT.sub(body_strip, text)


def html_minify(text: str, options: Dict[str, Any]) -> str:
    """
    Minify an HTML template source with minify-html.

    Note that minification may rewrite markup (e.g. drop optional closing
    tags when removeOptionalTags is set), which may not be wanted for
    fragments.

    Raises:
        ValueError: for options minify-html cannot honor
        Any exception minify-html raises, including TypeError for unknown
        pass-through options
    """
    minifyOptions_check(options)
    if options.get("removeCommentsFromCDATA", True):
        text = cdataComments_remove(text)

    if not attributesHidden_is(options):
        return minify_html.minify(text, **minifyKwargs_build(options))

    text, attributes = attributes_protect(text, bool(options.get("collapseBooleanAttributes", True)))
    minified = minify_html.minify(text, **minifyKwargs_build(options))
    return placeholders_restore(minified, attributes, appsettings, kind="attrs")
