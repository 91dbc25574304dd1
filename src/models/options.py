"""
Compile options

Options are given as a plain dict (camelCase keys like the original
templatize module, or snake_case field names) or as a CompileOptions
instance. They are deep-merged onto the documented defaults: nested keys
that are not given fall back to the defaults, explicit keys override.
"""

import re
from typing import Any, Dict, Mapping, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field


# Matches every line-break variant
LINEBREAKS = re.compile(r"\r\n|\n\r|\n|\r")


class HtmlminOptions(BaseModel):
    """
    Options handed to the HTML minifier collaborator

    Unknown keys are kept and passed through verbatim so minifier-specific
    settings survive the merge.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    remove_comments: bool = Field(default=True, alias="removeComments")
    remove_comments_from_cdata: bool = Field(default=True, alias="removeCommentsFromCDATA")
    collapse_whitespace: bool = Field(default=True, alias="collapseWhitespace")
    collapse_boolean_attributes: bool = Field(default=True, alias="collapseBooleanAttributes")
    remove_attribute_quotes: bool = Field(default=False, alias="removeAttributeQuotes")
    remove_redundant_attributes: bool = Field(default=False, alias="removeRedundantAttributes")
    use_short_doctype: bool = Field(default=True, alias="useShortDoctype")
    remove_empty_attributes: bool = Field(default=False, alias="removeEmptyAttributes")
    remove_optional_tags: bool = Field(default=False, alias="removeOptionalTags")


class CompileOptions(BaseModel):
    """
    Options recognized by compile()

    Attributes:
        htmlmin_enable: Always minify the source before compiling
        htmlmin_multi_lines: Minify only sources with more than one line
        htmlmin: Sub-options for the minifier
    """

    model_config = ConfigDict(populate_by_name=True)

    htmlmin_enable: bool = Field(default=False, alias="htmlminEnable")
    htmlmin_multi_lines: bool = Field(default=False, alias="htmlminMultiLines")
    htmlmin: HtmlminOptions = Field(default_factory=HtmlminOptions)

    def minify_wanted(self, source: str) -> bool:
        """
        Decide whether a (trimmed) source should be minified.

        Args:
            source: Trimmed template source

        Returns:
            True if htmlminEnable is set, or htmlminMultiLines is set and the
            source spans more than one line
        """
        if self.htmlmin_enable:
            return True
        return self.htmlmin_multi_lines and len(LINEBREAKS.split(source)) > 1

    def htmlmin_dump(self) -> Dict[str, Any]:
        """Minifier sub-options as a camelCase dict, extras included"""
        return self.htmlmin.model_dump(by_alias=True)


def options_merge(target: Dict[str, Any], *sources: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Recursively merge mappings onto target, in order.

    Nested mappings merge key by key when the target also holds a mapping
    (or nothing) under that key; any other value replaces the target's.

    Args:
        target: Dict updated in place
        *sources: Mappings to merge; None entries are skipped

    Returns:
        The updated target

    Example:
        >>> options_merge({'a': {'x': 1, 'y': 2}}, {'a': {'y': 3}})
        {'a': {'x': 1, 'y': 3}}
    """
    for source in sources:
        if not source:
            continue
        for key, value in source.items():
            if isinstance(value, Mapping):
                current = target.get(key)
                if current is None or isinstance(current, dict):
                    target[key] = options_merge(dict(current or {}), value)
                else:
                    target[key] = value
            else:
                target[key] = value
    return target


def aliases_normalize(model: Type[BaseModel], data: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Rename snake_case field names to their camelCase aliases.

    Nested option models are normalized recursively so that merging a
    snake_case override onto camelCase defaults hits the same keys.
    """
    result: Dict[str, Any] = {}
    for key, value in data.items():
        field = model.model_fields.get(key)
        if field is None:
            # Key may already be an alias; find its field for nested handling
            field = next((f for f in model.model_fields.values() if f.alias == key), None)
        name = key
        if field is not None and field.alias:
            name = field.alias

        annotation = field.annotation if field is not None else None
        if isinstance(value, Mapping) and isinstance(annotation, type) and issubclass(annotation, BaseModel):
            value = aliases_normalize(annotation, value)
        result[name] = value
    return result


def options_resolve(options: Union[None, Mapping[str, Any], CompileOptions] = None) -> CompileOptions:
    """
    Deep-merge caller options onto the defaults and validate them.

    Args:
        options: None, a mapping of option keys, or a CompileOptions

    Returns:
        Validated CompileOptions

    Raises:
        pydantic.ValidationError: if an option has the wrong type
    """
    if isinstance(options, CompileOptions):
        overrides: Mapping[str, Any] = options.model_dump(by_alias=True)
    else:
        overrides = aliases_normalize(CompileOptions, options or {})

    defaults = CompileOptions().model_dump(by_alias=True)
    merged = options_merge(defaults, overrides)
    return CompileOptions.model_validate(merged)
