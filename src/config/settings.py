"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use TEMPLATIZE_ prefix (e.g., TEMPLATIZE_STRICT_SCOPES=true).

Settings can also be loaded from a .env file in the project root.

The identifier names are part of the generated-code contract: a renderer
executing the compiled function must bind the mapping helper and the partial
namespace under exactly these names.
"""

import re
from typing import Pattern

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application configuration via environment variables.

    Environment variables use TEMPLATIZE_ prefix.

    Examples:
        TEMPLATIZE_MAP_METHOD=lodash.map
        TEMPLATIZE_STRICT_SCOPES=true
        TEMPLATIZE_VERBOSITY=3
    """

    model_config = SettingsConfigDict(
        env_prefix="TEMPLATIZE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Generated identifier names
    model_name: str = Field(
        default="m",
        description="Prefix for model identifiers (m0, m1, ...)",
    )

    key_name: str = Field(
        default="k",
        description="Prefix for iteration key identifiers (k0, k1, ...)",
    )

    partial_name: str = Field(
        default="p",
        description="Name of the partial-lookup namespace in generated code",
    )

    map_method: str = Field(
        default="_.map",
        description="Mapping helper used to turn a collection into an array of strings",
    )

    # Compilation configuration
    strict_scopes: bool = Field(
        default=False,
        description="Strict mode: unbalanced #each/#hide blocks raise instead of clamping",
    )

    verbosity: int = Field(
        default=1,
        description="Logging verbosity for compile calls (0=silent, 1-3)",
    )

    # Minification placeholders: lowercase attribute-name-safe tokens, so an
    # HTML minifier keeps them intact in text and in attribute position
    placeholder_prefix: str = Field(
        default="templatize-",
        description="Prefix for placeholders standing in for protected text during minification",
    )

    placeholder_suffix: str = Field(
        default="-ph",
        description="Suffix for minification placeholders",
    )

    @model_validator(mode="after")
    def namespaces_check(self) -> "AppSettings":
        """The partial namespace is reserved and must not shadow a scope identifier"""
        if self.partial_name in (self.model_name, self.key_name):
            raise ValueError(
                f"partial_name '{self.partial_name}' collides with a scope identifier prefix"
            )
        if self.model_name == self.key_name:
            raise ValueError("model_name and key_name must differ")
        if not re.fullmatch(r"[a-z][a-z0-9_-]*", self.placeholder_prefix):
            raise ValueError("placeholder_prefix must be a lowercase attribute name")
        if not re.fullmatch(r"[a-z0-9_-]+", self.placeholder_suffix):
            raise ValueError("placeholder_suffix must be non-empty lowercase attribute name characters")
        return self

    def identifier_make(self, prefix: str, depth: int) -> str:
        """
        Build the identifier bound at a given scope depth.

        Args:
            prefix: Identifier prefix (model_name or key_name)
            depth: Non-negative scope depth

        Returns:
            Identifier string (e.g., "m2")

        Example:
            >>> settings = AppSettings()
            >>> settings.identifier_make(settings.model_name, 2)
            'm2'
        """
        return f"{prefix}{depth}"

    def placeHolder_make(self, index: int, kind: str = "tag") -> str:
        """
        Generate a placeholder string for protected text at given index.

        Args:
            index: Zero-based index into the protected-text list
            kind: Placeholder namespace ("tag" for directive tags, "attrs"
                  for attribute lists), so nested protections never collide

        Returns:
            Placeholder string (e.g., "templatize-tag-0-ph")

        Example:
            >>> settings = AppSettings()
            >>> settings.placeHolder_make(0)
            'templatize-tag-0-ph'
        """
        return f"{self.placeholder_prefix}{kind}-{index}{self.placeholder_suffix}"

    def placeHolder_pattern(self, kind: str = "tag") -> Pattern[str]:
        """Regex matching placeholders of one kind; group 1 is the index"""
        return re.compile(
            re.escape(f"{self.placeholder_prefix}{kind}-") + r"(\d+)" + re.escape(self.placeholder_suffix)
        )

    def childIndex_extract(self, placeholder: str, kind: str = "tag") -> int | None:
        """
        Extract the index from a placeholder string.

        Args:
            placeholder: Placeholder string to parse
            kind: Placeholder namespace

        Returns:
            Index if valid placeholder, None otherwise

        Example:
            >>> settings = AppSettings()
            >>> settings.childIndex_extract('templatize-tag-3-ph')
            3
        """
        match = self.placeHolder_pattern(kind).fullmatch(placeholder)
        if match is None:
            return None
        return int(match.group(1))


# Singleton instance - import this in your code
appsettings = AppSettings()
