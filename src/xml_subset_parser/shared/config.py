"""Configuration classes for the XML subset parser.

Configuration is an explicit, immutable value bound to each parser instance.
There is no module-wide option state, so independent parses never observe
each other's settings.
"""

import json
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, List, Optional

DEFAULT_MAX_DEPTH = 1000


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class PrepassConfig:
    """Whole-buffer checks run before scanning begins."""

    # Reject embedded NUL bytes (forbidden in XML documents).
    check_nul: bool = True
    # Reject code points outside the XML Char production.
    check_unsupported_chars: bool = True
    # Collapse CRLF and lone CR to LF.
    normalize_line_endings: bool = True
    # Drop a leading UTF-8 byte order mark.
    strip_bom: bool = True

    def __post_init__(self) -> None:
        """Validate prepass configuration."""
        for config_field in fields(self):
            if not isinstance(getattr(self, config_field.name), bool):
                raise ConfigValidationError(
                    f"prepass.{config_field.name} must be a bool",
                    field_name=f"prepass.{config_field.name}",
                )

    @property
    def enabled(self) -> bool:
        """Whether the prepass needs to walk the buffer code unit by code unit."""
        return self.check_nul or self.check_unsupported_chars


@dataclass(frozen=True)
class ParserConfig:
    """Complete configuration for one parser instance.

    Thread-safe due to frozen dataclass implementation.
    """

    prepass: PrepassConfig = field(default_factory=PrepassConfig)

    validate_names: bool = True
    check_duplicate_attributes: bool = True
    ignore_bad_escapes: bool = False
    # Keep whitespace-only character data instead of dropping it.
    keep_insignificant_whitespace: bool = False
    check_surrogates: bool = True
    max_depth: int = DEFAULT_MAX_DEPTH

    correlation_id: Optional[str] = None
    name: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the complete parser configuration."""
        if not isinstance(self.prepass, PrepassConfig):
            raise ConfigValidationError(
                "prepass must be a PrepassConfig instance", field_name="prepass"
            )
        for flag in (
            "validate_names",
            "check_duplicate_attributes",
            "ignore_bad_escapes",
            "keep_insignificant_whitespace",
            "check_surrogates",
        ):
            if not isinstance(getattr(self, flag), bool):
                raise ConfigValidationError(f"{flag} must be a bool", field_name=flag)
        if (
            isinstance(self.max_depth, bool)
            or not isinstance(self.max_depth, int)
            or self.max_depth < 0
        ):
            raise ConfigValidationError(
                "max_depth must be an integer >= 0 (0 disables the limit)",
                field_name="max_depth",
                suggestions=[f"Use the default of {DEFAULT_MAX_DEPTH}"],
            )

    def override(self, **kwargs: Any) -> "ParserConfig":
        """Create a new configuration with specific overrides.

        Args:
            **kwargs: Field overrides; nested prepass fields use the
                ``prepass__`` prefix.

        Returns:
            New ParserConfig instance with overrides applied

        Example:
            >>> config = ParserConfig()
            >>> lenient = config.override(
            ...     prepass__check_nul=False,
            ...     ignore_bad_escapes=True
            ... )
        """
        prepass_overrides: Dict[str, Any] = {}
        top_level: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = key.split("__", 1)
                if component != "prepass":
                    raise ConfigValidationError(
                        f"Unknown configuration component: {component}",
                        field_name=key,
                    )
                prepass_overrides[field_name] = value
            else:
                top_level[key] = value

        known = {config_field.name for config_field in fields(self)}
        unknown = [key for key in top_level if key not in known]
        if unknown:
            raise ConfigValidationError(
                f"Unknown configuration field(s): {', '.join(sorted(unknown))}",
                field_name=unknown[0],
            )

        try:
            if prepass_overrides:
                top_level["prepass"] = replace(self.prepass, **prepass_overrides)
            return replace(self, **top_level)
        except TypeError as e:
            raise ConfigValidationError(str(e)) from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        result: Dict[str, Any] = {}
        for config_field in fields(self):
            value = getattr(self, config_field.name)
            if isinstance(value, PrepassConfig):
                value = {
                    prepass_field.name: getattr(value, prepass_field.name)
                    for prepass_field in fields(value)
                }
            result[config_field.name] = value
        return result

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParserConfig":
        """Create configuration from dictionary.

        Unknown keys are rejected rather than silently dropped.
        """
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration data must be a mapping")

        values = dict(data)
        prepass_data = values.pop("prepass", None)
        known = {config_field.name for config_field in fields(cls)}
        unknown = [key for key in values if key not in known]
        if unknown:
            raise ConfigValidationError(
                f"Unknown configuration field(s): {', '.join(sorted(unknown))}",
                field_name=unknown[0],
            )

        try:
            if prepass_data is not None:
                values["prepass"] = PrepassConfig(**prepass_data)
            return cls(**values)
        except TypeError as e:
            raise ConfigValidationError(str(e)) from e

    @classmethod
    def from_json(cls, json_str: str) -> "ParserConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        return cls.from_dict(data)

    # Preset factory methods
    @classmethod
    def strict(cls) -> "ParserConfig":
        """Create configuration preset enforcing every check (the defaults)."""
        return cls(name="strict")

    @classmethod
    def lenient(cls) -> "ParserConfig":
        """Create preset for trusted input produced by sloppy writers."""
        return cls(
            validate_names=False,
            check_duplicate_attributes=False,
            ignore_bad_escapes=True,
            name="lenient",
        )
