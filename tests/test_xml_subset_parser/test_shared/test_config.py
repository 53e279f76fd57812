"""Tests for the configuration system."""

import dataclasses
import json

import pytest

from xml_subset_parser.shared.config import (
    DEFAULT_MAX_DEPTH,
    ConfigError,
    ConfigValidationError,
    ParserConfig,
    PrepassConfig,
)


class TestPrepassConfig:
    """Test PrepassConfig functionality."""

    def test_default_values(self):
        """Test that every check is enabled by default."""
        config = PrepassConfig()
        assert config.check_nul is True
        assert config.check_unsupported_chars is True
        assert config.normalize_line_endings is True
        assert config.strip_bom is True
        assert config.enabled is True

    def test_disabled_when_both_checks_off(self):
        """Test the code unit walk is skipped with both checks off."""
        config = PrepassConfig(check_nul=False, check_unsupported_chars=False)
        assert config.enabled is False
        assert PrepassConfig(check_nul=False).enabled is True

    def test_rejects_non_bool(self):
        """Test validation of flag types."""
        with pytest.raises(ConfigValidationError, match="prepass.check_nul") as exc_info:
            PrepassConfig(check_nul=1)
        assert exc_info.value.field_name == "prepass.check_nul"


class TestParserConfig:
    """Test ParserConfig functionality."""

    def test_default_values(self):
        """Test default configuration values."""
        config = ParserConfig()
        assert config.prepass == PrepassConfig()
        assert config.validate_names is True
        assert config.check_duplicate_attributes is True
        assert config.ignore_bad_escapes is False
        assert config.keep_insignificant_whitespace is False
        assert config.check_surrogates is True
        assert config.max_depth == DEFAULT_MAX_DEPTH
        assert config.correlation_id is None

    def test_immutable(self):
        """Test that configuration is frozen."""
        config = ParserConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.validate_names = False

    def test_override_top_level(self):
        """Test overrides return a new instance."""
        config = ParserConfig()
        overridden = config.override(validate_names=False, max_depth=5)
        assert overridden.validate_names is False
        assert overridden.max_depth == 5
        assert config.validate_names is True

    def test_override_nested_prepass(self):
        """Test prepass__ overrides."""
        config = ParserConfig().override(prepass__check_nul=False)
        assert config.prepass.check_nul is False
        assert config.prepass.strip_bom is True

    def test_override_unknown_field(self):
        """Test that typos are rejected."""
        with pytest.raises(ConfigValidationError, match="validate_name"):
            ParserConfig().override(validate_name=False)

    def test_override_unknown_component(self):
        """Test that only the prepass component can be addressed."""
        with pytest.raises(ConfigValidationError, match="Unknown configuration component"):
            ParserConfig().override(scanner__fast=True)

    def test_override_unknown_prepass_field(self):
        """Test nested typos are rejected."""
        with pytest.raises(ConfigValidationError):
            ParserConfig().override(prepass__check_null=False)

    @pytest.mark.parametrize("max_depth", [-1, 1.5, True, "10"])
    def test_invalid_max_depth(self, max_depth):
        """Test max_depth validation."""
        with pytest.raises(ConfigValidationError, match="max_depth") as exc_info:
            ParserConfig(max_depth=max_depth)
        assert exc_info.value.suggestions

    def test_zero_max_depth_allowed(self):
        """Test that zero disables the limit."""
        assert ParserConfig(max_depth=0).max_depth == 0

    def test_invalid_flag(self):
        """Test flag type validation."""
        with pytest.raises(ConfigValidationError, match="check_surrogates"):
            ParserConfig(check_surrogates="yes")

    def test_invalid_prepass(self):
        """Test prepass type validation."""
        with pytest.raises(ConfigValidationError, match="PrepassConfig"):
            ParserConfig(prepass={"check_nul": True})

    def test_validation_error_is_config_error(self):
        """Test exception hierarchy."""
        assert issubclass(ConfigValidationError, ConfigError)


class TestSerialization:
    """Test dictionary and JSON round trips."""

    def test_to_dict_nests_prepass(self):
        data = ParserConfig().to_dict()
        assert data["prepass"]["check_nul"] is True
        assert data["max_depth"] == DEFAULT_MAX_DEPTH

    def test_from_dict(self):
        config = ParserConfig.from_dict({
            "validate_names": False,
            "prepass": {"strip_bom": False},
        })
        assert config.validate_names is False
        assert config.prepass.strip_bom is False
        assert config.prepass.check_nul is True

    def test_from_dict_unknown_key(self):
        with pytest.raises(ConfigValidationError, match="bogus"):
            ParserConfig.from_dict({"bogus": 1})

    def test_from_dict_unknown_prepass_key(self):
        with pytest.raises(ConfigValidationError):
            ParserConfig.from_dict({"prepass": {"bogus": 1}})

    def test_from_dict_requires_mapping(self):
        with pytest.raises(ConfigValidationError, match="mapping"):
            ParserConfig.from_dict(["validate_names"])

    def test_json_round_trip(self):
        config = ParserConfig().override(max_depth=10, prepass__strip_bom=False)
        assert ParserConfig.from_json(config.to_json()) == config
        assert json.loads(config.to_json())["max_depth"] == 10

    def test_from_invalid_json(self):
        with pytest.raises(ConfigValidationError, match="Invalid configuration JSON"):
            ParserConfig.from_json("{not json")


class TestPresets:
    """Test preset factory methods."""

    def test_strict_uses_defaults(self):
        strict = ParserConfig.strict()
        assert strict.name == "strict"
        assert strict.override(name=None) == ParserConfig()

    def test_lenient(self):
        lenient = ParserConfig.lenient()
        assert lenient.name == "lenient"
        assert lenient.validate_names is False
        assert lenient.check_duplicate_attributes is False
        assert lenient.ignore_bad_escapes is True
        assert lenient.prepass.check_nul is True
