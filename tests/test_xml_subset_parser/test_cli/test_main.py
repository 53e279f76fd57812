"""Tests for the CLI main module."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from xml_subset_parser.cli.main import (
    XMLProcessor,
    build_parser_config,
    create_argument_parser,
    format_results,
    main,
)
from xml_subset_parser.shared.config import ConfigValidationError, ParserConfig


@pytest.fixture
def good_file(tmp_path):
    path = tmp_path / "good.xml"
    path.write_text('<?xml version="1.0"?><root><item>1</item></root>', encoding="utf-8")
    return path


@pytest.fixture
def bad_file(tmp_path):
    path = tmp_path / "bad.xml"
    path.write_text("<root>\n<item></root>", encoding="utf-8")
    return path


class TestBuildParserConfig:
    """Test CLI configuration assembly."""

    def test_default_is_strict(self):
        args = create_argument_parser().parse_args(["validate", "x.xml"])
        config = build_parser_config(args)
        assert config.name == "strict"
        assert config.validate_names is True

    def test_preset_and_flags(self):
        args = create_argument_parser().parse_args([
            "parse", "x.xml", "--preset", "lenient", "--keep-whitespace",
        ])
        config = build_parser_config(args)
        assert config.name == "lenient"
        assert config.keep_insignificant_whitespace is True
        assert config.ignore_bad_escapes is True

    def test_individual_flags(self):
        args = create_argument_parser().parse_args([
            "parse", "x.xml",
            "--no-validate-names", "--allow-duplicate-attributes", "--ignore-bad-escapes",
        ])
        config = build_parser_config(args)
        assert config.validate_names is False
        assert config.check_duplicate_attributes is False
        assert config.ignore_bad_escapes is True

    def test_config_file(self, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"max_depth": 3, "prepass": {"strip_bom": False}}))
        args = create_argument_parser().parse_args(
            ["parse", "x.xml", "--config", str(config_path)]
        )
        config = build_parser_config(args)
        assert config.max_depth == 3
        assert config.prepass.strip_bom is False

    def test_invalid_config_file(self, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text('{"max_depth": -1}')
        args = create_argument_parser().parse_args(
            ["parse", "x.xml", "-c", str(config_path)]
        )
        with pytest.raises(ConfigValidationError):
            build_parser_config(args)


class TestXMLProcessor:
    """Test file processing."""

    def test_process_single_file_success(self, good_file):
        result = XMLProcessor(ParserConfig()).process_single_file(good_file)
        assert result["success"] is True
        assert result["root"] == "root"
        assert result["element_count"] == 2
        assert result["file"] == str(good_file)

    def test_process_single_file_failure(self, bad_file):
        result = XMLProcessor(ParserConfig()).process_single_file(bad_file)
        assert result["success"] is False
        assert result["error"].startswith("Line 2, Column 7: ")
        assert result["error_details"]["type"] == "StructuralError"

    def test_process_nonexistent_file(self, tmp_path):
        result = XMLProcessor(ParserConfig()).process_single_file(tmp_path / "none.xml")
        assert result["success"] is False
        assert "error" in result

    def test_process_files(self, good_file, bad_file):
        results = XMLProcessor(ParserConfig()).process_files([good_file, bad_file])
        assert [r["success"] for r in results] == [True, False]


class TestFormatResults:
    """Test output formatting."""

    def test_format_json(self):
        results = [{"file": "a.xml", "success": True, "root": "a", "element_count": 1}]
        assert json.loads(format_results(results, "json")) == results

    def test_format_text(self):
        results = [
            {"file": "a.xml", "success": True, "root": "a", "element_count": 1,
             "processing_time_ms": 0.5},
            {"file": "b.xml", "success": False, "error": "Line 1, Column 1: boom"},
        ]
        output = format_results(results, "text")
        assert "Processed 2 files, 1 successful" in output
        assert "✓ a.xml" in output
        assert "Root: a, Elements: 1" in output
        assert "✗ b.xml" in output
        assert "Error: Line 1, Column 1: boom" in output

    def test_format_empty_results(self):
        assert format_results([], "text") == "No results to display."


class TestMainFunction:
    """Test command routing."""

    def test_main_no_args(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_main_unknown_command(self):
        with pytest.raises(SystemExit):
            main(["frobnicate"])

    @patch('xml_subset_parser.cli.main.cmd_parse')
    def test_main_parse_command(self, mock_cmd_parse):
        mock_cmd_parse.return_value = 0
        assert main(["parse", "test.xml"]) == 0
        args = mock_cmd_parse.call_args[0][0]
        assert args.paths == [Path("test.xml")]
        assert args.format == "text"

    @patch('xml_subset_parser.cli.main.cmd_validate')
    def test_main_validate_command(self, mock_cmd_validate):
        mock_cmd_validate.return_value = 1
        assert main(["validate", "a.xml", "b.xml"]) == 1
        mock_cmd_validate.assert_called_once()

    @patch('xml_subset_parser.cli.main.cmd_dump')
    def test_main_dump_command(self, mock_cmd_dump):
        mock_cmd_dump.return_value = 0
        assert main(["dump", "a.xml"]) == 0
        assert mock_cmd_dump.call_args[0][0].path == Path("a.xml")

    def test_main_keyboard_interrupt(self):
        with patch('xml_subset_parser.cli.main.cmd_parse', side_effect=KeyboardInterrupt):
            assert main(["parse", "test.xml"]) == 130

    def test_main_configuration_error(self, tmp_path, capsys):
        config_path = tmp_path / "config.json"
        config_path.write_text("{broken")
        assert main(["validate", "x.xml", "--config", str(config_path)]) == 1
        assert "Configuration error" in capsys.readouterr().err


@pytest.mark.integration
class TestCLIIntegration:
    """Run commands end to end against real files."""

    def test_cli_parse_json(self, good_file, capsys):
        assert main(["parse", str(good_file), "--format", "json"]) == 0
        output = json.loads(capsys.readouterr().out)
        assert output[0]["root"] == "root"

    def test_cli_parse_failure_exit_code(self, good_file, bad_file, capsys):
        assert main(["parse", str(good_file), str(bad_file)]) == 1
        assert "Processed 2 files, 1 successful" in capsys.readouterr().out

    def test_cli_validate(self, good_file, bad_file, capsys):
        assert main(["validate", str(good_file)]) == 0
        assert main(["validate", str(good_file), str(bad_file)]) == 1
        output = capsys.readouterr().out
        assert "Validated 2 files, 1 valid" in output
        assert "opening/closing tag name mismatch" in output

    def test_cli_dump(self, good_file, capsys):
        assert main(["dump", str(good_file)]) == 0
        assert capsys.readouterr().out == (
            '<?xml version="1.0"?>\n<root>\n <item>\n  1\n </item>\n</root>\n'
        )

    def test_cli_dump_error(self, bad_file, capsys):
        assert main(["dump", str(bad_file)]) == 1
        assert capsys.readouterr().err.startswith("Error: Line 2")

    def test_cli_dump_missing_file(self, tmp_path, capsys):
        assert main(["dump", str(tmp_path / "missing.xml")]) == 1
        assert "Error:" in capsys.readouterr().err
