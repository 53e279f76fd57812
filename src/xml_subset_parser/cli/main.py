"""Main CLI entry point for the xml-subset command-line tool.

Provides parse, validate and dump subcommands over one or more files.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from xml_subset_parser import XMLSubsetParser, __version__
from xml_subset_parser.shared.config import ConfigError, ParserConfig
from xml_subset_parser.shared.errors import XMLParseError
from xml_subset_parser.shared.logging import get_logger
from xml_subset_parser.tools.debugging import dump_tree

PRESETS = {
    "strict": ParserConfig.strict,
    "lenient": ParserConfig.lenient,
}


def build_parser_config(args: argparse.Namespace) -> ParserConfig:
    """Build the parser configuration from a preset, file and flag overrides.

    Raises:
        ConfigError: If the configuration file holds invalid values
    """
    if getattr(args, "config", None):
        config = ParserConfig.from_json(args.config.read_text(encoding="utf-8"))
    else:
        config = PRESETS[getattr(args, "preset", "strict")]()

    overrides: Dict[str, Any] = {}
    if getattr(args, "keep_whitespace", False):
        overrides["keep_insignificant_whitespace"] = True
    if getattr(args, "no_validate_names", False):
        overrides["validate_names"] = False
    if getattr(args, "allow_duplicate_attributes", False):
        overrides["check_duplicate_attributes"] = False
    if getattr(args, "ignore_bad_escapes", False):
        overrides["ignore_bad_escapes"] = True
    return config.override(**overrides) if overrides else config


class XMLProcessor:
    """Core processing logic for CLI operations."""

    def __init__(self, config: ParserConfig):
        self.config = config
        self.parser = XMLSubsetParser(config=config)
        self.logger = get_logger(__name__, None, "cli_processor")

    def process_single_file(self, file_path: Path) -> Dict[str, Any]:
        """Parse one file and summarize the outcome."""
        try:
            data = file_path.read_bytes()
        except OSError as e:
            self.logger.warning(
                "Failed to read file", extra={"file": str(file_path), "error": str(e)}
            )
            return {"file": str(file_path), "success": False, "error": str(e)}

        result = self.parser.try_parse(data)
        summary: Dict[str, Any] = {
            "file": str(file_path),
            "success": result.success,
            "processing_time_ms": result.performance.processing_time_ms,
        }
        if result.document is not None:
            root = result.document.get_root_element()
            summary["root"] = root.name if root else None
            summary["element_count"] = result.element_count
        else:
            summary["error"] = str(result.error)
            summary["error_details"] = result.error.to_dict()
        return summary

    def process_files(self, paths: List[Path]) -> List[Dict[str, Any]]:
        return [self.process_single_file(path) for path in paths]


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="xml-subset",
        description="Fail-fast parser for a restricted subset of XML"
    )

    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    def add_config_options(subparser: argparse.ArgumentParser) -> None:
        subparser.add_argument(
            "--config", "-c",
            type=Path,
            help="JSON parser configuration file"
        )
        subparser.add_argument(
            "--preset",
            choices=sorted(PRESETS),
            default="strict",
            help="Parser configuration preset (default: strict)"
        )
        subparser.add_argument(
            "--keep-whitespace",
            action="store_true",
            help="Keep whitespace-only character data"
        )
        subparser.add_argument(
            "--no-validate-names",
            action="store_true",
            help="Skip XML Name grammar checks"
        )
        subparser.add_argument(
            "--allow-duplicate-attributes",
            action="store_true",
            help="Accept repeated attribute names"
        )
        subparser.add_argument(
            "--ignore-bad-escapes",
            action="store_true",
            help="Pass unknown references through verbatim"
        )

    # Parse command
    parse_parser = subparsers.add_parser("parse", help="Parse XML files")
    parse_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="XML files to parse"
    )
    parse_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        default="text",
        help="Output format (default: text)"
    )
    add_config_options(parse_parser)

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate XML files")
    validate_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="XML files to validate"
    )
    add_config_options(validate_parser)

    # Dump command
    dump_parser = subparsers.add_parser("dump", help="Print the parsed tree of a file")
    dump_parser.add_argument("path", type=Path, help="XML file to dump")
    add_config_options(dump_parser)

    # Global options
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )

    return parser


def format_results(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format processing results for output."""
    if format_type == "json":
        return json.dumps(results, indent=2)

    if not results:
        return "No results to display."

    lines = []
    successful = sum(1 for r in results if r.get("success", False))

    lines.append(f"Processed {len(results)} files, {successful} successful")
    lines.append("-" * 60)

    for result in results:
        status = "✓" if result.get("success", False) else "✗"
        lines.append(f"{status} {result['file']}")
        if result.get("success", False):
            lines.append(
                f"   Root: {result.get('root')}, "
                f"Elements: {result.get('element_count', 0)}, "
                f"Time: {result.get('processing_time_ms', 0):.1f}ms"
            )
        else:
            lines.append(f"   Error: {result.get('error', '')}")
        lines.append("")

    return "\n".join(lines)


def cmd_parse(args: argparse.Namespace) -> int:
    """Handle parse command."""
    processor = XMLProcessor(build_parser_config(args))
    results = processor.process_files(args.paths)

    print(format_results(results, args.format))

    successful = sum(1 for r in results if r.get("success", False))
    return 0 if results and successful == len(results) else 1


def cmd_validate(args: argparse.Namespace) -> int:
    """Handle validate command."""
    processor = XMLProcessor(build_parser_config(args))
    results = processor.process_files(args.paths)

    valid_count = sum(1 for r in results if r.get("success", False))
    print(f"Validated {len(results)} files, {valid_count} valid")
    print("-" * 50)

    for result in results:
        status = "✓" if result.get("success", False) else "✗"
        print(f"{status} {result['file']}")
        if not result.get("success", False):
            print(f"   Error: {result.get('error', '')}")

    return 0 if valid_count == len(results) else 1


def cmd_dump(args: argparse.Namespace) -> int:
    """Handle dump command."""
    parser = XMLSubsetParser(config=build_parser_config(args))
    try:
        document = parser.parse_file(args.path)
    except (OSError, XMLParseError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(dump_tree(document), end="")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # Set up logging verbosity
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    elif args.quiet:
        logging.basicConfig(level=logging.ERROR)

    # Route to appropriate command handler
    try:
        if args.command == "parse":
            return cmd_parse(args)
        elif args.command == "validate":
            return cmd_validate(args)
        elif args.command == "dump":
            return cmd_dump(args)
        else:
            print(f"Unknown command: {args.command}", file=sys.stderr)
            return 1

    except (ConfigError, OSError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
