"""Allow running the CLI with `python -m xml_subset_parser`."""

import sys

from xml_subset_parser.cli.main import main

if __name__ == "__main__":
    sys.exit(main())
