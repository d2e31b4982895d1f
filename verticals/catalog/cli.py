"""routekit-index — generate skills/index.json from every SKILL.md.

Usage:
    routekit-index [SKILLS_DIR] [--output PATH]
"""
from __future__ import annotations
from typing import Optional, Sequence
import argparse
import sys

from routekit.errors import CatalogError
from routekit.observability import configure_logging
from verticals.catalog.index import write_index


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="routekit-index",
        description="Generate index.json from every <slug>/SKILL.md in a skills directory.",
    )
    parser.add_argument("skills_dir", nargs="?", default="skills",
                        help="Directory containing one subdirectory per skill (default: skills)")
    parser.add_argument("-o", "--output", default=None,
                        help="Output path (default: SKILLS_DIR/index.json)")
    parser.add_argument("--log-level", default="WARNING")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(log_level=args.log_level, json_logs=False)

    try:
        index = write_index(args.skills_dir, args.output)
    except CatalogError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(f"Generated index.json with {len(index.skills)} skills and {len(index.categories)} categories")
    return 0


if __name__ == "__main__":
    sys.exit(main())
