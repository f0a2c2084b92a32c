#!/usr/bin/env python3
"""issue-dependencies-mcp MCP Server entry point.

Run:
  uvx python -m issue_dependencies_mcp                                # start server (stdio)
  uvx python -m issue_dependencies_mcp --test                         # run lightweight self-tests then exit
  uvx python -m issue_dependencies_mcp --export-translations out.json # dump tool strings then exit
"""

import argparse
import asyncio
import sys
from pathlib import Path

from issue_dependencies_mcp.server import export_translations, run_server, test_server


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(prog="issue_dependencies_mcp", add_help=True)
    parser.add_argument(
        "--test",
        action="store_true",
        help="Run built-in server self tests (tool & resource listing) then exit.",
    )
    parser.add_argument(
        "--export-translations",
        metavar="PATH",
        type=Path,
        help="Write the tool title/description translation table to PATH as JSON then exit.",
    )
    return parser.parse_args(argv)


def main() -> None:
    """CLI dispatcher for the MCP server."""
    args = parse_args(sys.argv[1:])
    try:
        if args.export_translations is not None:
            table = export_translations(args.export_translations)
            print(f"Wrote {len(table)} translation keys to {args.export_translations}", file=sys.stderr)
        elif args.test:
            asyncio.run(test_server())
        else:
            asyncio.run(run_server())
    except KeyboardInterrupt:
        print("\nServer stopped by user", file=sys.stderr)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        print(f"Server error: {exc}", file=sys.stderr)
        raise


if __name__ == "__main__":
    main()
