"""
Main Entry Point for the ssg-macro CLI.

This module handles argument parsing and dispatches to the command handlers
defined in `ssg_macro.cli.handlers`.
"""

import argparse
from pathlib import Path
from typing import List, Optional

from ssg_macro import __version__
from ssg_macro.cli.handlers import handle_expand, handle_fields


def build_parser() -> argparse.ArgumentParser:
  parser = argparse.ArgumentParser(prog="ssg-macro", description="ssg-macro: Swift macro expander")
  parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

  subparsers = parser.add_subparsers(dest="command", required=True)

  # --- Command: EXPAND ---
  cmd_exp = subparsers.add_parser("expand", help="Expand macros in a Swift file or directory")
  cmd_exp.add_argument("path", type=Path, help="Input source file or directory")
  cmd_exp.add_argument("--out", type=Path, help="Output destination (file or dir)")
  cmd_exp.add_argument(
    "--check",
    action="store_true",
    help="Report files that would change without writing anything (exit 1 if any)",
  )
  cmd_exp.add_argument(
    "--strict",
    action="store_true",
    default=None,
    help="Abort a file on its first failing macro site (Overrides config)",
  )
  cmd_exp.add_argument("--indent", type=int, default=None, help="Indentation width of generated code")
  cmd_exp.add_argument(
    "--json-trace", type=Path, default=None, help="Dump full execution trace (events, diffs) to a JSON file."
  )

  # --- Command: FIELDS ---
  cmd_fields = subparsers.add_parser("fields", help="List the setters annotated declarations would get")
  cmd_fields.add_argument("path", type=Path, help="Input source file or directory")

  return parser


def main(argv: Optional[List[str]] = None) -> int:
  """
  Main CLI entry point.

  Args:
      argv: Optional list of command line arguments (defaults to sys.argv).

  Returns:
      int: Exit code (0 for success, non-zero for failure).
  """
  args = build_parser().parse_args(argv)

  if args.command == "expand":
    return handle_expand(args.path, args.out, args.check, args.strict, args.indent, args.json_trace)

  elif args.command == "fields":
    return handle_fields(args.path)

  return 1


if __name__ == "__main__":
  import sys

  sys.exit(main())
