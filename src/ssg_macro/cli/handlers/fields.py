"""
Fields Command Handler.

Prints, for every declaration carrying the fluent setter attribute, the
setters that expansion would generate.
"""

from pathlib import Path

from rich.markup import escape
from rich.table import Table

from ssg_macro.cli.handlers.expand import collect_sources
from ssg_macro.config import RuntimeConfig
from ssg_macro.core.engine import ExpansionEngine
from ssg_macro.core.swift.lexer import SwiftSyntaxError
from ssg_macro.utils.console import console, log_error, log_warning


def handle_fields(input_path: Path) -> int:
  """
  Handles the 'fields' command execution.

  Args:
      input_path: A Swift file or a directory searched recursively.

  Returns:
      int: Exit code (0 for success, 1 when an input cannot be read or tokenized).
  """
  if not input_path.exists():
    log_error(f"Input not found: {escape(str(input_path))}")
    return 1

  config = RuntimeConfig.load(search_path=input_path if input_path.is_dir() else input_path.parent)
  engine = ExpansionEngine(config=config)
  sources = [input_path] if input_path.is_file() else collect_sources(input_path, config.file_extensions)

  table = Table(title=f"@{config.fluent_setter_macro} fields")
  if input_path.is_dir():
    table.add_column("File", style="bold blue")
  table.add_column("Declaration", style="bold")
  table.add_column("Kind")
  table.add_column("Field")
  table.add_column("Setter Signature", style="cyan")

  exit_code = 0
  rows = 0
  for src_file in sources:
    try:
      code = src_file.read_text(encoding="utf-8")
      reports = engine.collect_fields(code)
    except (OSError, UnicodeDecodeError, SwiftSyntaxError) as e:
      log_error(f"Failed to inspect {escape(str(src_file))}: {escape(str(e))}")
      exit_code = 1
      continue

    for report in reports:
      cells = [escape(c) for c in (report.declaration, report.kind.value, report.field.name, report.field.signature)]
      if input_path.is_dir():
        cells.insert(0, escape(str(src_file.relative_to(input_path))))
      table.add_row(*cells)
      rows += 1

  if rows:
    console.print(table)
  else:
    log_warning(f"No @{config.fluent_setter_macro} fields found in {escape(str(input_path))}")
  return exit_code
