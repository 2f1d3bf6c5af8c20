"""
Expand Command Handler.

This module implements the logic for the `ssg-macro expand` command.
It orchestrates:
1. Configuration loading (`[tool.ssg_macro]` plus CLI overrides).
2. Macro expansion via the Engine, per file or over a directory tree.
3. Output writing, `--check` reporting and trace logging.
"""

import json
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import ValidationError
from rich.markup import escape
from rich.table import Table

from ssg_macro.config import RuntimeConfig
from ssg_macro.core.engine import ExpansionEngine
from ssg_macro.core.expansion_result import Diagnostic, ExpansionResult
from ssg_macro.utils.console import console, log_error, log_info, log_success, log_warning


def collect_sources(root: Path, extensions: List[str]) -> List[Path]:
  """Files under `root` whose suffix is one of `extensions`, sorted."""
  return sorted(p for p in root.rglob("*") if p.is_file() and p.suffix in extensions)


def handle_expand(
  input_path: Path,
  output_path: Optional[Path],
  check: bool,
  strict: Optional[bool],
  indent: Optional[int] = None,
  json_trace_path: Optional[Path] = None,
) -> int:
  """
  Handles the 'expand' command execution.

  Args:
      input_path: Path to the Swift file or directory to expand.
      output_path: Where expanded code is saved. Stdout for a single file if None.
      check: If True, only report files whose expansion differs from the input.
      strict: If True, a failing site aborts its whole file.
      indent: Override for the indentation width of generated code.
      json_trace_path: Optional path to dump execution trace JSON.

  Returns:
      int: Exit code (0 for success, 1 for failures or, with --check, pending changes).
  """
  if not input_path.exists():
    log_error(f"Input not found: {escape(str(input_path))}")
    return 1

  try:
    config = RuntimeConfig.load(
      strict_mode=strict,
      indent_width=indent,
      search_path=input_path if input_path.is_dir() else input_path.parent,
    )
  except ValidationError as e:
    log_error(f"Invalid configuration: {escape(str(e))}")
    return 1

  engine = ExpansionEngine(config=config)
  batch_results: Dict[str, ExpansionResult] = {}
  pending: List[str] = []

  if input_path.is_file():
    result = _expand_single_file(input_path, output_path, engine, check, json_trace_path)
    batch_results[input_path.name] = result
    if check and result.success and _changed(input_path, result):
      pending.append(input_path.name)
  else:
    if not output_path and not check:
      log_error("Directory expansion requires --out destination directory.")
      return 1

    sources = collect_sources(input_path, config.file_extensions)
    if not sources:
      log_warning(f"No {', '.join(config.file_extensions)} files found in {escape(str(input_path))}")
      return 0

    log_info(f"Processing {len(sources)} files from {escape(str(input_path))}...")

    for src_file in sources:
      rel_path = src_file.relative_to(input_path)
      dest_file = output_path / rel_path if output_path else None

      batch_trace = None
      if json_trace_path and dest_file:
        batch_trace = dest_file.with_suffix(".trace.json")

      result = _expand_single_file(src_file, dest_file, engine, check, batch_trace)
      batch_results[str(rel_path)] = result
      if check and result.success and _changed(src_file, result):
        pending.append(str(rel_path))

  if input_path.is_dir() or any(not r.success for r in batch_results.values()):
    _print_batch_summary(batch_results)

  if check:
    for name in pending:
      log_warning(f"Would expand: [path]{escape(name)}[/path]")
    if not pending:
      log_success("Nothing to expand.")

  if any(not r.success for r in batch_results.values()):
    return 1
  return 1 if pending else 0


def _changed(source: Path, result: ExpansionResult) -> bool:
  return source.read_text(encoding="utf-8") != result.code


def _expand_single_file(
  input_path: Path,
  output_path: Optional[Path],
  engine: ExpansionEngine,
  check: bool = False,
  json_trace_path: Optional[Path] = None,
) -> ExpansionResult:
  """
  Helper to execute expansion on a single file.

  Args:
      input_path: Source file path.
      output_path: Destination file path, stdout if None.
      engine: Configured expansion engine.
      check: Skip all writing when True.
      json_trace_path: Path to save trace event logs.

  Returns:
      ExpansionResult: Result object containing status and code.
  """
  try:
    with open(input_path, "rt", encoding="utf-8") as f:
      code = f.read()
  except (OSError, UnicodeDecodeError) as e:
    log_error(f"Failed to read {escape(str(input_path))}: {escape(str(e))}")
    return ExpansionResult(success=False, diagnostics=[Diagnostic(message=str(e), path=str(input_path))])

  result = engine.run(code, path=input_path)

  if json_trace_path and result.trace_events:
    try:
      json_trace_path.parent.mkdir(parents=True, exist_ok=True)
      with open(json_trace_path, "wt", encoding="utf-8") as f:
        json.dump(result.trace_events, f, indent=2)
      log_info(f"Trace saved to [path]{escape(str(json_trace_path))}[/path]")
    except OSError as e:
      log_error(f"Failed to write trace: {escape(str(e))}")

  if not result.success:
    for message in result.errors:
      log_error(escape(message))
    return result

  if check:
    return result

  if output_path:
    try:
      output_path.parent.mkdir(parents=True, exist_ok=True)
      with open(output_path, "wt", encoding="utf-8") as f:
        f.write(result.code)
    except OSError as e:
      log_error(f"Failed to write {escape(str(output_path))}: {escape(str(e))}")
      return ExpansionResult(code=result.code, success=False, diagnostics=[Diagnostic(message=str(e))])
    log_success(f"Expanded: [path]{escape(str(input_path))}[/path] -> [path]{escape(str(output_path))}[/path]")
  else:
    print(result.code, end="" if result.code.endswith("\n") else "\n")

  return result


def _print_batch_summary(results: Dict[str, ExpansionResult]) -> None:
  """
  Renders a summary table of expansion results to the console.

  Args:
      results: Dictionary mapping filenames to expansion results.
  """
  total = len(results)
  successes = sum(1 for r in results.values() if r.success)
  failures = total - successes

  if failures == 0:
    log_success(f"Batch Complete: {successes}/{total} files expanded.")
    return

  table = Table(title="Expansion Report")
  table.add_column("File", style="cyan")
  table.add_column("Status", justify="center")
  table.add_column("Issues", style="red")

  for filename, res in results.items():
    if res.success:
      continue
    issues = escape("; ".join(res.errors)) if res.errors else "Unknown Error"
    table.add_row(escape(filename), "❌ Failed", issues)

  console.print(table)
  console.print(f"\n[bold]Summary:[/bold] {successes} Passed, {failures} with Issues.")
