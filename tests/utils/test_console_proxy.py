"""
Tests for Console Proxy and Logging Helpers.

Verifies:
1. Backend injection and reset.
2. Log helpers route through the injected console with their prefixes.
3. The custom SUCCESS level and the application theme.
"""

import logging

from rich.console import Console

from ssg_macro.utils.console import (
  SUCCESS_LEVEL_NUM,
  console,
  get_console,
  log_error,
  log_info,
  log_success,
  log_warning,
  make_console,
  reset_console,
  set_console,
)


def test_injected_console_captures_log_helpers():
  capture = Console(record=True, file=None, width=200)
  set_console(capture)

  log_info("Scanning Sources")
  log_success("Expanded A.swift")
  log_warning("Would expand B.swift")
  log_error("Broken C.swift")

  output = capture.export_text()
  for text in ("Scanning Sources", "Expanded A.swift", "Would expand B.swift", "Broken C.swift"):
    assert text in output
  assert "✅" in output
  assert "❌" in output


def test_success_level_registered():
  assert logging.getLevelName(SUCCESS_LEVEL_NUM) == "SUCCESS"
  assert logging.INFO < SUCCESS_LEVEL_NUM < logging.WARNING


def test_single_rich_handler_after_swaps():
  set_console(Console(file=None))
  set_console(Console(file=None))
  reset_console()
  handlers = [h for h in logging.getLogger().handlers if type(h).__name__ == "RichHandler"]
  assert len(handlers) == 1


def test_reset_builds_fresh_backend():
  temp = Console(file=None)
  set_console(temp)
  assert get_console() is temp
  reset_console()
  assert get_console() is not temp


def test_make_console_carries_theme():
  themed = make_console(record=True, file=None, width=80)
  themed.print("[macro]@fluentSetterMacro[/macro] [signature]CGFloat[/signature]")
  assert "@fluentSetterMacro CGFloat" in themed.export_text()


def test_proxy_print_and_delegation():
  capture = Console(record=True, file=None)
  set_console(capture)
  console.print("direct")
  assert "direct" in capture.export_text()
  assert console.width == capture.width
