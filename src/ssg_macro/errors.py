"""
Expansion Error Taxonomy.

Every error here aborts the expansion of a single macro site. The engine turns
them into `Diagnostic` records positioned at the attribute or marker location.
"""

from typing import Optional


class MacroExpansionError(Exception):
  """Base class for failures raised while expanding one macro site."""

  def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
    super().__init__(message)
    self.message = message
    self.line = line
    self.column = column


class UnsupportedDeclarationKind(MacroExpansionError):
  """The annotated declaration is neither a `struct` nor a `class`."""

  def __init__(self, keyword: str, line: Optional[int] = None, column: Optional[int] = None):
    super().__init__(f"Unsupported declaration kind: '{keyword}' (expected struct or class)", line, column)
    self.keyword = keyword


class MissingClosureArgument(MacroExpansionError):
  """The closure-rewrite marker is not followed by a trailing closure."""

  def __init__(self, macro: str = "", line: Optional[int] = None, column: Optional[int] = None):
    target = f"#{macro}" if macro else "macro"
    super().__init__(f"Expected a closure argument for {target}", line, column)
