"""
Data structures representing the output of the expansion pipeline.

This module defines the `ExpansionResult` Pydantic model, which encapsulates
the expanded code, the diagnostics of failing macro sites, and the execution
trace.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class Diagnostic(BaseModel):
  """
  A failure attached to one macro site.
  """

  message: str = Field(..., description="Human readable error message.")
  macro: str = Field("", description="Name of the macro whose expansion failed.")
  line: Optional[int] = Field(None, description="1-based line of the attribute or marker.")
  column: Optional[int] = Field(None, description="0-based column of the attribute or marker.")
  path: Optional[str] = Field(None, description="Source file, when known.")

  def format(self) -> str:
    location = self.path or "<string>"
    if self.line is not None:
      location += f":{self.line}"
      if self.column is not None:
        location += f":{self.column}"
    prefix = f"[{self.macro}] " if self.macro else ""
    return f"{location}: {prefix}{self.message}"


class ExpansionResult(BaseModel):
  """
  Container for the results of expanding one source unit.
  """

  code: str = Field(default="", description="The expanded source code.")
  diagnostics: List[Diagnostic] = Field(default_factory=list, description="Failures of individual macro sites.")
  success: bool = Field(
    default=True,
    description="True if every macro site expanded.",
  )
  trace_events: List[Dict[str, Any]] = Field(default_factory=list, description="Execution trace log data.")

  @property
  def has_errors(self) -> bool:
    """
    Check if the result contains any diagnostics.

    Returns:
        True if one or more diagnostics are present.
    """
    return len(self.diagnostics) > 0

  @property
  def errors(self) -> List[str]:
    """Diagnostics rendered as `path:line:col: message` strings."""
    return [diag.format() for diag in self.diagnostics]
