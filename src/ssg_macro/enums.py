"""
Enumerations for ssg-macro.

This module defines the enumerations shared between the fluent setter pipeline,
the macro registry and the CLI reports.
"""

from enum import Enum


class CompositeKind(str, Enum):
  """
  Semantics of an annotated composite declaration.

  Selects the synthesis template: value types copy, reference types mutate self.
  """

  VALUE = "value"  # struct
  REFERENCE = "reference"  # class


class MacroRole(str, Enum):
  """Where a macro is attached and what it produces."""

  MEMBER = "member"  # @attribute on a declaration, adds members
  EXPRESSION = "expression"  # #marker in expression position, replaced in place
