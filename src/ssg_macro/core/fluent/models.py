"""
Data structures of the fluent setter pipeline.

`Member` is what the scanner reads off a declaration; `FieldDescriptor` is what
the classifier derives from it and the synthesizer consumes.
"""

from dataclasses import dataclass
from typing import Optional

from ssg_macro.core.swift.nodes import ExprNode, TypeNode


@dataclass(frozen=True)
class Member:
  """One declared property binding with its modifier flags."""

  name: str
  type_annotation: Optional[TypeNode] = None
  initializer: Optional[ExprNode] = None
  is_static: bool = False
  is_lazy: bool = False
  is_constant: bool = False
  is_private: bool = False
  has_accessor: bool = False

  @property
  def is_eligible(self) -> bool:
    """True for ordinary mutable stored fields."""
    return not (self.is_static or self.is_lazy or self.is_constant or self.is_private or self.has_accessor)


@dataclass(frozen=True)
class FieldDescriptor:
  name: str
  signature: str
