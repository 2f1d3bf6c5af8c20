"""
Fluent Method Synthesizer.

Emits one chaining setter per field descriptor. Value types use a
copy-mutate-return body, reference types mutate and return `self`.
"""

from typing import Iterable, List

from ssg_macro.core.fluent.models import FieldDescriptor
from ssg_macro.enums import CompositeKind
from ssg_macro.errors import UnsupportedDeclarationKind

VALUE_BODY = ("var copy = self", "copy.{name} = value", "return copy")
REFERENCE_BODY = ("self.{name} = value", "return self")


def synthesize(
  kind: CompositeKind,
  access_modifier: str,
  descriptors: Iterable[FieldDescriptor],
  indent: str = "    ",
) -> List[str]:
  """
  Builds the setter declarations, one per descriptor, in order.

  Args:
      kind: Composite semantics of the annotated declaration.
      access_modifier: Emitted verbatim before `func` (may be empty).
      descriptors: The classified fields.
      indent: One indentation unit for the method bodies.

  Returns:
      List[str]: Unindented method texts (no trailing newline).

  Raises:
      UnsupportedDeclarationKind: If `kind` is not a CompositeKind.
  """
  if kind == CompositeKind.VALUE:
    body = VALUE_BODY
  elif kind == CompositeKind.REFERENCE:
    body = REFERENCE_BODY
  else:
    raise UnsupportedDeclarationKind(str(kind))

  prefix = f"{access_modifier} " if access_modifier else ""
  methods = []
  for desc in descriptors:
    lines = [f"{prefix}func {desc.name}(_ value: {desc.signature}) -> Self {{"]
    lines.extend(indent + line.format(name=desc.name) for line in body)
    lines.append("}")
    methods.append("\n".join(lines))
  return methods
