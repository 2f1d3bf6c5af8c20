"""
Built-in Macros.

*   `FluentSetterMacro` (member role): scans an annotated `struct` / `class`,
    classifies its stored fields and synthesizes one chaining setter per field.
*   `WeakSelfClosureMacro` (expression role): rewrites the trailing closure of
    the marker to capture `self` weakly behind a `guard`.
"""

from typing import List, Tuple

from ssg_macro.core.closure.rewriter import rewrite
from ssg_macro.core.fluent.classifier import describe, is_sentinel
from ssg_macro.core.fluent.models import FieldDescriptor
from ssg_macro.core.fluent.scanner import composite_kind, scan
from ssg_macro.core.fluent.synthesizer import synthesize
from ssg_macro.core.registry import Macro, MacroContext
from ssg_macro.core.swift.nodes import Attribute, DeclGroup, MacroExpansionExpr, StringLiteralExpr
from ssg_macro.enums import CompositeKind, MacroRole


def access_modifier(attribute: Attribute) -> str:
  """The first argument of the attribute when it is a string literal, else ''."""
  if not attribute.arguments:
    return ""
  first = attribute.arguments[0].expression
  if isinstance(first, StringLiteralExpr):
    return first.value.strip()
  return ""


class FluentSetterMacro(Macro):
  role = MacroRole.MEMBER

  def fields(self, declaration: DeclGroup, context: MacroContext) -> Tuple[CompositeKind, List[FieldDescriptor]]:
    """
    Kind of the declaration and the descriptors setters are generated for.

    Fields whose signature is a `Nil` / `KeyPath` sentinel are dropped with a
    warning, since no usable parameter type exists for them.

    Raises:
        UnsupportedDeclarationKind: If the declaration is not a struct or class.
    """
    kind = composite_kind(declaration)
    descriptors = []
    for desc in describe(scan(declaration)):
      if is_sentinel(desc.signature):
        context.warn(
          f"{declaration.name}.{desc.name}: cannot infer a type from a '{desc.signature}' initializer; "
          "add a type annotation to get a setter"
        )
        continue
      descriptors.append(desc)
    return kind, descriptors

  def expand(self, declaration: DeclGroup, attribute: Attribute, context: MacroContext) -> List[str]:
    """Returns the setter declarations to append to the member block."""
    kind, descriptors = self.fields(declaration, context)
    return synthesize(kind, access_modifier(attribute), descriptors, context.indent)


class WeakSelfClosureMacro(Macro):
  role = MacroRole.EXPRESSION

  def expand(self, expansion: MacroExpansionExpr, context: MacroContext) -> str:
    """
    Returns the source of the rewritten closure.

    Raises:
        MissingClosureArgument: If the marker has no trailing closure.
    """
    return rewrite(expansion, context.indent).to_text()
