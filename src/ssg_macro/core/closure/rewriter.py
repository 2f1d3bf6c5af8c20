"""
Closure Rewriter.

Turns the trailing closure of a `#WeakSelfClosure { ... }` marker into a closure
that captures `self` weakly and bails out early once `self` is gone:

    { [weak self] in
        guard let self else {
            return
        }
        ...original statements...
    }

Nodes are immutable; the rewrite builds new signature, capture and statement
nodes with `dataclasses.replace` and shares every untouched child.
"""

from dataclasses import replace
from typing import Optional

from ssg_macro.core.swift.nodes import (
  ClosureCapture,
  ClosureCaptureClause,
  ClosureExpr,
  ClosureSignature,
  CodeBlockItem,
  DeclReferenceExpr,
  MacroExpansionExpr,
)
from ssg_macro.errors import MissingClosureArgument

WEAK_SELF = ClosureCapture(expression=DeclReferenceExpr(name="self"), specifier="weak")


def guard_statement(indent: str = "    ") -> CodeBlockItem:
  """`guard let self else { return }` laid out over three lines."""
  return CodeBlockItem(text="\n".join(["guard let self else {", f"{indent}return", "}"]))


def add_weak_self(signature: Optional[ClosureSignature]) -> ClosureSignature:
  """Appends `weak self` after any existing captures, creating the signature if needed."""
  if signature is None:
    return ClosureSignature(capture=ClosureCaptureClause(items=(WEAK_SELF,)))
  existing = signature.capture.items if signature.capture is not None else ()
  capture = ClosureCaptureClause(items=existing + (WEAK_SELF,))
  return replace(signature, capture=capture, text="")


def rewrite(expansion: MacroExpansionExpr, indent: str = "    ") -> ClosureExpr:
  """
  Rewrites the trailing closure of a macro expansion.

  Args:
      expansion: The parsed `#Macro { ... }` expression.
      indent: Indentation unit used for the rebuilt closure body.

  Returns:
      ClosureExpr: A new closure; `expansion` is left untouched.

  Raises:
      MissingClosureArgument: If the expansion has no trailing closure.
  """
  closure = expansion.trailing_closure
  if closure is None:
    raise MissingClosureArgument(expansion.name, expansion.line, expansion.column)

  return replace(
    closure,
    signature=add_weak_self(closure.signature),
    statements=(guard_statement(indent),) + closure.statements,
    text="",
    indent_unit=indent,
  )
