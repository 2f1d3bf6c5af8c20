"""
Type/Value Classifier.

Derives the textual type signature of a stored field for its fluent setter
parameter. Explicit annotations win; otherwise the initializer expression is
inspected, mirroring the subset of Swift literal type inference that the
generated setters need:

*   **Literals**: `1` -> `Int`, `1.0` -> `CGFloat`, `"a"` -> `String`, `true` -> `Bool`.
*   **Collections**: uniform arrays -> `[E]`, mixed arrays -> `[Any]`;
    dictionaries -> `[K: V]` with `AnyHashable` / `Any` fallbacks.
*   **Closures**: `{ (v: Int) -> String in ... }` -> `@escaping (Int) -> String`.
*   **Calls and casts**: `Foo()` -> `Foo`, `x as T` -> `T`.

The classifier never raises. Unrecognised shapes fall back to their trimmed
source text, and `nil` / key path initializers yield the `Nil` / `KeyPath`
sentinels, which mean "no safe signature".
"""

from typing import List, Optional

from ssg_macro.core.fluent.models import FieldDescriptor, Member
from ssg_macro.core.swift.nodes import (
  ArrayExpr,
  ArrayType,
  AsExpr,
  BooleanLiteralExpr,
  ClosureExpr,
  ClosureParameterClause,
  DictionaryExpr,
  DictionaryType,
  ExprNode,
  FloatLiteralExpr,
  FunctionCallExpr,
  FunctionType,
  IdentifierType,
  ImplicitlyUnwrappedOptionalType,
  IntegerLiteralExpr,
  KeyPathExpr,
  MetatypeType,
  NilLiteralExpr,
  OptionalType,
  SequenceExpr,
  StringLiteralExpr,
  TupleExpr,
  TupleType,
  TypeExpr,
  TypeNode,
)

FLOAT_ALIAS = "CGFloat"
ESCAPING = "@escaping"
NIL_SENTINEL = "Nil"
KEY_PATH_SENTINEL = "KeyPath"
SENTINELS = frozenset({NIL_SENTINEL, KEY_PATH_SENTINEL})

ANY = "Any"
ANY_ARRAY = "[Any]"
ANY_HASHABLE = "AnyHashable"
VOID = "()"


def classify(member: Member) -> Optional[str]:
  """
  Resolves the setter signature of a member.

  Returns:
      Optional[str]: The signature, or None when the member has neither an
      annotation nor an initializer.
  """
  if member.type_annotation is not None:
    return infer_type_signature(member.type_annotation)
  if member.initializer is not None:
    return infer_expression_signature(member.initializer)
  return None


def describe(members: List[Member]) -> List[FieldDescriptor]:
  """Classifies each member, dropping those without any type information."""
  descriptors = []
  for member in members:
    signature = classify(member)
    if signature is not None:
      descriptors.append(FieldDescriptor(name=member.name, signature=signature))
  return descriptors


def is_sentinel(signature: str) -> bool:
  return signature in SENTINELS


def infer_type_signature(node: Optional[TypeNode]) -> str:
  """Signature of an explicit type annotation."""
  if node is None:
    return ""

  if isinstance(node, IdentifierType):
    return node.name + node.generic_clause

  if isinstance(node, ImplicitlyUnwrappedOptionalType):
    inner = infer_type_signature(node.wrapped)
    # A callable behind `!` must be captured past the setter call
    if isinstance(node.wrapped, (TupleType, FunctionType)):
      return f"{ESCAPING} {inner}"
    return inner

  if isinstance(node, OptionalType):
    return infer_type_signature(node.wrapped) + "?"

  if isinstance(node, TupleType):
    return "(" + ", ".join(el.to_text().strip() for el in node.elements) + ")"

  if isinstance(node, MetatypeType):
    return f"{infer_type_signature(node.base)}.{node.specifier}"

  if isinstance(node, ArrayType):
    return f"[{node.element.to_text().strip()}]"

  if isinstance(node, DictionaryType):
    return f"[{infer_type_signature(node.key)}: {infer_type_signature(node.value)}]"

  return node.to_text().strip()


def infer_expression_signature(node: Optional[ExprNode]) -> str:
  """Signature inferred from an initializer expression."""
  if node is None:
    return ""

  if isinstance(node, IntegerLiteralExpr):
    return "Int"
  if isinstance(node, FloatLiteralExpr):
    return FLOAT_ALIAS
  if isinstance(node, StringLiteralExpr):
    return "String"
  if isinstance(node, BooleanLiteralExpr):
    return "Bool"
  if isinstance(node, NilLiteralExpr):
    return NIL_SENTINEL
  if isinstance(node, KeyPathExpr):
    return KEY_PATH_SENTINEL
  if isinstance(node, ClosureExpr):
    return _infer_closure(node)
  if isinstance(node, ArrayExpr):
    return _infer_array(node)
  if isinstance(node, DictionaryExpr):
    return _infer_dictionary(node)
  if isinstance(node, TupleExpr):
    return _infer_tuple(node)
  if isinstance(node, FunctionCallExpr):
    return node.called.to_text().strip()
  if isinstance(node, SequenceExpr):
    return _infer_sequence(node)

  return node.to_text().strip()


def _infer_array(node: ArrayExpr) -> str:
  element_types = [infer_expression_signature(el) for el in node.elements]
  if element_types and all(t == element_types[0] for t in element_types):
    return f"[{element_types[0]}]"
  return ANY_ARRAY


def _infer_dictionary(node: DictionaryExpr) -> str:
  key_types = {infer_expression_signature(el.key) for el in node.elements}
  value_types = {infer_expression_signature(el.value) for el in node.elements}
  key = next(iter(key_types)) if len(key_types) == 1 else ANY_HASHABLE
  value = next(iter(value_types)) if len(value_types) == 1 else ANY
  return f"[{key}: {value}]"


def _infer_tuple(node: TupleExpr) -> str:
  parts = []
  for el in node.elements:
    signature = infer_expression_signature(el.expression)
    parts.append(f"{el.label}: {signature}" if el.label else signature)
  return "(" + ", ".join(parts) + ")"


def _infer_sequence(node: SequenceExpr) -> str:
  elements = node.elements
  for idx, element in enumerate(elements[:-1]):
    if isinstance(element, AsExpr) and isinstance(elements[idx + 1], TypeExpr):
      return infer_type_signature(elements[idx + 1].type)
  return ANY


def _infer_closure(node: ClosureExpr) -> str:
  signature = node.signature
  if signature is None:
    return f"{ESCAPING} {VOID} -> {VOID}"

  params = VOID
  clause = signature.parameter_clause
  if isinstance(clause, ClosureParameterClause):
    types = [infer_type_signature(p.type) if p.type is not None else ANY for p in clause.parameters]
    params = "(" + ", ".join(types) + ")"

  returns = VOID
  if signature.return_clause is not None:
    returns = infer_type_signature(signature.return_clause.type) or VOID

  return f"{ESCAPING} {params} -> {returns}"
