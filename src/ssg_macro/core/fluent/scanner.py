"""
Declaration Scanner.

Reads the member list of an annotated `struct` / `class` and keeps the ordinary
mutable stored fields, in declaration order.
"""

import logging
from typing import List

from ssg_macro.core.fluent.models import Member
from ssg_macro.core.swift.nodes import DeclGroup, VariableDecl
from ssg_macro.enums import CompositeKind
from ssg_macro.errors import UnsupportedDeclarationKind

logger = logging.getLogger(__name__)

COMPOSITE_KINDS = {
  "struct": CompositeKind.VALUE,
  "class": CompositeKind.REFERENCE,
}

# `class var` is the static form for reference types
STATIC_MODIFIERS = ("static", "class")
RESTRICTED_MODIFIERS = ("private", "fileprivate")


def composite_kind(declaration: DeclGroup) -> CompositeKind:
  """
  Maps the declaration keyword onto its composite semantics.

  Raises:
      UnsupportedDeclarationKind: For enums, protocols, extensions and actors.
  """
  kind = COMPOSITE_KINDS.get(declaration.keyword)
  if kind is None:
    raise UnsupportedDeclarationKind(declaration.keyword, declaration.line, declaration.column)
  return kind


def members_of(declaration: DeclGroup) -> List[Member]:
  """Every simple-identifier binding of every variable declaration, eligible or not."""
  composite_kind(declaration)
  result = []
  for decl in declaration.member_block.members:
    if not isinstance(decl, VariableDecl):
      continue
    flags = dict(
      is_static=decl.has_modifier(*STATIC_MODIFIERS),
      is_lazy=decl.has_modifier("lazy"),
      is_constant=decl.binding_specifier == "let",
      is_private=decl.has_modifier(*RESTRICTED_MODIFIERS),
    )
    for binding in decl.bindings:
      if binding.name is None:
        logger.debug("Skipping destructuring pattern %s", binding.pattern)
        continue
      result.append(
        Member(
          name=binding.name,
          type_annotation=binding.type_annotation,
          initializer=binding.initializer,
          has_accessor=binding.accessor_block is not None,
          **flags,
        )
      )
  return result


def scan(declaration: DeclGroup) -> List[Member]:
  """
  Selects the members eligible for fluent setters.

  Args:
      declaration: A parsed `struct` or `class` declaration.

  Returns:
      List[Member]: Mutable, non-static, non-lazy, non-private stored fields.

  Raises:
      UnsupportedDeclarationKind: If the declaration is not a struct or class.
  """
  selected = []
  for member in members_of(declaration):
    if member.is_eligible:
      selected.append(member)
    else:
      logger.debug("Excluding member '%s' of %s", member.name, declaration.name)
  return selected
