"""
Swift Subset Recursive Descent Parser.

This module parses Swift source text into the immutable node model defined in
`nodes.py`. It covers the shapes the macros inspect:

1.  **Declaration groups**: `struct` / `class` / `enum` / `actor` / `protocol` /
    `extension` headers with their member blocks.
2.  **Stored properties**: `var` / `let` declarations with modifiers,
    attributes, type annotations, initializers and accessor blocks.
    Every other member (functions, initializers, nested types) is kept opaque.
3.  **Types and expressions**: literals, collections, tuples, closures, calls,
    member accesses, key paths, `as` sequences and freestanding macros.

It is not a general Swift parser. Statements inside closure bodies are split
but not parsed, and unknown expression forms degrade to `RawExpr`.
"""

import bisect
import re
from typing import Callable, List, Optional, Tuple, TypeVar

from ssg_macro.core.swift.lexer import SwiftSyntaxError, Token, significant_tokens, tokenize
from ssg_macro.core.swift.nodes import (
  AccessorBlock,
  ArrayExpr,
  ArrayType,
  AsExpr,
  Attribute,
  AttributedType,
  BinaryOperatorExpr,
  BooleanLiteralExpr,
  ClosureCapture,
  ClosureCaptureClause,
  ClosureExpr,
  ClosureParameter,
  ClosureParameterClause,
  ClosureShorthandParameters,
  ClosureSignature,
  CodeBlockItem,
  CompositionType,
  DeclGroup,
  DeclModifier,
  DeclReferenceExpr,
  DictionaryElement,
  DictionaryExpr,
  DictionaryType,
  EffectExpr,
  ExprNode,
  FloatLiteralExpr,
  FunctionCallExpr,
  FunctionType,
  GenericSpecializationExpr,
  IdentifierType,
  ImplicitlyUnwrappedOptionalType,
  IntegerLiteralExpr,
  IsExpr,
  KeyPathExpr,
  LabeledExpr,
  MacroExpansionExpr,
  MemberAccessExpr,
  MemberBlock,
  MemberDecl,
  MemberType,
  MetatypeType,
  NilLiteralExpr,
  OpaqueDecl,
  OptionalType,
  PatternBinding,
  PostfixOperatorExpr,
  PrefixOperatorExpr,
  RawExpr,
  RawType,
  ReturnClause,
  SequenceExpr,
  SomeOrAnyType,
  StringLiteralExpr,
  SubscriptCallExpr,
  SwiftNode,
  TernaryExpr,
  TupleExpr,
  TupleType,
  TupleTypeElement,
  TypeExpr,
  TypeNode,
  VariableDecl,
)
from ssg_macro.core.swift.tokens import (
  ACCESSOR_KEYWORDS,
  CLOSERS,
  DECL_GROUP_KEYWORDS,
  DECL_KEYWORDS,
  DECL_MODIFIERS,
  DETAILED_MODIFIERS,
  EXPRESSION_PREFIX_KEYWORDS,
  OPENERS,
  Symbol,
  TokenKind,
)

T = TypeVar("T")

_STRING_BODY = re.compile(r'^(#*)("""|")(.*)\2\1$', re.DOTALL)
_TYPE_ATTRIBUTE_KEYWORDS = frozenset({"inout", "borrowing", "consuming", "sending", "__owned", "__shared"})
_EFFECT_KEYWORDS = frozenset({"async", "throws", "rethrows"})
_CONTINUATION_KEYWORDS = frozenset({"else", "catch", "where", "as", "is"})


class SwiftParser:
  """
  Parses a token stream into Swift syntax nodes.

  The parser holds the complete source, so callers (the expansion engine) can
  position `pos` at any token index and parse a single site from there.
  """

  def __init__(self, text: str):
    self.text = text
    self.tokens: List[Token] = significant_tokens(tokenize(text))
    self.pos = 0

  # --- Parser Primitives ---

  def peek(self, offset: int = 0) -> Token:
    idx = self.pos + offset
    if idx >= len(self.tokens):
      return self.tokens[-1]
    return self.tokens[idx]

  def consume(self) -> Token:
    token = self.peek()
    if token.kind != TokenKind.EOF:
      self.pos += 1
    return token

  def previous(self) -> Token:
    return self.tokens[self.pos - 1] if self.pos > 0 else self.tokens[0]

  def at(self, text: str, offset: int = 0) -> bool:
    tok = self.peek(offset)
    return tok.text == text and tok.kind not in (TokenKind.STRING, TokenKind.EOF)

  def at_kind(self, kind: TokenKind, offset: int = 0) -> bool:
    return self.peek(offset).kind == kind

  def expect(self, text: str) -> Token:
    if not self.at(text):
      cur = self.peek()
      raise SwiftSyntaxError(f"Expected '{text}', got {cur.kind.value} ('{cur.text}')", cur.line, cur.col)
    return self.consume()

  def is_eof(self) -> bool:
    return self.peek().kind == TokenKind.EOF

  def expect_eof(self) -> None:
    if not self.is_eof():
      cur = self.peek()
      raise SwiftSyntaxError(f"Unexpected trailing token '{cur.text}'", cur.line, cur.col)

  def error(self, message: str) -> SwiftSyntaxError:
    cur = self.peek()
    return SwiftSyntaxError(f"{message}, got '{cur.text or 'EOF'}'", cur.line, cur.col)

  def attempt(self, parse_fn: Callable[[], T]) -> Optional[T]:
    """Runs `parse_fn` speculatively; rewinds and returns None on a syntax error."""
    saved = self.pos
    try:
      return parse_fn()
    except SwiftSyntaxError:
      self.pos = saved
      return None

  def slice(self, first: Token, last: Optional[Token] = None) -> str:
    """Verbatim source text from the start of `first` to the end of `last` (default: previous token)."""
    last = last or self.previous()
    return self.text[first.start : last.end]

  def split_operator(self, length: int = 1) -> None:
    """
    Splits the current operator token after `length` characters, so that e.g.
    `?>` in `Array<Int?>` becomes `?` followed by `>`.
    """
    tok = self.peek()
    if tok.kind != TokenKind.OPERATOR or len(tok.text) <= length:
      return
    head = Token(
      tok.kind, tok.text[:length], tok.line, tok.col, tok.start, tok.start + length, tok.newline_before, tok.space_before
    )
    tail = Token(tok.kind, tok.text[length:], tok.line, tok.col + length, tok.start + length, tok.end)
    self.tokens[self.pos : self.pos + 1] = [head, tail]

  def indent_of(self, tok: Token) -> str:
    return self._indent_at(tok.start)

  def _indent_at(self, offset: int) -> str:
    line_start = self.text.rfind("\n", 0, offset) + 1
    prefix = self.text[line_start:offset]
    return prefix if not prefix.strip() else " " * len(prefix)

  def find_tokens(self, kind: TokenKind, text: str) -> List[Token]:
    """Every token of `kind` whose text equals `text`."""
    return [tok for tok in self.tokens if tok.kind == kind and tok.text == text]

  def seek(self, offset: int) -> None:
    """
    Positions the cursor on the token starting at `offset`.

    Token indices shift when operators are split, so callers address sites by
    source offset instead.
    """
    starts = [tok.start for tok in self.tokens]
    idx = bisect.bisect_left(starts, offset)
    if idx >= len(self.tokens) or self.tokens[idx].start != offset:
      raise SwiftSyntaxError(f"No token starts at offset {offset}")
    self.pos = idx

  def _at_symbol(self, symbol: Symbol, offset: int = 0) -> bool:
    tok = self.peek(offset)
    return tok.kind in (TokenKind.SYMBOL, TokenKind.ARROW, TokenKind.DOT) and tok.text == symbol.value

  def _at_operator(self, prefix: str) -> bool:
    tok = self.peek()
    return tok.kind == TokenKind.OPERATOR and tok.text.startswith(prefix)

  def _take_operator(self, text: str) -> Token:
    """Consumes `text` from the front of the current operator token."""
    if not self._at_operator(text):
      raise self.error(f"Expected '{text}'")
    self.split_operator(len(text))
    return self.consume()

  def _skip_balanced(self) -> None:
    """Consumes an opener and everything up to its matching closer."""
    depth = 0
    while not self.is_eof():
      tok = self.consume()
      if tok.kind == TokenKind.SYMBOL and tok.text in OPENERS:
        depth += 1
      elif tok.kind == TokenKind.SYMBOL and tok.text in CLOSERS:
        depth -= 1
        if depth == 0:
          return
    raise self.error("Unbalanced brackets")

  # --- Declarations ---

  def parse_attributes(self) -> Tuple[Attribute, ...]:
    attrs = []
    while self.at_kind(TokenKind.AT_IDENT):
      attrs.append(self.parse_attribute())
    return tuple(attrs)

  def parse_attribute(self) -> Attribute:
    tok = self.consume()
    if tok.kind != TokenKind.AT_IDENT:
      raise SwiftSyntaxError(f"Expected attribute, got '{tok.text}'", tok.line, tok.col)
    arguments = None
    if self._at_symbol(Symbol.LPAREN) and not self.peek().space_before:
      open_pos = self.pos
      arguments = self.attempt(lambda: self._parse_labeled_list(Symbol.LPAREN, Symbol.RPAREN))
      if arguments is None:
        # Attribute arguments such as `(iOS 13, *)` are not expressions.
        self.pos = open_pos
        self._skip_balanced()
        arguments = ()
    return Attribute(
      name=tok.text[1:],
      arguments=arguments,
      text=self.slice(tok),
      start=tok.start,
      end=self.previous().end,
      line=tok.line,
      column=tok.col,
    )

  def _modifier_ahead(self) -> bool:
    tok = self.peek()
    if tok.kind != TokenKind.IDENTIFIER or tok.text not in DECL_MODIFIERS:
      return False
    offset = 1
    if tok.text in DETAILED_MODIFIERS and self._at_symbol(Symbol.LPAREN, 1) and not self.peek(1).space_before:
      offset = 4
    nxt = self.peek(offset)
    return nxt.kind == TokenKind.AT_IDENT or (
      nxt.kind == TokenKind.IDENTIFIER and (nxt.text in DECL_KEYWORDS or nxt.text in DECL_MODIFIERS)
    )

  def parse_modifiers(self) -> Tuple[DeclModifier, ...]:
    modifiers = []
    while self._modifier_ahead():
      tok = self.consume()
      detail = None
      if tok.text in DETAILED_MODIFIERS and self._at_symbol(Symbol.LPAREN) and not self.peek().space_before:
        self.consume()
        detail = self.consume().text
        self.expect(Symbol.RPAREN.value)
      modifiers.append(DeclModifier(name=tok.text, detail=detail, text=self.slice(tok)))
      # Attributes may be interleaved with modifiers, e.g. `private @objc var`
      while self.at_kind(TokenKind.AT_IDENT):
        self.parse_attribute()
    return tuple(modifiers)

  def parse_declaration(self) -> SwiftNode:
    """
    Parses the declaration starting at the current token.

    Returns a `DeclGroup` for type-like declarations, otherwise the member
    node (`VariableDecl` or `OpaqueDecl`).
    """
    start = self.peek()
    attributes = self.parse_attributes()
    modifiers = self.parse_modifiers()
    tok = self.peek()
    if tok.kind == TokenKind.IDENTIFIER and tok.text in DECL_GROUP_KEYWORDS:
      return self._parse_decl_group_body(start, attributes, modifiers)
    return self._parse_member_body(start, attributes, modifiers)

  def parse_decl_group(self) -> DeclGroup:
    decl = self.parse_declaration()
    if not isinstance(decl, DeclGroup):
      raise SwiftSyntaxError("Expected a type declaration", self.peek().line, self.peek().col)
    return decl

  def _parse_decl_group_body(
    self, start: Token, attributes: Tuple[Attribute, ...], modifiers: Tuple[DeclModifier, ...]
  ) -> DeclGroup:
    keyword = self.consume().text
    if not self.at_kind(TokenKind.IDENTIFIER):
      raise self.error(f"Expected a name after '{keyword}'")
    name = self.consume().text
    # Generic parameters, inheritance and where clauses are not inspected.
    while not self._at_symbol(Symbol.LBRACE):
      if self.is_eof():
        raise self.error(f"Expected member block for '{name}'")
      if self.peek().kind == TokenKind.SYMBOL and self.peek().text in OPENERS:
        self._skip_balanced()
      else:
        self.consume()
    member_block = self.parse_member_block()
    return DeclGroup(
      keyword=keyword,
      name=name,
      member_block=member_block,
      attributes=attributes,
      modifiers=modifiers,
      text=self.slice(start),
      start=start.start,
      end=member_block.end,
      line=start.line,
      column=start.col,
    )

  def parse_member_block(self) -> MemberBlock:
    open_tok = self.expect(Symbol.LBRACE.value)
    members = []
    while not self._at_symbol(Symbol.RBRACE):
      if self.is_eof():
        raise self.error("Unterminated member block")
      if self._at_symbol(Symbol.SEMICOLON):
        self.consume()
        continue
      before = self.pos
      members.append(self.parse_member())
      if self.pos == before:
        self.consume()
    close_tok = self.expect(Symbol.RBRACE.value)
    return MemberBlock(
      members=tuple(members), text=self.slice(open_tok, close_tok), start=open_tok.start, end=close_tok.end
    )

  def parse_member(self) -> MemberDecl:
    start = self.peek()
    attributes = self.parse_attributes()
    modifiers = self.parse_modifiers()
    return self._parse_member_body(start, attributes, modifiers)

  def _parse_member_body(
    self, start: Token, attributes: Tuple[Attribute, ...], modifiers: Tuple[DeclModifier, ...]
  ) -> MemberDecl:
    tok = self.peek()
    if tok.kind == TokenKind.IDENTIFIER and tok.text in ("var", "let"):
      return self._parse_variable_decl(start, attributes, modifiers)
    keyword = tok.text
    self._skip_member()
    return OpaqueDecl(keyword=keyword, text=self.slice(start) if self.pos else "")

  def _starts_member(self, tok: Token) -> bool:
    if tok.kind in (TokenKind.AT_IDENT, TokenKind.POUND_IDENT):
      return True
    return tok.kind == TokenKind.IDENTIFIER and (tok.text in DECL_KEYWORDS or tok.text in DECL_MODIFIERS)

  def _skip_member(self) -> None:
    depth = 0
    first = True
    while not self.is_eof():
      tok = self.peek()
      if depth == 0 and not first:
        if tok.kind == TokenKind.SYMBOL and tok.text in ("}", ";"):
          return
        if tok.newline_before and self._starts_member(tok):
          return
      if tok.kind == TokenKind.SYMBOL and tok.text in OPENERS:
        depth += 1
      elif tok.kind == TokenKind.SYMBOL and tok.text in CLOSERS:
        if depth == 0:
          return
        depth -= 1
      self.consume()
      first = False

  def _parse_variable_decl(
    self, start: Token, attributes: Tuple[Attribute, ...], modifiers: Tuple[DeclModifier, ...]
  ) -> VariableDecl:
    specifier = self.consume().text
    bindings = []
    while True:
      bindings.append(self._parse_pattern_binding())
      if self._at_symbol(Symbol.COMMA):
        self.consume()
        continue
      break
    return VariableDecl(
      binding_specifier=specifier,
      bindings=tuple(bindings),
      modifiers=modifiers,
      attributes=attributes,
      text=self.slice(start),
    )

  def _parse_pattern_binding(self) -> PatternBinding:
    first = self.peek()
    name = None
    if first.kind == TokenKind.IDENTIFIER:
      name = self.consume().text
    elif self._at_symbol(Symbol.LPAREN):
      self._skip_balanced()
    else:
      raise self.error("Expected a variable pattern")
    pattern = self.slice(first)

    type_annotation = None
    if self._at_symbol(Symbol.COLON):
      self.consume()
      type_start = self.peek()
      type_annotation = self.attempt(self.parse_type)
      if type_annotation is None:
        self._skip_to_binding_end()
        type_annotation = RawType(self.slice(type_start))

    initializer = None
    if self.at("=") and self.peek().kind == TokenKind.OPERATOR:
      self.consume()
      init_start = self.peek()
      initializer = self.attempt(self.parse_expression)
      if initializer is None:
        self._skip_to_binding_end()
        initializer = RawExpr(self.slice(init_start))

    accessor_block = None
    if self._at_symbol(Symbol.LBRACE) and not self.peek().newline_before:
      block_start = self.peek()
      self._skip_balanced()
      accessor_block = AccessorBlock(self.slice(block_start))

    return PatternBinding(
      pattern=pattern,
      name=name,
      type_annotation=type_annotation,
      initializer=initializer,
      accessor_block=accessor_block,
      text=self.slice(first),
    )

  def _skip_to_binding_end(self) -> None:
    depth = 0
    while not self.is_eof():
      tok = self.peek()
      if depth == 0 and (tok.newline_before or (tok.kind == TokenKind.SYMBOL and tok.text in (",", ";", "}"))):
        return
      if tok.kind == TokenKind.SYMBOL and tok.text in OPENERS:
        depth += 1
      elif tok.kind == TokenKind.SYMBOL and tok.text in CLOSERS:
        depth -= 1
      self.consume()

  # --- Types ---

  def parse_type(self) -> TypeNode:
    start = self.peek()
    node = self._parse_type_primary()
    if self._at_operator("&") and self.peek().text == "&":
      elements = [node]
      while self.at("&"):
        self.consume()
        elements.append(self._parse_type_primary())
      node = CompositionType(elements=tuple(elements), text=self.slice(start))
    return node

  def _parse_type_primary(self) -> TypeNode:
    start = self.peek()
    tok = start

    if tok.kind == TokenKind.AT_IDENT or (tok.kind == TokenKind.IDENTIFIER and tok.text in _TYPE_ATTRIBUTE_KEYWORDS):
      attributes = []
      while self.at_kind(TokenKind.AT_IDENT) or (
        self.at_kind(TokenKind.IDENTIFIER) and self.peek().text in _TYPE_ATTRIBUTE_KEYWORDS
      ):
        if self.at_kind(TokenKind.AT_IDENT):
          attributes.append(self.parse_attribute().text)
        else:
          attributes.append(self.consume().text)
      base = self.parse_type()
      return AttributedType(attributes=tuple(attributes), base=base, text=self.slice(start))

    if tok.kind == TokenKind.IDENTIFIER and tok.text in ("some", "any") and self._type_follows(1):
      self.consume()
      constraint = self._parse_type_primary()
      return SomeOrAnyType(specifier=tok.text, constraint=constraint, text=self.slice(start))

    if self._at_symbol(Symbol.LPAREN):
      node = self._parse_tuple_or_function_type()
    elif self._at_symbol(Symbol.LBRACKET):
      self.consume()
      element = self.parse_type()
      if self._at_symbol(Symbol.COLON):
        self.consume()
        value = self.parse_type()
        self.expect(Symbol.RBRACKET.value)
        node = DictionaryType(key=element, value=value, text=self.slice(start))
      else:
        self.expect(Symbol.RBRACKET.value)
        node = ArrayType(element=element, text=self.slice(start))
    elif tok.kind == TokenKind.IDENTIFIER:
      node = self._parse_identifier_type(start)
    else:
      raise self.error("Expected type")

    return self._parse_type_postfix(start, node)

  def _type_follows(self, offset: int) -> bool:
    tok = self.peek(offset)
    if tok.newline_before:
      return False
    return tok.kind == TokenKind.IDENTIFIER or (tok.kind == TokenKind.SYMBOL and tok.text in ("(", "["))

  def _parse_identifier_type(self, start: Token) -> TypeNode:
    name = self.consume().text
    generic = ""
    if self._at_operator("<") and not self.peek().space_before:
      generic = self._parse_generic_clause()
    node: TypeNode = IdentifierType(name=name, generic_clause=generic, text=self.slice(start))
    while self.at_kind(TokenKind.DOT) and self.peek(1).kind == TokenKind.IDENTIFIER:
      member = self.peek(1).text
      if member in ("Type", "Protocol"):
        break
      self.consume()
      self.consume()
      if self._at_operator("<") and not self.peek().space_before:
        self._parse_generic_clause()
      node = MemberType(base=node, name=member, text=self.slice(start))
    return node

  def _parse_generic_clause(self) -> str:
    open_tok = self._take_operator("<")
    while True:
      self.parse_type()
      if self._at_symbol(Symbol.COMMA):
        self.consume()
        continue
      break
    self._take_operator(">")
    return self.slice(open_tok)

  def _parse_tuple_or_function_type(self) -> TypeNode:
    start = self.expect(Symbol.LPAREN.value)
    elements = []
    while not self._at_symbol(Symbol.RPAREN):
      el_start = self.peek()
      label = None
      if self.at_kind(TokenKind.IDENTIFIER) and self._at_symbol(Symbol.COLON, 1):
        label = self.consume().text
        self.consume()
      elif (
        self.at_kind(TokenKind.IDENTIFIER)
        and self.at_kind(TokenKind.IDENTIFIER, 1)
        and self._at_symbol(Symbol.COLON, 2)
      ):
        self.consume()
        self.consume()
        label = self.slice(el_start)
        self.consume()
      el_type = self.parse_type()
      if self.at("...") and self.peek().kind == TokenKind.OPERATOR:
        self.consume()
      elements.append(TupleTypeElement(type=el_type, label=label, text=self.slice(el_start)))
      if self._at_symbol(Symbol.COMMA):
        self.consume()
      elif not self._at_symbol(Symbol.RPAREN):
        raise self.error("Expected ',' or ')' in tuple type")
    self.expect(Symbol.RPAREN.value)

    effects = self._parse_effects()
    if self._at_symbol(Symbol.ARROW):
      self.consume()
      return_type = self.parse_type()
      return FunctionType(
        parameters=tuple(elements), return_type=return_type, effects=effects, text=self.slice(start)
      )
    if effects:
      raise self.error("Expected '->' after function type effects")
    return TupleType(elements=tuple(elements), text=self.slice(start))

  def _parse_effects(self) -> str:
    parts = []
    while self.at_kind(TokenKind.IDENTIFIER) and self.peek().text in _EFFECT_KEYWORDS:
      first = self.consume()
      if first.text == "throws" and self._at_symbol(Symbol.LPAREN) and not self.peek().space_before:
        self._skip_balanced()
      parts.append(self.slice(first))
    return " ".join(parts)

  def _parse_type_postfix(self, start: Token, node: TypeNode) -> TypeNode:
    while True:
      tok = self.peek()
      if tok.kind == TokenKind.OPERATOR and tok.text[0] in "?!" and not tok.space_before:
        self.split_operator(1)
        mark = self.consume().text
        if mark == "?":
          node = OptionalType(wrapped=node, text=self.slice(start))
        else:
          node = ImplicitlyUnwrappedOptionalType(wrapped=node, text=self.slice(start))
      elif (
        tok.kind == TokenKind.DOT
        and self.peek(1).kind == TokenKind.IDENTIFIER
        and self.peek(1).text in ("Type", "Protocol")
      ):
        self.consume()
        specifier = self.consume().text
        node = MetatypeType(base=node, specifier=specifier, text=self.slice(start))
      else:
        return node

  # --- Expressions ---

  def parse_expression(self) -> ExprNode:
    start = self.peek()
    elements: List[ExprNode] = [self._parse_prefixed()]
    while True:
      tok = self.peek()
      if tok.kind == TokenKind.IDENTIFIER and tok.text in ("as", "is") and not tok.newline_before:
        self.consume()
        if tok.text == "as":
          modifier = ""
          if self.peek().kind == TokenKind.OPERATOR and self.peek().text[0] in "?!" and not self.peek().space_before:
            self.split_operator(1)
            modifier = self.consume().text
          elements.append(AsExpr(modifier=modifier, text=self.slice(tok)))
        else:
          elements.append(IsExpr(text=tok.text))
        type_start = self.peek()
        target = self.parse_type()
        elements.append(TypeExpr(type=target, text=self.slice(type_start)))
        continue
      if tok.kind == TokenKind.OPERATOR and self._is_binary_operator():
        op = self.consume()
        if op.text == "?":
          choice = self.parse_expression()
          self.expect(Symbol.COLON.value)
          elements.append(TernaryExpr(choice=choice, text=self.slice(op)))
        else:
          elements.append(BinaryOperatorExpr(operator=op.text, text=op.text))
        elements.append(self._parse_prefixed())
        continue
      break
    if len(elements) == 1:
      return elements[0]
    return SequenceExpr(elements=tuple(elements), text=self.slice(start))

  def _is_binary_operator(self) -> bool:
    tok = self.peek()
    nxt = self.peek(1)
    if nxt.kind == TokenKind.EOF:
      return False
    if nxt.kind == TokenKind.SYMBOL and nxt.text in CLOSERS | {",", ";", ":"}:
      return False
    return tok.space_before == nxt.space_before

  def _parse_prefixed(self) -> ExprNode:
    start = self.peek()
    if start.kind == TokenKind.IDENTIFIER and start.text in EXPRESSION_PREFIX_KEYWORDS and self._expression_follows(1):
      self.consume()
      if start.text == "try" and (self._at_operator("?") or self._at_operator("!")):
        if not self.peek().space_before:
          self.split_operator(1)
          self.consume()
      keyword = self.slice(start)
      inner = self._parse_prefixed()
      return EffectExpr(keyword=keyword, expression=inner, text=self.slice(start))
    if start.kind == TokenKind.OPERATOR:
      nxt = self.peek(1)
      if nxt.kind == TokenKind.EOF or (nxt.kind == TokenKind.SYMBOL and nxt.text in CLOSERS | {","}):
        self.consume()
        return RawExpr(start.text)
      if not nxt.space_before:
        self.consume()
        operand = self._parse_prefixed()
        return PrefixOperatorExpr(operator=start.text, operand=operand, text=self.slice(start))
    return self._parse_postfix(start, self._parse_primary())

  def _expression_follows(self, offset: int) -> bool:
    tok = self.peek(offset)
    if tok.kind == TokenKind.EOF or tok.newline_before:
      return False
    return not (tok.kind == TokenKind.SYMBOL and tok.text in CLOSERS | {",", ":", ";"})

  def _parse_primary(self) -> ExprNode:
    tok = self.peek()
    kind = tok.kind

    if kind == TokenKind.INTEGER:
      self.consume()
      return IntegerLiteralExpr(tok.text)
    if kind == TokenKind.FLOAT:
      self.consume()
      return FloatLiteralExpr(tok.text)
    if kind == TokenKind.STRING:
      self.consume()
      return StringLiteralExpr(value=string_literal_value(tok.text), text=tok.text)
    if kind == TokenKind.IDENTIFIER:
      if tok.text in ("true", "false"):
        self.consume()
        return BooleanLiteralExpr(value=tok.text == "true", text=tok.text)
      if tok.text == "nil":
        self.consume()
        return NilLiteralExpr(text=tok.text)
      if tok.text in ("if", "switch", "do"):
        return self._parse_control_expression()
      self.consume()
      ref = DeclReferenceExpr(name=tok.text, text=tok.text)
      if self._at_operator("<") and not self.peek().space_before:
        clause = self.attempt(self._parse_expression_generic_clause)
        if clause is not None:
          return GenericSpecializationExpr(base=ref, generic_clause=clause, text=self.slice(tok))
      return ref
    if kind == TokenKind.POUND_IDENT:
      return self.parse_macro_expansion()
    if kind == TokenKind.BACKSLASH:
      return self._parse_key_path()
    if kind == TokenKind.DOT and self.peek(1).kind == TokenKind.IDENTIFIER and not self.peek(1).space_before:
      self.consume()
      name = self.consume().text
      return MemberAccessExpr(name=name, base=None, text=self.slice(tok))
    if self._at_symbol(Symbol.LBRACKET):
      return self._parse_collection()
    if self._at_symbol(Symbol.LPAREN):
      start = self.peek()
      elements = self._parse_labeled_list(Symbol.LPAREN, Symbol.RPAREN)
      return TupleExpr(elements=elements, text=self.slice(start))
    if self._at_symbol(Symbol.LBRACE):
      return self.parse_closure()
    raise self.error("Expected expression")

  def _parse_expression_generic_clause(self) -> str:
    clause = self._parse_generic_clause()
    nxt = self.peek()
    if nxt.kind == TokenKind.EOF or nxt.newline_before:
      return clause
    if nxt.kind in (TokenKind.SYMBOL, TokenKind.DOT) and nxt.text in ("(", ")", "]", ",", ".", ":", ";", "}"):
      return clause
    raise self.error("Not a generic specialization")

  def _parse_control_expression(self) -> RawExpr:
    start = self.consume()
    while True:
      while not self._at_symbol(Symbol.LBRACE):
        if self.is_eof():
          raise self.error(f"Expected '{{' in '{start.text}' expression")
        if self.peek().kind == TokenKind.SYMBOL and self.peek().text in OPENERS:
          self._skip_balanced()
        else:
          self.consume()
      self._skip_balanced()
      if self.at("else") or self.at("catch"):
        self.consume()
        continue
      break
    return RawExpr(self.slice(start))

  def _parse_key_path(self) -> KeyPathExpr:
    start = self.consume()
    while True:
      tok = self.peek()
      if tok.space_before or tok.kind == TokenKind.EOF:
        break
      if tok.kind in (TokenKind.IDENTIFIER, TokenKind.DOT, TokenKind.INTEGER):
        self.consume()
      elif tok.kind == TokenKind.OPERATOR and tok.text[0] in "?!":
        self.split_operator(1)
        self.consume()
      elif self._at_symbol(Symbol.LBRACKET):
        self._skip_balanced()
      else:
        break
    return KeyPathExpr(self.slice(start))

  def _parse_collection(self) -> ExprNode:
    start = self.expect(Symbol.LBRACKET.value)
    if self._at_symbol(Symbol.COLON) and self._at_symbol(Symbol.RBRACKET, 1):
      self.consume()
      self.consume()
      return DictionaryExpr(elements=(), text=self.slice(start))
    if self._at_symbol(Symbol.RBRACKET):
      self.consume()
      return ArrayExpr(elements=(), text=self.slice(start))

    first_start = self.peek()
    first = self.parse_expression()
    if self._at_symbol(Symbol.COLON):
      self.consume()
      value = self.parse_expression()
      entries = [DictionaryElement(key=first, value=value, text=self.slice(first_start))]
      while self._at_symbol(Symbol.COMMA):
        self.consume()
        if self._at_symbol(Symbol.RBRACKET):
          break
        key_start = self.peek()
        key = self.parse_expression()
        self.expect(Symbol.COLON.value)
        value = self.parse_expression()
        entries.append(DictionaryElement(key=key, value=value, text=self.slice(key_start)))
      self.expect(Symbol.RBRACKET.value)
      return DictionaryExpr(elements=tuple(entries), text=self.slice(start))

    items = [first]
    while self._at_symbol(Symbol.COMMA):
      self.consume()
      if self._at_symbol(Symbol.RBRACKET):
        break
      items.append(self.parse_expression())
    self.expect(Symbol.RBRACKET.value)
    return ArrayExpr(elements=tuple(items), text=self.slice(start))

  def _parse_labeled_list(self, opener: Symbol, closer: Symbol) -> Tuple[LabeledExpr, ...]:
    self.expect(opener.value)
    items = []
    while not self._at_symbol(closer):
      el_start = self.peek()
      label = None
      if el_start.kind == TokenKind.IDENTIFIER and self._at_symbol(Symbol.COLON, 1):
        label = self.consume().text
        self.consume()
      expression = self.parse_expression()
      items.append(LabeledExpr(expression=expression, label=label, text=self.slice(el_start)))
      if self._at_symbol(Symbol.COMMA):
        self.consume()
      elif not self._at_symbol(closer):
        raise self.error(f"Expected ',' or '{closer.value}'")
    self.expect(closer.value)
    return tuple(items)

  def _parse_postfix(self, start: Token, expr: ExprNode) -> ExprNode:
    while True:
      tok = self.peek()
      if tok.kind == TokenKind.DOT and self.peek(1).kind in (TokenKind.IDENTIFIER, TokenKind.INTEGER):
        self.consume()
        name = self.consume().text
        expr = MemberAccessExpr(name=name, base=expr, text=self.slice(start))
      elif self._at_symbol(Symbol.LPAREN) and not tok.newline_before:
        arguments = self._parse_labeled_list(Symbol.LPAREN, Symbol.RPAREN)
        trailing = self._parse_trailing_closure()
        expr = FunctionCallExpr(
          called=expr, arguments=arguments, trailing_closure=trailing, has_parens=True, text=self.slice(start)
        )
      elif self._at_symbol(Symbol.LBRACKET) and not tok.newline_before and not tok.space_before:
        arguments = self._parse_labeled_list(Symbol.LBRACKET, Symbol.RBRACKET)
        expr = SubscriptCallExpr(base=expr, arguments=arguments, text=self.slice(start))
      elif self._at_symbol(Symbol.LBRACE) and not tok.newline_before and not self._accessor_block_ahead():
        trailing = self.parse_closure()
        expr = FunctionCallExpr(
          called=expr, arguments=(), trailing_closure=trailing, has_parens=False, text=self.slice(start)
        )
      elif tok.kind == TokenKind.OPERATOR and not tok.space_before and set(tok.text) <= {"?", "!"}:
        self.split_operator(1)
        op = self.consume().text
        expr = PostfixOperatorExpr(operand=expr, operator=op, text=self.slice(start))
      else:
        return expr

  def _parse_trailing_closure(self) -> Optional[ClosureExpr]:
    if self._at_symbol(Symbol.LBRACE) and not self.peek().newline_before and not self._accessor_block_ahead():
      return self.parse_closure()
    return None

  def _accessor_block_ahead(self) -> bool:
    """True when the `{` at the cursor opens `{ willSet ... }`-style observers rather than a closure."""
    offset = 1
    while self.peek(offset).kind == TokenKind.AT_IDENT:
      offset += 1
    tok = self.peek(offset)
    nxt = self.peek(offset + 1)
    return (
      tok.kind == TokenKind.IDENTIFIER
      and tok.text in ACCESSOR_KEYWORDS
      and nxt.kind == TokenKind.SYMBOL
      and nxt.text in ("{", "}", "(")
    )

  # --- Closures ---

  def parse_closure(self) -> ClosureExpr:
    open_tok = self.expect(Symbol.LBRACE.value)
    signature = self.attempt(self._parse_closure_signature)
    statements = self._parse_statements(self.previous().end)
    close_tok = self.expect(Symbol.RBRACE.value)
    return ClosureExpr(signature=signature, statements=statements, text=self.slice(open_tok, close_tok))

  def _parse_closure_signature(self) -> ClosureSignature:
    start = self.peek()
    attributes = []
    while self.at_kind(TokenKind.AT_IDENT):
      attributes.append(self.parse_attribute().text)

    capture = None
    if self._at_symbol(Symbol.LBRACKET):
      capture = self._parse_capture_clause()

    parameter_clause = None
    if self._at_symbol(Symbol.LPAREN):
      parameter_clause = self._parse_closure_parameter_clause()
    elif self.at_kind(TokenKind.IDENTIFIER) and self.peek().text not in _EFFECT_KEYWORDS | {"in"}:
      names_start = self.peek()
      names = [self.consume().text]
      while self._at_symbol(Symbol.COMMA):
        self.consume()
        if not self.at_kind(TokenKind.IDENTIFIER):
          raise self.error("Expected closure parameter name")
        names.append(self.consume().text)
      parameter_clause = ClosureShorthandParameters(names=tuple(names), text=self.slice(names_start))

    effects = self._parse_effects()
    return_clause = None
    if self._at_symbol(Symbol.ARROW):
      arrow = self.consume()
      return_type = self.parse_type()
      return_clause = ReturnClause(type=return_type, text=self.slice(arrow))

    if not (self.at_kind(TokenKind.IDENTIFIER) and self.peek().text == "in"):
      raise self.error("Expected 'in' after closure signature")
    in_tok = self.consume()
    return ClosureSignature(
      capture=capture,
      parameter_clause=parameter_clause,
      effects=effects,
      return_clause=return_clause,
      attributes=tuple(attributes),
      text=self.slice(start, in_tok),
    )

  def _parse_capture_clause(self) -> ClosureCaptureClause:
    start = self.expect(Symbol.LBRACKET.value)
    items = []
    while not self._at_symbol(Symbol.RBRACKET):
      item_start = self.peek()
      specifier = None
      if (
        item_start.kind == TokenKind.IDENTIFIER
        and item_start.text in ("weak", "unowned")
        and self.peek(1).kind == TokenKind.IDENTIFIER
      ) or (item_start.text == "unowned" and self._at_symbol(Symbol.LPAREN, 1)):
        self.consume()
        if self._at_symbol(Symbol.LPAREN) and not self.peek().space_before:
          self._skip_balanced()
        specifier = self.slice(item_start)
      name = None
      if self.at_kind(TokenKind.IDENTIFIER) and self.at("=", 1) and self.peek(1).kind == TokenKind.OPERATOR:
        name = self.consume().text
        self.consume()
      expression = self.parse_expression()
      items.append(ClosureCapture(expression=expression, specifier=specifier, name=name, text=self.slice(item_start)))
      if self._at_symbol(Symbol.COMMA):
        self.consume()
      elif not self._at_symbol(Symbol.RBRACKET):
        raise self.error("Expected ',' or ']' in capture list")
    self.expect(Symbol.RBRACKET.value)
    return ClosureCaptureClause(items=tuple(items), text=self.slice(start))

  def _parse_closure_parameter_clause(self) -> ClosureParameterClause:
    start = self.expect(Symbol.LPAREN.value)
    parameters = []
    while not self._at_symbol(Symbol.RPAREN):
      param_start = self.peek()
      if not self.at_kind(TokenKind.IDENTIFIER):
        raise self.error("Expected closure parameter")
      name = self.consume().text
      if self.at_kind(TokenKind.IDENTIFIER):
        name = self.consume().text
      param_type = None
      if self._at_symbol(Symbol.COLON):
        self.consume()
        param_type = self.parse_type()
        if self.at("...") and self.peek().kind == TokenKind.OPERATOR:
          self.consume()
      parameters.append(ClosureParameter(name=name, type=param_type, text=self.slice(param_start)))
      if self._at_symbol(Symbol.COMMA):
        self.consume()
      elif not self._at_symbol(Symbol.RPAREN):
        raise self.error("Expected ',' or ')' in closure parameters")
    self.expect(Symbol.RPAREN.value)
    return ClosureParameterClause(parameters=tuple(parameters), text=self.slice(start))

  def _parse_statements(self, body_start: int) -> Tuple[CodeBlockItem, ...]:
    """
    Splits a closure body into statements without parsing them.

    A statement ends at a top-level `;` or newline, unless the next line clearly
    continues it (member chains, binary operators, `else`, ...). Comments stay
    attached to the statement they follow; leading comments open the first one.
    """
    items = []
    depth = 0
    last: Optional[Token] = None
    rest = self.text[body_start:]
    start = body_start + len(rest) - len(rest.lstrip())
    open_item = False

    def flush(end: int) -> None:
      nonlocal open_item
      text = self.text[start:end].rstrip()
      if text:
        items.append(CodeBlockItem(text=text, indent=self._indent_at(start)))
      open_item = False

    while True:
      tok = self.peek()
      if tok.kind == TokenKind.EOF:
        raise self.error("Unterminated closure")
      if depth == 0:
        if tok.kind == TokenKind.SYMBOL and tok.text == "}":
          flush(tok.start)
          break
        if tok.kind == TokenKind.SYMBOL and tok.text == ";":
          flush(tok.start)
          self.consume()
          start = self.peek().start
          continue
        if open_item and tok.newline_before and not self._continues_statement(last, tok):
          flush(tok.start)
          start = tok.start
      open_item = True
      if tok.kind == TokenKind.SYMBOL and tok.text in OPENERS:
        depth += 1
      elif tok.kind == TokenKind.SYMBOL and tok.text in CLOSERS:
        depth -= 1
      last = self.consume()
    return tuple(items)

  def _continues_statement(self, prev: Token, tok: Token) -> bool:
    if tok.kind in (TokenKind.DOT, TokenKind.ARROW) or prev.kind == TokenKind.ARROW:
      return True
    if prev.kind == TokenKind.OPERATOR or (prev.kind == TokenKind.SYMBOL and prev.text in (",", ":")):
      return True
    if tok.kind == TokenKind.IDENTIFIER and tok.text in _CONTINUATION_KEYWORDS:
      return True
    if tok.kind == TokenKind.OPERATOR and not tok.text.startswith("!"):
      return self.peek(1).space_before
    return False

  # --- Freestanding Macros ---

  def parse_macro_expansion(self) -> MacroExpansionExpr:
    tok = self.consume()
    if tok.kind != TokenKind.POUND_IDENT:
      raise SwiftSyntaxError(f"Expected macro expansion, got '{tok.text}'", tok.line, tok.col)
    if self._at_operator("<") and not self.peek().space_before:
      self.attempt(self._parse_expression_generic_clause)
    arguments: Tuple[LabeledExpr, ...] = ()
    if self._at_symbol(Symbol.LPAREN) and not self.peek().newline_before:
      arguments = self._parse_labeled_list(Symbol.LPAREN, Symbol.RPAREN)
    trailing = self._parse_trailing_closure()
    return MacroExpansionExpr(
      name=tok.text[1:],
      arguments=arguments,
      trailing_closure=trailing,
      text=self.slice(tok),
      start=tok.start,
      end=self.previous().end,
      line=tok.line,
      column=tok.col,
    )


def string_literal_value(text: str) -> str:
  """Content between the delimiters of a string literal token, escapes untouched."""
  mo = _STRING_BODY.match(text)
  if not mo:
    return text
  body = mo.group(3)
  if mo.group(2) == '"""':
    body = body.strip("\n")
  return body


def parse_type(text: str) -> TypeNode:
  """Parses a standalone type annotation."""
  parser = SwiftParser(text)
  node = parser.parse_type()
  parser.expect_eof()
  return node


def parse_expression(text: str) -> ExprNode:
  """Parses a standalone expression."""
  parser = SwiftParser(text)
  node = parser.parse_expression()
  parser.expect_eof()
  return node


def parse_declaration(text: str) -> SwiftNode:
  """Parses the single declaration `text` starts with."""
  parser = SwiftParser(text)
  return parser.parse_declaration()
