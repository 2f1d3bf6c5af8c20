"""
Swift Syntax Tree Nodes.

This module defines the immutable data structures produced by the Swift subset
parser. Nodes fall into three families (types, expressions, declarations)
plus the closure pieces that the closure rewriter rebuilds.

Every parsed node keeps its verbatim source slice in `text`, so that any shape
the macros do not understand can still be rendered back exactly. Nodes built
by a rewrite carry an empty `text` and render themselves from their children.
"""

from abc import ABC
from dataclasses import dataclass
from typing import Optional, Tuple, Union


@dataclass(frozen=True)
class SwiftNode(ABC):
  """Abstract base class for all Swift syntax nodes."""

  def render(self) -> str:
    """Builds source text from child nodes. Only rewritable nodes override this."""
    return ""

  def to_text(self) -> str:
    text = getattr(self, "text", "")
    return text if text else self.render()


# --- Types ---


@dataclass(frozen=True)
class TypeNode(SwiftNode):
  """Base class of type annotation nodes."""


@dataclass(frozen=True)
class IdentifierType(TypeNode):
  """`Int`, `Array<Int>`."""

  name: str
  generic_clause: str = ""
  text: str = ""


@dataclass(frozen=True)
class MemberType(TypeNode):
  """`Outer.Inner`."""

  base: TypeNode
  name: str
  text: str = ""


@dataclass(frozen=True)
class OptionalType(TypeNode):
  """`T?`."""

  wrapped: TypeNode
  text: str = ""


@dataclass(frozen=True)
class ImplicitlyUnwrappedOptionalType(TypeNode):
  """`T!`."""

  wrapped: TypeNode
  text: str = ""


@dataclass(frozen=True)
class TupleTypeElement(SwiftNode):
  """One element of a tuple type or function parameter list, e.g. `count: Int`."""

  type: TypeNode
  label: Optional[str] = None
  text: str = ""


@dataclass(frozen=True)
class TupleType(TypeNode):
  """`(Int, String)`, `(count: Int, name: String)`, `((Int) -> String)`."""

  elements: Tuple[TupleTypeElement, ...] = ()
  text: str = ""


@dataclass(frozen=True)
class FunctionType(TypeNode):
  """`(Int) async throws -> String`."""

  parameters: Tuple[TupleTypeElement, ...]
  return_type: TypeNode
  effects: str = ""
  text: str = ""


@dataclass(frozen=True)
class MetatypeType(TypeNode):
  """`T.Type`, `P.Protocol`."""

  base: TypeNode
  specifier: str = "Type"
  text: str = ""


@dataclass(frozen=True)
class ArrayType(TypeNode):
  """`[Element]`."""

  element: TypeNode
  text: str = ""


@dataclass(frozen=True)
class DictionaryType(TypeNode):
  """`[Key: Value]`."""

  key: TypeNode
  value: TypeNode
  text: str = ""


@dataclass(frozen=True)
class AttributedType(TypeNode):
  """`@escaping T`, `inout T`, `@Sendable () -> Void`."""

  attributes: Tuple[str, ...]
  base: TypeNode
  text: str = ""


@dataclass(frozen=True)
class SomeOrAnyType(TypeNode):
  """`some View`, `any Error`."""

  specifier: str
  constraint: TypeNode
  text: str = ""


@dataclass(frozen=True)
class CompositionType(TypeNode):
  """`A & B`."""

  elements: Tuple[TypeNode, ...]
  text: str = ""


@dataclass(frozen=True)
class RawType(TypeNode):
  """A type annotation the parser could not structure; kept verbatim."""

  text: str


# --- Expressions ---


@dataclass(frozen=True)
class ExprNode(SwiftNode):
  """Base class of expression nodes."""


@dataclass(frozen=True)
class IntegerLiteralExpr(ExprNode):
  text: str


@dataclass(frozen=True)
class FloatLiteralExpr(ExprNode):
  text: str


@dataclass(frozen=True)
class StringLiteralExpr(ExprNode):
  """A string literal; `value` holds the content between the delimiters."""

  value: str
  text: str = ""


@dataclass(frozen=True)
class BooleanLiteralExpr(ExprNode):
  value: bool
  text: str = ""


@dataclass(frozen=True)
class NilLiteralExpr(ExprNode):
  text: str = "nil"


@dataclass(frozen=True)
class KeyPathExpr(ExprNode):
  """`\\Root.path.to.value`."""

  text: str


@dataclass(frozen=True)
class DeclReferenceExpr(ExprNode):
  """A bare identifier reference, including `self` and `Self`."""

  name: str
  text: str = ""

  def render(self) -> str:
    return self.name


@dataclass(frozen=True)
class GenericSpecializationExpr(ExprNode):
  """`Array<Int>` in expression position."""

  base: ExprNode
  generic_clause: str
  text: str = ""


@dataclass(frozen=True)
class MemberAccessExpr(ExprNode):
  """`base.name`, or the implicit member `.name` when `base` is None."""

  name: str
  base: Optional[ExprNode] = None
  text: str = ""


@dataclass(frozen=True)
class LabeledExpr(SwiftNode):
  """An argument or tuple element, optionally labeled."""

  expression: ExprNode
  label: Optional[str] = None
  text: str = ""


@dataclass(frozen=True)
class ArrayExpr(ExprNode):
  elements: Tuple[ExprNode, ...] = ()
  text: str = ""


@dataclass(frozen=True)
class DictionaryElement(SwiftNode):
  key: ExprNode
  value: ExprNode
  text: str = ""


@dataclass(frozen=True)
class DictionaryExpr(ExprNode):
  """A dictionary literal; `[:]` has no elements."""

  elements: Tuple[DictionaryElement, ...] = ()
  text: str = ""


@dataclass(frozen=True)
class TupleExpr(ExprNode):
  """A parenthesized expression list. `(x)` is a one-element tuple."""

  elements: Tuple[LabeledExpr, ...] = ()
  text: str = ""


@dataclass(frozen=True)
class SubscriptCallExpr(ExprNode):
  base: ExprNode
  arguments: Tuple[LabeledExpr, ...] = ()
  text: str = ""


@dataclass(frozen=True)
class PrefixOperatorExpr(ExprNode):
  operator: str
  operand: ExprNode
  text: str = ""


@dataclass(frozen=True)
class PostfixOperatorExpr(ExprNode):
  """`x!`, `x?` and custom postfix operators."""

  operand: ExprNode
  operator: str
  text: str = ""


@dataclass(frozen=True)
class EffectExpr(ExprNode):
  """`try x`, `try? x`, `await x`."""

  keyword: str
  expression: ExprNode
  text: str = ""


@dataclass(frozen=True)
class BinaryOperatorExpr(ExprNode):
  """An operator element of an unfolded sequence, e.g. `+` in `a + b`."""

  operator: str
  text: str = ""


@dataclass(frozen=True)
class AsExpr(ExprNode):
  """The `as`, `as?` or `as!` element of an unfolded sequence."""

  modifier: str = ""
  text: str = "as"


@dataclass(frozen=True)
class IsExpr(ExprNode):
  text: str = "is"


@dataclass(frozen=True)
class TernaryExpr(ExprNode):
  """The `? choice :` element of an unfolded sequence."""

  choice: ExprNode
  text: str = ""


@dataclass(frozen=True)
class TypeExpr(ExprNode):
  """A type in expression position, following `as` or `is`."""

  type: TypeNode
  text: str = ""


@dataclass(frozen=True)
class SequenceExpr(ExprNode):
  """An unfolded operator sequence: operands interleaved with operator elements."""

  elements: Tuple[ExprNode, ...]
  text: str = ""


@dataclass(frozen=True)
class RawExpr(ExprNode):
  """Anything the parser does not model; kept verbatim."""

  text: str


# --- Closures ---


@dataclass(frozen=True)
class ClosureCapture(SwiftNode):
  """`weak self`, `unowned(unsafe) x`, `[y = value]`."""

  expression: ExprNode
  specifier: Optional[str] = None
  name: Optional[str] = None
  text: str = ""

  def render(self) -> str:
    parts = []
    if self.specifier:
      parts.append(self.specifier)
    if self.name:
      parts.append(f"{self.name} =")
    parts.append(self.expression.to_text())
    return " ".join(parts)


@dataclass(frozen=True)
class ClosureCaptureClause(SwiftNode):
  items: Tuple[ClosureCapture, ...] = ()
  text: str = ""

  def render(self) -> str:
    return "[" + ", ".join(item.to_text() for item in self.items) + "]"


@dataclass(frozen=True)
class ClosureParameter(SwiftNode):
  """`v: Int` inside a parenthesized closure parameter clause."""

  name: str
  type: Optional[TypeNode] = None
  text: str = ""


@dataclass(frozen=True)
class ClosureParameterClause(SwiftNode):
  """`(v: Int, w: String)`."""

  parameters: Tuple[ClosureParameter, ...] = ()
  text: str = ""


@dataclass(frozen=True)
class ClosureShorthandParameters(SwiftNode):
  """`value in`, `a, b in`."""

  names: Tuple[str, ...] = ()
  text: str = ""

  def render(self) -> str:
    return ", ".join(self.names)


@dataclass(frozen=True)
class ReturnClause(SwiftNode):
  type: TypeNode
  text: str = ""

  def render(self) -> str:
    return f"-> {self.type.to_text()}"


ParameterClause = Union[ClosureParameterClause, ClosureShorthandParameters]


@dataclass(frozen=True)
class ClosureSignature(SwiftNode):
  """Everything between the opening brace of a closure and `in`."""

  capture: Optional[ClosureCaptureClause] = None
  parameter_clause: Optional[ParameterClause] = None
  effects: str = ""
  return_clause: Optional[ReturnClause] = None
  attributes: Tuple[str, ...] = ()
  text: str = ""

  def render(self) -> str:
    parts = list(self.attributes)
    for piece in (self.capture, self.parameter_clause):
      if piece is not None:
        parts.append(piece.to_text())
    if self.effects:
      parts.append(self.effects)
    if self.return_clause is not None:
      parts.append(self.return_clause.to_text())
    parts.append("in")
    return " ".join(parts)


@dataclass(frozen=True)
class CodeBlockItem(SwiftNode):
  """
  One statement. `indent` is the whitespace that preceded its first line in the
  source, so multi-line statements can be re-indented as a unit.
  """

  text: str
  indent: str = ""


@dataclass(frozen=True)
class ClosureExpr(ExprNode):
  signature: Optional[ClosureSignature] = None
  statements: Tuple[CodeBlockItem, ...] = ()
  text: str = ""
  indent_unit: str = "    "

  def render(self) -> str:
    head = "{"
    if self.signature is not None:
      head += " " + self.signature.to_text()
    if not self.statements:
      return head + " }"
    body = []
    for item in self.statements:
      block = _dedent(item.indent + item.text)
      body.append("\n".join(self.indent_unit + line if line.strip() else "" for line in block.split("\n")))
    return head + "\n" + "\n".join(body) + "\n}"


@dataclass(frozen=True)
class FunctionCallExpr(ExprNode):
  """`callee(args) { trailing }`; `has_parens` is False for `callee { ... }`."""

  called: ExprNode
  arguments: Tuple[LabeledExpr, ...] = ()
  trailing_closure: Optional[ClosureExpr] = None
  has_parens: bool = True
  text: str = ""


@dataclass(frozen=True)
class MacroExpansionExpr(ExprNode):
  """A freestanding macro, `#Name(args) { trailing }`."""

  name: str
  arguments: Tuple[LabeledExpr, ...] = ()
  trailing_closure: Optional[ClosureExpr] = None
  text: str = ""
  start: int = 0
  end: int = 0
  line: int = 0
  column: int = 0


# --- Declarations ---


@dataclass(frozen=True)
class Attribute(SwiftNode):
  """`@name` or `@name(args)`; `arguments` is None when there are no parentheses."""

  name: str
  arguments: Optional[Tuple[LabeledExpr, ...]] = None
  text: str = ""
  start: int = 0
  end: int = 0
  line: int = 0
  column: int = 0


@dataclass(frozen=True)
class DeclModifier(SwiftNode):
  """`static`, `private`, `private(set)`."""

  name: str
  detail: Optional[str] = None
  text: str = ""


@dataclass(frozen=True)
class AccessorBlock(SwiftNode):
  """A `{ get set }` / `{ didSet { } }` / computed body block, kept verbatim."""

  text: str


@dataclass(frozen=True)
class PatternBinding(SwiftNode):
  """One `name: Type = value { accessors }` binding of a variable declaration."""

  pattern: str
  name: Optional[str] = None
  type_annotation: Optional[TypeNode] = None
  initializer: Optional[ExprNode] = None
  accessor_block: Optional[AccessorBlock] = None
  text: str = ""


@dataclass(frozen=True)
class VariableDecl(SwiftNode):
  binding_specifier: str
  bindings: Tuple[PatternBinding, ...] = ()
  modifiers: Tuple[DeclModifier, ...] = ()
  attributes: Tuple[Attribute, ...] = ()
  text: str = ""

  def has_modifier(self, *names: str) -> bool:
    return any(mod.name in names for mod in self.modifiers)


@dataclass(frozen=True)
class OpaqueDecl(SwiftNode):
  """A member the macros never inspect (functions, initializers, nested types)."""

  keyword: str
  text: str = ""


MemberDecl = Union[VariableDecl, OpaqueDecl]


@dataclass(frozen=True)
class MemberBlock(SwiftNode):
  """`{ members }`; `end` is the offset just past the closing brace."""

  members: Tuple[MemberDecl, ...] = ()
  text: str = ""
  start: int = 0
  end: int = 0


@dataclass(frozen=True)
class DeclGroup(SwiftNode):
  """A `struct`, `class`, `enum`, `actor`, `protocol` or `extension` declaration."""

  keyword: str
  name: str
  member_block: MemberBlock
  attributes: Tuple[Attribute, ...] = ()
  modifiers: Tuple[DeclModifier, ...] = ()
  text: str = ""
  start: int = 0
  end: int = 0
  line: int = 0
  column: int = 0

  def attribute(self, name: str) -> Optional[Attribute]:
    for attr in self.attributes:
      if attr.name == name:
        return attr
    return None


def _dedent(block: str) -> str:
  lines = block.split("\n")
  widths = [len(line) - len(line.lstrip()) for line in lines if line.strip()]
  margin = min(widths) if widths else 0
  return "\n".join(line[margin:] if line.strip() else "" for line in lines)

