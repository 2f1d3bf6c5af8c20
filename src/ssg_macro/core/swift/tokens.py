"""
Swift Token Definitions.

Defines the enumerations for Token Kinds, Symbols and the contextual keywords
recognised by the Lexer and Parser.
"""

from enum import Enum


class TokenKind(str, Enum):
  """Enumeration of Lexer Token Types."""

  COMMENT = "COMMENT"
  STRING = "STRING"
  FLOAT = "FLOAT"
  INTEGER = "INTEGER"
  POUND_IDENT = "POUND_IDENT"
  AT_IDENT = "AT_IDENT"
  IDENTIFIER = "IDENTIFIER"
  ARROW = "ARROW"
  OPERATOR = "OPERATOR"
  SYMBOL = "SYMBOL"
  DOT = "DOT"
  BACKSLASH = "BACKSLASH"
  NEWLINE = "NEWLINE"
  WHITESPACE = "WHITESPACE"
  MISMATCH = "MISMATCH"
  EOF = "EOF"


class Symbol(str, Enum):
  """Enumeration of Punctuation Symbols."""

  LBRACE = "{"
  RBRACE = "}"
  LPAREN = "("
  RPAREN = ")"
  LBRACKET = "["
  RBRACKET = "]"
  COMMA = ","
  COLON = ":"
  SEMICOLON = ";"
  DOT = "."
  ARROW = "->"


TRIVIA_KINDS = frozenset({TokenKind.COMMENT, TokenKind.NEWLINE, TokenKind.WHITESPACE})

OPENERS = {Symbol.LPAREN.value: Symbol.RPAREN.value, Symbol.LBRACKET.value: Symbol.RBRACKET.value, "{": "}"}
CLOSERS = frozenset(OPENERS.values())

# Keywords introducing a declaration group
DECL_GROUP_KEYWORDS = frozenset({"struct", "class", "enum", "protocol", "extension", "actor"})

# Keywords that start a member declaration inside a member block
DECL_KEYWORDS = frozenset(
  {
    "var",
    "let",
    "func",
    "init",
    "deinit",
    "subscript",
    "typealias",
    "associatedtype",
    "case",
    "import",
    "operator",
    "precedencegroup",
    "macro",
  }
  | DECL_GROUP_KEYWORDS
)

DECL_MODIFIERS = frozenset(
  {
    "public",
    "private",
    "fileprivate",
    "internal",
    "package",
    "open",
    "static",
    "class",
    "lazy",
    "weak",
    "unowned",
    "final",
    "override",
    "mutating",
    "nonmutating",
    "dynamic",
    "optional",
    "required",
    "convenience",
    "indirect",
    "nonisolated",
    "isolated",
    "prefix",
    "postfix",
    "infix",
  }
)

# Modifiers that may carry a parenthesized detail, e.g. `private(set)`
DETAILED_MODIFIERS = frozenset({"public", "private", "fileprivate", "internal", "package", "open", "unowned"})

ACCESSOR_KEYWORDS = frozenset({"get", "set", "didSet", "willSet", "_modify", "_read", "unsafeAddress"})

EXPRESSION_PREFIX_KEYWORDS = frozenset({"try", "await", "consume", "copy"})
