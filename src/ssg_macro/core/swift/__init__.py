"""
Swift subset front-end: tokenizer, immutable syntax nodes and parser.
"""

from ssg_macro.core.swift.lexer import SwiftSyntaxError, Token, Tokenizer, tokenize
from ssg_macro.core.swift.parser import SwiftParser, parse_declaration, parse_expression, parse_type

__all__ = [
  "SwiftParser",
  "SwiftSyntaxError",
  "Token",
  "Tokenizer",
  "parse_declaration",
  "parse_expression",
  "parse_type",
  "tokenize",
]
