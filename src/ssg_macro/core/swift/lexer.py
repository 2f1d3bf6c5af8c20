"""
Swift Tokenizer.

Splits Swift source text into a flat token stream, trivia included, so that the
parser can recover verbatim source slices for every node it builds.

String literals (with nested interpolation, multi-line and raw forms) and
nested block comments are not regular, so they are scanned by hand; every
other token class is matched by a single compiled master pattern.
"""

import re
from dataclasses import dataclass
from typing import List

from ssg_macro.core.swift.tokens import TokenKind


class SwiftSyntaxError(SyntaxError):
  """Raised when the source cannot be tokenized or parsed."""

  def __init__(self, message: str, line: int = 0, column: int = 0):
    super().__init__(f"{message} (line {line}, column {column})" if line else message)
    self.line = line
    self.column = column


@dataclass
class Token:
  """A lexical unit with its absolute offsets into the source."""

  kind: TokenKind
  text: str
  line: int
  col: int
  start: int
  end: int
  newline_before: bool = False
  space_before: bool = False


class Tokenizer:
  PATTERN_DEFS = [
    (TokenKind.COMMENT, r"//[^\n]*"),
    (TokenKind.NEWLINE, r"\r?\n"),
    (TokenKind.WHITESPACE, r"[ \t\f\r]+"),
    (
      TokenKind.FLOAT,
      r"0x[0-9a-fA-F_]+(?:\.[0-9a-fA-F_]+)?[pP][+-]?[0-9_]+"
      r"|\d[\d_]*\.\d[\d_]*(?:[eE][+-]?\d[\d_]*)?"
      r"|\d[\d_]*[eE][+-]?\d[\d_]*",
    ),
    (TokenKind.INTEGER, r"0x[0-9a-fA-F_]+|0o[0-7_]+|0b[01_]+|\d[\d_]*"),
    (TokenKind.POUND_IDENT, r"#[^\W\d]\w*"),
    (TokenKind.AT_IDENT, r"@[^\W\d]\w*"),
    (TokenKind.IDENTIFIER, r"`[^`\n]+`|\$\w+|[^\W\d]\w*"),
    (TokenKind.ARROW, r"->"),
    (TokenKind.SYMBOL, r"[(){}\[\],:;]"),
    (TokenKind.OPERATOR, r"\.\.[.<]|[/=\-+!*%<>&|^~?]+"),
    (TokenKind.DOT, r"\."),
    (TokenKind.BACKSLASH, r"\\"),
    (TokenKind.MISMATCH, r"."),
  ]

  _REGEX = re.compile("|".join(f"(?P<{kind.value}>{pattern})" for kind, pattern in PATTERN_DEFS), re.DOTALL)
  _STRING_START = re.compile(r'(#*)("""|")')

  def __init__(self, text: str):
    self.text = text
    self.pos = 0
    self.line = 1
    self.line_start = 0

  def tokenize(self) -> List[Token]:
    """
    Converts the full source into a list of Tokens terminated by EOF.

    Raises:
        SwiftSyntaxError: On unterminated strings/comments or stray characters.
    """
    tokens: List[Token] = []
    while self.pos < len(self.text):
      start = self.pos
      string_mo = self._STRING_START.match(self.text, start)
      if string_mo:
        end = self._scan_string(start, len(string_mo.group(1)), string_mo.group(2) == '"""')
        tokens.append(self._make(TokenKind.STRING, start, end))
        continue

      if self.text.startswith("/*", start):
        end = self._scan_block_comment(start)
        tokens.append(self._make(TokenKind.COMMENT, start, end))
        continue

      mo = self._REGEX.match(self.text, start)
      kind = TokenKind(mo.lastgroup)
      if kind == TokenKind.MISMATCH:
        raise SwiftSyntaxError(f"Unexpected character {mo.group()!r}", self.line, start - self.line_start)
      tokens.append(self._make(kind, start, mo.end()))

    tokens.append(Token(TokenKind.EOF, "", self.line, self.pos - self.line_start, self.pos, self.pos))
    return tokens

  def _make(self, kind: TokenKind, start: int, end: int) -> Token:
    text = self.text[start:end]
    token = Token(kind, text, self.line, start - self.line_start, start, end)
    newlines = text.count("\n")
    if newlines:
      self.line += newlines
      self.line_start = start + text.rfind("\n") + 1
    self.pos = end
    return token

  def _scan_block_comment(self, start: int) -> int:
    depth = 0
    i = start
    while i < len(self.text):
      if self.text.startswith("/*", i):
        depth += 1
        i += 2
      elif self.text.startswith("*/", i):
        depth -= 1
        i += 2
        if depth == 0:
          return i
      else:
        i += 1
    raise SwiftSyntaxError("Unterminated block comment", self.line, start - self.line_start)

  def _scan_string(self, start: int, hashes: int, multiline: bool) -> int:
    """
    Returns the end offset of the string literal beginning at `start`.

    Interpolations (`\\(...)`, or `\\#(...)` for raw strings) may contain nested
    string literals, which are scanned recursively.
    """
    pounds = "#" * hashes
    quote = '"""' if multiline else '"'
    closing = quote + pounds
    escape = "\\" + pounds
    i = start + hashes + len(quote)
    while i < len(self.text):
      if self.text.startswith(closing, i):
        return i + len(closing)
      ch = self.text[i]
      if ch == "\n" and not multiline:
        break
      if self.text.startswith(escape, i):
        i += len(escape)
        if i < len(self.text) and self.text[i] == "(":
          i = self._scan_interpolation(i + 1)
        else:
          i += 1
        continue
      i += 1
    raise SwiftSyntaxError("Unterminated string literal", self.line, start - self.line_start)

  def _scan_interpolation(self, i: int) -> int:
    depth = 1
    while i < len(self.text):
      string_mo = self._STRING_START.match(self.text, i)
      if string_mo:
        i = self._scan_string(i, len(string_mo.group(1)), string_mo.group(2) == '"""')
        continue
      ch = self.text[i]
      if ch == "(":
        depth += 1
      elif ch == ")":
        depth -= 1
        if depth == 0:
          return i + 1
      i += 1
    raise SwiftSyntaxError("Unterminated string interpolation", self.line, i - self.line_start)


def tokenize(text: str) -> List[Token]:
  """Convenience wrapper returning the full (trivia-inclusive) token list."""
  return Tokenizer(text).tokenize()


def significant_tokens(tokens: List[Token]) -> List[Token]:
  """
  Drops trivia and annotates each remaining token with `newline_before` and
  `space_before` flags describing the trivia that preceded it.
  """
  result: List[Token] = []
  newline = False
  space = False
  for tok in tokens:
    if tok.kind == TokenKind.NEWLINE:
      newline = True
      space = True
      continue
    if tok.kind == TokenKind.WHITESPACE:
      space = True
      continue
    if tok.kind == TokenKind.COMMENT:
      space = True
      if "\n" in tok.text:
        newline = True
      continue
    tok.newline_before = newline
    tok.space_before = space
    result.append(tok)
    newline = False
    space = False
  return result
