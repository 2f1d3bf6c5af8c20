"""
Orchestration Engine for Macro Expansion.

This module provides the `ExpansionEngine`, the driver that applies the
registered macros to a Swift source unit. Each run proceeds in passes:

1.  **Tokenizing**: the current text is tokenized once per pass. A lexical
    error fails the whole unit.
2.  **Site Discovery**: `@name` attributes of member macros and `#name`
    markers of expression macros are located by token, so occurrences inside
    strings and comments are ignored.
3.  **Expansion**: every site is parsed and handed to its macro. Failures
    become `Diagnostic` records and leave the site untouched (strict mode
    instead aborts the unit and returns the original text).
4.  **Splicing**: the resulting text edits are applied back to front.
    - Member macros remove their attribute and append the generated members
      before the declaration's closing brace.
    - Expression macros replace the marker in place, re-indented to its line.

Sites whose edits overlap an edit accepted earlier in the pass (a marker
nested inside another marker's closure) are deferred to the next pass, up to
`RuntimeConfig.max_passes`. A declaration that contains a marker expanded in
the same pass is deferred as well, so its fields are classified from the
expanded closure.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from ssg_macro.config import RuntimeConfig
from ssg_macro.core.expansion_result import Diagnostic, ExpansionResult
from ssg_macro.core.fluent.models import FieldDescriptor
from ssg_macro.core.macros import FluentSetterMacro
from ssg_macro.core.registry import Macro, MacroContext, MacroRegistry, default_registry
from ssg_macro.core.swift.lexer import SwiftSyntaxError, Token
from ssg_macro.core.swift.nodes import DeclGroup, OpaqueDecl, VariableDecl
from ssg_macro.core.swift.parser import SwiftParser
from ssg_macro.core.swift.tokens import TokenKind
from ssg_macro.core.tracer import TraceLogger
from ssg_macro.enums import CompositeKind, MacroRole
from ssg_macro.errors import MacroExpansionError, UnsupportedDeclarationKind

logger = logging.getLogger(__name__)

# (macro name, message, source line of the site)
FailureKey = Tuple[str, str, str]


@dataclass
class Edit:
  """Replace `code[start:end]` with `text`."""

  start: int
  end: int
  text: str


@dataclass
class Site:
  """One macro occurrence and the edits its expansion produced."""

  macro: Macro
  token: Token
  span: Tuple[int, int] = (0, 0)
  edits: List[Edit] = field(default_factory=list)

  @property
  def label(self) -> str:
    sigil = "@" if self.macro.role == MacroRole.MEMBER else "#"
    return f"{sigil}{self.macro.name} (line {self.token.line})"


@dataclass(frozen=True)
class FieldReport:
  """A row of the `fields` report: one generated setter."""

  declaration: str
  kind: CompositeKind
  field: FieldDescriptor
  line: int


class StrictModeAbort(Exception):
  """Internal signal: a site failed while strict mode is on."""

  def __init__(self, diagnostic: Diagnostic):
    super().__init__(diagnostic.message)
    self.diagnostic = diagnostic


class ExpansionEngine:
  """
  Expands macro sites of Swift source text.

  The engine holds configuration and the macro registry only; every `run`
  creates its own tracer, so one engine can process many files.
  """

  def __init__(self, config: Optional[RuntimeConfig] = None, registry: Optional[MacroRegistry] = None):
    """
    Initializes the Engine.

    Args:
        config (RuntimeConfig, optional): Runtime settings. Defaults are used if None.
        registry (MacroRegistry, optional): Macro table. Built from `config` if None.
    """
    self.config = config or RuntimeConfig()
    self.registry = registry if registry is not None else default_registry(self.config)
    self.strict_mode = self.config.strict_mode

  def run(self, code: str, path: Optional[Path] = None) -> ExpansionResult:
    """
    Executes all expansion passes over a source unit.

    Args:
        code (str): The input source string.
        path (Path, optional): Source location used in diagnostics.

    Returns:
        ExpansionResult: Expanded code, diagnostics and the trace.
    """
    tracer = TraceLogger()
    context = MacroContext(self.config, tracer, path)
    path_str = str(path) if path else None

    tracer.start_phase("Macro Expansion", path_str or "<string>")
    diagnostics: List[Diagnostic] = []
    # A site that keeps failing is met again on every pass; report it once.
    reported: Counter = Counter()
    # Expansion works on `\n` text; CRLF input gets CRLF back.
    newline = "\r\n" if "\r\n" in code else "\n"
    current = code.replace("\r\n", "\n")

    try:
      for pass_no in range(1, self.config.max_passes + 1):
        tracer.start_phase(f"Pass {pass_no}")
        parser = SwiftParser(current)
        accepted, deferred, failures = self._run_pass(parser, context)
        tracer.end_phase()

        seen_this_pass: Counter = Counter()
        for key, diag in failures:
          seen_this_pass[key] += 1
          if seen_this_pass[key] > reported[key]:
            reported[key] += 1
            diag.path = path_str
            diagnostics.append(diag)

        if accepted:
          current = self._apply(current, accepted)
        if not deferred or not accepted:
          break
      else:
        tracer.log_warning(f"Stopped after {self.config.max_passes} passes with nested sites left")
        logger.warning("Nested macro sites remain after %d passes", self.config.max_passes)

    except SwiftSyntaxError as e:
      # Lexical errors make every site of the unit unreachable.
      diag = Diagnostic(message=str(e), line=e.line or None, column=e.column, path=path_str)
      return self._failed(code, diag, tracer)
    except StrictModeAbort as abort:
      abort.diagnostic.path = path_str
      tracer.log_warning(f"Strict mode: {abort.diagnostic.message}")
      return self._failed(code, abort.diagnostic, tracer)

    tracer.end_phase()
    return ExpansionResult(
      code=current.replace("\n", newline),
      diagnostics=diagnostics,
      success=not diagnostics,
      trace_events=tracer.export(),
    )

  @staticmethod
  def _failed(code: str, diag: Diagnostic, tracer: TraceLogger) -> ExpansionResult:
    tracer.end_phase()
    tracer.end_phase()
    return ExpansionResult(code=code, diagnostics=[diag], success=False, trace_events=tracer.export())

  def collect_fields(self, code: str) -> List[FieldReport]:
    """
    Lists the setters each member-macro site would generate, without editing.

    Sites that fail to parse or are attached to unsupported declarations are
    logged and skipped.
    """
    context = MacroContext(self.config)
    parser = SwiftParser(code)
    reports = []
    for macro, tok in self._find_sites(parser, MacroRole.MEMBER):
      if not isinstance(macro, FluentSetterMacro):
        continue
      try:
        parser.seek(tok.start)
        decl = self._parse_declaration_site(parser, tok)
        kind, descriptors = macro.fields(decl, context)
      except (MacroExpansionError, SwiftSyntaxError) as e:
        logger.warning("Skipping @%s at line %d: %s", macro.name, tok.line, e)
        continue
      reports.extend(FieldReport(decl.name, kind, desc, decl.line) for desc in descriptors)
    return reports

  # --- Passes ---

  def _find_sites(self, parser: SwiftParser, role: MacroRole) -> List[Tuple[Macro, Token]]:
    kind = TokenKind.AT_IDENT if role == MacroRole.MEMBER else TokenKind.POUND_IDENT
    sites = []
    for tok in parser.tokens:
      if tok.kind != kind:
        continue
      macro = self.registry.get(tok.text[1:], role)
      if macro is not None:
        sites.append((macro, tok))
    return sites

  def _run_pass(
    self, parser: SwiftParser, context: MacroContext
  ) -> Tuple[List[Edit], List[Site], List[Tuple[FailureKey, Diagnostic]]]:
    failures: List[Tuple[FailureKey, Diagnostic]] = []
    expression_sites = self._expand_all(parser, MacroRole.EXPRESSION, context, failures)
    member_sites = self._expand_all(parser, MacroRole.MEMBER, context, failures)

    taken: List[Site] = []
    deferred: List[Site] = []
    claimed: List[Tuple[int, int]] = []

    for site in sorted(expression_sites, key=lambda s: s.span[0]):
      if any(_overlaps(site.span, span) for span in claimed):
        context.tracer.log_inspection(site.label, "deferred", "nested inside another expansion")
        deferred.append(site)
        continue
      claimed.append(site.span)
      taken.append(site)
    expanded_markers = [site.span[0] for site in taken]

    for site in member_sites:
      start, end = site.span
      if any(start <= marker < end for marker in expanded_markers):
        context.tracer.log_inspection(site.label, "deferred", "contains a marker expanded in this pass")
        deferred.append(site)
        continue
      spans = _edit_spans(site)
      if any(_overlaps(a, b) for a in spans for b in claimed):
        context.tracer.log_inspection(site.label, "deferred", "overlaps another expansion")
        deferred.append(site)
        continue
      claimed.extend(spans)
      taken.append(site)

    accepted = [edit for site in taken for edit in site.edits]
    return accepted, deferred, failures

  def _expand_all(
    self,
    parser: SwiftParser,
    role: MacroRole,
    context: MacroContext,
    failures: List[Tuple[FailureKey, Diagnostic]],
  ) -> List[Site]:
    sites = []
    for macro, tok in self._find_sites(parser, role):
      site = Site(macro, tok)
      try:
        self._expand_site(parser, site, context)
      except (MacroExpansionError, SwiftSyntaxError) as e:
        diag = Diagnostic(
          message=e.message if isinstance(e, MacroExpansionError) else str(e),
          macro=macro.name,
          line=tok.line,
          column=tok.col,
        )
        logger.debug("Expansion of %s failed: %s", site.label, diag.message)
        context.tracer.log_inspection(site.label, "failed", diag.message)
        if self.strict_mode:
          raise StrictModeAbort(diag) from e
        failures.append(((macro.name, diag.message, _site_snippet(parser.text, tok)), diag))
        continue
      sites.append(site)
    return sites

  def _expand_site(self, parser: SwiftParser, site: Site, context: MacroContext) -> None:
    tok = site.token
    context.tracer.log_match(site.macro.name, tok.text, tok.line)
    parser.seek(tok.start)
    if site.macro.role == MacroRole.MEMBER:
      self._expand_member(parser, site, context)
    else:
      self._expand_expression(parser, site, context)

  def _parse_declaration_site(self, parser: SwiftParser, tok: Token) -> DeclGroup:
    decl = parser.parse_declaration()
    if isinstance(decl, DeclGroup):
      return decl
    keyword = "var" if isinstance(decl, VariableDecl) else decl.keyword if isinstance(decl, OpaqueDecl) else "?"
    raise UnsupportedDeclarationKind(keyword, tok.line, tok.col)

  def _expand_member(self, parser: SwiftParser, site: Site, context: MacroContext) -> None:
    decl = self._parse_declaration_site(parser, site.token)
    attribute = decl.attributes[0]
    text = parser.text
    outer = _line_indent(text, decl.start)
    inner = _member_indent(text, decl) or outer + context.indent
    methods = site.macro.expand(decl, attribute, context.with_indent(_indent_unit(inner, context.indent)))

    site.span = (decl.start, decl.end)
    site.edits.append(_removal_edit(text, attribute.start, attribute.end))
    if methods:
      site.edits.append(_insertion_edit(text, decl, methods, outer, inner))

    before = text[decl.start : decl.end]
    context.tracer.log_mutation(site.label, before, "\n\n".join(methods))

  def _expand_expression(self, parser: SwiftParser, site: Site, context: MacroContext) -> None:
    expansion = parser.parse_macro_expansion()
    indent = _line_indent(parser.text, expansion.start)
    rendered = site.macro.expand(expansion, context.with_indent(_indent_unit(indent, context.indent)))
    replacement = _indent_continuation(rendered, indent)

    site.span = (expansion.start, expansion.end)
    site.edits.append(Edit(expansion.start, expansion.end, replacement))
    context.tracer.log_mutation(site.label, expansion.text, replacement)

  @staticmethod
  def _apply(code: str, edits: List[Edit]) -> str:
    for edit in sorted(edits, key=lambda e: (e.start, e.end), reverse=True):
      code = code[: edit.start] + edit.text + code[edit.end :]
    return code


def _overlaps(a: Tuple[int, int], b: Tuple[int, int]) -> bool:
  return a[0] < b[1] and b[0] < a[1]


def _edit_spans(site: Site) -> List[Tuple[int, int]]:
  return [(edit.start, max(edit.end, edit.start + 1)) for edit in site.edits]


def _line_indent(text: str, offset: int) -> str:
  line_start = text.rfind("\n", 0, offset) + 1
  line = text[line_start:offset]
  return line[: len(line) - len(line.lstrip(" \t"))]


def _removal_edit(text: str, start: int, end: int) -> Edit:
  """
  Removes an attribute; its whole line goes when nothing else is on it,
  otherwise the attribute and the spaces after it.
  """
  line_start = text.rfind("\n", 0, start) + 1
  line_end = text.find("\n", end)
  line_end = len(text) if line_end == -1 else line_end
  if not text[line_start:start].strip() and not text[end:line_end].strip():
    return Edit(line_start, min(line_end + 1, len(text)), "")
  while end < len(text) and text[end] in " \t":
    end += 1
  return Edit(start, end, "")


def _member_indent(text: str, decl: DeclGroup) -> Optional[str]:
  """Indent of the first member line below the opening brace, if any."""
  block = text[decl.member_block.start + 1 : decl.member_block.end - 1]
  for line in block.split("\n")[1:]:
    if line.strip():
      indent = line[: len(line) - len(line.lstrip(" \t"))]
      return indent or None
  return None


def _indent_unit(indent: str, default: str) -> str:
  return "\t" if "\t" in indent else default


def _insertion_edit(text: str, decl: DeclGroup, methods: List[str], outer: str, inner: str) -> Edit:
  """
  Appends `methods` at the `inner` indent of the member block, separated from
  the existing members and from each other by a blank line.
  """
  close = decl.member_block.end - 1
  anchor = close
  while anchor > decl.member_block.start + 1 and text[anchor - 1].isspace():
    anchor -= 1

  body = "\n\n".join("\n".join(inner + line if line else line for line in m.split("\n")) for m in methods)
  lead = "\n\n" if anchor > decl.member_block.start + 1 else "\n"
  return Edit(anchor, close, f"{lead}{body}\n{outer}")


def _indent_continuation(block: str, indent: str) -> str:
  """Prefixes every non-blank line after the first with `indent`."""
  first, *rest = block.split("\n")
  return "\n".join([first] + [indent + line if line.strip() else line for line in rest])


def _site_snippet(text: str, tok: Token) -> str:
  line_end = text.find("\n", tok.start)
  return text[tok.start : len(text) if line_end == -1 else line_end].strip()
