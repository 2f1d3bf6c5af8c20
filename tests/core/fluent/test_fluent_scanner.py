"""
Tests for the Declaration Scanner.

Verifies which members of a struct / class become setter candidates.
"""

import pytest

from ssg_macro.core.fluent.scanner import composite_kind, members_of, scan
from ssg_macro.core.swift.parser import parse_declaration
from ssg_macro.enums import CompositeKind
from ssg_macro.errors import UnsupportedDeclarationKind

SAMPLE = """
class Sample {
    var plain = 1
    var annotated: String
    let constant = 2
    static var shared = 3
    class var classShared = 4
    lazy var deferred = 5
    private var hidden = 6
    fileprivate var fileHidden = 7
    private(set) var readOnly = 8
    public var exposed = 9
    var computed: Int { return 1 }
    var observed = 0 {
        didSet { }
    }
    var first = 1, second = 2
    var (x, y) = (0, 0)
    func method() {}
}
"""


def names(members):
  return [m.name for m in members]


def test_scan_keeps_only_mutable_stored_fields():
  decl = parse_declaration(SAMPLE)
  assert names(scan(decl)) == ["plain", "annotated", "exposed", "first", "second"]


def test_members_of_reports_exclusion_flags():
  members = {m.name: m for m in members_of(parse_declaration(SAMPLE))}

  assert members["constant"].is_constant
  assert members["shared"].is_static
  assert members["classShared"].is_static
  assert members["deferred"].is_lazy
  assert members["hidden"].is_private
  assert members["fileHidden"].is_private
  assert members["readOnly"].is_private
  assert members["computed"].has_accessor
  assert members["observed"].has_accessor
  assert "x" not in members
  assert members["plain"].is_eligible


def test_declaration_order_is_preserved():
  decl = parse_declaration("struct S {\n    var c = 1\n    var a = 2\n    var b = 3\n}")
  assert names(scan(decl)) == ["c", "a", "b"]


@pytest.mark.parametrize("keyword, kind", [("struct", CompositeKind.VALUE), ("class", CompositeKind.REFERENCE)])
def test_composite_kind(keyword, kind):
  assert composite_kind(parse_declaration(f"{keyword} S {{}}")) == kind


@pytest.mark.parametrize("keyword", ["enum", "protocol", "extension", "actor"])
def test_unsupported_kinds(keyword):
  decl = parse_declaration(f"{keyword} S {{}}")
  with pytest.raises(UnsupportedDeclarationKind) as exc:
    scan(decl)
  assert exc.value.keyword == keyword
  assert f"'{keyword}'" in exc.value.message
