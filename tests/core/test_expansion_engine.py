"""
Tests for the Expansion Engine.

Verifies:
1. Fluent setter expansion for classes and structs, in place.
2. Weak-self closure rewriting in expression position.
3. Nested markers and markers inside annotated declarations (multi-pass).
4. Diagnostics, strict mode and lexical failures.
5. Field collection without editing.
"""

from pathlib import Path

import pytest

from ssg_macro.config import RuntimeConfig
from ssg_macro.core.engine import ExpansionEngine
from ssg_macro.core.tracer import TraceEventType
from ssg_macro.enums import CompositeKind


def test_class_setter_appended(engine):
  code = """@fluentSetterMacro()
class TestClass {
    var aaa: CGRect // comment
}
"""
  result = engine.run(code)
  assert result.success
  assert result.code == """class TestClass {
    var aaa: CGRect // comment

    func aaa(_ value: CGRect) -> Self {
        self.aaa = value
        return self
    }
}
"""


def test_struct_setters_with_access_modifier(engine):
  code = """@fluentSetterMacro("public")
public struct Style {
    var width = 1.0
    var title: String?
}
"""
  result = engine.run(code)
  assert result.code == """public struct Style {
    var width = 1.0
    var title: String?

    public func width(_ value: CGFloat) -> Self {
        var copy = self
        copy.width = value
        return copy
    }

    public func title(_ value: String?) -> Self {
        var copy = self
        copy.title = value
        return copy
    }
}
"""


def test_excluded_members_untouched(engine):
  code = """@fluentSetterMacro()
class TestClass {
    // excluded
    static var sss: String = ""

    let xxx: Double = 0.0
    private var yyy: Int = 1
    lazy var zzz: Int = {
        return 1
    }()
    var ggg: Int {
        return aaa
    }

    // kept
    var aaa: Int = 1 // comment
}
"""
  result = engine.run(code)
  methods = [line.strip() for line in result.code.splitlines() if line.strip().startswith("func ")]
  assert methods == ["func aaa(_ value: Int) -> Self {"]
  assert result.code.startswith("class TestClass {\n    // excluded\n")


def test_nested_declaration_indentation(engine):
  code = """enum Namespace {
    @fluentSetterMacro
    struct Inner {
        var x = 1
    }
}
"""
  result = engine.run(code)
  assert result.code == """enum Namespace {
    struct Inner {
        var x = 1

        func x(_ value: Int) -> Self {
            var copy = self
            copy.x = value
            return copy
        }
    }
}
"""


def test_unicode_names_expand(engine):
  code = '@fluentSetterMacro\nstruct 사람 {\n    var 이름 = "a"\n    var b = 2\n}\n'
  result = engine.run(code)
  assert result.success
  assert result.code == (
    "struct 사람 {\n"
    '    var 이름 = "a"\n'
    "    var b = 2\n"
    "\n"
    "    func 이름(_ value: String) -> Self {\n"
    "        var copy = self\n"
    "        copy.이름 = value\n"
    "        return copy\n"
    "    }\n"
    "\n"
    "    func b(_ value: Int) -> Self {\n"
    "        var copy = self\n"
    "        copy.b = value\n"
    "        return copy\n"
    "    }\n"
    "}\n"
  )


def test_empty_member_block(engine):
  result = engine.run("@fluentSetterMacro\nstruct Empty {}\n")
  assert result.success
  assert result.code == "struct Empty {}\n"


def test_indent_width_setting():
  engine = ExpansionEngine(RuntimeConfig(indent_width=2))
  result = engine.run("@fluentSetterMacro\nclass A {\n  var x = 1\n}\n")
  assert result.code == "class A {\n  var x = 1\n\n  func x(_ value: Int) -> Self {\n    self.x = value\n    return self\n  }\n}\n"


def test_setters_align_with_existing_members(engine):
  result = engine.run("@fluentSetterMacro\nclass A {\n  var x = 1\n}\n")
  assert result.code == "class A {\n  var x = 1\n\n  func x(_ value: Int) -> Self {\n      self.x = value\n      return self\n  }\n}\n"


def test_tab_indented_declaration(engine):
  result = engine.run("@fluentSetterMacro\nstruct T {\n\tvar x = 1\n}\n")
  assert result.code == (
    "struct T {\n"
    "\tvar x = 1\n"
    "\n"
    "\tfunc x(_ value: Int) -> Self {\n"
    "\t\tvar copy = self\n"
    "\t\tcopy.x = value\n"
    "\t\treturn copy\n"
    "\t}\n"
    "}\n"
  )


def test_tab_indented_closure(engine):
  result = engine.run("func f() {\n\tlet c = #WeakSelfClosure {\n\t\tgo()\n\t}\n}\n")
  assert result.code == (
    "func f() {\n"
    "\tlet c = { [weak self] in\n"
    "\t\tguard let self else {\n"
    "\t\t\treturn\n"
    "\t\t}\n"
    "\t\tgo()\n"
    "\t}\n"
    "}\n"
  )


def test_crlf_line_endings_preserved(engine):
  code = "@fluentSetterMacro\r\nclass A {\r\n    var a = 1 // note\r\n}\r\n"
  result = engine.run(code)
  assert result.success
  assert result.code == (
    "class A {\r\n"
    "    var a = 1 // note\r\n"
    "\r\n"
    "    func a(_ value: Int) -> Self {\r\n"
    "        self.a = value\r\n"
    "        return self\r\n"
    "    }\r\n"
    "}\r\n"
  )


def test_weak_self_rewrite(engine):
  code = 'let action = #WeakSelfClosure {\n    print("run")\n}\n'
  result = engine.run(code)
  assert result.success
  assert result.code == (
    "let action = { [weak self] in\n"
    "    guard let self else {\n"
    "        return\n"
    "    }\n"
    '    print("run")\n'
    "}\n"
  )


def test_weak_self_follows_line_indent(engine):
  code = "class A {\n    func f() {\n        let c = #WeakSelfClosure {\n            print(self)\n        }\n    }\n}\n"
  result = engine.run(code)
  assert result.code == (
    "class A {\n"
    "    func f() {\n"
    "        let c = { [weak self] in\n"
    "            guard let self else {\n"
    "                return\n"
    "            }\n"
    "            print(self)\n"
    "        }\n"
    "    }\n"
    "}\n"
  )


def test_nested_markers_expand_in_later_pass(engine):
  code = "let a = #WeakSelfClosure {\n    let b = #WeakSelfClosure {\n        run()\n    }\n}\n"
  result = engine.run(code)
  assert result.success
  assert "#WeakSelfClosure" not in result.code
  assert result.code == (
    "let a = { [weak self] in\n"
    "    guard let self else {\n"
    "        return\n"
    "    }\n"
    "    let b = { [weak self] in\n"
    "        guard let self else {\n"
    "            return\n"
    "        }\n"
    "        run()\n"
    "    }\n"
    "}\n"
  )


def test_pass_limit_leaves_nested_marker():
  engine = ExpansionEngine(RuntimeConfig(max_passes=1))
  code = "let a = #WeakSelfClosure {\n    let b = #WeakSelfClosure {\n        run()\n    }\n}\n"
  result = engine.run(code)
  assert result.code.count("#WeakSelfClosure") == 1
  warnings = [e for e in result.trace_events if e["type"] == TraceEventType.WARNING]
  assert any("1 passes" in e["description"] for e in warnings)


def test_marker_inside_annotated_declaration(engine):
  code = """@fluentSetterMacro
class C {
    var handler = #WeakSelfClosure {
        run()
    }
}
"""
  result = engine.run(code)
  assert result.success
  assert result.code == """class C {
    var handler = { [weak self] in
        guard let self else {
            return
        }
        run()
    }

    func handler(_ value: @escaping () -> ()) -> Self {
        self.handler = value
        return self
    }
}
"""


def test_unregistered_macros_and_string_contents_untouched(engine):
  code = '@objc class A {}\nlet s = "#WeakSelfClosure { }"\nlet sel = #selector(run)\n// @fluentSetterMacro\n'
  result = engine.run(code)
  assert result.success
  assert result.code == code


def test_unsupported_declaration_diagnostic(engine):
  code = "@fluentSetterMacro\nenum E {\n    case a\n}\n"
  result = engine.run(code)
  assert not result.success
  assert result.code == code
  diag = result.diagnostics[0]
  assert diag.macro == "fluentSetterMacro"
  assert (diag.line, diag.column) == (1, 0)
  assert result.errors == ["<string>:1:0: [fluentSetterMacro] Unsupported declaration kind: 'enum' (expected struct or class)"]


def test_attribute_on_variable_is_unsupported(engine):
  result = engine.run("@fluentSetterMacro var x = 1\n")
  assert "'var'" in result.diagnostics[0].message


def test_missing_closure_diagnostic(engine):
  result = engine.run("let a = #WeakSelfClosure(1)\n")
  assert not result.success
  assert result.diagnostics[0].message == "Expected a closure argument for #WeakSelfClosure"


def test_failures_do_not_block_other_sites(engine):
  code = "@fluentSetterMacro\nenum E {}\n@fluentSetterMacro\nclass K {\n    var v = 1\n}\n"
  result = engine.run(code)
  assert not result.success
  assert len(result.diagnostics) == 1
  assert "func v(_ value: Int) -> Self {" in result.code
  assert result.code.startswith("@fluentSetterMacro\nenum E {}\n")


def test_repeated_failure_reported_once(engine):
  code = (
    "@fluentSetterMacro\nenum E {}\n"
    "let a = #WeakSelfClosure {\n    let b = #WeakSelfClosure {\n        run()\n    }\n}\n"
  )
  result = engine.run(code)
  assert len(result.diagnostics) == 1


def test_strict_mode_returns_original():
  engine = ExpansionEngine(RuntimeConfig(strict_mode=True))
  code = "@fluentSetterMacro\nclass K {\n    var v = 1\n}\n@fluentSetterMacro\nenum E {}\n"
  result = engine.run(code)
  assert not result.success
  assert result.code == code
  assert len(result.diagnostics) == 1


def test_lexical_error_fails_unit(engine):
  code = '@fluentSetterMacro\nclass K {\n    var s = "open\n}\n'
  result = engine.run(code, path=Path("K.swift"))
  assert not result.success
  assert result.code == code
  assert result.diagnostics[0].path == "K.swift"
  assert "Unterminated string literal" in result.errors[0]


def test_sentinel_field_skipped_with_warning(engine):
  code = "@fluentSetterMacro\nclass K {\n    var delegate = nil\n    var path = \\K.name\n    var v = 1\n}\n"
  result = engine.run(code)
  assert result.success
  assert "func v(" in result.code
  assert "func delegate(" not in result.code
  assert "func path(" not in result.code
  warnings = [e["description"] for e in result.trace_events if e["type"] == TraceEventType.WARNING]
  assert any("K.delegate" in w and "'Nil'" in w for w in warnings)
  assert any("K.path" in w and "'KeyPath'" in w for w in warnings)


def test_trace_records_matches_and_mutations(engine):
  result = engine.run("@fluentSetterMacro\nclass K {\n    var v = 1\n}\n")
  types = [e["type"] for e in result.trace_events]
  assert TraceEventType.MACRO_MATCH in types
  assert TraceEventType.SOURCE_MUTATION in types
  assert types[0] == TraceEventType.PHASE_START
  assert types.count(TraceEventType.PHASE_START) == types.count(TraceEventType.PHASE_END)


def test_renamed_macros():
  config = RuntimeConfig(fluent_setter_macro="@Fluent", weak_self_macro="#Weak")
  engine = ExpansionEngine(config)
  result = engine.run("@Fluent\nclass K {\n    var v = 1\n}\nlet c = #Weak {\n    go()\n}\n")
  assert "func v(" in result.code
  assert "[weak self]" in result.code


def test_collect_fields(engine):
  code = """@fluentSetterMacro
struct A {
    var x = 1
    let y = 2
}

@fluentSetterMacro
enum Skipped {}

@fluentSetterMacro
class B {
    var name: String?
    var gone = nil
}
"""
  reports = engine.collect_fields(code)
  assert [(r.declaration, r.kind, r.field.name, r.field.signature) for r in reports] == [
    ("A", CompositeKind.VALUE, "x", "Int"),
    ("B", CompositeKind.REFERENCE, "name", "String?"),
  ]
  assert reports[0].line == 1
  assert reports[1].line == 10


def test_engine_is_reusable(engine):
  first = engine.run("@fluentSetterMacro\nclass K {\n    var v = 1\n}\n")
  second = engine.run("let x = 1\n")
  assert first.success and second.success
  assert second.code == "let x = 1\n"
  assert not any(e["type"] == TraceEventType.SOURCE_MUTATION for e in second.trace_events)
