"""
Tests for the Macro Registry and the built-in macros.
"""

from ssg_macro.config import RuntimeConfig
from ssg_macro.core.engine import ExpansionEngine
from ssg_macro.core.macros import FluentSetterMacro, WeakSelfClosureMacro, access_modifier
from ssg_macro.core.registry import Macro, MacroContext, MacroRegistry, default_registry
from ssg_macro.core.swift.parser import parse_declaration, parse_expression
from ssg_macro.core.tracer import TraceEventType
from ssg_macro.enums import CompositeKind, MacroRole


def test_default_registry_roles(registry):
  assert registry.names(MacroRole.MEMBER) == ["fluentSetterMacro"]
  assert registry.names(MacroRole.EXPRESSION) == ["WeakSelfClosure"]
  assert isinstance(registry.get("fluentSetterMacro"), FluentSetterMacro)
  assert len(registry) == 2


def test_get_filters_by_role(registry):
  assert registry.get("fluentSetterMacro", MacroRole.EXPRESSION) is None
  assert registry.get("WeakSelfClosure", MacroRole.EXPRESSION) is not None
  assert registry.get("missing") is None


def test_registries_are_independent():
  first = default_registry()
  second = default_registry(RuntimeConfig(weak_self_macro="Weak"))
  first.clear()
  assert "fluentSetterMacro" not in first
  assert "Weak" in second
  assert "WeakSelfClosure" not in second


def test_register_class_and_decorator():
  registry = MacroRegistry()

  @registry.register("Custom")
  class Custom(WeakSelfClosureMacro):
    pass

  instance = registry.get("Custom")
  assert isinstance(instance, Custom)
  assert instance.name == "Custom"
  assert repr(instance) == "Custom('Custom')"


def test_register_replaces_existing():
  registry = MacroRegistry()
  registry.register("m", FluentSetterMacro)
  replacement = WeakSelfClosureMacro("m")
  registry.register("m", replacement)
  assert registry.get("m") is replacement


def test_custom_expression_macro_runs_in_engine():
  class Stringify(Macro):
    role = MacroRole.EXPRESSION

    def expand(self, expansion, context):
      return '"' + expansion.arguments[0].expression.to_text() + '"'

  registry = default_registry()
  registry.register("stringify", Stringify)
  engine = ExpansionEngine(registry=registry)
  assert engine.run("let s = #stringify(a + b)\n").code == 'let s = "a + b"\n'


def test_access_modifier_extraction():
  public = parse_declaration('@fluentSetterMacro("public")\nclass A {}').attributes[0]
  padded = parse_declaration('@fluentSetterMacro(" internal ")\nclass A {}').attributes[0]
  empty = parse_declaration("@fluentSetterMacro()\nclass A {}").attributes[0]
  bare = parse_declaration("@fluentSetterMacro\nclass A {}").attributes[0]
  other = parse_declaration("@fluentSetterMacro(1)\nclass A {}").attributes[0]
  assert access_modifier(public) == "public"
  assert access_modifier(padded) == "internal"
  assert access_modifier(empty) == ""
  assert access_modifier(bare) == ""
  assert access_modifier(other) == ""


def test_fluent_fields_warn_on_sentinels(context):
  decl = parse_declaration("class A {\n    var a = nil\n    var b = 1\n}")
  kind, descriptors = FluentSetterMacro("fluentSetterMacro").fields(decl, context)
  assert kind == CompositeKind.REFERENCE
  assert [d.name for d in descriptors] == ["b"]
  assert context.tracer.events[0].type == TraceEventType.WARNING


def test_weak_self_macro_uses_context_indent():
  context = MacroContext(RuntimeConfig(indent_width=2))
  out = WeakSelfClosureMacro("WeakSelfClosure").expand(parse_expression("#WeakSelfClosure {\n    go()\n}"), context)
  assert out == "{ [weak self] in\n  guard let self else {\n    return\n  }\n  go()\n}"
