"""
Tests for the package-level convenience API.
"""

import pytest

import ssg_macro
from ssg_macro import RuntimeConfig


def test_expand_string():
  out = ssg_macro.expand("@fluentSetterMacro\nclass Box {\n    var width = 1.0\n}\n")
  assert "func width(_ value: CGFloat) -> Self {" in out


def test_expand_raises_on_failure():
  with pytest.raises(ValueError, match="Macro expansion failed"):
    ssg_macro.expand("@fluentSetterMacro\nenum E {}\n")


def test_expand_with_config():
  out = ssg_macro.expand("let c = #Weak {\n    go()\n}\n", config=RuntimeConfig(weak_self_macro="Weak", indent_width=2))
  assert out == "let c = { [weak self] in\n  guard let self else {\n    return\n  }\n  go()\n}\n"


def test_version():
  assert ssg_macro.__version__ == "0.1.0"
