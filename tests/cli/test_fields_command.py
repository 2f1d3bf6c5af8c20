"""
Tests for the `fields` Command.
"""

import io

import pytest

from ssg_macro.cli.__main__ import main
from ssg_macro.utils.console import make_console, set_console


@pytest.fixture
def recorder():
  capture = make_console(record=True, width=200, file=io.StringIO())
  set_console(capture)
  return capture


def test_fields_of_single_file(tmp_path, recorder):
  src = tmp_path / "Models.swift"
  src.write_text(
    "@fluentSetterMacro\nstruct Box {\n    var width = 1.0\n    let id = 1\n}\n"
    "@fluentSetterMacro\nclass View {\n    var title: String?\n}\n",
    encoding="utf-8",
  )

  assert main(["fields", str(src)]) == 0

  text = recorder.export_text()
  assert "@fluentSetterMacro fields" in text
  assert "Box" in text and "value" in text and "width" in text and "CGFloat" in text
  assert "View" in text and "reference" in text and "String?" in text
  assert "File" not in text
  assert " id " not in text


def test_fields_of_directory_has_file_column(tmp_path, recorder):
  (tmp_path / "Sub").mkdir()
  (tmp_path / "Sub" / "Box.swift").write_text("@fluentSetterMacro\nclass Box {\n    var w = 1\n}\n", encoding="utf-8")

  assert main(["fields", str(tmp_path)]) == 0

  text = recorder.export_text()
  assert "File" in text
  assert "Box.swift" in text


def test_no_annotated_declarations(tmp_path, recorder):
  src = tmp_path / "main.swift"
  src.write_text("let x = 1\n", encoding="utf-8")

  assert main(["fields", str(src)]) == 0
  assert "No @fluentSetterMacro fields found" in recorder.export_text()


def test_unreadable_source(tmp_path, recorder):
  src = tmp_path / "Broken.swift"
  src.write_text('let s = "open\n', encoding="utf-8")

  assert main(["fields", str(src)]) == 1
  assert "Failed to inspect" in recorder.export_text()


def test_missing_input(tmp_path, recorder):
  assert main(["fields", str(tmp_path / "nope")]) == 1
