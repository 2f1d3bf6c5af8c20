"""
Tests for the Type/Value Classifier.

Each scenario declares fields the way application code does and checks the
setter parameter signature derived for them.
"""

import pytest

from ssg_macro.core.fluent.classifier import (
  FLOAT_ALIAS,
  classify,
  describe,
  infer_expression_signature,
  infer_type_signature,
  is_sentinel,
)
from ssg_macro.core.fluent.models import Member
from ssg_macro.core.fluent.scanner import scan
from ssg_macro.core.swift.parser import parse_declaration, parse_expression, parse_type


def signatures(body: str) -> dict:
  decl = parse_declaration("class TestClass {\n" + body + "\n}")
  return {d.name: d.signature for d in describe(scan(decl))}


def test_float_literals_use_alias():
  sigs = signatures("""
    var aaa = 0.1 // comment
    var bbb = CGFloat(0.1)
    var ccc = Double(0.1)
""")
  assert sigs == {"aaa": FLOAT_ALIAS, "bbb": "CGFloat", "ccc": "Double"}


def test_annotation_marks():
  sigs = signatures("""
    var aaa: Int
    var bbb: Int!
    var ccc: Int?
""")
  assert sigs == {"aaa": "Int", "bbb": "Int", "ccc": "Int?"}


def test_literal_inference():
  sigs = signatures("""
    var count = 1
    var title = "text"
    var flag = true
""")
  assert sigs == {"count": "Int", "title": "String", "flag": "Bool"}


def test_cast_sequence():
  assert signatures('    var mixedArray = [1, "text", true] as [Any]') == {"mixedArray": "[Any]"}


@pytest.mark.parametrize("cast", ["as", "as?", "as!"])
def test_all_cast_forms(cast):
  assert infer_expression_signature(parse_expression(f"value {cast} String")) == "String"


def test_sequence_without_cast_is_any():
  assert infer_expression_signature(parse_expression("a + b")) == "Any"


def test_closure_annotations():
  sigs = signatures("""
    var closuer: ((Int) -> String)?
    var closuer2: ((Int) -> String)!
    var closuer3: ((Int) -> String)
""")
  assert sigs == {
    "closuer": "((Int) -> String)?",
    "closuer2": "@escaping ((Int) -> String)",
    "closuer3": "((Int) -> String)",
  }


def test_closure_initializers():
  sigs = signatures("""
    var closure4 = { (v: Int) -> String in
        return "123"
    }
    var closure5 = { () -> String in
        return "123"
    }
    var closure6 = { (v: Int) in
        print("123")
    }
    var closure7 = { (v: Int) -> (String) in
        return "123"
    }
    var closure8 = { (v: Int, v2: String) -> (String) in
        return "123"
    }
    var closure9 = { () in
        print("123")
    }
    var closure10 = {
        print("123")
    }
    var closure11 = { () -> String? in
        return "123"
    }
    var closure12 = { (v: Int?) in
        print("123")
    }
""")
  assert sigs == {
    "closure4": "@escaping (Int) -> String",
    "closure5": "@escaping () -> String",
    "closure6": "@escaping (Int) -> ()",
    "closure7": "@escaping (Int) -> (String)",
    "closure8": "@escaping (Int, String) -> (String)",
    "closure9": "@escaping () -> ()",
    "closure10": "@escaping () -> ()",
    "closure11": "@escaping () -> String?",
    "closure12": "@escaping (Int?) -> ()",
  }


def test_closure_shorthand_and_untyped_parameters():
  assert infer_expression_signature(parse_expression("{ a, b in a }")) == "@escaping () -> ()"
  assert infer_expression_signature(parse_expression("{ (a, b) in a }")) == "@escaping (Any, Any) -> ()"


def test_tuples():
  sigs = signatures("""
    var tuple: (Int, String) = (123, "123")
    var tuple2: (Int, String)?
    var tuple3: (count: Int, name: String)?
    var tuple4 = (123, "123")
    var tuple5 = (name1: 123, name2: "123")
""")
  assert sigs == {
    "tuple": "(Int, String)",
    "tuple2": "(Int, String)?",
    "tuple3": "(count: Int, name: String)?",
    "tuple4": "(Int, String)",
    "tuple5": "(name1: Int, name2: String)",
  }


def test_dictionaries():
  sigs = signatures("""
    var dic = Dictionary<String, Int>()
    var dic2 = [String: Int]()
    var dic3: [String: Int] = [:]
    var dic4 = ["key1": 1, "key2": 2]
    var dic5 = ["key1": 1, 123: "2"]
""")
  assert sigs == {
    "dic": "Dictionary<String, Int>",
    "dic2": "[String: Int]",
    "dic3": "[String: Int]",
    "dic4": "[String: Int]",
    "dic5": "[AnyHashable: Any]",
  }


def test_dictionary_key_and_value_fall_back_independently():
  sigs = signatures("""
    var mixedValues = ["a": 1, "b": "x"]
    var mixedKeys = ["a": 1, 2: 3]
    var empty = [:]
""")
  assert sigs == {
    "mixedValues": "[String: Any]",
    "mixedKeys": "[AnyHashable: Int]",
    "empty": "[AnyHashable: Any]",
  }


def test_arrays():
  sigs = signatures("""
    var array = Array<Int>()// comment
    var array1 = [Int]()
    var array2: [String] = []
    var array3 = [1, 2, 3]
    var mixedArray2 = [Any]()
    var mixed = [1, "a"]
""")
  assert sigs == {
    "array": "Array<Int>",
    "array1": "[Int]",
    "array2": "[String]",
    "array3": "[Int]",
    "mixedArray2": "[Any]",
    "mixed": "[Any]",
  }


def test_metatypes_and_named_types():
  sigs = signatures("""
    var typeAny: Any?
    var viewType: StructSample.Type?
    var actionClass: ActionClass?
    var actionClass2 = StructSample()
""")
  assert sigs == {
    "typeAny": "Any?",
    "viewType": "StructSample.Type?",
    "actionClass": "ActionClass?",
    "actionClass2": "StructSample",
  }


def test_sentinels():
  assert infer_expression_signature(parse_expression("nil")) == "Nil"
  assert infer_expression_signature(parse_expression("\\Sample.name")) == "KeyPath"
  assert is_sentinel("Nil") and is_sentinel("KeyPath")
  assert not is_sentinel("Int")


def test_fallback_is_trimmed_source():
  assert infer_expression_signature(parse_expression("Color.red")) == "Color.red"
  assert infer_type_signature(parse_type("some View")) == "some View"


def test_generic_annotation_keeps_clause():
  assert infer_type_signature(parse_type("Set<String>?")) == "Set<String>?"


def test_member_without_type_information_is_dropped():
  member = Member(name="bare")
  assert classify(member) is None
  assert describe([member]) == []


def test_annotation_wins_over_initializer():
  assert signatures("    var value: Double = 1") == {"value": "Double"}
