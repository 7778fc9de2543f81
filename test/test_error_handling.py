"""
Tests for error classes and error formatting
"""

import pytest
from error_handling import (
  TallyParseError, TallyRuntimeError, UndefinedVariable, UndefinedFunction, ArityMismatch,
  RecursionDepthExceeded, make_runtime_error, format_runtime_error,
  generate_suggestions, format_parse_error,
)


class TestRuntimeErrors:
  """Test runtime error kinds and their dictionaries"""

  def test_kinds(self):
    assert UndefinedVariable("x").kind == "UndefinedVariable"
    assert UndefinedFunction("f").kind == "UndefinedFunction"
    assert ArityMismatch("f", 2, 1).kind == "ArityMismatch"
    assert RecursionDepthExceeded(1000).kind == "RecursionDepthExceeded"

  def test_all_are_runtime_errors(self):
    for error in (UndefinedVariable("x"), UndefinedFunction("f"),
                  ArityMismatch("f", 1, 0), RecursionDepthExceeded()):
      assert isinstance(error, TallyRuntimeError)

  def test_messages(self):
    assert str(UndefinedVariable("x")) == "Undefined variable: x"
    assert ArityMismatch("f", 2, 1).message == "Function 'f' expects 2 argument(s), got 1"
    assert "limit 50" in RecursionDepthExceeded(50).message

  def test_to_dict(self):
    assert ArityMismatch("f", 2, 1).to_dict() == {
        'kind': 'ArityMismatch',
        'message': "Function 'f' expects 2 argument(s), got 1",
        'details': {'name': 'f', 'expected': 2, 'got': 1},
    }

  def test_format_runtime_error(self):
    error = make_runtime_error("UndefinedFunction", "Undefined function: g", name="g")
    assert format_runtime_error(error) == "UndefinedFunction: Undefined function: g"


class TestParseErrors:
  """Test parse error display"""

  def test_str_without_remainder(self):
    assert str(TallyParseError("no prefix of the input matched")) == \
        "Parse error: no prefix of the input matched"

  def test_str_with_remainder(self):
    assert str(TallyParseError("input was not fully consumed", "+")) == \
        "Parse error: input was not fully consumed (unprocessed: '+')"

  @pytest.mark.parametrize("remainder, fragment", [
      ("+", "operator must be followed"),
      ("(1", "parentheses"),
      ("= 3", "left side of '='"),
      ("1abc", "start with a letter"),
  ])
  def test_suggestions(self, remainder, fragment):
    assert any(fragment in s for s in generate_suggestions(remainder))

  def test_no_suggestions_for_blank(self):
    assert generate_suggestions("  ") == []

  def test_format_parse_error(self):
    text = format_parse_error(TallyParseError("input was not fully consumed", " *"))
    assert text.startswith("Parse error: input was not fully consumed")
    assert "Suggestions:" in text
