"""
Tests for formatting helpers
"""

import math
import pytest
from utilities import format_number, format_line_result, format_line_results, format_bindings
from interpreter import Assignment, Value, LineError, make_environment, make_function
from error_handling import UndefinedVariable


class TestFormatNumber:
  """Test number display"""

  @pytest.mark.parametrize("value, expected", [
      (14.0, "14"),
      (-3.0, "-3"),
      (2.5, "2.5"),
      (0.1, "0.1"),
      (math.inf, "+Inf"),
      (-math.inf, "-Inf"),
      (math.nan, "NaN"),
      (1e21, "1e+21"),
  ])
  def test_format(self, value, expected):
    assert format_number(value) == expected


class TestFormatResults:
  """Test line result display"""

  def test_assignment(self):
    assert format_line_result(Assignment("x", 2.0)) == "x = 2"

  def test_value(self):
    assert format_line_result(Value(6.0)) == "6"

  def test_error(self):
    assert format_line_result(LineError(UndefinedVariable("y"))) == "Error: Undefined variable: y"

  def test_not_a_result(self):
    with pytest.raises(TypeError):
      format_line_result(42)

  def test_several_results(self):
    assert format_line_results([Assignment("x", 1.0), Value(1.5)]) == "x = 1\n1.5"


class TestFormatBindings:
  """Test environment display"""

  @pytest.fixture
  def environment(self):
    env = make_environment({'x': 1.0, 'y': 2.5})
    env['functions']['f'] = make_function('f', ['a', 'b'], None)
    return env

  def test_all_bindings(self, environment):
    assert format_bindings(**environment) == ["x = 1", "y = 2.5", "f(a, b) = <function>"]

  def test_limit(self, environment):
    assert format_bindings(**environment, limit=1) == ["x = 1", "... and 2 more bindings"]

  def test_empty(self):
    assert format_bindings({}, {}) == []
