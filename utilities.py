"""
Utilities module for the Tally interpreter
Formatting helpers shared by the command line and interactive modes
"""

from typing import Dict, List, Optional
import math

from interpreter import Assignment, Value, LineError, LineResult


# Floats at or beyond this magnitude are shown in exponent form
EXPONENT_THRESHOLD = 1e21


# ==================== NUMBER FORMATTING ====================

def format_number(value: float) -> str:
  """
  Format a float the way results are shown to users

  Args:
    value: Result of an evaluation

  Returns:
    Integral values without a fractional part, infinities as +Inf/-Inf,
    NaN as NaN, everything else in shortest round-trip form

  Examples:
    format_number(14.0) -> "14"
    format_number(2.5) -> "2.5"
    format_number(1 / 0.0) -> "+Inf"
  """
  if math.isnan(value):
    return "NaN"
  if math.isinf(value):
    return "+Inf" if value > 0 else "-Inf"
  if value.is_integer() and abs(value) < EXPONENT_THRESHOLD:
    return str(int(value))
  return repr(value)


# ==================== RESULT FORMATTING ====================

def format_line_result(result: LineResult) -> str:
  """
  Format one line result for display

  Examples:
    format_line_result(Assignment("x", 2.0)) -> "x = 2"
    format_line_result(Value(6.0)) -> "6"
  """
  if isinstance(result, Assignment):
    return f"{result.name} = {format_number(result.value)}"
  elif isinstance(result, Value):
    return format_number(result.value)
  elif isinstance(result, LineError):
    return f"Error: {result.message}"
  raise TypeError(f"Not a line result: {result!r}")


def format_line_results(results: List[LineResult]) -> str:
  return "\n".join(format_line_result(result) for result in results)


def format_bindings(variables: Dict[str, float], functions: Dict[str, Dict],
                    limit: Optional[int] = None) -> List[str]:
  """
  Describe user-visible bindings, variables first

  Args:
    variables: Variable names and values
    functions: Declared functions by name
    limit: Maximum number of lines to return (None for all)
  """
  lines = []
  for name, value in variables.items():
    lines.append(f"{name} = {format_number(value)}")
  for name, function in functions.items():
    lines.append(f"{name}({', '.join(function['params'])}) = <function>")

  if limit is not None and len(lines) > limit:
    hidden = len(lines) - limit
    lines = lines[:limit] + [f"... and {hidden} more bindings"]
  return lines
