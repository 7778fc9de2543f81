"""
Tally Interpreter
Tree-walking evaluation of parsed programs over an explicit environment
Side effects (printing, reading files) are handled at the boundaries in main.py
"""

from typing import Dict, List, Optional, Union
from dataclasses import dataclass
import math
import sys

from combinators import Node
from parsing import parse, parse_expression
from error_handling import (
  format_runtime_error,
  TallyRuntimeError,
  UndefinedVariable,
  UndefinedFunction,
  ArityMismatch,
  RecursionDepthExceeded,
)


# ============================================================================
# DATA STRUCTURES (Dictionaries)
# ============================================================================

def make_environment(variables: Optional[Dict[str, float]] = None,
                     functions: Optional[Dict[str, Dict]] = None) -> Dict:
  """Create an environment: variable values plus declared functions"""
  return {
      'variables': variables if variables is not None else {},
      'functions': functions if functions is not None else {}
  }


def make_function(name: str, params: List[str], body: Node) -> Dict:
  """Create a function definition; the body is evaluated only when called"""
  return {
      'name': name,
      'params': params,
      'body': body
  }


@dataclass(frozen=True)
class Assignment:
  """A variable declaration line: the name and the value it was given"""
  name: str
  value: float


@dataclass(frozen=True)
class Value:
  """An expression line and its value"""
  value: float


@dataclass(frozen=True)
class LineError:
  """A line whose evaluation failed; later lines still run"""
  error: TallyRuntimeError

  @property
  def kind(self) -> str:
    return self.error.kind

  @property
  def message(self) -> str:
    return self.error.message


LineResult = Union[Assignment, Value, LineError]


# ============================================================================
# ARITHMETIC
# ============================================================================

def divide(left: float, right: float) -> float:
  """IEEE-754 division: x/0 is an infinity, 0/0 is NaN"""
  if right != 0:
    return left / right
  if left == 0 or math.isnan(left):
    return math.nan
  return math.copysign(math.inf, left) * math.copysign(1.0, right)


ADD_OPERATORS = {
    'OpAdd': lambda a, b: a + b,
    'OpMinus': lambda a, b: a - b,
}

MULT_OPERATORS = {
    'OpMult': lambda a, b: a * b,
    'OpDiv': divide,
}


# ============================================================================
# EVALUATION FUNCTIONS
# ============================================================================

def eval_node(node: Node, env: Dict, debug: bool = False) -> float:
  """
  Evaluate an expression node to a float.
  The environment is read, never modified; calls build their own.
  """
  if debug:
    print(f"Evaluating: {node.type}")

  node_type = node.type

  if node_type == "Expression":
    return eval_node(node.children[0], env, debug)
  elif node_type == "Sum":
    return eval_fold(node, env, ADD_OPERATORS, debug)
  elif node_type == "Multiplication":
    return eval_fold(node, env, MULT_OPERATORS, debug)
  elif node_type == "Unit":
    # ( Expression )
    return eval_node(node.children[1], env, debug)
  elif node_type == "Number":
    return float(node.value)
  elif node_type == "Variable":
    return eval_variable(node, env, debug)
  elif node_type == "FunctionCall":
    return eval_function_call(node, env, debug)
  else:
    raise TallyRuntimeError(f"Cannot evaluate node of type {node_type}")


def eval_fold(node: Node, env: Dict, operators: Dict, debug: bool = False) -> float:
  """Left fold of an operand followed by one or more (operator, operand) terms"""
  first, terms = node.children
  result = eval_node(first, env, debug)
  for term in terms.children:
    operator_node, operand = term.children
    apply = operators.get(operator_node.type)
    if apply is None:
      raise TallyRuntimeError(f"Unexpected operator {operator_node.type} in {node.type}")
    result = apply(result, eval_node(operand, env, debug))
  return result


def eval_variable(node: Node, env: Dict, debug: bool = False) -> float:
  name = node.value
  if name not in env['variables']:
    raise UndefinedVariable(name)
  return env['variables'][name]


def eval_function_call(node: Node, env: Dict, debug: bool = False) -> float:
  """Evaluate arguments in the caller's environment, then call"""
  name = node.children[0].value
  arguments_node = node.children[2]

  # Resolve the name first so an undefined function is reported before argument errors
  if name not in env['functions']:
    raise UndefinedFunction(name)

  args = [eval_node(argument.children[0], env, debug) for argument in arguments_node.children]
  return call_function(name, args, env, debug)


def call_function(name: str, args: List[float], env: Dict, debug: bool = False) -> float:
  """
  Call a declared function.

  The callee sees a copy of the caller's variables overlaid with its
  parameters; the function table is shared. Extra arguments are ignored.
  """
  function = env['functions'].get(name)
  if function is None:
    raise UndefinedFunction(name)

  params = function['params']
  if len(args) < len(params):
    raise ArityMismatch(name, len(params), len(args))

  if debug:
    print(f"Calling {name}({', '.join(repr(a) for a in args)})")

  variables = dict(env['variables'])
  for param, arg in zip(params, args):
    variables[param] = arg

  call_env = make_environment(variables, env['functions'])
  return eval_node(function['body'], call_env, debug)


# ============================================================================
# PROGRAM EXECUTION
# ============================================================================

def exec_line(line: Node, env: Dict, debug: bool = False) -> Optional[LineResult]:
  """Run one top-level line, mutating env; returns its result, if it reports one"""
  statement = line.children[0]

  if statement.type == "VariableDeclaration":
    name = statement.children[0].value
    value = eval_node(statement.children[2], env, debug)
    env['variables'][name] = value
    return Assignment(name, value)
  elif statement.type == "FunctionDeclaration":
    name = statement.children[0].value
    params = [parameter.children[0].value for parameter in statement.children[2].children]
    env['functions'][name] = make_function(name, params, statement.children[5])
    if debug:
      print(f"Declared function: {name}({', '.join(params)})")
    return None
  elif statement.type == "Expression":
    return Value(eval_node(statement, env, debug))
  else:
    raise TallyRuntimeError(f"Unknown line type: {statement.type}")


def execute(ast: Node, env: Optional[Dict] = None, debug: bool = False) -> List[LineResult]:
  """
  Execute a parsed program line by line.
  Each line fails independently: an error is reported as a LineError and
  the remaining lines still run against the environment as it stands.
  """
  if env is None:
    env = make_environment()
  results = []

  for line in ast.children:
    try:
      result = exec_line(line, env, debug)
    except TallyRuntimeError as e:
      if debug:
        print(f"Line failed: {format_runtime_error(e.to_dict())}")
      result = LineError(e)
    except RecursionError:
      result = LineError(RecursionDepthExceeded(sys.getrecursionlimit()))

    if result is not None:
      results.append(result)

  return results


def execute_program(text: str, env: Optional[Dict] = None, debug: bool = False) -> List[LineResult]:
  """Parse and execute source text; the whole text must parse"""
  result = parse(text, parse_all=True)
  if not result.success:
    raise result.error
  return execute(result.ast, env, debug)


def parse_eval(text: str, env: Optional[Dict] = None, debug: bool = False) -> float:
  """Parse a single expression and evaluate it"""
  result = parse_expression(text, parse_all=True)
  if not result.success:
    raise result.error
  if env is None:
    env = make_environment()
  try:
    return eval_node(result.ast, env, debug)
  except RecursionError:
    raise RecursionDepthExceeded(sys.getrecursionlimit())


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

class TallyInterpreter:
  """Keeps one environment across runs, as the interactive mode needs"""

  def __init__(self, debug: bool = False):
    self.debug = debug
    self.environment = make_environment()

  def execute(self, ast: Node) -> List[LineResult]:
    return execute(ast, self.environment, self.debug)

  def run(self, text: str) -> List[LineResult]:
    return execute_program(text, self.environment, self.debug)

  def reset(self) -> None:
    self.environment = make_environment()

  @property
  def variables(self) -> Dict[str, float]:
    return self.environment['variables']

  @property
  def functions(self) -> Dict[str, Dict]:
    return self.environment['functions']


def create_interpreter(debug: bool = False) -> TallyInterpreter:
  """Factory function returning an interpreter"""
  return TallyInterpreter(debug=debug)


def create_debug_interpreter() -> TallyInterpreter:
  """Factory function returning a debug interpreter"""
  return create_interpreter(debug=True)
