"""
Utilities module for the JEZ interpreter
Value predicates, operand checks and runtime error builders shared by the
evaluator and the runtime object model
"""

from typing import Any
import math
import operator

from syntax_tree import Token, TokenType
from error_handling import JEZRuntimeError


# ==================== TYPE CHECKING UTILITIES ====================

def is_number(value: Any) -> bool:
  """
  Check if value is a JEZ number

  Numbers are always floats at runtime; booleans never count as numbers.
  """
  return isinstance(value, float)


def is_string(value: Any) -> bool:
  return isinstance(value, str)


def get_dict_type(value: Any):
  """Type tag of a callable or instance, None for primitives"""
  return value.get('type') if isinstance(value, dict) else None


# ==================== TRUTHINESS AND EQUALITY ====================

def is_truthy(value: Any) -> bool:
  """
  Map a runtime value to a boolean for branching

  none and false are falsy; everything else, including 0 and "", is truthy.
  """
  if value is None:
    return False
  if isinstance(value, bool):
    return value
  return True


def is_equal(left: Any, right: Any) -> bool:
  """
  JEZ equality

  Primitives compare by type and value, so true is not equal to 1.
  Functions, classes and instances compare by identity; their
  dictionaries may be cyclic and are never compared structurally.
  """
  if left is None and right is None:
    return True
  if left is None or right is None:
    return False
  if isinstance(left, dict) or isinstance(right, dict):
    return left is right
  if type(left) is not type(right):
    return False
  return left == right


# ==================== OPERAND VALIDATION ====================

def check_number_operand(operator_token: Token, operand: Any) -> None:
  if not is_number(operand):
    raise JEZRuntimeError(operator_token, "Everything in equation must be a number.")


def check_number_operands(operator_token: Token, left: Any, right: Any) -> None:
  if not (is_number(left) and is_number(right)):
    raise JEZRuntimeError(operator_token, "Everything in equation must be a number.")


def add_values(operator_token: Token, left: Any, right: Any) -> Any:
  """'+' over two numbers or two strings"""
  if is_number(left) and is_number(right):
    return left + right
  if is_string(left) and is_string(right):
    return left + right
  raise JEZRuntimeError(operator_token, "Addition must be between two numbers or two strings.")


def divide(left: float, right: float) -> float:
  """
  IEEE division: x/0 is a signed infinity and 0/0 is NaN
  """
  if right == 0.0:
    if left == 0.0 or math.isnan(left):
      return math.nan
    # The sign of a zero divisor matters: 1/-0 is -Infinity
    return math.copysign(math.inf, left) * math.copysign(1.0, right)
  return left / right


# Numeric binary operators, all operands already checked
NUMERIC_OPERATORS = {
  TokenType.MINUS: operator.sub,
  TokenType.STAR: operator.mul,
  TokenType.SLASH: divide,
  TokenType.GREATER: operator.gt,
  TokenType.GREATER_EQUAL: operator.ge,
  TokenType.LESS: operator.lt,
  TokenType.LESS_EQUAL: operator.le,
}


# ==================== ERROR BUILDERS ====================

def arity_error(token: Token, expected: int, got: int) -> JEZRuntimeError:
  """Create an argument count mismatch error"""
  return JEZRuntimeError(token, f"There needs to be {expected} arguments but you gave {got}.")


def not_callable_error(token: Token) -> JEZRuntimeError:
  return JEZRuntimeError(token, "Can only call functions and templates.")


def undefined_property_error(name: Token) -> JEZRuntimeError:
  return JEZRuntimeError(name, f"You did not define '{name.lexeme}'.")
