"""
JEZ Standard Library
Native built-in functions and the printable text form of runtime values
"""

from typing import Any, Callable, Dict, List
import math
import time


# ============================================================================
# TEXT FORM
# ============================================================================

def format_number(value: float) -> str:
  """Decimal form of a number with a trailing '.0' dropped"""
  if math.isnan(value):
    return "NaN"
  if math.isinf(value):
    return "Infinity" if value > 0 else "-Infinity"
  text = repr(value)
  if text.endswith(".0"):
    text = text[:-2]
  return text


def stringify(value: Any) -> str:
  """Text form used by print"""
  if value is None:
    return "nil"
  if isinstance(value, bool):
    return "true" if value else "false"
  if isinstance(value, float):
    return format_number(value)
  if isinstance(value, str):
    return value

  value_type = value['type']
  if value_type == 'builtin_function':
    return "<native fn>"
  elif value_type == 'function':
    return f"<fn {value['name']}>"
  elif value_type == 'class':
    return value['name']
  elif value_type == 'instance':
    return f"{value['class']['name']} instance"
  return f"<{value_type}>"


# ============================================================================
# NATIVE FUNCTIONS
# ============================================================================

def jez_clock() -> float:
  """Seconds since the epoch as a float"""
  return time.time()


# ============================================================================
# BUILT-IN FUNCTION REGISTRY
# ============================================================================

def make_builtin_function(name: str, func: Callable, arity: int, type_signature: str = "") -> Dict:
  """Create a built-in function value"""
  return {
      'type': 'builtin_function',
      'name': name,
      'func': func,
      'arity': arity,
      'type_signature': type_signature
  }


# Built-in function registry, defined in the global frame of every run
BUILTIN_FUNCTIONS: Dict[str, Dict] = {
    "clock": make_builtin_function("clock", jez_clock, 0, "-> Number"),
}


def get_builtin_function(name: str) -> Dict:
  """Get a built-in function by name"""
  if name in BUILTIN_FUNCTIONS:
    return BUILTIN_FUNCTIONS[name]
  else:
    raise KeyError(f"Unknown built-in function: {name}")


def list_builtin_functions() -> List[str]:
  """List all available built-in functions"""
  return list(BUILTIN_FUNCTIONS.keys())
