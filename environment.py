"""
JEZ runtime environments
A frame is a dictionary holding its bindings and a link to the enclosing
frame. Frames are shared by every closure that captured them, so all
updates happen in place.
"""

from typing import Any, Dict, Optional

from syntax_tree import Token
from error_handling import JEZRuntimeError


# ============================================================================
# DATA STRUCTURES
# ============================================================================

def make_runtime_env(parent: Optional[Dict] = None, bindings: Optional[Dict] = None) -> Dict:
  """Create a runtime frame enclosed by parent (None for the global frame)"""
  return {
      'parent': parent,
      'bindings': bindings if bindings is not None else {}
  }


def undefined_variable_error(name: Token) -> JEZRuntimeError:
  return JEZRuntimeError(name, f"Variable '{name.lexeme}' has not been created.")


# ============================================================================
# ENVIRONMENT OPERATIONS
# ============================================================================

def env_define(env: Dict, name: str, value: Any) -> None:
  """Bind name in this frame only, overwriting any previous binding"""
  env['bindings'][name] = value


def env_get(env: Dict, name: Token) -> Any:
  """Look up a name through the enclosing chain"""
  frame = env
  while frame is not None:
    if name.lexeme in frame['bindings']:
      return frame['bindings'][name.lexeme]
    frame = frame['parent']
  raise undefined_variable_error(name)


def env_assign(env: Dict, name: Token, value: Any) -> None:
  """Rebind an existing name; assignment never creates a binding"""
  frame = env
  while frame is not None:
    if name.lexeme in frame['bindings']:
      frame['bindings'][name.lexeme] = value
      return
    frame = frame['parent']
  raise undefined_variable_error(name)


def env_ancestor(env: Dict, distance: int) -> Dict:
  """Follow exactly distance enclosing links"""
  frame = env
  for _ in range(distance):
    frame = frame['parent']
  return frame


def env_get_at(env: Dict, distance: int, name: str) -> Any:
  """Read a binding at a resolved distance without searching"""
  return env_ancestor(env, distance)['bindings'][name]


def env_assign_at(env: Dict, distance: int, name: Token, value: Any) -> None:
  """Write a binding at a resolved distance without searching"""
  env_ancestor(env, distance)['bindings'][name.lexeme] = value


def env_depth(env: Dict) -> int:
  """Number of enclosing links between env and the global frame"""
  depth = 0
  while env['parent'] is not None:
    env = env['parent']
    depth += 1
  return depth
