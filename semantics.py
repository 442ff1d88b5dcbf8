"""
JEZ Semantic Analysis - Lexical Scope Resolution
One static pass over the program, before anything runs, that records how
many frames out each local variable reference lives and collects every
scoping error
"""

from enum import Enum, auto
from typing import Dict, List, Tuple
import sys

from syntax_tree import (
    Token, Expr, Stmt, INITIALIZER_NAME,
    Literal, Grouping, Unary, Binary, Logical, Variable, Assign, Call, Get, Set,
    This, Super, Expression, Print, Var, Block, If, While, Function, Return, Class,
)


class FunctionType(Enum):
  NONE = auto()
  FUNCTION = auto()
  INITIALIZER = auto()
  METHOD = auto()


class ClassType(Enum):
  NONE = auto()
  CLASS = auto()
  SUBCLASS = auto()


class VariableStatus(Enum):
  DECLARED = auto()
  DEFINED = auto()


# ============================================================================
# EXCEPTION CLASS
# ============================================================================

class JEZStaticError(Exception):
  """Scoping error found before execution"""

  def __init__(self, token: Token, message: str):
    self.token = token
    self.message = message
    super().__init__(self._format_error())

  @property
  def line(self) -> int:
    return self.token.line

  def _format_error(self) -> str:
    return f"[line {self.token.line}] Error at '{self.token.lexeme}': {self.message}"


# ============================================================================
# DATA STRUCTURES
# ============================================================================

def make_resolver_state(debug: bool = False) -> Dict:
  """Create the mutable state threaded through one resolution pass"""
  return {
      'scopes': [],
      'locals': {},
      'errors': [],
      'current_function': FunctionType.NONE,
      'current_class': ClassType.NONE,
      'debug': debug
  }


# ============================================================================
# SCOPE OPERATIONS
# ============================================================================

def begin_scope(state: Dict) -> None:
  state['scopes'].append({})


def end_scope(state: Dict) -> None:
  state['scopes'].pop()


def static_error(state: Dict, token: Token, message: str) -> None:
  """Record an error and keep going; resolution never stops early"""
  state['errors'].append(JEZStaticError(token, message))


def declare(state: Dict, name: Token) -> None:
  # Globals are late bound and may be redeclared
  if not state['scopes']:
    return
  scope = state['scopes'][-1]
  if name.lexeme in scope:
    static_error(state, name, "There is already a variable with this name in this scope.")
  scope[name.lexeme] = VariableStatus.DECLARED


def define(state: Dict, name: Token) -> None:
  if not state['scopes']:
    return
  state['scopes'][-1][name.lexeme] = VariableStatus.DEFINED


def resolve_local(state: Dict, expr: Expr, name: Token) -> None:
  """Record the hop count to the innermost scope holding name, if any"""
  scopes = state['scopes']
  for distance, scope in enumerate(reversed(scopes)):
    if name.lexeme in scope:
      state['locals'][expr.node_id] = distance
      if state['debug']:
        print(f"[resolve] '{name.lexeme}' (line {name.line}) -> distance {distance}", file=sys.stderr)
      return
  if state['debug']:
    print(f"[resolve] '{name.lexeme}' (line {name.line}) -> global", file=sys.stderr)


# ============================================================================
# STATEMENT RESOLUTION
# ============================================================================

def resolve_statements(statements: List[Stmt], state: Dict) -> None:
  for statement in statements:
    resolve_stmt(statement, state)


def resolve_stmt(stmt: Stmt, state: Dict) -> None:
  """Resolve a statement by dispatching on its node kind"""
  if isinstance(stmt, Block):
    begin_scope(state)
    resolve_statements(stmt.statements, state)
    end_scope(state)
  elif isinstance(stmt, Var):
    declare(state, stmt.name)
    if stmt.initializer is not None:
      resolve_expr(stmt.initializer, state)
    define(state, stmt.name)
  elif isinstance(stmt, Function):
    declare(state, stmt.name)
    define(state, stmt.name)
    resolve_function(stmt, FunctionType.FUNCTION, state)
  elif isinstance(stmt, Class):
    resolve_class(stmt, state)
  elif isinstance(stmt, Expression):
    resolve_expr(stmt.expression, state)
  elif isinstance(stmt, Print):
    resolve_expr(stmt.expression, state)
  elif isinstance(stmt, If):
    resolve_expr(stmt.condition, state)
    resolve_stmt(stmt.then_branch, state)
    if stmt.else_branch is not None:
      resolve_stmt(stmt.else_branch, state)
  elif isinstance(stmt, While):
    resolve_expr(stmt.condition, state)
    resolve_stmt(stmt.body, state)
  elif isinstance(stmt, Return):
    resolve_return(stmt, state)
  else:
    raise TypeError(f"Unknown statement kind: {type(stmt).__name__}")


def resolve_function(function: Function, function_type: FunctionType, state: Dict) -> None:
  """Parameters and the body's top-level declarations share one scope"""
  enclosing_function = state['current_function']
  state['current_function'] = function_type

  begin_scope(state)
  for param in function.params:
    declare(state, param)
    define(state, param)
  resolve_statements(function.body, state)
  end_scope(state)

  state['current_function'] = enclosing_function


def resolve_return(stmt: Return, state: Dict) -> None:
  if state['current_function'] == FunctionType.NONE:
    static_error(state, stmt.keyword, "Can not return from this code.")

  if stmt.value is not None:
    if state['current_function'] == FunctionType.INITIALIZER:
      static_error(state, stmt.keyword, "Can't return a value from an initializer.")
    resolve_expr(stmt.value, state)


def resolve_class(stmt: Class, state: Dict) -> None:
  """
  Resolve a template declaration

  Scopes, outermost first: an optional one binding 'super' (only when there
  is a superclass), then one binding 'this', then each method's own scope.
  """
  enclosing_class = state['current_class']
  state['current_class'] = ClassType.CLASS

  declare(state, stmt.name)
  define(state, stmt.name)

  if stmt.superclass is not None:
    if stmt.superclass.name.lexeme == stmt.name.lexeme:
      static_error(state, stmt.superclass.name, "A template can't inherit from itself.")
    state['current_class'] = ClassType.SUBCLASS
    resolve_expr(stmt.superclass, state)

    begin_scope(state)
    state['scopes'][-1]["super"] = VariableStatus.DEFINED

  begin_scope(state)
  state['scopes'][-1]["this"] = VariableStatus.DEFINED

  for method in stmt.methods:
    if method.name.lexeme == INITIALIZER_NAME:
      function_type = FunctionType.INITIALIZER
    else:
      function_type = FunctionType.METHOD
    resolve_function(method, function_type, state)

  end_scope(state)

  if stmt.superclass is not None:
    end_scope(state)

  state['current_class'] = enclosing_class


# ============================================================================
# EXPRESSION RESOLUTION
# ============================================================================

def resolve_expr(expr: Expr, state: Dict) -> None:
  """Resolve an expression by dispatching on its node kind"""
  if isinstance(expr, Variable):
    scopes = state['scopes']
    if scopes and scopes[-1].get(expr.name.lexeme) == VariableStatus.DECLARED:
      static_error(state, expr.name, "Can not read most recent variable (local) in its own initializer.")
    resolve_local(state, expr, expr.name)
  elif isinstance(expr, Assign):
    resolve_expr(expr.value, state)
    resolve_local(state, expr, expr.name)
  elif isinstance(expr, (Binary, Logical)):
    resolve_expr(expr.left, state)
    resolve_expr(expr.right, state)
  elif isinstance(expr, Unary):
    resolve_expr(expr.right, state)
  elif isinstance(expr, Grouping):
    resolve_expr(expr.expression, state)
  elif isinstance(expr, Call):
    resolve_expr(expr.callee, state)
    for argument in expr.arguments:
      resolve_expr(argument, state)
  elif isinstance(expr, Get):
    resolve_expr(expr.object, state)
  elif isinstance(expr, Set):
    resolve_expr(expr.value, state)
    resolve_expr(expr.object, state)
  elif isinstance(expr, This):
    if state['current_class'] == ClassType.NONE:
      static_error(state, expr.keyword, "Can't use 'this' outside of a template.")
      return
    resolve_local(state, expr, expr.keyword)
  elif isinstance(expr, Super):
    if state['current_class'] == ClassType.NONE:
      static_error(state, expr.keyword, "Can't use 'super' outside of a template.")
    elif state['current_class'] != ClassType.SUBCLASS:
      static_error(state, expr.keyword, "Can't use 'super' in a template with no super.")
    resolve_local(state, expr, expr.keyword)
  elif isinstance(expr, Literal):
    pass
  else:
    raise TypeError(f"Unknown expression kind: {type(expr).__name__}")


# ============================================================================
# MAIN ANALYSIS FUNCTION
# ============================================================================

def resolve(program: List[Stmt], debug: bool = False) -> Tuple[Dict[int, int], List[JEZStaticError]]:
  """
  Resolve a whole program.

  Returns the resolution table (expression node_id -> lexical distance) and
  every static error found. Expressions missing from the table are globals.
  The program must not be interpreted if the error list is non-empty.
  """
  state = make_resolver_state(debug)
  resolve_statements(program, state)

  if debug:
    print(f"[resolve] {len(state['locals'])} local references, "
          f"{len(state['errors'])} static error(s)", file=sys.stderr)

  return state['locals'], state['errors']
