"""
JEZ Interpreter
Tree-walking evaluator over a resolved program. The current frame is passed
explicitly; the execution context carries the global frame, the resolution
table and the output stream.
"""

from typing import Any, Dict, List, Optional, TextIO
import sys

from syntax_tree import (
    TokenType, Token, Expr, Stmt, INITIALIZER_NAME,
    Literal, Grouping, Unary, Binary, Logical, Variable, Assign, Call, Get, Set,
    This, Super, Expression, Print, Var, Block, If, While, Function, Return, Class,
)
from environment import (
    make_runtime_env, env_define, env_get, env_assign, env_get_at, env_assign_at,
)
from runtime import (
    ReturnSignal, make_function, make_class, bind_method, find_method,
    call_value, instance_get, instance_set,
)
from utilities import (
    is_truthy, is_equal, get_dict_type, check_number_operand, check_number_operands,
    add_values, NUMERIC_OPERATORS,
)
from stdlib import BUILTIN_FUNCTIONS, stringify
from error_handling import JEZRuntimeError


# ============================================================================
# DATA STRUCTURES
# ============================================================================

def create_builtin_runtime_env() -> Dict:
  """Create the global frame with every native built-in defined"""
  env = make_runtime_env()
  for name, builtin in BUILTIN_FUNCTIONS.items():
    env_define(env, name, builtin)
  return env


def make_execution_context(debug: bool = False, output: Optional[TextIO] = None,
                           globals_env: Optional[Dict] = None) -> Dict:
  """
  Create an execution context

  A context outlives a single interpret() call so the REPL can keep its
  globals and resolution table between lines. output=None prints to
  whatever sys.stdout is at the time.
  """
  return {
      'globals': globals_env if globals_env is not None else create_builtin_runtime_env(),
      'locals': {},
      'debug': debug,
      'output': output
  }


# ============================================================================
# VARIABLE ACCESS
# ============================================================================

def look_up_variable(name: Token, expr: Expr, env: Dict, context: Dict) -> Any:
  """Resolved references use their distance; the rest are globals"""
  distance = context['locals'].get(expr.node_id)
  if distance is not None:
    return env_get_at(env, distance, name.lexeme)
  return env_get(context['globals'], name)


# ============================================================================
# STATEMENT EXECUTION
# ============================================================================

def execute(stmt: Stmt, env: Dict, context: Dict) -> None:
  """Execute a statement by dispatching on its node kind"""
  if isinstance(stmt, Expression):
    evaluate(stmt.expression, env, context)
  elif isinstance(stmt, Print):
    value = evaluate(stmt.expression, env, context)
    print(stringify(value), file=context['output'] or sys.stdout)
  elif isinstance(stmt, Var):
    value = None
    if stmt.initializer is not None:
      value = evaluate(stmt.initializer, env, context)
    env_define(env, stmt.name.lexeme, value)
  elif isinstance(stmt, Block):
    execute_block(stmt.statements, make_runtime_env(env), context)
  elif isinstance(stmt, If):
    if is_truthy(evaluate(stmt.condition, env, context)):
      execute(stmt.then_branch, env, context)
    elif stmt.else_branch is not None:
      execute(stmt.else_branch, env, context)
  elif isinstance(stmt, While):
    while is_truthy(evaluate(stmt.condition, env, context)):
      execute(stmt.body, env, context)
  elif isinstance(stmt, Function):
    env_define(env, stmt.name.lexeme, make_function(stmt, env))
  elif isinstance(stmt, Return):
    value = None
    if stmt.value is not None:
      value = evaluate(stmt.value, env, context)
    raise ReturnSignal(value)
  elif isinstance(stmt, Class):
    execute_class(stmt, env, context)
  else:
    raise TypeError(f"Unknown statement kind: {type(stmt).__name__}")


def execute_block(statements: List[Stmt], env: Dict, context: Dict) -> None:
  """Run statements in env, which the caller has already created"""
  for statement in statements:
    execute(statement, env, context)


def execute_class(stmt: Class, env: Dict, context: Dict) -> None:
  """
  Declare a template

  The name is defined first (as none) so method bodies can refer to the
  template. With a superclass, method closures get an extra frame binding
  'super'.
  """
  env_define(env, stmt.name.lexeme, None)

  superclass = None
  if stmt.superclass is not None:
    superclass = evaluate(stmt.superclass, env, context)
    if get_dict_type(superclass) != 'class':
      raise JEZRuntimeError(stmt.superclass.name, "Super must be a template.")

  method_env = env
  if superclass is not None:
    method_env = make_runtime_env(env)
    env_define(method_env, "super", superclass)

  methods = {}
  for method in stmt.methods:
    is_initializer = method.name.lexeme == INITIALIZER_NAME
    methods[method.name.lexeme] = make_function(method, method_env, is_initializer)

  klass = make_class(stmt.name.lexeme, superclass, methods)
  env_assign(env, stmt.name, klass)


# ============================================================================
# EXPRESSION EVALUATION
# ============================================================================

def evaluate(expr: Expr, env: Dict, context: Dict) -> Any:
  """Evaluate an expression by dispatching on its node kind"""
  if isinstance(expr, Literal):
    return expr.value
  elif isinstance(expr, Grouping):
    return evaluate(expr.expression, env, context)
  elif isinstance(expr, Unary):
    return evaluate_unary(expr, env, context)
  elif isinstance(expr, Binary):
    return evaluate_binary(expr, env, context)
  elif isinstance(expr, Logical):
    left = evaluate(expr.left, env, context)
    # The deciding operand is the result, not a boolean
    if expr.operator.type == TokenType.OR:
      if is_truthy(left):
        return left
    elif not is_truthy(left):
      return left
    return evaluate(expr.right, env, context)
  elif isinstance(expr, Variable):
    return look_up_variable(expr.name, expr, env, context)
  elif isinstance(expr, Assign):
    value = evaluate(expr.value, env, context)
    distance = context['locals'].get(expr.node_id)
    if distance is not None:
      env_assign_at(env, distance, expr.name, value)
    else:
      env_assign(context['globals'], expr.name, value)
    return value
  elif isinstance(expr, Call):
    callee = evaluate(expr.callee, env, context)
    arguments = [evaluate(argument, env, context) for argument in expr.arguments]
    return call_value(callee, arguments, expr.paren, context)
  elif isinstance(expr, Get):
    obj = evaluate(expr.object, env, context)
    if get_dict_type(obj) == 'instance':
      return instance_get(obj, expr.name)
    raise JEZRuntimeError(expr.name, "Only objects have properties.")
  elif isinstance(expr, Set):
    obj = evaluate(expr.object, env, context)
    if get_dict_type(obj) != 'instance':
      raise JEZRuntimeError(expr.name, "Only objects have fields.")
    value = evaluate(expr.value, env, context)
    instance_set(obj, expr.name, value)
    return value
  elif isinstance(expr, This):
    return look_up_variable(expr.keyword, expr, env, context)
  elif isinstance(expr, Super):
    return evaluate_super(expr, env, context)
  else:
    raise TypeError(f"Unknown expression kind: {type(expr).__name__}")


def evaluate_unary(expr: Unary, env: Dict, context: Dict) -> Any:
  right = evaluate(expr.right, env, context)

  if expr.operator.type == TokenType.MINUS:
    check_number_operand(expr.operator, right)
    return -right
  elif expr.operator.type == TokenType.BANG:
    return not is_truthy(right)
  raise TypeError(f"Unknown unary operator: {expr.operator.lexeme}")


def evaluate_binary(expr: Binary, env: Dict, context: Dict) -> Any:
  left = evaluate(expr.left, env, context)
  right = evaluate(expr.right, env, context)
  operator_type = expr.operator.type

  if operator_type == TokenType.PLUS:
    return add_values(expr.operator, left, right)
  elif operator_type == TokenType.EQUAL_EQUAL:
    return is_equal(left, right)
  elif operator_type == TokenType.BANG_EQUAL:
    return not is_equal(left, right)

  check_number_operands(expr.operator, left, right)
  return NUMERIC_OPERATORS[operator_type](left, right)


def evaluate_super(expr: Super, env: Dict, context: Dict) -> Dict:
  """
  super.method looks up from the superclass of the lexically enclosing
  template and binds the result to the current 'this', which always sits
  one frame inside the 'super' frame
  """
  distance = context['locals'][expr.node_id]
  superclass = env_get_at(env, distance, "super")
  instance = env_get_at(env, distance - 1, "this")

  method = find_method(superclass, expr.method.lexeme)
  if method is None:
    raise JEZRuntimeError(expr.method, f"Did not create property '{expr.method.lexeme}'.")
  return bind_method(method, instance)


# ============================================================================
# MAIN INTERPRETER FUNCTION
# ============================================================================

def interpret(program: List[Stmt], locals: Dict[int, int], context: Optional[Dict] = None,
              debug: bool = False, output: Optional[TextIO] = None) -> Optional[JEZRuntimeError]:
  """
  Run a resolved program.

  locals is the table returned by semantics.resolve for this program. The
  first runtime error stops the run and is returned; output printed before
  it stays printed. Returns None on success.
  """
  if context is None:
    context = make_execution_context(debug, output)
  context['locals'].update(locals)

  try:
    for statement in program:
      if context['debug']:
        print(f"[exec] {type(statement).__name__}", file=sys.stderr)
      execute(statement, context['globals'], context)
  except JEZRuntimeError as error:
    return error
  return None
