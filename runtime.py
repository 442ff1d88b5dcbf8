"""
JEZ runtime object model
Functions, templates (classes) and instances are tagged dictionaries.
Anything callable exposes an arity and is invoked through call_value;
there is no shared base behaviour beyond that.
"""

from typing import Any, Dict, List, Optional
import sys

from syntax_tree import Token, Function, INITIALIZER_NAME
from environment import make_runtime_env, env_define, env_get_at
from utilities import get_dict_type, arity_error, not_callable_error, undefined_property_error


class ReturnSignal(Exception):
  """Unwinds a function body up to its call boundary"""
  def __init__(self, value: Any):
    self.value = value
    super().__init__()


# ============================================================================
# DATA STRUCTURES
# ============================================================================

def make_function(declaration: Function, closure: Dict, is_initializer: bool = False) -> Dict:
  """Create a user function value closed over its defining frame"""
  return {
      'type': 'function',
      'name': declaration.name.lexeme,
      'declaration': declaration,
      'closure': closure,
      'is_initializer': is_initializer
  }


def make_class(name: str, superclass: Optional[Dict], methods: Dict[str, Dict]) -> Dict:
  """Create a template value; superclass is shared, not copied"""
  return {
      'type': 'class',
      'name': name,
      'superclass': superclass,
      'methods': methods
  }


def make_instance(klass: Dict) -> Dict:
  """Create an instance with an empty field table"""
  return {
      'type': 'instance',
      'class': klass,
      'fields': {}
  }


# ============================================================================
# FUNCTIONS AND METHODS
# ============================================================================

def bind_method(method: Dict, instance: Dict) -> Dict:
  """
  Attach an instance as 'this'

  Returns a new function value whose closure is a one-slot frame layered on
  the method's closure. The method itself is never modified.
  """
  env = make_runtime_env(method['closure'])
  env_define(env, "this", instance)
  return make_function(method['declaration'], env, method['is_initializer'])


def call_function(function: Dict, arguments: List[Any], context: Dict) -> Any:
  """Run a user function body in a fresh frame holding its parameters"""
  from interpreter import execute_block

  declaration = function['declaration']
  env = make_runtime_env(function['closure'])
  for param, argument in zip(declaration.params, arguments):
    env_define(env, param.lexeme, argument)

  try:
    execute_block(declaration.body, env, context)
  except ReturnSignal as signal:
    if function['is_initializer']:
      return env_get_at(function['closure'], 0, "this")
    return signal.value

  if function['is_initializer']:
    return env_get_at(function['closure'], 0, "this")
  return None


def function_arity(function: Dict) -> int:
  return len(function['declaration'].params)


# ============================================================================
# TEMPLATES AND INSTANCES
# ============================================================================

def find_method(klass: Dict, name: str) -> Optional[Dict]:
  """Search the method table from klass up through its superclasses"""
  while klass is not None:
    if name in klass['methods']:
      return klass['methods'][name]
    klass = klass['superclass']
  return None


def class_arity(klass: Dict) -> int:
  initializer = find_method(klass, INITIALIZER_NAME)
  if initializer is None:
    return 0
  return function_arity(initializer)


def call_class(klass: Dict, arguments: List[Any], context: Dict) -> Dict:
  """Construct an instance; the result is always the instance itself"""
  instance = make_instance(klass)
  initializer = find_method(klass, INITIALIZER_NAME)
  if initializer is not None:
    call_function(bind_method(initializer, instance), arguments, context)
  return instance


def instance_get(instance: Dict, name: Token) -> Any:
  """Fields shadow methods; methods are bound afresh on every access"""
  fields = instance['fields']
  if name.lexeme in fields:
    return fields[name.lexeme]

  method = find_method(instance['class'], name.lexeme)
  if method is not None:
    return bind_method(method, instance)

  raise undefined_property_error(name)


def instance_set(instance: Dict, name: Token, value: Any) -> None:
  """Setting always writes a field, even over a method name"""
  instance['fields'][name.lexeme] = value


# ============================================================================
# CALLABLE CAPABILITY
# ============================================================================

CALLABLE_TYPES = ('builtin_function', 'function', 'class')


def is_callable(value: Any) -> bool:
  return get_dict_type(value) in CALLABLE_TYPES


def callable_arity(value: Dict) -> int:
  """Exact number of positional arguments a callable requires"""
  value_type = value['type']
  if value_type == 'builtin_function':
    return value['arity']
  elif value_type == 'function':
    return function_arity(value)
  elif value_type == 'class':
    return class_arity(value)
  raise ValueError(f"Not a callable: {value_type}")


def call_value(callee: Any, arguments: List[Any], paren: Token, context: Dict) -> Any:
  """Invoke any callable after checking it is one and that the arity matches"""
  if not is_callable(callee):
    raise not_callable_error(paren)

  arity = callable_arity(callee)
  if len(arguments) != arity:
    raise arity_error(paren, arity, len(arguments))

  if context.get('debug'):
    print(f"[call] {callee['type']} {callee['name']} with {len(arguments)} argument(s) "
          f"(line {paren.line})", file=sys.stderr)

  callee_type = callee['type']
  if callee_type == 'builtin_function':
    return callee['func'](*arguments)
  elif callee_type == 'function':
    return call_function(callee, arguments, context)
  else:
    return call_class(callee, arguments, context)
