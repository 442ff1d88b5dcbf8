"""
JEZ tokens and abstract syntax tree
Frozen dataclasses for the token schema and for every expression and
statement kind the parser produces
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from itertools import count
from typing import Any, List, Optional


# ============================================================================
# TOKENS
# ============================================================================

class TokenType(Enum):
  # single character
  LEFT_PAREN = auto()
  RIGHT_PAREN = auto()
  LEFT_BRACE = auto()
  RIGHT_BRACE = auto()
  COMMA = auto()
  DOT = auto()
  MINUS = auto()
  PLUS = auto()
  SEMICOLON = auto()
  SLASH = auto()
  STAR = auto()

  # one or two characters
  BANG = auto()
  BANG_EQUAL = auto()
  EQUAL = auto()
  EQUAL_EQUAL = auto()
  GREATER = auto()
  GREATER_EQUAL = auto()
  LESS = auto()
  LESS_EQUAL = auto()

  # literals
  IDENTIFIER = auto()
  STRING = auto()
  NUMBER = auto()

  # keywords
  AND = auto()
  TEMPLATE = auto()
  ELSE = auto()
  FALSE = auto()
  FUNCTION = auto()
  FOR = auto()
  IF = auto()
  NONE = auto()
  OR = auto()
  PRINT = auto()
  RETURN = auto()
  SUPER = auto()
  THIS = auto()
  TRUE = auto()
  VARIABLE = auto()
  WHILE = auto()

  EOF = auto()


@dataclass(frozen=True)
class Token:
  """One lexeme with its decoded literal and source line"""
  type: TokenType
  lexeme: str
  literal: Any
  line: int

  def __str__(self) -> str:
    return f"{self.type.name}({self.lexeme})"


# Methods with this name are initializers
INITIALIZER_NAME = "initialize"


_node_ids = count(1)


def next_node_id() -> int:
  """Hand out a fresh, process-unique expression id"""
  return next(_node_ids)


# ============================================================================
# EXPRESSIONS
# ============================================================================

@dataclass(frozen=True)
class Expr:
  """Base for expressions; node_id keys the resolver's distance table"""
  node_id: int = field(default_factory=next_node_id, compare=False, repr=False, kw_only=True)


@dataclass(frozen=True)
class Literal(Expr):
  value: Any


@dataclass(frozen=True)
class Grouping(Expr):
  expression: Expr


@dataclass(frozen=True)
class Unary(Expr):
  operator: Token
  right: Expr


@dataclass(frozen=True)
class Binary(Expr):
  left: Expr
  operator: Token
  right: Expr


@dataclass(frozen=True)
class Logical(Expr):
  left: Expr
  operator: Token
  right: Expr


@dataclass(frozen=True)
class Variable(Expr):
  name: Token


@dataclass(frozen=True)
class Assign(Expr):
  name: Token
  value: Expr


@dataclass(frozen=True)
class Call(Expr):
  callee: Expr
  paren: Token
  arguments: List[Expr]


@dataclass(frozen=True)
class Get(Expr):
  object: Expr
  name: Token


@dataclass(frozen=True)
class Set(Expr):
  object: Expr
  name: Token
  value: Expr


@dataclass(frozen=True)
class This(Expr):
  keyword: Token


@dataclass(frozen=True)
class Super(Expr):
  keyword: Token
  method: Token


# ============================================================================
# STATEMENTS
# ============================================================================

@dataclass(frozen=True)
class Stmt:
  """Base for statements"""


@dataclass(frozen=True)
class Expression(Stmt):
  expression: Expr


@dataclass(frozen=True)
class Print(Stmt):
  expression: Expr


@dataclass(frozen=True)
class Var(Stmt):
  name: Token
  initializer: Optional[Expr] = None


@dataclass(frozen=True)
class Block(Stmt):
  statements: List[Stmt]


@dataclass(frozen=True)
class If(Stmt):
  condition: Expr
  then_branch: Stmt
  else_branch: Optional[Stmt] = None


@dataclass(frozen=True)
class While(Stmt):
  condition: Expr
  body: Stmt


@dataclass(frozen=True)
class Function(Stmt):
  name: Token
  params: List[Token]
  body: List[Stmt]


@dataclass(frozen=True)
class Return(Stmt):
  keyword: Token
  value: Optional[Expr] = None


@dataclass(frozen=True)
class Class(Stmt):
  name: Token
  superclass: Optional[Variable]
  methods: List[Function]


def pretty_print_ast(node: Any, indent: int = 0) -> str:
  """Render a node tree one node per line, for --parse and :parse"""
  pad = "  " * indent
  if isinstance(node, list):
    return "".join(pretty_print_ast(item, indent) for item in node)
  if isinstance(node, Token):
    return f"{pad}{node.lexeme!r} (line {node.line})\n"
  if not isinstance(node, (Expr, Stmt)):
    return f"{pad}{node!r}\n"

  result = f"{pad}{type(node).__name__}"
  if isinstance(node, Expr):
    result += f" #{node.node_id}"
  result += "\n"
  for name in node.__dataclass_fields__:
    if name == "node_id":
      continue
    value = getattr(node, name)
    if value is None:
      continue
    if isinstance(value, (Expr, Stmt, list)):
      result += f"{pad}  {name}:\n" + pretty_print_ast(value, indent + 2)
    elif isinstance(value, Token):
      result += f"{pad}  {name}: {value.lexeme!r}\n"
    else:
      result += f"{pad}  {name}: {value!r}\n"
  return result
