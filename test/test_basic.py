"""
Basic parsing tests for the JEZ language
Tests the grammar and the AST it builds
"""

import pytest
from pyparsing import ParseBaseException

from parsing import JEZGrammar, create_parser
from error_handling import JEZParseError, JEZScanError
from syntax_tree import (
    TokenType, Literal, Grouping, Unary, Binary, Logical, Variable, Assign, Call, Get, Set,
    This, Super, Expression, Print, Var, Block, If, While, Function, Return, Class,
    pretty_print_ast,
)


@pytest.fixture(scope="module")
def grammar():
  """Share one grammar instance; building it dominates test time"""
  return JEZGrammar()


class TestBasicParsing:
  """Test basic parsing functionality"""

  def test_simple_program_parsing(self, grammar):
    """A print statement becomes a Print node over a literal"""
    result = grammar.parse_program('print "hi";')
    assert result == [Print(Literal("hi"))]

  def test_number_literals_are_floats(self, grammar):
    """Numbers decode to floats"""
    assert grammar.parse_expression("42") == Literal(42.0)
    assert grammar.parse_expression("3.25") == Literal(3.25)

  def test_keyword_literals(self, grammar):
    """true, false and none are literals"""
    assert grammar.parse_expression("true") == Literal(True)
    assert grammar.parse_expression("false") == Literal(False)
    assert grammar.parse_expression("none") == Literal(None)

  def test_variable_declaration(self, grammar):
    """Declarations with and without an initializer"""
    with_value, without_value = grammar.parse_program("variable a = 1; variable b;")
    assert isinstance(with_value, Var)
    assert with_value.name.lexeme == "a"
    assert with_value.initializer == Literal(1.0)
    assert without_value.name.lexeme == "b"
    assert without_value.initializer is None

  def test_comments_are_ignored(self, grammar):
    """Line comments disappear, even after code"""
    result = grammar.parse_program("// leading\nprint 1; // trailing\n// done")
    assert result == [Print(Literal(1.0))]

  def test_empty_program(self, grammar):
    """An empty source is an empty program"""
    assert grammar.parse_program("") == []

  def test_token_lines(self, grammar):
    """Tokens record the line they were matched on"""
    first, second = grammar.parse_program("print a;\n\nprint b;")
    assert first.expression.name.line == 1
    assert second.expression.name.line == 3


class TestExpressionParsing:
  """Test precedence and associativity"""

  def test_factor_binds_tighter_than_term(self, grammar):
    """1 + 2 * 3 groups the multiplication"""
    expr = grammar.parse_expression("1 + 2 * 3")
    assert isinstance(expr, Binary)
    assert expr.operator.type == TokenType.PLUS
    assert expr.left == Literal(1.0)
    assert isinstance(expr.right, Binary)
    assert expr.right.operator.type == TokenType.STAR

  def test_binary_operators_are_left_associative(self, grammar):
    """1 - 2 - 3 is (1 - 2) - 3"""
    expr = grammar.parse_expression("1 - 2 - 3")
    assert isinstance(expr.left, Binary)
    assert expr.right == Literal(3.0)

  def test_grouping(self, grammar):
    """Parentheses produce Grouping nodes"""
    expr = grammar.parse_expression("(1 + 2) * 3")
    assert isinstance(expr.left, Grouping)
    assert isinstance(expr.left.expression, Binary)

  def test_comparison_and_equality(self, grammar):
    """Two-character operators are single tokens"""
    expr = grammar.parse_expression("1 <= 2 != false")
    assert expr.operator.type == TokenType.BANG_EQUAL
    assert expr.left.operator.type == TokenType.LESS_EQUAL

  def test_logical_precedence(self, grammar):
    """and binds tighter than or"""
    expr = grammar.parse_expression("a or b and c")
    assert isinstance(expr, Logical)
    assert expr.operator.type == TokenType.OR
    assert isinstance(expr.right, Logical)
    assert expr.right.operator.type == TokenType.AND

  def test_unary_nesting(self, grammar):
    """Unary operators nest right to left"""
    expr = grammar.parse_expression("!-x")
    assert isinstance(expr, Unary)
    assert expr.operator.type == TokenType.BANG
    assert isinstance(expr.right, Unary)
    assert expr.right.operator.type == TokenType.MINUS
    assert expr.right.right.name.lexeme == "x"

  def test_assignment_is_right_associative(self, grammar):
    """a = b = 1 assigns b first"""
    expr = grammar.parse_expression("a = b = 1")
    assert isinstance(expr, Assign)
    assert expr.name.lexeme == "a"
    assert isinstance(expr.value, Assign)
    assert expr.value.name.lexeme == "b"

  def test_property_assignment_becomes_set(self, grammar):
    """Assigning to a property get produces a Set node"""
    expr = grammar.parse_expression("point.x = 3")
    assert isinstance(expr, Set)
    assert expr.object.name.lexeme == "point"
    assert expr.name.lexeme == "x"
    assert expr.value == Literal(3.0)

  def test_call_and_get_chain(self, grammar):
    """a.b(1, 2).c nests left to right"""
    expr = grammar.parse_expression("a.b(1, 2).c")
    assert isinstance(expr, Get)
    assert expr.name.lexeme == "c"
    call = expr.object
    assert isinstance(call, Call)
    assert call.arguments == [Literal(1.0), Literal(2.0)]
    assert call.paren.type == TokenType.RIGHT_PAREN
    assert isinstance(call.callee, Get)

  def test_curried_calls(self, grammar):
    """f()() is a call of a call"""
    expr = grammar.parse_expression("f()()")
    assert isinstance(expr, Call)
    assert isinstance(expr.callee, Call)
    assert expr.arguments == []

  def test_this_and_super(self, grammar):
    """this and super.method are their own nodes"""
    assert isinstance(grammar.parse_expression("this"), This)
    expr = grammar.parse_expression("super.greet")
    assert isinstance(expr, Super)
    assert expr.method.lexeme == "greet"

  def test_keywords_are_not_identifiers(self, grammar):
    """An identifier may start with a keyword"""
    expr = grammar.parse_expression("orchid")
    assert isinstance(expr, Variable)
    assert expr.name.lexeme == "orchid"


class TestStatementParsing:
  """Test statements and declarations"""

  def test_block(self, grammar):
    result = grammar.parse_program("{ variable a = 1; print a; }")
    assert len(result) == 1
    block = result[0]
    assert isinstance(block, Block)
    assert isinstance(block.statements[0], Var)
    assert isinstance(block.statements[1], Print)

  def test_if_else_binds_to_nearest_if(self, grammar):
    """The dangling else belongs to the inner if"""
    (outer,) = grammar.parse_program("if (a) if (b) print 1; else print 2;")
    assert isinstance(outer, If)
    assert outer.else_branch is None
    assert isinstance(outer.then_branch, If)
    assert isinstance(outer.then_branch.else_branch, Print)

  def test_while(self, grammar):
    (loop,) = grammar.parse_program("while (x < 3) x = x + 1;")
    assert isinstance(loop, While)
    assert isinstance(loop.body, Expression)

  def test_for_loop_desugars_to_while(self, grammar):
    """for (init; cond; incr) body becomes { init; while (cond) { body; incr; } }"""
    (block,) = grammar.parse_program("for (variable i = 0; i < 3; i = i + 1) print i;")
    assert isinstance(block, Block)
    initializer, loop = block.statements
    assert isinstance(initializer, Var)
    assert isinstance(loop, While)
    assert isinstance(loop.condition, Binary)
    body, increment = loop.body.statements
    assert isinstance(body, Print)
    assert isinstance(increment, Expression)
    assert isinstance(increment.expression, Assign)

  def test_for_loop_with_empty_clauses(self, grammar):
    """Without clauses the loop condition is literally true"""
    (loop,) = grammar.parse_program("for (;;) print 1;")
    assert isinstance(loop, While)
    assert loop.condition == Literal(True)
    assert isinstance(loop.body, Print)

  def test_function_declaration(self, grammar):
    (function,) = grammar.parse_program("function add(a, b) { return a + b; }")
    assert isinstance(function, Function)
    assert function.name.lexeme == "add"
    assert [param.lexeme for param in function.params] == ["a", "b"]
    assert isinstance(function.body[0], Return)
    assert function.body[0].keyword.type == TokenType.RETURN

  def test_bare_return(self, grammar):
    (function,) = grammar.parse_program("function f() { return; }")
    assert function.body[0].value is None

  def test_template_declaration(self, grammar):
    """Templates hold methods and an optional superclass variable"""
    source = """
    template B < A {
      initialize(x) { this.x = x; }
      greet() { return super.greet(); }
    }
    """
    (klass,) = grammar.parse_program(source)
    assert isinstance(klass, Class)
    assert klass.name.lexeme == "B"
    assert isinstance(klass.superclass, Variable)
    assert klass.superclass.name.lexeme == "A"
    assert [method.name.lexeme for method in klass.methods] == ["initialize", "greet"]

  def test_template_without_superclass(self, grammar):
    (klass,) = grammar.parse_program("template A {}")
    assert klass.superclass is None
    assert klass.methods == []

  def test_pretty_print(self, grammar):
    """The AST dump names every node"""
    dump = pretty_print_ast(grammar.parse_program("print 1 + x;"))
    assert "Print" in dump
    assert "Binary" in dump
    assert "'x'" in dump


class TestParseErrors:
  """Syntax errors surface as enhanced JEZParseError"""

  @pytest.fixture(scope="class")
  def parser(self):
    return create_parser()

  def test_grammar_raises_pyparsing_exception(self, grammar):
    with pytest.raises(ParseBaseException):
      grammar.parse_program("print 1")

  def test_missing_semicolon(self, parser):
    with pytest.raises(JEZParseError) as excinfo:
      parser.parse_string("variable a = 1\nprint a;")
    error = excinfo.value
    assert error.line == 2
    assert any("';'" in suggestion for suggestion in error.suggestions)

  def test_invalid_assignment_target(self, parser):
    with pytest.raises(JEZParseError) as excinfo:
      parser.parse_string("1 + 2 = 3;")
    assert "Invalid assignment target." in str(excinfo.value)

  def test_keyword_as_variable_name(self, parser):
    with pytest.raises(JEZParseError):
      parser.parse_string("variable print = 1;")

  def test_unclosed_block(self, parser):
    with pytest.raises(JEZParseError):
      parser.parse_string("{ print 1;")

  def test_foreign_keyword_suggestion(self, parser):
    """Words from other languages get a pointer to the JEZ keyword"""
    with pytest.raises(JEZParseError) as excinfo:
      parser.parse_string("var x = 1;")
    assert any("'variable'" in suggestion for suggestion in excinfo.value.suggestions)

  def test_error_report_has_context(self, parser):
    with pytest.raises(JEZParseError) as excinfo:
      parser.parse_string("print 1;\nprint (2;")
    report = str(excinfo.value)
    assert "line 2" in report
    assert "print (2;" in report

  def test_lexical_errors_come_first(self, parser):
    """An unknown character is reported before the grammar runs"""
    with pytest.raises(JEZScanError):
      parser.parse_string("print 1 # 2;")

  def test_parse_file(self, parser, examples_dir):
    program = parser.parse_file(str(examples_dir / "fibonacci.jez"))
    assert isinstance(program[0], Function)
    assert isinstance(program[1], Block)

  def test_parse_missing_file(self, parser, tmp_path):
    with pytest.raises(JEZParseError) as excinfo:
      parser.parse_file(str(tmp_path / "missing.jez"))
    assert "File not found" in str(excinfo.value)
