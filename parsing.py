"""
JEZ Programming Language Parser
Regex scanner for the token stream and a pyparsing grammar that builds the AST
"""

from typing import List, Dict, Tuple
import re
import sys

# Import pyparsing with error handling
try:
    from pyparsing import (
        Forward, Group, Keyword, Literal as PyParsingLiteral, MatchFirst,
        Optional as PyParsingOptional, ParseFatalException, ParserElement,
        Regex, StringEnd, Suppress, ZeroOrMore, dbl_slash_comment, lineno,
    )
    # Enable packrat parsing for performance
    ParserElement.enable_packrat()
except ImportError:
    raise ImportError("pyparsing library not found. Install with: pip install pyparsing")

from syntax_tree import (
    TokenType, Token, Expr, Stmt,
    Literal, Grouping, Unary, Binary, Logical, Variable, Assign, Call, Get, Set,
    This, Super, Expression, Print, Var, Block, If, While, Function, Return, Class,
)
from error_handling import JEZScanError, JEZParseError, create_enhanced_parser_with_errors


KEYWORDS: Dict[str, TokenType] = {
    'and': TokenType.AND,
    'template': TokenType.TEMPLATE,
    'else': TokenType.ELSE,
    'false': TokenType.FALSE,
    'for': TokenType.FOR,
    'function': TokenType.FUNCTION,
    'if': TokenType.IF,
    'none': TokenType.NONE,
    'or': TokenType.OR,
    'print': TokenType.PRINT,
    'return': TokenType.RETURN,
    'super': TokenType.SUPER,
    'this': TokenType.THIS,
    'true': TokenType.TRUE,
    'variable': TokenType.VARIABLE,
    'while': TokenType.WHILE,
}

OPERATORS: Dict[str, TokenType] = {
    '(': TokenType.LEFT_PAREN,
    ')': TokenType.RIGHT_PAREN,
    '{': TokenType.LEFT_BRACE,
    '}': TokenType.RIGHT_BRACE,
    ',': TokenType.COMMA,
    '.': TokenType.DOT,
    '-': TokenType.MINUS,
    '+': TokenType.PLUS,
    ';': TokenType.SEMICOLON,
    '/': TokenType.SLASH,
    '*': TokenType.STAR,
    '!': TokenType.BANG,
    '!=': TokenType.BANG_EQUAL,
    '=': TokenType.EQUAL,
    '==': TokenType.EQUAL_EQUAL,
    '>': TokenType.GREATER,
    '>=': TokenType.GREATER_EQUAL,
    '<': TokenType.LESS,
    '<=': TokenType.LESS_EQUAL,
}

class JEZTokenizer:
    """JEZ scanner: one pass, every lexical error collected"""

    def __init__(self, filename: str = "<input>"):
        self.filename = filename
        self._setup_token_patterns()

    def _setup_token_patterns(self):
        """Setup all token patterns for JEZ"""

        # Line comments run to the end of the line
        self.comment_pattern = re.compile(r'//[^\n]*')

        # Strings have no escapes and may span lines
        self.string_pattern = re.compile(r'"[^"]*"')

        # A fraction needs a digit after the dot
        self.number_pattern = re.compile(r'[0-9]+(?:\.[0-9]+)?')

        self.identifier_pattern = re.compile(r'[A-Za-z_][A-Za-z0-9_]*')

        # Longest operator first so '>=' wins over '>'
        operators_sorted = sorted(OPERATORS, key=len, reverse=True)
        self.operator_pattern = re.compile('|'.join(re.escape(op) for op in operators_sorted))

        self.whitespace = {' ', '\r', '\t'}

    def scan(self, text: str) -> Tuple[List[Token], List[Tuple[int, str]]]:
        """Tokenize JEZ source, returning tokens and (line, message) errors"""
        tokens: List[Token] = []
        errors: List[Tuple[int, str]] = []
        pos = 0
        line = 1

        while pos < len(text):
            char = text[pos]

            if char == '\n':
                line += 1
                pos += 1
                continue

            if char in self.whitespace:
                pos += 1
                continue

            comment_match = self.comment_pattern.match(text, pos)
            if comment_match:
                pos = comment_match.end()
                continue

            if char == '"':
                string_match = self.string_pattern.match(text, pos)
                if string_match is None:
                    line += text.count('\n', pos)
                    errors.append((line, "String is not finished, check for missing quote."))
                    break
                lexeme = string_match.group(0)
                # The token takes the line the closing quote is on
                line += lexeme.count('\n')
                tokens.append(Token(TokenType.STRING, lexeme, lexeme[1:-1], line))
                pos = string_match.end()
                continue

            number_match = self.number_pattern.match(text, pos)
            if number_match:
                lexeme = number_match.group(0)
                tokens.append(Token(TokenType.NUMBER, lexeme, float(lexeme), line))
                pos = number_match.end()
                continue

            id_match = self.identifier_pattern.match(text, pos)
            if id_match:
                lexeme = id_match.group(0)
                token_type = KEYWORDS.get(lexeme, TokenType.IDENTIFIER)
                tokens.append(Token(token_type, lexeme, None, line))
                pos = id_match.end()
                continue

            op_match = self.operator_pattern.match(text, pos)
            if op_match:
                lexeme = op_match.group(0)
                tokens.append(Token(OPERATORS[lexeme], lexeme, None, line))
                pos = op_match.end()
                continue

            errors.append((line, "Can not use one of these symbols."))
            pos += 1

        tokens.append(Token(TokenType.EOF, "", None, line))
        return tokens, errors

    def tokenize(self, text: str) -> List[Token]:
        """Tokenize JEZ source, raising JEZScanError if anything was unrecognized"""
        tokens, errors = self.scan(text)
        if errors:
            raise JEZScanError(errors)
        return tokens


class JEZGrammar:
    """JEZ grammar definition using pyparsing"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self._setup_grammar()

    def _setup_grammar(self):
        """Setup the JEZ grammar; parse actions build syntax_tree nodes"""

        def token_action(token_type: TokenType):
            def action(s, loc, toks):
                return Token(token_type, toks[0], None, lineno(loc, s))
            return action

        def operator_action(s, loc, toks):
            return Token(OPERATORS[toks[0]], toks[0], None, lineno(loc, s))

        def keyword(name: str):
            return Keyword(name).set_parse_action(token_action(KEYWORDS[name]))

        reserved = MatchFirst([Keyword(name) for name in KEYWORDS])

        def name():
            return ~reserved + Regex(r'[A-Za-z_][A-Za-z0-9_]*').set_parse_action(
                token_action(TokenType.IDENTIFIER)
            )

        def operators(*symbols: str):
            return Regex('|'.join(re.escape(s) for s in symbols)).set_parse_action(operator_action)

        def fold_binary(node_class):
            def action(toks):
                expr = toks[0]
                for i in range(1, len(toks), 2):
                    expr = node_class(expr, toks[i], toks[i + 1])
                return expr
            return action

        # Forward declarations for recursive structures
        expression = Forward().set_name("expression")
        declaration = Forward().set_name("declaration")
        statement = Forward().set_name("statement")

        semicolon = Suppress(";").set_name("';'")
        equals = Regex(r'=(?!=)').set_name("'='").set_parse_action(operator_action)
        right_paren = PyParsingLiteral(")").set_parse_action(operator_action)

        # Primary expressions
        number = Regex(r'[0-9]+(?:\.[0-9]+)?').set_parse_action(lambda t: Literal(float(t[0])))
        string_literal = Regex(r'"[^"]*"').set_parse_action(lambda t: Literal(t[0][1:-1]))
        true_literal = Keyword("true").set_parse_action(lambda t: Literal(True))
        false_literal = Keyword("false").set_parse_action(lambda t: Literal(False))
        none_literal = Keyword("none").set_parse_action(lambda t: Literal(None))
        this_expr = keyword("this").add_parse_action(lambda t: This(t[0]))
        super_expr = (keyword("super") - Suppress(".") - name()).set_parse_action(
            lambda t: Super(t[0], t[1])
        )
        variable = name().add_parse_action(lambda t: Variable(t[0]))
        grouping = (Suppress("(") - expression - Suppress(")")).set_parse_action(
            lambda t: Grouping(t[0])
        )

        primary = (
            number | string_literal | true_literal | false_literal | none_literal |
            this_expr | super_expr | variable | grouping
        ).set_name("expression")

        # Call and property chains: f(a)(b).c
        argument_list = Group(PyParsingOptional(expression + ZeroOrMore(Suppress(",") - expression)))
        call_suffix = (Suppress("(") - argument_list - right_paren).set_parse_action(
            lambda t: ("CALL", list(t[0]), t[1])
        )
        get_suffix = (Suppress(".") - name()).set_parse_action(lambda t: ("GET", t[0]))

        def make_call_chain(toks):
            expr = toks[0]
            for suffix in toks[1:]:
                if suffix[0] == "CALL":
                    expr = Call(expr, suffix[2], suffix[1])
                else:
                    expr = Get(expr, suffix[1])
            return expr

        call = (primary + ZeroOrMore(call_suffix | get_suffix)).set_parse_action(make_call_chain)

        unary = Forward()
        unary <<= (operators("!", "-") + unary).set_parse_action(lambda t: Unary(t[0], t[1])) | call

        factor = (unary + ZeroOrMore(operators("*", "/") + unary)).set_parse_action(fold_binary(Binary))
        term = (factor + ZeroOrMore(operators("+", "-") + factor)).set_parse_action(fold_binary(Binary))
        comparison = (term + ZeroOrMore(operators(">=", "<=", ">", "<") + term)).set_parse_action(
            fold_binary(Binary)
        )
        equality = (comparison + ZeroOrMore(operators("!=", "==") + comparison)).set_parse_action(
            fold_binary(Binary)
        )
        logic_and = (equality + ZeroOrMore(keyword("and") + equality)).set_parse_action(fold_binary(Logical))
        logic_or = (logic_and + ZeroOrMore(keyword("or") + logic_and)).set_parse_action(fold_binary(Logical))

        def make_assignment(s, loc, toks):
            if len(toks) == 1:
                return toks[0]
            target, value = toks[0], toks[2]
            if isinstance(target, Variable):
                return Assign(target.name, value)
            if isinstance(target, Get):
                return Set(target.object, target.name, value)
            raise ParseFatalException(s, loc, "Invalid assignment target.")

        assignment = Forward()
        assignment <<= (logic_or + PyParsingOptional(equals + assignment)).set_parse_action(make_assignment)
        expression <<= assignment

        # Statements
        def braced_declarations():
            return Suppress("{") - Group(ZeroOrMore(declaration)) - Suppress("}").set_name("'}'")

        expression_stmt = (expression - semicolon).set_parse_action(lambda t: Expression(t[0]))
        print_stmt = (Suppress(Keyword("print")) - expression - semicolon).set_parse_action(
            lambda t: Print(t[0])
        )
        return_stmt = (keyword("return") - PyParsingOptional(expression) - semicolon).set_parse_action(
            lambda t: Return(t[0], t[1] if len(t) > 1 else None)
        )
        block = braced_declarations().set_parse_action(lambda t: Block(list(t[0])))

        if_stmt = (
            Suppress(Keyword("if")) - Suppress("(") - expression - Suppress(")") - statement -
            PyParsingOptional(Suppress(Keyword("else")) - statement)
        ).set_parse_action(lambda t: If(t[0], t[1], t[2] if len(t) > 2 else None))

        while_stmt = (
            Suppress(Keyword("while")) - Suppress("(") - expression - Suppress(")") - statement
        ).set_parse_action(lambda t: While(t[0], t[1]))

        var_decl = (
            Suppress(Keyword("variable")) - name() - PyParsingOptional(Suppress(equals) - expression) - semicolon
        ).set_parse_action(lambda t: Var(t[0], t[1] if len(t) > 1 else None))

        def desugar_for(toks):
            initializer = toks[0][0] if len(toks[0]) else None
            condition = toks[1][0] if len(toks[1]) else Literal(True)
            increment = toks[2][0] if len(toks[2]) else None
            body = toks[3]

            if increment is not None:
                body = Block([body, Expression(increment)])
            loop = While(condition, body)
            if initializer is not None:
                return Block([initializer, loop])
            return loop

        for_stmt = (
            Suppress(Keyword("for")) - Suppress("(") -
            Group(var_decl | expression_stmt | semicolon) -
            Group(PyParsingOptional(expression)) - semicolon -
            Group(PyParsingOptional(expression)) - Suppress(")") -
            statement
        ).set_parse_action(desugar_for)

        statement <<= for_stmt | if_stmt | print_stmt | return_stmt | while_stmt | block | expression_stmt

        # Declarations
        parameters = Group(PyParsingOptional(name() + ZeroOrMore(Suppress(",") - name())))
        function = (name() - Suppress("(") - parameters - Suppress(")") - braced_declarations()).set_parse_action(
            lambda t: Function(t[0], list(t[1]), list(t[2]))
        )
        fun_decl = Suppress(Keyword("function")) - function

        superclass = Group(PyParsingOptional(Suppress("<") - name().add_parse_action(lambda t: Variable(t[0]))))
        class_decl = (
            Suppress(Keyword("template")) - name() - superclass -
            Suppress("{") - Group(ZeroOrMore(function)) - Suppress("}").set_name("'}'")
        ).set_parse_action(lambda t: Class(t[0], t[1][0] if len(t[1]) else None, list(t[2])))

        declaration <<= class_decl | fun_decl | var_decl | statement

        comment = Suppress(dbl_slash_comment)
        program = ZeroOrMore(declaration) + StringEnd()
        program.ignore(comment)
        expression_only = expression + StringEnd()
        expression_only.ignore(comment)

        # Store important grammar elements
        self.expression = expression
        self.statement = statement
        self.declaration = declaration
        self.program = program
        self.expression_only = expression_only

    def parse_program(self, text: str, filename: str = "<input>") -> List[Stmt]:
        """Parse a whole JEZ program into a list of statements"""
        result = self.program.parse_string(text, parse_all=True)
        if self.debug:
            print(f"[parse] {filename}: {len(result)} top-level declarations", file=sys.stderr)
        return list(result)

    def parse_expression(self, text: str, filename: str = "<input>") -> Expr:
        """Parse a single JEZ expression"""
        return self.expression_only.parse_string(text, parse_all=True)[0]


class JEZParser:
    """Main JEZ parser combining tokenizer and grammar"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self.grammar = JEZGrammar(debug)

    def parse_file(self, filepath: str) -> List[Stmt]:
        """Parse a JEZ source file"""
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise JEZParseError(f"File not found: {filepath}")
        except UnicodeDecodeError as e:
            raise JEZParseError(f"Cannot decode file {filepath}: {e}")
        return self.parse_string(content, filepath)

    def parse_string(self, text: str, filename: str = "<input>") -> List[Stmt]:
        """Parse JEZ source code from string; lexical errors are reported first"""
        self.tokenize(text, filename)
        parse = create_enhanced_parser_with_errors(self.grammar.parse_program, text, filename)
        return parse(text, filename)

    def parse_expression(self, text: str, filename: str = "<input>") -> Expr:
        """Parse a single JEZ expression"""
        self.tokenize(text, filename)
        parse = create_enhanced_parser_with_errors(self.grammar.parse_expression, text, filename)
        return parse(text, filename)

    def tokenize(self, text: str, filename: str = "<input>") -> List[Token]:
        """Tokenize JEZ source code"""
        tokenizer = JEZTokenizer(filename)
        tokens = tokenizer.tokenize(text)
        if self.debug:
            print(f"[scan] {filename}: {len(tokens)} tokens", file=sys.stderr)
        return tokens


# Factory functions for creating parsers
def create_parser(debug: bool = False) -> JEZParser:
    """Create a JEZ parser"""
    return JEZParser(debug=debug)


def create_debug_parser() -> JEZParser:
    """Create a JEZ parser with debug enabled"""
    return JEZParser(debug=True)
