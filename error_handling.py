"""
Error types and error reporting for the JEZ toolchain
Front-end errors (scan, parse) are enhanced with source context;
runtime errors carry the token they were raised at
"""

from typing import Dict, List, Optional, Tuple
from pyparsing import ParseBaseException
import re

from syntax_tree import Token


# ============================================================================
# SOURCE EXCERPTS
# ============================================================================

def get_source_line(source_text: str, line_num: int) -> str:
    """Return the text of a 1-based source line, or '' when out of range"""
    lines = source_text.split('\n')
    if 1 <= line_num <= len(lines):
        return lines[line_num - 1]
    return ""


def render_excerpt(source_text: str, line_num: int, col_num: int, lines_before: int = 2) -> str:
    """Numbered source lines ending at line_num, with a caret under col_num"""
    lines = source_text.split('\n')
    last = min(line_num, len(lines))
    first = max(1, last - lines_before)

    rendered = [f"{number:4d} | {lines[number - 1]}" for number in range(first, last + 1)]
    rendered.append(f"     | {' ' * (col_num - 1)}^")
    return '\n'.join(rendered)


# ============================================================================
# PARSE ERROR ANALYSIS
# ============================================================================

EXPECTED_PATTERN = re.compile(r"Expected\s+(.+?)(?:,\s+found\b|\s+\(at char|$)")

# Rough JEZ lexeme shapes, enough to name what the parser stopped at
LEXEME_PATTERN = re.compile(r'"[^"\n]*"?|[A-Za-z_][A-Za-z0-9_]*|[0-9]+(?:\.[0-9]+)?|[!=<>]=|\S')


def describe_expected(exc: ParseBaseException) -> Optional[str]:
    """What pyparsing wanted at the failure point, when it says"""
    match = EXPECTED_PATTERN.search(exc.msg or "")
    return match.group(1) if match else None


def describe_found(source_text: str, location: int) -> str:
    """The lexeme the parser stopped at"""
    rest = source_text[location:].lstrip()
    if not rest:
        return "end of input"
    return f"'{LEXEME_PATTERN.match(rest).group(0)}'"


# Words other languages use where JEZ has its own keyword
FOREIGN_KEYWORDS = {
    'var': "JEZ declares variables with 'variable'",
    'let': "JEZ declares variables with 'variable'",
    'class': "Classes are declared with 'template'",
    'fun': "Functions are declared with 'function'",
    'def': "Functions are declared with 'function'",
    'nil': "The empty value is written 'none'",
    'null': "The empty value is written 'none'",
    'init': "Initializers are methods named 'initialize'",
}

MISSING_DELIMITER_HINTS = [
    ("';'", "Every statement ends with ';' - check the end of the previous line"),
    ("'}'", "A block or template body is missing its closing '}'"),
    ("')'", "Check that every '(' has a matching ')'"),
]


def generate_suggestions(exc: ParseBaseException, expected: Optional[str]) -> List[str]:
    """JEZ-specific hints for a syntax error"""
    suggestions = [hint for symbol, hint in MISSING_DELIMITER_HINTS
                   if expected and symbol in expected]

    # A foreign keyword parses as an identifier, so the error lands after it
    for word in re.findall(r'[A-Za-z_]+', exc.line or ""):
        hint = FOREIGN_KEYWORDS.get(word)
        if hint and hint not in suggestions:
            suggestions.append(hint)

    if "assignment target" in (exc.msg or ""):
        suggestions.append("Only variables and properties (obj.field) can be assigned to")

    return suggestions


def make_parse_error_record(exc: ParseBaseException, source_text: str) -> Dict:
    """Everything a JEZParseError reports, as keyword arguments"""
    expected = describe_expected(exc)
    return {
        'message': exc.msg or str(exc),
        'line': exc.lineno,
        'column': exc.column,
        'expected': expected,
        'found': describe_found(source_text, exc.loc),
        'excerpt': render_excerpt(source_text, exc.lineno, exc.column),
        'suggestions': generate_suggestions(exc, expected),
    }


# ============================================================================
# EXCEPTION CLASSES
# ============================================================================

class JEZScanError(Exception):
    """Every lexical error found in one pass of the scanner"""
    def __init__(self, errors: List[Tuple[int, str]]):
        self.errors = errors
        super().__init__(self._format_error())

    def _format_error(self) -> str:
        return '\n'.join(f"[line {line}] Error: {message}" for line, message in self.errors)


class JEZParseError(Exception):
    """The first syntax error in a source text"""
    def __init__(self, message: str, line: int = 0, column: int = 0,
                 expected: Optional[str] = None, found: Optional[str] = None,
                 excerpt: Optional[str] = None, suggestions: Optional[List[str]] = None):
        self.message = message
        self.line = line
        self.column = column
        self.expected = expected
        self.found = found
        self.excerpt = excerpt
        self.suggestions = suggestions or []
        super().__init__(message)

    def __str__(self) -> str:
        # Errors raised before parsing (unreadable files) have no location
        if not self.line:
            return self.message

        report = f"line {self.line}, column {self.column}: {self.message}"
        if self.found:
            report += f"\n  Found: {self.found}"
        if self.excerpt:
            report += f"\n{self.excerpt}"
        for suggestion in self.suggestions:
            report += f"\n  Hint: {suggestion}"
        return report


class JEZRuntimeError(Exception):
    """Runtime failure raised at a specific token"""
    def __init__(self, token: Token, message: str):
        self.token = token
        self.message = message
        super().__init__(message)

    @property
    def line(self) -> int:
        return self.token.line

    def __str__(self) -> str:
        return f"{self.message}\n[line {self.token.line}]"


# ============================================================================
# REPORTING
# ============================================================================

class JEZErrorHandler:
    """Error enhancement and reporting bound to one source text"""
    def __init__(self, source_text: str, filename: str = "<input>"):
        self.source_text = source_text
        self.filename = filename

    def enhance_parse_exception(self, exc: ParseBaseException) -> JEZParseError:
        return JEZParseError(**make_parse_error_record(exc, self.source_text))

    def format_runtime_error(self, error: JEZRuntimeError) -> str:
        """Ruled report block for an uncaught runtime error"""
        rule = '=' * 70
        report = f"{rule}\nRuntime Error in '{self.filename}'\n{rule}\n"
        report += f"\nError: {error.message}\n"
        report += f"\nLocation: {self.filename}:{error.line}\n"

        source_line = get_source_line(self.source_text, error.line).strip()
        if source_line:
            report += f"\nSource:\n  {source_line}\n  {'~' * len(source_line)}\n"

        return report + f"\n{rule}\n"


def create_enhanced_parser_with_errors(parser_func, source_text: str, filename: str = "<input>"):
    """Wrap a parse function so pyparsing failures surface as JEZParseError"""
    handler = JEZErrorHandler(source_text, filename)

    def parse(*args, **kwargs):
        try:
            return parser_func(*args, **kwargs)
        except ParseBaseException as exc:
            raise handler.enhance_parse_exception(exc) from exc

    return parse
