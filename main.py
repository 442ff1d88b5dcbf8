"""
JEZ Programming Language - Main Entry Point
A small dynamically typed scripting language with closures and templates
"""

import sys
import argparse
from typing import Dict, List, Optional
import os

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from parsing import create_parser, create_debug_parser, JEZParser, JEZTokenizer, KEYWORDS
from syntax_tree import Stmt, Print, pretty_print_ast
from semantics import resolve
from interpreter import make_execution_context, interpret
from stdlib import BUILTIN_FUNCTIONS, list_builtin_functions, stringify
from error_handling import JEZScanError, JEZParseError, JEZErrorHandler


VERSION = "JEZ v1.0.0"

# Exit statuses (sysexits.h)
EXIT_OK = 0
EXIT_USAGE = 64
EXIT_DATAERR = 65
EXIT_NOINPUT = 66
EXIT_SOFTWARE = 70


class JEZArgumentParser(argparse.ArgumentParser):
  """Argument parser that reports usage errors with EX_USAGE"""

  def error(self, message):
    self.print_usage(sys.stderr)
    print(f"{self.prog}: error: {message}", file=sys.stderr)
    sys.exit(EXIT_USAGE)


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = JEZArgumentParser(
      prog='jez',
      description='JEZ Programming Language - closures, templates and single inheritance',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s script.jez             # Run a JEZ script
  %(prog)s -i                     # Interactive mode
  %(prog)s --tokens script.jez    # Scan file and show tokens
  %(prog)s --parse script.jez     # Parse and show AST
  %(prog)s --analyze script.jez   # Parse, resolve and show scope distances
  %(prog)s --debug script.jez     # Run with debug output
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help='JEZ script file to execute'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode'
  )

  parser.add_argument(
      '--tokens',
      action='store_true',
      help='Scan file and show tokens (for debugging)'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Parse file and show AST (for debugging)'
  )

  parser.add_argument(
      '--analyze',
      action='store_true',
      help='Parse and resolve file, show scope distances (for debugging)'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Enable debug output for all stages'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


# ============================================================================
# PIPELINE
# ============================================================================

def execute_program(program: List[Stmt], source: str, context: Dict,
                    filename: str = "<input>", debug: bool = False) -> int:
  """Resolve then interpret a parsed program; returns an exit status"""
  locals, errors = resolve(program, debug)
  if errors:
    for error in errors:
      print(error, file=sys.stderr)
    return EXIT_DATAERR

  try:
    error = interpret(program, locals, context)
  except RecursionError:
    print(f"Runtime Error in '{filename}': maximum call depth exceeded", file=sys.stderr)
    return EXIT_SOFTWARE

  if error is not None:
    print(JEZErrorHandler(source, filename).format_runtime_error(error), file=sys.stderr)
    return EXIT_SOFTWARE
  return EXIT_OK


def run_source(source: str, context: Optional[Dict] = None, filename: str = "<input>",
               debug: bool = False, parser: Optional[JEZParser] = None) -> int:
  """
  Run JEZ source through scan, parse, resolve and interpret

  Returns 0 on success, 65 for scan, parse or static errors (nothing runs)
  and 70 for a runtime error (output produced before it is kept).
  """
  if parser is None:
    parser = create_debug_parser() if debug else create_parser()
  if context is None:
    context = make_execution_context(debug)

  try:
    program = parser.parse_string(source, filename)
  except JEZScanError as e:
    print(e, file=sys.stderr)
    return EXIT_DATAERR
  except JEZParseError as e:
    print(f"Parse error in '{filename}': {e}", file=sys.stderr)
    return EXIT_DATAERR

  return execute_program(program, source, context, filename, debug)


def read_script(script_path: str) -> Optional[str]:
  """Read a script, reporting unreadable files on stderr"""
  try:
    with open(script_path, 'r', encoding='utf-8') as f:
      return f.read()
  except FileNotFoundError:
    print(f"Error: Script file '{script_path}' not found", file=sys.stderr)
    print(f"  Hint: Check the file path and make sure the file exists", file=sys.stderr)
  except PermissionError:
    print(f"Error: Permission denied reading '{script_path}'", file=sys.stderr)
    print(f"  Hint: Make sure you have read permissions for this file", file=sys.stderr)
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{script_path}': {e}", file=sys.stderr)
    print(f"  Hint: Make sure the file is a text file with UTF-8 encoding", file=sys.stderr)
  return None


def run_script_file(script_path: str, debug: bool = False) -> int:
  """Run a JEZ script file"""
  source = read_script(script_path)
  if source is None:
    return EXIT_NOINPUT

  if debug:
    print(f"[run] {script_path}", file=sys.stderr)
  return run_source(source, filename=script_path, debug=debug)


# ============================================================================
# INSPECTION MODES
# ============================================================================

def show_tokens(source: str, filename: str = "<input>") -> int:
  """Print every token, or every lexical error"""
  tokens, errors = JEZTokenizer(filename).scan(source)
  if errors:
    print(JEZScanError(errors), file=sys.stderr)
    return EXIT_DATAERR
  for token in tokens:
    print(f"{token.line:4d}  {token}")
  return EXIT_OK


def show_ast(source: str, filename: str = "<input>", debug: bool = False,
             parser: Optional[JEZParser] = None) -> int:
  """Parse and print the AST"""
  parser = parser or (create_debug_parser() if debug else create_parser())
  try:
    program = parser.parse_string(source, filename)
  except (JEZScanError, JEZParseError) as e:
    print(e, file=sys.stderr)
    return EXIT_DATAERR

  print(f"Parsed {len(program)} top-level declarations:")
  print("=" * 50)
  print(pretty_print_ast(program), end='')
  return EXIT_OK


def show_resolution(source: str, filename: str = "<input>", debug: bool = False,
                    parser: Optional[JEZParser] = None) -> int:
  """Parse, resolve and print the AST with the distance table"""
  parser = parser or (create_debug_parser() if debug else create_parser())
  try:
    program = parser.parse_string(source, filename)
  except (JEZScanError, JEZParseError) as e:
    print(e, file=sys.stderr)
    return EXIT_DATAERR

  locals, errors = resolve(program, debug)
  print(pretty_print_ast(program), end='')
  print("=" * 50)
  print(f"Resolution table ({len(locals)} local references, unlisted ids are globals):")
  for node_id, distance in sorted(locals.items()):
    print(f"  #{node_id} -> {distance}")

  if errors:
    print(f"\n{len(errors)} static error(s):")
    for error in errors:
      print(f"  {error}")
    return EXIT_DATAERR
  return EXIT_OK


def inspect_file(script_path: str, mode: str, debug: bool = False) -> int:
  """Run one of the --tokens/--parse/--analyze inspections on a file"""
  source = read_script(script_path)
  if source is None:
    return EXIT_NOINPUT

  if mode == "tokens":
    return show_tokens(source, script_path)
  elif mode == "parse":
    return show_ast(source, script_path, debug)
  return show_resolution(source, script_path, debug)


# ============================================================================
# INTERACTIVE MODE
# ============================================================================

def setup_readline():
  """Setup readline with history and auto-completion"""
  if not READLINE_AVAILABLE:
    return

  # Setup history file
  history_file = os.path.expanduser("~/.jez_history")
  try:
    readline.read_history_file(history_file)
  except OSError:
    pass  # First time, no history yet, or permission denied

  readline.set_history_length(1000)

  completions = list(KEYWORDS) + list_builtin_functions() + [
      # REPL commands
      ":tokens", ":parse", ":analyze", ":env", ":help", "exit"
  ]

  def completer(text, state):
    options = [cmd for cmd in completions if cmd.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  # Save history on exit
  import atexit
  atexit.register(lambda: readline.write_history_file(history_file))


def show_environment(context: Dict) -> None:
  print("Current environment:")
  user_bindings = {k: v for k, v in context['globals']['bindings'].items()
                   if k not in BUILTIN_FUNCTIONS}
  if user_bindings:
    for name, value in user_bindings.items():
      val_str = stringify(value)
      if len(val_str) > 60:
        val_str = val_str[:57] + "..."
      print(f"  {name} = {val_str}")
  else:
    print("  (no user-defined bindings)")


def show_repl_help() -> None:
  print("REPL Commands:")
  print("  :tokens <code>    - Show tokens")
  print("  :parse <code>     - Show parsed AST")
  print("  :analyze <code>   - Show AST and scope distances")
  print("  :env              - Show global bindings")
  print("  :help             - Show this help")
  print("  exit              - Exit REPL")
  print()
  print("Language features:")
  print("  variable x = 5;                      - Variable declaration")
  print("  function add(a, b) { return a + b; } - Function declaration")
  print("  template B < A { greet() { ... } }   - Template with a superclass")
  print("  1 + 2                                - Bare expressions print their value")


def run_repl_line(code: str, parser: JEZParser, context: Dict, debug: bool = False) -> int:
  """
  Run one REPL line against the session context

  A line that does not end in ';' or '}' is tried as a bare expression
  first and its value printed.
  """
  stripped = code.strip()
  if not stripped.endswith((';', '}')):
    try:
      expression = parser.parse_expression(stripped, "<stdin>")
    except (JEZScanError, JEZParseError):
      pass
    else:
      return execute_program([Print(expression)], code, context, "<stdin>", debug)
  return run_source(code, context, "<stdin>", debug, parser)


def run_interactive_mode(debug: bool = False) -> None:
  """Run JEZ in interactive mode; globals persist between lines"""
  print(f"{VERSION} - Interactive Mode")
  print("Type 'exit' to quit, ':help' for commands")
  if READLINE_AVAILABLE:
    print("Readline enabled: Use ↑/↓ for history, Tab for completion")
  if debug:
    print("Debug mode enabled")
  print()

  setup_readline()

  parser = create_debug_parser() if debug else create_parser()
  context = make_execution_context(debug)

  while True:
    try:
      code = input("jez> ")

      if code.strip() == "exit":
        break

      if not code.strip():
        continue

      # Special commands
      if code.startswith(":tokens "):
        show_tokens(code[8:], "<stdin>")
        continue

      if code.startswith(":parse "):
        show_ast(code[7:], "<stdin>", debug, parser)
        continue

      if code.startswith(":analyze "):
        show_resolution(code[9:], "<stdin>", debug, parser)
        continue

      if code.strip() == ":env":
        show_environment(context)
        continue

      if code.strip() == ":help":
        show_repl_help()
        continue

      run_repl_line(code, parser, context, debug)

    except KeyboardInterrupt:
      print("\nGoodbye!")
      break
    except EOFError:
      print("\nGoodbye!")
      break
    except Exception as e:
      print(f"Unexpected error: {e}")
      if debug:
        import traceback
        traceback.print_exc()
      print("  Hint: If this keeps happening, try restarting or use --debug for more details")


def show_language_info() -> None:
  """Show JEZ language information"""
  print("JEZ Programming Language")
  print("=" * 50)
  print("A small dynamically typed scripting language with:")
  print("• Lexically scoped closures")
  print("• Templates (classes) with single inheritance")
  print("• Static scope resolution before execution")
  print()


def main(argv: Optional[List[str]] = None) -> int:
  """Main entry point for JEZ"""
  if argv is None:
    argv = sys.argv[1:]
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  # Every JEZ call nests several Python frames
  sys.setrecursionlimit(max(sys.getrecursionlimit(), 10000))

  if not argv:
    # No arguments - show info and start interactive mode
    show_language_info()
    print("Use 'jez --help' for command line options")
    print()
    run_interactive_mode(debug=False)
    return EXIT_OK

  if args.script:
    if args.tokens:
      return inspect_file(args.script, "tokens", args.debug)
    elif args.parse:
      return inspect_file(args.script, "parse", args.debug)
    elif args.analyze:
      return inspect_file(args.script, "analyze", args.debug)
    try:
      return run_script_file(args.script, debug=args.debug)
    except Exception as e:
      print(f"Unexpected error while executing '{args.script}': {e}", file=sys.stderr)
      if args.debug:
        import traceback
        traceback.print_exc()
      return EXIT_SOFTWARE

  if args.interactive:
    run_interactive_mode(debug=args.debug)
    return EXIT_OK

  # Flags without a script
  arg_parser.print_usage(sys.stderr)
  return EXIT_USAGE


if __name__ == "__main__":
  sys.exit(main())
