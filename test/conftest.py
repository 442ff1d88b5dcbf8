"""
Test configuration for JEZ tests
"""

import io
import sys
from collections import namedtuple
from pathlib import Path

import pytest

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from parsing import create_parser
from semantics import resolve
from interpreter import interpret


JEZRun = namedtuple('JEZRun', ['lines', 'static_errors', 'runtime_error'])


@pytest.fixture(scope="session")
def jez_parser():
  """One parser for the whole session; building the grammar is slow"""
  return create_parser()


@pytest.fixture
def run_jez(jez_parser):
  """Run source through parse, resolve and interpret, capturing print output"""
  def run(source: str) -> JEZRun:
    program = jez_parser.parse_string(source)
    locals, static_errors = resolve(program)
    output = io.StringIO()
    runtime_error = None
    if not static_errors:
      runtime_error = interpret(program, locals, output=output)
    return JEZRun(output.getvalue().splitlines(), static_errors, runtime_error)
  return run


@pytest.fixture
def examples_dir():
  """Get the examples directory path"""
  return project_root / "examples"
