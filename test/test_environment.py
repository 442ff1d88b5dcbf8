"""
Environment tests for JEZ
Frames, lookups through the enclosing chain and resolved-distance access
"""

import pytest

from environment import (
    make_runtime_env, env_define, env_get, env_assign, env_ancestor,
    env_get_at, env_assign_at, env_depth,
)
from error_handling import JEZRuntimeError
from syntax_tree import Token, TokenType


def name(lexeme, line=1):
  return Token(TokenType.IDENTIFIER, lexeme, None, line)


@pytest.fixture
def frames():
  """global <- outer <- inner"""
  global_env = make_runtime_env()
  outer = make_runtime_env(global_env)
  inner = make_runtime_env(outer)
  return global_env, outer, inner


class TestEnvironment:
  """Test frame operations"""

  def test_define_and_get(self):
    env = make_runtime_env()
    env_define(env, "a", 1.0)
    assert env_get(env, name("a")) == 1.0

  def test_define_overwrites(self):
    env = make_runtime_env()
    env_define(env, "a", 1.0)
    env_define(env, "a", "two")
    assert env_get(env, name("a")) == "two"

  def test_get_searches_enclosing_frames(self, frames):
    global_env, outer, inner = frames
    env_define(global_env, "a", "global")
    assert env_get(inner, name("a")) == "global"

  def test_inner_definition_shadows(self, frames):
    global_env, outer, inner = frames
    env_define(global_env, "a", "global")
    env_define(inner, "a", "inner")
    assert env_get(inner, name("a")) == "inner"
    assert env_get(outer, name("a")) == "global"

  def test_get_undefined_fails(self, frames):
    _, _, inner = frames
    with pytest.raises(JEZRuntimeError) as excinfo:
      env_get(inner, name("missing", line=7))
    assert excinfo.value.message == "Variable 'missing' has not been created."
    assert excinfo.value.line == 7

  def test_assign_updates_the_defining_frame(self, frames):
    global_env, outer, inner = frames
    env_define(outer, "a", 1.0)
    env_assign(inner, name("a"), 2.0)
    assert outer['bindings']["a"] == 2.0
    assert "a" not in inner['bindings']

  def test_assign_never_creates_a_binding(self, frames):
    global_env, _, inner = frames
    with pytest.raises(JEZRuntimeError):
      env_assign(inner, name("a"), 1.0)
    assert "a" not in global_env['bindings']

  def test_none_is_a_real_binding(self):
    env = make_runtime_env()
    env_define(env, "a", None)
    assert env_get(env, name("a")) is None
    env_assign(env, name("a"), 3.0)
    assert env_get(env, name("a")) == 3.0

  def test_ancestor(self, frames):
    global_env, outer, inner = frames
    assert env_ancestor(inner, 0) is inner
    assert env_ancestor(inner, 1) is outer
    assert env_ancestor(inner, 2) is global_env

  def test_get_at_does_not_search(self, frames):
    global_env, outer, inner = frames
    env_define(global_env, "a", "global")
    env_define(outer, "a", "outer")
    assert env_get_at(inner, 1, "a") == "outer"
    assert env_get_at(inner, 2, "a") == "global"

  def test_assign_at(self, frames):
    global_env, outer, inner = frames
    env_define(global_env, "a", "global")
    env_define(outer, "a", "outer")
    env_assign_at(inner, 2, name("a"), "changed")
    assert global_env['bindings']["a"] == "changed"
    assert outer['bindings']["a"] == "outer"

  def test_shared_frame_mutation_is_visible(self):
    """Two frames closing over one parent see each other's writes"""
    shared = make_runtime_env()
    env_define(shared, "count", 0.0)
    first = make_runtime_env(shared)
    second = make_runtime_env(shared)
    env_assign(first, name("count"), 5.0)
    assert env_get(second, name("count")) == 5.0

  def test_depth(self, frames):
    global_env, _, inner = frames
    assert env_depth(global_env) == 0
    assert env_depth(inner) == 2
