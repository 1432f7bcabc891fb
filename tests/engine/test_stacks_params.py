"""Tests for ``treebind.engine.stacks`` and ``treebind.engine.params``."""

from __future__ import annotations

import pickle

import pytest

from treebind.core.errors import ConfigurationError, EmptyStackError
from treebind.engine.params import UNSET, ParamBuffer
from treebind.engine.stacks import ContextStacks, Stack


class TestStack:
    def test_push_pop_peek(self):
        stack = Stack("objects")
        stack.push(1)
        stack.push(2)
        assert stack.peek() == 2
        assert stack.peek(1) == 1
        assert stack.bottom() == 1
        assert stack.pop() == 2
        assert stack.depth == 1

    def test_pop_empty_names_the_stack(self):
        with pytest.raises(EmptyStackError, match="objects") as exc_info:
            Stack("objects").pop()
        assert exc_info.value.stack == "objects"

    def test_peek_too_deep(self):
        stack = Stack("objects")
        stack.push(1)
        with pytest.raises(EmptyStackError):
            stack.peek(1)
        with pytest.raises(EmptyStackError):
            stack.peek(-1)

    def test_truncate_returns_dropped_top_first(self):
        stack = Stack("objects")
        for i in range(5):
            stack.push(i)
        assert stack.truncate(2) == [4, 3, 2]
        assert list(stack) == [1, 0]

    def test_truthiness(self):
        stack = Stack("x")
        assert not stack
        stack.push(None)
        assert stack


class TestContextStacks:
    def test_named_stacks_are_independent(self):
        stacks = ContextStacks()
        stacks.named("a").push(1)
        stacks.named("b").push(2)
        assert stacks.named("a").peek() == 1
        assert stacks.has_named("a")
        assert not stacks.has_named("c")
        assert stacks.named_keys() == ["a", "b"]

    def test_top_params_empty(self):
        with pytest.raises(EmptyStackError, match="No parameter buffer"):
            ContextStacks().top_params()

    def test_depths(self):
        stacks = ContextStacks()
        stacks.objects.push(object())
        stacks.named("k").push(1)
        assert stacks.depths() == {"objects": 1, "params": 0, "named:k": 1}

    def test_clear(self):
        stacks = ContextStacks()
        stacks.objects.push(1)
        stacks.params.push(ParamBuffer(1))
        stacks.named("k").push(1)
        stacks.clear()
        assert stacks.depths() == {"objects": 0, "params": 0}


class TestUnset:
    def test_singleton_and_falsy(self):
        assert type(UNSET)() is UNSET
        assert not UNSET
        assert repr(UNSET) == "UNSET"

    def test_survives_pickle(self):
        assert pickle.loads(pickle.dumps(UNSET)) is UNSET


class TestParamBuffer:
    def test_fixed_buffer_starts_unset(self):
        buffer = ParamBuffer(3)
        assert buffer.values() == [UNSET, UNSET, UNSET]
        assert buffer.written == 0

    def test_set_by_index(self):
        buffer = ParamBuffer(2)
        assert buffer.set(1, "b") == 1
        assert buffer.values() == [UNSET, "b"]
        assert buffer.get(0) is UNSET

    def test_next_free_slot(self):
        buffer = ParamBuffer(3)
        buffer.set(1, "b")
        assert buffer.set(None, "a") == 0
        assert buffer.set(None, "c") == 2
        assert buffer.values() == ["a", "b", "c"]

    def test_fixed_buffer_out_of_range(self):
        buffer = ParamBuffer(1)
        with pytest.raises(IndexError):
            buffer.set(1, "x")
        with pytest.raises(IndexError):
            buffer.set(-1, "x")

    def test_variable_buffer_grows(self):
        buffer = ParamBuffer(None)
        assert buffer.variable
        buffer.set(None, "a")
        buffer.set(3, "d")
        assert buffer.values() == ["a", UNSET, UNSET, "d"]
        assert len(buffer) == 4

    def test_negative_size_rejected(self):
        with pytest.raises(ConfigurationError):
            ParamBuffer(-1)
