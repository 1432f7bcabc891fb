"""Tests for ``treebind.engine.dispatcher``: ordering, stacks, params and unwind."""

from __future__ import annotations

import pytest

from conftest import Failing, Pusher
from treebind.core.errors import (
    ConfigurationError,
    EmptyStackError,
    ImbalanceError,
    RuleCallbackError,
    StackImbalanceError,
    UnterminatedDocumentError,
)
from treebind.core.settings import BinderSettings
from treebind.engine import UNSET, DispatchEngine, EngineState, Rule
from treebind.engine.events import document, element, text


class Collector(Rule):
    """Allocates a buffer on begin and records the consumed values on end."""

    def __init__(self, size, results):
        self.size = size
        self.results = results

    def begin(self, context, path, attributes):
        context.allocate_params(self.size)

    def end(self, context, path):
        if not context.aborting:
            self.results.append(context.consume_params())


class Writer(Rule):
    """Writes the element body into a parameter slot."""

    def __init__(self, index=None):
        self.index = index

    def body(self, context, path, text):
        context.set_param(self.index, text)


class NamedPusher(Rule):
    def begin(self, context, path, attributes):
        context.push_named("ids", attributes.get("id"))


class NetPusher(Pusher):
    leaves_net_push = True


# =============================================================================
# Ordering
# =============================================================================


class TestOrdering:
    def test_nested_begin_body_end(self, table, make_engine, recorder_factory, events_log):
        table.register("a", recorder_factory("A"))
        table.register("a/b", recorder_factory("B"))

        make_engine().replay(document(element("a", "x", element("b", "y", attributes={"k": "v"}), "z")))

        assert events_log == [
            ("A", "begin", "a", {}),
            ("B", "begin", "a/b", {"k": "v"}),
            ("B", "body", "a/b", "y"),
            ("B", "end", "a/b", False),
            ("A", "body", "a", "xz"),
            ("A", "end", "a", False),
        ]

    def test_exact_rule_begins_before_wildcard(self, table, make_engine, recorder_factory, events_log):
        table.register("a/*/c", recorder_factory("wild"))
        table.register("a/b/c", recorder_factory("exact"))

        make_engine().replay(document(element("a", element("b", element("c")))))

        begins = [(label, path) for label, phase, path, _ in events_log if phase == "begin"]
        assert begins == [("exact", "a/b/c"), ("wild", "a/b/c")]

    def test_same_element_closes_in_reverse_begin_order(self, table, make_engine, recorder_factory, events_log):
        table.register("a", recorder_factory("suffix"))
        table.register("/a", recorder_factory("exact"))

        make_engine().replay(document(element("a")))

        assert [(label, phase) for label, phase, _, _ in events_log] == [
            ("exact", "begin"),
            ("suffix", "begin"),
            ("suffix", "body"),
            ("suffix", "end"),
            ("exact", "body"),
            ("exact", "end"),
        ]

    def test_identical_runs_are_identical(self, table, strict_settings, recorder_factory, events_log):
        for pattern in ("**", "b", "/a/b", "a/*", "*"):
            table.register(pattern, recorder_factory(pattern))
        doc = list(document(element("a", element("b", "t"), element("c"))))

        engine = DispatchEngine(table, settings=strict_settings)
        engine.replay(doc)
        first = list(events_log)
        events_log.clear()
        engine.reset()
        engine.replay(doc)

        assert events_log == first

    def test_unmatched_elements_are_silent(self, table, make_engine, recorder_factory, events_log):
        table.register("/a/b", recorder_factory("B"))
        make_engine().replay(document(element("a", element("c"), element("b"))))
        assert [e[2] for e in events_log] == ["a/b", "a/b", "a/b"]

    def test_listener_sees_every_callback(self, table, make_engine, recorder_factory):
        table.register("a", recorder_factory("A"))
        records = []
        make_engine(listener=records.append).replay(document(element("a")))
        assert [(r.phase, r.path, r.pattern, r.depth) for r in records] == [
            ("begin", "a", "a", 1),
            ("body", "a", "a", 1),
            ("end", "a", "a", 1),
        ]


# =============================================================================
# Text
# =============================================================================


class TestText:
    def test_mixed_content_keeps_own_text(self, table, make_engine, recorder_factory, events_log):
        table.register("p", recorder_factory("P"))
        table.register("em", recorder_factory("EM"))

        make_engine().replay(document(element("p", "Hello ", element("em", "big"), " world")))

        bodies = {label: detail for label, phase, _, detail in events_log if phase == "body"}
        assert bodies == {"P": "Hello  world", "EM": "big"}

    def test_chunked_text_is_joined(self, table, make_engine, recorder_factory, events_log):
        table.register("a", recorder_factory("A"))
        make_engine().replay(document(element("a", "ab", "cd", text("ef"))))
        assert ("A", "body", "a", "abcdef") in events_log

    def test_text_outside_root_is_ignored(self, make_engine):
        engine = make_engine()
        engine.start_document()
        engine.text("prolog")
        engine.end_document()
        assert engine.state is EngineState.IDLE


# =============================================================================
# Protocol
# =============================================================================


class TestProtocol:
    def test_close_without_open(self, make_engine):
        engine = make_engine()
        engine.start_document()
        with pytest.raises(ImbalanceError):
            engine.close_element()

    def test_events_outside_document(self, make_engine):
        engine = make_engine()
        with pytest.raises(ImbalanceError, match="outside a document"):
            engine.open_element(None, "a")

    def test_start_twice(self, make_engine):
        engine = make_engine()
        engine.start_document()
        with pytest.raises(ImbalanceError):
            engine.start_document()

    def test_reuse_requires_reset(self, make_engine):
        engine = make_engine()
        engine.replay(document(element("a")))
        with pytest.raises(ConfigurationError, match="reset"):
            engine.start_document()
        engine.reset()
        engine.replay(document(element("a")))

    def test_reset_during_document(self, make_engine):
        engine = make_engine()
        engine.start_document()
        with pytest.raises(ImbalanceError):
            engine.reset()

    def test_table_frozen_by_first_document(self, table, make_engine, recorder_factory):
        engine = make_engine()
        engine.start_document()
        with pytest.raises(ConfigurationError):
            table.register("a", recorder_factory("late"))

    def test_unterminated_document_unwinds(self, table, make_engine, recorder_factory, events_log):
        table.register("a", recorder_factory("A"))
        table.register("b", recorder_factory("B"))
        engine = make_engine()
        engine.start_document()
        engine.open_element(None, "a")
        engine.open_element(None, "b")

        with pytest.raises(UnterminatedDocumentError) as exc_info:
            engine.end_document()

        assert exc_info.value.open_path == ("a", "b")
        assert events_log[2:] == [("B", "end", "a/b", True), ("A", "end", "a", True)]
        assert engine.state is EngineState.IDLE
        assert engine.depth == 0

    def test_activation_outside_callback(self, make_engine):
        with pytest.raises(ImbalanceError):
            make_engine().context.activation


# =============================================================================
# Object stack
# =============================================================================


class TestObjectStack:
    def test_root_is_first_push(self, table, make_engine):
        first, second = object(), object()
        table.register("/a", NetPusher(first))
        table.register("/a/b", NetPusher(second))
        root = make_engine().replay(document(element("a", element("b"))))
        assert root is first

    def test_prepushed_root(self, table, make_engine):
        root = object()
        table.register("a", NetPusher())
        engine = make_engine()
        engine.push_object(root)
        assert engine.replay(document(element("a"))) is root

    def test_strict_imbalance_raises(self, table, make_engine):
        table.register("a", Pusher())
        with pytest.raises(StackImbalanceError) as exc_info:
            make_engine().replay(document(element("a")))
        assert (exc_info.value.expected, exc_info.value.actual) == (0, 1)
        assert exc_info.value.context.rule == "Pusher"

    def test_warn_mode_continues(self, table):
        table.register("a", Pusher())
        engine = DispatchEngine(table, settings=BinderSettings(stack_check="warn", _env_file=None))
        engine.replay(document(element("a")))
        assert engine.stacks.objects.depth == 1

    def test_off_mode(self, table):
        table.register("a", Pusher())
        engine = DispatchEngine(table, settings=BinderSettings(stack_check="off", _env_file=None))
        engine.replay(document(element("a")))
        assert engine.state is EngineState.IDLE

    def test_pop_empty_stack_is_wrapped(self, table, make_engine):
        class Popper(Rule):
            def begin(self, context, path, attributes):
                context.pop_object()

        table.register("a", Popper())
        with pytest.raises(RuleCallbackError) as exc_info:
            make_engine().replay(document(element("a")))
        assert isinstance(exc_info.value.cause, EmptyStackError)


# =============================================================================
# Call parameters
# =============================================================================


class TestParams:
    def test_unset_slots(self, table, make_engine):
        results = []
        table.register("call", Collector(2, results))
        table.register("call/second", Writer(1))

        make_engine().replay(document(element("call", element("second", "2"))))

        assert results == [[UNSET, "2"]]

    def test_nearest_enclosing_buffer(self, table, make_engine):
        results = []
        table.register("call", Collector(2, results))
        table.register("call/arg", Writer())

        make_engine().replay(
            document(
                element(
                    "call",
                    element("arg", "1"),
                    element("call", element("arg", "2")),
                    element("arg", "3"),
                )
            )
        )

        assert results == [["2", UNSET], ["1", "3"]]

    def test_variable_buffer(self, table, make_engine):
        results = []
        table.register("call", Collector(None, results))
        table.register("call/arg", Writer())
        make_engine().replay(document(element("call", *(element("arg", str(i)) for i in range(4)))))
        assert results == [["0", "1", "2", "3"]]

    def test_unconsumed_buffer_is_released(self, table, make_engine):
        class Allocator(Rule):
            def begin(self, context, path, attributes):
                context.allocate_params(1)

        table.register("a", Allocator())
        engine = make_engine()
        engine.replay(document(element("a")))
        assert engine.stacks.params.depth == 0

    def test_set_param_without_buffer(self, table, make_engine):
        table.register("a", Writer(0))
        with pytest.raises(RuleCallbackError) as exc_info:
            make_engine().replay(document(element("a", "x")))
        assert isinstance(exc_info.value.cause, EmptyStackError)

    def test_consume_without_owning(self, table, make_engine):
        class Thief(Rule):
            def end(self, context, path):
                context.consume_params()

        results = []
        table.register("call", Collector(1, results))
        table.register("call/x", Thief())
        with pytest.raises(RuleCallbackError) as exc_info:
            make_engine().replay(document(element("call", element("x"))))
        assert isinstance(exc_info.value.cause, ImbalanceError)
        assert results == []

    def test_double_allocation(self, table, make_engine):
        class Greedy(Rule):
            def begin(self, context, path, attributes):
                context.allocate_params(1)
                context.allocate_params(1)

        table.register("a", Greedy())
        with pytest.raises(RuleCallbackError, match="already owns"):
            make_engine().replay(document(element("a")))


# =============================================================================
# Activation state
# =============================================================================


class TestActivationState:
    def test_state_is_per_occurrence(self, table, make_engine):
        seen = []

        class DepthRule(Rule):
            def begin(self, context, path, attributes):
                context.activation.state["depth"] = len(path)

            def end(self, context, path):
                seen.append((context.activation.state["depth"], len(path)))

        table.register("section", DepthRule())
        make_engine().replay(document(element("section", element("section", element("section")))))
        assert seen == [(3, 3), (2, 2), (1, 1)]

    def test_current_path_inside_callback(self, table, make_engine):
        seen = []

        class Where(Rule):
            def begin(self, context, path, attributes):
                seen.append((context.current_path() == path, context.match_path))

        table.register("*", Where())
        make_engine().replay(document(element("a", element("b"))))
        assert seen == [(True, "a"), (True, "a/b")]


# =============================================================================
# Error unwind
# =============================================================================


class TestErrorUnwind:
    def test_begin_failure(self, table, make_engine, recorder_factory, events_log):
        table.register("a", recorder_factory("A"))
        table.register("a/b", recorder_factory("B1"))
        table.register("a/b", Failing("begin"))
        table.register("a/b", recorder_factory("B2"))
        engine = make_engine()

        with pytest.raises(RuleCallbackError) as exc_info:
            engine.replay(document(element("a", element("b"))))

        assert events_log == [
            ("A", "begin", "a", {}),
            ("B1", "begin", "a/b", {}),
            ("B1", "end", "a/b", True),
            ("A", "end", "a", True),
        ]
        error = exc_info.value
        assert error.context.phase == "begin"
        assert error.context.path == "a/b"
        assert error.context.pattern == "a/b"
        assert error.context.rule == "Failing"
        assert isinstance(error.__cause__, ValueError)
        assert engine.state is EngineState.IDLE

    def test_end_failure_does_not_end_twice(self, table, make_engine, recorder_factory, events_log):
        table.register("a", recorder_factory("A"))
        table.register("a/b", recorder_factory("B1"))
        table.register("a/b", Failing("end"))

        with pytest.raises(RuleCallbackError) as exc_info:
            make_engine().replay(document(element("a", element("b"))))

        assert exc_info.value.context.phase == "end"
        assert events_log == [
            ("A", "begin", "a", {}),
            ("B1", "begin", "a/b", {}),
            ("B1", "end", "a/b", True),
            ("A", "end", "a", True),
        ]

    def test_body_failure_still_ends_the_failing_rule(self, table, make_engine):
        ended = []

        class BadBody(Rule):
            def body(self, context, path, text):
                raise RuntimeError("bad body")

            def end(self, context, path):
                ended.append(context.aborting)

        table.register("a", BadBody())
        with pytest.raises(RuleCallbackError, match="bad body"):
            make_engine().replay(document(element("a")))
        assert ended == [True]

    def test_cleanup_errors_are_noted(self, table, make_engine):
        table.register("a", Failing("end", RuntimeError("cleanup")))
        table.register("a/b", Failing("begin", KeyError("k")))

        with pytest.raises(RuleCallbackError) as exc_info:
            make_engine().replay(document(element("a", element("b"))))

        assert isinstance(exc_info.value.cause, KeyError)
        assert any("during cleanup" in note for note in exc_info.value.__notes__)

    def test_stacks_restored(self, table, make_engine):
        root = object()
        table.register("a", NetPusher())
        table.register("a", NamedPusher())
        table.register("a/b", Collector(1, []))
        table.register("a/b/c", Failing("begin"))
        engine = make_engine()
        engine.push_object(root)

        with pytest.raises(RuleCallbackError):
            engine.replay(document(element("a", element("b", element("c")), attributes={"id": "1"})))

        assert engine.stacks.objects.depth == 1
        assert engine.root is root
        assert engine.stacks.params.depth == 0
        assert engine.stacks.named_keys() == []
        assert engine.open_activations() == []

    def test_interrupt_still_unwinds(self, table, make_engine, recorder_factory, events_log):
        table.register("a", Pusher())
        table.register("a", recorder_factory("A"))
        table.register("a/b", Failing("begin", KeyboardInterrupt()))
        engine = make_engine()

        with pytest.raises(KeyboardInterrupt):
            engine.replay(document(element("a", element("b"))))

        assert events_log == [
            ("A", "begin", "a", {}),
            ("A", "end", "a", True),
        ]
        assert engine.state is EngineState.IDLE
        assert engine.stacks.objects.depth == 0
        assert engine.open_activations() == []
