"""
Error containment tests.

Validates that failures in extension points never reach the caller.

Core principle: an experiment is research only. A failing comparator,
cleaner, ignore predicate, gate or publisher is a loss of insight, never a
change in what the caller receives.

Test strategy:
1. Make each extension point raise and throw
2. Verify the failure is routed to raised()/thrown() with the operation
3. Verify the caller still receives the control's outcome
"""

from unittest.mock import Mock

import pytest

from experiment_engine import (
    DefaultHooks,
    Experiment,
    ExperimentHooks,
    Operation,
    Thrown,
    throw,
)


def scary():
    raise RuntimeError("SCARY ERROR")


def spooked(value):
    raise RuntimeError("YOU GOT SPOOKED")


def foo():
    raise RuntimeError("foo")


class TestCompareContainment:
    """Comparator failures are reported under `compare`."""

    def test_it_reports_errors_raised_during_compare(self, hooks):
        result = (
            Experiment.new("test", hooks=hooks)
            .add_control(lambda: "control")
            .add_observable("candidate", lambda: "control")
            .compare_with(lambda a, b: scary())
            .run(return_result=True)
        )

        [(operation, error)] = hooks.raised_calls
        assert operation is Operation.COMPARE
        assert isinstance(error, RuntimeError)
        assert str(error) == "SCARY ERROR"
        assert result.is_mismatched()

    def test_it_reports_values_thrown_during_compare(self, hooks):
        (
            Experiment.new("test", hooks=hooks)
            .add_control(lambda: "control")
            .add_observable("candidate", lambda: "control")
            .compare_with(lambda a, b: throw("SCARY ERROR"))
            .run(return_result=True)
        )

        assert hooks.thrown_calls == [(Operation.COMPARE, "SCARY ERROR")]
        assert hooks.raised_calls == []

    def test_compare_failure_does_not_change_returned_value(self, hooks):
        experiment = (
            Experiment.new(hooks=hooks)
            .add_control(lambda: "control")
            .add_observable("candidate", lambda: "control")
            .compare_with(lambda a, b: scary())
        )

        assert experiment.run() == "control"


class TestCleanContainment:
    """Cleaner failures are reported under `clean` and force a mismatch."""

    def test_it_reports_errors_raised_during_clean(self, hooks):
        result = (
            Experiment.new("test", hooks=hooks)
            .add_control(lambda: "control")
            .add_observable("candidate", lambda: "control")
            .clean_with(spooked)
            .run(return_result=True)
        )

        operations = [operation for operation, _ in hooks.raised_calls]
        assert operations == [Operation.CLEAN, Operation.CLEAN]
        assert str(hooks.raised_calls[0][1]) == "YOU GOT SPOOKED"
        assert result.is_mismatched()
        assert result.control.clean_failed

    def test_it_reports_values_thrown_during_clean(self, hooks):
        (
            Experiment.new("test", hooks=hooks)
            .add_control(lambda: "control")
            .add_observable("candidate", lambda: "control")
            .clean_with(lambda value: throw("YOU GOT SPOOKED"))
            .run(return_result=True)
        )

        assert (Operation.CLEAN, "YOU GOT SPOOKED") in hooks.thrown_calls

    def test_clean_failure_on_one_side_mismatches(self, hooks):
        def clean(value):
            if value == "bad":
                raise ValueError("cannot clean")
            return value

        result = (
            Experiment.new(hooks=hooks)
            .add_control(lambda: "good")
            .add_observable("candidate", lambda: "bad")
            .compare_with(lambda a, b: True)
            .clean_with(clean)
            .run(return_result=True)
        )

        assert [c.name for c in result.mismatched] == ["candidate"]

    def test_clean_failure_does_not_change_returned_value(self, hooks):
        experiment = (
            Experiment.new(hooks=hooks)
            .add_control(lambda: "control")
            .add_observable("candidate", lambda: "control")
            .clean_with(lambda value: scary())
        )

        assert experiment.run() == "control"


class TestPublishContainment:
    """Publish failures never affect the caller."""

    def test_it_reports_errors_raised_during_publish(self, make_hooks):
        hooks = make_hooks(publish_error=RuntimeError("ka-BOOM"))

        result = (
            Experiment.new("test", hooks=hooks)
            .add_control(lambda: "control")
            .add_observable("candidate", lambda: "control")
            .run()
        )

        assert result == "control"
        [(operation, error)] = hooks.raised_calls
        assert operation is Operation.PUBLISH
        assert str(error) == "ka-BOOM"

    def test_thrown_during_publish(self, make_hooks):
        hooks = make_hooks(publish_error=Thrown("ka-BOOM"))

        assert Experiment.new(hooks=hooks).add_control(lambda: 1).run() == 1
        assert hooks.thrown_calls == [(Operation.PUBLISH, "ka-BOOM")]

    def test_publish_failure_with_return_result(self, make_hooks):
        hooks = make_hooks(publish_error=RuntimeError("ka-BOOM"))

        result = Experiment.new(hooks=hooks).add_control(lambda: 1).run(return_result=True)

        assert result.control.value == 1
        assert result.is_matched()


class TestGateContainment:
    """Failing gates are reported and treated as closed."""

    def test_it_reports_errors_raised_in_enabled(self, make_hooks):
        hooks = make_hooks(enabled=RuntimeError("WHOA"))
        calls = []

        value = (
            Experiment.new("test", hooks=hooks)
            .add_control(lambda: calls.append("control") or "control")
            .add_observable("candidate", lambda: calls.append("candidate") or "control")
            .run()
        )

        assert value == "control"
        assert calls == ["control"]
        [(operation, error)] = hooks.raised_calls
        assert operation is Operation.ENABLED
        assert str(error) == "WHOA"
        assert hooks.published == []

    def test_thrown_in_enabled(self, make_hooks):
        hooks = make_hooks(enabled=Thrown("nope"))

        assert Experiment.new(hooks=hooks).add_control(lambda: 1).run() == 1
        assert hooks.thrown_calls == [(Operation.ENABLED, "nope")]
        assert hooks.published == []

    def test_it_reports_errors_raised_in_run_if(self, hooks):
        calls = []

        value = (
            Experiment.new("test", hooks=hooks)
            .add_control(lambda: calls.append("control") or "control")
            .add_observable("candidate", lambda: calls.append("candidate") or "control")
            .set_run_if(lambda: scary())
            .run()
        )

        assert value == "control"
        assert calls == ["control"]
        assert [op for op, _ in hooks.raised_calls] == [Operation.RUN_IF]
        assert hooks.published == []

    def test_thrown_in_run_if(self, hooks):
        Experiment.new(hooks=hooks).add_control(lambda: 1).set_run_if(lambda: throw(":stop")).run()

        assert hooks.thrown_calls == [(Operation.RUN_IF, ":stop")]


class TestBeforeRunContainment:
    """before_run failures are reported and the run continues."""

    def test_before_run_error_is_contained(self, hooks):
        calls = []

        value = (
            Experiment.new(hooks=hooks)
            .add_control(lambda: calls.append("control") or "control")
            .add_observable("candidate", lambda: calls.append("candidate") or "control")
            .set_before_run(scary)
            .run()
        )

        assert value == "control"
        assert sorted(calls) == ["candidate", "control"]
        assert [op for op, _ in hooks.raised_calls] == [Operation.BEFORE_RUN]
        assert len(hooks.published) == 1


class TestIgnoreContainment:
    """Failing ignore predicates are reported and skipped."""

    def test_it_reports_errors_raised_in_an_ignore_fn(self, hooks):
        (
            Experiment.new("test", hooks=hooks)
            .add_control(lambda: 1)
            .add_observable("candidate", lambda: 2)
            .ignore(lambda a, b: foo())
            .run()
        )

        [(operation, error)] = hooks.raised_calls
        assert operation is Operation.IGNORE
        assert str(error) == "foo"

    def test_it_skips_ignore_blocks_that_raise(self, hooks):
        calls = []

        result = (
            Experiment.new("test", hooks=hooks)
            .add_control(lambda: 1)
            .add_observable("candidate", lambda: 2)
            .ignore(lambda a, b: scary())
            .ignore(lambda a, b: calls.append("two") or True)
            .run(return_result=True)
        )

        assert result.is_ignored()
        assert calls == ["two"]


class TestFailureHookSafety:
    """Hooks that fail while reporting are dropped silently."""

    def test_raised_hook_failure_does_not_propagate(self):
        hooks = Mock(spec=ExperimentHooks)
        hooks.name.return_value = "mocked"
        hooks.default_context.return_value = {}
        hooks.enabled.return_value = True
        hooks.publish.side_effect = RuntimeError("sink down")
        hooks.raised.side_effect = RuntimeError("reporter down")

        value = (
            Experiment.new(hooks=hooks)
            .add_control(lambda: "control")
            .add_observable("candidate", lambda: "control")
            .compare_with(lambda a, b: scary())
            .run()
        )

        assert value == "control"
        assert hooks.raised.call_count == 2

    def test_thrown_hook_failure_does_not_propagate(self):
        class ThrowingHooks(DefaultHooks):
            def thrown(self, experiment, operation, value):
                throw("again")

        experiment = (
            Experiment.new(hooks=ThrowingHooks())
            .add_control(lambda: "control")
            .set_run_if(lambda: throw("stop"))
        )

        assert experiment.run() == "control"

    def test_hooks_receive_the_running_experiment(self):
        hooks = Mock(spec=ExperimentHooks)
        hooks.name.return_value = "mocked"
        hooks.default_context.return_value = {}
        hooks.enabled.side_effect = RuntimeError("WHOA")

        experiment = Experiment.new(hooks=hooks).add_control(lambda: 1)
        experiment.run()

        hooks.raised.assert_called_once()
        args = hooks.raised.call_args.args
        assert args[0] is experiment
        assert args[1] is Operation.ENABLED


class TestControlFailures:
    """Control failures are the one channel that is never contained."""

    @pytest.mark.parametrize("candidate", [lambda: 1, scary, lambda: throw("x")])
    def test_control_error_propagates_regardless_of_candidates(self, hooks, candidate):
        error = ValueError("control broke")

        def control():
            raise error

        experiment = Experiment.new(hooks=hooks).add_control(control).add_observable("c", candidate)

        with pytest.raises(ValueError) as exc_info:
            experiment.run()

        assert exc_info.value is error
        assert hooks.raised_calls == []

    def test_control_throw_propagates(self, hooks):
        experiment = Experiment.new(hooks=hooks).add_control(lambda: throw(":halt"))

        with pytest.raises(Thrown) as exc_info:
            experiment.run()

        assert exc_info.value.value == ":halt"
        assert hooks.thrown_calls == []

    def test_candidate_failures_are_not_reported_as_hook_failures(self, hooks):
        experiment = (
            Experiment.new(hooks=hooks)
            .add_control(lambda: 1)
            .add_observable("raises", scary)
            .add_observable("throws", lambda: throw("x"))
        )

        result = experiment.run(return_result=True)

        assert hooks.raised_calls == []
        assert hooks.thrown_calls == []
        assert {c.name for c in result.mismatched} == {"raises", "throws"}


class Ambiguous:
    """A value whose truthiness cannot be decided, like a multi-element array."""

    def __bool__(self):
        raise ValueError("truth value of an array is ambiguous")


class ArrayLike:
    """Compares element-wise, so == returns an Ambiguous instead of a bool."""

    def __init__(self, *items):
        self.items = items

    def __eq__(self, other):
        return Ambiguous()

    __hash__ = object.__hash__


class TestAmbiguousTruthContainment:
    """Coercing an extension point's result to bool happens inside the boundary."""

    def test_default_comparator_with_ambiguous_equality(self, hooks):
        control_value = ArrayLike(1, 2)
        experiment = (
            Experiment.new("test", hooks=hooks)
            .add_control(lambda: control_value)
            .add_observable("candidate", lambda: ArrayLike(1, 2))
        )

        result = experiment.run(return_result=True)

        assert [c.name for c in result.mismatched] == ["candidate"]
        [(operation, error)] = hooks.raised_calls
        assert operation is Operation.COMPARE
        assert isinstance(error, ValueError)

        assert experiment.run() is control_value

    def test_ambiguous_enabled_closes_the_gate(self, make_hooks):
        hooks = make_hooks(enabled=Ambiguous())
        calls = []

        value = (
            Experiment.new("test", hooks=hooks)
            .add_control(lambda: calls.append("control") or "control")
            .add_observable("candidate", lambda: calls.append("candidate") or "control")
            .run()
        )

        assert value == "control"
        assert calls == ["control"]
        assert [op for op, _ in hooks.raised_calls] == [Operation.ENABLED]
        assert hooks.published == []

    def test_ambiguous_run_if_closes_the_gate(self, hooks):
        calls = []

        value = (
            Experiment.new("test", hooks=hooks)
            .add_control(lambda: calls.append("control") or "control")
            .add_observable("candidate", lambda: calls.append("candidate") or "control")
            .set_run_if(lambda: Ambiguous())
            .run()
        )

        assert value == "control"
        assert calls == ["control"]
        [(operation, error)] = hooks.raised_calls
        assert operation is Operation.RUN_IF
        assert isinstance(error, ValueError)

    def test_ambiguous_ignore_predicate_is_skipped(self, hooks):
        result = (
            Experiment.new("test", hooks=hooks)
            .add_control(lambda: 1)
            .add_observable("candidate", lambda: 2)
            .ignore(lambda a, b: Ambiguous())
            .ignore(lambda a, b: True)
            .run(return_result=True)
        )

        assert result.is_ignored()
        [(operation, error)] = hooks.raised_calls
        assert operation is Operation.IGNORE
        assert isinstance(error, ValueError)
