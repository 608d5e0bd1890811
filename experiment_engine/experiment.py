"""
Experiment definition and builder.

An Experiment is an immutable value. Every builder method returns a new
Experiment and leaves the receiver untouched, so one Experiment can be
shared and run concurrently without coordination.

    experiment = (
        Experiment.new("widget-permissions", context={"user": user_id})
        .add_control(lambda: legacy_permissions(user_id))
        .add_observable("rewrite", lambda: new_permissions(user_id))
        .compare_with(lambda control, candidate: set(control) == set(candidate))
    )
    allowed = experiment.run()
"""

import operator
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Tuple

from experiment_engine import runner
from experiment_engine.boundary import Operation, contain_truth
from experiment_engine.errors import ConfigurationError
from experiment_engine.hooks import DefaultHooks, ExperimentHooks
from experiment_engine.observation import Observation
from experiment_engine.runner import CONTROL


def _always() -> bool:
    return True


@dataclass(frozen=True, eq=False)
class Experiment:
    """Control and candidate behaviors plus the configuration for comparing them."""

    name: str
    hooks: ExperimentHooks = field(default_factory=DefaultHooks, repr=False)
    context: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    behaviors: Mapping[str, Callable[[], Any]] = field(
        default_factory=lambda: MappingProxyType({}), repr=False
    )
    comparator: Callable[[Any, Any], bool] = field(default=operator.eq, repr=False)
    cleaner: Optional[Callable[[Any], Any]] = field(default=None, repr=False)
    ignores: Tuple[Callable[[Observation, Observation], bool], ...] = field(
        default=(), repr=False
    )
    run_if: Callable[[], bool] = field(default=_always, repr=False)
    before_run: Optional[Callable[[], Any]] = field(default=None, repr=False)

    @classmethod
    def new(
        cls,
        name: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
        hooks: Optional[ExperimentHooks] = None,
    ) -> "Experiment":
        """
        Create an experiment.

        Args:
            name: Experiment name. Defaults to hooks.name().
            context: Context data, overlaid on hooks.default_context() per key
            hooks: Capability set. Defaults to DefaultHooks().

        Returns:
            Experiment without behaviors
        """
        hooks = hooks or DefaultHooks()
        merged = dict(hooks.default_context())
        merged.update(context or {})
        return cls(
            name=name if name is not None else hooks.name(),
            hooks=hooks,
            context=MappingProxyType(merged),
        )

    @property
    def control(self) -> Optional[Callable[[], Any]]:
        return self.behaviors.get(CONTROL)

    @property
    def candidates(self) -> Mapping[str, Callable[[], Any]]:
        return MappingProxyType({k: v for k, v in self.behaviors.items() if k != CONTROL})

    def _with_behavior(self, name: str, fn: Callable[[], Any]) -> "Experiment":
        behaviors = dict(self.behaviors)
        behaviors[name] = fn
        return replace(self, behaviors=MappingProxyType(behaviors))

    def add_control(self, fn: Callable[[], Any]) -> "Experiment":
        """
        Register the control behavior.

        Raises:
            ConfigurationError: If a control is already registered
        """
        if CONTROL in self.behaviors:
            raise ConfigurationError(f"Experiment '{self.name}' already has a control")
        return self._with_behavior(CONTROL, fn)

    def add_observable(self, name: str, fn: Callable[[], Any]) -> "Experiment":
        """
        Register a candidate behavior.

        Raises:
            ConfigurationError: If name is "control" or already registered
        """
        if name == CONTROL:
            raise ConfigurationError(
                f"Candidate name '{CONTROL}' is reserved; use add_control()"
            )
        if name in self.behaviors:
            raise ConfigurationError(
                f"Experiment '{self.name}' already has a candidate named '{name}'"
            )
        return self._with_behavior(name, fn)

    def compare_with(self, fn: Callable[[Any, Any], bool]) -> "Experiment":
        """Replace the comparator (default: ==)."""
        return replace(self, comparator=fn)

    def clean_with(self, fn: Callable[[Any], Any]) -> "Experiment":
        """Set the cleaner applied to observed values before comparison."""
        return replace(self, cleaner=fn)

    def ignore(self, fn: Callable[[Observation, Observation], bool]) -> "Experiment":
        """Append an ignore predicate for mismatching pairs."""
        return replace(self, ignores=self.ignores + (fn,))

    def set_run_if(self, fn: Callable[[], bool]) -> "Experiment":
        return replace(self, run_if=fn)

    def set_before_run(self, fn: Callable[[], Any]) -> "Experiment":
        return replace(self, before_run=fn)

    def should_ignore_mismatch(self, control: Observation, candidate: Observation) -> bool:
        return should_ignore_mismatch(self, control, candidate)

    def run(
        self,
        return_result: bool = False,
        parallel: Optional[bool] = None,
        rng: Optional[Any] = None,
    ) -> Any:
        """Run the experiment. See experiment_engine.runner.run."""
        return runner.run(self, return_result=return_result, parallel=parallel, rng=rng)


def should_ignore_mismatch(
    experiment: Experiment,
    control: Observation,
    candidate: Observation,
) -> bool:
    """
    Decide whether a mismatching pair should be reported as ignored.

    Predicates run in registration order and stop at the first true. A
    predicate that fails is reported under the `ignore` operation and
    skipped.

    Args:
        experiment: Experiment holding the ignore predicates
        control: Control observation
        candidate: Candidate observation already known to mismatch

    Returns:
        True if any predicate excused the mismatch
    """
    for predicate in experiment.ignores:
        if contain_truth(experiment, Operation.IGNORE, predicate, control, candidate):
            return True
    return False
