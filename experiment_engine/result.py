"""
Result: classified comparison of one control observation against its candidates.

Classification per candidate:
- matched: both sides succeeded, both cleaned (if a cleaner ran) and the
  comparator returned true
- ignored: a mismatch that an ignore predicate excused
- mismatched: everything else (any failure, a failed clean, a comparator
  returning false or failing)
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from experiment_engine.boundary import Operation, contain_truth
from experiment_engine.observation import Observation


class ObservationSummary(BaseModel):
    """Serializable snapshot of an Observation."""

    name: str
    value: Optional[str] = None  # repr of the comparable value
    failure: Optional[str] = None  # "raised: RuntimeError('boom')"
    duration_ms: float = 0.0
    clean_failed: bool = False

    model_config = ConfigDict(frozen=True)


class ResultSummary(BaseModel):
    """Serializable snapshot of a Result, used by publishers and logs."""

    experiment: str
    context: Dict[str, str] = Field(default_factory=dict)
    matched: bool
    ignored: bool
    control: ObservationSummary
    candidates: List[ObservationSummary] = Field(default_factory=list)
    mismatched_names: List[str] = Field(default_factory=list)
    ignored_names: List[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(frozen=True)


def _summarize(observation: Observation) -> ObservationSummary:
    if observation.failed:
        return ObservationSummary(
            name=observation.name,
            failure=observation.failure.describe(),
            duration_ms=observation.duration * 1000,
        )
    return ObservationSummary(
        name=observation.name,
        value=None if observation.clean_failed else repr(observation.comparable_value),
        duration_ms=observation.duration * 1000,
        clean_failed=observation.clean_failed,
    )


def observations_match(experiment: Any, control: Observation, candidate: Observation) -> bool:
    """
    Compare a candidate against the control.

    Any failure on either side is a mismatch, including both sides failing.
    The comparator runs inside the containment boundary; if it fails the
    pair is a mismatch.
    """
    if control.failed or candidate.failed:
        return False
    if control.clean_failed or candidate.clean_failed:
        return False

    return contain_truth(
        experiment,
        Operation.COMPARE,
        experiment.comparator,
        control.comparable_value,
        candidate.comparable_value,
    )


@dataclass(frozen=True)
class Result:
    """Outcome of one experiment run."""

    experiment: Any = field(repr=False, compare=False)
    control: Observation
    candidates: Tuple[Observation, ...] = ()
    matched: Tuple[Observation, ...] = ()
    mismatched: Tuple[Observation, ...] = ()
    ignored: Tuple[Observation, ...] = ()

    @classmethod
    def build(
        cls,
        experiment: Any,
        control: Observation,
        candidates: Tuple[Observation, ...],
    ) -> "Result":
        """
        Classify every candidate against the control.

        Args:
            experiment: Experiment supplying comparator and ignore predicates
            control: Control observation
            candidates: Candidate observations in execution order

        Returns:
            Result with matched/mismatched/ignored partitions
        """
        matched: List[Observation] = []
        mismatched: List[Observation] = []
        ignored: List[Observation] = []

        for candidate in candidates:
            if observations_match(experiment, control, candidate):
                matched.append(candidate)
            elif experiment.should_ignore_mismatch(control, candidate):
                ignored.append(candidate)
            else:
                mismatched.append(candidate)

        return cls(
            experiment=experiment,
            control=control,
            candidates=tuple(candidates),
            matched=tuple(matched),
            mismatched=tuple(mismatched),
            ignored=tuple(ignored),
        )

    @property
    def observations(self) -> Tuple[Observation, ...]:
        return (self.control,) + self.candidates

    def is_matched(self) -> bool:
        """True iff no candidate mismatched and none was ignored."""
        return not self.mismatched and not self.ignored

    def is_ignored(self) -> bool:
        return bool(self.ignored)

    def is_mismatched(self) -> bool:
        return bool(self.mismatched)

    def summary(self) -> ResultSummary:
        """Build a serializable summary of this result."""
        return ResultSummary(
            experiment=str(self.experiment.name),
            context={str(k): repr(v) for k, v in self.experiment.context.items()},
            matched=self.is_matched(),
            ignored=self.is_ignored(),
            control=_summarize(self.control),
            candidates=[_summarize(c) for c in self.candidates],
            mismatched_names=[c.name for c in self.mismatched],
            ignored_names=[c.name for c in self.ignored],
        )
