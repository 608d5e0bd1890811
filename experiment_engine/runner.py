"""
Experiment runner.

run() order of operations:
1. Require a control
2. Gate on hooks.enabled() then experiment.run_if(); a closed gate (or a
   gate that fails) runs the control alone, exactly as a direct call would
3. before_run()
4. Execute every behavior once, in a freshly shuffled order
5. Clean observed values
6. Classify candidates into a Result
7. Publish the Result
8. Return the control's value or re-raise its exception

Only the control's failure and configuration errors ever reach the caller.
"""

import logging
import random
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Any, Callable, List, Optional, Tuple

from experiment_engine.boundary import Operation, contain, contain_truth
from experiment_engine.config import get_config
from experiment_engine.errors import ConfigurationError
from experiment_engine.observation import Observation
from experiment_engine.result import Result


logger = logging.getLogger(__name__)

CONTROL = "control"

_random = random.Random()


def run(
    experiment: Any,
    return_result: bool = False,
    parallel: Optional[bool] = None,
    rng: Optional[random.Random] = None,
) -> Any:
    """
    Run an experiment.

    Args:
        experiment: Experiment to run
        return_result: Return the Result instead of the control's value.
                       Ignored when gating skips the experiment.
        parallel: Execute behaviors on a thread pool. None uses the
                  EXPERIMENT_PARALLEL setting.
        rng: Random source for the execution order (default: module RNG)

    Returns:
        The control's value, or the Result when return_result is set

    Raises:
        ConfigurationError: If the experiment has no control
        Exception: Whatever the control raised, unmodified
    """
    control = experiment.behaviors.get(CONTROL)
    if control is None:
        raise ConfigurationError(f"Experiment '{experiment.name}' has no control")

    if not _gate_open(experiment, Operation.ENABLED, experiment.hooks.enabled):
        logger.debug(f"Experiment '{experiment.name}' disabled; running control only")
        return control()

    if not _gate_open(experiment, Operation.RUN_IF, experiment.run_if):
        logger.debug(f"Experiment '{experiment.name}' run_if is false; running control only")
        return control()

    if experiment.before_run is not None:
        contain(experiment, Operation.BEFORE_RUN, experiment.before_run)

    config = get_config()
    if parallel is None:
        parallel = config.parallel

    order = list(experiment.behaviors.items())
    (rng or _random).shuffle(order)

    if parallel:
        observations = _execute_parallel(experiment, order, config.max_workers)
    else:
        observations = [Observation.new(experiment, name, fn) for name, fn in order]

    if experiment.cleaner is not None:
        observations = [_clean(experiment, observation) for observation in observations]

    control_observation = next(o for o in observations if o.name == CONTROL)
    candidates = tuple(o for o in observations if o.name != CONTROL)

    result = Result.build(experiment, control_observation, candidates)
    contain(experiment, Operation.PUBLISH, experiment.hooks.publish, result)

    if return_result:
        return result
    return control_observation.outcome()


def _gate_open(experiment: Any, operation: Operation, gate: Callable[[], Any]) -> bool:
    """Evaluate a gate; a failing gate counts as closed."""
    return contain_truth(experiment, operation, gate)


def _execute_parallel(
    experiment: Any,
    order: List[Tuple[str, Callable[[], Any]]],
    max_workers: Optional[int],
) -> List[Observation]:
    """Execute behaviors on a thread pool, submitted in the given order."""
    with ThreadPoolExecutor(max_workers=max_workers or len(order)) as pool:
        futures = [pool.submit(Observation.new, experiment, name, fn) for name, fn in order]
        return [future.result() for future in futures]


def _clean(experiment: Any, observation: Observation) -> Observation:
    """Apply the cleaner to a successful observation's value."""
    if observation.failed:
        return observation

    cleaned, failure = contain(experiment, Operation.CLEAN, experiment.cleaner, observation.value)
    if failure is not None:
        return replace(observation, clean_failed=True)
    return replace(observation, cleaned_value=cleaned, cleaned=True)
