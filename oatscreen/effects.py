"""Elementary effects and their summary statistics.

For each adjacent pair of distinct points inside a trajectory:

    delta   = level-index difference between the two points
    group   = the single group whose coordinates are nonzero in delta
    step    = sum of the design-value differences (signed)
    effect  = (y_next - y_prev) / step        (elementwise for arrays)

The effect is attributed to the group that moved. Effects are collected
per group id in a mapping that each aggregation step returns instead of
mutating shared state. A trajectory with k distinct points contributes
exactly k - 1 effects.

Statistics per group (all elementwise, same shape as the oracle output):

    mean       mu     = average of the signed effects
    mean_star  mu*    = average of the absolute effects
    variance   sigma2 = sample variance of the signed effects (ddof=1)

Groups that never moved get zeros of the output shape, so every group
reports uniformly shaped statistics.
"""

from __future__ import annotations

import numpy as np

from oatscreen.base import ConsistencyError
from oatscreen.evaluate import EvaluatedTrajectory
from oatscreen.space import ParameterSpace


def step_effect(
    space: ParameterSpace,
    idx_prev: np.ndarray,
    idx_next: np.ndarray,
    x_prev: np.ndarray,
    x_next: np.ndarray,
    y_prev: np.ndarray,
    y_next: np.ndarray,
):
    """Compute one elementary effect and the group it belongs to.

    Returns:
        Tuple (group_id, effect) where effect has the output shape.

    Raises:
        ConsistencyError: if the step moves no coordinate, or coordinates
            of more than one group.
    """
    changed = np.flatnonzero(np.asarray(idx_next) - np.asarray(idx_prev))
    if changed.size == 0:
        raise ConsistencyError("Trajectory step does not change any parameter")

    touched = {space.group_of(int(i)) for i in changed}
    if len(touched) > 1:
        raise ConsistencyError(
            f"Trajectory step changes more than one group: {sorted(map(str, touched))}"
        )
    group = touched.pop()

    step = float(np.sum(np.asarray(x_next)[changed] - np.asarray(x_prev)[changed]))
    if step == 0.0:
        raise ConsistencyError(f"Trajectory step for group {group!r} has zero size")

    return group, (np.asarray(y_next) - np.asarray(y_prev)) / step


def trajectory_effects(space: ParameterSpace, traj: EvaluatedTrajectory) -> list[tuple]:
    """All (group_id, effect) pairs of one evaluated trajectory, in order."""
    pairs = []
    for t in range(traj.distinct_length - 1):
        pairs.append(step_effect(
            space,
            traj.indices[:, t], traj.indices[:, t + 1],
            traj.points[:, t], traj.points[:, t + 1],
            traj.outputs[t], traj.outputs[t + 1],
        ))
    return pairs


def accumulate_effects(effects: dict, pairs: list[tuple]) -> dict:
    """Return a new mapping with ``pairs`` appended to the group collections."""
    out = {g: list(vals) for g, vals in effects.items()}
    for group, effect in pairs:
        out.setdefault(group, []).append(effect)
    return out


def aggregate_effects(space: ParameterSpace, evaluated: list[EvaluatedTrajectory]) -> dict:
    """Collect elementary effects per group over all trajectories.

    Returns:
        Mapping group id -> list of effect arrays, with an entry (possibly
        empty) for every group of the space, in first-appearance order.
    """
    effects = {g: [] for g in space.group_ids()}
    for traj in evaluated:
        effects = accumulate_effects(effects, trajectory_effects(space, traj))
    return effects


def morris_statistics(effects: dict, output_shape: tuple = ()) -> tuple[dict, dict, dict]:
    """Reduce per-group effect collections to mu, mu* and sigma^2.

    Args:
        effects: Mapping group id -> list of effect arrays.
        output_shape: Shape used for groups with no effects.

    Returns:
        Tuple (means, means_star, variances), each a mapping group id ->
        ndarray of ``output_shape``.
    """
    means, means_star, variances = {}, {}, {}
    zero = np.zeros(output_shape)

    for group, values in effects.items():
        if not values:
            means[group] = zero.copy()
            means_star[group] = zero.copy()
            variances[group] = zero.copy()
            continue

        ee = np.stack([np.asarray(v, dtype=np.float64) for v in values])
        means[group] = np.mean(ee, axis=0)
        means_star[group] = np.mean(np.abs(ee), axis=0)
        if ee.shape[0] > 1:
            variances[group] = np.var(ee, axis=0, ddof=1)
        else:
            # One effect carries no spread information
            variances[group] = np.zeros(ee.shape[1:])

    return means, means_star, variances
