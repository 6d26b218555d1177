"""Randomized one-at-a-time trajectories and space-filling selection.

A trajectory is a chain of design points. Point 0 is a uniformly random
level-index vector; every later point moves one randomly chosen
parameter's level index by +1 or -1. A step that would leave the valid
index range is reflected by a step of size 2 in the opposite direction,
which always lands inside the range when the parameter has at least two
levels.

Grouping is applied after generation: each group member's whole index
history is overwritten with the history of the first member of that
group. Consecutive points therefore differ in the coordinates of at most
one group. A step that perturbed a non-leading group member becomes a
repeated point, which the evaluator later removes.

Selection oversamples a pool of candidates and keeps the ones with the
largest spread (sum of Euclidean distances between consecutive points),
a cheap stand-in for optimal space-filling trajectory search.

Reference:
    Morris, M.D. (1991). "Factorial sampling plans for preliminary
    computational experiments." Technometrics, 33(2), 161-174.

    Campolongo, F., Cariboni, J., Saltelli, A. (2007). "An effective
    screening design for sensitivity analysis of large models."
    Environmental Modelling & Software, 22(10), 1509-1518.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from oatscreen.base import ConfigurationError
from oatscreen.space import ParameterSpace

logger = logging.getLogger(__name__)


@dataclass
class Trajectory:
    """One generated trajectory.

    Attributes:
        indices: Level-index matrix of shape (D, T), 0-based.
        points: Design-point matrix of shape (D, T) in physical units.
        spread: Sum of distances between consecutive columns of points.
    """

    indices: np.ndarray
    points: np.ndarray
    spread: float

    def __len__(self) -> int:
        return self.points.shape[1]


def trajectory_spread(points: np.ndarray) -> float:
    """Sum of Euclidean distances between consecutive columns."""
    points = np.asarray(points, dtype=np.float64)
    if points.shape[1] < 2:
        return 0.0
    return float(np.sum(np.linalg.norm(np.diff(points, axis=1), axis=0)))


def collapse_groups(indices: np.ndarray, space: ParameterSpace) -> np.ndarray:
    """Copy each group's first-member index history onto every member."""
    out = np.array(indices, dtype=int, copy=True)
    for members in space.group_members().values():
        out[members] = out[members[0]]
    return out


def generate_trajectory(
    space: ParameterSpace,
    rng: np.random.Generator,
    len_design_mat: int,
) -> Trajectory:
    """Generate one randomized OAT trajectory of ``len_design_mat`` points.

    Args:
        space: Parameter space (grids, level counts, groups).
        rng: numpy random generator, advanced in place.
        len_design_mat: Number of design points, including the start.

    Returns:
        Trajectory with (D, len_design_mat) index and point matrices.
    """
    d = len(space)
    levels = space.levels

    current = rng.integers(0, levels)
    raw = np.empty((d, len_design_mat), dtype=int)
    raw[:, 0] = current

    for t in range(1, len_design_mat):
        j = int(rng.integers(d))
        step = -1 if rng.random() < 0.5 else 1
        current[j] += step
        if current[j] > levels[j] - 1:
            current[j] -= 2
        elif current[j] < 0:
            current[j] += 2
        raw[:, t] = current

    indices = collapse_groups(raw, space)
    points = space.values(indices)
    return Trajectory(indices=indices, points=points, spread=trajectory_spread(points))


def select_trajectories(pool: list[Trajectory], num_trajectory: int) -> list[Trajectory]:
    """Keep the ``num_trajectory`` pool members with the largest spread.

    Ties keep pool order.
    """
    ranked = sorted(pool, key=lambda tr: tr.spread, reverse=True)
    return ranked[:num_trajectory]


def sample_trajectories(
    space: ParameterSpace,
    rng: np.random.Generator,
    num_trajectory: int,
    total_num_trajectory: int,
    len_design_mat: int,
) -> list[Trajectory]:
    """Generate an oversampled pool and return the selected trajectories.

    Raises:
        ConfigurationError: if total_num_trajectory <= num_trajectory,
            num_trajectory < 1, or len_design_mat < 1.
    """
    check_counts(num_trajectory, total_num_trajectory, len_design_mat)

    pool = [
        generate_trajectory(space, rng, len_design_mat)
        for _ in range(total_num_trajectory)
    ]
    selected = select_trajectories(pool, num_trajectory)
    logger.info(
        "Selected %d of %d trajectories (spread %.4g .. %.4g)",
        num_trajectory, total_num_trajectory,
        selected[-1].spread, selected[0].spread,
    )
    return selected


def check_counts(num_trajectory: int, total_num_trajectory: int, len_design_mat: int) -> None:
    if num_trajectory < 1:
        raise ConfigurationError(f"num_trajectory must be >= 1, got {num_trajectory}")
    if len_design_mat < 1:
        raise ConfigurationError(f"len_design_mat must be >= 1, got {len_design_mat}")
    if total_num_trajectory <= num_trajectory:
        raise ConfigurationError(
            f"total_num_trajectory ({total_num_trajectory}) must be greater than "
            f"num_trajectory ({num_trajectory}), preferably 3-4 times higher"
        )


def design_matrix(trajectories: list[Trajectory]) -> np.ndarray:
    """Concatenate trajectory point matrices column-wise, shape (D, sum T)."""
    return np.hstack([tr.points for tr in trajectories])
