"""Sequential oracle evaluation over selected trajectories.

Before evaluation each trajectory block is deduplicated: runs of
consecutive identical design points (left behind by group collapse) are
reduced to their last occurrence. The remaining distinct length of every
block is what downstream stages use, not the nominal len_design_mat.

The oracle is then called exactly once per distinct design point, in
column order, in a single sequential pass. Nothing is cached or run in
parallel; an exception raised by the oracle aborts the run unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from oatscreen.base import OracleOutputError
from oatscreen.trajectory import Trajectory

logger = logging.getLogger(__name__)


@dataclass
class EvaluatedTrajectory:
    """A deduplicated trajectory and its oracle outputs.

    Attributes:
        indices: Level-index matrix (D, k).
        points: Design-point matrix (D, k).
        outputs: Oracle outputs of shape (k,) + output_shape.
    """

    indices: np.ndarray
    points: np.ndarray
    outputs: np.ndarray

    @property
    def distinct_length(self) -> int:
        return self.points.shape[1]


def dedup_block(indices: np.ndarray, points: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Collapse runs of consecutive identical columns, keeping the last.

    Applying it to an already deduplicated block returns the same block.
    """
    points = np.asarray(points)
    n = points.shape[1]
    if n == 0:
        return indices, points
    keep = np.ones(n, dtype=bool)
    same_as_next = np.all(points[:, :-1] == points[:, 1:], axis=0)
    keep[:-1] = ~same_as_next
    return np.asarray(indices)[:, keep], points[:, keep]


def coerce_output(value, output_shape: tuple | None) -> np.ndarray:
    """Convert one oracle return value to a float array and check its shape."""
    try:
        arr = np.asarray(value, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise OracleOutputError(f"Oracle returned a non-numeric value: {value!r}") from exc
    if output_shape is not None and arr.shape != tuple(output_shape):
        raise OracleOutputError(
            f"Oracle output shape {arr.shape} does not match expected {tuple(output_shape)}"
        )
    return arr


def evaluate_trajectories(
    trajectories: list[Trajectory],
    oracle,
    output_shape: tuple | None = None,
) -> tuple[list[EvaluatedTrajectory], tuple]:
    """Deduplicate each trajectory and evaluate the oracle on every point.

    Args:
        trajectories: Selected trajectories, in design-matrix order.
        oracle: Callable taking a (D,) float vector.
        output_shape: () for scalar oracles, a tuple for fixed-shape
            arrays, or None to lock onto the shape of the first output.

    Returns:
        (evaluated, output_shape) where evaluated holds one
        EvaluatedTrajectory per input trajectory.
    """
    shape = tuple(output_shape) if output_shape is not None else None
    evaluated = []
    n_calls = 0

    for t, tr in enumerate(trajectories):
        indices, points = dedup_block(tr.indices, tr.points)
        outputs = []
        for col in range(points.shape[1]):
            y = coerce_output(oracle(points[:, col].copy()), shape)
            if shape is None:
                shape = y.shape
                logger.debug("Locked oracle output shape to %s", shape)
            outputs.append(y)
            n_calls += 1

        logger.debug(
            "Trajectory %d: %d of %d points distinct", t, points.shape[1], tr.points.shape[1]
        )
        evaluated.append(
            EvaluatedTrajectory(
                indices=indices,
                points=points,
                outputs=np.stack(outputs) if outputs else np.empty((0,) + (shape or ())),
            )
        )

    logger.info("Evaluated oracle at %d distinct design points", n_calls)
    return evaluated, shape if shape is not None else ()
