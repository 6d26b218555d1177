"""Shared test fixtures for the oatscreen test suite.

Provides toy oracles and simulators with known elementary effects:

    linear_oracle: f(x) = x[0] + 2 * x[1]
        Exactly linear, so every elementary effect of x_i equals its
        coefficient and the variance of effects is zero.

    vector_oracle: f(x) = [x[0], x[1] ** 0]
        Two outputs. The second is constant, so all its effects are 0.

    LinearSimulator: y = sum(a_i * x_i)
        Named-parameter simulator for morris_sensitivity().

    QuadraticSimulator: y = sum(x_i^2), fitness = -y
        Two numeric outputs, plus a non-numeric status key.

    RecordingOracle: wraps a function and records every point it sees,
        to check evaluation order and call counts.
"""

import numpy as np
import pytest

from oatscreen.space import ParameterSpace


class LinearSimulator:
    """Linear additive model: y = sum(a_i * x_i) with x_i in [0, 1].

    Args:
        d: Number of parameters.
        coefficients: Optional coefficients. Defaults to 1, 2, ..., d.
    """

    def __init__(self, d: int = 4, coefficients=None):
        self.d = d
        if coefficients is not None:
            self.coefficients = np.asarray(coefficients, dtype=float)
        else:
            self.coefficients = np.arange(1, d + 1, dtype=float)

    def run(self, params: dict) -> dict:
        total = 0.0
        for i in range(self.d):
            total += self.coefficients[i] * params[f"x{i}"]
        return {"y": float(total)}

    def param_spec(self) -> dict[str, tuple[float, float]]:
        return {f"x{i}": (0.0, 1.0) for i in range(self.d)}


class QuadraticSimulator:
    """Quadratic model: y = sum(x_i^2) on [-1, 1]^d."""

    def __init__(self, d: int = 3):
        self.d = d

    def run(self, params: dict) -> dict:
        total = sum(params[f"x{i}"] ** 2 for i in range(self.d))
        return {"y": float(total), "fitness": float(-total), "status": "ok"}

    def param_spec(self) -> dict[str, tuple[float, float]]:
        return {f"x{i}": (-1.0, 1.0) for i in range(self.d)}


class RecordingOracle:
    """Calls ``fn`` and keeps a copy of every evaluated point."""

    def __init__(self, fn):
        self.fn = fn
        self.points = []

    def __call__(self, point):
        self.points.append(np.array(point, copy=True))
        return self.fn(point)


# ---- Pytest fixtures ----

@pytest.fixture
def linear_oracle():
    """f(x) = x[0] + 2 * x[1]."""
    return lambda x: x[0] + 2.0 * x[1]


@pytest.fixture
def vector_oracle():
    """f(x) = [x[0], x[1] ** 0]."""
    return lambda x: np.array([x[0], x[1] ** 0])


@pytest.fixture
def two_param_space():
    """2 parameters on [0, 1], 4 levels each, one group per parameter."""
    return ParameterSpace(bounds=[(0.0, 1.0), (0.0, 1.0)], levels=[4, 4])


@pytest.fixture
def grouped_space():
    """4 parameters: 'a' alone, 'b' = {x1, x2}, 'c' alone."""
    return ParameterSpace(
        bounds=[(0.0, 1.0), (0.0, 1.0), (0.0, 2.0), (-1.0, 1.0)],
        levels=[4, 3, 3, 2],
        groups=["a", "b", "b", "c"],
    )


@pytest.fixture
def linear_sim():
    """3-parameter linear simulator with coefficients [1, 2, 3]."""
    return LinearSimulator(d=3)


@pytest.fixture
def quadratic_sim():
    """3-parameter quadratic simulator."""
    return QuadraticSimulator(d=3)
