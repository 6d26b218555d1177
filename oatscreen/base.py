"""Base types, protocols and errors for the oatscreen toolkit.

Defines the Oracle protocol that any screened function must satisfy, two
adapters that turn plain callables and named-parameter simulators into
oracles, and the exception taxonomy shared by every stage of a run.

An oracle is anything callable as:
    oracle(point: np.ndarray) -> float | np.ndarray
        Evaluate the expensive black box at one design point (a vector of
        length num_parameters) and return a scalar or a fixed-shape array.

Oracles are called sequentially, once per distinct design point. If the
oracle must mutate shared external state before producing a value (e.g.
writing cost coefficients into a model and re-solving it), that mutation
belongs inside the oracle's own closure. The screening core never touches
it.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import numpy as np


class ConfigurationError(ValueError):
    """Invalid parameter space or run configuration.

    Always raised before the first oracle call.
    """


class ConsistencyError(RuntimeError):
    """A generated trajectory violates the one-group-per-step invariant."""


class OracleOutputError(ValueError):
    """The oracle returned a value of the wrong shape or type."""


@runtime_checkable
class Oracle(Protocol):
    """Protocol for any function that can be screened.

    Example:
        def cost(point):
            return point[0] + 2.0 * point[1]

        assert isinstance(cost, Oracle)  # True at runtime
    """

    def __call__(self, point: np.ndarray):
        ...


@runtime_checkable
class Simulator(Protocol):
    """Protocol for named-parameter simulators.

    Any object providing run() and param_spec() can be screened through
    SimulatorOracle / morris_sensitivity().

    Example:
        class MySimulator:
            def run(self, params: dict) -> dict:
                return {"y": params["x"] ** 2}

            def param_spec(self) -> dict[str, tuple[float, float]]:
                return {"x": (0.0, 10.0)}
    """

    def run(self, params: dict) -> dict:
        ...

    def param_spec(self) -> dict[str, tuple[float, float]]:
        ...


class OracleWrapper:
    """Wraps a callable and counts how often it is evaluated.

    Example:
        oracle = OracleWrapper(lambda x: x[0] + 2 * x[1])
        oracle(np.array([1.0, 1.0]))  # 3.0
        oracle.n_calls                # 1
    """

    def __init__(self, fn: callable):
        self._fn = fn
        self.n_calls = 0

    def __call__(self, point: np.ndarray):
        self.n_calls += 1
        return self._fn(point)


class SimulatorOracle:
    """Adapts a Simulator (run(dict) -> dict) into a vector oracle.

    Design points are mapped onto parameter names in param_spec() order.
    The oracle returns a 1-D array holding the values of ``output_keys``
    in order. If output_keys is None, every finite numeric key of the
    first result is used and fixed for the rest of the run.
    """

    def __init__(self, simulator, output_keys: list[str] | None = None):
        self.simulator = simulator
        self.parameter_names = list(simulator.param_spec().keys())
        self.output_keys = list(output_keys) if output_keys is not None else None

    def __call__(self, point: np.ndarray) -> np.ndarray:
        params = {name: float(point[j]) for j, name in enumerate(self.parameter_names)}
        result = self.simulator.run(params)

        if self.output_keys is None:
            self.output_keys = [
                key for key, val in result.items()
                if isinstance(val, (int, float, np.integer, np.floating))
                and not isinstance(val, bool)
                and np.isfinite(val)
            ]
            if not self.output_keys:
                raise OracleOutputError("Simulator returned no numeric outputs")

        values = np.empty(len(self.output_keys))
        for k, key in enumerate(self.output_keys):
            if key not in result:
                raise OracleOutputError(f"Simulator result is missing output key '{key}'")
            values[k] = float(result[key])
        return values
