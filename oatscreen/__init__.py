"""oatscreen: one-at-a-time global sensitivity screening.

Implements the Method of Morris for expensive black-box functions. Given
an oracle mapping a vector of uncertain inputs to a scalar or fixed-shape
array, the toolkit estimates how strongly each input (or group of inputs)
moves the output, from a small number of randomized one-at-a-time
trajectories chosen for space-filling spread.

Oracle evaluation is strictly sequential: one call per distinct sampled
design point, in trajectory order.

Modules:
    base          -- Oracle / Simulator protocols, adapters, error types
    space         -- Discretized parameter grids and group membership
    trajectory    -- OAT trajectory generation and spread-based selection
    evaluate      -- Deduplication and sequential oracle evaluation
    effects       -- Elementary effects and mu / mu* / sigma^2 statistics
    morris        -- MorrisConfig, MorrisResult and the screening entry points
    output_schema -- JSON envelope for screening reports
"""

from oatscreen.base import (
    ConfigurationError,
    ConsistencyError,
    Oracle,
    OracleOutputError,
    OracleWrapper,
    Simulator,
    SimulatorOracle,
)
from oatscreen.space import Parameter, ParameterSpace
from oatscreen.trajectory import (
    Trajectory,
    generate_trajectory,
    sample_trajectories,
    select_trajectories,
    trajectory_spread,
)
from oatscreen.evaluate import EvaluatedTrajectory, dedup_block, evaluate_trajectories
from oatscreen.effects import aggregate_effects, morris_statistics
from oatscreen.morris import MorrisConfig, MorrisResult, morris_screening, morris_sensitivity
from oatscreen.output_schema import MorrisReport, NumpyEncoder, compare_reports, validate_report

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "ConsistencyError",
    "Oracle",
    "OracleOutputError",
    "OracleWrapper",
    "Simulator",
    "SimulatorOracle",
    "Parameter",
    "ParameterSpace",
    "Trajectory",
    "generate_trajectory",
    "sample_trajectories",
    "select_trajectories",
    "trajectory_spread",
    "EvaluatedTrajectory",
    "dedup_block",
    "evaluate_trajectories",
    "aggregate_effects",
    "morris_statistics",
    "MorrisConfig",
    "MorrisResult",
    "morris_screening",
    "morris_sensitivity",
    "MorrisReport",
    "NumpyEncoder",
    "compare_reports",
    "validate_report",
]
