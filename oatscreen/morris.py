"""Method of Morris elementary-effects screening.

Pipeline:
    1. Generate total_num_trajectory randomized OAT trajectories over the
       discretized parameter space and keep the num_trajectory with the
       largest spread.
    2. Deduplicate each selected trajectory and call the oracle once per
       distinct design point, sequentially.
    3. Turn every step into an elementary effect attributed to the group
       that moved, and reduce per group to mu, mu* and sigma^2.

Total oracle calls <= num_trajectory * len_design_mat.

The two entry points are:

    morris_screening(oracle, space, ...)    vector oracle, returns MorrisResult
    morris_sensitivity(simulator, ...)      Simulator protocol, returns a dict

Reproducibility: all randomness is drawn from one numpy Generator that is
advanced sequentially across the whole pool. Pass ``seed`` (or a seeded
``rng``) for repeatable designs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np

from oatscreen.base import ConfigurationError, SimulatorOracle
from oatscreen.effects import aggregate_effects, morris_statistics
from oatscreen.evaluate import evaluate_trajectories
from oatscreen.space import ParameterSpace
from oatscreen.trajectory import check_counts, design_matrix, sample_trajectories

logger = logging.getLogger(__name__)


@dataclass
class MorrisConfig:
    """Run settings for one screening pass.

    Attributes:
        num_trajectory: Trajectories kept after selection.
        total_num_trajectory: Pool size generated before selection; must
            exceed num_trajectory (3-4x is customary).
        len_design_mat: Design points per trajectory, including the start.
            None means number of parameters + 1.
        seed: Seed for numpy.random.default_rng, or None.
    """

    num_trajectory: int = 10
    total_num_trajectory: int = 40
    len_design_mat: int | None = None
    seed: int | None = None

    @classmethod
    def from_mapping(cls, mapping: dict) -> MorrisConfig:
        """Build a config from a plain dict, ignoring unrelated keys."""
        try:
            cfg = cls(
                num_trajectory=int(mapping["num_trajectory"]),
                total_num_trajectory=int(mapping["total_num_trajectory"]),
                len_design_mat=(
                    int(mapping["len_design_mat"])
                    if mapping.get("len_design_mat") is not None else None
                ),
                seed=int(mapping["seed"]) if mapping.get("seed") is not None else None,
            )
        except KeyError as exc:
            raise ConfigurationError(f"Missing configuration key {exc}") from None
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Malformed configuration value: {exc}") from None
        cfg.validate()
        return cfg

    def validate(self, space: ParameterSpace | None = None) -> None:
        length = self.len_design_mat
        if length is None:
            length = len(space) + 1 if space is not None else 1
        check_counts(self.num_trajectory, self.total_num_trajectory, length)

    def kwargs(self) -> dict:
        return {
            "num_trajectory": self.num_trajectory,
            "total_num_trajectory": self.total_num_trajectory,
            "len_design_mat": self.len_design_mat,
            "seed": self.seed,
        }


@dataclass
class MorrisResult:
    """Screening result for one run.

    Statistics are keyed by group id; every value has ``output_shape``.
    """

    group_ids: list
    means: dict
    means_star: dict
    variances: dict
    elementary_effects: dict
    output_shape: tuple
    parameter_names: list[str] = field(default_factory=list)
    groups: list = field(default_factory=list)
    design_matrix: np.ndarray | None = None
    distinct_lengths: list[int] = field(default_factory=list)
    n_evaluations: int = 0

    def _matrix(self, stat: dict) -> np.ndarray:
        return np.stack([np.ravel(stat[g]) for g in self.group_ids])

    @property
    def mean_matrix(self) -> np.ndarray:
        """Array (n_groups, output size) of mu."""
        return self._matrix(self.means)

    @property
    def mean_star_matrix(self) -> np.ndarray:
        """Array (n_groups, output size) of mu*."""
        return self._matrix(self.means_star)

    @property
    def variance_matrix(self) -> np.ndarray:
        """Array (n_groups, output size) of sigma^2."""
        return self._matrix(self.variances)

    def per_parameter(self, stat: str = "mean") -> dict:
        """Broadcast a group statistic onto each member parameter name."""
        table = {"mean": self.means, "mean_star": self.means_star, "variance": self.variances}
        if stat not in table:
            raise ValueError(f"stat must be one of {sorted(table)}, got '{stat}'")
        values = table[stat]
        return {name: values[g] for name, g in zip(self.parameter_names, self.groups)}

    def ranking(self) -> list:
        """Group ids sorted by descending mu* (norm over output elements)."""
        return sorted(
            self.group_ids,
            key=lambda g: float(np.linalg.norm(np.ravel(self.means_star[g]))),
            reverse=True,
        )

    def to_dict(self) -> dict:
        """JSON-friendly view (group ids become strings)."""
        def conv(stat):
            return {str(g): np.asarray(stat[g]).tolist() for g in self.group_ids}

        return {
            "group_ids": [str(g) for g in self.group_ids],
            "parameter_names": list(self.parameter_names),
            "groups": [str(g) for g in self.groups],
            "output_shape": list(self.output_shape),
            "n_evaluations": self.n_evaluations,
            "distinct_lengths": list(self.distinct_lengths),
            "mean": conv(self.means),
            "mean_star": conv(self.means_star),
            "variance": conv(self.variances),
            "n_effects": {str(g): len(self.elementary_effects[g]) for g in self.group_ids},
            "ranking": [str(g) for g in self.ranking()],
        }


def morris_screening(
    oracle,
    space: ParameterSpace,
    num_trajectory: int = 10,
    total_num_trajectory: int = 40,
    len_design_mat: int | None = None,
    seed: int | None = None,
    rng: np.random.Generator | None = None,
    output_shape: tuple | None = None,
) -> MorrisResult:
    """Run Morris screening of ``oracle`` over ``space``.

    Args:
        oracle: Callable mapping a (D,) float vector to a scalar or a
            fixed-shape array. Called once per distinct design point.
        space: ParameterSpace with ranges, level counts and groups.
        num_trajectory: Trajectories kept for evaluation.
        total_num_trajectory: Candidate pool size; must exceed
            num_trajectory.
        len_design_mat: Points per trajectory. Default: D + 1.
        seed: Seed for a fresh numpy Generator (ignored if rng is given).
        rng: Generator to draw from; advanced in place.
        output_shape: () for scalar oracles, a tuple for array oracles,
            or None to lock onto the first output's shape.

    Returns:
        MorrisResult with per-group mu, mu*, sigma^2 and raw effects.

    Raises:
        ConfigurationError: before any oracle call, for bad settings.
        ConsistencyError: if a step moves more than one group.
        OracleOutputError: if an output does not match the output shape.
    """
    if len_design_mat is None:
        len_design_mat = len(space) + 1
    check_counts(num_trajectory, total_num_trajectory, len_design_mat)
    if rng is None:
        rng = np.random.default_rng(seed)

    selected = sample_trajectories(
        space, rng, num_trajectory, total_num_trajectory, len_design_mat
    )
    evaluated, shape = evaluate_trajectories(selected, oracle, output_shape)

    effects = aggregate_effects(space, evaluated)
    means, means_star, variances = morris_statistics(effects, shape)

    distinct = [tr.distinct_length for tr in evaluated]
    logger.info(
        "Morris screening: %d groups, %d evaluations, distinct lengths %s",
        len(effects), sum(distinct), distinct,
    )

    return MorrisResult(
        group_ids=space.group_ids(),
        means=means,
        means_star=means_star,
        variances=variances,
        elementary_effects=effects,
        output_shape=shape,
        parameter_names=space.names,
        groups=space.groups,
        design_matrix=design_matrix(selected),
        distinct_lengths=distinct,
        n_evaluations=sum(distinct),
    )


def morris_sensitivity(
    simulator,
    levels=4,
    groups=None,
    num_trajectory: int = 10,
    total_num_trajectory: int = 40,
    len_design_mat: int | None = None,
    seed: int = 42,
    output_keys: list[str] | None = None,
) -> dict:
    """Run Morris screening on any Simulator-compatible object.

    Args:
        simulator: Object with run(params) -> dict and
            param_spec() -> dict[str, (float, float)].
        levels: Level count for every parameter, or a name -> int dict.
        groups: Optional name -> group id dict. Ungrouped parameters
            are screened on their own under their own name.
        num_trajectory, total_num_trajectory, len_design_mat, seed:
            As in morris_screening.
        output_keys: Output keys to screen. If None, all finite numeric
            keys of the first simulation result are used.

    Returns:
        Dictionary with structure:
            {
                "n_evaluations": int,
                "parameter_names": list[str],
                "group_ids": list,
                "output_keys": list[str],
                "<output_key>": {
                    "mu": {param_name: float, ...},
                    "mu_star": {param_name: float, ...},
                    "sigma2": {param_name: float, ...},
                    "group_mu": {group_id: float, ...},
                    "group_mu_star": {group_id: float, ...},
                    "group_sigma2": {group_id: float, ...},
                },
                ...
                "rankings": {
                    "<output_key>_most_influential": [param names by mu*],
                    "<output_key>_most_influential_groups": [group ids by mu*],
                },

        Grouped parameters report their group's statistics under each
        member's name.
                "result": MorrisResult,
            }
    """
    space = ParameterSpace.from_bounds(simulator.param_spec(), levels=levels, groups=groups)
    oracle = SimulatorOracle(simulator, output_keys)
    shape = (len(output_keys),) if output_keys is not None else None

    result = morris_screening(
        oracle, space,
        num_trajectory=num_trajectory,
        total_num_trajectory=total_num_trajectory,
        len_design_mat=len_design_mat,
        seed=seed,
        output_shape=shape,
    )

    keys = list(oracle.output_keys)
    analysis = {
        "n_evaluations": result.n_evaluations,
        "parameter_names": space.names,
        "group_ids": result.group_ids,
        "output_keys": keys,
        "rankings": {},
        "result": result,
    }

    for k, key in enumerate(keys):
        group_mu = {g: float(result.means[g][k]) for g in result.group_ids}
        group_mu_star = {g: float(result.means_star[g][k]) for g in result.group_ids}
        group_sigma2 = {g: float(result.variances[g][k]) for g in result.group_ids}

        # Members of a group share the group's statistics
        member_of = dict(zip(space.names, space.groups))
        mu = {name: group_mu[g] for name, g in member_of.items()}
        mu_star = {name: group_mu_star[g] for name, g in member_of.items()}
        sigma2 = {name: group_sigma2[g] for name, g in member_of.items()}

        analysis[key] = {
            "mu": mu,
            "mu_star": mu_star,
            "sigma2": sigma2,
            "group_mu": group_mu,
            "group_mu_star": group_mu_star,
            "group_sigma2": group_sigma2,
        }
        analysis["rankings"][f"{key}_most_influential"] = sorted(
            space.names, key=lambda n: mu_star[n], reverse=True
        )
        analysis["rankings"][f"{key}_most_influential_groups"] = sorted(
            result.group_ids, key=lambda g: group_mu_star[g], reverse=True
        )

    return analysis
