"""JSON envelope for Morris screening results.

Persisting the envelope is left to the caller; this module only builds,
validates and compares the JSON-serializable form.

Schema structure::

    {
        "schema_version": "1.0",
        "run": {label, num_trajectory, total_num_trajectory, len_design_mat,
                seed, n_evaluations, distinct_lengths},
        "parameters": {names, groups, bounds, levels},
        "statistics": {group_ids, output_shape, mean, mean_star, variance,
                       n_effects, ranking},
    }

Usage::

    from oatscreen.output_schema import MorrisReport, validate_report

    report = MorrisReport.from_result(result, space, config, label="capex")
    d = report.to_dict()
    errors = validate_report(d)
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field

import numpy as np


class NumpyEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy types."""

    def default(self, obj):
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        if isinstance(obj, (np.integer,)):
            return int(obj)
        if isinstance(obj, (np.floating,)):
            return float(obj)
        if isinstance(obj, (np.bool_,)):
            return bool(obj)
        return super().default(obj)


@dataclass
class MorrisReport:
    """Standardized screening report envelope."""

    label: str
    statistics: dict = field(default_factory=dict)
    parameter_names: list[str] = field(default_factory=list)
    groups: list = field(default_factory=list)
    bounds: np.ndarray | None = None
    levels: list[int] = field(default_factory=list)
    run_settings: dict = field(default_factory=dict)

    @classmethod
    def from_result(cls, result, space=None, config=None, label: str = "morris") -> MorrisReport:
        """Build a report from a MorrisResult and optional space/config."""
        stats = result.to_dict()
        settings = config.kwargs() if config is not None else {}
        settings["n_evaluations"] = stats.pop("n_evaluations")
        settings["distinct_lengths"] = stats.pop("distinct_lengths")
        names = stats.pop("parameter_names")
        groups = stats.pop("groups")
        return cls(
            label=label,
            statistics=stats,
            parameter_names=names,
            groups=groups,
            bounds=space.bounds() if space is not None else None,
            levels=space.levels.tolist() if space is not None else [],
            run_settings=settings,
        )

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict following the schema."""
        bounds = self.bounds.tolist() if self.bounds is not None else []
        run = {"label": self.label}
        run.update(self.run_settings)
        return {
            "schema_version": "1.0",
            "run": run,
            "parameters": {
                "names": list(self.parameter_names),
                "groups": [str(g) for g in self.groups],
                "bounds": bounds,
                "levels": list(self.levels),
            },
            "statistics": dict(self.statistics),
        }

    def to_json(self, **kwargs) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), cls=NumpyEncoder, **kwargs)


def validate_report(d: dict) -> list[str]:
    """Validate a dict against the report schema.

    Returns a list of error messages. Empty list = valid.
    """
    errors = []

    if "schema_version" not in d:
        errors.append("Missing required key: schema_version")
    for section in ["run", "parameters", "statistics"]:
        if section not in d:
            errors.append(f"Missing required section: {section}")

    if errors:
        return errors  # can't validate further

    params = d["parameters"]
    names = params.get("names", [])
    groups = params.get("groups", [])
    if len(names) != len(groups):
        errors.append(
            f"Parameter length mismatch: {len(names)} names, {len(groups)} groups"
        )

    stats = d["statistics"]
    group_ids = stats.get("group_ids")
    if group_ids is None:
        errors.append("Missing statistics.group_ids")
        return errors

    unknown = set(groups) - set(group_ids)
    if unknown:
        errors.append(f"Parameter groups not in statistics: {sorted(unknown)}")

    shape = tuple(stats.get("output_shape", []))
    for stat in ["mean", "mean_star", "variance"]:
        if stat not in stats:
            errors.append(f"Missing statistics.{stat}")
            continue
        missing = set(group_ids) - set(stats[stat].keys())
        if missing:
            errors.append(f"statistics.{stat} missing groups: {sorted(missing)}")
        for g, value in stats[stat].items():
            if np.shape(value) != shape:
                errors.append(
                    f"statistics.{stat}[{g}] has shape {np.shape(value)}, expected {shape}"
                )

    return errors


def compare_reports(*reports: dict) -> dict:
    """Compare mu* across screening reports that share group ids.

    Args:
        *reports: MorrisReport.to_dict() results.

    Returns:
        Comparison dict with per-group mu* values, ranges and rankings.
    """
    if len(reports) < 2:
        return {"error": "Need at least 2 reports to compare"}

    labels = [r["run"]["label"] for r in reports]

    all_groups = [set(r["statistics"]["group_ids"]) for r in reports]
    shared = set(all_groups[0])
    for gs in all_groups[1:]:
        shared &= gs

    comparison = {
        "reports": labels,
        "shared_groups": sorted(shared),
        "unique_groups": {
            label: sorted(gs - shared) for label, gs in zip(labels, all_groups)
        },
        "per_group": {},
        "rankings": {label: list(r["statistics"].get("ranking", [])) for label, r in zip(labels, reports)},
    }

    for g in sorted(shared):
        values = [float(np.linalg.norm(np.ravel(r["statistics"]["mean_star"][g]))) for r in reports]
        comparison["per_group"][g] = {
            "mean_star": dict(zip(labels, values)),
            "range": float(max(values) - min(values)),
        }

    return comparison
