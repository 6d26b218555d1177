"""Discretized parameter space with grouped inputs.

Each parameter i owns a continuous range [lo_i, hi_i] reduced to a grid of
p_i equally spaced levels (both end points included), and a group id.
Parameters sharing a group id always move together inside a trajectory and
are screened as one effective input.

Level indices are 0-based throughout the package: parameter i takes
indices 0 .. p_i - 1, and grid(i)[k] is the value at level k.

Usage::

    space = ParameterSpace(
        bounds=[(0.0, 1.0), (10.0, 20.0), (10.0, 20.0)],
        levels=[4, 4, 4],
        groups=["a", "b", "b"],
    )
    space.grid(1)          # array([10., 13.333, 16.667, 20.])
    space.group_members()  # {"a": [0], "b": [1, 2]}
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from oatscreen.base import ConfigurationError


@dataclass(frozen=True)
class Parameter:
    """One screened input: name, range, level count and group id."""

    name: str
    lower: float
    upper: float
    levels: int
    group: object

    def grid(self) -> np.ndarray:
        return np.linspace(self.lower, self.upper, self.levels)


class ParameterSpace:
    """Immutable collection of Parameters for one screening run.

    Args:
        bounds: Sequence of (lower, upper) pairs, one per parameter.
        levels: Level count per parameter, or a single int for all.
        groups: Group id per parameter. If None, every parameter is its
            own group (group id = parameter index).
        names: Optional parameter names. Defaults to x0, x1, ...

    Raises:
        ConfigurationError: on an empty or degenerate range, a level
            count below 2, or mismatched lengths.
    """

    def __init__(self, bounds, levels=4, groups=None, names=None):
        bounds = [tuple(b) for b in bounds]
        d = len(bounds)
        if d == 0:
            raise ConfigurationError("Parameter space needs at least one parameter")

        if np.isscalar(levels):
            levels = [levels] * d
        levels = list(levels)
        if groups is None:
            groups = list(range(d))
        groups = list(groups)
        if names is None:
            names = [f"x{i}" for i in range(d)]
        names = list(names)

        for label, seq in (("levels", levels), ("groups", groups), ("names", names)):
            if len(seq) != d:
                raise ConfigurationError(
                    f"Expected {d} entries in {label}, got {len(seq)}"
                )

        params = []
        for i in range(d):
            if len(bounds[i]) != 2:
                raise ConfigurationError(
                    f"Bounds for '{names[i]}' must be a (lower, upper) pair, got {bounds[i]}"
                )
            lo, hi = float(bounds[i][0]), float(bounds[i][1])
            if not (np.isfinite(lo) and np.isfinite(hi)):
                raise ConfigurationError(f"Non-finite range for '{names[i]}': [{lo}, {hi}]")
            if lo > hi:
                raise ConfigurationError(f"Empty range for '{names[i]}': [{lo}, {hi}]")
            if lo == hi:
                # A single-valued range has one distinct level whatever p_i says.
                raise ConfigurationError(
                    f"Degenerate range for '{names[i]}': lower == upper == {lo}"
                )
            try:
                p = int(levels[i])
            except (TypeError, ValueError):
                p = 0
            if p != levels[i] or p < 2:
                raise ConfigurationError(
                    f"Level count for '{names[i]}' must be an integer >= 2, got {levels[i]}"
                )
            try:
                hash(groups[i])
            except TypeError:
                raise ConfigurationError(
                    f"Group id for '{names[i]}' must be hashable, got {groups[i]!r}"
                ) from None
            params.append(Parameter(names[i], lo, hi, p, groups[i]))

        if len(set(names)) != d:
            raise ConfigurationError("Parameter names must be unique")

        self._params = tuple(params)
        self._grids = tuple(p.grid() for p in self._params)

        members: dict = {}
        for i, p in enumerate(self._params):
            members.setdefault(p.group, []).append(i)
        self._members = members

    @classmethod
    def from_bounds(cls, spec: dict, levels=4, groups=None) -> ParameterSpace:
        """Build a space from a ``name -> (lower, upper)`` mapping.

        ``groups`` may be a mapping from parameter name to group id; names
        missing from it form their own group, named after the parameter.
        """
        names = list(spec.keys())
        if groups is None:
            groups = names
        elif isinstance(groups, dict):
            groups = [groups.get(name, name) for name in names]
        if isinstance(levels, dict):
            levels = [levels[name] for name in names]
        return cls([spec[n] for n in names], levels=levels, groups=groups, names=names)

    @classmethod
    def from_records(cls, records) -> ParameterSpace:
        """Build a space from range-table rows.

        Each row is a mapping with the keys Parameter, Lower_bound,
        Upper_bound, p_steps and Group. Rows that share a Parameter label
        (one label covering several resources) get an index suffix.
        """
        records = list(records)
        try:
            labels = [str(r["Parameter"]) for r in records]
            bounds = [(float(r["Lower_bound"]), float(r["Upper_bound"])) for r in records]
            levels = [int(r["p_steps"]) for r in records]
            groups = [r["Group"] for r in records]
        except KeyError as exc:
            raise ConfigurationError(f"Range table row is missing column {exc}") from None
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Malformed range table row: {exc}") from None

        counts: dict[str, int] = {}
        for label in labels:
            counts[label] = counts.get(label, 0) + 1
        seen: dict[str, int] = {}
        names = []
        for label in labels:
            if counts[label] == 1:
                names.append(label)
            else:
                names.append(f"{label}[{seen.get(label, 0)}]")
                seen[label] = seen.get(label, 0) + 1
        return cls(bounds, levels=levels, groups=groups, names=names)

    def __len__(self) -> int:
        return len(self._params)

    def __getitem__(self, i: int) -> Parameter:
        return self._params[i]

    def __iter__(self):
        return iter(self._params)

    @property
    def names(self) -> list[str]:
        return [p.name for p in self._params]

    @property
    def levels(self) -> np.ndarray:
        return np.array([p.levels for p in self._params], dtype=int)

    @property
    def groups(self) -> list:
        return [p.group for p in self._params]

    def bounds(self) -> np.ndarray:
        """Array of shape (D, 2) with [lower, upper] per parameter."""
        return np.array([[p.lower, p.upper] for p in self._params])

    def grid(self, i: int) -> np.ndarray:
        return self._grids[i]

    def group_ids(self) -> list:
        """Distinct group ids in order of first appearance."""
        return list(self._members.keys())

    def group_members(self) -> dict:
        """Mapping group id -> member parameter indices in declaration order."""
        return {g: list(idx) for g, idx in self._members.items()}

    def group_of(self, i: int):
        return self._params[i].group

    def values(self, indices: np.ndarray) -> np.ndarray:
        """Map a (D, T) level-index matrix to a (D, T) design-point matrix."""
        indices = np.asarray(indices, dtype=int)
        out = np.empty(indices.shape, dtype=float)
        for i in range(len(self._params)):
            out[i] = self._grids[i][indices[i]]
        return out
