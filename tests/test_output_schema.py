"""Tests for the screening report schema."""
import json

import numpy as np
import pytest

from oatscreen.morris import MorrisConfig, morris_screening
from oatscreen.output_schema import (
    MorrisReport,
    NumpyEncoder,
    compare_reports,
    validate_report,
)


def _make_example_report(grouped_space, label="test", oracle=None, seed=0):
    """Run a small screening and wrap it in a MorrisReport."""
    if oracle is None:
        oracle = lambda x: np.array([np.sum(x), x[0]])  # noqa: E731
    config = MorrisConfig(num_trajectory=3, total_num_trajectory=9, len_design_mat=6, seed=seed)
    result = morris_screening(oracle, grouped_space, **config.kwargs())
    return MorrisReport.from_result(result, grouped_space, config, label=label)


class TestMorrisReport:
    """Test MorrisReport construction and serialization."""

    def test_to_dict_structure(self, grouped_space):
        d = _make_example_report(grouped_space).to_dict()
        assert d["schema_version"] == "1.0"
        assert d["run"]["label"] == "test"
        assert d["run"]["num_trajectory"] == 3
        assert d["run"]["seed"] == 0
        assert len(d["run"]["distinct_lengths"]) == 3
        assert d["parameters"]["names"] == ["x0", "x1", "x2", "x3"]
        assert d["parameters"]["groups"] == ["a", "b", "b", "c"]
        assert d["parameters"]["levels"] == [4, 3, 3, 2]
        assert d["parameters"]["bounds"][2] == [0.0, 2.0]
        assert d["statistics"]["group_ids"] == ["a", "b", "c"]
        assert d["statistics"]["output_shape"] == [2]

    def test_json_serializable(self, grouped_space):
        s = _make_example_report(grouped_space).to_json()
        parsed = json.loads(s)
        assert parsed["schema_version"] == "1.0"
        assert len(parsed["statistics"]["mean"]["b"]) == 2

    def test_without_space_or_config(self, grouped_space):
        result = morris_screening(
            lambda x: float(x[0]), grouped_space,
            num_trajectory=2, total_num_trajectory=6, seed=1,
        )
        d = MorrisReport.from_result(result).to_dict()
        assert d["run"]["label"] == "morris"
        assert d["parameters"]["bounds"] == []
        assert validate_report(d) == []


class TestValidation:
    """Test validate_report checks."""

    def test_valid_report_passes(self, grouped_space):
        d = _make_example_report(grouped_space).to_dict()
        assert validate_report(d) == []

    def test_missing_schema_version(self, grouped_space):
        d = _make_example_report(grouped_space).to_dict()
        del d["schema_version"]
        errors = validate_report(d)
        assert any("schema_version" in e for e in errors)

    def test_missing_section(self, grouped_space):
        d = _make_example_report(grouped_space).to_dict()
        del d["statistics"]
        errors = validate_report(d)
        assert any("statistics" in e for e in errors)

    def test_missing_group_statistic(self, grouped_space):
        d = _make_example_report(grouped_space).to_dict()
        del d["statistics"]["variance"]["c"]
        errors = validate_report(d)
        assert any("variance" in e and "c" in e for e in errors)

    def test_wrong_shape(self, grouped_space):
        d = _make_example_report(grouped_space).to_dict()
        d["statistics"]["mean"]["a"] = 1.0
        errors = validate_report(d)
        assert any("shape" in e for e in errors)

    def test_unknown_parameter_group(self, grouped_space):
        d = _make_example_report(grouped_space).to_dict()
        d["parameters"]["groups"][0] = "z"
        errors = validate_report(d)
        assert any("'z'" in e for e in errors)


class TestCompareReports:
    """Test compare_reports utility."""

    def test_compare_two(self, grouped_space):
        r1 = _make_example_report(grouped_space, "run_a", seed=0).to_dict()
        r2 = _make_example_report(grouped_space, "run_b", seed=1).to_dict()
        result = compare_reports(r1, r2)
        assert result["reports"] == ["run_a", "run_b"]
        assert result["shared_groups"] == ["a", "b", "c"]
        for g in ["a", "b", "c"]:
            assert result["per_group"][g]["range"] >= 0.0

    def test_compare_needs_two(self, grouped_space):
        r1 = _make_example_report(grouped_space).to_dict()
        assert "error" in compare_reports(r1)

    def test_unique_groups_tracked(self, grouped_space):
        r1 = _make_example_report(grouped_space, "a").to_dict()
        r2 = _make_example_report(grouped_space, "b").to_dict()
        r2["statistics"]["group_ids"] = ["a", "b"]
        result = compare_reports(r1, r2)
        assert result["unique_groups"]["a"] == ["c"]
        assert result["unique_groups"]["b"] == []


class TestNumpyEncoder:
    """Test NumpyEncoder handles all numpy types."""

    def test_ndarray(self):
        s = json.dumps({"arr": np.array([1.0, 2.0, 3.0])}, cls=NumpyEncoder)
        assert json.loads(s) == {"arr": [1.0, 2.0, 3.0]}

    def test_integer(self):
        s = json.dumps({"n": np.int64(42)}, cls=NumpyEncoder)
        assert json.loads(s) == {"n": 42}

    def test_floating(self):
        parsed = json.loads(json.dumps({"x": np.float64(3.14)}, cls=NumpyEncoder))
        assert parsed["x"] == pytest.approx(3.14)

    def test_bool(self):
        s = json.dumps({"b": np.bool_(True)}, cls=NumpyEncoder)
        assert json.loads(s) == {"b": True}

    def test_unsupported_type(self):
        with pytest.raises(TypeError):
            json.dumps({"s": {1, 2}}, cls=NumpyEncoder)
