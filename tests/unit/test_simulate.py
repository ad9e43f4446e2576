import numpy as np
import pytest

from simulate import RAW_COLUMNS, check_simulated_data, save_simulated_data, simulate_raw_data


def test_simulation_shape_and_invariants(simulated_raw):
    assert list(simulated_raw.columns) == RAW_COLUMNS
    check_simulated_data(simulated_raw, 1000)


def test_simulation_has_blank_wards_and_codes(simulated_raw):
    assert (simulated_raw["propertyWard"] == "").any()
    assert (simulated_raw["VIOLATION_FIRE_CODE"] == "").mean() == pytest.approx(0.1, abs=0.04)


def test_simulation_is_reproducible():
    a = simulate_raw_data(50, np.random.default_rng(3))
    b = simulate_raw_data(50, np.random.default_rng(3))
    assert a.equals(b)


def test_check_rejects_bad_enforcement(simulated_raw):
    bad = simulated_raw.copy()
    bad.loc[0, "enforcementProceedings"] = "Maybe"
    with pytest.raises(AssertionError, match="Yes/No"):
        check_simulated_data(bad)


def test_save_simulated_data(tmp_path):
    path = save_simulated_data(simulate_raw_data(5), str(tmp_path / "sim" / "s.csv"))
    assert (tmp_path / "sim" / "s.csv").exists()
    assert path.endswith("s.csv")
