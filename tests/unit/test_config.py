from importlib import reload

import pytest

import config


@pytest.fixture
def reload_config(monkeypatch):
    yield lambda: reload(config)
    monkeypatch.undo()
    reload(config)


def test_defaults(monkeypatch, reload_config):
    for var in ("SPLIT_SEED", "TRAIN_FRACTION", "N_ESTIMATORS", "VALID_VIOLATION_CODES"):
        monkeypatch.delenv(var, raising=False)
    cfg = reload_config()
    assert cfg.RANDOM_SEED == 123
    assert cfg.TRAIN_FRACTION == 0.8
    assert cfg.N_ESTIMATORS == 500
    assert cfg.VALID_VIOLATION_CODES == cfg.SIMULATED_VIOLATION_CODES
    assert not cfg.VIOLATION_CODES_FROM_ENV


def test_env_overrides(monkeypatch, reload_config):
    monkeypatch.setenv("SPLIT_SEED", "7")
    monkeypatch.setenv("N_ESTIMATORS", "50")
    monkeypatch.setenv("VALID_VIOLATION_CODES", "4.1.5.8, 2.4.1.1 ,")
    cfg = reload_config()
    assert cfg.RANDOM_SEED == 7
    assert cfg.N_ESTIMATORS == 50
    assert cfg.VALID_VIOLATION_CODES == ("4.1.5.8", "2.4.1.1")
    assert cfg.VIOLATION_CODES_FROM_ENV


def test_wildcard_disables_code_check(monkeypatch, reload_config):
    monkeypatch.setenv("VALID_VIOLATION_CODES", "*")
    assert reload_config().VALID_VIOLATION_CODES is None


def test_parse_codes():
    assert config.parse_codes(None) == config.SIMULATED_VIOLATION_CODES
    assert config.parse_codes(" * ") is None
    assert config.parse_codes("a, b,,") == ("a", "b")
