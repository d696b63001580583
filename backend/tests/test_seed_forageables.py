import importlib.util
from pathlib import Path

import pytest

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "seed_forageables.py"


@pytest.fixture
def seed_script():
    spec = importlib.util.spec_from_file_location("seed_forageables", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_log_level_defaults_to_env(seed_script, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    assert seed_script.build_parser().parse_args([]).log_level == "DEBUG"


def test_log_level_flag_overrides_env(seed_script, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    args = seed_script.build_parser().parse_args(["--log-level", "WARNING", "--timeout", "2"])
    assert args.log_level == "WARNING"
    assert args.timeout == 2.0
