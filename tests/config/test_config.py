"""
Tests for KernelConfig loading.

Covers:
- YAML loading and type coercion
- Rejection of unknown keys and inconsistent values
- Environment overrides
"""

from dataclasses import FrozenInstanceError
from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from timesheet_kernel.config import (
    DEFAULT_CONFIG,
    KernelConfig,
    config_from_env,
    config_from_mapping,
    load_config,
)

EXAMPLE_CONFIG = Path(__file__).resolve().parents[2] / "config" / "timesheet.example.yaml"


class TestLoadConfig:

    def test_defaults(self):
        assert DEFAULT_CONFIG.daily_cap_hours == Decimal("24")
        assert DEFAULT_CONFIG.budget_over_threshold_pct == Decimal("10")
        assert DEFAULT_CONFIG.budget_under_threshold_pct == Decimal("-10")
        assert DEFAULT_CONFIG.save_conflict_retries == 1

    def test_yaml_values_are_coerced(self, tmp_path):
        path = tmp_path / "timesheet.yaml"
        path.write_text(
            yaml.safe_dump({
                "daily_cap_hours": 12.5,
                "budget_over_threshold_pct": 15,
                "save_conflict_retries": "2",
                "database_url": "sqlite://",
            })
        )

        config = load_config(path)

        assert config.daily_cap_hours == Decimal("12.5")
        assert isinstance(config.budget_over_threshold_pct, Decimal)
        assert config.save_conflict_retries == 2
        assert config.max_cell_hours == Decimal("24")

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == DEFAULT_CONFIG

    def test_example_file_loads(self):
        config = load_config(EXAMPLE_CONFIG)
        assert config.database_url.startswith("postgresql+psycopg2://")

    def test_unknown_key_rejected(self, tmp_path):
        path = tmp_path / "typo.yaml"
        path.write_text("daily_cap_hour: 24\n")
        with pytest.raises(ValueError, match="daily_cap_hour"):
            load_config(path)

    def test_non_mapping_root_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")


class TestValidation:

    @pytest.mark.parametrize(
        "values",
        [
            {"daily_cap_hours": "0"},
            {"max_cell_hours": "-1"},
            {"budget_over_threshold_pct": "-20"},
            {"save_conflict_retries": "-1"},
        ],
    )
    def test_inconsistent_values_rejected(self, values):
        with pytest.raises(ValueError):
            config_from_mapping(values)

    def test_config_is_frozen(self):
        with pytest.raises(FrozenInstanceError):
            KernelConfig().daily_cap_hours = Decimal("8")


class TestEnvironmentOverrides:

    def test_database_url_and_log_level(self):
        config = config_from_env(
            environ={"DATABASE_URL": "postgresql+psycopg2://u@db/t", "TIMESHEET_LOG_LEVEL": "debug"},
        )
        assert config.database_url == "postgresql+psycopg2://u@db/t"
        assert config.log_level == "DEBUG"

    def test_no_overrides_returns_base(self):
        base = config_from_mapping({"daily_cap_hours": "10"})
        assert config_from_env(base, environ={}) is base
