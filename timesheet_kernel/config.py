"""
Kernel Configuration (``timesheet_kernel.config``).

Responsibility
--------------
Typed, frozen runtime settings for the timesheet kernel: database URL,
the daily hour cap, the per-cell hour bound, budget-status thresholds and
the save conflict retry budget.  Settings come from a YAML file, with
environment overrides for deployment-specific values.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys or inconsistent values  -> ``ValueError``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from decimal import Decimal
from pathlib import Path
from typing import Any, Mapping

import yaml

_DECIMAL_FIELDS = (
    "daily_cap_hours",
    "max_cell_hours",
    "budget_over_threshold_pct",
    "budget_under_threshold_pct",
)


@dataclass(frozen=True)
class KernelConfig:
    """Configuration for the timesheet reconciliation core."""
    database_url: str = "sqlite://"
    daily_cap_hours: Decimal = Decimal("24")
    max_cell_hours: Decimal = Decimal("24")
    # budget_status policy: pct > over -> "over", pct < under -> "under"
    budget_over_threshold_pct: Decimal = Decimal("10")
    budget_under_threshold_pct: Decimal = Decimal("-10")
    save_conflict_retries: int = 1
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.daily_cap_hours <= 0:
            raise ValueError("daily_cap_hours must be positive")
        if self.max_cell_hours <= 0:
            raise ValueError("max_cell_hours must be positive")
        if self.budget_under_threshold_pct > self.budget_over_threshold_pct:
            raise ValueError(
                "budget_under_threshold_pct must not exceed budget_over_threshold_pct"
            )
        if self.save_conflict_retries < 0:
            raise ValueError("save_conflict_retries must not be negative")


DEFAULT_CONFIG = KernelConfig()


def config_from_mapping(data: Mapping[str, Any]) -> KernelConfig:
    """Build a ``KernelConfig`` from a plain mapping (e.g. parsed YAML)."""
    known = {f.name for f in fields(KernelConfig)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")

    values: dict[str, Any] = {}
    for key, val in data.items():
        if key in _DECIMAL_FIELDS:
            values[key] = Decimal(str(val))
        elif key == "save_conflict_retries":
            values[key] = int(val)
        else:
            values[key] = str(val)
    return KernelConfig(**values)


def load_config(path: Path | str) -> KernelConfig:
    """
    Load a YAML configuration file.

    An empty file yields the defaults.  Environment overrides are NOT
    applied here; see ``config_from_env``.
    """
    with open(path, encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration root in {path} must be a mapping")
    return config_from_mapping(data)


def config_from_env(
    base: KernelConfig | None = None,
    environ: Mapping[str, str] | None = None,
) -> KernelConfig:
    """Apply ``DATABASE_URL`` and ``TIMESHEET_LOG_LEVEL`` overrides."""
    env = os.environ if environ is None else environ
    config = base or DEFAULT_CONFIG
    overrides: dict[str, Any] = {}
    if env.get("DATABASE_URL"):
        overrides["database_url"] = env["DATABASE_URL"]
    if env.get("TIMESHEET_LOG_LEVEL"):
        overrides["log_level"] = env["TIMESHEET_LOG_LEVEL"].upper()
    return replace(config, **overrides) if overrides else config
