"""
Submission configuration.

Every knob of the submit/confirm protocol lives here so tests can run the
loop with an accelerated clock and tiny budgets.

Usage:
    from tx_lander.config import load_config

    cfg = load_config("bots/lander.yaml")   # YAML + TX_LANDER_* env overrides
    cfg = SubmitConfig(gateway_retries=3, gateway_delay=0.0)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from dotenv import load_dotenv

from tx_lander.core.errors import ConfigError
from tx_lander.utils.logger import get_logger

logger = get_logger(__name__)

ENV_PREFIX = "TX_LANDER_"

VALID_COMMITMENTS = ("processed", "confirmed", "finalized")
DEFAULT_FEE_STRATEGY = "helius"

_REQUIRED_NUMBERS = (
    "gateway_retries", "gateway_delay", "rpc_retries", "confirm_retries",
    "confirm_delay", "min_sol_balance", "max_compute_units",
)


@dataclass
class SubmitConfig:
    """Limits and fee settings for one sender."""
    # Retry loop
    gateway_retries: int = 150          # 151 submissions in total
    gateway_delay: float = 0.3          # seconds between attempts
    rpc_retries: int = 0                # retries left to the RPC node itself

    # Confirmation
    confirm_retries: int = 1
    confirm_delay: float = 0.0

    # Pre-flight
    min_sol_balance: float = 0.005

    # Compute budget
    max_compute_units: int = 1_400_000
    commitment: str = "confirmed"

    # Priority fee (microlamports per CU)
    priority_fee: Optional[int] = None
    dynamic_fee_url: Optional[str] = None
    dynamic_fee_strategy: Optional[str] = None
    dynamic_fee_max: Optional[int] = None
    dynamic_fee_accounts: Optional[list[str]] = None   # accounts to scope fee estimates to

    def __post_init__(self):
        self.validate()
        if self.dynamic_fee_url and not self.dynamic_fee_strategy:
            self.dynamic_fee_strategy = DEFAULT_FEE_STRATEGY

    @property
    def uses_dynamic_fee(self) -> bool:
        return bool(self.dynamic_fee_url)

    def validate(self) -> None:
        for name in _REQUIRED_NUMBERS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigError(f"{name} must be a number, got {value!r}")
        for name in ("gateway_retries", "rpc_retries", "confirm_retries"):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must be >= 0, got {getattr(self, name)}")
        for name in ("gateway_delay", "confirm_delay", "min_sol_balance"):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must be >= 0, got {getattr(self, name)}")
        if not 0 < self.max_compute_units <= 0xFFFFFFFF:
            raise ConfigError(f"max_compute_units out of range: {self.max_compute_units}")
        if self.commitment not in VALID_COMMITMENTS:
            raise ConfigError(
                f"Unknown commitment '{self.commitment}', expected one of {VALID_COMMITMENTS}"
            )
        if self.priority_fee is not None and self.priority_fee < 0:
            raise ConfigError(f"priority_fee must be >= 0, got {self.priority_fee}")
        if self.dynamic_fee_max is not None and self.dynamic_fee_max < 0:
            raise ConfigError(f"dynamic_fee_max must be >= 0, got {self.dynamic_fee_max}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SubmitConfig":
        """Build config from a mapping, ignoring keys this class does not know."""
        known = {f.name: f for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            if key not in known:
                logger.debug(f"Ignoring unknown config key: {key}")
                continue
            kwargs[key] = _coerce(key, value, known[key].type)
        return cls(**kwargs)


def _coerce(key: str, value: Any, type_name: str) -> Any:
    """Convert YAML/env values to the declared field type."""
    if value is None or value == "":
        if type_name.startswith("Optional"):
            return None
        raise ConfigError(f"{key} must not be blank")
    if "list" in type_name:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if isinstance(value, (list, tuple)):
            return [str(item) for item in value]
        raise ConfigError(f"Invalid value for {key}: {value!r}")
    try:
        if "int" in type_name:
            return int(value)
        if "float" in type_name:
            return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value for {key}: {value!r}") from e
    return str(value)


def _env_overrides() -> dict[str, str]:
    overrides = {}
    for f in fields(SubmitConfig):
        env_key = ENV_PREFIX + f.name.upper()
        if env_key in os.environ:
            overrides[f.name] = os.environ[env_key]
    return overrides


def load_config(path: str | Path | None = None) -> SubmitConfig:
    """
    Load submission config.

    Values come from the YAML file (the `submit:` section if present, else
    the top level), then TX_LANDER_* environment variables, which win.

    Raises:
        ConfigError: If the file is missing/malformed or a value is invalid.
    """
    load_dotenv()

    data: dict[str, Any] = {}
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
        try:
            with open(config_path) as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Malformed YAML in {config_path}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigError(f"Config root must be a mapping: {config_path}")
        data.update(raw.get("submit", raw))

    data.update(_env_overrides())
    cfg = SubmitConfig.from_dict(data)
    logger.info(
        f"Submit config loaded: retries={cfg.gateway_retries}, "
        f"delay={cfg.gateway_delay}s, commitment={cfg.commitment}, "
        f"dynamic_fee={'on' if cfg.uses_dynamic_fee else 'off'}"
    )
    return cfg
