from __future__ import annotations

import os
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from sellabroad.infra.money import as_decimal
from sellabroad.infra.logging_std import get_logger

logger = get_logger(__name__)


# =========================
# CONFIG MODELS
# =========================


class ShippingRates(BaseModel):
    """
    Tiered shipping tariff.

    Rates are quoted in the carrier's currency (INR) and converted to the
    reporting currency (USD) by dividing by ``source_units_per_usd``.
    """

    model_config = ConfigDict(frozen=True)

    base_rate_per_kg: Decimal = Decimal("900")
    discount_factor: Decimal = Decimal("0.85")
    max_tier: int = Field(default=10, ge=0)
    source_units_per_usd: Decimal = Decimal("83")

    @field_validator("base_rate_per_kg", "discount_factor", "source_units_per_usd", mode="before")
    @classmethod
    def _coerce_decimal(cls, v: Any) -> Decimal:
        try:
            return as_decimal(v, "shipping")
        except TypeError as exc:
            raise ValueError(str(exc)) from exc

    @field_validator("source_units_per_usd")
    @classmethod
    def _positive_fx(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("source_units_per_usd must be > 0")
        return v

    @property
    def conversion_rate(self) -> Decimal:
        return Decimal(1) / self.source_units_per_usd


class GrowthAssumptions(BaseModel):
    """Marketing growth and customer-acquisition-cost decay over the horizon."""

    model_config = ConfigDict(frozen=True)

    monthly_growth_factor: Decimal = Decimal("1.05")
    cac_percents: Tuple[int, ...] = (35, 33, 30, 28, 25, 25, 25, 25, 25, 25, 25, 25)

    @field_validator("monthly_growth_factor", mode="before")
    @classmethod
    def _coerce_decimal(cls, v: Any) -> Decimal:
        try:
            return as_decimal(v, "monthly_growth_factor")
        except TypeError as exc:
            raise ValueError(str(exc)) from exc

    @field_validator("cac_percents")
    @classmethod
    def _non_empty(cls, v: Tuple[int, ...]) -> Tuple[int, ...]:
        if not v:
            raise ValueError("cac_percents must not be empty")
        return v


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "text"


class LeadCaptureConfig(BaseModel):
    api_base_url: str = ""
    timeout_s: float = 20.0
    retry_max: int = Field(default=2, ge=0)
    dry_run: bool = False


class AppConfig(BaseModel):
    shipping: ShippingRates = Field(default_factory=ShippingRates)
    growth: GrowthAssumptions = Field(default_factory=GrowthAssumptions)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    lead_capture: LeadCaptureConfig = Field(default_factory=LeadCaptureConfig)


# =========================
# LOADER
# =========================

_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "default.yml"

_APP_CONFIG: Optional[AppConfig] = None


def _read_raw_yaml(path: Path) -> Dict[str, Any]:
    """Read YAML; any problem yields an empty mapping."""
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file not found, using defaults", extra={"extra_data": {"config_path": str(path)}})
        return {}
    except (OSError, yaml.YAMLError) as exc:
        logger.error(
            "Error reading config file, using defaults",
            extra={"extra_data": {"config_path": str(path), "error": str(exc)}},
        )
        return {}

    if not isinstance(data, dict):
        logger.error(
            "Config YAML root is not a mapping, falling back to defaults",
            extra={"extra_data": {"config_path": str(path)}},
        )
        return {}
    return data


def _env_overrides(raw: Dict[str, Any]) -> Dict[str, Any]:
    out = {k: dict(v) if isinstance(v, dict) else v for k, v in raw.items()}

    lead = out.setdefault("lead_capture", {})
    if os.getenv("SELLABROAD_API_URL"):
        lead["api_base_url"] = os.getenv("SELLABROAD_API_URL")
    if os.getenv("SELLABROAD_LEAD_DRY_RUN"):
        lead["dry_run"] = os.getenv("SELLABROAD_LEAD_DRY_RUN", "").lower() == "true"

    log = out.setdefault("logging", {})
    if os.getenv("LOG_LEVEL"):
        log["level"] = os.getenv("LOG_LEVEL")
    if os.getenv("LOG_FORMAT"):
        log["format"] = os.getenv("LOG_FORMAT")
    return out


def load_config(path: Optional[Path] = None) -> AppConfig:
    """
    Load configuration from YAML (plus environment) and validate it.

    - No file: defaults.
    - Malformed or invalid: defaults, with an error log line.
    - Cached in memory unless an explicit path is given.
    """
    global _APP_CONFIG

    if _APP_CONFIG is not None and path is None:
        return _APP_CONFIG

    load_dotenv()
    config_path = Path(path) if path is not None else _DEFAULT_CONFIG_PATH
    raw = _env_overrides(_read_raw_yaml(config_path))

    try:
        app_config = AppConfig(**raw)
    except ValidationError as exc:
        logger.error(
            "Invalid config, using defaults",
            extra={"extra_data": {"config_path": str(config_path), "error": str(exc)}},
        )
        app_config = AppConfig()
    else:
        logger.debug("Config loaded", extra={"extra_data": {"config_path": str(config_path)}})

    if path is None:
        _APP_CONFIG = app_config
    return app_config


def get_app_config() -> AppConfig:
    return load_config()


def reset_config_cache() -> None:
    global _APP_CONFIG
    _APP_CONFIG = None
