"""
kitchenledger.config
~~~~~~~~~~~~~~~~~~~~
Central configuration for the kitchenledger library.

All values have sensible defaults for a Dutch cloud kitchen. Override any
field via a ``.env`` file or environment variables — pydantic-settings
picks them up automatically.

Usage::

    from kitchenledger.config import cfg

    print(cfg.rounding_policy)          # "aggregate"
    print(cfg.get_ledger_config())      # typed LedgerConfig dataclass
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .storage.project import normalise_project_name


VALID_VAT_RATES = (0, 9, 21)
ROUNDING_POLICIES = ("aggregate", "per_record")


# ---------------------------------------------------------------------------
# Typed return value for ledger configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LedgerConfig:
    """Immutable snapshot of the settings the tax ledger depends on."""

    currency: str
    rounding_policy: str
    default_sale_vat_rate: int
    default_expense_vat_rate: int
    kor_threshold: Decimal


# ---------------------------------------------------------------------------
# Main settings class
# ---------------------------------------------------------------------------

class Config(BaseSettings):
    """
    Runtime configuration for kitchenledger.

    Reads from (in priority order):
      1. Environment variables (prefixed with ``KITCHENLEDGER_``)
      2. A ``.env`` file in the working directory
      3. The defaults defined below
    """

    model_config = SettingsConfigDict(
        env_prefix="KITCHENLEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Business
    # ------------------------------------------------------------------

    business_name: str = Field(
        default="My Cloud Kitchen",
        description="Trade name printed on report headers.",
    )
    currency: str = Field(
        default="EUR",
        min_length=3,
        max_length=3,
        description="ISO 4217 currency code used when rendering amounts.",
    )

    # ------------------------------------------------------------------
    # VAT (BTW)
    # ------------------------------------------------------------------

    default_sale_vat_rate: int = Field(
        default=9,
        description="VAT rate applied to new orders and invoices (9 % for food).",
    )
    default_expense_vat_rate: int = Field(
        default=9,
        description="VAT rate pre-selected for new expenses.",
    )
    rounding_policy: str = Field(
        default="aggregate",
        description=(
            "'aggregate' sums exact VAT portions and rounds only the totals; "
            "'per_record' rounds every record's VAT before summing."
        ),
    )
    kor_threshold: Decimal = Field(
        default=Decimal("20000"),
        ge=0,
        description="Annual revenue ceiling for the small-business scheme (KOR).",
    )

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    project: str = Field(
        default="default",
        description="Project folder under ~/.kitchenledger/.",
    )
    db_path: Optional[Path] = Field(
        default=None,
        description="Explicit SQLite path. Overrides the project layout when set.",
    )

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("default_sale_vat_rate", "default_expense_vat_rate")
    @classmethod
    def _validate_rate(cls, v: int) -> int:
        if v not in VALID_VAT_RATES:
            raise ValueError(f"VAT rate must be one of {VALID_VAT_RATES}, got {v}.")
        return v

    @field_validator("rounding_policy")
    @classmethod
    def _validate_policy(cls, v: str) -> str:
        normalised = v.strip().lower().replace("-", "_")
        if normalised not in ROUNDING_POLICIES:
            raise ValueError(f"rounding_policy must be one of {ROUNDING_POLICIES}.")
        return normalised

    @field_validator("project")
    @classmethod
    def _strip_project(cls, v: str) -> str:
        return normalise_project_name(v)

    # ------------------------------------------------------------------
    # Helper methods
    # ------------------------------------------------------------------

    def get_ledger_config(self) -> LedgerConfig:
        """Return an immutable, typed snapshot of the ledger configuration."""
        return LedgerConfig(
            currency=self.currency,
            rounding_policy=self.rounding_policy,
            default_sale_vat_rate=self.default_sale_vat_rate,
            default_expense_vat_rate=self.default_expense_vat_rate,
            kor_threshold=self.kor_threshold,
        )


# ---------------------------------------------------------------------------
# Module-level singleton, import this everywhere
# ---------------------------------------------------------------------------

cfg = Config()

__all__ = ["Config", "LedgerConfig", "ROUNDING_POLICIES", "VALID_VAT_RATES", "cfg"]
