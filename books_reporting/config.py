"""
Reporting Configuration Schema.

Defines the inception date for point-in-time balances, the bank-account
name heuristic, and display options.  Loadable from a dict or a YAML file.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Self

import yaml

from books_kernel.logging_config import get_logger
from books_kernel.models.transaction import parse_date
from books_reporting.periods import EPOCH, DEFAULT_PRESET, Granularity, PeriodPreset

logger = get_logger("reporting.config")

DEFAULT_BANK_NAME_KEYWORDS: tuple[str, ...] = ("cash", "bank", "checking", "savings")


@dataclass
class ReportingConfig:
    """
    Configuration schema for the reporting module.

    bank_name_keywords drives the name-based bank account heuristic used by
    the cash flow statement; an account whose type is Bank Account always
    counts regardless of its name.
    """

    # Entity name shown on reports
    entity_name: str = "Company"

    # Lower bound of every point-in-time balance
    epoch: date = EPOCH

    # Case-insensitive substrings that mark an account as a bank account
    bank_name_keywords: tuple[str, ...] = DEFAULT_BANK_NAME_KEYWORDS

    # Leaf rows whose total is below this magnitude are not displayed
    zero_threshold: Decimal = Decimal("0.01")

    # Decimal places of formatted percentages
    percentage_places: int = 1

    default_preset: PeriodPreset = DEFAULT_PRESET
    default_granularity: Granularity = Granularity.MONTH

    def __post_init__(self):
        self.epoch = parse_date(self.epoch)
        self.zero_threshold = Decimal(str(self.zero_threshold))
        self.bank_name_keywords = tuple(k.lower() for k in self.bank_name_keywords)
        self.default_preset = PeriodPreset.parse(self.default_preset)
        self.default_granularity = Granularity.parse(self.default_granularity)
        if self.zero_threshold < 0:
            raise ValueError("zero_threshold cannot be negative")
        if self.percentage_places < 0:
            raise ValueError("percentage_places cannot be negative")

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults."""
        logger.info("reporting_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create config from dictionary."""
        data = dict(data)
        if "bank_name_keywords" in data:
            data["bank_name_keywords"] = tuple(data["bank_name_keywords"])
        logger.info(
            "reporting_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Self:
        """Create config from a YAML file; an empty file gives the defaults."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Reporting config {path} must be a mapping")
        return cls.from_dict(data)
