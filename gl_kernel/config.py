"""
Ledger configuration.

Responsibility:
    Holds the small set of policy knobs the ledger core needs (minor-unit
    precision, account code rule, entry numbering, reversal dating) and
    loads them from a YAML file.

Failure modes:
    - ``FileNotFoundError`` -- YAML file does not exist.
    - ``yaml.YAMLError`` -- malformed YAML.
    - ``ValueError`` -- a value is out of range or of the wrong kind.

Example YAML::

    ledger:
      currency: USD
      minor_unit_places: 2
      account_code_max_length: 20
      entry_number_prefix: JE
      entry_number_width: 6
      reversal_date_policy: reversal_date
"""

from __future__ import annotations

import re
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from gl_kernel.logging_config import get_logger

logger = get_logger("config")

_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")


class ReversalDatePolicy(str, Enum):
    """Which date a reversing entry is posted on."""

    REVERSAL_DATE = "reversal_date"
    ORIGINAL_DATE = "original_date"


@dataclass(frozen=True)
class LedgerConfig:
    """
    Immutable ledger policy.

    ``currency`` is a display label only; the ledger holds a single currency
    and all amounts are integers in units of ``10 ** -minor_unit_places``.
    """

    currency: str = "USD"
    minor_unit_places: int = 2
    account_code_max_length: int = 20
    entry_number_prefix: str = "JE"
    entry_number_width: int = 6
    reversal_date_policy: ReversalDatePolicy = ReversalDatePolicy.REVERSAL_DATE

    def __post_init__(self) -> None:
        if not _CURRENCY_RE.match(self.currency):
            raise ValueError(f"currency must be 3 upper-case letters, got {self.currency!r}")
        if not 0 <= self.minor_unit_places <= 6:
            raise ValueError(
                f"minor_unit_places must be between 0 and 6, got {self.minor_unit_places}"
            )
        if not 1 <= self.account_code_max_length <= 50:
            raise ValueError(
                "account_code_max_length must be between 1 and 50, "
                f"got {self.account_code_max_length}"
            )
        if self.entry_number_width < 1:
            raise ValueError(
                f"entry_number_width must be positive, got {self.entry_number_width}"
            )
        if not self.entry_number_prefix:
            raise ValueError("entry_number_prefix must not be empty")

    def format_entry_number(self, seq: int) -> str:
        """Render a sequence value as a human-readable entry number."""
        return f"{self.entry_number_prefix}-{seq:0{self.entry_number_width}d}"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LedgerConfig:
        """Build a config from a plain mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown ledger config keys: {sorted(unknown)}")

        values = dict(data)
        if "reversal_date_policy" in values:
            values["reversal_date_policy"] = ReversalDatePolicy(
                values["reversal_date_policy"]
            )
        for key in ("minor_unit_places", "account_code_max_length", "entry_number_width"):
            if key in values and not isinstance(values[key], int):
                raise ValueError(f"{key} must be an integer, got {values[key]!r}")
        return cls(**values)


def load_config(path: Path | str) -> LedgerConfig:
    """
    Load a ``LedgerConfig`` from a YAML file.

    The file may hold the settings at top level or under a ``ledger`` key.
    An empty file yields the defaults.
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"Ledger config in {path} must be a mapping")

    section = raw.get("ledger", raw)
    if not isinstance(section, dict):
        raise ValueError(f"'ledger' section in {path} must be a mapping")

    config = LedgerConfig.from_dict(section)
    logger.info(
        "ledger_config_loaded",
        extra={
            "path": str(path),
            "currency": config.currency,
            "minor_unit_places": config.minor_unit_places,
            "reversal_date_policy": config.reversal_date_policy.value,
        },
    )
    return config
