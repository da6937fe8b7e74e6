"""Environment-driven settings shared by the API and the console interface."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Mapping, Optional, Tuple

from .store import DEFAULT_SLOT

DEV_ENVIRONMENTS = frozenset({"dev", "development"})


@dataclass(frozen=True)
class Settings:
    environment: str = "prod"
    data_dir: Path = Path("data")
    storage_slot: str = DEFAULT_SLOT
    currency_symbol: str = "$"
    allowed_origins: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_development(self) -> bool:
        return self.environment in DEV_ENVIRONMENTS

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        origins = env.get("EXPENSE_TRACKER_ALLOWED_ORIGINS", "")
        return cls(
            environment=env.get("EXPENSE_TRACKER_ENV", "prod").strip().lower(),
            data_dir=Path(env.get("EXPENSE_TRACKER_DATA_DIR") or "data"),
            storage_slot=env.get("EXPENSE_TRACKER_STORAGE_SLOT") or DEFAULT_SLOT,
            currency_symbol=env.get("EXPENSE_TRACKER_CURRENCY_SYMBOL", "$"),
            allowed_origins=tuple(
                origin.strip() for origin in origins.split(",") if origin.strip()
            ),
        )

    def with_data_dir(self, data_dir: Optional[Path]) -> "Settings":
        if data_dir is None:
            return self
        return replace(self, data_dir=Path(data_dir))
