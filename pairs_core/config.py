from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError

DEFAULT_SAVE_KEY = "PAIRS_MATCH_SAVE"


@dataclass(frozen=True)
class EngineConfig:
    """Fixed for the lifetime of an engine."""
    rows: int = 2
    columns: int = 2
    mismatch_delay_seconds: float = 0.6
    match_score_value: int = 10
    save_key: str = DEFAULT_SAVE_KEY

    def __post_init__(self) -> None:
        if self.rows < 1 or self.columns < 1:
            raise ConfigurationError(f'rows and columns must be >= 1 (got {self.rows}x{self.columns})')
        if not self.mismatch_delay_seconds > 0:
            raise ConfigurationError(f'mismatch delay must be > 0 (got {self.mismatch_delay_seconds})')
        if self.match_score_value < 0:
            raise ConfigurationError(f'match score value must be >= 0 (got {self.match_score_value})')
        if not self.save_key:
            raise ConfigurationError('save key must not be empty')


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f'{name} must be an integer (got {raw!r})') from e


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f'{name} must be a number (got {raw!r})') from e


def config_from_env(base: Optional[EngineConfig] = None) -> EngineConfig:
    """Overrides `base` (or the defaults) with PAIRS_ROWS, PAIRS_COLUMNS, PAIRS_MISMATCH_DELAY,
    PAIRS_MATCH_SCORE and PAIRS_SAVE_KEY when they are set."""
    b = base or EngineConfig()
    return EngineConfig(
        rows=_env_int("PAIRS_ROWS", b.rows),
        columns=_env_int("PAIRS_COLUMNS", b.columns),
        mismatch_delay_seconds=_env_float("PAIRS_MISMATCH_DELAY", b.mismatch_delay_seconds),
        match_score_value=_env_int("PAIRS_MATCH_SCORE", b.match_score_value),
        save_key=os.getenv("PAIRS_SAVE_KEY") or b.save_key,
    )
