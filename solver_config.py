"""
Solver pacing configuration.

The visualizer slows the search down by sleeping after every emitted step.
The delay is plain configuration handed to the paced solve call; it can be
set on the command line or through environment variables:

- SUDOKU_STEP_DELAY: seconds to wait after each placement/retraction
- SUDOKU_LOG_LEVEL: loguru level used by the command line tool
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Optional

STEP_DELAY_ENV = "SUDOKU_STEP_DELAY"
LOG_LEVEL_ENV = "SUDOKU_LOG_LEVEL"

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class SolverConfig:
    step_delay: float = 0.0
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.step_delay < 0:
            raise ValueError(f"step_delay must be >= 0, got {self.step_delay}.")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")

    @property
    def paced(self) -> bool:
        return self.step_delay > 0

    @classmethod
    def from_env(cls) -> "SolverConfig":
        return cls(
            step_delay=_read_delay(os.getenv(STEP_DELAY_ENV)),
            log_level=(os.getenv(LOG_LEVEL_ENV) or "INFO").upper(),
        )

    def with_overrides(
        self,
        *,
        step_delay: Optional[float] = None,
        log_level: Optional[str] = None,
    ) -> "SolverConfig":
        changes = {}
        if step_delay is not None:
            changes["step_delay"] = step_delay
        if log_level is not None:
            changes["log_level"] = log_level.upper()
        return replace(self, **changes)


def _read_delay(raw: Optional[str]) -> float:
    if raw is None or not raw.strip():
        return 0.0
    try:
        delay = float(raw)
    except ValueError as exc:
        raise ValueError(
            f"{STEP_DELAY_ENV} must be a number of seconds, got {raw!r}."
        ) from exc
    if delay < 0:
        raise ValueError(f"{STEP_DELAY_ENV} must be >= 0, got {raw!r}.")
    return delay


__all__ = [
    "LOG_LEVEL_ENV",
    "STEP_DELAY_ENV",
    "SolverConfig",
]
