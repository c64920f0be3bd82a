"""
Benchmark configuration.

Defaults reproduce the standard sweep: a 300 s deadline per run over
RETRY ∈ {5, 10} × N_HEIGHTS ∈ {5, 10, 25, 50, 100}. Any field can be
overridden from a YAML file:

    deadline_seconds: 60
    candidate_values: [5, 10]
    notify: false
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from packt_bench.core.errors import ConfigError


class BenchConfig(BaseModel):
    """All tuneable parameters of a benchmark sweep."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    deadline_seconds: float = Field(default=300.0, ge=0, description="Per-run wall-clock deadline")
    kill_grace_seconds: float = Field(
        default=5.0,
        gt=0,
        description="How long to wait for a killed solver to be reaped",
    )
    retry_values: list[int] = Field(default_factory=lambda: [5, 10])
    candidate_values: list[int] = Field(default_factory=lambda: [5, 10, 25, 50, 100])
    retry_env: str = Field(default="RETRY", min_length=1)
    candidates_env: str = Field(default="N_HEIGHTS", min_length=1)
    stderr_excerpt_chars: int = Field(default=500, ge=0)
    notify: bool = Field(default=True, description="Send Telegram progress updates")

    @field_validator("retry_values", "candidate_values")
    @classmethod
    def _positive_values(cls, values: list[int]) -> list[int]:
        if not values:
            raise ValueError("must not be empty")
        if any(v <= 0 for v in values):
            raise ValueError(f"values must be positive integers, got {values}")
        return values

    @property
    def grid_size(self) -> int:
        return len(self.retry_values) * len(self.candidate_values)


def load_config(path: Path | str | None = None) -> BenchConfig:
    """
    Load configuration from a YAML file, or return the defaults.

    Args:
        path: YAML file path, or None for defaults.

    Returns:
        Validated BenchConfig.

    Raises:
        ConfigError: File unreadable, not a mapping, or fails validation.
    """
    if path is None:
        return BenchConfig()

    path = Path(path)
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"cannot read config {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"config {path} must be a mapping, got {type(data).__name__}")

    try:
        return BenchConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"invalid config {path}: {e}") from e
