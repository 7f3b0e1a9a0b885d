"""Environment-driven settings.

Env vars:
  GEO_PROJECTIONS_FILE   optional JSON catalog replacing the built-in list
  GEO_ORIGIN_THRESHOLD   detector origin filter, native units (default 1000)
  GEO_MIN_POINTS         detector minimum surviving points (default 1)
  GEO_MAX_POINTS         per-request point cap (default 10000)
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from app.crs.detector import DEFAULT_MIN_POINTS, DEFAULT_ORIGIN_THRESHOLD

DEFAULT_MAX_POINTS = 10000


def _env_float(key: str, default: float) -> float:
    raw = os.environ.get(key)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    raw = os.environ.get(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    projections_file: Optional[str] = None
    origin_threshold: float = DEFAULT_ORIGIN_THRESHOLD
    min_points: int = DEFAULT_MIN_POINTS
    max_points: int = DEFAULT_MAX_POINTS

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            projections_file=os.getenv("GEO_PROJECTIONS_FILE") or None,
            origin_threshold=_env_float("GEO_ORIGIN_THRESHOLD", DEFAULT_ORIGIN_THRESHOLD),
            min_points=max(1, _env_int("GEO_MIN_POINTS", DEFAULT_MIN_POINTS)),
            max_points=max(1, _env_int("GEO_MAX_POINTS", DEFAULT_MAX_POINTS)),
        )


__all__ = ["Settings", "DEFAULT_MAX_POINTS"]
