"""Environment-driven engine configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .cache import CACHE_MAX_LARGE, CACHE_MAX_MEDIUM, CACHE_MAX_SMALL

DEFAULT_CACHE_DIR = Path.home() / ".solar-engine" / "kernels"

EPHEMERIS_CHOICES = ("analytic", "spice")


@dataclass(frozen=True)
class EngineConfig:
    """Settings gathered from ``SOLAR_*`` and ``DE_BSP*`` environment variables."""

    ephemeris: str = "analytic"
    kernel_path: Optional[Path] = None
    kernel_cache_dir: Path = DEFAULT_CACHE_DIR
    cache_large: int = CACHE_MAX_LARGE
    cache_medium: int = CACHE_MAX_MEDIUM
    cache_small: int = CACHE_MAX_SMALL

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        env = os.environ if environ is None else environ
        ephemeris = env.get("SOLAR_EPHEMERIS", "analytic").strip().lower()
        if ephemeris not in EPHEMERIS_CHOICES:
            raise ValueError(
                f"SOLAR_EPHEMERIS must be one of {', '.join(EPHEMERIS_CHOICES)}, got {ephemeris!r}"
            )
        override = env.get("DE_BSP")
        return cls(
            ephemeris=ephemeris,
            kernel_path=Path(override).expanduser() if override else None,
            kernel_cache_dir=Path(env.get("DE_BSP_CACHE_DIR", str(DEFAULT_CACHE_DIR))).expanduser(),
            cache_large=int(env.get("SOLAR_CACHE_LARGE", CACHE_MAX_LARGE)),
            cache_medium=int(env.get("SOLAR_CACHE_MEDIUM", CACHE_MAX_MEDIUM)),
            cache_small=int(env.get("SOLAR_CACHE_SMALL", CACHE_MAX_SMALL)),
        )
