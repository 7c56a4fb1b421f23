"""
Dive list settings loaded from config.yaml.

Everything here is read-only to the core: the trip grouping threshold, whether
autogrouping is on, the display unit system and the gradient factors used by
the tissue model.
"""

import os
from dataclasses import dataclass
from typing import Optional

import yaml

from .buhlmann_constants import GF_DEFAULT, GradientFactors
from .trip_ops import TRIP_THRESHOLD

UNIT_SYSTEMS = ("metric", "imperial")


@dataclass(frozen=True)
class DiveListConfig:
    trip_threshold: int = TRIP_THRESHOLD  # seconds
    autogroup: bool = False
    units: str = "metric"
    gf: GradientFactors = GF_DEFAULT

    def __post_init__(self):
        if self.trip_threshold <= 0:
            raise ValueError(f"trip_threshold must be positive, got {self.trip_threshold}")
        if self.units not in UNIT_SYSTEMS:
            raise ValueError(f"units must be one of {UNIT_SYSTEMS}, got {self.units!r}")


def default_config_path() -> str:
    return os.path.join(os.path.dirname(os.path.dirname(__file__)), "config.yaml")


def load_config(
    config_path: Optional[str] = None,
    trip_threshold_override: Optional[float] = None,
) -> DiveListConfig:
    """Load config.yaml, falling back to defaults for anything missing.

    Args:
        config_path: YAML file to read; defaults to config.yaml at the repo root
        trip_threshold_override: trip threshold in hours (e.g. from the CLI)
    """
    if config_path is None:
        config_path = default_config_path()

    trip_threshold = TRIP_THRESHOLD
    autogroup = False
    units = "metric"
    gf = GF_DEFAULT

    if os.path.exists(config_path):
        with open(config_path) as f:
            config = yaml.safe_load(f) or {}

        trips_cfg = config.get("trips", {})
        if "threshold_hours" in trips_cfg:
            trip_threshold = int(float(trips_cfg["threshold_hours"]) * 3600)
        autogroup = bool(trips_cfg.get("autogroup", autogroup))

        units = str(config.get("units", units))

        buhlmann_cfg = config.get("buhlmann", {})
        if buhlmann_cfg:
            gf = GradientFactors(
                gf_low=float(buhlmann_cfg.get("gf_low", 1.0)),
                gf_high=float(buhlmann_cfg.get("gf_high", 1.0)),
            )

    if trip_threshold_override is not None:
        trip_threshold = int(trip_threshold_override * 3600)

    return DiveListConfig(
        trip_threshold=trip_threshold,
        autogroup=autogroup,
        units=units,
        gf=gf,
    )
