"""
Dive log core: trips, per-dive metrics and residual tissue loading.

Modules:
    - dive: Dive records and the chronologically ordered DiveStore
    - trip_registry: Sorted trip list and the membership primitives
    - trip_ops: Merge, split, promote/demote, autogroup and retime operations
    - divelist: DiveList session (change flag, selection, cached metrics)
    - metrics: Total weight, dominant gas, SAC and OTU
    - deco_preload: Backward scan and forward replay into a tissue model
    - buhlmann_engine: ZH-L16 tissue model used by the preload
    - buhlmann_constants: ZH-L16 constants and gradient factor calculations
    - profile_generator: Synthetic dives (square, multi-level, repetitive series)
    - config: Settings loaded from config.yaml
"""

from .dive import (
    AIR,
    Cylinder,
    Dive,
    DiveStore,
    GasChange,
    GasMix,
    Sample,
    TripFlag,
    WeightSystem,
)
from .trip_registry import Trip, TripKind, TripRegistry, TripStructureError
from .trip_ops import TRIP_THRESHOLD, autogroup
from .metrics import GasSummary, calculate_otu, calculate_sac, get_dive_gas, total_weight
from .deco_preload import DecoPreload, PreloadCancelled, TissueModel, init_decompression
from .buhlmann_engine import BuhlmannTissueModel
from .buhlmann_constants import GradientFactors, GF_DEFAULT
from .profile_generator import ProfileGenerator
from .config import DiveListConfig, load_config
from .divelist import DiveList

__all__ = [
    "AIR",
    "Cylinder",
    "Dive",
    "DiveStore",
    "GasChange",
    "GasMix",
    "Sample",
    "TripFlag",
    "WeightSystem",
    "Trip",
    "TripKind",
    "TripRegistry",
    "TripStructureError",
    "TRIP_THRESHOLD",
    "autogroup",
    "GasSummary",
    "calculate_otu",
    "calculate_sac",
    "get_dive_gas",
    "total_weight",
    "DecoPreload",
    "PreloadCancelled",
    "TissueModel",
    "init_decompression",
    "BuhlmannTissueModel",
    "GradientFactors",
    "GF_DEFAULT",
    "ProfileGenerator",
    "DiveListConfig",
    "load_config",
    "DiveList",
]
