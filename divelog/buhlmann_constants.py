"""
Bühlmann ZH-L16 constants and gradient factor calculations.

Single source of truth for compartment parameters and GF-adjusted ceiling math.
All functions are pure (no side effects) so the tissue model can be driven
from a background thread without sharing state.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np

NUM_COMPARTMENTS = 16

# Sea level pressure (bar)
P_SURFACE = 1.01325

# Alveolar water vapour pressure (bar), respiratory quotient 1.0
WATER_VAPOR_PRESSURE = 0.0627

# N2 fraction of dry air
SURFACE_N2_FRACTION = 0.78084

# ZH-L16 N2 compartment parameters (16 compartments)
# Half-times in minutes
ZH_L16_N2_HALFTIMES: Tuple[float, ...] = (
    4.0, 8.0, 12.5, 18.5, 27.0, 38.3, 54.3, 77.0,
    109.0, 146.0, 187.0, 239.0, 305.0, 390.0, 498.0, 635.0,
)

# M-value coefficients: M(P) = a + P/b
ZH_L16_N2_A: Tuple[float, ...] = (
    1.2599, 1.0000, 0.8618, 0.7562, 0.6667, 0.5933, 0.5282, 0.4701,
    0.4187, 0.3798, 0.3497, 0.3223, 0.2971, 0.2737, 0.2523, 0.2327,
)

ZH_L16_N2_B: Tuple[float, ...] = (
    0.5050, 0.6514, 0.7222, 0.7825, 0.8126, 0.8434, 0.8693, 0.8910,
    0.9092, 0.9222, 0.9319, 0.9403, 0.9477, 0.9544, 0.9602, 0.9653,
)

# ZH-L16 He compartment parameters
ZH_L16_HE_HALFTIMES: Tuple[float, ...] = (
    1.51, 3.02, 4.72, 6.99, 10.21, 14.48, 20.53, 29.11,
    41.20, 55.19, 70.69, 90.34, 115.29, 147.42, 188.24, 240.03,
)

ZH_L16_HE_A: Tuple[float, ...] = (
    1.7424, 1.3830, 1.1919, 1.0458, 0.9220, 0.8205, 0.7305, 0.6502,
    0.5950, 0.5545, 0.5333, 0.5189, 0.5181, 0.5176, 0.5172, 0.5119,
)

ZH_L16_HE_B: Tuple[float, ...] = (
    0.4245, 0.5747, 0.6527, 0.7223, 0.7582, 0.7957, 0.8279, 0.8553,
    0.8757, 0.8903, 0.8997, 0.9073, 0.9122, 0.9171, 0.9217, 0.9267,
)


@dataclass(frozen=True)
class GradientFactors:
    """Gradient factor pair for Bühlmann decompression adjustments.

    gf_low:  applied at the deepest ceiling (first stop), controls first stop depth
    gf_high: applied at the surface, controls final ascent and NDL
    Values are fractions (0.0–1.0), where 1.0 = use full M-value (standard Bühlmann).
    """
    gf_low: float
    gf_high: float

    def __post_init__(self):
        if not (0.0 < self.gf_low <= 1.0):
            raise ValueError(f"gf_low must be in (0, 1.0], got {self.gf_low}")
        if not (0.0 < self.gf_high <= 1.0):
            raise ValueError(f"gf_high must be in (0, 1.0], got {self.gf_high}")
        if self.gf_low > self.gf_high:
            raise ValueError(
                f"gf_low ({self.gf_low}) must be <= gf_high ({self.gf_high})"
            )


GF_DEFAULT = GradientFactors(gf_low=1.0, gf_high=1.0)


def alveolar_pressure(ambient_pressure: float, fraction: float) -> float:
    """Inspired inert gas pressure in the alveoli (bar)."""
    return max(0.0, ambient_pressure - WATER_VAPOR_PRESSURE) * fraction


def haldane_vec(
    pt0: np.ndarray, palv: float, t: float, k: np.ndarray
) -> np.ndarray:
    """Haldane equation at constant ambient pressure, all compartments.

    P(t) = Palv + (P0 - Palv) * exp(-k t), t in minutes.
    """
    return palv + (pt0 - palv) * np.exp(-k * t)


def combined_coefficients(
    n2_p: np.ndarray, he_p: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    """Per-compartment a/b weighted by the N2 and He tensions."""
    n2_a = np.array(ZH_L16_N2_A)
    n2_b = np.array(ZH_L16_N2_B)
    he_a = np.array(ZH_L16_HE_A)
    he_b = np.array(ZH_L16_HE_B)

    total = n2_p + he_p
    safe_total = np.where(total > 0, total, 1.0)
    a = np.where(total > 0, (n2_a * n2_p + he_a * he_p) / safe_total, n2_a)
    b = np.where(total > 0, (n2_b * n2_p + he_b * he_p) / safe_total, n2_b)
    return a, b


def ceilings_gf(n2_p: np.ndarray, he_p: np.ndarray, gf: float) -> np.ndarray:
    """GF-adjusted tolerated ambient pressure (bar) for every compartment.

    Solves p_inert = M_gf(P) for P:
        P_ceil = (p_inert - gf * a) / (1 - gf + gf / b)
    Clamped at 0.0 (tissue not supersaturated enough to matter).
    """
    a, b = combined_coefficients(n2_p, he_p)
    denominator = 1.0 - gf + gf / b
    ceil_p = (n2_p + he_p - gf * a) / denominator
    return np.maximum(0.0, ceil_p)


def pressure_to_depth(pressure: float, surface_pressure: float = P_SURFACE) -> float:
    """Depth (m) for an ambient pressure, 1 bar per 10m."""
    return max(0.0, (pressure - surface_pressure) * 10.0)
