"""
Pure Python/numpy Bühlmann ZH-L16 tissue model.

Implements the TissueModel capability DecoPreload drives: the model is reset
to surface saturation, then fed constant-pressure segments. Every segment
returns the tissue tolerance, i.e. the lowest ambient pressure (bar) the
loaded tissues tolerate under the configured gradient factors.
"""

from typing import Optional

import numpy as np

from .buhlmann_constants import (
    GF_DEFAULT,
    NUM_COMPARTMENTS,
    P_SURFACE,
    SURFACE_N2_FRACTION,
    WATER_VAPOR_PRESSURE,
    ZH_L16_HE_HALFTIMES,
    ZH_L16_N2_HALFTIMES,
    GradientFactors,
    alveolar_pressure,
    ceilings_gf,
    haldane_vec,
    pressure_to_depth,
)
from .dive import Dive, GasMix


class BuhlmannTissueModel:
    """Bühlmann tissue state using ZH-L16 constants.

    All tissue math is vectorized across 16 compartments using numpy.
    """

    def __init__(self, gf: GradientFactors = GF_DEFAULT):
        self.gf = gf

        # Pre-compute decay constants k = ln(2) / halftime
        self.n2_k = np.log(2) / np.array(ZH_L16_N2_HALFTIMES)
        self.he_k = np.log(2) / np.array(ZH_L16_HE_HALFTIMES)

        self.surface_pressure = P_SURFACE
        self.n2_p = np.zeros(NUM_COMPARTMENTS)
        self.he_p = np.zeros(NUM_COMPARTMENTS)
        self.reset_surface(P_SURFACE)

    def reset_surface(self, pressure: float) -> None:
        """Saturate every compartment with air at `pressure` bar."""
        self.surface_pressure = pressure
        self.n2_p = np.full(NUM_COMPARTMENTS, alveolar_pressure(pressure, SURFACE_N2_FRACTION))
        self.he_p = np.zeros(NUM_COMPARTMENTS)

    def _inspired(
        self, pressure: float, gasmix: GasMix, po2_override: Optional[float]
    ):
        """Alveolar (N2, He) pressures for the segment."""
        if po2_override:
            # Closed circuit: fixed pO2 (mbar), diluent inert gases share the rest
            inert = max(0.0, pressure - WATER_VAPOR_PRESSURE - po2_override / 1000.0)
            inert_fraction = gasmix.f_n2 + gasmix.f_he
            if inert_fraction <= 0:
                return 0.0, 0.0
            return (
                inert * gasmix.f_n2 / inert_fraction,
                inert * gasmix.f_he / inert_fraction,
            )
        return (
            alveolar_pressure(pressure, gasmix.f_n2),
            alveolar_pressure(pressure, gasmix.f_he),
        )

    def add_segment(
        self,
        pressure: float,
        gasmix: GasMix,
        seconds: float,
        po2_override: Optional[float] = None,
        dive: Optional[Dive] = None,
    ) -> float:
        """Load tissues for `seconds` at constant ambient `pressure` (bar)."""
        if seconds > 0:
            palv_n2, palv_he = self._inspired(pressure, gasmix, po2_override)
            t = seconds / 60.0
            self.n2_p = haldane_vec(self.n2_p, palv_n2, t, self.n2_k)
            self.he_p = haldane_vec(self.he_p, palv_he, t, self.he_k)
        return self.tolerance()

    def tolerance(self) -> float:
        """Tolerated ambient pressure (bar) at GF low, controlling compartment."""
        return float(np.max(ceilings_gf(self.n2_p, self.he_p, self.gf.gf_low)))

    def ceiling_depth(self) -> float:
        """Current ceiling in meters below the last reset surface."""
        return pressure_to_depth(self.tolerance(), self.surface_pressure)
