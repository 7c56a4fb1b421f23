"""
Per-dive derived metrics: total weight, dominant gas, SAC rate and OTU.

None of these depend on trip membership. Missing data (no dive, no
cylinders, no samples) yields zero rather than an error.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .dive import O2_IN_AIR, Dive

# Samples shallower than this count as "at the surface" (meters)
SURFACE_DEPTH_THRESHOLD = 0.1

# pO2 (mbar) above which oxygen toxicity units accumulate
OTU_PO2_THRESHOLD = 500.0


@dataclass(frozen=True)
class GasSummary:
    """Dominant gas of a dive, permille. All zero means plain air."""

    o2: int
    he: int
    o2_low: int

    @property
    def is_air(self) -> bool:
        return self.o2 == 0 and self.he == 0

    @property
    def label(self) -> str:
        if self.is_air:
            return "air"
        if self.he > 0:
            return f"{self.o2 / 10:.0f}/{self.he / 10:.0f}"
        if self.o2_low != self.o2:
            return f"EAN{self.o2_low / 10:.0f}...{self.o2 / 10:.0f}"
        return f"EAN{self.o2 / 10:.0f}"


def total_weight(dive: Optional[Dive]) -> float:
    """Sum of all weight system entries (kg)."""
    if dive is None:
        return 0.0
    return sum(ws.weight for ws in dive.weightsystems)


def get_dive_gas(dive: Dive) -> GasSummary:
    """Classify the dive by its "richest" mix.

    Trimix beats nitrox (highest He wins, O2 breaks ties), and nitrox beats
    air. o2_low is the leanest O2 over every cylinder in use, not only those
    sharing the winning helium fraction.
    """
    max_o2, max_he = -1, -1
    mixes = []

    for cyl in dive.cylinders:
        if cyl.is_none():
            continue
        o2 = cyl.gasmix.o2_permille
        he = cyl.gasmix.he
        mixes.append((o2, he))

        if he > max_he or (he == max_he and o2 > max_o2):
            max_he, max_o2 = he, o2

    if not mixes:
        return GasSummary(o2=0, he=0, o2_low=0)

    min_o2 = min(o2 for o2, _ in mixes)

    # All air? Report as "air"
    if not max_he and max_o2 == O2_IN_AIR and min_o2 == max_o2:
        max_o2 = min_o2 = 0

    return GasSummary(o2=max_o2, he=max_he, o2_low=min_o2)


def active_o2(dive: Dive, time: float) -> int:
    """O2 permille breathed at `time` seconds, following gas changes."""
    o2 = dive.first_gasmix().o2_permille
    for event in dive.events:
        if event.time > time:
            break
        o2 = event.o2_permille or O2_IN_AIR
    return o2


def calculate_otu(dive: Dive) -> int:
    """Oxygen toxicity units, integrated over the logged samples."""
    samples = dive.samples
    if len(samples) < 2:
        return 0

    times = np.array([s.time for s in samples], dtype=float)
    dt = np.diff(times)

    po2 = np.empty(len(samples) - 1)
    for i, sample in enumerate(samples[1:]):
        if sample.po2:
            po2[i] = sample.po2
        else:
            o2 = active_o2(dive, sample.time)
            po2[i] = o2 / 1000.0 * dive.depth_to_mbar(sample.depth)

    mask = po2 > OTU_PO2_THRESHOLD
    excess = (po2[mask] - OTU_PO2_THRESHOLD) / 1000.0
    otu = float(np.sum(np.power(excess, 0.83) * dt[mask] / 30.0))
    return int(otu + 0.5)


def _bar_to_atm(bar: float) -> float:
    return bar * 1000.0 / 1013.25


def calculate_airuse(dive: Dive) -> float:
    """Gas used across all sized cylinders, in liters at 1 atm.

    Logged start/end pressures win over the ones computed from the profile.
    """
    airuse = 0.0
    for cyl in dive.cylinders:
        if not cyl.size:
            continue
        start = cyl.start or cyl.sample_start
        end = cyl.end or cyl.sample_end
        airuse += (_bar_to_atm(start) - _bar_to_atm(end)) * cyl.size
    return airuse


def _surface_corrected_duration(dive: Dive) -> int:
    """Dive duration minus surface stretches in the middle of the dive."""
    duration = dive.duration
    samples = dive.samples
    n = len(samples)

    i = 0
    while i < n:
        if samples[i].depth < SURFACE_DEPTH_THRESHOLD:
            end = i + 1
            while end < n and samples[end].depth < SURFACE_DEPTH_THRESHOLD:
                end += 1
            # A surface stretch at the very end is not part of the dive
            if end >= n:
                break
            end -= 1
            duration -= samples[end].time - samples[i].time
            i = end + 1
            continue
        i += 1
    return duration


def calculate_sac(dive: Dive) -> float:
    """Surface air consumption in liters per minute."""
    if not dive.samples:
        return 0.0
    airuse = calculate_airuse(dive)
    if not airuse:
        return 0.0
    duration = _surface_corrected_duration(dive)
    if duration <= 0:
        return 0.0

    # Mean ambient pressure in bar
    pressure = dive.depth_to_mbar(dive.get_mean_depth()) / 1000.0
    return airuse / pressure * 60.0 / duration


def update_cylinder_related_info(dive: Optional[Dive]) -> None:
    """Refresh the SAC/OTU cached on the dive."""
    if dive is not None:
        dive.sac = calculate_sac(dive)
        dive.otu = calculate_otu(dive)
