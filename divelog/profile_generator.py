"""
Synthetic dive generator for demos and tests.

Generates dives with logged profiles:
- Square profiles (constant depth)
- Multi-level profiles (stepped depths)
- Square profiles with decompression stops
- Repetitive series (several dives separated by surface intervals)
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from .dive import Cylinder, Dive, GasMix, Sample, WeightSystem


@dataclass
class _Track:
    """Profile under construction. Time in seconds, depth in meters."""

    samples: List[Sample]
    time: int = 0
    depth: float = 0.0

    def add_point(self, depth: float) -> None:
        self.samples.append(Sample(time=self.time, depth=round(depth, 2)))


class ProfileGenerator:
    """Generate logged dives with simple geometric profiles."""

    def __init__(
        self,
        descent_rate: float = 18.0,  # m/min
        ascent_rate: float = 9.0,  # m/min
        sampling_interval: int = 10,  # seconds
        cylinder_size: float = 12.0,  # liters
        start_pressure: float = 200.0,  # bar
        sac_rate: float = 20.0,  # l/min used to derive the end pressure
    ):
        if sampling_interval <= 0:
            raise ValueError(f"sampling_interval must be positive, got {sampling_interval}")
        self.descent_rate = descent_rate
        self.ascent_rate = ascent_rate
        self.sampling_interval = sampling_interval
        self.cylinder_size = cylinder_size
        self.start_pressure = start_pressure
        self.sac_rate = sac_rate

    def _move_to(self, track: _Track, target: float) -> None:
        """Descend or ascend to `target` at the configured rates."""
        while abs(track.depth - target) > 1e-9:
            track.add_point(track.depth)
            if target > track.depth:
                step = self.descent_rate * self.sampling_interval / 60.0
                track.depth = min(track.depth + step, target)
            else:
                step = self.ascent_rate * self.sampling_interval / 60.0
                track.depth = max(track.depth - step, target)
            track.time += self.sampling_interval

    def _hold(self, track: _Track, minutes: float) -> None:
        end = track.time + int(minutes * 60)
        while track.time < end:
            track.add_point(track.depth)
            track.time += self.sampling_interval

    def _build(
        self,
        when: int,
        track: _Track,
        gasmix: GasMix,
        weight: float,
        location: Optional[str],
    ) -> Dive:
        track.add_point(0.0)
        dive = Dive(
            when=when,
            duration=track.time,
            samples=track.samples,
            weightsystems=[WeightSystem(weight=weight, description="belt")] if weight else [],
            location=location,
        )

        # Rough gas use for the cylinder: SAC times mean absolute pressure
        pressure = dive.depth_to_mbar(dive.get_mean_depth()) / 1000.0
        used_liters = self.sac_rate * pressure * dive.duration / 60.0
        end_pressure = max(0.0, self.start_pressure - used_liters / self.cylinder_size)
        dive.cylinders = [
            Cylinder(
                size=self.cylinder_size,
                gasmix=gasmix,
                start=self.start_pressure,
                end=round(end_pressure),
            )
        ]
        return dive

    def generate_square(
        self,
        when: int,
        depth: float,
        bottom_time: float,
        gasmix: GasMix = GasMix(),
        weight: float = 0.0,
        location: Optional[str] = None,
    ) -> Dive:
        """
        Generate a square profile (simple recreational dive).

        Args:
            when: Start time, seconds since the epoch
            depth: Maximum depth in meters
            bottom_time: Time at depth in minutes
            gasmix: Breathing gas
            weight: Ballast in kg, 0 for none
            location: Dive site
        """
        track = _Track(samples=[])
        self._move_to(track, depth)
        self._hold(track, bottom_time)
        self._move_to(track, 0.0)
        return self._build(when, track, gasmix, weight, location)

    def generate_multilevel(
        self,
        when: int,
        levels: List[Tuple[float, float]],
        gasmix: GasMix = GasMix(),
        weight: float = 0.0,
        location: Optional[str] = None,
    ) -> Dive:
        """
        Generate a multi-level profile.

        Args:
            when: Start time, seconds since the epoch
            levels: List of (depth, duration in minutes) tuples, deepest first
        """
        track = _Track(samples=[])
        for target_depth, duration in levels:
            self._move_to(track, target_depth)
            self._hold(track, duration)
        self._move_to(track, 0.0)
        return self._build(when, track, gasmix, weight, location)

    def generate_deco_square(
        self,
        when: int,
        depth: float,
        bottom_time: float,
        deco_stops: List[Tuple[float, float]],
        gasmix: GasMix = GasMix(),
        weight: float = 0.0,
        location: Optional[str] = None,
    ) -> Dive:
        """Generate a square profile with explicit decompression stops.

        Args:
            deco_stops: List of (stop_depth_m, stop_duration_min) tuples, deepest first
        """
        track = _Track(samples=[])
        self._move_to(track, depth)
        self._hold(track, bottom_time)
        for stop_depth, stop_duration in deco_stops:
            self._move_to(track, stop_depth)
            self._hold(track, stop_duration)
        self._move_to(track, 0.0)
        return self._build(when, track, gasmix, weight, location)

    def generate_series(
        self,
        start: int,
        count: int,
        interval: int,
        depth: float = 18.0,
        bottom_time: float = 30.0,
        gasmix: GasMix = GasMix(),
        weight: float = 0.0,
        location: Optional[str] = None,
    ) -> List[Dive]:
        """Square dives starting every `interval` seconds, numbered from 1."""
        dives = []
        for n in range(count):
            dive = self.generate_square(
                start + n * interval, depth, bottom_time, gasmix, weight, location
            )
            dive.number = n + 1
            dives.append(dive)
        return dives
