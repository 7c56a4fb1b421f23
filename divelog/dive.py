"""
Dive records and the chronologically ordered dive table.

Units follow the rest of the package: time in seconds, depth in meters,
cylinder pressures in bar, ambient pressures in mbar, gas fractions in
permille (so that "is this air?" comparisons stay exact).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Iterator, List, Optional

if TYPE_CHECKING:
    from .trip_registry import Trip

# Standard air, permille O2
O2_IN_AIR = 209

# Standard sea level pressure (mbar)
SURFACE_PRESSURE = 1013

# Default salinity for sea water, g/10l
SEAWATER_SALINITY = 10300


class TripFlag(Enum):
    """How a dive came to be (or not be) in a trip."""

    NO_TRIP = 0
    IN_TRIP = 1  # deliberately placed there by the user
    ASSIGNED_TRIP = 2  # placed there by a membership primitive


@dataclass(frozen=True)
class GasMix:
    """Breathing gas as O2/He permille. o2 == 0 means "not set", i.e. air."""

    o2: int = 0
    he: int = 0

    @property
    def o2_permille(self) -> int:
        return self.o2 or O2_IN_AIR

    @property
    def f_o2(self) -> float:
        return self.o2_permille / 1000.0

    @property
    def f_he(self) -> float:
        return self.he / 1000.0

    @property
    def f_n2(self) -> float:
        return 1.0 - self.f_o2 - self.f_he


AIR = GasMix(o2=O2_IN_AIR)


@dataclass
class Cylinder:
    """A cylinder with its mix and pressures (bar). Zero means unset."""

    size: float = 0.0  # liters water capacity
    gasmix: GasMix = field(default_factory=GasMix)
    start: float = 0.0
    end: float = 0.0
    sample_start: float = 0.0
    sample_end: float = 0.0

    def is_none(self) -> bool:
        """True for an empty cylinder slot (nothing known about it)."""
        return (
            not self.size
            and not self.start
            and not self.end
            and not self.sample_start
            and not self.sample_end
            and not self.gasmix.o2
            and not self.gasmix.he
        )


@dataclass
class WeightSystem:
    weight: float = 0.0  # kg
    description: str = ""


@dataclass
class Sample:
    """One logged profile point. po2 is the sensor reading in mbar, if any."""

    time: int
    depth: float
    po2: Optional[float] = None
    sensor: int = 0


@dataclass(frozen=True)
class GasChange:
    """Gas switch event: from `time` seconds on, breathe `o2_permille`."""

    time: int
    o2_permille: int


@dataclass(eq=False)
class Dive:
    """A single logged dive.

    `trip` is a non-owning back-reference maintained exclusively by the
    TripRegistry membership primitives.
    """

    when: int
    duration: int = 0
    samples: List[Sample] = field(default_factory=list)
    cylinders: List[Cylinder] = field(default_factory=list)
    weightsystems: List[WeightSystem] = field(default_factory=list)
    events: List[GasChange] = field(default_factory=list)
    location: Optional[str] = None
    number: int = 0
    surface_pressure: Optional[float] = None  # mbar
    salinity: Optional[int] = None  # g/10l
    mean_depth: Optional[float] = None  # meters, from the dive computer

    trip: Optional["Trip"] = field(default=None, repr=False)
    trip_flag: TripFlag = TripFlag.NO_TRIP
    selected: bool = False

    # Cached cylinder-related metrics, see metrics.update_cylinder_related_info
    sac: float = 0.0
    otu: int = 0

    @property
    def end_time(self) -> int:
        return self.when + self.duration

    @property
    def max_depth(self) -> float:
        return max((s.depth for s in self.samples), default=0.0)

    def get_surface_pressure(self) -> float:
        """Surface pressure in mbar, falling back to sea level."""
        return self.surface_pressure or SURFACE_PRESSURE

    def depth_to_mbar(self, depth: float) -> float:
        """Absolute pressure (mbar) at `depth` meters for this dive's water."""
        salinity = self.salinity or SEAWATER_SALINITY
        specific_weight = salinity / 10000.0 * 0.981
        return depth * 100.0 * specific_weight + self.get_surface_pressure()

    def get_mean_depth(self) -> float:
        """Logged mean depth, or the time-weighted mean of the samples."""
        if self.mean_depth is not None:
            return self.mean_depth
        if len(self.samples) < 2:
            return self.samples[0].depth if self.samples else 0.0

        area = 0.0
        for prev, cur in zip(self.samples, self.samples[1:]):
            area += (prev.depth + cur.depth) / 2.0 * (cur.time - prev.time)
        span = self.samples[-1].time - self.samples[0].time
        return area / span if span > 0 else 0.0

    def first_gasmix(self) -> GasMix:
        return self.cylinders[0].gasmix if self.cylinders else GasMix()


class DiveStore:
    """Dive table, kept in ascending `when` order by its users.

    Indices are stable until an insert or delete shifts them.
    """

    def __init__(self, dives: Optional[List[Dive]] = None):
        self._dives: List[Dive] = list(dives) if dives else []

    def __len__(self) -> int:
        return len(self._dives)

    def __iter__(self) -> Iterator[Dive]:
        return iter(list(self._dives))

    def __contains__(self, dive: Dive) -> bool:
        return any(d is dive for d in self._dives)

    def count(self) -> int:
        return len(self._dives)

    def get(self, idx: int) -> Optional[Dive]:
        if 0 <= idx < len(self._dives):
            return self._dives[idx]
        return None

    def index_of(self, dive: Dive) -> int:
        """Position of `dive` in the table, -1 if it isn't there."""
        for idx, candidate in enumerate(self._dives):
            if candidate is dive:
                return idx
        return -1

    def insert(self, idx: int, dive: Dive) -> None:
        self._dives.insert(idx, dive)

    def append(self, dive: Dive) -> None:
        self._dives.append(dive)

    def pop(self, idx: int) -> Dive:
        return self._dives.pop(idx)

    def sort(self) -> None:
        """Restore chronological order after a dive's time was edited."""
        self._dives.sort(key=lambda d: d.when)
