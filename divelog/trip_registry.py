"""
Trip records and the registry that keeps them ordered.

The registry owns every Trip. Membership is changed only through
add_dive_to_trip/remove_dive_from_trip, which keep member counts, start
times and the dive back-references consistent and delete a trip the moment
its last member leaves.
"""

import logging
from bisect import bisect_right
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Iterator, List, Optional

from .dive import Dive, TripFlag

logger = logging.getLogger(__name__)


class TripStructureError(RuntimeError):
    """A caller broke a trip contract (programming error, not recoverable)."""


class TripKind(Enum):
    MANUAL = "manual"
    AUTOGEN = "autogen"


@dataclass(eq=False)
class Trip:
    """A dated group of dives. `when` is always the earliest member start."""

    when: int
    location: Optional[str] = None
    notes: Optional[str] = None
    kind: TripKind = TripKind.MANUAL
    dives: List[Dive] = field(default_factory=list, repr=False)

    # Rendering-pass bookkeeping, stored but never interpreted here
    index: int = 0
    expanded: bool = False
    selected: bool = False

    @property
    def member_count(self) -> int:
        return len(self.dives)

    @property
    def autogen(self) -> bool:
        return self.kind is TripKind.AUTOGEN

    def recompute_when(self) -> None:
        if self.dives:
            self.when = min(d.when for d in self.dives)


def _fmt_time(when: int) -> str:
    return datetime.fromtimestamp(when, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


class TripRegistry:
    """Trips sorted ascending by start time."""

    def __init__(self):
        self._trips: List[Trip] = []

    def __len__(self) -> int:
        return len(self._trips)

    def __iter__(self) -> Iterator[Trip]:
        return iter(list(self._trips))

    def __contains__(self, trip: Trip) -> bool:
        return any(t is trip for t in self._trips)

    @property
    def trips(self) -> List[Trip]:
        return list(self._trips)

    def _position(self, when: int) -> int:
        return bisect_right([t.when for t in self._trips], when)

    def _unlink(self, trip: Trip) -> bool:
        for idx, candidate in enumerate(self._trips):
            if candidate is trip:
                del self._trips[idx]
                return True
        return False

    def _trip_starting_at(self, when: int, other: Trip) -> Optional[Trip]:
        for existing in self._trips:
            if existing.when == when and existing is not other:
                return existing
        return None

    def _absorb(self, trip: Trip, existing: Trip) -> Trip:
        """Fold `trip` into `existing`, which keeps its location/notes unless it has none."""
        self._unlink(trip)
        if not existing.location:
            existing.location = trip.location
        if not existing.notes:
            existing.notes = trip.notes
        for dive in list(trip.dives):
            self.add_dive_to_trip(dive, existing)
        logger.debug(f"Merged trip at {_fmt_time(existing.when)} into existing trip")
        return existing

    def _reposition(self, trip: Trip) -> None:
        """Move a registered trip whose start time changed back into order.

        Landing on the start time of another trip merges the two.
        """
        if not self._unlink(trip):
            return
        existing = self._trip_starting_at(trip.when, trip)
        if existing is not None:
            self._absorb(trip, existing)
        else:
            self._trips.insert(self._position(trip.when), trip)

    def update_trip_start(self, trip: Trip) -> None:
        """Re-derive `trip.when` from its members after a dive was retimed."""
        trip.recompute_when()
        self._reposition(trip)

    def insert_trip(self, trip: Trip) -> Trip:
        """Link `trip` in by start time and return the canonical trip.

        A trip already registered at exactly the same time absorbs the
        incoming trip's dives, and keeps its own location/notes unless it
        has none.
        """
        if trip in self:
            return trip
        existing = self._trip_starting_at(trip.when, trip)
        if existing is not None:
            self._absorb(trip, existing)
            self.dump()
            return existing

        self._trips.insert(self._position(trip.when), trip)
        self.dump()
        return trip

    def delete_trip(self, trip: Trip) -> None:
        if trip.dives:
            raise TripStructureError(
                f"Cannot delete trip at {_fmt_time(trip.when)} with {trip.member_count} dives"
            )
        self._unlink(trip)

    def add_dive_to_trip(self, dive: Dive, trip: Trip) -> None:
        """Make `dive` a member of `trip`, leaving its previous trip first."""
        if dive.trip is trip:
            return
        if not trip.when:
            raise TripStructureError("Cannot add a dive to a trip without a start time")
        if trip not in self:
            raise TripStructureError("Cannot add a dive to an unregistered trip")

        self.remove_dive_from_trip(dive)
        trip.dives.append(dive)
        dive.trip = trip
        dive.trip_flag = TripFlag.ASSIGNED_TRIP

        if dive.when and trip.when > dive.when:
            trip.when = dive.when
            self._reposition(trip)

    def remove_dive_from_trip(self, dive: Dive) -> None:
        """Detach `dive` from its trip; an emptied trip is deleted."""
        trip = dive.trip
        if trip is None:
            return

        trip.dives = [d for d in trip.dives if d is not dive]
        dive.trip = None
        dive.trip_flag = TripFlag.NO_TRIP

        if not trip.dives:
            self.delete_trip(trip)
        elif trip.when == dive.when:
            trip.recompute_when()
            self._reposition(trip)

    def find_by_trip_id(self, trip_id: int) -> Optional[Trip]:
        """Look up a trip by the negative id handed out by assign_trip_ids."""
        if trip_id >= 0:
            return None
        for trip in self._trips:
            if trip.index == -trip_id:
                return trip
        return None

    def find_trip_at_or_before(self, when: int) -> Optional[Trip]:
        """The trip with the latest start time that is not after `when`."""
        match = None
        for trip in self._trips:
            if trip.when > when:
                break
            match = trip
        return match

    def assign_trip_ids(self, dives: Iterable[Dive]) -> None:
        """Number trips in the order a newest-first listing meets them."""
        for trip in self._trips:
            trip.index = 0

        next_index = 0
        for dive in reversed(list(dives)):
            if dive.trip is not None and not dive.trip.index:
                next_index += 1
                dive.trip.index = next_index

    def dump(self) -> None:
        """Log the trip list, flagging any ordering violation."""
        if not logger.isEnabledFor(logging.DEBUG):
            return
        last_when = 0
        for number, trip in enumerate(self._trips, start=1):
            if trip.when < last_when:
                logger.warning("Trip list out of order")
            logger.debug(
                f"{'autogen ' if trip.autogen else ''}trip {number} to "
                f"\"{trip.location or ''}\" on {_fmt_time(trip.when)} "
                f"({trip.member_count} dives)"
            )
            last_when = trip.when
