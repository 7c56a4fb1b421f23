"""
Trip membership operations built on the TripRegistry primitives.

Every operation here moves dives only through add_dive_to_trip and
remove_dive_from_trip, so the member count / start time / empty-trip rules
are enforced in one place.
"""

import logging
from typing import Callable, Iterable, Optional

from .dive import Dive, DiveStore, TripFlag
from .trip_registry import Trip, TripKind, TripRegistry, TripStructureError

logger = logging.getLogger(__name__)

# Default gap that still counts as the same trip (seconds)
TRIP_THRESHOLD = 3 * 24 * 60 * 60


def dive_needs_trip(dive: Dive) -> bool:
    """Default autogroup predicate: a dive nobody put into a trip."""
    return dive.trip is None and dive.trip_flag is TripFlag.NO_TRIP


def create_trip_from_dive(
    registry: TripRegistry, dive: Dive, kind: TripKind = TripKind.MANUAL
) -> Trip:
    """Promote `dive` into a trip of its own, seeded with its time/location."""
    trip = registry.insert_trip(Trip(when=dive.when, location=dive.location, kind=kind))
    registry.add_dive_to_trip(dive, trip)
    dive.trip_flag = TripFlag.IN_TRIP
    return trip


def demote_dive(registry: TripRegistry, dive: Dive) -> None:
    """Turn `dive` back into a loose dive."""
    registry.remove_dive_from_trip(dive)


def merge_trips(registry: TripRegistry, source: Trip, destination: Trip) -> Trip:
    """Move every dive of `source` into `destination`; `source` disappears.

    Returns the surviving trip. That is `destination` unless an earlier
    source dive moved its start onto another trip's, which then absorbs it.
    """
    if source is destination:
        raise TripStructureError("Cannot merge a trip with itself")

    while source.dives:
        dive = source.dives[0]
        registry.add_dive_to_trip(dive, destination)
        if destination not in registry:
            destination = dive.trip
            if destination is source:
                break

    logger.debug(f"Merged trip into trip with {destination.member_count} dives")
    return destination


def split_trip(registry: TripRegistry, boundary: Dive) -> Trip:
    """Start a new trip at `boundary`, taking every member at or after it.

    Returns the new trip. `boundary` must be a member of a trip and must not
    be the dive that defines that trip's start.
    """
    trip = boundary.trip
    if trip is None:
        raise TripStructureError("Cannot split at a dive that is not in a trip")
    if boundary.when <= trip.when:
        raise TripStructureError("Cannot split a trip at its first dive")

    moving = sorted(
        (d for d in trip.dives if d.when >= boundary.when), key=lambda d: d.when
    )
    new_trip = create_trip_from_dive(registry, boundary)
    for dive in moving:
        registry.add_dive_to_trip(dive, new_trip)

    logger.debug(
        f"Split trip: {trip.member_count} dives stay, {new_trip.member_count} moved"
    )
    return new_trip


def remove_trip(registry: TripRegistry, trip: Trip) -> None:
    """Dissolve `trip`, leaving all of its dives loose."""
    for dive in list(trip.dives):
        registry.remove_dive_from_trip(dive)


def merge_dive_into_trip_above(
    store: DiveStore, registry: TripRegistry, dive: Dive
) -> Trip:
    """Add a loose dive to the trip of the dive right before it.

    While the following dive is loose too and both it and the dive just
    merged are selected, keep going.
    """
    idx = store.index_of(dive)
    above = store.get(idx - 1) if idx > 0 else None
    if above is None or above.trip is None:
        raise TripStructureError("No trip directly above this dive")

    trip = above.trip
    while True:
        registry.add_dive_to_trip(dive, trip)
        dive.trip_flag = TripFlag.IN_TRIP
        previous = dive
        idx += 1
        dive = store.get(idx)
        if dive is None or dive.trip is not None:
            break
        if not (dive.selected and previous.selected):
            break
    return trip


def remove_autogen_trips(registry: TripRegistry, dives: Iterable[Dive]) -> None:
    """Drop every autogenerated trip, restoring the ungrouped baseline."""
    for dive in dives:
        if dive.trip is not None and dive.trip.autogen:
            registry.remove_dive_from_trip(dive)


def autogroup(
    registry: TripRegistry,
    dives: Iterable[Dive],
    threshold: int = TRIP_THRESHOLD,
    needs_trip: Optional[Callable[[Dive], bool]] = None,
) -> None:
    """Group loose dives into autogenerated trips.

    Walks the dives oldest to newest; a dive that starts less than
    `threshold` seconds after the previous grouped dive joins its trip,
    otherwise it opens a new one.
    """
    if needs_trip is None:
        needs_trip = dive_needs_trip

    last_dive = None
    created = 0
    for dive in dives:
        if dive.trip is not None:
            last_dive = dive
            continue

        if not needs_trip(dive):
            last_dive = None
            continue

        if last_dive is not None and dive.when < last_dive.when + threshold:
            trip = last_dive.trip
            if trip is None:
                trip = create_trip_from_dive(registry, last_dive, kind=TripKind.AUTOGEN)
                created += 1
            registry.add_dive_to_trip(dive, trip)
            if dive.location and not trip.location:
                trip.location = dive.location
            last_dive = dive
            continue

        last_dive = dive
        create_trip_from_dive(registry, dive, kind=TripKind.AUTOGEN)
        created += 1

    logger.info(f"Autogroup created {created} trips ({len(registry)} total)")
    registry.dump()


def retime_dive(registry: TripRegistry, dive: Dive, when: int) -> bool:
    """Change a dive's start time, leaving its trip if it no longer fits.

    Returns True when the time changed. The caller is responsible for
    re-sorting the dive table afterwards.
    """
    if dive.when == when:
        return False

    trip = dive.trip
    if trip is not None and trip.member_count > 1:
        if trip.when > when or registry.find_trip_at_or_before(when) is not trip:
            registry.remove_dive_from_trip(dive)

    dive.when = when
    if dive.trip is not None:
        registry.update_trip_start(dive.trip)
    return True
