"""Tests for the trip registry and its membership primitives."""

import logging

import pytest

from divelog.dive import TripFlag
from divelog.trip_registry import Trip, TripRegistry, TripStructureError

from conftest import BASE_TIME, HOUR, make_dive


def new_trip(registry, *dives, **kwargs):
    trip = registry.insert_trip(Trip(when=dives[0].when, **kwargs))
    for dive in dives:
        registry.add_dive_to_trip(dive, trip)
    return trip


class TestInsertTrip:
    """Sorted insertion and merge-on-duplicate."""

    def test_inserts_in_start_order(self):
        """Trips inserted out of order come back sorted."""
        registry = TripRegistry()
        for when in (BASE_TIME + 300, BASE_TIME + 100, BASE_TIME + 200):
            registry.insert_trip(Trip(when=when))
        assert [t.when - BASE_TIME for t in registry] == [100, 200, 300]

    def test_reinserting_registered_trip_is_noop(self):
        """Inserting a trip that is already registered returns it unchanged."""
        registry = TripRegistry()
        trip = registry.insert_trip(Trip(when=BASE_TIME))
        assert registry.insert_trip(trip) is trip
        assert len(registry) == 1

    def test_same_start_merges_into_existing(self, check_consistent):
        """A trip starting at an existing trip's time is absorbed by it."""
        registry = TripRegistry()
        d1 = make_dive(BASE_TIME)
        existing = new_trip(registry, d1, location="Home reef")

        d2 = make_dive(BASE_TIME + HOUR)
        incoming = Trip(when=BASE_TIME, location="Elsewhere", notes="boat")
        incoming.dives.append(d2)
        d2.trip = incoming

        result = registry.insert_trip(incoming)

        assert result is existing
        assert len(registry) == 1
        assert existing.member_count == 2
        assert d2.trip is existing
        # Existing location wins, missing notes are backfilled
        assert existing.location == "Home reef"
        assert existing.notes == "boat"
        check_consistent(registry, [d1, d2])

    def test_merge_backfills_location(self):
        """A location-less existing trip takes the incoming trip's location."""
        registry = TripRegistry()
        existing = registry.insert_trip(Trip(when=BASE_TIME))
        result = registry.insert_trip(Trip(when=BASE_TIME, location="Blue hole"))
        assert result is existing
        assert existing.location == "Blue hole"


class TestMembership:
    """add_dive_to_trip / remove_dive_from_trip."""

    def test_add_sets_back_reference_and_flag(self):
        registry = TripRegistry()
        dive = make_dive(BASE_TIME)
        trip = new_trip(registry, dive)
        assert dive.trip is trip
        assert dive.trip_flag is TripFlag.ASSIGNED_TRIP
        assert trip.member_count == 1

    def test_add_twice_is_noop(self):
        """Re-adding a member does not double count it."""
        registry = TripRegistry()
        dive = make_dive(BASE_TIME)
        trip = new_trip(registry, dive)
        registry.add_dive_to_trip(dive, trip)
        assert trip.member_count == 1

    def test_earlier_dive_moves_trip_start(self, check_consistent):
        """Adding an earlier dive lowers trip.when and re-sorts the registry."""
        registry = TripRegistry()
        a = new_trip(registry, make_dive(BASE_TIME + 10 * HOUR))
        b = new_trip(registry, make_dive(BASE_TIME + 50 * HOUR))
        early = make_dive(BASE_TIME)

        registry.add_dive_to_trip(early, b)

        assert b.when == BASE_TIME
        assert registry.trips == [b, a]
        check_consistent(registry, [early] + a.dives + b.dives)

    def test_earlier_dive_onto_other_trip_start_merges(self, check_consistent):
        """A start moved onto another trip's start folds the two trips together."""
        registry = TripRegistry()
        a = new_trip(registry, make_dive(BASE_TIME))
        b = new_trip(registry, make_dive(BASE_TIME + 10 * HOUR), location="Reef")
        early = make_dive(BASE_TIME)

        registry.add_dive_to_trip(early, b)

        assert registry.trips == [a]
        assert b not in registry
        assert early.trip is a
        assert a.member_count == 3
        assert a.location == "Reef"
        check_consistent(registry, a.dives)

    def test_removal_onto_other_trip_start_merges(self, check_consistent):
        """Dropping the first dive can push a trip's start onto the next trip's."""
        registry = TripRegistry()
        d1, d2 = make_dive(BASE_TIME), make_dive(BASE_TIME + 10 * HOUR)
        d3 = make_dive(BASE_TIME + 10 * HOUR)
        a = new_trip(registry, d1, d2)
        b = new_trip(registry, d3)

        registry.remove_dive_from_trip(d1)

        assert registry.trips == [b]
        assert a not in registry
        assert d2.trip is b and d3.trip is b
        check_consistent(registry, [d1, d2, d3])

    def test_add_to_trip_without_start_raises(self):
        registry = TripRegistry()
        trip = registry.insert_trip(Trip(when=0))
        with pytest.raises(TripStructureError):
            registry.add_dive_to_trip(make_dive(BASE_TIME), trip)

    def test_add_to_unregistered_trip_raises(self):
        registry = TripRegistry()
        with pytest.raises(TripStructureError):
            registry.add_dive_to_trip(make_dive(BASE_TIME), Trip(when=BASE_TIME))

    def test_moving_last_dive_deletes_old_trip(self):
        """A dive moved to another trip leaves no empty trip behind."""
        registry = TripRegistry()
        dive = make_dive(BASE_TIME)
        old = new_trip(registry, dive)
        target = new_trip(registry, make_dive(BASE_TIME + 5 * HOUR))

        registry.add_dive_to_trip(dive, target)

        assert old not in registry
        assert target.member_count == 2
        assert target.when == BASE_TIME

    def test_remove_last_dive_deletes_trip(self):
        registry = TripRegistry()
        dive = make_dive(BASE_TIME)
        new_trip(registry, dive)

        registry.remove_dive_from_trip(dive)

        assert len(registry) == 0
        assert dive.trip is None
        assert dive.trip_flag is TripFlag.NO_TRIP

    def test_remove_first_dive_recomputes_start(self, check_consistent):
        registry = TripRegistry()
        d1 = make_dive(BASE_TIME)
        d2 = make_dive(BASE_TIME + 2 * HOUR)
        trip = new_trip(registry, d1, d2)

        registry.remove_dive_from_trip(d1)

        assert trip.when == d2.when
        assert trip.member_count == 1
        check_consistent(registry, [d1, d2])

    def test_remove_loose_dive_is_noop(self):
        registry = TripRegistry()
        dive = make_dive(BASE_TIME)
        registry.remove_dive_from_trip(dive)
        assert dive.trip is None

    def test_delete_trip_with_members_raises(self):
        registry = TripRegistry()
        trip = new_trip(registry, make_dive(BASE_TIME))
        with pytest.raises(TripStructureError):
            registry.delete_trip(trip)


class TestLookups:
    """Trip ids and time lookups."""

    def test_assign_trip_ids_newest_first(self):
        """The newest trip gets id -1, older trips count down."""
        registry = TripRegistry()
        old_dive = make_dive(BASE_TIME)
        new_dive = make_dive(BASE_TIME + 100 * HOUR)
        loose = make_dive(BASE_TIME + 200 * HOUR)
        old = new_trip(registry, old_dive)
        new = new_trip(registry, new_dive)

        registry.assign_trip_ids([old_dive, new_dive, loose])

        assert new.index == 1
        assert old.index == 2
        assert registry.find_by_trip_id(-1) is new
        assert registry.find_by_trip_id(-2) is old

    def test_find_by_trip_id_rejects_unknown(self):
        registry = TripRegistry()
        dive = make_dive(BASE_TIME)
        new_trip(registry, dive)
        registry.assign_trip_ids([dive])
        assert registry.find_by_trip_id(1) is None
        assert registry.find_by_trip_id(0) is None
        assert registry.find_by_trip_id(-5) is None

    def test_find_trip_at_or_before(self):
        registry = TripRegistry()
        a = new_trip(registry, make_dive(BASE_TIME))
        b = new_trip(registry, make_dive(BASE_TIME + 10 * HOUR))

        assert registry.find_trip_at_or_before(BASE_TIME - 1) is None
        assert registry.find_trip_at_or_before(BASE_TIME) is a
        assert registry.find_trip_at_or_before(BASE_TIME + 5 * HOUR) is a
        assert registry.find_trip_at_or_before(BASE_TIME + 20 * HOUR) is b


class TestDump:
    def test_dump_warns_when_out_of_order(self, caplog):
        """A corrupted ordering is reported at WARNING level."""
        registry = TripRegistry()
        new_trip(registry, make_dive(BASE_TIME))
        new_trip(registry, make_dive(BASE_TIME + HOUR))
        registry._trips.reverse()

        with caplog.at_level(logging.DEBUG, logger="divelog.trip_registry"):
            registry.dump()

        assert "out of order" in caplog.text
