"""Shared builders for dive list tests."""

import pytest

from divelog.dive import Cylinder, Dive, DiveStore, GasMix, Sample

# 2023-11-14 22:13:20 UTC, any non-zero start works
BASE_TIME = 1_700_000_000
HOUR = 3600


def make_dive(when, depth=10.0, minutes=20, location=None, number=0, **kwargs):
    """Simple square dive: 1 min down, hold, 1 min up."""
    end = minutes * 60
    samples = [
        Sample(0, 0.0),
        Sample(60, depth),
        Sample(end - 60, depth),
        Sample(end, 0.0),
    ]
    kwargs.setdefault(
        "cylinders", [Cylinder(size=12.0, gasmix=GasMix(), start=200.0, end=100.0)]
    )
    return Dive(
        when=when,
        duration=end,
        samples=samples,
        location=location,
        number=number,
        **kwargs,
    )


@pytest.fixture
def dive_factory():
    return make_dive


@pytest.fixture
def series():
    """Five dives: three a day apart, then two more a week later."""
    whens = [
        BASE_TIME,
        BASE_TIME + 24 * HOUR,
        BASE_TIME + 48 * HOUR,
        BASE_TIME + 200 * HOUR,
        BASE_TIME + 210 * HOUR,
    ]
    return DiveStore([make_dive(w, number=n) for n, w in enumerate(whens, start=1)])


@pytest.fixture
def check_consistent():
    """Assert the trip graph invariants for a registry and its dives."""

    def check(registry, dives):
        trips = registry.trips
        whens = [t.when for t in trips]
        assert whens == sorted(whens), "registry out of order"
        assert len(set(whens)) == len(whens), "duplicate trip start"

        for trip in trips:
            assert trip.member_count > 0, "empty trip still registered"
            assert trip.when == min(d.when for d in trip.dives)
            for dive in trip.dives:
                assert dive.trip is trip

        for dive in dives:
            if dive.trip is not None:
                assert dive.trip in registry
                assert any(d is dive for d in dive.trip.dives)

    return check
