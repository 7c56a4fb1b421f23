"""Tests for the per-dive metrics: weight, dominant gas, SAC and OTU."""

import pytest

from divelog.dive import Cylinder, Dive, GasChange, GasMix, Sample, WeightSystem
from divelog.metrics import (
    GasSummary,
    _surface_corrected_duration,
    active_o2,
    calculate_airuse,
    calculate_otu,
    calculate_sac,
    get_dive_gas,
    total_weight,
    update_cylinder_related_info,
)

from conftest import BASE_TIME, make_dive


def with_mixes(*mixes):
    return Dive(
        when=BASE_TIME,
        cylinders=[Cylinder(size=11.1, gasmix=GasMix(o2=o2, he=he)) for o2, he in mixes],
    )


class TestTotalWeight:
    def test_sums_all_weightsystems(self):
        dive = Dive(when=BASE_TIME, weightsystems=[WeightSystem(3.0), WeightSystem(2.5)])
        assert total_weight(dive) == pytest.approx(5.5)

    def test_missing_dive_is_zero(self):
        assert total_weight(None) == 0.0

    def test_no_weights_is_zero(self):
        assert total_weight(Dive(when=BASE_TIME)) == 0.0


class TestGetDiveGas:
    """Dominant gas classification."""

    def test_trimix_wins_on_helium(self):
        """{21/0, 18/35} reports the trimix."""
        gas = get_dive_gas(with_mixes((210, 0), (180, 350)))
        assert (gas.o2, gas.he) == (180, 350)
        assert gas.label == "18/35"

    def test_richer_nitrox_wins(self):
        """{21/0, 32/0} reports 32% with 21% as the leanest mix."""
        gas = get_dive_gas(with_mixes((210, 0), (320, 0)))
        assert gas == GasSummary(o2=320, he=0, o2_low=210)
        assert gas.label == "EAN21...32"

    def test_single_nitrox(self):
        gas = get_dive_gas(with_mixes((320, 0)))
        assert gas == GasSummary(o2=320, he=0, o2_low=320)
        assert gas.label == "EAN32"

    def test_two_air_cylinders_report_air(self):
        gas = get_dive_gas(with_mixes((209, 0), (0, 0)))
        assert gas.is_air
        assert gas.label == "air"

    def test_no_cylinders_is_air(self):
        assert get_dive_gas(Dive(when=BASE_TIME)).is_air

    def test_empty_cylinder_slots_ignored(self):
        """Unset cylinder slots don't take part in the classification."""
        dive = Dive(
            when=BASE_TIME,
            cylinders=[Cylinder(), Cylinder(size=12.0, gasmix=GasMix(o2=500))],
        )
        assert get_dive_gas(dive) == GasSummary(o2=500, he=0, o2_low=500)

    def test_helium_tie_breaks_on_oxygen(self):
        gas = get_dive_gas(with_mixes((210, 350), (180, 350)))
        assert (gas.o2, gas.he, gas.o2_low) == (210, 350, 180)

    def test_leanest_oxygen_spans_all_cylinders(self):
        """{15/0, 21/35}: o2_low comes from the helium-free hypoxic mix."""
        gas = get_dive_gas(with_mixes((150, 0), (210, 350)))
        assert gas == GasSummary(o2=210, he=350, o2_low=150)


class TestActiveO2:
    def test_follows_gas_changes(self):
        dive = make_dive(BASE_TIME, events=[GasChange(600, 500), GasChange(900, 1000)])
        assert active_o2(dive, 0) == 209
        assert active_o2(dive, 600) == 500
        assert active_o2(dive, 899) == 500
        assert active_o2(dive, 1000) == 1000


class TestCalculateOtu:
    def test_oxygen_at_six_meters(self):
        """Pure O2 at 6m for 30 min, integrated over the sample pair."""
        dive = Dive(
            when=BASE_TIME,
            duration=1800,
            samples=[Sample(0, 6.0), Sample(1800, 6.0)],
            cylinders=[Cylinder(size=3.0, gasmix=GasMix(o2=1000))],
        )
        po2 = dive.depth_to_mbar(6.0)
        expected = int(((po2 - 500) / 1000.0) ** 0.83 * 1800 / 30.0 + 0.5)
        assert calculate_otu(dive) == expected
        assert 60 < expected < 70

    def test_air_at_shallow_depth_accumulates_nothing(self):
        """pO2 below 0.5 bar contributes nothing."""
        assert calculate_otu(make_dive(BASE_TIME, depth=10.0)) == 0

    def test_logged_po2_wins(self):
        """A sensor pO2 on the sample overrides the computed one."""
        dive = Dive(
            when=BASE_TIME,
            duration=600,
            samples=[Sample(0, 0.0), Sample(600, 0.0, po2=1300.0)],
        )
        expected = int((0.8 ** 0.83) * 600 / 30.0 + 0.5)
        assert calculate_otu(dive) == expected

    def test_no_samples_is_zero(self):
        assert calculate_otu(Dive(when=BASE_TIME)) == 0


class TestCalculateSac:
    def test_constant_depth(self):
        """100 bar from a 12 l cylinder over 50 min at 10 m."""
        dive = Dive(
            when=BASE_TIME,
            duration=3000,
            samples=[Sample(0, 10.0), Sample(3000, 10.0)],
            cylinders=[Cylinder(size=12.0, start=200.0, end=100.0)],
        )
        airuse = 100.0 * 1000.0 / 1013.25 * 12.0
        expected = airuse / (dive.depth_to_mbar(10.0) / 1000.0) / 50.0
        assert calculate_sac(dive) == pytest.approx(expected)

    def test_sample_pressures_used_when_unlogged(self):
        dive = Dive(
            when=BASE_TIME,
            cylinders=[Cylinder(size=10.0, sample_start=200.0, sample_end=150.0)],
        )
        assert calculate_airuse(dive) == pytest.approx(50.0 * 1000.0 / 1013.25 * 10.0)

    def test_no_samples_is_zero(self):
        dive = Dive(
            when=BASE_TIME,
            duration=3000,
            cylinders=[Cylinder(size=12.0, start=200.0, end=100.0)],
        )
        assert calculate_sac(dive) == 0.0

    def test_unsized_cylinder_is_zero(self):
        dive = make_dive(BASE_TIME, cylinders=[Cylinder(start=200.0, end=100.0)])
        assert calculate_sac(dive) == 0.0

    def test_zero_duration_is_zero(self):
        dive = make_dive(BASE_TIME)
        dive.duration = 0
        assert calculate_sac(dive) == 0.0

    def test_surface_stretch_mid_dive_not_counted(self):
        """Time spent at the surface between two descents is dropped."""
        dive = Dive(
            when=BASE_TIME,
            duration=2100,
            samples=[
                Sample(0, 10.0), Sample(600, 10.0),
                Sample(700, 0.0), Sample(1300, 0.0),
                Sample(1400, 10.0), Sample(2000, 10.0), Sample(2100, 0.0),
            ],
        )
        assert _surface_corrected_duration(dive) == 1500


class TestUpdateCylinderRelatedInfo:
    def test_caches_sac_and_otu(self):
        dive = make_dive(BASE_TIME)
        update_cylinder_related_info(dive)
        assert dive.sac == pytest.approx(calculate_sac(dive))
        assert dive.sac > 0
        assert dive.otu == 0

    def test_missing_dive_is_ignored(self):
        update_cylinder_related_info(None)
