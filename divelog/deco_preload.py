"""
Residual tissue loading carried into a dive from the dives before it.

The preload scans backwards from the target dive to find the start of the
cluster of dives whose surface intervals are shorter than 48 hours, then
replays that cluster second by second into a tissue model, including the
surface intervals, up to the moment the target dive begins.

Dives on a different trip than the target are invisible to both the scan
and the replay.
"""

import logging
import threading
from concurrent.futures import Executor, Future
from typing import List, Optional, Protocol

from .dive import AIR, Dive, DiveStore, GasMix

logger = logging.getLogger(__name__)

# Dives further apart than this do not influence each other (seconds)
PRELOAD_WINDOW = 48 * 60 * 60


class TissueModel(Protocol):
    """Decompression state the preload drives. Pressures in bar."""

    def reset_surface(self, pressure: float) -> None:
        ...

    def add_segment(
        self,
        pressure: float,
        gasmix: GasMix,
        seconds: float,
        po2_override: Optional[float],
        dive: Optional[Dive],
    ) -> float:
        ...


class PreloadCancelled(Exception):
    """The preload was cancelled before the replay finished."""


def _surface_bar(dive: Dive) -> float:
    return dive.get_surface_pressure() / 1000.0


def _interpolate(a: float, b: float, part: int, whole: int) -> float:
    return a + (b - a) * part / whole


def _mix_for_o2(dive: Dive, o2_permille: int) -> GasMix:
    """The cylinder mix matching a gas switch, keeping its helium."""
    for cyl in dive.cylinders:
        if cyl.gasmix.o2_permille == o2_permille:
            return cyl.gasmix
    return GasMix(o2=o2_permille)


def add_dive_to_deco(
    model: TissueModel, dive: Dive, cancel: Optional[threading.Event] = None
) -> Optional[float]:
    """Feed the dive's profile to `model` as one-second segments.

    Returns the last tolerance reported, None if the dive has no profile.
    """
    tolerance = None
    events = dive.events
    next_event = 0
    gasmix = dive.first_gasmix()

    for prev, cur in zip(dive.samples, dive.samples[1:]):
        if cancel is not None and cancel.is_set():
            raise PreloadCancelled(f"Preload cancelled while replaying dive {dive.number}")

        t0, t1 = prev.time, cur.time
        for second in range(t0, t1):
            while next_event < len(events) and events[next_event].time <= second:
                gasmix = _mix_for_o2(dive, events[next_event].o2_permille)
                next_event += 1

            depth = _interpolate(prev.depth, cur.depth, second - t0, t1 - t0)
            tolerance = model.add_segment(
                dive.depth_to_mbar(depth) / 1000.0, gasmix, 1, cur.po2, dive
            )
    return tolerance


def find_preload_start(store: DiveStore, dive: Dive) -> int:
    """Index of the earliest dive the target's tissues still remember.

    Walks backwards while each accepted dive ended no more than 48 hours
    before the start of the dive accepted after it. Equal to the target's
    own index when nothing qualifies.
    """
    divenr = store.index_of(dive)
    first = divenr
    when = dive.when

    for i in range(divenr - 1, -1, -1):
        pdive = store.get(i)
        if pdive.trip is not dive.trip:
            continue
        if pdive.when > when or pdive.end_time + PRELOAD_WINDOW < when:
            break
        when = pdive.when
        first = i
    return first


def preload_dives(store: DiveStore, dive: Dive) -> List[Dive]:
    """The dives replayed before `dive`, oldest first."""
    divenr = store.index_of(dive)
    if divenr < 0:
        return []
    first = find_preload_start(store, dive)
    return [
        store.get(i) for i in range(first, divenr)
        if store.get(i).trip is dive.trip
    ]


def init_decompression(
    store: DiveStore,
    model: TissueModel,
    dive: Optional[Dive],
    cancel: Optional[threading.Event] = None,
) -> float:
    """Load `model` with the residual tissue state at the start of `dive`.

    Returns the tolerance after the last replayed segment, or 0.0 when no
    earlier dive matters (the model is then freshly reset).
    """
    if dive is None:
        return 0.0

    replay = preload_dives(store, dive)
    if not replay:
        model.reset_surface(_surface_bar(dive))
        return 0.0

    model.reset_surface(_surface_bar(replay[0]))
    tolerance = 0.0
    lasttime = replay[0].end_time

    for n, pdive in enumerate(replay):
        dive_tolerance = add_dive_to_deco(model, pdive, cancel)
        if dive_tolerance is not None:
            tolerance = dive_tolerance
        lasttime = max(lasttime, pdive.end_time)

        if n + 1 < len(replay):
            next_when = replay[n + 1].when
            surface_pressure = _surface_bar(pdive)
        else:
            next_when = dive.when
            surface_pressure = _surface_bar(dive)

        if next_when > lasttime:
            tolerance = model.add_segment(
                surface_pressure, AIR, next_when - lasttime, None, dive
            )

    logger.info(
        f"Preload for dive {dive.number}: replayed {len(replay)} dives, "
        f"tolerance {tolerance:.3f} bar"
    )
    return tolerance


class DecoPreload:
    """Single-writer wrapper running preloads against one tissue model.

    `lock` is the session lock: a preload holds it for the whole replay, so
    anything that edits the dive store or the trips the replay reads must
    hold it too. It is reentrant so an edit can run a preload.
    """

    def __init__(self, store: DiveStore, model: TissueModel):
        self.store = store
        self.model = model
        self.lock = threading.RLock()

    def compute(self, dive: Optional[Dive], cancel: Optional[threading.Event] = None) -> float:
        with self.lock:
            try:
                return init_decompression(self.store, self.model, dive, cancel)
            except PreloadCancelled:
                # Never leave a partial replay behind
                self.model.reset_surface(_surface_bar(dive))
                logger.info(f"Preload for dive {dive.number} cancelled")
                raise

    def submit(
        self,
        executor: Executor,
        dive: Optional[Dive],
        cancel: Optional[threading.Event] = None,
    ) -> Future:
        """Run the preload on `executor`; the future yields the tolerance."""
        return executor.submit(self.compute, dive, cancel)
