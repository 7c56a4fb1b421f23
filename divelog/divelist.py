"""
The dive list session: one DiveStore, one TripRegistry and the settings they
are edited under.

Every structural edit goes through here so the "unsaved changes" flag and the
selection bookkeeping stay in step with the trip graph. Positions are never
held across a mutation: the dives involved are remembered and their indices
looked up again afterwards. Edits hold the preload's session lock, so a
background preload never reads the store or the trips mid-edit.
"""

import functools
import logging
import threading
from typing import List, Optional

from . import trip_ops
from .buhlmann_engine import BuhlmannTissueModel
from .config import DiveListConfig
from .deco_preload import DecoPreload, TissueModel
from .dive import Dive, DiveStore
from .metrics import update_cylinder_related_info
from .trip_registry import Trip, TripRegistry

logger = logging.getLogger(__name__)


def _exclusive(method):
    """Run a store/trip edit under the session lock a preload replays under."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self.preload.lock:
            return method(self, *args, **kwargs)

    return wrapper


class DiveList:
    """Dives, their trips and the change/selection state around them."""

    def __init__(
        self,
        store: Optional[DiveStore] = None,
        config: Optional[DiveListConfig] = None,
        model: Optional[TissueModel] = None,
    ):
        self.store = store if store is not None else DiveStore()
        self.config = config or DiveListConfig()
        self.registry = TripRegistry()
        self.autogroup_enabled = self.config.autogroup
        self.preload = DecoPreload(
            self.store, model if model is not None else BuhlmannTissueModel(self.config.gf)
        )
        self.changed = False
        self.selected_dive = -1

    # -- change tracking ---------------------------------------------------

    def mark_changed(self, changed: bool = True) -> None:
        self.changed = changed

    def unsaved_changes(self) -> bool:
        return self.changed

    # -- dive table --------------------------------------------------------

    @_exclusive
    def add_dive(self, idx: int, dive: Dive) -> None:
        """Insert `dive` at table position `idx`."""
        current = self.store.get(self.selected_dive)
        self.store.insert(idx, dive)
        if dive.selected:
            self.selected_dive = idx
        elif current is not None:
            self.selected_dive = self.store.index_of(current)
        self.mark_changed()

    @_exclusive
    def delete_dive(self, idx: int) -> Optional[Dive]:
        """Remove the dive at `idx` from its trip and from the table."""
        dive = self.store.get(idx)
        if dive is None:
            return None

        current = self.store.get(self.selected_dive)
        self.registry.remove_dive_from_trip(dive)
        self.store.pop(idx)
        self._reselect(current if current is not dive else None)
        self.mark_changed()
        logger.debug(f"Deleted dive {dive.number} at index {idx}")
        return dive

    @_exclusive
    def delete_selected(self) -> List[Dive]:
        """Delete every selected dive, oldest first."""
        doomed = [d for d in self.store if d.selected]
        for dive in doomed:
            self.delete_dive(self.store.index_of(dive))
        if not self.amount_selected:
            self.selected_dive = -1
        return doomed

    # -- selection ---------------------------------------------------------

    @property
    def amount_selected(self) -> int:
        return sum(1 for d in self.store if d.selected)

    def _reselect(self, current: Optional[Dive]) -> None:
        if current is not None:
            self.selected_dive = self.store.index_of(current)
            return
        self.selected_dive = next(
            (i for i, d in enumerate(self.store) if d.selected), -1
        )

    def select_dive(self, idx: int) -> None:
        dive = self.store.get(idx)
        if dive is not None and not dive.selected:
            dive.selected = True
            self.selected_dive = idx

    def deselect_dive(self, idx: int) -> None:
        """Deselect; if it was the current dive, pick the nearest selected one."""
        dive = self.store.get(idx)
        if dive is None or not dive.selected:
            return
        dive.selected = False

        if self.selected_dive == idx and self.amount_selected > 0:
            for candidate in list(range(idx - 1, -1, -1)) + list(range(idx + 1, len(self.store))):
                if self.store.get(candidate).selected:
                    self.selected_dive = candidate
                    return
        if self.amount_selected == 0:
            self.selected_dive = -1

    def show_and_select_dive(self, dive: Dive) -> None:
        """Make `dive` the only selected dive."""
        divenr = self.store.index_of(dive)
        if divenr < 0:
            return
        for other in self.store:
            other.selected = False
        dive.selected = True
        self.selected_dive = divenr

    # -- trips -------------------------------------------------------------

    @_exclusive
    def add_dive_to_trip(self, dive: Dive, trip: Trip) -> None:
        self.registry.add_dive_to_trip(dive, trip)
        self.mark_changed()

    @_exclusive
    def remove_dive_from_trip(self, dive: Dive) -> None:
        """Take `dive` out of its trip; if it is selected, every selected dive."""
        if dive.selected:
            for other in self.store:
                if other.selected:
                    self.registry.remove_dive_from_trip(other)
        else:
            self.registry.remove_dive_from_trip(dive)
        self.mark_changed()

    @_exclusive
    def create_trip_from_dive(self, dive: Dive) -> Trip:
        """Turn a loose dive into a trip, together with the selected dives after it."""
        trip = trip_ops.create_trip_from_dive(self.registry, dive)
        following = self.store.get(self.store.index_of(dive) + 1)
        if dive.selected and following is not None and following.selected and following.trip is None:
            trip_ops.merge_dive_into_trip_above(self.store, self.registry, following)
        self.mark_changed()
        return trip

    @_exclusive
    def merge_dive_into_trip_above(self, dive: Dive) -> Trip:
        trip = trip_ops.merge_dive_into_trip_above(self.store, self.registry, dive)
        self.mark_changed()
        return trip

    @_exclusive
    def merge_trips(self, source: Trip, destination: Trip) -> Trip:
        trip = trip_ops.merge_trips(self.registry, source, destination)
        self.mark_changed()
        return trip

    @_exclusive
    def split_trip(self, boundary: Dive) -> Trip:
        trip = trip_ops.split_trip(self.registry, boundary)
        self.mark_changed()
        return trip

    @_exclusive
    def remove_trip(self, trip: Trip) -> None:
        trip_ops.remove_trip(self.registry, trip)
        self.mark_changed()

    @_exclusive
    def remove_autogen_trips(self) -> None:
        trip_ops.remove_autogen_trips(self.registry, self.store)

    @_exclusive
    def autogroup(self) -> None:
        trip_ops.autogroup(self.registry, self.store, self.config.trip_threshold)

    @_exclusive
    def set_autogroup(self, enabled: bool) -> None:
        """Switch autogrouping; turning it off drops the generated trips."""
        self.autogroup_enabled = enabled
        if not enabled:
            self.remove_autogen_trips()
        self.update_dives()

    @_exclusive
    def retime_dive(self, dive: Dive, when: int) -> None:
        """Move a dive to a new start time and restore table order."""
        current = self.store.get(self.selected_dive)
        if trip_ops.retime_dive(self.registry, dive, when):
            self.store.sort()
            self._reselect(current)
            self.mark_changed()

    # -- derived data ------------------------------------------------------

    @_exclusive
    def update_dives(self) -> None:
        """Rebuild what a listing needs: groups, cached metrics, trip ids."""
        if self.autogroup_enabled:
            self.autogroup()
        for dive in self.store:
            update_cylinder_related_info(dive)
        self.registry.assign_trip_ids(self.store)

    def init_decompression(
        self, dive: Optional[Dive], cancel: Optional[threading.Event] = None
    ) -> float:
        """Tissue tolerance carried into `dive` from the dives before it."""
        return self.preload.compute(dive, cancel)
