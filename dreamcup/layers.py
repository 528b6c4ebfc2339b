"""
Cup-fill layer store.

The cup is a fixed number of horizontal bands ("slots"). Slot ``capacity - 1``
is the floor of the cup and slot ``0`` sits just under the rim: pouring claims
free slots from the floor upwards, and pouring an ingredient back out lets
whatever is left settle onto the floor again.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Dict, List, Optional, Tuple, Union

from .ingredients import (
    CAPACITY,
    InvalidIngredientError,
    LayerError,
    require_drainable,
    require_fillable,
    slots_for_ingredient,
)

LOG = logging.getLogger(__name__)

__all__ = [
    "CAPACITY",
    "DrainResult",
    "FillResult",
    "InvalidIngredientError",
    "LayerError",
    "LayerSlot",
    "LayerStore",
    "LayerUpdate",
    "ResetResult",
    "SlotMove",
    "drain_slots",
    "empty_slots",
    "fill_slots",
    "reset_slots",
]


@dataclass(frozen=True, slots=True)
class LayerSlot:
    color: str
    source_ingredient_id: str

    def to_dict(self) -> dict:
        return {"color": self.color, "sourceIngredientId": self.source_ingredient_id}


Slots = Tuple[Optional[LayerSlot], ...]


@dataclass(frozen=True, slots=True)
class SlotMove:
    from_index: int
    to_index: int

    @property
    def distance(self) -> int:
        return self.to_index - self.from_index

    def to_dict(self) -> dict:
        return {"from": int(self.from_index), "to": int(self.to_index)}


@dataclass(frozen=True, slots=True)
class FillResult:
    """Indices claimed by a fill, in the order they were poured."""

    kind: ClassVar[str] = "fill"

    ingredient_id: str
    color: str
    filled_indices: Tuple[int, ...] = ()

    @property
    def changed(self) -> bool:
        return bool(self.filled_indices)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "ingredientId": self.ingredient_id,
            "color": self.color,
            "filledIndices": list(self.filled_indices),
        }


@dataclass(frozen=True, slots=True)
class DrainResult:
    """Indices emptied by a drain and the bands that settled afterwards."""

    kind: ClassVar[str] = "drain"

    ingredient_id: str
    cleared_indices: Tuple[int, ...] = ()
    moved_indices: Tuple[SlotMove, ...] = ()

    @property
    def changed(self) -> bool:
        return bool(self.cleared_indices)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "ingredientId": self.ingredient_id,
            "clearedIndices": list(self.cleared_indices),
            "movedIndices": [move.to_dict() for move in self.moved_indices],
        }


@dataclass(frozen=True, slots=True)
class ResetResult:
    """Indices that held a band before the cup was emptied."""

    kind: ClassVar[str] = "reset"

    cleared_indices: Tuple[int, ...] = ()

    @property
    def changed(self) -> bool:
        return bool(self.cleared_indices)

    def to_dict(self) -> dict:
        return {"kind": self.kind, "clearedIndices": list(self.cleared_indices)}


LayerEvent = Union[FillResult, DrainResult, ResetResult]


def _slots_to_list(slots: Slots) -> List[Optional[dict]]:
    return [slot.to_dict() if slot is not None else None for slot in slots]


@dataclass(frozen=True, slots=True)
class LayerUpdate:
    """
    Published to store observers after a mutation that changed the cup.
    """

    rev: int
    event: LayerEvent
    slots: Slots

    def to_dict(self) -> dict:
        return {
            "rev": int(self.rev),
            "event": self.event.to_dict(),
            "layers": _slots_to_list(self.slots),
        }


# ---------------------------------------------------------------------- transitions


def empty_slots(capacity: int = CAPACITY) -> Slots:
    if capacity <= 0:
        raise ValueError("capacity must be positive")
    return (None,) * capacity


def fill_slots(slots: Slots, ingredient: Any) -> Tuple[Slots, FillResult]:
    """
    Pour ``ingredient`` into ``slots``.

    Claims up to the ingredient's slot count of empty slots, scanning from the
    floor upwards. A cup without enough room takes what fits.
    """

    descriptor = require_fillable(ingredient)
    capacity = len(slots)
    amount = slots_for_ingredient(descriptor.fill_weight, capacity)
    layer = LayerSlot(color=descriptor.color.strip(), source_ingredient_id=descriptor.id)

    updated = list(slots)
    filled: List[int] = []
    for index in range(capacity - 1, -1, -1):
        if len(filled) >= amount:
            break
        if updated[index] is None:
            updated[index] = layer
            filled.append(index)

    result = FillResult(
        ingredient_id=descriptor.id,
        color=layer.color,
        filled_indices=tuple(filled),
    )
    return tuple(updated), result


def _compact(slots: List[Optional[LayerSlot]]) -> Tuple[Slots, Tuple[SlotMove, ...]]:
    capacity = len(slots)
    remaining = [(index, slot) for index, slot in enumerate(slots) if slot is not None]
    offset = capacity - len(remaining)

    compacted: List[Optional[LayerSlot]] = [None] * capacity
    moves: List[SlotMove] = []
    for position, (old_index, slot) in enumerate(remaining):
        new_index = offset + position
        compacted[new_index] = slot
        if new_index != old_index:
            moves.append(SlotMove(from_index=old_index, to_index=new_index))
    return tuple(compacted), tuple(moves)


def drain_slots(slots: Slots, ingredient: Any) -> Tuple[Slots, DrainResult]:
    """
    Pour ``ingredient`` back out of ``slots`` and let the rest settle.

    Up to the ingredient's slot count of matching bands are emptied, floor
    first. The remaining bands keep their order and drop so that they rest on
    the floor again; every band that changed index is reported as a move.
    """

    descriptor = require_drainable(ingredient)
    capacity = len(slots)
    amount = slots_for_ingredient(descriptor.fill_weight, capacity)

    updated = list(slots)
    cleared: List[int] = []
    for index in range(capacity - 1, -1, -1):
        if len(cleared) >= amount:
            break
        slot = updated[index]
        if slot is not None and slot.source_ingredient_id == descriptor.id:
            updated[index] = None
            cleared.append(index)

    if not cleared:
        return tuple(slots), DrainResult(ingredient_id=descriptor.id)

    compacted, moves = _compact(updated)
    result = DrainResult(
        ingredient_id=descriptor.id,
        cleared_indices=tuple(cleared),
        moved_indices=moves,
    )
    return compacted, result


def reset_slots(slots: Slots) -> Tuple[Slots, ResetResult]:
    cleared = tuple(index for index, slot in enumerate(slots) if slot is not None)
    return empty_slots(len(slots)), ResetResult(cleared_indices=cleared)


# ---------------------------------------------------------------------- store


class LayerStore:
    """
    Owned, lock protected layer state for one cup.

    ``fill``, ``drain`` and ``reset`` are the only mutators. Each returns the
    event describing what changed; observers receive a :class:`LayerUpdate`
    once the new state is committed.
    """

    def __init__(self, *, capacity: int = CAPACITY) -> None:
        self._lock = threading.RLock()
        self._slots: Slots = empty_slots(int(capacity))
        self._rev = 0

        self._observer_counter = 0
        self._observers: Dict[int, Callable[[LayerUpdate], None]] = {}

    # ------------------------------------------------------------------ helpers

    def _commit_locked(self, slots: Slots, event: LayerEvent) -> Optional[LayerUpdate]:
        if not event.changed:
            return None
        self._slots = slots
        self._rev += 1
        return LayerUpdate(rev=self._rev, event=event, slots=slots)

    def _notify(self, update: Optional[LayerUpdate]) -> None:
        if update is None:
            return
        with self._lock:
            observers = dict(self._observers)
        for token, callback in observers.items():
            try:
                callback(update)
            except Exception:  # pragma: no cover - observer failures should not break the cup
                LOG.exception("Layer observer %s failed.", token)

    # ------------------------------------------------------------------ public API

    @property
    def capacity(self) -> int:
        return len(self._slots)

    @property
    def revision(self) -> int:
        with self._lock:
            return self._rev

    def subscribe(self, callback: Callable[[LayerUpdate], None]) -> int:
        if not callable(callback):
            raise TypeError("callback must be callable")
        with self._lock:
            self._observer_counter += 1
            token = self._observer_counter
            self._observers[token] = callback
        return token

    def unsubscribe(self, token: int) -> None:
        with self._lock:
            self._observers.pop(token, None)

    def snapshot(self) -> Slots:
        with self._lock:
            return self._slots

    def levels(self) -> Slots:
        """Slots ordered floor first; occupied bands always form a prefix."""

        return tuple(reversed(self.snapshot()))

    def occupied_count(self) -> int:
        return sum(1 for slot in self.snapshot() if slot is not None)

    def free_count(self) -> int:
        return self.capacity - self.occupied_count()

    def fill(self, ingredient: Any) -> FillResult:
        with self._lock:
            slots, result = fill_slots(self._slots, ingredient)
            update = self._commit_locked(slots, result)
        LOG.debug(
            "Filled %d slot(s) with %s: %s",
            len(result.filled_indices),
            result.ingredient_id,
            list(result.filled_indices),
        )
        self._notify(update)
        return result

    def drain(self, ingredient: Any) -> DrainResult:
        with self._lock:
            slots, result = drain_slots(self._slots, ingredient)
            update = self._commit_locked(slots, result)
        LOG.debug(
            "Drained %d slot(s) of %s, %d band(s) settled",
            len(result.cleared_indices),
            result.ingredient_id,
            len(result.moved_indices),
        )
        self._notify(update)
        return result

    def reset(self) -> ResetResult:
        with self._lock:
            slots, result = reset_slots(self._slots)
            update = self._commit_locked(slots, result)
        LOG.debug("Reset cup, cleared %d slot(s)", len(result.cleared_indices))
        self._notify(update)
        return result

    def to_dict(self) -> dict:
        with self._lock:
            return {
                "rev": int(self._rev),
                "capacity": len(self._slots),
                "layers": _slots_to_list(self._slots),
            }
