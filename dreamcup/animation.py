"""
Animation planning for the cup renderer.

The layer store only reports which slots changed. This module turns those
reports into timed cues a renderer can play back (the web frontend maps each
cue onto an SVG element id). Planning never touches layer state.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import List, Optional

from .layers import DrainResult, FillResult, LayerEvent, LayerStore, LayerUpdate, ResetResult

LOG = logging.getLogger(__name__)

STREAM_TARGET = "liquid-stream"
STRAW_TARGETS = ("straw", "straw-accent")


@dataclass(frozen=True, slots=True)
class AnimationTiming:
    pour_in: float = 1.0
    pour_out: float = 2.0
    wiggle: float = 1.5
    wiggle_repeat: int = 3
    grow: float = 1.2
    grow_stagger: float = 0.3
    fall: float = 0.4
    band_height: float = 14.0
    fade_out: float = 0.5


@dataclass(frozen=True, slots=True)
class AnimationCue:
    target: str
    effect: str
    delay: float = 0.0
    duration: float = 0.0
    offset_y: float = 0.0
    color: Optional[str] = None
    repeat: int = 0

    def to_dict(self) -> dict:
        return {
            "target": self.target,
            "effect": self.effect,
            "delay": round(float(self.delay), 3),
            "duration": round(float(self.duration), 3),
            "offsetY": float(self.offset_y),
            "color": self.color,
            "repeat": int(self.repeat),
        }


def band_element_id(index: int, capacity: int) -> str:
    """SVG id of the band drawn for slot ``index``; ``Fill-1`` is the floor."""

    if not 0 <= index < capacity:
        raise IndexError(f"slot {index} outside cup of {capacity}")
    return f"Fill-{capacity - index}"


class AnimationPlanner:
    def __init__(self, capacity: int, timing: Optional[AnimationTiming] = None) -> None:
        self.capacity = int(capacity)
        self.timing = timing or AnimationTiming()

    def plan(self, event: LayerEvent) -> List[AnimationCue]:
        if not event.changed:
            return []
        if isinstance(event, FillResult):
            return self.plan_fill(event)
        if isinstance(event, DrainResult):
            return self.plan_drain(event)
        if isinstance(event, ResetResult):
            return self.plan_reset(event)
        raise TypeError(f"Unsupported layer event {event!r}")

    def plan_fill(self, event: FillResult) -> List[AnimationCue]:
        if not event.filled_indices:
            return []
        timing = self.timing
        cues = [
            AnimationCue(
                target=STREAM_TARGET,
                effect="pour",
                duration=timing.pour_in,
                color=event.color,
            ),
            AnimationCue(
                target=STREAM_TARGET,
                effect="fade-out",
                delay=timing.pour_in,
                duration=timing.pour_out,
            ),
        ]
        cues.extend(
            AnimationCue(
                target=target,
                effect="wiggle",
                duration=timing.wiggle,
                repeat=timing.wiggle_repeat,
            )
            for target in STRAW_TARGETS
        )
        for order, index in enumerate(event.filled_indices):
            cues.append(
                AnimationCue(
                    target=band_element_id(index, self.capacity),
                    effect="grow",
                    delay=order * timing.grow_stagger,
                    duration=timing.grow,
                    color=event.color,
                )
            )
        return cues

    def plan_drain(self, event: DrainResult) -> List[AnimationCue]:
        # Each settled band is drawn at its new slot and drops in from where it was.
        return [
            AnimationCue(
                target=band_element_id(move.to_index, self.capacity),
                effect="fall",
                duration=self.timing.fall,
                offset_y=-move.distance * self.timing.band_height,
            )
            for move in event.moved_indices
        ]

    def plan_reset(self, event: ResetResult) -> List[AnimationCue]:
        return [
            AnimationCue(
                target=band_element_id(index, self.capacity),
                effect="fade-out",
                duration=self.timing.fade_out,
            )
            for index in event.cleared_indices
        ]


@dataclass
class CueBatch:
    rev: int
    kind: str
    cues: List[AnimationCue] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "rev": int(self.rev),
            "kind": self.kind,
            "cues": [cue.to_dict() for cue in self.cues],
        }


class CueRecorder:
    """
    Store observer that keeps the planned cues of every committed update.
    """

    def __init__(self, store: LayerStore, planner: Optional[AnimationPlanner] = None) -> None:
        self._store = store
        self._planner = planner or AnimationPlanner(store.capacity)
        self._lock = threading.Lock()
        self._batches: List[CueBatch] = []
        self._token: Optional[int] = store.subscribe(self._on_update)

    def _on_update(self, update: LayerUpdate) -> None:
        batch = CueBatch(rev=update.rev, kind=update.event.kind, cues=self._planner.plan(update.event))
        with self._lock:
            self._batches.append(batch)
        LOG.debug("Recorded %d cue(s) for rev %d", len(batch.cues), update.rev)

    @property
    def batches(self) -> List[CueBatch]:
        with self._lock:
            return list(self._batches)

    def pop_batches(self) -> List[CueBatch]:
        with self._lock:
            batches, self._batches = self._batches, []
        return batches

    def close(self) -> None:
        if self._token is not None:
            self._store.unsubscribe(self._token)
            self._token = None
