"""
Builder sessions: one customer's cup in progress.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from typing import Any, Callable, Dict, List, Optional

from .animation import AnimationCue, AnimationPlanner, AnimationTiming
from .ingredients import (
    CAPACITY,
    IngredientDescriptor,
    InvalidIngredientError,
    require_fillable,
)
from .layers import DrainResult, FillResult, LayerEvent, LayerStore, ResetResult
from .themes import DEFAULT_THEME, CupTheme, get_theme

DEFAULT_DRINK_NAME = "Min Drømmekopp"
DEFAULT_IDLE_TIMEOUT = 3600.0

LOG = logging.getLogger(__name__)


class SessionError(RuntimeError):
    """Base class for builder session errors."""


class SessionNotFound(SessionError, KeyError):
    """Raised when a session id is unknown."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "session not found"


class SelectionNotFound(SessionError, IndexError):
    """Raised when removing a selection position that does not exist."""


class EmptyDraft(SessionError):
    """Raised when saving a drink that has no ingredients."""


def _draft_ingredient(ingredient: IngredientDescriptor) -> dict:
    return {
        "ingredientId": ingredient.id,
        "name": ingredient.name,
        "description": ingredient.description,
        "color": ingredient.color,
        "imagePath": ingredient.image_path,
        "isAvailable": bool(ingredient.is_available),
        "unitPrice": float(ingredient.unit_price),
        "categoryId": ingredient.category_id,
    }


class BuilderSession:
    """
    Selection list, fill level and layer store of one cup.

    Selections are what the customer sees in "your choices"; the layer store
    is what gets drawn. Both are updated under one lock so they never drift.
    """

    def __init__(
        self,
        *,
        session_id: Optional[str] = None,
        capacity: int = CAPACITY,
        theme: CupTheme = DEFAULT_THEME,
        timing: Optional[AnimationTiming] = None,
    ) -> None:
        self.session_id = session_id or uuid.uuid4().hex
        self.store = LayerStore(capacity=capacity)
        self.planner = AnimationPlanner(self.store.capacity, timing)
        self.theme = theme
        self.drink_name = DEFAULT_DRINK_NAME
        self.created_at = time.time()
        self._lock = threading.RLock()
        self._selections: List[IngredientDescriptor] = []
        self._fill_level = 0.0
        self.logger = LOG.getChild(self.session_id[:8])

    # ------------------------------------------------------------------ layer operations

    def fill(self, ingredient: Any) -> FillResult:
        with self._lock:
            return self.store.fill(ingredient)

    def drain(self, ingredient: Any) -> DrainResult:
        with self._lock:
            return self.store.drain(ingredient)

    def reset(self) -> ResetResult:
        with self._lock:
            return self.store.reset()

    def plan(self, event: LayerEvent) -> List[AnimationCue]:
        return self.planner.plan(event)

    # ------------------------------------------------------------------ selections

    @property
    def selections(self) -> List[IngredientDescriptor]:
        with self._lock:
            return list(self._selections)

    @property
    def fill_level(self) -> float:
        with self._lock:
            return self._fill_level

    def add_ingredient(self, value: Any) -> FillResult:
        try:
            ingredient = require_fillable(value)
        except InvalidIngredientError as exc:
            self.logger.warning("Rejected ingredient: %s", exc)
            raise
        with self._lock:
            result = self.store.fill(ingredient)
            self._selections.append(ingredient)
            self._fill_level = min(self._fill_level + float(ingredient.fill_weight), 100.0)
        self.logger.info("Added %s (%s)", ingredient.name or ingredient.id, ingredient.id)
        return result

    def remove_selection(self, index: int) -> DrainResult:
        with self._lock:
            if not 0 <= index < len(self._selections):
                raise SelectionNotFound(f"No selection at position {index}")
            ingredient = self._selections.pop(index)
            self._fill_level = max(self._fill_level - float(ingredient.fill_weight), 0.0)
            result = self.store.drain(ingredient)
        self.logger.info("Removed %s (%s)", ingredient.name or ingredient.id, ingredient.id)
        return result

    def clear(self) -> ResetResult:
        with self._lock:
            self._selections.clear()
            self._fill_level = 0.0
            result = self.store.reset()
        self.logger.info("Cleared all choices")
        return result

    def total_price(self) -> float:
        with self._lock:
            return round(sum(float(item.unit_price) for item in self._selections), 2)

    def set_theme(self, name: str) -> CupTheme:
        theme = get_theme(name)
        with self._lock:
            self.theme = theme
        return theme

    def draft(self, name: Optional[str] = None) -> dict:
        """
        Drink payload for the ordering backend.

        Only builds the payload; saving it is the backend's job.
        """

        with self._lock:
            if not self._selections:
                raise EmptyDraft("Cannot save a drink without ingredients")
            candidate = str(name or "").strip()
            if candidate:
                self.drink_name = candidate
            total = self.total_price()
            return {
                "name": self.drink_name,
                "basePrice": total,
                "salePrice": total,
                "timesFavorite": 0,
                "categoryId": None,
                "ingredients": [_draft_ingredient(item) for item in self._selections],
                "theme": self.theme.to_dict(),
                "layers": self.store.to_dict()["layers"],
            }

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "sessionId": self.session_id,
                "drinkName": self.drink_name,
                "fillLevel": float(self._fill_level),
                "totalPrice": self.total_price(),
                "theme": self.theme.to_dict(),
                "selections": [item.to_dict() for item in self._selections],
                "cup": self.store.to_dict(),
            }


class SessionManager:
    """
    Registry of live builder sessions; each belongs to exactly one customer.

    Sessions not looked up for ``idle_timeout`` seconds are dropped the next
    time the registry is touched. ``idle_timeout=None`` keeps them until they
    are closed explicitly.
    """

    def __init__(
        self,
        *,
        capacity: int = CAPACITY,
        timing: Optional[AnimationTiming] = None,
        idle_timeout: Optional[float] = DEFAULT_IDLE_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if idle_timeout is not None and idle_timeout <= 0:
            raise ValueError("idle_timeout must be positive")
        self.capacity = int(capacity)
        self.timing = timing
        self.idle_timeout = idle_timeout
        self._clock = clock
        self._lock = threading.Lock()
        self._sessions: Dict[str, BuilderSession] = {}
        self._last_seen: Dict[str, float] = {}

    def __len__(self) -> int:
        with self._lock:
            self._expire_locked()
            return len(self._sessions)

    def _expire_locked(self) -> None:
        if self.idle_timeout is None:
            return
        cutoff = self._clock() - self.idle_timeout
        stale = [session_id for session_id, seen in self._last_seen.items() if seen <= cutoff]
        for session_id in stale:
            self._sessions.pop(session_id, None)
            self._last_seen.pop(session_id, None)
            LOG.info("Expired idle builder session %s", session_id)

    def create(self) -> BuilderSession:
        session = BuilderSession(capacity=self.capacity, timing=self.timing)
        with self._lock:
            self._expire_locked()
            self._sessions[session.session_id] = session
            self._last_seen[session.session_id] = self._clock()
        LOG.info("Opened builder session %s", session.session_id)
        return session

    def get(self, session_id: str) -> BuilderSession:
        with self._lock:
            self._expire_locked()
            session = self._sessions.get(session_id)
            if session is not None:
                self._last_seen[session_id] = self._clock()
        if session is None:
            raise SessionNotFound(f"Session '{session_id}' not found")
        return session

    def list(self) -> List[BuilderSession]:
        with self._lock:
            self._expire_locked()
            return sorted(self._sessions.values(), key=lambda item: item.created_at)

    def close(self, session_id: str) -> BuilderSession:
        with self._lock:
            session = self._sessions.pop(session_id, None)
            self._last_seen.pop(session_id, None)
        if session is None:
            raise SessionNotFound(f"Session '{session_id}' not found")
        LOG.info("Closed builder session %s", session_id)
        return session
