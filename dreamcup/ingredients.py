"""
Ingredient descriptors consumed by the cup-fill layer model.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional

CAPACITY = 20

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3,4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
_FUNCTION_COLOR = re.compile(r"^(?:rgba?|hsla?)\(\s*[^()]+\)$", re.IGNORECASE)
_NAMED_COLORS = frozenset(
    """
    aliceblue antiquewhite aqua aquamarine azure beige bisque black blanchedalmond blue
    blueviolet brown burlywood cadetblue chartreuse chocolate coral cornflowerblue cornsilk
    crimson cyan darkblue darkcyan darkgoldenrod darkgray darkgreen darkgrey darkkhaki
    darkmagenta darkolivegreen darkorange darkorchid darkred darksalmon darkseagreen
    darkslateblue darkslategray darkslategrey darkturquoise darkviolet deeppink deepskyblue
    dimgray dimgrey dodgerblue firebrick floralwhite forestgreen fuchsia gainsboro ghostwhite
    gold goldenrod gray green greenyellow grey honeydew hotpink indianred indigo ivory khaki
    lavender lavenderblush lawngreen lemonchiffon lightblue lightcoral lightcyan
    lightgoldenrodyellow lightgray lightgreen lightgrey lightpink lightsalmon lightseagreen
    lightskyblue lightslategray lightslategrey lightsteelblue lightyellow lime limegreen linen
    magenta maroon mediumaquamarine mediumblue mediumorchid mediumpurple mediumseagreen
    mediumslateblue mediumspringgreen mediumturquoise mediumvioletred midnightblue mintcream
    mistyrose moccasin navajowhite navy oldlace olive olivedrab orange orangered orchid
    palegoldenrod palegreen paleturquoise palevioletred papayawhip peachpuff peru pink plum
    powderblue purple rebeccapurple red rosybrown royalblue saddlebrown salmon sandybrown
    seagreen seashell sienna silver skyblue slateblue slategray slategrey snow springgreen
    steelblue tan teal thistle tomato transparent turquoise violet wheat white whitesmoke
    yellow yellowgreen
    """.split()
)


class LayerError(RuntimeError):
    """Base class for cup layer errors."""


class InvalidIngredientError(LayerError, ValueError):
    """Raised when an ingredient descriptor cannot be poured into or out of a cup."""


def _normalise_id(value: Any) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        candidate = value.strip()
        return candidate or None
    return str(value)


def _first_present(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in payload:
            return payload[key]
    return None


def is_color(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    candidate = value.strip()
    if not candidate:
        return False
    return bool(
        _HEX_COLOR.match(candidate)
        or _FUNCTION_COLOR.match(candidate)
        or candidate.lower() in _NAMED_COLORS
    )


def slots_for_ingredient(fill_weight: float, capacity: int = CAPACITY) -> int:
    """
    Number of layer slots an ingredient occupies.

    Each slot stands for ``100 / capacity`` percent of the cup; partial slots
    are truncated, so a 24 % ingredient in a 20 slot cup claims four slots.
    """

    if capacity <= 0:
        raise ValueError("capacity must be positive")
    # anything at or above 100 % already claims every slot
    weight = min(float(fill_weight), 100.0)
    return max(0, int(math.floor(weight * capacity / 100.0)))


@dataclass(frozen=True, slots=True)
class IngredientDescriptor:
    """
    Read-only description of an ingredient as the cup builder sees it.

    ``fill_weight`` is the share of the whole cup (in percent) the ingredient
    fills. Descriptors built from untrusted mappings are not validated on
    construction; :func:`require_fillable` and :func:`require_drainable` do
    that at the point of use.
    """

    id: Optional[str]
    name: str = ""
    fill_weight: Optional[float] = None
    color: Optional[str] = None
    unit_price: float = 0.0
    description: Optional[str] = None
    category_id: Optional[int] = None
    is_available: bool = True
    image_path: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "id", _normalise_id(self.id))

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "IngredientDescriptor":
        unit_price = _first_present(payload, "unitPrice", "unit_price", "price")
        try:
            price = float(unit_price if unit_price is not None else 0.0)
        except (TypeError, ValueError):
            price = 0.0
        category = _first_present(payload, "categoryId", "category_id")
        try:
            category_id = int(category) if category is not None else None
        except (TypeError, ValueError):
            category_id = None
        available = _first_present(payload, "isAvailable", "is_available")
        return cls(
            id=_first_present(payload, "id", "ingredientId", "ingredient_id"),
            name=str(payload.get("name") or ""),
            fill_weight=_first_present(payload, "fillWeight", "fill_weight", "fillLevel", "fill_level"),
            color=payload.get("color"),
            unit_price=max(0.0, price),
            description=payload.get("description"),
            category_id=category_id,
            is_available=True if available is None else bool(available),
            image_path=_first_present(payload, "imagePath", "image_path"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "fillWeight": self.fill_weight,
            "color": self.color,
            "unitPrice": float(self.unit_price),
            "description": self.description,
            "categoryId": self.category_id,
            "isAvailable": bool(self.is_available),
            "imagePath": self.image_path,
        }

    def slot_count(self, capacity: int = CAPACITY) -> int:
        return slots_for_ingredient(_checked_fill_weight(self), capacity)


def _checked_fill_weight(ingredient: IngredientDescriptor) -> float:
    value = ingredient.fill_weight
    if value is None:
        raise InvalidIngredientError(f"ingredient {ingredient.id!r} has no fill weight")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidIngredientError(
            f"ingredient {ingredient.id!r} fill weight must be numeric, got {value!r}"
        )
    try:
        weight = float(value)
    except OverflowError as exc:
        raise InvalidIngredientError(
            f"ingredient {ingredient.id!r} fill weight is out of range"
        ) from exc
    if not math.isfinite(weight) or weight < 0:
        raise InvalidIngredientError(
            f"ingredient {ingredient.id!r} fill weight must be a non-negative number, got {value!r}"
        )
    return weight


def coerce_ingredient(value: Any) -> IngredientDescriptor:
    if value is None:
        raise InvalidIngredientError("ingredient is required")
    if isinstance(value, IngredientDescriptor):
        return value
    if isinstance(value, Mapping):
        return IngredientDescriptor.from_mapping(value)
    raise InvalidIngredientError(f"unsupported ingredient value {value!r}")


def require_drainable(value: Any) -> IngredientDescriptor:
    """Validate the fields needed to pour an ingredient back out of the cup."""

    ingredient = coerce_ingredient(value)
    if ingredient.id is None:
        raise InvalidIngredientError("ingredient id is required")
    _checked_fill_weight(ingredient)
    return ingredient


def require_fillable(value: Any) -> IngredientDescriptor:
    """Validate the fields needed to pour an ingredient into the cup."""

    ingredient = require_drainable(value)
    if not is_color(ingredient.color):
        raise InvalidIngredientError(
            f"ingredient {ingredient.id!r} has an invalid color {ingredient.color!r}"
        )
    return ingredient
