"""
Pydantic schemas mirroring the REST contract.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class IngredientModel(BaseModel):
    """
    Inline ingredient payload.

    Fields are deliberately loose: the layer model performs the real
    validation so HTTP and in-process callers get the same errors.
    """

    id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("id", "ingredientId", "ingredient_id"),
    )
    name: str = ""
    fill_weight: Optional[Any] = Field(
        default=None,
        validation_alias=AliasChoices("fillWeight", "fill_weight", "fillLevel", "fill_level"),
    )
    color: Optional[str] = None
    unit_price: float = Field(
        default=0.0,
        validation_alias=AliasChoices("unitPrice", "unit_price", "price"),
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: object) -> Optional[str]:
        if value is None:
            return None
        return str(value)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "fillWeight": self.fill_weight,
            "color": self.color,
            "unitPrice": self.unit_price,
        }


class LayerCommandRequest(BaseModel):
    ingredient_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("ingredientId", "ingredient_id", "id"),
    )
    ingredient: Optional[IngredientModel] = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("ingredient_id", mode="before")
    @classmethod
    def _stringify_ingredient_id(cls, value: object) -> Optional[str]:
        if value is None:
            return None
        result = str(value).strip()
        return result or None


class SelectionRequest(BaseModel):
    ingredient_id: str = Field(validation_alias=AliasChoices("ingredientId", "ingredient_id", "id"))

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("ingredient_id", mode="before")
    @classmethod
    def _normalise_ingredient_id(cls, value: object) -> str:
        result = str(value if value is not None else "").strip()
        if not result:
            raise ValueError("ingredientId is required")
        return result


class ThemeRequest(BaseModel):
    name: str


class DraftRequest(BaseModel):
    name: Optional[str] = None


class CupThemeModel(BaseModel):
    name: str
    lid: str
    cup: str
    straw: str


class ThemeCollection(BaseModel):
    themes: List[CupThemeModel] = Field(default_factory=list)
