"""
Ingredient catalog backed by a YAML file.

The café's real catalog lives in the ordering backend; the builder only needs
id → descriptor lookups, so a static export of the ingredient table is enough.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import yaml

from .ingredients import IngredientDescriptor

ENV_CATALOG_VAR = "DREAMCUP_CATALOG"
CONFIG_DIR = Path(__file__).resolve().parent / "configs"
DEFAULT_CATALOG_PATH = CONFIG_DIR / "ingredients.yaml"

LOG = logging.getLogger(__name__)


class CatalogError(RuntimeError):
    """Base class for catalog errors."""


class IngredientNotFound(CatalogError, KeyError):
    """Raised when an ingredient id is not in the catalog."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "ingredient not found"


def _catalog_key(ingredient_id: object) -> str:
    return str(ingredient_id).strip() if ingredient_id is not None else ""


class IngredientCatalog:
    def __init__(self, ingredients: Iterable[IngredientDescriptor] = ()) -> None:
        self._ingredients: Dict[str, IngredientDescriptor] = {}
        for ingredient in ingredients:
            if ingredient.id is None:
                raise CatalogError(f"Ingredient {ingredient.name!r} has no id")
            if ingredient.id in self._ingredients:
                raise CatalogError(f"Duplicate ingredient id '{ingredient.id}'")
            self._ingredients[ingredient.id] = ingredient

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "IngredientCatalog":
        path = Path(path)
        try:
            with path.open("r", encoding="utf-8") as handle:
                document = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise CatalogError(f"Invalid catalog file {path}: {exc}") from exc

        entries = document.get("ingredients") if isinstance(document, dict) else None
        if entries is None:
            entries = []
        if not isinstance(entries, list):
            raise CatalogError(f"'ingredients' in {path} must be a list")

        ingredients: List[IngredientDescriptor] = []
        for entry in entries:
            if not isinstance(entry, dict):
                raise CatalogError(f"Catalog entry {entry!r} in {path} is not a mapping")
            ingredients.append(IngredientDescriptor.from_mapping(entry))
        catalog = cls(ingredients)
        LOG.info("Loaded %d ingredient(s) from %s", len(catalog), path)
        return catalog

    def __len__(self) -> int:
        return len(self._ingredients)

    def __contains__(self, ingredient_id: object) -> bool:
        return _catalog_key(ingredient_id) in self._ingredients

    def get(self, ingredient_id: object) -> IngredientDescriptor:
        key = _catalog_key(ingredient_id)
        ingredient = self._ingredients.get(key)
        if ingredient is None:
            raise IngredientNotFound(f"Ingredient '{ingredient_id}' not found")
        return ingredient

    def all(self) -> List[IngredientDescriptor]:
        return sorted(self._ingredients.values(), key=lambda item: item.name.lower())

    def available(self) -> List[IngredientDescriptor]:
        return [ingredient for ingredient in self.all() if ingredient.is_available]


def resolve_catalog_path(path: Optional[Union[str, Path]] = None) -> Path:
    if path:
        return Path(path).expanduser()
    env_path = os.environ.get(ENV_CATALOG_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CATALOG_PATH


def load_catalog(path: Optional[Union[str, Path]] = None) -> IngredientCatalog:
    resolved = resolve_catalog_path(path)
    if not resolved.exists():
        LOG.warning("Catalog file %s not found; starting with an empty catalog", resolved)
        return IngredientCatalog()
    return IngredientCatalog.from_yaml(resolved)
