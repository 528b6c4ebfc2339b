"""
Cup colour themes offered in the builder.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple


class UnknownTheme(LookupError):
    """Raised when a theme name is not one of the presets."""


@dataclass(frozen=True, slots=True)
class CupTheme:
    name: str
    lid: str
    cup: str
    straw: str

    def to_dict(self) -> dict:
        return {"name": self.name, "lid": self.lid, "cup": self.cup, "straw": self.straw}


THEMES: Tuple[CupTheme, ...] = (
    CupTheme(name="matcha", lid="#A1C48E", cup="#7FA87F", straw="#5E8B5E"),
    CupTheme(name="espresso", lid="#9ABAD9", cup="#6C96BA", straw="#3E6587"),
    CupTheme(name="smoothie", lid="#FFE59A", cup="#FFC857", straw="#FFB000"),
    CupTheme(name="berry", lid="#DDB0D4", cup="#B981BD", straw="#9A5A9F"),
    CupTheme(name="stormy-sea", lid="#3E4C59", cup="#627C8C", straw="#AAB4C0"),
    CupTheme(name="neon-purple", lid="#A42CD6", cup="#D94CF6", straw="#F0AAFF"),
    CupTheme(name="sunset-orange", lid="#FF6347", cup="#FF8566", straw="#FFA488"),
    CupTheme(name="forest-green", lid="#2E8B57", cup="#3CB371", straw="#66CDAA"),
)

DEFAULT_THEME = THEMES[0]

_THEMES_BY_NAME: Dict[str, CupTheme] = {theme.name: theme for theme in THEMES}


def get_theme(name: str) -> CupTheme:
    key = str(name or "").strip().lower().replace("_", "-").replace(" ", "-")
    theme = _THEMES_BY_NAME.get(key)
    if theme is None:
        raise UnknownTheme(f"Unknown cup theme '{name}'")
    return theme
