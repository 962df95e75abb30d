# app/enums.py
"""Closed value sets a listing is tagged with, plus lenient string lookup."""
from enum import Enum
from functools import lru_cache
from typing import Dict, Optional, Type, TypeVar

E = TypeVar("E", bound=Enum)


class Skills(str, Enum):
    ART_2D = "ART_2D"
    ART_3D = "ART_3D"
    CODE = "CODE"
    DESIGN_PRODUCTION = "DESIGN_PRODUCTION"
    SFX = "SFX"
    MUSIC = "MUSIC"
    TESTING_SUPPORT = "TESTING_SUPPORT"


class Tools(str, Enum):
    UNITY = "UNITY"
    CONSTRUCT = "CONSTRUCT"
    GAME_MAKER_STUDIO = "GAME_MAKER_STUDIO"
    GODOT = "GODOT"
    TWINE = "TWINE"
    BITSY = "BITSY"
    UNREAL = "UNREAL"
    RPG_MAKER = "RPG_MAKER"
    PICO_8 = "PICO_8"
    OTHER = "OTHER"


class Availability(str, Enum):
    MINIMAL = "MINIMAL"
    PART_TIME = "PART_TIME"
    FULL_TIME = "FULL_TIME"
    FLEXIBLE = "FLEXIBLE"


def _normalize(token: str) -> str:
    return token.strip().upper().replace("-", "_").replace(" ", "_")


@lru_cache(maxsize=None)
def _name_table(enum_cls: Type[E]) -> Dict[str, E]:
    return {_normalize(member.name): member for member in enum_cls}


def enum_from_string_safe(enum_cls: Type[E], token: str) -> Optional[E]:
    """Return the member of `enum_cls` named by `token`, or None.

    Matching ignores case and treats `-` and spaces as `_`, so "art-2d" and
    "Art 2D" both resolve to Skills.ART_2D. Unknown tokens never raise.
    """
    return _name_table(enum_cls).get(_normalize(token))
