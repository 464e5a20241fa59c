"""Model exports for footsim."""

from footsim.models.player import Player, PositionCategory
from footsim.models.team import (
    MAX_BENCH_SIZE,
    STARTERS_REQUIRED,
    Roster,
    validate_fixture,
    validate_roster,
)

__all__ = [
    "MAX_BENCH_SIZE",
    "Player",
    "PositionCategory",
    "Roster",
    "STARTERS_REQUIRED",
    "validate_fixture",
    "validate_roster",
]
