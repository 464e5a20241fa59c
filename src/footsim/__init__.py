"""footsim — deterministic, replayable football match simulation."""

from footsim.engine import (
    MatchConfig,
    MatchHandle,
    MatchResult,
    new_match,
    replay_events,
    run_to_completion,
)
from footsim.errors import (
    FootsimError,
    InvalidConfigError,
    InvalidRosterError,
    MatchFrozenError,
    MatchNotFinishedError,
)
from footsim.models import Player, PositionCategory, Roster

__version__ = "0.1.0"

__all__ = [
    "FootsimError",
    "InvalidConfigError",
    "InvalidRosterError",
    "MatchConfig",
    "MatchFrozenError",
    "MatchHandle",
    "MatchNotFinishedError",
    "MatchResult",
    "Player",
    "PositionCategory",
    "Roster",
    "new_match",
    "replay_events",
    "run_to_completion",
]
