"""Exception taxonomy for footsim.

Construction-time problems (bad rosters, bad configuration) fail fast with a
ValueError subclass. Misusing a match handle (mutating a finished match,
reading results before the final whistle) raises a RuntimeError subclass.
"""

from __future__ import annotations


class FootsimError(Exception):
    """Base class for every footsim error."""


class InvalidRosterError(FootsimError, ValueError):
    """Roster does not have exactly eleven starters, or player ids clash."""


class InvalidConfigError(FootsimError, ValueError):
    """Match configuration or seed is out of range or unrecognized."""


class MatchFrozenError(FootsimError, RuntimeError):
    """Raised when something tries to mutate a match after full time."""


class MatchNotFinishedError(FootsimError, RuntimeError):
    """Raised when results are read from a match that has not reached full time."""
