"""Roster model and construction-time validation."""

from __future__ import annotations

from collections import Counter

from pydantic import BaseModel, ConfigDict, Field

from footsim.errors import InvalidRosterError
from footsim.models.player import Player

STARTERS_REQUIRED = 11
MAX_BENCH_SIZE = 12


class Roster(BaseModel):
    """A team sheet: eleven ordered starters plus an ordered bench.

    Frozen and shared by reference; the engine copies ids into its own
    match state and never mutates the roster.
    """

    model_config = ConfigDict(frozen=True)

    team_id: str = Field(min_length=1)
    name: str = Field(default="")
    starters: tuple[Player, ...] = Field(default=())
    bench: tuple[Player, ...] = Field(default=())

    @property
    def display_name(self) -> str:
        return self.name or self.team_id

    @property
    def players(self) -> tuple[Player, ...]:
        """Starters followed by bench, in roster order."""
        return self.starters + self.bench

    @property
    def squad_size(self) -> int:
        return len(self.starters) + len(self.bench)

    def player(self, player_id: str) -> Player | None:
        for p in self.players:
            if p.player_id == player_id:
                return p
        return None


def validate_roster(roster: Roster) -> None:
    """Raise InvalidRosterError unless the roster is playable.

    Checks: exactly eleven starters, bench within MAX_BENCH_SIZE, no
    player id listed twice.
    """
    if len(roster.starters) != STARTERS_REQUIRED:
        raise InvalidRosterError(
            f"Roster {roster.team_id!r} has {len(roster.starters)} starters, "
            f"expected exactly {STARTERS_REQUIRED}"
        )
    if len(roster.bench) > MAX_BENCH_SIZE:
        raise InvalidRosterError(
            f"Roster {roster.team_id!r} has {len(roster.bench)} bench players, "
            f"maximum is {MAX_BENCH_SIZE}"
        )
    counts = Counter(p.player_id for p in roster.players)
    duplicates = sorted(pid for pid, n in counts.items() if n > 1)
    if duplicates:
        raise InvalidRosterError(
            f"Roster {roster.team_id!r} lists duplicate player ids: {', '.join(duplicates)}"
        )


def validate_fixture(home: Roster, away: Roster) -> None:
    """Validate both rosters and make sure they can share one event log."""
    validate_roster(home)
    validate_roster(away)
    if home.team_id == away.team_id:
        raise InvalidRosterError(f"Both rosters use team id {home.team_id!r}")
    shared = sorted(
        {p.player_id for p in home.players} & {p.player_id for p in away.players}
    )
    if shared:
        raise InvalidRosterError(
            f"Player ids appear in both rosters: {', '.join(shared)}"
        )
