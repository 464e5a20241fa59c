"""Match result dataclasses — structured output from every simulated match.

MatchEvent captures individual incidents (goals, shots, fouls, cards,
injuries, substitutions, turnovers, period markers). MatchResult is the
complete match output: score, the ordered event log, and statistics.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class Side(str, Enum):
    """Which team an event or state belongs to."""
    HOME = "home"
    AWAY = "away"

    @property
    def opponent(self) -> "Side":
        return Side.AWAY if self is Side.HOME else Side.HOME


class EventKind(str, Enum):
    """Types of match events."""
    KICK_OFF = "kick_off"
    GOAL = "goal"
    SHOT_ON_TARGET = "shot_on_target"
    SHOT_OFF_TARGET = "shot_off_target"
    FOUL = "foul"
    YELLOW_CARD = "yellow_card"
    RED_CARD = "red_card"
    INJURY = "injury"
    SUBSTITUTION = "substitution"
    TURNOVER = "turnover"
    HALF_TIME = "half_time"
    FULL_TIME = "full_time"


def _freeze(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    if isinstance(value, Enum):
        return value.value
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    return value


@dataclass(frozen=True)
class MatchEvent:
    """A single match incident. Immutable once created.

    `minute` is the elapsed match clock (it keeps counting through stoppage
    time and across halves); `sequence` is the event's index in the log and
    breaks ties within a minute.
    """
    sequence: int
    minute: int
    period: int
    kind: EventKind
    side: Side | None = None
    player_id: str | None = None
    details: tuple[tuple[str, Any], ...] = ()

    @classmethod
    def create(
        cls,
        sequence: int,
        minute: int,
        period: int,
        kind: EventKind,
        side: Side | None = None,
        player_id: str | None = None,
        **payload: Any,
    ) -> "MatchEvent":
        details = tuple((key, _freeze(value)) for key, value in payload.items())
        return cls(sequence, minute, period, kind, side, player_id, details)

    @property
    def payload(self) -> dict[str, Any]:
        """A fresh dict of the payload; mutating it does not touch the event."""
        return dict(self.details)

    def get(self, key: str, default: Any = None) -> Any:
        for k, v in self.details:
            if k == key:
                return v
        return default

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly form."""
        return {
            "sequence": self.sequence,
            "minute": self.minute,
            "period": self.period,
            "kind": self.kind.value,
            "side": self.side.value if self.side else None,
            "player_id": self.player_id,
            "payload": {k: _thaw(v) for k, v in self.details},
        }

    def __str__(self) -> str:
        who = self.player_id or (self.side.value if self.side else "match")
        return f"{self.minute}' {self.kind.value.upper()}: {who}"


@dataclass
class PlayerMatchStats:
    """Per-player output from a single match."""
    player_id: str
    side: Side
    goals: int = 0
    assists: int = 0
    shots: int = 0
    shots_on_target: int = 0
    fouls: int = 0
    yellow_cards: int = 0
    red_card: bool = False
    injured: bool = False
    subbed_on: bool = False
    subbed_off: bool = False
    minutes_played: int = 0


@dataclass
class TeamMatchStats:
    """Per-team aggregates from a single match."""
    side: Side
    team_id: str
    goals: int = 0
    shots: int = 0
    shots_on_target: int = 0
    fouls: int = 0
    yellow_cards: int = 0
    red_cards: int = 0
    injuries: int = 0
    substitutions: int = 0
    turnovers: int = 0


@dataclass
class MatchSummary:
    """Score and statistics, as derived from either live state or a log replay."""
    home_goals: int
    away_goals: int
    player_stats: dict[str, PlayerMatchStats] = field(default_factory=dict)
    team_stats: dict[Side, TeamMatchStats] = field(default_factory=dict)

    @property
    def score(self) -> tuple[int, int]:
        return self.home_goals, self.away_goals


@dataclass
class MatchResult:
    """Complete result of a simulated match."""
    home_team: str
    away_team: str
    home_goals: int
    away_goals: int
    seed: int

    # Events timeline (ordered by minute, then sequence)
    events: tuple[MatchEvent, ...] = ()

    player_stats: dict[str, PlayerMatchStats] = field(default_factory=dict)
    team_stats: dict[Side, TeamMatchStats] = field(default_factory=dict)

    @property
    def score(self) -> tuple[int, int]:
        return self.home_goals, self.away_goals

    @property
    def winner(self) -> str:
        """'home', 'away', or 'draw'."""
        if self.home_goals > self.away_goals:
            return "home"
        elif self.away_goals > self.home_goals:
            return "away"
        return "draw"

    @property
    def final_minute(self) -> int:
        return self.events[-1].minute if self.events else 0

    def scoreline(self) -> str:
        return f"{self.home_team} {self.home_goals} - {self.away_goals} {self.away_team}"

    def events_of(self, kind: EventKind) -> list[MatchEvent]:
        return [e for e in self.events if e.kind == kind]

    def goal_events(self) -> list[MatchEvent]:
        return self.events_of(EventKind.GOAL)

    def injury_events(self) -> list[MatchEvent]:
        return self.events_of(EventKind.INJURY)

    def summary(self) -> MatchSummary:
        return MatchSummary(
            home_goals=self.home_goals,
            away_goals=self.away_goals,
            player_stats=self.player_stats,
            team_stats=self.team_stats,
        )

    def to_dict(self) -> dict:
        """Serializable dict for export by a reporting layer."""
        return {
            "home_team": self.home_team,
            "away_team": self.away_team,
            "home_goals": self.home_goals,
            "away_goals": self.away_goals,
            "seed": self.seed,
            "winner": self.winner,
            "events": [e.to_dict() for e in self.events],
            "player_stats": {
                pid: {**asdict(s), "side": s.side.value}
                for pid, s in self.player_stats.items()
            },
            "team_stats": {
                side.value: {**asdict(s), "side": s.side.value}
                for side, s in self.team_stats.items()
            },
        }
