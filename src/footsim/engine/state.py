"""Mutable in-match state, owned exclusively by one MatchEngine.

Holds the clock, phase, score, possession, per-team line-ups and
per-player condition. Every mutator refuses to run once the match is
frozen at full time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from footsim.engine.match_result import MatchSummary, PlayerMatchStats, Side, TeamMatchStats
from footsim.errors import MatchFrozenError
from footsim.models.player import Player
from footsim.models.team import STARTERS_REQUIRED, Roster

BASE_FITNESS_DECAY = 0.005  # per minute at stamina 50
CARD_PENALTY = 0.1  # effective-rating loss per yellow card held
MORALE_MIN = 0.85
MORALE_MAX = 1.15


class MatchPhase(str, Enum):
    NOT_STARTED = "not_started"
    FIRST_HALF = "first_half"
    HALF_TIME = "half_time"
    SECOND_HALF = "second_half"
    EXTRA_TIME = "extra_time"
    FULL_TIME = "full_time"


@dataclass
class PlayerState:
    """Condition and running counters for one player in this match."""
    player: Player
    side: Side
    fitness: float = 1.0
    on_pitch: bool = False
    yellow_cards: int = 0
    sent_off: bool = False
    injured: bool = False
    subbed_on: bool = False
    subbed_off: bool = False
    entered_at: int | None = None
    left_at: int | None = None
    goals: int = 0
    assists: int = 0
    shots: int = 0
    shots_on_target: int = 0
    fouls: int = 0

    @property
    def player_id(self) -> str:
        return self.player.player_id

    @property
    def card_multiplier(self) -> float:
        return max(0.0, 1.0 - CARD_PENALTY * self.yellow_cards)

    @property
    def condition(self) -> float:
        """Fitness scaled by the card penalty; multiplies base ratings."""
        return self.fitness * self.card_multiplier

    @property
    def effective_attack(self) -> float:
        return self.player.attack_contribution * self.condition

    @property
    def effective_defense(self) -> float:
        return self.player.defense_contribution * self.condition

    def minutes_played(self, clock: int) -> int:
        if self.entered_at is None:
            return 0
        end = self.left_at if self.left_at is not None else clock
        return end - self.entered_at


@dataclass
class TeamState:
    """Line-up and team-level counters for one side."""
    side: Side
    roster: Roster
    on_pitch: list[str] = field(default_factory=list)
    bench: list[str] = field(default_factory=list)
    home_factor: float = 1.0
    morale: float = 1.0
    goals: int = 0
    subs_used: int = 0
    shots: int = 0
    shots_on_target: int = 0
    fouls: int = 0
    yellow_cards: int = 0
    red_cards: int = 0
    injuries: int = 0
    turnovers: int = 0

    @property
    def team_id(self) -> str:
        return self.roster.team_id


class MatchState:
    """The single mutable record of an in-progress match."""

    def __init__(
        self,
        home: Roster,
        away: Roster,
        max_substitutions: int,
        home_advantage_factor: float = 0.0,
    ):
        self.max_substitutions = max_substitutions
        self.clock = 0
        self.phase = MatchPhase.NOT_STARTED
        self.period = 0
        self.period_end = 0
        self.possession = Side.HOME
        self.frozen = False

        self.teams: dict[Side, TeamState] = {}
        self.players: dict[str, PlayerState] = {}
        for side, roster in ((Side.HOME, home), (Side.AWAY, away)):
            team = TeamState(
                side=side,
                roster=roster,
                on_pitch=[p.player_id for p in roster.starters],
                bench=[p.player_id for p in roster.bench],
                home_factor=1.0 + home_advantage_factor if side is Side.HOME else 1.0,
            )
            self.teams[side] = team
            for p in roster.starters:
                self.players[p.player_id] = PlayerState(player=p, side=side, on_pitch=True, entered_at=0)
            for p in roster.bench:
                self.players[p.player_id] = PlayerState(player=p, side=side)

    # ── Read-only views ──────────────────────────────────────────────────

    @property
    def score(self) -> tuple[int, int]:
        return self.teams[Side.HOME].goals, self.teams[Side.AWAY].goals

    @property
    def is_finished(self) -> bool:
        return self.phase == MatchPhase.FULL_TIME

    def goal_difference(self, side: Side) -> int:
        return self.teams[side].goals - self.teams[side.opponent].goals

    def on_pitch(self, side: Side) -> list[PlayerState]:
        return [self.players[pid] for pid in self.teams[side].on_pitch]

    def all_on_pitch(self) -> list[PlayerState]:
        return self.on_pitch(Side.HOME) + self.on_pitch(Side.AWAY)

    def bench(self, side: Side) -> list[PlayerState]:
        return [self.players[pid] for pid in self.teams[side].bench]

    def team_attack(self, side: Side) -> float:
        """Effective team attack.

        The sum of on-pitch contributions is divided by eleven, not by the
        players present, so a short-handed side is weaker.
        """
        team = self.teams[side]
        total = sum(ps.effective_attack for ps in self.on_pitch(side))
        return total / STARTERS_REQUIRED * team.morale * team.home_factor

    def team_defense(self, side: Side) -> float:
        team = self.teams[side]
        total = sum(ps.effective_defense for ps in self.on_pitch(side))
        return total / STARTERS_REQUIRED * team.morale * team.home_factor

    def average_fitness(self) -> float:
        players = self.all_on_pitch()
        if not players:
            return 1.0
        return sum(ps.fitness for ps in players) / len(players)

    # ── Mutators ─────────────────────────────────────────────────────────

    def _check_mutable(self) -> None:
        if self.frozen:
            raise MatchFrozenError("Match state is frozen after full time")

    def advance_clock(self) -> int:
        self._check_mutable()
        self.clock += 1
        return self.clock

    def set_phase(self, phase: MatchPhase, period: int | None = None, period_end: int | None = None) -> None:
        self._check_mutable()
        self.phase = phase
        if period is not None:
            self.period = period
        if period_end is not None:
            self.period_end = period_end

    def set_possession(self, side: Side) -> None:
        self._check_mutable()
        self.possession = side

    def apply_fatigue(self) -> None:
        """Decay fitness of every on-pitch player by one minute's effort."""
        self._check_mutable()
        for ps in self.all_on_pitch():
            decay = BASE_FITNESS_DECAY * ps.player.fitness_decay_multiplier
            ps.fitness = max(0.0, min(1.0, ps.fitness - decay))

    def drain_fitness(self, player_id: str, amount: float) -> None:
        self._check_mutable()
        ps = self.players[player_id]
        ps.fitness = max(0.0, min(1.0, ps.fitness - max(0.0, amount)))

    def adjust_morale(self, side: Side, delta: float) -> None:
        self._check_mutable()
        team = self.teams[side]
        team.morale = max(MORALE_MIN, min(MORALE_MAX, team.morale + delta))

    def record_shot(self, player_id: str, on_target: bool) -> None:
        self._check_mutable()
        ps = self.players[player_id]
        team = self.teams[ps.side]
        ps.shots += 1
        team.shots += 1
        if on_target:
            ps.shots_on_target += 1
            team.shots_on_target += 1

    def record_goal(self, scorer_id: str, assist_id: str | None = None) -> None:
        self._check_mutable()
        self.record_shot(scorer_id, on_target=True)
        ps = self.players[scorer_id]
        ps.goals += 1
        self.teams[ps.side].goals += 1
        if assist_id is not None:
            self.players[assist_id].assists += 1

    def record_foul(self, player_id: str) -> None:
        self._check_mutable()
        ps = self.players[player_id]
        ps.fouls += 1
        self.teams[ps.side].fouls += 1

    def book(self, player_id: str) -> int:
        """Show a yellow card; returns the player's yellow count."""
        self._check_mutable()
        ps = self.players[player_id]
        ps.yellow_cards += 1
        self.teams[ps.side].yellow_cards += 1
        return ps.yellow_cards

    def send_off(self, player_id: str) -> None:
        """Red card: the player leaves and is never replaced."""
        self._check_mutable()
        ps = self.players[player_id]
        ps.sent_off = True
        self.teams[ps.side].red_cards += 1
        self._leave_pitch(ps)

    def injure(self, player_id: str) -> None:
        """Mark a player injured; the engine then substitutes or withdraws them."""
        self._check_mutable()
        ps = self.players[player_id]
        ps.injured = True
        self.teams[ps.side].injuries += 1

    def withdraw(self, player_id: str) -> None:
        """Take a player off without a replacement."""
        self._check_mutable()
        self._leave_pitch(self.players[player_id])

    def record_turnover(self, side: Side) -> None:
        self._check_mutable()
        self.teams[side].turnovers += 1

    def substitute(self, side: Side, player_out: str, player_in: str) -> None:
        self._check_mutable()
        team = self.teams[side]
        if team.subs_used >= self.max_substitutions:
            raise ValueError(f"{team.team_id} has no substitutions left")
        if player_out not in team.on_pitch:
            raise ValueError(f"{player_out} is not on the pitch for {team.team_id}")
        if player_in not in team.bench:
            raise ValueError(f"{player_in} is not on the bench for {team.team_id}")

        outgoing = self.players[player_out]
        incoming = self.players[player_in]
        slot = team.on_pitch.index(player_out)
        team.on_pitch[slot] = player_in
        team.bench.remove(player_in)
        team.subs_used += 1

        outgoing.on_pitch = False
        outgoing.subbed_off = True
        outgoing.left_at = self.clock
        incoming.on_pitch = True
        incoming.subbed_on = True
        incoming.entered_at = self.clock

    def _leave_pitch(self, ps: PlayerState) -> None:
        team = self.teams[ps.side]
        if ps.player_id in team.on_pitch:
            team.on_pitch.remove(ps.player_id)
        ps.on_pitch = False
        ps.left_at = self.clock

    def freeze(self) -> None:
        self.frozen = True

    # ── Results ──────────────────────────────────────────────────────────

    def summary(self) -> MatchSummary:
        """Score and statistics straight from the live counters."""
        player_stats: dict[str, PlayerMatchStats] = {}
        for pid, ps in self.players.items():
            if ps.entered_at is None:
                continue
            player_stats[pid] = PlayerMatchStats(
                player_id=pid,
                side=ps.side,
                goals=ps.goals,
                assists=ps.assists,
                shots=ps.shots,
                shots_on_target=ps.shots_on_target,
                fouls=ps.fouls,
                yellow_cards=ps.yellow_cards,
                red_card=ps.sent_off,
                injured=ps.injured,
                subbed_on=ps.subbed_on,
                subbed_off=ps.subbed_off,
                minutes_played=ps.minutes_played(self.clock),
            )

        team_stats = {
            side: TeamMatchStats(
                side=side,
                team_id=team.team_id,
                goals=team.goals,
                shots=team.shots,
                shots_on_target=team.shots_on_target,
                fouls=team.fouls,
                yellow_cards=team.yellow_cards,
                red_cards=team.red_cards,
                injuries=team.injuries,
                substitutions=team.subs_used,
                turnovers=team.turnovers,
            )
            for side, team in self.teams.items()
        }
        home_goals, away_goals = self.score
        return MatchSummary(home_goals, away_goals, player_stats, team_stats)
