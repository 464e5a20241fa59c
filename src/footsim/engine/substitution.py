"""Substitution policies — who comes off, who comes on.

The engine asks a policy for a decision whenever a trigger fires:
- INJURY: a player just got hurt and must be replaced if possible
- FATIGUE: someone on the pitch dropped below the fitness floor
- TACTICAL: checked every minute; the policy decides whether to act

Policies see a read-only TeamView and return a Substitution or None.
The bundled set is closed: default, aggressive, conservative.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from footsim.engine.config import SubstitutionStrategy
from footsim.engine.match_result import Side
from footsim.engine.rng import MatchRNG
from footsim.engine.state import MatchState
from footsim.models.player import Player, PositionCategory

logger = logging.getLogger(__name__)


class SubstitutionTrigger(str, Enum):
    INJURY = "injury"
    FATIGUE = "fatigue"
    TACTICAL = "tactical"


@dataclass(frozen=True)
class Substitution:
    player_out: str
    player_in: str
    trigger: SubstitutionTrigger


@dataclass(frozen=True)
class OnPitchPlayer:
    player: Player
    fitness: float
    yellow_cards: int = 0
    injured: bool = False


@dataclass(frozen=True)
class TeamView:
    """Snapshot of one side handed to a policy; holds no live references."""
    side: Side
    minute: int
    regulation_minutes: int
    fatigue_floor: float
    on_pitch: tuple[OnPitchPlayer, ...]
    bench: tuple[Player, ...]
    subs_used: int
    max_substitutions: int
    goal_difference: int

    @classmethod
    def from_state(
        cls, state: MatchState, side: Side, regulation_minutes: int, fatigue_floor: float
    ) -> "TeamView":
        team = state.teams[side]
        return cls(
            side=side,
            minute=state.clock,
            regulation_minutes=regulation_minutes,
            fatigue_floor=fatigue_floor,
            on_pitch=tuple(
                OnPitchPlayer(ps.player, ps.fitness, ps.yellow_cards, ps.injured)
                for ps in state.on_pitch(side)
            ),
            bench=tuple(ps.player for ps in state.bench(side)),
            subs_used=team.subs_used,
            max_substitutions=state.max_substitutions,
            goal_difference=state.goal_difference(side),
        )

    @property
    def can_substitute(self) -> bool:
        return bool(self.bench) and self.subs_used < self.max_substitutions

    @property
    def is_trailing(self) -> bool:
        return self.goal_difference < 0

    def find(self, player_id: str) -> OnPitchPlayer | None:
        for op in self.on_pitch:
            if op.player.player_id == player_id:
                return op
        return None


class SubstitutionPolicy(ABC):
    """Base policy: shared decision flow, strategy-specific hooks."""

    name = "base"

    def choose(
        self,
        team: TeamView,
        trigger: SubstitutionTrigger,
        rng: MatchRNG,
        injured_id: str | None = None,
    ) -> Substitution | None:
        """Return a substitution for `trigger`, or None to play on."""
        if not team.can_substitute:
            return None

        if trigger == SubstitutionTrigger.INJURY:
            outgoing = team.find(injured_id) if injured_id else None
        elif trigger == SubstitutionTrigger.FATIGUE:
            outgoing = self.fatigue_target(team)
        else:
            if not self.wants_tactical_change(team, rng):
                return None
            outgoing = self.tactical_target(team)

        if outgoing is None:
            return None
        incoming = self.pick_replacement(team, outgoing)
        if incoming is None:
            return None

        logger.debug(
            f"{self.name} policy ({team.side.value}, {team.minute}'): "
            f"{outgoing.player.player_id} -> {incoming.player_id} [{trigger.value}]"
        )
        return Substitution(outgoing.player.player_id, incoming.player_id, trigger)

    # ── Hooks ────────────────────────────────────────────────────────────

    def fatigue_threshold(self, team: TeamView) -> float:
        return team.fatigue_floor

    def fatigue_target(self, team: TeamView) -> OnPitchPlayer | None:
        """Lowest-fitness player under the fatigue threshold."""
        threshold = self.fatigue_threshold(team)
        tired = [op for op in team.on_pitch if op.fitness < threshold]
        if not tired:
            return None
        return min(tired, key=lambda op: op.fitness)

    @abstractmethod
    def wants_tactical_change(self, team: TeamView, rng: MatchRNG) -> bool:
        ...

    def tactical_target(self, team: TeamView) -> OnPitchPlayer | None:
        """Lowest-fitness outfield player."""
        outfield = [op for op in team.on_pitch if not op.player.is_goalkeeper]
        if not outfield:
            return None
        return min(outfield, key=lambda op: op.fitness)

    def pick_replacement(self, team: TeamView, outgoing: OnPitchPlayer) -> Player | None:
        """Best bench player in the same position category, else best available."""
        if not team.bench:
            return None
        same = [p for p in team.bench if p.position == outgoing.player.position]
        pool = same or list(team.bench)
        return max(pool, key=lambda p: p.overall)


class DefaultPolicy(SubstitutionPolicy):
    """Forced changes plus an occasional fresh-legs swap in the last third."""

    name = SubstitutionStrategy.DEFAULT.value
    tactical_window = 2 / 3  # fraction of regulation time
    tactical_rate = 0.03

    def wants_tactical_change(self, team: TeamView, rng: MatchRNG) -> bool:
        if team.minute < team.regulation_minutes * self.tactical_window:
            return False
        return rng.chance(self.tactical_rate)


class AggressivePolicy(DefaultPolicy):
    """Changes earlier and more often; throws on attackers when trailing."""

    name = SubstitutionStrategy.AGGRESSIVE.value
    tactical_window = 0.55
    tactical_rate = 0.06

    def wants_tactical_change(self, team: TeamView, rng: MatchRNG) -> bool:
        if team.minute < team.regulation_minutes * self.tactical_window:
            return False
        rate = self.tactical_rate * (2.0 if team.is_trailing else 1.0)
        return rng.chance(rate)

    def tactical_target(self, team: TeamView) -> OnPitchPlayer | None:
        if team.is_trailing:
            defensive = [
                op for op in team.on_pitch
                if op.player.position in (PositionCategory.DEFENDER, PositionCategory.MIDFIELDER)
            ]
            if defensive:
                return min(defensive, key=lambda op: (op.player.attack, op.fitness))
        return super().tactical_target(team)

    def pick_replacement(self, team: TeamView, outgoing: OnPitchPlayer) -> Player | None:
        if team.is_trailing and not outgoing.player.is_goalkeeper:
            outfield = [p for p in team.bench if not p.is_goalkeeper]
            if outfield:
                return max(outfield, key=lambda p: p.attack)
        return super().pick_replacement(team, outgoing)


class ConservativePolicy(SubstitutionPolicy):
    """Only forced changes; tolerates more fatigue before acting."""

    name = SubstitutionStrategy.CONSERVATIVE.value
    fatigue_margin = 0.1

    def fatigue_threshold(self, team: TeamView) -> float:
        return max(0.0, team.fatigue_floor - self.fatigue_margin)

    def wants_tactical_change(self, team: TeamView, rng: MatchRNG) -> bool:
        return False


POLICIES: dict[SubstitutionStrategy, type[SubstitutionPolicy]] = {
    SubstitutionStrategy.DEFAULT: DefaultPolicy,
    SubstitutionStrategy.AGGRESSIVE: AggressivePolicy,
    SubstitutionStrategy.CONSERVATIVE: ConservativePolicy,
}


def get_policy(strategy: SubstitutionStrategy | str) -> SubstitutionPolicy:
    """Instantiate a bundled policy by strategy name."""
    return POLICIES[SubstitutionStrategy(strategy)]()
