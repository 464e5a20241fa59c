"""Outcome resolver — decides what happens in one minute of play.

Given a read-only view of MatchState and the match RNG, the resolver rolls
every candidate incident in a fixed order:

1. Chance for the side in possession (shot → goal / on target / off target)
2. Foul by the defending side (with a card roll)
3. Injury to any player on the pitch
4. Turnover of possession

It then returns only the highest-priority candidate:
red card > goal > shot > foul/yellow > injury > turnover > nothing.

The resolver never mutates state; applying the outcome is the engine's job.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from footsim.engine.config import Calibration
from footsim.engine.match_result import Side
from footsim.engine.rng import MatchRNG
from footsim.engine.state import MatchState, PlayerState
from footsim.models.player import RATING_MAX

MAX_EVENT_PROBABILITY = 0.95
MIN_SELECTION_WEIGHT = 0.01


class OutcomeKind(str, Enum):
    NONE = "none"
    TURNOVER = "turnover"
    INJURY = "injury"
    FOUL = "foul"
    YELLOW_CARD = "yellow_card"
    RED_CARD = "red_card"
    SHOT_OFF_TARGET = "shot_off_target"
    SHOT_ON_TARGET = "shot_on_target"
    GOAL = "goal"


OUTCOME_PRIORITY: dict[OutcomeKind, int] = {
    OutcomeKind.RED_CARD: 6,
    OutcomeKind.GOAL: 5,
    OutcomeKind.SHOT_ON_TARGET: 4,
    OutcomeKind.SHOT_OFF_TARGET: 4,
    OutcomeKind.YELLOW_CARD: 3,
    OutcomeKind.FOUL: 3,
    OutcomeKind.INJURY: 2,
    OutcomeKind.TURNOVER: 1,
    OutcomeKind.NONE: 0,
}


@dataclass(frozen=True)
class Outcome:
    """The single headline incident chosen for a minute."""
    kind: OutcomeKind
    side: Side | None = None
    player_id: str | None = None
    assist_id: str | None = None
    second_yellow: bool = False

    @property
    def priority(self) -> int:
        return OUTCOME_PRIORITY[self.kind]


NO_OUTCOME = Outcome(OutcomeKind.NONE)


@dataclass(frozen=True)
class MinuteProbabilities:
    """Per-minute candidate probabilities for the current possession."""
    attack_share: float
    shot: float
    goal: float
    foul: float
    injury: float
    turnover: float

    @property
    def conversion(self) -> float:
        """Probability a shot becomes a goal, so that P(goal) == shot * conversion."""
        if self.shot <= 0:
            return 0.0
        return min(1.0, self.goal / self.shot)


def discipline_factor(discipline: float) -> float:
    """1.0 at discipline 50, ~1.8 at 1, ~0.17 at 100."""
    return (RATING_MAX + 10 - discipline) / 60.0


def _clamp(p: float, ceiling: float = MAX_EVENT_PROBABILITY) -> float:
    return max(0.0, min(ceiling, p))


class OutcomeResolver:
    """Samples one outcome per minute from calibrated base rates."""

    def __init__(self, calibration: Calibration | None = None):
        self.calibration = calibration or Calibration()

    # ── Probability model ────────────────────────────────────────────────

    def attack_share(self, state: MatchState, attacking: Side) -> float:
        """attack / (attack + defense) for the side in possession."""
        attack = state.team_attack(attacking)
        defense = state.team_defense(attacking.opponent)
        if attack + defense <= 0:
            return 0.5
        return attack / (attack + defense)

    def probabilities(self, state: MatchState) -> MinuteProbabilities:
        cal = self.calibration
        attacking = state.possession
        defenders = state.on_pitch(attacking.opponent)
        share = self.attack_share(state, attacking)

        shot = _clamp(cal.base_shot * 2.0 * share)
        goal = _clamp(cal.base_goal * 2.0 * share, ceiling=min(cal.goal_ceiling, shot))

        if defenders:
            avg_discipline = sum(ps.player.discipline for ps in defenders) / len(defenders)
            foul = cal.base_foul * discipline_factor(avg_discipline) * len(defenders) / 11.0
        else:
            foul = 0.0

        on_pitch = state.all_on_pitch()
        if on_pitch:
            avg_fitness = sum(ps.fitness for ps in on_pitch) / len(on_pitch)
            avg_decay = sum(ps.player.fitness_decay_multiplier for ps in on_pitch) / len(on_pitch)
            injury = cal.base_injury * (1.0 + 2.0 * (1.0 - avg_fitness)) * avg_decay
        else:
            injury = 0.0

        turnover = cal.base_turnover * 2.0 * (1.0 - share)

        return MinuteProbabilities(
            attack_share=share,
            shot=shot,
            goal=goal,
            foul=_clamp(foul),
            injury=_clamp(injury),
            turnover=_clamp(turnover),
        )

    # ── Sampling ─────────────────────────────────────────────────────────

    def resolve(self, state: MatchState, rng: MatchRNG) -> Outcome:
        """Roll every candidate for this minute and return the top priority one."""
        probs = self.probabilities(state)
        attacking = state.possession
        defending = attacking.opponent
        candidates: list[Outcome] = []

        if rng.chance(probs.shot):
            candidates.append(self._resolve_chance(state, attacking, probs, rng))

        if rng.chance(probs.foul):
            candidates.append(self._resolve_foul(state, defending, rng))

        if rng.chance(probs.injury):
            candidates.append(self._resolve_injury(state, rng))

        if rng.chance(probs.turnover):
            candidates.append(Outcome(OutcomeKind.TURNOVER, side=attacking))

        return max(candidates, key=lambda o: o.priority, default=NO_OUTCOME)

    def added_time(self, rng: MatchRNG, low: int, high: int) -> int:
        """Stoppage minutes for a period."""
        if high <= low:
            return low
        return rng.randint(low, high)

    def _resolve_chance(
        self, state: MatchState, side: Side, probs: MinuteProbabilities, rng: MatchRNG
    ) -> Outcome:
        shooters = state.on_pitch(side)
        if not shooters:
            return NO_OUTCOME
        shooter = self._pick(shooters, [ps.effective_attack for ps in shooters], rng)

        if rng.chance(probs.conversion):
            return Outcome(
                OutcomeKind.GOAL,
                side=side,
                player_id=shooter.player_id,
                assist_id=self._pick_assist(shooters, shooter, rng),
            )
        if rng.chance(self.calibration.on_target_rate):
            return Outcome(OutcomeKind.SHOT_ON_TARGET, side=side, player_id=shooter.player_id)
        return Outcome(OutcomeKind.SHOT_OFF_TARGET, side=side, player_id=shooter.player_id)

    def _pick_assist(
        self, teammates: list[PlayerState], scorer: PlayerState, rng: MatchRNG
    ) -> str | None:
        others = [ps for ps in teammates if ps.player_id != scorer.player_id]
        if not others or not rng.chance(self.calibration.assist_rate):
            return None
        return self._pick(others, [ps.effective_attack for ps in others], rng).player_id

    def _resolve_foul(self, state: MatchState, side: Side, rng: MatchRNG) -> Outcome:
        defenders = state.on_pitch(side)
        if not defenders:
            return NO_OUTCOME
        fouler = self._pick(defenders, [ps.player.foul_propensity for ps in defenders], rng)

        factor = discipline_factor(fouler.player.discipline)
        p_red = self.calibration.base_red * factor
        p_yellow = self.calibration.base_yellow * factor
        roll = rng.next_uniform()
        if roll < p_red:
            return Outcome(OutcomeKind.RED_CARD, side=side, player_id=fouler.player_id)
        if roll < p_red + p_yellow:
            if fouler.yellow_cards >= 1:
                return Outcome(
                    OutcomeKind.RED_CARD, side=side, player_id=fouler.player_id, second_yellow=True
                )
            return Outcome(OutcomeKind.YELLOW_CARD, side=side, player_id=fouler.player_id)
        return Outcome(OutcomeKind.FOUL, side=side, player_id=fouler.player_id)

    def _resolve_injury(self, state: MatchState, rng: MatchRNG) -> Outcome:
        players = state.all_on_pitch()
        if not players:
            return NO_OUTCOME
        weights = [(1.2 - ps.fitness) * ps.player.fitness_decay_multiplier for ps in players]
        victim = self._pick(players, weights, rng)
        return Outcome(OutcomeKind.INJURY, side=victim.side, player_id=victim.player_id)

    @staticmethod
    def _pick(players: list[PlayerState], weights: list[float], rng: MatchRNG) -> PlayerState:
        return rng.choose_weighted(players, [max(MIN_SELECTION_WEIGHT, w) for w in weights])
