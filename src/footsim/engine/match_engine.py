"""footsim Match Engine — the minute-by-minute state machine.

NOT_STARTED → FIRST_HALF → HALF_TIME → SECOND_HALF → (EXTRA_TIME) → FULL_TIME

Each step either performs one phase transition or plays one minute:
- advance the clock and decay fitness for everyone on the pitch
- ask the OutcomeResolver for this minute's headline incident
- apply it to MatchState and append it to the EventLog
- let the SubstitutionPolicy react to injuries, fatigue, and tactics

The clock is bounded by regulation time plus configured stoppage (and
extra time when enabled), so run() always terminates.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from footsim.engine.config import MatchConfig, coerce_config
from footsim.engine.event_log import EventLog
from footsim.engine.match_result import (
    EventKind,
    MatchEvent,
    MatchResult,
    PlayerMatchStats,
    Side,
    TeamMatchStats,
)
from footsim.engine.resolver import Outcome, OutcomeKind, OutcomeResolver
from footsim.engine.rng import MatchRNG
from footsim.engine.state import MatchPhase, MatchState
from footsim.engine.substitution import (
    Substitution,
    SubstitutionPolicy,
    SubstitutionTrigger,
    TeamView,
    get_policy,
)
from footsim.errors import InvalidConfigError, MatchNotFinishedError
from footsim.models.team import Roster, validate_fixture

logger = logging.getLogger(__name__)

SHOT_EXERTION = 0.01  # extra fitness cost for the player taking a shot
GOAL_MORALE_SWING = 0.03
RED_CARD_MORALE_HIT = 0.05


class MatchEngine:
    """Owns the state, log, and RNG of exactly one match."""

    def __init__(
        self,
        home: Roster,
        away: Roster,
        config: MatchConfig,
        seed: int,
        policy: SubstitutionPolicy | None = None,
    ):
        self.home = home
        self.away = away
        self.config = config
        self.seed = seed
        self.rng = MatchRNG(seed)
        self.state = MatchState(
            home, away,
            max_substitutions=config.max_substitutions,
            home_advantage_factor=config.home_advantage_factor,
        )
        self.log = EventLog()
        self.resolver = OutcomeResolver(config.calibration)
        self.policy = policy or get_policy(config.substitution_strategy)

        self.first_half_minutes = config.regulation_minutes // 2
        self.second_half_minutes = config.regulation_minutes - self.first_half_minutes
        self.minutes_simulated = 0

    @property
    def is_finished(self) -> bool:
        return self.state.is_finished

    # ── Driving ──────────────────────────────────────────────────────────

    def step(self) -> list[MatchEvent]:
        """Advance by one transition or one minute; returns the new events."""
        before = len(self.log)
        phase = self.state.phase

        if phase == MatchPhase.FULL_TIME:
            return []
        if phase == MatchPhase.NOT_STARTED:
            self._kick_off()
        elif phase == MatchPhase.HALF_TIME:
            self._start_second_half()
        elif self.state.clock >= self.state.period_end:
            self._end_period()
        else:
            self._play_minute()

        return list(self.log.events[before:])

    def run(self) -> MatchResult:
        """Step until full time and return the result."""
        while not self.is_finished:
            self.step()
        return self.result()

    def result(self) -> MatchResult:
        if not self.is_finished:
            raise MatchNotFinishedError(
                f"Match {self.home.team_id} v {self.away.team_id} is still in {self.state.phase.value}"
            )
        summary = self.state.summary()
        return MatchResult(
            home_team=self.home.team_id,
            away_team=self.away.team_id,
            home_goals=summary.home_goals,
            away_goals=summary.away_goals,
            seed=self.seed,
            events=self.log.events,
            player_stats=summary.player_stats,
            team_stats=summary.team_stats,
        )

    # ── Phase transitions ────────────────────────────────────────────────

    def _start_period(
        self, phase: MatchPhase, period: int, minutes: int, added: bool, possession: Side
    ) -> None:
        stoppage = 0
        if added:
            low, high = self.config.added_time_range
            stoppage = self.resolver.added_time(self.rng, low, high)
        self.state.set_phase(phase, period=period, period_end=self.state.clock + minutes + stoppage)
        self.state.set_possession(possession)
        logger.debug(
            f"{phase.value} starts at {self.state.clock}' "
            f"({minutes} + {stoppage} min, {possession.value} kicks off)"
        )

    def _kick_off(self) -> None:
        self.log.record(
            0, 1, EventKind.KICK_OFF,
            home_team=self.home.team_id,
            away_team=self.away.team_id,
            home_lineup=[p.player_id for p in self.home.starters],
            away_lineup=[p.player_id for p in self.away.starters],
        )
        self._start_period(MatchPhase.FIRST_HALF, 1, self.first_half_minutes, True, Side.HOME)

    def _start_second_half(self) -> None:
        self._start_period(MatchPhase.SECOND_HALF, 2, self.second_half_minutes, True, Side.AWAY)

    def _end_period(self) -> None:
        state = self.state
        home_goals, away_goals = state.score
        if state.phase == MatchPhase.FIRST_HALF:
            self.log.record(
                state.clock, state.period, EventKind.HALF_TIME,
                home_goals=home_goals, away_goals=away_goals,
            )
            state.set_phase(MatchPhase.HALF_TIME)
        elif (
            state.phase == MatchPhase.SECOND_HALF
            and self.config.extra_time
            and home_goals == away_goals
        ):
            self._start_period(MatchPhase.EXTRA_TIME, 3, self.config.extra_time_minutes, False, Side.HOME)
        else:
            self._full_time()

    def _full_time(self) -> None:
        state = self.state
        home_goals, away_goals = state.score
        self.log.record(
            state.clock, state.period, EventKind.FULL_TIME,
            home_goals=home_goals, away_goals=away_goals,
        )
        state.set_phase(MatchPhase.FULL_TIME)
        state.freeze()
        self.log.seal()
        logger.info(
            f"Match: {self.home.team_id} {home_goals} - {away_goals} {self.away.team_id} "
            f"({state.clock} min, {len(self.log)} events, seed={self.seed})"
        )

    # ── Minute loop ──────────────────────────────────────────────────────

    def _play_minute(self) -> None:
        self.state.advance_clock()
        self.minutes_simulated += 1
        self.state.apply_fatigue()
        outcome = self.resolver.resolve(self.state, self.rng)
        self._apply(outcome)
        self._check_substitutions()

    def _record(
        self,
        kind: EventKind,
        side: Side | None = None,
        player_id: str | None = None,
        **payload: Any,
    ) -> MatchEvent:
        return self.log.record(self.state.clock, self.state.period, kind, side, player_id, **payload)

    def _apply(self, outcome: Outcome) -> None:
        state = self.state
        kind = outcome.kind
        side = outcome.side
        pid = outcome.player_id

        if kind == OutcomeKind.NONE:
            return

        if kind == OutcomeKind.GOAL:
            state.record_goal(pid, outcome.assist_id)
            state.drain_fitness(pid, SHOT_EXERTION)
            state.adjust_morale(side, GOAL_MORALE_SWING)
            state.adjust_morale(side.opponent, -GOAL_MORALE_SWING)
            home_goals, away_goals = state.score
            self._record(
                EventKind.GOAL, side, pid,
                assist=outcome.assist_id, home_goals=home_goals, away_goals=away_goals,
            )
            state.set_possession(side.opponent)

        elif kind in (OutcomeKind.SHOT_ON_TARGET, OutcomeKind.SHOT_OFF_TARGET):
            on_target = kind == OutcomeKind.SHOT_ON_TARGET
            state.record_shot(pid, on_target=on_target)
            state.drain_fitness(pid, SHOT_EXERTION)
            self._record(EventKind(kind.value), side, pid)
            state.set_possession(side.opponent)

        elif kind == OutcomeKind.FOUL:
            state.record_foul(pid)
            self._record(EventKind.FOUL, side, pid)

        elif kind == OutcomeKind.YELLOW_CARD:
            state.record_foul(pid)
            yellows = state.book(pid)
            self._record(EventKind.YELLOW_CARD, side, pid, yellow_cards=yellows)

        elif kind == OutcomeKind.RED_CARD:
            state.record_foul(pid)
            if outcome.second_yellow:
                state.book(pid)
            state.send_off(pid)
            state.adjust_morale(side, -RED_CARD_MORALE_HIT)
            self._record(EventKind.RED_CARD, side, pid, second_yellow=outcome.second_yellow)

        elif kind == OutcomeKind.INJURY:
            state.injure(pid)
            self._record(EventKind.INJURY, side, pid)
            sub = self.policy.choose(self._view(side), SubstitutionTrigger.INJURY, self.rng, injured_id=pid)
            if sub is not None:
                self._substitute(side, sub)
            else:
                state.withdraw(pid)
                logger.debug(f"{state.clock}': {pid} injured, no replacement for {side.value}")

        elif kind == OutcomeKind.TURNOVER:
            state.record_turnover(side)
            self._record(EventKind.TURNOVER, side, won_by=side.opponent)
            state.set_possession(side.opponent)

    # ── Substitutions ────────────────────────────────────────────────────

    def _view(self, side: Side) -> TeamView:
        return TeamView.from_state(
            self.state, side, self.config.regulation_minutes, self.config.fatigue_floor
        )

    def _check_substitutions(self) -> None:
        """At most one fatigue or tactical change per side per minute."""
        for side in (Side.HOME, Side.AWAY):
            view = self._view(side)
            if not view.can_substitute:
                continue
            sub = self.policy.choose(view, SubstitutionTrigger.FATIGUE, self.rng)
            if sub is None:
                sub = self.policy.choose(view, SubstitutionTrigger.TACTICAL, self.rng)
            if sub is not None:
                self._substitute(side, sub)

    def _substitute(self, side: Side, sub: Substitution) -> None:
        self.state.substitute(side, sub.player_out, sub.player_in)
        self._record(
            EventKind.SUBSTITUTION, side, sub.player_in,
            player_out=sub.player_out, player_in=sub.player_in, reason=sub.trigger.value,
        )


class MatchHandle:
    """Caller-facing handle to one match; results readable after full time."""

    def __init__(self, engine: MatchEngine):
        self._engine = engine

    @property
    def engine(self) -> MatchEngine:
        return self._engine

    @property
    def is_finished(self) -> bool:
        return self._engine.is_finished

    @property
    def result(self) -> MatchResult:
        return self._engine.result()

    @property
    def final_score(self) -> tuple[int, int]:
        return self.result.score

    @property
    def events(self) -> tuple[MatchEvent, ...]:
        return self.result.events

    @property
    def player_stats(self) -> dict[str, PlayerMatchStats]:
        return self.result.player_stats

    @property
    def team_stats(self) -> dict[Side, TeamMatchStats]:
        return self.result.team_stats


def new_match(
    home: Roster,
    away: Roster,
    config: MatchConfig | Mapping[str, Any] | None = None,
    seed: int = 0,
    policy: SubstitutionPolicy | None = None,
) -> MatchHandle:
    """Validate inputs and set up a match ready to run.

    Raises:
        InvalidRosterError: a roster is not playable, or the two clash.
        InvalidConfigError: the config or seed is out of range.
    """
    validate_fixture(home, away)
    match_config = coerce_config(config)
    if isinstance(seed, bool) or not isinstance(seed, int) or seed < 0:
        raise InvalidConfigError(f"Seed must be a non-negative integer, got {seed!r}")
    engine = MatchEngine(home, away, match_config, seed, policy=policy)

    logger.info(
        f"New match: {home.display_name} v {away.display_name} "
        f"(seed={seed}, {match_config.regulation_minutes} min, "
        f"subs={match_config.max_substitutions}, policy={engine.policy.name})"
    )
    return MatchHandle(engine)


def run_to_completion(handle: MatchHandle) -> MatchResult:
    """Play the match to full time (a no-op if already finished)."""
    return handle.engine.run()
