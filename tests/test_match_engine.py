"""Tests for the match engine — lifecycle, determinism, invariants, and balance."""

from __future__ import annotations

import json
import statistics

import pytest

from footsim.engine.config import Calibration, MatchConfig
from footsim.engine.match_engine import new_match, run_to_completion
from footsim.engine.match_result import EventKind, Side
from footsim.engine.state import MatchPhase
from footsim.engine.substitution import ConservativePolicy, DefaultPolicy
from footsim.errors import (
    InvalidConfigError,
    InvalidRosterError,
    MatchFrozenError,
    MatchNotFinishedError,
)
from footsim.models.player import Player, PositionCategory
from footsim.models.team import STARTERS_REQUIRED, Roster

LINEUP = (
    [PositionCategory.GOALKEEPER]
    + [PositionCategory.DEFENDER] * 4
    + [PositionCategory.MIDFIELDER] * 4
    + [PositionCategory.FORWARD] * 2
)
BENCH = [
    PositionCategory.GOALKEEPER,
    PositionCategory.DEFENDER,
    PositionCategory.MIDFIELDER,
    PositionCategory.MIDFIELDER,
    PositionCategory.FORWARD,
]

QUIET = Calibration(
    base_shot=0.0, base_goal=0.0, base_foul=0.0, base_yellow=0.0, base_red=0.0,
    base_injury=0.0, base_turnover=0.0,
)


def _make_roster(
    code: str,
    level: int = 60,
    stamina: int = 50,
    discipline: int = 50,
    bench: int = len(BENCH),
) -> Roster:
    return Roster(
        team_id=code,
        name=f"{code} FC",
        starters=[
            Player(
                player_id=f"{code}-{i}", position=pos, attack=level, defense=level,
                stamina=stamina, discipline=discipline,
            )
            for i, pos in enumerate(LINEUP)
        ],
        bench=[
            Player(
                player_id=f"{code}-B{i}", position=pos, attack=level, defense=level,
                stamina=stamina, discipline=discipline,
            )
            for i, pos in enumerate(BENCH[:bench])
        ],
    )


def _play(seed: int = 0, config=None, home: Roster | None = None, away: Roster | None = None, policy=None):
    handle = new_match(home or _make_roster("HOM"), away or _make_roster("AWY"),
                       config=config, seed=seed, policy=policy)
    return run_to_completion(handle)


# ═══════════════════════════════════════════════════════════════════════
# Lifecycle
# ═══════════════════════════════════════════════════════════════════════

class TestLifecycle:
    def test_runs_to_full_time(self):
        handle = new_match(_make_roster("HOM"), _make_roster("AWY"), seed=1)
        assert not handle.is_finished
        result = run_to_completion(handle)
        assert handle.is_finished
        assert handle.final_score == result.score
        assert result.home_team == "HOM"
        assert result.away_team == "AWY"
        assert result.seed == 1

    def test_result_before_full_time_raises(self):
        handle = new_match(_make_roster("HOM"), _make_roster("AWY"), seed=1)
        with pytest.raises(MatchNotFinishedError):
            handle.result
        handle.engine.step()
        with pytest.raises(MatchNotFinishedError):
            handle.engine.result()

    def test_run_to_completion_is_idempotent(self):
        handle = new_match(_make_roster("HOM"), _make_roster("AWY"), seed=3)
        first = run_to_completion(handle)
        second = run_to_completion(handle)
        assert first.to_dict() == second.to_dict()

    def test_event_frame(self):
        result = _play(seed=5)
        kinds = [e.kind for e in result.events]
        assert kinds[0] == EventKind.KICK_OFF
        assert kinds[-1] == EventKind.FULL_TIME
        assert kinds.count(EventKind.HALF_TIME) == 1
        assert kinds.count(EventKind.FULL_TIME) == 1

    def test_half_time_between_periods(self):
        result = _play(seed=6)
        half_time = result.events_of(EventKind.HALF_TIME)[0]
        assert half_time.period == 1
        assert all(e.period == 1 for e in result.events[:half_time.sequence])
        assert all(e.period == 2 for e in result.events[half_time.sequence + 1:])

    def test_kick_off_lists_lineups(self):
        result = _play(seed=2)
        kick_off = result.events[0]
        assert kick_off.get("home_team") == "HOM"
        assert list(kick_off.get("home_lineup")) == [f"HOM-{i}" for i in range(11)]
        assert list(kick_off.get("away_lineup")) == [f"AWY-{i}" for i in range(11)]

    def test_frozen_after_full_time(self):
        handle = new_match(_make_roster("HOM"), _make_roster("AWY"), seed=4)
        run_to_completion(handle)
        engine = handle.engine
        assert engine.step() == []
        with pytest.raises(MatchFrozenError):
            engine.state.advance_clock()
        with pytest.raises(MatchFrozenError):
            engine.log.record(999, 2, EventKind.FOUL)

    def test_step_returns_new_events(self):
        handle = new_match(_make_roster("HOM"), _make_roster("AWY"), seed=8)
        engine = handle.engine
        collected = []
        while not engine.is_finished:
            collected.extend(engine.step())
        assert tuple(collected) == engine.log.events

    def test_quiet_match_is_goalless(self):
        result = _play(seed=0, config={"calibration": QUIET.model_dump(), "added_time_range": (0, 0),
                                       "max_substitutions": 0})
        assert result.score == (0, 0)
        assert result.winner == "draw"
        assert [e.kind for e in result.events] == [
            EventKind.KICK_OFF, EventKind.HALF_TIME, EventKind.FULL_TIME,
        ]
        assert result.final_minute == 90

    def test_odd_regulation_length(self):
        result = _play(seed=0, config={"regulation_minutes": 45, "added_time_range": (0, 0),
                                       "calibration": QUIET.model_dump(), "max_substitutions": 0})
        half_time = result.events_of(EventKind.HALF_TIME)[0]
        assert half_time.minute == 22
        assert result.final_minute == 45


# ═══════════════════════════════════════════════════════════════════════
# Validation
# ═══════════════════════════════════════════════════════════════════════

class TestValidation:
    def test_short_roster_rejected(self):
        short = Roster(team_id="SHT", starters=_make_roster("SHT").starters[:10])
        with pytest.raises(InvalidRosterError):
            new_match(short, _make_roster("AWY"))

    def test_clashing_rosters_rejected(self):
        with pytest.raises(InvalidRosterError):
            new_match(_make_roster("HOM"), _make_roster("HOM"))

    def test_bad_config_rejected(self):
        with pytest.raises(InvalidConfigError):
            new_match(_make_roster("HOM"), _make_roster("AWY"), config={"max_substitutions": -1})

    @pytest.mark.parametrize("seed", [-1, 2.5, "7", True])
    def test_bad_seed_rejected(self, seed):
        with pytest.raises(InvalidConfigError):
            new_match(_make_roster("HOM"), _make_roster("AWY"), seed=seed)


# ═══════════════════════════════════════════════════════════════════════
# Determinism and invariants
# ═══════════════════════════════════════════════════════════════════════

class TestDeterminism:
    def test_same_seed_identical(self):
        a = _play(seed=2024)
        b = _play(seed=2024)
        assert json.dumps(a.to_dict(), sort_keys=True) == json.dumps(b.to_dict(), sort_keys=True)

    def test_different_seeds_differ(self):
        logs = {json.dumps([e.to_dict() for e in _play(seed=s).events]) for s in range(5)}
        assert len(logs) > 1

    def test_rosters_not_mutated(self):
        home = _make_roster("HOM")
        before = home.model_dump()
        _play(seed=9, home=home)
        assert home.model_dump() == before


class TestInvariants:
    @pytest.mark.parametrize("seed", range(10))
    def test_event_order_monotonic(self, seed):
        result = _play(seed=seed, home=_make_roster("HOM", discipline=10))
        minutes = [e.minute for e in result.events]
        assert minutes == sorted(minutes)
        assert [e.sequence for e in result.events] == list(range(len(result.events)))

    @pytest.mark.parametrize("seed", range(10))
    def test_score_never_decreases(self, seed):
        result = _play(seed=seed)
        running = (0, 0)
        for goal in result.goal_events():
            score = (goal.get("home_goals"), goal.get("away_goals"))
            assert score >= running
            assert sum(score) == sum(running) + 1
            running = score
        assert running == result.score

    @pytest.mark.parametrize("seed", range(10))
    def test_per_minute_invariants(self, seed):
        handle = new_match(
            _make_roster("HOM", discipline=5, stamina=10),
            _make_roster("AWY", discipline=5, stamina=10),
            seed=seed,
        )
        engine = handle.engine
        state = engine.state
        counts = {side: len(state.teams[side].on_pitch) for side in (Side.HOME, Side.AWAY)}
        while not engine.is_finished:
            engine.step()
            for side in (Side.HOME, Side.AWAY):
                team = state.teams[side]
                assert len(team.on_pitch) <= STARTERS_REQUIRED
                assert len(team.on_pitch) <= counts[side], f"{side.value} gained a player at {state.clock}'"
                counts[side] = len(team.on_pitch)
                assert len(set(team.on_pitch)) == len(team.on_pitch)
                assert team.subs_used <= state.max_substitutions
                assert not set(team.on_pitch) & set(team.bench)
            for ps in state.players.values():
                assert 0.0 <= ps.fitness <= 1.0
                if ps.sent_off or ps.subbed_off:
                    assert not ps.on_pitch

    @pytest.mark.parametrize("seed", range(10))
    def test_sent_off_players_never_return(self, seed):
        result = _play(seed=seed, home=_make_roster("HOM", discipline=1),
                       away=_make_roster("AWY", discipline=1))
        sent_off = set()
        for event in result.events:
            if event.player_id in sent_off:
                pytest.fail(f"{event.player_id} appears after a red card: {event}")
            if event.kind == EventKind.RED_CARD:
                sent_off.add(event.player_id)

    @pytest.mark.parametrize("extra_time", [False, True])
    def test_terminates_within_bound(self, extra_time):
        config = MatchConfig(extra_time=extra_time, added_time_range=(2, 6))
        for seed in range(20):
            handle = new_match(_make_roster("HOM"), _make_roster("AWY"), config=config, seed=seed)
            result = run_to_completion(handle)
            assert result.final_minute <= config.max_match_minutes
            assert handle.engine.minutes_simulated == result.final_minute

    def test_team_stats_match_events(self):
        result = _play(seed=17, home=_make_roster("HOM", discipline=10))
        for side in (Side.HOME, Side.AWAY):
            stats = result.team_stats[side]
            side_events = [e for e in result.events if e.side == side]
            assert stats.goals == sum(1 for e in side_events if e.kind == EventKind.GOAL)
            assert stats.red_cards == sum(1 for e in side_events if e.kind == EventKind.RED_CARD)
            assert stats.substitutions == sum(1 for e in side_events if e.kind == EventKind.SUBSTITUTION)


# ═══════════════════════════════════════════════════════════════════════
# Substitutions and injuries
# ═══════════════════════════════════════════════════════════════════════

class TestSubstitutions:
    def test_exhausted_bench_plays_short(self):
        """With no replacements available, each injury removes a player."""
        config = {
            "calibration": {**QUIET.model_dump(), "base_injury": 0.3},
            "max_substitutions": 0,
        }
        handle = new_match(_make_roster("HOM"), _make_roster("AWY"), config=config, seed=11)
        result = run_to_completion(handle)
        state = handle.engine.state
        for side in (Side.HOME, Side.AWAY):
            injuries = result.team_stats[side].injuries
            assert len(state.teams[side].on_pitch) == STARTERS_REQUIRED - injuries
            assert result.team_stats[side].substitutions == 0

    def test_empty_bench_plays_short(self):
        """Sides with no bench lose a player per injury and their ratings drop with them."""
        config = {"calibration": {**QUIET.model_dump(), "base_injury": 0.1}}
        handle = new_match(_make_roster("HOM", bench=0), _make_roster("AWY", bench=0),
                           config=config, seed=42)
        state = handle.engine.state
        kick_off = {side: (state.team_attack(side), state.team_defense(side)) for side in (Side.HOME, Side.AWAY)}
        result = run_to_completion(handle)

        assert sum(s.injuries for s in result.team_stats.values()) > 0
        for side in (Side.HOME, Side.AWAY):
            team = state.teams[side]
            injuries = result.team_stats[side].injuries
            assert team.bench == []
            assert result.team_stats[side].substitutions == 0
            assert len(team.on_pitch) == STARTERS_REQUIRED - injuries

            on_pitch = state.on_pitch(side)
            scale = team.morale * team.home_factor / STARTERS_REQUIRED
            assert state.team_attack(side) == pytest.approx(sum(ps.effective_attack for ps in on_pitch) * scale)
            assert state.team_defense(side) == pytest.approx(sum(ps.effective_defense for ps in on_pitch) * scale)
            if injuries:
                attack, defense = kick_off[side]
                assert state.team_attack(side) < attack
                assert state.team_defense(side) < defense

    def test_short_handed_side_is_weaker(self):
        handle = new_match(_make_roster("HOM"), _make_roster("AWY"), seed=0)
        state = handle.engine.state
        full = state.team_attack(Side.HOME), state.team_defense(Side.HOME)
        state.withdraw("HOM-2")
        assert state.team_attack(Side.HOME) < full[0]
        assert state.team_defense(Side.HOME) < full[1]

    def test_injured_player_replaced(self):
        config = {"calibration": {**QUIET.model_dump(), "base_injury": 0.05}}
        result = _play(seed=21, config=config)
        for injury in result.injury_events():
            following = result.events[injury.sequence + 1]
            if following.kind == EventKind.SUBSTITUTION and following.get("reason") == "injury":
                assert following.get("player_out") == injury.player_id
                assert following.minute == injury.minute

    def test_fatigue_substitutions(self):
        tired = {"calibration": QUIET.model_dump(), "substitution_strategy": "conservative",
                 "fatigue_floor": 0.8}
        result = _play(seed=0, config=tired, home=_make_roster("HOM", stamina=1),
                       away=_make_roster("AWY", stamina=1))
        subs = result.events_of(EventKind.SUBSTITUTION)
        assert subs
        assert all(e.get("reason") == "fatigue" for e in subs)

    def test_no_substitutions_allowed(self):
        result = _play(seed=0, config={"max_substitutions": 0},
                       home=_make_roster("HOM", stamina=1), away=_make_roster("AWY", stamina=1))
        assert result.events_of(EventKind.SUBSTITUTION) == []

    def test_subs_capped(self):
        for seed in range(10):
            result = _play(seed=seed, config={"max_substitutions": 2, "substitution_strategy": "aggressive"},
                           home=_make_roster("HOM", stamina=1))
            assert result.team_stats[Side.HOME].substitutions <= 2

    def test_policy_from_config(self):
        handle = new_match(_make_roster("HOM"), _make_roster("AWY"),
                           config={"substitution_strategy": "conservative"})
        assert isinstance(handle.engine.policy, ConservativePolicy)

    def test_policy_override(self):
        handle = new_match(_make_roster("HOM"), _make_roster("AWY"),
                           config={"substitution_strategy": "conservative"}, policy=DefaultPolicy())
        assert isinstance(handle.engine.policy, DefaultPolicy)


# ═══════════════════════════════════════════════════════════════════════
# Extra time
# ═══════════════════════════════════════════════════════════════════════

class TestExtraTime:
    def test_level_match_goes_to_extra_time(self):
        config = MatchConfig(extra_time=True, calibration=QUIET, added_time_range=(0, 0))
        handle = new_match(_make_roster("HOM"), _make_roster("AWY"), config=config, seed=0)
        result = run_to_completion(handle)
        full_time = result.events[-1]
        assert full_time.period == 3
        assert result.final_minute == 120
        assert handle.engine.state.phase == MatchPhase.FULL_TIME

    def test_disabled_by_default(self):
        config = MatchConfig(calibration=QUIET, added_time_range=(0, 0))
        result = _play(config=config)
        assert result.events[-1].period == 2


# ═══════════════════════════════════════════════════════════════════════
# Statistical behaviour
# ═══════════════════════════════════════════════════════════════════════

class TestBalance:
    SEEDS = range(300)

    def _goal_diffs(self, config, home, away):
        diffs = []
        for seed in self.SEEDS:
            handle = new_match(home, away, config=config, seed=seed)
            result = run_to_completion(handle)
            diffs.append(result.home_goals - result.away_goals)
        return diffs

    def test_balanced_sides_are_even(self):
        diffs = self._goal_diffs({"home_advantage_factor": 0.0},
                                 _make_roster("HOM"), _make_roster("AWY"))
        assert abs(statistics.mean(diffs)) < 0.4

    def test_home_advantage_favours_home(self):
        diffs = self._goal_diffs({"home_advantage_factor": 0.5},
                                 _make_roster("HOM"), _make_roster("AWY"))
        assert statistics.mean(diffs) > 0.3

    def test_stronger_side_wins_more(self):
        diffs = self._goal_diffs({"home_advantage_factor": 0.0},
                                 _make_roster("HOM", level=90), _make_roster("AWY", level=30))
        wins = sum(1 for d in diffs if d > 0)
        losses = sum(1 for d in diffs if d < 0)
        assert wins > 2 * losses

    def test_realistic_goal_totals(self):
        totals = [sum(_play(seed=s).score) for s in range(150)]
        assert 1.5 <= statistics.mean(totals) <= 4.0
