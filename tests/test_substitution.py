"""Tests for substitution policies."""

from __future__ import annotations

import pytest

from footsim.engine.config import SubstitutionStrategy
from footsim.engine.match_result import Side
from footsim.engine.rng import MatchRNG
from footsim.engine.substitution import (
    AggressivePolicy,
    ConservativePolicy,
    DefaultPolicy,
    OnPitchPlayer,
    SubstitutionTrigger,
    TeamView,
    get_policy,
)
from footsim.models.player import Player, PositionCategory

GK = PositionCategory.GOALKEEPER
DEF = PositionCategory.DEFENDER
MID = PositionCategory.MIDFIELDER
FWD = PositionCategory.FORWARD


class AlwaysRNG(MatchRNG):
    """Every chance() succeeds."""

    def __init__(self):
        super().__init__(0)

    def next_uniform(self) -> float:
        self.draws += 1
        return 0.0


def _make_view(
    minute: int = 80,
    fitness: dict[str, float] | None = None,
    bench: tuple[Player, ...] | None = None,
    subs_used: int = 0,
    max_substitutions: int = 3,
    goal_difference: int = 0,
) -> TeamView:
    fitness = fitness or {}
    lineup = [("gk", GK, 20)] + [(f"d{i}", DEF, 30 + i) for i in range(4)] \
        + [(f"m{i}", MID, 50 + i) for i in range(4)] + [("f0", FWD, 80), ("f1", FWD, 75)]
    on_pitch = tuple(
        OnPitchPlayer(Player(player_id=pid, position=pos, attack=att), fitness.get(pid, 0.9))
        for pid, pos, att in lineup
    )
    if bench is None:
        bench = (
            Player(player_id="b-gk", position=GK, defense=70),
            Player(player_id="b-def", position=DEF, defense=65),
            Player(player_id="b-mid", position=MID, attack=60, defense=60),
            Player(player_id="b-fwd", position=FWD, attack=85),
        )
    return TeamView(
        side=Side.HOME,
        minute=minute,
        regulation_minutes=90,
        fatigue_floor=0.45,
        on_pitch=on_pitch,
        bench=bench,
        subs_used=subs_used,
        max_substitutions=max_substitutions,
        goal_difference=goal_difference,
    )


# ═══════════════════════════════════════════════════════════════════════
# TeamView
# ═══════════════════════════════════════════════════════════════════════

class TestTeamView:
    def test_can_substitute(self):
        assert _make_view().can_substitute
        assert not _make_view(subs_used=3).can_substitute
        assert not _make_view(bench=()).can_substitute

    def test_trailing(self):
        assert _make_view(goal_difference=-1).is_trailing
        assert not _make_view(goal_difference=0).is_trailing

    def test_find(self):
        view = _make_view()
        assert view.find("m2").player.player_id == "m2"
        assert view.find("ghost") is None


# ═══════════════════════════════════════════════════════════════════════
# Forced changes
# ═══════════════════════════════════════════════════════════════════════

class TestForcedChanges:
    def test_injury_replaced_like_for_like(self):
        sub = DefaultPolicy().choose(_make_view(), SubstitutionTrigger.INJURY, MatchRNG(0), "d1")
        assert sub.player_out == "d1"
        assert sub.player_in == "b-def"
        assert sub.trigger == SubstitutionTrigger.INJURY

    def test_injured_goalkeeper_gets_goalkeeper(self):
        sub = DefaultPolicy().choose(_make_view(), SubstitutionTrigger.INJURY, MatchRNG(0), "gk")
        assert sub.player_in == "b-gk"

    def test_falls_back_to_best_available(self):
        bench = (Player(player_id="b1", attack=40, defense=40), Player(player_id="b2", attack=70, defense=70))
        sub = DefaultPolicy().choose(_make_view(bench=bench), SubstitutionTrigger.INJURY, MatchRNG(0), "f0")
        assert sub.player_in == "b2"

    def test_no_subs_left(self):
        sub = DefaultPolicy().choose(_make_view(subs_used=3), SubstitutionTrigger.INJURY, MatchRNG(0), "d1")
        assert sub is None

    def test_empty_bench(self):
        sub = DefaultPolicy().choose(_make_view(bench=()), SubstitutionTrigger.INJURY, MatchRNG(0), "d1")
        assert sub is None

    def test_fatigue_picks_most_tired(self):
        view = _make_view(fitness={"m1": 0.40, "m3": 0.30})
        sub = DefaultPolicy().choose(view, SubstitutionTrigger.FATIGUE, MatchRNG(0))
        assert sub.player_out == "m3"
        assert sub.player_in == "b-mid"

    def test_no_fatigue_change_above_floor(self):
        sub = DefaultPolicy().choose(_make_view(), SubstitutionTrigger.FATIGUE, MatchRNG(0))
        assert sub is None

    def test_conservative_tolerates_more_fatigue(self):
        view = _make_view(fitness={"m1": 0.40})
        assert DefaultPolicy().choose(view, SubstitutionTrigger.FATIGUE, MatchRNG(0)) is not None
        assert ConservativePolicy().choose(view, SubstitutionTrigger.FATIGUE, MatchRNG(0)) is None

        exhausted = _make_view(fitness={"m1": 0.30})
        assert ConservativePolicy().choose(exhausted, SubstitutionTrigger.FATIGUE, MatchRNG(0)) is not None


# ═══════════════════════════════════════════════════════════════════════
# Tactical changes
# ═══════════════════════════════════════════════════════════════════════

class TestTacticalChanges:
    def test_default_waits_for_last_third(self):
        rng = AlwaysRNG()
        assert DefaultPolicy().choose(_make_view(minute=40), SubstitutionTrigger.TACTICAL, rng) is None
        assert rng.draws == 0
        assert DefaultPolicy().choose(_make_view(minute=70), SubstitutionTrigger.TACTICAL, rng) is not None

    def test_default_swaps_most_tired_outfielder(self):
        view = _make_view(fitness={"gk": 0.1, "d2": 0.5})
        sub = DefaultPolicy().choose(view, SubstitutionTrigger.TACTICAL, AlwaysRNG())
        assert sub.player_out == "d2"
        assert sub.trigger == SubstitutionTrigger.TACTICAL

    def test_conservative_never_tactical(self):
        assert ConservativePolicy().choose(_make_view(minute=89), SubstitutionTrigger.TACTICAL, AlwaysRNG()) is None

    def test_aggressive_acts_earlier(self):
        view = _make_view(minute=55)
        assert DefaultPolicy().choose(view, SubstitutionTrigger.TACTICAL, AlwaysRNG()) is None
        assert AggressivePolicy().choose(view, SubstitutionTrigger.TACTICAL, AlwaysRNG()) is not None

    def test_aggressive_trailing_throws_on_attacker(self):
        view = _make_view(goal_difference=-1)
        sub = AggressivePolicy().choose(view, SubstitutionTrigger.TACTICAL, AlwaysRNG())
        assert sub.player_out == "d0"  # weakest attacker among DEF/MID
        assert sub.player_in == "b-fwd"

    def test_aggressive_trailing_rate_doubles(self):
        """A draw between the normal and doubled rate fires only when trailing."""

        class FixedRNG(MatchRNG):
            def next_uniform(self) -> float:
                self.draws += 1
                return 0.09

        level = _make_view(goal_difference=0)
        behind = _make_view(goal_difference=-2)
        assert AggressivePolicy().choose(level, SubstitutionTrigger.TACTICAL, FixedRNG(0)) is None
        assert AggressivePolicy().choose(behind, SubstitutionTrigger.TACTICAL, FixedRNG(0)) is not None


class TestGetPolicy:
    @pytest.mark.parametrize("strategy,cls", [
        (SubstitutionStrategy.DEFAULT, DefaultPolicy),
        ("aggressive", AggressivePolicy),
        ("conservative", ConservativePolicy),
    ])
    def test_lookup(self, strategy, cls):
        assert isinstance(get_policy(strategy), cls)

    def test_unknown_strategy(self):
        with pytest.raises(ValueError):
            get_policy("gegenpress")
