"""Match simulation engine exports."""

from footsim.engine.config import (
    Calibration,
    MatchConfig,
    SubstitutionStrategy,
    coerce_config,
    load_config,
)
from footsim.engine.event_log import EventLog
from footsim.engine.fixtures import Fixture, simulate_fixture, simulate_round
from footsim.engine.match_engine import MatchEngine, MatchHandle, new_match, run_to_completion
from footsim.engine.match_result import (
    EventKind,
    MatchEvent,
    MatchResult,
    MatchSummary,
    PlayerMatchStats,
    Side,
    TeamMatchStats,
)
from footsim.engine.replay import replay_events
from footsim.engine.resolver import Outcome, OutcomeKind, OutcomeResolver
from footsim.engine.rng import MatchRNG, derive_seed
from footsim.engine.state import MatchPhase, MatchState
from footsim.engine.substitution import (
    AggressivePolicy,
    ConservativePolicy,
    DefaultPolicy,
    Substitution,
    SubstitutionPolicy,
    SubstitutionTrigger,
    TeamView,
    get_policy,
)

__all__ = [
    "AggressivePolicy",
    "Calibration",
    "ConservativePolicy",
    "DefaultPolicy",
    "EventKind",
    "EventLog",
    "Fixture",
    "MatchConfig",
    "MatchEngine",
    "MatchEvent",
    "MatchHandle",
    "MatchPhase",
    "MatchRNG",
    "MatchResult",
    "MatchState",
    "MatchSummary",
    "Outcome",
    "OutcomeKind",
    "OutcomeResolver",
    "PlayerMatchStats",
    "Side",
    "Substitution",
    "SubstitutionPolicy",
    "SubstitutionStrategy",
    "SubstitutionTrigger",
    "TeamMatchStats",
    "TeamView",
    "coerce_config",
    "derive_seed",
    "get_policy",
    "load_config",
    "new_match",
    "replay_events",
    "run_to_completion",
    "simulate_fixture",
    "simulate_round",
]
