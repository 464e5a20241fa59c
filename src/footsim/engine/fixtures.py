"""Fixture rounds — many independent matches, reproducible from one seed.

Each fixture gets its own seed derived from the round's master seed and
its index, so a round gives the same results whether it runs
sequentially or across worker processes.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from typing import Any

from footsim.engine.config import MatchConfig, coerce_config
from footsim.engine.match_engine import new_match, run_to_completion
from footsim.engine.match_result import MatchResult
from footsim.engine.rng import derive_seed
from footsim.models.team import Roster

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Fixture:
    """One scheduled match between two rosters."""
    home: Roster
    away: Roster


def simulate_fixture(fixture: Fixture, config: MatchConfig, seed: int) -> MatchResult:
    """Run a single fixture to full time. Module-level so workers can pickle it."""
    handle = new_match(fixture.home, fixture.away, config=config, seed=seed)
    return run_to_completion(handle)


def simulate_round(
    fixtures: Sequence[Fixture],
    config: MatchConfig | Mapping[str, Any] | None = None,
    master_seed: int = 0,
    max_workers: int | None = None,
    parallel: bool = True,
) -> list[MatchResult]:
    """Simulate every fixture; results come back in fixture order.

    Args:
        fixtures: Matches to play.
        config: Shared match configuration.
        master_seed: Round seed; fixture i is seeded with derive_seed(master_seed, i).
        max_workers: Process pool size (None = CPU count).
        parallel: Set False to run in-process, e.g. for debugging.
    """
    match_config = coerce_config(config)
    seeds = [derive_seed(master_seed, i) for i in range(len(fixtures))]

    logger.info(
        f"Simulating {len(fixtures)} fixtures (master_seed={master_seed}, "
        f"{'parallel' if parallel and len(fixtures) > 1 else 'sequential'})"
    )

    if not parallel or len(fixtures) <= 1:
        return [
            simulate_fixture(fixture, match_config, seed)
            for fixture, seed in zip(fixtures, seeds)
        ]

    with ProcessPoolExecutor(max_workers=max_workers) as executor:
        return list(
            executor.map(
                simulate_fixture,
                fixtures,
                [match_config] * len(fixtures),
                seeds,
            )
        )
