"""Rebuild score and statistics from an event log alone.

The log is the single source of truth: a reporting layer that only kept
the events can call replay_events() and get exactly what the engine
reported at full time.
"""

from __future__ import annotations

from collections.abc import Iterable

from footsim.engine.match_result import (
    EventKind,
    MatchEvent,
    MatchSummary,
    PlayerMatchStats,
    Side,
    TeamMatchStats,
)


def replay_events(events: Iterable[MatchEvent]) -> MatchSummary:
    """Fold events, in order, into a MatchSummary.

    Raises:
        ValueError: the log does not start with a kick-off event.
    """
    players: dict[str, PlayerMatchStats] = {}
    teams: dict[Side, TeamMatchStats] = {}
    entered: dict[str, int] = {}
    left: dict[str, int] = {}
    final_minute = 0

    for event in events:
        final_minute = event.minute
        kind = event.kind
        pid = event.player_id

        if kind == EventKind.KICK_OFF:
            for side, team_key, lineup_key in (
                (Side.HOME, "home_team", "home_lineup"),
                (Side.AWAY, "away_team", "away_lineup"),
            ):
                teams[side] = TeamMatchStats(side=side, team_id=event.get(team_key))
                for starter in event.get(lineup_key, ()):
                    players[starter] = PlayerMatchStats(player_id=starter, side=side)
                    entered[starter] = event.minute
            continue

        if not teams:
            raise ValueError(f"Event {event} appears before kick-off")
        team = teams[event.side] if event.side is not None else None

        if kind == EventKind.GOAL:
            team.goals += 1
            team.shots += 1
            team.shots_on_target += 1
            players[pid].goals += 1
            players[pid].shots += 1
            players[pid].shots_on_target += 1
            assist = event.get("assist")
            if assist is not None:
                players[assist].assists += 1

        elif kind == EventKind.SHOT_ON_TARGET:
            team.shots += 1
            team.shots_on_target += 1
            players[pid].shots += 1
            players[pid].shots_on_target += 1

        elif kind == EventKind.SHOT_OFF_TARGET:
            team.shots += 1
            players[pid].shots += 1

        elif kind == EventKind.FOUL:
            team.fouls += 1
            players[pid].fouls += 1

        elif kind == EventKind.YELLOW_CARD:
            team.fouls += 1
            team.yellow_cards += 1
            players[pid].fouls += 1
            players[pid].yellow_cards += 1

        elif kind == EventKind.RED_CARD:
            team.fouls += 1
            team.red_cards += 1
            players[pid].fouls += 1
            players[pid].red_card = True
            if event.get("second_yellow"):
                team.yellow_cards += 1
                players[pid].yellow_cards += 1
            left[pid] = event.minute

        elif kind == EventKind.INJURY:
            team.injuries += 1
            players[pid].injured = True
            left[pid] = event.minute

        elif kind == EventKind.SUBSTITUTION:
            player_out = event.get("player_out")
            player_in = event.get("player_in")
            team.substitutions += 1
            players[player_out].subbed_off = True
            left[player_out] = event.minute
            players[player_in] = PlayerMatchStats(player_id=player_in, side=event.side, subbed_on=True)
            entered[player_in] = event.minute

        elif kind == EventKind.TURNOVER:
            team.turnovers += 1

    if not teams:
        raise ValueError("Event log has no kick-off event")

    for pid, player in players.items():
        player.minutes_played = left.get(pid, final_minute) - entered[pid]

    return MatchSummary(
        home_goals=teams[Side.HOME].goals,
        away_goals=teams[Side.AWAY].goals,
        player_stats=players,
        team_stats=teams,
    )
