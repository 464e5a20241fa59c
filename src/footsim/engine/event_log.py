"""Append-only event log owned by the match engine."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from footsim.engine.match_result import EventKind, MatchEvent, Side
from footsim.errors import MatchFrozenError

logger = logging.getLogger(__name__)


class EventLog:
    """Ordered, append-only sequence of MatchEvents.

    Events are stamped with their sequence number on append. The minute of
    a new event may never be earlier than the previous one. Once sealed at
    full time, further appends raise MatchFrozenError.
    """

    def __init__(self) -> None:
        self._events: list[MatchEvent] = []
        self._sealed = False

    def record(
        self,
        minute: int,
        period: int,
        kind: EventKind,
        side: Side | None = None,
        player_id: str | None = None,
        **payload: Any,
    ) -> MatchEvent:
        """Create, append and return a new event."""
        if self._sealed:
            raise MatchFrozenError("Event log is sealed; the match has finished")
        if self._events and minute < self._events[-1].minute:
            raise ValueError(
                f"Event at minute {minute} would precede minute {self._events[-1].minute}"
            )
        event = MatchEvent.create(
            len(self._events), minute, period, kind, side, player_id, **payload
        )
        self._events.append(event)
        logger.debug(f"{event} {event.payload}")
        return event

    def seal(self) -> None:
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def events(self) -> tuple[MatchEvent, ...]:
        return tuple(self._events)

    def of_kind(self, kind: EventKind) -> list[MatchEvent]:
        return [e for e in self._events if e.kind == kind]

    def __iter__(self) -> Iterator[MatchEvent]:
        return iter(tuple(self._events))

    def __len__(self) -> int:
        return len(self._events)

    def __getitem__(self, index: int) -> MatchEvent:
        return self._events[index]
