"""
Ledger event delivery (imperative shell).

Events are observational: the ledger emits them after an operation has fully
succeeded, and nothing a sink does can change ledger state or the outcome of
the operation.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, ClassVar, Dict, List, Sequence

from ..core.vesting.types import Event

logger = logging.getLogger("vesting.integration.events")


@dataclass(frozen=True)
class LockCreated:
    kind: ClassVar[Event] = Event.LOCK_CREATED

    beneficiary: str
    amount: int
    start_time: int
    duration: int
    cliff: int
    revocable: bool


@dataclass(frozen=True)
class Released:
    kind: ClassVar[Event] = Event.RELEASED

    beneficiary: str
    amount: int


@dataclass(frozen=True)
class Revoked:
    kind: ClassVar[Event] = Event.REVOKED

    beneficiary: str
    refund_amount: int


@dataclass(frozen=True)
class AssetRecovered:
    kind: ClassVar[Event] = Event.ASSET_RECOVERED

    asset: str
    to: str
    amount: int


@dataclass(frozen=True)
class AdminTransferred:
    kind: ClassVar[Event] = Event.ADMIN_TRANSFERRED

    previous: str
    new: str


LedgerEvent = LockCreated | Released | Revoked | AssetRecovered | AdminTransferred


def event_to_dict(event: LedgerEvent) -> Dict[str, Any]:
    return {"event": event.kind.value, **asdict(event)}


class EventSink:
    """Interface for event observers."""

    def emit(self, event: LedgerEvent) -> None:
        raise NotImplementedError


class NullEventSink(EventSink):
    def emit(self, event: LedgerEvent) -> None:
        return None


class RecordingEventSink(EventSink):
    """Keeps every event in memory, in emission order."""

    def __init__(self) -> None:
        self.events: List[LedgerEvent] = []

    def emit(self, event: LedgerEvent) -> None:
        self.events.append(event)

    def of_kind(self, kind: Event) -> List[LedgerEvent]:
        return [e for e in self.events if e.kind is kind]


class LoggingEventSink(EventSink):
    def __init__(self, level: int = logging.INFO) -> None:
        self._level = level

    def emit(self, event: LedgerEvent) -> None:
        logger.log(self._level, "%s %s", event.kind.value, asdict(event))


class FanOutEventSink(EventSink):
    def __init__(self, sinks: Sequence[EventSink]) -> None:
        self._sinks = list(sinks)

    def emit(self, event: LedgerEvent) -> None:
        for sink in self._sinks:
            sink.emit(event)
