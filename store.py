from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Tuple

import pandas as pd

from errors import InvalidTemperature
from utils.numbers import parse_leading_float
from utils.time import format_display, local_now
from zones import classify

logger = logging.getLogger(__name__)

Listener = Callable[[Tuple["TemperatureEntry", ...]], None]

TABLE_COLUMNS = ["time", "temperature_f", "zone", "feeling", "medicines", "notes"]


@dataclass(frozen=True)
class TemperatureDraft:
    """Raw entry form fields, before validation."""

    temperature: str
    feeling: str = ""
    medicines: str = ""
    notes: str = ""


@dataclass(frozen=True)
class TemperatureEntry:
    timestamp: datetime
    temperature: float
    feeling: str = ""
    medicines: str = ""
    notes: str = ""


class LogStore:
    """
    In-memory, append-only log of temperature entries kept in ascending
    timestamp order. Lives for one session only.

    Listeners registered with ``subscribe`` receive the full ordered
    snapshot after every successful append.
    """

    def __init__(self, clock: Callable[[], datetime] = local_now) -> None:
        self._clock = clock
        self._entries: List[TemperatureEntry] = []
        self._listeners: List[Listener] = []

    def __len__(self) -> int:
        return len(self._entries)

    def all(self) -> Tuple[TemperatureEntry, ...]:
        return tuple(self._entries)

    def append(self, draft: TemperatureDraft) -> TemperatureEntry:
        temperature = parse_leading_float(draft.temperature)
        if temperature is None:
            logger.info("Rejected entry with temperature %r", draft.temperature)
            raise InvalidTemperature(draft.temperature)

        entry = TemperatureEntry(
            timestamp=self._clock(),
            temperature=temperature,
            feeling=draft.feeling,
            medicines=draft.medicines,
            notes=draft.notes,
        )
        # sorted() is stable, so equal timestamps keep insertion order.
        self._entries = sorted([*self._entries, entry], key=lambda e: e.timestamp)
        logger.debug("Logged %.1f at %s (%d entries)", temperature, entry.timestamp, len(self._entries))
        self._notify()
        return entry

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.all()
        for listener in list(self._listeners):
            listener(snapshot)

    def to_frame(self) -> pd.DataFrame:
        rows = [
            {
                "time": format_display(e.timestamp),
                "temperature_f": e.temperature,
                "zone": classify(e.temperature).label,
                "feeling": e.feeling,
                "medicines": e.medicines,
                "notes": e.notes,
            }
            for e in self._entries
        ]
        return pd.DataFrame(rows, columns=TABLE_COLUMNS)
