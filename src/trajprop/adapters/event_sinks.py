# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Event sink adapters.

LoggingEventSink writes each event to the standard logging system.
RecordingEventSink keeps events in memory for callers that forward them
in batches (and for tests).
"""
import logging
import threading

from trajprop.domain.events import PropagationEvent, PropagationFailed
from trajprop.ports.events import PropagationEventSink

_log = logging.getLogger(__name__)


class LoggingEventSink(PropagationEventSink):
    """Logs events; failures at WARNING, everything else at INFO."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or _log

    def publish(self, event: PropagationEvent) -> None:
        level = logging.WARNING if isinstance(event, PropagationFailed) else logging.INFO
        self._logger.log(level, "%s %s", event.event_type, event.to_dict())


class RecordingEventSink(PropagationEventSink):
    """Collects events in publication order. Safe to share across threads."""

    def __init__(self) -> None:
        self._events: list[PropagationEvent] = []
        self._lock = threading.Lock()

    def publish(self, event: PropagationEvent) -> None:
        with self._lock:
            self._events.append(event)

    @property
    def events(self) -> tuple[PropagationEvent, ...]:
        with self._lock:
            return tuple(self._events)

    def of_type(self, event_type: type) -> tuple[PropagationEvent, ...]:
        return tuple(e for e in self.events if isinstance(e, event_type))

    def clear(self) -> None:
        with self._lock:
            self._events.clear()
