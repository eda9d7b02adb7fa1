# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""Tests for propagation lifecycle events and event sinks."""

import json
import logging
import uuid
from dataclasses import FrozenInstanceError
from datetime import datetime, timezone

import pytest

from trajprop.adapters.event_sinks import LoggingEventSink, RecordingEventSink
from trajprop.domain.events import (
    SOURCE_SERVICE,
    PropagationCompleted,
    PropagationFailed,
    PropagationStarted,
)
from trajprop.ports.events import PropagationEventSink

_EPOCH = datetime(2026, 3, 20, 12, 0, 0, tzinfo=timezone.utc)


def _started() -> PropagationStarted:
    return PropagationStarted(
        propagation_id=uuid.uuid4(), spacecraft_id="SAT-1",
        start_epoch=_EPOCH, end_epoch=_EPOCH, configuration_name="Fast",
    )


def _failed() -> PropagationFailed:
    return PropagationFailed(
        propagation_id=uuid.uuid4(), error_message="boom", termination_reason="integration_error",
    )


class TestEvents:

    def test_envelope_defaults(self):
        event = _started()
        assert isinstance(event.event_id, uuid.UUID)
        assert event.occurred_at.tzinfo is not None
        assert event.source_service == SOURCE_SERVICE
        assert event.event_type == "PropagationStarted"

    def test_to_dict_is_json_serialisable(self):
        event = PropagationCompleted(
            propagation_id=uuid.uuid4(), start_epoch=_EPOCH, end_epoch=_EPOCH,
            state_count=2, step_count=1, computation_time_ms=0.5,
            was_successful=True, termination_reason="reached_end_epoch",
        )
        payload = event.to_dict()
        assert payload["event_type"] == "PropagationCompleted"
        assert payload["propagation_id"] == str(event.propagation_id)
        assert payload["start_epoch"] == _EPOCH.isoformat()
        assert payload["termination_reason"] == "reached_end_epoch"
        json.dumps(payload)

    def test_frozen(self):
        event = _failed()
        with pytest.raises(FrozenInstanceError):
            event.error_message = "other"

    def test_keyword_only(self):
        with pytest.raises(TypeError):
            PropagationFailed(uuid.uuid4(), None)


class TestLoggingEventSink:

    def test_conforms_to_port(self):
        assert isinstance(LoggingEventSink(), PropagationEventSink)

    def test_levels(self, caplog):
        sink = LoggingEventSink()
        with caplog.at_level(logging.INFO, logger="trajprop.adapters.event_sinks"):
            sink.publish(_started())
            sink.publish(_failed())
        levels = [(r.levelno, r.getMessage().split()[0]) for r in caplog.records]
        assert levels == [
            (logging.INFO, "PropagationStarted"),
            (logging.WARNING, "PropagationFailed"),
        ]

    def test_custom_logger(self, caplog):
        logger = logging.getLogger("tests.events.custom")
        with caplog.at_level(logging.INFO, logger="tests.events.custom"):
            LoggingEventSink(logger).publish(_started())
        assert caplog.records[0].name == "tests.events.custom"


class TestRecordingEventSink:

    def test_order_and_filter(self):
        sink = RecordingEventSink()
        first, second = _started(), _failed()
        sink.publish(first)
        sink.publish(second)
        assert sink.events == (first, second)
        assert sink.of_type(PropagationFailed) == (second,)

    def test_clear(self):
        sink = RecordingEventSink()
        sink.publish(_started())
        sink.clear()
        assert sink.events == ()
