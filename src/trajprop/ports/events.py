# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Port interface for propagation lifecycle notifications.

Adapters forward events to a log, a message bus, or an in-memory list.
"""
from typing import Protocol, runtime_checkable

from trajprop.domain.events import PropagationEvent


@runtime_checkable
class PropagationEventSink(Protocol):
    """Port for publishing propagation started/completed/failed events."""

    def publish(self, event: PropagationEvent) -> None:
        """Deliver one event."""
        ...
