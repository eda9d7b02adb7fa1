# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""Port interfaces for external collaborators."""

from trajprop.ports.events import PropagationEventSink
from trajprop.ports.export import ResultExporter

__all__ = [
    "PropagationEventSink",
    "ResultExporter",
]
