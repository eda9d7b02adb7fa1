# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Port interface for propagation result export.

Adapters implement this to write results in various formats (JSON, CSV).
"""
from typing import Protocol, runtime_checkable

from trajprop.domain.result import PropagationResult


@runtime_checkable
class ResultExporter(Protocol):
    """Port for exporting a propagation result to file."""

    def export(self, result: PropagationResult, path: str) -> int:
        """
        Write the result to ``path``.

        Returns:
            Number of states written.
        """
        ...
