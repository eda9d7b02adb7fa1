# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Error taxonomy for the propagation engine.

Configuration problems are raised before any integration starts.
Integration problems are raised from inside the loop and converted into
failed results at the service boundary.
"""


class ConfigurationError(ValueError):
    """Invalid propagation configuration (bounds, unknown integrator, ...)."""


class IntegrationError(RuntimeError):
    """Unrecoverable condition while stepping (non-finite state, bad acceleration)."""
