"""Telemetry and observability helpers.

This package emits deterministic run events for auditing.
"""

from .logger import RunLogger, configure_logging

__all__ = ["RunLogger", "configure_logging"]
