"""Service layer for signal operations."""

from .signal_service import SignalService, build_signal_service

__all__ = ["SignalService", "build_signal_service"]
