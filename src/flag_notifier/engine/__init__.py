"""Polling engine and its lifecycle."""

from flag_notifier.engine.lifecycle import LifecycleManager
from flag_notifier.engine.poll_engine import PollEngine, PollState

__all__ = ["LifecycleManager", "PollEngine", "PollState"]
