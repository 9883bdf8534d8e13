"""Change detection."""

from flag_notifier.core.diff_classifier import DEFAULT_RECENT_WINDOW, classify

__all__ = ["classify", "DEFAULT_RECENT_WINDOW"]
