"""
Core - transverse utilities (notifications)
"""

from core.message_types import SystemEvent
from core.notifier import Notifier

__all__ = ["SystemEvent", "Notifier"]
