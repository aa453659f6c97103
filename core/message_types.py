"""
📦 Message Types - notification DTOs
"""
import time
from dataclasses import dataclass, field
from typing import Any, Dict

# SystemEvent kinds published by the notifier
NOTIFICATION_CRITICAL = "notification.critical"
NOTIFICATION_CHAT_FEED = "notification.chat_feed"


@dataclass
class SystemEvent:
    """System event (notifications, webhook state changes, etc.)"""
    kind: str                                               # "notification.critical", ...
    payload: Dict[str, Any] = field(default_factory=dict)   # Event data
    timestamp: float = 0.0

    def __post_init__(self):
        if self.timestamp == 0.0:
            self.timestamp = time.time()
