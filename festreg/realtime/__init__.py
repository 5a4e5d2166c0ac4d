from .broadcast_adapter import BroadcastAdapter
from .in_memory_adapter import InMemoryAdapter
from .notifier import Notifier, get_notifier, set_notifier, status_update_topic, team_updated_topic

__all__ = [
    "BroadcastAdapter",
    "InMemoryAdapter",
    "Notifier",
    "get_notifier",
    "set_notifier",
    "status_update_topic",
    "team_updated_topic",
]
