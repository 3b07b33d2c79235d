from surfcheck.models.notification_record import NotificationRecord
from surfcheck.models.push_token import PushToken
from surfcheck.models.scheduling import Scheduling
from surfcheck.models.tide_cache import TideCache

__all__ = [
    "NotificationRecord",
    "PushToken",
    "Scheduling",
    "TideCache",
]
