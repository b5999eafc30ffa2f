"""Notification domain exports."""

from .models import Notification, NotificationType  # noqa: F401
from .service import NotificationCenter  # noqa: F401
from .subscribers import NotificationSubscriber  # noqa: F401
