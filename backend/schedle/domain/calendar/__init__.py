"""Calendar domain exports."""

from .groups import GroupStore  # noqa: F401
from .models import CalendarEvent, CalendarFilters, EventType, Group, Recurrence, RecurrenceFrequency  # noqa: F401
from .service import EventStore  # noqa: F401
