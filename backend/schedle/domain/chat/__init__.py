"""Direct message domain exports."""

from .models import ConversationKey, Message  # noqa: F401
from .service import MessageStore  # noqa: F401
