"""Social domain exports."""

from . import audit, policy, service  # noqa: F401
from .models import FriendRecord, FriendStatus  # noqa: F401
from .schemas import FriendRequestView, FriendRow  # noqa: F401
from .service import FriendGraph  # noqa: F401
