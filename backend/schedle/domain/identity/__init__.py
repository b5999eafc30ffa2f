"""Identity domain exports."""

from . import privacy  # noqa: F401
from .directory import UserDirectory  # noqa: F401
from .models import User  # noqa: F401
from .provider import IdentityProvider  # noqa: F401
