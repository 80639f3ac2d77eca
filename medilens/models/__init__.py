# medilens/models/__init__.py
from medilens.models import chat_message, chat_session, profile, user_activity, user_preference  # noqa: F401
from medilens.models.chat_message import ChatMessage
from medilens.models.chat_session import ChatSession, DEFAULT_TITLE, CHAT_CONTEXTS
from medilens.models.profile import Profile
from medilens.models.user_activity import UserActivity
from medilens.models.user_preference import UserPreference

__all__ = [
    "ChatMessage",
    "ChatSession",
    "DEFAULT_TITLE",
    "CHAT_CONTEXTS",
    "Profile",
    "UserActivity",
    "UserPreference",
]
