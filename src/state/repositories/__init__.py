"""Repositories."""
from src.state.repositories.messages import MessageRepository
from src.state.repositories.preferences import PreferencesRepository
from src.state.repositories.proximity import ProximitySessionRepository
from src.state.repositories.push_tokens import PushTokenRepository
from src.state.repositories.users import UserRepository
__all__ = [
    "MessageRepository",
    "PreferencesRepository",
    "ProximitySessionRepository",
    "PushTokenRepository",
    "UserRepository",
]
