"""State models."""
from src.state.models.message import Message, MessageStatus, ResponseAction
from src.state.models.preferences import DEFAULT_SHARE_METHODS, ShareMethod, SharingPreferences
from src.state.models.proximity import ProximitySession
from src.state.models.push_token import Platform, PushToken
from src.state.models.user import DELETED_USER_ID, DELETED_USER_NAME, SenderSummary, User
__all__ = [
    "Message", "MessageStatus", "ResponseAction",
    "DEFAULT_SHARE_METHODS", "ShareMethod", "SharingPreferences",
    "ProximitySession",
    "Platform", "PushToken",
    "DELETED_USER_ID", "DELETED_USER_NAME", "SenderSummary", "User",
]
