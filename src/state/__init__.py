"""State management module."""
from src.state.accounts import (AccountDeletion, AccountExport, create_user, delete_account, export_account, identify,
                                issue_session_token, register_push_token, remove_push_token, user_stats)
from src.state.database import DatabaseManager, DatabaseError, DatabaseNotInitializedError
from src.state.errors import (AlreadyUsedError, ConflictError, ExpiredError, ForbiddenError, LifecycleError,
                              NotFoundError, UnauthorizedError, ValidationFailedError)
from src.state.lifecycle import ResolvedMessage, create_message, resolve_by_token, respond, respond_by_id
from src.state.models import (DEFAULT_SHARE_METHODS, DELETED_USER_ID, Message, MessageStatus, Platform,
                              ProximitySession, PushToken, ResponseAction, SenderSummary, ShareMethod,
                              SharingPreferences, User)
from src.state.preferences import get_preferences, reset_preferences, update_preferences
from src.state.proximity import SessionInfo, attach_message, connect, create_session, fetch_session_message, get_session
from src.state.repositories import (MessageRepository, PreferencesRepository, ProximitySessionRepository,
                                    PushTokenRepository, UserRepository)
__all__ = ["AccountDeletion", "AccountExport", "create_user", "delete_account", "export_account", "identify",
           "issue_session_token", "register_push_token", "remove_push_token", "user_stats",
           "DatabaseManager", "DatabaseError", "DatabaseNotInitializedError",
           "AlreadyUsedError", "ConflictError", "ExpiredError", "ForbiddenError", "LifecycleError",
           "NotFoundError", "UnauthorizedError", "ValidationFailedError",
           "ResolvedMessage", "create_message", "resolve_by_token", "respond", "respond_by_id",
           "DEFAULT_SHARE_METHODS", "DELETED_USER_ID", "Message", "MessageStatus", "Platform", "ProximitySession",
           "PushToken", "ResponseAction", "SenderSummary", "ShareMethod", "SharingPreferences", "User",
           "get_preferences", "reset_preferences", "update_preferences",
           "SessionInfo", "attach_message", "connect", "create_session", "fetch_session_message", "get_session",
           "MessageRepository", "PreferencesRepository", "ProximitySessionRepository", "PushTokenRepository",
           "UserRepository"]
