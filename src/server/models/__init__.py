"""Pydantic models for request/response validation."""
from src.server.models.common import SenderInfo
from src.server.models.requests import (
    AttachMessageRequest,
    CreateMessageRequest,
    CreateSessionRequest,
    PushTokenRequest,
    RespondRequest,
    ShareMethodsRequest,
    UpdatePreferencesRequest,
)
from src.server.models.responses import (
    AttachResponse,
    CreateMessageResponse,
    DeleteAccountResponse,
    ErrorDetail,
    ErrorResponse,
    ExportedMessage,
    ExportedMessages,
    ExportedPushTokens,
    ExportedSession,
    ExportedSessions,
    HealthResponse,
    LinkMessageResponse,
    MessageListResponse,
    MessageResponse,
    PreferencesResponse,
    PushTokenDeletedResponse,
    PushTokenListResponse,
    PushTokenRegisteredResponse,
    PushTokenResponse,
    RespondResponse,
    SessionCreatedResponse,
    SessionInfoResponse,
    ShareFormatsResponse,
    StatsResponse,
    StatusCounts,
    UserResponse,
    UserDataExportResponse,
)

__all__ = [
    "SenderInfo",
    "AttachMessageRequest",
    "CreateMessageRequest",
    "CreateSessionRequest",
    "PushTokenRequest",
    "RespondRequest",
    "ShareMethodsRequest",
    "UpdatePreferencesRequest",
    "AttachResponse",
    "CreateMessageResponse",
    "DeleteAccountResponse",
    "ErrorDetail",
    "ErrorResponse",
    "ExportedMessage",
    "ExportedMessages",
    "ExportedPushTokens",
    "ExportedSession",
    "ExportedSessions",
    "HealthResponse",
    "LinkMessageResponse",
    "MessageListResponse",
    "MessageResponse",
    "PreferencesResponse",
    "PushTokenDeletedResponse",
    "PushTokenListResponse",
    "PushTokenRegisteredResponse",
    "PushTokenResponse",
    "RespondResponse",
    "SessionCreatedResponse",
    "SessionInfoResponse",
    "ShareFormatsResponse",
    "StatsResponse",
    "StatusCounts",
    "UserResponse",
    "UserDataExportResponse",
]
