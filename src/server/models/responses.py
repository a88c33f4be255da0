"""Response models for API endpoints."""
from typing import Annotated, Literal, Optional, Any
from pydantic import BaseModel, Field
from src.server.models.common import SenderInfo


class MessageResponse(BaseModel):
    """A message as seen by its sender or bound recipient."""

    id: Annotated[str, Field()]
    sender_id: Annotated[str, Field()]
    recipient_id: Optional[str] = None
    content: Annotated[str, Field()]
    status: Annotated[str, Field()]
    single_use: bool
    link_used: bool
    link_expires_at: Optional[str] = None
    created_at: Annotated[str, Field()]
    updated_at: Annotated[str, Field()]


class MessageListResponse(BaseModel):
    count: int
    messages: list[MessageResponse]


class LinkMessageResponse(BaseModel):
    """A message as seen through its link token or a proximity session."""

    id: Annotated[str, Field()]
    content: Annotated[str, Field()]
    status: Annotated[str, Field()]
    single_use: bool
    link_expires_at: Optional[str] = None
    created_at: Annotated[str, Field()]
    sender: SenderInfo


class CreateMessageResponse(BaseModel):
    id: Annotated[str, Field()]
    link_token: Annotated[str, Field()]
    share_url: Annotated[str, Field()]
    link_expires_at: Annotated[str, Field()]
    status: Literal["pending"] = "pending"


class RespondResponse(BaseModel):
    id: Annotated[str, Field()]
    status: Annotated[Literal["accepted", "rejected"], Field()]


class ShareFormatsResponse(BaseModel):
    share_url: Annotated[str, Field()]
    short_id: Annotated[str, Field()]
    display_url: Annotated[str, Field()]
    obfuscated_url: Annotated[str, Field()]
    messages: dict[str, str]


class SessionCreatedResponse(BaseModel):
    session_id: Annotated[str, Field()]
    proximity_token: Annotated[str, Field()]
    expires_at: Annotated[str, Field()]
    expires_in: Annotated[int, Field(description="Session lifetime in ms")]


class SessionInfoResponse(BaseModel):
    session_id: Annotated[str, Field()]
    initiator_id: Annotated[str, Field()]
    has_message: bool
    expires_at: Annotated[str, Field()]


class AttachResponse(BaseModel):
    message_id: Annotated[str, Field()]
    session_id: Annotated[str, Field()]
    expires_at: Annotated[str, Field()]


class PushTokenResponse(BaseModel):
    """A device registration; the device token itself is never echoed."""

    id: Annotated[str, Field()]
    platform: Annotated[Literal["ios", "android"], Field()]
    created_at: Annotated[str, Field()]
    updated_at: Annotated[str, Field()]


class PushTokenRegisteredResponse(PushTokenResponse):
    outcome: Annotated[Literal["created", "refreshed", "reassigned"], Field()]


class PushTokenListResponse(BaseModel):
    count: int
    tokens: list[PushTokenResponse]


class UserResponse(BaseModel):
    id: Annotated[str, Field()]
    name: Annotated[str, Field()]
    email: Annotated[str, Field()]
    created_at: Annotated[str, Field()]


class StatusCounts(BaseModel):
    pending: int = 0
    accepted: int = 0
    rejected: int = 0
    total: int = 0


class StatsResponse(BaseModel):
    sent: StatusCounts
    received: StatusCounts


class DeleteAccountResponse(BaseModel):
    status: Literal["deleted"] = "deleted"
    messages_anonymized: int
    proximity_sessions_deleted: int
    push_tokens_deleted: int
    deleted_at: Annotated[str, Field()]


class HealthResponse(BaseModel):
    status: Annotated[Literal["healthy", "degraded"], Field()]
    version: Annotated[str, Field()]
    timestamp: Annotated[str, Field()]
    message: Optional[str] = None


class ErrorDetail(BaseModel):
    code: Annotated[str, Field()]
    message: Annotated[str, Field()]
    details: Optional[dict[str, Any]] = None


class ErrorResponse(BaseModel):
    error: ErrorDetail


class PushTokenDeletedResponse(BaseModel):
    status: Literal["deleted"] = "deleted"
    id: Annotated[str, Field()]


class PreferencesResponse(BaseModel):
    proximity_enabled: bool
    link_sharing_enabled: bool
    push_notifications_enabled: bool
    obfuscate_links: bool
    allowed_share_methods: list[str]
    updated_at: Optional[str] = None


class ExportedMessage(BaseModel):
    """A message in a personal-data export. Link tokens are left out."""

    id: Annotated[str, Field()]
    sender_id: Annotated[str, Field()]
    recipient_id: Optional[str] = None
    content: Annotated[str, Field()]
    status: Annotated[str, Field()]
    created_at: Annotated[str, Field()]
    updated_at: Annotated[str, Field()]


class ExportedMessages(BaseModel):
    sent: int
    received: int
    sent_messages: list[ExportedMessage]
    received_messages: list[ExportedMessage]


class ExportedSession(BaseModel):
    id: Annotated[str, Field()]
    expires_at: Annotated[str, Field()]
    message_id: Optional[str] = None
    created_at: Annotated[str, Field()]


class ExportedSessions(BaseModel):
    count: int
    sessions: list[ExportedSession]


class ExportedPushTokens(BaseModel):
    count: int
    platforms: list[str]
    registered_at: list[PushTokenResponse]


class UserDataExportResponse(BaseModel):
    user: UserResponse
    messages: ExportedMessages
    proximity_sessions: ExportedSessions
    push_tokens: ExportedPushTokens
    exported_at: Annotated[str, Field()]
