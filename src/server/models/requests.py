"""Request models for API endpoints.

Durations are in milliseconds. Content and action values are checked by
the lifecycle layer so blank content and unknown actions report
``VALIDATION_ERROR`` rather than a schema failure.
"""
from typing import Annotated, Optional
from pydantic import BaseModel, Field, field_validator


class CreateMessageRequest(BaseModel):
    content: Annotated[str, Field()]
    recipient_id: Optional[str] = None
    recipient_email: Optional[str] = None
    link_expires_in: Annotated[Optional[int], Field(gt=0, description="Link lifetime in ms")] = None
    single_use: bool = True

    @field_validator("recipient_id", "recipient_email")
    @classmethod
    def blank_as_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v


class RespondRequest(BaseModel):
    action: Annotated[str, Field(description="accept or reject")]


class CreateSessionRequest(BaseModel):
    expires_in: Annotated[Optional[int], Field(gt=0, description="Session lifetime in ms")] = None


class AttachMessageRequest(BaseModel):
    content: Annotated[str, Field()]
    link_expires_in: Annotated[Optional[int], Field(gt=0, description="Link lifetime in ms")] = None


class PushTokenRequest(BaseModel):
    token: Annotated[str, Field(min_length=1)]
    platform: Annotated[str, Field(description="ios or android")]


class UpdatePreferencesRequest(BaseModel):
    """Partial update; omitted fields keep their stored value."""

    proximity_enabled: Optional[bool] = None
    link_sharing_enabled: Optional[bool] = None
    push_notifications_enabled: Optional[bool] = None
    obfuscate_links: Optional[bool] = None
    allowed_share_methods: Annotated[
        Optional[list[str]], Field(description="whatsapp, email, telegram, sms")
    ] = None


class ShareMethodsRequest(BaseModel):
    allowed_share_methods: Annotated[list[str], Field(description="whatsapp, email, telegram, sms")]
