"""
Pydantic models for file delivery.

Request/response models use camelCase aliases on the wire (the mobile client
sends ``toEmail``, ``recordingKey`` ...) and snake_case attributes in Python.
Request models forbid unknown fields so malformed payloads are rejected at
the boundary instead of being silently coerced.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Worst case (all `"` escaped in html, base64 bodies) stays well inside the
# default MIME overhead allowance.
MAX_MESSAGE_TEXT_CHARS = 2000


class AssetLabel(str, Enum):
    RECORDING = "Recording"
    TRANSCRIPTION = "Transcription"


class DeliveryMode(str, Enum):
    ATTACHMENTS = "attachments"
    LINKS = "links"


class AssetRef(BaseModel):
    """A caller-supplied object key and the role it plays in the email."""

    model_config = ConfigDict(frozen=True)

    key: str
    label: AssetLabel


class AssetMeta(BaseModel):
    """Size and content type of an AssetRef, as reported by storage."""

    model_config = ConfigDict(frozen=True)

    key: str
    label: AssetLabel
    size_bytes: int = Field(ge=0)
    content_type: str


class DownloadLink(BaseModel):
    """A time-limited signed download URL for one asset."""

    model_config = ConfigDict(frozen=True)

    label: AssetLabel
    key: str
    filename: str
    url: str


class AttachmentPart(BaseModel):
    """Raw bytes of one asset, ready to be base64-encoded into the message."""

    model_config = ConfigDict(frozen=True)

    filename: str
    content_type: str
    content: bytes


# ---------------------------------------------------------------------------
# POST /api/send-files
# ---------------------------------------------------------------------------

class SendFilesRequest(BaseModel):
    """Request body for emailing a recording and/or transcription."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    to_email: str = Field(alias="toEmail")
    recording_key: Optional[str] = Field(default=None, alias="recordingKey")
    transcription_key: Optional[str] = Field(default=None, alias="transcriptionKey")
    message_text: Optional[str] = Field(
        default=None, alias="messageText", max_length=MAX_MESSAGE_TEXT_CHARS
    )

    @field_validator("to_email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        value = value.strip()
        if not value or "@" not in value:
            raise ValueError("toEmail must be a non-empty email address")
        if "\r" in value or "\n" in value or "," in value:
            raise ValueError("toEmail must be a single email address")
        return value

    @field_validator("recording_key", "transcription_key")
    @classmethod
    def _check_key(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        if not value:
            raise ValueError("object keys must be non-empty strings when provided")
        return value

    def asset_refs(self) -> list[AssetRef]:
        """The assets the caller asked for, recording first."""
        refs = []
        if self.recording_key:
            refs.append(AssetRef(key=self.recording_key, label=AssetLabel.RECORDING))
        if self.transcription_key:
            refs.append(AssetRef(key=self.transcription_key, label=AssetLabel.TRANSCRIPTION))
        return refs


class SendFilesResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message_id: str = Field(alias="messageId")
    to_email: str = Field(alias="toEmail")
    delivery_mode: DeliveryMode = Field(alias="deliveryMode")
    links: list[DownloadLink] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# POST /api/uploads/sign
# ---------------------------------------------------------------------------

class UploadUrlRequest(BaseModel):
    """Request body for a signed upload URL."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    key: str
    content_type: str = Field(alias="contentType")
    content_length: int = Field(alias="contentLength")

    @field_validator("key", "content_type")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must be a non-empty string")
        return value


class UploadUrlResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str
    token: Optional[str] = None
    method: str = "PUT"
    headers: dict[str, str]
    key: str
    bucket: str
    uid: str
