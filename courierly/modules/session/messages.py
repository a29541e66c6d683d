"""
Outbound message kinds.

Each request model carries the kind-specific fields plus an optional
recipient (jid) and knows the content shape the transport expects.
JSON field names are camelCase; Python attributes are snake_case.
"""

from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class MessageKind(str, Enum):
    """Kinds of outbound messages."""

    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"
    LOCATION = "location"
    CONTACT = "contact"
    REACTION = "reaction"
    POLL = "poll"


class MessageKey(BaseModel):
    """Key identifying the message a reaction refers to."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    remote_jid: Optional[str] = Field(None, alias="remoteJid")
    from_me: Optional[bool] = Field(None, alias="fromMe")
    id: str = Field(..., description="Message ID")
    participant: Optional[str] = None


class SendRequestBase(BaseModel):
    """Fields shared by every message kind."""

    model_config = ConfigDict(populate_by_name=True)

    kind: ClassVar[MessageKind]

    jid: Optional[str] = Field(
        None, description="Recipient JID; the configured default recipient when omitted"
    )

    @field_validator("*", mode="before")
    @classmethod
    def blank_means_default(cls, value: Any, info: ValidationInfo) -> Any:
        """Omitted, null and empty-string optional fields take their default."""
        if value is None or (isinstance(value, str) and value == ""):
            field = cls.model_fields[info.field_name]
            if not field.is_required():
                return field.get_default(call_default_factory=True)
        return value

    def to_content(self) -> Dict[str, Any]:
        """Content payload in the shape the transport expects."""
        raise NotImplementedError


class SendTextRequest(SendRequestBase):
    kind: ClassVar[MessageKind] = MessageKind.TEXT

    text: str

    def to_content(self) -> Dict[str, Any]:
        return {"text": self.text}


class SendImageRequest(SendRequestBase):
    kind: ClassVar[MessageKind] = MessageKind.IMAGE

    image_url: str = Field(..., alias="imageUrl")
    caption: str = ""

    def to_content(self) -> Dict[str, Any]:
        return {"image": {"url": self.image_url}, "caption": self.caption}


class SendVideoRequest(SendRequestBase):
    kind: ClassVar[MessageKind] = MessageKind.VIDEO

    video_url: str = Field(..., alias="videoUrl")
    caption: str = ""
    video_note: bool = Field(False, alias="videoNote", description="Play back as a GIF-style note")

    def to_content(self) -> Dict[str, Any]:
        return {
            "video": {"url": self.video_url},
            "caption": self.caption,
            "gifPlayback": self.video_note,
        }


class SendAudioRequest(SendRequestBase):
    kind: ClassVar[MessageKind] = MessageKind.AUDIO

    audio_url: str = Field(..., alias="audioUrl")
    mimetype: str = "audio/mpeg"

    def to_content(self) -> Dict[str, Any]:
        return {"audio": {"url": self.audio_url}, "mimetype": self.mimetype}


class SendDocumentRequest(SendRequestBase):
    kind: ClassVar[MessageKind] = MessageKind.DOCUMENT

    document_url: str = Field(..., alias="documentUrl")
    mimetype: str = "application/pdf"
    filename: str = "document"

    def to_content(self) -> Dict[str, Any]:
        return {
            "document": {"url": self.document_url},
            "mimetype": self.mimetype,
            "fileName": self.filename,
        }


class SendLocationRequest(SendRequestBase):
    kind: ClassVar[MessageKind] = MessageKind.LOCATION

    latitude: float
    longitude: float
    name: str = ""
    address: str = ""

    def to_content(self) -> Dict[str, Any]:
        return {
            "location": {
                "degreesLatitude": self.latitude,
                "degreesLongitude": self.longitude,
                "name": self.name,
                "address": self.address,
            }
        }


class SendContactRequest(SendRequestBase):
    kind: ClassVar[MessageKind] = MessageKind.CONTACT

    vcard: str
    display_name: str = Field("Contact", alias="displayName")

    def to_content(self) -> Dict[str, Any]:
        return {
            "contacts": {
                "displayName": self.display_name,
                "contacts": [{"vcard": self.vcard}],
            }
        }


class SendReactionRequest(SendRequestBase):
    kind: ClassVar[MessageKind] = MessageKind.REACTION

    # An empty reaction removes a previous one, so it is passed through as-is
    reaction: str
    key: MessageKey

    def to_content(self) -> Dict[str, Any]:
        return {
            "react": {
                "text": self.reaction,
                "key": self.key.model_dump(by_alias=True, exclude_none=True),
            }
        }


class SendPollRequest(SendRequestBase):
    kind: ClassVar[MessageKind] = MessageKind.POLL

    poll_name: str = Field(..., alias="pollName")
    poll_values: List[str] = Field(..., alias="pollValues")
    selectable_count: Optional[int] = Field(None, alias="selectableCount")
    to_announcement_group: bool = Field(False, alias="toAnnouncementGroup")

    def to_content(self) -> Dict[str, Any]:
        poll = {
            "name": self.poll_name,
            "values": self.poll_values,
            "toAnnouncementGroup": self.to_announcement_group,
        }
        # Left out when unset so the session library applies its own default
        if self.selectable_count is not None:
            poll["selectableCount"] = self.selectable_count
        return {"poll": poll}


SendRequest = Union[
    SendTextRequest,
    SendImageRequest,
    SendVideoRequest,
    SendAudioRequest,
    SendDocumentRequest,
    SendLocationRequest,
    SendContactRequest,
    SendReactionRequest,
    SendPollRequest,
]
