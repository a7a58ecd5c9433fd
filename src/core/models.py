from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Sender(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class UploadedDocument(BaseModel):
    """An extracted document. `name` is the original filename and is unique within a session."""

    model_config = ConfigDict(frozen=True)

    name: str
    text: str


class SourceFile(BaseModel):
    """A selected file before extraction."""

    model_config = ConfigDict(frozen=True)

    name: str
    content: bytes = Field(repr=False)
    media_type: Optional[str] = None


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    sender: Sender
    text: str


class RequestStatus(str, Enum):
    """Lifecycle of one question: idle -> in_flight -> succeeded | failed."""

    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
