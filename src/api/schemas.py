from typing import List, Optional

from pydantic import BaseModel, Field

from src.core.models import Sender
from src.core.state import AppState


class ChatRequest(BaseModel):
    message: str = Field(..., description="The user's question about the documents")


class MessageOut(BaseModel):
    id: str
    sender: Sender
    text: str


class ChatResponse(BaseModel):
    answer: str = Field(..., description="The AI generated answer")
    message: MessageOut


class DocumentInfo(BaseModel):
    name: str = Field(..., description="Original filename, unique within the session")
    characters: int = Field(..., description="Length of the extracted text")


class UploadResponse(BaseModel):
    message: str
    files_processed: List[str]
    documents: List[DocumentInfo]


class SuggestionRequest(BaseModel):
    text: str


class DraftRequest(BaseModel):
    text: str = Field("", description="Current contents of the question input")


class SuggestionsResponse(BaseModel):
    suggestions: List[str]


class SessionStateResponse(BaseModel):
    documents: List[DocumentInfo]
    transcript: List[MessageOut]
    pending: bool
    last_error: Optional[str] = None
    draft: str = ""

    @classmethod
    def from_state(cls, state: AppState) -> "SessionStateResponse":
        return cls(
            documents=[
                DocumentInfo(name=d.name, characters=len(d.text)) for d in state.documents
            ],
            transcript=[
                MessageOut(id=m.id, sender=m.sender, text=m.text) for m in state.transcript
            ],
            pending=state.pending,
            last_error=state.last_error_message,
            draft=state.draft,
        )
