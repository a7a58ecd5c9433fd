from typing import Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict

from src.core.errors import UserError
from src.core.models import ChatMessage, RequestStatus, UploadedDocument


class AppState(BaseModel):
    """
    Everything the front end observes. Never mutated in place; the reducer
    returns a new instance for every action.
    """

    model_config = ConfigDict(frozen=True)

    documents: Tuple[UploadedDocument, ...] = ()
    transcript: Tuple[ChatMessage, ...] = ()
    request_status: RequestStatus = RequestStatus.IDLE
    last_error: Optional[UserError] = None
    draft: str = ""

    @property
    def pending(self) -> bool:
        return self.request_status == RequestStatus.IN_FLIGHT

    @property
    def last_error_message(self) -> Optional[str]:
        return self.last_error.message if self.last_error else None

    def document_names(self) -> Tuple[str, ...]:
        return tuple(doc.name for doc in self.documents)


# --- Actions ---


class _Action(BaseModel):
    model_config = ConfigDict(frozen=True)


class DocumentsAdded(_Action):
    documents: Tuple[UploadedDocument, ...]


class DocumentRemoved(_Action):
    name: str


class MessageAppended(_Action):
    message: ChatMessage


class RequestStarted(_Action):
    pass


class RequestFinished(_Action):
    succeeded: bool


class ErrorRaised(_Action):
    error: UserError


class ErrorCleared(_Action):
    pass


class DraftChanged(_Action):
    text: str


Action = Union[
    DocumentsAdded,
    DocumentRemoved,
    MessageAppended,
    RequestStarted,
    RequestFinished,
    ErrorRaised,
    ErrorCleared,
    DraftChanged,
]


def merge_documents(
    current: Tuple[UploadedDocument, ...], incoming: Tuple[UploadedDocument, ...]
) -> Tuple[UploadedDocument, ...]:
    """
    Appends `incoming` in order. A document whose name is already held
    replaces the held one at its original position, so names stay unique.
    """
    merged = list(current)
    index = {doc.name: i for i, doc in enumerate(merged)}

    for doc in incoming:
        if doc.name in index:
            merged[index[doc.name]] = doc
        else:
            index[doc.name] = len(merged)
            merged.append(doc)

    return tuple(merged)


def reduce(state: AppState, action: Action) -> AppState:
    if isinstance(action, DocumentsAdded):
        return state.model_copy(
            update={"documents": merge_documents(state.documents, action.documents)}
        )

    if isinstance(action, DocumentRemoved):
        survivors = tuple(doc for doc in state.documents if doc.name != action.name)
        return state.model_copy(update={"documents": survivors})

    if isinstance(action, MessageAppended):
        return state.model_copy(
            update={"transcript": state.transcript + (action.message,)}
        )

    if isinstance(action, RequestStarted):
        return state.model_copy(update={"request_status": RequestStatus.IN_FLIGHT})

    if isinstance(action, RequestFinished):
        status = RequestStatus.SUCCEEDED if action.succeeded else RequestStatus.FAILED
        return state.model_copy(update={"request_status": status})

    if isinstance(action, ErrorRaised):
        return state.model_copy(update={"last_error": action.error})

    if isinstance(action, ErrorCleared):
        return state.model_copy(update={"last_error": None})

    if isinstance(action, DraftChanged):
        return state.model_copy(update={"draft": action.text})

    raise TypeError(f"Unknown action: {type(action).__name__}")
