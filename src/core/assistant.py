import itertools
from typing import Iterable, Optional, Tuple

import structlog

from src.core.answer_client import AnswerServiceClient
from src.core.errors import (
    AssistantError,
    EMPTY_QUESTION_MESSAGE,
    ExtractionError,
    NO_DOCUMENTS_MESSAGE,
    UPLOAD_FIRST_MESSAGE,
    ValidationError,
)
from src.core.ingestion import DocumentExtractor
from src.core.models import ChatMessage, Sender, SourceFile, UploadedDocument
from src.core.prompting import SYSTEM_INSTRUCTION, compose
from src.core.state import (
    Action,
    AppState,
    DocumentRemoved,
    DocumentsAdded,
    DraftChanged,
    ErrorCleared,
    ErrorRaised,
    MessageAppended,
    RequestFinished,
    RequestStarted,
    reduce,
)

# Initialize Logger
logger = structlog.get_logger(__name__)


class DocumentAssistant:
    """
    Controller for one chat session.

    Owns the AppState and changes it only through `dispatch`, which applies
    the reducer synchronously. Handlers never await between reading and
    writing state, so interleaved uploads, removals and questions cannot
    lose each other's updates.
    """

    def __init__(
        self,
        extractor: Optional[DocumentExtractor] = None,
        client: Optional[AnswerServiceClient] = None,
    ):
        self.extractor = extractor or DocumentExtractor()
        self.client = client or AnswerServiceClient()
        self._state = AppState()
        self._message_ids = itertools.count(1)
        logger.info("document_assistant_ready")

    # ---------------------------------------------------------
    # State
    # ---------------------------------------------------------
    @property
    def state(self) -> AppState:
        return self._state

    @property
    def documents(self) -> Tuple[UploadedDocument, ...]:
        return self._state.documents

    @property
    def transcript(self) -> Tuple[ChatMessage, ...]:
        return self._state.transcript

    @property
    def pending(self) -> bool:
        return self._state.pending

    @property
    def last_error(self) -> Optional[str]:
        return self._state.last_error_message

    def dispatch(self, action: Action) -> AppState:
        self._state = reduce(self._state, action)
        logger.debug("action_dispatched", action=type(action).__name__)
        return self._state

    def _record_error(self, error: AssistantError):
        logger.warn("user_action_failed", kind=error.kind.value, message=error.message)
        self.dispatch(ErrorRaised(error=error.to_user_error()))

    def _new_message(self, sender: Sender, text: str) -> ChatMessage:
        return ChatMessage(id=str(next(self._message_ids)), sender=sender, text=text)

    # ---------------------------------------------------------
    # Inbound events
    # ---------------------------------------------------------
    async def on_files_selected(
        self, files: Iterable[SourceFile]
    ) -> Optional[Tuple[UploadedDocument, ...]]:
        """
        Extracts one selection as a unit. Returns the added documents, or
        None if the batch was rejected (the error slot says why).
        """
        files = list(files)
        log = logger.bind(file_count=len(files))

        try:
            documents = await self.extractor.extract_batch(files)
        except ExtractionError as e:
            self._record_error(e)
            return None

        self.dispatch(DocumentsAdded(documents=documents))
        log.info("documents_added", added=len(documents), total=len(self.documents))
        return documents

    def on_document_removed(self, name: str):
        self.dispatch(DocumentRemoved(name=name))
        logger.info("document_removed", name=name, remaining=len(self.documents))

    async def on_question_submitted(self, text: str) -> Optional[ChatMessage]:
        """
        Asks one question against the current documents.
        Returns the assistant message, or None if the question was rejected
        or the answer failed.
        """
        if self.pending:
            logger.info("submission_rejected", reason="request_in_flight")
            return None

        if not text or not text.strip():
            self._record_error(ValidationError(EMPTY_QUESTION_MESSAGE))
            return None

        if not self.documents:
            self._record_error(ValidationError(NO_DOCUMENTS_MESSAGE))
            return None

        documents = self.documents
        self.dispatch(ErrorCleared())
        self.dispatch(MessageAppended(message=self._new_message(Sender.USER, text)))
        self.dispatch(RequestStarted())

        succeeded = False
        try:
            prompt = compose(text, documents)
            answer = await self.client.ask(prompt, SYSTEM_INSTRUCTION)
            reply = self._new_message(Sender.ASSISTANT, answer)
            self.dispatch(MessageAppended(message=reply))
            succeeded = True
            return reply
        except AssistantError as e:
            self._record_error(e)
            return None
        finally:
            self.dispatch(RequestFinished(succeeded=succeeded))
            self.dispatch(DraftChanged(text=""))
            logger.info("question_resolved", succeeded=succeeded)

    def on_suggestion_chosen(self, text: str) -> Optional[str]:
        if not self.documents:
            self._record_error(ValidationError(UPLOAD_FIRST_MESSAGE))
            return None

        self.dispatch(DraftChanged(text=text))
        return text

    def on_draft_changed(self, text: str):
        self.dispatch(DraftChanged(text=text))

    def clear_error(self):
        self.dispatch(ErrorCleared())
