from enum import Enum

from pydantic import BaseModel, ConfigDict


class ErrorKind(str, Enum):
    EXTRACTION = "extraction"
    CONFIGURATION = "configuration"
    SERVICE = "service"
    VALIDATION = "validation"


EXTRACTION_FAILED_MESSAGE = (
    "There was an error reading one or more files. "
    "Please ensure they are valid text or PDF files."
)
SERVICE_FAILED_MESSAGE = "Failed to get a response from the AI. Please try again later."
NO_DOCUMENTS_MESSAGE = "Please upload at least one document before asking a question."
EMPTY_QUESTION_MESSAGE = "Please enter a question."
UPLOAD_FIRST_MESSAGE = "Please upload a document first."


class AssistantError(Exception):
    """
    Base class for every failure a user action can produce.
    `message` is always safe to show to the user.
    """

    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_user_error(self) -> "UserError":
        return UserError(kind=self.kind, message=self.message)


class ExtractionError(AssistantError):
    """A file in an upload batch could not be read."""

    kind = ErrorKind.EXTRACTION

    def __init__(self, message: str = EXTRACTION_FAILED_MESSAGE, filename: str = ""):
        super().__init__(message)
        self.filename = filename


class ConfigurationError(AssistantError):
    kind = ErrorKind.CONFIGURATION


class ServiceError(AssistantError):
    """The answer service failed. The cause is logged, never exposed."""

    kind = ErrorKind.SERVICE

    def __init__(self, message: str = SERVICE_FAILED_MESSAGE):
        super().__init__(message)


class ValidationError(AssistantError):
    kind = ErrorKind.VALIDATION


class UserError(BaseModel):
    """The value held in the single visible error slot."""

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    message: str
