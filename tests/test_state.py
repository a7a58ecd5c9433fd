from src.core.models import RequestStatus
from src.core.errors import ErrorKind, UserError
from src.core.models import ChatMessage, Sender, UploadedDocument
from src.core.state import (
    AppState,
    DocumentRemoved,
    DocumentsAdded,
    ErrorCleared,
    ErrorRaised,
    MessageAppended,
    RequestFinished,
    RequestStarted,
    reduce,
)


def docs(*names):
    return tuple(UploadedDocument(name=n, text=f"text of {n}") for n in names)


def test_batches_append_in_order():
    state = reduce(AppState(), DocumentsAdded(documents=docs("a", "b")))
    state = reduce(state, DocumentsAdded(documents=docs("c")))

    assert state.document_names() == ("a", "b", "c")


def test_removal_preserves_order_of_survivors():
    state = AppState(documents=docs("a", "b", "c"))

    state = reduce(state, DocumentRemoved(name="b"))

    assert state.document_names() == ("a", "c")


def test_removing_an_unknown_name_changes_nothing():
    state = AppState(documents=docs("a"))

    assert reduce(state, DocumentRemoved(name="zzz")) == state


def test_duplicate_name_replaces_in_place():
    state = AppState(documents=docs("a", "b", "c"))
    newer = UploadedDocument(name="b", text="newer b")

    state = reduce(state, DocumentsAdded(documents=(newer, UploadedDocument(name="d", text="d"))))

    assert state.document_names() == ("a", "b", "c", "d")
    assert state.documents[1].text == "newer b"


def test_duplicate_within_one_batch_keeps_the_later_file():
    batch = (UploadedDocument(name="x", text="first"), UploadedDocument(name="x", text="second"))

    state = reduce(AppState(), DocumentsAdded(documents=batch))

    assert state.documents == (UploadedDocument(name="x", text="second"),)


def test_transcript_is_append_only():
    first = ChatMessage(id="1", sender=Sender.USER, text="hi")
    second = ChatMessage(id="2", sender=Sender.ASSISTANT, text="hello")

    state = reduce(reduce(AppState(), MessageAppended(message=first)), MessageAppended(message=second))

    assert state.transcript == (first, second)


def test_request_lifecycle_drives_pending():
    state = reduce(AppState(), RequestStarted())
    assert state.pending
    assert state.request_status == RequestStatus.IN_FLIGHT

    state = reduce(state, RequestFinished(succeeded=False))
    assert not state.pending
    assert state.request_status == RequestStatus.FAILED


def test_new_error_replaces_old():
    state = reduce(AppState(), ErrorRaised(error=UserError(kind=ErrorKind.SERVICE, message="one")))
    state = reduce(state, ErrorRaised(error=UserError(kind=ErrorKind.VALIDATION, message="two")))

    assert state.last_error_message == "two"
    assert reduce(state, ErrorCleared()).last_error is None
