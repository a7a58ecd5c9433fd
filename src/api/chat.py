import os
import time
from contextlib import asynccontextmanager
from typing import List, Annotated

from fastapi import (
    FastAPI,
    UploadFile,
    File,
    HTTPException,
    status,
    Header,
    Depends,
    Request,
)
from fastapi.middleware.cors import CORSMiddleware
import structlog

from src.core.assistant import DocumentAssistant as _DocumentAssistant
from src.core.config import settings
from src.core.errors import ErrorKind
from src.core.models import SourceFile
from src.core.prompting import SUGGESTIONS
from src.core.session import SessionManager as _SessionManager
from src.api.schemas import (
    ChatRequest as _ChatRequest,
    ChatResponse as _ChatResponse,
    DraftRequest as _DraftRequest,
    DocumentInfo as _DocumentInfo,
    MessageOut as _MessageOut,
    SessionStateResponse as _SessionStateResponse,
    SuggestionRequest as _SuggestionRequest,
    SuggestionsResponse as _SuggestionsResponse,
    UploadResponse as _UploadResponse,
)

# Initialize global logger for the module
logger = structlog.get_logger(__name__)

# Global Session Manager instance
session_manager: _SessionManager | None = None

ERROR_STATUS = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.EXTRACTION: 422,
    ErrorKind.CONFIGURATION: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.SERVICE: status.HTTP_502_BAD_GATEWAY,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manages the lifecycle of the application.
    Initializes the Session Manager on startup.
    """
    global session_manager
    logger.info("startup_initializing", component="session_manager")
    logger.info(
        "startup_configuration",
        app_env=settings.APP_ENV,
        llm_provider=settings.LLM_PROVIDER,
        api_url=settings.APP_API_URL,
    )
    session_manager = _SessionManager()
    logger.info("startup_complete", component="session_manager", status="ready")

    yield

    # Cleanup
    logger.info("shutdown_started")
    session_manager = None
    logger.info("shutdown_complete")


app = FastAPI(
    title="DocQA API",
    description="Ask questions about uploaded text and PDF documents",
    version="0.1.0",
    lifespan=lifespan,
)


# Observability Middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.perf_counter()

    response = await call_next(request)

    process_time = time.perf_counter() - start_time

    logger.info(
        "api_request_metrics",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        latency_seconds=round(process_time, 4),
        client_ip=request.client.host if request.client else "unknown",
    )

    response.headers["X-Process-Time"] = str(process_time)

    return response


# CORS: Allow the UI (Streamlit) to talk to this API
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_session_manager() -> _SessionManager:
    if session_manager is None:
        logger.error("service_unavailable", reason="session_manager_not_initialized")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="System is not initialized",
        )
    return session_manager


async def get_assistant(
    x_session_id: Annotated[str, Header(description="Unique ID for the user session")],
) -> _DocumentAssistant:
    """
    Dependency Injection:
    Extracts the Session ID from headers and retrieves/creates its assistant.
    """
    manager = get_session_manager()

    if not x_session_id:
        logger.warn("bad_request", reason="missing_session_id")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Session-ID header is required",
        )

    return manager.get_assistant(x_session_id)


def _raise_last_error(assistant: _DocumentAssistant):
    error = assistant.state.last_error
    if error is None:
        raise HTTPException(status_code=500, detail="Unknown error")
    raise HTTPException(status_code=ERROR_STATUS[error.kind], detail=error.message)


# --- Endpoints ---


@app.get("/health", tags=["System"])
async def health_check():
    """Readiness check for the API."""
    is_ready = session_manager is not None

    logger.debug("health_check", status="ok" if is_ready else "initializing")

    return {"status": "ok" if is_ready else "initializing", "service": "docqa-api"}


@app.get("/state", response_model=_SessionStateResponse, tags=["Session"])
async def get_state(assistant: _DocumentAssistant = Depends(get_assistant)):
    return _SessionStateResponse.from_state(assistant.state)


@app.delete("/session", tags=["Session"])
async def clear_session(x_session_id: str = Header(...)):
    cleared = get_session_manager().clear_session(x_session_id)
    return {"cleared": cleared}


@app.post("/upload", response_model=_UploadResponse, tags=["Documents"])
async def upload_documents(
    files: List[UploadFile] = File(...),
    assistant: _DocumentAssistant = Depends(get_assistant),
    x_session_id: str = Header(...),  # Capture explicitly for logging context
):
    """
    Extracts one selection of files (TXT, MD, JSON, CSV, PDF) into the session.
    The selection is accepted or rejected as a whole.
    """
    log = logger.bind(session_id=x_session_id, handler="upload_documents")

    if not files:
        log.warn("upload_failed", reason="no_files_provided")
        raise HTTPException(status_code=400, detail="No files provided")

    allowed = settings.allowed_extensions
    sources = []
    for file in files:
        filename = file.filename or ""
        ext = os.path.splitext(filename)[1].lower()
        if ext not in allowed:
            log.warn("upload_failed", reason="extension_not_allowed", filename=filename)
            raise HTTPException(
                status_code=400,
                detail=f"Unsupported file type '{ext or filename}'. Allowed: {', '.join(allowed)}",
            )
        content = await file.read()
        sources.append(
            SourceFile(name=filename, content=content, media_type=file.content_type)
        )

    log.info("upload_started", file_count=len(sources))
    added = await assistant.on_files_selected(sources)
    if added is None:
        _raise_last_error(assistant)

    log.info("upload_complete", documents_added=len(added))
    return _UploadResponse(
        message="Ingestion successful",
        files_processed=[s.name for s in sources],
        documents=[_DocumentInfo(name=d.name, characters=len(d.text)) for d in added],
    )


@app.delete("/documents/{name}", response_model=_SessionStateResponse, tags=["Documents"])
async def remove_document(
    name: str, assistant: _DocumentAssistant = Depends(get_assistant)
):
    assistant.on_document_removed(name)
    return _SessionStateResponse.from_state(assistant.state)


@app.post("/chat", response_model=_ChatResponse, tags=["Chat"])
async def chat(
    request: _ChatRequest,
    assistant: _DocumentAssistant = Depends(get_assistant),
    x_session_id: str = Header(...),  # Capture explicitly for logging context
):
    """
    Asks a question about the session's documents.
    """
    log = logger.bind(session_id=x_session_id, handler="chat")

    if assistant.pending:
        log.warn("chat_rejected", reason="request_in_flight")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A question is already being answered.",
        )

    log.info("chat_request_received", question_length=len(request.message))
    reply = await assistant.on_question_submitted(request.message)
    if reply is None:
        _raise_last_error(assistant)

    log.info("chat_response_generated", message_id=reply.id)
    return _ChatResponse(
        answer=reply.text,
        message=_MessageOut(id=reply.id, sender=reply.sender, text=reply.text),
    )


@app.get("/suggestions", response_model=_SuggestionsResponse, tags=["Chat"])
async def list_suggestions():
    return _SuggestionsResponse(suggestions=list(SUGGESTIONS))


@app.post("/suggestions", response_model=_SessionStateResponse, tags=["Chat"])
async def choose_suggestion(
    request: _SuggestionRequest,
    assistant: _DocumentAssistant = Depends(get_assistant),
):
    if assistant.on_suggestion_chosen(request.text) is None:
        _raise_last_error(assistant)
    return _SessionStateResponse.from_state(assistant.state)


@app.put("/draft", response_model=_SessionStateResponse, tags=["Chat"])
async def update_draft(
    request: _DraftRequest,
    assistant: _DocumentAssistant = Depends(get_assistant),
):
    assistant.on_draft_changed(request.text)
    return _SessionStateResponse.from_state(assistant.state)


@app.delete("/error", response_model=_SessionStateResponse, tags=["Session"])
async def dismiss_error(assistant: _DocumentAssistant = Depends(get_assistant)):
    assistant.clear_error()
    return _SessionStateResponse.from_state(assistant.state)


# Safe entry point for debugging
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
