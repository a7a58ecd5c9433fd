import uuid
from urllib.parse import quote

import requests
import streamlit as st
import structlog

from src.core.config import settings as _settings


# --- 1. Logging Configuration (Cached Resource) ---
# st.cache_resource keeps logging from being re-initialized on every rerun
@st.cache_resource
def configure_logging():
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.PrintLoggerFactory(),
    )
    return structlog.get_logger()


logger = configure_logging()


# --- 2. Configuration & State ---
st.set_page_config(page_title="Document Q&A Assistant", page_icon="📄", layout="wide")

API_BASE_URL = _settings.APP_API_URL
SHORT_TIMEOUT = 5
# Uploads and answers wait on extraction and the model
LONG_TIMEOUT = 300

if "session_id" not in st.session_state:
    st.session_state.session_id = str(uuid.uuid4())
    logger.info("new_session_started", session_id=st.session_state.session_id)

if "uploader_key" not in st.session_state:
    st.session_state.uploader_key = 0

log = logger.bind(session_id=st.session_state.session_id)
HEADERS = {"X-Session-ID": st.session_state.session_id}


def api_error(response: requests.Response) -> str:
    try:
        return response.json().get("detail", response.text)
    except ValueError:
        return response.text


def fetch_state() -> dict:
    empty = {"documents": [], "transcript": [], "pending": False, "last_error": None, "draft": ""}
    try:
        response = requests.get(f"{API_BASE_URL}/state", headers=HEADERS, timeout=SHORT_TIMEOUT)
        if response.status_code == 200:
            return response.json()
        log.error("state_fetch_failed", status=response.status_code)
    except requests.exceptions.ConnectionError:
        log.error("state_fetch_failed", url=API_BASE_URL)
    return empty


state = fetch_state()
documents = state["documents"]
error_slot = state["last_error"]


# --- 3. Sidebar: Upload & Document List ---
with st.sidebar:
    st.header("📁 Documents")

    try:
        health_check = requests.get(f"{API_BASE_URL}/health", timeout=2)
        if health_check.status_code == 200:
            st.success("🟢 API Online")
        else:
            st.warning(f"🟡 API Initializing ({health_check.status_code})")
    except requests.exceptions.ConnectionError:
        st.error("🔴 API Offline")
        log.error("api_health_check_failed", url=API_BASE_URL)

    uploaded_files = st.file_uploader(
        "Upload Files",
        type=[ext.lstrip(".") for ext in _settings.allowed_extensions],
        accept_multiple_files=True,
        key=f"uploader_{st.session_state.uploader_key}",
    )

    if uploaded_files and st.button("Add Documents", type="primary"):
        with st.spinner("Reading files..."):
            log.info("upload_initiated", file_count=len(uploaded_files))
            try:
                files = [
                    ("files", (f.name, f.getvalue(), f.type)) for f in uploaded_files
                ]
                response = requests.post(
                    f"{API_BASE_URL}/upload",
                    files=files,
                    headers=HEADERS,
                    timeout=LONG_TIMEOUT,
                )
                if response.status_code == 200:
                    log.info("upload_success", documents=len(response.json()["documents"]))
                    st.session_state.uploader_key += 1
                else:
                    log.error("upload_failed", status=response.status_code)
                st.rerun()
            except requests.exceptions.ConnectionError:
                st.error("❌ Could not connect to the API. Is the backend running?")

    for doc in documents:
        name_col, remove_col = st.columns([5, 1])
        name_col.markdown(f"📄 `{doc['name']}`")
        if remove_col.button("🗑️", key=f"remove_{doc['name']}", help="Remove"):
            try:
                requests.delete(
                    f"{API_BASE_URL}/documents/{quote(doc['name'], safe='')}",
                    headers=HEADERS,
                    timeout=SHORT_TIMEOUT,
                )
                log.info("document_removed", name=doc["name"])
                st.rerun()
            except requests.exceptions.ConnectionError:
                st.error("❌ Could not connect to the API.")

    if not documents:
        st.caption("No documents uploaded.")

    st.caption(f"Session: {st.session_state.session_id[-8:]}")


# --- 4. Main Chat Interface ---
def push_draft():
    """Keeps the server-side draft in step with the question box."""
    text = st.session_state.question_input
    st.session_state.synced_draft = text
    try:
        requests.put(
            f"{API_BASE_URL}/draft", json={"text": text}, headers=HEADERS, timeout=SHORT_TIMEOUT
        )
    except requests.exceptions.ConnectionError:
        log.error("draft_sync_failed", url=API_BASE_URL)


def submit(question: str):
    log.info("user_query_received", query_length=len(question))
    try:
        with st.spinner("Thinking..."):
            response = requests.post(
                f"{API_BASE_URL}/chat",
                json={"message": question},
                headers=HEADERS,
                timeout=LONG_TIMEOUT,
            )
        if response.status_code != 200:
            log.error("chat_api_error", status=response.status_code, detail=api_error(response))
    except requests.exceptions.ConnectionError:
        log.critical("chat_connection_failed", url=API_BASE_URL)
        st.error(f"❌ Could not connect to {API_BASE_URL}.")
        return
    st.rerun()


def fetch_suggestions() -> list:
    try:
        response = requests.get(
            f"{API_BASE_URL}/suggestions", headers=HEADERS, timeout=SHORT_TIMEOUT
        )
        if response.status_code == 200:
            return response.json()["suggestions"]
        log.error("suggestions_fetch_failed", status=response.status_code)
    except requests.exceptions.ConnectionError:
        log.error("suggestions_fetch_failed", url=API_BASE_URL)
    return []


if not state["transcript"]:
    st.title("🤖 Document Q&A Assistant")
    st.markdown("Upload one or more documents to get started.")

    columns = st.columns(2)
    for i, suggestion in enumerate(fetch_suggestions()):
        if columns[i % 2].button(suggestion, key=f"suggestion_{i}", use_container_width=True):
            # The server rejects this without documents; the error banner says why
            try:
                requests.post(
                    f"{API_BASE_URL}/suggestions",
                    json={"text": suggestion},
                    headers=HEADERS,
                    timeout=SHORT_TIMEOUT,
                )
            except requests.exceptions.ConnectionError:
                log.error("suggestion_failed", url=API_BASE_URL)
            st.rerun()
else:
    for message in state["transcript"]:
        with st.chat_message(message["sender"]):
            st.markdown(message["text"])

if error_slot:
    banner, dismiss = st.columns([8, 1])
    banner.error(error_slot)
    if dismiss.button("✖", key="dismiss_error", help="Dismiss"):
        try:
            requests.delete(f"{API_BASE_URL}/error", headers=HEADERS, timeout=SHORT_TIMEOUT)
        except requests.exceptions.ConnectionError:
            log.error("error_dismiss_failed", url=API_BASE_URL)
        st.rerun()

# A suggestion (or any server-side draft change) refills the editable box
if st.session_state.get("synced_draft") != state["draft"]:
    st.session_state.question_input = state["draft"]
    st.session_state.synced_draft = state["draft"]

st.text_area(
    "Question",
    key="question_input",
    on_change=push_draft,
    placeholder=(
        "Ask a question about your documents..."
        if documents
        else "Upload a document to start chatting"
    ),
    disabled=not documents or state["pending"],
    label_visibility="collapsed",
)
if st.button(
    "Send",
    type="primary",
    disabled=not documents or state["pending"] or not st.session_state.question_input.strip(),
):
    submit(st.session_state.question_input)
