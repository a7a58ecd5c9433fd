from typing import Callable, Dict, Optional

import structlog

from src.core.assistant import DocumentAssistant as _DocumentAssistant

# Initialize logger for this module
logger = structlog.get_logger(__name__)


class SessionManager:
    """
    Keeps one DocumentAssistant per browser session, in memory only.
    Documents and transcripts are lost when the process restarts.
    """

    def __init__(self, factory: Optional[Callable[[], _DocumentAssistant]] = None):
        self._factory = factory or _DocumentAssistant
        # Maps session_id -> DocumentAssistant
        self._sessions: Dict[str, _DocumentAssistant] = {}
        logger.info("session_manager_initialized")

    def get_assistant(self, session_id: str) -> _DocumentAssistant:
        """Returns the session's assistant, creating it on first use."""
        if session_id not in self._sessions:
            logger.info("creating_new_assistant", session_id=session_id)
            self._sessions[session_id] = self._factory()
        else:
            logger.debug("retrieving_cached_assistant", session_id=session_id)

        return self._sessions[session_id]

    def clear_session(self, session_id: str) -> bool:
        """Drops a session and everything uploaded into it."""
        if session_id in self._sessions:
            del self._sessions[session_id]
            logger.info("session_cleared", session_id=session_id)
            return True

        logger.warn("session_clear_failed", reason="not_found", session_id=session_id)
        return False
