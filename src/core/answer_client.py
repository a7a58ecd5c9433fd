from typing import Optional

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_core.output_parsers import StrOutputParser
import structlog

from src.core.errors import ConfigurationError, ServiceError
from src.core.llm_factory import ILLMProvider, LLMFactory
from src.core.observability import trace_execution

# Initialize Logger
logger = structlog.get_logger(__name__)


class AnswerServiceClient:
    """
    Sends one composed prompt to the configured chat model and returns its text.
    No retries, no streaming, no caching.
    """

    def __init__(self, provider: Optional[ILLMProvider] = None):
        self.provider = provider or LLMFactory.get_provider()

    @trace_execution
    async def ask(self, prompt: str, system_instruction: str) -> str:
        log = logger.bind(prompt_length=len(prompt))

        # ConfigurationError (missing key) propagates before any network call
        try:
            llm = self.provider.get_chat_model()
        except ConfigurationError:
            raise
        except Exception as e:
            log.error("answer_service_unavailable", error=str(e), exc_info=True)
            raise ServiceError() from e

        chain = llm | StrOutputParser()

        messages = [
            SystemMessage(content=system_instruction),
            HumanMessage(content=prompt),
        ]

        try:
            log.info("answer_service_request_started")
            answer = await chain.ainvoke(messages)
        except Exception as e:
            log.error("answer_service_failed", error=str(e), exc_info=True)
            raise ServiceError() from e

        if not isinstance(answer, str) or not answer.strip():
            log.error("answer_service_malformed_response", response_type=type(answer).__name__)
            raise ServiceError()

        log.info("answer_service_request_succeeded", answer_length=len(answer))
        return answer
