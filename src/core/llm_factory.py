from typing import Protocol, List, Any, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage, AIMessage
from langchain_core.outputs import ChatResult, ChatGeneration
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI
from langchain_ollama import ChatOllama
import structlog

from src.core.config import settings as _settings, LLMProviderType as _LLMProviderType
from src.core.errors import ConfigurationError

# Initialize Logger
logger = structlog.get_logger(__name__)


class ILLMProvider(Protocol):
    """Interface for any LLM Provider (Gemini, OpenAI, etc)."""

    def get_chat_model(self) -> BaseChatModel: ...


def _require_key(provider: str, setting_name: str) -> str:
    value = getattr(_settings, setting_name)
    if not value:
        logger.error("provider_config_error", provider=provider, missing=setting_name)
        raise ConfigurationError(f"{setting_name} is not configured.")
    return value


# --- MOCK CLASSES (For Testing & CI) ---


class MockChatModel(BaseChatModel):
    """A fake Chat Model that returns deterministic answers without hitting an API."""

    def _generate(
        self,
        messages: List[BaseMessage],
        stop: Optional[List[str]] = None,
        run_manager: Any = None,
        **kwargs: Any,
    ) -> ChatResult:
        logger.info("mock_generation_triggered", message_count=len(messages))

        message = AIMessage(
            content="This is a MOCKED response. The pipeline is working correctly."
        )
        return ChatResult(generations=[ChatGeneration(message=message)])

    @property
    def _llm_type(self) -> str:
        return "mock-chat"


class MockProvider(ILLMProvider):
    def get_chat_model(self) -> BaseChatModel:
        return MockChatModel()


# --- REAL PROVIDERS ---


class GeminiProvider(ILLMProvider):
    def get_chat_model(self) -> BaseChatModel:
        api_key = _require_key("gemini", "GEMINI_API_KEY")

        logger.debug(
            "initializing_llm", provider="gemini", model=_settings.GEMINI_MODEL
        )
        return ChatGoogleGenerativeAI(
            model=_settings.GEMINI_MODEL,
            google_api_key=api_key,
            temperature=_settings.LLM_TEMPERATURE,
        )


class OpenAIProvider(ILLMProvider):
    def get_chat_model(self) -> BaseChatModel:
        api_key = _require_key("openai", "OPENAI_API_KEY")

        logger.debug(
            "initializing_llm", provider="openai", model=_settings.OPENAI_MODEL
        )
        return ChatOpenAI(
            model=_settings.OPENAI_MODEL,
            api_key=api_key,
            temperature=_settings.LLM_TEMPERATURE,
        )


class OllamaProvider(ILLMProvider):
    def get_chat_model(self) -> BaseChatModel:
        logger.debug(
            "initializing_llm",
            provider="ollama",
            model=_settings.OLLAMA_MODEL,
            url=_settings.OLLAMA_BASE_URL,
        )
        return ChatOllama(
            base_url=_settings.OLLAMA_BASE_URL,
            model=_settings.OLLAMA_MODEL,
            temperature=_settings.LLM_TEMPERATURE,
        )


class LLMFactory:
    """Factory to return the configured provider."""

    @staticmethod
    def get_provider() -> ILLMProvider:
        provider = _settings.LLM_PROVIDER

        logger.info("llm_provider_selected", provider=provider)

        if provider == _LLMProviderType.GEMINI:
            return GeminiProvider()
        elif provider == _LLMProviderType.OPENAI:
            return OpenAIProvider()
        elif provider == _LLMProviderType.OLLAMA:
            return OllamaProvider()
        elif provider == _LLMProviderType.MOCK:
            return MockProvider()
        else:
            logger.critical("provider_not_implemented", provider=provider)
            raise ConfigurationError(f"LLM provider {provider} is not supported.")
