from unittest.mock import patch

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage
from langchain_core.runnables import RunnableLambda

from src.core.answer_client import AnswerServiceClient
from src.core.config import settings
from src.core.errors import ConfigurationError, SERVICE_FAILED_MESSAGE, ServiceError
from src.core.llm_factory import GeminiProvider, MockProvider, OpenAIProvider
from src.core.prompting import SYSTEM_INSTRUCTION

PATH_TO_LLM_FACTORY = "src.core.llm_factory"


@pytest.mark.asyncio
async def test_missing_gemini_key_fails_without_network_call(monkeypatch):
    monkeypatch.setattr(settings, "GEMINI_API_KEY", None)

    with patch(f"{PATH_TO_LLM_FACTORY}.ChatGoogleGenerativeAI") as transport:
        client = AnswerServiceClient(provider=GeminiProvider())
        with pytest.raises(ConfigurationError) as exc_info:
            await client.ask("prompt", SYSTEM_INSTRUCTION)

    transport.assert_not_called()
    assert "GEMINI_API_KEY" in exc_info.value.message


@pytest.mark.asyncio
async def test_missing_openai_key_fails_without_network_call(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", None)

    with patch(f"{PATH_TO_LLM_FACTORY}.ChatOpenAI") as transport:
        with pytest.raises(ConfigurationError):
            await AnswerServiceClient(provider=OpenAIProvider()).ask("prompt", SYSTEM_INSTRUCTION)

    transport.assert_not_called()


@pytest.mark.asyncio
async def test_gemini_receives_key_prompt_and_system_instruction(monkeypatch):
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "test-key")
    received = []

    async def fake_gemini(messages):
        received.append(messages)
        return AIMessage(content="  An answer, untouched.\n")

    with patch(f"{PATH_TO_LLM_FACTORY}.ChatGoogleGenerativeAI") as transport:
        transport.return_value = RunnableLambda(fake_gemini)
        answer = await AnswerServiceClient(provider=GeminiProvider()).ask("the prompt", "the rules")

    assert answer == "  An answer, untouched.\n"
    assert transport.call_args.kwargs["google_api_key"] == "test-key"
    assert received == [[SystemMessage(content="the rules"), HumanMessage(content="the prompt")]]


@pytest.mark.asyncio
async def test_transport_failure_becomes_opaque_service_error(make_provider):
    provider = make_provider(error=ConnectionError("socket closed: secret-host:443"))

    with pytest.raises(ServiceError) as exc_info:
        await AnswerServiceClient(provider=provider).ask("prompt", SYSTEM_INSTRUCTION)

    assert exc_info.value.message == SERVICE_FAILED_MESSAGE
    assert "secret-host" not in str(exc_info.value)
    assert len(provider.calls) == 1


@pytest.mark.asyncio
async def test_blank_response_is_treated_as_malformed(make_provider):
    provider = make_provider(answer="   ")

    with pytest.raises(ServiceError):
        await AnswerServiceClient(provider=provider).ask("prompt", SYSTEM_INSTRUCTION)


@pytest.mark.asyncio
async def test_mock_provider_answers_offline():
    answer = await AnswerServiceClient(provider=MockProvider()).ask("prompt", SYSTEM_INSTRUCTION)

    assert "MOCKED" in answer


@pytest.mark.asyncio
async def test_model_construction_failure_becomes_service_error():
    class BrokenProvider:
        def get_chat_model(self):
            raise RuntimeError("client construction failed")

    with pytest.raises(ServiceError) as exc_info:
        await AnswerServiceClient(provider=BrokenProvider()).ask("prompt", SYSTEM_INSTRUCTION)

    assert exc_info.value.message == SERVICE_FAILED_MESSAGE
    assert isinstance(exc_info.value.__cause__, RuntimeError)
