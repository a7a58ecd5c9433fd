# tests/conftest.py
import asyncio
import os
from typing import List

# Keep the app offline unless a test wires a provider explicitly
os.environ["LLM_PROVIDER"] = "mock"

import pytest
from fastapi.testclient import TestClient
from langchain_core.messages import AIMessage
from langchain_core.runnables import RunnableLambda

from src.api.chat import app
from src.core.answer_client import AnswerServiceClient
from src.core.assistant import DocumentAssistant
from src.core.ingestion import DocumentExtractor
from src.core.models import SourceFile


# --- Helper Classes ---
class FakeProvider:
    """
    Provider whose chat model records every call instead of hitting an API.
    `calls` holds the message lists the model received.
    """

    def __init__(self, answer: str = "The sky is blue.", error: Exception | None = None, delay: float = 0.0):
        self.answer = answer
        self.error = error
        self.delay = delay
        self.calls: List[list] = []

    def get_chat_model(self):
        async def fake_llm(messages):
            self.calls.append(messages)
            await asyncio.sleep(self.delay)
            if self.error:
                raise self.error
            return AIMessage(content=self.answer)

        # RunnableLambda so LangChain's pipe '|' operator works
        return RunnableLambda(fake_llm)


def build_pdf(page_texts: List[str]) -> bytes:
    """Builds a minimal, valid PDF with one line of Helvetica text per page."""
    page_count = len(page_texts)
    kids = " ".join(f"{4 + 2 * i} 0 R" for i in range(page_count))

    objects = [
        "<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {page_count} >>",
        "<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    for i, text in enumerate(page_texts):
        stream = f"BT /F1 12 Tf 72 720 Td ({text}) Tj ET"
        objects.append(
            "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            f"/Resources << /Font << /F1 3 0 R >> >> /Contents {5 + 2 * i} 0 R >>"
        )
        objects.append(f"<< /Length {len(stream)} >>\nstream\n{stream}\nendstream")

    out = b"%PDF-1.4\n"
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n{body}\nendobj\n".encode("latin-1")

    xref_at = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    out += (
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n"
        f"startxref\n{xref_at}\n%%EOF\n"
    ).encode()
    return out


# --- Fixtures ---


@pytest.fixture
def client():
    """Returns a FastAPI TestClient."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_provider():
    return FakeProvider


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def assistant(fake_provider):
    return DocumentAssistant(
        extractor=DocumentExtractor(),
        client=AnswerServiceClient(provider=fake_provider),
    )


@pytest.fixture
def notes_file():
    return SourceFile(name="notes.txt", content=b"The sky is blue.", media_type="text/plain")


@pytest.fixture
def sample_pdf():
    return build_pdf(["Page one text", "Page two text"])
