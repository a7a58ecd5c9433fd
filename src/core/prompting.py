from typing import Sequence

from langchain_core.prompts import PromptTemplate

from src.core.errors import NO_DOCUMENTS_MESSAGE, ValidationError
from src.core.models import UploadedDocument

NOT_FOUND_ANSWER = "This information doesn’t appear in the provided document."

SYSTEM_INSTRUCTION = f"""You are an intelligent assistant built to analyze and answer questions about uploaded documents. Your primary goal is to provide clear, accurate, and concise answers based ONLY on the text from the documents provided.

Answering Rules:
1.  **Strictly Grounded:** Base your entire response strictly on the content of the provided document(s). Do not use any external knowledge.
2.  **Cite Sources:** If possible, include a brief reference to where the information was found (e.g., section name, document name, or a key phrase). Format it at the end of your main answer, starting with "Source:".
3.  **Handle Uncertainty:** If the answer to a question cannot be found in the document, you MUST respond with the exact phrase: "{NOT_FOUND_ANSWER}"
4.  **Summaries:** When asked for a summary, provide it in a simple, factual, bullet-point list.
5.  **Clarity and Conciseness:** Keep your answers direct and to the point.
"""

SUGGESTIONS = (
    "Summarize this document.",
    "Generate 3 question-answer pairs from this file.",
    "Explain the main terms used in these documents.",
    "Compare the key points of the uploaded files.",
)

DOCUMENT_BOUNDARY = "---"

_USER_PROMPT = PromptTemplate.from_template(
    """CONTEXT FROM DOCUMENTS:
{context}

Based on the document(s) provided, answer the following question.

USER QUESTION:
{question}
"""
)


def render_document(document: UploadedDocument) -> str:
    return (
        f"{DOCUMENT_BOUNDARY}\n"
        f"Document: {document.name}\n"
        f"Content:\n"
        f"{document.text}\n"
        f"{DOCUMENT_BOUNDARY}"
    )


def compose(question: str, documents: Sequence[UploadedDocument]) -> str:
    """
    Builds the grounded prompt: one delimited block per document, in order,
    then the instruction frame and the literal question.
    """
    if not documents:
        raise ValidationError(NO_DOCUMENTS_MESSAGE)

    context = "\n\n".join(render_document(doc) for doc in documents)
    return _USER_PROMPT.format(context=context, question=question)
