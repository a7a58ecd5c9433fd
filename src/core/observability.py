import functools
from typing import Callable

import structlog

# Initialize logger
logger = structlog.get_logger(__name__)


def estimate_tokens(text: str) -> int:
    # Rule of thumb: 1 token ≈ 4 characters
    return len(text) // 4


def trace_execution(func: Callable) -> Callable:
    """
    Async decorator for `ask(prompt, system_instruction)` style calls.
    Logs estimated token usage and a short evaluation snippet of the answer.
    """

    @functools.wraps(func)
    async def wrapper(self, prompt: str, system_instruction: str, *args, **kwargs):
        answer = await func(self, prompt, system_instruction, *args, **kwargs)

        try:
            input_tokens = estimate_tokens(prompt) + estimate_tokens(system_instruction)
            output_tokens = estimate_tokens(answer)

            logger.info(
                "llm_transaction",
                input_tokens_est=input_tokens,
                output_tokens_est=output_tokens,
                total_tokens_est=input_tokens + output_tokens,
                eval_data={
                    "prompt_size_chars": len(prompt),
                    "answer_snippet": answer[:100],
                },
            )

        except Exception as e:
            # Observability should never crash the app
            logger.warn("observability_failed", error=str(e))

        return answer

    return wrapper
