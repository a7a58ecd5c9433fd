from enum import Enum
import logging
from typing import List

import structlog
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import AliasChoices, Field


class LLMProviderType(str, Enum):
    OPENAI = "openai"
    GEMINI = "gemini"
    OLLAMA = "ollama"
    MOCK = "mock"


class Settings(BaseSettings):
    # App Config
    APP_ENV: str = "development"
    APP_API_URL: str = "http://localhost:8000"
    LOG_LEVEL: str = "INFO"

    # LLM Configuration
    LLM_PROVIDER: LLMProviderType = Field(default=LLMProviderType.GEMINI)

    # API_KEY is the name older deployments export
    GEMINI_API_KEY: str | None = Field(
        default=None, validation_alias=AliasChoices("GEMINI_API_KEY", "API_KEY")
    )
    OPENAI_API_KEY: str | None = None

    # Model Specifics
    GEMINI_MODEL: str = "gemini-2.5-flash"
    OPENAI_MODEL: str = "gpt-4o-mini"
    OLLAMA_MODEL: str = "llama3"
    OLLAMA_BASE_URL: str = "http://localhost:11434"
    LLM_TEMPERATURE: float = 0.2

    # Document Handling
    TEXT_ENCODING: str = "utf-8"
    ALLOWED_EXTENSIONS: str = ".txt,.md,.json,.csv,.pdf"

    model_config = SettingsConfigDict(env_file=".env.local", extra="ignore")

    @property
    def allowed_extensions(self) -> List[str]:
        """Upload allow-list as normalized, dot-prefixed, lowercase suffixes."""
        exts = []
        for raw in self.ALLOWED_EXTENSIONS.split(","):
            ext = raw.strip().lower()
            if not ext:
                continue
            exts.append(ext if ext.startswith(".") else f".{ext}")
        return exts


# Singleton instance
settings = Settings()


# Logging
def configure_logging():
    # Processors that are common to both JSON and Console logging
    processors = [
        structlog.contextvars.merge_contextvars,  # session_id bound in the API
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.CallsiteParameterAdder(
            {
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            }
        ),
        structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.LOG_LEVEL.upper())
        ),
        cache_logger_on_first_use=True,
    )


configure_logging()
