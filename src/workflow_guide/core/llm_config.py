"""Chat model settings for the optional step advisor.

Settings come from the environment (or a local .env file, never committed).
``WORKFLOW_GUIDE_ADVISOR_MODEL`` picks the advisor's model independently of
``OPENAI_MODEL``; ``OPENAI_BASE_URL`` points the client at a compatible proxy.
"""

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv
from langchain_openai import ChatOpenAI

load_dotenv()

DEFAULT_ADVISOR_MODEL = "gpt-4o-mini"


@dataclass
class LLMConfig:
    """Connection and sampling settings for the advisor model."""

    openai_api_key: str | None = None
    openai_model: str = DEFAULT_ADVISOR_MODEL
    base_url: str | None = None
    temperature: float = 0.2
    max_tokens: int = 2048

    max_retries: int = 2
    request_timeout: int = 30

    @classmethod
    def from_env(cls) -> "LLMConfig":
        model = os.getenv("WORKFLOW_GUIDE_ADVISOR_MODEL") or os.getenv("OPENAI_MODEL") or DEFAULT_ADVISOR_MODEL
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            openai_model=model,
            base_url=os.getenv("OPENAI_BASE_URL") or None,
            temperature=float(os.getenv("OPENAI_TEMPERATURE", "0.2")),
            max_tokens=int(os.getenv("OPENAI_MAX_TOKENS", "2048")),
            max_retries=int(os.getenv("OPENAI_MAX_RETRIES", "2")),
            request_timeout=int(os.getenv("OPENAI_TIMEOUT", "30")),
        )

    def validate(self) -> bool:
        """An sk- key is required to reach the API."""
        return bool(self.openai_api_key) and self.openai_api_key.startswith("sk-")

    def describe(self) -> str:
        target = f" via {self.base_url}" if self.base_url else ""
        return f"{self.openai_model}{target}"


@lru_cache(maxsize=1)
def get_llm_config() -> LLMConfig:
    return LLMConfig.from_env()


def create_chat_model(config: LLMConfig | None = None, model: str | None = None) -> ChatOpenAI:
    """Build the advisor's chat model.

    Raises:
        ValueError: If no usable API key is configured
    """
    config = config or get_llm_config()
    if not config.validate():
        raise ValueError(
            "Advisor needs an OpenAI API key. "
            "Set OPENAI_API_KEY in the environment or a .env file."
        )

    return ChatOpenAI(
        api_key=config.openai_api_key,
        model=model or config.openai_model,
        base_url=config.base_url,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        max_retries=config.max_retries,
        timeout=config.request_timeout,
    )


def check_llm_available(config: LLMConfig | None = None) -> tuple[bool, str]:
    """Report whether the advisor can be enabled.

    Returns:
        Tuple of (is_available, message)
    """
    config = config or get_llm_config()

    if not config.openai_api_key:
        return False, "OPENAI_API_KEY not set"
    if not config.validate():
        return False, "Invalid API key format"
    return True, f"OpenAI configured with model {config.describe()}"
