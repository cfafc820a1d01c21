"""Language model completion service."""

from abc import ABC, abstractmethod

import httpx

from addrintel.config.settings import IntelConfig
from addrintel.errors import ExternalServiceError

SYSTEM_PROMPT = (
    "You are an expert blockchain analyst specializing in wallet behavior analysis "
    "and market insights. Provide detailed, actionable insights based on the data "
    "provided."
)


class LLMService(ABC):
    """Abstract base class for text completion."""

    @abstractmethod
    async def complete(self, prompt: str, json_mode: bool = False) -> str:
        """Complete a prompt.

        Args:
            prompt: User prompt
            json_mode: Ask the model to answer with a JSON object

        Returns:
            Raw completion text

        Raises:
            ExternalServiceError: If the model cannot be reached
        """
        pass


class OpenAIChatService(LLMService):
    """Calls an OpenAI-compatible chat completions endpoint."""

    def __init__(self, config: IntelConfig | None = None) -> None:
        self.config = config or IntelConfig()
        if not self.config.openai_api_key:
            raise ExternalServiceError("llm", "No API key configured")

    async def complete(self, prompt: str, json_mode: bool = False) -> str:
        payload: dict = {
            "model": self.config.llm_model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0.3,
            "max_tokens": 2000,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        try:
            async with httpx.AsyncClient(timeout=self.config.llm_timeout_seconds) as client:
                resp = await client.post(
                    f"{self.config.llm_base_url.rstrip('/')}/chat/completions",
                    headers={
                        "Authorization": f"Bearer {self.config.openai_api_key}",
                        "content-type": "application/json",
                    },
                    json=payload,
                )
                resp.raise_for_status()
                body = resp.json()
        except httpx.HTTPError as e:
            raise ExternalServiceError("llm", str(e)) from e

        try:
            return body["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise ExternalServiceError("llm", f"Unexpected response shape: {e}") from e


class StaticLLMService(LLMService):
    """Returns a canned reply and records the prompts it was given."""

    def __init__(self, reply: str = "{}") -> None:
        self.reply = reply
        self.prompts: list[str] = []

    async def complete(self, prompt: str, json_mode: bool = False) -> str:
        self.prompts.append(prompt)
        return self.reply


class UnavailableLLMService(LLMService):
    """Always fails, so callers take their fallback path."""

    async def complete(self, prompt: str, json_mode: bool = False) -> str:
        raise ExternalServiceError("llm", "No language model configured")
