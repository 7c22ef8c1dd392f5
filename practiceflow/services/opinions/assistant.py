"""
Drafting assistant backed by a Pydantic AI agent.

Without an OpenAI key the assistant is unavailable and callers fall back to
deterministic output.
"""

from __future__ import annotations

import time
from typing import Optional

from pydantic_ai import Agent, ModelSettings
from pydantic_ai.models import Model
from pydantic_ai.models.openai import OpenAIResponsesModel
from pydantic_ai.providers.openai import OpenAIProvider

from practiceflow.core import monitoring
from practiceflow.core.errors import AIServiceError
from practiceflow.core.logging_config import get_logger
from practiceflow.server.core.config import OpenAIConfig, settings

logger = get_logger(__name__)

DRAFTING_PROMPT = (
    "You are an expert South African tax consultant drafting a formal tax opinion. "
    "Write in a professional register, reference the Income Tax Act where relevant "
    "and never invent case law or legislation; say so when you are uncertain."
)

CHAT_PROMPT = (
    "You are an expert South African tax consultant helping a colleague draft a tax opinion. "
    "Answer questions about tax law, discuss positions and interpretations, and suggest "
    "relevant provisions or precedents to consider. Do not make up case law or sections."
)

UNAVAILABLE_REPLY = (
    "The drafting assistant is not available right now. Your message has been saved to the "
    "conversation; you can keep working on the sections manually."
)


def build_model(config: OpenAIConfig) -> Optional[Model]:
    if not config.api_key:
        return None
    provider = OpenAIProvider(api_key=config.api_key, base_url=config.base_url)
    return OpenAIResponsesModel(config.model, provider=provider)


class DraftingAssistant:
    """Wraps one agent for section drafting and one for conversation."""

    def __init__(self, model: Optional[Model] = None, model_name: Optional[str] = None) -> None:
        self._model = model
        self._model_name = model_name or settings.openai.model
        self._drafting_agent: Optional[Agent] = None
        self._chat_agent: Optional[Agent] = None
        if model is not None:
            self._drafting_agent = Agent(
                model, system_prompt=DRAFTING_PROMPT, model_settings=ModelSettings(temperature=0.3)
            )
            self._chat_agent = Agent(model, system_prompt=CHAT_PROMPT, model_settings=ModelSettings(temperature=0.7))

    @classmethod
    def from_settings(cls) -> "DraftingAssistant":
        config = settings.openai
        return cls(build_model(config), config.model)

    @property
    def available(self) -> bool:
        return self._model is not None

    async def _run(self, agent: Optional[Agent], prompt: str, purpose: str) -> str:
        if agent is None:
            raise AIServiceError("No AI model is configured")
        logger.debug(f"Running {purpose} agent ({self._model_name}) with prompt length {len(prompt)}")
        start_time = time.time()
        try:
            result = await agent.run(prompt)
        except Exception as e:
            logger.error(f"AI {purpose} request failed: {e}", exc_info=True)
            raise AIServiceError(f"AI {purpose} request failed", details={"error": str(e)}) from e

        duration_ms = (time.time() - start_time) * 1000
        # A method on older pydantic-ai results, an attribute on newer ones
        usage = getattr(result, "usage", None)
        if callable(usage):
            usage = usage()
        logger.info(
            f"AI {purpose} request completed in {duration_ms:.0f}ms "
            f"(input_tokens={getattr(usage, 'input_tokens', None)}, "
            f"output_tokens={getattr(usage, 'output_tokens', None)})"
        )
        monitoring.log_ai_call(purpose, self._model_name, duration_ms, fallback=False)
        return str(result.output).strip()

    async def draft_section(self, prompt: str) -> str:
        return await self._run(self._drafting_agent, prompt, "drafting")

    async def reply(self, prompt: str) -> str:
        return await self._run(self._chat_agent, prompt, "chat")
