"""Language model client using the Anthropic Messages API."""

from typing import AsyncIterator, TypeVar

import anthropic
from pydantic import BaseModel

from cryonexus.config import Settings
from cryonexus.logger import get_logger

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class AgentResponseError(Exception):
    """The model did not return the expected structured tool call."""


class LLMClient:
    """Structured-object generation and text streaming on top of Claude."""

    def __init__(self, settings: Settings):
        self.client = anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key)
        self.max_tokens = settings.max_tokens
        logger.info("LLMClient initialized")

    @staticmethod
    def build_tool(name: str, description: str, schema: type[BaseModel]) -> dict:
        """Tool definition whose input schema is the model's JSON schema."""
        return {
            "name": name,
            "description": description,
            "input_schema": schema.model_json_schema(),
        }

    async def generate_object(
        self,
        *,
        model: str,
        system: str,
        prompt: str,
        schema: type[ModelT],
        tool_name: str,
        tool_description: str = "",
        temperature: float = 0.3,
        max_tokens: int | None = None,
    ) -> ModelT:
        """Generate an object matching `schema` by forcing a single tool call."""
        logger.debug(f"Generating {schema.__name__} with {model} via tool '{tool_name}'")
        tool = self.build_tool(
            tool_name, tool_description or f"Return a {schema.__name__}", schema
        )

        response = await self.client.messages.create(
            model=model,
            max_tokens=max_tokens or self.max_tokens,
            system=system,
            temperature=temperature,
            tools=[tool],
            tool_choice={"type": "tool", "name": tool_name},
            messages=[{"role": "user", "content": prompt}],
        )
        logger.debug(f"Claude response received, usage: {response.usage}")

        for block in response.content:
            if block.type == "tool_use" and block.name == tool_name:
                return schema.model_validate(block.input)

        logger.error(f"No '{tool_name}' tool use found in response")
        raise AgentResponseError(f"No '{tool_name}' tool use found in response")

    async def stream_text(
        self,
        *,
        model: str,
        system: str,
        prompt: str,
        temperature: float = 0.4,
        max_tokens: int | None = None,
    ) -> AsyncIterator[str]:
        """Yield text deltas as the model generates them."""
        logger.debug(f"Streaming text from {model}")
        async with self.client.messages.stream(
            model=model,
            max_tokens=max_tokens or self.max_tokens,
            system=system,
            temperature=temperature,
            messages=[{"role": "user", "content": prompt}],
        ) as stream:
            async for text in stream.text_stream:
                yield text

    async def aclose(self):
        await self.client.close()
