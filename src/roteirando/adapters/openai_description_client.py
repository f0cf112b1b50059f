"""OpenAI Responses API client for description generation."""

from dataclasses import dataclass

from openai import AsyncOpenAI

from roteirando.services.descriptions import DescriptionClient


@dataclass
class OpenAIDescriptionClient(DescriptionClient):
    """Description client backed by OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAIDescriptionClient":
        """Create an OpenAI description client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

    async def generate(
        self, *, model: str, instructions: str, prompt: str, max_output_tokens: int
    ) -> str:
        """Call OpenAI Responses API and return the plain output text."""
        response = await self.client.responses.create(
            model=model,
            instructions=instructions,
            input=prompt,
            max_output_tokens=max_output_tokens,
            store=False,
        )
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return output_text

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.close()
