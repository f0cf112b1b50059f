"""Text generation for trip and tour descriptions."""

from dataclasses import dataclass
from typing import Literal, Protocol

DescriptionKind = Literal["trip", "tour"]

_MAX_CONTEXT_CHARS = 2000


class DescriptionClient(Protocol):
    """Interface for LLM text generation."""

    async def generate(
        self, *, model: str, instructions: str, prompt: str, max_output_tokens: int
    ) -> str:
        """Return generated text for the prompt."""


@dataclass
class DescriptionService:
    """Builds prompts for marketing copy and validates the reply."""

    client: DescriptionClient
    model: str
    max_output_tokens: int = 500

    async def generate(
        self,
        kind: DescriptionKind,
        name: str,
        destination: str | None = None,
        context: str | None = None,
    ) -> str:
        """Generate a short description for a trip or a tour."""
        subject = "a viagem" if kind == "trip" else "o passeio"
        lines = [f"Escreva uma descrição atraente para {subject} '{name.strip()}'."]
        if destination:
            lines.append(f"Destino: {destination.strip()}.")
        if context:
            extra = context.strip()[:_MAX_CONTEXT_CHARS]
            lines.append(f"Informações adicionais: {extra}")
        text = await self.client.generate(
            model=self.model,
            instructions=(
                "Você é um redator de uma agência de turismo. "
                "Responda em português do Brasil, em no máximo dois parágrafos, "
                "sem títulos nem listas."
            ),
            prompt="\n".join(lines),
            max_output_tokens=self.max_output_tokens,
        )
        cleaned = text.strip()
        if not cleaned:
            raise RuntimeError("Description generator returned an empty response")
        return cleaned
