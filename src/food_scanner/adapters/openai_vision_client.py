"""OpenAI chat completions client for nutrition label extraction."""

from dataclasses import dataclass

from openai import APIError, APITimeoutError, AsyncOpenAI

from food_scanner.errors import NetworkTimeoutError, UpstreamError
from food_scanner.services.vision import VisionClient


@dataclass
class OpenAIVisionClient(VisionClient):
    """Vision client backed by the OpenAI chat completions API."""

    client: AsyncOpenAI
    temperature: float = 0.1

    @classmethod
    def create(cls, api_key: str, timeout_seconds: float = 30.0) -> "OpenAIVisionClient":
        """Create an OpenAI vision client with a request timeout."""
        return cls(client=AsyncOpenAI(api_key=api_key, timeout=timeout_seconds))

    async def complete(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        image_data_url: str,
        max_completion_tokens: int,
    ) -> str:
        """Send the label image and return the model's text output."""
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": user_prompt},
                            {
                                "type": "image_url",
                                "image_url": {"url": image_data_url, "detail": "high"},
                            },
                        ],
                    },
                ],
                max_completion_tokens=max_completion_tokens,
                temperature=self.temperature,
            )
        except APITimeoutError as exc:
            raise NetworkTimeoutError("Vision model request timed out") from exc
        except APIError as exc:
            raise UpstreamError(f"Vision model request failed: {exc}") from exc
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
