"""OpenAI-backed clients for the landmark guide pipeline."""

import base64
from dataclasses import dataclass

import httpx
from openai import AsyncOpenAI

from landmark_guide.domain.guide import SpeechPart, SpeechResponse
from landmark_guide.services.guide import (
    HistoryClient,
    LandmarkClient,
    NarrationClient,
    audio_mime_type,
)


def create_openai_client(
    api_key: str, timeout_seconds: float | None = None
) -> AsyncOpenAI:
    """Create an async OpenAI client, optionally with a request timeout."""
    if timeout_seconds is None:
        return AsyncOpenAI(api_key=api_key)
    return AsyncOpenAI(api_key=api_key, timeout=httpx.Timeout(timeout_seconds))


@dataclass
class OpenAILandmarkClient(LandmarkClient):
    """Landmark identification backed by the OpenAI Responses API."""

    client: AsyncOpenAI

    async def identify(
        self, *, model: str, image_data_url: str, prompt: str
    ) -> str | None:
        """Send the image and instruction, returning the model's text."""
        response = await self.client.responses.create(
            model=model,
            input=[
                {
                    "role": "user",
                    "content": [
                        {"type": "input_image", "image_url": image_data_url},
                        {"type": "input_text", "text": prompt},
                    ],
                }
            ],
        )
        return response.output_text


@dataclass
class OpenAIHistoryClient(HistoryClient):
    """History generation backed by the Responses API and web search."""

    client: AsyncOpenAI

    async def generate(
        self, *, model: str, prompt: str, search_grounding: bool
    ) -> str | None:
        """Generate text, letting the model search the web when enabled."""
        request_payload: dict[str, object] = {"model": model, "input": prompt}
        if search_grounding:
            request_payload["tools"] = [{"type": "web_search"}]
        response = await self.client.responses.create(**request_payload)
        return response.output_text


@dataclass
class OpenAINarrationClient(NarrationClient):
    """Narration backed by the OpenAI speech endpoint."""

    client: AsyncOpenAI

    async def synthesize(
        self, *, model: str, text: str, voice: str, audio_format: str
    ) -> SpeechResponse:
        """Generate speech and wrap the audio as a single inline part."""
        response = await self.client.audio.speech.create(
            model=model,
            voice=voice,
            input=text,
            response_format=audio_format,
        )
        audio = response.content
        if not audio:
            return SpeechResponse(parts=[])
        return SpeechResponse(
            parts=[
                SpeechPart(
                    inline_data=base64.b64encode(audio).decode("utf-8"),
                    mime_type=audio_mime_type(audio_format),
                )
            ]
        )
