"""Shared test fixtures."""

import base64
from dataclasses import dataclass, field

import pytest

from landmark_guide.config import Settings
from landmark_guide.containers import AppContainer
from landmark_guide.domain.guide import SpeechPart, SpeechResponse
from landmark_guide.services.guide import (
    GuideConfig,
    GuideService,
    HistoryClient,
    LandmarkClient,
    NarrationClient,
)
from landmark_guide.services.sessions import InMemoryGuideSessionRepository

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"fake-png-body"
FAKE_AUDIO = b"fake-mp3-audio"


def audio_response(audio: bytes = FAKE_AUDIO) -> SpeechResponse:
    return SpeechResponse(
        parts=[
            SpeechPart(
                inline_data=base64.b64encode(audio).decode("utf-8"),
                mime_type="audio/mpeg",
            )
        ]
    )


@dataclass
class FakeLandmarkClient(LandmarkClient):
    """Fake identification client returning a fixed label."""

    label: str | None = "Eiffel Tower, Paris, France"
    error: Exception | None = None
    calls: list[dict[str, str]] = field(default_factory=list)

    async def identify(
        self, *, model: str, image_data_url: str, prompt: str
    ) -> str | None:
        self.calls.append(
            {"model": model, "image_data_url": image_data_url, "prompt": prompt}
        )
        if self.error is not None:
            raise self.error
        return self.label


@dataclass
class FakeHistoryClient(HistoryClient):
    """Fake history client that records prompts."""

    text: str | None = "Built for the 1889 World's Fair, the tower..."
    error: Exception | None = None
    prompts: list[str] = field(default_factory=list)
    grounding: list[bool] = field(default_factory=list)
    models: list[str] = field(default_factory=list)

    async def generate(
        self, *, model: str, prompt: str, search_grounding: bool
    ) -> str | None:
        self.prompts.append(prompt)
        self.grounding.append(search_grounding)
        self.models.append(model)
        if self.error is not None:
            raise self.error
        return self.text


@dataclass
class FakeNarrationClient(NarrationClient):
    """Fake narration client returning a fixed speech response."""

    response: SpeechResponse = field(default_factory=audio_response)
    error: Exception | None = None
    texts: list[str] = field(default_factory=list)
    voices: list[str] = field(default_factory=list)

    async def synthesize(
        self, *, model: str, text: str, voice: str, audio_format: str
    ) -> SpeechResponse:
        self.texts.append(text)
        self.voices.append(voice)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def settings() -> Settings:
    return Settings(openai_api_key="openai-key")


@pytest.fixture
def guide_config() -> GuideConfig:
    return GuideConfig(
        identify_model="vision-model",
        history_model="search-model",
        narration_model="tts-model",
        narration_voice="coral",
    )


@pytest.fixture
def landmark_client() -> FakeLandmarkClient:
    return FakeLandmarkClient()


@pytest.fixture
def history_client() -> FakeHistoryClient:
    return FakeHistoryClient()


@pytest.fixture
def narration_client() -> FakeNarrationClient:
    return FakeNarrationClient()


@pytest.fixture
def guide_service(
    landmark_client: FakeLandmarkClient,
    history_client: FakeHistoryClient,
    narration_client: FakeNarrationClient,
    guide_config: GuideConfig,
) -> GuideService:
    return GuideService(
        landmark_client=landmark_client,
        history_client=history_client,
        narration_client=narration_client,
        config=guide_config,
    )


@pytest.fixture
def container(settings: Settings, guide_service: GuideService) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        guide_service=guide_service,
        session_repository=InMemoryGuideSessionRepository(),
        close_resources=close_resources,
    )
