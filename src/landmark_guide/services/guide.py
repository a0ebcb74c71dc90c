"""Landmark guide pipeline: identify, retrieve history, narrate."""

import base64
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol, TypeVar

from landmark_guide.domain.errors import FatalStageError
from landmark_guide.domain.guide import AnalysisResult, ImagePayload, SpeechResponse
from landmark_guide.services.images import to_data_url

logger = logging.getLogger(__name__)

T = TypeVar("T")

IDENTIFY_PROMPT = (
    "Identify the main landmark, building, or point of interest in this photo. "
    "Return ONLY the name of the landmark and the city/country it is in. "
    "If there is no clear landmark, describe the scene briefly."
)
HISTORY_PROMPT_TEMPLATE = (
    "You are an engaging tour guide. "
    "Tell me the history and interesting facts about {landmark}. "
    "Keep it engaging, informative, and concise (around 100-150 words)."
)
UNKNOWN_LANDMARK = "Unknown Location"
HISTORY_UNAVAILABLE = "History not available."


class LandmarkClient(Protocol):
    """Interface for multimodal landmark identification."""

    async def identify(
        self, *, model: str, image_data_url: str, prompt: str
    ) -> str | None:
        """Return a short label for the landmark in the image."""


class HistoryClient(Protocol):
    """Interface for grounded history generation."""

    async def generate(
        self, *, model: str, prompt: str, search_grounding: bool
    ) -> str | None:
        """Return generated text for the prompt."""


class NarrationClient(Protocol):
    """Interface for speech generation."""

    async def synthesize(
        self, *, model: str, text: str, voice: str, audio_format: str
    ) -> SpeechResponse:
        """Return a speech response for the given text."""


@dataclass(frozen=True)
class GuideConfig:
    """Model and voice selection for a guide pipeline."""

    identify_model: str
    history_model: str
    narration_model: str
    narration_voice: str = "coral"
    narration_format: str = "mp3"


def build_history_prompt(landmark_label: str) -> str:
    """Interpolate a landmark label into the tour guide prompt."""
    return HISTORY_PROMPT_TEMPLATE.format(landmark=landmark_label)


async def recover_to_none(
    operation: Callable[[], Awaitable[T]], *, description: str
) -> T | None:
    """Await an optional operation, turning any failure into ``None``."""
    try:
        return await operation()
    except Exception:
        logger.exception("%s failed; continuing without it", description)
        return None


@dataclass
class GuideService:
    """Runs the three-stage landmark guide pipeline."""

    landmark_client: LandmarkClient
    history_client: HistoryClient
    narration_client: NarrationClient
    config: GuideConfig

    async def analyze(self, image: ImagePayload) -> AnalysisResult:
        """Identify the landmark in an image, fetch its history and narrate it.

        Identification and history failures raise ``FatalStageError``. A
        narration failure only leaves the result without audio.
        """
        started = time.perf_counter()
        logger.info(
            "Identifying landmark (%d bytes, %s)", len(image.data), image.content_type
        )
        landmark_label = await self.identify(image)
        logger.info(
            "Identified landmark %r in %.2fs",
            landmark_label,
            time.perf_counter() - started,
        )
        logger.info("Retrieving history for %r", landmark_label)
        history_text = await self.retrieve_history(landmark_label)
        logger.info(
            "Retrieved history (%d chars) in %.2fs",
            len(history_text),
            time.perf_counter() - started,
        )
        logger.info("Synthesizing narration")
        narration_audio = await recover_to_none(
            lambda: self.narrate(history_text), description="Narration synthesis"
        )
        logger.info(
            "Pipeline finished in %.2fs (audio %s)",
            time.perf_counter() - started,
            "ready" if narration_audio is not None else "unavailable",
        )
        return AnalysisResult(
            landmark_label=landmark_label,
            history_text=history_text,
            narration_audio=narration_audio,
        )

    async def identify(self, image: ImagePayload) -> str:
        """Return the landmark label, or the unknown-location fallback."""
        try:
            raw = await self.landmark_client.identify(
                model=self.config.identify_model,
                image_data_url=to_data_url(image),
                prompt=IDENTIFY_PROMPT,
            )
        except Exception as exc:
            logger.exception("Landmark identification failed")
            raise FatalStageError("identify", _failure_message(exc)) from exc
        return _clean(raw) or UNKNOWN_LANDMARK

    async def retrieve_history(self, landmark_label: str) -> str:
        """Return a grounded history narrative for the landmark."""
        try:
            raw = await self.history_client.generate(
                model=self.config.history_model,
                prompt=build_history_prompt(landmark_label),
                search_grounding=True,
            )
        except Exception as exc:
            logger.exception("History retrieval failed for %r", landmark_label)
            raise FatalStageError("history", _failure_message(exc)) from exc
        return _clean(raw) or HISTORY_UNAVAILABLE

    async def narrate(self, history_text: str) -> bytes | None:
        """Synthesize narration and return the leading audio part, if any."""
        response = await self.narration_client.synthesize(
            model=self.config.narration_model,
            text=history_text,
            voice=self.config.narration_voice,
            audio_format=self.config.narration_format,
        )
        part = response.first_inline_data()
        if part is None:
            logger.warning("Narration response had no leading audio part")
            return None
        return base64.b64decode(part.inline_data, validate=True)


def _clean(raw: str | None) -> str:
    return (raw or "").strip()


def _failure_message(exc: Exception) -> str:
    return str(exc) or "Failed to analyze photo"


_AUDIO_MIME_TYPES = {
    "mp3": "audio/mpeg",
    "opus": "audio/ogg",
    "aac": "audio/aac",
    "flac": "audio/flac",
    "wav": "audio/wav",
    "pcm": "audio/L16",
}


def audio_mime_type(audio_format: str) -> str:
    """Return the MIME type for a narration audio format."""
    return _AUDIO_MIME_TYPES.get(audio_format.lower(), "application/octet-stream")
