"""Domain models for a landmark guide run."""

from dataclasses import dataclass, field
from enum import StrEnum

from landmark_guide.domain.errors import MalformedInputError


@dataclass(frozen=True)
class ImagePayload:
    """Encoded image submitted by the user."""

    data: bytes
    content_type: str

    def __post_init__(self) -> None:
        if not self.data:
            raise MalformedInputError("Image data is empty")
        if not self.content_type.startswith("image/"):
            raise MalformedInputError(f"Unsupported content type: {self.content_type}")


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of one successful pipeline run."""

    landmark_label: str
    history_text: str
    narration_audio: bytes | None = None

    @property
    def has_audio(self) -> bool:
        return self.narration_audio is not None


@dataclass(frozen=True)
class SpeechPart:
    """Single part of a speech generation response."""

    text: str | None = None
    inline_data: str | None = None
    mime_type: str | None = None


@dataclass(frozen=True)
class SpeechResponse:
    """Ordered parts returned by the narration call."""

    parts: list[SpeechPart] = field(default_factory=list)

    def first_inline_data(self) -> SpeechPart | None:
        """Return the first part if it carries inline data.

        Audio in any later position is ignored.
        """
        if not self.parts:
            return None
        first = self.parts[0]
        if not first.inline_data:
            return None
        return first


class GuideState(StrEnum):
    """States of the guide presentation flow."""

    IDLE = "idle"
    ANALYZING = "analyzing"
    RESULT = "result"
