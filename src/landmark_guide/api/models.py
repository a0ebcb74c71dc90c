"""Pydantic models for the HTTP API."""

import base64
from uuid import UUID

from pydantic import BaseModel

from landmark_guide.domain.guide import AnalysisResult, GuideState
from landmark_guide.services.sessions import GuideSession


class AnalyzeDataUrlRequest(BaseModel):
    """Image submitted as a base64 data URL."""

    image: str


class AnalysisResponse(BaseModel):
    """Analysis result as returned to clients."""

    landmark: str
    history: str
    audio_base64: str | None = None
    audio_mime_type: str | None = None
    audio_status: str

    @classmethod
    def from_result(
        cls, result: AnalysisResult, audio_mime_type: str
    ) -> "AnalysisResponse":
        audio = result.narration_audio
        return cls(
            landmark=result.landmark_label,
            history=result.history_text,
            audio_base64=(
                base64.b64encode(audio).decode("utf-8") if audio is not None else None
            ),
            audio_mime_type=audio_mime_type if audio is not None else None,
            audio_status="ready" if audio is not None else "unavailable",
        )


class SessionResult(BaseModel):
    """Result shown on a session's result screen."""

    landmark: str
    history: str
    audio_status: str
    audio_url: str | None = None


class SessionResponse(BaseModel):
    """Current state of a guide session."""

    id: UUID
    state: GuideState
    error: str | None = None
    result: SessionResult | None = None

    @classmethod
    def from_session(cls, session: GuideSession) -> "SessionResponse":
        result = None
        if session.result is not None:
            result = SessionResult(
                landmark=session.result.landmark_label,
                history=session.result.history_text,
                audio_status=session.audio_status or "unavailable",
                audio_url=(
                    f"/sessions/{session.id}/audio"
                    if session.playback is not None
                    else None
                ),
            )
        return cls(
            id=session.id,
            state=session.state,
            error=session.error,
            result=result,
        )
