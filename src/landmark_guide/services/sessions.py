"""Guide session state machine: idle, analyzing, result."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol
from uuid import UUID, uuid4

from landmark_guide.domain.errors import (
    MalformedInputError,
    PipelineError,
    SessionBusyError,
)
from landmark_guide.domain.guide import AnalysisResult, GuideState, ImagePayload
from landmark_guide.services.guide import GuideService

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class NarrationPlayback:
    """Exclusively owned handle on a session's narration audio."""

    audio: bytes
    mime_type: str
    released: bool = False

    def release(self) -> None:
        """Give up the audio handle."""
        self.released = True


@dataclass
class GuideSession:
    """Presentation state for one user's guide flow.

    Every ``begin`` and ``reset`` advances the run token. Outcomes reported
    with an older token belong to an abandoned run and are dropped.
    """

    id: UUID
    state: GuideState = GuideState.IDLE
    error: str | None = None
    result: AnalysisResult | None = None
    playback: NarrationPlayback | None = None
    run_token: int = 0

    @property
    def audio_status(self) -> str | None:
        """Return ``ready``, ``unavailable`` or ``None`` without a result."""
        if self.result is None:
            return None
        return "ready" if self.result.has_audio else "unavailable"

    def begin(self) -> int:
        """Move from idle or result into analyzing and return the run token."""
        if self.state is GuideState.ANALYZING:
            raise SessionBusyError(f"Session {self.id} is already analyzing")
        self._release_playback()
        self.result = None
        self.error = None
        self.state = GuideState.ANALYZING
        self.run_token += 1
        return self.run_token

    def complete(
        self, result: AnalysisResult, audio_mime_type: str, token: int | None = None
    ) -> None:
        """Store a finished result and acquire its audio handle."""
        if self._is_stale(token):
            return
        self._release_playback()
        self.result = result
        if result.narration_audio is not None:
            self.playback = NarrationPlayback(
                audio=result.narration_audio, mime_type=audio_mime_type
            )
        self.state = GuideState.RESULT

    def fail(self, message: str, token: int | None = None) -> None:
        """Return to idle with a user-visible error."""
        if self._is_stale(token):
            return
        self.result = None
        self.error = message
        self.state = GuideState.IDLE

    def reset(self) -> None:
        """Return to idle, clearing the error and the result.

        A run still in flight is abandoned.
        """
        self._release_playback()
        self.result = None
        self.error = None
        self.state = GuideState.IDLE
        self.run_token += 1

    async def run(
        self,
        service: GuideService,
        load_image: Callable[[], ImagePayload],
        audio_mime_type: str,
    ) -> GuideState:
        """Drive one pipeline run through the state machine."""
        token = self.begin()
        try:
            image = load_image()
            result = await service.analyze(image)
        except (MalformedInputError, PipelineError) as exc:
            logger.warning("Session %s failed: %s", self.id, exc)
            self.fail(str(exc) or "Failed to analyze photo", token)
        except Exception:
            self.fail("Failed to analyze photo", token)
            raise
        else:
            self.complete(result, audio_mime_type, token)
        return self.state

    def _is_stale(self, token: int | None) -> bool:
        if token is None or token == self.run_token:
            return False
        logger.info("Session %s dropped the outcome of an abandoned run", self.id)
        return True

    def _release_playback(self) -> None:
        if self.playback is not None:
            self.playback.release()
            self.playback = None


class GuideSessionRepository(Protocol):
    """Storage interface for guide sessions."""

    def create_session(self) -> GuideSession:
        """Create a new idle session."""

    def get_session(self, session_id: UUID) -> GuideSession | None:
        """Return a session by id, if present."""

    def delete_session(self, session_id: UUID) -> bool:
        """Reset and remove a session; return whether it existed."""


@dataclass
class InMemoryGuideSessionRepository(GuideSessionRepository):
    """Process-local session storage with idle expiry."""

    ttl_seconds: int = 3600
    clock: Callable[[], datetime] = _utcnow
    sessions: dict[UUID, GuideSession] = field(default_factory=dict)
    _last_seen: dict[UUID, datetime] = field(default_factory=dict, repr=False)

    def create_session(self) -> GuideSession:
        self.evict_expired()
        session = GuideSession(id=uuid4())
        self.sessions[session.id] = session
        self._last_seen[session.id] = self.clock()
        return session

    def get_session(self, session_id: UUID) -> GuideSession | None:
        self.evict_expired()
        session = self.sessions.get(session_id)
        if session is not None:
            self._last_seen[session_id] = self.clock()
        return session

    def delete_session(self, session_id: UUID) -> bool:
        session = self.sessions.pop(session_id, None)
        self._last_seen.pop(session_id, None)
        if session is None:
            return False
        session.reset()
        return True

    def evict_expired(self) -> int:
        """Drop sessions untouched for longer than the TTL; return the count."""
        cutoff = self.clock() - timedelta(seconds=self.ttl_seconds)
        expired = [
            session_id
            for session_id, seen in self._last_seen.items()
            if seen <= cutoff
            and self.sessions[session_id].state is not GuideState.ANALYZING
        ]
        for session_id in expired:
            self.delete_session(session_id)
        if expired:
            logger.info("Evicted %d expired guide sessions", len(expired))
        return len(expired)
