"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import FastAPI, File, HTTPException, Request, Response, UploadFile, status
from fastapi.responses import HTMLResponse, JSONResponse

from landmark_guide.api.models import (
    AnalysisResponse,
    AnalyzeDataUrlRequest,
    SessionResponse,
)
from landmark_guide.api.page import GUIDE_PAGE_HTML
from landmark_guide.app_logging import configure_logging
from landmark_guide.containers import AppContainer
from landmark_guide.domain.errors import (
    FatalStageError,
    MalformedInputError,
    PipelineError,
    SessionBusyError,
)
from landmark_guide.services.guide import audio_mime_type
from landmark_guide.services.images import payload_from_data_url, payload_from_upload
from landmark_guide.services.sessions import GuideSession


def create_app(container: AppContainer) -> FastAPI:  # noqa: C901
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)
    narration_mime_type = audio_mime_type(container.settings.narration_format)
    max_upload_bytes = container.settings.max_upload_bytes

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(MalformedInputError)
    async def malformed_input(
        request: Request, exc: MalformedInputError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)}
        )

    @app.exception_handler(PipelineError)
    async def pipeline_failed(request: Request, exc: PipelineError) -> JSONResponse:
        content: dict[str, object] = {"detail": str(exc)}
        if isinstance(exc, FatalStageError):
            content["stage"] = exc.stage
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content=content)

    @app.exception_handler(SessionBusyError)
    async def session_busy(request: Request, exc: SessionBusyError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)}
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/", response_class=HTMLResponse)
    async def guide_page() -> HTMLResponse:
        """Single-page UI driving the session endpoints."""
        return HTMLResponse(GUIDE_PAGE_HTML)

    @app.post("/analyze")
    async def analyze(
        request: Request, file: UploadFile = File(...)
    ) -> AnalysisResponse:
        """Run the pipeline once for an uploaded photo."""
        state_container: AppContainer = request.app.state.container
        image = payload_from_upload(
            await file.read(max_upload_bytes + 1),
            file.content_type,
            max_bytes=max_upload_bytes,
        )
        result = await state_container.guide_service.analyze(image)
        return AnalysisResponse.from_result(result, narration_mime_type)

    @app.post("/analyze/data-url")
    async def analyze_data_url(
        payload: AnalyzeDataUrlRequest, request: Request
    ) -> AnalysisResponse:
        """Run the pipeline once for a base64 data URL image."""
        state_container: AppContainer = request.app.state.container
        image = payload_from_data_url(payload.image)
        result = await state_container.guide_service.analyze(image)
        return AnalysisResponse.from_result(result, narration_mime_type)

    @app.post("/sessions", status_code=status.HTTP_201_CREATED)
    async def create_session(request: Request) -> SessionResponse:
        """Open an idle guide session."""
        state_container: AppContainer = request.app.state.container
        session = state_container.session_repository.create_session()
        logger.info("Created guide session %s", session.id)
        return SessionResponse.from_session(session)

    @app.get("/sessions/{session_id}")
    async def get_session(session_id: UUID, request: Request) -> SessionResponse:
        """Return the current state of a session."""
        return SessionResponse.from_session(_require_session(request, session_id))

    @app.post("/sessions/{session_id}/photo")
    async def submit_photo(
        session_id: UUID, request: Request, file: UploadFile = File(...)
    ) -> SessionResponse:
        """Analyze a photo within a session."""
        state_container: AppContainer = request.app.state.container
        session = _require_session(request, session_id)
        data = await file.read(max_upload_bytes + 1)
        await session.run(
            state_container.guide_service,
            lambda: payload_from_upload(
                data, file.content_type, max_bytes=max_upload_bytes
            ),
            narration_mime_type,
        )
        return SessionResponse.from_session(session)

    @app.get("/sessions/{session_id}/audio")
    async def session_audio(session_id: UUID, request: Request) -> Response:
        """Return the narration audio held by a session."""
        session = _require_session(request, session_id)
        playback = session.playback
        if playback is None or playback.released:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Audio unavailable"
            )
        return Response(content=playback.audio, media_type=playback.mime_type)

    @app.post("/sessions/{session_id}/reset")
    async def reset_session(session_id: UUID, request: Request) -> SessionResponse:
        """Return a session to idle."""
        session = _require_session(request, session_id)
        session.reset()
        return SessionResponse.from_session(session)

    @app.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_session(session_id: UUID, request: Request) -> Response:
        """Reset and discard a session."""
        state_container: AppContainer = request.app.state.container
        if not state_container.session_repository.delete_session(session_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return app


def _require_session(request: Request, session_id: UUID) -> GuideSession:
    container: AppContainer = request.app.state.container
    session = container.session_repository.get_session(session_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Session not found"
        )
    return session
