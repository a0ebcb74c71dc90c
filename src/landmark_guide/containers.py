"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from landmark_guide.adapters.openai_guide_clients import (
    OpenAIHistoryClient,
    OpenAILandmarkClient,
    OpenAINarrationClient,
    create_openai_client,
)
from landmark_guide.config import Settings
from landmark_guide.services.guide import GuideService
from landmark_guide.services.sessions import (
    GuideSessionRepository,
    InMemoryGuideSessionRepository,
)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    guide_service: GuideService
    session_repository: GuideSessionRepository
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    openai_client = create_openai_client(
        resolved_settings.openai_api_key,
        timeout_seconds=resolved_settings.request_timeout_seconds,
    )
    guide_service = GuideService(
        landmark_client=OpenAILandmarkClient(openai_client),
        history_client=OpenAIHistoryClient(openai_client),
        narration_client=OpenAINarrationClient(openai_client),
        config=resolved_settings.guide_config(),
    )

    async def close_resources() -> None:
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        guide_service=guide_service,
        session_repository=InMemoryGuideSessionRepository(
            ttl_seconds=resolved_settings.session_ttl_seconds
        ),
        close_resources=close_resources,
    )
