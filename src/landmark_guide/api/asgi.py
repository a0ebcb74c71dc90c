"""ASGI entrypoint for the landmark guide API."""

from landmark_guide.api.app import create_app
from landmark_guide.containers import build_container

app = create_app(build_container())
