"""ASGI entrypoint for the draw sessions API."""

from draw_sessions.api.app import create_app
from draw_sessions.containers import build_container

app = create_app(build_container())
