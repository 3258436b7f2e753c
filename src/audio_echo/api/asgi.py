"""ASGI entrypoint for an audio echo peer."""

from audio_echo.api.app import create_app
from audio_echo.containers import build_container

app = create_app(build_container())
