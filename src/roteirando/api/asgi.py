"""ASGI entrypoint for the Roteirando console API."""

from roteirando.api.app import create_app
from roteirando.containers import build_container

app = create_app(build_container())
