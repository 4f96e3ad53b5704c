"""ASGI entrypoint for the Mealer API."""

from mealer.api.app import create_app
from mealer.containers import build_container

app = create_app(build_container())
