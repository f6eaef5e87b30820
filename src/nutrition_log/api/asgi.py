"""ASGI entrypoint for the nutrition log API."""

from nutrition_log.api.app import create_app
from nutrition_log.containers import build_container

app = create_app(build_container())
