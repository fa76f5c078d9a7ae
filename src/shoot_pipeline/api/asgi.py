"""ASGI entrypoint for the shoot pipeline API."""

from shoot_pipeline.api.app import create_app
from shoot_pipeline.containers import build_container

app = create_app(build_container())
