"""ASGI entrypoint for the rental inspection API."""

from rental_inspection.api.app import create_app
from rental_inspection.containers import build_container

app = create_app(build_container())
