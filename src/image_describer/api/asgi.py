"""ASGI entrypoint for the image describer API."""

from image_describer.api.app import create_app
from image_describer.containers import build_container

app = create_app(build_container())
