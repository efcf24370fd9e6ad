"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, File, HTTPException, Request, UploadFile, status
from fastapi.responses import JSONResponse

from image_describer.api.models import DescriptionResponse
from image_describer.api.sessions import router as sessions_router
from image_describer.app_logging import configure_logging
from image_describer.containers import AppContainer
from image_describer.domain.errors import (
    ImageDescriberError,
    NoActiveSessionError,
    RequestError,
    SubmissionInProgressError,
    ValidationError,
)
from image_describer.domain.sessions import ImageUpload
from image_describer.services.sessions import SessionEvent

_EVENT_LOG_LEVELS = {
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    def log_session_event(event: SessionEvent) -> None:
        if event.message:
            logger.log(
                _EVENT_LOG_LEVELS.get(event.level, logging.INFO),
                event.message,
                extra={"session_id": event.session_id, "event": event.kind},
            )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        unsubscribe = app.state.container.session_manager.subscribe(
            log_session_event
        )
        yield
        unsubscribe()
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(sessions_router)

    async def handle_session_error(
        request: Request, exc: ImageDescriberError
    ) -> JSONResponse:
        if isinstance(exc, ValidationError):
            status_code = 422
        else:
            status_code = status.HTTP_409_CONFLICT
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    for error_type in (
        ValidationError,
        NoActiveSessionError,
        SubmissionInProgressError,
    ):
        app.add_exception_handler(error_type, handle_session_error)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/api/generate-description")
    async def generate_description(
        request: Request, image: UploadFile = File(...)
    ) -> DescriptionResponse:
        """Describe a single uploaded image."""
        state_container: AppContainer = request.app.state.container
        content = await image.read()
        if not content:
            raise HTTPException(
                status_code=422,
                detail="At least one image is required",
            )
        upload = ImageUpload(
            filename=image.filename or "image",
            content=content,
            content_type=image.content_type,
        )
        try:
            description = await state_container.description_service.describe(upload)
        except RequestError as exc:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=_format_request_error(state_container, exc),
            ) from exc
        return DescriptionResponse(description=description)

    return app


def _format_request_error(state_container: AppContainer, exc: RequestError) -> str:
    """Return a user-facing description error with local debug info."""
    message = str(exc)
    if state_container.settings.environment == "local" and exc.detail:
        return f"{message} (debug: {exc.detail})"
    return message
