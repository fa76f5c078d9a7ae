"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import PurePosixPath

from fastapi import FastAPI, File, Request, Response, UploadFile

from shoot_pipeline.api.producer import router as producer_router
from shoot_pipeline.api.responses import error_response
from shoot_pipeline.app_logging import configure_logging
from shoot_pipeline.containers import AppContainer
from shoot_pipeline.domain.models import TokenType
from shoot_pipeline.domain.results import ErrorKind


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(producer_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/handoff/download/{token}", response_model=None)
    async def download_package(token: str, request: Request) -> Response:
        """Stream the package bound to a single-use download token."""
        state_container: AppContainer = request.app.state.container
        check = state_container.token_service.consume(
            token, TokenType.DOWNLOAD, require_file=True
        )
        if not check.accepted or check.token is None or not check.token.file_path:
            return error_response(ErrorKind.TOKEN, check.error)
        path = check.token.file_path
        download = await state_container.storage.download(path)
        if not download.ok or download.value is None:
            logger.error("Failed to stream %s: %s", path, download.error)
            return error_response(ErrorKind.STORAGE, "Failed to download file")
        filename = PurePosixPath(path).name
        return Response(
            content=download.value,
            media_type="application/zip",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @app.post("/editor/{token}/upload", response_model=None)
    async def editor_upload(
        token: str, request: Request, package: UploadFile = File(...)
    ) -> dict[str, object] | Response:
        """Receive the editor's finished ZIP."""
        state_container: AppContainer = request.app.state.container
        data = await package.read()
        if len(data) > state_container.settings.max_upload_bytes:
            return error_response(ErrorKind.VALIDATION, "Uploaded file is too large")
        result = await state_container.editor_return_service.receive_upload(
            token, package.filename, data
        )
        if not result.success:
            return error_response(result.error_kind, result.error)
        return {
            "success": True,
            "message": "Upload received; processing is scheduled",
            "scheduledFor": (
                result.scheduled_for.isoformat() if result.scheduled_for else None
            ),
        }

    return app
