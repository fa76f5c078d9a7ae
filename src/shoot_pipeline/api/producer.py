"""Producer endpoints guarded by a shared token."""

import logging
from uuid import UUID

from fastapi import (
    APIRouter,
    Body,
    Depends,
    File,
    Form,
    Header,
    HTTPException,
    Request,
    UploadFile,
    status,
)
from fastapi.responses import JSONResponse

from shoot_pipeline.api.models import (
    DetectStacksRequest,
    FinalHandoffRequest,
    InitUploadRequest,
    RoomTypeRequest,
)
from shoot_pipeline.api.responses import (
    detection_payload,
    edited_image_payload,
    error_response,
    job_payload,
    review_payload,
    shoot_payload,
    stack_payload,
    stack_with_images_payload,
)
from shoot_pipeline.containers import AppContainer
from shoot_pipeline.domain.filenames import is_accepted_upload
from shoot_pipeline.domain.models import ApprovalStatus
from shoot_pipeline.domain.results import ErrorKind
from shoot_pipeline.domain.stacking import UploadedFile, detect_stacks

logger = logging.getLogger(__name__)


def _get_producer_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.producer_token


async def require_producer(
    x_producer_token: str | None = Header(default=None),
    producer_token: str = Depends(_get_producer_token),
) -> None:
    """Ensure requests include a valid producer token."""
    if not x_producer_token or x_producer_token != producer_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


router = APIRouter(tags=["producer"], dependencies=[Depends(require_producer)])


@router.post("/uploads/init", response_model=None)
async def init_upload(
    body: InitUploadRequest, request: Request
) -> dict[str, object] | JSONResponse:
    """Open a new shoot for a job."""
    container: AppContainer = request.app.state.container
    result = container.shoot_service.create_shoot(body.job_number)
    if not result.success or result.shoot is None or result.job is None:
        return error_response(result.error_kind, result.error)
    return {
        "shootId": str(result.shoot.id),
        "shootCode": result.shoot.shoot_code,
        "jobId": str(result.job.id),
        "jobNumber": result.job.job_number,
    }


@router.post("/uploads/{shoot_id}", response_model=None)
async def upload_batch(
    shoot_id: UUID,
    request: Request,
    files: list[UploadFile] = File(...),
    frame_count: int = Form(5, alias="frameCount"),
) -> dict[str, object] | JSONResponse:
    """Accept a batch of bracketed frames and assemble them into stacks."""
    container: AppContainer = request.app.state.container
    limit = container.settings.max_upload_bytes
    accepted: list[UploadedFile] = []
    rejected: list[str] = []
    for upload in files:
        filename = upload.filename or ""
        content = await upload.read()
        if not is_accepted_upload(filename, upload.content_type) or (
            len(content) > limit
        ):
            rejected.append(filename)
            continue
        accepted.append(
            UploadedFile(
                filename=filename,
                content=content,
                content_type=upload.content_type or "application/octet-stream",
            )
        )
    if rejected:
        logger.warning("Rejected %d uploaded files: %s", len(rejected), rejected)
    if not accepted:
        return error_response(ErrorKind.VALIDATION, "No valid image files uploaded")

    result = await container.intake_service.process_upload(
        shoot_id, accepted, frame_count
    )
    if not result.success:
        return error_response(result.error_kind, result.error)
    return {
        "success": True,
        "stackCount": result.stack_count,
        "imageCount": result.image_count,
        "skippedCount": result.skipped_count,
        "rejectedFiles": rejected,
    }


@router.get("/shoots/{shoot_id}", response_model=None)
async def get_shoot(
    shoot_id: UUID, request: Request
) -> dict[str, object] | JSONResponse:
    """Return a shoot with its job."""
    container: AppContainer = request.app.state.container
    loaded = container.shoot_service.load(shoot_id)
    if not loaded.success or loaded.shoot is None or loaded.job is None:
        return error_response(loaded.error_kind, loaded.error)
    return {"shoot": shoot_payload(loaded.shoot), "job": job_payload(loaded.job)}


@router.get("/shoots/{shoot_id}/stacks", response_model=None)
async def list_stacks(
    shoot_id: UUID, request: Request
) -> dict[str, object] | JSONResponse:
    """Return the stacks of a shoot with their images."""
    container: AppContainer = request.app.state.container
    loaded = container.shoot_service.load(shoot_id)
    if not loaded.success:
        return error_response(loaded.error_kind, loaded.error)
    stacks = container.shoot_service.list_stacks(shoot_id)
    return {"stacks": [stack_with_images_payload(item) for item in stacks]}


@router.post("/shoots/{shoot_id}/complete", response_model=None)
async def complete_intake(
    shoot_id: UUID, request: Request
) -> dict[str, object] | JSONResponse:
    """Finish the upload phase of a shoot."""
    container: AppContainer = request.app.state.container
    result = container.shoot_service.complete_intake(shoot_id)
    if not result.success or result.shoot is None:
        return error_response(result.error_kind, result.error)
    return {"shoot": shoot_payload(result.shoot)}


@router.post("/shoots/{shoot_id}/stacks/detect", response_model=None)
async def detect_shoot_stacks(
    shoot_id: UUID, body: DetectStacksRequest, request: Request
) -> dict[str, object] | JSONResponse:
    """Group capture-device filenames into stacks without persisting them."""
    container: AppContainer = request.app.state.container
    loaded = container.shoot_service.load(shoot_id)
    if not loaded.success:
        return error_response(loaded.error_kind, loaded.error)
    return detection_payload(detect_stacks(body.filenames))


@router.put("/stacks/{stack_id}/room-type", response_model=None)
async def assign_room_type(
    stack_id: UUID, body: RoomTypeRequest, request: Request
) -> dict[str, object] | JSONResponse:
    """Classify a stack and rename its images."""
    container: AppContainer = request.app.state.container
    result = await container.shoot_service.assign_room_type(stack_id, body.room_type)
    if not result.success or result.stack is None:
        return error_response(result.error_kind, result.error)
    return {
        "stack": stack_payload(result.stack),
        "renamedFilenames": result.renamed_filenames,
    }


@router.post("/projects/{job_id}/handoff/{shoot_id}", response_model=None)
async def generate_handoff(
    job_id: UUID, shoot_id: UUID, request: Request
) -> dict[str, object] | JSONResponse:
    """Build the raw handoff package and issue the editor's links."""
    container: AppContainer = request.app.state.container
    result = await container.handoff_service.create_handoff(job_id, shoot_id)
    if (
        not result.success
        or result.download_token is None
        or result.upload_token is None
    ):
        return error_response(result.error_kind, result.error)
    settings = container.settings
    return {
        "success": True,
        "downloadUrl": settings.download_url(result.download_token.token),
        "uploadUrl": settings.editor_upload_url(result.upload_token.token),
        "expiresAt": result.download_token.expires_at.isoformat(),
        "stackCount": result.stack_count,
        "imageCount": result.image_count,
        "skippedCount": result.skipped_count,
    }


@router.post("/projects/{job_id}/process-editor-return/{shoot_id}", response_model=None)
async def process_editor_return(
    job_id: UUID, shoot_id: UUID, request: Request
) -> dict[str, object] | JSONResponse:
    """Process the stored editor ZIP immediately."""
    container: AppContainer = request.app.state.container
    result = await container.editor_return_service.process_return(job_id, shoot_id)
    if result.version is None:
        return error_response(result.error_kind, "; ".join(result.errors))
    return {
        "success": result.success,
        "version": result.version,
        "processedCount": result.processed_count,
        "skippedCount": result.skipped_count,
        "errors": result.errors,
    }


@router.get("/projects/{job_id}/shoots/{shoot_id}/edited-images", response_model=None)
async def list_edited_images(
    job_id: UUID, shoot_id: UUID, request: Request
) -> dict[str, object] | JSONResponse:
    """Return edited images grouped by version and room."""
    container: AppContainer = request.app.state.container
    loaded = container.shoot_service.load(shoot_id)
    if not loaded.success or loaded.shoot is None:
        return error_response(loaded.error_kind, loaded.error)
    if loaded.shoot.job_id != job_id:
        return error_response(
            ErrorKind.NOT_FOUND, "Shoot does not belong to this project"
        )
    grouped = container.editor_return_service.list_for_review(shoot_id)
    return {"versions": review_payload(grouped)}


@router.put("/edited-images/{image_id}/approve", response_model=None)
async def approve_edited_image(
    image_id: UUID, request: Request
) -> dict[str, object] | JSONResponse:
    """Approve an edited image for delivery."""
    return _set_approval(request, image_id, ApprovalStatus.APPROVED)


@router.put("/edited-images/{image_id}/reject", response_model=None)
async def reject_edited_image(
    image_id: UUID, request: Request
) -> dict[str, object] | JSONResponse:
    """Reject an edited image."""
    return _set_approval(request, image_id, ApprovalStatus.REJECTED)


@router.post(
    "/projects/{job_id}/shoots/{shoot_id}/generate-handoff", response_model=None
)
async def generate_final_handoff(
    job_id: UUID,
    shoot_id: UUID,
    request: Request,
    body: FinalHandoffRequest | None = Body(default=None),
) -> dict[str, object] | JSONResponse:
    """Package approved images for the client."""
    container: AppContainer = request.app.state.container
    version = body.version if body else None
    result = await container.final_handoff_service.generate(
        job_id, shoot_id, version
    )
    if not result.success or result.download_token is None:
        return error_response(result.error_kind, result.error)
    return {
        "success": True,
        "downloadUrl": container.settings.download_url(result.download_token.token),
        "expiresAt": result.download_token.expires_at.isoformat(),
        "version": result.version,
        "totalImages": result.total_images,
        "manifest": (
            result.manifest.model_dump(by_alias=True) if result.manifest else None
        ),
    }


@router.post("/admin/queue/run", response_model=None)
async def run_queue(request: Request) -> dict[str, object]:
    """Process editor returns whose quiet window has elapsed."""
    container: AppContainer = request.app.state.container
    runs = await container.editor_return_service.run_due_jobs()
    return {
        "processed": [
            {
                "jobId": str(run.job_id),
                "shootId": str(run.shoot_id),
                "success": run.result.success,
                "version": run.result.version,
                "processedCount": run.result.processed_count,
                "errors": run.result.errors,
            }
            for run in runs
        ]
    }


def _set_approval(
    request: Request, image_id: UUID, decision: ApprovalStatus
) -> dict[str, object] | JSONResponse:
    container: AppContainer = request.app.state.container
    updated = container.editor_return_service.set_approval(image_id, decision)
    if updated is None:
        return error_response(ErrorKind.NOT_FOUND, "Edited image not found")
    return {"image": edited_image_payload(updated)}
