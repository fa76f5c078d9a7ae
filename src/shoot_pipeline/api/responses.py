"""Error mapping and JSON shapes shared by the route modules."""

from fastapi import status
from fastapi.responses import JSONResponse

from shoot_pipeline.domain.models import (
    EditedImageRecord,
    ImageRecord,
    JobRecord,
    ShootRecord,
    StackRecord,
)
from shoot_pipeline.domain.results import ErrorKind
from shoot_pipeline.domain.rooms import display_name
from shoot_pipeline.domain.stacking import StackDetection
from shoot_pipeline.services.editor_returns import ReviewItem
from shoot_pipeline.services.shoots import StackWithImages

_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.PACKAGING: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.TOKEN: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.STORAGE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.DECODE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_response(kind: ErrorKind | None, message: str | None) -> JSONResponse:
    """Build an ``{"error": ...}`` response with the status for its kind."""
    code = _STATUS_BY_KIND.get(kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse(
        status_code=code, content={"error": message or "Internal server error"}
    )


def job_payload(job: JobRecord) -> dict[str, object]:
    return {
        "id": str(job.id),
        "jobNumber": job.job_number,
        "propertyName": job.property_name,
        "propertyAddress": job.property_address,
    }


def shoot_payload(shoot: ShootRecord) -> dict[str, object]:
    return {
        "id": str(shoot.id),
        "jobId": str(shoot.job_id),
        "shootCode": shoot.shoot_code,
        "status": shoot.status.value,
        "createdAt": shoot.created_at.isoformat(),
        "statusChangedAt": (
            shoot.status_changed_at.isoformat() if shoot.status_changed_at else None
        ),
    }


def stack_payload(stack: StackRecord) -> dict[str, object]:
    return {
        "id": str(stack.id),
        "stackNumber": stack.stack_number,
        "roomType": stack.room_type,
        "roomName": display_name(stack.room_type),
        "frameCount": stack.frame_count,
        "sequenceIndex": stack.sequence_index,
    }


def image_payload(image: ImageRecord) -> dict[str, object]:
    return {
        "id": str(image.id),
        "originalFilename": image.original_filename,
        "renamedFilename": image.renamed_filename,
        "filePath": image.file_path,
        "fileSize": image.file_size,
        "exposureValue": image.exposure_value,
        "positionInStack": image.position_in_stack,
        "exifDate": image.exif_date,
    }


def stack_with_images_payload(item: StackWithImages) -> dict[str, object]:
    return {
        **stack_payload(item.stack),
        "images": [image_payload(image) for image in item.images],
    }


def edited_image_payload(image: EditedImageRecord) -> dict[str, object]:
    return {
        "id": str(image.id),
        "shootId": str(image.shoot_id),
        "stackId": str(image.stack_id) if image.stack_id else None,
        "filename": image.filename,
        "filePath": image.file_path,
        "fileSize": image.file_size,
        "version": image.version,
        "roomType": image.room_type,
        "sequenceIndex": image.sequence_index,
        "clientApprovalStatus": image.client_approval_status.value,
        "reviewedAt": image.reviewed_at.isoformat() if image.reviewed_at else None,
    }


def review_payload(
    grouped: dict[int, dict[str, list[ReviewItem]]],
) -> list[dict[str, object]]:
    """Serialize review groups, newest version first."""
    return [
        {
            "version": version,
            "rooms": {
                room: [
                    {
                        **edited_image_payload(item.image),
                        "stack": stack_payload(item.stack) if item.stack else None,
                    }
                    for item in items
                ]
                for room, items in sorted(grouped[version].items())
            },
        }
        for version in sorted(grouped, reverse=True)
    ]


def detection_payload(detection: StackDetection) -> dict[str, object]:
    return {
        "valid": detection.valid,
        "stacks": [
            {
                "roomCode": stack.room_code,
                "roomType": stack.room_type,
                "stackNumber": stack.stack_number,
                "frameCount": stack.frame_count,
                "needsReview": stack.needs_review,
                "frames": [
                    {
                        "filename": frame.filename,
                        "exposureValue": frame.exposure_value,
                        "positionInStack": frame.position_in_stack,
                    }
                    for frame in stack.frames
                ],
            }
            for stack in detection.stacks
        ],
        "warnings": detection.warnings,
        "errors": detection.errors,
    }
