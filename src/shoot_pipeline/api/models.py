"""Request bodies accepted by the producer routes."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InitUploadRequest(_CamelRequest):
    job_number: str = Field(min_length=1)


class DetectStacksRequest(_CamelRequest):
    filenames: list[str] = Field(default_factory=list)


class RoomTypeRequest(_CamelRequest):
    room_type: str = Field(min_length=1)


class FinalHandoffRequest(_CamelRequest):
    version: int | None = Field(default=None, ge=1)
