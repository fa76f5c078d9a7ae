"""JSON manifests written as the last entry of every package."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

MANIFEST_FILENAME = "manifest.json"
RAW_PACKAGE_VERSION = "1.0"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_bytes(self) -> bytes:
        """Serialize as UTF-8 JSON with two-space indentation."""
        return self.model_dump_json(by_alias=True, indent=2).encode("utf-8")


class ManifestImage(_CamelModel):
    original_filename: str
    renamed_filename: str
    exposure_value: str
    position_in_stack: int


class ManifestStack(_CamelModel):
    stack_number: str
    room_type: str
    frame_count: int
    images: list[ManifestImage] = Field(default_factory=list)


class RawHandoffManifest(_CamelModel):
    """Describes the raw package handed to the editor."""

    job_number: str
    shoot_code: str
    shoot_date: str
    property_name: str | None = None
    property_address: str | None = None
    stacks: list[ManifestStack] = Field(default_factory=list)
    generated_at: str
    package_version: str = RAW_PACKAGE_VERSION


class FinalHandoffManifest(_CamelModel):
    """Describes the client delivery package.

    ``images_by_room`` only lists files that were written into the archive.
    """

    job_number: str
    shoot_code: str
    property_name: str | None = None
    generated_at: str
    version: int
    total_images: int
    images_by_room: dict[str, list[str]] = Field(default_factory=dict)
