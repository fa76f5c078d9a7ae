"""Tests for the filename schemas."""

from datetime import date
from uuid import uuid4

import pytest

from shoot_pipeline.domain.filenames import (
    DeliveryFilename,
    UploadFilename,
    decode_delivery_filename,
    decode_raw_filename,
    encode_delivery_filename,
    encode_upload_filename,
    exposure_token,
    extract_exposure_value,
    extract_room_code,
    extract_room_type,
    extract_stack_number,
    final_filename_for_stack,
    format_exposure_token,
    is_accepted_upload,
    is_plausible_date,
    object_path,
    parse_room_type_from_filename,
    parse_sequence_index_from_filename,
    parse_upload_filename,
    raw_handoff_filename,
    stack_ordinal,
    validate_raw_filename,
)
from shoot_pipeline.domain.models import NewImage, StackRecord


def _stack(room_type: str = "kitchen", sequence_index: int = 2) -> StackRecord:
    return StackRecord(
        id=uuid4(),
        shoot_id=uuid4(),
        stack_number="g003",
        room_type=room_type,
        frame_count=5,
        sequence_index=sequence_index,
    )


def _image(filename: str = "IMG_0001.CR3", exposure: str | None = "e+2") -> NewImage:
    return NewImage(
        shoot_id=uuid4(),
        stack_id=None,
        original_filename=filename,
        renamed_filename=None,
        file_path="raw/x",
        file_size=1,
        mime_type="image/x-canon-cr3",
        exposure_value=exposure,  # type: ignore[arg-type]
        position_in_stack=0,
        exif_date=None,
    )


@pytest.mark.parametrize(
    ("value", "expected"),
    [(2.0, "+2"), (-1.6, "-2"), (0, "0"), (0.4, "0"), ("e-4", "-4"), (None, "0")],
)
def test_format_exposure_token(value, expected) -> None:
    assert format_exposure_token(value) == expected


def test_exposure_token_prefixes_e() -> None:
    assert exposure_token(0.0) == "e0"
    assert exposure_token(1.7) == "e+2"
    assert exposure_token(-4.0) == "e-4"


def test_raw_handoff_filename_is_deterministic() -> None:
    name = raw_handoff_filename(
        _image(), _stack(), 3, "ab12c", date(2025, 1, 20)
    )

    assert name == "20250120-ab12c_kitchen_002_g003_e+2.cr3"
    assert name == raw_handoff_filename(
        _image(), _stack(), 3, "ab12c", date(2025, 1, 20)
    )


def test_raw_handoff_filename_falls_back_for_missing_data() -> None:
    name = raw_handoff_filename(
        _image(filename="frame", exposure=None),
        _stack(room_type="", sequence_index=0),
        1,
        "ab12c",
        date(2025, 1, 20),
    )

    assert name == "20250120-ab12c_undefined_space_000_g001_e0.raw"


def test_decode_raw_filename_inverts_encoder() -> None:
    parsed = decode_raw_filename("20250120-ab12c_living_room_004_g012_e-2.nef")

    assert parsed is not None
    assert parsed.room_type == "living_room"
    assert parsed.sequence_index == 4
    assert parsed.stack_number == 12
    assert parsed.exposure == "-2"
    assert parsed.extension == "nef"


def test_delivery_round_trip() -> None:
    components = DeliveryFilename(
        date="20251023",
        shoot_code="ABC12",
        room_type="living_room",
        sequence_index=7,
        version=3,
        extension="jpg",
    )

    assert decode_delivery_filename(encode_delivery_filename(components)) == (
        components
    )


@pytest.mark.parametrize(
    "filename",
    [
        "invalid-filename.jpg",
        "20251023_ABC123_wohnzimmer_001_v1.jpg",
        "20991301-ABC12_kitchen_001_v1.jpg",
        "20251023-ABC12_Kitchen_001_v1.jpg",
        "20251023-ABC12_kitchen_001_v1.tif",
        "",
    ],
)
def test_decode_delivery_filename_rejects(filename: str) -> None:
    assert decode_delivery_filename(filename) is None


def test_is_plausible_date_bounds() -> None:
    assert is_plausible_date("20200101")
    assert not is_plausible_date("20191231")
    assert not is_plausible_date("21010101")
    assert not is_plausible_date("20250132")
    assert not is_plausible_date("2025013")


def test_final_filename_for_stack() -> None:
    name = final_filename_for_stack(_stack(), "ab12c", date(2025, 3, 4), version=2)

    assert name == "20250304-ab12c_kitchen_002_v2.jpg"
    assert decode_delivery_filename(name) is not None


def test_room_and_index_recovery_from_either_schema() -> None:
    assert parse_room_type_from_filename("20250120-ab12c_bathroom_003_g001_e0.dng") == (
        "bathroom"
    )
    assert parse_sequence_index_from_filename("20250120-ab12c_bathroom_005_v1.jpg") == 5
    assert parse_room_type_from_filename("IMG_1234.jpg") is None


def test_upload_filename_round_trip() -> None:
    filename = "PX20250120_100234_ab12c_KIT_g001_e+2.CR3"

    parsed = parse_upload_filename(filename)

    assert parsed == UploadFilename(
        photographer="PX",
        date="20250120",
        job_number="100234",
        shoot_code="ab12c",
        room_code="KIT",
        stack_number="g001",
        exposure_value="e+2",
        extension="CR3",
    )
    assert encode_upload_filename(parsed) == filename


def test_upload_filename_extractors() -> None:
    filename = "PX20250120_100234_ab12c_BAL_g014_e-4.CR3"

    assert extract_stack_number(filename) == "g014"
    assert extract_exposure_value(filename) == "e-4"
    assert extract_room_code(filename) == "BAL"
    assert extract_room_type(filename) == "balkon"
    assert extract_room_type("PX20250120_100234_ab12c_ZZZ_g001_e0.CR3") == (
        "undefined_space"
    )


def test_upload_filename_extractors_reject_other_schemas() -> None:
    delivery = "20250120-ab12c_kueche_001_v1.jpg"

    assert extract_stack_number(delivery) is None
    assert extract_exposure_value(delivery) is None
    assert extract_room_code(delivery) is None
    assert extract_room_type(delivery) is None


@pytest.mark.parametrize(
    "filename",
    [
        "PX20250120_100234_ab12c_kit_g001_e+2.CR3",
        "PX20250120_100234_ab12c_KIT_g001_e+12.CR3",
        "PX20250120_100234_AB12C_KIT_g001_e0.CR3",
        "PX20250120_10023_ab12c_KIT_g001_e0.CR3",
    ],
)
def test_upload_filename_rejects_loose_variants(filename: str) -> None:
    assert parse_upload_filename(filename) is None


def test_validate_raw_filename() -> None:
    assert validate_raw_filename("IMG_0001.CR3") is None
    assert validate_raw_filename(None) == "Filename is required"
    assert "Invalid file type" in (validate_raw_filename("photo.jpg") or "")
    assert "too long" in (validate_raw_filename("a" * 252 + ".nef") or "")


def test_is_accepted_upload() -> None:
    assert is_accepted_upload("IMG_0001.ARW", None)
    assert is_accepted_upload("blob", "image/jpeg")
    assert not is_accepted_upload("notes.txt", "text/plain")
    assert not is_accepted_upload("", "image/jpeg")


def test_object_path_layout() -> None:
    job_id, shoot_id = uuid4(), uuid4()

    assert object_path(job_id, shoot_id, "a.cr3", "raw") == (
        f"projects/{job_id}/raw/{shoot_id}/a.cr3"
    )
    assert object_path(job_id, shoot_id, "p.zip", "handoff") == (
        f"projects/{job_id}/handoff/p.zip"
    )
    with pytest.raises(ValueError):
        object_path(job_id, shoot_id, "x", "thumbnails")


def test_stack_ordinal() -> None:
    assert stack_ordinal("g007") == 7
    assert stack_ordinal(None) == 0
    assert stack_ordinal("x1") == 0
