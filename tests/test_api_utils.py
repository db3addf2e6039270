import pytest

from api.api_utils import (
    extract_error_message,
    generate_random_pet_id,
    generate_unique_pet_name,
    is_valid_json,
    parse_pet,
    parse_pets,
    validate_header,
    validate_required_fields,
    validate_response_time,
    validate_status_code,
)
from models import PetStatus
from tests.http_fakes import make_response

PET_BODY = {
    "id": 42,
    "category": {"id": 1, "name": "Dogs"},
    "name": "Rex",
    "photoUrls": ["https://example.com/dog.jpg"],
    "tags": [{"id": 1, "name": "friendly"}],
    "status": "available",
}


def test_status_code():
    assert validate_status_code(make_response(200, PET_BODY), 200)
    assert not validate_status_code(make_response(404, {"message": "Pet not found"}), 200)


def test_response_time():
    assert validate_response_time(make_response(200, PET_BODY, elapsed_ms=300), 2000)
    assert not validate_response_time(make_response(200, PET_BODY, elapsed_ms=2500), 2000)


def test_required_fields():
    response = make_response(200, PET_BODY)
    assert validate_required_fields(response, "id", "name", "photoUrls")
    assert not validate_required_fields(response, "id", "owner")


def test_required_fields_on_non_object():
    assert not validate_required_fields(make_response(200, [PET_BODY]), "id")
    assert not validate_required_fields(make_response(500, text="<html>error</html>"), "id")


def test_header():
    response = make_response(200, PET_BODY, headers={"Content-Type": "application/json; charset=utf-8"})
    assert validate_header(response, "content-type", "application/json")
    assert not validate_header(response, "Content-Type", "text/html")
    assert not validate_header(response, "X-Request-Id")


def test_valid_json():
    assert is_valid_json(make_response(200, PET_BODY))
    assert not is_valid_json(make_response(400, text='{"broken": '))


@pytest.mark.parametrize(
    "body, text, expected",
    [
        ({"code": 1, "type": "error", "message": "Pet not found"}, None, "Pet not found"),
        ({"error": "bad input"}, None, "bad input"),
        ({"detail": "unsupported media type"}, None, "unsupported media type"),
        (None, "Internal Server Error", "Internal Server Error"),
        (None, "", "Unknown error"),
    ],
)
def test_extract_error_message(body, text, expected):
    assert extract_error_message(make_response(400, body, text=text)) == expected


def test_parse_pet():
    pet = parse_pet(make_response(200, PET_BODY))
    assert pet.id == 42
    assert pet.photo_urls == ["https://example.com/dog.jpg"]
    assert pet.status is PetStatus.AVAILABLE
    assert pet.category.name == "Dogs"


def test_parse_pet_rejects_wrong_shape():
    with pytest.raises(ValueError):
        parse_pet(make_response(200, {"id": "not-a-number", "name": "Rex"}))
    with pytest.raises(ValueError):
        parse_pet(make_response(200, text="not json"))


def test_parse_pets():
    pets = parse_pets(make_response(200, [PET_BODY, {**PET_BODY, "id": 43, "status": "sold"}]))
    assert [p.id for p in pets] == [42, 43]
    assert pets[1].status is PetStatus.SOLD


def test_generated_test_data():
    assert generate_unique_pet_name().split("_")[0] in ("Buddy", "Max", "Charlie", "Rocky", "Luna", "Bella",
                                                        "Daisy", "Lucy")
    assert 1000 <= generate_random_pet_id() <= 999_999
