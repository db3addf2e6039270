"""
Petstore /pet 接口测试（访问公网 petstore，需 --run-e2e）
"""
import pytest

from api import PetApiClient
from api.api_utils import (
    extract_error_message,
    generate_random_pet_id,
    generate_unique_pet_name,
    parse_pet,
    parse_pets,
    validate_header,
    validate_required_fields,
    validate_response_time,
    validate_status_code,
)
from models import Pet, PetStatus

pytestmark = [pytest.mark.e2e, pytest.mark.api]

MAX_RESPONSE_MS = 5000


@pytest.fixture
def client():
    with PetApiClient() as c:
        yield c


@pytest.fixture
def created_pet(client):
    pet = Pet.dog(generate_unique_pet_name()).with_id(generate_random_pet_id())
    response = client.create_pet(pet)
    assert validate_status_code(response, 200)
    yield parse_pet(response)
    client.delete_pet(pet.id)


# ==================== 正向 ====================

@pytest.mark.smoke
def test_create_pet(client):
    pet = Pet.cat(generate_unique_pet_name()).with_id(generate_random_pet_id())
    try:
        response = client.create_pet(pet)
        assert validate_status_code(response, 200)
        assert validate_response_time(response, MAX_RESPONSE_MS)
        assert validate_header(response, "Content-Type", "application/json")
        assert validate_required_fields(response, "id", "name", "photoUrls")
        created = parse_pet(response)
        assert created.name == pet.name
        assert created.status is PetStatus.AVAILABLE
    finally:
        client.delete_pet(pet.id)


def test_get_pet(client, created_pet):
    response = client.get_pet(created_pet.id)
    assert validate_status_code(response, 200)
    assert parse_pet(response).name == created_pet.name


def test_update_pet(client, created_pet):
    updated = created_pet.with_name(created_pet.name + "_updated").with_status(PetStatus.SOLD)
    response = client.update_pet(updated)
    assert validate_status_code(response, 200)
    body = parse_pet(response)
    assert body.name.endswith("_updated")
    assert body.status is PetStatus.SOLD


def test_delete_pet(client):
    pet = Pet.minimal(generate_unique_pet_name()).with_id(generate_random_pet_id())
    assert validate_status_code(client.create_pet(pet), 200)

    assert validate_status_code(client.delete_pet(pet.id), 200)
    assert validate_status_code(client.get_pet(pet.id), 404)


@pytest.mark.yaml_data(file="pet_cases.yaml", group="statuses")
def test_find_by_status(client, status):
    response = client.find_pets_by_status(status)
    assert validate_status_code(response, 200)
    pets = parse_pets(response)
    assert all(p.status is PetStatus(status) for p in pets if p.status is not None)


# ==================== 负向 ====================

def test_get_nonexistent_pet(client):
    response = client.get_nonexistent_pet()
    assert validate_status_code(response, 404)
    assert "not found" in extract_error_message(response).lower()


def test_delete_nonexistent_pet(client):
    assert validate_status_code(client.delete_nonexistent_pet(), 404)


@pytest.mark.yaml_data(file="pet_cases.yaml", group="invalid_bodies")
def test_create_with_invalid_body(client, body):
    response = client.create_pet_raw(body)
    assert response.status_code >= 400, f"期望 4xx/5xx，实际 {response.status_code}"
