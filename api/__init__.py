from .pet_client import ApiClientError, PetApiClient

__all__ = ["ApiClientError", "PetApiClient"]
