from .petstore import Category, Pet, PetStatus, Tag

__all__ = ["Category", "Pet", "PetStatus", "Tag"]
