"""
Swagger Petstore 数据模型（pydantic v2）

字段名使用 snake_case，序列化时通过 alias 输出 API 要求的 camelCase。
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PetStatus(str, Enum):
    AVAILABLE = "available"
    PENDING = "pending"
    SOLD = "sold"


class _PetstoreModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_payload(self) -> Dict[str, Any]:
        """可直接作为 JSON 请求体的字典（去掉 None 字段）"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Category(_PetstoreModel):
    id: Optional[int] = None
    name: Optional[str] = None

    @classmethod
    def dog(cls) -> "Category":
        return cls(id=1, name="Dogs")

    @classmethod
    def cat(cls) -> "Category":
        return cls(id=2, name="Cats")

    @classmethod
    def bird(cls) -> "Category":
        return cls(id=3, name="Birds")

    @classmethod
    def fish(cls) -> "Category":
        return cls(id=4, name="Fish")


class Tag(_PetstoreModel):
    id: Optional[int] = None
    name: Optional[str] = None

    @classmethod
    def friendly(cls) -> "Tag":
        return cls(id=1, name="friendly")

    @classmethod
    def playful(cls) -> "Tag":
        return cls(id=2, name="playful")

    @classmethod
    def calm(cls) -> "Tag":
        return cls(id=5, name="calm")

    @classmethod
    def loyal(cls) -> "Tag":
        return cls(id=6, name="loyal")

    @classmethod
    def affectionate(cls) -> "Tag":
        return cls(id=8, name="affectionate")


class Pet(_PetstoreModel):
    id: Optional[int] = None
    category: Optional[Category] = None
    name: Optional[str] = None
    photo_urls: List[str] = Field(default_factory=list, alias="photoUrls")
    tags: List[Tag] = Field(default_factory=list)
    # 创建时可不填
    status: Optional[PetStatus] = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    # ==================== 校验 ====================

    def validation_errors(self) -> List[str]:
        """客户端侧必填项检查（API 本身并不强制）"""
        errors = []
        if not self.name or not self.name.strip():
            errors.append("name is required")
        if not self.photo_urls:
            errors.append("photoUrls must contain at least one URL")
        return errors

    def is_valid(self) -> bool:
        return not self.validation_errors()

    @property
    def is_available(self) -> bool:
        return self.status is PetStatus.AVAILABLE

    # ==================== 构建（返回新对象） ====================

    def with_id(self, pet_id: int) -> "Pet":
        return self.model_copy(update={"id": pet_id})

    def with_name(self, name: str) -> "Pet":
        return self.model_copy(update={"name": name})

    def with_category(self, category: Category) -> "Pet":
        return self.model_copy(update={"category": category})

    def with_photo_url(self, url: str) -> "Pet":
        return self.model_copy(update={"photo_urls": [*self.photo_urls, url]})

    def with_tag(self, tag: Tag) -> "Pet":
        return self.model_copy(update={"tags": [*self.tags, tag]})

    def with_status(self, status) -> "Pet":
        # 经过 PetStatus 转换，非法值在这里抛 ValueError
        return self.model_copy(update={"status": PetStatus(status)})

    # ==================== 工厂方法 ====================

    @classmethod
    def dog(cls, name: str) -> "Pet":
        return cls(
            name=name,
            category=Category.dog(),
            photo_urls=["https://example.com/dog.jpg"],
            tags=[Tag.friendly(), Tag.loyal()],
            status=PetStatus.AVAILABLE,
        )

    @classmethod
    def cat(cls, name: str) -> "Pet":
        return cls(
            name=name,
            category=Category.cat(),
            photo_urls=["https://example.com/cat.jpg"],
            tags=[Tag.calm(), Tag.affectionate()],
            status=PetStatus.AVAILABLE,
        )

    @classmethod
    def minimal(cls, name: str) -> "Pet":
        """只含必填项"""
        return cls(name=name, photo_urls=["https://example.com/photo.jpg"])
