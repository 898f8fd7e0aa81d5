from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from registry.models.models import GiftStatusEnum, GiftTypeEnum


def _strip_or_none(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    return normalized or None


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    slug: str = Field(min_length=1, max_length=120, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    order: int | None = None

    @field_validator("name")
    @classmethod
    def _name_strip(cls, value: str) -> str:
        return value.strip()


class CategoryUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    slug: str | None = Field(default=None, min_length=1, max_length=120, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    order: int | None = None


class CategorySummary(BaseModel):
    id: int
    name: str
    slug: str

    model_config = {"from_attributes": True}


class CategoryPublic(CategorySummary):
    order: int
    gift_count: int = 0


class GiftCreate(BaseModel):
    category_id: int
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    image_url: str | None = None
    external_url: str | None = None
    type: GiftTypeEnum
    target_amount: int | None = None
    status: GiftStatusEnum | None = None
    order: int | None = None

    @field_validator("title")
    @classmethod
    def _title_strip(cls, value: str) -> str:
        return value.strip()

    @field_validator("description", "image_url", "external_url")
    @classmethod
    def _normalize_optional(cls, value: str | None) -> str | None:
        return _strip_or_none(value)


class GiftUpdate(BaseModel):
    category_id: int | None = None
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    image_url: str | None = None
    external_url: str | None = None
    type: GiftTypeEnum | None = None
    target_amount: int | None = None
    status: GiftStatusEnum | None = None
    order: int | None = None

    @field_validator("description", "image_url", "external_url")
    @classmethod
    def _normalize_optional(cls, value: str | None) -> str | None:
        return _strip_or_none(value)


class VerifiedContributionPublic(BaseModel):
    id: int
    amount: int
    currency: str
    created_at: datetime

    model_config = {"from_attributes": True}


class GiftPublic(BaseModel):
    id: int
    category_id: int
    title: str
    description: str | None
    image_url: str | None
    external_url: str | None
    type: GiftTypeEnum
    target_amount: int | None
    current_amount: int
    status: GiftStatusEnum
    order: int
    created_at: datetime
    category: CategorySummary | None = None
    contribution_count: int = 0
    progress_percent: int = 0


class GiftDetail(GiftPublic):
    contributions: list[VerifiedContributionPublic] = []
