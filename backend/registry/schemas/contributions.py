from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from registry.models.models import ContributionStatusEnum, GiftStatusEnum, GiftTypeEnum


class ContributionCreate(BaseModel):
    """Guest checkout payload.

    Only shapes and types are checked here; the business rules (name length,
    currency floors, allowed payment methods) live in the intake service so
    they hold for every caller.
    """

    gift_id: int
    guest_name: str = Field(max_length=120)
    guest_phone: str = Field(max_length=40)
    guest_message: str | None = Field(default=None, max_length=2000)
    amount: int
    currency: str
    payment_method: str
    is_external_purchase: bool = False

    @field_validator("guest_name", "guest_phone", "currency", "payment_method")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()

    @field_validator("guest_message")
    @classmethod
    def _message_strip(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        return normalized or None


class ContributionStatusUpdate(BaseModel):
    status: str
    verified_by: str | None = Field(default=None, max_length=120)


class ContributionPublic(BaseModel):
    id: int
    gift_id: int
    guest_name: str
    guest_phone: str
    guest_message: str | None
    amount: int
    currency: str
    payment_method: str
    status: ContributionStatusEnum
    verified_at: datetime | None
    verified_by: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class GiftSummary(BaseModel):
    id: int
    title: str
    type: GiftTypeEnum
    image_url: str | None = None

    model_config = {"from_attributes": True}


class GiftFundingSummary(GiftSummary):
    target_amount: int | None
    current_amount: int
    status: GiftStatusEnum


class ContributionWithGift(ContributionPublic):
    gift: GiftSummary


class ContributionDetail(ContributionPublic):
    gift: GiftFundingSummary


class GiftFundingState(BaseModel):
    id: int
    current_amount: int
    status: GiftStatusEnum


class ContributionStatusResult(BaseModel):
    contribution: ContributionPublic
    gift: GiftFundingState
    message: str


class ContributionStats(BaseModel):
    pending: int
    verified: int
    rejected: int
    total_gifts: int
    total_raised: int
    total_raised_by_currency: dict[str, int]
