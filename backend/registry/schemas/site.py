from pydantic import BaseModel, Field

from registry.models.models import CurrencyEnum, PaymentMethodTypeEnum


class PaymentMethodUpsert(BaseModel):
    type: PaymentMethodTypeEnum
    label: str = Field(min_length=1, max_length=120)
    value: str | None = Field(default=None, max_length=500)
    currency: CurrencyEnum
    enabled: bool | None = None
    order: int | None = None


class PaymentMethodBulkUpsert(BaseModel):
    payment_methods: list[PaymentMethodUpsert]


class PaymentMethodPublic(BaseModel):
    id: int
    type: PaymentMethodTypeEnum
    label: str
    value: str
    currency: CurrencyEnum
    enabled: bool
    order: int

    model_config = {"from_attributes": True}


class SiteSettingsPublic(BaseModel):
    event_title: str
    event_date: str
    event_time: str
    event_location: str
    hero_message: str
    whatsapp_number: str

    model_config = {"from_attributes": True}


class SiteSettingsAdmin(SiteSettingsPublic):
    id: int


class SiteSettingsUpdate(BaseModel):
    guest_password: str | None = Field(default=None, min_length=4, max_length=128)
    admin_password: str | None = Field(default=None, min_length=8, max_length=128)
    event_title: str | None = Field(default=None, max_length=255)
    event_date: str | None = Field(default=None, max_length=120)
    event_time: str | None = Field(default=None, max_length=60)
    event_location: str | None = Field(default=None, max_length=500)
    hero_message: str | None = None
    whatsapp_number: str | None = Field(default=None, max_length=40)
