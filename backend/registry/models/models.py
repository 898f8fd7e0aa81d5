from datetime import datetime, timezone
from enum import Enum as StrEnumBase

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from registry.db.session import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GiftTypeEnum(str, StrEnumBase):
    FUNDABLE = "fundable"
    EXTERNAL = "external"
    CUSTOM = "custom"


class GiftStatusEnum(str, StrEnumBase):
    AVAILABLE = "available"
    PARTIALLY_FUNDED = "partially_funded"
    COMPLETED = "completed"
    HIDDEN = "hidden"


class ContributionStatusEnum(str, StrEnumBase):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class CurrencyEnum(str, StrEnumBase):
    EUR = "EUR"
    COP = "COP"


class PaymentMethodTypeEnum(str, StrEnumBase):
    BIZUM = "bizum"
    REVOLUT = "revolut"
    BANCOLOMBIA = "bancolombia"


# Stored in Contribution.payment_method for marketplace purchases with no payment.
EXTERNAL_PAYMENT_METHOD = "external"


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    slug: Mapped[str] = mapped_column(String(120), unique=True, nullable=False, index=True)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    gifts: Mapped[list["Gift"]] = relationship(back_populates="category")


class Gift(Base):
    __tablename__ = "gifts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    external_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    # Amounts are integer cents.
    target_amount: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_amount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=GiftStatusEnum.AVAILABLE.value, nullable=False)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
    )

    category: Mapped[Category] = relationship(back_populates="gifts")
    contributions: Mapped[list["Contribution"]] = relationship(
        back_populates="gift",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("current_amount >= 0", name="ck_gifts_current_amount_non_negative"),
    )


class Contribution(Base):
    __tablename__ = "contributions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    gift_id: Mapped[int] = mapped_column(ForeignKey("gifts.id", ondelete="CASCADE"), nullable=False, index=True)
    guest_name: Mapped[str] = mapped_column(String(120), nullable=False)
    guest_phone: Mapped[str] = mapped_column(String(40), nullable=False)
    guest_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        default=ContributionStatusEnum.PENDING.value,
        nullable=False,
        index=True,
    )
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    verified_by: Mapped[str | None] = mapped_column(String(120), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
    )

    gift: Mapped[Gift] = relationship(back_populates="contributions")

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_contributions_amount_non_negative"),
    )


class PaymentMethod(Base):
    __tablename__ = "payment_methods"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    type: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    label: Mapped[str] = mapped_column(String(120), nullable=False)
    value: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class SiteSettings(Base):
    __tablename__ = "site_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    guest_password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    admin_password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    event_title: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    event_date: Mapped[str] = mapped_column(String(120), default="", nullable=False)
    event_time: Mapped[str] = mapped_column(String(60), default="", nullable=False)
    event_location: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    hero_message: Mapped[str] = mapped_column(Text, default="", nullable=False)
    whatsapp_number: Mapped[str] = mapped_column(String(40), default="", nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
    )
