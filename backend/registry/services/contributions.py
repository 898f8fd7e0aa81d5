import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from registry.core.config import settings
from registry.core.errors import ConflictError, NotFoundError, ValidationError
from registry.core.security import SessionContext
from registry.models.models import (
    EXTERNAL_PAYMENT_METHOD,
    Contribution,
    ContributionStatusEnum,
    CurrencyEnum,
    Gift,
    GiftStatusEnum,
    GiftTypeEnum,
    PaymentMethodTypeEnum,
)
from registry.schemas.contributions import ContributionCreate
from registry.services.funding import CONTRIBUTION_STATUSES


logger = logging.getLogger("registry.contributions")

CURRENCIES = frozenset(item.value for item in CurrencyEnum)
PAYMENT_METHODS = frozenset(item.value for item in PaymentMethodTypeEnum) | {EXTERNAL_PAYMENT_METHOD}


def is_external_purchase(payload: ContributionCreate) -> bool:
    return payload.is_external_purchase or payload.payment_method == EXTERNAL_PAYMENT_METHOD


def validate_contribution(payload: ContributionCreate) -> None:
    """Check everything that does not need the database."""
    if len(payload.guest_name.strip()) < 2:
        raise ValidationError("Guest name must be at least 2 characters")
    if not payload.guest_phone.strip():
        raise ValidationError("Guest phone is required")
    if payload.currency not in CURRENCIES:
        raise ValidationError(f"Invalid currency: {payload.currency!r}")
    if payload.payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"Invalid payment method: {payload.payment_method!r}")

    if is_external_purchase(payload):
        if payload.amount < 0:
            raise ValidationError("Amount cannot be negative")
        return

    if payload.amount <= 0:
        raise ValidationError("Amount must be greater than 0")
    minimum = settings.min_contribution_by_currency[payload.currency]
    if payload.amount < minimum:
        raise ValidationError(f"Minimum contribution is {minimum} cents in {payload.currency}")


async def submit_contribution(
    db: AsyncSession,
    payload: ContributionCreate,
    *,
    context: SessionContext,
) -> Contribution:
    """Store a guest contribution as pending. The gift's funded amount is not touched."""
    context.require_guest()
    validate_contribution(payload)

    gift = await db.get(Gift, payload.gift_id)
    if gift is None:
        raise NotFoundError("Gift not found")
    if gift.status == GiftStatusEnum.HIDDEN.value:
        raise ConflictError("This gift is not available")
    if gift.status == GiftStatusEnum.COMPLETED.value:
        raise ConflictError("This gift has already been completed")
    if is_external_purchase(payload) and gift.type != GiftTypeEnum.EXTERNAL.value:
        raise ConflictError("Only external gifts can be acknowledged as external purchases")

    contribution = Contribution(
        gift=gift,
        guest_name=payload.guest_name.strip(),
        guest_phone=payload.guest_phone.strip(),
        guest_message=payload.guest_message,
        amount=payload.amount,
        currency=payload.currency,
        payment_method=payload.payment_method,
        status=ContributionStatusEnum.PENDING.value,
    )
    db.add(contribution)
    await db.commit()

    logger.info(
        "Contribution submitted id=%s gift_id=%s amount=%s currency=%s method=%s",
        contribution.id,
        gift.id,
        contribution.amount,
        contribution.currency,
        contribution.payment_method,
    )
    return contribution


async def list_contributions(
    db: AsyncSession,
    *,
    context: SessionContext,
    status: str | None = None,
    gift_id: int | None = None,
) -> list[Contribution]:
    context.require_admin()
    query = select(Contribution).options(selectinload(Contribution.gift))
    # Unknown status filters are ignored rather than rejected.
    if status in CONTRIBUTION_STATUSES:
        query = query.where(Contribution.status == status)
    if gift_id is not None:
        query = query.where(Contribution.gift_id == gift_id)
    query = query.order_by(Contribution.created_at.desc(), Contribution.id.desc())
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_contribution(
    db: AsyncSession,
    contribution_id: int,
    *,
    context: SessionContext,
) -> Contribution:
    context.require_admin()
    result = await db.execute(
        select(Contribution)
        .options(selectinload(Contribution.gift))
        .where(Contribution.id == contribution_id)
    )
    contribution = result.scalar_one_or_none()
    if contribution is None:
        raise NotFoundError("Contribution not found")
    return contribution


async def contribution_stats(db: AsyncSession, *, context: SessionContext) -> dict[str, object]:
    context.require_admin()
    counts_result = await db.execute(
        select(Contribution.status, func.count(Contribution.id)).group_by(Contribution.status)
    )
    counts = {status: count for status, count in counts_result.all()}

    raised_result = await db.execute(
        select(Contribution.currency, func.coalesce(func.sum(Contribution.amount), 0))
        .where(Contribution.status == ContributionStatusEnum.VERIFIED.value)
        .group_by(Contribution.currency)
    )
    raised_by_currency = {currency: int(total) for currency, total in raised_result.all()}

    total_gifts = await db.scalar(select(func.count(Gift.id)))

    return {
        "pending": counts.get(ContributionStatusEnum.PENDING.value, 0),
        "verified": counts.get(ContributionStatusEnum.VERIFIED.value, 0),
        "rejected": counts.get(ContributionStatusEnum.REJECTED.value, 0),
        "total_gifts": total_gifts or 0,
        "total_raised": sum(raised_by_currency.values()),
        "total_raised_by_currency": raised_by_currency,
    }
