import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from registry.core.errors import ConflictError, NotFoundError, ValidationError
from registry.core.security import SessionContext
from registry.models.models import (
    Category,
    Contribution,
    ContributionStatusEnum,
    Gift,
    GiftStatusEnum,
    GiftTypeEnum,
)
from registry.schemas.gifts import CategoryCreate, CategoryUpdate, GiftCreate, GiftUpdate
from registry.services.funding import apply_derived_status


logger = logging.getLogger("registry.catalog")


def funding_progress(current_amount: int, target_amount: int | None) -> int:
    if not target_amount or target_amount <= 0:
        return 0
    return min(round(current_amount / target_amount * 100), 100)


def _check_gift_shape(gift_type: str, target_amount: int | None, external_url: str | None) -> None:
    if gift_type == GiftTypeEnum.FUNDABLE.value and (not target_amount or target_amount <= 0):
        raise ValidationError("Fundable gifts need a target amount greater than 0")
    if gift_type == GiftTypeEnum.EXTERNAL.value and not external_url:
        raise ValidationError("External gifts need an external link")


async def _contribution_counts(db: AsyncSession, gift_ids: list[int]) -> dict[int, int]:
    if not gift_ids:
        return {}
    result = await db.execute(
        select(Contribution.gift_id, func.count(Contribution.id))
        .where(Contribution.gift_id.in_(gift_ids))
        .group_by(Contribution.gift_id)
    )
    return {gift_id: count for gift_id, count in result.all()}


async def contribution_count(db: AsyncSession, gift_id: int) -> int:
    counts = await _contribution_counts(db, [gift_id])
    return counts.get(gift_id, 0)


async def _next_order(db: AsyncSession, column, *criteria) -> int:
    query = select(func.max(column))
    if criteria:
        query = query.where(*criteria)
    current_max = await db.scalar(query)
    return (current_max if current_max is not None else -1) + 1


async def _get_category(db: AsyncSession, category_id: int) -> Category:
    category = await db.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category not found")
    return category


# ── Gifts ────────────────────────────────────────────────────────────────────


async def list_gifts(
    db: AsyncSession,
    *,
    context: SessionContext,
    category_id: int | None = None,
    category_slug: str | None = None,
    include_hidden: bool = False,
) -> list[tuple[Gift, int]]:
    """Gifts in display order, each paired with its number of contributions."""
    query = select(Gift).options(selectinload(Gift.category))
    if category_id is not None:
        query = query.where(Gift.category_id == category_id)
    if category_slug:
        query = query.join(Gift.category).where(Category.slug == category_slug)
    if not (include_hidden and context.is_admin):
        query = query.where(Gift.status != GiftStatusEnum.HIDDEN.value)
    query = query.order_by(Gift.order.asc(), Gift.created_at.desc(), Gift.id.desc())

    gifts = list((await db.execute(query)).scalars().all())
    counts = await _contribution_counts(db, [gift.id for gift in gifts])
    return [(gift, counts.get(gift.id, 0)) for gift in gifts]


async def get_gift(
    db: AsyncSession,
    gift_id: int,
    *,
    context: SessionContext,
) -> tuple[Gift, list[Contribution], int]:
    """A gift with its verified contribution history (newest first) and total contribution count."""
    result = await db.execute(
        select(Gift).options(selectinload(Gift.category)).where(Gift.id == gift_id)
    )
    gift = result.scalar_one_or_none()
    if gift is None or (gift.status == GiftStatusEnum.HIDDEN.value and not context.is_admin):
        raise NotFoundError("Gift not found")

    verified_result = await db.execute(
        select(Contribution)
        .where(
            Contribution.gift_id == gift.id,
            Contribution.status == ContributionStatusEnum.VERIFIED.value,
        )
        .order_by(Contribution.created_at.desc(), Contribution.id.desc())
    )
    verified = list(verified_result.scalars().all())
    return gift, verified, await contribution_count(db, gift.id)


async def create_gift(db: AsyncSession, payload: GiftCreate, *, context: SessionContext) -> Gift:
    context.require_admin()
    category = await _get_category(db, payload.category_id)

    gift_type = payload.type.value
    _check_gift_shape(gift_type, payload.target_amount, payload.external_url)

    order = payload.order
    if order is None:
        order = await _next_order(db, Gift.order, Gift.category_id == category.id)

    gift = Gift(
        category=category,
        title=payload.title,
        description=payload.description,
        image_url=payload.image_url,
        external_url=payload.external_url,
        type=gift_type,
        target_amount=payload.target_amount if gift_type == GiftTypeEnum.FUNDABLE.value else None,
        current_amount=0,
        status=(payload.status or GiftStatusEnum.AVAILABLE).value,
        order=order,
    )
    apply_derived_status(gift)
    db.add(gift)
    await db.commit()
    logger.info("Gift created id=%s type=%s category_id=%s", gift.id, gift.type, category.id)
    return gift


async def update_gift(
    db: AsyncSession,
    gift_id: int,
    payload: GiftUpdate,
    *,
    context: SessionContext,
) -> Gift:
    """Partial update. ``current_amount`` is never writable here."""
    context.require_admin()
    gift = await db.get(Gift, gift_id)
    if gift is None:
        raise NotFoundError("Gift not found")

    data = payload.model_dump(exclude_unset=True)

    if data.get("category_id") is not None and data["category_id"] != gift.category_id:
        await _get_category(db, data["category_id"])

    gift_type = data["type"].value if data.get("type") is not None else gift.type
    target_amount = data["target_amount"] if "target_amount" in data else gift.target_amount
    external_url = data["external_url"] if "external_url" in data else gift.external_url
    _check_gift_shape(gift_type, target_amount, external_url)

    for key in ("category_id", "title", "order"):
        if data.get(key) is not None:
            setattr(gift, key, data[key])
    for key in ("description", "image_url", "external_url"):
        if key in data:
            setattr(gift, key, data[key])
    gift.type = gift_type
    gift.target_amount = target_amount if gift_type == GiftTypeEnum.FUNDABLE.value else None
    if data.get("status") is not None:
        gift.status = data["status"].value
    apply_derived_status(gift)

    await db.commit()
    await db.refresh(gift, attribute_names=["category"])
    logger.info("Gift updated id=%s fields=%s status=%s", gift.id, sorted(data), gift.status)
    return gift


async def delete_gift(db: AsyncSession, gift_id: int, *, context: SessionContext) -> None:
    """Delete a gift together with all of its contributions."""
    context.require_admin()
    gift = await db.get(Gift, gift_id)
    if gift is None:
        raise NotFoundError("Gift not found")
    await db.delete(gift)
    await db.commit()
    logger.info("Gift deleted id=%s", gift_id)


# ── Categories ───────────────────────────────────────────────────────────────


async def list_categories(db: AsyncSession) -> list[tuple[Category, int]]:
    gift_count = (
        select(func.count(Gift.id))
        .where(Gift.category_id == Category.id)
        .correlate(Category)
        .scalar_subquery()
    )
    result = await db.execute(
        select(Category, gift_count).order_by(Category.order.asc(), Category.id.asc())
    )
    return [(category, count) for category, count in result.all()]


async def _ensure_slug_free(db: AsyncSession, slug: str) -> None:
    existing = await db.scalar(select(Category.id).where(Category.slug == slug))
    if existing is not None:
        raise ConflictError("A category with that slug already exists")


async def _commit_category(db: AsyncSession) -> None:
    # A concurrent request may take the slug between the check and the write.
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("A category with that slug already exists")


async def create_category(db: AsyncSession, payload: CategoryCreate, *, context: SessionContext) -> Category:
    context.require_admin()
    await _ensure_slug_free(db, payload.slug)
    order = payload.order
    if order is None:
        order = await _next_order(db, Category.order)
    category = Category(name=payload.name, slug=payload.slug, order=order)
    db.add(category)
    await _commit_category(db)
    logger.info("Category created id=%s slug=%s", category.id, category.slug)
    return category


async def update_category(
    db: AsyncSession,
    category_id: int,
    payload: CategoryUpdate,
    *,
    context: SessionContext,
) -> Category:
    context.require_admin()
    category = await _get_category(db, category_id)
    if payload.slug and payload.slug != category.slug:
        await _ensure_slug_free(db, payload.slug)

    for key, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(category, key, value.strip() if key == "name" else value)
    await _commit_category(db)
    return category


async def category_gift_count(db: AsyncSession, category_id: int) -> int:
    return await db.scalar(select(func.count(Gift.id)).where(Gift.category_id == category_id)) or 0


async def delete_category(db: AsyncSession, category_id: int, *, context: SessionContext) -> None:
    context.require_admin()
    category = await _get_category(db, category_id)
    gifts = await category_gift_count(db, category.id)
    if gifts:
        raise ConflictError(f"Category still has {gifts} gift(s)")
    await db.delete(category)
    await db.commit()
    logger.info("Category deleted id=%s", category_id)
