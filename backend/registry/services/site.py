import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from registry.core.config import settings
from registry.core.errors import ValidationError
from registry.core.security import Role, SessionContext, get_password_hash, verify_password
from registry.models.models import PaymentMethod, SiteSettings
from registry.schemas.site import PaymentMethodUpsert, SiteSettingsUpdate


logger = logging.getLogger("registry.site")

SITE_SETTINGS_ID = 1


async def get_site_settings(db: AsyncSession) -> SiteSettings:
    """Return the single settings row, creating it from configuration defaults on first use."""
    site = await db.scalar(select(SiteSettings).order_by(SiteSettings.id.asc()).limit(1))
    if site is not None:
        return site

    site = SiteSettings(
        id=SITE_SETTINGS_ID,
        guest_password_hash=get_password_hash(settings.default_guest_password),
        admin_password_hash=get_password_hash(settings.default_admin_password),
        event_title=settings.default_event_title,
        event_date=settings.default_event_date,
        event_time=settings.default_event_time,
        event_location=settings.default_event_location,
        hero_message=settings.default_hero_message,
        whatsapp_number=settings.default_whatsapp_number,
    )
    db.add(site)
    try:
        await db.commit()
    except IntegrityError:
        # Another request seeded the row first.
        await db.rollback()
        site = await db.scalar(select(SiteSettings).order_by(SiteSettings.id.asc()).limit(1))
        if site is None:
            raise
    else:
        logger.info("Site settings seeded from configuration defaults")
    return site


async def check_password(db: AsyncSession, role: Role, password: str) -> bool:
    site = await get_site_settings(db)
    hashed = site.admin_password_hash if role is Role.ADMIN else site.guest_password_hash
    return verify_password(password, hashed)


async def update_site_settings(
    db: AsyncSession,
    payload: SiteSettingsUpdate,
    *,
    context: SessionContext,
) -> SiteSettings:
    context.require_admin()
    site = await get_site_settings(db)
    data = payload.model_dump(exclude_unset=True)

    guest_password = data.pop("guest_password", None)
    admin_password = data.pop("admin_password", None)
    if guest_password is not None:
        site.guest_password_hash = get_password_hash(guest_password)
    if admin_password is not None:
        site.admin_password_hash = get_password_hash(admin_password)
    for key, value in data.items():
        if value is not None:
            setattr(site, key, value)

    await db.commit()
    logger.info(
        "Site settings updated fields=%s passwords_changed=%s",
        sorted(data),
        [name for name, value in (("guest", guest_password), ("admin", admin_password)) if value],
    )
    return site


async def list_payment_methods(
    db: AsyncSession,
    *,
    context: SessionContext,
    include_disabled: bool = False,
) -> list[PaymentMethod]:
    query = select(PaymentMethod)
    if not (include_disabled and context.is_admin):
        query = query.where(PaymentMethod.enabled.is_(True))
    result = await db.execute(query.order_by(PaymentMethod.order.asc(), PaymentMethod.id.asc()))
    return list(result.scalars().all())


async def _upsert_payment_method(db: AsyncSession, payload: PaymentMethodUpsert, default_order: int) -> PaymentMethod:
    method = await db.scalar(select(PaymentMethod).where(PaymentMethod.type == payload.type.value))
    if method is None:
        method = PaymentMethod(type=payload.type.value, value="", enabled=True)
        db.add(method)
    method.label = payload.label.strip()
    method.currency = payload.currency.value
    if payload.value is not None:
        method.value = payload.value.strip()
    if payload.enabled is not None:
        method.enabled = payload.enabled
    method.order = payload.order if payload.order is not None else default_order
    return method


async def upsert_payment_method(
    db: AsyncSession,
    payload: PaymentMethodUpsert,
    *,
    context: SessionContext,
) -> PaymentMethod:
    context.require_admin()
    current_max = await db.scalar(select(func.max(PaymentMethod.order)))
    default_order = (current_max if current_max is not None else -1) + 1
    existing_order = await db.scalar(
        select(PaymentMethod.order).where(PaymentMethod.type == payload.type.value)
    )
    method = await _upsert_payment_method(
        db,
        payload,
        existing_order if existing_order is not None else default_order,
    )
    await db.commit()
    logger.info("Payment method saved type=%s enabled=%s", method.type, method.enabled)
    return method


async def replace_payment_methods(
    db: AsyncSession,
    payloads: list[PaymentMethodUpsert],
    *,
    context: SessionContext,
) -> list[PaymentMethod]:
    """Upsert several methods in one transaction; list position is the default order."""
    context.require_admin()
    types = [payload.type.value for payload in payloads]
    if len(types) != len(set(types)):
        raise ValidationError("Each payment method type may appear only once")
    try:
        methods = [
            await _upsert_payment_method(db, payload, index)
            for index, payload in enumerate(payloads)
        ]
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    logger.info("Payment methods saved types=%s", [method.type for method in methods])
    return methods
