from fastapi import APIRouter, Request

from registry.api.deps import AdminContextDep, DbSessionDep, SessionContextDep
from registry.core.audit import AuditAction, audit_admin_action
from registry.schemas.site import (
    PaymentMethodBulkUpsert,
    PaymentMethodPublic,
    PaymentMethodUpsert,
    SiteSettingsAdmin,
    SiteSettingsPublic,
    SiteSettingsUpdate,
)
from registry.services import site as site_service


payment_router = APIRouter(prefix="/payment-methods", tags=["payment-methods"])
settings_router = APIRouter(prefix="/settings", tags=["settings"])


@payment_router.get("", response_model=list[PaymentMethodPublic])
async def list_payment_methods(
    db: DbSessionDep,
    context: SessionContextDep,
    include_disabled: bool = False,
) -> list[PaymentMethodPublic]:
    methods = await site_service.list_payment_methods(db, context=context, include_disabled=include_disabled)
    return [PaymentMethodPublic.model_validate(method) for method in methods]


@payment_router.post("", response_model=PaymentMethodPublic)
async def save_payment_method(
    payload: PaymentMethodUpsert,
    request: Request,
    db: DbSessionDep,
    context: AdminContextDep,
) -> PaymentMethodPublic:
    method = await site_service.upsert_payment_method(db, payload, context=context)
    audit_admin_action(AuditAction.PAYMENT_METHODS_UPDATE, request, {"types": [method.type]})
    return PaymentMethodPublic.model_validate(method)


@payment_router.put("", response_model=list[PaymentMethodPublic])
async def save_payment_methods(
    payload: PaymentMethodBulkUpsert,
    request: Request,
    db: DbSessionDep,
    context: AdminContextDep,
) -> list[PaymentMethodPublic]:
    methods = await site_service.replace_payment_methods(db, payload.payment_methods, context=context)
    audit_admin_action(AuditAction.PAYMENT_METHODS_UPDATE, request, {"types": [m.type for m in methods]})
    return [PaymentMethodPublic.model_validate(method) for method in methods]


@settings_router.get("", response_model=SiteSettingsAdmin | SiteSettingsPublic)
async def get_settings(db: DbSessionDep, context: SessionContextDep) -> SiteSettingsAdmin | SiteSettingsPublic:
    site = await site_service.get_site_settings(db)
    if context.is_admin:
        return SiteSettingsAdmin.model_validate(site)
    return SiteSettingsPublic.model_validate(site)


@settings_router.put("", response_model=SiteSettingsAdmin)
async def update_settings(
    payload: SiteSettingsUpdate,
    request: Request,
    db: DbSessionDep,
    context: AdminContextDep,
) -> SiteSettingsAdmin:
    site = await site_service.update_site_settings(db, payload, context=context)
    audit_admin_action(
        AuditAction.SETTINGS_UPDATE,
        request,
        {"fields": sorted(payload.model_dump(exclude_unset=True))},
    )
    return SiteSettingsAdmin.model_validate(site)
