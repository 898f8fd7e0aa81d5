import logging

from fastapi import APIRouter, Request, status

from registry.api.deps import AdminContextDep, DbSessionDep, SessionContextDep
from registry.core.audit import AuditAction, audit_admin_action
from registry.models.models import Contribution, Gift
from registry.schemas.gifts import (
    CategorySummary,
    GiftCreate,
    GiftDetail,
    GiftPublic,
    GiftUpdate,
    VerifiedContributionPublic,
)
from registry.services import catalog


logger = logging.getLogger("registry.gifts")

router = APIRouter(prefix="/gifts", tags=["gifts"])


def _serialize_gift(gift: Gift, contribution_count: int = 0) -> GiftPublic:
    return GiftPublic(
        id=gift.id,
        category_id=gift.category_id,
        title=gift.title,
        description=gift.description,
        image_url=gift.image_url,
        external_url=gift.external_url,
        type=gift.type,
        target_amount=gift.target_amount,
        current_amount=gift.current_amount,
        status=gift.status,
        order=gift.order,
        created_at=gift.created_at,
        category=CategorySummary.model_validate(gift.category) if gift.category else None,
        contribution_count=contribution_count,
        progress_percent=catalog.funding_progress(gift.current_amount, gift.target_amount),
    )


def _serialize_gift_detail(gift: Gift, verified: list[Contribution], contribution_count: int) -> GiftDetail:
    return GiftDetail(
        **_serialize_gift(gift, contribution_count).model_dump(),
        contributions=[VerifiedContributionPublic.model_validate(item) for item in verified],
    )


@router.get("", response_model=list[GiftPublic])
async def list_gifts(
    db: DbSessionDep,
    context: SessionContextDep,
    category_id: int | None = None,
    category: str | None = None,
    include_hidden: bool = False,
) -> list[GiftPublic]:
    gifts = await catalog.list_gifts(
        db,
        context=context,
        category_id=category_id,
        category_slug=category,
        include_hidden=include_hidden,
    )
    return [_serialize_gift(gift, count) for gift, count in gifts]


@router.get("/{gift_id}", response_model=GiftDetail)
async def get_gift(gift_id: int, db: DbSessionDep, context: SessionContextDep) -> GiftDetail:
    gift, verified, count = await catalog.get_gift(db, gift_id, context=context)
    return _serialize_gift_detail(gift, verified, count)


@router.post("", response_model=GiftPublic, status_code=status.HTTP_201_CREATED)
async def create_gift(
    payload: GiftCreate,
    request: Request,
    db: DbSessionDep,
    context: AdminContextDep,
) -> GiftPublic:
    gift = await catalog.create_gift(db, payload, context=context)
    audit_admin_action(AuditAction.GIFT_CREATE, request, {"gift_id": gift.id, "type": gift.type})
    return _serialize_gift(gift)


@router.put("/{gift_id}", response_model=GiftPublic)
async def update_gift(
    gift_id: int,
    payload: GiftUpdate,
    request: Request,
    db: DbSessionDep,
    context: AdminContextDep,
) -> GiftPublic:
    gift = await catalog.update_gift(db, gift_id, payload, context=context)
    audit_admin_action(
        AuditAction.GIFT_UPDATE,
        request,
        {"gift_id": gift.id, "fields": sorted(payload.model_dump(exclude_unset=True))},
    )
    return _serialize_gift(gift, await catalog.contribution_count(db, gift.id))


@router.delete("/{gift_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_gift(
    gift_id: int,
    request: Request,
    db: DbSessionDep,
    context: AdminContextDep,
) -> None:
    await catalog.delete_gift(db, gift_id, context=context)
    audit_admin_action(AuditAction.GIFT_DELETE, request, {"gift_id": gift_id})
