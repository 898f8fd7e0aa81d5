import logging

from fastapi import APIRouter, Query, Request, status

from registry.api.deps import AdminContextDep, DbSessionDep, SessionContextDep
from registry.core.audit import AuditAction, audit_admin_action, audit_log
from registry.models.models import ContributionStatusEnum
from registry.schemas.contributions import (
    ContributionCreate,
    ContributionDetail,
    ContributionPublic,
    ContributionStats,
    ContributionStatusResult,
    ContributionStatusUpdate,
    ContributionWithGift,
    GiftFundingState,
)
from registry.services import contributions as contribution_service
from registry.services.funding import update_contribution_status


logger = logging.getLogger("registry.contributions")

router = APIRouter(prefix="/contributions", tags=["contributions"])

_STATUS_MESSAGES = {
    ContributionStatusEnum.VERIFIED.value: "Contribution verified",
    ContributionStatusEnum.REJECTED.value: "Contribution rejected",
    ContributionStatusEnum.PENDING.value: "Contribution marked as pending",
}


@router.post("", response_model=ContributionWithGift, status_code=status.HTTP_201_CREATED)
async def create_contribution(
    payload: ContributionCreate,
    request: Request,
    db: DbSessionDep,
    context: SessionContextDep,
) -> ContributionWithGift:
    contribution = await contribution_service.submit_contribution(db, payload, context=context)
    audit_log(
        AuditAction.CONTRIBUTION_CREATE,
        request=request,
        role=context.role.value if context.role else None,
        details={
            "contribution_id": contribution.id,
            "gift_id": contribution.gift_id,
            "amount": contribution.amount,
            "currency": contribution.currency,
        },
    )
    return ContributionWithGift.model_validate(contribution)


@router.get("", response_model=list[ContributionWithGift])
async def list_contributions(
    db: DbSessionDep,
    context: AdminContextDep,
    status_filter: str | None = Query(default=None, alias="status"),
    gift_id: int | None = None,
) -> list[ContributionWithGift]:
    items = await contribution_service.list_contributions(
        db,
        context=context,
        status=status_filter,
        gift_id=gift_id,
    )
    return [ContributionWithGift.model_validate(item) for item in items]


@router.get("/stats", response_model=ContributionStats)
async def get_contribution_stats(db: DbSessionDep, context: AdminContextDep) -> ContributionStats:
    return ContributionStats(**await contribution_service.contribution_stats(db, context=context))


@router.get("/{contribution_id}", response_model=ContributionDetail)
async def get_contribution(
    contribution_id: int,
    db: DbSessionDep,
    context: AdminContextDep,
) -> ContributionDetail:
    contribution = await contribution_service.get_contribution(db, contribution_id, context=context)
    return ContributionDetail.model_validate(contribution)


@router.put("/{contribution_id}", response_model=ContributionStatusResult)
async def update_contribution(
    contribution_id: int,
    payload: ContributionStatusUpdate,
    request: Request,
    db: DbSessionDep,
    context: AdminContextDep,
) -> ContributionStatusResult:
    result = await update_contribution_status(
        db,
        contribution_id,
        payload.status,
        context=context,
        verified_by=payload.verified_by,
    )
    audit_admin_action(
        AuditAction.CONTRIBUTION_STATUS_CHANGE,
        request,
        {
            "contribution_id": contribution_id,
            "gift_id": result.gift_id,
            "status": payload.status,
            "amount_delta": result.amount_delta,
        },
    )
    return ContributionStatusResult(
        contribution=ContributionPublic.model_validate(result.contribution),
        gift=GiftFundingState(
            id=result.gift_id,
            current_amount=result.current_amount,
            status=result.gift_status,
        ),
        message=_STATUS_MESSAGES[payload.status],
    )
