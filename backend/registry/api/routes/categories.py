from fastapi import APIRouter, Request, status

from registry.api.deps import AdminContextDep, DbSessionDep
from registry.core.audit import AuditAction, audit_admin_action
from registry.models.models import Category
from registry.schemas.gifts import CategoryCreate, CategoryPublic, CategoryUpdate
from registry.services import catalog


router = APIRouter(prefix="/categories", tags=["categories"])


def _serialize_category(category: Category, gift_count: int = 0) -> CategoryPublic:
    return CategoryPublic(
        id=category.id,
        name=category.name,
        slug=category.slug,
        order=category.order,
        gift_count=gift_count,
    )


@router.get("", response_model=list[CategoryPublic])
async def list_categories(db: DbSessionDep) -> list[CategoryPublic]:
    return [_serialize_category(category, count) for category, count in await catalog.list_categories(db)]


@router.post("", response_model=CategoryPublic, status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: CategoryCreate,
    request: Request,
    db: DbSessionDep,
    context: AdminContextDep,
) -> CategoryPublic:
    category = await catalog.create_category(db, payload, context=context)
    audit_admin_action(AuditAction.CATEGORY_CREATE, request, {"category_id": category.id, "slug": category.slug})
    return _serialize_category(category)


@router.put("/{category_id}", response_model=CategoryPublic)
async def update_category(
    category_id: int,
    payload: CategoryUpdate,
    request: Request,
    db: DbSessionDep,
    context: AdminContextDep,
) -> CategoryPublic:
    category = await catalog.update_category(db, category_id, payload, context=context)
    audit_admin_action(AuditAction.CATEGORY_UPDATE, request, {"category_id": category.id})
    return _serialize_category(category, await catalog.category_gift_count(db, category.id))


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: int,
    request: Request,
    db: DbSessionDep,
    context: AdminContextDep,
) -> None:
    await catalog.delete_category(db, category_id, context=context)
    audit_admin_action(AuditAction.CATEGORY_DELETE, request, {"category_id": category_id})
