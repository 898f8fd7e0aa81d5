"""Gift funding reconciliation.

A gift's ``current_amount`` is only ever moved here, when an administrator
changes the status of one of its contributions. The contribution row and the
gift row are updated in the same transaction, and reconciliations touching the
same gift are serialized so that ``current_amount`` always equals the sum of
that gift's verified contributions.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from registry.core.errors import NotFoundError, ValidationError
from registry.core.security import SessionContext
from registry.models.models import Contribution, ContributionStatusEnum, Gift, GiftStatusEnum, GiftTypeEnum


logger = logging.getLogger("registry.funding")

CONTRIBUTION_STATUSES = frozenset(item.value for item in ContributionStatusEnum)
DEFAULT_VERIFIER = "Admin"


def derive_status(gift_type: str, current_amount: int, target_amount: int | None) -> GiftStatusEnum | None:
    """Status implied by the funded amount, or None when the gift type has no derived status."""
    if gift_type != GiftTypeEnum.FUNDABLE.value or not target_amount:
        return None
    if current_amount >= target_amount:
        return GiftStatusEnum.COMPLETED
    if current_amount > 0:
        return GiftStatusEnum.PARTIALLY_FUNDED
    return GiftStatusEnum.AVAILABLE


def apply_derived_status(gift: Gift) -> None:
    # hidden is a manual override and survives any recomputation
    if gift.status == GiftStatusEnum.HIDDEN.value:
        return
    derived = derive_status(gift.type, gift.current_amount, gift.target_amount)
    if derived is not None:
        gift.status = derived.value


def compute_amount_delta(previous_status: str, target_status: str, amount: int) -> int:
    was_verified = previous_status == ContributionStatusEnum.VERIFIED.value
    is_verified = target_status == ContributionStatusEnum.VERIFIED.value
    if was_verified and not is_verified:
        return -amount
    if is_verified and not was_verified:
        return amount
    return 0


@dataclass
class ReconciliationResult:
    contribution: Contribution
    gift_id: int
    current_amount: int
    gift_status: str
    amount_delta: int


class GiftLockRegistry:
    """One asyncio lock per gift id, dropped as soon as nobody holds or waits on it."""

    def __init__(self) -> None:
        self._locks: dict[int, asyncio.Lock] = {}
        self._users: dict[int, int] = {}

    @asynccontextmanager
    async def hold(self, gift_id: int) -> AsyncIterator[None]:
        lock = self._locks.get(gift_id)
        if lock is None:
            lock = self._locks[gift_id] = asyncio.Lock()
        self._users[gift_id] = self._users.get(gift_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[gift_id] -= 1
            if not self._users[gift_id]:
                del self._users[gift_id]
                del self._locks[gift_id]

    def __len__(self) -> int:
        return len(self._locks)


gift_locks = GiftLockRegistry()


async def update_contribution_status(
    db: AsyncSession,
    contribution_id: int,
    target_status: str,
    *,
    context: SessionContext,
    verified_by: str | None = None,
) -> ReconciliationResult:
    context.require_admin()
    if target_status not in CONTRIBUTION_STATUSES:
        raise ValidationError(f"Invalid contribution status: {target_status!r}")

    gift_id = await db.scalar(select(Contribution.gift_id).where(Contribution.id == contribution_id))
    if gift_id is None:
        raise NotFoundError("Contribution not found")

    async with gift_locks.hold(gift_id):
        try:
            # Re-read both rows under the lock; FOR UPDATE is a no-op on SQLite.
            gift = (
                await db.execute(
                    select(Gift)
                    .where(Gift.id == gift_id)
                    .with_for_update()
                    .execution_options(populate_existing=True)
                )
            ).scalar_one_or_none()
            contribution = (
                await db.execute(
                    select(Contribution)
                    .where(Contribution.id == contribution_id)
                    .with_for_update()
                    .execution_options(populate_existing=True)
                )
            ).scalar_one_or_none()
            if gift is None or contribution is None:
                raise NotFoundError("Contribution not found")

            previous_status = contribution.status
            amount_delta = compute_amount_delta(previous_status, target_status, contribution.amount)

            contribution.status = target_status
            if target_status == ContributionStatusEnum.VERIFIED.value:
                if previous_status != ContributionStatusEnum.VERIFIED.value:
                    contribution.verified_at = datetime.now(timezone.utc)
                    contribution.verified_by = (verified_by or "").strip() or DEFAULT_VERIFIER
            else:
                contribution.verified_at = None
                contribution.verified_by = None

            if amount_delta:
                gift.current_amount = max(0, gift.current_amount + amount_delta)
                apply_derived_status(gift)

            await db.commit()
        except BaseException:
            await db.rollback()
            raise

    logger.info(
        "Contribution status changed id=%s gift_id=%s %s->%s delta=%s current_amount=%s gift_status=%s",
        contribution.id,
        gift.id,
        previous_status,
        target_status,
        amount_delta,
        gift.current_amount,
        gift.status,
    )
    return ReconciliationResult(
        contribution=contribution,
        gift_id=gift.id,
        current_amount=gift.current_amount,
        gift_status=gift.status,
        amount_delta=amount_delta,
    )
