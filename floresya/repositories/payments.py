from typing import List, Optional, Tuple

from sqlalchemy import select, update, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from floresya.models import Payment, PaymentMethod, PaymentStatus, Order
from floresya.core.utils import utcnow


class PaymentRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, payment_id: int) -> Optional[Payment]:
        result = await self.db.execute(select(Payment).where(Payment.id == payment_id))
        return result.scalar_one_or_none()

    async def get_method(self, payment_method_id: int) -> Optional[PaymentMethod]:
        result = await self.db.execute(
            select(PaymentMethod).where(PaymentMethod.id == payment_method_id)
        )
        return result.scalar_one_or_none()

    async def list_methods(self, active_only: bool = True) -> List[PaymentMethod]:
        query = select(PaymentMethod)
        if active_only:
            query = query.where(PaymentMethod.active == True)
        result = await self.db.execute(query.order_by(PaymentMethod.id))
        return list(result.scalars().all())

    async def add(self, payment: Payment) -> Payment:
        self.db.add(payment)
        await self.db.flush()
        return payment

    async def claim_pending(
        self,
        payment_id: int,
        decision: str,
        actor_id: Optional[int],
        notes: Optional[str],
    ) -> bool:
        """
        Move a payment out of `pending` in a single conditional UPDATE.

        Only one of two concurrent reviewers gets True.
        """
        now = utcnow()
        result = await self.db.execute(
            update(Payment)
            .where(Payment.id == payment_id, Payment.status == PaymentStatus.PENDING.value)
            .values(
                status=decision,
                verified_by=actor_id,
                verified_at=now,
                notes=notes,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def has_active_for_order(self, order_id: int) -> bool:
        """True when the order has a payment that is pending or verified."""
        result = await self.db.execute(
            select(Payment.id)
            .where(
                Payment.order_id == order_id,
                Payment.status != PaymentStatus.FAILED.value,
            )
            .limit(1)
        )
        return result.first() is not None

    async def list_for_order(self, order_id: int) -> List[Payment]:
        result = await self.db.execute(
            select(Payment)
            .where(Payment.order_id == order_id)
            .order_by(Payment.created_at.desc(), Payment.id.desc())
        )
        return list(result.scalars().all())

    async def list(
        self,
        page: int = 1,
        limit: int = 20,
        status: Optional[str] = None,
        payment_method_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Payment], int]:
        query = select(Payment)
        if status:
            query = query.where(Payment.status == status)
        if payment_method_id is not None:
            query = query.where(Payment.payment_method_id == payment_method_id)
        if search:
            pattern = f"%{search}%"
            query = query.join(Order, Payment.order_id == Order.id).where(
                or_(
                    Order.order_number.ilike(pattern),
                    Payment.reference_number.ilike(pattern),
                )
            )

        total = (await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )).scalar() or 0

        result = await self.db.execute(
            query.order_by(Payment.created_at.desc(), Payment.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total
