# storefront/repos/order_repo.py
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import select, update, func, or_, cast, String
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.order import OrderModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        # bez commita, zamowienie i czyszczenie koszyka ida w jednej transakcji
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.id == order_id)
        ).scalar_one_or_none()

    def list_by_user(self, user_id: int) -> List[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .options(selectinload(OrderModel.items))
                .where(OrderModel.user_id == user_id)
                .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            ).scalars().all()
        )

    def list_filtered(
        self,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
        search: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> Tuple[List[OrderModel], int]:
        conditions = []
        if status:
            conditions.append(OrderModel.order_status == status)
        if payment_status:
            conditions.append(OrderModel.payment_status == payment_status)
        if search:
            pattern = f"%{search.lower()}%"
            conditions.append(
                or_(
                    func.lower(cast(OrderModel.id, String)).like(pattern),
                    func.lower(OrderModel.customer_name).like(pattern),
                    func.lower(OrderModel.customer_email).like(pattern),
                )
            )
        if date_from:
            conditions.append(OrderModel.created_at >= date_from)
        if date_to:
            conditions.append(OrderModel.created_at <= date_to)

        total = self.db.execute(
            select(func.count(OrderModel.id)).where(*conditions)
        ).scalar_one()

        rows = self.db.execute(
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(*conditions)
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            .offset(offset)
            .limit(limit)
        ).scalars().all()

        return list(rows), total

    def update_order_if_status(self, order_id: int, expected_status: str, new_data: dict) -> int:
        # warunkowy update, analogicznie do optimistic locking na koszyku
        result = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.order_status == expected_status)
            .values(**new_data)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
