from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from .db import transaction_scope
from .models import Order, Product


class ProductStore:
    """Products table, accessed by id."""

    def __init__(self, session: Session):
        self.session = session

    def find_by_id(self, product_id: int) -> Optional[Product]:
        return self.session.get(Product, product_id)

    def exists_by_id(self, product_id: int) -> bool:
        return self.session.get(Product, product_id) is not None

    def find_all(self) -> List[Product]:
        return list(self.session.execute(select(Product).order_by(Product.id)).scalars().all())

    def save(self, product: Product) -> Product:
        self.session.add(product)
        self.session.flush()  # assigns product.id
        self.session.refresh(product)
        return product

    def delete_by_id(self, product_id: int) -> None:
        p = self.session.get(Product, product_id)
        if p is not None:
            self.session.delete(p)
            self.session.flush()


class OrderStore:
    """Orders and their items, always loaded and written together."""

    def __init__(self, session: Session):
        self.session = session

    def find_all(self) -> List[Order]:
        stmt = select(Order).options(selectinload(Order.items)).order_by(Order.id)
        return list(self.session.execute(stmt).scalars().all())

    def find_by_id(self, order_id: int) -> Optional[Order]:
        return self.session.get(Order, order_id, options=[selectinload(Order.items)])

    def find_between(self, start: datetime, end: datetime) -> List[Order]:
        stmt = (
            select(Order)
            .options(selectinload(Order.items))
            .where(Order.order_time >= start, Order.order_time <= end)
            .order_by(Order.order_time, Order.id)
        )
        return list(self.session.execute(stmt).scalars().all())

    def save(self, order: Order) -> Order:
        # cascade="all" on Order.items adds the items too
        self.session.add(order)
        self.session.flush()
        return order

    def delete_by_id(self, order_id: int) -> None:
        o = self.session.get(Order, order_id)
        if o is not None:
            self.session.delete(o)
            self.session.flush()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with transaction_scope(self.session):
            yield
