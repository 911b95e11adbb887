from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy import ForeignKey, Integer, String, DateTime, Numeric


# column limits: Integer quantity, Numeric(12, 2) amounts
MAX_QUANTITY = 2**31 - 1
MAX_AMOUNT = Decimal("9999999999.99")


def utcnow() -> datetime:
    """Current UTC wall-clock time, stored naive."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    pass


class Product(Base):
    __tablename__ = "products"
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)


class Order(Base):
    __tablename__ = "orders"
    id: Mapped[int] = mapped_column(primary_key=True)
    buyer_email: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    order_time: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True, nullable=False)
    total_value: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))

    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id"
    )

    def add_item(self, item: "OrderItem") -> None:
        # back_populates sets item.order
        self.items.append(item)

    def remove_item(self, item: "OrderItem") -> None:
        # not ours: nothing to do
        if item not in self.items:
            return
        self.items.remove(item)
        item.order = None

    def recompute_total(self) -> Decimal:
        """Set total_value to the exact sum of the line totals and return it."""
        self.total_value = sum((item.line_total for item in self.items), Decimal("0"))
        return self.total_value


class OrderItem(Base):
    """
    A line of an order. ``product_name`` and ``price`` are copied from the
    product when the order is placed and never re-read afterwards, so there is no
    foreign key to ``products``.
    """
    __tablename__ = "order_items"
    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"))
    product_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    order: Mapped[Optional[Order]] = relationship(back_populates="items")

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    def __repr__(self) -> str:
        return (
            f"OrderItem(id={self.id!r}, product_id={self.product_id!r}, "
            f"product_name={self.product_name!r}, price={self.price!r}, quantity={self.quantity!r})"
        )
