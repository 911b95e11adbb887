"""Order placement and order queries.

``OrderService.place_order`` is the only write path for orders: it validates
the request, snapshots each referenced product into a new line item, stamps
the order time, recomputes the total and saves the whole aggregate in one
transaction. Orders are never updated afterwards.
"""
import logging
from datetime import datetime, timezone
from typing import List, NamedTuple, Sequence

from email_validator import EmailNotValidError, validate_email
from sqlalchemy.exc import SQLAlchemyError

from .errors import InvalidInputError, PersistenceError, ResourceNotFoundError
from .models import MAX_AMOUNT, MAX_QUANTITY, Order, OrderItem, utcnow
from .schemas import OrderItemOut, OrderOut
from .stores import OrderStore, ProductStore

logger = logging.getLogger(__name__)


class ItemRequest(NamedTuple):
    product_id: int
    quantity: int


def to_order_out(order: Order) -> OrderOut:
    return OrderOut(
        id=order.id,
        buyer_email=order.buyer_email,
        order_time=order.order_time,
        total_value=order.total_value,
        items=[
            OrderItemOut(
                id=i.id,
                product_id=i.product_id,
                product_name=i.product_name,
                price=i.price,
                quantity=i.quantity,
            )
            for i in order.items
        ],
    )


def _as_utc(ts: datetime) -> datetime:
    # order_time is stored as naive UTC
    if ts.tzinfo is not None:
        return ts.astimezone(timezone.utc).replace(tzinfo=None)
    return ts


def check_order_request(buyer_email: str, items: Sequence[ItemRequest]) -> str:
    """
    Raise InvalidInputError listing every violated constraint, otherwise
    return the normalized buyer email.
    """
    violations: List[str] = []
    normalized = ""
    if not buyer_email or not buyer_email.strip():
        violations.append("buyerEmail: Email is required")
    else:
        try:
            normalized = validate_email(buyer_email.strip(), check_deliverability=False).normalized
        except EmailNotValidError:
            violations.append("buyerEmail: Email should be valid")
    if not items:
        violations.append("items: Order must contain at least one item")
    for n, it in enumerate(items or []):
        qty = it.quantity
        if isinstance(qty, bool) or not isinstance(qty, int) or qty < 1:
            violations.append(f"items[{n}].quantity: must be a positive integer")
        elif qty > MAX_QUANTITY:
            violations.append(f"items[{n}].quantity: must be at most {MAX_QUANTITY}")
    if violations:
        raise InvalidInputError(violations)
    return normalized


class OrderService:
    def __init__(self, orders: OrderStore, products: ProductStore):
        self.orders = orders
        self.products = products

    # ---------- Placement ----------
    def place_order(self, buyer_email: str, items: Sequence[ItemRequest]) -> OrderOut:
        buyer_email = check_order_request(buyer_email, items)

        order = Order(buyer_email=buyer_email)
        for it in items:
            product = self.products.find_by_id(it.product_id)
            if product is None:
                logger.warning("order rejected: unknown product %s", it.product_id)
                raise ResourceNotFoundError("Product", it.product_id)
            order.add_item(
                OrderItem(
                    product_id=product.id,
                    product_name=product.name,
                    price=product.price,
                    quantity=it.quantity,
                )
            )

        order.order_time = utcnow()
        if order.recompute_total() > MAX_AMOUNT:
            raise InvalidInputError([f"totalValue: order total {order.total_value} exceeds {MAX_AMOUNT}"])

        try:
            with self.orders.transaction():
                self.orders.save(order)
        except SQLAlchemyError as exc:
            logger.error("order save failed for %s: %s", buyer_email, exc)
            raise PersistenceError("could not save order") from exc

        logger.info("order %s placed: %d item(s), total %s", order.id, len(order.items), order.total_value)
        return to_order_out(order)

    # ---------- Queries ----------
    def get_all(self) -> List[OrderOut]:
        return [to_order_out(o) for o in self.orders.find_all()]

    def get_by_id(self, order_id: int) -> OrderOut:
        order = self.orders.find_by_id(order_id)
        if order is None:
            raise ResourceNotFoundError("Order", order_id)
        return to_order_out(order)

    def get_by_date_range(self, start: datetime, end: datetime) -> List[OrderOut]:
        start, end = _as_utc(start), _as_utc(end)
        if start > end:
            return []
        return [to_order_out(o) for o in self.orders.find_between(start, end)]
