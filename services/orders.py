"""Order lifecycle: checkout, listing, payment verification and delivery.

Every function takes the request's SQLAlchemy session and the acting
:class:`~core.access.Identity`. Failures are raised as the domain errors in
:mod:`core.errors`; the API layer turns them into HTTP responses.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from sqlalchemy import String, cast, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from core.access import Identity, ensure_admin, ensure_owner
from core.errors import NotFoundError, StorageError, ValidationError
from models.order import DeliveryStatus, Order, PaymentStatus
from models.order_item import OrderItem
from schemas.order import OrderCreate

logger = logging.getLogger(__name__)

PAYMENT_STATUSES = [s.value for s in PaymentStatus]
DELIVERY_STATUSES = [s.value for s in DeliveryStatus]

# Forward path; cancelled can branch off any non-terminal step
DELIVERY_FLOW = [
    DeliveryStatus.PENDING.value,
    DeliveryStatus.PROCESSING.value,
    DeliveryStatus.SHIPPED.value,
    DeliveryStatus.DELIVERED.value,
]
TERMINAL_DELIVERY = {DeliveryStatus.DELIVERED.value, DeliveryStatus.CANCELLED.value}

PERIODS = ("all", "today", "week", "month")

_CENT = Decimal("0.01")


@dataclass
class OrderFilters:
    search: Optional[str] = None
    payment_status: Optional[str] = None
    delivery_status: Optional[str] = None
    period: str = "all"


def _to_decimal(value: float | int | Decimal) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _money(value: float | int | Decimal) -> Decimal:
    return _to_decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)


def _commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Database commit failed")
        raise StorageError("Failed to save order") from exc


def _period_start(period: str, now: datetime) -> Optional[datetime]:
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == "today":
        return today
    if period == "week":
        return today - timedelta(days=today.weekday())
    if period == "month":
        return today.replace(day=1)
    return None


def can_transition_delivery(current: str, target: str) -> bool:
    if current == target:
        return True
    if current in TERMINAL_DELIVERY:
        return False
    if target == DeliveryStatus.CANCELLED.value:
        return True
    return DELIVERY_FLOW.index(target) > DELIVERY_FLOW.index(current)


def _validate_checkout(data: OrderCreate) -> None:
    if not data.items:
        raise ValidationError("Order must contain items")

    address = data.shipping_address
    missing = [
        field
        for field in ("street", "city", "zip_code", "country")
        if not (getattr(address, field) or "").strip()
    ]
    if missing:
        raise ValidationError(f"Missing shipping address fields: {', '.join(missing)}")

    if not data.payment_method.strip():
        raise ValidationError("Payment method is required")

    # Items are stored at cent precision, so the total is checked against that
    expected = sum((_money(item.price) * item.quantity for item in data.items), Decimal("0"))
    if _money(expected) != _money(data.total_amount):
        raise ValidationError(
            f"Total amount {_money(data.total_amount)} does not match items total {_money(expected)}"
        )


def _apply_filters(query, filters: Optional[OrderFilters]):
    if filters is None:
        return query

    if filters.payment_status:
        if filters.payment_status not in PAYMENT_STATUSES:
            raise ValidationError(f"Invalid payment status filter: {filters.payment_status}")
        query = query.filter(Order.payment_status == filters.payment_status)

    if filters.delivery_status:
        if filters.delivery_status not in DELIVERY_STATUSES:
            raise ValidationError(f"Invalid delivery status filter: {filters.delivery_status}")
        query = query.filter(Order.delivery_status == filters.delivery_status)

    if filters.period not in PERIODS:
        raise ValidationError(f"Invalid period filter: {filters.period}")
    start = _period_start(filters.period, datetime.utcnow())
    if start is not None:
        query = query.filter(Order.created_at >= start)

    term = (filters.search or "").strip()
    if term:
        escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"
        query = query.filter(
            or_(
                cast(Order.id, String).ilike(pattern, escape="\\"),
                Order.client_name.ilike(pattern, escape="\\"),
                Order.client_email.ilike(pattern, escape="\\"),
            )
        )
    return query


def _newest_first(query):
    return query.options(selectinload(Order.items)).order_by(Order.created_at.desc(), Order.id.desc())


def _load(db: Session, order_id: int) -> Order:
    order = db.query(Order).filter(Order.id == order_id).one_or_none()
    if not order:
        raise NotFoundError("Order not found")
    return order


def create_order(db: Session, data: OrderCreate, actor: Identity) -> Order:
    _validate_checkout(data)
    address = data.shipping_address

    order = Order(
        user_id=actor.id,
        client_name=actor.name,
        client_email=actor.email,
        total_amount=_money(data.total_amount),
        shipping_street=address.street.strip(),
        shipping_city=address.city.strip(),
        shipping_state=(address.state or "").strip() or None,
        shipping_zip_code=address.zip_code.strip(),
        shipping_country=address.country.strip(),
        payment_method=data.payment_method.strip(),
        payment_status=PaymentStatus.PENDING.value,
        delivery_status=DeliveryStatus.PENDING.value,
    )
    order.items = [
        OrderItem(
            position=position,
            product_id=item.product_id,
            name=item.name,
            quantity=item.quantity,
            price=_money(item.price),
            size=item.size,
            color=item.color,
            image=item.image,
        )
        for position, item in enumerate(data.items)
    ]
    db.add(order)
    _commit(db)
    db.refresh(order)
    logger.info("Order %s created by user %s (%s items, total %s)", order.id, actor.id, len(order.items), order.total_amount)
    return order


def list_orders_for_owner(db: Session, actor: Identity, filters: Optional[OrderFilters] = None) -> List[Order]:
    query = db.query(Order).filter(Order.user_id == actor.id)
    return _newest_first(_apply_filters(query, filters)).all()


def list_all_orders(db: Session, actor: Identity, filters: Optional[OrderFilters] = None) -> List[Order]:
    ensure_admin(actor)
    return _newest_first(_apply_filters(db.query(Order), filters)).all()


def get_order(db: Session, order_id: int, actor: Identity) -> Order:
    order = _load(db, order_id)
    if not actor.is_admin:
        ensure_owner(actor, order.user_id)
    return order


def get_owned_order(db: Session, order_id: int, actor: Identity) -> Order:
    order = _load(db, order_id)
    ensure_owner(actor, order.user_id)
    return order


def set_payment_status(db: Session, order_id: int, new_status: str, actor: Identity) -> Order:
    ensure_admin(actor)
    if new_status not in PAYMENT_STATUSES:
        raise ValidationError("Invalid payment status provided")
    order = _load(db, order_id)

    previous = order.payment_status
    order.payment_status = new_status
    order.updated_at = datetime.utcnow()
    _commit(db)
    db.refresh(order)
    logger.info("Order %s payment status %s -> %s by admin %s", order.id, previous, new_status, actor.id)
    return order


def set_delivery_status(db: Session, order_id: int, new_status: str, actor: Identity) -> Order:
    ensure_admin(actor)
    if new_status not in DELIVERY_STATUSES:
        raise ValidationError("Invalid delivery status provided")
    order = _load(db, order_id)

    previous = order.delivery_status
    if not can_transition_delivery(previous, new_status):
        raise ValidationError(f"Cannot change delivery status from {previous} to {new_status}")
    order.delivery_status = new_status
    order.updated_at = datetime.utcnow()
    _commit(db)
    db.refresh(order)
    logger.info("Order %s delivery status %s -> %s by admin %s", order.id, previous, new_status, actor.id)
    return order


def attach_payment_proof(db: Session, order_id: int, file_ref: str, actor: Identity) -> Order:
    order = _load(db, order_id)
    ensure_owner(actor, order.user_id)

    order.payment_proof = file_ref
    # A new proof always goes back for review
    order.payment_status = PaymentStatus.PENDING.value
    order.updated_at = datetime.utcnow()
    _commit(db)
    db.refresh(order)
    logger.info("Order %s payment proof attached: %s", order.id, file_ref)
    return order
