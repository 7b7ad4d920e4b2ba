from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session

from core.access import Identity
from core.db import get_db
from core.errors import OrderError
from routes.auth import get_current_identity
from schemas.order import OrderCreate, OrderEnvelope, OrderList, OrderOut, StatusUpdate
from services import orders as order_service
from services import uploads

router = APIRouter(prefix="/api/orders", tags=["orders"])


def order_filters(
    search: Optional[str] = Query(default=None, description="Matches order id, client name or email"),
    payment_status: Optional[str] = Query(default=None),
    delivery_status: Optional[str] = Query(default=None),
    period: str = Query(default="all", description="all, today, week or month"),
) -> order_service.OrderFilters:
    return order_service.OrderFilters(
        search=search,
        payment_status=payment_status,
        delivery_status=delivery_status,
        period=period,
    )


def _envelope(order, message: Optional[str] = None) -> OrderEnvelope:
    return OrderEnvelope(message=message, order=OrderOut.model_validate(order))


def _listing(orders) -> OrderList:
    return OrderList(orders=[OrderOut.model_validate(o) for o in orders])


@router.post("", response_model=OrderEnvelope, status_code=201)
def create_order(
    data: OrderCreate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    order = order_service.create_order(db, data, identity)
    return _envelope(order, "Order placed successfully")


@router.get("/me", response_model=OrderList)
def my_orders(
    filters: order_service.OrderFilters = Depends(order_filters),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    return _listing(order_service.list_orders_for_owner(db, identity, filters))


@router.get("", response_model=OrderList)
def all_orders(
    filters: order_service.OrderFilters = Depends(order_filters),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    return _listing(order_service.list_all_orders(db, identity, filters))


@router.get("/{order_id}", response_model=OrderEnvelope)
def get_order(order_id: int, identity: Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    return _envelope(order_service.get_order(db, order_id, identity))


@router.post("/{order_id}/payment-proof", response_model=OrderEnvelope)
async def upload_payment_proof(
    order_id: int,
    paymentProof: UploadFile = File(...),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """Upload a payment proof for one of the caller's own orders"""
    # Ownership is checked before anything touches the disk
    order_service.get_owned_order(db, order_id, identity)

    file_data = await paymentProof.read()
    file_ref = uploads.store_payment_proof(order_id, paymentProof.filename, paymentProof.content_type, file_data)
    try:
        order = order_service.attach_payment_proof(db, order_id, file_ref, identity)
    except OrderError:
        uploads.discard_payment_proof(file_ref)
        raise
    return _envelope(order, "Payment proof uploaded successfully")


@router.put("/{order_id}/payment-status", response_model=OrderEnvelope)
def update_payment_status(
    order_id: int,
    data: StatusUpdate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    order = order_service.set_payment_status(db, order_id, data.status, identity)
    return _envelope(order, f"Payment status updated to {data.status}")


@router.put("/{order_id}/delivery-status", response_model=OrderEnvelope)
def update_delivery_status(
    order_id: int,
    data: StatusUpdate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    order = order_service.set_delivery_status(db, order_id, data.status, identity)
    return _envelope(order, f"Delivery status updated to {data.status}")
