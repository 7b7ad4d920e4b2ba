from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class OrderItemIn(BaseModel):
    product_id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=255)
    quantity: int = Field(ge=1)
    price: float = Field(ge=0)
    size: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, max_length=50)
    image: Optional[str] = Field(None, max_length=500)


class ShippingAddressIn(BaseModel):
    street: str
    city: str
    state: Optional[str] = None
    zip_code: str
    country: str


class OrderCreate(BaseModel):
    items: List[OrderItemIn]
    total_amount: float = Field(ge=0)
    shipping_address: ShippingAddressIn
    payment_method: str = Field(max_length=50)


class StatusUpdate(BaseModel):
    # Checked against the enum in the service so bad values map to 400
    status: str


class OrderItemOut(BaseModel):
    id: int
    product_id: str
    name: str
    quantity: int
    price: float
    size: Optional[str] = None
    color: Optional[str] = None
    image: Optional[str] = None

    class Config:
        from_attributes = True


class ShippingAddressOut(BaseModel):
    street: str
    city: str
    state: Optional[str] = None
    zip_code: str
    country: str


class OrderOut(BaseModel):
    id: int
    user_id: int
    client_name: str
    client_email: str
    items: List[OrderItemOut]
    total_amount: float
    shipping_address: ShippingAddressOut
    payment_method: str
    payment_proof: Optional[str] = None
    payment_status: str
    delivery_status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class OrderEnvelope(BaseModel):
    message: Optional[str] = None
    order: OrderOut


class OrderList(BaseModel):
    orders: List[OrderOut]
