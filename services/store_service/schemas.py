"""Pydantic schemas for store service."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.pricing import quantize
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from services.store_service.models import OrderStatus, PaymentMethod, PaymentStatus

# ============================================================================
# STORE SCHEMAS
# ============================================================================


class StoreBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    image: Optional[str] = Field(None, max_length=1024)
    rating: Optional[Decimal] = Field(None, ge=0, le=5)
    delivery_time: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    is_open: bool = True
    categories: list[str] = []


class StoreCreate(StoreBase):
    pass


class StoreUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    image: Optional[str] = Field(None, max_length=1024)
    rating: Optional[Decimal] = Field(None, ge=0, le=5)
    delivery_time: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    is_open: Optional[bool] = None
    categories: Optional[list[str]] = None


class StoreResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str = ""
    image: str = "/logo.png"
    rating: Decimal = Decimal("0")
    delivery_time: str = ""
    location: str = ""
    phone: str = ""
    is_open: bool
    categories: list[str] = []
    created_at: datetime
    updated_at: datetime

    @field_validator("description", "delivery_time", "location", "phone", mode="before")
    @classmethod
    def _blank_text(cls, v):
        return v or ""

    @field_validator("image", mode="before")
    @classmethod
    def _default_image(cls, v):
        return v or "/logo.png"

    @field_validator("rating", mode="before")
    @classmethod
    def _default_rating(cls, v):
        return Decimal("0") if v is None else v

    @field_validator("categories", mode="before")
    @classmethod
    def _default_categories(cls, v):
        return v if isinstance(v, list) else []


# ============================================================================
# PRODUCT SCHEMAS
# ============================================================================


class ProductBase(BaseModel):
    store_id: uuid.UUID
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    image: Optional[str] = Field(None, max_length=1024)
    category: Optional[str] = Field(None, max_length=100)
    is_available: bool = True


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    image: Optional[str] = Field(None, max_length=1024)
    category: Optional[str] = Field(None, max_length=100)
    is_available: Optional[bool] = None


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    store_id: uuid.UUID
    store_name: str = ""
    name: str
    description: str = ""
    price: Decimal
    image: str = "/logo.png"
    category: str = ""
    is_available: bool
    created_at: datetime
    updated_at: datetime

    @field_validator("description", "category", mode="before")
    @classmethod
    def _blank_text(cls, v):
        return v or ""

    @field_validator("image", mode="before")
    @classmethod
    def _default_image(cls, v):
        return v or "/logo.png"


# ============================================================================
# ORDER SCHEMAS
# ============================================================================


class OrderCreate(BaseModel):
    """Order row written at checkout. Totals come from the client's cart."""

    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_phone: str = Field(..., min_length=1, max_length=50)
    delivery_address: str = Field(..., min_length=1)
    special_instructions: Optional[str] = None
    subtotal: Decimal = Field(..., ge=0)
    delivery_fee: Decimal = Field(..., ge=0)
    total: Decimal = Field(..., ge=0)
    payment_method: PaymentMethod = PaymentMethod.COD

    @field_validator("customer_name", "customer_phone", "delivery_address", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v

    @model_validator(mode="after")
    def _check_total(self):
        if quantize(self.subtotal) + quantize(self.delivery_fee) != quantize(self.total):
            raise ValueError("total must equal subtotal + delivery_fee")
        return self


class OrderItemCreate(BaseModel):
    product_id: str = Field(..., min_length=1)
    product_name: str = Field(..., min_length=1, max_length=255)
    product_price: Decimal = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    store_id: str
    store_name: str = ""


class OrderItemsCreate(BaseModel):
    items: list[OrderItemCreate] = Field(..., min_length=1)


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    order_id: uuid.UUID
    product_id: str
    product_name: str
    product_price: Decimal
    quantity: int
    store_id: str
    store_name: str


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: str
    customer_name: str
    customer_phone: str
    delivery_address: str
    special_instructions: str = ""
    subtotal: Decimal
    delivery_fee: Decimal
    total: Decimal
    status: OrderStatus
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    created_at: datetime
    updated_at: datetime

    @field_validator("special_instructions", mode="before")
    @classmethod
    def _blank_text(cls, v):
        return v or ""


class OrderWithItemsResponse(OrderResponse):
    items: list[OrderItemResponse] = []


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


# ============================================================================
# DASHBOARD SCHEMAS
# ============================================================================


class ActivityEntry(BaseModel):
    kind: str  # "Store" | "Product" | "Order"
    title: str
    timestamp: datetime


class DashboardStats(BaseModel):
    store_count: int
    product_count: int
    active_orders: int
    todays_revenue: Decimal
    activity: list[ActivityEntry] = []


# ============================================================================
# NOTIFICATION SCHEMAS
# ============================================================================


class OrderNotification(BaseModel):
    """Body of POST /api/notify-order (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True)

    order_id: str = Field(..., alias="orderId")
    status: OrderStatus
    email: Optional[str] = None
    customer_name: Optional[str] = Field(None, alias="customerName")
    total: Optional[Decimal] = None

    @field_validator("order_id", mode="before")
    @classmethod
    def _order_id_text(cls, v):
        return v if v is None else str(v)
