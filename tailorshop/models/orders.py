# tailorshop/models/orders.py

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from tailorshop.models.enums import (
    ItemStatus,
    OrderStatus,
    PaymentMethod,
    WorkType,
)
from tailorshop.db.schema import MAX_ROW_ID
from tailorshop.models.images import ImageMeta


class OrderItemIn(BaseModel):
    description: str = Field(..., min_length=1, description="Description is required")
    quantity: int = Field(..., gt=0)
    price: int = Field(..., gt=0, description="Per-unit price")
    work_type: WorkType = WorkType.SIMPLE_WORK
    item_notes: Optional[str] = None
    item_status: ItemStatus = ItemStatus.NOT_DONE

    @field_validator("work_type", mode="before")
    @classmethod
    def _fallback_work_type(cls, value):
        # Missing or unknown work types are recorded as simple work.
        if isinstance(value, WorkType):
            return value
        if isinstance(value, str) and value in WorkType.__members__:
            return WorkType[value]
        return WorkType.SIMPLE_WORK


class OrderCreate(BaseModel):
    customer_id: int = Field(..., gt=0, le=MAX_ROW_ID)
    employee_id: Optional[int] = Field(default=None, gt=0, le=MAX_ROW_ID)
    order_number: Optional[int] = Field(default=None, gt=0, le=MAX_ROW_ID)
    items: List[OrderItemIn] = Field(..., min_length=1)
    notes: Optional[str] = None
    due_date: Optional[date] = None
    advance_amount: int = Field(0, ge=0)


class OrderUpdate(BaseModel):
    """
    Partial edit of an order.

    Scalar fields are only written when present in the payload. ``items``,
    when given, replaces the whole item set. Every existing image whose id is
    not in ``keep_image_ids`` is deleted, so an edit without it drops them all.
    """

    employee_id: Optional[int] = Field(default=None, gt=0, le=MAX_ROW_ID)
    order_number: Optional[int] = Field(default=None, gt=0, le=MAX_ROW_ID)
    notes: Optional[str] = None
    due_date: Optional[date] = None
    advance_amount: Optional[int] = Field(default=None, ge=0)
    items: Optional[List[OrderItemIn]] = Field(default=None, min_length=1)
    keep_image_ids: List[int] = Field(default_factory=list)


class StatusUpdate(BaseModel):
    status: OrderStatus


class MarkAsPaid(BaseModel):
    payment_method: PaymentMethod


class OrderItemOut(BaseModel):
    id: int
    description: str
    quantity: int
    price: int
    work_type: WorkType
    item_notes: Optional[str] = None
    item_status: ItemStatus


class OrderOut(BaseModel):
    id: int
    order_number: Optional[int] = None
    customer_id: int
    customer_name: str
    employee_id: Optional[int] = None
    employee_name: Optional[str] = None
    status: OrderStatus
    payment_method: Optional[PaymentMethod] = None
    total_amount: int
    advance_amount: int
    remaining_due: int
    notes: Optional[str] = None
    due_date: Optional[date] = None
    created_at: datetime
    items: List[OrderItemOut] = Field(default_factory=list)
    images: List[ImageMeta] = Field(default_factory=list)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class OrderListResponse(BaseModel):
    orders: List[OrderOut]
    pagination: Pagination


class DueBuckets(BaseModel):
    as_of: date
    due_in_1_day: List[OrderOut]
    due_in_5_days: List[OrderOut]
    due_in_10_days: List[OrderOut]
    all_pending: List[OrderOut]
