# tailorshop/api/orders.py
"""
Order endpoints.

Create and edit arrive as multipart forms: the order itself is a JSON string
in the ``data`` field and reference photos ride along as ``images`` files.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile

from tailorshop.api.common import (
    RowId,
    get_order_images,
    get_order_service,
    image_response,
    parse_payload,
    read_uploads,
)
from tailorshop.db.schema import MAX_ROW_ID
from tailorshop.models.enums import OrderStatus
from tailorshop.models.images import ImageCreated, ImageMeta
from tailorshop.models.orders import (
    MarkAsPaid,
    OrderCreate,
    OrderListResponse,
    OrderOut,
    OrderUpdate,
    StatusUpdate,
)
from tailorshop.services.images import ImageAttachmentService
from tailorshop.services.orders import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("", response_model=OrderListResponse)
def list_orders(
    status: Optional[OrderStatus] = Query(default=None, description="PENDING | PAID | CANCELLED"),
    page: int = Query(1, ge=1, le=MAX_ROW_ID // 100),
    limit: int = Query(10, ge=1, le=100),
    service: OrderService = Depends(get_order_service),
) -> OrderListResponse:
    """
    Orders newest first, one page at a time.
    """
    return service.list(status=status, page=page, limit=limit)


@router.post("", response_model=OrderOut, status_code=201)
def create_order(
    data: str = Form(..., description="JSON encoded order"),
    images: Optional[List[UploadFile]] = File(None),
    service: OrderService = Depends(get_order_service),
) -> OrderOut:
    payload = parse_payload(OrderCreate, data)
    return service.create(payload, read_uploads(images))


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: RowId, service: OrderService = Depends(get_order_service)) -> OrderOut:
    return service.get(order_id)


@router.put("/{order_id}", response_model=OrderOut)
def update_order(
    order_id: RowId,
    data: str = Form(..., description="JSON encoded edit"),
    images: Optional[List[UploadFile]] = File(None),
    service: OrderService = Depends(get_order_service),
) -> OrderOut:
    patch = parse_payload(OrderUpdate, data)
    return service.update(order_id, patch, read_uploads(images))


@router.delete("/{order_id}", status_code=204)
def delete_order(order_id: RowId, service: OrderService = Depends(get_order_service)) -> Response:
    service.delete(order_id)
    return Response(status_code=204)


@router.patch("/{order_id}/status", response_model=OrderOut)
def update_order_status(
    order_id: RowId,
    payload: StatusUpdate,
    service: OrderService = Depends(get_order_service),
) -> OrderOut:
    return service.update_status(order_id, payload.status)


@router.patch("/{order_id}/mark-as-paid", response_model=OrderOut)
def mark_order_as_paid(
    order_id: RowId,
    payload: MarkAsPaid,
    service: OrderService = Depends(get_order_service),
) -> OrderOut:
    return service.mark_as_paid(order_id, payload.payment_method)


# --- Images ---------------------------------------------------------------------


@router.get("/{order_id}/images", response_model=List[ImageMeta])
def list_order_images(
    order_id: RowId,
    images: ImageAttachmentService = Depends(get_order_images),
) -> List[ImageMeta]:
    return images.list(order_id)


@router.post("/{order_id}/images", response_model=List[ImageCreated], status_code=201)
def upload_order_images(
    order_id: RowId,
    files: Optional[List[UploadFile]] = File(None, alias="images"),
    images: ImageAttachmentService = Depends(get_order_images),
) -> List[ImageCreated]:
    """
    Attach one or more JPEG, PNG or WebP files. Either all are stored or none.
    """
    image_ids = images.add_many(order_id, read_uploads(files))
    return [ImageCreated(id=image_id) for image_id in image_ids]


@router.get("/{order_id}/images/{image_id}")
def get_order_image(
    order_id: RowId,
    image_id: RowId,
    images: ImageAttachmentService = Depends(get_order_images),
) -> Response:
    return image_response(images.get(order_id, image_id))


@router.delete("/{order_id}/images/{image_id}", status_code=204)
def delete_order_image(
    order_id: RowId,
    image_id: RowId,
    images: ImageAttachmentService = Depends(get_order_images),
) -> Response:
    images.delete(order_id, image_id)
    return Response(status_code=204)
