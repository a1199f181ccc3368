# tailorshop/api/customers.py

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Response, UploadFile
from sqlalchemy import func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from tailorshop.api.common import RowId, get_customer_images, image_response, read_uploads
from tailorshop.db.engine import get_engine, transaction
from tailorshop.db.schema import customer_images, customers, orders
from tailorshop.errors import ConflictError, NotFoundError, ValidationError
from tailorshop.models.customers import CustomerIn, CustomerOut
from tailorshop.models.images import ImageCreated, ImageMeta
from tailorshop.services.images import ImageAttachmentService

router = APIRouter(prefix="/customers", tags=["customers"])

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL = "A customer with this email already exists"


def _row_to_customer(row) -> CustomerOut:
    return CustomerOut(
        id=row["id"],
        name=row["name"],
        nickname=row["nickname"],
        email=row["email"],
        phone=row["phone"],
        address=row["address"],
        paper_cutting=row["paper_cutting"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _fetch_customer(conn, customer_id: int) -> CustomerOut:
    row = conn.execute(
        select(customers).where(customers.c.id == customer_id)
    ).mappings().first()

    if row is None:
        raise NotFoundError("Customer not found")

    return _row_to_customer(row)


@router.get("", response_model=List[CustomerOut])
def list_customers(engine: Engine = Depends(get_engine)) -> List[CustomerOut]:
    """
    Return all customers, newest first.
    """
    with transaction(engine, "fetch customers") as conn:
        rows = conn.execute(
            select(customers).order_by(customers.c.created_at.desc(), customers.c.id.desc())
        ).mappings().all()

    return [_row_to_customer(row) for row in rows]


@router.post("", response_model=CustomerOut, status_code=201)
def create_customer(
    payload: CustomerIn, engine: Engine = Depends(get_engine)
) -> CustomerOut:
    with transaction(engine, "create customer") as conn:
        try:
            result = conn.execute(customers.insert().values(**payload.model_dump()))
        except IntegrityError:
            raise ConflictError(DUPLICATE_EMAIL)
        customer = _fetch_customer(conn, result.inserted_primary_key[0])

    logger.info("Created customer %s", customer.id)
    return customer


@router.get("/{customer_id}", response_model=CustomerOut)
def get_customer(customer_id: RowId, engine: Engine = Depends(get_engine)) -> CustomerOut:
    """
    Return a single customer by ID.
    """
    with transaction(engine, "fetch customer") as conn:
        return _fetch_customer(conn, customer_id)


@router.put("/{customer_id}", response_model=CustomerOut)
def update_customer(
    customer_id: RowId, payload: CustomerIn, engine: Engine = Depends(get_engine)
) -> CustomerOut:
    with transaction(engine, "update customer") as conn:
        try:
            result = conn.execute(
                customers.update()
                .where(customers.c.id == customer_id)
                .values(**payload.model_dump())
            )
        except IntegrityError:
            raise ConflictError(DUPLICATE_EMAIL)
        if result.rowcount == 0:
            raise NotFoundError("Customer not found")
        return _fetch_customer(conn, customer_id)


@router.delete("/{customer_id}", status_code=204)
def delete_customer(customer_id: RowId, engine: Engine = Depends(get_engine)) -> Response:
    """
    Delete a customer that has no orders. Their images go with them.
    """
    with transaction(engine, "delete customer") as conn:
        _fetch_customer(conn, customer_id)

        order_count = conn.execute(
            select(func.count()).select_from(orders).where(orders.c.customer_id == customer_id)
        ).scalar_one()
        if order_count > 0:
            raise ConflictError(
                f"Cannot delete customer. They have {order_count} existing order(s)."
            )

        conn.execute(customer_images.delete().where(customer_images.c.customer_id == customer_id))
        conn.execute(customers.delete().where(customers.c.id == customer_id))

    logger.info("Deleted customer %s", customer_id)
    return Response(status_code=204)


# --- Images ---------------------------------------------------------------------


@router.get("/{customer_id}/images", response_model=List[ImageMeta])
def list_customer_images(
    customer_id: RowId,
    images: ImageAttachmentService = Depends(get_customer_images),
) -> List[ImageMeta]:
    """
    Image ids and upload times only; bytes come from the per-image route.
    """
    return images.list(customer_id)


@router.post("/{customer_id}/images", response_model=ImageCreated, status_code=201)
def upload_customer_image(
    customer_id: RowId,
    image: Optional[UploadFile] = File(None),
    images: ImageAttachmentService = Depends(get_customer_images),
) -> ImageCreated:
    uploads = read_uploads([image] if image is not None else [])
    if not uploads:
        raise ValidationError(
            "No image provided",
            details=[{"field": "image", "message": "An image file is required"}],
        )
    return ImageCreated(id=images.add(customer_id, uploads[0]))


@router.get("/{customer_id}/images/{image_id}")
def get_customer_image(
    customer_id: RowId,
    image_id: RowId,
    images: ImageAttachmentService = Depends(get_customer_images),
) -> Response:
    return image_response(images.get(customer_id, image_id))


@router.delete("/{customer_id}/images/{image_id}", status_code=204)
def delete_customer_image(
    customer_id: RowId,
    image_id: RowId,
    images: ImageAttachmentService = Depends(get_customer_images),
) -> Response:
    images.delete(customer_id, image_id)
    return Response(status_code=204)
