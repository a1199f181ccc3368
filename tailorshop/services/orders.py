# tailorshop/services/orders.py
"""
Order aggregate service.

An order owns its line items and reference images. This is the only module
that writes to the three tables together, and every create, update and
delete runs in a single transaction: either all rows change or none do.

Items are never patched field by field. An edit that carries ``items``
deletes the whole existing set and inserts the new one, and the stored
total is recomputed from that replacement set.
"""

import logging
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence

from sqlalchemy import Table, func, select
from sqlalchemy.engine import Connection, Engine

from tailorshop.db.engine import transaction
from tailorshop.db.schema import (
    customers,
    employees,
    order_images,
    order_items,
    orders,
)
from tailorshop.errors import LimitExceededError, NotFoundError, ValidationError
from tailorshop.models.enums import OrderStatus, PaymentMethod
from tailorshop.models.images import ImageMeta, ImageUpload
from tailorshop.models.orders import (
    DueBuckets,
    OrderCreate,
    OrderItemIn,
    OrderItemOut,
    OrderListResponse,
    OrderOut,
    OrderUpdate,
    Pagination,
)
from tailorshop.services.amounts import (
    compute_remaining_due,
    compute_total,
    derive_status,
)
from tailorshop.services.images import ImageAttachmentService

logger = logging.getLogger(__name__)

# Order columns an edit may overwrite directly.
_EDITABLE_FIELDS = ("employee_id", "order_number", "notes", "due_date", "advance_amount")


def _order_select():
    return select(
        orders,
        customers.c.name.label("customer_name"),
        employees.c.name.label("employee_name"),
    ).select_from(
        orders.join(customers, orders.c.customer_id == customers.c.id).outerjoin(
            employees, orders.c.employee_id == employees.c.id
        )
    )


def _ensure_exists(conn: Connection, table: Table, row_id: int, label: str) -> None:
    found = conn.execute(select(table.c.id).where(table.c.id == row_id)).first()
    if found is None:
        raise NotFoundError(f"{label} not found")


def _validate_items(items: Optional[Sequence[OrderItemIn]]) -> None:
    """
    Re-check the item rules for callers that bypass request parsing.
    Collects every violation before failing.
    """
    if not items:
        raise ValidationError(
            details=[{"field": "items", "message": "Order must contain at least one item"}]
        )

    details = []
    for index, item in enumerate(items):
        if not item.description:
            details.append(
                {"field": f"items.{index}.description", "message": "Description is required"}
            )
        if item.quantity is None or item.quantity <= 0:
            details.append(
                {"field": f"items.{index}.quantity", "message": "Quantity must be positive"}
            )
        if item.price is None or item.price <= 0:
            details.append(
                {"field": f"items.{index}.price", "message": "Price must be positive"}
            )
    if details:
        raise ValidationError(details=details)


def _insert_items(conn: Connection, order_id: int, items: Sequence[OrderItemIn]) -> None:
    conn.execute(
        order_items.insert(),
        [
            {
                "order_id": order_id,
                "description": item.description,
                "quantity": item.quantity,
                "price": item.price,
                "work_type": item.work_type.value,
                "item_notes": item.item_notes,
                "item_status": item.item_status.value,
            }
            for item in items
        ],
    )


def _replace_items(conn: Connection, order_id: int, items: Sequence[OrderItemIn]) -> None:
    conn.execute(order_items.delete().where(order_items.c.order_id == order_id))
    _insert_items(conn, order_id, items)


def _row_to_order(row, items: List[OrderItemOut], images: List[ImageMeta]) -> OrderOut:
    return OrderOut(
        id=row["id"],
        order_number=row["order_number"],
        customer_id=row["customer_id"],
        customer_name=row["customer_name"],
        employee_id=row["employee_id"],
        employee_name=row["employee_name"],
        status=row["status"],
        payment_method=row["payment_method"],
        total_amount=row["total_amount"],
        advance_amount=row["advance_amount"],
        remaining_due=compute_remaining_due(row["total_amount"], row["advance_amount"]),
        notes=row["notes"],
        due_date=row["due_date"],
        created_at=row["created_at"],
        items=items,
        images=images,
    )


def _load_orders(conn: Connection, stmt) -> List[OrderOut]:
    """Run an order query and attach items and image metadata in two batch reads."""
    rows = conn.execute(stmt).mappings().all()
    if not rows:
        return []

    order_ids = [row["id"] for row in rows]
    items_by_order: Dict[int, List[OrderItemOut]] = {order_id: [] for order_id in order_ids}
    images_by_order: Dict[int, List[ImageMeta]] = {order_id: [] for order_id in order_ids}

    item_rows = conn.execute(
        select(order_items)
        .where(order_items.c.order_id.in_(order_ids))
        .order_by(order_items.c.id)
    ).mappings().all()
    for item in item_rows:
        items_by_order[item["order_id"]].append(
            OrderItemOut(
                id=item["id"],
                description=item["description"],
                quantity=item["quantity"],
                price=item["price"],
                work_type=item["work_type"],
                item_notes=item["item_notes"],
                item_status=item["item_status"],
            )
        )

    # Metadata only, no blob.
    image_rows = conn.execute(
        select(order_images.c.id, order_images.c.order_id, order_images.c.created_at)
        .where(order_images.c.order_id.in_(order_ids))
        .order_by(order_images.c.id)
    ).mappings().all()
    for image in image_rows:
        images_by_order[image["order_id"]].append(
            ImageMeta(id=image["id"], created_at=image["created_at"])
        )

    return [
        _row_to_order(row, items_by_order[row["id"]], images_by_order[row["id"]])
        for row in rows
    ]


class OrderService:

    def __init__(self, engine: Engine, images: ImageAttachmentService) -> None:
        self._engine = engine
        self._images = images

    # --- Reads ----------------------------------------------------------------

    def get(self, order_id: int) -> OrderOut:
        with transaction(self._engine, "fetch order") as conn:
            return self._fetch(conn, order_id)

    def list(
        self,
        status: Optional[OrderStatus] = None,
        page: int = 1,
        limit: int = 10,
    ) -> OrderListResponse:
        conditions = []
        if status is not None:
            conditions.append(orders.c.status == status.value)

        with transaction(self._engine, "list orders") as conn:
            total = conn.execute(
                select(func.count()).select_from(orders).where(*conditions)
            ).scalar_one()

            stmt = (
                _order_select()
                .where(*conditions)
                .order_by(orders.c.created_at.desc(), orders.c.id.desc())
                .limit(limit)
                .offset((page - 1) * limit)
            )
            items = _load_orders(conn, stmt)

        return OrderListResponse(
            orders=items,
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                total_pages=(total + limit - 1) // limit,
            ),
        )

    def due_buckets(self, as_of: date) -> DueBuckets:
        """
        Pending orders grouped by how soon they are due. Each bucket is an
        independent query; orders already overdue only show in ``all_pending``.
        """
        tomorrow = as_of + timedelta(days=1)
        five_days = as_of + timedelta(days=5)
        ten_days = as_of + timedelta(days=10)

        pending = orders.c.status == OrderStatus.PENDING.value
        by_due = _order_select().order_by(orders.c.due_date.asc(), orders.c.id.asc())

        with transaction(self._engine, "build due-date dashboard") as conn:
            due_in_1_day = _load_orders(
                conn,
                by_due.where(pending, orders.c.due_date >= as_of, orders.c.due_date <= tomorrow),
            )
            due_in_5_days = _load_orders(
                conn,
                by_due.where(pending, orders.c.due_date > tomorrow, orders.c.due_date <= five_days),
            )
            due_in_10_days = _load_orders(
                conn,
                by_due.where(pending, orders.c.due_date > five_days, orders.c.due_date <= ten_days),
            )
            all_pending = _load_orders(
                conn,
                _order_select()
                .where(pending)
                .order_by(orders.c.due_date.asc().nulls_last(), orders.c.id.asc()),
            )

        return DueBuckets(
            as_of=as_of,
            due_in_1_day=due_in_1_day,
            due_in_5_days=due_in_5_days,
            due_in_10_days=due_in_10_days,
            all_pending=all_pending,
        )

    # --- Aggregate writes -----------------------------------------------------

    def create(
        self, payload: OrderCreate, new_images: Sequence[ImageUpload] = ()
    ) -> OrderOut:
        """
        Insert the order, its items and its images as one unit.

        The initial status is derived from the advance: an order paid in full
        up front starts as PAID, anything else as PENDING.
        """
        _validate_items(payload.items)
        self._images.check_uploads(new_images)
        if len(new_images) > self._images.policy.limit:
            raise LimitExceededError(
                f"Maximum limit of {self._images.policy.limit} images reached"
            )

        total = compute_total(payload.items)
        status = derive_status(payload.advance_amount, total)

        with transaction(self._engine, "create order") as conn:
            _ensure_exists(conn, customers, payload.customer_id, "Customer")
            if payload.employee_id is not None:
                _ensure_exists(conn, employees, payload.employee_id, "Employee")

            result = conn.execute(
                orders.insert().values(
                    order_number=payload.order_number,
                    customer_id=payload.customer_id,
                    employee_id=payload.employee_id,
                    status=status.value,
                    total_amount=total,
                    advance_amount=payload.advance_amount,
                    notes=payload.notes,
                    due_date=payload.due_date,
                )
            )
            order_id = result.inserted_primary_key[0]

            _insert_items(conn, order_id, payload.items)
            if new_images:
                self._images.insert(conn, order_id, new_images)

            order = self._fetch(conn, order_id)

        logger.info(
            "Created order %s for customer %s (total=%s, status=%s)",
            order_id, payload.customer_id, total, status.value,
        )
        return order

    def update(
        self,
        order_id: int,
        patch: OrderUpdate,
        new_images: Sequence[ImageUpload] = (),
    ) -> OrderOut:
        """
        Apply an edit in one transaction:

        1. drop existing images missing from ``keep_image_ids`` (an empty or
           absent list drops them all),
        2. attach ``new_images``,
        3. replace the whole item set (when ``items`` is given),
        4. recompute the total and write the scalar fields present in the patch.

        Status is left alone; use ``update_status`` or ``mark_as_paid``.
        """
        if patch.items is not None:
            _validate_items(patch.items)
        self._images.check_uploads(new_images)

        provided = patch.model_fields_set

        with transaction(self._engine, "update order") as conn:
            _ensure_exists(conn, orders, order_id, "Order")
            if "employee_id" in provided and patch.employee_id is not None:
                _ensure_exists(conn, employees, patch.employee_id, "Employee")

            keep = set(patch.keep_image_ids)
            existing_ids = conn.execute(
                select(order_images.c.id).where(order_images.c.order_id == order_id)
            ).scalars().all()
            doomed = [image_id for image_id in existing_ids if image_id not in keep]
            if doomed:
                conn.execute(order_images.delete().where(order_images.c.id.in_(doomed)))

            if new_images:
                self._images.ensure_capacity(conn, order_id, len(new_images))
                self._images.insert(conn, order_id, new_images)

            values = {field: getattr(patch, field) for field in _EDITABLE_FIELDS if field in provided}
            if "advance_amount" in values and values["advance_amount"] is None:
                values["advance_amount"] = 0
            if patch.items is not None:
                _replace_items(conn, order_id, patch.items)
                values["total_amount"] = compute_total(patch.items)

            if values:
                conn.execute(orders.update().where(orders.c.id == order_id).values(**values))

            order = self._fetch(conn, order_id)

        logger.info("Updated order %s (fields=%s)", order_id, sorted(values))
        return order

    def delete(self, order_id: int) -> None:
        with transaction(self._engine, "delete order") as conn:
            _ensure_exists(conn, orders, order_id, "Order")
            conn.execute(order_items.delete().where(order_items.c.order_id == order_id))
            conn.execute(order_images.delete().where(order_images.c.order_id == order_id))
            conn.execute(orders.delete().where(orders.c.id == order_id))

        logger.info("Deleted order %s", order_id)

    # --- Status transitions ---------------------------------------------------

    def mark_as_paid(self, order_id: int, payment_method: PaymentMethod) -> OrderOut:
        """Settle the order. Amounts are not touched; there is no way back."""
        with transaction(self._engine, "mark order as paid") as conn:
            self._set(
                conn,
                order_id,
                status=OrderStatus.PAID.value,
                payment_method=payment_method.value,
            )
            order = self._fetch(conn, order_id)

        logger.info("Order %s marked as paid via %s", order_id, payment_method.value)
        return order

    def update_status(self, order_id: int, status: OrderStatus) -> OrderOut:
        # Any status may follow any other.
        with transaction(self._engine, "update order status") as conn:
            self._set(conn, order_id, status=status.value)
            order = self._fetch(conn, order_id)

        logger.info("Order %s status set to %s", order_id, status.value)
        return order

    # --- Internal helpers -----------------------------------------------------

    @staticmethod
    def _set(conn: Connection, order_id: int, **values) -> None:
        result = conn.execute(orders.update().where(orders.c.id == order_id).values(**values))
        if result.rowcount == 0:
            raise NotFoundError("Order not found")

    @staticmethod
    def _fetch(conn: Connection, order_id: int) -> OrderOut:
        found = _load_orders(conn, _order_select().where(orders.c.id == order_id))
        if not found:
            raise NotFoundError("Order not found")
        return found[0]
