# tailorshop/api/employees.py

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy import func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from tailorshop.api.common import RowId
from tailorshop.db.engine import get_engine, transaction
from tailorshop.db.schema import employee_payments, employees, orders
from tailorshop.errors import ConflictError, NotFoundError
from tailorshop.models.employees import (
    EmployeeIn,
    EmployeeOut,
    PaymentIn,
    PaymentListResponse,
    PaymentOut,
)
from tailorshop.models.enums import Role

router = APIRouter(prefix="/employees", tags=["employees"])

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL = "An employee with this email already exists"


def _row_to_employee(row) -> EmployeeOut:
    return EmployeeOut(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        phone=row["phone"],
        role=row["role"],
        created_at=row["created_at"],
    )


def _row_to_payment(row) -> PaymentOut:
    return PaymentOut(
        id=row["id"],
        employee_id=row["employee_id"],
        amount=row["amount"],
        type=row["type"],
        notes=row["notes"],
        payment_date=row["payment_date"],
    )


def _fetch_employee(conn, employee_id: int) -> EmployeeOut:
    row = conn.execute(
        select(employees).where(employees.c.id == employee_id)
    ).mappings().first()

    if row is None:
        raise NotFoundError("Employee not found")

    return _row_to_employee(row)


@router.get("", response_model=List[EmployeeOut])
def list_employees(
    role: Optional[Role] = Query(default=None, description="ADMIN | EMPLOYEE"),
    engine: Engine = Depends(get_engine),
) -> List[EmployeeOut]:
    """
    Return employees newest first, optionally only those with the given role.
    """
    stmt = select(employees).order_by(employees.c.created_at.desc(), employees.c.id.desc())
    if role is not None:
        stmt = stmt.where(employees.c.role == role.value)

    with transaction(engine, "fetch employees") as conn:
        rows = conn.execute(stmt).mappings().all()

    return [_row_to_employee(row) for row in rows]


@router.post("", response_model=EmployeeOut, status_code=201)
def create_employee(
    payload: EmployeeIn, engine: Engine = Depends(get_engine)
) -> EmployeeOut:
    values = payload.model_dump()
    values["role"] = payload.role.value

    with transaction(engine, "create employee") as conn:
        try:
            result = conn.execute(employees.insert().values(**values))
        except IntegrityError:
            raise ConflictError(DUPLICATE_EMAIL)
        employee = _fetch_employee(conn, result.inserted_primary_key[0])

    logger.info("Created employee %s", employee.id)
    return employee


@router.get("/{employee_id}", response_model=EmployeeOut)
def get_employee(employee_id: RowId, engine: Engine = Depends(get_engine)) -> EmployeeOut:
    with transaction(engine, "fetch employee") as conn:
        return _fetch_employee(conn, employee_id)


@router.put("/{employee_id}", response_model=EmployeeOut)
def update_employee(
    employee_id: RowId, payload: EmployeeIn, engine: Engine = Depends(get_engine)
) -> EmployeeOut:
    values = payload.model_dump()
    values["role"] = payload.role.value

    with transaction(engine, "update employee") as conn:
        try:
            result = conn.execute(
                employees.update().where(employees.c.id == employee_id).values(**values)
            )
        except IntegrityError:
            raise ConflictError(DUPLICATE_EMAIL)
        if result.rowcount == 0:
            raise NotFoundError("Employee not found")
        return _fetch_employee(conn, employee_id)


@router.delete("/{employee_id}", status_code=204)
def delete_employee(employee_id: RowId, engine: Engine = Depends(get_engine)) -> Response:
    """
    Delete an employee with no assigned orders, along with their payment history.

    An employee still assigned to orders is a 409 conflict, the same answer as
    a customer delete blocked by orders. Reassign or delete those orders first.
    """
    with transaction(engine, "delete employee") as conn:
        _fetch_employee(conn, employee_id)

        order_count = conn.execute(
            select(func.count()).select_from(orders).where(orders.c.employee_id == employee_id)
        ).scalar_one()
        if order_count > 0:
            raise ConflictError(
                f"Cannot delete employee. They are assigned to {order_count} order(s)."
            )

        conn.execute(
            employee_payments.delete().where(employee_payments.c.employee_id == employee_id)
        )
        conn.execute(employees.delete().where(employees.c.id == employee_id))

    logger.info("Deleted employee %s", employee_id)
    return Response(status_code=204)


# --- Payments -------------------------------------------------------------------


@router.post("/{employee_id}/payments", response_model=PaymentOut, status_code=201)
def record_payment(
    employee_id: RowId, payload: PaymentIn, engine: Engine = Depends(get_engine)
) -> PaymentOut:
    """
    Append a cash payment. Payments are never edited or removed.
    """
    with transaction(engine, "record employee payment") as conn:
        _fetch_employee(conn, employee_id)
        result = conn.execute(
            employee_payments.insert().values(
                employee_id=employee_id,
                amount=payload.amount,
                type=payload.type.value,
                notes=payload.notes,
            )
        )
        row = conn.execute(
            select(employee_payments).where(
                employee_payments.c.id == result.inserted_primary_key[0]
            )
        ).mappings().one()

    logger.info(
        "Recorded %s payment of %s for employee %s",
        payload.type.value, payload.amount, employee_id,
    )
    return _row_to_payment(row)


@router.get("/{employee_id}/payments", response_model=PaymentListResponse)
def list_payments(
    employee_id: RowId, engine: Engine = Depends(get_engine)
) -> PaymentListResponse:
    with transaction(engine, "fetch employee payments") as conn:
        _fetch_employee(conn, employee_id)
        rows = conn.execute(
            select(employee_payments)
            .where(employee_payments.c.employee_id == employee_id)
            .order_by(employee_payments.c.payment_date.desc(), employee_payments.c.id.desc())
        ).mappings().all()

    payments = [_row_to_payment(row) for row in rows]
    return PaymentListResponse(
        payments=payments,
        total_paid=sum(payment.amount for payment in payments),
    )
