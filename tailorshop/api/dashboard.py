# tailorshop/api/dashboard.py

from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import func, select
from sqlalchemy.engine import Engine
from zoneinfo import ZoneInfo

from tailorshop.api.common import get_order_service
from tailorshop.db.engine import get_engine, transaction
from tailorshop.db.schema import employee_payments, employees
from tailorshop.models.employees import EmployeeTotalOut
from tailorshop.models.orders import DueBuckets
from tailorshop.services.orders import OrderService

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/orders", response_model=DueBuckets)
def due_orders(
    request: Request,
    as_of: Optional[date] = Query(
        default=None,
        description="ISO date (YYYY-MM-DD); defaults to today in the shop's timezone",
    ),
    service: OrderService = Depends(get_order_service),
) -> DueBuckets:
    """
    Pending orders due within 1, 5 and 10 days, plus every pending order.
    """
    if as_of is None:
        as_of = datetime.now(ZoneInfo(request.app.state.settings.shop_timezone)).date()

    return service.due_buckets(as_of)


@router.get("/employees", response_model=List[EmployeeTotalOut])
def employee_totals(engine: Engine = Depends(get_engine)) -> List[EmployeeTotalOut]:
    """
    Total paid to each employee, summed from the payment log on every request.
    """
    with transaction(engine, "build employee dashboard") as conn:
        stmt = (
            select(
                employees.c.id,
                employees.c.name,
                func.coalesce(func.sum(employee_payments.c.amount), 0).label("total_paid"),
            )
            .select_from(employees.outerjoin(employee_payments))
            .group_by(employees.c.id, employees.c.name)
            .order_by(employees.c.name)
        )
        rows = conn.execute(stmt).mappings().all()

    return [
        EmployeeTotalOut(id=row["id"], name=row["name"], total_paid=row["total_paid"])
        for row in rows
    ]
