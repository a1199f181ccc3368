# tailorshop/services/amounts.py
"""
Order money arithmetic.

Amounts are whole currency units (rupees), so everything here is plain int.
"""

from typing import Iterable

from tailorshop.models.enums import OrderStatus


def compute_total(items: Iterable) -> int:
    """
    Sum of quantity * price over the items. Accepts anything exposing
    ``quantity`` and ``price`` attributes (request models or table rows).
    An empty collection totals 0.
    """
    return sum(item.quantity * item.price for item in items)


def compute_remaining_due(total: int, advance: int) -> int:
    # Negative means the customer overpaid; shown as-is.
    return total - advance


def derive_status(advance: int, total: int) -> OrderStatus:
    """
    Initial status of a new order: fully paid up front counts as PAID.
    Only used at creation, later edits never re-derive it.
    """
    if advance >= total:
        return OrderStatus.PAID
    return OrderStatus.PENDING
