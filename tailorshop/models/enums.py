# tailorshop/models/enums.py

from enum import Enum


class Role(str, Enum):
    ADMIN = "ADMIN"
    EMPLOYEE = "EMPLOYEE"


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    CARD = "CARD"
    UPI = "UPI"


class WorkType(str, Enum):
    SIMPLE_WORK = "SIMPLE_WORK"
    HAND_WORK = "HAND_WORK"
    MACHINE_WORK = "MACHINE_WORK"


class ItemStatus(str, Enum):
    DONE = "DONE"
    NOT_DONE = "NOT_DONE"


class PaymentType(str, Enum):
    SALARY = "SALARY"
    PETTY_CASH = "PETTY_CASH"
    OTHER = "OTHER"
