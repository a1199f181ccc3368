# tailorshop/models/employees.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from tailorshop.models.enums import PaymentType, Role


class EmployeeIn(BaseModel):
    name: str = Field(..., min_length=2, description="At least 2 characters")
    email: EmailStr
    phone: str = Field(..., min_length=10, description="At least 10 digits")
    role: Role = Role.EMPLOYEE


class EmployeeOut(BaseModel):
    id: int
    name: str
    email: EmailStr
    phone: str
    role: Role
    created_at: datetime

    class Config:
        from_attributes = True


class PaymentIn(BaseModel):
    amount: int = Field(..., gt=0)
    type: PaymentType
    notes: Optional[str] = None


class PaymentOut(BaseModel):
    id: int
    employee_id: int
    amount: int
    type: PaymentType
    notes: Optional[str] = None
    payment_date: datetime


class EmployeeTotalOut(BaseModel):
    id: int
    name: str
    total_paid: int


class PaymentListResponse(BaseModel):
    payments: List[PaymentOut]
    total_paid: int
