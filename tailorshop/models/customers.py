# tailorshop/models/customers.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class CustomerIn(BaseModel):
    name: str = Field(..., min_length=2, description="At least 2 characters")
    nickname: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: str = Field(..., min_length=10, description="At least 10 digits")
    address: Optional[str] = None
    paper_cutting: bool = False


class CustomerOut(BaseModel):
    id: int
    name: str
    nickname: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: str
    address: Optional[str] = None
    paper_cutting: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
