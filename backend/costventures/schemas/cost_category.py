"""
Pydantic schemas for CostCategory entity.
"""
from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class CostCategoryBase(BaseModel):
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None


class CostCategoryCreate(CostCategoryBase):
    pass


class CostCategoryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None


class CostCategoryResponse(CostCategoryBase):
    id: int
    trip_id: int
    total_cost: str
    created_at: datetime
