"""Schemas for the center directory: employees, rooms, classes and students."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EmployeeCreate(BaseModel):
    full_name: str = Field(min_length=1)
    position: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class EmployeeRead(EmployeeCreate):
    id: int
    owner_id: int
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FacilityCreate(BaseModel):
    name: str = Field(min_length=1)
    capacity: Optional[int] = Field(default=None, ge=0)


class FacilityRead(FacilityCreate):
    id: int
    owner_id: int

    model_config = ConfigDict(from_attributes=True)


class SchoolClassCreate(BaseModel):
    class_name: str = Field(min_length=1)
    facility_id: Optional[int] = None


class SchoolClassRead(SchoolClassCreate):
    id: int
    owner_id: int
    status: str

    model_config = ConfigDict(from_attributes=True)


class StudentCreate(BaseModel):
    full_name: str = Field(min_length=1)
    parent_name: Optional[str] = None
    phone: Optional[str] = None


class StudentRead(StudentCreate):
    id: int
    owner_id: int
    status: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
