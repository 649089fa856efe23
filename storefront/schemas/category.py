# storefront/schemas/category.py
from pydantic import BaseModel, Field, ConfigDict, field_validator
from uuid import UUID
from datetime import datetime


class CategoryBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    description: str | None = Field(None, max_length=500)
    active: bool = True


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    name: str | None = Field(None, min_length=2, max_length=100)
    description: str | None = Field(None, max_length=500)
    active: bool | None = None

    @field_validator("name", "active")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("field cannot be null")
        return v


class CategoryRead(CategoryBase):
    id: UUID
    slug: str
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class CategoryBrief(BaseModel):
    id: UUID
    name: str
    slug: str
    model_config = ConfigDict(from_attributes=True)
