# storefront/schemas/profile.py
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CustomerProfileBase(BaseModel):
    first_name: str | None = Field(default=None, max_length=120)
    surname: str | None = Field(default=None, max_length=120)
    phone: str | None = Field(default=None, max_length=40)
    country_prefix_code: str | None = Field(default=None, pattern=r"^\+?\d{1,4}$")
    primary_address: str | None = Field(default=None, max_length=255)
    secondary_address: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=120)
    state: str | None = Field(default=None, max_length=120)
    postal_code: str | None = Field(default=None, max_length=30)
    country: str | None = Field(default=None, max_length=120)


class CustomerProfileUpdate(CustomerProfileBase):
    pass


class CustomerProfileRead(CustomerProfileBase):
    id: UUID
    user_id: UUID

    model_config = ConfigDict(from_attributes=True)
